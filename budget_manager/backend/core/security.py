"""
Security Utilities.

Session token issuing and validation. A session token is a signed JWT that
carries the user's identity, spreadsheet and Google OAuth credentials, so
the API stays stateless between requests.
"""

import re
from datetime import timedelta
from typing import Any

from jose import JWTError, jwt

from budget_manager.backend.core.config import get_app_config, get_settings
from budget_manager.backend.core.exceptions import AuthorizationError
from budget_manager.backend.core.logging import get_logger
from budget_manager.backend.core.utils import utc_now

logger = get_logger(__name__)

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhdw])\s*$")
_DURATION_UNITS = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def parse_expires_in(value: str) -> timedelta:
    """
    Parse a compact duration such as "7d", "12h" or "30m".

    Raises:
        ValueError: If the value is not a number followed by s, m, h, d or w
    """
    match = _DURATION_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """
    Create a signed JWT.

    Args:
        data: Payload data to encode
        expires_delta: Optional custom lifetime, defaults to the configured session lifetime

    Returns:
        Encoded JWT token
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    to_encode = data.copy()

    if expires_delta is None:
        expires_delta = parse_expires_in(jwt_config.session_expires_in)

    to_encode.update({"exp": utc_now() + expires_delta, "aud": jwt_config.audience})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=jwt_config.algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        AuthorizationError: If token is invalid or expired
    """
    settings = get_settings()
    jwt_config = get_app_config().security.jwt
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[jwt_config.algorithm],
            audience=jwt_config.audience,
        )
    except JWTError as e:
        logger.warning("Token decode failed", extra={"error": str(e)})
        raise AuthorizationError("Invalid or expired token")
