"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from typing import Annotated

import structlog
from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError

from budget_manager.backend.core.exceptions import AuthenticationError, AuthorizationError
from budget_manager.backend.core.logging import get_logger
from budget_manager.backend.core.security import decode_token
from budget_manager.backend.google.client import open_client
from budget_manager.backend.schemas.auth import UserSession
from budget_manager.backend.storage.database import open_user_database
from budget_manager.backend.storage.store import SheetsStore

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """
    Extract or generate request ID from headers.

    Used for request tracing and correlation.
    """
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> UserSession:
    """
    Resolve the session from the bearer token.

    Raises:
        AuthenticationError: If no bearer token was sent (401)
        AuthorizationError: If the token is invalid, expired or malformed (403)
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")

    claims = decode_token(credentials.credentials)
    try:
        session = UserSession.model_validate(claims)
    except PydanticValidationError:
        logger.warning("Session token has an unexpected payload")
        raise AuthorizationError("Invalid or expired token")

    structlog.contextvars.bind_contextvars(user=session.email)
    return session


CurrentUser = Annotated[UserSession, Depends(get_current_user)]


async def get_store(user: CurrentUser) -> SheetsStore:
    """Open the signed-in user's spreadsheet with their own Google credentials."""
    client = open_client(user.google_credentials)
    return await open_user_database(client, user.spreadsheet_id)


Store = Annotated[SheetsStore, Depends(get_store)]
