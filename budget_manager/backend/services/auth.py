"""
Auth Service.

Google sign-in, session tokens and database checks. Sign-in finds or creates
the user's spreadsheet and packs everything the API needs into the session
JWT, so later requests need no server-side session.
"""

from urllib.parse import urlencode

from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.core.exceptions import ApplicationError, ValidationError
from budget_manager.backend.core.logging import get_logger
from budget_manager.backend.core.security import create_access_token
from budget_manager.backend.google.client import open_client
from budget_manager.backend.google.oauth import GoogleOAuthClient
from budget_manager.backend.repositories.user import UserRepository
from budget_manager.backend.schemas.auth import SessionTokenResponse, UserSession
from budget_manager.backend.storage.database import get_or_create_user_database, validate_user_database

logger = get_logger(__name__)


def create_session_token(session: UserSession) -> SessionTokenResponse:
    expires_in = get_app_config().security.jwt.session_expires_in
    return SessionTokenResponse(token=create_access_token(session.to_claims()), expires_in=expires_in)


def callback_redirect(token: str | None = None, error: str | None = None) -> str:
    """Frontend URL the OAuth callback redirects to, carrying the token or the error."""
    frontend_url = get_app_config().application.frontend_url.rstrip("/")
    params = {"token": token} if token is not None else {"error": error or "Authentication failed"}
    return f"{frontend_url}/auth/callback?{urlencode(params)}"


class AuthService:
    def __init__(self, oauth: GoogleOAuthClient | None = None) -> None:
        self.oauth = oauth or GoogleOAuthClient()

    def authorization_url(self) -> str:
        return self.oauth.authorization_url()

    async def sign_in(self, code: str) -> SessionTokenResponse:
        """
        Complete the OAuth callback.

        Exchanges the code, reads the Google profile, opens (or creates) the
        user's spreadsheet and issues a session token.
        """
        credentials = await self.oauth.exchange_code(code)
        user_info = await self.oauth.fetch_user_info(credentials.access_token)

        client = open_client(credentials)
        store = await get_or_create_user_database(client, user_info.email, user_info.name)
        await store.ensure_categories_schema()

        user = await UserRepository(store).get_by_email_or_none(user_info.email)
        if user is None:
            await store.seed_user(user_info.email, user_info.name)
            user = await UserRepository(store).get_by_email_or_none(user_info.email)

        session = UserSession(
            email=user_info.email,
            name=user.name if user and user.name else user_info.name,
            spreadsheet_id=store.spreadsheet_id,
            telegram_username=user.telegram_username if user else None,
            chat_id=user.chat_id if user else None,
            google_credentials=credentials,
        )

        logger.info(
            "User signed in",
            extra={"email": session.email, "spreadsheet_id": session.spreadsheet_id},
        )
        return create_session_token(session)

    async def refresh(self, session: UserSession, refresh_token: str | None = None) -> SessionTokenResponse:
        """
        Refresh the Google access token and reissue the session token.

        Raises:
            ValidationError: If neither the body nor the session has a refresh token
        """
        refresh_token = refresh_token or session.google_credentials.refresh_token
        if not refresh_token:
            raise ValidationError("Refresh token is required")

        credentials = await self.oauth.refresh(refresh_token)
        refreshed = session.model_copy(update={"google_credentials": credentials})

        logger.info("Session refreshed", extra={"email": session.email})
        return create_session_token(refreshed)

    async def validate_database(self, session: UserSession) -> bool:
        """
        Raises:
            ValidationError: If the spreadsheet cannot be opened
        """
        client = open_client(session.google_credentials)
        if not await validate_user_database(client, session.spreadsheet_id):
            raise ValidationError("Database validation failed")
        return True


async def sign_in_redirect(service: AuthService, code: str | None) -> str:
    """Run the sign-in and return where the browser goes next. Failures become ?error=."""
    if not code:
        return callback_redirect(error="Authorization code is required")
    try:
        token = await service.sign_in(code)
    except ApplicationError as e:
        logger.warning("Sign-in failed", extra={"code": e.code, "error": e.message})
        return callback_redirect(error=e.message)
    except Exception as e:
        logger.exception("Sign-in failed unexpectedly", extra={"error_type": type(e).__name__})
        return callback_redirect(error="Authentication failed")
    return callback_redirect(token=token.token)
