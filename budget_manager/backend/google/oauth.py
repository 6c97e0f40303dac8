"""
Google OAuth Client.

Authorization-code flow against Google's OAuth 2.0 endpoints over httpx.
Endpoints, redirect URI and scopes come from config/settings/google.yaml.
"""

import time
from typing import Any
from urllib.parse import urlencode

import httpx
from google.oauth2.credentials import Credentials
from pydantic import BaseModel

from budget_manager.backend.core.config import get_app_config, get_settings
from budget_manager.backend.core.exceptions import ExternalServiceError
from budget_manager.backend.core.logging import get_logger

logger = get_logger(__name__)


class GoogleCredentials(BaseModel):
    """OAuth tokens carried inside the session token."""

    access_token: str
    refresh_token: str | None = None
    expiry_date: int | None = None
    scope: str | None = None
    token_type: str = "Bearer"


class GoogleUserInfo(BaseModel):
    email: str
    name: str


def _credentials_from_token_response(payload: dict[str, Any], refresh_token: str | None = None) -> GoogleCredentials:
    expires_in = payload.get("expires_in")
    expiry_date = int((time.time() + int(expires_in)) * 1000) if expires_in else None
    return GoogleCredentials(
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token") or refresh_token,
        expiry_date=expiry_date,
        scope=payload.get("scope"),
        token_type=payload.get("token_type", "Bearer"),
    )


def build_credentials(google_credentials: GoogleCredentials) -> Credentials:
    """Build google-auth credentials able to refresh themselves for gspread."""
    settings = get_settings()
    oauth = get_app_config().google.oauth
    return Credentials(
        token=google_credentials.access_token,
        refresh_token=google_credentials.refresh_token,
        token_uri=oauth.token_uri,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        scopes=oauth.scopes,
    )


class GoogleOAuthClient:
    """
    Thin client for the Google OAuth 2.0 authorization-code flow.

    Usage:
        oauth = GoogleOAuthClient()
        url = oauth.authorization_url()
        credentials = await oauth.exchange_code(code)
        user = await oauth.fetch_user_info(credentials.access_token)
    """

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        settings = get_settings()
        app_config = get_app_config()
        self._oauth = app_config.google.oauth
        self._client_id = settings.google_client_id
        self._client_secret = settings.google_client_secret
        self._timeout = float(app_config.application.timeouts.external_api)
        self._http_client = http_client

    def authorization_url(self, state: str | None = None) -> str:
        """Consent URL requesting offline access, so a refresh token is always issued."""
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._oauth.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self._oauth.scopes),
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{self._oauth.auth_uri}?{urlencode(params)}"

    async def _request(self, method: str, url: str, operation: str, **kwargs: Any) -> dict[str, Any]:
        client = self._http_client or httpx.AsyncClient(timeout=self._timeout)
        try:
            response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Google OAuth request rejected",
                extra={"operation": operation, "status_code": e.response.status_code},
            )
            raise ExternalServiceError(f"Failed to {operation}") from e
        except httpx.HTTPError as e:
            logger.error("Google OAuth request failed", extra={"operation": operation, "error": str(e)})
            raise ExternalServiceError(f"Failed to {operation}") from e
        finally:
            if self._http_client is None:
                await client.aclose()

    async def exchange_code(self, code: str) -> GoogleCredentials:
        """Exchange an authorization code for access and refresh tokens."""
        payload = await self._request(
            "POST",
            self._oauth.token_uri,
            "exchange authorization code for tokens",
            data={
                "code": code,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "redirect_uri": self._oauth.redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        return _credentials_from_token_response(payload)

    async def refresh(self, refresh_token: str) -> GoogleCredentials:
        """Get a new access token. Google omits the refresh token here, so the old one is kept."""
        payload = await self._request(
            "POST",
            self._oauth.token_uri,
            "refresh access token",
            data={
                "refresh_token": refresh_token,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "grant_type": "refresh_token",
            },
        )
        return _credentials_from_token_response(payload, refresh_token=refresh_token)

    async def fetch_user_info(self, access_token: str) -> GoogleUserInfo:
        payload = await self._request(
            "GET",
            self._oauth.userinfo_uri,
            "get user information",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        email = payload.get("email")
        if not email:
            raise ExternalServiceError("Failed to get user information")
        name = payload.get("name") or payload.get("given_name") or email.split("@")[0]
        return GoogleUserInfo(email=email, name=name)
