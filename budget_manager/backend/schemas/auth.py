"""
Auth Schemas.

The session token payload and the auth endpoint bodies.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from budget_manager.backend.google.oauth import GoogleCredentials


class UserSession(BaseModel):
    """Claims carried by the session JWT, besides exp and aud."""

    email: str
    name: str
    spreadsheet_id: str
    telegram_username: str | None = None
    chat_id: str | None = None
    google_credentials: GoogleCredentials

    model_config = ConfigDict(extra="ignore")

    def to_claims(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class AuthUrlResponse(BaseModel):
    auth_url: str


class RefreshRequest(BaseModel):
    refresh_token: str | None = Field(
        default=None,
        description="Google refresh token. Defaults to the one in the current session.",
    )


class SessionTokenResponse(BaseModel):
    token: str
    expires_in: str


class ProfileResponse(BaseModel):
    email: str
    name: str
    telegram_username: str | None = None
    chat_id: str | None = None
    spreadsheet_id: str


class ProfileUpdate(BaseModel):
    telegram_username: str | None = Field(default=None, max_length=64)
    chat_id: str | None = Field(default=None, max_length=64)


class DatabaseStatusResponse(BaseModel):
    spreadsheet_id: str
    is_valid: bool
