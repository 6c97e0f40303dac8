"""User and settings rows."""

from pydantic import Field

from budget_manager.backend.models.base import SheetRecord


class User(SheetRecord):
    id: str
    name: str = ""
    email: str
    password_hash: str = Field(default="", exclude=True)
    telegram_username: str | None = None
    chat_id: str | None = Field(default=None, alias="chatId")


class UserSettings(SheetRecord):
    """Keyed by user_id (the owner's email), one row per user."""

    user_id: str
    currency: str = "USD"
    language: str = "en"
    dark_mode: bool = False
    telegram_notifications: bool = False
    telegram_chat_id: str | None = None
