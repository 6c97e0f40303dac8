"""Settings Schemas."""

from pydantic import BaseModel, Field, field_validator


class SettingsUpdate(BaseModel):
    currency: str | None = Field(default=None, min_length=3, max_length=3, examples=["EUR"])
    language: str | None = Field(default=None, min_length=2, max_length=10)
    dark_mode: bool | None = None
    telegram_notifications: bool | None = None
    telegram_chat_id: str | None = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str | None) -> str | None:
        return value.upper() if value is not None else value


class SettingsResponse(BaseModel):
    currency: str
    language: str
    dark_mode: bool
    telegram_notifications: bool
    telegram_chat_id: str | None = None
    updated_at: str | None = None
