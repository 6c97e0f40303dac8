"""
Telegram Schemas.

Bodies and results for /api/v1/telegram.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

MessageTypeName = Literal["budget_alert", "goal_alert", "transaction_reminder", "custom"]

ALL_NOTIFICATION_TYPES: list[str] = ["budget_alert", "goal_alert", "transaction_reminder", "custom"]
DEFAULT_NOTIFICATION_TYPES: list[str] = ["budget_alert", "goal_alert"]


class MessagePayload(BaseModel):
    type: MessageTypeName
    message: str = Field(..., min_length=1, max_length=4096)
    data: dict[str, Any] | None = None


class SendMessageRequest(BaseModel):
    chat_id: str = Field(..., min_length=1)
    payload: MessagePayload


class NotificationSetupRequest(BaseModel):
    chat_id: str = Field(..., min_length=1)
    notification_types: list[MessageTypeName] | None = None
    enable_all: bool = False


class NotificationSetupResult(BaseModel):
    user_email: str
    chat_id: str
    notification_types: list[str]
    setup_completed: bool = True
    next_steps: list[str]


class ConfigureWebhookRequest(BaseModel):
    webhook_url: str
    bot_token: str | None = None

    @field_validator("webhook_url")
    @classmethod
    def _require_https(cls, value: str) -> str:
        if not value.startswith("https://"):
            raise ValueError("Webhook URL must use https")
        return value


class BotConfigurationResult(BaseModel):
    bot_username: str
    webhook_url: str
    commands: list[str]


class BotStatus(BaseModel):
    bot_username: str | None = None
    is_connected: bool
    webhook_configured: bool = False
    webhook_url: str | None = None
    pending_update_count: int = 0
    error: str | None = None


class ConnectLink(BaseModel):
    link: str
    bot_username: str


class ConnectionStatus(BaseModel):
    is_connected: bool
    telegram_username: str | None = None
    chat_id: str | None = None
    connected_at: str | None = None
