"""Outgoing Telegram message log rows."""

import json
from typing import Any

from pydantic import field_validator

from budget_manager.backend.models.base import SheetRecord


class TelegramMessage(SheetRecord):
    id: str
    user_id: str
    chat_id: str
    payload: dict[str, Any] | str = ""
    status: str = "pending"
    error: str | None = None
    sent_at: str | None = None

    @field_validator("payload", mode="before")
    @classmethod
    def _parse_payload(cls, value: Any) -> Any:
        if isinstance(value, str) and value.startswith("{"):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return value
