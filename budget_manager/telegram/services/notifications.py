"""
Notification Service.

Sends budget notifications to linked Telegram chats. Handles per-chat rate
limiting and formats alerts by message type.

Usage:
    service = get_notification_service()
    result = await service.send_alert(
        chat_id="123456789",
        message_type=MessageType.GOAL_ALERT,
        message="You have spent 120.00 of your 100.00 monthly limit",
        data={"goal": "Eating out"},
    )
"""

import html
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from budget_manager.backend.core.concurrency import get_semaphore
from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.core.logging import get_logger, log_with_source
from budget_manager.backend.core.utils import utc_now

logger = get_logger(__name__)

RATE_LIMIT_WINDOW = 60


class MessageType(str, Enum):
    BUDGET_ALERT = "budget_alert"
    GOAL_ALERT = "goal_alert"
    TRANSACTION_REMINDER = "transaction_reminder"
    CUSTOM = "custom"


MESSAGE_EMOJI = {
    MessageType.BUDGET_ALERT: "💰",
    MessageType.GOAL_ALERT: "🎯",
    MessageType.TRANSACTION_REMINDER: "🧾",
    MessageType.CUSTOM: "📢",
}

MESSAGE_TITLES = {
    MessageType.BUDGET_ALERT: "Budget Alert",
    MessageType.GOAL_ALERT: "Goal Alert",
    MessageType.TRANSACTION_REMINDER: "Transaction Reminder",
    MessageType.CUSTOM: "Notification",
}


@dataclass
class NotificationResult:
    """Result of a notification send attempt."""

    success: bool
    chat_id: str
    message_id: int | None = None
    error: str | None = None
    rate_limited: bool = False
    timestamp: datetime = field(default_factory=utc_now)


def format_message(message_type: MessageType, message: str, data: dict[str, Any] | None = None) -> str:
    """
    Render an alert as Telegram HTML.

    The message text is sent as-is, so callers may use HTML tags in it.
    Data values are escaped.
    """
    emoji = MESSAGE_EMOJI.get(message_type, "📢")
    lines = [f"{emoji} <b>{MESSAGE_TITLES[message_type]}</b>", "", message]

    if data:
        lines.append("")
        for key, value in data.items():
            label = key.replace("_", " ").title()
            lines.append(f"<b>{label}:</b> <code>{html.escape(str(value))}</code>")

    return "\n".join(lines)


class NotificationService:
    """
    Sends Telegram messages with a per-chat sliding-window rate limit.

    The limit comes from security.yaml
    (security.rate_limiting.notifications.messages_per_minute).
    """

    def __init__(self, rate_limit: int | None = None) -> None:
        if rate_limit is None:
            rate_limit = get_app_config().security.rate_limiting.notifications.messages_per_minute
        self.rate_limit = rate_limit
        self._sent: dict[str, list[float]] = defaultdict(list)

    def _check_rate_limit(self, chat_id: str) -> bool:
        """Record an attempt. False if the chat is over its limit."""
        now = time.time()
        window_start = now - RATE_LIMIT_WINDOW
        self._sent[chat_id] = [ts for ts in self._sent[chat_id] if ts > window_start]

        if len(self._sent[chat_id]) >= self.rate_limit:
            return False

        self._sent[chat_id].append(now)
        return True

    async def send(
        self,
        chat_id: str | int,
        text: str,
        disable_notification: bool = False,
    ) -> NotificationResult:
        """
        Send an HTML message to a chat.

        Telegram failures are reported in the result, not raised.
        """
        from budget_manager.telegram.bot import get_bot

        chat_id = str(chat_id)

        if not self._check_rate_limit(chat_id):
            log_with_source(
                logger,
                "telegram",
                "warning",
                "Rate limit exceeded for chat",
                chat_id=chat_id,
            )
            return NotificationResult(
                success=False,
                chat_id=chat_id,
                rate_limited=True,
                error="Rate limit exceeded",
            )

        try:
            bot = get_bot()
            async with get_semaphore("telegram_api"):
                message = await bot.send_message(
                    chat_id=chat_id,
                    text=text,
                    parse_mode="HTML",
                    disable_notification=disable_notification,
                )

            log_with_source(
                logger,
                "telegram",
                "info",
                "Notification sent",
                chat_id=chat_id,
                message_id=message.message_id,
            )
            return NotificationResult(success=True, chat_id=chat_id, message_id=message.message_id)

        except Exception as e:
            log_with_source(
                logger,
                "telegram",
                "error",
                "Failed to send notification",
                chat_id=chat_id,
                error=str(e),
            )
            return NotificationResult(success=False, chat_id=chat_id, error=str(e))

    async def send_alert(
        self,
        chat_id: str | int,
        message_type: MessageType,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> NotificationResult:
        return await self.send(chat_id, format_message(message_type, message, data))


_notification_service: NotificationService | None = None


def get_notification_service() -> NotificationService:
    """Get or create the notification service singleton."""
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
