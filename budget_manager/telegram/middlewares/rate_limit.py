"""
Rate Limiting Middleware.

Limits how often one Telegram user can hit the bot. Counts are kept in
process memory.
"""

import time
from collections import defaultdict
from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.core.logging import get_logger

logger = get_logger(__name__)


class RateLimitMiddleware(BaseMiddleware):
    """
    Sliding-window rate limiter per Telegram user.

    The default limit is security.rate_limiting.telegram.messages_per_minute.
    Over the limit, the user is told how long to wait and the handler is skipped.
    """

    def __init__(self, rate_limit: int | None = None, rate_window: int = 60):
        if rate_limit is None:
            rate_limit = get_app_config().security.rate_limiting.telegram.messages_per_minute
        self.rate_limit = rate_limit
        self.rate_window = rate_window
        self._requests: dict[int, list[float]] = defaultdict(list)

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        user_id = self._get_user_id(event)
        if not user_id:
            return await handler(event, data)

        now = time.time()
        is_limited, remaining = self._check_rate_limit(user_id, now)

        if is_limited:
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "user_id": user_id,
                    "rate_limit": self.rate_limit,
                    "rate_window": self.rate_window,
                },
            )
            await self._send_rate_limit_message(event, remaining)
            return None

        self._requests[user_id].append(now)
        return await handler(event, data)

    def _get_user_id(self, event: TelegramObject) -> int | None:
        if isinstance(event, (Message, CallbackQuery)) and event.from_user:
            return event.from_user.id
        return None

    def _check_rate_limit(self, user_id: int, now: float) -> tuple[bool, int]:
        """Returns (is_limited, seconds_until_a_slot_frees)."""
        window_start = now - self.rate_window
        self._requests[user_id] = [ts for ts in self._requests[user_id] if ts > window_start]

        if len(self._requests[user_id]) >= self.rate_limit:
            oldest = min(self._requests[user_id])
            return True, int(self.rate_window - (now - oldest)) + 1

        return False, 0

    async def _send_rate_limit_message(self, event: TelegramObject, remaining: int) -> None:
        message = f"⏳ Rate limit exceeded. Please wait {remaining} seconds."

        if isinstance(event, Message):
            await event.answer(message)
        elif isinstance(event, CallbackQuery):
            await event.answer(message, show_alert=True)
