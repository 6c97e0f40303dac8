"""
Telegram Bot Middlewares.

aiogram v3 middleware scopes:
- Outer middleware: runs on every update (update logging)
- Inner middleware: runs after filters pass (rate limiting)
"""

from typing import TYPE_CHECKING

from budget_manager.telegram.middlewares.logging import LoggingMiddleware
from budget_manager.telegram.middlewares.rate_limit import RateLimitMiddleware

if TYPE_CHECKING:
    from aiogram import Dispatcher

__all__ = [
    "LoggingMiddleware",
    "RateLimitMiddleware",
    "setup_middlewares",
]


def setup_middlewares(dp: "Dispatcher") -> None:
    """Log every update, then rate limit messages and callbacks per user."""
    dp.update.outer_middleware(LoggingMiddleware())

    dp.message.middleware(RateLimitMiddleware())
    dp.callback_query.middleware(RateLimitMiddleware())
