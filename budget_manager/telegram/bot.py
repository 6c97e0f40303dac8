"""
Bot and Dispatcher Configuration.

Creates and configures the aiogram Bot and Dispatcher instances.
Uses lazy initialization to prevent import-time failures.
"""

from typing import TYPE_CHECKING

from budget_manager.backend.core.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from aiogram import Bot, Dispatcher

_bot: "Bot | None" = None
_dispatcher: "Dispatcher | None" = None


def create_bot(token: str | None = None) -> "Bot":
    """
    Create an aiogram Bot that sends HTML-formatted messages.

    Args:
        token: Bot token. Defaults to TELEGRAM_BOT_TOKEN from config/.env

    Raises:
        RuntimeError: If no token is given and TELEGRAM_BOT_TOKEN is not configured
    """
    from aiogram import Bot
    from aiogram.client.default import DefaultBotProperties
    from aiogram.enums import ParseMode

    from budget_manager.backend.core.config import get_settings

    token = token or get_settings().telegram_bot_token
    if not token:
        raise RuntimeError(
            "TELEGRAM_BOT_TOKEN not configured. "
            "Set TELEGRAM_BOT_TOKEN environment variable or configure it in config/.env"
        )

    bot = Bot(
        token=token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    logger.info("Telegram bot created")
    return bot


def create_dispatcher() -> "Dispatcher":
    """Create the Dispatcher with all routers and middlewares."""
    from aiogram import Dispatcher
    from aiogram.fsm.storage.memory import MemoryStorage

    from budget_manager.telegram.handlers import get_all_routers
    from budget_manager.telegram.middlewares import setup_middlewares

    dp = Dispatcher(storage=MemoryStorage())

    setup_middlewares(dp)

    for router in get_all_routers():
        dp.include_router(router)

    logger.info("Telegram dispatcher created with routers and middlewares")
    return dp


def get_bot() -> "Bot":
    """Get or create the Bot instance (lazy initialization)."""
    global _bot
    if _bot is None:
        _bot = create_bot()
    return _bot


def get_dispatcher() -> "Dispatcher":
    """Get or create the Dispatcher instance (lazy initialization)."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = create_dispatcher()
    return _dispatcher


async def cleanup_bot() -> None:
    """Close the shared bot's HTTP session on shutdown."""
    global _bot
    if _bot is None:
        return
    await _bot.session.close()
    _bot = None
    logger.info("Bot session closed")
