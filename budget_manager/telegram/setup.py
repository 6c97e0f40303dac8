"""
Bot Setup.

Registers the webhook and the command menu with Telegram, and reports the
bot's current webhook state. Used by `cli.py --service telegram-setup` and
by POST /api/v1/telegram/configure.
"""

from dataclasses import dataclass, field

from aiogram.types import BotCommand

from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.core.exceptions import ValidationError
from budget_manager.backend.core.logging import get_logger, log_with_source
from budget_manager.telegram.bot import create_bot

logger = get_logger(__name__)


@dataclass
class BotConfiguration:
    bot_username: str
    webhook_url: str
    commands: list[str] = field(default_factory=list)


@dataclass
class WebhookStatus:
    bot_username: str
    webhook_url: str | None
    pending_update_count: int

    @property
    def webhook_configured(self) -> bool:
        return bool(self.webhook_url)


def bot_commands() -> list[BotCommand]:
    return [
        BotCommand(command=command.command, description=command.description)
        for command in get_app_config().telegram.commands
    ]


async def configure_bot(token: str, webhook_url: str, secret_token: str | None = None) -> BotConfiguration:
    """
    getMe, then setWebhook, then setMyCommands.

    Raises:
        ValidationError: If the webhook URL is not https
    """
    if not webhook_url.startswith("https://"):
        raise ValidationError("Webhook URL must use https", details={"webhook_url": webhook_url})

    telegram_config = get_app_config().telegram
    bot = create_bot(token)
    try:
        me = await bot.get_me()
        log_with_source(logger, "telegram", "info", "Bot verified", bot_username=me.username)

        await bot.set_webhook(
            url=webhook_url,
            allowed_updates=telegram_config.allowed_updates,
            secret_token=secret_token or None,
        )
        log_with_source(logger, "telegram", "info", "Webhook configured", webhook_url=webhook_url)

        commands = bot_commands()
        await bot.set_my_commands(commands)
        log_with_source(
            logger,
            "telegram",
            "info",
            "Bot commands registered",
            commands=[command.command for command in commands],
        )
    finally:
        await bot.session.close()

    return BotConfiguration(
        bot_username=me.username or telegram_config.bot_username,
        webhook_url=webhook_url,
        commands=[command.command for command in commands],
    )


async def get_webhook_status(token: str) -> WebhookStatus:
    bot = create_bot(token)
    try:
        me = await bot.get_me()
        info = await bot.get_webhook_info()
    finally:
        await bot.session.close()

    return WebhookStatus(
        bot_username=me.username or get_app_config().telegram.bot_username,
        webhook_url=info.url or None,
        pending_update_count=info.pending_update_count,
    )


async def delete_webhook(token: str) -> None:
    """Drop the webhook so the bot can be run in polling mode."""
    bot = create_bot(token)
    try:
        await bot.delete_webhook()
    finally:
        await bot.session.close()
    log_with_source(logger, "telegram", "info", "Webhook deleted")
