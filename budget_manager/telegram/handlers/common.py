"""
Common Handlers.

/start (including the connect_<token> deep link), /help and /status.
"""

import html
from urllib.parse import urlencode

from aiogram import Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import Message

from budget_manager.backend.core.config import get_app_config, get_server_base_url
from budget_manager.backend.core.logging import get_logger
from budget_manager.telegram.connections import (
    CONNECT_PREFIX,
    TelegramConnection,
    decode_connect_token,
    get_connection_store,
)

logger = get_logger(__name__)

router = Router(name="common")


def connect_success_url(email: str, telegram_username: str, chat_id: str) -> str:
    """Backend link that sends the user back to the app's settings page."""
    base_url, _ = get_server_base_url()
    query = urlencode({
        "user_email": email,
        "telegram_username": telegram_username,
        "chat_id": chat_id,
    })
    return f"{base_url}{get_app_config().application.api_prefix}/telegram/connect-success?{query}"


def help_text() -> str:
    lines = ["<b>📚 Available Commands</b>", ""]
    for command in get_app_config().telegram.commands:
        lines.append(f"/{command.command} - {command.description}")
    return "\n".join(lines)


async def _connect_account(message: Message, token: str) -> None:
    email = decode_connect_token(token)
    if "@" not in email:
        await message.answer("❌ This connect link is not valid. Open a fresh one from the app's settings page.")
        return

    user = message.from_user
    chat_id = str(message.chat.id)
    username = user.username if user and user.username else ""

    get_connection_store().store(
        TelegramConnection(
            email=email,
            chat_id=chat_id,
            telegram_username=username or None,
            first_name=user.first_name if user else None,
        )
    )

    link = connect_success_url(email, username, chat_id)
    await message.answer(
        "✅ <b>Successfully Connected!</b>\n\n"
        f"Your Telegram account is now linked to <b>{html.escape(email)}</b>.\n\n"
        f"<b>Chat ID:</b> <code>{chat_id}</code>\n\n"
        "You'll receive budget and goal notifications here.\n"
        f'<a href="{html.escape(link)}">Return to Budget Manager</a>'
    )

    logger.info(
        "Telegram account connected",
        extra={"email": email, "chat_id": chat_id, "username": username},
    )


@router.message(CommandStart())
async def cmd_start(message: Message, command: CommandObject) -> None:
    """Welcome the user, or link the chat when opened from a connect link."""
    if command.args and command.args.startswith(CONNECT_PREFIX):
        await _connect_account(message, command.args[len(CONNECT_PREFIX):])
        return

    first_name = message.from_user.first_name if message.from_user else "there"
    await message.answer(
        f"👋 Welcome, <b>{html.escape(first_name)}</b>!\n\n"
        "I send budget summaries and alert you when a spending goal is exceeded.\n\n"
        "To link this chat, open <b>Settings → Telegram</b> in Budget Manager "
        "and use the connect button.\n\n"
        "• /help - Show available commands\n"
        "• /status - Check your connection status"
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(help_text())


@router.message(Command("status"))
async def cmd_status(message: Message) -> None:
    """Report whether this chat is linked to an account."""
    connection = get_connection_store().get_by_chat_id(message.chat.id)
    if connection is None:
        await message.answer(
            "🔴 <b>Not connected</b>\n\n"
            "Open Budget Manager settings and use the Telegram connect button."
        )
        return

    await message.answer(
        "🟢 <b>Connected</b>\n\n"
        f"<b>Account:</b> {html.escape(connection.email)}\n"
        f"<b>Since:</b> {connection.connected_at}"
    )
