"""
Telegram Bot Module.

aiogram v3 integration. In production the bot runs in webhook mode inside
the FastAPI application; `cli.py --service telegram-poll` runs it in polling
mode for local development.

Structure:
    budget_manager/telegram/
    ├── bot.py               # Bot and dispatcher setup
    ├── webhook.py           # Webhook endpoint for FastAPI
    ├── setup.py             # getMe / setWebhook / setMyCommands
    ├── connections.py       # In-memory chat <-> account links
    ├── handlers/            # /start, /help, /status
    ├── middlewares/         # Update logging, rate limiting
    └── services/            # Outgoing notifications

Secrets (config/.env):
    TELEGRAM_BOT_TOKEN: Bot token from BotFather
    TELEGRAM_WEBHOOK_SECRET: Secret for webhook validation
"""

from budget_manager.telegram.bot import create_bot, create_dispatcher, get_bot, get_dispatcher

__all__ = [
    "create_bot",
    "create_dispatcher",
    "get_bot",
    "get_dispatcher",
]
