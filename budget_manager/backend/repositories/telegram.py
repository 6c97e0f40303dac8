"""Telegram message log repository."""

from budget_manager.backend.models.telegram import TelegramMessage
from budget_manager.backend.repositories.base import SheetRepository


class TelegramMessageRepository(SheetRepository[TelegramMessage]):
    table = "telegram_messages"
    model = TelegramMessage
    label = "Telegram message"
