"""
Spreadsheet Schema.

Each worksheet in the user's spreadsheet is a table. Row 1 holds the column
names listed here, in this order.
"""

TABLES: dict[str, list[str]] = {
    "users": [
        "id", "name", "email", "password_hash", "telegram_username", "chatId",
        "created_at", "updated_at",
    ],
    "settings": [
        "user_id", "currency", "language", "dark_mode", "telegram_notifications",
        "telegram_chat_id", "created_at", "updated_at",
    ],
    "categories": [
        "id", "user_id", "name", "emoji", "color", "created_at", "updated_at",
    ],
    "transactions": [
        "id", "user_id", "name", "amount", "category_id", "category_name", "date",
        "time", "notes", "receipt_url", "created_at", "updated_at",
    ],
    "budgets": [
        "id", "user_id", "year", "month", "income", "created_at", "updated_at",
    ],
    "budget_items": [
        "id", "budget_id", "category_id", "category_name", "amount", "spent",
        "created_at", "updated_at",
    ],
    "goals": [
        "id", "user_id", "name", "limit_amount", "period", "notify_telegram",
        "last_notified_at", "created_at", "updated_at",
    ],
    "telegram_messages": [
        "id", "user_id", "chat_id", "payload", "status", "error", "sent_at",
        "created_at",
    ],
    "budget_incomes": [
        "id", "user_id", "year", "month", "amount", "source", "created_at",
        "updated_at",
    ],
}

# Created lazily the first time they are used, so older spreadsheets stay valid without them
ON_DEMAND_TABLES = frozenset({"budget_incomes"})

REQUIRED_TABLES = [name for name in TABLES if name not in ON_DEMAND_TABLES]

TABLE_KEYS: dict[str, str] = {"settings": "user_id"}


def key_column(table: str) -> str:
    return TABLE_KEYS.get(table, "id")


HEADER_FORMAT = {
    "backgroundColor": {"red": 0.2, "green": 0.6, "blue": 1.0},
    "textFormat": {
        "bold": True,
        "foregroundColor": {"red": 1.0, "green": 1.0, "blue": 1.0},
    },
}

DEFAULT_SETTINGS = {
    "currency": "USD",
    "language": "en",
    "dark_mode": False,
    "telegram_notifications": False,
    "telegram_chat_id": "",
}

DEFAULT_SHEET_TITLE = "Sheet1"
