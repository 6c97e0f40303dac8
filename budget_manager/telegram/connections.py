"""
Telegram Connection Store.

Links a Telegram chat to a budget account (the owner's email). Entries are
indexed twice, by email and by "chat_{chat_id}", and live in process memory.
The users sheet (telegram_username, chatId) is the durable copy.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

from budget_manager.backend.core.logging import get_logger
from budget_manager.backend.core.utils import utc_now_iso

logger = get_logger(__name__)

CONNECT_PREFIX = "connect_"


@dataclass
class TelegramConnection:
    email: str
    chat_id: str
    telegram_username: str | None = None
    first_name: str | None = None
    connected_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def encode_connect_token(email: str) -> str:
    """user@example.com -> user_at_example_dot_com"""
    return email.replace("@", "_at_").replace(".", "_dot_")


def decode_connect_token(token: str) -> str:
    return token.replace("_at_", "@").replace("_dot_", ".")


class TelegramConnectionStore:
    def __init__(self) -> None:
        self._entries: dict[str, TelegramConnection] = {}

    @staticmethod
    def _chat_key(chat_id: str | int) -> str:
        return f"chat_{chat_id}"

    def store(self, connection: TelegramConnection) -> TelegramConnection:
        previous = self._entries.get(connection.email)
        if previous is not None and previous.chat_id != connection.chat_id:
            self._entries.pop(self._chat_key(previous.chat_id), None)

        self._entries[connection.email] = connection
        self._entries[self._chat_key(connection.chat_id)] = connection
        logger.info(
            "Telegram connection stored",
            extra={"email": connection.email, "chat_id": connection.chat_id},
        )
        return connection

    def get_by_email(self, email: str) -> TelegramConnection | None:
        return self._entries.get(email)

    def get_by_chat_id(self, chat_id: str | int) -> TelegramConnection | None:
        return self._entries.get(self._chat_key(chat_id))

    def is_connected(self, chat_id: str | int) -> bool:
        return self._chat_key(chat_id) in self._entries

    def remove(self, email: str, chat_id: str | int | None = None) -> bool:
        """Drop both index entries. Returns False if nothing was stored."""
        connection = self._entries.pop(email, None)
        if chat_id is None and connection is not None:
            chat_id = connection.chat_id
        by_chat = self._entries.pop(self._chat_key(chat_id), None) if chat_id is not None else None
        removed = connection is not None or by_chat is not None
        if removed:
            logger.info("Telegram connection removed", extra={"email": email, "chat_id": chat_id})
        return removed

    def all(self) -> list[TelegramConnection]:
        """Each connection once, in insertion order."""
        return [
            connection
            for key, connection in self._entries.items()
            if key == connection.email
        ]

    def clear(self) -> None:
        self._entries.clear()


_connection_store: TelegramConnectionStore | None = None


def get_connection_store() -> TelegramConnectionStore:
    """Get or create the process-wide connection store."""
    global _connection_store
    if _connection_store is None:
        _connection_store = TelegramConnectionStore()
    return _connection_store
