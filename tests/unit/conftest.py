"""
Unit Test Fixtures.

Fixtures for unit tests. Google Sheets is the in-memory fake from the root
conftest; Telegram is always mocked.
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from budget_manager.telegram.connections import TelegramConnectionStore
from budget_manager.telegram.services.notifications import NotificationResult


# =============================================================================
# Telegram Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_bot() -> AsyncMock:
    """
    Mock aiogram Bot.

    send_message returns a message with message_id 4242.
    """
    bot = AsyncMock()
    sent = MagicMock()
    sent.message_id = 4242
    bot.send_message = AsyncMock(return_value=sent)
    bot.session = MagicMock()
    bot.session.close = AsyncMock()
    return bot


@pytest.fixture
def mock_notifications() -> MagicMock:
    """
    Mock NotificationService whose sends succeed.

    Usage:
        def test_alert(mock_notifications):
            service = GoalService(store, notifications=mock_notifications)
            ...
            mock_notifications.send_alert.assert_awaited_once()
    """
    def _result(chat_id: Any, *args: Any, **kwargs: Any) -> NotificationResult:
        return NotificationResult(success=True, chat_id=str(chat_id), message_id=4242)

    notifications = MagicMock()
    notifications.send = AsyncMock(side_effect=_result)
    notifications.send_alert = AsyncMock(side_effect=_result)
    return notifications


@pytest.fixture
def connections() -> TelegramConnectionStore:
    """A private connection store, so tests never share the process-wide one."""
    return TelegramConnectionStore()


# =============================================================================
# Logging Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    """
    Mock logger for testing logging calls.

    Usage:
        def test_logging(mock_logger):
            with patch("module.logger", mock_logger):
                # Test code that logs
                mock_logger.info.assert_called_once()
    """
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    return logger
