"""
Unit tests for Telegram bot middlewares.

Tests rate limiting and update logging.
"""

import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiogram.types import CallbackQuery, Message, Update

from budget_manager.telegram.middlewares import LoggingMiddleware, RateLimitMiddleware, setup_middlewares


def _message(user_id: int = 42) -> MagicMock:
    message = MagicMock(spec=Message)
    message.from_user = MagicMock()
    message.from_user.id = user_id
    message.answer = AsyncMock()
    return message


class TestRateLimitMiddleware:
    def test_default_limit_from_config(self):
        assert RateLimitMiddleware().rate_limit == 30

    @pytest.mark.asyncio
    async def test_allows_requests_under_limit(self):
        middleware = RateLimitMiddleware(rate_limit=3)
        handler = AsyncMock(return_value="ok")

        results = [await middleware(handler, _message(), {}) for _ in range(3)]

        assert results == ["ok", "ok", "ok"]
        assert handler.await_count == 3

    @pytest.mark.asyncio
    async def test_blocks_over_limit_and_tells_user(self):
        middleware = RateLimitMiddleware(rate_limit=2)
        handler = AsyncMock(return_value="ok")
        message = _message()

        for _ in range(2):
            await middleware(handler, message, {})
        result = await middleware(handler, message, {})

        assert result is None
        assert handler.await_count == 2
        assert "Rate limit exceeded" in message.answer.await_args.args[0]

    @pytest.mark.asyncio
    async def test_limits_are_per_user(self):
        middleware = RateLimitMiddleware(rate_limit=1)
        handler = AsyncMock(return_value="ok")

        await middleware(handler, _message(1), {})
        result = await middleware(handler, _message(2), {})

        assert result == "ok"

    @pytest.mark.asyncio
    async def test_old_requests_expire(self):
        middleware = RateLimitMiddleware(rate_limit=1, rate_window=60)
        middleware._requests[42] = [time.time() - 120]
        handler = AsyncMock(return_value="ok")

        assert await middleware(handler, _message(42), {}) == "ok"

    @pytest.mark.asyncio
    async def test_callback_query_gets_alert(self):
        middleware = RateLimitMiddleware(rate_limit=1)
        middleware._requests[7] = [time.time()]
        callback = MagicMock(spec=CallbackQuery)
        callback.from_user = MagicMock()
        callback.from_user.id = 7
        callback.answer = AsyncMock()

        await middleware(AsyncMock(), callback, {})

        assert callback.answer.await_args.kwargs == {"show_alert": True}

    @pytest.mark.asyncio
    async def test_events_without_user_pass_through(self):
        middleware = RateLimitMiddleware(rate_limit=1)
        handler = AsyncMock(return_value="ok")

        assert await middleware(handler, MagicMock(), {}) == "ok"


class TestLoggingMiddleware:
    def _update(self, text: str) -> MagicMock:
        update = MagicMock(spec=Update)
        update.update_id = 1001
        update.event_type = "message"
        update.message = MagicMock()
        update.message.chat.id = 555
        update.message.from_user.id = 42
        update.message.from_user.username = "ana_b"
        update.message.text = text
        update.callback_query = None
        return update

    @pytest.mark.asyncio
    async def test_logs_commands(self):
        middleware = LoggingMiddleware()

        with patch("budget_manager.telegram.middlewares.logging.log_with_source") as log:
            await middleware(AsyncMock(return_value="ok"), self._update("/status now"), {})

        received = log.call_args_list[0]
        assert received.args[1:] == ("telegram", "info", "Telegram update received")
        assert received.kwargs["command"] == "/status"
        assert received.kwargs["chat_id"] == 555

    @pytest.mark.asyncio
    async def test_free_text_is_not_logged(self):
        middleware = LoggingMiddleware()

        with patch("budget_manager.telegram.middlewares.logging.log_with_source") as log:
            await middleware(AsyncMock(), self._update("spent 40 on groceries"), {})

        assert "command" not in log.call_args_list[0].kwargs

    @pytest.mark.asyncio
    async def test_errors_are_logged_and_reraised(self):
        middleware = LoggingMiddleware()
        handler = AsyncMock(side_effect=RuntimeError("handler failed"))

        with patch("budget_manager.telegram.middlewares.logging.log_with_source") as log:
            with pytest.raises(RuntimeError):
                await middleware(handler, self._update("/start"), {})

        assert log.call_args_list[-1].args[2] == "error"
        assert log.call_args_list[-1].kwargs["error_type"] == "RuntimeError"


def test_setup_middlewares_registers_both():
    dp = MagicMock()

    setup_middlewares(dp)

    dp.update.outer_middleware.assert_called_once()
    assert isinstance(dp.message.middleware.call_args.args[0], RateLimitMiddleware)
    assert isinstance(dp.callback_query.middleware.call_args.args[0], RateLimitMiddleware)
