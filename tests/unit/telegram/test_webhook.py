"""Unit tests for the webhook router and bot construction."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from budget_manager.backend.core.config import get_settings
from budget_manager.telegram import bot as bot_module
from budget_manager.telegram.bot import create_bot, get_dispatcher
from budget_manager.telegram.webhook import SECRET_HEADER, get_webhook_router, get_webhook_url

WEBHOOK_PATH = "/api/v1/telegram/webhook"
UPDATE = {
    "update_id": 1001,
    "message": {
        "message_id": 1,
        "date": 1715000000,
        "chat": {"id": 555, "type": "private"},
        "from": {"id": 42, "is_bot": False, "first_name": "Ana"},
        "text": "/status",
    },
}


@pytest.fixture
def dispatcher():
    dp = MagicMock()
    dp.feed_update = AsyncMock()
    return dp


def _client(bot, dp) -> AsyncClient:
    app = FastAPI()
    app.include_router(get_webhook_router(bot, dp))
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestWebhookRouter:
    @pytest.mark.asyncio
    async def test_feeds_update_to_dispatcher(self, mock_bot, dispatcher):
        async with _client(mock_bot, dispatcher) as client:
            response = await client.post(WEBHOOK_PATH, json=UPDATE)

        assert response.status_code == 200
        dispatcher.feed_update.assert_awaited_once()
        update = dispatcher.feed_update.await_args.args[1]
        assert update.update_id == 1001

    @pytest.mark.asyncio
    async def test_processing_errors_still_return_200(self, mock_bot, dispatcher):
        dispatcher.feed_update.side_effect = RuntimeError("handler crashed")

        async with _client(mock_bot, dispatcher) as client:
            response = await client.post(WEBHOOK_PATH, json=UPDATE)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_secret_is_checked(self, mock_bot, dispatcher, monkeypatch):
        monkeypatch.setenv("TELEGRAM_WEBHOOK_SECRET", "s3cret")
        get_settings.cache_clear()

        async with _client(mock_bot, dispatcher) as client:
            missing = await client.post(WEBHOOK_PATH, json=UPDATE)
            wrong = await client.post(WEBHOOK_PATH, json=UPDATE, headers={SECRET_HEADER: "nope"})
            right = await client.post(WEBHOOK_PATH, json=UPDATE, headers={SECRET_HEADER: "s3cret"})

        assert missing.status_code == 403
        assert wrong.status_code == 403
        assert right.status_code == 200
        dispatcher.feed_update.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_health(self, mock_bot, dispatcher):
        async with _client(mock_bot, dispatcher) as client:
            response = await client.get(f"{WEBHOOK_PATH}/health")

        assert response.json() == {"status": "healthy", "webhook_path": WEBHOOK_PATH}


class TestWebhookUrl:
    @pytest.mark.parametrize("base", ["https://abc.ngrok.app", "https://abc.ngrok.app/"])
    def test_joins_path(self, base):
        assert get_webhook_url(base) == "https://abc.ngrok.app/api/v1/telegram/webhook"


class TestBot:
    def test_create_bot_requires_token(self):
        with pytest.raises(RuntimeError, match="TELEGRAM_BOT_TOKEN not configured"):
            create_bot()

    @pytest.mark.asyncio
    async def test_create_bot_with_token(self, bot_token):
        bot = create_bot()
        try:
            assert bot.token == bot_token
            assert bot.default.parse_mode == "HTML"
        finally:
            await bot.session.close()

    def test_dispatcher_includes_common_router(self, monkeypatch):
        monkeypatch.setattr(bot_module, "_dispatcher", None)

        dp = get_dispatcher()

        assert "common" in [router.name for router in dp.sub_routers]

    @pytest.mark.asyncio
    async def test_cleanup_closes_session(self, mock_bot, monkeypatch):
        monkeypatch.setattr(bot_module, "_bot", mock_bot)

        await bot_module.cleanup_bot()

        mock_bot.session.close.assert_awaited_once()
        assert bot_module._bot is None
