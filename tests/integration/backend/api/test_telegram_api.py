"""Integration tests for the Telegram endpoints."""

from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient

from budget_manager.telegram.connections import TelegramConnection, get_connection_store
from budget_manager.telegram.services.notifications import NotificationResult

TELEGRAM = "/api/v1/telegram"


@pytest.fixture
def mock_notifications():
    notifications = AsyncMock()
    notifications.send_alert = AsyncMock(
        return_value=NotificationResult(success=True, chat_id="555", message_id=4242)
    )
    return notifications


@pytest.fixture(autouse=True)
def _forget_connections():
    store = get_connection_store()
    store.remove("test@example.com")
    yield
    store.remove("test@example.com")


class TestSend:
    @pytest.mark.asyncio
    async def test_without_bot_token_is_500(self, auth_client: AsyncClient, api):
        response = await auth_client.post(
            f"{TELEGRAM}/send",
            json={"chat_id": "555", "payload": {"type": "custom", "message": "hi"}},
        )

        api.assert_error(response, 500, "SYS_CONFIGURATION_ERROR")

    @pytest.mark.asyncio
    async def test_sent_message_is_logged(self, auth_client: AsyncClient, api, bot_token, mock_notifications):
        with patch(
            "budget_manager.backend.services.telegram.get_notification_service",
            return_value=mock_notifications,
        ):
            response = await auth_client.post(
                f"{TELEGRAM}/send",
                json={"chat_id": "555", "payload": {"type": "budget_alert", "message": "Over budget"}},
            )

        message = api.assert_success(response, 201)["data"]
        assert message["status"] == "sent"

        listed = (await auth_client.get(f"{TELEGRAM}/messages?status=sent")).json()
        assert [m["id"] for m in listed["data"]] == [message["id"]]

    @pytest.mark.asyncio
    async def test_failed_delivery_is_recorded(self, auth_client: AsyncClient, api, bot_token, mock_notifications):
        mock_notifications.send_alert = AsyncMock(
            return_value=NotificationResult(success=False, chat_id="555", error="Forbidden: bot was blocked")
        )
        with patch(
            "budget_manager.backend.services.telegram.get_notification_service",
            return_value=mock_notifications,
        ):
            response = await auth_client.post(
                f"{TELEGRAM}/send",
                json={"chat_id": "555", "payload": {"type": "custom", "message": "hi"}},
            )

        body = api.assert_success(response, 201)
        assert body["data"]["status"] == "failed"
        assert body["message"] == "Message could not be delivered"


class TestBotStatus:
    @pytest.mark.asyncio
    async def test_reports_missing_token(self, client: AsyncClient, api):
        data = api.assert_success(await client.get(f"{TELEGRAM}/test"))["data"]

        assert data["is_connected"] is False
        assert data["error"] == "Telegram bot token not configured"

    @pytest.mark.asyncio
    async def test_configure_rejects_http(self, auth_client: AsyncClient, api):
        response = await auth_client.post(f"{TELEGRAM}/configure", json={"webhook_url": "http://example.com/hook"})

        api.assert_validation_error(response, field="webhook_url")


class TestConnection:
    @pytest.mark.asyncio
    async def test_connect_link(self, auth_client: AsyncClient, api):
        data = api.assert_success(await auth_client.get(f"{TELEGRAM}/connect-link"))["data"]

        assert data["link"].startswith("https://t.me/budget_manager_bot?start=connect_")

    @pytest.mark.asyncio
    async def test_status_not_connected(self, auth_client: AsyncClient, api):
        data = api.assert_success(await auth_client.get(f"{TELEGRAM}/connection-status"))["data"]

        assert data == {"is_connected": False, "telegram_username": None, "chat_id": None, "connected_at": None}

    @pytest.mark.asyncio
    async def test_status_restored_from_users_sheet(self, auth_client: AsyncClient, api):
        await auth_client.put("/api/v1/auth/profile", json={"telegram_username": "ana", "chat_id": "555"})

        data = api.assert_success(await auth_client.get(f"{TELEGRAM}/connection-status"))["data"]

        assert data["is_connected"] is True
        assert data["chat_id"] == "555"
        assert get_connection_store().get_by_email("test@example.com") is not None

    @pytest.mark.asyncio
    async def test_disconnect(self, auth_client: AsyncClient, api):
        get_connection_store().store(
            TelegramConnection(email="test@example.com", chat_id="555", telegram_username="ana", connected_at="now")
        )

        api.assert_success(await auth_client.post(f"{TELEGRAM}/disconnect"))

        data = api.assert_success(await auth_client.get(f"{TELEGRAM}/connection-status"))["data"]
        assert data["is_connected"] is False

    @pytest.mark.asyncio
    async def test_connect_success_redirects_to_settings(self, client: AsyncClient):
        response = await client.get(
            f"{TELEGRAM}/connect-success",
            params={"user_email": "test@example.com", "telegram_username": "ana", "chat_id": "555"},
        )

        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        assert location.path == "/settings"
        assert parse_qs(location.query) == {"telegram_connected": ["true"], "username": ["ana"]}

    @pytest.mark.asyncio
    async def test_connect_success_requires_every_parameter(self, client: AsyncClient, api):
        response = await client.get(f"{TELEGRAM}/connect-success", params={"user_email": "test@example.com"})

        api.assert_error(response, 400)


class TestNotificationSetup:
    @pytest.mark.asyncio
    async def test_enables_notifications_in_settings(self, auth_client: AsyncClient, api):
        response = await auth_client.post(f"{TELEGRAM}/notifications/setup", json={"chat_id": "555"})

        data = api.assert_success(response)["data"]
        assert data["notification_types"] == ["budget_alert", "goal_alert"]

        settings = api.assert_success(await auth_client.get("/api/v1/settings"))["data"]
        assert settings["telegram_notifications"] is True
        assert settings["telegram_chat_id"] == "555"

    @pytest.mark.asyncio
    async def test_enable_all(self, auth_client: AsyncClient, api):
        response = await auth_client.post(
            f"{TELEGRAM}/notifications/setup",
            json={"chat_id": "555", "enable_all": True},
        )

        assert len(api.assert_success(response)["data"]["notification_types"]) == 4
