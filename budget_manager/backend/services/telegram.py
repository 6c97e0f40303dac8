"""
Telegram Service.

Backend side of the Telegram integration: sending and logging messages,
notification setup, bot configuration and the chat-to-account link.
"""

import json
import uuid
from urllib.parse import urlencode

from aiogram.exceptions import TelegramAPIError

from budget_manager.backend.core.config import get_app_config, get_settings
from budget_manager.backend.core.exceptions import ApplicationError, ValidationError
from budget_manager.backend.core.pagination import PageParams, paginate
from budget_manager.backend.core.utils import utc_now_iso
from budget_manager.backend.models.telegram import TelegramMessage
from budget_manager.backend.repositories.telegram import TelegramMessageRepository
from budget_manager.backend.repositories.user import UserRepository
from budget_manager.backend.schemas.base import PaginationInfo
from budget_manager.backend.schemas.telegram import (
    ALL_NOTIFICATION_TYPES,
    DEFAULT_NOTIFICATION_TYPES,
    BotConfigurationResult,
    BotStatus,
    ConfigureWebhookRequest,
    ConnectionStatus,
    ConnectLink,
    NotificationSetupRequest,
    NotificationSetupResult,
    SendMessageRequest,
)
from budget_manager.backend.services.base import BaseService
from budget_manager.backend.services.settings import SettingsService
from budget_manager.backend.services.user import UserService
from budget_manager.backend.storage.store import SheetsStore
from budget_manager.telegram import setup as bot_setup
from budget_manager.telegram.connections import (
    CONNECT_PREFIX,
    TelegramConnection,
    TelegramConnectionStore,
    encode_connect_token,
    get_connection_store,
)
from budget_manager.telegram.services.notifications import (
    MessageType,
    NotificationService,
    get_notification_service,
)


def require_bot_token(token: str | None = None) -> str:
    """
    Raises:
        ApplicationError: SYS_CONFIGURATION_ERROR if no bot token is available
    """
    token = token or get_settings().telegram_bot_token
    if not token:
        raise ApplicationError("Telegram bot token not configured", code="SYS_CONFIGURATION_ERROR")
    return token


async def configure_bot(data: ConfigureWebhookRequest) -> BotConfigurationResult:
    """Register the webhook and command menu, as `cli.py --service telegram-setup` does."""
    token = require_bot_token(data.bot_token)
    configuration = await bot_setup.configure_bot(
        token,
        data.webhook_url,
        get_settings().telegram_webhook_secret,
    )
    return BotConfigurationResult(
        bot_username=configuration.bot_username,
        webhook_url=configuration.webhook_url,
        commands=configuration.commands,
    )


async def bot_status() -> BotStatus:
    """Bot identity and webhook state. Problems are reported, not raised."""
    token = get_settings().telegram_bot_token
    if not token:
        return BotStatus(is_connected=False, error="Telegram bot token not configured")

    try:
        status = await bot_setup.get_webhook_status(token)
    except TelegramAPIError as e:
        return BotStatus(
            bot_username=get_app_config().telegram.bot_username,
            is_connected=False,
            error=str(e),
        )

    return BotStatus(
        bot_username=status.bot_username,
        is_connected=True,
        webhook_configured=status.webhook_configured,
        webhook_url=status.webhook_url,
        pending_update_count=status.pending_update_count,
    )


def connect_success_redirect(user_email: str | None, telegram_username: str | None, chat_id: str | None) -> str:
    """
    Raises:
        ValidationError: If a parameter is missing
    """
    if not user_email or not telegram_username or not chat_id:
        raise ValidationError("user_email, telegram_username and chat_id are required")

    frontend_url = get_app_config().application.frontend_url.rstrip("/")
    query = urlencode({"telegram_connected": "true", "username": telegram_username})
    return f"{frontend_url}/settings?{query}"


def connect_link(email: str) -> ConnectLink:
    bot_username = get_app_config().telegram.bot_username
    return ConnectLink(
        link=f"https://t.me/{bot_username}?start={CONNECT_PREFIX}{encode_connect_token(email)}",
        bot_username=bot_username,
    )


class TelegramService(BaseService):
    def __init__(
        self,
        store: SheetsStore,
        notifications: NotificationService | None = None,
        connections: TelegramConnectionStore | None = None,
    ) -> None:
        super().__init__(store)
        self.messages = TelegramMessageRepository(store)
        self.users = UserRepository(store)
        self._notifications = notifications
        self.connections = connections or get_connection_store()

    @property
    def notifications(self) -> NotificationService:
        if self._notifications is None:
            self._notifications = get_notification_service()
        return self._notifications

    async def send_message(self, user_id: str, data: SendMessageRequest) -> TelegramMessage:
        """
        Send a message and log it in the telegram_messages table.

        A message that could not be logged is still returned.
        """
        require_bot_token()
        payload = data.payload

        result = await self.notifications.send_alert(
            data.chat_id,
            MessageType(payload.type),
            payload.message,
            payload.data,
        )

        record = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "chat_id": data.chat_id,
            "payload": json.dumps(payload.model_dump(mode="json")),
            "status": "sent" if result.success else "failed",
            "error": result.error or "",
            "sent_at": utc_now_iso() if result.success else "",
        }

        try:
            message = await self.messages.create(**record)
        except ApplicationError as e:
            self._logger.warning(
                "Failed to save Telegram message",
                extra={"chat_id": data.chat_id, "error": e.message},
            )
            message = TelegramMessage.model_validate({**record, "created_at": utc_now_iso()})

        self._log_operation("Telegram message processed", chat_id=data.chat_id, status=message.status)
        return message

    async def list_messages(
        self,
        user_id: str,
        params: PageParams,
        status: str | None = None,
    ) -> tuple[list[TelegramMessage], PaginationInfo]:
        filters = {"user_id": user_id}
        if status:
            filters["status"] = status
        messages = await self.messages.find(**filters)
        messages.sort(key=lambda message: message.created_at or "", reverse=True)
        return paginate(messages, params)

    async def setup_notifications(self, user_id: str, data: NotificationSetupRequest) -> NotificationSetupResult:
        await SettingsService(self.store).save(
            user_id,
            telegram_chat_id=data.chat_id,
            telegram_notifications=True,
        )

        if data.enable_all:
            types = list(ALL_NOTIFICATION_TYPES)
        else:
            types = list(data.notification_types or DEFAULT_NOTIFICATION_TYPES)

        self._log_operation("Telegram notifications enabled", user_id=user_id, types=types)
        return NotificationSetupResult(
            user_email=user_id,
            chat_id=data.chat_id,
            notification_types=types,
            next_steps=[
                "Send /start to the bot if you have not already",
                "Create a spending goal with Telegram alerts enabled",
                "Check the connection with /status in the bot chat",
            ],
        )

    async def connection_status(self, email: str) -> ConnectionStatus:
        """In-memory link first; otherwise the users sheet, which also restores the link."""
        connection = self.connections.get_by_email(email)
        if connection is None:
            user = await self.users.get_by_email_or_none(email)
            if user is not None and user.chat_id:
                connection = self.connections.store(
                    TelegramConnection(
                        email=email,
                        chat_id=user.chat_id,
                        telegram_username=user.telegram_username,
                        connected_at=user.updated_at or utc_now_iso(),
                    )
                )

        if connection is None:
            return ConnectionStatus(is_connected=False)

        return ConnectionStatus(
            is_connected=True,
            telegram_username=connection.telegram_username,
            chat_id=connection.chat_id,
            connected_at=connection.connected_at,
        )

    async def disconnect(self, email: str) -> None:
        connection = self.connections.get_by_email(email)
        self.connections.remove(email, connection.chat_id if connection else None)

        try:
            await UserService(self.store).update_telegram_info(email, None, None)
        except ApplicationError as e:
            self._logger.warning(
                "Failed to clear Telegram info in users sheet",
                extra={"email": email, "error": e.message},
            )

        self._log_operation("Telegram disconnected", email=email)
