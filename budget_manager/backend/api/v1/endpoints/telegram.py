"""
Telegram API Endpoints.

The webhook itself is mounted by the application from
budget_manager.telegram.webhook at telegram.webhook_path.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from budget_manager.backend.core.dependencies import CurrentUser, RequestId, Store
from budget_manager.backend.core.pagination import PageParams, get_page_params
from budget_manager.backend.models.telegram import TelegramMessage
from budget_manager.backend.schemas.base import ApiResponse, PaginatedResponse, ResponseMetadata
from budget_manager.backend.schemas.telegram import (
    BotConfigurationResult,
    BotStatus,
    ConfigureWebhookRequest,
    ConnectionStatus,
    ConnectLink,
    NotificationSetupRequest,
    NotificationSetupResult,
    SendMessageRequest,
)
from budget_manager.backend.services.telegram import (
    TelegramService,
    bot_status,
    configure_bot,
    connect_link,
    connect_success_redirect,
)

router = APIRouter()


@router.post("/send", response_model=ApiResponse[TelegramMessage], status_code=201, summary="Send a message")
async def send_message(data: SendMessageRequest, user: CurrentUser, store: Store) -> ApiResponse[TelegramMessage]:
    message = await TelegramService(store).send_message(user.email, data)
    text = "Message sent successfully" if message.status == "sent" else "Message could not be delivered"
    return ApiResponse(data=message, message=text)


@router.get("/messages", response_model=PaginatedResponse[TelegramMessage], summary="List sent messages")
async def list_messages(
    user: CurrentUser,
    store: Store,
    request_id: RequestId,
    pagination: PageParams = Depends(get_page_params),
    status: str | None = Query(default=None, description="sent or failed"),
) -> PaginatedResponse[TelegramMessage]:
    messages, page_info = await TelegramService(store).list_messages(user.email, pagination, status)
    return PaginatedResponse(
        data=messages,
        pagination=page_info,
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.post(
    "/notifications/setup",
    response_model=ApiResponse[NotificationSetupResult],
    summary="Enable Telegram notifications",
)
async def setup_notifications(
    data: NotificationSetupRequest,
    user: CurrentUser,
    store: Store,
) -> ApiResponse[NotificationSetupResult]:
    result = await TelegramService(store).setup_notifications(user.email, data)
    return ApiResponse(data=result, message="Telegram notifications enabled")


@router.post(
    "/configure",
    response_model=ApiResponse[BotConfigurationResult],
    summary="Register the bot webhook and commands",
)
async def configure(data: ConfigureWebhookRequest, user: CurrentUser) -> ApiResponse[BotConfigurationResult]:
    return ApiResponse(data=await configure_bot(data), message="Bot configured successfully")


@router.get("/test", response_model=ApiResponse[BotStatus], summary="Check the bot and its webhook")
async def test_bot() -> ApiResponse[BotStatus]:
    return ApiResponse(data=await bot_status())


@router.get("/connect-success", status_code=302, summary="Return to the app after linking Telegram")
async def connect_success(
    user_email: str | None = Query(default=None),
    telegram_username: str | None = Query(default=None),
    chat_id: str | None = Query(default=None),
) -> RedirectResponse:
    url = connect_success_redirect(user_email, telegram_username, chat_id)
    return RedirectResponse(url=url, status_code=302)


@router.get("/connect-link", response_model=ApiResponse[ConnectLink], summary="Deep link that links this account")
async def get_connect_link(user: CurrentUser) -> ApiResponse[ConnectLink]:
    return ApiResponse(data=connect_link(user.email))


@router.get("/connection-status", response_model=ApiResponse[ConnectionStatus], summary="Is Telegram linked")
async def connection_status(user: CurrentUser, store: Store) -> ApiResponse[ConnectionStatus]:
    return ApiResponse(data=await TelegramService(store).connection_status(user.email))


@router.post("/disconnect", response_model=ApiResponse[None], summary="Unlink Telegram")
async def disconnect(user: CurrentUser, store: Store) -> ApiResponse[None]:
    await TelegramService(store).disconnect(user.email)
    return ApiResponse(message="Telegram disconnected successfully")
