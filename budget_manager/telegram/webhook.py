"""
Webhook Endpoint for Telegram Bot.

Provides the FastAPI router Telegram posts updates to. The path comes from
telegram.yaml (webhook_path) and the secret from TELEGRAM_WEBHOOK_SECRET.
"""

import hmac
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, Response

from budget_manager.backend.core.config import get_app_config, get_settings
from budget_manager.backend.core.logging import get_logger

if TYPE_CHECKING:
    from aiogram import Bot, Dispatcher

logger = get_logger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def get_webhook_router(bot: "Bot", dp: "Dispatcher") -> APIRouter:
    """
    Create a FastAPI router for handling Telegram webhook requests.

    Usage:
        webhook_router = get_webhook_router(get_bot(), get_dispatcher())
        app.include_router(webhook_router)
    """
    from aiogram.types import Update

    router = APIRouter(tags=["telegram"])

    webhook_path = get_app_config().telegram.webhook_path
    webhook_secret = get_settings().telegram_webhook_secret

    @router.post(webhook_path)
    async def telegram_webhook(request: Request) -> Response:
        """Validate the secret token header and feed the update to the dispatcher."""
        if webhook_secret:
            secret_header = request.headers.get(SECRET_HEADER)
            if not secret_header or not hmac.compare_digest(secret_header, webhook_secret):
                logger.warning(
                    "Invalid webhook secret token",
                    extra={"client_ip": request.client.host if request.client else None},
                )
                return Response(status_code=403)

        try:
            update_data = await request.json()
            update = Update.model_validate(update_data, context={"bot": bot})

            logger.debug(
                "Received Telegram update",
                extra={
                    "update_id": update.update_id,
                    "update_type": update.event_type,
                },
            )

            await dp.feed_update(bot, update)

        except Exception as e:
            # Telegram retries anything but 200, so failures are only logged
            logger.error(
                "Error processing Telegram update",
                extra={"error": str(e)},
                exc_info=True,
            )

        return Response(status_code=200)

    @router.get(webhook_path + "/health")
    async def telegram_webhook_health() -> dict:
        """Health check for the Telegram webhook endpoint."""
        return {"status": "healthy", "webhook_path": webhook_path}

    return router


def get_webhook_url(base_url: str) -> str:
    """Join a public base URL (e.g. an ngrok tunnel) with the webhook path."""
    return f"{base_url.rstrip('/')}{get_app_config().telegram.webhook_path}"
