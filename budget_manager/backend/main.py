"""
FastAPI Application Entry Point.

    uvicorn budget_manager.backend.main:app --port 3001
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from budget_manager.backend.api import health
from budget_manager.backend.api.v1 import router as api_v1_router
from budget_manager.backend.core.concurrency import shutdown_pools
from budget_manager.backend.core.config import AppConfig, get_app_config, get_settings
from budget_manager.backend.core.exception_handlers import register_exception_handlers
from budget_manager.backend.core.logging import get_logger, setup_logging
from budget_manager.backend.core.middleware import RequestContextMiddleware

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    app_config = get_app_config()
    setup_logging(level=app_config.logging.level)

    logger.info(
        "Application starting",
        extra={
            "app_name": app_config.application.name,
            "env": app_config.application.environment,
        },
    )
    yield
    logger.info("Application shutting down")

    from budget_manager.telegram.bot import cleanup_bot
    await cleanup_bot()
    await shutdown_pools()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app_config = get_app_config()
    app_settings = app_config.application

    app = FastAPI(
        title=app_settings.name,
        description=app_settings.description,
        version=app_settings.version,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)

    cors_origins = app_settings.cors.origins
    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(api_v1_router, prefix=app_settings.api_prefix)

    _mount_telegram_webhook(app, app_config)

    return app


def _mount_telegram_webhook(app: FastAPI, app_config: AppConfig) -> None:
    """Mount the aiogram webhook when the channel is enabled and a bot token is set."""
    if not app_config.features.channel_telegram_enabled:
        return

    if not get_settings().telegram_bot_token:
        logger.warning("Telegram channel enabled but TELEGRAM_BOT_TOKEN is not set; webhook not mounted")
        return

    from budget_manager.telegram.bot import get_bot, get_dispatcher
    from budget_manager.telegram.webhook import get_webhook_router

    app.include_router(get_webhook_router(get_bot(), get_dispatcher()))
    logger.info("Telegram webhook mounted", extra={"path": app_config.telegram.webhook_path})


def get_app() -> FastAPI:
    """
    Get the application instance (lazy initialization).

    Use this instead of importing `app` directly to avoid
    import-time configuration errors.
    """
    global _app
    if _app is None:
        _app = create_app()
    return _app


# For uvicorn: `uvicorn budget_manager.backend.main:app`
def __getattr__(name: str) -> FastAPI:
    """Support lazy access to `app` for uvicorn compatibility."""
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
