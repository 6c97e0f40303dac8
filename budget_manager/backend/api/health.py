"""
Health Check Endpoints.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (configuration loads, Telegram configured)
"""

import time
from typing import Any

from fastapi import APIRouter, HTTPException

from budget_manager.backend.core.logging import get_logger
from budget_manager.backend.core.utils import to_iso, utc_now

router = APIRouter()
logger = get_logger(__name__)

_started_at = time.monotonic()


def check_configuration() -> dict[str, Any]:
    """Load every settings file and the secrets."""
    try:
        from budget_manager.backend.core.config import get_app_config, get_settings

        app_config = get_app_config()
        get_settings()
        return {"status": "healthy", "environment": app_config.application.environment}
    except Exception as e:
        logger.warning("Configuration health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "error": str(e)}


def check_telegram() -> dict[str, Any]:
    try:
        from budget_manager.backend.core.config import get_app_config, get_settings

        if not get_app_config().features.channel_telegram_enabled:
            return {"status": "disabled"}
        if not get_settings().telegram_bot_token:
            return {"status": "not_configured"}
        return {"status": "configured"}
    except Exception as e:
        return {"status": "unknown", "error": str(e)}


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """
    Liveness check.

    Returns 200 if the process is running. No dependency checks.
    """
    from budget_manager.backend.core.config import get_app_config

    application = get_app_config().application
    return {
        "status": "OK",
        "timestamp": to_iso(utc_now()),
        "uptime": round(time.monotonic() - _started_at, 3),
        "version": application.version,
        "message": application.description,
    }


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """
    Readiness check.

    Returns 503 if the configuration cannot be loaded. Telegram is reported
    but never makes the service unready.
    """
    checks = {
        "configuration": check_configuration(),
        "telegram": check_telegram(),
    }

    if checks["configuration"]["status"] == "unhealthy":
        logger.warning("Readiness check failed", extra={"checks": checks})
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": to_iso(utc_now()),
            },
        )

    return {
        "status": "healthy",
        "checks": checks,
        "timestamp": to_iso(utc_now()),
    }
