"""
Google Sheets Client.

gspread is synchronous, so every call goes through call_google(), which
applies the resilience stack (outside-in):
    Circuit Breaker → Retry → Semaphore("google_api") → I/O thread pool → gspread

Google API failures are translated into application exceptions:
    404 → NotFoundError, 403 → AuthorizationError, anything else → ExternalServiceError
"""

import asyncio
from functools import partial
from typing import Any, Callable, TypeVar

import aiobreaker
import gspread
from google.auth.exceptions import RefreshError
from gspread.exceptions import APIError, SpreadsheetNotFound, WorksheetNotFound
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from budget_manager.backend.core.concurrency import get_io_pool, get_semaphore
from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.core.exceptions import (
    AuthorizationError,
    ExternalServiceError,
    NotFoundError,
)
from budget_manager.backend.core.logging import get_logger
from budget_manager.backend.core.resilience import create_circuit_breaker, log_retry
from budget_manager.backend.google.oauth import GoogleCredentials, build_credentials

logger = get_logger(__name__)

T = TypeVar("T")

TRANSIENT_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

_breaker: aiobreaker.CircuitBreaker | None = None


def get_google_breaker() -> aiobreaker.CircuitBreaker:
    """
    Shared breaker for the Google APIs.

    Only transient failures count. Missing sheets, per-user permission errors
    and revoked tokens belong to one user and must not open the circuit for all.
    """
    global _breaker
    if _breaker is None:
        config = get_app_config().resilience.google_api.circuit_breaker
        _breaker = create_circuit_breaker(
            "google_api",
            fail_max=config.fail_max,
            timeout_duration=config.timeout_duration,
            exclude=[WorksheetNotFound, SpreadsheetNotFound, RefreshError, _is_user_error],
        )
    return _breaker


def api_error_status(exc: APIError) -> int | None:
    response = getattr(exc, "response", None)
    return getattr(response, "status_code", None)


def is_transient(exc: BaseException) -> bool:
    """Rate limits, server errors and dropped connections are worth retrying."""
    if isinstance(exc, APIError):
        return api_error_status(exc) in TRANSIENT_STATUS_CODES
    return isinstance(exc, (ConnectionError, TimeoutError, OSError))


def _is_user_error(exc: BaseException) -> bool:
    return isinstance(exc, APIError) and not is_transient(exc)


def _translate(exc: APIError) -> Exception:
    status = api_error_status(exc)
    if status == 404:
        return NotFoundError("Spreadsheet not found")
    if status == 403:
        return AuthorizationError("Access to the spreadsheet was denied")
    return ExternalServiceError(f"Google Sheets API error: {exc}")


async def call_google(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Run a blocking gspread call with retry, circuit breaker and concurrency limits.

    Raises:
        NotFoundError, AuthorizationError, ExternalServiceError
    """
    retry_config = get_app_config().resilience.google_api.retry
    call = partial(fn, *args, **kwargs)

    async def run_in_pool() -> T:
        async with get_semaphore("google_api"):
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(get_io_pool(), call)

    run_in_pool.__name__ = getattr(fn, "__name__", "google_api")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(retry_config.max_attempts),
        wait=wait_exponential(multiplier=retry_config.backoff_multiplier, max=retry_config.backoff_max),
        retry=retry_if_exception(is_transient),
        before_sleep=log_retry,
        reraise=True,
    )

    try:
        return await get_google_breaker().call_async(retrying, run_in_pool)
    except aiobreaker.CircuitBreakerError as e:
        logger.error("Google API circuit open", extra={"operation": run_in_pool.__name__})
        raise ExternalServiceError("Google Sheets is temporarily unavailable") from e
    except APIError as e:
        raise _translate(e) from e


def open_client(google_credentials: GoogleCredentials) -> gspread.Client:
    """Authorize a gspread client with the user's own OAuth credentials."""
    return gspread.authorize(build_credentials(google_credentials))


async def open_spreadsheet(client: gspread.Client, spreadsheet_id: str) -> gspread.Spreadsheet:
    try:
        return await call_google(client.open_by_key, spreadsheet_id)
    except SpreadsheetNotFound as e:
        raise NotFoundError("Spreadsheet not found") from e
