"""
HTTP Client for CLI.

Provides async HTTP client for communicating with the backend API.
All requests include X-Frontend-ID: cli header for log routing, and the
session token as a bearer header when one is given.
"""

from typing import Any

import httpx

from budget_manager.backend.core.config import get_app_config, get_server_base_url
from budget_manager.backend.core.logging import get_logger, log_with_source

logger = get_logger(__name__)


class APIError(Exception):
    """Non-2xx response from the backend, carrying the envelope's error message."""

    def __init__(self, status_code: int, message: str, code: str | None = None) -> None:
        self.status_code = status_code
        self.message = message
        self.code = code
        super().__init__(f"{status_code}: {message}")


def unwrap(response: httpx.Response) -> Any:
    """
    Return the `data` of an ApiResponse envelope.

    Raises:
        APIError: If the response is not a 2xx
    """
    if response.status_code == 204:
        return None

    try:
        body = response.json()
    except ValueError:
        body = {}

    if response.is_success:
        return body.get("data") if isinstance(body, dict) else body

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        raise APIError(response.status_code, error.get("message", response.reason_phrase), error.get("code"))
    raise APIError(response.status_code, response.text or response.reason_phrase)


class APIClient:
    """
    HTTP client for backend API communication.

    Usage:
        client = APIClient(token=session_token)
        response = await client.get("/api/v1/budgets")
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            base_url: Backend base URL. If None, read from application.yaml.
            timeout: Request timeout in seconds. If None, read from application.yaml.
            token: Session JWT sent as `Authorization: Bearer`.
            transport: Optional httpx transport (tests pass an ASGITransport).
        """
        if base_url is None or timeout is None:
            config_base_url, config_timeout = get_server_base_url()
            base_url = base_url or config_base_url
            timeout = timeout if timeout is not None else config_timeout

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token = token
        self.api_prefix = get_app_config().application.api_prefix
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {"X-Frontend-ID": "cli"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers=self._headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def api_path(self, path: str) -> str:
        """Prefix a versioned API path, e.g. /budgets -> /api/v1/budgets."""
        return f"{self.api_prefix}{path}"

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Make an HTTP request to the backend.

        Raises:
            httpx.HTTPError: On transport failure
        """
        client = await self._get_client()

        log_with_source(logger, "cli", "debug", "API request", method=method, path=path)

        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            log_with_source(logger, "cli", "error", "API request failed", method=method, path=path, error=str(e))
            raise

        log_with_source(
            logger,
            "cli",
            "debug",
            "API response",
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", path, **kwargs)

    async def call(self, method: str, path: str, **kwargs: Any) -> Any:
        """Request a versioned API path and unwrap the envelope's data."""
        return unwrap(await self.request(method, self.api_path(path), **kwargs))
