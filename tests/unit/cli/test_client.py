"""Unit tests for CLI HTTP client."""

import httpx
import pytest

from budget_manager.cli.client import APIClient, APIError, unwrap


def _json(status_code: int, body: dict) -> httpx.Response:
    return httpx.Response(status_code, json=body, request=httpx.Request("GET", "http://test/x"))


class TestAPIClient:
    """Tests for APIClient class."""

    @pytest.fixture
    def client(self) -> APIClient:
        """Create a test client."""
        return APIClient(base_url="http://test:8000")

    def test_client_initialization(self, client: APIClient) -> None:
        assert client.base_url == "http://test:8000"
        assert client.timeout == 30.0
        assert client.api_path("/budgets") == "/api/v1/budgets"

    def test_client_strips_trailing_slash(self) -> None:
        client = APIClient(base_url="http://test:8000/")
        assert client.base_url == "http://test:8000"

    def test_defaults_come_from_application_config(self) -> None:
        assert APIClient().base_url == "http://127.0.0.1:3001"

    @pytest.mark.asyncio
    async def test_sends_frontend_and_auth_headers(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200, json={"success": True, "data": []})

        async with APIClient(base_url="http://test", token="jwt-token", transport=httpx.MockTransport(handler)) as client:
            await client.get("/api/v1/budgets")

        assert seen["x-frontend-id"] == "cli"
        assert seen["authorization"] == "Bearer jwt-token"

    @pytest.mark.asyncio
    async def test_no_auth_header_without_token(self, client: APIClient) -> None:
        internal_client = await client._get_client()
        assert internal_client.headers.get("X-Frontend-ID") == "cli"
        assert "Authorization" not in internal_client.headers
        await client.close()

    @pytest.mark.asyncio
    async def test_call_prefixes_path_and_unwraps(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/budgets"
            assert request.method == "POST"
            return httpx.Response(201, json={"success": True, "data": {"id": "b1"}})

        async with APIClient(base_url="http://test", transport=httpx.MockTransport(handler)) as client:
            data = await client.call("POST", "/budgets", json={"year": 2025, "month": 5, "income": 100})

        assert data == {"id": "b1"}

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with APIClient(base_url="http://test", transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(httpx.ConnectError):
                await client.get("/health")

    @pytest.mark.asyncio
    async def test_close_client(self, client: APIClient) -> None:
        await client._get_client()
        assert client._client is not None

        await client.close()
        assert client._client is None


class TestUnwrap:
    def test_returns_data(self) -> None:
        assert unwrap(_json(200, {"success": True, "data": {"id": "b1"}})) == {"id": "b1"}

    def test_no_content(self) -> None:
        assert unwrap(httpx.Response(204, request=httpx.Request("DELETE", "http://test/x"))) is None

    def test_error_envelope_becomes_api_error(self) -> None:
        body = {"success": False, "data": None, "error": {"code": "RES_NOT_FOUND", "message": "Budget not found"}}

        with pytest.raises(APIError) as exc_info:
            unwrap(_json(404, body))

        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "RES_NOT_FOUND"
        assert exc_info.value.message == "Budget not found"

    def test_non_json_error(self) -> None:
        response = httpx.Response(502, text="Bad gateway", request=httpx.Request("GET", "http://test/x"))

        with pytest.raises(APIError, match="502: Bad gateway"):
            unwrap(response)
