"""
Integration Test Fixtures.

Fixtures for integration tests - the real application over ASGI, with the
signed-in user's spreadsheet replaced by the in-memory fake from the root
conftest. Session tokens are real JWTs.
"""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from budget_manager.backend.core.dependencies import get_store
from budget_manager.backend.schemas.auth import UserSession
from budget_manager.backend.services.auth import create_session_token
from budget_manager.backend.storage.store import SheetsStore


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app(store: SheetsStore) -> FastAPI:
    """
    The application with the spreadsheet dependency pointed at the fake store.

    Authentication still runs for real, so requests without a bearer token
    are rejected before the store is ever reached.
    """
    from budget_manager.backend.main import create_app

    application = create_app()
    application.dependency_overrides[get_store] = lambda: store
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """
    Unauthenticated test client.

    Usage:
        async def test_health_endpoint(client: AsyncClient):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client


# =============================================================================
# Authentication Fixtures
# =============================================================================


@pytest.fixture
def session_token(user_session: UserSession) -> str:
    return create_session_token(user_session).token


@pytest.fixture
def auth_headers(session_token: str) -> dict[str, str]:
    """
    Bearer header for the test user.

    Usage:
        async def test_protected_endpoint(client: AsyncClient, auth_headers: dict):
            response = await client.get("/api/v1/auth/profile", headers=auth_headers)
            assert response.status_code == 200
    """
    return {"Authorization": f"Bearer {session_token}"}


@pytest.fixture
async def auth_client(app: FastAPI, auth_headers: dict[str, str]) -> AsyncGenerator[AsyncClient, None]:
    """Test client that sends the test user's session token on every request."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=auth_headers,
    ) as test_client:
        yield test_client


# =============================================================================
# API Response Assertion Helpers
# =============================================================================


class ApiAssertions:
    """Helper class for API response assertions."""

    @staticmethod
    def assert_success(response: Any, expected_status: int = 200) -> dict[str, Any]:
        """
        Assert API response is successful.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is True, f"Response not successful: {data}"
        return data

    @staticmethod
    def assert_error(
        response: Any,
        expected_status: int,
        expected_code: str | None = None,
    ) -> dict[str, Any]:
        """
        Assert API response is an error.

        Returns:
            Response JSON data
        """
        assert response.status_code == expected_status, (
            f"Expected status {expected_status}, got {response.status_code}: "
            f"{response.text}"
        )
        data = response.json()
        assert data.get("success") is False, f"Response should be error: {data}"
        assert data.get("error") is not None, f"Missing error details: {data}"

        if expected_code:
            actual_code = data["error"].get("code")
            assert actual_code == expected_code, (
                f"Expected error code {expected_code}, got {actual_code}"
            )

        return data

    @staticmethod
    def assert_validation_error(
        response: Any,
        field: str | None = None,
    ) -> dict[str, Any]:
        """Assert API response is a request validation error (422)."""
        data = ApiAssertions.assert_error(response, 422, "VAL_REQUEST_INVALID")

        if field:
            errors = data["error"].get("details", {}).get("validation_errors", [])
            fields = [e.get("field", "") for e in errors]
            assert any(field in f for f in fields), (
                f"Expected validation error for field '{field}', "
                f"got errors for: {fields}"
            )

        return data


@pytest.fixture
def api() -> ApiAssertions:
    """Provide API assertion helpers."""
    return ApiAssertions()


# =============================================================================
# Data Helpers
# =============================================================================


@pytest.fixture
def create_category(auth_client: AsyncClient):
    """Create a category through the API and return its data."""

    async def _create(name: str = "Groceries", color: str = "#FF6B6B") -> dict[str, Any]:
        response = await auth_client.post("/api/v1/categories", json={"name": name, "color": color})
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
