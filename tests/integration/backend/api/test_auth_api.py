"""Integration tests for the auth endpoints and bearer authentication."""

from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient
from jose import jwt

from budget_manager.backend.core.config import get_settings


class TestBearerAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client: AsyncClient, api):
        response = await client.get("/api/v1/budgets")

        api.assert_error(response, 401, "AUTH_UNAUTHORIZED")

    @pytest.mark.asyncio
    async def test_invalid_token_is_403(self, client: AsyncClient, api):
        response = await client.get("/api/v1/budgets", headers={"Authorization": "Bearer not-a-jwt"})

        api.assert_error(response, 403, "AUTHZ_FORBIDDEN")

    @pytest.mark.asyncio
    async def test_token_without_session_claims_is_403(self, client: AsyncClient, api):
        token = jwt.encode({"sub": "someone", "aud": "budget-manager"}, get_settings().jwt_secret, algorithm="HS256")

        response = await client.get("/api/v1/budgets", headers={"Authorization": f"Bearer {token}"})

        api.assert_error(response, 403, "AUTHZ_FORBIDDEN")


class TestGoogleSignIn:
    @pytest.mark.asyncio
    async def test_consent_url(self, client: AsyncClient, api):
        data = api.assert_success(await client.get("/api/v1/auth/google"))["data"]

        query = parse_qs(urlparse(data["auth_url"]).query)
        assert query["client_id"] == ["test-client-id.apps.googleusercontent.com"]
        assert query["access_type"] == ["offline"]
        assert "https://www.googleapis.com/auth/spreadsheets" in query["scope"][0]

    @pytest.mark.asyncio
    async def test_callback_without_code_redirects_with_error(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/google/callback")

        assert response.status_code == 302
        location = response.headers["location"]
        assert location.startswith("http://localhost:3000/auth/callback?")
        assert parse_qs(urlparse(location).query)["error"] == ["Authorization code is required"]


class TestProfile:
    @pytest.mark.asyncio
    async def test_get_profile(self, auth_client: AsyncClient, api, user_session):
        data = api.assert_success(await auth_client.get("/api/v1/auth/profile"))["data"]

        assert data["email"] == "test@example.com"
        assert data["spreadsheet_id"] == user_session.spreadsheet_id
        assert data["chat_id"] is None

    @pytest.mark.asyncio
    async def test_update_profile(self, auth_client: AsyncClient, api):
        response = await auth_client.put("/api/v1/auth/profile", json={"telegram_username": "ana", "chat_id": "555"})

        data = api.assert_success(response)["data"]
        assert data["telegram_username"] == "ana"
        assert data["chat_id"] == "555"

        again = api.assert_success(await auth_client.get("/api/v1/auth/profile"))["data"]
        assert again["chat_id"] == "555"


class TestDatabase:
    @pytest.mark.asyncio
    async def test_validate_database(self, auth_client: AsyncClient, api, gspread_client):
        with patch("budget_manager.backend.services.auth.open_client", return_value=gspread_client):
            data = api.assert_success(await auth_client.get("/api/v1/auth/validate-database"))["data"]

        assert data["is_valid"] is True

    @pytest.mark.asyncio
    async def test_recreate_database_restores_missing_tables(self, auth_client: AsyncClient, api, store):
        store.spreadsheet.del_worksheet(store.spreadsheet.worksheet("goals"))

        data = api.assert_success(await auth_client.post("/api/v1/auth/recreate-database"))["data"]

        assert "goals" in data

    @pytest.mark.asyncio
    async def test_logout(self, client: AsyncClient, api):
        body = api.assert_success(await client.post("/api/v1/auth/logout"))
        assert body["message"] == "Logged out successfully"
