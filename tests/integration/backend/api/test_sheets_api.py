"""Integration tests for spreadsheet administration."""

import pytest
from httpx import AsyncClient

SHEETS = "/api/v1/sheets"


@pytest.mark.asyncio
async def test_fresh_database_is_valid(auth_client: AsyncClient, api):
    data = api.assert_success(await auth_client.get(f"{SHEETS}/validate-schema"))["data"]

    assert data["is_valid"] is True
    assert data["missing_tables"] == []
    assert "transactions" in data["existing_tables"]


@pytest.mark.asyncio
async def test_setup_schema_is_idempotent(auth_client: AsyncClient, api, store):
    data = api.assert_success(await auth_client.post(f"{SHEETS}/setup-schema"))["data"]

    assert data == {"spreadsheet_id": store.spreadsheet_id, "created_tables": []}


@pytest.mark.asyncio
async def test_info(auth_client: AsyncClient, api, store):
    data = api.assert_success(await auth_client.get(f"{SHEETS}/info"))["data"]

    assert data["spreadsheet_id"] == store.spreadsheet_id
    assert data["title"].startswith("Budget Manager - ")
    assert {sheet["title"] for sheet in data["sheets"]} >= {"users", "budgets", "transactions"}


@pytest.mark.asyncio
async def test_share(auth_client: AsyncClient, api, store):
    response = await auth_client.post(f"{SHEETS}/share", json={"email": "friend@example.com", "role": "editor"})

    assert api.assert_success(response)["data"]["role"] == "editor"
    assert store.spreadsheet.permissions[-1]["email"] == "friend@example.com"
    assert store.spreadsheet.permissions[-1]["role"] == "writer"


@pytest.mark.asyncio
async def test_json_export_carries_records(auth_client: AsyncClient, api):
    response = await auth_client.get(f"{SHEETS}/export", params={"format": "json", "sheets": "settings"})

    data = api.assert_success(response)["data"]
    assert data["export_format"] == "json"
    assert [row["user_id"] for row in data["data"]["settings"]] == ["test@example.com"]


@pytest.mark.asyncio
async def test_export_unknown_sheet_is_400(auth_client: AsyncClient, api):
    api.assert_error(await auth_client.get(f"{SHEETS}/export", params={"sheets": "secrets"}), 400)


@pytest.mark.asyncio
async def test_import_appends_rows(auth_client: AsyncClient, api):
    response = await auth_client.post(
        f"{SHEETS}/import",
        json={
            "sheet_name": "categories",
            "data": [["c1", "test@example.com", "Rent"], ["c2", "test@example.com", "Food"]],
            "mode": "append",
        },
    )

    body = api.assert_success(response)
    assert body["data"]["rows_imported"] == 2
    assert body["message"] == "Imported 2 rows"


@pytest.mark.asyncio
async def test_backup(auth_client: AsyncClient, api, store):
    data = api.assert_success(await auth_client.post(f"{SHEETS}/backup"), 201)["data"]

    assert data["backup_id"] != store.spreadsheet_id
    assert " - Backup " in data["backup_name"]


@pytest.mark.asyncio
async def test_import_into_missing_sheet_is_404(auth_client: AsyncClient, api):
    response = await auth_client.post(f"{SHEETS}/import", json={"sheet_name": "Imported", "data": [["a"]]})

    api.assert_error(response, 404, "RES_NOT_FOUND")
