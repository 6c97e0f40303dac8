"""Unit tests for SpreadsheetService."""

import pytest

from budget_manager.backend.core.exceptions import ValidationError
from budget_manager.backend.schemas.sheets import ImportRequest, SpreadsheetCreate
from budget_manager.backend.services.spreadsheet import SpreadsheetService

USER = "test@example.com"


@pytest.fixture
def service(store) -> SpreadsheetService:
    return SpreadsheetService(store)


class TestSpreadsheetService:
    @pytest.mark.asyncio
    async def test_create_returns_existing_spreadsheet(self, service, store, gspread_client):
        created = await service.create_spreadsheet(USER, "Test User", SpreadsheetCreate())

        assert created.spreadsheet_id == store.spreadsheet_id
        assert created.name == "Budget Manager - test@example.com"
        assert created.template == "default"
        assert len(gspread_client.spreadsheets) == 1

    @pytest.mark.asyncio
    async def test_setup_and_validate(self, service):
        setup = await service.setup_schema()
        validation = await service.validate_schema()

        assert setup.created_tables == []
        assert validation.is_valid is True

    @pytest.mark.asyncio
    async def test_info(self, service, store):
        info = await service.get_info()
        assert info.spreadsheet_id == store.spreadsheet_id
        assert "users" in [sheet.title for sheet in info.sheets]

    @pytest.mark.asyncio
    async def test_share_maps_role(self, service, store, gspread_client):
        result = await service.share("friend@example.com", "editor")

        assert result.role == "editor"
        permissions = gspread_client.open_by_key(store.spreadsheet_id).permissions
        assert permissions == [{"email": "friend@example.com", "type": "user", "role": "writer", "notify": True}]

    @pytest.mark.asyncio
    async def test_owner_is_an_ownership_transfer(self, service, store, gspread_client):
        result = await service.share("heir@example.com", "owner")

        assert result.role == "owner"
        (request,) = gspread_client.http_client.requests
        assert request["method"] == "post"
        assert request["endpoint"].endswith(f"/files/{store.spreadsheet_id}/permissions")
        assert request["params"]["transferOwnership"] == "true"
        assert request["json"] == {"type": "user", "role": "owner", "emailAddress": "heir@example.com"}
        assert gspread_client.open_by_key(store.spreadsheet_id).permissions == []

    @pytest.mark.asyncio
    async def test_json_export_carries_records(self, service, store):
        await store.insert("categories", {"user_id": USER, "name": "Food"})

        result = await service.export("json", ["categories"])

        assert result.sheets_exported == ["categories"]
        assert [record["name"] for record in result.data["categories"]] == ["Food"]
        assert result.download_url.endswith("/export?format=json")

    @pytest.mark.asyncio
    async def test_csv_export_is_a_link(self, service):
        result = await service.export("csv")

        assert result.sheets_exported == "all"
        assert result.data is None

    @pytest.mark.asyncio
    async def test_export_unknown_sheet(self, service):
        with pytest.raises(ValidationError, match="Unknown sheets: ledger"):
            await service.export("json", ["ledger"])

    @pytest.mark.asyncio
    async def test_import(self, service, store):
        result = await service.import_data(
            ImportRequest(sheet_name="categories", data=[["c1", USER, "Food"]], mode="append")
        )

        assert result.rows_imported == 1
        assert result.import_mode == "append"
        assert (await store.find_by_id("categories", "c1"))["name"] == "Food"

    @pytest.mark.asyncio
    async def test_backup_copies_spreadsheet(self, service, store, gspread_client):
        result = await service.backup()

        assert result.backup_id in gspread_client.spreadsheets
        assert result.backup_name.startswith("Budget Manager - test@example.com - Backup ")
        copy = gspread_client.open_by_key(result.backup_id)
        assert copy.worksheet("users").values == gspread_client.open_by_key(store.spreadsheet_id).worksheet("users").values
