"""
Spreadsheet Administration Service.

Schema setup and validation, sharing, export, import and backup of the
signed-in user's spreadsheet.
"""

from datetime import timedelta

from gspread.urls import DRIVE_FILES_API_V3_URL

from budget_manager.backend.core.exceptions import ValidationError
from budget_manager.backend.core.utils import to_iso, utc_now
from budget_manager.backend.google.client import call_google
from budget_manager.backend.schemas.sheets import (
    BackupResult,
    ExportFormat,
    ExportResult,
    ImportRequest,
    ImportResult,
    SchemaSetupResult,
    SchemaValidation,
    ShareResult,
    SpreadsheetCreate,
    SpreadsheetCreated,
    SpreadsheetInfo,
)
from budget_manager.backend.services.base import BaseService
from budget_manager.backend.storage.database import get_or_create_user_database
from budget_manager.backend.storage.schema import TABLES
from budget_manager.backend.storage.store import SPREADSHEET_URL

EXPORT_LINK_LIFETIME = timedelta(hours=1)

# Drive permission roles for the roles the API accepts. "owner" is a transfer.
DRIVE_ROLES = {
    "viewer": "reader",
    "editor": "writer",
}


class SpreadsheetService(BaseService):
    async def create_spreadsheet(self, email: str, name: str, data: SpreadsheetCreate) -> SpreadsheetCreated:
        """Find the user's spreadsheet, creating it with the full schema if needed."""
        store = await get_or_create_user_database(self.store.client, email, name)
        self._log_operation("Spreadsheet ensured", spreadsheet_id=store.spreadsheet_id, template=data.template)
        return SpreadsheetCreated(
            spreadsheet_id=store.spreadsheet_id,
            spreadsheet_url=store.url,
            name=store.spreadsheet.title,
            template=data.template,
        )

    async def setup_schema(self) -> SchemaSetupResult:
        created = await self.store.create_schema()
        return SchemaSetupResult(spreadsheet_id=self.store.spreadsheet_id, created_tables=created)

    async def validate_schema(self) -> SchemaValidation:
        return SchemaValidation(**await self.store.validate_schema())

    async def get_info(self) -> SpreadsheetInfo:
        return SpreadsheetInfo(**await self.store.sheet_info())

    def _transfer_ownership(self, email: str) -> None:
        # Drive only accepts role "owner" with transferOwnership; Spreadsheet.share never sends it
        self.store.client.http_client.request(
            "post",
            f"{DRIVE_FILES_API_V3_URL}/{self.store.spreadsheet_id}/permissions",
            params={"supportsAllDrives": "true", "transferOwnership": "true", "sendNotificationEmail": "true"},
            json={"type": "user", "role": "owner", "emailAddress": email},
        )

    async def share(self, email: str, role: str) -> ShareResult:
        if role == "owner":
            await call_google(self._transfer_ownership, email)
        else:
            await call_google(
                self.store.spreadsheet.share,
                email,
                perm_type="user",
                role=DRIVE_ROLES[role],
                notify=True,
            )
        self._log_operation("Spreadsheet shared", email=email, role=role)
        return ShareResult(email=email, role=role, spreadsheet_id=self.store.spreadsheet_id)

    async def export(self, export_format: ExportFormat, sheets: list[str] | None = None) -> ExportResult:
        """
        Describe an export. JSON exports carry the table records inline.

        Raises:
            ValidationError: If an unknown table is requested
        """
        unknown = [sheet for sheet in sheets or [] if sheet not in TABLES]
        if unknown:
            raise ValidationError(f"Unknown sheets: {', '.join(unknown)}")

        data = None
        if export_format == "json":
            tables = sheets or [
                worksheet.title
                for worksheet in await call_google(self.store.spreadsheet.worksheets)
                if worksheet.title in TABLES
            ]
            data = {table: await self.store.find(table) for table in tables}

        url = SPREADSHEET_URL.format(spreadsheet_id=self.store.spreadsheet_id)
        self._log_operation("Spreadsheet exported", export_format=export_format, sheets=sheets or "all")
        return ExportResult(
            export_format=export_format,
            sheets_exported=sheets or "all",
            download_url=f"{url}/export?format={export_format}",
            expires_at=to_iso(utc_now() + EXPORT_LINK_LIFETIME),
            data=data,
        )

    async def import_data(self, data: ImportRequest) -> ImportResult:
        rows = await self.store.import_rows(data.sheet_name, data.data, data.mode)
        return ImportResult(rows_imported=rows, sheet_name=data.sheet_name, import_mode=data.mode)

    async def backup(self) -> BackupResult:
        """Copy the whole spreadsheet to a new Drive file."""
        created_at = to_iso(utc_now())
        backup_name = f"{self.store.spreadsheet.title} - Backup {created_at}"

        copy = await call_google(self.store.client.copy, self.store.spreadsheet_id, title=backup_name)
        self._log_operation("Spreadsheet backed up", backup_id=copy.id)
        return BackupResult(
            backup_id=copy.id,
            backup_name=backup_name,
            backup_url=SPREADSHEET_URL.format(spreadsheet_id=copy.id),
            created_at=created_at,
        )
