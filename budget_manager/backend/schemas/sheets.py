"""
Spreadsheet Administration Schemas.

Bodies and results for /api/v1/sheets.
"""

from typing import Any, Literal

from pydantic import BaseModel, EmailStr, Field

ExportFormat = Literal["json", "csv", "xlsx", "pdf"]


class SpreadsheetCreate(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    template: Literal["default", "basic", "advanced"] = "default"


class SpreadsheetCreated(BaseModel):
    spreadsheet_id: str
    spreadsheet_url: str
    name: str
    template: str


class SchemaValidation(BaseModel):
    is_valid: bool
    missing_tables: list[str]
    existing_tables: list[str]
    issues: list[str]


class SchemaSetupResult(BaseModel):
    spreadsheet_id: str
    created_tables: list[str]


class SheetSummary(BaseModel):
    title: str
    sheet_id: int
    row_count: int


class SpreadsheetInfo(BaseModel):
    spreadsheet_id: str
    title: str
    url: str
    sheets: list[SheetSummary]


class ShareRequest(BaseModel):
    email: EmailStr
    role: Literal["viewer", "editor", "owner"] = "viewer"


class ShareResult(BaseModel):
    email: str
    role: str
    spreadsheet_id: str


class ExportResult(BaseModel):
    export_format: ExportFormat
    sheets_exported: list[str] | str
    download_url: str
    expires_at: str
    data: dict[str, list[dict[str, Any]]] | None = None


class ImportRequest(BaseModel):
    """Rows of raw cell values written below the header of sheet_name."""

    data: list[list[Any]] = Field(..., description="Rows of cell values")
    sheet_name: str = Field(..., min_length=1)
    mode: Literal["append", "overwrite", "insert"] = "append"


class ImportResult(BaseModel):
    rows_imported: int
    sheet_name: str
    import_mode: str


class BackupResult(BaseModel):
    backup_id: str
    backup_name: str
    backup_url: str
    created_at: str
