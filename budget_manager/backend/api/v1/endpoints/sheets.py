"""
Spreadsheet Administration API Endpoints.

Schema setup and validation, sharing, export, import and backup.
"""

from fastapi import APIRouter, Query

from budget_manager.backend.core.dependencies import CurrentUser, Store
from budget_manager.backend.schemas.base import ApiResponse
from budget_manager.backend.schemas.sheets import (
    BackupResult,
    ExportFormat,
    ExportResult,
    ImportRequest,
    ImportResult,
    SchemaSetupResult,
    SchemaValidation,
    ShareRequest,
    ShareResult,
    SpreadsheetCreate,
    SpreadsheetCreated,
    SpreadsheetInfo,
)
from budget_manager.backend.services.spreadsheet import SpreadsheetService

router = APIRouter()


@router.post(
    "/create",
    response_model=ApiResponse[SpreadsheetCreated],
    status_code=201,
    summary="Find or create the user's spreadsheet",
)
async def create_spreadsheet(
    user: CurrentUser,
    store: Store,
    data: SpreadsheetCreate | None = None,
) -> ApiResponse[SpreadsheetCreated]:
    created = await SpreadsheetService(store).create_spreadsheet(
        user.email,
        user.name,
        data or SpreadsheetCreate(),
    )
    return ApiResponse(data=created, message="Spreadsheet ready")


@router.post("/setup-schema", response_model=ApiResponse[SchemaSetupResult], summary="Create missing tables")
async def setup_schema(user: CurrentUser, store: Store) -> ApiResponse[SchemaSetupResult]:
    return ApiResponse(data=await SpreadsheetService(store).setup_schema(), message="Schema set up successfully")


@router.post("/schema/init", response_model=ApiResponse[SchemaSetupResult], summary="Create missing tables")
async def init_schema(user: CurrentUser, store: Store) -> ApiResponse[SchemaSetupResult]:
    return ApiResponse(data=await SpreadsheetService(store).setup_schema(), message="Schema set up successfully")


@router.get("/validate-schema", response_model=ApiResponse[SchemaValidation], summary="Check tables and headers")
async def validate_schema(user: CurrentUser, store: Store) -> ApiResponse[SchemaValidation]:
    return ApiResponse(data=await SpreadsheetService(store).validate_schema())


@router.get("/info", response_model=ApiResponse[SpreadsheetInfo], summary="Spreadsheet title, URL and sheets")
async def spreadsheet_info(user: CurrentUser, store: Store) -> ApiResponse[SpreadsheetInfo]:
    return ApiResponse(data=await SpreadsheetService(store).get_info())


@router.post("/share", response_model=ApiResponse[ShareResult], summary="Share the spreadsheet")
async def share_spreadsheet(data: ShareRequest, user: CurrentUser, store: Store) -> ApiResponse[ShareResult]:
    result = await SpreadsheetService(store).share(data.email, data.role)
    return ApiResponse(data=result, message="Spreadsheet shared successfully")


@router.get("/export", response_model=ApiResponse[ExportResult], summary="Export the spreadsheet")
async def export_spreadsheet(
    user: CurrentUser,
    store: Store,
    export_format: ExportFormat = Query(default="json", alias="format"),
    sheets: str | None = Query(default=None, description="Comma-separated table names"),
) -> ApiResponse[ExportResult]:
    names = [name.strip() for name in sheets.split(",") if name.strip()] if sheets else None
    return ApiResponse(data=await SpreadsheetService(store).export(export_format, names))


@router.post("/import", response_model=ApiResponse[ImportResult], summary="Import rows into a sheet")
async def import_rows(data: ImportRequest, user: CurrentUser, store: Store) -> ApiResponse[ImportResult]:
    result = await SpreadsheetService(store).import_data(data)
    return ApiResponse(data=result, message=f"Imported {result.rows_imported} rows")


@router.post("/backup", response_model=ApiResponse[BackupResult], status_code=201, summary="Copy the spreadsheet")
async def backup_spreadsheet(user: CurrentUser, store: Store) -> ApiResponse[BackupResult]:
    return ApiResponse(data=await SpreadsheetService(store).backup(), message="Backup created successfully")
