"""
Spreadsheet Store.

Table-style access to the worksheets of one user's spreadsheet. Row 1 of each
worksheet is the header row; every other row is a record keyed by the table's
key column ("id", or "user_id" for settings). Rows with an empty key are
ignored. Cell values are read back as strings.

Usage:
    store = SheetsStore(client, spreadsheet)
    record = await store.insert("categories", {"user_id": email, "name": "Food"})
    rows = await store.find("categories", {"user_id": email})
"""

import asyncio
import json
import uuid
from datetime import datetime
from typing import Any

import gspread
from gspread.exceptions import WorksheetNotFound
from gspread.utils import rowcol_to_a1

from budget_manager.backend.core.concurrency import get_lock
from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.core.exceptions import NotFoundError, StorageError
from budget_manager.backend.core.logging import get_logger
from budget_manager.backend.core.utils import to_iso, utc_now_iso
from budget_manager.backend.google.client import call_google
from budget_manager.backend.storage.schema import (
    DEFAULT_SETTINGS,
    HEADER_FORMAT,
    ON_DEMAND_TABLES,
    REQUIRED_TABLES,
    TABLES,
    key_column,
)

logger = get_logger(__name__)

SPREADSHEET_URL = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}"

IMPORT_MODES = ("append", "overwrite", "insert")


def to_cell(value: Any) -> Any:
    """Convert a Python value into something the Sheets API accepts in RAW mode."""
    if value is None:
        return ""
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _matches(record: dict[str, Any], filters: dict[str, Any]) -> bool:
    return all(str(record.get(column, "")) == str(value) for column, value in filters.items())


class SheetsStore:
    """One user's spreadsheet, seen as a set of tables."""

    def __init__(self, client: gspread.Client, spreadsheet: gspread.Spreadsheet) -> None:
        self.client = client
        self.spreadsheet = spreadsheet
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._sheet_rows = get_app_config().google.spreadsheet.sheet_rows

    @property
    def spreadsheet_id(self) -> str:
        return self.spreadsheet.id

    @property
    def url(self) -> str:
        return SPREADSHEET_URL.format(spreadsheet_id=self.spreadsheet.id)

    # -------------------------------------------------------------------------
    # Worksheet access
    # -------------------------------------------------------------------------

    async def _worksheet(self, table: str) -> gspread.Worksheet:
        if table in self._worksheets:
            return self._worksheets[table]
        try:
            worksheet = await call_google(self.spreadsheet.worksheet, table)
        except WorksheetNotFound:
            if table in ON_DEMAND_TABLES:
                return await self.ensure_table(table)
            raise StorageError(f"Table '{table}' does not exist in the spreadsheet")
        self._worksheets[table] = worksheet
        return worksheet

    async def _write_header(self, worksheet: gspread.Worksheet, headers: list[str]) -> None:
        if worksheet.col_count < len(headers):
            await call_google(worksheet.add_cols, len(headers) - worksheet.col_count)
        await call_google(
            worksheet.update,
            values=[headers],
            range_name="A1",
            value_input_option="RAW",
        )
        await self._format_header(worksheet, len(headers))

    async def _format_header(self, worksheet: gspread.Worksheet, width: int) -> None:
        await call_google(worksheet.format, f"A1:{rowcol_to_a1(1, width)}", HEADER_FORMAT)
        await call_google(worksheet.freeze, rows=1)

    async def get_headers(self, table: str) -> list[str]:
        worksheet = await self._worksheet(table)
        headers = await call_google(worksheet.row_values, 1)
        if not headers:
            raise StorageError(f"Table '{table}' has no header row")
        return headers

    async def _rows(self, table: str) -> tuple[list[str], list[tuple[int, dict[str, Any]]]]:
        """Read a table. Returns headers and (sheet row number, record) pairs."""
        worksheet = await self._worksheet(table)
        values = await call_google(worksheet.get_all_values)
        if not values:
            return [], []

        headers = values[0]
        key = key_column(table)
        rows = []
        for row_number, row in enumerate(values[1:], start=2):
            padded = row + [""] * (len(headers) - len(row))
            record = dict(zip(headers, padded))
            if record.get(key):
                rows.append((row_number, record))
        return headers, rows

    def _row_lock(self, table: str) -> asyncio.Lock:
        """Held from locating a row until writing it. Deletes shift the rows below."""
        return get_lock(f"sheet:{self.spreadsheet_id}:{table}")

    async def _locate(self, table: str, key_value: str) -> tuple[list[str], int, dict[str, Any]]:
        headers, rows = await self._rows(table)
        key = key_column(table)
        for row_number, record in rows:
            if record[key] == str(key_value):
                return headers, row_number, record
        raise NotFoundError(f"Record with {key} {key_value} not found in {table}")

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    async def find(self, table: str, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """All records of a table, optionally filtered by exact string equality."""
        _, rows = await self._rows(table)
        records = [record for _, record in rows]
        if filters:
            records = [record for record in records if _matches(record, filters)]
        return records

    async def find_one(self, table: str, filters: dict[str, Any]) -> dict[str, Any] | None:
        records = await self.find(table, filters)
        return records[0] if records else None

    async def find_by_id(self, table: str, key_value: str) -> dict[str, Any] | None:
        return await self.find_one(table, {key_column(table): key_value})

    async def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        """
        Append a record.

        Id-keyed tables get a uuid4 id when none is given. created_at and
        updated_at are stamped where the table has them.
        """
        headers = await self.get_headers(table)
        record = dict(record)
        key = key_column(table)
        if key == "id" and not record.get("id"):
            record["id"] = str(uuid.uuid4())

        now = utc_now_iso()
        for column in ("created_at", "updated_at"):
            if column in headers and not record.get(column):
                record[column] = now

        row = [to_cell(record.get(header)) for header in headers]
        worksheet = await self._worksheet(table)
        await call_google(worksheet.append_row, row, value_input_option="RAW")

        logger.info("Record inserted", extra={"table": table, "key": record.get(key)})
        return dict(zip(headers, row))

    async def update(self, table: str, key_value: str, changes: dict[str, Any]) -> dict[str, Any]:
        """
        Merge changes into a record and rewrite its row.

        Raises:
            NotFoundError: If no record has this key
        """
        async with self._row_lock(table):
            headers, row_number, existing = await self._locate(table, key_value)
            merged = {**existing, **changes}
            if "updated_at" in headers:
                merged["updated_at"] = utc_now_iso()

            row = [to_cell(merged.get(header)) for header in headers]
            worksheet = await self._worksheet(table)
            await call_google(
                worksheet.update,
                values=[row],
                range_name=f"A{row_number}",
                value_input_option="RAW",
            )

        logger.info("Record updated", extra={"table": table, "key": key_value})
        return dict(zip(headers, row))

    async def delete(self, table: str, key_value: str) -> None:
        """
        Delete the sheet row holding a record.

        Raises:
            NotFoundError: If no record has this key
        """
        async with self._row_lock(table):
            _, row_number, _ = await self._locate(table, key_value)
            worksheet = await self._worksheet(table)
            await call_google(worksheet.delete_rows, row_number)
        logger.info("Record deleted", extra={"table": table, "key": key_value})

    # -------------------------------------------------------------------------
    # Schema management
    # -------------------------------------------------------------------------

    async def ensure_table(self, table: str) -> gspread.Worksheet:
        """Return the table's worksheet, creating it with its header row if missing."""
        try:
            worksheet = await call_google(self.spreadsheet.worksheet, table)
        except WorksheetNotFound:
            headers = TABLES[table]
            worksheet = await call_google(
                self.spreadsheet.add_worksheet,
                title=table,
                rows=self._sheet_rows,
                cols=len(headers),
            )
            await self._write_header(worksheet, headers)
            logger.info("Table created", extra={"table": table})
        self._worksheets[table] = worksheet
        return worksheet

    async def ensure_categories_schema(self) -> None:
        """Add the emoji column to category sheets created before it existed."""
        try:
            worksheet = await call_google(self.spreadsheet.worksheet, "categories")
        except WorksheetNotFound:
            await self.ensure_table("categories")
            return

        headers = await call_google(worksheet.row_values, 1)
        if not headers:
            await self._write_header(worksheet, TABLES["categories"])
            return
        if "emoji" in headers:
            return

        await self._write_header(worksheet, headers + ["emoji"])
        self._worksheets["categories"] = worksheet
        logger.info("Added missing category columns", extra={"columns": ["emoji"]})

    async def validate_schema(self) -> dict[str, Any]:
        """Report missing tables and header problems without changing anything."""
        worksheets = await call_google(self.spreadsheet.worksheets)
        titles = [worksheet.title for worksheet in worksheets]

        missing_tables = [table for table in REQUIRED_TABLES if table not in titles]
        existing_tables = [table for table in TABLES if table in titles]
        issues = []
        if missing_tables:
            issues.append(f"Missing tables: {', '.join(missing_tables)}")

        for worksheet in worksheets:
            if worksheet.title not in TABLES:
                continue
            headers = await call_google(worksheet.row_values, 1)
            if not headers:
                issues.append(f"Table '{worksheet.title}' has no headers")
                continue
            absent = [column for column in TABLES[worksheet.title] if column not in headers]
            if absent:
                issues.append(f"Table '{worksheet.title}' is missing columns: {', '.join(absent)}")

        return {
            "is_valid": not issues,
            "missing_tables": missing_tables,
            "existing_tables": existing_tables,
            "issues": issues,
        }

    async def create_schema(self) -> list[str]:
        """
        Create missing tables and repair header rows.

        Existing columns keep their position; missing ones are appended.
        Returns the names of the tables that were created.
        """
        worksheets = await call_google(self.spreadsheet.worksheets)
        by_title = {worksheet.title: worksheet for worksheet in worksheets}
        created = []

        for table, expected in TABLES.items():
            worksheet = by_title.get(table)
            if worksheet is None:
                worksheet = await call_google(
                    self.spreadsheet.add_worksheet,
                    title=table,
                    rows=self._sheet_rows,
                    cols=len(expected),
                )
                await self._write_header(worksheet, expected)
                created.append(table)
            else:
                current = await call_google(worksheet.row_values, 1)
                headers = current + [column for column in expected if column not in current]
                if headers != current:
                    await self._write_header(worksheet, headers)
                else:
                    await self._format_header(worksheet, len(headers))
            self._worksheets[table] = worksheet

        logger.info("Database schema created/updated", extra={"created_tables": created})
        return created

    async def seed_user(self, email: str, name: str | None = None) -> dict[str, Any]:
        """Insert the user row and default settings unless they already exist."""
        user = await self.find_one("users", {"email": email})
        if user is None:
            user = await self.insert(
                "users",
                {
                    "name": name or email.split("@")[0],
                    "email": email,
                    "password_hash": "",
                    "telegram_username": "",
                    "chatId": "",
                },
            )
        if await self.find_by_id("settings", email) is None:
            await self.insert("settings", {"user_id": email, **DEFAULT_SETTINGS})
        return user

    async def recreate_database(self, email: str, name: str | None = None) -> list[str]:
        """Repair the schema, then restore the user row and settings if they were lost."""
        created = await self.create_schema()
        await self.seed_user(email, name)
        return created

    # -------------------------------------------------------------------------
    # Spreadsheet-level operations
    # -------------------------------------------------------------------------

    async def sheet_info(self) -> dict[str, Any]:
        worksheets = await call_google(self.spreadsheet.worksheets)
        return {
            "spreadsheet_id": self.spreadsheet.id,
            "title": self.spreadsheet.title,
            "url": self.url,
            "sheets": [
                {
                    "title": worksheet.title,
                    "sheet_id": worksheet.id,
                    "row_count": worksheet.row_count,
                }
                for worksheet in worksheets
            ],
        }

    async def _rewrite_rows(self, worksheet: gspread.Worksheet, cells: list[list[Any]], mode: str) -> None:
        if mode == "insert":
            await call_google(worksheet.insert_rows, cells, row=2, value_input_option="RAW")
            return

        headers = await call_google(worksheet.row_values, 1)
        await call_google(worksheet.clear)
        await call_google(
            worksheet.update,
            values=[headers] + cells if headers else cells,
            range_name="A1",
            value_input_option="RAW",
        )

    async def import_rows(self, sheet_name: str, rows: list[list[Any]], mode: str = "append") -> int:
        """
        Write raw rows into a worksheet.

        append adds them at the end, insert puts them right below the header,
        and overwrite keeps the header and replaces everything under it.
        """
        if mode not in IMPORT_MODES:
            raise ValueError(f"Unknown import mode: {mode}")

        try:
            worksheet = await call_google(self.spreadsheet.worksheet, sheet_name)
        except WorksheetNotFound as e:
            raise NotFoundError(f"Sheet '{sheet_name}' not found") from e

        cells = [[to_cell(value) for value in row] for row in rows]
        if not cells:
            return 0

        if mode == "append":
            await call_google(worksheet.append_rows, cells, value_input_option="RAW")
        else:
            async with self._row_lock(sheet_name):
                await self._rewrite_rows(worksheet, cells, mode)

        self._worksheets.pop(sheet_name, None)
        logger.info(
            "Rows imported",
            extra={"sheet_name": sheet_name, "mode": mode, "rows": len(cells)},
        )
        return len(cells)
