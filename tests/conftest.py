"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Spreadsheet Fakes:
    The user's database is a Google Sheets spreadsheet reached through
    gspread. Tests swap gspread for an in-memory fake implementing the
    handful of Client, Spreadsheet and Worksheet calls the store makes.
    Cells are kept as strings the way Sheets returns them, so every read
    goes through the same string-to-model coercion as production.
"""

import re
from collections.abc import Generator
from typing import Any

import pytest
from gspread.exceptions import SpreadsheetNotFound, WorksheetNotFound

from budget_manager.backend.core import concurrency
from budget_manager.backend.core.config import get_settings
from budget_manager.backend.google import client as google_client
from budget_manager.backend.google.oauth import GoogleCredentials
from budget_manager.backend.schemas.auth import UserSession
from budget_manager.backend.storage.database import create_user_database
from budget_manager.backend.storage.store import SheetsStore

TEST_JWT_SECRET = "test-secret-key-that-is-long-enough-for-testing-purposes"
TEST_EMAIL = "test@example.com"
TEST_NAME = "Test User"


# =============================================================================
# Spreadsheet Fakes
# =============================================================================


def sheet_value(value: Any) -> str:
    """Render a RAW-written value the way Sheets reads it back."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _row_of(range_name: str) -> int:
    match = re.match(r"^[A-Z]+(\d+)", range_name)
    if not match:
        raise ValueError(f"Unsupported range: {range_name}")
    return int(match.group(1))


class FakeWorksheet:
    def __init__(self, title: str, rows: int = 1000, cols: int = 26, sheet_id: int = 0) -> None:
        self.title = title
        self.id = sheet_id
        self.row_count = rows
        self.col_count = cols
        self.values: list[list[str]] = []
        self.formats: list[tuple[str, dict]] = []
        self.frozen_rows = 0

    def row_values(self, row: int) -> list[str]:
        if len(self.values) < row:
            return []
        values = list(self.values[row - 1])
        while values and values[-1] == "":
            values.pop()
        return values

    def get_all_values(self) -> list[list[str]]:
        return [list(row) for row in self.values]

    def append_row(self, values: list[Any], value_input_option: str | None = None) -> None:
        self.values.append([sheet_value(v) for v in values])

    def append_rows(self, values: list[list[Any]], value_input_option: str | None = None) -> None:
        for row in values:
            self.append_row(row)

    def insert_rows(self, values: list[list[Any]], row: int = 1, value_input_option: str | None = None) -> None:
        self.values[row - 1:row - 1] = [[sheet_value(v) for v in r] for r in values]

    def update(self, values: list[list[Any]], range_name: str, value_input_option: str | None = None) -> None:
        start = _row_of(range_name) - 1
        for offset, row in enumerate(values):
            while len(self.values) <= start + offset:
                self.values.append([])
            self.values[start + offset] = [sheet_value(v) for v in row]

    def delete_rows(self, start_index: int, end_index: int | None = None) -> None:
        end_index = end_index or start_index
        del self.values[start_index - 1:end_index]

    def format(self, ranges: str, cell_format: dict) -> None:
        self.formats.append((ranges, cell_format))

    def freeze(self, rows: int | None = None, cols: int | None = None) -> None:
        self.frozen_rows = rows or 0

    def add_cols(self, cols: int) -> None:
        self.col_count += cols

    def clear(self) -> None:
        self.values = []

    def records(self) -> list[dict[str, str]]:
        """Test helper: data rows as header-keyed dicts."""
        if not self.values:
            return []
        headers = self.values[0]
        return [dict(zip(headers, row + [""] * (len(headers) - len(row)))) for row in self.values[1:]]


class FakeSpreadsheet:
    def __init__(self, spreadsheet_id: str, title: str, with_default_sheet: bool = True) -> None:
        self.id = spreadsheet_id
        self.title = title
        self._worksheets: dict[str, FakeWorksheet] = {}
        self.permissions: list[dict[str, Any]] = []
        if with_default_sheet:
            self._worksheets["Sheet1"] = FakeWorksheet("Sheet1")

    def worksheet(self, title: str) -> FakeWorksheet:
        try:
            return self._worksheets[title]
        except KeyError:
            raise WorksheetNotFound(title) from None

    def worksheets(self) -> list[FakeWorksheet]:
        return list(self._worksheets.values())

    def add_worksheet(self, title: str, rows: int, cols: int, index: int | None = None) -> FakeWorksheet:
        worksheet = FakeWorksheet(title, rows, cols, sheet_id=len(self._worksheets) + 1)
        self._worksheets[title] = worksheet
        return worksheet

    def del_worksheet(self, worksheet: FakeWorksheet) -> None:
        del self._worksheets[worksheet.title]

    def share(self, email_address: str, perm_type: str, role: str, notify: bool = True, **kwargs: Any) -> None:
        self.permissions.append({"email": email_address, "type": perm_type, "role": role, "notify": notify})


class FakeHTTPClient:
    """Records raw Drive requests, such as ownership transfers."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []

    def request(self, method: str, endpoint: str, params: dict | None = None, json: Any = None, **kwargs: Any) -> None:
        self.requests.append({"method": method, "endpoint": endpoint, "params": params, "json": json})


class FakeGspreadClient:
    def __init__(self) -> None:
        self.spreadsheets: dict[str, FakeSpreadsheet] = {}
        self.http_client = FakeHTTPClient()

    def create(self, title: str, folder_id: str | None = None) -> FakeSpreadsheet:
        spreadsheet = FakeSpreadsheet(f"spreadsheet-{len(self.spreadsheets) + 1}", title)
        self.spreadsheets[spreadsheet.id] = spreadsheet
        return spreadsheet

    def open_by_key(self, key: str) -> FakeSpreadsheet:
        try:
            return self.spreadsheets[key]
        except KeyError:
            raise SpreadsheetNotFound(key) from None

    def list_spreadsheet_files(self, title: str | None = None, folder_id: str | None = None) -> list[dict[str, str]]:
        return [
            {"id": spreadsheet.id, "name": spreadsheet.title}
            for spreadsheet in self.spreadsheets.values()
            if title is None or spreadsheet.title == title
        ]

    def copy(self, file_id: str, title: str | None = None, copy_permissions: bool = False, **kwargs: Any) -> FakeSpreadsheet:
        source = self.open_by_key(file_id)
        duplicate = FakeSpreadsheet(f"{file_id}-copy-{len(self.spreadsheets)}", title or source.title, with_default_sheet=False)
        for worksheet in source.worksheets():
            copied = duplicate.add_worksheet(worksheet.title, worksheet.row_count, worksheet.col_count)
            copied.values = [list(row) for row in worksheet.values]
        self.spreadsheets[duplicate.id] = duplicate
        return duplicate


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _test_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Test secrets and fresh process-wide state for every test.

    Environment variables win over config/.env, so a developer's local
    secrets never leak into a test run.
    """
    monkeypatch.setenv("JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "test-client-secret")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "")
    monkeypatch.setenv("TELEGRAM_WEBHOOK_SECRET", "")
    monkeypatch.setenv("NGROK_AUTHTOKEN", "")
    get_settings.cache_clear()
    monkeypatch.setattr(google_client, "_breaker", None)
    concurrency._semaphores.clear()
    concurrency._locks.clear()
    yield
    get_settings.cache_clear()
    concurrency._semaphores.clear()
    concurrency._locks.clear()


@pytest.fixture
def bot_token(monkeypatch: pytest.MonkeyPatch) -> str:
    """Configure a Telegram bot token for the test."""
    token = "123456:TEST-bot-token"
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", token)
    get_settings.cache_clear()
    return token


# =============================================================================
# Spreadsheet Fixtures
# =============================================================================


@pytest.fixture
def gspread_client() -> FakeGspreadClient:
    return FakeGspreadClient()


@pytest.fixture
async def store(gspread_client: FakeGspreadClient) -> SheetsStore:
    """A freshly provisioned user database: every table, the user row and default settings."""
    return await create_user_database(gspread_client, TEST_EMAIL, TEST_NAME)


@pytest.fixture
def google_credentials() -> GoogleCredentials:
    return GoogleCredentials(
        access_token="ya29.test-access-token",
        refresh_token="1//test-refresh-token",
        expiry_date=1893456000000,
        scope="openid email profile",
    )


@pytest.fixture
def user_session(store: SheetsStore, google_credentials: GoogleCredentials) -> UserSession:
    return UserSession(
        email=TEST_EMAIL,
        name=TEST_NAME,
        spreadsheet_id=store.spreadsheet_id,
        google_credentials=google_credentials,
    )


@pytest.fixture
def anyio_backend() -> str:
    """Specify the async backend for anyio."""
    return "asyncio"
