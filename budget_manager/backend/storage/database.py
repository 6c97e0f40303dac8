"""
User Database Provisioning.

Each user owns exactly one spreadsheet named "{title_prefix} - {email}" in
their Google Drive. It is found by title on every sign-in, and created with
the full table layout the first time.
"""

import gspread
from gspread.exceptions import WorksheetNotFound

from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.core.exceptions import ApplicationError
from budget_manager.backend.core.logging import get_logger
from budget_manager.backend.google.client import call_google, open_spreadsheet
from budget_manager.backend.storage.schema import DEFAULT_SHEET_TITLE
from budget_manager.backend.storage.store import SheetsStore

logger = get_logger(__name__)


def spreadsheet_title(email: str) -> str:
    prefix = get_app_config().google.spreadsheet.title_prefix
    return f"{prefix} - {email}"


async def find_user_spreadsheet(client: gspread.Client, email: str) -> str | None:
    """Drive id of the user's spreadsheet, or None if it does not exist yet."""
    files = await call_google(client.list_spreadsheet_files, title=spreadsheet_title(email))
    if not files:
        return None
    return files[0]["id"]


async def create_user_database(client: gspread.Client, email: str, name: str | None = None) -> SheetsStore:
    """Create the spreadsheet, lay out every table and seed the user's rows."""
    spreadsheet = await call_google(client.create, spreadsheet_title(email))
    store = SheetsStore(client, spreadsheet)
    await store.create_schema()

    try:
        default_sheet = await call_google(spreadsheet.worksheet, DEFAULT_SHEET_TITLE)
    except WorksheetNotFound:
        default_sheet = None
    if default_sheet is not None:
        await call_google(spreadsheet.del_worksheet, default_sheet)

    await store.seed_user(email, name)
    logger.info(
        "Created user database",
        extra={"email": email, "spreadsheet_id": spreadsheet.id},
    )
    return store


async def get_or_create_user_database(
    client: gspread.Client,
    email: str,
    name: str | None = None,
) -> SheetsStore:
    """Open the user's existing spreadsheet, or create a new one."""
    spreadsheet_id = await find_user_spreadsheet(client, email)
    if spreadsheet_id is None:
        return await create_user_database(client, email, name)

    logger.info(
        "Found existing spreadsheet",
        extra={"email": email, "spreadsheet_id": spreadsheet_id},
    )
    spreadsheet = await open_spreadsheet(client, spreadsheet_id)
    return SheetsStore(client, spreadsheet)


async def open_user_database(client: gspread.Client, spreadsheet_id: str) -> SheetsStore:
    spreadsheet = await open_spreadsheet(client, spreadsheet_id)
    return SheetsStore(client, spreadsheet)


async def validate_user_database(client: gspread.Client, spreadsheet_id: str) -> bool:
    """True if the spreadsheet can be opened with the user's credentials."""
    try:
        await open_spreadsheet(client, spreadsheet_id)
    except ApplicationError as e:
        logger.warning(
            "User database is not accessible",
            extra={"spreadsheet_id": spreadsheet_id, "error": e.message},
        )
        return False
    return True
