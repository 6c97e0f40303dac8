"""
Core Utilities.

Shared time helpers. Timestamps written to the spreadsheet are ISO-8601 UTC
strings with millisecond precision and a trailing "Z".
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application are timezone-naive and assumed
    to be UTC.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value: datetime) -> str:
    """Format a naive UTC datetime as e.g. 2024-05-01T10:15:30.000Z."""
    return value.isoformat(timespec="milliseconds") + "Z"


def utc_now_iso() -> str:
    """Current UTC time in the stored timestamp format."""
    return to_iso(utc_now())


def parse_datetime(value: str | datetime) -> datetime:
    """
    Parse a stored date or datetime string into a naive UTC datetime.

    Accepts plain dates ("2024-05-01"), offsets and the "Z" suffix.

    Raises:
        ValueError: If the value is not an ISO-8601 date or datetime
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
