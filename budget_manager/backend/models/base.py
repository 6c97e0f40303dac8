"""
Base Row Model.

Rows read from the spreadsheet are plain dicts of strings. Each table has a
pydantic model that gives those rows types.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class SheetRecord(BaseModel):
    """
    Base for models built from spreadsheet rows.

    Every cell comes back from Sheets as a string, and an empty cell is "".
    Empty cells are dropped before validation so field defaults apply, and
    pydantic coerces the rest ("12.5" → 12.5, "TRUE" → True).
    """

    model_config = ConfigDict(from_attributes=True, extra="ignore", populate_by_name=True)

    created_at: str | None = None
    updated_at: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_empty_cells(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value != ""}
        return data
