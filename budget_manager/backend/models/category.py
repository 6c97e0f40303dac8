"""Category rows."""

from budget_manager.backend.models.base import SheetRecord

DEFAULT_CATEGORY_COLOR = "#8395A7"


class Category(SheetRecord):
    id: str
    user_id: str
    name: str
    emoji: str | None = None
    color: str = DEFAULT_CATEGORY_COLOR
