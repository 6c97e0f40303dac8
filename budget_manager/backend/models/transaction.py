"""Transaction rows. Positive amounts are income, negative amounts are expenses."""

from budget_manager.backend.models.base import SheetRecord


class Transaction(SheetRecord):
    id: str
    user_id: str
    name: str
    amount: float
    category_id: str = ""
    category_name: str = ""
    date: str
    time: str | None = None
    notes: str | None = None
    receipt_url: str | None = None

    @property
    def is_income(self) -> bool:
        return self.amount > 0
