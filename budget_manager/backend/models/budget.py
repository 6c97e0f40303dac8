"""Budget, budget item and income rows."""

from budget_manager.backend.models.base import SheetRecord


class Budget(SheetRecord):
    id: str
    user_id: str
    year: int
    month: int
    income: float = 0.0


class BudgetItem(SheetRecord):
    id: str
    budget_id: str
    category_id: str
    category_name: str = ""
    amount: float = 0.0
    spent: float = 0.0


class BudgetIncome(SheetRecord):
    id: str
    user_id: str
    year: int
    month: int
    amount: float = 0.0
    source: str | None = None
