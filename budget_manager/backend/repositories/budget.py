"""Budget, budget item and income repositories."""

from budget_manager.backend.models.budget import Budget, BudgetIncome, BudgetItem
from budget_manager.backend.repositories.base import SheetRepository


class BudgetRepository(SheetRepository[Budget]):
    table = "budgets"
    model = Budget
    label = "Budget"

    async def find_for_month(self, user_id: str, year: int, month: int) -> Budget | None:
        return await self.find_first(user_id=user_id, year=year, month=month)


class BudgetItemRepository(SheetRepository[BudgetItem]):
    table = "budget_items"
    model = BudgetItem
    label = "Budget item"

    async def find_for_budgets(self, budget_ids: set[str]) -> list[BudgetItem]:
        items = await self.find()
        return [item for item in items if item.budget_id in budget_ids]


class BudgetIncomeRepository(SheetRepository[BudgetIncome]):
    table = "budget_incomes"
    model = BudgetIncome
    label = "Income"

    async def sum_for_month(self, user_id: str, year: int, month: int) -> float:
        incomes = await self.find(user_id=user_id, year=year, month=month)
        return sum(income.amount for income in incomes)
