"""
Budget Service.

Monthly budgets, their per-category items and the month's income entries.
A budget's income mirrors the sum of the month's income entries: every income
change reconciles the matching budget when one exists.
"""

from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.core.exceptions import NotFoundError, ValidationError
from budget_manager.backend.models.budget import Budget, BudgetIncome, BudgetItem
from budget_manager.backend.repositories.budget import (
    BudgetIncomeRepository,
    BudgetItemRepository,
    BudgetRepository,
)
from budget_manager.backend.repositories.category import CategoryRepository
from budget_manager.backend.schemas.budget import (
    BudgetCreate,
    BudgetItemCreate,
    BudgetItemUpdate,
    BudgetUpdate,
    IncomeCreate,
    IncomeSum,
    IncomeUpdate,
)
from budget_manager.backend.services.base import BaseService
from budget_manager.backend.storage.store import SheetsStore


def _newest_first(budgets: list[Budget]) -> list[Budget]:
    return sorted(budgets, key=lambda budget: (budget.year, budget.month), reverse=True)


class BudgetService(BaseService):
    def __init__(self, store: SheetsStore) -> None:
        super().__init__(store)
        self.budgets = BudgetRepository(store)
        self.items = BudgetItemRepository(store)
        self.incomes = BudgetIncomeRepository(store)
        self.categories = CategoryRepository(store)

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def list_budgets(self, user_id: str, year: int | None = None, month: int | None = None) -> list[Budget]:
        filters = {"user_id": user_id}
        if year is not None:
            filters["year"] = year
        if month is not None:
            filters["month"] = month
        return _newest_first(await self.budgets.find(**filters))

    async def get_budget(self, user_id: str, budget_id: str) -> Budget:
        return await self.budgets.get_owned(budget_id, user_id)

    async def create_budget(self, user_id: str, data: BudgetCreate) -> Budget:
        """
        Raises:
            ValidationError: If the user already has a budget for that month
        """
        if await self.budgets.find_for_month(user_id, data.year, data.month) is not None:
            raise ValidationError(f"Budget for {data.year}/{data.month} already exists")

        budget = await self.budgets.create(user_id=user_id, **data.model_dump())
        self._log_operation("Budget created", budget_id=budget.id, year=budget.year, month=budget.month)
        return budget

    async def update_budget(self, user_id: str, budget_id: str, data: BudgetUpdate) -> Budget:
        budget = await self.budgets.get_owned(budget_id, user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        year = changes.get("year", budget.year)
        month = changes.get("month", budget.month)
        if (year, month) != (budget.year, budget.month):
            existing = await self.budgets.find_for_month(user_id, year, month)
            if existing is not None and existing.id != budget_id:
                raise ValidationError(f"Budget for {year}/{month} already exists")

        if not changes:
            return budget

        updated = await self.budgets.update(budget_id, **changes)
        self._log_operation("Budget updated", budget_id=budget_id, fields=sorted(changes))

        # a budget moved onto a month with income entries takes that month's sum
        moved = (year, month) != (budget.year, budget.month)
        if moved and await self.incomes.find(user_id=user_id, year=year, month=month):
            return await self.reconcile_income(user_id, year, month) or updated
        return updated

    async def delete_budget(self, user_id: str, budget_id: str) -> None:
        """Delete a budget together with its items."""
        await self.budgets.get_owned(budget_id, user_id)

        items = await self.items.find(budget_id=budget_id)
        for item in items:
            await self.items.delete(item.id)
        await self.budgets.delete(budget_id)

        self._log_operation("Budget deleted", budget_id=budget_id, items_deleted=len(items))

    # -------------------------------------------------------------------------
    # Budget items
    # -------------------------------------------------------------------------

    async def list_items(self, user_id: str, budget_id: str | None = None) -> list[BudgetItem]:
        """
        Items of one owned budget, or of all the user's budgets.

        Raises:
            NotFoundError: If budget_id is given and not owned by the user
        """
        if budget_id is not None:
            await self.budgets.get_owned(budget_id, user_id)
            items = await self.items.find(budget_id=budget_id)
        else:
            budgets = await self.budgets.find(user_id=user_id)
            items = await self.items.find_for_budgets({budget.id for budget in budgets})
        return sorted(items, key=lambda item: item.category_name.lower())

    async def _owned_item(self, user_id: str, item_id: str) -> BudgetItem:
        item = await self.items.get_by_id(item_id)
        budget = await self.budgets.get_by_id_or_none(item.budget_id)
        if budget is None or budget.user_id != user_id:
            raise NotFoundError("Budget item not found")
        return item

    async def _check_category(self, user_id: str, category_id: str) -> None:
        category = await self.categories.get_by_id_or_none(category_id)
        if category is None or category.user_id != user_id:
            raise ValidationError("Invalid category ID or category does not belong to user")

    async def _check_unique_item(self, budget_id: str, category_id: str, exclude_id: str | None = None) -> None:
        for item in await self.items.find(budget_id=budget_id, category_id=category_id):
            if item.id != exclude_id:
                raise ValidationError("Budget item for this category already exists in this budget")

    async def create_item(self, user_id: str, data: BudgetItemCreate) -> BudgetItem:
        """
        Raises:
            ValidationError: Unknown or foreign budget/category, or a duplicate category
        """
        budget = await self.budgets.get_by_id_or_none(data.budget_id)
        if budget is None or budget.user_id != user_id:
            raise ValidationError("Invalid budget ID or budget does not belong to user")

        await self._check_category(user_id, data.category_id)
        await self._check_unique_item(data.budget_id, data.category_id)

        item = await self.items.create(**data.model_dump(), spent=0)
        self._log_operation("Budget item created", item_id=item.id, budget_id=data.budget_id)
        return item

    async def update_item(self, user_id: str, item_id: str, data: BudgetItemUpdate) -> BudgetItem:
        item = await self._owned_item(user_id, item_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        category_id = changes.get("category_id")
        if category_id and category_id != item.category_id:
            await self._check_category(user_id, category_id)
            await self._check_unique_item(item.budget_id, category_id, exclude_id=item_id)

        if not changes:
            return item

        updated = await self.items.update(item_id, **changes)
        self._log_operation("Budget item updated", item_id=item_id, fields=sorted(changes))
        return updated

    async def delete_item(self, user_id: str, item_id: str) -> None:
        await self._owned_item(user_id, item_id)
        await self.items.delete(item_id)
        self._log_operation("Budget item deleted", item_id=item_id)

    # -------------------------------------------------------------------------
    # Incomes
    # -------------------------------------------------------------------------

    async def list_incomes(self, user_id: str, year: int | None = None, month: int | None = None) -> list[BudgetIncome]:
        filters = {"user_id": user_id}
        if year is not None:
            filters["year"] = year
        if month is not None:
            filters["month"] = month
        incomes = await self.incomes.find(**filters)
        return sorted(incomes, key=lambda income: income.created_at or "", reverse=True)

    async def income_sum(self, user_id: str, year: int, month: int) -> IncomeSum:
        total = await self.incomes.sum_for_month(user_id, year, month)
        return IncomeSum(year=year, month=month, total=total)

    async def reconcile_income(self, user_id: str, year: int, month: int) -> Budget | None:
        """Set the month's budget income to the month's income sum. None if there is no budget."""
        if not get_app_config().features.income_reconciliation_enabled:
            return None

        budget = await self.budgets.find_for_month(user_id, year, month)
        if budget is None:
            return None

        total = await self.incomes.sum_for_month(user_id, year, month)
        if budget.income == total:
            return budget

        self._log_debug("Reconciling budget income", budget_id=budget.id, income=total)
        return await self.budgets.update(budget.id, income=total)

    async def create_income(self, user_id: str, data: IncomeCreate) -> BudgetIncome:
        income = await self.incomes.create(user_id=user_id, **data.model_dump())
        self._log_operation("Income created", income_id=income.id, year=income.year, month=income.month)
        await self.reconcile_income(user_id, income.year, income.month)
        return income

    async def update_income(self, user_id: str, income_id: str, data: IncomeUpdate) -> BudgetIncome:
        income = await self.incomes.get_owned(income_id, user_id)
        # source may be cleared with null; the other fields may not
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field == "source"
        }

        if not changes:
            return income

        updated = await self.incomes.update(income_id, **changes)
        self._log_operation("Income updated", income_id=income_id, fields=sorted(changes))

        await self.reconcile_income(user_id, updated.year, updated.month)
        if (updated.year, updated.month) != (income.year, income.month):
            await self.reconcile_income(user_id, income.year, income.month)
        return updated

    async def delete_income(self, user_id: str, income_id: str) -> None:
        income = await self.incomes.get_owned(income_id, user_id)
        await self.incomes.delete(income_id)
        self._log_operation("Income deleted", income_id=income_id)
        await self.reconcile_income(user_id, income.year, income.month)
