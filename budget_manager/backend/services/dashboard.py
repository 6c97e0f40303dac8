"""Dashboard Service. One-call overview of the user's spreadsheet."""

from typing import Any

from budget_manager.backend.core.exceptions import ApplicationError
from budget_manager.backend.core.utils import utc_now
from budget_manager.backend.models.transaction import Transaction
from budget_manager.backend.repositories.base import SheetRepository
from budget_manager.backend.repositories.budget import BudgetRepository
from budget_manager.backend.repositories.category import CategoryRepository
from budget_manager.backend.repositories.goal import GoalRepository
from budget_manager.backend.repositories.transaction import TransactionRepository
from budget_manager.backend.schemas.dashboard import Dashboard, DashboardCounts, DashboardSummary
from budget_manager.backend.services.base import BaseService
from budget_manager.backend.services.transaction import newest_first, summarize, transaction_datetime

RECENT_TRANSACTIONS = 10


class DashboardService(BaseService):
    async def _safe_find(self, repository: SheetRepository, user_id: str) -> list[Any]:
        """A table that cannot be read counts as empty."""
        try:
            return await repository.find(user_id=user_id)
        except ApplicationError as e:
            self._logger.warning(
                "Dashboard table unavailable",
                extra={"table": repository.table, "error": e.message},
            )
            return []

    async def get_dashboard(self, user_id: str) -> Dashboard:
        categories = await self._safe_find(CategoryRepository(self.store), user_id)
        budgets = await self._safe_find(BudgetRepository(self.store), user_id)
        transactions: list[Transaction] = await self._safe_find(TransactionRepository(self.store), user_id)
        goals = await self._safe_find(GoalRepository(self.store), user_id)

        now = utc_now()
        this_month = [
            t
            for t in transactions
            if (transaction_datetime(t).year, transaction_datetime(t).month) == (now.year, now.month)
        ]
        income, expenses = summarize(this_month)

        return Dashboard(
            summary=DashboardSummary(
                total_balance=sum(t.amount for t in transactions),
                monthly_income=income,
                monthly_expenses=expenses,
                net_income=income - expenses,
            ),
            counts=DashboardCounts(
                categories=len(categories),
                budgets=len(budgets),
                transactions=len(transactions),
                goals=len(goals),
            ),
            recent_transactions=newest_first(transactions)[:RECENT_TRANSACTIONS],
        )
