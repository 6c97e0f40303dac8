"""Dashboard Schemas."""

from pydantic import BaseModel

from budget_manager.backend.models.transaction import Transaction


class DashboardSummary(BaseModel):
    total_balance: float
    monthly_income: float
    monthly_expenses: float
    net_income: float


class DashboardCounts(BaseModel):
    categories: int
    budgets: int
    transactions: int
    goals: int


class Dashboard(BaseModel):
    summary: DashboardSummary
    counts: DashboardCounts
    recent_transactions: list[Transaction]
