"""Spending goal rows."""

from typing import Literal

from budget_manager.backend.models.base import SheetRecord

GoalPeriod = Literal["daily", "weekly", "monthly", "yearly"]


class Goal(SheetRecord):
    id: str
    user_id: str
    name: str
    limit_amount: float
    period: GoalPeriod
    notify_telegram: bool = False
    last_notified_at: str | None = None
