"""Goal Schemas."""

from pydantic import BaseModel, Field

from budget_manager.backend.models.goal import Goal, GoalPeriod


class GoalCreate(BaseModel):
    """Schema for creating a spending goal."""

    name: str = Field(..., min_length=1, max_length=100, examples=["Eating out"])
    limit_amount: float = Field(..., gt=0)
    period: GoalPeriod
    notify_telegram: bool = False


class GoalUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    limit_amount: float | None = Field(default=None, gt=0)
    period: GoalPeriod | None = None
    notify_telegram: bool | None = None


class GoalProgress(BaseModel):
    goal: Goal
    current_amount: float
    remaining_amount: float
    percentage_used: float
    is_exceeded: bool
    period_start: str
    period_end: str
    alert_sent: bool = False
