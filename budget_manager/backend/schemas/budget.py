"""
Budget Schemas.

Request bodies for budgets, budget items and monthly incomes.
"""

from pydantic import BaseModel, Field


class BudgetCreate(BaseModel):
    """Schema for creating a monthly budget."""

    year: int = Field(..., ge=2000, le=3000, examples=[2025])
    month: int = Field(..., ge=1, le=12, examples=[5])
    income: float = Field(..., ge=0, description="Planned income for the month")


class BudgetUpdate(BaseModel):
    year: int | None = Field(default=None, ge=2000, le=3000)
    month: int | None = Field(default=None, ge=1, le=12)
    income: float | None = Field(default=None, ge=0)


class BudgetItemCreate(BaseModel):
    """Schema for allocating an amount to a category within a budget."""

    budget_id: str = Field(..., min_length=1)
    category_id: str = Field(..., min_length=1)
    category_name: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)


class BudgetItemUpdate(BaseModel):
    category_id: str | None = Field(default=None, min_length=1)
    category_name: str | None = Field(default=None, min_length=1)
    amount: float | None = Field(default=None, ge=0)
    spent: float | None = Field(default=None, ge=0)


class IncomeCreate(BaseModel):
    """Schema for recording one income source for a month."""

    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    amount: float = Field(..., ge=0)
    source: str | None = Field(default=None, max_length=200, examples=["Salary"])


class IncomeUpdate(BaseModel):
    year: int | None = Field(default=None, ge=2000, le=2100)
    month: int | None = Field(default=None, ge=1, le=12)
    amount: float | None = Field(default=None, ge=0)
    source: str | None = Field(default=None, max_length=200)


class IncomeSum(BaseModel):
    year: int
    month: int
    total: float
