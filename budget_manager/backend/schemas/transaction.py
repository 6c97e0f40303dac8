"""
Transaction Schemas.

Amounts are signed: positive for income, negative for expenses.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, HttpUrl, field_validator


def _non_zero(value: float | None) -> float | None:
    if value is not None and value == 0:
        raise ValueError("Amount must not be zero")
    return value


class TransactionCreate(BaseModel):
    """Schema for recording a transaction."""

    name: str = Field(..., min_length=1, max_length=200, examples=["Coffee"])
    amount: float = Field(..., description="Positive for income, negative for expenses", examples=[-4.5])
    category_id: str = Field(..., min_length=1)
    category_name: str = Field(..., min_length=1)
    date: datetime = Field(..., description="ISO-8601 datetime")
    time: str | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=1000)
    receipt_url: HttpUrl | None = None

    check_amount = field_validator("amount")(_non_zero)


class TransactionUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    amount: float | None = None
    category_id: str | None = Field(default=None, min_length=1)
    category_name: str | None = Field(default=None, min_length=1)
    date: datetime | None = None
    time: str | None = Field(default=None, max_length=20)
    notes: str | None = Field(default=None, max_length=1000)
    receipt_url: HttpUrl | None = None

    check_amount = field_validator("amount")(_non_zero)


StatsPeriod = Literal["day", "week", "month", "year", "all"]


class TransactionStats(BaseModel):
    total_income: float
    total_expenses: float
    net_income: float
    transaction_count: int
    period: StatsPeriod
    year: int
    month: int
