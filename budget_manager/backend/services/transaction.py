"""
Transaction Service.

Amounts are signed: positive for income, negative for expenses. Dates are
stored as ISO-8601 UTC strings.
"""

import math
from datetime import datetime
from typing import Any

from budget_manager.backend.core.pagination import PageParams, paginate
from budget_manager.backend.core.utils import parse_datetime, to_iso, utc_now
from budget_manager.backend.models.transaction import Transaction
from budget_manager.backend.repositories.transaction import TransactionRepository
from budget_manager.backend.schemas.base import PaginationInfo
from budget_manager.backend.schemas.transaction import (
    StatsPeriod,
    TransactionCreate,
    TransactionStats,
    TransactionUpdate,
)
from budget_manager.backend.services.base import BaseService
from budget_manager.backend.storage.store import SheetsStore


def transaction_datetime(transaction: Transaction) -> datetime:
    """Parsed date of a transaction. Unreadable dates sort as the oldest."""
    try:
        return parse_datetime(transaction.date)
    except ValueError:
        return datetime.min


def newest_first(transactions: list[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=transaction_datetime, reverse=True)


def _in_period(moment: datetime, period: StatsPeriod, year: int, month: int, today: datetime) -> bool:
    if period == "all":
        return True
    if period == "year":
        return moment.year == year
    if moment.year != year or moment.month != month:
        return False
    if period == "day":
        return moment.day == today.day
    if period == "week":
        return math.ceil(moment.day / 7) == math.ceil(today.day / 7)
    return True


def summarize(transactions: list[Transaction]) -> tuple[float, float]:
    """(income, expenses) where expenses are reported as a positive number."""
    income = sum(t.amount for t in transactions if t.amount > 0)
    expenses = sum(abs(t.amount) for t in transactions if t.amount <= 0)
    return income, expenses


def _row_fields(changes: dict[str, Any]) -> dict[str, Any]:
    if changes.get("date") is not None:
        changes["date"] = to_iso(parse_datetime(changes["date"]))
    if changes.get("receipt_url") is not None:
        changes["receipt_url"] = str(changes["receipt_url"])
    return changes


class TransactionService(BaseService):
    def __init__(self, store: SheetsStore) -> None:
        super().__init__(store)
        self.transactions = TransactionRepository(store)

    async def list_transactions(
        self,
        user_id: str,
        params: PageParams,
        category_id: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> tuple[list[Transaction], PaginationInfo]:
        filters = {"user_id": user_id}
        if category_id:
            filters["category_id"] = category_id
        transactions = await self.transactions.find(**filters)

        if date_from is not None:
            start = parse_datetime(date_from)
            transactions = [t for t in transactions if transaction_datetime(t) >= start]
        if date_to is not None:
            end = parse_datetime(date_to)
            transactions = [t for t in transactions if transaction_datetime(t) <= end]

        return paginate(newest_first(transactions), params)

    async def get_transaction(self, user_id: str, transaction_id: str) -> Transaction:
        return await self.transactions.get_owned(transaction_id, user_id)

    async def create_transaction(self, user_id: str, data: TransactionCreate) -> Transaction:
        fields = _row_fields(data.model_dump())
        transaction = await self.transactions.create(user_id=user_id, **fields)
        self._log_operation(
            "Transaction created",
            transaction_id=transaction.id,
            is_income=transaction.is_income,
        )
        return transaction

    async def update_transaction(self, user_id: str, transaction_id: str, data: TransactionUpdate) -> Transaction:
        transaction = await self.transactions.get_owned(transaction_id, user_id)
        changes = _row_fields(data.model_dump(exclude_unset=True))
        for field in ("name", "amount", "category_id", "category_name", "date"):
            if field in changes and changes[field] is None:
                del changes[field]

        if not changes:
            return transaction

        updated = await self.transactions.update(transaction_id, **changes)
        self._log_operation("Transaction updated", transaction_id=transaction_id, fields=sorted(changes))
        return updated

    async def delete_transaction(self, user_id: str, transaction_id: str) -> None:
        await self.transactions.get_owned(transaction_id, user_id)
        await self.transactions.delete(transaction_id)
        self._log_operation("Transaction deleted", transaction_id=transaction_id)

    async def get_stats(
        self,
        user_id: str,
        period: StatsPeriod = "month",
        year: int | None = None,
        month: int | None = None,
    ) -> TransactionStats:
        """
        Income and expense totals for a period.

        year and month default to the current ones. "day" and "week" use
        today's day of month within that year and month; a week is
        ceil(day / 7).
        """
        today = utc_now()
        year = year or today.year
        month = month or today.month

        transactions = [
            t
            for t in await self.transactions.find(user_id=user_id)
            if _in_period(transaction_datetime(t), period, year, month, today)
        ]
        income, expenses = summarize(transactions)

        return TransactionStats(
            total_income=income,
            total_expenses=expenses,
            net_income=income - expenses,
            transaction_count=len(transactions),
            period=period,
            year=year,
            month=month,
        )
