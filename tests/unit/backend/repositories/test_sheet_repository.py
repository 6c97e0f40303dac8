"""Unit tests for SheetRepository."""

from unittest.mock import patch

import pytest

from budget_manager.backend.core.exceptions import NotFoundError
from budget_manager.backend.repositories.budget import BudgetItemRepository
from budget_manager.backend.repositories.transaction import TransactionRepository

USER = "test@example.com"


async def _add_rows(store) -> None:
    await store.insert(
        "transactions",
        {"id": "good", "user_id": USER, "name": "Coffee", "amount": -4.5, "date": "2025-01-01T09:00:00.000Z"},
    )
    await store.insert(
        "transactions",
        {"id": "bad", "user_id": USER, "name": "Typo", "amount": "abc", "date": "2025-01-02T09:00:00.000Z"},
    )


class TestUnreadableRows:
    @pytest.mark.asyncio
    async def test_find_skips_and_logs(self, store, mock_logger):
        await _add_rows(store)

        with patch("budget_manager.backend.repositories.base.logger", mock_logger):
            transactions = await TransactionRepository(store).find(user_id=USER)

        assert [t.id for t in transactions] == ["good"]
        mock_logger.warning.assert_called_once()
        extra = mock_logger.warning.call_args[1]["extra"]
        assert extra["table"] == "transactions"
        assert extra["key"] == "bad"
        assert extra["fields"] == ["amount"]

    @pytest.mark.asyncio
    async def test_cleared_required_cell_is_skipped(self, store):
        await store.insert("transactions", {"id": "t1", "user_id": USER, "name": "No date", "amount": -1})

        assert await TransactionRepository(store).find(user_id=USER) == []

    @pytest.mark.asyncio
    async def test_unreadable_row_is_not_found(self, store):
        await _add_rows(store)
        repository = TransactionRepository(store)

        assert await repository.get_by_id_or_none("bad") is None
        with pytest.raises(NotFoundError, match="Transaction not found"):
            await repository.get_owned("bad", USER)

    @pytest.mark.asyncio
    async def test_exists_sees_unreadable_rows(self, store):
        await _add_rows(store)
        assert await TransactionRepository(store).exists("bad") is True
        assert await TransactionRepository(store).exists("missing") is False


class TestGetById:
    @pytest.mark.asyncio
    async def test_missing_uses_label(self, store):
        with pytest.raises(NotFoundError, match="Budget item not found"):
            await BudgetItemRepository(store).get_by_id("nope")

    @pytest.mark.asyncio
    async def test_found(self, store):
        await _add_rows(store)
        assert (await TransactionRepository(store).get_by_id("good")).name == "Coffee"
