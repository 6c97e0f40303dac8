"""Transaction repository."""

from budget_manager.backend.models.transaction import Transaction
from budget_manager.backend.repositories.base import SheetRepository


class TransactionRepository(SheetRepository[Transaction]):
    table = "transactions"
    model = Transaction
    label = "Transaction"
