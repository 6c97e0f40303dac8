"""
Base Service.

Base class for services that work on the signed-in user's spreadsheet.
Services orchestrate repositories and implement business rules; repositories
only read and write rows.

Usage:
    from budget_manager.backend.services.base import BaseService

    class CategoryService(BaseService):
        def __init__(self, store: SheetsStore) -> None:
            super().__init__(store)
            self.categories = CategoryRepository(store)

        async def create_category(self, user_id: str, data: CategoryCreate) -> Category:
            if await self.categories.exists_by_name(user_id, data.name):
                raise ValidationError("Category with this name already exists")
            return await self.categories.create(user_id=user_id, **data.model_dump())
"""

from typing import Any

from budget_manager.backend.core.logging import get_logger
from budget_manager.backend.storage.store import SheetsStore


class BaseService:
    """
    Base class for spreadsheet-backed services.

    Subclasses call super().__init__(store) and build their repositories
    from self.store.
    """

    def __init__(self, store: SheetsStore) -> None:
        self._store = store
        self._logger = get_logger(self.__class__.__module__)

    @property
    def store(self) -> SheetsStore:
        return self._store

    def _log_operation(self, operation: str, **context: Any) -> None:
        """Log a service operation with context."""
        self._logger.info(
            operation,
            extra={"service": self.__class__.__name__, **context},
        )

    def _log_debug(self, message: str, **context: Any) -> None:
        self._logger.debug(
            message,
            extra={"service": self.__class__.__name__, **context},
        )
