"""
Base Repository.

Typed CRUD over one spreadsheet table. Subclasses set the table and model:

    class BudgetRepository(SheetRepository[Budget]):
        table = "budgets"
        model = Budget
        label = "Budget"

Rows are edited by hand in Drive, so a row that no longer fits its model is
skipped when reading and logged, instead of failing the whole table.
"""

from typing import Any, Generic, TypeVar

from pydantic import ValidationError as PydanticValidationError

from budget_manager.backend.core.exceptions import NotFoundError
from budget_manager.backend.core.logging import get_logger
from budget_manager.backend.models.base import SheetRecord
from budget_manager.backend.storage.schema import key_column
from budget_manager.backend.storage.store import SheetsStore

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=SheetRecord)


class SheetRepository(Generic[ModelType]):
    """Base repository with common CRUD operations and ownership checks."""

    table: str
    model: type[ModelType]
    label: str

    def __init__(self, store: SheetsStore) -> None:
        self.store = store

    @property
    def key(self) -> str:
        return key_column(self.table)

    def _to_model(self, record: dict[str, Any]) -> ModelType:
        return self.model.model_validate(record)

    def _read_model(self, record: dict[str, Any]) -> ModelType | None:
        """Validate a stored row. None if the row cannot be read."""
        try:
            return self._to_model(record)
        except PydanticValidationError as e:
            logger.warning(
                "Skipping unreadable row",
                extra={
                    "table": self.table,
                    "key": record.get(self.key),
                    "fields": sorted({str(error["loc"][0]) for error in e.errors() if error["loc"]}),
                },
            )
            return None

    async def get_by_id_or_none(self, key_value: str) -> ModelType | None:
        record = await self.store.find_by_id(self.table, key_value)
        return self._read_model(record) if record is not None else None

    async def exists(self, key_value: str) -> bool:
        """True if a row has this key, readable or not."""
        return await self.store.find_by_id(self.table, key_value) is not None

    async def get_by_id(self, key_value: str) -> ModelType:
        """
        Raises:
            NotFoundError: If record not found
        """
        instance = await self.get_by_id_or_none(key_value)
        if instance is None:
            raise NotFoundError(f"{self.label} not found")
        return instance

    async def get_owned(self, key_value: str, user_id: str) -> ModelType:
        """
        Get a record that belongs to user_id.

        Records owned by someone else are reported as missing.

        Raises:
            NotFoundError: If record not found or not owned
        """
        instance = await self.get_by_id(key_value)
        if getattr(instance, "user_id", None) != user_id:
            raise NotFoundError(f"{self.label} not found")
        return instance

    async def find(self, **filters: Any) -> list[ModelType]:
        records = await self.store.find(self.table, filters or None)
        return [model for model in map(self._read_model, records) if model is not None]

    async def find_first(self, **filters: Any) -> ModelType | None:
        records = await self.find(**filters)
        return records[0] if records else None

    async def create(self, **fields: Any) -> ModelType:
        record = await self.store.insert(self.table, fields)
        return self._to_model(record)

    async def update(self, key_value: str, **changes: Any) -> ModelType:
        """
        Raises:
            NotFoundError: If record not found
        """
        record = await self.store.update(self.table, key_value, changes)
        return self._to_model(record)

    async def delete(self, key_value: str) -> None:
        await self.store.delete(self.table, key_value)
