"""Category repository."""

from budget_manager.backend.models.category import Category
from budget_manager.backend.repositories.base import SheetRepository


class CategoryRepository(SheetRepository[Category]):
    table = "categories"
    model = Category
    label = "Category"

    async def exists_by_name(self, user_id: str, name: str) -> bool:
        return await self.find_first(user_id=user_id, name=name) is not None
