"""Goal repository."""

from budget_manager.backend.models.goal import Goal
from budget_manager.backend.repositories.base import SheetRepository


class GoalRepository(SheetRepository[Goal]):
    table = "goals"
    model = Goal
    label = "Goal"

    async def exists_by_name(self, user_id: str, name: str) -> bool:
        return await self.find_first(user_id=user_id, name=name) is not None
