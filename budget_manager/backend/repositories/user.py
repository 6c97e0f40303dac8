"""User and settings repositories."""

from budget_manager.backend.models.user import User, UserSettings
from budget_manager.backend.repositories.base import SheetRepository


class UserRepository(SheetRepository[User]):
    table = "users"
    model = User
    label = "User"

    async def get_by_email_or_none(self, email: str) -> User | None:
        return await self.find_first(email=email)


class SettingsRepository(SheetRepository[UserSettings]):
    table = "settings"
    model = UserSettings
    label = "Settings"
