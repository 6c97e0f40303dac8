"""User profile service."""

from budget_manager.backend.core.exceptions import NotFoundError
from budget_manager.backend.models.user import User
from budget_manager.backend.repositories.user import UserRepository
from budget_manager.backend.schemas.auth import ProfileResponse, ProfileUpdate, UserSession
from budget_manager.backend.services.base import BaseService
from budget_manager.backend.storage.store import SheetsStore


class UserService(BaseService):
    def __init__(self, store: SheetsStore) -> None:
        super().__init__(store)
        self.users = UserRepository(store)

    async def _get_user(self, email: str) -> User:
        user = await self.users.get_by_email_or_none(email)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _profile(self, user: User, session: UserSession) -> ProfileResponse:
        return ProfileResponse(
            email=user.email,
            name=user.name or session.name,
            telegram_username=user.telegram_username,
            chat_id=user.chat_id,
            spreadsheet_id=session.spreadsheet_id,
        )

    async def get_profile(self, session: UserSession) -> ProfileResponse:
        user = await self._get_user(session.email)
        return self._profile(user, session)

    async def update_profile(self, session: UserSession, data: ProfileUpdate) -> ProfileResponse:
        user = await self._get_user(session.email)
        changes = data.model_dump(exclude_unset=True)
        if "chat_id" in changes:
            changes["chatId"] = changes.pop("chat_id")

        if changes:
            user = await self.users.update(user.id, **changes)
            self._log_operation("Profile updated", email=session.email, fields=sorted(changes))
        return self._profile(user, session)

    async def update_telegram_info(
        self,
        email: str,
        telegram_username: str | None,
        chat_id: str | None,
    ) -> User | None:
        """Write (or clear, with None) the user's Telegram link. None if the user row is missing."""
        user = await self.users.get_by_email_or_none(email)
        if user is None:
            return None
        return await self.users.update(
            user.id,
            telegram_username=telegram_username or "",
            chatId=chat_id or "",
        )

    async def recreate_database(self, session: UserSession) -> list[str]:
        created = await self.store.recreate_database(session.email, session.name)
        self._log_operation("Database recreated", email=session.email, created_tables=created)
        return created
