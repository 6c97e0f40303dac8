"""User settings service. One settings row per user, keyed by email."""

from budget_manager.backend.models.user import UserSettings
from budget_manager.backend.repositories.user import SettingsRepository
from budget_manager.backend.schemas.settings import SettingsResponse, SettingsUpdate
from budget_manager.backend.services.base import BaseService
from budget_manager.backend.storage.schema import DEFAULT_SETTINGS
from budget_manager.backend.storage.store import SheetsStore


def _response(settings: UserSettings) -> SettingsResponse:
    return SettingsResponse(
        currency=settings.currency,
        language=settings.language,
        dark_mode=settings.dark_mode,
        telegram_notifications=settings.telegram_notifications,
        telegram_chat_id=settings.telegram_chat_id,
        updated_at=settings.updated_at,
    )


class SettingsService(BaseService):
    def __init__(self, store: SheetsStore) -> None:
        super().__init__(store)
        self.settings = SettingsRepository(store)

    async def get_settings(self, user_id: str) -> SettingsResponse:
        """The stored settings, or the defaults if the user has no row yet."""
        settings = await self.settings.get_by_id_or_none(user_id)
        if settings is None:
            settings = UserSettings(user_id=user_id)
        return _response(settings)

    async def save(self, user_id: str, **changes) -> UserSettings:
        """Create or update the user's row."""
        if not await self.settings.exists(user_id):
            return await self.settings.create(user_id=user_id, **{**DEFAULT_SETTINGS, **changes})
        return await self.settings.update(user_id, **changes)

    async def update_settings(self, user_id: str, data: SettingsUpdate) -> SettingsResponse:
        changes = data.model_dump(exclude_unset=True)
        settings = await self.save(user_id, **changes)
        self._log_operation("Settings updated", user_id=user_id, fields=sorted(changes))
        return _response(settings)

    async def reset_settings(self, user_id: str) -> SettingsResponse:
        settings = await self.save(user_id, **DEFAULT_SETTINGS)
        self._log_operation("Settings reset", user_id=user_id)
        return _response(settings)
