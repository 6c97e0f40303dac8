"""
Category Service.

Categories are unique by name per user. A category without an emoji gets
one derived from its color, then from keywords in its name.
"""

from budget_manager.backend.core.exceptions import ValidationError
from budget_manager.backend.models.category import Category
from budget_manager.backend.repositories.category import CategoryRepository
from budget_manager.backend.schemas.category import CategoryCreate, CategoryUpdate, EmojiMigrationResult
from budget_manager.backend.services.base import BaseService
from budget_manager.backend.storage.store import SheetsStore

DEFAULT_EMOJI = "📂"

COLOR_EMOJIS = {
    "#FF6B6B": "🍽️",
    "#4ECDC4": "🚗",
    "#FFD93D": "💡",
    "#6BCF7F": "🛍️",
    "#4D96FF": "🎬",
    "#FF6B9D": "🏥",
    "#C44569": "📚",
    "#F8B500": "💰",
    "#54A0FF": "🏠",
    "#5F27CD": "✈️",
    "#FF9F43": "🎯",
    "#8395A7": "📂",
    "#3867D6": "💳",
    "#20BF6B": "⛽",
    "#FF9FF3": "📱",
}

# Checked in order; the first matching keyword wins
KEYWORD_EMOJIS: list[tuple[tuple[str, ...], str]] = [
    (("food", "dining", "restaurant"), "🍽️"),
    (("transport", "car", "gas"), "🚗"),
    (("bill", "utilities", "electric"), "💡"),
    (("shop", "store", "retail"), "🛍️"),
    (("entertainment", "movie", "fun"), "🎬"),
    (("health", "medical", "doctor"), "🏥"),
    (("education", "school", "book"), "📚"),
    (("finance", "bank", "money"), "💰"),
    (("home", "house", "rent"), "🏠"),
    (("travel", "vacation", "trip"), "✈️"),
    (("goal", "saving", "target"), "🎯"),
]


def emoji_for(name: str, color: str | None) -> str:
    if color and color.upper() in COLOR_EMOJIS:
        return COLOR_EMOJIS[color.upper()]

    lowered = name.lower()
    for keywords, emoji in KEYWORD_EMOJIS:
        if any(keyword in lowered for keyword in keywords):
            return emoji
    return DEFAULT_EMOJI


class CategoryService(BaseService):
    def __init__(self, store: SheetsStore) -> None:
        super().__init__(store)
        self.categories = CategoryRepository(store)

    async def list_categories(self, user_id: str) -> list[Category]:
        categories = await self.categories.find(user_id=user_id)
        return sorted(categories, key=lambda category: category.name.lower())

    async def get_category(self, user_id: str, category_id: str) -> Category:
        return await self.categories.get_owned(category_id, user_id)

    async def create_category(self, user_id: str, data: CategoryCreate) -> Category:
        """
        Raises:
            ValidationError: If the user already has a category with this name
        """
        if await self.categories.exists_by_name(user_id, data.name):
            raise ValidationError("Category with this name already exists")

        category = await self.categories.create(
            user_id=user_id,
            name=data.name,
            color=data.color,
            emoji=data.emoji or emoji_for(data.name, data.color),
        )
        self._log_operation("Category created", category_id=category.id, user_id=user_id)
        return category

    async def update_category(self, user_id: str, category_id: str, data: CategoryUpdate) -> Category:
        category = await self.categories.get_owned(category_id, user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "name" in changes and changes["name"] != category.name:
            if await self.categories.exists_by_name(user_id, changes["name"]):
                raise ValidationError("Category with this name already exists")

        if not changes:
            return category

        updated = await self.categories.update(category_id, **changes)
        self._log_operation("Category updated", category_id=category_id, fields=sorted(changes))
        return updated

    async def delete_category(self, user_id: str, category_id: str) -> None:
        await self.categories.get_owned(category_id, user_id)
        await self.categories.delete(category_id)
        self._log_operation("Category deleted", category_id=category_id)

    async def migrate_emojis(self, user_id: str) -> EmojiMigrationResult:
        """Give every emoji-less category of the user a derived emoji."""
        await self.store.ensure_categories_schema()
        categories = await self.categories.find(user_id=user_id)
        missing = [category for category in categories if not category.emoji]

        for category in missing:
            await self.categories.update(category.id, emoji=emoji_for(category.name, category.color))

        self._log_operation("Category emojis migrated", user_id=user_id, migrated=len(missing))
        return EmojiMigrationResult(
            total=len(categories),
            migrated=len(missing),
            already_had_emoji=len(categories) - len(missing),
        )
