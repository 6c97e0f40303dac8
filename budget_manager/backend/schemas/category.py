"""Category Schemas."""

from pydantic import BaseModel, Field

COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class CategoryCreate(BaseModel):
    """Schema for creating a category. The emoji is derived when omitted."""

    name: str = Field(..., min_length=1, max_length=100, examples=["Groceries"])
    color: str = Field(default="#8395A7", pattern=COLOR_PATTERN, examples=["#FF6B6B"])
    emoji: str | None = Field(default=None, max_length=16)


class CategoryUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = Field(default=None, pattern=COLOR_PATTERN)
    emoji: str | None = Field(default=None, max_length=16)


class EmojiMigrationResult(BaseModel):
    total: int
    migrated: int
    already_had_emoji: int
