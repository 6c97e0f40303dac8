"""Categories API Endpoints."""

from fastapi import APIRouter

from budget_manager.backend.core.dependencies import CurrentUser, Store
from budget_manager.backend.models.category import Category
from budget_manager.backend.schemas.base import ApiResponse
from budget_manager.backend.schemas.category import CategoryCreate, CategoryUpdate, EmojiMigrationResult
from budget_manager.backend.services.category import CategoryService

router = APIRouter()


@router.get("", response_model=ApiResponse[list[Category]], summary="List categories")
async def list_categories(user: CurrentUser, store: Store) -> ApiResponse[list[Category]]:
    return ApiResponse(data=await CategoryService(store).list_categories(user.email))


@router.post("", response_model=ApiResponse[Category], status_code=201, summary="Create a category")
async def create_category(data: CategoryCreate, user: CurrentUser, store: Store) -> ApiResponse[Category]:
    category = await CategoryService(store).create_category(user.email, data)
    return ApiResponse(data=category, message="Category created successfully")


@router.post(
    "/migrate-emojis",
    response_model=ApiResponse[EmojiMigrationResult],
    summary="Fill in missing category emojis",
)
async def migrate_emojis(user: CurrentUser, store: Store) -> ApiResponse[EmojiMigrationResult]:
    result = await CategoryService(store).migrate_emojis(user.email)
    if result.migrated == 0:
        return ApiResponse(data=result, message="All categories already have emojis")
    return ApiResponse(data=result, message=f"Migrated {result.migrated} categories")


@router.get("/{category_id}", response_model=ApiResponse[Category], summary="Get a category")
async def get_category(category_id: str, user: CurrentUser, store: Store) -> ApiResponse[Category]:
    return ApiResponse(data=await CategoryService(store).get_category(user.email, category_id))


@router.put("/{category_id}", response_model=ApiResponse[Category], summary="Update a category")
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    user: CurrentUser,
    store: Store,
) -> ApiResponse[Category]:
    category = await CategoryService(store).update_category(user.email, category_id, data)
    return ApiResponse(data=category, message="Category updated successfully")


@router.delete("/{category_id}", status_code=204, summary="Delete a category")
async def delete_category(category_id: str, user: CurrentUser, store: Store) -> None:
    await CategoryService(store).delete_category(user.email, category_id)
