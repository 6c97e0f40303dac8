"""Settings API Endpoints."""

from fastapi import APIRouter

from budget_manager.backend.core.dependencies import CurrentUser, Store
from budget_manager.backend.schemas.base import ApiResponse
from budget_manager.backend.schemas.settings import SettingsResponse, SettingsUpdate
from budget_manager.backend.services.settings import SettingsService

router = APIRouter()


@router.get("", response_model=ApiResponse[SettingsResponse], summary="Get user settings")
async def get_settings(user: CurrentUser, store: Store) -> ApiResponse[SettingsResponse]:
    return ApiResponse(data=await SettingsService(store).get_settings(user.email))


@router.put("", response_model=ApiResponse[SettingsResponse], summary="Update user settings")
async def update_settings(data: SettingsUpdate, user: CurrentUser, store: Store) -> ApiResponse[SettingsResponse]:
    settings = await SettingsService(store).update_settings(user.email, data)
    return ApiResponse(data=settings, message="Settings updated successfully")


@router.post("/reset", response_model=ApiResponse[SettingsResponse], summary="Restore default settings")
async def reset_settings(user: CurrentUser, store: Store) -> ApiResponse[SettingsResponse]:
    settings = await SettingsService(store).reset_settings(user.email)
    return ApiResponse(data=settings, message="Settings reset to defaults")
