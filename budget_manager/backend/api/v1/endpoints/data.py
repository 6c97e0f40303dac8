"""Data API Endpoints. Only the dashboard overview lives here."""

from fastapi import APIRouter

from budget_manager.backend.core.dependencies import CurrentUser, Store
from budget_manager.backend.schemas.base import ApiResponse
from budget_manager.backend.schemas.dashboard import Dashboard
from budget_manager.backend.services.dashboard import DashboardService

router = APIRouter()


@router.get("/dashboard", response_model=ApiResponse[Dashboard], summary="Balance, monthly totals and counts")
async def get_dashboard(user: CurrentUser, store: Store) -> ApiResponse[Dashboard]:
    return ApiResponse(data=await DashboardService(store).get_dashboard(user.email))
