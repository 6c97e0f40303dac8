"""Goals API Endpoints."""

from fastapi import APIRouter

from budget_manager.backend.core.dependencies import CurrentUser, Store
from budget_manager.backend.models.goal import Goal
from budget_manager.backend.schemas.base import ApiResponse
from budget_manager.backend.schemas.goal import GoalCreate, GoalProgress, GoalUpdate
from budget_manager.backend.services.goal import GoalService

router = APIRouter()


@router.get("", response_model=ApiResponse[list[Goal]], summary="List spending goals")
async def list_goals(user: CurrentUser, store: Store) -> ApiResponse[list[Goal]]:
    return ApiResponse(data=await GoalService(store).list_goals(user.email))


@router.post("", response_model=ApiResponse[Goal], status_code=201, summary="Create a spending goal")
async def create_goal(data: GoalCreate, user: CurrentUser, store: Store) -> ApiResponse[Goal]:
    goal = await GoalService(store).create_goal(user.email, data)
    return ApiResponse(data=goal, message="Goal created successfully")


@router.get("/{goal_id}", response_model=ApiResponse[Goal], summary="Get a spending goal")
async def get_goal(goal_id: str, user: CurrentUser, store: Store) -> ApiResponse[Goal]:
    return ApiResponse(data=await GoalService(store).get_goal(user.email, goal_id))


@router.get(
    "/{goal_id}/progress",
    response_model=ApiResponse[GoalProgress],
    summary="Spending against a goal in its current period",
    description="Sends a Telegram goal alert, once per period, when the limit is exceeded.",
)
async def goal_progress(goal_id: str, user: CurrentUser, store: Store) -> ApiResponse[GoalProgress]:
    return ApiResponse(data=await GoalService(store).get_progress(user.email, goal_id))


@router.put("/{goal_id}", response_model=ApiResponse[Goal], summary="Update a spending goal")
async def update_goal(goal_id: str, data: GoalUpdate, user: CurrentUser, store: Store) -> ApiResponse[Goal]:
    goal = await GoalService(store).update_goal(user.email, goal_id, data)
    return ApiResponse(data=goal, message="Goal updated successfully")


@router.delete("/{goal_id}", status_code=204, summary="Delete a spending goal")
async def delete_goal(goal_id: str, user: CurrentUser, store: Store) -> None:
    await GoalService(store).delete_goal(user.email, goal_id)
