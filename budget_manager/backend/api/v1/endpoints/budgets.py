"""
Budgets API Endpoints.

Monthly budgets, budget items and monthly incomes. Static paths (/monthly,
/items, /incomes) are declared before /{budget_id}.
"""

from fastapi import APIRouter, Query

from budget_manager.backend.core.dependencies import CurrentUser, Store
from budget_manager.backend.models.budget import Budget, BudgetIncome, BudgetItem
from budget_manager.backend.schemas.base import ApiResponse
from budget_manager.backend.schemas.budget import (
    BudgetCreate,
    BudgetItemCreate,
    BudgetItemUpdate,
    BudgetUpdate,
    IncomeCreate,
    IncomeSum,
    IncomeUpdate,
)
from budget_manager.backend.services.budget import BudgetService

router = APIRouter()


@router.post("", response_model=ApiResponse[Budget], status_code=201, summary="Create a monthly budget")
async def create_budget(data: BudgetCreate, user: CurrentUser, store: Store) -> ApiResponse[Budget]:
    budget = await BudgetService(store).create_budget(user.email, data)
    return ApiResponse(data=budget, message="Budget created successfully")


@router.get("", response_model=ApiResponse[list[Budget]], summary="List budgets, newest first")
async def list_budgets(
    user: CurrentUser,
    store: Store,
    year: int | None = Query(default=None, ge=2000, le=3000),
    month: int | None = Query(default=None, ge=1, le=12),
) -> ApiResponse[list[Budget]]:
    return ApiResponse(data=await BudgetService(store).list_budgets(user.email, year, month))


@router.get("/monthly", response_model=ApiResponse[list[Budget]], summary="List monthly budgets")
async def list_monthly_budgets(
    user: CurrentUser,
    store: Store,
    year: int | None = Query(default=None, ge=2000, le=3000),
    month: int | None = Query(default=None, ge=1, le=12),
) -> ApiResponse[list[Budget]]:
    return ApiResponse(data=await BudgetService(store).list_budgets(user.email, year, month))


# -----------------------------------------------------------------------------
# Budget items
# -----------------------------------------------------------------------------


@router.get("/items", response_model=ApiResponse[list[BudgetItem]], summary="List budget items")
async def list_budget_items(
    user: CurrentUser,
    store: Store,
    budget_id: str | None = Query(default=None, description="Only items of this budget"),
) -> ApiResponse[list[BudgetItem]]:
    return ApiResponse(data=await BudgetService(store).list_items(user.email, budget_id))


@router.post("/items", response_model=ApiResponse[BudgetItem], status_code=201, summary="Create a budget item")
async def create_budget_item(data: BudgetItemCreate, user: CurrentUser, store: Store) -> ApiResponse[BudgetItem]:
    item = await BudgetService(store).create_item(user.email, data)
    return ApiResponse(data=item, message="Budget item created successfully")


@router.put("/items/{item_id}", response_model=ApiResponse[BudgetItem], summary="Update a budget item")
async def update_budget_item(
    item_id: str,
    data: BudgetItemUpdate,
    user: CurrentUser,
    store: Store,
) -> ApiResponse[BudgetItem]:
    item = await BudgetService(store).update_item(user.email, item_id, data)
    return ApiResponse(data=item, message="Budget item updated successfully")


@router.delete("/items/{item_id}", status_code=204, summary="Delete a budget item")
async def delete_budget_item(item_id: str, user: CurrentUser, store: Store) -> None:
    await BudgetService(store).delete_item(user.email, item_id)


# -----------------------------------------------------------------------------
# Incomes
# -----------------------------------------------------------------------------


@router.get("/incomes", response_model=ApiResponse[list[BudgetIncome]], summary="List incomes")
async def list_incomes(
    user: CurrentUser,
    store: Store,
    year: int | None = Query(default=None, ge=2000, le=2100),
    month: int | None = Query(default=None, ge=1, le=12),
) -> ApiResponse[list[BudgetIncome]]:
    return ApiResponse(data=await BudgetService(store).list_incomes(user.email, year, month))


@router.get("/incomes/sum", response_model=ApiResponse[IncomeSum], summary="Total income of a month")
async def income_sum(
    user: CurrentUser,
    store: Store,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
) -> ApiResponse[IncomeSum]:
    return ApiResponse(data=await BudgetService(store).income_sum(user.email, year, month))


@router.post("/incomes", response_model=ApiResponse[BudgetIncome], status_code=201, summary="Record an income")
async def create_income(data: IncomeCreate, user: CurrentUser, store: Store) -> ApiResponse[BudgetIncome]:
    income = await BudgetService(store).create_income(user.email, data)
    return ApiResponse(data=income, message="Income created successfully")


@router.put("/incomes/{income_id}", response_model=ApiResponse[BudgetIncome], summary="Update an income")
async def update_income(
    income_id: str,
    data: IncomeUpdate,
    user: CurrentUser,
    store: Store,
) -> ApiResponse[BudgetIncome]:
    income = await BudgetService(store).update_income(user.email, income_id, data)
    return ApiResponse(data=income, message="Income updated successfully")


@router.delete("/incomes/{income_id}", status_code=204, summary="Delete an income")
async def delete_income(income_id: str, user: CurrentUser, store: Store) -> None:
    await BudgetService(store).delete_income(user.email, income_id)


# -----------------------------------------------------------------------------
# Single budget
# -----------------------------------------------------------------------------


@router.get("/{budget_id}", response_model=ApiResponse[Budget], summary="Get a budget")
async def get_budget(budget_id: str, user: CurrentUser, store: Store) -> ApiResponse[Budget]:
    return ApiResponse(data=await BudgetService(store).get_budget(user.email, budget_id))


@router.get("/{budget_id}/items", response_model=ApiResponse[list[BudgetItem]], summary="List a budget's items")
async def list_items_of_budget(budget_id: str, user: CurrentUser, store: Store) -> ApiResponse[list[BudgetItem]]:
    return ApiResponse(data=await BudgetService(store).list_items(user.email, budget_id))


@router.put("/{budget_id}", response_model=ApiResponse[Budget], summary="Update a budget")
async def update_budget(budget_id: str, data: BudgetUpdate, user: CurrentUser, store: Store) -> ApiResponse[Budget]:
    budget = await BudgetService(store).update_budget(user.email, budget_id, data)
    return ApiResponse(data=budget, message="Budget updated successfully")


@router.delete("/{budget_id}", status_code=204, summary="Delete a budget and its items")
async def delete_budget(budget_id: str, user: CurrentUser, store: Store) -> None:
    await BudgetService(store).delete_budget(user.email, budget_id)
