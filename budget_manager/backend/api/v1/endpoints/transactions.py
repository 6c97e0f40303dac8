"""
Transactions API Endpoints.

Amounts are signed: positive for income, negative for expenses.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from budget_manager.backend.core.dependencies import CurrentUser, RequestId, Store
from budget_manager.backend.core.pagination import PageParams, get_page_params
from budget_manager.backend.models.transaction import Transaction
from budget_manager.backend.schemas.base import ApiResponse, PaginatedResponse, ResponseMetadata
from budget_manager.backend.schemas.transaction import (
    StatsPeriod,
    TransactionCreate,
    TransactionStats,
    TransactionUpdate,
)
from budget_manager.backend.services.transaction import TransactionService

router = APIRouter()


@router.get(
    "",
    response_model=PaginatedResponse[Transaction],
    summary="List transactions (paginated)",
    description="Newest first. Filter by category and by an inclusive date range.",
)
async def list_transactions(
    user: CurrentUser,
    store: Store,
    request_id: RequestId,
    pagination: PageParams = Depends(get_page_params),
    category_id: str | None = Query(default=None),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
) -> PaginatedResponse[Transaction]:
    transactions, page_info = await TransactionService(store).list_transactions(
        user.email,
        pagination,
        category_id=category_id,
        date_from=date_from,
        date_to=date_to,
    )
    return PaginatedResponse(
        data=transactions,
        pagination=page_info,
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get("/stats", response_model=ApiResponse[TransactionStats], summary="Income and expense totals")
async def transaction_stats(
    user: CurrentUser,
    store: Store,
    period: StatsPeriod = Query(default="month"),
    year: int | None = Query(default=None, ge=2000, le=3000),
    month: int | None = Query(default=None, ge=1, le=12),
) -> ApiResponse[TransactionStats]:
    stats = await TransactionService(store).get_stats(user.email, period, year, month)
    return ApiResponse(data=stats)


@router.post("", response_model=ApiResponse[Transaction], status_code=201, summary="Record a transaction")
async def create_transaction(data: TransactionCreate, user: CurrentUser, store: Store) -> ApiResponse[Transaction]:
    transaction = await TransactionService(store).create_transaction(user.email, data)
    return ApiResponse(data=transaction, message="Transaction created successfully")


@router.get("/{transaction_id}", response_model=ApiResponse[Transaction], summary="Get a transaction")
async def get_transaction(transaction_id: str, user: CurrentUser, store: Store) -> ApiResponse[Transaction]:
    return ApiResponse(data=await TransactionService(store).get_transaction(user.email, transaction_id))


@router.put("/{transaction_id}", response_model=ApiResponse[Transaction], summary="Update a transaction")
async def update_transaction(
    transaction_id: str,
    data: TransactionUpdate,
    user: CurrentUser,
    store: Store,
) -> ApiResponse[Transaction]:
    transaction = await TransactionService(store).update_transaction(user.email, transaction_id, data)
    return ApiResponse(data=transaction, message="Transaction updated successfully")


@router.delete("/{transaction_id}", status_code=204, summary="Delete a transaction")
async def delete_transaction(transaction_id: str, user: CurrentUser, store: Store) -> None:
    await TransactionService(store).delete_transaction(user.email, transaction_id)
