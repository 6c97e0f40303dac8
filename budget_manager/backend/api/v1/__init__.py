"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from budget_manager.backend.api.v1.endpoints import (
    auth,
    budgets,
    categories,
    data,
    goals,
    settings,
    sheets,
    telegram,
    transactions,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(budgets.router, prefix="/budgets", tags=["budgets"])
router.include_router(categories.router, prefix="/categories", tags=["categories"])
router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
router.include_router(goals.router, prefix="/goals", tags=["goals"])
router.include_router(settings.router, prefix="/settings", tags=["settings"])
router.include_router(sheets.router, prefix="/sheets", tags=["sheets"])
router.include_router(telegram.router, prefix="/telegram", tags=["telegram"])
router.include_router(data.router, prefix="/data", tags=["data"])
