"""
Telegram Bot Handlers.

Each module exposes a Router; get_all_routers() lists them for the dispatcher.
"""

from aiogram import Router

from budget_manager.telegram.handlers.common import router as common_router

__all__ = [
    "get_all_routers",
    "common_router",
]


def get_all_routers() -> list[Router]:
    return [
        common_router,
    ]
