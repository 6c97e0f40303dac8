"""
Telegram Bot Services.

Services for sending notifications and alerts via Telegram.
"""

from budget_manager.telegram.services.notifications import (
    MessageType,
    NotificationResult,
    NotificationService,
    get_notification_service,
)

__all__ = [
    "MessageType",
    "NotificationResult",
    "NotificationService",
    "get_notification_service",
]
