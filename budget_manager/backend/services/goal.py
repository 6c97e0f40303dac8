"""
Goal Service.

Spending goals cap the expenses of a daily, weekly, monthly or yearly
window. Progress only counts expenses (negative amounts). An exceeded goal
with notify_telegram set sends at most one Telegram alert per window.
"""

from datetime import datetime, timedelta

from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.core.exceptions import ValidationError
from budget_manager.backend.core.utils import parse_datetime, to_iso, utc_now, utc_now_iso
from budget_manager.backend.models.goal import Goal, GoalPeriod
from budget_manager.backend.repositories.goal import GoalRepository
from budget_manager.backend.repositories.transaction import TransactionRepository
from budget_manager.backend.repositories.user import SettingsRepository, UserRepository
from budget_manager.backend.schemas.goal import GoalCreate, GoalProgress, GoalUpdate
from budget_manager.backend.services.base import BaseService
from budget_manager.backend.services.transaction import transaction_datetime
from budget_manager.backend.storage.store import SheetsStore
from budget_manager.telegram.services.notifications import MessageType, NotificationService, get_notification_service


def period_window(period: GoalPeriod, now: datetime) -> tuple[datetime, datetime]:
    """Inclusive [start, end] of the window containing now. Weeks start on Sunday."""
    day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == "daily":
        start = day_start
        next_start = start + timedelta(days=1)
    elif period == "weekly":
        start = day_start - timedelta(days=(now.weekday() + 1) % 7)
        next_start = start + timedelta(days=7)
    elif period == "monthly":
        start = day_start.replace(day=1)
        if start.month == 12:
            next_start = start.replace(year=start.year + 1, month=1)
        else:
            next_start = start.replace(month=start.month + 1)
    else:
        start = day_start.replace(month=1, day=1)
        next_start = start.replace(year=start.year + 1)

    return start, next_start - timedelta(milliseconds=1)


class GoalService(BaseService):
    def __init__(self, store: SheetsStore, notifications: NotificationService | None = None) -> None:
        super().__init__(store)
        self.goals = GoalRepository(store)
        self.transactions = TransactionRepository(store)
        self.settings = SettingsRepository(store)
        self.users = UserRepository(store)
        self._notifications = notifications

    @property
    def notifications(self) -> NotificationService:
        if self._notifications is None:
            self._notifications = get_notification_service()
        return self._notifications

    async def list_goals(self, user_id: str) -> list[Goal]:
        goals = await self.goals.find(user_id=user_id)
        return sorted(goals, key=lambda goal: goal.name.lower())

    async def get_goal(self, user_id: str, goal_id: str) -> Goal:
        return await self.goals.get_owned(goal_id, user_id)

    async def create_goal(self, user_id: str, data: GoalCreate) -> Goal:
        """
        Raises:
            ValidationError: If the user already has a goal with this name
        """
        if await self.goals.exists_by_name(user_id, data.name):
            raise ValidationError("Goal with this name already exists")

        goal = await self.goals.create(user_id=user_id, **data.model_dump())
        self._log_operation("Goal created", goal_id=goal.id, period=goal.period)
        return goal

    async def update_goal(self, user_id: str, goal_id: str, data: GoalUpdate) -> Goal:
        goal = await self.goals.get_owned(goal_id, user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "name" in changes and changes["name"] != goal.name:
            if await self.goals.exists_by_name(user_id, changes["name"]):
                raise ValidationError("Goal with this name already exists")

        if not changes:
            return goal

        updated = await self.goals.update(goal_id, **changes)
        self._log_operation("Goal updated", goal_id=goal_id, fields=sorted(changes))
        return updated

    async def delete_goal(self, user_id: str, goal_id: str) -> None:
        await self.goals.get_owned(goal_id, user_id)
        await self.goals.delete(goal_id)
        self._log_operation("Goal deleted", goal_id=goal_id)

    async def _linked_chat(self, user_id: str) -> str | None:
        settings = await self.settings.get_by_id_or_none(user_id)
        if settings is not None and settings.telegram_chat_id:
            return settings.telegram_chat_id
        user = await self.users.get_by_email_or_none(user_id)
        return user.chat_id if user is not None and user.chat_id else None

    def _already_alerted(self, goal: Goal, period_start: datetime) -> bool:
        if not goal.last_notified_at:
            return False
        try:
            return parse_datetime(goal.last_notified_at) >= period_start
        except ValueError:
            return False

    async def _send_alert(self, goal: Goal, spent: float, chat_id: str) -> bool:
        result = await self.notifications.send_alert(
            chat_id,
            MessageType.GOAL_ALERT,
            f"You have exceeded your <b>{goal.period}</b> spending goal.",
            data={
                "goal": goal.name,
                "spent": f"{spent:.2f}",
                "limit": f"{goal.limit_amount:.2f}",
            },
        )
        if not result.success:
            self._logger.warning(
                "Goal alert not delivered",
                extra={"goal_id": goal.id, "error": result.error},
            )
            return False

        await self.goals.update(goal.id, last_notified_at=utc_now_iso())
        self._log_operation("Goal alert sent", goal_id=goal.id, chat_id=chat_id)
        return True

    async def get_progress(self, user_id: str, goal_id: str) -> GoalProgress:
        goal = await self.goals.get_owned(goal_id, user_id)
        start, end = period_window(goal.period, utc_now())

        spent = sum(
            abs(t.amount)
            for t in await self.transactions.find(user_id=user_id)
            if t.amount < 0 and start <= transaction_datetime(t) <= end
        )
        is_exceeded = spent > goal.limit_amount

        alert_sent = False
        if (
            is_exceeded
            and goal.notify_telegram
            and get_app_config().features.goal_alerts_enabled
            and not self._already_alerted(goal, start)
        ):
            chat_id = await self._linked_chat(user_id)
            if chat_id:
                alert_sent = await self._send_alert(goal, spent, chat_id)

        return GoalProgress(
            goal=goal,
            current_amount=spent,
            remaining_amount=max(0.0, goal.limit_amount - spent),
            percentage_used=round(spent / goal.limit_amount * 100, 2),
            is_exceeded=is_exceeded,
            period_start=to_iso(start),
            period_end=to_iso(end),
            alert_sent=alert_sent,
        )
