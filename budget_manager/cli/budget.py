"""
Budget Workspace.

The budget screen's data flow, driven over the API:

1. Load budgets (newest first) and select one.
2. Save the month's income only when it changed: update the month's budget,
   or create one if none exists.
3. Load the selected budget's items. Spreadsheet reads right after a write
   may come back empty, so an empty list is fetched once more after a delay.
"""

import asyncio
import html
from dataclasses import dataclass
from typing import Any

from budget_manager.backend.core.config import get_app_config
from budget_manager.backend.core.logging import get_logger, log_with_source
from budget_manager.cli.client import APIClient

logger = get_logger(__name__)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class WorkspaceError(Exception):
    """A workspace step cannot proceed (no budget selected, Telegram not linked)."""


@dataclass
class ItemView:
    """One budget item as the budget screen shows it."""

    id: str
    name: str
    cost: float
    spent: float
    status: str

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "ItemView":
        spent = _number(item.get("spent"))
        return cls(
            id=item["id"],
            name=item.get("category_name", ""),
            cost=_number(item.get("amount")),
            spent=spent,
            status="Spent" if spent > 0 else "Not Yet",
        )


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _money(value: float) -> str:
    return f"{value:,.2f}"


def format_budget_summary(budget: dict[str, Any], items: list[ItemView]) -> str:
    """Render a budget and its items as Telegram HTML."""
    month = int(budget["month"])
    income = _number(budget.get("income"))
    planned = sum(item.cost for item in items)
    spent = sum(item.spent for item in items)

    lines = [
        f"<b>{MONTH_NAMES[month - 1]} {budget['year']}</b>",
        f"Income: {_money(income)}",
        f"Planned: {_money(planned)}",
        f"Spent: {_money(spent)}",
        f"Left to plan: {_money(income - planned)}",
    ]
    if items:
        lines.append("")
        for item in items:
            mark = "✅" if item.status == "Spent" else "⏳"
            lines.append(f"{mark} {html.escape(item.name)}: {_money(item.spent)} / {_money(item.cost)}")
    return "\n".join(lines)


class BudgetWorkspace:
    def __init__(self, client: APIClient, retry_delay: float | None = None) -> None:
        self.client = client
        if retry_delay is None:
            retry_delay = get_app_config().resilience.read_after_write.retry_delay_seconds
        self.retry_delay = retry_delay
        self.budgets: list[dict[str, Any]] = []
        self.selected: dict[str, Any] | None = None
        self.items: list[ItemView] = []

    async def load_budgets(self, year: int | None = None, month: int | None = None) -> list[dict[str, Any]]:
        """Fetch budgets (newest first). Selects the newest when nothing is selected yet."""
        params = {key: value for key, value in (("year", year), ("month", month)) if value is not None}
        self.budgets = await self.client.call("GET", "/budgets", params=params) or []
        if self.budgets and self.selected is None:
            self.selected = self.budgets[0]
        return self.budgets

    def find_budget(self, year: int, month: int) -> dict[str, Any] | None:
        for budget in self.budgets:
            if int(budget["year"]) == year and int(budget["month"]) == month:
                return budget
        return None

    def select(self, year: int, month: int) -> dict[str, Any] | None:
        self.selected = self.find_budget(year, month)
        return self.selected

    async def save_income(self, year: int, month: int, income: float) -> dict[str, Any]:
        """
        Persist the month's income if it differs from what is stored.

        Updates the month's budget, or creates one when the month has none.
        The saved budget becomes the selection.
        """
        budget = self.find_budget(year, month)

        if budget is not None and _number(budget.get("income")) == income:
            self.selected = budget
            return budget

        if budget is not None:
            saved = await self.client.call("PUT", f"/budgets/{budget['id']}", json={"income": income})
            log_with_source(logger, "cli", "info", "Budget income updated", budget_id=budget["id"], income=income)
        else:
            saved = await self.client.call("POST", "/budgets", json={"year": year, "month": month, "income": income})
            log_with_source(logger, "cli", "info", "Budget created", budget_id=saved["id"], year=year, month=month)

        self.budgets = [saved] + [b for b in self.budgets if b["id"] != saved["id"]]
        self.budgets.sort(key=lambda b: (int(b["year"]), int(b["month"])), reverse=True)
        self.selected = saved
        return saved

    async def _fetch_items(self, budget_id: str) -> list[dict[str, Any]]:
        return await self.client.call("GET", "/budgets/items", params={"budget_id": budget_id}) or []

    async def load_items(self, budget_id: str | None = None) -> list[ItemView]:
        """
        Load the items of a budget (the selected one by default).

        An empty first read is retried exactly once after `retry_delay`.
        """
        if budget_id is None:
            if self.selected is None:
                self.items = []
                return self.items
            budget_id = self.selected["id"]

        items = await self._fetch_items(budget_id)
        if not items:
            log_with_source(
                logger, "cli", "debug", "No budget items yet, retrying once",
                budget_id=budget_id, delay=self.retry_delay,
            )
            await asyncio.sleep(self.retry_delay)
            items = await self._fetch_items(budget_id)

        self.items = [ItemView.from_item(item) for item in items]
        return self.items

    def summary(self) -> str:
        if self.selected is None:
            raise WorkspaceError("No budget selected")
        return format_budget_summary(self.selected, self.items)

    async def send_summary_to_telegram(self) -> dict[str, Any]:
        """
        Send the selected budget's summary to the user's linked Telegram chat.

        Raises:
            WorkspaceError: If no budget is selected or Telegram is not linked
        """
        text = self.summary()
        status = await self.client.call("GET", "/telegram/connection-status")
        if not status or not status.get("is_connected") or not status.get("chat_id"):
            raise WorkspaceError("Telegram is not connected")

        return await self.client.call(
            "POST",
            "/telegram/send",
            json={"chat_id": str(status["chat_id"]), "payload": {"type": "custom", "message": text}},
        )
