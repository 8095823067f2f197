"""Expense, stock and usage reports for Stockroom."""

import calendar
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from uuid import UUID

from pydantic import BaseModel, Field

from .count_normalizer import is_finite_number
from .financial_ledger import chronological, spent_amount
from .inventory_manager import InventoryManager, ItemStock
from .models import MovementKind, Receipt, utcnow
from .stock_classifier import StockStatus
from .store import StoreProtocol

TOP_ITEMS_LIMIT = 10


class CategorySpending(BaseModel):
    """Spending breakdown for a category."""

    category: str
    total: float
    percentage: float
    receipt_count: int


class ExpenseSummary(BaseModel):
    """Spend over a period, broken down by receipt category."""

    period_start: date | None = None
    period_end: date | None = None
    total_spend: float = 0.0
    receipt_count: int = 0
    top_category: str | None = None
    categories: list[CategorySpending] = Field(default_factory=list)
    receipts: list[Receipt] = Field(default_factory=list)


class StockSummary(BaseModel):
    """Classified stock for the week of the most recent stocktake."""

    count_date: date | None = None
    week_start: date | None = None
    week_end: date | None = None
    total_items: int = 0
    counted_items: int = 0
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    rows: list[ItemStock] = Field(default_factory=list)


class WeeklyUsage(BaseModel):
    week_start: date
    total: float


class ItemUsage(BaseModel):
    item_id: UUID
    item_name: str
    category: str
    total: float


class UsageTrends(BaseModel):
    """Quantity taken out of stock, per week and per item."""

    period_start: date
    period_end: date
    total_usage: float = 0.0
    top_item: str | None = None
    weekly: list[WeeklyUsage] = Field(default_factory=list)
    top_items: list[ItemUsage] = Field(default_factory=list)


def week_bounds(day: date) -> tuple[date, date]:
    """Monday and Sunday of the week containing ``day``."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def month_bounds(day: date) -> tuple[date, date]:
    """First and last day of the month containing ``day``."""
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def _utc_date(value: datetime) -> date:
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(timezone.utc).date()


class ReportManager:
    """Builds read-only reports over receipts, counts and movements."""

    def __init__(self, store: StoreProtocol, inventory: InventoryManager | None = None):
        self.store = store
        self.inventory = inventory or InventoryManager(store)

    def expense_summary(
        self,
        owner_id: str | None,
        start: date | None = None,
        end: date | None = None,
    ) -> ExpenseSummary:
        """Summarize an owner's spend by category.

        With no range the period is the calendar month of the owner's most
        recent receipt; an owner without receipts gets an empty summary.

        Args:
            owner_id: Receipt owner
            start: First receipt date, required together with ``end``
            end: Last receipt date, required together with ``start``

        Returns:
            ExpenseSummary with categories sorted by total, largest first

        Raises:
            ValueError: If only one bound is given or start is after end
        """
        if (start is None) != (end is None):
            raise ValueError("Invalid range: both start and end are required")
        if start is not None and end is not None and start > end:
            raise ValueError("Invalid range: start is after end")

        if start is None:
            receipts = self.store.list_receipts(owner_id=owner_id)
            if not receipts:
                return ExpenseSummary()
            start, end = month_bounds(max(r.receipt_date for r in receipts))

        period_receipts = chronological(
            self.store.list_receipts(owner_id=owner_id, start=start, end=end)
        )

        total_spend = sum(spent_amount(r) for r in period_receipts)
        category_totals: dict[str, float] = defaultdict(float)
        category_counts: dict[str, int] = defaultdict(int)
        for receipt in period_receipts:
            category_totals[receipt.category] += spent_amount(receipt)
            category_counts[receipt.category] += 1

        categories = []
        for cat, total in sorted(category_totals.items(), key=lambda x: x[1], reverse=True):
            pct = (total / total_spend * 100) if total_spend > 0 else 0
            categories.append(
                CategorySpending(
                    category=cat,
                    total=round(total, 2),
                    percentage=round(pct, 1),
                    receipt_count=category_counts[cat],
                )
            )

        return ExpenseSummary(
            period_start=start,
            period_end=end,
            total_spend=round(total_spend, 2),
            receipt_count=len(period_receipts),
            top_category=categories[0].category if categories else None,
            categories=categories,
            receipts=period_receipts,
        )

    def weekly_stock_summary(self) -> StockSummary:
        """Classify active items from the most recent stocktake.

        The period is the Monday-to-Sunday week containing the latest count
        date. Rows are the same classifications ``stock_levels`` returns.
        """
        count_date = self.inventory.latest_count_date()
        rows = self.inventory.stock_levels()
        week_start, week_end = week_bounds(count_date) if count_date else (None, None)

        return StockSummary(
            count_date=count_date,
            week_start=week_start,
            week_end=week_end,
            total_items=len(rows),
            counted_items=sum(1 for row in rows if row.latest_count is not None),
            low_stock_items=sum(1 for row in rows if row.level.status == StockStatus.LOW_STOCK),
            out_of_stock_items=sum(
                1 for row in rows if row.level.status == StockStatus.OUT_OF_STOCK
            ),
            rows=rows,
        )

    def usage_trends(self, weeks: int = 8, now: datetime | None = None) -> UsageTrends:
        """Total "out" movements over recent weeks.

        Args:
            weeks: How many weeks back from ``now`` to include
            now: End of the period (default current time)

        Returns:
            UsageTrends with weekly totals in week order and the top items
        """
        if weeks < 1:
            raise ValueError("weeks must be at least 1")
        now = now or utcnow()
        since = now - timedelta(weeks=weeks)
        period_start, period_end = _utc_date(since), _utc_date(now)

        items = {item.id: item for item in self.store.list_items(active_only=False)}
        weekly_totals: dict[date, float] = defaultdict(float)
        item_totals: dict[UUID, float] = defaultdict(float)
        total_usage = 0.0

        for movement in self.store.list_movements():
            if movement.kind != MovementKind.OUT:
                continue
            day = _utc_date(movement.occurred_at)
            if not period_start <= day <= period_end:
                continue
            qty = float(movement.quantity) if is_finite_number(movement.quantity) else 0.0
            total_usage += qty
            weekly_totals[week_bounds(day)[0]] += qty
            item_totals[movement.item_id] += qty

        top_items = []
        for item_id, total in sorted(item_totals.items(), key=lambda x: x[1], reverse=True)[
            :TOP_ITEMS_LIMIT
        ]:
            item = items.get(item_id)
            top_items.append(
                ItemUsage(
                    item_id=item_id,
                    item_name=item.name if item else "Unknown",
                    category=item.category if item else "Uncategorized",
                    total=total,
                )
            )

        return UsageTrends(
            period_start=period_start,
            period_end=period_end,
            total_usage=total_usage,
            top_item=top_items[0].item_name if top_items else None,
            weekly=[
                WeeklyUsage(week_start=week, total=total)
                for week, total in sorted(weekly_totals.items())
            ],
            top_items=top_items,
        )
