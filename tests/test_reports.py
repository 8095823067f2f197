"""Tests for expense, stock and usage reports."""

from datetime import date, datetime, timedelta, timezone

import pytest

from stockroom.models import MovementKind
from stockroom.receipt_manager import ReceiptInput
from stockroom.reports import month_bounds, week_bounds
from stockroom.stock_classifier import StockStatus


def add_receipt(receipts, owner, day, amount, category="Food"):
    return receipts.add_receipt(
        owner,
        ReceiptInput(
            vendor="Market",
            category=category,
            amount=amount,
            payment_method="Cash",
            receipt_date=day,
        ),
    )


class TestPeriods:
    def test_week_starts_on_monday(self):
        assert week_bounds(date(2024, 3, 15)) == (date(2024, 3, 11), date(2024, 3, 17))
        assert week_bounds(date(2024, 3, 11)) == (date(2024, 3, 11), date(2024, 3, 17))

    def test_month_bounds_leap_february(self):
        assert month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))


class TestExpenseSummary:
    """Tests for spend by category."""

    def test_defaults_to_month_of_latest_receipt(self, reports, receipts):
        add_receipt(receipts, "u1", date(2024, 2, 10), 50)
        add_receipt(receipts, "u1", date(2024, 3, 20), 300, category="Fuel")
        add_receipt(receipts, "u1", date(2024, 3, 5), 40)
        add_receipt(receipts, "u1", date(2024, 3, 1), 100)
        add_receipt(receipts, "u2", date(2024, 3, 3), 999, category="Fuel")

        summary = reports.expense_summary("u1")

        assert summary.period_start == date(2024, 3, 1)
        assert summary.period_end == date(2024, 3, 31)
        assert summary.total_spend == 440
        assert summary.receipt_count == 3
        assert summary.top_category == "Fuel"
        assert [(c.category, c.total, c.percentage) for c in summary.categories] == [
            ("Fuel", 300, 68.2),
            ("Food", 140, 31.8),
        ]
        assert [r.receipt_date.day for r in summary.receipts] == [1, 5, 20]

    def test_custom_range(self, reports, receipts):
        add_receipt(receipts, "u1", date(2024, 2, 10), 50)
        add_receipt(receipts, "u1", date(2024, 3, 1), 100)
        add_receipt(receipts, "u1", date(2024, 3, 20), 300)

        summary = reports.expense_summary("u1", start=date(2024, 2, 1), end=date(2024, 3, 4))

        assert summary.total_spend == 150
        assert summary.receipt_count == 2
        assert summary.period_start == date(2024, 2, 1)

    def test_invalid_range(self, reports):
        with pytest.raises(ValueError):
            reports.expense_summary("u1", start=date(2024, 3, 5), end=date(2024, 3, 1))
        with pytest.raises(ValueError):
            reports.expense_summary("u1", start=date(2024, 3, 5))

    def test_no_receipts(self, reports):
        summary = reports.expense_summary("u1")
        assert summary.period_start is None
        assert summary.total_spend == 0
        assert summary.receipt_count == 0
        assert summary.top_category is None
        assert summary.categories == []


class TestWeeklyStockSummary:
    """Tests for the stocktake summary."""

    def test_summary_of_latest_stocktake(self, reports, inventory, today):
        flour = inventory.add_item("Flour", reorder_level=5)
        sugar = inventory.add_item("Sugar", reorder_level=5)
        oil = inventory.add_item("Oil", reorder_level=2)
        inventory.add_item("Salt", reorder_level=2)
        inventory.record_count(flour.id, "20", count_date=today - timedelta(days=5))
        inventory.record_count(sugar.id, "20", count_date=today)
        inventory.record_count(oil.id, "nil", count_date=today)

        summary = reports.weekly_stock_summary()

        assert summary.count_date == today
        assert summary.week_start == date(2024, 3, 11)
        assert summary.week_end == date(2024, 3, 17)
        assert summary.total_items == 4
        assert summary.counted_items == 2
        assert summary.low_stock_items == 2
        assert summary.out_of_stock_items == 1
        by_name = {row.item.name: row.level.status for row in summary.rows}
        assert by_name["Flour"] == StockStatus.LOW_STOCK
        assert by_name["Sugar"] == StockStatus.IN_STOCK

    def test_no_counts(self, reports, inventory):
        inventory.add_item("Flour", reorder_level=5)
        summary = reports.weekly_stock_summary()
        assert summary.count_date is None
        assert summary.week_start is None
        assert summary.total_items == 1
        assert summary.counted_items == 0


class TestUsageTrends:
    """Tests for usage from "out" movements."""

    def test_weekly_and_top_items(self, reports, inventory, now):
        rice = inventory.add_item("Rice", category="Dry goods")
        oil = inventory.add_item("Oil", category="Cooking")
        inventory.record_movement(rice.id, MovementKind.OUT, 3, occurred_at=datetime(2024, 3, 12, tzinfo=timezone.utc))
        inventory.record_movement(rice.id, MovementKind.OUT, 2, occurred_at=datetime(2024, 3, 4, tzinfo=timezone.utc))
        inventory.record_movement(oil.id, MovementKind.OUT, 4, occurred_at=datetime(2024, 3, 13, tzinfo=timezone.utc))
        inventory.record_movement(oil.id, MovementKind.IN, 10, occurred_at=datetime(2024, 3, 13, tzinfo=timezone.utc))
        inventory.record_movement(rice.id, MovementKind.OUT, 100, occurred_at=datetime(2024, 1, 1, tzinfo=timezone.utc))

        trends = reports.usage_trends(weeks=8, now=now)

        assert trends.period_start == date(2024, 1, 19)
        assert trends.period_end == date(2024, 3, 15)
        assert trends.total_usage == 9
        assert [(w.week_start, w.total) for w in trends.weekly] == [
            (date(2024, 3, 4), 2),
            (date(2024, 3, 11), 7),
        ]
        assert [(i.item_name, i.category, i.total) for i in trends.top_items] == [
            ("Rice", "Dry goods", 5),
            ("Oil", "Cooking", 4),
        ]
        assert trends.top_item == "Rice"

    def test_no_usage(self, reports, now):
        trends = reports.usage_trends(now=now)
        assert trends.total_usage == 0
        assert trends.top_item is None
        assert trends.weekly == []

    def test_weeks_must_be_positive(self, reports, now):
        with pytest.raises(ValueError):
            reports.usage_trends(weeks=0, now=now)
