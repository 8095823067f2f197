"""Tests for output formatting."""

import json
import re
from datetime import date, datetime
from io import StringIO
from uuid import uuid4

import pytest
from rich.console import Console

from stockroom.output_formatter import JSONEncoder, OutputFormatter


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    ansi_escape = re.compile(r"\x1b\[[0-9;]*m")
    return ansi_escape.sub("", text)


@pytest.fixture
def rich_formatter():
    formatter = OutputFormatter(json_mode=False, currency="KES")
    formatter.console = Console(file=StringIO(), force_terminal=True, width=120)
    return formatter


def rendered(formatter: OutputFormatter) -> str:
    return strip_ansi(formatter.console.file.getvalue())


class TestJSONEncoder:
    """Tests for JSONEncoder."""

    def test_encode_uuid(self):
        test_id = uuid4()
        assert str(test_id) in json.dumps({"id": test_id}, cls=JSONEncoder)

    def test_encode_datetime_and_date(self):
        result = json.dumps({"at": datetime(2024, 1, 15, 10, 30), "on": date(2024, 1, 15)}, cls=JSONEncoder)
        assert "2024-01-15T10:30:00" in result
        assert '"2024-01-15"' in result

    def test_encode_fallback(self):
        """Non-special types raise TypeError."""
        with pytest.raises(TypeError):
            json.dumps({"bad": object()}, cls=JSONEncoder)


class TestOutputFormatterJSON:
    """Tests for JSON output mode."""

    def test_json_mode_output(self, capsys):
        formatter = OutputFormatter(json_mode=True)
        formatter.output({"success": True, "data": {"balance": 12.5}})
        data = json.loads(capsys.readouterr().out)
        assert data["data"]["balance"] == 12.5

    def test_json_error(self, capsys):
        formatter = OutputFormatter(json_mode=True)
        formatter.error("Something went wrong", error_code="STORE_ERROR")
        data = json.loads(capsys.readouterr().out)
        assert data == {"success": False, "error": "Something went wrong", "error_code": "STORE_ERROR"}

    def test_json_success(self, capsys):
        formatter = OutputFormatter(json_mode=True)
        formatter.success("Done", data={"id": uuid4()})
        data = json.loads(capsys.readouterr().out)
        assert data["message"] == "Done"
        assert "id" in data["data"]


class TestOutputFormatterRich:
    """Tests for Rich output mode."""

    def test_money(self):
        assert OutputFormatter(currency="KES").money(1234.5) == "KES 1,234.50"
        assert OutputFormatter(currency="USD").money(None) == "USD 0.00"

    def test_render_levels(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "levels": [
                        {
                            "item_name": "Rice",
                            "raw_value": "2 pkts",
                            "reorder_level": 5,
                            "status": "low-stock",
                            "count_date": "2024-03-15",
                        },
                        {
                            "item_name": "Oil",
                            "raw_value": None,
                            "reorder_level": None,
                            "status": "low-stock",
                            "count_date": None,
                        },
                    ]
                },
            }
        )
        output = rendered(rich_formatter)
        assert "2 pkts" in output
        assert "none" in output
        assert "low-stock" in output

    def test_render_receipts(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "receipts": [
                        {
                            "receipt_date": "2024-01-02",
                            "vendor": "Market",
                            "category": "Food",
                            "amount": 100,
                            "amount_received": 0,
                            "balance": 700,
                            "status": "Pending",
                        }
                    ]
                },
            }
        )
        output = rendered(rich_formatter)
        assert "Market" in output
        assert "KES 700.00" in output

    def test_render_shopping_rows(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "title": "Shopping List - 2024-03-15",
                    "rows": [
                        {
                            "item_name": "Foil",
                            "category": "Kitchen",
                            "status": "in-stock",
                            "current_qty": 4,
                            "unit": "pcs",
                            "desired_qty": 2,
                            "unit_price": 80,
                            "source": "manual",
                        }
                    ],
                    "total": 160,
                },
            },
            "Saved",
        )
        output = rendered(rich_formatter)
        assert "Saved" in output
        assert "(manual)" in output
        assert "Estimated total: KES 160.00" in output

    def test_render_empty_shopping_list(self, rich_formatter):
        rich_formatter.output({"success": True, "data": {"title": "Weekly", "rows": [], "total": 0}})
        assert "Weekly: nothing to buy" in rendered(rich_formatter)

    def test_render_completion_failures(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "completion": {
                        "shopping_list": {"title": "Weekly"},
                        "count_results": [
                            {"item_name": "Rice", "success": True},
                            {"item_name": "Oil", "success": False, "error": "disk full"},
                        ],
                        "overrides_cleared": False,
                        "total": 10,
                    }
                },
            }
        )
        output = rendered(rich_formatter)
        assert "Recorded 1 stock counts" in output
        assert "Oil: disk full" in output
        assert "could not be cleared" in output

    def test_render_notifications(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "notifications": [
                        {
                            "key": "low-1",
                            "type": "alert",
                            "title": "Out of stock",
                            "message": "Oil - 0 remaining (as of Mar 15, 2024).",
                            "severity": "out",
                            "read": False,
                        }
                    ]
                },
            }
        )
        output = rendered(rich_formatter)
        assert "Oil - 0 remaining" in output
        assert "low-1" in output

    def test_quantities_drop_trailing_zero(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "valuation": [
                        {"item_name": "Oil", "quantity": 4.0, "unit": "L", "unit_cost": 250, "value": 1000},
                        {"item_name": "Rice", "quantity": 2.5, "unit": "kg", "unit_cost": None, "value": 0},
                        {"item_name": "Salt", "quantity": None, "unit": "kg", "unit_cost": None, "value": 0},
                    ],
                    "total": 1000,
                },
            }
        )
        output = rendered(rich_formatter)
        assert "4 L" in output
        assert "4.0 L" not in output
        assert "2.5 kg" in output
        assert "? kg" in output

    def test_render_expense_summary(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "expense_summary": {
                        "period_start": "2024-03-01",
                        "period_end": "2024-03-31",
                        "total_spend": 440,
                        "receipt_count": 3,
                        "top_category": "Fuel",
                        "categories": [
                            {"category": "Fuel", "total": 300, "percentage": 68.2, "receipt_count": 1},
                            {"category": "Food", "total": 140, "percentage": 31.8, "receipt_count": 2},
                        ],
                        "receipts": [],
                    }
                },
            }
        )
        output = rendered(rich_formatter)
        assert "Total spend: KES 440.00 across 3 receipts" in output
        assert "Top category: Fuel" in output
        assert "68.2%" in output

    def test_render_empty_expense_summary(self, rich_formatter):
        rich_formatter.output(
            {"success": True, "data": {"expense_summary": {"period_start": None, "categories": []}}}
        )
        assert "No receipts" in rendered(rich_formatter)

    def test_render_stock_summary(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "stock_summary": {
                        "count_date": "2024-03-15",
                        "week_start": "2024-03-11",
                        "week_end": "2024-03-17",
                        "total_items": 2,
                        "counted_items": 1,
                        "low_stock_items": 1,
                        "out_of_stock_items": 0,
                        "rows": [
                            {
                                "item_name": "Flour",
                                "raw_value": None,
                                "reorder_level": 5,
                                "status": "low-stock",
                                "count_date": None,
                            }
                        ],
                    }
                },
            }
        )
        output = rendered(rich_formatter)
        assert "Week of 2024-03-11 to 2024-03-17" in output
        assert "Low: 1" in output
        assert "Flour" in output

    def test_render_usage(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "usage": {
                        "period_start": "2024-01-19",
                        "period_end": "2024-03-15",
                        "total_usage": 9.0,
                        "top_item": "Rice",
                        "weekly": [{"week_start": "2024-03-11", "total": 7.0}],
                        "top_items": [
                            {"item_id": "x", "item_name": "Rice", "category": "Dry goods", "total": 5.0}
                        ],
                    }
                },
            }
        )
        output = rendered(rich_formatter)
        assert "9 total" in output
        assert "2024-03-11" in output
        assert "Dry goods" in output

    def test_rich_error_output(self, rich_formatter):
        rich_formatter.error("Test error message")
        assert "Test error message" in rendered(rich_formatter)
