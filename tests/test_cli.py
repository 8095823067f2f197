"""Tests for CLI commands."""

import json

from typer.testing import CliRunner

from stockroom.main import app

runner = CliRunner()


def invoke(data_dir, *args, user="u1"):
    return runner.invoke(app, ["--json", "--data-dir", str(data_dir), "--user", user, *args])


def invoke_json(data_dir, *args, user="u1"):
    result = invoke(data_dir, *args, user=user)
    assert result.exit_code == 0, result.stdout
    return json.loads(result.stdout)


def add_item(data_dir, name, *options):
    return invoke_json(data_dir, "items", "add", name, *options)["data"]["item"]["id"]


class TestItemsCommands:
    """Tests for the items sub-commands."""

    def test_add_and_list(self, temp_data_dir):
        data = invoke_json(temp_data_dir, "items", "add", "Rice", "--unit", "kg", "--reorder", "5")
        assert data["success"] is True
        assert data["data"]["item"]["name"] == "Rice"
        assert data["data"]["item"]["reorder_level"] == 5

        listed = invoke_json(temp_data_dir, "items", "list")
        assert [i["name"] for i in listed["data"]["items"]] == ["Rice"]

    def test_remove_hides_item(self, temp_data_dir):
        item_id = add_item(temp_data_dir, "Rice")
        invoke_json(temp_data_dir, "items", "remove", item_id)

        assert invoke_json(temp_data_dir, "items", "list")["data"]["items"] == []
        assert len(invoke_json(temp_data_dir, "items", "list", "--all")["data"]["items"]) == 1

    def test_unknown_item(self, temp_data_dir):
        result = invoke(temp_data_dir, "items", "remove", "00000000-0000-0000-0000-000000000000")
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["success"] is False
        assert data["error_code"] == "ITEM_NOT_FOUND"

    def test_malformed_id(self, temp_data_dir):
        result = invoke(temp_data_dir, "items", "remove", "not-a-uuid")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_INPUT"


class TestStockCommands:
    def test_count_and_levels(self, temp_data_dir):
        rice = add_item(temp_data_dir, "Rice", "--reorder", "5")
        oil = add_item(temp_data_dir, "Oil", "--reorder", "2")
        invoke_json(temp_data_dir, "stock", "count", rice, "2 pkts", "--date", "2024-03-15")
        invoke_json(temp_data_dir, "stock", "count", oil, "nil", "--date", "2024-03-15")

        levels = invoke_json(temp_data_dir, "stock", "levels")["data"]["levels"]
        by_name = {level["item_name"]: level for level in levels}
        assert by_name["Rice"]["status"] == "low-stock"
        assert by_name["Rice"]["quantity"] == 2
        assert by_name["Oil"]["status"] == "out-of-stock"
        assert by_name["Oil"]["is_urgent"] is True

    def test_movements_and_valuation(self, temp_data_dir):
        oil = add_item(temp_data_dir, "Oil", "--unit", "L")
        invoke_json(temp_data_dir, "stock", "move", oil, "in", "10", "--cost", "300")
        invoke_json(temp_data_dir, "stock", "count", oil, "4 L")

        [position] = invoke_json(temp_data_dir, "stock", "positions")["data"]["positions"]
        assert position["quantity"] == 10
        valuation = invoke_json(temp_data_dir, "stock", "valuation")["data"]
        assert valuation["total"] == 1200

    def test_negative_in_movement_rejected(self, temp_data_dir):
        oil = add_item(temp_data_dir, "Oil")
        result = invoke(temp_data_dir, "stock", "move", oil, "in", "--", "-1")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_INPUT"


class TestReceiptCommands:
    """Tests for receipts and review status."""

    def test_add_list_and_balance(self, temp_data_dir):
        invoke_json(
            temp_data_dir,
            "receipts", "add", "--vendor", "Market", "--amount", "200",
            "--received", "1000", "--date", "2024-01-01",
        )
        invoke_json(
            temp_data_dir,
            "receipts", "add", "--data",
            json.dumps({
                "vendor": "Kiosk",
                "category": "Food",
                "amount": 100,
                "payment_method": "Cash",
                "receipt_date": "2024-01-02",
                "amount_received": 0,
            }),
        )

        receipts = invoke_json(temp_data_dir, "receipts", "list")["data"]["receipts"]
        assert [r["balance"] for r in receipts] == [700, 800]
        assert invoke_json(temp_data_dir, "receipts", "balance")["data"]["balance"] == 700
        assert invoke_json(temp_data_dir, "receipts", "balance", user="u2")["data"]["balance"] == 0

    def test_invalid_json(self, temp_data_dir):
        result = invoke(temp_data_dir, "receipts", "add", "--data", "{nope")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_INPUT"

    def test_status_requires_admin(self, temp_data_dir):
        receipt = invoke_json(temp_data_dir, "receipts", "add", "--vendor", "Market", "--amount", "50")
        receipt_id = receipt["data"]["receipt"]["id"]

        denied = invoke(temp_data_dir, "receipts", "status", receipt_id, "Verified")
        assert denied.exit_code == 1
        assert json.loads(denied.stdout)["error_code"] == "PERMISSION_DENIED"

        invoke_json(temp_data_dir, "team", "set-role", "boss", "admin", user="boss")
        verified = invoke_json(temp_data_dir, "receipts", "status", receipt_id, "Verified", user="boss")
        assert verified["data"]["receipt"]["status"] == "Verified"

        reopened = invoke(temp_data_dir, "receipts", "status", receipt_id, "Pending", user="boss")
        assert json.loads(reopened.stdout)["error_code"] == "INVALID_TRANSITION"


class TestShoppingCommands:
    def test_set_and_done(self, temp_data_dir):
        flour = add_item(temp_data_dir, "Flour", "--unit", "kg", "--reorder", "10")
        invoke_json(temp_data_dir, "stock", "count", flour, "2", "--date", "2024-03-10")

        shown = invoke_json(temp_data_dir, "shopping", "set", flour, "3", "--price", "150")["data"]
        assert shown["total"] == 450
        assert shown["rows"][0]["desired_qty"] == 3

        completion = invoke_json(temp_data_dir, "shopping", "done", "--date", "2024-03-15")["data"]["completion"]
        assert completion["shopping_list"]["status"] == "done"
        assert [r["raw_value"] for r in completion["count_results"]] == ["5 kg"]

        counts = invoke_json(temp_data_dir, "stock", "counts", "--from", "2024-03-15")["data"]["counts"]
        assert [c["raw_value"] for c in counts] == ["5 kg"]

        history = invoke_json(temp_data_dir, "shopping", "history", "--status", "done")
        list_id = history["data"]["shopping_lists"][0]["id"]
        entries = invoke_json(temp_data_dir, "shopping", "entries", list_id)["data"]["entries"]
        assert entries[0]["item_name"] == "Flour"

    def test_remove_from_list(self, temp_data_dir):
        rice = add_item(temp_data_dir, "Rice", "--reorder", "5")
        shown = invoke_json(temp_data_dir, "shopping", "remove", rice)["data"]
        assert shown["rows"] == []


class TestReportCommands:
    """Tests for the reports sub-commands."""

    def test_expenses(self, temp_data_dir):
        for day, amount, category in (("2024-03-01", "100", "Food"), ("2024-03-09", "250", "Fuel")):
            invoke_json(
                temp_data_dir,
                "receipts", "add", "--vendor", "Market", "--amount", amount,
                "--category", category, "--date", day,
            )

        summary = invoke_json(temp_data_dir, "reports", "expenses")["data"]["expense_summary"]
        assert summary["period_start"] == "2024-03-01"
        assert summary["period_end"] == "2024-03-31"
        assert summary["total_spend"] == 350
        assert summary["top_category"] == "Fuel"

    def test_expenses_half_range_rejected(self, temp_data_dir):
        result = invoke(temp_data_dir, "reports", "expenses", "--from", "2024-03-01")
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error_code"] == "INVALID_INPUT"

    def test_stock(self, temp_data_dir):
        flour = add_item(temp_data_dir, "Flour", "--reorder", "5")
        sugar = add_item(temp_data_dir, "Sugar", "--reorder", "5")
        invoke_json(temp_data_dir, "stock", "count", flour, "20", "--date", "2024-03-10")
        invoke_json(temp_data_dir, "stock", "count", sugar, "20", "--date", "2024-03-15")

        summary = invoke_json(temp_data_dir, "reports", "stock")["data"]["stock_summary"]
        assert summary["week_start"] == "2024-03-11"
        assert summary["counted_items"] == 1
        assert summary["low_stock_items"] == 1
        by_name = {row["item_name"]: row for row in summary["rows"]}
        assert by_name["Flour"]["status"] == "low-stock"
        assert by_name["Flour"]["raw_value"] is None

    def test_usage(self, temp_data_dir):
        rice = add_item(temp_data_dir, "Rice")
        invoke_json(temp_data_dir, "stock", "move", rice, "out", "3")

        usage = invoke_json(temp_data_dir, "reports", "usage")["data"]["usage"]
        assert usage["total_usage"] == 3
        assert usage["top_item"] == "Rice"


class TestNotificationCommands:
    def test_list_and_read_all(self, temp_data_dir):
        rice = add_item(temp_data_dir, "Rice", "--reorder", "5")
        invoke_json(temp_data_dir, "stock", "count", rice, "1")

        data = invoke_json(temp_data_dir, "notifications", "list")["data"]
        assert data["unread"] == 1
        assert data["notifications"][0]["key"] == f"low-{rice}"

        invoke_json(temp_data_dir, "notifications", "read", "--all")
        assert invoke_json(temp_data_dir, "notifications", "list")["data"]["unread"] == 0
