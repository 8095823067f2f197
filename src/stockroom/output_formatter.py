"""Output formatting for CLI and programmatic use."""

import json
from datetime import date, datetime
from typing import Any
from uuid import UUID

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .count_normalizer import format_quantity

STATUS_STYLES = {
    "in-stock": "green",
    "low-stock": "yellow",
    "out-of-stock": "red",
    "Pending": "yellow",
    "Verified": "green",
    "Flagged": "red",
}


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for output."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


def _qty(value: Any) -> str:
    return "?" if value is None else format_quantity(float(value))


class OutputFormatter:
    """Formats output for both Rich terminal and JSON modes."""

    def __init__(self, json_mode: bool = False, currency: str = "KES"):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
            currency: Currency code shown with money amounts
        """
        self.json_mode = json_mode
        self.currency = currency
        self.console = Console()

    def money(self, value: float | None) -> str:
        return f"{self.currency} {value or 0:,.2f}"

    def output(self, data: dict[str, Any], message: str = "") -> None:
        """Output data in appropriate format.

        Args:
            data: Data to output
            message: Optional message for Rich mode
        """
        if self.json_mode:
            self._output_json(data)
        else:
            self._output_rich(data, message)

    def _output_json(self, data: dict[str, Any]) -> None:
        """Output as JSON to stdout."""
        print(json.dumps(data, cls=JSONEncoder, indent=2))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        """Output with Rich formatting."""
        if message:
            self.console.print(f"[green]✓[/green] {message}")

        payload = data.get("data", {})
        if "item" in payload:
            self._render_item(payload["item"])
        elif "items" in payload:
            self._render_items(payload["items"])
        elif "levels" in payload:
            self._render_levels(payload["levels"])
        elif "positions" in payload:
            self._render_positions(payload["positions"])
        elif "valuation" in payload:
            self._render_valuation(payload)
        elif "counts" in payload:
            self._render_counts(payload["counts"])
        elif "receipt" in payload:
            self._render_receipt(payload["receipt"])
        elif "receipts" in payload:
            self._render_receipts(payload["receipts"])
        elif "balance" in payload:
            self.console.print(f"Current balance: [bold]{self.money(payload['balance'])}[/bold]")
        elif "rows" in payload:
            self._render_shopping_rows(payload)
        elif "completion" in payload:
            self._render_completion(payload["completion"])
        elif "shopping_lists" in payload:
            self._render_shopping_lists(payload["shopping_lists"])
        elif "entries" in payload:
            self._render_entries(payload["entries"])
        elif "occurrences" in payload:
            self._render_occurrences(payload["occurrences"])
        elif "notifications" in payload:
            self._render_notifications(payload["notifications"])
        elif "expense_summary" in payload:
            self._render_expense_summary(payload["expense_summary"])
        elif "stock_summary" in payload:
            self._render_stock_summary(payload["stock_summary"])
        elif "usage" in payload:
            self._render_usage(payload["usage"])

    def _render_item(self, item: dict) -> None:
        """Render a single item with Rich."""
        reorder = item.get("reorder_level")
        panel_content = f"""[bold]{item["name"]}[/bold]

Unit: {item.get("unit", "pcs")}
Category: {item.get("category", "Uncategorized")}
Reorder level: {_qty(reorder) if reorder is not None else "Not set"}
Active: {"yes" if item.get("is_active", True) else "no"}"""

        self.console.print(Panel(panel_content, title="Item Details", border_style="green"))

    def _render_items(self, items: list[dict]) -> None:
        if not items:
            self.console.print("[dim]No items[/dim]")
            return

        table = Table(title="Items", show_header=True, header_style="bold cyan")
        table.add_column("Item", style="cyan")
        table.add_column("Category", style="yellow")
        table.add_column("Unit")
        table.add_column("Reorder", justify="right")
        table.add_column("ID", style="dim")

        for item in items:
            reorder = item.get("reorder_level")
            table.add_row(
                item["name"],
                item.get("category", ""),
                item.get("unit", ""),
                _qty(reorder) if reorder is not None else "-",
                str(item["id"])[:8],
            )

        self.console.print(table)
        self.console.print(f"\nTotal items: {len(items)}")

    def _render_levels(self, levels: list[dict]) -> None:
        """Render classified stock levels."""
        if not levels:
            self.console.print("[dim]No items[/dim]")
            return

        table = Table(title="Stock Levels", show_header=True, header_style="bold")
        table.add_column("Item")
        table.add_column("Count", justify="right")
        table.add_column("Reorder", justify="right")
        table.add_column("Status")
        table.add_column("Counted")

        for level in levels:
            status = level["status"]
            style = STATUS_STYLES.get(status, "white")
            count = level.get("raw_value")
            table.add_row(
                level["item_name"],
                count if count else "[dim]none[/dim]",
                _qty(level["reorder_level"]) if level.get("reorder_level") is not None else "-",
                f"[{style}]{status}[/{style}]",
                level.get("count_date") or "-",
            )

        self.console.print(table)

    def _render_positions(self, positions: list[dict]) -> None:
        table = Table(title="Stock Positions", show_header=True, header_style="bold")
        table.add_column("Item")
        table.add_column("Quantity", justify="right")
        table.add_column("Value", justify="right")

        for position in positions:
            table.add_row(
                position["item_name"],
                _qty(position["quantity"]),
                self.money(position["total_value"]),
            )

        self.console.print(table)

    def _render_valuation(self, payload: dict) -> None:
        """Render inventory valuation with a total."""
        table = Table(title="Inventory Valuation", show_header=True, header_style="bold")
        table.add_column("Item")
        table.add_column("Qty", justify="right")
        table.add_column("Unit cost", justify="right")
        table.add_column("Value", justify="right", style="green")

        for row in payload["valuation"]:
            table.add_row(
                row["item_name"],
                f"{_qty(row['quantity'])} {row['unit']}",
                self.money(row["unit_cost"]) if row.get("unit_cost") is not None else "-",
                self.money(row["value"]),
            )

        self.console.print(table)
        self.console.print(f"\n[bold]Total value:[/bold] {self.money(payload.get('total', 0))}")

    def _render_counts(self, counts: list[dict]) -> None:
        if not counts:
            self.console.print("[dim]No stock counts[/dim]")
            return

        table = Table(title="Stock Counts", show_header=True, header_style="bold")
        table.add_column("Date")
        table.add_column("Item")
        table.add_column("Count", justify="right")
        table.add_column("Source", style="dim")

        for count in counts:
            table.add_row(
                count["count_date"],
                count.get("item_name") or str(count["item_id"])[:8],
                count["raw_value"],
                count.get("source", ""),
            )

        self.console.print(table)

    def _render_receipt(self, receipt: dict) -> None:
        """Render receipt summary with Rich."""
        content = f"""[bold]{receipt["vendor"]}[/bold]

Date: {receipt["receipt_date"]}
Category: {receipt["category"]}
Amount: {self.money(receipt["amount"])}
Received: {self.money(receipt.get("amount_received"))}
Payment: {receipt["payment_method"]}
Status: {receipt["status"]}"""

        if receipt.get("balance") is not None:
            content += f"\nBalance: {self.money(receipt['balance'])}"
        if receipt.get("reference"):
            content += f"\nReference: {receipt['reference']}"

        self.console.print(Panel(content, title="Receipt", border_style="green"))

    def _render_receipts(self, receipts: list[dict]) -> None:
        """Render receipts with running balances, newest first."""
        if not receipts:
            self.console.print("[dim]No receipts[/dim]")
            return

        table = Table(title="Receipts", show_header=True, header_style="bold cyan")
        table.add_column("Date")
        table.add_column("Vendor", style="cyan")
        table.add_column("Category", style="yellow")
        table.add_column("Spent", justify="right", style="red")
        table.add_column("Received", justify="right", style="green")
        table.add_column("Balance", justify="right", style="bold")
        table.add_column("Status")

        for receipt in receipts:
            style = STATUS_STYLES.get(receipt["status"], "white")
            table.add_row(
                receipt["receipt_date"],
                receipt["vendor"],
                receipt["category"],
                self.money(receipt["amount"]),
                self.money(receipt.get("amount_received")),
                self.money(receipt.get("balance")),
                f"[{style}]{receipt['status']}[/{style}]",
            )

        self.console.print(table)

    def _render_shopping_rows(self, payload: dict) -> None:
        """Render the reconciled shopping list."""
        rows = payload["rows"]
        title = payload.get("title") or "Shopping List"

        if not rows:
            self.console.print(f"[dim]{title}: nothing to buy[/dim]")
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Item", style="cyan")
        table.add_column("Category", style="yellow")
        table.add_column("Status")
        table.add_column("Current", justify="right")
        table.add_column("Qty to buy", justify="right", style="magenta")
        table.add_column("Unit price", justify="right")
        table.add_column("Amount", justify="right", style="green")

        for row in rows:
            style = STATUS_STYLES.get(row["status"], "white")
            name = row["item_name"] + (" [dim](manual)[/dim]" if row.get("source") == "manual" else "")
            table.add_row(
                name,
                row["category"],
                f"[{style}]{row['status']}[/{style}]",
                f"{_qty(row['current_qty'])} {row['unit']}",
                _qty(row["desired_qty"]),
                self.money(row["unit_price"]),
                self.money(row["desired_qty"] * row["unit_price"]),
            )

        self.console.print(table)
        self.console.print(f"\n[bold]Estimated total:[/bold] {self.money(payload.get('total', 0))}")

    def _render_completion(self, completion: dict) -> None:
        results = completion.get("count_results", [])
        failed = [r for r in results if not r["success"]]
        self.console.print(
            f"Recorded {len(results) - len(failed)} stock counts from "
            f"'{completion['shopping_list']['title']}' "
            f"(total {self.money(completion.get('total', 0))})"
        )
        if failed:
            self.console.print(f"\n[yellow]Count manually ({len(failed)}):[/yellow]")
            for result in failed:
                self.console.print(f"  - {result['item_name']}: {result.get('error')}")
        if not completion.get("overrides_cleared", True):
            self.console.print("[yellow]Shopping list edits could not be cleared[/yellow]")

    def _render_shopping_lists(self, lists: list[dict]) -> None:
        if not lists:
            self.console.print("[dim]No shopping lists[/dim]")
            return

        table = Table(title="Shopping Lists", show_header=True, header_style="bold")
        table.add_column("Title")
        table.add_column("Status")
        table.add_column("Created")
        table.add_column("Completed")
        table.add_column("ID", style="dim")

        for shopping_list in lists:
            table.add_row(
                shopping_list["title"],
                shopping_list["status"],
                shopping_list["created_at"][:10],
                (shopping_list.get("completed_at") or "-")[:10],
                str(shopping_list["id"])[:8],
            )

        self.console.print(table)

    def _render_entries(self, entries: list[dict]) -> None:
        if not entries:
            self.console.print("[dim]No entries on this list[/dim]")
            return

        table = Table(title="List Entries", show_header=True, header_style="bold")
        table.add_column("Item")
        table.add_column("Status")
        table.add_column("Qty", justify="right")
        table.add_column("Unit price", justify="right")

        for entry in entries:
            table.add_row(
                entry["item_name"],
                entry["status"],
                f"{_qty(entry['desired_qty'])} {entry['unit']}",
                self.money(entry["unit_price"]),
            )

        self.console.print(table)

    def _render_occurrences(self, occurrences: list[dict]) -> None:
        """Render reminder occurrences."""
        if not occurrences:
            self.console.print("[dim]No reminders due[/dim]")
            return

        table = Table(title="Reminders", show_header=True, header_style="bold")
        table.add_column("When")
        table.add_column("Title", style="cyan")
        table.add_column("Repeats")

        for occurrence in occurrences:
            reminder = occurrence["reminder"]
            table.add_row(
                occurrence["occurs_at"][:16].replace("T", " "),
                reminder["title"],
                reminder["recurrence"],
            )

        self.console.print(table)

    def _render_notifications(self, notifications: list[dict]) -> None:
        if not notifications:
            self.console.print("[dim]No notifications[/dim]")
            return

        for notification in notifications:
            marker = "[dim]○[/dim]" if notification["read"] else "[bold blue]●[/bold blue]"
            color = "red" if notification.get("severity") == "out" else "yellow"
            title = notification["title"]
            if notification["type"] == "alert":
                title = f"[{color}]{title}[/{color}]"
            self.console.print(f"{marker} {title}: {notification['message']}")
            self.console.print(f"    [dim]{notification['key']}[/dim]")

    def _render_expense_summary(self, summary: dict) -> None:
        """Render spend by category for a period."""
        if not summary.get("period_start"):
            self.console.print("[dim]No receipts[/dim]")
            return

        self.console.print(
            f"[bold]Expenses {summary['period_start']} to {summary['period_end']}[/bold]"
        )
        self.console.print(
            f"Total spend: {self.money(summary['total_spend'])} "
            f"across {summary['receipt_count']} receipts"
        )
        if summary.get("top_category"):
            self.console.print(f"Top category: {summary['top_category']}")

        if summary["categories"]:
            table = Table(title="By Category", show_header=True, header_style="bold")
            table.add_column("Category", style="yellow")
            table.add_column("Receipts", justify="right")
            table.add_column("Total", justify="right", style="green")
            table.add_column("%", justify="right")

            for cat in summary["categories"]:
                table.add_row(
                    cat["category"],
                    str(cat["receipt_count"]),
                    self.money(cat["total"]),
                    f"{cat['percentage']:.1f}%",
                )

            self.console.print(table)

    def _render_stock_summary(self, summary: dict) -> None:
        if not summary.get("count_date"):
            self.console.print("[dim]No stock counts yet[/dim]")
            return

        self.console.print(
            f"[bold]Week of {summary['week_start']} to {summary['week_end']}[/bold] "
            f"(counted {summary['count_date']})"
        )
        self.console.print(
            f"Items: {summary['total_items']}  Counted: {summary['counted_items']}  "
            f"[yellow]Low: {summary['low_stock_items']}[/yellow]  "
            f"[red]Out: {summary['out_of_stock_items']}[/red]"
        )
        self._render_levels(summary["rows"])

    def _render_usage(self, usage: dict) -> None:
        """Render weekly usage totals and the most used items."""
        self.console.print(
            f"[bold]Usage {usage['period_start']} to {usage['period_end']}[/bold]: "
            f"{_qty(usage['total_usage'])} total"
        )
        if not usage["weekly"]:
            self.console.print("[dim]No stock taken out in this period[/dim]")
            return

        weekly = Table(title="Weekly Usage", show_header=True, header_style="bold")
        weekly.add_column("Week of")
        weekly.add_column("Used", justify="right")
        for week in usage["weekly"]:
            weekly.add_row(week["week_start"], _qty(week["total"]))
        self.console.print(weekly)

        top = Table(title="Top Items", show_header=True, header_style="bold")
        top.add_column("Item", style="cyan")
        top.add_column("Category", style="yellow")
        top.add_column("Used", justify="right")
        for item in usage["top_items"]:
            top.add_row(item["item_name"], item["category"], _qty(item["total"]))
        self.console.print(top)

    def error(self, message: str, error_code: str | None = None) -> None:
        """Output error message.

        Args:
            message: Error message
            error_code: Optional error code
        """
        if self.json_mode:
            output = {"success": False, "error": message}
            if error_code:
                output["error_code"] = error_code
            print(json.dumps(output))
        else:
            self.console.print(f"[red]✗ Error:[/red] {message}")

    def success(self, message: str, data: dict | None = None) -> None:
        """Output success message.

        Args:
            message: Success message
            data: Optional data to include
        """
        if self.json_mode:
            output: dict[str, Any] = {"success": True, "message": message}
            if data:
                output["data"] = data
            print(json.dumps(output, cls=JSONEncoder))
        else:
            self.console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        if self.json_mode:
            print(json.dumps({"warning": message}))
        else:
            self.console.print(f"[yellow]⚠[/yellow] {message}")
