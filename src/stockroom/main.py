"""CLI entry point for Stockroom."""

import json
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from .config import ConfigManager
from .inventory_manager import InventoryManager, ItemNotFoundError, ItemStock
from .models import MovementKind, ReceiptStatus, ShoppingListStatus, utcnow
from .notifications import NotificationFeed
from .output_formatter import OutputFormatter
from .receipt_manager import (
    InvalidStatusTransitionError,
    ReceiptInput,
    ReceiptManager,
    ReceiptNotFoundError,
)
from .recurrence import Recurrence, parse_timestamp
from .reminders import ReminderManager
from .reports import ReportManager
from .shopping_list import ListNotActiveError, ShoppingListManager, ShoppingListNotFoundError
from .store import BackendType, StoreError, StoreProtocol, create_store
from .team import PermissionDeniedError, TeamManager

app = typer.Typer(
    name="stockroom",
    help="Inventory, expense and shopping list tracking",
    no_args_is_help=True,
)

# Global state for formatter, config and store (set by callback)
formatter: OutputFormatter = OutputFormatter()
config: ConfigManager | None = None
store: StoreProtocol | None = None
current_user: str = "local"

ERROR_CODES: dict[type[Exception], str] = {
    ItemNotFoundError: "ITEM_NOT_FOUND",
    ReceiptNotFoundError: "RECEIPT_NOT_FOUND",
    ShoppingListNotFoundError: "LIST_NOT_FOUND",
    ListNotActiveError: "LIST_NOT_ACTIVE",
    InvalidStatusTransitionError: "INVALID_TRANSITION",
    PermissionDeniedError: "PERMISSION_DENIED",
    StoreError: "STORE_ERROR",
    ValueError: "INVALID_INPUT",
}


def setup_logging(level: str) -> None:
    """Send the package's log records to stderr through Rich."""
    logger = logging.getLogger("stockroom")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper())


def get_config() -> ConfigManager:
    """Get or create ConfigManager instance."""
    global config
    if config is None:
        config = ConfigManager()
    return config


def get_store() -> StoreProtocol:
    """Get or create the store using config values."""
    global store
    if store is None:
        cfg = get_config()
        store = create_store(
            backend=BackendType.SQLITE,
            data_dir=cfg.data.storage_dir,
            database=cfg.data.database,
        )
    return store


def get_inventory_manager() -> InventoryManager:
    return InventoryManager(get_store())


def get_shopping_manager() -> ShoppingListManager:
    return ShoppingListManager(get_store(), get_inventory_manager())


def get_receipt_manager() -> ReceiptManager:
    return ReceiptManager(get_store())


def _fail(e: Exception) -> NoReturn:
    """Report an error through the formatter and exit with code 1."""
    error_code = next(
        (code for exc_type, code in ERROR_CODES.items() if isinstance(e, exc_type)),
        None,
    )
    formatter.error(str(e), error_code=error_code)
    raise typer.Exit(code=1)


def _parse_date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


@app.callback()
def main(
    json_output: Annotated[
        bool, typer.Option("--json", help="Output as JSON for programmatic use")
    ] = False,
    data_dir: Annotated[Path | None, typer.Option("--data-dir", help="Data directory path")] = None,
    user: Annotated[
        str, typer.Option("--user", "-U", envvar="STOCKROOM_USER", help="Acting user ID")
    ] = "local",
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Log level (overrides config)")
    ] = None,
) -> None:
    """Stockroom CLI - track stock, receipts and shopping lists."""
    global formatter, config, store, current_user

    config = ConfigManager()
    formatter = OutputFormatter(json_mode=json_output, currency=config.defaults.currency)
    setup_logging(log_level or config.logging.level)
    current_user = user

    # CLI --data-dir overrides config, which overrides default
    effective_data_dir = data_dir if data_dir else config.data.storage_dir
    store = create_store(
        backend=BackendType.SQLITE,
        data_dir=effective_data_dir,
        database=config.data.database,
    )


# --- Items ---

items_app = typer.Typer(help="Item catalog commands")
app.add_typer(items_app, name="items")


@items_app.command("add")
def items_add(
    name: Annotated[str, typer.Argument(help="Item name")],
    unit: Annotated[str | None, typer.Option("--unit", "-u", help="Unit of measurement")] = None,
    reorder: Annotated[
        float | None, typer.Option("--reorder", "-r", help="Reorder level")
    ] = None,
    category: Annotated[str | None, typer.Option("--category", "-c", help="Category")] = None,
) -> None:
    """Add an item to the catalog."""
    try:
        cfg = get_config()
        item = get_inventory_manager().add_item(
            name=name,
            unit=unit or cfg.defaults.unit,
            reorder_level=reorder,
            category=category or cfg.defaults.category,
        )
        output_data = {
            "success": True,
            "message": f"Added {item.name}",
            "data": {"item": item.model_dump(mode="json")},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        _fail(e)


@items_app.command("list")
def items_list(
    include_inactive: Annotated[
        bool, typer.Option("--all", "-a", help="Include removed items")
    ] = False,
) -> None:
    """List catalog items."""
    try:
        items = get_inventory_manager().list_items(include_inactive=include_inactive)
        formatter.output(
            {"success": True, "data": {"items": [i.model_dump(mode="json") for i in items]}}
        )
    except Exception as e:
        _fail(e)


@items_app.command("update")
def items_update(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
    name: Annotated[str | None, typer.Option("--name", "-n", help="New name")] = None,
    unit: Annotated[str | None, typer.Option("--unit", "-u", help="New unit")] = None,
    reorder: Annotated[
        float | None, typer.Option("--reorder", "-r", help="New reorder level")
    ] = None,
    clear_reorder: Annotated[
        bool, typer.Option("--clear-reorder", help="Remove the reorder level")
    ] = False,
    category: Annotated[str | None, typer.Option("--category", "-c", help="New category")] = None,
) -> None:
    """Update an item."""
    try:
        item = get_inventory_manager().update_item(
            item_id,
            name=name,
            unit=unit,
            reorder_level=reorder,
            category=category,
            clear_reorder_level=clear_reorder,
        )
        output_data = {
            "success": True,
            "message": f"Updated {item.name}",
            "data": {"item": item.model_dump(mode="json")},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        _fail(e)


@items_app.command("remove")
def items_remove(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
) -> None:
    """Remove an item from active views (its history is kept)."""
    try:
        item = get_inventory_manager().deactivate_item(item_id)
        formatter.success(f"Removed {item.name}", {"item": item.model_dump(mode="json")})
    except Exception as e:
        _fail(e)


# --- Stock ---

stock_app = typer.Typer(help="Stock movements, counts and levels")
app.add_typer(stock_app, name="stock")


def _level_dict(stock: ItemStock) -> dict:
    count = stock.latest_count
    return {
        "item_id": str(stock.item.id),
        "item_name": stock.item.name,
        "unit": stock.item.unit,
        "reorder_level": stock.item.reorder_level,
        "raw_value": count.raw_value if count else None,
        "count_date": count.count_date.isoformat() if count else None,
        "quantity": stock.reading.quantity,
        "reading": stock.reading.kind.value,
        "status": stock.level.status.value,
        "is_urgent": stock.level.is_urgent,
    }


@stock_app.command("move")
def stock_move(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
    kind: Annotated[MovementKind, typer.Argument(help="in, out or adjust")],
    quantity: Annotated[float, typer.Argument(help="Quantity moved")],
    cost: Annotated[float | None, typer.Option("--cost", help="Unit cost")] = None,
    at: Annotated[
        str | None, typer.Option("--at", help="When it happened (ISO timestamp)")
    ] = None,
) -> None:
    """Record a stock movement."""
    try:
        movement = get_inventory_manager().record_movement(
            item_id,
            kind=kind,
            quantity=quantity,
            unit_cost=cost,
            occurred_at=parse_timestamp(at) if at else None,
        )
        formatter.success(
            f"Recorded {kind.value} of {quantity:g}",
            {"movement": movement.model_dump(mode="json")},
        )
    except Exception as e:
        _fail(e)


@stock_app.command("count")
def stock_count(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
    raw_value: Annotated[str, typer.Argument(help='Count as written, e.g. "3 pkts" or "nil"')],
    count_date: Annotated[
        str | None, typer.Option("--date", "-d", help="Count date (YYYY-MM-DD)")
    ] = None,
    unit: Annotated[str | None, typer.Option("--unit", "-u", help="Unit counted")] = None,
) -> None:
    """Record a stocktake count (replaces any count for the same day)."""
    try:
        count = get_inventory_manager().record_count(
            item_id,
            raw_value,
            count_date=_parse_date(count_date),
            qty_unit=unit,
            created_by=current_user,
        )
        formatter.success(
            f"Counted {raw_value!r} on {count.count_date.isoformat()}",
            {"count": count.model_dump(mode="json")},
        )
    except Exception as e:
        _fail(e)


@stock_app.command("counts")
def stock_counts(
    start: Annotated[str | None, typer.Option("--from", help="First date (YYYY-MM-DD)")] = None,
    end: Annotated[str | None, typer.Option("--to", help="Last date (YYYY-MM-DD)")] = None,
    item_id: Annotated[str | None, typer.Option("--item", help="Item ID")] = None,
) -> None:
    """Show count history."""
    try:
        mgr = get_inventory_manager()
        names = {i.id: i.name for i in mgr.list_items(include_inactive=True)}
        counts = mgr.count_history(start=_parse_date(start), end=_parse_date(end), item_id=item_id)
        output_data = {
            "success": True,
            "data": {
                "counts": [
                    {**c.model_dump(mode="json"), "item_name": names.get(c.item_id)}
                    for c in counts
                ]
            },
        }
        formatter.output(output_data)
    except Exception as e:
        _fail(e)


@stock_app.command("levels")
def stock_levels(
    low_only: Annotated[
        bool, typer.Option("--low", help="Only low and out-of-stock items")
    ] = False,
) -> None:
    """Show each item's stock status from the latest stocktake."""
    try:
        mgr = get_inventory_manager()
        levels = mgr.low_stock() if low_only else mgr.stock_levels()
        formatter.output({"success": True, "data": {"levels": [_level_dict(s) for s in levels]}})
    except Exception as e:
        _fail(e)


@stock_app.command("positions")
def stock_positions() -> None:
    """Show quantity and value derived from stock movements."""
    try:
        mgr = get_inventory_manager()
        items = mgr.list_items()
        positions = mgr.positions()
        output_data = {
            "success": True,
            "data": {
                "positions": [
                    {
                        "item_id": str(item.id),
                        "item_name": item.name,
                        **positions[item.id].model_dump(),
                    }
                    for item in items
                    if item.id in positions
                ]
            },
        }
        formatter.output(output_data)
    except Exception as e:
        _fail(e)


@stock_app.command("valuation")
def stock_valuation() -> None:
    """Value stock at the latest count times the latest purchase cost."""
    try:
        rows = get_inventory_manager().valuation()
        output_data = {
            "success": True,
            "data": {
                "valuation": [r.model_dump(mode="json") for r in rows],
                "total": sum(r.value for r in rows),
            },
        }
        formatter.output(output_data)
    except Exception as e:
        _fail(e)


# --- Receipts ---

receipts_app = typer.Typer(help="Receipt and balance commands")
app.add_typer(receipts_app, name="receipts")


@receipts_app.command("add")
def receipts_add(
    vendor: Annotated[str | None, typer.Option("--vendor", "-v", help="Vendor name")] = None,
    category: Annotated[str | None, typer.Option("--category", "-c", help="Category")] = None,
    amount: Annotated[float | None, typer.Option("--amount", "-a", help="Amount spent")] = None,
    received: Annotated[
        float | None, typer.Option("--received", "-r", help="Amount received")
    ] = None,
    payment: Annotated[
        str | None, typer.Option("--payment", "-p", help="Payment method")
    ] = None,
    receipt_date: Annotated[
        str | None, typer.Option("--date", "-d", help="Receipt date (YYYY-MM-DD)")
    ] = None,
    reference: Annotated[str | None, typer.Option("--reference", help="Reference number")] = None,
    data: Annotated[str | None, typer.Option("--data", help="JSON receipt data")] = None,
) -> None:
    """Record a receipt from options or JSON."""
    try:
        mgr = get_receipt_manager()
        if data:
            receipt = mgr.add_receipt_dict(current_user, json.loads(data))
        else:
            receipt = mgr.add_receipt(
                current_user,
                ReceiptInput(
                    vendor=vendor or "",
                    category=category or get_config().defaults.category,
                    amount=amount if amount is not None else float("nan"),
                    amount_received=received,
                    payment_method=payment or "Cash",
                    receipt_date=_parse_date(receipt_date) or date.today(),
                    reference=reference,
                ),
            )
        output_data = {
            "success": True,
            "message": f"Recorded receipt from {receipt.vendor}",
            "data": {"receipt": receipt.model_dump(mode="json")},
        }
        formatter.output(output_data, output_data["message"])
    except json.JSONDecodeError as e:
        formatter.error(f"Invalid JSON: {e}", error_code="INVALID_INPUT")
        raise typer.Exit(code=1)
    except Exception as e:
        _fail(e)


@receipts_app.command("list")
def receipts_list(
    start: Annotated[str | None, typer.Option("--from", help="First date (YYYY-MM-DD)")] = None,
    end: Annotated[str | None, typer.Option("--to", help="Last date (YYYY-MM-DD)")] = None,
    everyone: Annotated[bool, typer.Option("--all", help="Receipts of all users")] = False,
) -> None:
    """List receipts with running balances, newest first."""
    try:
        receipts = get_receipt_manager().list_receipts(
            owner_id=None if everyone else current_user,
            start=_parse_date(start),
            end=_parse_date(end),
        )
        formatter.output(
            {"success": True, "data": {"receipts": [r.model_dump(mode="json") for r in receipts]}}
        )
    except Exception as e:
        _fail(e)


@receipts_app.command("balance")
def receipts_balance(
    everyone: Annotated[bool, typer.Option("--all", help="Across all users")] = False,
) -> None:
    """Show the current running balance."""
    try:
        balance = get_receipt_manager().current_balance(None if everyone else current_user)
        formatter.output({"success": True, "data": {"balance": balance}})
    except Exception as e:
        _fail(e)


@receipts_app.command("status")
def receipts_status(
    receipt_id: Annotated[str, typer.Argument(help="Receipt ID")],
    status: Annotated[ReceiptStatus, typer.Argument(help="Pending, Verified or Flagged")],
) -> None:
    """Change a receipt's review status (admins only)."""
    try:
        receipt = get_receipt_manager().update_status(current_user, receipt_id, status)
        formatter.success(
            f"Receipt marked {receipt.status.value}",
            {"receipt": receipt.model_dump(mode="json")},
        )
    except Exception as e:
        _fail(e)


@receipts_app.command("update")
def receipts_update(
    receipt_id: Annotated[str, typer.Argument(help="Receipt ID")],
    vendor: Annotated[str | None, typer.Option("--vendor", "-v", help="Vendor name")] = None,
    category: Annotated[str | None, typer.Option("--category", "-c", help="Category")] = None,
    amount: Annotated[float | None, typer.Option("--amount", "-a", help="Amount spent")] = None,
    received: Annotated[
        float | None, typer.Option("--received", "-r", help="Amount received")
    ] = None,
    payment: Annotated[
        str | None, typer.Option("--payment", "-p", help="Payment method")
    ] = None,
    receipt_date: Annotated[
        str | None, typer.Option("--date", "-d", help="Receipt date (YYYY-MM-DD)")
    ] = None,
    reference: Annotated[str | None, typer.Option("--reference", help="Reference number")] = None,
) -> None:
    """Edit a receipt. Options not given keep their current value."""
    try:
        mgr = get_receipt_manager()
        existing = mgr.get_receipt(receipt_id)
        receipt = mgr.update_receipt(
            existing.id,
            ReceiptInput(
                vendor=vendor if vendor is not None else existing.vendor,
                category=category if category is not None else existing.category,
                amount=amount if amount is not None else existing.amount,
                amount_received=received if received is not None else existing.amount_received,
                payment_method=payment if payment is not None else existing.payment_method,
                receipt_date=_parse_date(receipt_date) or existing.receipt_date,
                reference=reference if reference is not None else existing.reference,
            ),
        )
        formatter.success("Receipt updated", {"receipt": receipt.model_dump(mode="json")})
    except Exception as e:
        _fail(e)


@receipts_app.command("delete")
def receipts_delete(
    receipt_id: Annotated[str, typer.Argument(help="Receipt ID")],
) -> None:
    """Delete a receipt."""
    try:
        get_receipt_manager().delete_receipt(receipt_id)
        formatter.success(f"Deleted receipt {receipt_id}")
    except Exception as e:
        _fail(e)


# --- Shopping list ---

shopping_app = typer.Typer(help="Shopping list commands")
app.add_typer(shopping_app, name="shopping")


def _show_rows(mgr: ShoppingListManager, message: str = "") -> None:
    active = mgr.ensure_active_list()
    rows = mgr.get_rows()
    output_data = {
        "success": True,
        "data": {
            "title": active.title,
            "list_id": str(active.id),
            "rows": [{**r.model_dump(mode="json"), "amount": r.amount} for r in rows],
            "total": sum(r.amount for r in rows),
        },
    }
    formatter.output(output_data, message)


@shopping_app.command("show")
def shopping_show() -> None:
    """Show the reconciled shopping list."""
    try:
        _show_rows(get_shopping_manager())
    except Exception as e:
        _fail(e)


@shopping_app.command("set")
def shopping_set(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
    quantity: Annotated[float, typer.Argument(help="Quantity to buy")],
    price: Annotated[float | None, typer.Option("--price", "-p", help="Unit price")] = None,
) -> None:
    """Set quantity and price for a row."""
    try:
        mgr = get_shopping_manager()
        mgr.save_row(item_id, quantity, price)
        _show_rows(mgr, "Saved")
    except Exception as e:
        _fail(e)


@shopping_app.command("remove")
def shopping_remove(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
) -> None:
    """Take an item off the shopping list."""
    try:
        mgr = get_shopping_manager()
        mgr.remove_item(item_id)
        _show_rows(mgr, "Removed from list")
    except Exception as e:
        _fail(e)


@shopping_app.command("add")
def shopping_add(
    item_id: Annotated[str, typer.Argument(help="Item ID")],
    quantity: Annotated[float, typer.Option("--qty", "-q", help="Quantity to buy")] = 1.0,
    price: Annotated[float | None, typer.Option("--price", "-p", help="Unit price")] = None,
) -> None:
    """Add an item to the shopping list manually."""
    try:
        mgr = get_shopping_manager()
        mgr.add_manual_item(item_id, quantity, price)
        _show_rows(mgr, "Added to list")
    except Exception as e:
        _fail(e)


@shopping_app.command("done")
def shopping_done(
    count_date: Annotated[
        str | None, typer.Option("--date", "-d", help="Date of resulting counts (YYYY-MM-DD)")
    ] = None,
) -> None:
    """Mark the shopping list done and record the purchases as stock counts."""
    try:
        result = get_shopping_manager().complete(
            today=_parse_date(count_date), created_by=current_user
        )
        output_data = {
            "success": True,
            "message": f"Completed {result.shopping_list.title}",
            "data": {"completion": result.model_dump(mode="json")},
        }
        formatter.output(output_data, output_data["message"])
    except Exception as e:
        _fail(e)


@shopping_app.command("history")
def shopping_history(
    status: Annotated[
        ShoppingListStatus | None, typer.Option("--status", help="active or done")
    ] = None,
) -> None:
    """List past and current shopping lists."""
    try:
        lists = get_shopping_manager().history(status=status)
        formatter.output(
            {"success": True, "data": {"shopping_lists": [s.model_dump(mode="json") for s in lists]}}
        )
    except Exception as e:
        _fail(e)


@shopping_app.command("entries")
def shopping_entries(
    list_id: Annotated[str, typer.Argument(help="Shopping list ID")],
) -> None:
    """Show the snapshot stored for a shopping list."""
    try:
        entries = get_shopping_manager().entries(list_id)
        formatter.output(
            {"success": True, "data": {"entries": [e.model_dump(mode="json") for e in entries]}}
        )
    except Exception as e:
        _fail(e)


@shopping_app.command("load")
def shopping_load(
    list_id: Annotated[str, typer.Argument(help="Shopping list ID")],
) -> None:
    """Load a past list as the active shopping list."""
    try:
        mgr = get_shopping_manager()
        new_list = mgr.load(list_id)
        _show_rows(mgr, f"Loaded as {new_list.title}")
    except Exception as e:
        _fail(e)


# --- Reminders ---

reminders_app = typer.Typer(help="Reminder commands")
app.add_typer(reminders_app, name="reminders")


@reminders_app.command("add")
def reminders_add(
    title: Annotated[str, typer.Argument(help="Reminder title")],
    start_at: Annotated[str, typer.Argument(help="First occurrence, e.g. 2024-05-01 09:00")],
    repeat: Annotated[
        Recurrence, typer.Option("--repeat", "-r", help="Recurrence")
    ] = Recurrence.NONE,
    notes: Annotated[str | None, typer.Option("--notes", "-n", help="Notes")] = None,
    color: Annotated[str, typer.Option("--color", help="chart-1 to chart-5")] = "chart-1",
) -> None:
    """Create a reminder."""
    try:
        reminder = ReminderManager(get_store()).add_reminder(
            current_user, title, start_at, recurrence=repeat, notes=notes, color=color
        )
        formatter.success(f"Added reminder {reminder.title}", {"reminder": reminder.model_dump(mode="json")})
    except Exception as e:
        _fail(e)


@reminders_app.command("list")
def reminders_list() -> None:
    """Show the next occurrence of each reminder."""
    try:
        upcoming = ReminderManager(get_store()).upcoming(current_user)
        formatter.output(
            {"success": True, "data": {"occurrences": [o.model_dump(mode="json") for o in upcoming]}}
        )
    except Exception as e:
        _fail(e)


@reminders_app.command("due")
def reminders_due() -> None:
    """Show reminders due today."""
    try:
        due = ReminderManager(get_store()).due_today(current_user)
        formatter.output(
            {"success": True, "data": {"occurrences": [o.model_dump(mode="json") for o in due]}}
        )
    except Exception as e:
        _fail(e)


@reminders_app.command("calendar")
def reminders_calendar(
    start: Annotated[str | None, typer.Option("--from", help="Window start (YYYY-MM-DD)")] = None,
    days: Annotated[int, typer.Option("--days", help="Window length in days")] = 30,
) -> None:
    """Expand reminders into every occurrence in a window."""
    try:
        window_start = parse_timestamp(start) if start else utcnow()
        window_end = window_start + timedelta(days=days)
        occurrences = ReminderManager(get_store()).calendar(current_user, window_start, window_end)
        formatter.output(
            {"success": True, "data": {"occurrences": [o.model_dump(mode="json") for o in occurrences]}}
        )
    except Exception as e:
        _fail(e)


# --- Notifications ---

notifications_app = typer.Typer(help="Notification commands")
app.add_typer(notifications_app, name="notifications")


def get_notification_feed() -> NotificationFeed:
    cfg = get_config()
    return NotificationFeed(
        get_store(),
        max_reminders=cfg.notifications.max_reminders,
        low_stock_alerts=cfg.notifications.low_stock_alerts,
    )


@notifications_app.command("list")
def notifications_list() -> None:
    """Show low-stock alerts and reminders due today."""
    try:
        notifications = get_notification_feed().build(current_user)
        output_data = {
            "success": True,
            "data": {
                "notifications": [n.model_dump(mode="json") for n in notifications],
                "unread": sum(1 for n in notifications if not n.read),
            },
        }
        formatter.output(output_data)
    except Exception as e:
        _fail(e)


@notifications_app.command("read")
def notifications_read(
    keys: Annotated[list[str] | None, typer.Argument(help="Notification keys")] = None,
    all_: Annotated[bool, typer.Option("--all", help="Mark everything read")] = False,
) -> None:
    """Mark notifications as read."""
    try:
        feed = get_notification_feed()
        if all_:
            marked = feed.mark_all_read(current_user)
        else:
            marked = keys or []
            feed.mark_read(current_user, marked)
        formatter.success(f"Marked {len(marked)} notifications read", {"keys": marked})
    except Exception as e:
        _fail(e)


# --- Reports ---

reports_app = typer.Typer(help="Expense, stock and usage reports")
app.add_typer(reports_app, name="reports")


def get_report_manager() -> ReportManager:
    return ReportManager(get_store(), get_inventory_manager())


@reports_app.command("expenses")
def reports_expenses(
    start: Annotated[str | None, typer.Option("--from", help="First date (YYYY-MM-DD)")] = None,
    end: Annotated[str | None, typer.Option("--to", help="Last date (YYYY-MM-DD)")] = None,
) -> None:
    """Spend by category. Defaults to the month of your latest receipt."""
    try:
        summary = get_report_manager().expense_summary(
            current_user, start=_parse_date(start), end=_parse_date(end)
        )
        formatter.output(
            {"success": True, "data": {"expense_summary": summary.model_dump(mode="json")}}
        )
    except Exception as e:
        _fail(e)


@reports_app.command("stock")
def reports_stock() -> None:
    """Stock status for the week of the latest stocktake."""
    try:
        summary = get_report_manager().weekly_stock_summary()
        data = summary.model_dump(mode="json", exclude={"rows"})
        data["rows"] = [_level_dict(row) for row in summary.rows]
        formatter.output({"success": True, "data": {"stock_summary": data}})
    except Exception as e:
        _fail(e)


@reports_app.command("usage")
def reports_usage(
    weeks: Annotated[int, typer.Option("--weeks", "-w", help="Weeks to look back")] = 8,
) -> None:
    """Quantities taken out of stock per week and per item."""
    try:
        trends = get_report_manager().usage_trends(weeks=weeks)
        formatter.output({"success": True, "data": {"usage": trends.model_dump(mode="json")}})
    except Exception as e:
        _fail(e)


# --- Team ---

team_app = typer.Typer(help="Team commands")
app.add_typer(team_app, name="team")


@team_app.command("set-role")
def team_set_role(
    user_id: Annotated[str, typer.Argument(help="Member user ID")],
    role: Annotated[str, typer.Argument(help="admin, manager or viewer")],
    name: Annotated[str | None, typer.Option("--name", help="Full name")] = None,
) -> None:
    """Set a member's role (admins only, except for the first member)."""
    try:
        profile = TeamManager(get_store()).set_role(current_user, user_id, role, full_name=name)
        formatter.success(
            f"{profile.id} is now {profile.role.value}", {"profile": profile.model_dump(mode="json")}
        )
    except Exception as e:
        _fail(e)


@team_app.command("list")
def team_list() -> None:
    """List team members."""
    try:
        members = TeamManager(get_store()).members()
        if not members:
            formatter.warning("No team members")
            return
        for profile in members:
            formatter.success(
                f"{profile.id} ({profile.full_name or '-'}): {profile.role.value}",
                {"profile": profile.model_dump(mode="json")},
            )
    except Exception as e:
        _fail(e)


if __name__ == "__main__":
    app()
