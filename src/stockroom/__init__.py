"""Stockroom - derived-state tracking for inventory, expenses and shopping lists."""

from .config import ConfigManager
from .count_normalizer import CountKind, CountReading, normalize, read_count
from .financial_ledger import BalanceEntry, compute_balances, current_balance
from .inventory_manager import InventoryManager, ItemNotFoundError, ItemStock, ValuationRow
from .models import (
    CountSource,
    Item,
    MovementKind,
    Notification,
    Profile,
    Receipt,
    ReceiptStatus,
    Reminder,
    Role,
    ShoppingList,
    ShoppingListEntry,
    ShoppingListOverride,
    ShoppingListStatus,
    StockCount,
    StockMovement,
)
from .notifications import NotificationFeed
from .output_formatter import OutputFormatter
from .receipt_manager import (
    InvalidStatusTransitionError,
    ReceiptInput,
    ReceiptManager,
    ReceiptNotFoundError,
)
from .recurrence import Recurrence, is_due_today, next_occurrence, occurrences_between
from .reminders import ReminderManager, ReminderOccurrence
from .reports import ExpenseSummary, ReportManager, StockSummary, UsageTrends
from .shopping_list import (
    CompletionResult,
    CountWriteResult,
    ListNotActiveError,
    ShoppingListManager,
    ShoppingListNotFoundError,
    ShoppingListRow,
    list_total,
    reconcile,
)
from .sqlite_store import SQLiteStore
from .stock_classifier import StockLevel, StockStatus, classify
from .stock_ledger import StockPosition, aggregate
from .store import BackendType, StoreError, StoreProtocol, create_store
from .team import PermissionDeniedError, TeamManager

__version__ = "0.1.0"

__all__ = [
    "aggregate",
    "BackendType",
    "BalanceEntry",
    "classify",
    "CompletionResult",
    "compute_balances",
    "ConfigManager",
    "CountKind",
    "CountReading",
    "CountSource",
    "CountWriteResult",
    "create_store",
    "current_balance",
    "ExpenseSummary",
    "InvalidStatusTransitionError",
    "InventoryManager",
    "is_due_today",
    "Item",
    "ItemNotFoundError",
    "ItemStock",
    "list_total",
    "ListNotActiveError",
    "MovementKind",
    "next_occurrence",
    "normalize",
    "Notification",
    "NotificationFeed",
    "occurrences_between",
    "OutputFormatter",
    "PermissionDeniedError",
    "Profile",
    "read_count",
    "Receipt",
    "ReceiptInput",
    "ReceiptManager",
    "ReceiptNotFoundError",
    "ReceiptStatus",
    "reconcile",
    "Recurrence",
    "Reminder",
    "ReminderManager",
    "ReminderOccurrence",
    "ReportManager",
    "Role",
    "ShoppingList",
    "ShoppingListEntry",
    "ShoppingListManager",
    "ShoppingListNotFoundError",
    "ShoppingListOverride",
    "ShoppingListRow",
    "ShoppingListStatus",
    "SQLiteStore",
    "StockCount",
    "StockLevel",
    "StockMovement",
    "StockPosition",
    "StockStatus",
    "StockSummary",
    "StoreError",
    "StoreProtocol",
    "TeamManager",
    "UsageTrends",
    "ValuationRow",
]
