"""Persistence interface for Stockroom.

The engine treats the relational store as the only persistence authority and
recomputes derived state from raw rows on every read. Backends implement
StoreProtocol; create_store() returns the configured one.
"""

from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Protocol
from uuid import UUID

from .models import (
    Item,
    Profile,
    Receipt,
    ReceiptStatus,
    Reminder,
    ShoppingList,
    ShoppingListEntry,
    ShoppingListOverride,
    ShoppingListStatus,
    StockCount,
    StockMovement,
)


class StoreError(Exception):
    """Raised when a read or write against the store fails."""


class BackendType(str, Enum):
    """Store backend types."""

    SQLITE = "sqlite"


class StoreProtocol(Protocol):
    """Protocol defining the store interface."""

    # Items
    def add_item(self, item: Item) -> UUID: ...
    def update_item(self, item: Item) -> None: ...
    def get_item(self, item_id: UUID) -> Item | None: ...
    def list_items(self, active_only: bool = True) -> list[Item]: ...
    def list_categories(self) -> list[str]: ...

    # Movements and counts
    def add_movement(self, movement: StockMovement) -> UUID: ...
    def list_movements(self, item_ids: list[UUID] | None = None) -> list[StockMovement]: ...
    def upsert_count(self, count: StockCount) -> StockCount: ...
    def latest_stocktake(
        self, item_ids: list[UUID] | None = None
    ) -> tuple[date | None, dict[UUID, StockCount]]: ...
    def list_counts(
        self,
        start: date | None = None,
        end: date | None = None,
        item_id: UUID | None = None,
    ) -> list[StockCount]: ...

    # Receipts
    def add_receipt(self, receipt: Receipt) -> UUID: ...
    def get_receipt(self, receipt_id: UUID) -> Receipt | None: ...
    def list_receipts(
        self,
        owner_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Receipt]: ...
    def update_receipt(self, receipt: Receipt) -> None: ...
    def update_receipt_status(self, receipt_id: UUID, status: ReceiptStatus) -> None: ...
    def delete_receipt(self, receipt_id: UUID) -> bool: ...

    # Shopping list
    def list_overrides(self) -> list[ShoppingListOverride]: ...
    def upsert_override(self, override: ShoppingListOverride) -> None: ...
    def clear_overrides(self) -> int: ...
    def get_active_list(self) -> ShoppingList | None: ...
    def get_shopping_list(self, list_id: UUID) -> ShoppingList | None: ...
    def create_shopping_list(self, shopping_list: ShoppingList) -> UUID: ...
    def list_shopping_lists(
        self, status: ShoppingListStatus | None = None
    ) -> list[ShoppingList]: ...
    def list_entries(self, list_id: UUID) -> list[ShoppingListEntry]: ...
    def complete_shopping_list(
        self,
        list_id: UUID,
        entries: list[ShoppingListEntry],
        completed_at: datetime,
    ) -> bool: ...
    def replace_active_list(
        self,
        shopping_list: ShoppingList,
        entries: list[ShoppingListEntry],
        overrides: list[ShoppingListOverride],
        completed_at: datetime,
    ) -> None: ...

    # Reminders
    def add_reminder(self, reminder: Reminder) -> UUID: ...
    def list_reminders(self, owner_id: str | None = None) -> list[Reminder]: ...

    # Team
    def get_profile(self, user_id: str) -> Profile | None: ...
    def upsert_profile(self, profile: Profile) -> None: ...
    def list_profiles(self) -> list[Profile]: ...

    # Notification read state
    def read_notification_keys(self, user_id: str, keys: list[str]) -> set[str]: ...
    def mark_notifications_read(self, user_id: str, keys: list[str]) -> None: ...


def create_store(
    backend: BackendType = BackendType.SQLITE,
    data_dir: Path | None = None,
    database: str = "stockroom.db",
) -> StoreProtocol:
    """Create a store for the given backend.

    Args:
        backend: Backend type
        data_dir: Directory holding the database file
        database: Database file name

    Returns:
        Store instance
    """
    if backend == BackendType.SQLITE:
        from .sqlite_store import SQLiteStore

        db_path = (data_dir or Path.cwd() / "data") / database
        return SQLiteStore(db_path=db_path)
    raise ValueError(f"Unknown backend: {backend}")
