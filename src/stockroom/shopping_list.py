"""Shopping list reconciliation and lifecycle."""

import logging
import math
from collections.abc import Iterable
from datetime import date
from uuid import UUID

from pydantic import BaseModel

from .count_normalizer import format_quantity, is_finite_number
from .inventory_manager import InventoryManager, ItemStock
from .models import (
    CountSource,
    ShoppingList,
    ShoppingListEntry,
    ShoppingListOverride,
    ShoppingListStatus,
    StockCount,
    utcnow,
)
from .stock_classifier import StockStatus
from .store import StoreError, StoreProtocol

logger = logging.getLogger(__name__)


class ListNotActiveError(Exception):
    """Raised when a shopping list is no longer active, e.g. completed by another writer."""

    def __init__(self, list_id: UUID | None = None):
        self.list_id = list_id
        if list_id is None:
            super().__init__("No active shopping list")
        else:
            super().__init__(f"Shopping list '{list_id}' is not active")


class ShoppingListNotFoundError(Exception):
    """Raised when a shopping list is not found."""

    def __init__(self, list_id: UUID | str):
        self.list_id = list_id
        super().__init__(f"Shopping list with ID '{list_id}' not found")


class ShoppingListRow(BaseModel):
    """One reconciled, editable shopping list row."""

    item_id: UUID
    item_name: str
    category: str
    unit: str
    current_qty: float | None = None
    reorder_level: float | None = None
    status: StockStatus
    source: str = "auto"  # "auto", "manual"
    desired_qty: float = 0.0
    unit_price: float = 0.0

    @property
    def amount(self) -> float:
        return self.desired_qty * self.unit_price

    @property
    def status_label(self) -> str:
        return self.status.label


class CountWriteResult(BaseModel):
    """Outcome of the stock count written for one row on completion."""

    item_id: UUID
    item_name: str
    raw_value: str
    success: bool
    error: str | None = None


class CompletionResult(BaseModel):
    """Outcome of completing the active shopping list."""

    shopping_list: ShoppingList
    entries: list[ShoppingListEntry]
    count_results: list[CountWriteResult]
    overrides_cleared: bool = True
    total: float = 0.0

    @property
    def failed_counts(self) -> list[CountWriteResult]:
        """Rows whose count write failed and need a manual follow-up count."""
        return [result for result in self.count_results if not result.success]


def _threshold(reorder_level: float | None) -> float | None:
    if reorder_level is not None and reorder_level > 0:
        return reorder_level
    return None


def suggested_quantity(current_qty: float | None, reorder_level: float | None, status: StockStatus) -> float:
    """Automatic purchase quantity when no override exists.

    Brings the item back up to its reorder level. Out-of-stock items always
    get at least 1, even without a reorder level.
    """
    current = current_qty if current_qty is not None else 0.0
    threshold = _threshold(reorder_level)
    suggested = max(threshold - current, 0.0) if threshold is not None else 0.0
    if status == StockStatus.OUT_OF_STOCK:
        return max(1.0, suggested)
    return suggested


def _sort_key(row: ShoppingListRow) -> tuple:
    threshold = _threshold(row.reorder_level)
    current = row.current_qty if row.current_qty is not None else 0.0
    ratio = current / threshold if threshold is not None else math.inf
    return (
        0 if row.status == StockStatus.OUT_OF_STOCK else 1,
        ratio,
        row.item_name.casefold(),
        str(row.item_id),
    )


def reconcile(
    candidates: Iterable[ItemStock],
    overrides: Iterable[ShoppingListOverride],
) -> list[ShoppingListRow]:
    """Merge automatic suggestions, manual additions and overrides into one row set.

    Args:
        candidates: Classified active items
        overrides: Persisted per-item overrides

    Returns:
        Rows sorted out-of-stock first, then by how far below the reorder
        level the item is, then by name
    """
    override_map = {override.item_id: override for override in overrides}

    rows = []
    for stock in candidates:
        override = override_map.get(stock.item.id)
        if override is not None and override.excluded:
            continue

        if stock.level.needs_attention:
            source = "auto"
        elif override is not None and override.manual:
            source = "manual"
        else:
            continue

        current_qty = stock.reading.quantity
        if override is not None:
            desired_qty = override.desired_qty
        else:
            desired_qty = suggested_quantity(
                current_qty, stock.item.reorder_level, stock.level.status
            )
        unit_price = override.unit_price if override is not None else None

        rows.append(
            ShoppingListRow(
                item_id=stock.item.id,
                item_name=stock.item.name,
                category=stock.item.category,
                unit=stock.item.unit,
                current_qty=current_qty,
                reorder_level=stock.item.reorder_level,
                status=stock.level.status,
                source=source,
                desired_qty=desired_qty,
                unit_price=unit_price if unit_price is not None else 0.0,
            )
        )

    return sorted(rows, key=_sort_key)


def list_total(rows: Iterable[ShoppingListRow]) -> float:
    return sum(row.amount for row in rows)


class ShoppingListManager:
    """Manages the active shopping list, its overrides and its history."""

    def __init__(self, store: StoreProtocol, inventory: InventoryManager | None = None):
        """Initialize shopping list manager.

        Args:
            store: Store instance
            inventory: InventoryManager used to classify items. Created if not provided.
        """
        self.store = store
        self.inventory = inventory or InventoryManager(store)

    def get_rows(self) -> list[ShoppingListRow]:
        """Reconcile the current rows from fresh store reads."""
        return reconcile(self.inventory.stock_levels(), self.store.list_overrides())

    def total(self) -> float:
        return list_total(self.get_rows())

    def _override_for(self, item_id: UUID) -> ShoppingListOverride | None:
        for override in self.store.list_overrides():
            if override.item_id == item_id:
                return override
        return None

    @staticmethod
    def _validate(desired_qty: float, unit_price: float | None) -> None:
        if not is_finite_number(desired_qty) or desired_qty < 0:
            raise ValueError("Desired quantity must be a non-negative number")
        if unit_price is not None and (not is_finite_number(unit_price) or unit_price < 0):
            raise ValueError("Unit price must be a non-negative number")

    def save_row(
        self,
        item_id: str | UUID,
        desired_qty: float,
        unit_price: float | None = None,
    ) -> ShoppingListOverride:
        """Save a row edit. Quantity and price are always written together.

        Args:
            item_id: Item on the list
            desired_qty: Quantity to buy
            unit_price: Price per unit, None if not yet known

        Returns:
            The stored override
        """
        item = self.inventory.get_item(item_id)
        self._validate(desired_qty, unit_price)

        existing = self._override_for(item.id)
        override = ShoppingListOverride(
            item_id=item.id,
            desired_qty=desired_qty,
            unit_price=unit_price,
            excluded=False,
            manual=existing.manual if existing else False,
        )
        self.store.upsert_override(override)
        return override

    def remove_item(self, item_id: str | UUID) -> ShoppingListOverride:
        """Take an item off the list. The override row is kept with excluded set."""
        item = self.inventory.get_item(item_id)
        existing = self._override_for(item.id)
        override = ShoppingListOverride(
            item_id=item.id,
            desired_qty=0.0,
            unit_price=existing.unit_price if existing else None,
            excluded=True,
            manual=existing.manual if existing else False,
        )
        self.store.upsert_override(override)
        return override

    def add_manual_item(
        self,
        item_id: str | UUID,
        desired_qty: float = 1.0,
        unit_price: float | None = None,
    ) -> ShoppingListOverride:
        """Put an item on the list even though it is not low on stock."""
        item = self.inventory.get_item(item_id)
        self._validate(desired_qty, unit_price)
        override = ShoppingListOverride(
            item_id=item.id,
            desired_qty=desired_qty,
            unit_price=unit_price,
            excluded=False,
            manual=True,
        )
        self.store.upsert_override(override)
        return override

    def ensure_active_list(self, today: date | None = None) -> ShoppingList:
        """Return the active list, creating one if there is none."""
        active = self.store.get_active_list()
        if active is not None:
            return active

        today = today or date.today()
        shopping_list = ShoppingList(title=f"Shopping List - {today.isoformat()}")
        try:
            self.store.create_shopping_list(shopping_list)
        except StoreError:
            # Another writer created one first
            active = self.store.get_active_list()
            if active is None:
                raise
            return active
        return shopping_list

    def complete(self, today: date | None = None, created_by: str | None = None) -> CompletionResult:
        """Mark the active list done and feed the purchases back as stock counts.

        Snapshotting the rows and retiring the list happen in one store
        transaction. Writing the counts and clearing the overrides afterwards
        is best-effort: a failing item is logged and reported in the result
        while the rest carry on.

        Args:
            today: Date of the resulting stock counts; defaults to today
            created_by: User completing the list

        Returns:
            CompletionResult with the snapshot and per-item count outcomes

        Raises:
            ListNotActiveError: If the list was completed concurrently
        """
        today = today or date.today()
        active = self.ensure_active_list(today)
        rows = self.get_rows()
        entries = [
            ShoppingListEntry(
                list_id=active.id,
                item_id=row.item_id,
                item_name=row.item_name,
                category=row.category,
                unit=row.unit,
                current_qty=row.current_qty,
                desired_qty=row.desired_qty,
                unit_price=row.unit_price,
                status=row.status_label,
                source=row.source,
            )
            for row in rows
        ]

        completed_at = utcnow()
        logger.info("Completing shopping list %s with %d rows", active.id, len(rows))
        if not self.store.complete_shopping_list(active.id, entries, completed_at):
            raise ListNotActiveError(active.id)

        count_results = []
        for row in rows:
            if row.desired_qty <= 0:
                continue
            quantity = (row.current_qty or 0.0) + row.desired_qty
            raw_value = f"{format_quantity(quantity)} {row.unit}"
            try:
                self.store.upsert_count(
                    StockCount(
                        item_id=row.item_id,
                        count_date=today,
                        raw_value=raw_value,
                        qty_numeric=quantity,
                        qty_unit=row.unit,
                        source=CountSource.SHOPPING_LIST,
                        created_by=created_by,
                    )
                )
            except StoreError as e:
                logger.exception("Count write failed for %s after completion", row.item_name)
                count_results.append(
                    CountWriteResult(
                        item_id=row.item_id,
                        item_name=row.item_name,
                        raw_value=raw_value,
                        success=False,
                        error=str(e),
                    )
                )
            else:
                count_results.append(
                    CountWriteResult(
                        item_id=row.item_id,
                        item_name=row.item_name,
                        raw_value=raw_value,
                        success=True,
                    )
                )

        overrides_cleared = True
        try:
            self.store.clear_overrides()
        except StoreError:
            logger.exception("Clearing shopping list overrides failed")
            overrides_cleared = False

        logger.info(
            "Completed shopping list %s: %d counts written, %d failed",
            active.id,
            sum(1 for r in count_results if r.success),
            sum(1 for r in count_results if not r.success),
        )
        return CompletionResult(
            shopping_list=active.model_copy(
                update={"status": ShoppingListStatus.DONE, "completed_at": completed_at}
            ),
            entries=entries,
            count_results=count_results,
            overrides_cleared=overrides_cleared,
            total=list_total(rows),
        )

    def history(self, status: ShoppingListStatus | None = None) -> list[ShoppingList]:
        return self.store.list_shopping_lists(status=status)

    def get_list(self, list_id: str | UUID) -> ShoppingList:
        if isinstance(list_id, str):
            list_id = UUID(list_id)
        shopping_list = self.store.get_shopping_list(list_id)
        if shopping_list is None:
            raise ShoppingListNotFoundError(list_id)
        return shopping_list

    def entries(self, list_id: str | UUID) -> list[ShoppingListEntry]:
        """Read the snapshot stored for a list."""
        shopping_list = self.get_list(list_id)
        return self.store.list_entries(shopping_list.id)

    def load(self, list_id: str | UUID) -> ShoppingList:
        """Make a past list the active one again.

        The current active list is retired, a new active list is created from
        the past list's entries, and the overrides are replaced so the rows
        show the past quantities and prices.

        Returns:
            The new active list
        """
        source = self.get_list(list_id)
        past_entries = self.store.list_entries(source.id)

        new_list = ShoppingList(title=f"{source.title} - Loaded")
        now = utcnow()
        overrides = [
            ShoppingListOverride(
                item_id=entry.item_id,
                desired_qty=entry.desired_qty,
                unit_price=entry.unit_price,
                excluded=False,
                manual=True,
                updated_at=now,
            )
            for entry in past_entries
        ]
        entries = [entry.model_copy(update={"list_id": new_list.id}) for entry in past_entries]

        self.store.replace_active_list(new_list, entries, overrides, completed_at=now)
        logger.info("Loaded shopping list %s as %s", source.id, new_list.id)
        return new_list
