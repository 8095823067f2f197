"""Inventory management for Stockroom."""

import logging
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel

from .count_normalizer import CountReading, is_finite_number, parse_count_text, read_count
from .models import CountSource, Item, MovementKind, StockCount, StockMovement, utcnow
from .stock_classifier import StockLevel, classify_reading
from .stock_ledger import StockPosition, aggregate, latest_unit_costs
from .store import StoreProtocol

logger = logging.getLogger(__name__)


class ItemNotFoundError(Exception):
    """Raised when an item is not found."""

    def __init__(self, item_id: UUID | str):
        self.item_id = item_id
        super().__init__(f"Item with ID '{item_id}' not found")


class ItemStock(BaseModel):
    """An item together with its latest count and the classification derived from it."""

    item: Item
    latest_count: StockCount | None = None
    reading: CountReading
    level: StockLevel


class ValuationRow(BaseModel):
    """Value of one item: latest counted quantity at the most recent purchase cost."""

    item_id: UUID
    item_name: str
    unit: str
    quantity: float | None = None
    unit_cost: float | None = None
    value: float = 0.0


class InventoryManager:
    """Manages items, stock movements and stock counts."""

    def __init__(self, store: StoreProtocol):
        self.store = store

    # --- Items ---

    def add_item(
        self,
        name: str,
        unit: str = "pcs",
        reorder_level: float | None = None,
        category: str = "Uncategorized",
    ) -> Item:
        """Add an item to the catalog.

        Args:
            name: Item name
            unit: Unit of measurement
            reorder_level: Quantity at or below which the item is low
            category: Category name

        Returns:
            The created Item

        Raises:
            ValueError: If the name is blank or the reorder level is not finite
        """
        if not name.strip():
            raise ValueError("Item name is required")
        if reorder_level is not None and not is_finite_number(reorder_level):
            raise ValueError("Reorder level must be a finite number")

        item = Item(
            name=name.strip(),
            unit=unit,
            reorder_level=reorder_level,
            category=category or "Uncategorized",
        )
        self.store.add_item(item)
        return item

    def get_item(self, item_id: str | UUID) -> Item:
        """Get an item by ID.

        Raises:
            ItemNotFoundError: If no such item exists
        """
        if isinstance(item_id, str):
            item_id = UUID(item_id)
        item = self.store.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def list_items(self, include_inactive: bool = False) -> list[Item]:
        return self.store.list_items(active_only=not include_inactive)

    def update_item(
        self,
        item_id: str | UUID,
        name: str | None = None,
        unit: str | None = None,
        reorder_level: float | None = None,
        category: str | None = None,
        clear_reorder_level: bool = False,
    ) -> Item:
        """Update editable item fields. None leaves a field unchanged.

        Args:
            item_id: UUID of item
            name: New name
            unit: New unit
            reorder_level: New reorder level
            category: New category
            clear_reorder_level: Remove the reorder level entirely

        Returns:
            Updated item

        Raises:
            ItemNotFoundError: If item not found
        """
        item = self.get_item(item_id)
        updates: dict = {}
        if name is not None:
            if not name.strip():
                raise ValueError("Item name is required")
            updates["name"] = name.strip()
        if unit is not None:
            updates["unit"] = unit
        if category is not None:
            updates["category"] = category
        if clear_reorder_level:
            updates["reorder_level"] = None
        elif reorder_level is not None:
            if not is_finite_number(reorder_level):
                raise ValueError("Reorder level must be a finite number")
            updates["reorder_level"] = reorder_level

        updated = item.model_copy(update=updates)
        self.store.update_item(updated)
        return updated

    def deactivate_item(self, item_id: str | UUID) -> Item:
        """Hide an item from active views. Items are never hard-deleted."""
        item = self.get_item(item_id)
        deactivated = item.model_copy(update={"is_active": False})
        self.store.update_item(deactivated)
        logger.info("Deactivated item %s (%s)", item.name, item.id)
        return deactivated

    def categories(self) -> list[str]:
        return self.store.list_categories()

    # --- Movements and counts ---

    def record_movement(
        self,
        item_id: str | UUID,
        kind: MovementKind | str,
        quantity: float,
        unit_cost: float | None = None,
        occurred_at: datetime | None = None,
    ) -> StockMovement:
        """Append a stock movement.

        Args:
            item_id: Item moved
            kind: "in", "out" or "adjust"
            quantity: Quantity moved (adjustments may be negative)
            unit_cost: Cost per unit, if known
            occurred_at: When it happened; defaults to now

        Returns:
            The recorded movement

        Raises:
            ItemNotFoundError: If item not found
            ValueError: If quantity or cost is not a finite number
        """
        item = self.get_item(item_id)
        kind = MovementKind(kind)
        if not is_finite_number(quantity):
            raise ValueError("Quantity must be a finite number")
        if unit_cost is not None and not is_finite_number(unit_cost):
            raise ValueError("Unit cost must be a finite number")
        if kind != MovementKind.ADJUST and quantity < 0:
            raise ValueError("Quantity must not be negative for in/out movements")

        movement = StockMovement(
            item_id=item.id,
            kind=kind,
            quantity=quantity,
            unit_cost=unit_cost,
            occurred_at=occurred_at or utcnow(),
        )
        self.store.add_movement(movement)
        return movement

    def record_count(
        self,
        item_id: str | UUID,
        raw_value: str,
        count_date: date | None = None,
        qty_unit: str | None = None,
        created_by: str | None = None,
        source: CountSource = CountSource.APP_ENTRY,
    ) -> StockCount:
        """Record a stocktake count; a second count the same day replaces the first.

        Args:
            item_id: Item counted
            raw_value: Count text as entered, e.g. "3 pkts" or "nil"
            count_date: Day of the count; defaults to today
            qty_unit: Unit of the count; defaults to the item's unit
            created_by: Who counted
            source: Where the count came from

        Returns:
            The stored count
        """
        item = self.get_item(item_id)
        count = StockCount(
            item_id=item.id,
            count_date=count_date or date.today(),
            raw_value=raw_value,
            qty_numeric=parse_count_text(raw_value),
            qty_unit=qty_unit or item.unit,
            source=source,
            created_by=created_by,
        )
        return self.store.upsert_count(count)

    def count_history(
        self,
        start: date | None = None,
        end: date | None = None,
        item_id: str | UUID | None = None,
    ) -> list[StockCount]:
        if isinstance(item_id, str):
            item_id = UUID(item_id)
        return self.store.list_counts(start=start, end=end, item_id=item_id)

    def latest_count_date(self) -> date | None:
        """Date of the most recent stocktake, or None before the first count."""
        latest_date, _ = self.store.latest_stocktake([])
        return latest_date

    # --- Derived state ---

    def stock_levels(self) -> list[ItemStock]:
        """Classify every active item from the most recent stocktake.

        Only counts taken on the newest count date are read. An item without a
        count on that date reads as missing, and so as low stock, even when it
        was counted earlier.

        Returns:
            One ItemStock per active item, in name order
        """
        items = self.store.list_items(active_only=True)
        _, latest = self.store.latest_stocktake([item.id for item in items])

        levels = []
        for item in items:
            count = latest.get(item.id)
            if count is None:
                reading = read_count(None, present=False)
            else:
                reading = read_count(count.raw_value, count.qty_numeric)
            levels.append(
                ItemStock(
                    item=item,
                    latest_count=count,
                    reading=reading,
                    level=classify_reading(reading, item.reorder_level),
                )
            )
        return levels

    def low_stock(self) -> list[ItemStock]:
        """Items that are low or out of stock."""
        return [stock for stock in self.stock_levels() if stock.level.needs_attention]

    def positions(self) -> dict[UUID, StockPosition]:
        """Movement-derived quantity and value per active item."""
        item_ids = [item.id for item in self.store.list_items(active_only=True)]
        return aggregate(item_ids, self.store.list_movements(item_ids))

    def valuation(self) -> list[ValuationRow]:
        """Value each active item at its latest count times its latest "in" cost.

        Items with no usable count or no recorded purchase cost are valued at 0.
        """
        stocks = self.stock_levels()
        costs = latest_unit_costs(
            self.store.list_movements([stock.item.id for stock in stocks])
        )

        rows = []
        for stock in stocks:
            quantity = stock.reading.quantity
            unit_cost = costs.get(stock.item.id)
            value = quantity * unit_cost if quantity is not None and unit_cost is not None else 0.0
            rows.append(
                ValuationRow(
                    item_id=stock.item.id,
                    item_name=stock.item.name,
                    unit=stock.item.unit,
                    quantity=quantity,
                    unit_cost=unit_cost,
                    value=value,
                )
            )
        return rows

    def total_valuation(self) -> float:
        return sum(row.value for row in self.valuation())
