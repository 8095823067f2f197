"""SQLite-based persistence for Stockroom.

This module implements StoreProtocol on a single SQLite database file. Every
public method opens its own connection and commits or rolls back as a unit.
"""

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from uuid import UUID

from .models import (
    CountSource,
    Item,
    MovementKind,
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
from .store import StoreError


def _optional_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteStore:
    """Manages SQLite database persistence for inventory and expense data."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | None = None):
        """Initialize SQLite store.

        Args:
            db_path: Path to the SQLite database file. Defaults to ./data/stockroom.db
        """
        if db_path is None:
            db_path = Path.cwd() / "data" / "stockroom.db"
        self.db_path = db_path
        self._ensure_directories()
        self._init_database()

    def _ensure_directories(self) -> None:
        """Create the database directory if it doesn't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper cleanup.

        Raises:
            StoreError: If any statement fails; the transaction is rolled back
        """
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database schema if not exists."""
        with self._get_connection() as conn:
            conn.executescript("""
                -- Schema version tracking
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                );

                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    full_name TEXT,
                    role TEXT NOT NULL DEFAULT 'viewer'
                );

                CREATE TABLE IF NOT EXISTS categories (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE
                );

                -- Items are never deleted; is_active = 0 hides them
                CREATE TABLE IF NOT EXISTS items (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    unit TEXT NOT NULL DEFAULT 'pcs',
                    reorder_level REAL,
                    category_id INTEGER REFERENCES categories(id),
                    is_active INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS stock_movements (
                    id TEXT PRIMARY KEY,
                    item_id TEXT NOT NULL REFERENCES items(id),
                    kind TEXT NOT NULL,
                    quantity REAL,
                    unit_cost REAL,
                    occurred_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_stock_movements_item
                    ON stock_movements(item_id);

                -- One logical count per item per day
                CREATE TABLE IF NOT EXISTS stock_counts (
                    id TEXT PRIMARY KEY,
                    item_id TEXT NOT NULL REFERENCES items(id),
                    count_date TEXT NOT NULL,
                    raw_value TEXT NOT NULL,
                    qty_numeric REAL,
                    qty_unit TEXT,
                    source TEXT NOT NULL DEFAULT 'app_entry',
                    created_by TEXT,
                    created_at TEXT NOT NULL,
                    UNIQUE(item_id, count_date)
                );

                CREATE TABLE IF NOT EXISTS receipts (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    vendor TEXT NOT NULL,
                    category TEXT NOT NULL,
                    amount REAL NOT NULL,
                    amount_received REAL,
                    payment_method TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'Pending',
                    receipt_date TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    reference TEXT,
                    file_path TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_receipts_owner_date
                    ON receipts(owner_id, receipt_date);

                CREATE TABLE IF NOT EXISTS shopping_list_overrides (
                    item_id TEXT PRIMARY KEY REFERENCES items(id),
                    desired_qty REAL NOT NULL DEFAULT 0,
                    unit_price REAL,
                    excluded INTEGER NOT NULL DEFAULT 0,
                    manual INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS shopping_lists (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'active',
                    created_at TEXT NOT NULL,
                    completed_at TEXT
                );

                -- At most one active list
                CREATE UNIQUE INDEX IF NOT EXISTS idx_shopping_lists_one_active
                    ON shopping_lists(status) WHERE status = 'active';

                CREATE TABLE IF NOT EXISTS shopping_list_entries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    list_id TEXT NOT NULL REFERENCES shopping_lists(id) ON DELETE CASCADE,
                    item_id TEXT NOT NULL,
                    item_name TEXT NOT NULL,
                    category TEXT NOT NULL,
                    unit TEXT NOT NULL,
                    current_qty REAL,
                    desired_qty REAL NOT NULL,
                    unit_price REAL NOT NULL,
                    status TEXT NOT NULL,
                    source TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS reminders (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    notes TEXT,
                    start_at TEXT NOT NULL,
                    recurrence TEXT NOT NULL DEFAULT 'none',
                    color TEXT NOT NULL DEFAULT 'chart-1',
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS notification_reads (
                    user_id TEXT NOT NULL,
                    notification_key TEXT NOT NULL,
                    read_at TEXT NOT NULL DEFAULT (datetime('now')),
                    PRIMARY KEY (user_id, notification_key)
                );

                -- Record schema version
                INSERT OR IGNORE INTO schema_version (version) VALUES (1);
            """)

    # --- Item Operations ---

    def _category_id(self, conn: sqlite3.Connection, name: str) -> int:
        """Look up a category by name, creating it if needed."""
        conn.execute("INSERT OR IGNORE INTO categories (name) VALUES (?)", (name,))
        row = conn.execute("SELECT id FROM categories WHERE name = ?", (name,)).fetchone()
        return row["id"]

    def _row_to_item(self, row: sqlite3.Row) -> Item:
        return Item(
            id=UUID(row["id"]),
            name=row["name"],
            unit=row["unit"],
            reorder_level=row["reorder_level"],
            category=row["category"] or "Uncategorized",
            is_active=bool(row["is_active"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    _ITEM_SELECT = """
        SELECT i.*, c.name AS category
        FROM items i LEFT JOIN categories c ON c.id = i.category_id
    """

    def add_item(self, item: Item) -> UUID:
        """Insert a new item.

        Args:
            item: Item to save

        Returns:
            Item ID
        """
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO items (id, name, unit, reorder_level, category_id, is_active, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(item.id),
                    item.name,
                    item.unit,
                    item.reorder_level,
                    self._category_id(conn, item.category),
                    int(item.is_active),
                    item.created_at.isoformat(),
                ),
            )
        return item.id

    def update_item(self, item: Item) -> None:
        """Update an item's editable fields, including its active flag."""
        with self._get_connection() as conn:
            conn.execute(
                """
                UPDATE items
                SET name = ?, unit = ?, reorder_level = ?, category_id = ?, is_active = ?
                WHERE id = ?
                """,
                (
                    item.name,
                    item.unit,
                    item.reorder_level,
                    self._category_id(conn, item.category),
                    int(item.is_active),
                    str(item.id),
                ),
            )

    def get_item(self, item_id: UUID) -> Item | None:
        """Get an item by ID, active or not."""
        with self._get_connection() as conn:
            row = conn.execute(
                f"{self._ITEM_SELECT} WHERE i.id = ?", (str(item_id),)
            ).fetchone()
            return self._row_to_item(row) if row else None

    def list_items(self, active_only: bool = True) -> list[Item]:
        """List items ordered by name."""
        query = self._ITEM_SELECT
        if active_only:
            query += " WHERE i.is_active = 1"
        query += " ORDER BY i.name COLLATE NOCASE, i.id"
        with self._get_connection() as conn:
            return [self._row_to_item(row) for row in conn.execute(query).fetchall()]

    def list_categories(self) -> list[str]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT name FROM categories ORDER BY name").fetchall()
            return [row["name"] for row in rows]

    # --- Stock Movement Operations ---

    def add_movement(self, movement: StockMovement) -> UUID:
        """Append a stock movement."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO stock_movements (id, item_id, kind, quantity, unit_cost, occurred_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    str(movement.id),
                    str(movement.item_id),
                    movement.kind.value,
                    movement.quantity,
                    movement.unit_cost,
                    movement.occurred_at.isoformat(),
                ),
            )
        return movement.id

    def list_movements(self, item_ids: list[UUID] | None = None) -> list[StockMovement]:
        """List movements, optionally restricted to some items."""
        query = "SELECT * FROM stock_movements"
        params: list[str] = []
        if item_ids is not None:
            if not item_ids:
                return []
            placeholders = ",".join("?" * len(item_ids))
            query += f" WHERE item_id IN ({placeholders})"
            params = [str(i) for i in item_ids]
        query += " ORDER BY occurred_at, id"

        with self._get_connection() as conn:
            return [
                StockMovement(
                    id=UUID(row["id"]),
                    item_id=UUID(row["item_id"]),
                    kind=MovementKind(row["kind"]),
                    quantity=row["quantity"],
                    unit_cost=row["unit_cost"],
                    occurred_at=datetime.fromisoformat(row["occurred_at"]),
                )
                for row in conn.execute(query, params).fetchall()
            ]

    # --- Stock Count Operations ---

    def _row_to_count(self, row: sqlite3.Row) -> StockCount:
        return StockCount(
            id=UUID(row["id"]),
            item_id=UUID(row["item_id"]),
            count_date=date.fromisoformat(row["count_date"]),
            raw_value=row["raw_value"],
            qty_numeric=row["qty_numeric"],
            qty_unit=row["qty_unit"],
            source=CountSource(row["source"]),
            created_by=row["created_by"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def upsert_count(self, count: StockCount) -> StockCount:
        """Write a stock count keyed by (item, date).

        A later write for the same item and day replaces the earlier values
        in place, so the row keeps its original ID.

        Returns:
            The stored count
        """
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO stock_counts
                (id, item_id, count_date, raw_value, qty_numeric, qty_unit, source,
                 created_by, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(item_id, count_date) DO UPDATE SET
                    raw_value = excluded.raw_value,
                    qty_numeric = excluded.qty_numeric,
                    qty_unit = excluded.qty_unit,
                    source = excluded.source,
                    created_by = excluded.created_by,
                    created_at = excluded.created_at
                """,
                (
                    str(count.id),
                    str(count.item_id),
                    count.count_date.isoformat(),
                    count.raw_value,
                    count.qty_numeric,
                    count.qty_unit,
                    count.source.value,
                    count.created_by,
                    count.created_at.isoformat(),
                ),
            )
            row = conn.execute(
                "SELECT * FROM stock_counts WHERE item_id = ? AND count_date = ?",
                (str(count.item_id), count.count_date.isoformat()),
            ).fetchone()
            return self._row_to_count(row)

    def latest_stocktake(
        self, item_ids: list[UUID] | None = None
    ) -> tuple[date | None, dict[UUID, StockCount]]:
        """Counts recorded on the newest count date.

        Only that one date is read; an item without a row on it is absent from
        the result even if it was counted earlier.

        Args:
            item_ids: Restrict the counts to these items

        Returns:
            (latest count date or None, dict of item ID -> StockCount on that date)
        """
        with self._get_connection() as conn:
            row = conn.execute("SELECT MAX(count_date) AS latest FROM stock_counts").fetchone()
            if row is None or row["latest"] is None:
                return None, {}
            latest = date.fromisoformat(row["latest"])
            if item_ids is not None and not item_ids:
                return latest, {}

            query = "SELECT * FROM stock_counts WHERE count_date = ?"
            params = [latest.isoformat()]
            if item_ids is not None:
                placeholders = ",".join("?" * len(item_ids))
                query += f" AND item_id IN ({placeholders})"
                params.extend(str(i) for i in item_ids)
            counts = [self._row_to_count(r) for r in conn.execute(query, params).fetchall()]
        return latest, {count.item_id: count for count in counts}

    def list_counts(
        self,
        start: date | None = None,
        end: date | None = None,
        item_id: UUID | None = None,
    ) -> list[StockCount]:
        """List counts in an inclusive date range, newest first."""
        clauses = []
        params: list[str] = []
        if start is not None:
            clauses.append("count_date >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("count_date <= ?")
            params.append(end.isoformat())
        if item_id is not None:
            clauses.append("item_id = ?")
            params.append(str(item_id))

        query = "SELECT * FROM stock_counts"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY count_date DESC, created_at DESC"

        with self._get_connection() as conn:
            return [self._row_to_count(row) for row in conn.execute(query, params).fetchall()]

    # --- Receipt Operations ---

    def _row_to_receipt(self, row: sqlite3.Row) -> Receipt:
        return Receipt(
            id=UUID(row["id"]),
            owner_id=row["owner_id"],
            vendor=row["vendor"],
            category=row["category"],
            amount=row["amount"],
            amount_received=row["amount_received"],
            payment_method=row["payment_method"],
            status=ReceiptStatus(row["status"]),
            receipt_date=date.fromisoformat(row["receipt_date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            reference=row["reference"],
            file_path=row["file_path"],
        )

    def add_receipt(self, receipt: Receipt) -> UUID:
        """Insert a receipt. Derived balances are not stored."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO receipts
                (id, owner_id, vendor, category, amount, amount_received, payment_method,
                 status, receipt_date, created_at, reference, file_path)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(receipt.id),
                    receipt.owner_id,
                    receipt.vendor,
                    receipt.category,
                    receipt.amount,
                    receipt.amount_received,
                    receipt.payment_method,
                    receipt.status.value,
                    receipt.receipt_date.isoformat(),
                    receipt.created_at.isoformat(),
                    receipt.reference,
                    receipt.file_path,
                ),
            )
        return receipt.id

    def get_receipt(self, receipt_id: UUID) -> Receipt | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM receipts WHERE id = ?", (str(receipt_id),)
            ).fetchone()
            return self._row_to_receipt(row) if row else None

    def list_receipts(
        self,
        owner_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Receipt]:
        """List receipts, optionally by owner and inclusive date range.

        Rows come back in storage order; callers must not rely on it.
        """
        clauses = []
        params: list[str] = []
        if owner_id is not None:
            clauses.append("owner_id = ?")
            params.append(owner_id)
        if start is not None:
            clauses.append("receipt_date >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("receipt_date <= ?")
            params.append(end.isoformat())

        query = "SELECT * FROM receipts"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)

        with self._get_connection() as conn:
            return [self._row_to_receipt(row) for row in conn.execute(query, params).fetchall()]

    def update_receipt(self, receipt: Receipt) -> None:
        """Update a receipt's editable fields. Status and attachment are left alone."""
        with self._get_connection() as conn:
            conn.execute(
                """
                UPDATE receipts
                SET vendor = ?, category = ?, amount = ?, amount_received = ?,
                    payment_method = ?, reference = ?, receipt_date = ?
                WHERE id = ?
                """,
                (
                    receipt.vendor,
                    receipt.category,
                    receipt.amount,
                    receipt.amount_received,
                    receipt.payment_method,
                    receipt.reference,
                    receipt.receipt_date.isoformat(),
                    str(receipt.id),
                ),
            )

    def update_receipt_status(self, receipt_id: UUID, status: ReceiptStatus) -> None:
        with self._get_connection() as conn:
            conn.execute(
                "UPDATE receipts SET status = ? WHERE id = ?",
                (status.value, str(receipt_id)),
            )

    def delete_receipt(self, receipt_id: UUID) -> bool:
        """Delete a receipt.

        Returns:
            True if a row was deleted
        """
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM receipts WHERE id = ?", (str(receipt_id),))
            return cursor.rowcount > 0

    # --- Shopping List Operations ---

    def _write_override(self, conn: sqlite3.Connection, override: ShoppingListOverride) -> None:
        conn.execute(
            """
            INSERT INTO shopping_list_overrides
            (item_id, desired_qty, unit_price, excluded, manual, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(item_id) DO UPDATE SET
                desired_qty = excluded.desired_qty,
                unit_price = excluded.unit_price,
                excluded = excluded.excluded,
                manual = excluded.manual,
                updated_at = excluded.updated_at
            """,
            (
                str(override.item_id),
                override.desired_qty,
                override.unit_price,
                int(override.excluded),
                int(override.manual),
                override.updated_at.isoformat(),
            ),
        )

    def _write_entries(
        self, conn: sqlite3.Connection, list_id: UUID, entries: list[ShoppingListEntry]
    ) -> None:
        conn.execute("DELETE FROM shopping_list_entries WHERE list_id = ?", (str(list_id),))
        conn.executemany(
            """
            INSERT INTO shopping_list_entries
            (list_id, item_id, item_name, category, unit, current_qty, desired_qty,
             unit_price, status, source)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    str(list_id),
                    str(entry.item_id),
                    entry.item_name,
                    entry.category,
                    entry.unit,
                    entry.current_qty,
                    entry.desired_qty,
                    entry.unit_price,
                    entry.status,
                    entry.source,
                )
                for entry in entries
            ],
        )

    def list_overrides(self) -> list[ShoppingListOverride]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM shopping_list_overrides").fetchall()
            return [
                ShoppingListOverride(
                    item_id=UUID(row["item_id"]),
                    desired_qty=row["desired_qty"],
                    unit_price=row["unit_price"],
                    excluded=bool(row["excluded"]),
                    manual=bool(row["manual"]),
                    updated_at=datetime.fromisoformat(row["updated_at"]),
                )
                for row in rows
            ]

    def upsert_override(self, override: ShoppingListOverride) -> None:
        """Write an override keyed by item; every field is replaced together."""
        with self._get_connection() as conn:
            self._write_override(conn, override)

    def clear_overrides(self) -> int:
        """Delete all overrides, manual additions included.

        Returns:
            Number of rows removed
        """
        with self._get_connection() as conn:
            return conn.execute("DELETE FROM shopping_list_overrides").rowcount

    def _row_to_list(self, row: sqlite3.Row) -> ShoppingList:
        return ShoppingList(
            id=UUID(row["id"]),
            title=row["title"],
            status=ShoppingListStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            completed_at=_optional_datetime(row["completed_at"]),
        )

    def get_active_list(self) -> ShoppingList | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM shopping_lists WHERE status = 'active'"
            ).fetchone()
            return self._row_to_list(row) if row else None

    def get_shopping_list(self, list_id: UUID) -> ShoppingList | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM shopping_lists WHERE id = ?", (str(list_id),)
            ).fetchone()
            return self._row_to_list(row) if row else None

    def create_shopping_list(self, shopping_list: ShoppingList) -> UUID:
        """Insert a list. Fails if it is active while another list already is."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO shopping_lists (id, title, status, created_at, completed_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    str(shopping_list.id),
                    shopping_list.title,
                    shopping_list.status.value,
                    shopping_list.created_at.isoformat(),
                    shopping_list.completed_at.isoformat() if shopping_list.completed_at else None,
                ),
            )
        return shopping_list.id

    def list_shopping_lists(
        self, status: ShoppingListStatus | None = None
    ) -> list[ShoppingList]:
        """List shopping lists, newest first."""
        query = "SELECT * FROM shopping_lists"
        params: list[str] = []
        if status is not None:
            query += " WHERE status = ?"
            params.append(status.value)
        query += " ORDER BY created_at DESC"
        with self._get_connection() as conn:
            return [self._row_to_list(row) for row in conn.execute(query, params).fetchall()]

    def list_entries(self, list_id: UUID) -> list[ShoppingListEntry]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM shopping_list_entries WHERE list_id = ? ORDER BY id",
                (str(list_id),),
            ).fetchall()
            return [
                ShoppingListEntry(
                    list_id=UUID(row["list_id"]),
                    item_id=UUID(row["item_id"]),
                    item_name=row["item_name"],
                    category=row["category"],
                    unit=row["unit"],
                    current_qty=row["current_qty"],
                    desired_qty=row["desired_qty"],
                    unit_price=row["unit_price"],
                    status=row["status"],
                    source=row["source"],
                )
                for row in rows
            ]

    def complete_shopping_list(
        self,
        list_id: UUID,
        entries: list[ShoppingListEntry],
        completed_at: datetime,
    ) -> bool:
        """Snapshot entries and mark a list done in one transaction.

        The status change is conditional on the list still being active, so a
        concurrent completion that lost the race writes nothing.

        Returns:
            False if the list was no longer active
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE shopping_lists SET status = 'done', completed_at = ?
                WHERE id = ? AND status = 'active'
                """,
                (completed_at.isoformat(), str(list_id)),
            )
            if cursor.rowcount == 0:
                return False
            self._write_entries(conn, list_id, entries)
            return True

    def replace_active_list(
        self,
        shopping_list: ShoppingList,
        entries: list[ShoppingListEntry],
        overrides: list[ShoppingListOverride],
        completed_at: datetime,
    ) -> None:
        """Retire the active list and install a new one with its overrides, atomically."""
        with self._get_connection() as conn:
            conn.execute(
                "UPDATE shopping_lists SET status = 'done', completed_at = ? WHERE status = 'active'",
                (completed_at.isoformat(),),
            )
            conn.execute(
                """
                INSERT INTO shopping_lists (id, title, status, created_at, completed_at)
                VALUES (?, ?, 'active', ?, NULL)
                """,
                (str(shopping_list.id), shopping_list.title, shopping_list.created_at.isoformat()),
            )
            conn.execute("DELETE FROM shopping_list_overrides")
            for override in overrides:
                self._write_override(conn, override)
            self._write_entries(conn, shopping_list.id, entries)

    # --- Reminder Operations ---

    def add_reminder(self, reminder: Reminder) -> UUID:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO reminders
                (id, owner_id, title, notes, start_at, recurrence, color, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(reminder.id),
                    reminder.owner_id,
                    reminder.title,
                    reminder.notes,
                    reminder.start_at.isoformat(),
                    reminder.recurrence.value,
                    reminder.color,
                    reminder.created_at.isoformat(),
                ),
            )
        return reminder.id

    def list_reminders(self, owner_id: str | None = None) -> list[Reminder]:
        """List reminders ordered by start time.

        ``start_at`` is stored as text and normalized by the Reminder model
        on the way out.
        """
        query = "SELECT * FROM reminders"
        params: list[str] = []
        if owner_id is not None:
            query += " WHERE owner_id = ?"
            params.append(owner_id)
        query += " ORDER BY start_at"
        with self._get_connection() as conn:
            return [
                Reminder(
                    id=UUID(row["id"]),
                    owner_id=row["owner_id"],
                    title=row["title"],
                    notes=row["notes"],
                    start_at=row["start_at"],
                    recurrence=row["recurrence"],
                    color=row["color"],
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
                for row in conn.execute(query, params).fetchall()
            ]

    # --- Team Operations ---

    def get_profile(self, user_id: str) -> Profile | None:
        with self._get_connection() as conn:
            row = conn.execute("SELECT * FROM profiles WHERE id = ?", (user_id,)).fetchone()
            if not row:
                return None
            return Profile(id=row["id"], full_name=row["full_name"], role=Role(row["role"]))

    def upsert_profile(self, profile: Profile) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO profiles (id, full_name, role) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET full_name = excluded.full_name, role = excluded.role
                """,
                (profile.id, profile.full_name, profile.role.value),
            )

    def list_profiles(self) -> list[Profile]:
        with self._get_connection() as conn:
            rows = conn.execute("SELECT * FROM profiles ORDER BY id").fetchall()
            return [
                Profile(id=row["id"], full_name=row["full_name"], role=Role(row["role"]))
                for row in rows
            ]

    # --- Notification Read State ---

    def read_notification_keys(self, user_id: str, keys: list[str]) -> set[str]:
        if not keys:
            return set()
        placeholders = ",".join("?" * len(keys))
        with self._get_connection() as conn:
            rows = conn.execute(
                f"""
                SELECT notification_key FROM notification_reads
                WHERE user_id = ? AND notification_key IN ({placeholders})
                """,
                [user_id, *keys],
            ).fetchall()
            return {row["notification_key"] for row in rows}

    def mark_notifications_read(self, user_id: str, keys: list[str]) -> None:
        """Record keys as read; repeating a key is a no-op."""
        with self._get_connection() as conn:
            conn.executemany(
                """
                INSERT INTO notification_reads (user_id, notification_key) VALUES (?, ?)
                ON CONFLICT(user_id, notification_key) DO NOTHING
                """,
                [(user_id, key) for key in keys],
            )
