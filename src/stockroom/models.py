"""Core data models for Stockroom."""

from datetime import date, datetime, timezone
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from .recurrence import Recurrence, parse_timestamp


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Role(str, Enum):
    """Team member roles."""

    ADMIN = "admin"
    MANAGER = "manager"
    VIEWER = "viewer"


class MovementKind(str, Enum):
    """Kinds of stock movement."""

    IN = "in"
    OUT = "out"
    ADJUST = "adjust"


class CountSource(str, Enum):
    """Where a stock count came from."""

    APP_ENTRY = "app_entry"
    SHOPPING_LIST = "shopping_list"


class ReceiptStatus(str, Enum):
    """Review status of a receipt."""

    PENDING = "Pending"
    VERIFIED = "Verified"
    FLAGGED = "Flagged"


class ShoppingListStatus(str, Enum):
    """Lifecycle of a shopping list."""

    ACTIVE = "active"
    DONE = "done"


REMINDER_COLORS = ("chart-1", "chart-2", "chart-3", "chart-4", "chart-5")


class Profile(BaseModel):
    """A team member profile."""

    id: str
    full_name: str | None = None
    role: Role = Role.VIEWER


class Item(BaseModel):
    """An inventory item."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    unit: str = "pcs"
    reorder_level: float | None = None
    category: str = "Uncategorized"
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class StockMovement(BaseModel):
    """An append-only stock event."""

    id: UUID = Field(default_factory=uuid4)
    item_id: UUID
    kind: MovementKind
    quantity: float | None = 0.0
    unit_cost: float | None = None
    occurred_at: datetime = Field(default_factory=utcnow)


class StockCount(BaseModel):
    """A stocktake observation for one item on one day.

    ``raw_value`` is the literal text that was entered and is the source of
    truth; ``qty_numeric`` is an optional pre-parsed cache of it.
    """

    id: UUID = Field(default_factory=uuid4)
    item_id: UUID
    count_date: date
    raw_value: str
    qty_numeric: float | None = None
    qty_unit: str | None = None
    source: CountSource = CountSource.APP_ENTRY
    created_by: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


class Receipt(BaseModel):
    """An expense receipt.

    ``balance`` and ``previous_balance`` are derived by the financial ledger
    every time receipts are read; they are never stored.
    """

    id: UUID = Field(default_factory=uuid4)
    owner_id: str
    vendor: str
    category: str
    amount: float
    amount_received: float | None = None
    balance: float | None = None
    previous_balance: float | None = None
    payment_method: str
    status: ReceiptStatus = ReceiptStatus.PENDING
    receipt_date: date
    created_at: datetime = Field(default_factory=utcnow)
    reference: str | None = None
    file_path: str | None = None


class ShoppingListOverride(BaseModel):
    """A persisted per-item adjustment layered over automatic suggestions."""

    item_id: UUID
    desired_qty: float = 0.0
    unit_price: float | None = None
    excluded: bool = False
    manual: bool = False
    updated_at: datetime = Field(default_factory=utcnow)


class ShoppingList(BaseModel):
    """A named shopping list snapshot."""

    id: UUID = Field(default_factory=uuid4)
    title: str
    status: ShoppingListStatus = ShoppingListStatus.ACTIVE
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None


class ShoppingListEntry(BaseModel):
    """A point-in-time copy of a reconciled shopping list row."""

    list_id: UUID
    item_id: UUID
    item_name: str
    category: str = "Uncategorized"
    unit: str = "pcs"
    current_qty: float | None = None
    desired_qty: float = 0.0
    unit_price: float = 0.0
    status: str
    source: str = "auto"  # "auto", "manual"


class Reminder(BaseModel):
    """A (possibly recurring) reminder."""

    id: UUID = Field(default_factory=uuid4)
    owner_id: str
    title: str
    notes: str | None = None
    start_at: datetime
    recurrence: Recurrence = Recurrence.NONE
    color: str = "chart-1"
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("start_at", mode="before")
    @classmethod
    def normalize_start_at(cls, v: object) -> object:
        if isinstance(v, (str, datetime)):
            return parse_timestamp(v)
        return v

    @field_validator("recurrence", mode="before")
    @classmethod
    def default_recurrence(cls, v: object) -> object:
        if v is None:
            return Recurrence.NONE
        if isinstance(v, str) and v not in {r.value for r in Recurrence}:
            return Recurrence.NONE
        return v

    @field_validator("color", mode="before")
    @classmethod
    def default_color(cls, v: object) -> object:
        if v not in REMINDER_COLORS:
            return "chart-1"
        return v


class Notification(BaseModel):
    """An entry in the notification feed.

    ``key`` is stable across invocations so read state can be stored apart.
    """

    key: str
    type: str  # "alert", "update"
    title: str
    message: str
    severity: str | None = None  # "low", "out"
    read: bool = False
