"""Stock movement aggregation into quantities and values."""

from collections.abc import Iterable
from uuid import UUID

from pydantic import BaseModel

from .count_normalizer import is_finite_number
from .models import MovementKind, StockMovement


class StockPosition(BaseModel):
    """Quantity on hand and accumulated value for one item."""

    quantity: float = 0.0
    total_value: float = 0.0


def _finite(value: float | None) -> float:
    return float(value) if is_finite_number(value) else 0.0  # type: ignore[arg-type]


def aggregate(
    item_ids: Iterable[UUID],
    movements: Iterable[StockMovement],
) -> dict[UUID, StockPosition]:
    """Fold stock movements into a position per requested item.

    The fold is commutative, so movement order does not matter. "out"
    movements are valued at their own recorded unit cost, which can drive
    the value negative; this cumulative-cost model is kept as is.

    Args:
        item_ids: Items to report; each starts at zero
        movements: Movements in any order; other items' movements are ignored

    Returns:
        Dict of item ID -> StockPosition
    """
    positions = {item_id: StockPosition() for item_id in item_ids}

    for move in movements:
        position = positions.get(move.item_id)
        if position is None:
            continue

        qty = _finite(move.quantity)
        cost = _finite(move.unit_cost)

        if move.kind == MovementKind.IN:
            position.quantity += qty
            position.total_value += qty * cost
        elif move.kind == MovementKind.OUT:
            position.quantity -= qty
            position.total_value -= qty * cost
        elif move.kind == MovementKind.ADJUST:
            position.quantity += qty

    return positions


def latest_unit_costs(movements: Iterable[StockMovement]) -> dict[UUID, float]:
    """Most recent "in" unit cost per item, skipping movements without a cost."""
    latest: dict[UUID, StockMovement] = {}
    for move in movements:
        if move.kind != MovementKind.IN or not is_finite_number(move.unit_cost):
            continue
        current = latest.get(move.item_id)
        if current is None or (move.occurred_at, str(move.id)) > (
            current.occurred_at,
            str(current.id),
        ):
            latest[move.item_id] = move
    return {item_id: float(move.unit_cost) for item_id, move in latest.items()}  # type: ignore[arg-type]
