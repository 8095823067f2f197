"""Low-stock classification."""

from enum import Enum

from pydantic import BaseModel

from .count_normalizer import CountReading


class StockStatus(str, Enum):
    """Stock status of an item."""

    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"

    @property
    def label(self) -> str:
        return {
            StockStatus.IN_STOCK: "In stock",
            StockStatus.LOW_STOCK: "Low stock",
            StockStatus.OUT_OF_STOCK: "Out of stock",
        }[self]


class StockLevel(BaseModel):
    """Classification result for one item."""

    status: StockStatus
    is_urgent: bool = False

    @property
    def needs_attention(self) -> bool:
        return self.status != StockStatus.IN_STOCK


def classify(normalized_qty: float | None, reorder_level: float | None) -> StockLevel:
    """Classify an item from its normalized count and reorder threshold.

    An unknown quantity (no count, or text that could not be parsed) is
    treated as a risk and reported as low stock.
    """
    if normalized_qty is None:
        return StockLevel(status=StockStatus.LOW_STOCK)
    if normalized_qty <= 0:
        return StockLevel(status=StockStatus.OUT_OF_STOCK, is_urgent=True)
    if reorder_level is not None and normalized_qty <= reorder_level:
        return StockLevel(status=StockStatus.LOW_STOCK)
    return StockLevel(status=StockStatus.IN_STOCK)


def classify_reading(reading: CountReading, reorder_level: float | None) -> StockLevel:
    return classify(reading.quantity, reorder_level)
