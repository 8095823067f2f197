"""Free-text stock count normalization."""

import math
import re
from enum import Enum

from pydantic import BaseModel

_ZERO_TOKENS = {"nil", "none"}
_FIRST_NUMBER = re.compile(r"-?\d+(\.\d+)?")


class CountKind(str, Enum):
    """What a stock count tells us about the quantity on hand."""

    KNOWN = "known"
    ASSERTED_ZERO = "asserted_zero"
    UNPARSEABLE = "unparseable"
    MISSING = "missing"


class CountReading(BaseModel):
    """A stock count reduced to a quantity, keeping why it is or isn't known."""

    kind: CountKind
    quantity: float | None = None

    @property
    def is_known(self) -> bool:
        return self.quantity is not None


def is_finite_number(value: object) -> bool:
    """True for real numbers that are neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def parse_count_text(raw_value: str | None) -> float | None:
    """Reduce raw count text to a number.

    Only the first number in the text is used, so "1 pkt + 1 opened" reads as 1.
    """
    raw = (raw_value or "").strip().lower()
    if not raw:
        return None
    if raw in _ZERO_TOKENS:
        return 0.0
    match = _FIRST_NUMBER.search(raw)
    return float(match.group(0)) if match else None


def normalize(raw_value: str | None, pre_parsed: float | None = None) -> float | None:
    """Canonical numeric quantity for a stock count, or None when unknown."""
    if is_finite_number(pre_parsed):
        return float(pre_parsed)  # type: ignore[arg-type]
    return parse_count_text(raw_value)


def read_count(
    raw_value: str | None,
    pre_parsed: float | None = None,
    present: bool = True,
) -> CountReading:
    """Classify a count row into a CountReading.

    Args:
        raw_value: Literal count text
        pre_parsed: Optional numeric cache stored alongside the text
        present: False when the item has no count row at all

    Returns:
        CountReading with the kind and, when known, the quantity
    """
    if not present:
        return CountReading(kind=CountKind.MISSING)
    if is_finite_number(pre_parsed):
        return CountReading(kind=CountKind.KNOWN, quantity=float(pre_parsed))  # type: ignore[arg-type]

    raw = (raw_value or "").strip().lower()
    if not raw:
        return CountReading(kind=CountKind.MISSING)
    if raw in _ZERO_TOKENS:
        return CountReading(kind=CountKind.ASSERTED_ZERO, quantity=0.0)

    quantity = parse_count_text(raw)
    if quantity is None:
        return CountReading(kind=CountKind.UNPARSEABLE)
    return CountReading(kind=CountKind.KNOWN, quantity=quantity)


def format_quantity(value: float) -> str:
    """Render a quantity without a trailing '.0' for whole numbers."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"
