"""Running cash balance over receipts."""

from collections.abc import Iterable
from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel

from .count_normalizer import is_finite_number
from .models import Receipt


class BalanceEntry(BaseModel):
    """Derived balance after a receipt, and the balance before it."""

    balance: float
    previous_balance: float


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def chronological_key(receipt: Receipt) -> tuple[str, datetime, str]:
    """Sort key for folding: receipt date, then creation time, then ID."""
    return (
        receipt.receipt_date.isoformat(),
        _as_utc(receipt.created_at),
        str(receipt.id),
    )


def received_amount(receipt: Receipt) -> float:
    """Funds added by a receipt; falls back to the spend when not recorded."""
    if is_finite_number(receipt.amount_received):
        return float(receipt.amount_received)  # type: ignore[arg-type]
    return spent_amount(receipt)


def spent_amount(receipt: Receipt) -> float:
    return float(receipt.amount) if is_finite_number(receipt.amount) else 0.0


def chronological(receipts: Iterable[Receipt]) -> list[Receipt]:
    """Receipts in the single deterministic order the balance is folded in."""
    return sorted(receipts, key=chronological_key)


def compute_balances(receipts: Iterable[Receipt]) -> dict[UUID, BalanceEntry]:
    """Fold receipts chronologically into a running balance.

    Input order is irrelevant: receipts are re-sorted by (date, created_at,
    id) before folding, so same-day receipts still fold deterministically.

    Args:
        receipts: Receipts in any order

    Returns:
        Dict of receipt ID -> BalanceEntry
    """
    balances: dict[UUID, BalanceEntry] = {}
    running = 0.0
    for receipt in chronological(receipts):
        previous = running
        running = previous + received_amount(receipt) - spent_amount(receipt)
        balances[receipt.id] = BalanceEntry(balance=running, previous_balance=previous)
    return balances


def current_balance(receipts: Iterable[Receipt]) -> float:
    """Balance after the chronologically latest receipt (0 with no receipts)."""
    ordered = chronological(receipts)
    if not ordered:
        return 0.0
    return compute_balances(ordered)[ordered[-1].id].balance


def with_balances(receipts: Iterable[Receipt], newest_first: bool = True) -> list[Receipt]:
    """Copies of the receipts with derived balances filled in, sorted for display."""
    ordered = chronological(receipts)
    balances = compute_balances(ordered)
    filled = [
        receipt.model_copy(
            update={
                "balance": balances[receipt.id].balance,
                "previous_balance": balances[receipt.id].previous_balance,
            }
        )
        for receipt in ordered
    ]
    if newest_first:
        filled.reverse()
    return filled
