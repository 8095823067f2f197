"""Tests for the running balance over receipts."""

from datetime import date, datetime, timedelta, timezone

import pytest

from stockroom.financial_ledger import (
    chronological,
    compute_balances,
    current_balance,
    received_amount,
    with_balances,
)
from stockroom.models import Receipt

T0 = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


def receipt(day: date, received, spent, created_offset_minutes=0, **kwargs) -> Receipt:
    return Receipt(
        owner_id="u1",
        vendor=kwargs.pop("vendor", "Vendor"),
        category="Supplies",
        amount=spent,
        amount_received=received,
        payment_method="Cash",
        receipt_date=day,
        created_at=T0 + timedelta(minutes=created_offset_minutes),
        **kwargs,
    )


@pytest.fixture
def three_receipts():
    r1 = receipt(date(2024, 1, 1), 1000, 200, 0)
    r2 = receipt(date(2024, 1, 1), 0, 100, 5)
    r3 = receipt(date(2024, 1, 2), 0, 50, 1)
    return r1, r2, r3


class TestComputeBalances:
    """Tests for compute_balances()."""

    def test_reverse_input_order_still_folds_chronologically(self, three_receipts):
        r1, r2, r3 = three_receipts
        balances = compute_balances([r3, r2, r1])

        assert balances[r1.id].balance == 800
        assert balances[r2.id].balance == 700
        assert balances[r3.id].balance == 650

    def test_previous_balance(self, three_receipts):
        r1, r2, r3 = three_receipts
        balances = compute_balances([r2, r3, r1])

        assert balances[r1.id].previous_balance == 0
        assert balances[r2.id].previous_balance == 800
        assert balances[r3.id].previous_balance == 700

    def test_empty(self):
        assert compute_balances([]) == {}
        assert current_balance([]) == 0

    def test_same_day_same_created_at_breaks_tie_by_id(self):
        a = receipt(date(2024, 1, 1), 100, 0)
        b = receipt(date(2024, 1, 1), 0, 30)
        first, second = sorted([a, b], key=lambda r: str(r.id))

        assert chronological([b, a]) == [first, second]
        assert chronological([a, b]) == [first, second]

    def test_naive_and_aware_created_at_are_comparable(self):
        aware = receipt(date(2024, 1, 1), 100, 0, 10)
        naive = receipt(date(2024, 1, 1), 0, 30).model_copy(
            update={"created_at": datetime(2024, 1, 1, 8, 0)}
        )
        balances = compute_balances([aware, naive])

        assert balances[naive.id].balance == -30
        assert balances[aware.id].balance == 70


class TestReceivedAmount:
    def test_falls_back_to_spend(self):
        r = receipt(date(2024, 1, 1), None, 40)
        assert received_amount(r) == 40

    def test_zero_received_is_kept(self):
        r = receipt(date(2024, 1, 1), 0, 40)
        assert received_amount(r) == 0


class TestCurrentBalance:
    def test_independent_of_input_order(self, three_receipts):
        r1, r2, r3 = three_receipts
        assert current_balance([r1, r2, r3]) == 650
        assert current_balance([r3, r1, r2]) == 650


class TestWithBalances:
    def test_newest_first_with_fields_filled(self, three_receipts):
        r1, r2, r3 = three_receipts
        filled = with_balances([r1, r3, r2])

        assert [r.id for r in filled] == [r3.id, r2.id, r1.id]
        assert [r.balance for r in filled] == [650, 700, 800]
        assert filled[0].previous_balance == 700

    def test_inputs_are_not_mutated(self, three_receipts):
        r1, _, _ = three_receipts
        with_balances([r1])
        assert r1.balance is None
