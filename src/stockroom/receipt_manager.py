"""Receipt recording, review and running balances."""

import logging
from datetime import date
from uuid import UUID

from pydantic import BaseModel, field_validator

from .count_normalizer import is_finite_number
from .financial_ledger import current_balance, with_balances
from .models import Receipt, ReceiptStatus
from .store import StoreProtocol
from .team import TeamManager

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[ReceiptStatus, set[ReceiptStatus]] = {
    ReceiptStatus.PENDING: {ReceiptStatus.VERIFIED, ReceiptStatus.FLAGGED},
    ReceiptStatus.FLAGGED: {ReceiptStatus.VERIFIED, ReceiptStatus.PENDING},
    ReceiptStatus.VERIFIED: set(),
}


class ReceiptNotFoundError(Exception):
    """Raised when a receipt is not found."""

    def __init__(self, receipt_id: UUID | str):
        self.receipt_id = receipt_id
        super().__init__(f"Receipt with ID '{receipt_id}' not found")


class InvalidStatusTransitionError(Exception):
    """Raised when a receipt cannot move to the requested status."""

    def __init__(self, current: ReceiptStatus, requested: ReceiptStatus):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot change receipt status from {current.value} to {requested.value}"
        )


class ReceiptInput(BaseModel):
    """Input model for recording or editing a receipt."""

    vendor: str
    category: str
    amount: float
    amount_received: float | None = None
    payment_method: str
    receipt_date: date
    reference: str | None = None
    file_path: str | None = None

    @field_validator("vendor", "category", "payment_method")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field must not be blank")
        return v.strip()

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: float) -> float:
        if not is_finite_number(v):
            raise ValueError("Amount must be a finite number")
        if v < 0:
            raise ValueError("Amount must not be negative")
        return v

    @field_validator("amount_received")
    @classmethod
    def validate_amount_received(cls, v: float | None) -> float | None:
        if v is not None and not is_finite_number(v):
            raise ValueError("Amount received must be a finite number")
        return v


class ReceiptManager:
    """Records receipts and derives the running balance over them."""

    def __init__(self, store: StoreProtocol, team: TeamManager | None = None):
        """Initialize receipt manager.

        Args:
            store: Store instance
            team: TeamManager used for permission checks
        """
        self.store = store
        self.team = team or TeamManager(store)

    def add_receipt(self, owner_id: str, receipt_input: ReceiptInput) -> Receipt:
        """Record a receipt.

        Args:
            owner_id: User the receipt belongs to
            receipt_input: Validated receipt fields

        Returns:
            The stored receipt (without derived balances)
        """
        receipt = Receipt(
            owner_id=owner_id,
            vendor=receipt_input.vendor,
            category=receipt_input.category,
            amount=receipt_input.amount,
            amount_received=receipt_input.amount_received,
            payment_method=receipt_input.payment_method,
            receipt_date=receipt_input.receipt_date,
            reference=receipt_input.reference,
            file_path=receipt_input.file_path,
        )
        self.store.add_receipt(receipt)
        return receipt

    def add_receipt_dict(self, owner_id: str, receipt_dict: dict) -> Receipt:
        """Record a receipt from dictionary input (e.g. parsed JSON)."""
        return self.add_receipt(owner_id, ReceiptInput(**receipt_dict))

    def get_receipt(self, receipt_id: str | UUID) -> Receipt:
        if isinstance(receipt_id, str):
            receipt_id = UUID(receipt_id)
        receipt = self.store.get_receipt(receipt_id)
        if receipt is None:
            raise ReceiptNotFoundError(receipt_id)
        return receipt

    def list_receipts(
        self,
        owner_id: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[Receipt]:
        """List receipts with running balances, newest first.

        Balances are folded over all of the owner's receipts before the date
        filter is applied, so a filtered view shows the same balances as the
        full one.

        Args:
            owner_id: Restrict to one owner
            start: First receipt date to include
            end: Last receipt date to include

        Returns:
            Receipts with ``balance`` and ``previous_balance`` filled
        """
        filled = with_balances(self.store.list_receipts(owner_id=owner_id))
        return [
            receipt
            for receipt in filled
            if (start is None or receipt.receipt_date >= start)
            and (end is None or receipt.receipt_date <= end)
        ]

    def current_balance(self, owner_id: str | None = None) -> float:
        return current_balance(self.store.list_receipts(owner_id=owner_id))

    def update_receipt(self, receipt_id: str | UUID, receipt_input: ReceiptInput) -> Receipt:
        """Replace a receipt's editable fields. Status and attachment are kept.

        Raises:
            ReceiptNotFoundError: If receipt not found
        """
        existing = self.get_receipt(receipt_id)
        updated = existing.model_copy(
            update={
                "vendor": receipt_input.vendor,
                "category": receipt_input.category,
                "amount": receipt_input.amount,
                "amount_received": receipt_input.amount_received,
                "payment_method": receipt_input.payment_method,
                "receipt_date": receipt_input.receipt_date,
                "reference": receipt_input.reference,
            }
        )
        self.store.update_receipt(updated)
        return updated

    def update_status(
        self,
        acting_user: str | None,
        receipt_id: str | UUID,
        status: ReceiptStatus | str,
    ) -> Receipt:
        """Change a receipt's review status. Admins only.

        Args:
            acting_user: User making the change
            receipt_id: Receipt to change
            status: New status

        Returns:
            The receipt with its new status

        Raises:
            PermissionDeniedError: If the acting user is not an admin
            ReceiptNotFoundError: If receipt not found
            InvalidStatusTransitionError: If the transition is not allowed
        """
        self.team.require_admin(acting_user, "change receipt status")
        status = ReceiptStatus(status)
        receipt = self.get_receipt(receipt_id)

        if receipt.status == status:
            return receipt
        if status not in ALLOWED_TRANSITIONS[receipt.status]:
            raise InvalidStatusTransitionError(receipt.status, status)

        self.store.update_receipt_status(receipt.id, status)
        logger.info(
            "Receipt %s status %s -> %s by %s",
            receipt.id,
            receipt.status.value,
            status.value,
            acting_user,
        )
        return receipt.model_copy(update={"status": status})

    def delete_receipt(self, receipt_id: str | UUID) -> None:
        """Delete a receipt.

        Raises:
            ReceiptNotFoundError: If receipt not found
        """
        if isinstance(receipt_id, str):
            receipt_id = UUID(receipt_id)
        if not self.store.delete_receipt(receipt_id):
            raise ReceiptNotFoundError(receipt_id)
