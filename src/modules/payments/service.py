"""Reconciliation of billed items against payment rows."""

import logging
from collections.abc import Iterable
from datetime import date
from typing import Any

from src.core.exceptions import ValidationError
from src.modules.payments.models import PaymentMethod, PaymentStatus
from src.modules.payments.schemas import (
    BilledItem,
    BillingKey,
    Payment,
    ReconciledItem,
    Reconciliation,
    reference_field,
)
from src.shared.utils.periods import period_key

logger = logging.getLogger(__name__)

# Fields update_payment may change; difference and status are always derived.
_UPDATABLE_FIELDS = {
    "paid_amount",
    "billed_amount",
    "payment_date",
    "payment_method",
    "followup_status",
    "notes",
}


def default_payment_method(
    direct_debit_start_ym: str | None, year: int, month: int
) -> PaymentMethod:
    """
    Payment method for a period when no override is recorded.

    Direct debit from the student's direct_debit_start_ym ("YYYY-MM") on,
    bank transfer before it or when it is not set.
    """
    if direct_debit_start_ym and period_key(year, month) >= direct_debit_start_ym:
        return PaymentMethod.DIRECT_DEBIT
    return PaymentMethod.BANK_TRANSFER


def derive_status(paid_amount: int, billed_amount: int) -> PaymentStatus:
    """Status stored on a payment row: nothing paid, exact match, or a mismatch."""
    if paid_amount == 0:
        return PaymentStatus.UNPAID
    if paid_amount == billed_amount:
        return PaymentStatus.PAID
    return PaymentStatus.DISCREPANCY


def index_payments(payments: Iterable[Payment]) -> dict[BillingKey, Payment]:
    """Map payments by billed-item key; a key may appear only once."""
    indexed: dict[BillingKey, Payment] = {}
    for payment in payments:
        key = payment.key
        if key in indexed:
            raise ValidationError(
                f"Duplicate payment for {key.billing_type} {key.reference_id} "
                f"in {period_key(key.year, key.month)}",
                field=reference_field(key.billing_type),
            )
        indexed[key] = payment
    return indexed


class ReconciliationService:
    """
    Matches billed items with payment rows.

    Every operation is pure: it returns the payment row the caller should
    store (or None when the row should be deleted) and never mutates input.
    """

    def reconcile(self, item: BilledItem, payment: Payment | None) -> Reconciliation:
        """
        Status precedence, first match wins:
        no payment -> Unpaid; paid_amount == 0 (method override) -> Unpaid;
        paid == billed -> Paid; anything else -> Discrepancy.
        """
        if payment is None:
            return Reconciliation(
                status=PaymentStatus.UNPAID,
                effective_method=item.default_method,
                billed_amount=item.billed_amount,
            )
        self._check_matches(item, payment)

        effective_method = payment.payment_method or item.default_method
        status = derive_status(payment.paid_amount, item.billed_amount)
        difference = 0
        if status == PaymentStatus.DISCREPANCY:
            difference = payment.paid_amount - item.billed_amount

        return Reconciliation(
            status=status,
            effective_method=effective_method,
            is_method_overridden=effective_method != item.default_method,
            billed_amount=item.billed_amount,
            paid_amount=payment.paid_amount,
            difference=difference,
            payment_id=payment.id,
        )

    def reconcile_all(
        self, items: Iterable[BilledItem], payments: dict[BillingKey, Payment]
    ) -> list[ReconciledItem]:
        return [
            ReconciledItem(item=item, reconciliation=self.reconcile(item, payments.get(item.key)))
            for item in items
        ]

    def toggle_method(self, item: BilledItem, payment: Payment | None) -> Payment:
        """
        Flip the effective payment method.

        Without a payment this creates a method-override row; with one it only
        changes payment_method, leaving amounts and status as they are.
        """
        current = self.reconcile(item, payment).effective_method
        new_method = current.other
        if payment is None:
            logger.info(
                "Method override %s for %s %s %s",
                new_method, item.billing_type, item.reference_id, period_key(item.year, item.month),
            )
            return self._new_payment(item, payment_method=new_method)
        return payment.model_copy(update={"payment_method": new_method})

    def clear_override(self, item: BilledItem, payment: Payment | None) -> Payment | None:
        """Drop an explicit method: override-only rows go away, real payments keep their money."""
        if payment is None:
            return None
        self._check_matches(item, payment)
        if payment.is_method_override:
            return None
        return payment.model_copy(update={"payment_method": None})

    def record_payment(
        self,
        item: BilledItem,
        payment: Payment | None,
        paid_amount: int,
        payment_date: date | None = None,
        payment_method: PaymentMethod | None = None,
        notes: str | None = None,
    ) -> Payment:
        """
        Create or replace the payment for an item.

        The method defaults to the item's effective method so that an override
        made before the money arrived is kept.
        """
        if paid_amount < 0:
            raise ValidationError("paid_amount must not be negative", field="paid_amount")
        method = payment_method or self.reconcile(item, payment).effective_method
        fields: dict[str, Any] = {
            "billed_amount": item.billed_amount,
            "paid_amount": paid_amount,
            "difference": paid_amount - item.billed_amount,
            "status": derive_status(paid_amount, item.billed_amount),
            "payment_date": payment_date,
            "payment_method": method,
        }
        if notes is not None:
            fields["notes"] = notes

        logger.info(
            "Payment %s for %s %s %s: paid=%s billed=%s",
            fields["status"], item.billing_type, item.reference_id,
            period_key(item.year, item.month), paid_amount, item.billed_amount,
        )
        if payment is None:
            return self._new_payment(item, **fields)
        return payment.model_copy(update=fields)

    def mark_paid(
        self, item: BilledItem, payment: Payment | None, payment_date: date | None = None
    ) -> Payment:
        """One-click "paid in full": paid amount equals the billed amount."""
        return self.record_payment(
            item, payment, item.billed_amount, payment_date=payment_date or date.today()
        )

    def update_payment(self, payment: Payment, **changes: Any) -> Payment:
        """Partial update of a stored row; difference and status are recomputed."""
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot update payment fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        data = payment.model_dump()
        data.update(changes)
        paid = data["paid_amount"]
        billed = data["billed_amount"]
        data["difference"] = paid - billed
        data["status"] = derive_status(paid, billed)
        return Payment.model_validate(data)

    def delete_payment(self, item: BilledItem, payment: Payment) -> Reconciliation:
        """Reconciliation after the row is deleted: Unpaid with the period's default method."""
        self._check_matches(item, payment)
        logger.info(
            "Payment deleted for %s %s %s",
            item.billing_type, item.reference_id, period_key(item.year, item.month),
        )
        return self.reconcile(item, None)

    def bulk_mark_paid(
        self,
        items: Iterable[BilledItem],
        payments: dict[BillingKey, Payment],
        payment_date: date | None = None,
        method: PaymentMethod | None = None,
    ) -> list[Payment]:
        """
        Mark every unpaid item paid in full; items billed at 0 have nothing to collect.

        With a method, only items whose effective method matches are marked
        (direct-debit runs skip rows overridden to bank transfer).
        """
        payment_date = payment_date or date.today()
        marked = []
        skipped = 0
        for item in items:
            if item.billed_amount == 0:
                continue
            payment = payments.get(item.key)
            result = self.reconcile(item, payment)
            if result.status != PaymentStatus.UNPAID:
                continue
            if method is not None and result.effective_method != method:
                skipped += 1
                continue
            marked.append(self.mark_paid(item, payment, payment_date))
        logger.info("Bulk mark paid: %d marked, %d skipped by method", len(marked), skipped)
        return marked

    def filter_items(
        self,
        items: Iterable[BilledItem],
        payments: dict[BillingKey, Payment],
        status: PaymentStatus | None = None,
        method: PaymentMethod | None = None,
    ) -> list[ReconciledItem]:
        """Reconciled items matching the status and method filters (None = any)."""
        rows = self.reconcile_all(items, payments)
        return [
            row
            for row in rows
            if (status is None or row.reconciliation.status == status)
            and (method is None or row.reconciliation.effective_method == method)
        ]

    def _check_matches(self, item: BilledItem, payment: Payment) -> None:
        if payment.key != item.key:
            raise ValidationError(
                f"Payment for {payment.billing_type} {payment.reference_id} "
                f"{period_key(payment.year, payment.month)} does not belong to "
                f"{item.billing_type} {item.reference_id} {period_key(item.year, item.month)}",
                field=reference_field(item.billing_type),
            )

    def _new_payment(self, item: BilledItem, **fields: Any) -> Payment:
        data: dict[str, Any] = {
            "billing_type": item.billing_type,
            reference_field(item.billing_type): item.reference_id,
            "year": item.year,
            "month": item.month,
            "billed_amount": item.billed_amount,
        }
        data.update(fields)
        return Payment(**data)
