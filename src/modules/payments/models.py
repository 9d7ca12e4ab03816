"""Payment enumerations."""

from enum import StrEnum


class BillingType(StrEnum):
    """What a billed item / payment refers to."""

    CONTRACT = "contract"
    LECTURE = "lecture"
    MATERIAL = "material"


class PaymentStatus(StrEnum):
    """Reconciliation status of a billed item."""

    UNPAID = "未入金"
    PAID = "入金済み"
    DISCREPANCY = "過不足あり"


class PaymentMethod(StrEnum):
    """How the family pays."""

    BANK_TRANSFER = "振込"
    DIRECT_DEBIT = "口座振替"

    @property
    def other(self) -> "PaymentMethod":
        if self is PaymentMethod.BANK_TRANSFER:
            return PaymentMethod.DIRECT_DEBIT
        return PaymentMethod.BANK_TRANSFER


class FollowupStatus(StrEnum):
    """Collection follow-up on an unpaid or mismatched item."""

    PENDING = "未対応"
    CONTACTED = "連絡済み"
    RESOLVED = "対応済み"


# Rendering of Payment.difference: positive is an overpayment, negative a shortfall.
OVERPAID_LABEL = "過入金"
UNDERPAID_LABEL = "不足"
