"""Schemas for billed items, payments and reconciliation results."""

from datetime import date
from typing import NamedTuple

from pydantic import Field, model_validator

from src.modules.payments.models import (
    OVERPAID_LABEL,
    UNDERPAID_LABEL,
    BillingType,
    FollowupStatus,
    PaymentMethod,
    PaymentStatus,
)
from src.shared.schemas.base import BaseSchema, FrozenSchema

_REFERENCE_FIELDS = {
    BillingType.CONTRACT: "contract_id",
    BillingType.LECTURE: "lecture_id",
    BillingType.MATERIAL: "material_sale_id",
}


def reference_field(billing_type: BillingType) -> str:
    """Payment column holding the id of the billed record."""
    return _REFERENCE_FIELDS[BillingType(billing_type)]


class BillingKey(NamedTuple):
    """Identity of a billed item in a period; at most one Payment per key."""

    billing_type: BillingType
    reference_id: str
    year: int
    month: int


class BilledItem(FrozenSchema):
    """One contract, lecture or material charge for one period."""

    billing_type: BillingType
    reference_id: str
    student_id: str
    year: int
    month: int = Field(..., ge=1, le=12)
    billed_amount: int
    default_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    description: str = ""

    @property
    def key(self) -> BillingKey:
        return BillingKey(self.billing_type, self.reference_id, self.year, self.month)


class Payment(BaseSchema):
    """
    Payment row for one billed item and period.

    A row with paid_amount == 0 and no payment_date is a method override: it
    only records a non-default payment_method and never counts as paid.
    """

    id: str | None = None
    billing_type: BillingType
    contract_id: str | None = None
    lecture_id: str | None = None
    material_sale_id: str | None = None
    year: int
    month: int = Field(..., ge=1, le=12)
    billed_amount: int = 0
    paid_amount: int = Field(0, ge=0)
    difference: int = 0
    payment_date: date | None = None
    payment_method: PaymentMethod | None = None
    status: PaymentStatus = PaymentStatus.UNPAID
    followup_status: FollowupStatus | None = None
    notes: str = ""

    @model_validator(mode="after")
    def validate_reference(self):
        expected = reference_field(self.billing_type)
        for field in _REFERENCE_FIELDS.values():
            value = getattr(self, field)
            if field == expected and not value:
                raise ValueError(f"{field} is required for billing_type {self.billing_type}")
            if field != expected and value:
                raise ValueError(f"{field} must be empty for billing_type {self.billing_type}")
        return self

    @property
    def reference_id(self) -> str:
        return getattr(self, reference_field(self.billing_type))

    @property
    def key(self) -> BillingKey:
        return BillingKey(self.billing_type, self.reference_id, self.year, self.month)

    @property
    def is_method_override(self) -> bool:
        return self.paid_amount == 0 and self.payment_date is None


class Reconciliation(FrozenSchema):
    """Status of a billed item against its (optional) payment."""

    status: PaymentStatus
    effective_method: PaymentMethod
    is_method_overridden: bool = False
    billed_amount: int
    paid_amount: int = 0
    difference: int = 0
    payment_id: str | None = None

    @property
    def difference_label(self) -> str | None:
        if self.status != PaymentStatus.DISCREPANCY:
            return None
        return OVERPAID_LABEL if self.difference > 0 else UNDERPAID_LABEL


class ReconciledItem(FrozenSchema):
    """Billed item joined with its reconciliation."""

    item: BilledItem
    reconciliation: Reconciliation
