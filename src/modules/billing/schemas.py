"""Snapshot of billing data read once per request, and billing sheet output."""

from typing import Annotated

from pydantic import Field

from src.modules.contracts.schemas import Contract
from src.modules.lectures.schemas import Lecture
from src.modules.materials.schemas import MaterialSale
from src.modules.payments.schemas import Payment, ReconciledItem
from src.modules.pricing.models import Grade
from src.shared.schemas.base import BaseSchema, FrozenSchema

# Contract | Lecture | MaterialSale, tagged by billing_type.
BillingSource = Annotated[Contract | Lecture | MaterialSale, Field(discriminator="billing_type")]


class Student(BaseSchema):
    """The student fields billing needs."""

    id: str
    name: str
    student_number: str | None = None
    grade: Grade | None = None
    # "YYYY-MM"; direct debit applies from this period on.
    direct_debit_start_ym: str | None = Field(None, pattern=r"^\d{4}-(0[1-9]|1[0-2])$")


class BillingSnapshot(BaseSchema):
    """Contracts, lectures, material sales and payments as read at one point in time."""

    students: list[Student] = Field(default_factory=list)
    contracts: list[Contract] = Field(default_factory=list)
    lectures: list[Lecture] = Field(default_factory=list)
    materials: list[MaterialSale] = Field(default_factory=list)
    payments: list[Payment] = Field(default_factory=list)

    def sources(self, include_materials: bool = True) -> list[BillingSource]:
        sources: list[BillingSource] = [*self.contracts, *self.lectures]
        if include_materials:
            sources.extend(self.materials)
        return sources


class BillingSheet(FrozenSchema):
    """All billed items of one period with their reconciliation."""

    year: int
    month: int
    rows: list[ReconciledItem]
    total_billed: int
    total_paid: int
