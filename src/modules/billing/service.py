"""Turns a billing snapshot into billed items per period."""

from collections.abc import Iterable

from src.core.exceptions import UnknownBillingSourceError
from src.modules.billing.schemas import BillingSheet, BillingSnapshot, BillingSource, Student
from src.modules.contracts.schemas import Contract
from src.modules.contracts.service import ContractBillingCalculator
from src.modules.lectures.schemas import Lecture
from src.modules.lectures.service import LectureBillingCalculator
from src.modules.materials.schemas import MaterialSale, billed_amount as material_billed_amount
from src.modules.payments.models import BillingType
from src.modules.payments.schemas import BilledItem
from src.modules.payments.service import (
    ReconciliationService,
    default_payment_method,
    index_payments,
)
from src.modules.pricing.service import PricingService
from src.shared.utils.periods import BillingPeriod


class BillingService:
    """Bills contracts, lectures and material sales for a period."""

    def __init__(self, pricing: PricingService | None = None):
        self.pricing = pricing or PricingService()
        self.contracts = ContractBillingCalculator(self.pricing)
        self.lectures = LectureBillingCalculator()
        self.reconciliation = ReconciliationService()

    def is_billed(self, source: BillingSource, year: int, month: int) -> bool:
        """Contracts bill while active; lectures and materials only with a non-zero amount."""
        if isinstance(source, Contract):
            return self.contracts.is_active(source, year, month)
        if isinstance(source, Lecture):
            return self.lectures.billed_amount(source, year, month) > 0
        if isinstance(source, MaterialSale):
            return material_billed_amount(source, year, month) > 0
        raise UnknownBillingSourceError(source)

    def billed_amount(self, source: BillingSource, year: int, month: int) -> int:
        if isinstance(source, Contract):
            return self.contracts.billed_amount(source, year, month)
        if isinstance(source, Lecture):
            return self.lectures.billed_amount(source, year, month)
        if isinstance(source, MaterialSale):
            return material_billed_amount(source, year, month)
        raise UnknownBillingSourceError(source)

    def billed_item(
        self, source: BillingSource, student: Student | None, year: int, month: int
    ) -> BilledItem:
        return BilledItem(
            billing_type=BillingType(source.billing_type),
            reference_id=source.id,
            student_id=source.student_id,
            year=year,
            month=month,
            billed_amount=self.billed_amount(source, year, month),
            default_method=default_payment_method(
                student.direct_debit_start_ym if student else None, year, month
            ),
            description=_describe(source),
        )

    def items_for_periods(
        self,
        snapshot: BillingSnapshot,
        periods: Iterable[BillingPeriod],
        include_materials: bool = True,
    ) -> list[BilledItem]:
        """Billed items of every source across the periods, period by period."""
        students = {s.id: s for s in snapshot.students}
        sources = snapshot.sources(include_materials)
        items = []
        for year, month in periods:
            for source in sources:
                if self.is_billed(source, year, month):
                    items.append(
                        self.billed_item(source, students.get(source.student_id), year, month)
                    )
        return items

    def items_for_period(
        self, snapshot: BillingSnapshot, period: BillingPeriod, include_materials: bool = True
    ) -> list[BilledItem]:
        return self.items_for_periods(snapshot, [period], include_materials)

    def billing_sheet(self, snapshot: BillingSnapshot, year: int, month: int) -> BillingSheet:
        """The billing-and-payments view of one month."""
        items = self.items_for_period(snapshot, BillingPeriod(year, month))
        rows = self.reconciliation.reconcile_all(items, index_payments(snapshot.payments))
        return BillingSheet(
            year=year,
            month=month,
            rows=rows,
            total_billed=sum(r.item.billed_amount for r in rows),
            total_paid=sum(r.reconciliation.paid_amount for r in rows),
        )


def _describe(source: BillingSource) -> str:
    if isinstance(source, Contract):
        return " / ".join(f"{c.course} 週{c.lessons}回" for c in source.courses)
    if isinstance(source, Lecture):
        return str(source.label)
    if isinstance(source, MaterialSale):
        return f"{source.item_name} x{source.quantity}"
    raise UnknownBillingSourceError(source)
