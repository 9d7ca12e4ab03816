"""Aggregation of reconciled billing data for the history and dashboard views."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from src.core.config import Settings, settings as default_settings
from src.modules.billing.schemas import BillingSnapshot
from src.modules.billing.service import BillingService
from src.modules.payments.models import PaymentStatus
from src.modules.payments.service import index_payments
from src.modules.pricing.models import Grade
from src.modules.pricing.service import PricingService
from src.modules.reports.schemas import (
    GradeStatRow,
    HistoryTotals,
    MonthlySummaryRow,
    RevenueMonthRow,
    RevenueSummary,
    StudentMonthEntry,
    StudentSummaryRow,
)
from src.shared.utils.periods import BillingPeriod, periods_ending_at, trailing_periods

StudentFilter = Literal["unpaid", "discrepancy"]

REVENUE_MONTHS = 12


def collection_rate(total_paid: int, total_billed: int) -> float:
    """Paid / billed as a percentage with one decimal (half up); 0 when nothing is billed."""
    if total_billed == 0:
        return 0.0
    per_mille = (Decimal(total_paid) * 1000 / Decimal(total_billed)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    return float(per_mille / 10)


class ReportsService:
    """
    Folds billed items and payments into summaries.

    Each call reads the snapshot once and makes a single pass over it.
    """

    def __init__(self, billing: BillingService | None = None, settings: Settings | None = None):
        self.settings = settings or default_settings
        self.billing = billing or BillingService(PricingService.from_settings(self.settings))

    def _include_materials(self, include_materials: bool | None) -> bool:
        if include_materials is None:
            return self.settings.include_materials_in_history
        return include_materials

    def history_periods(self, year: int | None = None) -> list[BillingPeriod]:
        """The configured history window: history_months periods ending at December of year."""
        return trailing_periods(year or date.today().year, self.settings.history_months)

    def _periods(
        self, periods: Iterable[BillingPeriod] | None, year: int | None
    ) -> list[BillingPeriod]:
        if periods is None:
            return self.history_periods(year)
        return list(periods)

    # --- Payment history: by month ---

    def monthly_summary(
        self,
        snapshot: BillingSnapshot,
        periods: Iterable[BillingPeriod] | None = None,
        include_materials: bool | None = None,
        year: int | None = None,
    ) -> list[MonthlySummaryRow]:
        periods = self._periods(periods, year)
        items = self.billing.items_for_periods(
            snapshot, periods, self._include_materials(include_materials)
        )
        reconciled = self.billing.reconciliation.reconcile_all(
            items, index_payments(snapshot.payments)
        )

        by_period: dict[BillingPeriod, list] = defaultdict(list)
        for row in reconciled:
            by_period[BillingPeriod(row.item.year, row.item.month)].append(row)

        result = []
        for period in periods:
            rows = by_period.get(period, [])
            total_billed = sum(r.item.billed_amount for r in rows)
            total_paid = sum(r.reconciliation.paid_amount for r in rows)
            statuses = [r.reconciliation.status for r in rows]
            result.append(
                MonthlySummaryRow(
                    year=period.year,
                    month=period.month,
                    total_billed=total_billed,
                    total_paid=total_paid,
                    paid_count=statuses.count(PaymentStatus.PAID),
                    unpaid_count=statuses.count(PaymentStatus.UNPAID),
                    discrepancy_count=statuses.count(PaymentStatus.DISCREPANCY),
                    total_items=len(rows),
                    collection_rate=collection_rate(total_paid, total_billed),
                )
            )
        return result

    def history_totals(self, rows: Iterable[MonthlySummaryRow]) -> HistoryTotals:
        rows = list(rows)
        total_billed = sum(r.total_billed for r in rows)
        total_paid = sum(r.total_paid for r in rows)
        return HistoryTotals(
            total_billed=total_billed,
            total_paid=total_paid,
            outstanding=total_billed - total_paid,
            collection_rate=collection_rate(total_paid, total_billed),
        )

    # --- Payment history: by student ---

    def student_summary(
        self,
        snapshot: BillingSnapshot,
        periods: Iterable[BillingPeriod] | None = None,
        include_materials: bool | None = None,
        year: int | None = None,
    ) -> list[StudentSummaryRow]:
        """Per-student ledgers, largest outstanding balance first."""
        periods = self._periods(periods, year)
        students = {s.id: s for s in snapshot.students}
        items = self.billing.items_for_periods(
            snapshot, periods, self._include_materials(include_materials)
        )
        reconciled = self.billing.reconciliation.reconcile_all(
            items, index_payments(snapshot.payments)
        )

        ledgers: dict[str, list[StudentMonthEntry]] = {}
        for row in reconciled:
            # Records whose student is not in the snapshot have no ledger to go to.
            if row.item.student_id not in students:
                continue
            ledgers.setdefault(row.item.student_id, []).append(
                StudentMonthEntry(
                    year=row.item.year,
                    month=row.item.month,
                    billing_type=row.item.billing_type,
                    billed_amount=row.item.billed_amount,
                    paid_amount=row.reconciliation.paid_amount,
                    status=row.reconciliation.status,
                )
            )

        result = []
        for student_id, entries in ledgers.items():
            student = students[student_id]
            total_billed = sum(e.billed_amount for e in entries)
            total_paid = sum(e.paid_amount for e in entries)
            result.append(
                StudentSummaryRow(
                    student_id=student.id,
                    student_name=student.name,
                    student_number=student.student_number,
                    months=entries,
                    total_billed=total_billed,
                    total_paid=total_paid,
                    outstanding=total_billed - total_paid,
                )
            )
        result.sort(key=lambda r: r.outstanding, reverse=True)
        return result

    def filter_students(
        self,
        rows: Iterable[StudentSummaryRow],
        query: str | None = None,
        only: StudentFilter | None = None,
    ) -> list[StudentSummaryRow]:
        """Search by name or student number, optionally keeping only debtors or mismatches."""
        q = (query or "").strip().lower()
        result = []
        for row in rows:
            if q and q not in row.student_name.lower() and q not in (row.student_number or "").lower():
                continue
            if only == "unpaid" and row.outstanding <= 0:
                continue
            if only == "discrepancy" and not any(
                e.status == PaymentStatus.DISCREPANCY for e in row.months
            ):
                continue
            result.append(row)
        return result

    def month_status(self, row: StudentSummaryRow, year: int, month: int) -> PaymentStatus | None:
        """Combined status of a student's items in one month; None when nothing was billed."""
        statuses = {e.status for e in row.months if e.year == year and e.month == month}
        if not statuses:
            return None
        if PaymentStatus.DISCREPANCY in statuses:
            return PaymentStatus.DISCREPANCY
        if PaymentStatus.UNPAID in statuses:
            return PaymentStatus.UNPAID
        return PaymentStatus.PAID

    # --- Revenue dashboard ---

    def revenue_summary(self, snapshot: BillingSnapshot, year: int, month: int) -> RevenueSummary:
        """
        Billed revenue for the 12 months ending at (year, month), materials
        included, plus per-grade contract statistics for (year, month).
        """
        periods = periods_ending_at(year, month, REVENUE_MONTHS)
        items = self.billing.items_for_periods(snapshot, periods, include_materials=True)

        revenue: dict[BillingPeriod, int] = defaultdict(int)
        students: dict[BillingPeriod, set[str]] = defaultdict(set)
        for item in items:
            period = BillingPeriod(item.year, item.month)
            revenue[period] += item.billed_amount
            students[period].add(item.student_id)

        months = [
            RevenueMonthRow(
                year=p.year,
                month=p.month,
                revenue=revenue.get(p, 0),
                student_count=len(students.get(p, ())),
            )
            for p in periods
        ]

        grade_revenue: dict[str, int] = defaultdict(int)
        grade_lessons: dict[str, int] = defaultdict(int)
        grade_students: dict[str, set[str]] = defaultdict(set)
        contract_calc = self.billing.contracts
        for contract in snapshot.contracts:
            if not contract_calc.is_active(contract, year, month):
                continue
            grade = str(contract.grade)
            grade_students[grade].add(contract.student_id)
            grade_revenue[grade] += contract_calc.billed_amount(contract, year, month)
            grade_lessons[grade] += sum(c.lessons for c in contract.courses)

        grade_stats = [
            GradeStatRow(
                grade=grade,
                student_count=len(grade_students[grade]),
                monthly_revenue=grade_revenue[grade],
                weekly_lessons=grade_lessons[grade],
            )
            for grade in sorted(grade_revenue, key=lambda g: Grade(g).order)
        ]

        return RevenueSummary(
            year=year,
            month=month,
            months=months,
            grade_stats=grade_stats,
            total_grade_students=sum(g.student_count for g in grade_stats),
            total_grade_revenue=sum(g.monthly_revenue for g in grade_stats),
            total_grade_lessons=sum(g.weekly_lessons for g in grade_stats),
        )
