"""Tuition breakdowns for the printable contract document."""

from datetime import date, timedelta
from decimal import Decimal

from src.core.exceptions import ValidationError
from src.modules.contract_print.schemas import (
    InitialPrintBreakdown,
    RenewalPrintBreakdown,
    TuitionBlock,
    TuitionRow,
)
from src.modules.contracts.models import ContractType
from src.modules.contracts.schemas import Contract, CourseEntry
from src.modules.pricing.models import Campaign
from src.modules.pricing.service import PricingService
from src.shared.utils.money import round_money
from src.shared.utils.periods import day_before, end_of_next_month, shift_month

LESSON_DURATION = "80分"

HALF = Decimal("0.5")
# The initial block spans two months, the first possibly half.
INITIAL_DISCOUNT_FULL = Decimal("2")
INITIAL_DISCOUNT_HALF = Decimal("1.5")


def _yen(amount: Decimal | int) -> str:
    """1500 -> "1,500"; keeps decimals only when there are any."""
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return f"{int(amount):,}"
    return f"{amount:,}"


def _row(label: str, grade: str, lessons: int, amount: Decimal) -> TuitionRow:
    return TuitionRow(
        label=label,
        grade=grade,
        duration=LESSON_DURATION,
        frequency=f"週{lessons}回",
        amount=round_money(amount),
    )


class ContractPrintCalculator:
    """
    Pure functions of contract data; uses the same unit prices and discount
    tiers as the billing calculator so printed and billed figures agree.
    """

    def __init__(self, pricing: PricingService | None = None):
        self.pricing = pricing or PricingService()

    def breakdown(
        self, contract: Contract, previous: Contract | None = None
    ) -> InitialPrintBreakdown | RenewalPrintBreakdown:
        """Initial document for new enrollments, renewal document for renewals."""
        if contract.contract_type == ContractType.RENEWAL:
            if previous is None:
                raise ValidationError(
                    f"Renewal contract {contract.id} needs its previous contract",
                    field="previous_contract_id",
                )
            return self.renewal(previous, contract)
        return self.initial(contract)

    # --- New enrollment ---

    def initial(self, contract: Contract) -> InitialPrintBreakdown:
        table = self.pricing.table
        start = contract.start_date
        grade = str(contract.grade)
        is_half = table.is_half_month_start(start.day)
        month1 = start.month
        month2 = shift_month(start.year, start.month, 1).month

        initial_rows: list[TuitionRow] = []
        regular_rows: list[TuitionRow] = []
        discount_sum = Decimal("0")
        for index, entry in enumerate(contract.courses):
            full = Decimal(self.pricing.unit_price(entry.course, grade) * entry.lessons)
            first = full * HALF if is_half else full
            if index == 0:
                first -= self._campaign_reduction(contract)
            initial_rows.append(_row(f"{entry.course}（{month1}月）", grade, entry.lessons, first))
            initial_rows.append(_row(f"{entry.course}（{month2}月）", grade, entry.lessons, full))
            regular_rows.append(_row(str(entry.course), grade, entry.lessons, full))
            discount_sum += self.pricing.lesson_discount(entry.lessons)

        facility = Decimal(table.facility_fee_monthly_ex_tax)
        facility_first = facility * HALF if is_half else facility
        initial_facility = facility_first + facility
        facility_description = (
            f"{month1}月：{_yen(facility_first)}円　　{month2}月：{_yen(facility)}円"
        )

        initial_tuition = sum((r.amount for r in initial_rows), Decimal("0"))
        initial_discount = discount_sum * (INITIAL_DISCOUNT_HALF if is_half else INITIAL_DISCOUNT_FULL)
        initial_ex_tax = round_money(initial_tuition + initial_facility - initial_discount)
        initial_incl_tax = table.tax_included(initial_ex_tax)

        regular_tuition = sum((r.amount for r in regular_rows), Decimal("0"))
        regular_ex_tax = round_money(regular_tuition + facility - discount_sum)
        regular_incl_tax = table.tax_included(regular_ex_tax)

        next_month_end = end_of_next_month(start)
        return InitialPrintBreakdown(
            enrollment_date=start,
            end_date=contract.end_date,
            end_of_next_month=next_month_end,
            regular_billing_start=next_month_end + timedelta(days=1),
            first_tuition_label=f"初回月謝（{month1}月分／{month2}月分）",
            month1=month1,
            month2=month2,
            is_half_month=is_half,
            initial_rows=initial_rows,
            initial_tuition_total=round_money(initial_tuition),
            facility_description=facility_description,
            initial_facility_fee=round_money(initial_facility),
            initial_lesson_discount=round_money(initial_discount),
            initial_total_ex_tax=initial_ex_tax,
            initial_total_incl_tax=initial_incl_tax,
            regular_rows=regular_rows,
            regular_tuition_total=round_money(regular_tuition),
            regular_facility_fee=round_money(facility),
            regular_lesson_discount=round_money(discount_sum),
            regular_total_ex_tax=regular_ex_tax,
            regular_total_incl_tax=regular_incl_tax,
            enrollment_fee=contract.enrollment_fee,
            first_tuition=initial_incl_tax,
            first_total=contract.enrollment_fee + initial_incl_tax,
            regular_monthly=regular_incl_tax,
        )

    def _campaign_reduction(self, contract: Contract) -> Decimal:
        """Tax-excluded equivalent of the stored campaign discount."""
        if contract.campaign != Campaign.SEASONAL_COURSE or not contract.campaign_discount:
            return Decimal("0")
        return self.pricing.table.tax_excluded(contract.campaign_discount)

    # --- Renewal ---

    def tuition_block(
        self, grade: str, courses: list[CourseEntry], period_start: date, period_end: date
    ) -> TuitionBlock:
        table = self.pricing.table
        rows = []
        discount = 0
        for entry in courses:
            amount = self.pricing.unit_price(entry.course, grade) * entry.lessons
            rows.append(_row(str(entry.course), grade, entry.lessons, Decimal(amount)))
            discount += self.pricing.lesson_discount(entry.lessons)

        tuition_total = sum((r.amount for r in rows), Decimal("0"))
        facility = Decimal(table.facility_fee_monthly_ex_tax)
        total_ex_tax = round_money(tuition_total + facility - discount)
        return TuitionBlock(
            grade=grade,
            period_start=period_start,
            period_end=period_end,
            rows=rows,
            tuition_total=round_money(tuition_total),
            facility=round_money(facility),
            discount=round_money(discount),
            total_ex_tax=total_ex_tax,
            total_incl_tax=table.tax_included(total_ex_tax),
        )

    def first_debit_date(self, renewal_date: date) -> date:
        """Debit day of the month before the renewal month (Jan -> previous Dec)."""
        previous = shift_month(renewal_date.year, renewal_date.month, -1)
        return date(previous.year, previous.month, self.pricing.table.direct_debit_day)

    def renewal(self, previous: Contract, contract: Contract) -> RenewalPrintBreakdown:
        if contract.previous_contract_id and contract.previous_contract_id != previous.id:
            raise ValidationError(
                f"Contract {contract.id} does not renew contract {previous.id}",
                field="previous_contract_id",
            )
        if previous.start_date >= contract.start_date:
            raise ValidationError(
                "Renewal must start after the previous contract", field="start_date"
            )

        renewal_date = contract.start_date
        previous_end = day_before(renewal_date)
        before = self.tuition_block(
            str(previous.grade), previous.courses, previous.start_date, previous_end
        )
        after = self.tuition_block(
            str(contract.grade), contract.courses, renewal_date, contract.end_date
        )
        return RenewalPrintBreakdown(
            previous_start_date=previous.start_date,
            previous_end_date=previous_end,
            renewal_date=renewal_date,
            end_date=contract.end_date,
            before=before,
            after=after,
            regular_monthly=after.total_incl_tax,
            first_debit_date=self.first_debit_date(renewal_date),
            grade_before=str(previous.grade),
            grade_after=str(contract.grade),
        )
