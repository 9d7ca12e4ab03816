"""Figures for the printable contract billing document."""

from datetime import date
from decimal import Decimal

from src.shared.schemas.base import FrozenSchema


class TuitionRow(FrozenSchema):
    """One tuition line (tax excluded)."""

    label: str
    grade: str
    duration: str
    frequency: str
    amount: Decimal


class InitialPrintBreakdown(FrozenSchema):
    """
    New-enrollment document.

    The "initial" block covers the first two calendar months (the first one
    possibly half); the "regular" block is the fixed fee from month three on.
    *_ex_tax figures are tax excluded, *_incl_tax and the payment figures
    are whole yen, tax included.
    """

    enrollment_date: date
    end_date: date
    end_of_next_month: date
    regular_billing_start: date
    first_tuition_label: str
    month1: int
    month2: int
    is_half_month: bool

    initial_rows: list[TuitionRow]
    initial_tuition_total: Decimal
    facility_description: str
    initial_facility_fee: Decimal
    initial_lesson_discount: Decimal
    initial_total_ex_tax: Decimal
    initial_total_incl_tax: int

    regular_rows: list[TuitionRow]
    regular_tuition_total: Decimal
    regular_facility_fee: Decimal
    regular_lesson_discount: Decimal
    regular_total_ex_tax: Decimal
    regular_total_incl_tax: int

    enrollment_fee: int
    first_tuition: int
    first_total: int
    regular_monthly: int


class TuitionBlock(FrozenSchema):
    """Steady-state monthly fee of one contract."""

    grade: str
    period_start: date
    period_end: date
    rows: list[TuitionRow]
    tuition_total: Decimal
    facility: Decimal
    discount: Decimal
    total_ex_tax: Decimal
    total_incl_tax: int


class RenewalPrintBreakdown(FrozenSchema):
    """Renewal document: the previous contract's fee next to the new one."""

    previous_start_date: date
    previous_end_date: date
    renewal_date: date
    end_date: date
    before: TuitionBlock
    after: TuitionBlock
    regular_monthly: int
    first_debit_date: date
    grade_before: str
    grade_after: str
