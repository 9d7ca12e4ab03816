"""Schemas for payment-history and revenue reports."""

from src.modules.payments.models import BillingType, PaymentStatus
from src.shared.schemas.base import FrozenSchema


# --- Payment history ---

class MonthlySummaryRow(FrozenSchema):
    """One period of the monthly payment history."""

    year: int
    month: int
    total_billed: int
    total_paid: int
    paid_count: int
    unpaid_count: int
    discrepancy_count: int
    total_items: int
    collection_rate: float  # percent, one decimal; 0 when nothing billed


class HistoryTotals(FrozenSchema):
    """KPIs over all rows of a monthly history."""

    total_billed: int
    total_paid: int
    outstanding: int
    collection_rate: float


class StudentMonthEntry(FrozenSchema):
    """One billed item in a student's ledger."""

    year: int
    month: int
    billing_type: BillingType
    billed_amount: int
    paid_amount: int
    status: PaymentStatus


class StudentSummaryRow(FrozenSchema):
    """A student's ledger across the requested periods."""

    student_id: str
    student_name: str
    student_number: str | None
    months: list[StudentMonthEntry]
    total_billed: int
    total_paid: int
    outstanding: int


# --- Revenue dashboard ---

class RevenueMonthRow(FrozenSchema):
    """Billed revenue of one month and how many students it came from."""

    year: int
    month: int
    revenue: int
    student_count: int


class GradeStatRow(FrozenSchema):
    """Contract figures of one grade for the selected month."""

    grade: str
    student_count: int
    monthly_revenue: int
    weekly_lessons: int


class RevenueSummary(FrozenSchema):
    """Twelve months of revenue plus grade statistics for the last one."""

    year: int
    month: int
    months: list[RevenueMonthRow]
    grade_stats: list[GradeStatRow]
    total_grade_students: int
    total_grade_revenue: int
    total_grade_lessons: int
