"""Schemas for recurring-course contracts."""

from datetime import date
from typing import Literal

from pydantic import Field, model_validator

from src.modules.contracts.models import ContractType
from src.modules.pricing.models import Campaign, Course, Grade
from src.shared.schemas.base import BaseSchema, FrozenSchema


class CourseEntry(BaseSchema):
    """One course on a contract and how many weekly slots it takes."""

    course: Course
    lessons: int = Field(..., ge=1)


class Contract(BaseSchema):
    """
    Recurring-enrollment contract.

    monthly_amount, enrollment_fee and campaign_discount are fixed when the
    contract is quoted (ContractQuoteService) and stored with it, so a later
    pricing change never alters an already-quoted first month.
    """

    billing_type: Literal["contract"] = "contract"
    id: str
    student_id: str
    contract_type: ContractType = ContractType.INITIAL
    grade: Grade
    start_date: date
    end_date: date
    courses: list[CourseEntry] = Field(..., min_length=1, max_length=3)
    campaign: Campaign | None = None
    monthly_amount: int = Field(0, ge=0)
    enrollment_fee: int = Field(0, ge=0)
    campaign_discount: int = Field(0, ge=0)
    previous_contract_id: str | None = None
    staff_name: str = ""
    notes: str = ""

    @model_validator(mode="after")
    def validate_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def is_first_month(self, year: int, month: int) -> bool:
        return self.start_date.year == year and self.start_date.month == month


class ContractCharge(FrozenSchema):
    """Components of one month's contract bill (all tax included except tuition)."""

    year: int
    month: int
    is_first_month: bool
    is_half_month: bool
    tuition: int
    enrollment_fee: int
    facility_fee: int
    campaign_discount: int
    total: int
