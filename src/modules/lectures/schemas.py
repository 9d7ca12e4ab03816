"""Schemas for intensive courses (lectures)."""

from typing import Literal

from pydantic import Field, model_validator

from src.modules.pricing.models import Grade, LectureCourseName, LectureLabel
from src.shared.schemas.base import BaseSchema


class Allocation(BaseSchema):
    """Lessons of a lecture course delivered (and billed) in one month."""

    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    lessons: int = Field(..., ge=0)


class LectureCourse(BaseSchema):
    """
    One course of a lecture.

    unit_price is tax included. The allocation must account for every
    lesson: sum(allocation.lessons) == total_lessons, checked on construction.
    """

    course: LectureCourseName
    unit_price: int = Field(..., ge=0)
    total_lessons: int = Field(..., ge=0)
    allocation: list[Allocation] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_allocation(self):
        allocated = sum(a.lessons for a in self.allocation)
        if allocated != self.total_lessons:
            raise ValueError(
                f"{self.course}: allocated lessons ({allocated}) do not match "
                f"total lessons ({self.total_lessons})"
            )
        periods = [(a.year, a.month) for a in self.allocation]
        if len(periods) != len(set(periods)):
            raise ValueError(f"{self.course}: allocation lists the same month more than once")
        return self

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.total_lessons

    def lessons_in(self, year: int, month: int) -> int:
        for a in self.allocation:
            if a.year == year and a.month == month:
                return a.lessons
        return 0


class Lecture(BaseSchema):
    """Intensive-course record with up to three courses."""

    billing_type: Literal["lecture"] = "lecture"
    id: str
    student_id: str
    grade: Grade
    label: LectureLabel = LectureLabel.OTHER
    courses: list[LectureCourse] = Field(..., min_length=1, max_length=3)
    notes: str = ""

    @property
    def total_amount(self) -> int:
        """Display total; monthly bills come from the allocation."""
        return sum(c.subtotal for c in self.courses)
