"""Lecture pricing and monthly billing."""

from typing import Any

from src.core.exceptions import AllocationMismatchError
from src.modules.lectures.schemas import Allocation, Lecture, LectureCourse
from src.modules.pricing.service import PricingService
from src.shared.utils.periods import BillingPeriod


class LectureQuoteService:
    """Builds lecture courses with server-side prices."""

    def __init__(self, pricing: PricingService | None = None):
        self.pricing = pricing or PricingService()

    def unit_price(self, grade: str, course: str) -> int:
        return self.pricing.table.lecture_unit_price(grade, course)

    def build_course(
        self,
        grade: str,
        course: str,
        total_lessons: int,
        allocation: list[Allocation] | list[dict[str, Any]],
    ) -> LectureCourse:
        """
        Price a course from the pricing table, ignoring any client-supplied price.

        Raises AllocationMismatchError when the allocation does not cover total_lessons.
        """
        rows = [a if isinstance(a, Allocation) else Allocation.model_validate(a) for a in allocation]
        allocated = sum(a.lessons for a in rows)
        if allocated != total_lessons:
            raise AllocationMismatchError(course, allocated, total_lessons)
        return LectureCourse(
            course=course,
            unit_price=self.unit_price(grade, course),
            total_lessons=total_lessons,
            allocation=rows,
        )

    def total_amount(self, grade: str, courses: list[LectureCourse]) -> int:
        """Quote total at current prices (may differ from a stored lecture's prices)."""
        return sum(self.unit_price(grade, c.course) * c.total_lessons for c in courses)


def validate_allocation(courses: list[dict[str, Any]]) -> str | None:
    """
    Check raw course input before it is turned into LectureCourse objects.

    Returns an error message for the first course whose allocation does not
    add up to total_lessons, or None when every course is consistent.
    """
    for c in courses:
        allocated = sum(a.get("lessons", 0) for a in c.get("allocation") or [])
        total = c.get("total_lessons", 0)
        if allocated != total:
            return AllocationMismatchError(c.get("course", ""), allocated, total).message
    return None


class LectureBillingCalculator:
    """Amount billed for a lecture in a given month (tax included)."""

    def billed_amount(self, lecture: Lecture, year: int, month: int) -> int:
        total = 0
        for course in lecture.courses:
            lessons = course.lessons_in(year, month)
            if lessons > 0:
                total += course.unit_price * lessons
        return total

    def billed_periods(self, lecture: Lecture) -> list[BillingPeriod]:
        """Periods with a non-zero bill, in calendar order."""
        periods = {
            BillingPeriod(a.year, a.month)
            for course in lecture.courses
            for a in course.allocation
            if a.lessons > 0 and course.unit_price > 0
        }
        return sorted(periods)
