"""Pricing table: static lookup data injected into every calculator."""

import logging
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator

from src.core.config import Settings, settings as default_settings
from src.core.exceptions import NotFoundError
from src.modules.pricing.models import (
    ENROLLMENT_FEE_WAIVED,
    Course,
    GradeCategory,
    LectureCourseName,
    grade_category,
)
from src.shared.schemas.base import FrozenSchema
from src.shared.utils.money import add_tax, remove_tax

logger = logging.getLogger(__name__)

# Course x grade category -> monthly price per weekly lesson slot (tax excluded)
COURSE_PRICES: dict[Course, dict[GradeCategory, int]] = {
    Course.HIGH_STANDARD: {
        GradeCategory.ELEMENTARY_3_5: 35000,
        GradeCategory.ELEMENTARY_6: 40000,
        GradeCategory.JUNIOR_HIGH_1_2: 37000,
        GradeCategory.JUNIOR_HIGH_3_HIGH_1: 38000,
        GradeCategory.HIGH_SCHOOL_2_3: 40000,
    },
    # Not offered for 小3-小5 and 中1/2.
    Course.HIGH_STANDARD_PLUS: {
        GradeCategory.ELEMENTARY_6: 44000,
        GradeCategory.JUNIOR_HIGH_3_HIGH_1: 45000,
        GradeCategory.HIGH_SCHOOL_2_3: 47000,
    },
    Course.EXCELLENCE: {
        GradeCategory.ELEMENTARY_3_5: 47000,
        GradeCategory.ELEMENTARY_6: 52000,
        GradeCategory.JUNIOR_HIGH_1_2: 49000,
        GradeCategory.JUNIOR_HIGH_3_HIGH_1: 50000,
        GradeCategory.HIGH_SCHOOL_2_3: 52000,
    },
    Course.EXECUTIVE: {
        GradeCategory.ELEMENTARY_3_5: 65000,
        GradeCategory.ELEMENTARY_6: 70000,
        GradeCategory.JUNIOR_HIGH_1_2: 67000,
        GradeCategory.JUNIOR_HIGH_3_HIGH_1: 68000,
        GradeCategory.HIGH_SCHOOL_2_3: 70000,
    },
}

# Lessons per week -> monthly discount (tax excluded)
LESSON_DISCOUNT: dict[int, int] = {
    2: 5000,
    3: 10000,
    4: 15000,
    5: 20000,
    6: 25000,
    7: 30000,
}

# Per free lesson (tax included); only the ハイ family takes part.
CAMPAIGN_DISCOUNTS: dict[Course, dict[GradeCategory, int]] = {
    Course.HIGH_STANDARD: {
        GradeCategory.ELEMENTARY_3_5: 10500,
        GradeCategory.ELEMENTARY_6: 12000,
        GradeCategory.JUNIOR_HIGH_1_2: 11100,
        GradeCategory.JUNIOR_HIGH_3_HIGH_1: 11400,
        GradeCategory.HIGH_SCHOOL_2_3: 12000,
    },
}

# Intensive courses (tax included): base by grade category + tier surcharge
LECTURE_BASE_PRICES: dict[GradeCategory, int] = {
    GradeCategory.ELEMENTARY_3_5: 10500,
    GradeCategory.ELEMENTARY_6: 12000,
    GradeCategory.JUNIOR_HIGH_1_2: 11100,
    GradeCategory.JUNIOR_HIGH_3_HIGH_1: 11400,
    GradeCategory.HIGH_SCHOOL_2_3: 12000,
}

LECTURE_COURSE_SURCHARGES: dict[LectureCourseName, int] = {
    LectureCourseName.HIGH_STANDARD: 0,
    LectureCourseName.EXCELLENCE: 3300,
    LectureCourseName.EXECUTIVE: 8250,
}


class PricingTable(FrozenSchema):
    """
    Immutable pricing configuration.

    Unit prices, lesson discounts and the ex-tax facility fee are tax excluded.
    Enrollment fee, facility fees billed per month, campaign discounts and
    lecture prices are tax included and pass through tax conversion unchanged.
    """

    course_prices: dict[Course, dict[GradeCategory, int]] = Field(
        default_factory=lambda: {c: dict(p) for c, p in COURSE_PRICES.items()}
    )
    lesson_discounts: dict[int, int] = Field(default_factory=lambda: dict(LESSON_DISCOUNT))
    campaign_discounts: dict[Course, dict[GradeCategory, int]] = Field(
        default_factory=lambda: {c: dict(p) for c, p in CAMPAIGN_DISCOUNTS.items()}
    )
    lecture_base_prices: dict[GradeCategory, int] = Field(
        default_factory=lambda: dict(LECTURE_BASE_PRICES)
    )
    lecture_course_surcharges: dict[LectureCourseName, int] = Field(
        default_factory=lambda: dict(LECTURE_COURSE_SURCHARGES)
    )

    facility_fee_monthly_ex_tax: int = 3000
    facility_fee_monthly: int = 3300
    facility_fee_half_month: int = 1650
    enrollment_fee: int = 33000
    tax_rate: Decimal = Decimal("0.10")
    # Contracts starting on or after this day bill half a month first.
    half_month_start_day: int = Field(16, ge=2, le=31)
    # Free lessons granted by the 講習キャンペーン campaign.
    campaign_free_lessons: int = Field(2, ge=0)
    # Day of month on which direct debits are drawn.
    direct_debit_day: int = Field(27, ge=1, le=28)

    @field_validator("lesson_discounts")
    @classmethod
    def validate_lesson_discounts(cls, v: dict[int, int]) -> dict[int, int]:
        """Discount must not decrease as lessons per week go up."""
        previous = 0
        for lessons in sorted(v):
            if v[lessons] < previous:
                raise ValueError(
                    f"lesson discount for {lessons} lessons/week is lower than for fewer lessons"
                )
            previous = v[lessons]
        return v

    # --- Recurring courses ---

    def unit_price(self, course: str, category: str) -> int | None:
        """Monthly price per weekly slot; None when the pair has no rate."""
        return self.course_prices.get(course, {}).get(category)

    def unit_price_for_grade(self, course: str, grade: str) -> int | None:
        try:
            category = grade_category(grade)
        except ValueError:
            return None
        return self.unit_price(course, category)

    def lesson_discount(self, lessons_per_week: int) -> int:
        return self.lesson_discounts.get(lessons_per_week, 0)

    def campaign_discount(self, course: str, category: str) -> int | None:
        return self.campaign_discounts.get(course, {}).get(category)

    def enrollment_fee_for(self, campaign: str | None) -> int:
        if campaign and campaign in ENROLLMENT_FEE_WAIVED:
            return 0
        return self.enrollment_fee

    def is_half_month_start(self, start_day: int) -> bool:
        return start_day >= self.half_month_start_day

    # --- Intensive courses ---

    def lecture_unit_price(self, grade: str, course: str) -> int:
        """Tax-included price of one intensive lesson; 0 when grade or tier is unknown."""
        try:
            category = grade_category(grade)
        except ValueError:
            return 0
        base = self.lecture_base_prices.get(category)
        surcharge = self.lecture_course_surcharges.get(course)
        if base is None or surcharge is None:
            return 0
        return base + surcharge

    # --- Tax ---

    def tax_included(self, amount_ex_tax: Decimal | int) -> int:
        return add_tax(amount_ex_tax, self.tax_rate)

    def tax_excluded(self, amount_incl_tax: Decimal | int) -> Decimal:
        return remove_tax(amount_incl_tax, self.tax_rate)


DEFAULT_PRICING_TABLE = PricingTable()


def load_pricing_table(path: str | Path) -> PricingTable:
    """Read a pricing table from a JSON file (missing keys fall back to defaults)."""
    path = Path(path)
    if not path.is_file():
        raise NotFoundError("Pricing table file", str(path))
    table = PricingTable.model_validate_json(path.read_text(encoding="utf-8"))
    logger.info("Loaded pricing table from %s", path)
    return table


@lru_cache(maxsize=8)
def _cached_table(path: str) -> PricingTable:
    return load_pricing_table(path)


def get_pricing_table(settings: Settings | None = None) -> PricingTable:
    """Configured pricing table: the JSON file from settings, else the built-in one."""
    settings = settings or default_settings
    if settings.pricing_table_path:
        return _cached_table(settings.pricing_table_path)
    return DEFAULT_PRICING_TABLE
