from src.modules.pricing.models import (
    Campaign,
    Course,
    Grade,
    GradeCategory,
    LectureCourseName,
    LectureLabel,
    grade_category,
)
from src.modules.pricing.service import PricingService
from src.modules.pricing.table import (
    DEFAULT_PRICING_TABLE,
    PricingTable,
    get_pricing_table,
    load_pricing_table,
)

__all__ = [
    "Campaign",
    "Course",
    "Grade",
    "GradeCategory",
    "LectureCourseName",
    "LectureLabel",
    "grade_category",
    "PricingService",
    "DEFAULT_PRICING_TABLE",
    "PricingTable",
    "get_pricing_table",
    "load_pricing_table",
]
