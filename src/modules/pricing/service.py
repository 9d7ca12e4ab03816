"""Price resolution on top of a PricingTable."""

import logging

from src.core.config import Settings, settings as default_settings
from src.core.exceptions import PriceNotDefinedError
from src.modules.pricing.models import grade_category
from src.modules.pricing.table import PricingTable, get_pricing_table

logger = logging.getLogger(__name__)


class PricingService:
    """
    Resolves prices for the calculators.

    An unknown (course, grade category) pair bills as 0 and logs a warning,
    or raises PriceNotDefinedError when strict.
    """

    def __init__(self, table: PricingTable | None = None, strict: bool | None = None):
        self.table = table or get_pricing_table()
        self.strict = default_settings.strict_pricing if strict is None else strict

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "PricingService":
        settings = settings or default_settings
        return cls(get_pricing_table(settings), strict=settings.strict_pricing)

    def unit_price(self, course: str, grade: str) -> int:
        price = self.table.unit_price_for_grade(course, grade)
        if price is not None:
            return price
        try:
            category = grade_category(grade)
        except ValueError:
            category = None
        if self.strict:
            raise PriceNotDefinedError(course, grade, category)
        logger.warning(
            "No unit price for course=%s grade=%s category=%s; billing 0", course, grade, category
        )
        return 0

    def lesson_discount(self, lessons_per_week: int) -> int:
        return self.table.lesson_discount(lessons_per_week)

    def campaign_discount(self, course: str, grade: str) -> int:
        """Tax-included discount per free lesson; 0 outside the campaign course family."""
        try:
            category = grade_category(grade)
        except ValueError:
            return 0
        return self.table.campaign_discount(course, category) or 0
