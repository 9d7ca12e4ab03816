"""Contract quoting and monthly billing."""

import logging
from datetime import date
from typing import Any

from src.core.exceptions import ValidationError
from src.modules.contracts.models import ContractType
from src.modules.contracts.schemas import Contract, ContractCharge, CourseEntry
from src.modules.pricing.models import Campaign
from src.modules.pricing.service import PricingService
from src.shared.utils.periods import overlaps_month

logger = logging.getLogger(__name__)

# Fields a correction may change; derived amounts are always recomputed.
_REQUOTE_FIELDS = {
    "student_id",
    "grade",
    "start_date",
    "end_date",
    "courses",
    "campaign",
    "staff_name",
    "notes",
}


class ContractQuoteService:
    """Computes the amounts stored on a contract when it is created or corrected."""

    def __init__(self, pricing: PricingService | None = None):
        self.pricing = pricing or PricingService()

    def monthly_amount(self, grade: str, courses: list[CourseEntry]) -> int:
        """
        Steady-state monthly fee, tax included.

        floor((tuition + facility fee - lesson discounts) * (1 + tax)), or 0
        when no course has a price.
        """
        tuition_total = 0
        discount_total = 0
        for entry in courses:
            price = self.pricing.unit_price(entry.course, grade)
            if price == 0:
                continue
            tuition_total += price * entry.lessons
            discount_total += self.pricing.lesson_discount(entry.lessons)

        if tuition_total == 0:
            return 0

        table = self.pricing.table
        total_ex_tax = tuition_total + table.facility_fee_monthly_ex_tax - discount_total
        return table.tax_included(total_ex_tax)

    def campaign_discount(
        self, grade: str, courses: list[CourseEntry], campaign: str | None
    ) -> int:
        """Tax-included first-month discount; only 講習キャンペーン on the first course earns one."""
        if campaign != Campaign.SEASONAL_COURSE or not courses:
            return 0
        per_lesson = self.pricing.campaign_discount(courses[0].course, grade)
        return per_lesson * self.pricing.table.campaign_free_lessons

    def quote(
        self,
        *,
        id: str,
        student_id: str,
        grade: str,
        start_date: date,
        end_date: date,
        courses: list[CourseEntry] | list[dict[str, Any]],
        campaign: str | None = None,
        contract_type: ContractType = ContractType.INITIAL,
        previous_contract_id: str | None = None,
        staff_name: str = "",
        notes: str = "",
    ) -> Contract:
        """Build a contract with its derived amounts filled in."""
        if contract_type == ContractType.RENEWAL and not previous_contract_id:
            raise ValidationError(
                "Renewal contract requires previous_contract_id", field="previous_contract_id"
            )

        contract = Contract(
            id=id,
            student_id=student_id,
            contract_type=contract_type,
            grade=grade,
            start_date=start_date,
            end_date=end_date,
            courses=courses,
            campaign=campaign or None,
            previous_contract_id=previous_contract_id,
            staff_name=staff_name,
            notes=notes,
        )
        return self._with_amounts(contract)

    def requote(self, contract: Contract, **changes: Any) -> Contract:
        """Administrative correction: apply changes and recompute the stored amounts."""
        unknown = set(changes) - _REQUOTE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot change contract fields: {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        data = contract.model_dump()
        data.update(changes)
        if data.get("campaign") == "":
            data["campaign"] = None
        updated = Contract.model_validate(data)
        logger.info("Contract %s requoted (%s)", contract.id, ", ".join(sorted(changes)) or "no changes")
        return self._with_amounts(updated)

    def _with_amounts(self, contract: Contract) -> Contract:
        return contract.model_copy(
            update={
                "monthly_amount": self.monthly_amount(contract.grade, contract.courses),
                "enrollment_fee": self.pricing.table.enrollment_fee_for(contract.campaign),
                "campaign_discount": self.campaign_discount(
                    contract.grade, contract.courses, contract.campaign
                ),
            }
        )


class ContractBillingCalculator:
    """Amount billed for a contract in a given month."""

    def __init__(self, pricing: PricingService | None = None):
        self.pricing = pricing or PricingService()

    def is_active(self, contract: Contract, year: int, month: int) -> bool:
        return overlaps_month(contract.start_date, contract.end_date, year, month)

    def is_half_month(self, contract: Contract, year: int, month: int) -> bool:
        return contract.is_first_month(year, month) and self.pricing.table.is_half_month_start(
            contract.start_date.day
        )

    def monthly_tuition(self, contract: Contract) -> int:
        """Sum of unit price x weekly lessons over the contract's courses."""
        return sum(
            self.pricing.unit_price(entry.course, contract.grade) * entry.lessons
            for entry in contract.courses
        )

    def breakdown(self, contract: Contract, year: int, month: int) -> ContractCharge:
        if not self.is_active(contract, year, month):
            raise ValidationError(
                f"Contract {contract.id} is not active in {year}-{month:02d}", field="month"
            )

        table = self.pricing.table
        first_month = contract.is_first_month(year, month)
        half_month = self.is_half_month(contract, year, month)

        tuition = self.monthly_tuition(contract)
        if half_month:
            tuition = tuition // 2
        enrollment_fee = contract.enrollment_fee if first_month else 0
        facility_fee = table.facility_fee_half_month if half_month else table.facility_fee_monthly
        campaign_discount = contract.campaign_discount if first_month else 0

        return ContractCharge(
            year=year,
            month=month,
            is_first_month=first_month,
            is_half_month=half_month,
            tuition=tuition,
            enrollment_fee=enrollment_fee,
            facility_fee=facility_fee,
            campaign_discount=campaign_discount,
            total=tuition + enrollment_fee + facility_fee - campaign_discount,
        )

    def billed_amount(self, contract: Contract, year: int, month: int) -> int:
        return self.breakdown(contract, year, month).total
