from datetime import date

import pytest

from src.modules.billing.schemas import BillingSnapshot, Student
from src.modules.billing.service import BillingService
from src.modules.contracts.schemas import Contract
from src.modules.contracts.service import ContractBillingCalculator, ContractQuoteService
from src.modules.lectures.schemas import Lecture, LectureCourse
from src.modules.lectures.service import LectureBillingCalculator, LectureQuoteService
from src.modules.materials.schemas import MaterialSale
from src.modules.payments.service import ReconciliationService
from src.modules.pricing.service import PricingService
from src.modules.pricing.table import PricingTable


@pytest.fixture
def pricing_table() -> PricingTable:
    """Built-in pricing table."""
    return PricingTable()


@pytest.fixture
def pricing(pricing_table: PricingTable) -> PricingService:
    return PricingService(pricing_table, strict=False)


@pytest.fixture
def strict_pricing(pricing_table: PricingTable) -> PricingService:
    return PricingService(pricing_table, strict=True)


@pytest.fixture
def quote_service(pricing: PricingService) -> ContractQuoteService:
    return ContractQuoteService(pricing)


@pytest.fixture
def contract_calculator(pricing: PricingService) -> ContractBillingCalculator:
    return ContractBillingCalculator(pricing)


@pytest.fixture
def lecture_quote_service(pricing: PricingService) -> LectureQuoteService:
    return LectureQuoteService(pricing)


@pytest.fixture
def lecture_calculator() -> LectureBillingCalculator:
    return LectureBillingCalculator()


@pytest.fixture
def reconciliation() -> ReconciliationService:
    return ReconciliationService()


@pytest.fixture
def billing_service(pricing: PricingService) -> BillingService:
    return BillingService(pricing)


@pytest.fixture
def half_month_contract(quote_service: ContractQuoteService) -> Contract:
    """小5, ハイ twice a week, enrolled on 2026-04-20 (half first month)."""
    return quote_service.quote(
        id="c-1",
        student_id="s-1",
        grade="小5",
        start_date=date(2026, 4, 20),
        end_date=date(2027, 3, 31),
        courses=[{"course": "ハイ", "lessons": 2}],
    )


@pytest.fixture
def campaign_contract(quote_service: ContractQuoteService) -> Contract:
    """小5, ハイ once a week from 2026-04-01 under 講習キャンペーン."""
    return quote_service.quote(
        id="c-2",
        student_id="s-2",
        grade="小5",
        start_date=date(2026, 4, 1),
        end_date=date(2027, 3, 31),
        courses=[{"course": "ハイ", "lessons": 1}],
        campaign="講習キャンペーン",
    )


@pytest.fixture
def summer_lecture() -> Lecture:
    """One course at 8,000 yen: 3 lessons in July, 2 in August."""
    return Lecture(
        id="l-1",
        student_id="s-1",
        grade="小5",
        label="夏期",
        courses=[
            LectureCourse(
                course="ハイスタンダード",
                unit_price=8000,
                total_lessons=5,
                allocation=[
                    {"year": 2026, "month": 7, "lessons": 3},
                    {"year": 2026, "month": 8, "lessons": 2},
                ],
            )
        ],
    )


@pytest.fixture
def textbook_sale() -> MaterialSale:
    return MaterialSale(
        id="m-1",
        student_id="s-2",
        item_name="夏期テキスト",
        unit_price=2200,
        quantity=2,
        sale_date=date(2026, 6, 28),
        billing_year=2026,
        billing_month=7,
    )


@pytest.fixture
def students() -> list[Student]:
    return [
        Student(id="s-1", name="山田 太郎", student_number="1001", grade="小5",
                direct_debit_start_ym="2026-05"),
        Student(id="s-2", name="佐藤 花子", student_number="1002", grade="小5"),
    ]


@pytest.fixture
def snapshot(
    students: list[Student],
    half_month_contract: Contract,
    campaign_contract: Contract,
    summer_lecture: Lecture,
    textbook_sale: MaterialSale,
) -> BillingSnapshot:
    """Two students, two contracts, one lecture, one textbook sale, no payments."""
    return BillingSnapshot(
        students=students,
        contracts=[half_month_contract, campaign_contract],
        lectures=[summer_lecture],
        materials=[textbook_sale],
    )
