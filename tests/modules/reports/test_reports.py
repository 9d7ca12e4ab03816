import json
from datetime import date
from io import BytesIO

import pytest
from openpyxl import load_workbook

from src.core.config import Settings
from src.core.exceptions import PriceNotDefinedError
from src.modules.billing.schemas import BillingSnapshot
from src.modules.billing.service import BillingService
from src.modules.contracts.schemas import Contract
from src.modules.payments.models import BillingType, PaymentStatus
from src.modules.payments.schemas import Payment
from src.modules.reports.excel_export import (
    build_report_xlsx,
    export_monthly_summary,
    export_revenue_summary,
    export_student_summary,
)
from src.modules.reports.service import ReportsService, collection_rate
from src.shared.utils.periods import BillingPeriod

SPRING = [BillingPeriod(2026, m) for m in (4, 5, 6, 7)]


@pytest.fixture
def reports(billing_service: BillingService) -> ReportsService:
    return ReportsService(billing_service, Settings(_env_file=None))


@pytest.fixture
def paid_snapshot(snapshot: BillingSnapshot) -> BillingSnapshot:
    """April: c-1 paid in full, c-2 overpaid by 2,700 yen."""
    return snapshot.model_copy(
        update={
            "payments": [
                Payment(
                    billing_type=BillingType.CONTRACT,
                    contract_id="c-1",
                    year=2026,
                    month=4,
                    billed_amount=69650,
                    paid_amount=69650,
                    payment_date=date(2026, 4, 27),
                ),
                Payment(
                    billing_type=BillingType.CONTRACT,
                    contract_id="c-2",
                    year=2026,
                    month=4,
                    billed_amount=17300,
                    paid_amount=20000,
                    payment_date=date(2026, 4, 30),
                ),
            ]
        }
    )


class TestCollectionRate:
    """Tests for collection_rate."""

    def test_nothing_billed(self):
        assert collection_rate(0, 0) == 0
        assert collection_rate(500, 0) == 0

    def test_full(self):
        assert collection_rate(86950, 86950) == 100.0

    @pytest.mark.parametrize(
        "paid, billed, rate",
        [(1, 3, 33.3), (2, 3, 66.7), (1, 8, 12.5), (1, 16, 6.3), (89650, 86950, 103.1)],
    )
    def test_one_decimal_half_up(self, paid, billed, rate):
        assert collection_rate(paid, billed) == rate


class TestMonthlySummary:
    """Tests for the monthly payment history."""

    def test_rows_per_period(self, reports: ReportsService, paid_snapshot: BillingSnapshot):
        rows = reports.monthly_summary(paid_snapshot, SPRING)

        assert [(r.year, r.month) for r in rows] == [(2026, 4), (2026, 5), (2026, 6), (2026, 7)]
        april = rows[0]
        assert april.total_billed == 86950
        assert april.total_paid == 89650
        assert april.paid_count == 1
        assert april.discrepancy_count == 1
        assert april.unpaid_count == 0
        assert april.total_items == 2
        assert april.collection_rate == 103.1

        may = rows[1]
        assert may.total_billed == 111600
        assert may.unpaid_count == 2
        assert may.collection_rate == 0

    def test_materials_excluded_by_default(
        self, reports: ReportsService, snapshot: BillingSnapshot
    ):
        july = reports.monthly_summary(snapshot, [BillingPeriod(2026, 7)])[0]
        assert july.total_billed == 73300 + 38300 + 24000
        assert july.total_items == 3

    def test_materials_included_on_request(
        self, reports: ReportsService, snapshot: BillingSnapshot
    ):
        july = reports.monthly_summary(
            snapshot, [BillingPeriod(2026, 7)], include_materials=True
        )[0]
        assert july.total_billed == 140000
        assert july.total_items == 4

    def test_materials_included_by_setting(
        self, billing_service: BillingService, snapshot: BillingSnapshot
    ):
        service = ReportsService(
            billing_service, Settings(_env_file=None, include_materials_in_history=True)
        )
        assert service.monthly_summary(snapshot, [BillingPeriod(2026, 7)])[0].total_items == 4

    def test_empty_period(self, reports: ReportsService, snapshot: BillingSnapshot):
        row = reports.monthly_summary(snapshot, [BillingPeriod(2025, 12)])[0]
        assert row.total_items == 0
        assert row.collection_rate == 0

    def test_history_totals(self, reports: ReportsService, paid_snapshot: BillingSnapshot):
        totals = reports.history_totals(reports.monthly_summary(paid_snapshot, SPRING))
        assert totals.total_billed == 445750
        assert totals.total_paid == 89650
        assert totals.outstanding == 356100
        assert totals.collection_rate == 20.1


class TestHistoryWindow:
    """Tests for the default history window and settings-driven pricing."""

    def test_default_window_is_calendar_year(
        self, reports: ReportsService, snapshot: BillingSnapshot
    ):
        rows = reports.monthly_summary(snapshot, year=2026)
        assert [(r.year, r.month) for r in rows] == [(2026, m) for m in range(1, 13)]
        assert rows[3].total_billed == 86950
        assert rows[0].total_items == 0

    def test_window_length_from_settings(
        self, billing_service: BillingService, snapshot: BillingSnapshot
    ):
        service = ReportsService(billing_service, Settings(_env_file=None, history_months=6))
        rows = service.monthly_summary(snapshot, year=2026)
        assert [(r.year, r.month) for r in rows] == [(2026, m) for m in range(7, 13)]
        assert service.history_periods(2027)[0] == BillingPeriod(2027, 7)

    def test_student_summary_default_window(
        self, reports: ReportsService, snapshot: BillingSnapshot
    ):
        rows = reports.student_summary(snapshot, year=2026)
        taro = next(r for r in rows if r.student_id == "s-1")
        # April half month, May-December in full, the summer lecture
        assert taro.total_billed == 69650 + 8 * 73300 + 40000
        assert len(rows) == 2

    def test_strict_pricing_from_settings(self, snapshot: BillingSnapshot):
        unpriced = Contract(
            id="c-8",
            student_id="s-1",
            grade="中1",
            start_date=date(2026, 4, 1),
            end_date=date(2027, 3, 31),
            courses=[{"course": "ハイPLUS", "lessons": 1}],
        )
        snapshot.contracts = [unpriced]
        service = ReportsService(settings=Settings(_env_file=None, strict_pricing=True))
        with pytest.raises(PriceNotDefinedError):
            service.monthly_summary(snapshot, [BillingPeriod(2026, 5)])

    def test_pricing_table_path_from_settings(self, tmp_path, snapshot: BillingSnapshot):
        path = tmp_path / "pricing.json"
        path.write_text(json.dumps({"course_prices": {"ハイ": {"小3-小5": 30000}}}), encoding="utf-8")
        service = ReportsService(
            settings=Settings(_env_file=None, pricing_table_path=str(path))
        )
        may = service.monthly_summary(snapshot, [BillingPeriod(2026, 5)])[0]
        # c-1: 30000 x 2 + 3300, c-2: 30000 + 3300
        assert may.total_billed == 63300 + 33300


class TestStudentSummary:
    """Tests for the per-student payment history."""

    def test_sorted_by_outstanding(self, reports: ReportsService, paid_snapshot: BillingSnapshot):
        rows = reports.student_summary(paid_snapshot, SPRING, include_materials=True)

        assert [r.student_id for r in rows] == ["s-1", "s-2"]
        taro, hanako = rows
        assert taro.total_billed == 313550
        assert taro.total_paid == 69650
        assert taro.outstanding == 243900
        assert len(taro.months) == 5
        assert hanako.total_billed == 136600
        assert hanako.outstanding == 116600

    def test_unknown_student_skipped(self, reports: ReportsService, snapshot: BillingSnapshot):
        partial = snapshot.model_copy(update={"students": snapshot.students[:1]})
        rows = reports.student_summary(partial, SPRING)
        assert [r.student_id for r in rows] == ["s-1"]

    def test_filter_by_query(self, reports: ReportsService, paid_snapshot: BillingSnapshot):
        rows = reports.student_summary(paid_snapshot, SPRING)
        assert [r.student_id for r in reports.filter_students(rows, "佐藤")] == ["s-2"]
        assert [r.student_id for r in reports.filter_students(rows, " 1001 ")] == ["s-1"]
        assert reports.filter_students(rows, "") == rows

    def test_filter_discrepancy(self, reports: ReportsService, paid_snapshot: BillingSnapshot):
        rows = reports.student_summary(paid_snapshot, SPRING)
        only = reports.filter_students(rows, only="discrepancy")
        assert [r.student_id for r in only] == ["s-2"]

    def test_filter_unpaid(self, reports: ReportsService, paid_snapshot: BillingSnapshot):
        rows = reports.student_summary(paid_snapshot, [BillingPeriod(2026, 4)])
        # Both April bills are covered, s-2 even over.
        assert reports.filter_students(rows, only="unpaid") == []

    def test_month_status(self, reports: ReportsService, paid_snapshot: BillingSnapshot):
        rows = {r.student_id: r for r in reports.student_summary(paid_snapshot, SPRING)}
        assert reports.month_status(rows["s-1"], 2026, 4) == PaymentStatus.PAID
        assert reports.month_status(rows["s-1"], 2026, 7) == PaymentStatus.UNPAID
        assert reports.month_status(rows["s-2"], 2026, 4) == PaymentStatus.DISCREPANCY
        assert reports.month_status(rows["s-1"], 2026, 3) is None


class TestRevenueSummary:
    """Tests for the revenue dashboard."""

    def test_twelve_months(self, reports: ReportsService, snapshot: BillingSnapshot):
        summary = reports.revenue_summary(snapshot, 2026, 7)

        assert len(summary.months) == 12
        assert (summary.months[0].year, summary.months[0].month) == (2025, 8)
        assert summary.months[-1].revenue == 140000
        assert summary.months[-1].student_count == 2
        april = next(m for m in summary.months if m.month == 4)
        assert april.revenue == 86950
        march = next(m for m in summary.months if m.month == 3)
        assert march.revenue == 0
        assert march.student_count == 0

    def test_grade_stats(self, reports: ReportsService, snapshot: BillingSnapshot):
        senior = Contract(
            id="c-9",
            student_id="s-9",
            grade="高1",
            start_date=date(2026, 7, 1),
            end_date=date(2027, 3, 31),
            courses=[{"course": "エク", "lessons": 1}],
        )
        snapshot.contracts = [senior, *snapshot.contracts]
        summary = reports.revenue_summary(snapshot, 2026, 7)

        assert [g.grade for g in summary.grade_stats] == ["小5", "高1"]
        elementary, high = summary.grade_stats
        assert elementary.student_count == 2
        assert elementary.monthly_revenue == 111600
        assert elementary.weekly_lessons == 3
        assert high.monthly_revenue == 53300
        assert summary.total_grade_students == 3
        assert summary.total_grade_revenue == 164900
        assert summary.total_grade_lessons == 4

    def test_no_active_contracts(self, reports: ReportsService, snapshot: BillingSnapshot):
        summary = reports.revenue_summary(snapshot, 2026, 1)
        assert summary.grade_stats == []
        assert summary.total_grade_revenue == 0


class TestExcelExport:
    """Tests for XLSX exports."""

    def test_monthly_summary(self, reports: ReportsService, paid_snapshot: BillingSnapshot):
        rows = reports.monthly_summary(paid_snapshot, SPRING)
        body = export_monthly_summary(rows, reports.history_totals(rows))

        assert body[:2] == b"PK"
        ws = load_workbook(BytesIO(body)).active
        assert ws.title == "月別入金状況"
        assert ws.cell(3, 1).value == "年月"
        assert ws.cell(4, 1).value == "2026-04"
        assert ws.cell(4, 2).value == 86950
        assert ws.cell(8, 1).value == "合計"
        assert ws.cell(8, 2).value == 445750
        assert ws.cell(9, 2).value == 356100

    def test_student_summary(self, reports: ReportsService, paid_snapshot: BillingSnapshot):
        rows = reports.student_summary(paid_snapshot, [BillingPeriod(2026, 4)])
        wb = load_workbook(BytesIO(export_student_summary(rows)))

        assert wb.sheetnames == ["生徒別入金状況", "明細"]
        assert wb["生徒別入金状況"].cell(4, 2).value == "山田 太郎"
        detail = wb["明細"]
        assert detail.cell(2, 3).value == "2026-04"
        assert detail.cell(2, 4).value == "contract"
        assert detail.cell(3, 7).value == "過不足あり"

    def test_revenue_summary(self, reports: ReportsService, snapshot: BillingSnapshot):
        wb = load_workbook(BytesIO(export_revenue_summary(reports.revenue_summary(snapshot, 2026, 7))))

        assert wb.sheetnames == ["売上推移", "学年別"]
        assert wb["売上推移"].cell(15, 2).value == 140000
        assert wb["学年別"].cell(4, 1).value == "小5"

    def test_build_report_xlsx(self, reports: ReportsService, snapshot: BillingSnapshot):
        summary = reports.revenue_summary(snapshot, 2026, 7)
        assert build_report_xlsx("revenue_summary", summary)[:2] == b"PK"
        with pytest.raises(ValueError):
            build_report_xlsx("aged_receivables", summary)
