"""Export payment-history and revenue reports to Excel (XLSX)."""

from decimal import Decimal
from enum import Enum
from io import BytesIO
from typing import Any, Callable

from openpyxl import Workbook
from openpyxl.styles import Font

from src.modules.reports.schemas import HistoryTotals, MonthlySummaryRow, RevenueSummary, StudentSummaryRow
from src.shared.utils.periods import period_key


def _cell_value(v: Any) -> Any:
    """Convert value for Excel (Decimal -> float, enums -> their value, date stays)."""
    if v is None:
        return None
    if isinstance(v, Decimal):
        return float(v)
    if isinstance(v, Enum):
        return v.value
    return v


def _write_table(ws: Any, rows: list[list[Any]], start_row: int = 1) -> None:
    """Write list of rows to sheet starting at start_row."""
    for i, row in enumerate(rows, start=start_row):
        for j, val in enumerate(row, start=1):
            ws.cell(row=i, column=j, value=_cell_value(val))


def _write_header(ws: Any, title: str, headers: list[str], header_row: int = 3) -> None:
    ws.cell(1, 1, title)
    ws.cell(1, 1).font = Font(bold=True, size=12)
    _write_table(ws, [headers], header_row)
    for c in range(1, len(headers) + 1):
        ws.cell(header_row, c).font = Font(bold=True)


def _to_bytes(wb: Workbook) -> bytes:
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_monthly_summary(rows: list[MonthlySummaryRow], totals: HistoryTotals) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "月別入金状況"
    headers = ["年月", "請求額", "入金額", "入金済み", "未入金", "過不足あり", "件数", "回収率 %"]
    _write_header(ws, "入金履歴（月別）", headers)
    row = 4
    for r in rows:
        _write_table(ws, [[
            period_key(r.year, r.month), r.total_billed, r.total_paid, r.paid_count,
            r.unpaid_count, r.discrepancy_count, r.total_items, r.collection_rate,
        ]], row)
        row += 1
    _write_table(ws, [["合計", totals.total_billed, totals.total_paid, "", "", "", "",
                      totals.collection_rate]], row)
    for c in range(1, len(headers) + 1):
        ws.cell(row, c).font = Font(bold=True)
    ws.cell(row + 1, 1, "未回収").font = Font(bold=True)
    ws.cell(row + 1, 2, totals.outstanding)
    return _to_bytes(wb)


def export_student_summary(rows: list[StudentSummaryRow]) -> bytes:
    """One line per student with totals, then one sheet line per billed month."""
    wb = Workbook()
    ws = wb.active
    ws.title = "生徒別入金状況"
    headers = ["生徒番号", "氏名", "請求額", "入金額", "未回収"]
    _write_header(ws, "入金履歴（生徒別）", headers)
    row = 4
    for r in rows:
        _write_table(ws, [[r.student_number, r.student_name, r.total_billed, r.total_paid,
                           r.outstanding]], row)
        row += 1

    detail = wb.create_sheet("明細")
    detail_headers = ["生徒番号", "氏名", "年月", "種別", "請求額", "入金額", "状態"]
    _write_table(detail, [detail_headers], 1)
    for c in range(1, len(detail_headers) + 1):
        detail.cell(1, c).font = Font(bold=True)
    row = 2
    for r in rows:
        for e in r.months:
            _write_table(detail, [[
                r.student_number, r.student_name, period_key(e.year, e.month),
                e.billing_type, e.billed_amount, e.paid_amount, e.status,
            ]], row)
            row += 1
    return _to_bytes(wb)


def export_revenue_summary(summary: RevenueSummary) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "売上推移"
    _write_header(ws, f"売上推移（{period_key(summary.year, summary.month)}まで）",
                  ["年月", "売上", "生徒数"])
    row = 4
    for m in summary.months:
        _write_table(ws, [[period_key(m.year, m.month), m.revenue, m.student_count]], row)
        row += 1

    grades = wb.create_sheet("学年別")
    headers = ["学年", "生徒数", "月額売上", "週コマ数"]
    _write_header(grades, f"学年別（{period_key(summary.year, summary.month)}）", headers)
    row = 4
    for g in summary.grade_stats:
        _write_table(grades, [[g.grade, g.student_count, g.monthly_revenue, g.weekly_lessons]], row)
        row += 1
    _write_table(grades, [["合計", summary.total_grade_students, summary.total_grade_revenue,
                          summary.total_grade_lessons]], row)
    for c in range(1, len(headers) + 1):
        grades.cell(row, c).font = Font(bold=True)
    return _to_bytes(wb)


_EXPORTERS: dict[str, Callable[..., bytes]] = {
    "monthly_summary": export_monthly_summary,
    "student_summary": export_student_summary,
    "revenue_summary": export_revenue_summary,
}


def build_report_xlsx(report_key: str, *args: Any) -> bytes:
    """Build XLSX bytes for a report. report_key e.g. 'monthly_summary', 'revenue_summary'."""
    fn = _EXPORTERS.get(report_key)
    if not fn:
        raise ValueError(f"Unknown report for Excel: {report_key}")
    return fn(*args)
