from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from sheet_metrics.families import FAMILIES
from sheet_metrics.models import DetailRow
from sheet_metrics.pipeline import Dashboard
from sheet_metrics.progress import ModuleProgressRow

OVERVIEW_HEADERS = ["Metric", "Smoke", "Regression", "Overall"]
MODULE_HEADERS = [
    "Test Type", "Module", "Total TCs", "Manual", "Automated", "Automatable",
    "Overall %", "Effective %", "Status",
]
TEST_CASE_HEADERS = [
    "Test Type", "Module", "Test Case / Story", "Manual", "Automated", "Total", "Automation %",
    "Priority", "Status",
]

# Accent fills keyed by progress status class
TIER_FILLS = {
    "complete": PatternFill("solid", fgColor="C6EFCE"),
    "near-complete": PatternFill("solid", fgColor="D9F2E6"),
    "excellent": PatternFill("solid", fgColor="E2F0D9"),
    "good": PatternFill("solid", fgColor="FFF2CC"),
    "in-progress": PatternFill("solid", fgColor="FCE4D6"),
    "getting-started": PatternFill("solid", fgColor="F8CBAD"),
}


def _style_sheet(ws, col_widths: list[int], header_color: str) -> None:
    """Apply bold header, color, frozen row, and column widths."""
    fill = PatternFill("solid", fgColor=header_color)
    font = Font(bold=True, color="FFFFFF")
    for cell in ws[1]:
        cell.font = font
        cell.fill = fill
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=False)
    ws.freeze_panes = "A2"
    for i, width in enumerate(col_widths, start=1):
        ws.column_dimensions[get_column_letter(i)].width = width


def _infer_col_widths(rows: list[list], min_width: int = 10, max_width: int = 60) -> list[int]:
    if not rows:
        return []
    widths = [max(min_width, min(max_width, len(str(v)) + 2)) for v in rows[0]]
    for row in rows[1:]:
        for i, val in enumerate(row):
            widths[i] = max(widths[i], min(max_width, len(str(val)) + 2))
    return widths


def _overview_rows(dashboard: Dashboard) -> list[list]:
    smoke, regression, overall = dashboard.smoke, dashboard.regression, dashboard.overall
    return [
        ["Rows counted", smoke.total, regression.total, overall.total],
        ["Passed", smoke.passed, regression.passed, overall.passed],
        ["Failed", smoke.failed, regression.failed, overall.failed],
        ["Skipped", smoke.skipped, regression.skipped, overall.skipped],
        ["Pass rate %", smoke.pass_rate, regression.pass_rate, overall.pass_rate],
        ["Manual test cases", smoke.total_manual, regression.total_manual, overall.total_manual],
        ["Automated test cases", smoke.total_automated, regression.total_automated, overall.total_automated],
        ["Total test cases", smoke.total_test_cases, regression.total_test_cases, overall.total_test_cases],
        ["Automation rate %", smoke.automation_rate, regression.automation_rate, overall.automation_rate],
    ]


def _test_case_rows(
    dashboard: Dashboard,
    detail_rows: Mapping[str, Sequence[DetailRow]] | None = None,
) -> list[list]:
    rows = []
    for report in (dashboard.smoke, dashboard.regression):
        label = FAMILIES[report.family].label
        details = report.detail_rows if detail_rows is None else detail_rows.get(report.family, ())
        for detail in details:
            rows.append([
                label, detail.module, detail.name, detail.manual, detail.automated, detail.total,
                detail.automation_percent, detail.priority or "N/A", detail.status,
            ])
    return rows


def write_dashboard_workbook(
    dashboard: Dashboard,
    output_path: Path,
    module_rows: Sequence[ModuleProgressRow] | None = None,
    detail_rows: Mapping[str, Sequence[DetailRow]] | None = None,
) -> Path:
    """
    Write the three-sheet dashboard workbook.

    ``module_rows`` and ``detail_rows`` (keyed by family name) replace the
    dashboard's own rows when given, so filtered views export as shown.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    module_rows = dashboard.module_progress if module_rows is None else module_rows

    wb = openpyxl.Workbook()

    ws1 = wb.active
    ws1.title = "Overview"
    overview = _overview_rows(dashboard)
    ws1.append(OVERVIEW_HEADERS)
    for row in overview:
        ws1.append(row)
    _style_sheet(ws1, _infer_col_widths([OVERVIEW_HEADERS] + overview), "4472C4")

    ws2 = wb.create_sheet("Modules")
    ws2.append(MODULE_HEADERS)
    module_values = []
    for module in module_rows:
        values = [
            module.test_type, module.name, module.total_tcs, module.manual, module.automated,
            module.automatable, module.overall_percent, module.effective_percent, module.status_text,
        ]
        module_values.append(values)
        ws2.append(values)
        ws2.cell(row=ws2.max_row, column=len(values)).fill = TIER_FILLS[module.status_class]
    _style_sheet(ws2, _infer_col_widths([MODULE_HEADERS] + module_values), "4CAF50")

    ws3 = wb.create_sheet("Test Cases")
    ws3.append(TEST_CASE_HEADERS)
    case_rows = _test_case_rows(dashboard, detail_rows)
    for row in case_rows:
        ws3.append(row)
    _style_sheet(ws3, _infer_col_widths([TEST_CASE_HEADERS] + case_rows), "FF9800")

    wb.save(output_path)
    return output_path
