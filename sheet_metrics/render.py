from __future__ import annotations

from collections.abc import Sequence

from sheet_metrics.families import FAMILIES
from sheet_metrics.models import ReportMetrics
from sheet_metrics.pipeline import Dashboard
from sheet_metrics.progress import ModuleProgressRow
from sheet_metrics.rows import SKIP_REASONS

MODULE_COLUMNS = (
    ("Type", 15),
    ("Module", 28),
    ("Total", 6),
    ("Manual", 7),
    ("Auto", 6),
    ("Overall", 8),
    ("Effective", 10),
    ("Status", 20),
)


def _fit(value: object, width: int) -> str:
    text = str(value)
    if len(text) > width:
        text = text[: width - 1] + "…"
    return text.ljust(width)


def render_report_text(report: ReportMetrics) -> str:
    family = FAMILIES.get(report.family)
    label = family.label if family else report.family
    accounting = report.row_accounting
    lines = [
        f"{label} sheet",
        f"Header row: {report.header_index + 1 if report.header_index >= 0 else '[none]'}",
        f"Rows counted: {report.total} of {accounting.data_rows}",
        f"Passed: {report.passed}  Failed: {report.failed}  Skipped: {report.skipped}",
        f"Pass rate: {report.pass_rate}%",
        f"Test cases: {report.total_test_cases} "
        f"(manual {report.total_manual}, automated {report.total_automated}, "
        f"automation {report.automation_rate}%)",
        "Status breakdown: "
        + ", ".join(f"{bucket} {count}" for bucket, count in report.status_breakdown.items()),
    ]
    if accounting.skipped_rows:
        lines.append(
            "Skipped rows: "
            + ", ".join(
                f"{SKIP_REASONS.get(reason, reason).lower()} {count}"
                for reason, count in sorted(accounting.skipped_rows.items())
            )
        )
    if report.tests_by_priority:
        lines.append(
            "By priority: "
            + ", ".join(f"{priority} {count}" for priority, count in report.tests_by_priority.items())
        )
    if report.modules_by_key:
        lines.append("Modules:")
        for key, module in report.modules_by_key.items():
            lines.append(
                f"  - {key}: {module.total_test_cases} cases "
                f"({module.manual_count} manual / {module.automated_count} automated)"
            )
    for warning in report.warnings:
        lines.append(f"Warning: {warning}")
    return "\n".join(lines)


def render_module_table(rows: Sequence[ModuleProgressRow]) -> str:
    if not rows:
        return "No module data available"
    header = " ".join(_fit(title, width) for title, width in MODULE_COLUMNS)
    lines = [header, "-" * len(header)]
    for row in rows:
        values = (
            row.test_type,
            row.name,
            row.total_tcs,
            row.manual,
            row.automated,
            f"{row.overall_percent}%",
            f"{row.effective_percent}%",
            row.status_text,
        )
        lines.append(" ".join(_fit(value, width) for value, (_, width) in zip(values, MODULE_COLUMNS)))
    return "\n".join(lines)


def render_dashboard_text(
    dashboard: Dashboard,
    module_rows: Sequence[ModuleProgressRow] | None = None,
) -> str:
    overall = dashboard.overall
    rows = dashboard.module_progress if module_rows is None else module_rows
    sections = [
        "\n".join(
            [
                "sheet-metrics dashboard",
                f"Total: {overall.total}  Passed: {overall.passed}  "
                f"Failed: {overall.failed}  Skipped: {overall.skipped}",
                f"Pass rate: {overall.pass_rate}%",
                f"Test cases: {overall.total_test_cases} (manual {overall.total_manual}, "
                f"automated {overall.total_automated})",
                f"Automation rate: {overall.automation_rate}%",
            ]
        ),
        render_report_text(dashboard.smoke),
        render_report_text(dashboard.regression),
        render_module_table(rows),
    ]
    return "\n\n".join(sections)
