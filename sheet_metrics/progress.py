"""
Per-module automation progress rows for the modules table.

Each module of each sheet family becomes one row with an overall and an
effective automation percentage and a progress tier. ``filter_module_rows``
applies the table's column filters: substring match for text columns and
``>N`` / ``<N`` / ``N`` comparisons for numeric columns.
``filter_detail_rows`` does the same for the per-family detail tables
(search, status and priority).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sheet_metrics.families import FAMILIES
from sheet_metrics.models import DetailRow, ReportMetrics, percent

# (minimum effective percent, status text, status class), highest first
PROGRESS_TIERS = (
    (100, "Complete", "complete"),
    (90, "Near Complete", "near-complete"),
    (80, "Excellent Progress", "excellent"),
    (60, "Good Progress", "good"),
    (40, "In Progress", "in-progress"),
    (0, "Getting Started", "getting-started"),
)

TEXT_FILTERS = {"testType": "test_type", "name": "name", "status": "status_text"}
NUMERIC_FILTERS = {
    "totalTCs": "total_tcs",
    "manual": "manual",
    "automated": "automated",
    "overallPercent": "overall_percent",
    "effectivePercent": "effective_percent",
}
FILTER_COLUMNS = tuple(TEXT_FILTERS) + tuple(NUMERIC_FILTERS)

NUMBER_RE = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class ModuleProgressRow:
    test_type: str
    name: str
    total_tcs: int
    manual: int
    automated: int
    automatable: int
    overall_percent: int
    effective_percent: int
    status_text: str
    status_class: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "testType": self.test_type,
            "name": self.name,
            "totalTCs": self.total_tcs,
            "manual": self.manual,
            "automated": self.automated,
            "automatable": self.automatable,
            "overallPercent": self.overall_percent,
            "effectivePercent": self.effective_percent,
            "statusText": self.status_text,
            "statusClass": self.status_class,
        }


def progress_tier(effective_percent: int) -> tuple[str, str]:
    for threshold, text, css_class in PROGRESS_TIERS:
        if effective_percent >= threshold:
            return text, css_class
    return PROGRESS_TIERS[-1][1], PROGRESS_TIERS[-1][2]


def module_progress_rows(report: ReportMetrics) -> list[ModuleProgressRow]:
    family = FAMILIES.get(report.family)
    test_type = family.label if family else report.family
    fallback_key = family.fallback_group_key.lower() if family else "other"

    rows = []
    for name, module in report.modules_by_key.items():
        if not name.strip() or name.strip().lower() == fallback_key:
            continue
        total = module.total_test_cases
        automated = module.automated_count
        manual = module.manual_count
        automatable = total or (automated + manual)
        overall = percent(automated, total)
        effective = percent(automated, automatable) if automatable > 0 else overall
        status_text, status_class = progress_tier(effective)
        rows.append(
            ModuleProgressRow(
                test_type=test_type,
                name=name,
                total_tcs=total,
                manual=manual,
                automated=automated,
                automatable=automatable,
                overall_percent=overall,
                effective_percent=effective,
                status_text=status_text,
                status_class=status_class,
            )
        )
    return rows


def combined_progress_rows(reports: Iterable[ReportMetrics]) -> list[ModuleProgressRow]:
    rows: list[ModuleProgressRow] = []
    for report in reports:
        rows.extend(module_progress_rows(report))
    return sorted(rows, key=lambda row: row.effective_percent, reverse=True)


def _numeric_filter_matches(value: int, expression: str) -> bool:
    text = expression.strip().lower()
    match = NUMBER_RE.search(text)
    if not match:
        return True
    number = int(match.group(0))
    if ">" in text:
        return value > number
    if "<" in text:
        return value < number
    return value == number


def filter_module_rows(
    rows: Sequence[ModuleProgressRow],
    filters: Mapping[str, str],
) -> list[ModuleProgressRow]:
    active = {column: value for column, value in filters.items() if value and value.strip()}
    unknown = sorted(set(active) - set(FILTER_COLUMNS))
    if unknown:
        raise ValueError(
            f"Unknown filter column(s): {', '.join(unknown)}. "
            f"Supported: {', '.join(FILTER_COLUMNS)}"
        )

    def keep(row: ModuleProgressRow) -> bool:
        for column, expression in active.items():
            if column in TEXT_FILTERS:
                value = getattr(row, TEXT_FILTERS[column])
                if expression.strip().lower() not in value.lower():
                    return False
            elif not _numeric_filter_matches(getattr(row, NUMERIC_FILTERS[column]), expression):
                return False
        return True

    return [row for row in rows if keep(row)]


def filter_detail_rows(
    rows: Sequence[DetailRow],
    search: str = "",
    status: str = "",
    priority: str = "",
) -> list[DetailRow]:
    """
    Filter a family's detail table.

    ``search`` is a case-insensitive substring of the module or the row name.
    ``status`` and ``priority`` match the whole value, ignoring case; blank or
    ``"all"`` disables a filter.
    """
    term = (search or "").strip().lower()
    wanted_status = _choice(status)
    wanted_priority = _choice(priority)

    def keep(row: DetailRow) -> bool:
        if term and term not in row.module.lower() and term not in row.name.lower():
            return False
        if wanted_status and row.status.strip().lower() != wanted_status:
            return False
        if wanted_priority and (row.priority or "N/A").strip().lower() != wanted_priority:
            return False
        return True

    return [row for row in rows if keep(row)]


def _choice(value: str) -> str:
    text = (value or "").strip().lower()
    return "" if text == "all" else text
