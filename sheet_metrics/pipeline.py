"""
End-to-end wiring: CSV text in, metrics structure out.

    report    = ingest_report(text, SMOKE)
    dashboard = build_dashboard(smoke_text, regression_text)
    payload   = dashboard_payload(dashboard)   # JSON-ready dict

Nothing here raises for malformed sheets; degraded input is reported through
``ReportMetrics.warnings``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sheet_metrics import __version__ as TOOL_VERSION
from sheet_metrics.aggregation import fold
from sheet_metrics.columns import describe_mapping, map_columns
from sheet_metrics.combiner import combine, merge_counts, merge_modules
from sheet_metrics.contracts import build_contract, build_run_summary, utc_now_iso
from sheet_metrics.families import REGRESSION, SMOKE, SheetFamily
from sheet_metrics.headers import locate
from sheet_metrics.models import ModuleAggregate, OverallSummary, ReportMetrics, frozen_mapping
from sheet_metrics.progress import ModuleProgressRow, combined_progress_rows
from sheet_metrics.rows import classify_rows
from sheet_metrics.tokenizer import tokenize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dashboard:
    smoke: ReportMetrics
    regression: ReportMetrics
    overall: OverallSummary
    modules: dict[str, ModuleAggregate]
    tests_by_priority: dict[str, int]
    module_progress: tuple[ModuleProgressRow, ...]


def ingest_report(
    text: str,
    family: SheetFamily,
    explicit_header_row: int | None = None,
) -> ReportMetrics:
    rows = tokenize(text)
    location = locate(rows, explicit_header_row=explicit_header_row)
    header_map = map_columns(location.headers, family.role_rules)

    warnings: list[str] = []
    if not rows:
        warnings.append("Sheet is empty")
    elif location.strategy == "first-non-empty":
        warnings.append(
            f"No header keywords found; using row {location.header_index + 1} as the header row"
        )
    mapping = describe_mapping(location.headers, header_map, family.role_rules)
    if rows and mapping["missing"]:
        warnings.append(f"Columns not found: {', '.join(mapping['missing'])}")

    report = fold(
        classify_rows(location.data_rows, header_map, family),
        family,
        header_index=location.header_index,
        headers=tuple(location.headers),
        header_map=frozen_mapping(
            {role: idx for role, idx in header_map.as_dict().items() if header_map.has(role)}
        ),
        warnings=tuple(warnings),
    )
    logger.info(
        "%s sheet: %d header cells, %d data rows, %d counted",
        family.name,
        len(location.headers),
        len(location.data_rows),
        report.total,
    )
    return report


def build_dashboard(
    smoke_text: str,
    regression_text: str,
    smoke_header_row: int | None = None,
    regression_header_row: int | None = None,
) -> Dashboard:
    smoke = ingest_report(smoke_text, SMOKE, explicit_header_row=smoke_header_row)
    regression = ingest_report(regression_text, REGRESSION, explicit_header_row=regression_header_row)
    return Dashboard(
        smoke=smoke,
        regression=regression,
        overall=combine(smoke, regression),
        modules=merge_modules(smoke.modules_by_key, regression.modules_by_key),
        tests_by_priority=merge_counts(smoke.tests_by_priority, regression.tests_by_priority),
        module_progress=tuple(combined_progress_rows([smoke, regression])),
    )


def report_payload(report: ReportMetrics, *, source: str = "") -> dict[str, Any]:
    contract = build_contract("sheet_metrics.report")
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "generatedAt": utc_now_iso(),
        "metrics": report.to_dict(),
        "run_summary": build_run_summary(
            command="report",
            sources={report.family: source},
            metrics={
                "total": report.total,
                "passRate": report.pass_rate,
                "totalTestCases": report.total_test_cases,
            },
            warnings=list(report.warnings),
        ),
    }


def dashboard_payload(
    dashboard: Dashboard,
    *,
    command: str = "dashboard",
    sources: dict[str, str] | None = None,
    module_progress: list[ModuleProgressRow] | None = None,
) -> dict[str, Any]:
    contract = build_contract("sheet_metrics.dashboard")
    progress = dashboard.module_progress if module_progress is None else module_progress
    warnings = [f"smoke: {item}" for item in dashboard.smoke.warnings] + [
        f"regression: {item}" for item in dashboard.regression.warnings
    ]
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "success": True,
        "generatedAt": utc_now_iso(),
        "smokeTests": dashboard.smoke.to_dict(),
        "regressionTests": dashboard.regression.to_dict(),
        "overall": dashboard.overall.to_dict(),
        "combined": {
            "modulesByKey": {key: module.to_dict() for key, module in dashboard.modules.items()},
            "testsByPriority": dict(dashboard.tests_by_priority),
        },
        "moduleProgress": [row.to_dict() for row in progress],
        "run_summary": build_run_summary(
            command=command,
            sources=sources or {},
            metrics=dashboard.overall.to_dict(),
            warnings=warnings,
        ),
    }
