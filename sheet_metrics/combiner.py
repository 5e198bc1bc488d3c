from __future__ import annotations

from collections.abc import Mapping

from sheet_metrics.models import ModuleAggregate, OverallSummary, ReportMetrics, percent


def combine(a: ReportMetrics, b: ReportMetrics) -> OverallSummary:
    total = a.total + b.total
    passed = a.passed + b.passed
    total_automated = a.total_automated + b.total_automated
    total_test_cases = a.total_test_cases + b.total_test_cases
    return OverallSummary(
        total=total,
        passed=passed,
        failed=a.failed + b.failed,
        skipped=a.skipped + b.skipped,
        total_manual=a.total_manual + b.total_manual,
        total_automated=total_automated,
        total_test_cases=total_test_cases,
        pass_rate=percent(passed, total),
        automation_rate=percent(total_automated, max(1, total_test_cases)),
    )


def merge_modules(
    a: Mapping[str, ModuleAggregate],
    b: Mapping[str, ModuleAggregate],
) -> dict[str, ModuleAggregate]:
    """Unified per-module view; keys found on one side only pass through as-is."""
    merged: dict[str, ModuleAggregate] = dict(a)
    for key, module in b.items():
        existing = merged.get(key)
        if existing is None:
            merged[key] = module
            continue
        merged[key] = ModuleAggregate(
            total_test_cases=existing.total_test_cases + module.total_test_cases,
            manual_count=existing.manual_count + module.manual_count,
            automated_count=existing.automated_count + module.automated_count,
            test_case_entries=existing.test_case_entries + module.test_case_entries,
            row_count=existing.row_count + module.row_count,
        )
    return merged


def merge_counts(a: Mapping[str, int], b: Mapping[str, int]) -> dict[str, int]:
    merged = dict(a)
    for key, count in b.items():
        merged[key] = merged.get(key, 0) + count
    return merged
