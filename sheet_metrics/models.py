"""
Immutable metrics model.

Attribute names are Python-style; ``to_dict`` emits the camelCase field names
the dashboard binds to (``totalManual``, ``modulesByKey``, ``passRate``...).
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from sheet_metrics.status_taxonomy import STATUS_BUCKETS


def percent(numerator: int, denominator: int) -> int:
    """Whole percentage rounded half up; a zero denominator yields 0."""
    if not denominator:
        return 0
    return int(math.floor(100 * numerator / denominator + 0.5))


def frozen_mapping(values: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class CaseEntry:
    name: str
    manual: int
    automated: int
    status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "manual": self.manual,
            "automated": self.automated,
            "status": self.status,
        }


@dataclass(frozen=True)
class ModuleAggregate:
    total_test_cases: int = 0
    manual_count: int = 0
    automated_count: int = 0
    test_case_entries: tuple[CaseEntry, ...] = ()
    row_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTestCases": self.total_test_cases,
            "manualCount": self.manual_count,
            "automatedCount": self.automated_count,
            "testCaseEntries": [entry.to_dict() for entry in self.test_case_entries],
            "rowCount": self.row_count,
            # aliases the module table has always read
            "total": self.total_test_cases,
            "manual": self.manual_count,
            "automated": self.automated_count,
        }


@dataclass(frozen=True)
class RecentTest:
    name: str
    status: str
    module: str
    manual: int
    automated: int
    priority: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status,
            "module": self.module,
            "manual": self.manual,
            "automated": self.automated,
            "priority": self.priority or "N/A",
        }


@dataclass(frozen=True)
class DetailRow:
    """One line of a family's detail table: a named smoke test case or a regression story."""

    module: str
    name: str
    manual: int
    automated: int
    priority: str
    status: str

    @property
    def total(self) -> int:
        return self.manual + self.automated

    @property
    def automation_percent(self) -> int:
        return percent(self.automated, self.total)

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module,
            "name": self.name,
            "manual": self.manual,
            "automated": self.automated,
            "total": self.total,
            "automationPercent": self.automation_percent,
            "priority": self.priority or "N/A",
            "status": self.status,
        }


@dataclass(frozen=True)
class RowAccounting:
    data_rows: int = 0
    counted_rows: int = 0
    skipped_rows: Mapping[str, int] = field(default_factory=frozen_mapping)

    def to_dict(self) -> dict[str, Any]:
        return {
            "dataRows": self.data_rows,
            "countedRows": self.counted_rows,
            "skippedRows": dict(self.skipped_rows),
        }


def empty_status_breakdown() -> Mapping[str, int]:
    return frozen_mapping({bucket: 0 for bucket in STATUS_BUCKETS})


@dataclass(frozen=True)
class ReportMetrics:
    family: str
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    total_manual: int = 0
    total_automated: int = 0
    total_test_cases: int = 0
    status_breakdown: Mapping[str, int] = field(default_factory=empty_status_breakdown)
    modules_by_key: Mapping[str, ModuleAggregate] = field(default_factory=frozen_mapping)
    pass_rate: int = 0
    tests_by_priority: Mapping[str, int] = field(default_factory=frozen_mapping)
    recent_tests: tuple[RecentTest, ...] = ()
    detail_rows: tuple[DetailRow, ...] = ()
    row_accounting: RowAccounting = field(default_factory=RowAccounting)
    header_index: int = -1
    headers: tuple[str, ...] = ()
    header_map: Mapping[str, int] = field(default_factory=frozen_mapping)
    warnings: tuple[str, ...] = ()

    @property
    def automation_rate(self) -> int:
        return percent(self.total_automated, self.total_test_cases)

    @property
    def tests_by_module(self) -> dict[str, int]:
        return {key: module.row_count for key, module in self.modules_by_key.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "family": self.family,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "passRate": self.pass_rate,
            "totalManual": self.total_manual,
            "totalAutomated": self.total_automated,
            "totalTestCases": self.total_test_cases,
            "automationRate": self.automation_rate,
            "statusBreakdown": dict(self.status_breakdown),
            "modulesByKey": {key: module.to_dict() for key, module in self.modules_by_key.items()},
            "testsByModule": self.tests_by_module,
            "testsByPriority": dict(self.tests_by_priority),
            "recentTests": [item.to_dict() for item in self.recent_tests],
            "detailRows": [row.to_dict() for row in self.detail_rows],
            "rowAccounting": self.row_accounting.to_dict(),
            "headerIndex": self.header_index,
            "headers": list(self.headers),
            "headerMap": dict(self.header_map),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class OverallSummary:
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    total_manual: int = 0
    total_automated: int = 0
    total_test_cases: int = 0
    pass_rate: int = 0
    automation_rate: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "totalManual": self.total_manual,
            "totalAutomated": self.total_automated,
            "totalTestCases": self.total_test_cases,
            "passRate": self.pass_rate,
            "automationRate": self.automation_rate,
        }
