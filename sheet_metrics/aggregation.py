from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from sheet_metrics.families import COUNTER_FIELDS, LABEL_STORY, SheetFamily
from sheet_metrics.models import (
    CaseEntry,
    DetailRow,
    ModuleAggregate,
    RecentTest,
    ReportMetrics,
    RowAccounting,
    frozen_mapping,
    percent,
)
from sheet_metrics.rows import ClassifiedRow, RowOutcome, SkippedRow
from sheet_metrics.status_taxonomy import DEFAULT_STATUS_LABEL, STATUS_BUCKETS


@dataclass
class ModuleBuilder:
    total_test_cases: int = 0
    manual_count: int = 0
    automated_count: int = 0
    row_count: int = 0
    entries: list[CaseEntry] = field(default_factory=list)

    def add(self, row: ClassifiedRow) -> None:
        self.row_count += 1
        self.manual_count += row.manual_count
        self.automated_count += row.automated_count
        self.total_test_cases += row.total_count
        if row.test_case_name:
            self.entries.append(
                CaseEntry(
                    name=row.test_case_name,
                    manual=row.manual_count,
                    automated=row.automated_count,
                    status=row.raw_status_text or DEFAULT_STATUS_LABEL,
                )
            )

    def build(self) -> ModuleAggregate:
        return ModuleAggregate(
            total_test_cases=self.total_test_cases,
            manual_count=self.manual_count,
            automated_count=self.automated_count,
            test_case_entries=tuple(self.entries),
            row_count=self.row_count,
        )


class MetricsAccumulator:
    """Running totals for one sheet; ``finish`` freezes them into a report."""

    def __init__(self, family: SheetFamily) -> None:
        self.family = family
        self.total = 0
        self.counters = Counter({name: 0 for name in COUNTER_FIELDS})
        self.total_manual = 0
        self.total_automated = 0
        self.total_test_cases = 0
        self.status_breakdown = Counter({bucket: 0 for bucket in STATUS_BUCKETS})
        self.modules: dict[str, ModuleBuilder] = {}
        self.tests_by_priority: Counter = Counter()
        self.recent_tests: list[RecentTest] = []
        self.detail_rows: list[DetailRow] = []
        self.data_rows = 0
        self.skipped_rows: Counter = Counter()

    def row_label(self, row: ClassifiedRow, module_key: str) -> str:
        if self.family.row_label == LABEL_STORY:
            return row.group_key or f"Test {self.data_rows}"
        return row.test_case_name or f"Feature: {module_key}"

    def add(self, outcome: RowOutcome) -> None:
        self.data_rows += 1
        if isinstance(outcome, SkippedRow):
            self.skipped_rows[outcome.reason] += 1
            return

        row = outcome
        self.total += 1
        self.total_manual += row.manual_count
        self.total_automated += row.automated_count
        self.total_test_cases += row.total_count
        self.counters[self.family.counter_for(row.status_kind)] += 1
        self.status_breakdown[row.status_bucket] += 1

        module_key = row.group_key or self.family.fallback_group_key
        self.modules.setdefault(module_key, ModuleBuilder()).add(row)

        if row.priority:
            self.tests_by_priority[row.priority] += 1

        label = self.row_label(row, module_key)
        status = row.raw_status_text or DEFAULT_STATUS_LABEL
        if self.family.row_label == LABEL_STORY or row.test_case_name:
            self.detail_rows.append(
                DetailRow(
                    module=module_key,
                    name=label,
                    manual=row.manual_count,
                    automated=row.automated_count,
                    priority=row.priority,
                    status=status,
                )
            )

        if len(self.recent_tests) < self.family.recent_limit:
            self.recent_tests.append(
                RecentTest(
                    name=label,
                    status=status,
                    module=module_key,
                    manual=row.manual_count,
                    automated=row.automated_count,
                    priority=row.priority,
                )
            )

    def finish(self, **extra) -> ReportMetrics:
        return ReportMetrics(
            family=self.family.name,
            total=self.total,
            passed=self.counters["passed"],
            failed=self.counters["failed"],
            skipped=self.counters["skipped"],
            total_manual=self.total_manual,
            total_automated=self.total_automated,
            total_test_cases=self.total_test_cases,
            status_breakdown=frozen_mapping(self.status_breakdown),
            modules_by_key=frozen_mapping(
                {key: builder.build() for key, builder in self.modules.items()}
            ),
            pass_rate=percent(self.counters["passed"], self.total),
            tests_by_priority=frozen_mapping(self.tests_by_priority),
            recent_tests=tuple(self.recent_tests),
            detail_rows=tuple(self.detail_rows),
            row_accounting=RowAccounting(
                data_rows=self.data_rows,
                counted_rows=self.total,
                skipped_rows=frozen_mapping(self.skipped_rows),
            ),
            **extra,
        )


def fold(outcomes: Iterable[RowOutcome], family: SheetFamily, **extra) -> ReportMetrics:
    """
    Fold row outcomes, in order, into the metrics for one sheet.

    Repeated test-case names are kept as separate entries. Keyword arguments
    are passed through to ``ReportMetrics`` (headers, warnings...).
    """
    accumulator = MetricsAccumulator(family)
    for outcome in outcomes:
        accumulator.add(outcome)
    return accumulator.finish(**extra)
