"""
Row interpretation.

``classify_row`` is a pure function of (row, header map, carried group key).
Feature and story names are written once and apply to the rows below them,
so every outcome, including a skipped one, reports the group key in effect
after the row; ``classify_rows`` threads that key through a sheet.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from sheet_metrics.columns import HeaderMap
from sheet_metrics.families import BannerRule, SheetFamily
from sheet_metrics.status_taxonomy import bucket_for, classify_status

SKIP_EMPTY = "EMPTY"
SKIP_BANNER = "BANNER"
SKIP_NO_SIGNAL = "NO_SIGNAL"

SKIP_REASONS = {
    SKIP_EMPTY: "Completely empty row",
    SKIP_BANNER: "Repeated header or banner row",
    SKIP_NO_SIGNAL: "No test case name and no counts",
}

LEADING_INT_RE = re.compile(r"^[+-]?\d+")
THOUSANDS_RE = re.compile(r"(?<=\d),(?=\d{3}\b)")


@dataclass(frozen=True)
class ClassifiedRow:
    group_key: str
    test_case_name: str
    manual_count: int
    automated_count: int
    status_bucket: str
    status_kind: str
    raw_status_text: str
    priority: str = ""
    comments: str = ""

    @property
    def total_count(self) -> int:
        return self.manual_count + self.automated_count


@dataclass(frozen=True)
class SkippedRow:
    reason: str
    group_key: str


RowOutcome = ClassifiedRow | SkippedRow


def parse_count(value: str) -> int:
    """Leading-integer parse; blanks, junk and negatives all count as 0."""
    text = THOUSANDS_RE.sub("", (value or "").strip())
    match = LEADING_INT_RE.match(text)
    if not match:
        return 0
    return max(0, int(match.group(0)))


def joined_row_text(row: Sequence[str]) -> str:
    return " ".join(cell or "" for cell in row).lower()


def is_banner_row(row: Sequence[str], banner_rules: Iterable[BannerRule]) -> bool:
    text = joined_row_text(row)
    return any(banner.matches(text) for banner in banner_rules)


def classify_row(
    row: Sequence[str],
    header_map: HeaderMap,
    carried_group_key: str = "",
    banner_rules: Sequence[BannerRule] = (),
) -> RowOutcome:
    if not row or all(not (cell or "").strip() for cell in row):
        return SkippedRow(SKIP_EMPTY, carried_group_key)

    if is_banner_row(row, banner_rules):
        return SkippedRow(SKIP_BANNER, carried_group_key)

    group_key = header_map.cell(row, "group_key") or carried_group_key

    test_case_name = header_map.cell(row, "test_case_name")
    automated = parse_count(header_map.cell(row, "automated_count"))
    if header_map.has("manual_count"):
        manual = parse_count(header_map.cell(row, "manual_count"))
    else:
        total = parse_count(header_map.cell(row, "total_count"))
        manual = max(0, total - automated)

    if not test_case_name and manual + automated == 0:
        return SkippedRow(SKIP_NO_SIGNAL, group_key)

    comments = header_map.cell(row, "comments")
    raw_status = header_map.cell(row, "status_indicator") or comments
    kind = classify_status(raw_status)

    return ClassifiedRow(
        group_key=group_key,
        test_case_name=test_case_name,
        manual_count=manual,
        automated_count=automated,
        status_bucket=bucket_for(kind),
        status_kind=kind,
        raw_status_text=raw_status,
        priority=header_map.cell(row, "priority"),
        comments=comments,
    )


def classify_rows(
    data_rows: Iterable[Sequence[str]],
    header_map: HeaderMap,
    family: SheetFamily,
) -> Iterator[RowOutcome]:
    group_key = ""
    for row in data_rows:
        outcome = classify_row(row, header_map, group_key, family.banner_rules)
        group_key = outcome.group_key
        yield outcome
