"""
Sheet family configuration tables.

A sheet family bundles everything that differs between the smoke and the
regression tabs: which header predicates bind which role, which repeated
banner rows to drop, and which counter a status kind increments. New sheet
layouts are supported by adding rows to these tables, not by branching code.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from sheet_metrics.columns import RoleRule, contains_all, contains_any, equals, rule
from sheet_metrics.status_taxonomy import (
    KIND_DONE,
    KIND_FAILED,
    KIND_IN_PROGRESS,
    KIND_UNRECOGNIZED,
    KIND_YET_TO_START,
)

COUNTER_FIELDS = ("passed", "failed", "skipped")

# How a counted row is named in recent tests and detail tables.
# "test_case": the test case name, else "Feature: <module>"; only named rows get a detail line.
# "story": the story, else "Test <data row number>"; every counted row gets a detail line.
LABEL_TEST_CASE = "test_case"
LABEL_STORY = "story"
ROW_LABELS = (LABEL_TEST_CASE, LABEL_STORY)


@dataclass(frozen=True)
class BannerRule:
    """Matches joined, lower-cased row text; every clause must hold."""

    all_of: tuple[str, ...] = ()
    any_of: tuple[str, ...] = ()
    none_of: tuple[str, ...] = ()

    def matches(self, row_text: str) -> bool:
        if not all(term in row_text for term in self.all_of):
            return False
        if self.any_of and not any(term in row_text for term in self.any_of):
            return False
        return not any(term in row_text for term in self.none_of)


@dataclass(frozen=True)
class SheetFamily:
    name: str
    label: str
    role_rules: tuple[RoleRule, ...]
    banner_rules: tuple[BannerRule, ...]
    counter_by_kind: Mapping[str, str]
    recent_limit: int
    default_gid: str
    row_label: str = LABEL_TEST_CASE
    fallback_group_key: str = "Other"

    def counter_for(self, kind: str) -> str:
        return self.counter_by_kind[kind]


SMOKE = SheetFamily(
    name="smoke",
    label="Smoke Test",
    role_rules=(
        rule("group_key", contains_all("feature")),
        rule(
            "manual_count",
            equals("manual tcs", "manual tc"),
            contains_all("manual", "tc"),
            contains_all("manual", "case"),
        ),
        rule(
            "automated_count",
            equals("automated tcs", "automated tc"),
            contains_all("automated", "tc"),
            contains_all("automated", "case"),
        ),
        rule("test_case_name", contains_all("test", "case")),
        rule("status_indicator", contains_any("automation", "%")),
        rule("priority", contains_all("prior")),
        rule("comments", contains_all("comment")),
    ),
    banner_rules=(
        BannerRule(all_of=("smoke test",)),
        BannerRule(all_of=("automation status",)),
        BannerRule(all_of=("features", "test cases")),
    ),
    # Smoke: yet-to-start counts as "failed", in-progress as "skipped".
    counter_by_kind={
        KIND_DONE: "passed",
        KIND_IN_PROGRESS: "skipped",
        KIND_YET_TO_START: "failed",
        KIND_FAILED: "failed",
        KIND_UNRECOGNIZED: "skipped",
    },
    recent_limit=15,
    default_gid="954974616",
    row_label=LABEL_TEST_CASE,
)

REGRESSION = SheetFamily(
    name="regression",
    label="Regression Test",
    role_rules=(
        rule("group_key", contains_all("stor")),
        rule("total_count", contains_all("total", "case")),
        rule("automated_count", contains_all("automated", "case")),
        rule("manual_count", contains_all("manual", "case")),
        rule("test_case_name", contains_all("test", "case")),
        rule("status_indicator", contains_all("status")),
        rule("priority", contains_all("prior")),
        rule("comments", contains_all("comment")),
    ),
    banner_rules=(
        BannerRule(all_of=("stories", "total cases")),
        BannerRule(all_of=("total use cases",)),
        BannerRule(all_of=("total case", "automated case")),
        BannerRule(all_of=("total",), any_of=("use cases", "case"), none_of=("stories",)),
    ),
    # Regression: only broken stories count as "failed"; not-started is "skipped".
    counter_by_kind={
        KIND_DONE: "passed",
        KIND_IN_PROGRESS: "skipped",
        KIND_YET_TO_START: "skipped",
        KIND_FAILED: "failed",
        KIND_UNRECOGNIZED: "skipped",
    },
    recent_limit=10,
    default_gid="1915752702",
    row_label=LABEL_STORY,
)

FAMILIES = {family.name: family for family in (SMOKE, REGRESSION)}


def get_family(name: str) -> SheetFamily:
    try:
        return FAMILIES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown sheet family '{name}'. Supported: {', '.join(sorted(FAMILIES))}"
        ) from None
