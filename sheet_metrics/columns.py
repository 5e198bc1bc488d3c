"""
Semantic column mapping.

Sheets have no fixed schema, so each semantic role is resolved by keyword
predicates over the header text. The predicates live in per-family tables
(see ``sheet_metrics.families``); this module only holds the mechanism.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, fields
from typing import Any

ABSENT = -1

ROLES = (
    "group_key",
    "test_case_name",
    "manual_count",
    "automated_count",
    "total_count",
    "status_indicator",
    "priority",
    "comments",
)

HeaderPredicate = Callable[[str], bool]


@dataclass(frozen=True)
class RoleRule:
    role: str
    predicates: tuple[HeaderPredicate, ...]

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown column role: {self.role}")


@dataclass(frozen=True)
class HeaderMap:
    group_key: int = ABSENT
    test_case_name: int = ABSENT
    manual_count: int = ABSENT
    automated_count: int = ABSENT
    total_count: int = ABSENT
    status_indicator: int = ABSENT
    priority: int = ABSENT
    comments: int = ABSENT

    def index(self, role: str) -> int:
        return getattr(self, role)

    def has(self, role: str) -> bool:
        return self.index(role) != ABSENT

    def cell(self, row: Sequence[str], role: str) -> str:
        idx = self.index(role)
        if idx == ABSENT or idx >= len(row):
            return ""
        return (row[idx] or "").strip()

    def as_dict(self) -> dict[str, int]:
        return {field.name: getattr(self, field.name) for field in fields(self)}


# ── Predicate builders ─────────────────────────────────────────────────────────

def contains_all(*terms: str) -> HeaderPredicate:
    return lambda header: all(term in header for term in terms)


def contains_any(*terms: str) -> HeaderPredicate:
    return lambda header: any(term in header for term in terms)


def equals(*values: str) -> HeaderPredicate:
    return lambda header: header in values


def excluding(predicate: HeaderPredicate, *terms: str) -> HeaderPredicate:
    return lambda header: predicate(header) and not any(term in header for term in terms)


def rule(role: str, *predicates: HeaderPredicate) -> RoleRule:
    return RoleRule(role, tuple(predicates))


def normalise_header(value: str) -> str:
    return " ".join((value or "").strip().lower().split())


def map_columns(headers: Sequence[str], role_rules: Sequence[RoleRule]) -> HeaderMap:
    """
    Bind each role to at most one column, rules in table order.

    A role's predicates are tried in priority order and each one scans every
    unclaimed column before the next predicate is tried, so an exact header
    ("Manual TCs") wins over an earlier column that only loosely matches.
    A claimed column is never bound to a later role.
    """
    normalised = [normalise_header(header) for header in headers]
    claimed: set[int] = set()
    bound: dict[str, int] = {}

    for role_rule in role_rules:
        if role_rule.role in bound:
            continue
        for predicate in role_rule.predicates:
            match = next(
                (
                    idx
                    for idx, header in enumerate(normalised)
                    if header and idx not in claimed and predicate(header)
                ),
                ABSENT,
            )
            if match != ABSENT:
                bound[role_rule.role] = match
                claimed.add(match)
                break

    return HeaderMap(**bound)


def describe_mapping(
    headers: Sequence[str],
    header_map: HeaderMap,
    role_rules: Sequence[RoleRule],
) -> dict[str, Any]:
    expected = [role_rule.role for role_rule in role_rules]
    bound = {
        role: {"column_index": header_map.index(role), "header": headers[header_map.index(role)]}
        for role in expected
        if header_map.has(role) and header_map.index(role) < len(headers)
    }
    missing = [role for role in expected if role not in bound]
    return {"bound": bound, "missing": missing}
