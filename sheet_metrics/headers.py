from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from sheet_metrics.tokenizer import RawRow

KeywordRule = tuple[str, Callable[[str], bool]]

# Exported report tabs often carry title/banner rows of varying length above
# the real header, so the header is the first row that names a known column.
HEADER_KEYWORD_RULES: tuple[KeywordRule, ...] = (
    ("feature", lambda cell: "feature" in cell and "automation" not in cell),
    ("test case", lambda cell: "test" in cell and "case" in cell),
    ("story", lambda cell: "stor" in cell),
    ("priority", lambda cell: "prior" in cell),
    ("comment", lambda cell: "comment" in cell),
)

NO_HEADER = -1


@dataclass(frozen=True)
class HeaderLocation:
    header_index: int
    headers: RawRow
    data_rows: tuple[RawRow, ...]
    matched_keywords: tuple[str, ...] = ()
    strategy: str = "keyword"


def has_content(row: Sequence[str]) -> bool:
    return any(cell and cell.strip() for cell in row)


def matched_header_keywords(
    row: Sequence[str],
    keyword_rules: Sequence[KeywordRule] = HEADER_KEYWORD_RULES,
) -> tuple[str, ...]:
    lowered = [cell.strip().lower() for cell in row if cell and cell.strip()]
    return tuple(
        label
        for label, predicate in keyword_rules
        if any(predicate(cell) for cell in lowered)
    )


def locate(
    rows: Sequence[RawRow],
    keyword_rules: Sequence[KeywordRule] = HEADER_KEYWORD_RULES,
    explicit_header_row: int | None = None,
) -> HeaderLocation:
    """
    Find the header row of a tokenized sheet.

    The first row with content that matches a header keyword wins. Without a
    keyword match the first non-empty row is used. ``explicit_header_row`` is
    1-based and bypasses the heuristic entirely.
    """
    rows = tuple(tuple(row) for row in rows)

    if explicit_header_row is not None and rows:
        idx = max(0, min(len(rows) - 1, explicit_header_row - 1))
        return HeaderLocation(
            header_index=idx,
            headers=rows[idx],
            data_rows=rows[idx + 1 :],
            matched_keywords=matched_header_keywords(rows[idx], keyword_rules),
            strategy="explicit",
        )

    for idx, row in enumerate(rows):
        if not has_content(row):
            continue
        matched = matched_header_keywords(row, keyword_rules)
        if matched:
            return HeaderLocation(idx, row, rows[idx + 1 :], matched, "keyword")

    for idx, row in enumerate(rows):
        if has_content(row):
            return HeaderLocation(idx, row, rows[idx + 1 :], (), "first-non-empty")

    return HeaderLocation(NO_HEADER, (), rows, (), "none")
