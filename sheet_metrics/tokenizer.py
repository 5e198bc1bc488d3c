"""
Quote-aware CSV tokenizer for spreadsheet exports.

Spreadsheet CSV exports quote any cell that contains a comma, a quote, or a
line break. The scanner below walks the text one character at a time and
toggles an "inside quotes" flag, so quoted commas and line breaks stay inside
their field. It never raises: an unterminated quote simply swallows the rest
of the input into the current field.
"""

from __future__ import annotations

RawRow = tuple[str, ...]

QUOTE = '"'
DELIMITER = ","


def _close_field(buffer: list[str]) -> str:
    # Toggle quotes never reach the buffer; only escaped ("") quotes do.
    return "".join(buffer).strip()


def tokenize(text: str) -> list[RawRow]:
    if not text or not text.strip():
        return []

    rows: list[RawRow] = []
    fields: list[str] = []
    buffer: list[str] = []
    in_quotes = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        if char == QUOTE:
            if in_quotes and i + 1 < length and text[i + 1] == QUOTE:
                buffer.append(QUOTE)
                i += 2
                continue
            in_quotes = not in_quotes
        elif in_quotes:
            buffer.append(char)
        elif char == DELIMITER:
            fields.append(_close_field(buffer))
            buffer = []
        elif char == "\n":
            fields.append(_close_field(buffer))
            rows.append(tuple(fields))
            fields = []
            buffer = []
        elif char == "\r" and (i + 1 == length or text[i + 1] == "\n"):
            pass
        else:
            buffer.append(char)
        i += 1

    if buffer or fields:
        fields.append(_close_field(buffer))
        rows.append(tuple(fields))

    while rows and rows[-1] == ("",):
        rows.pop()
    return rows


def join_row(row: RawRow) -> str:
    """Render a row back to CSV, quoting only the fields that need it."""
    cells = []
    for value in row:
        if any(ch in value for ch in (DELIMITER, QUOTE, "\n", "\r")):
            cells.append(QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE)
        else:
            cells.append(value)
    return DELIMITER.join(cells)
