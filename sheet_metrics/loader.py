"""
loader.py: turns exported CSV bytes into text for the tokenizer.

Public API:
    decoded = decode_bytes(raw)
    decoded = read_csv_file("path/to/export.csv")   # "-" reads stdin

DecodedText fields:
    text        decoded text (BOM and null bytes removed)
    encoding    encoding reported by chardet ("unknown" when undetected)
    confidence  chardet confidence, 0.0 to 1.0
    warnings    warning strings
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

import chardet

BOM = "\ufeff"


@dataclass(frozen=True)
class DecodedText:
    text: str
    encoding: str
    confidence: float
    warnings: tuple[str, ...] = field(default=())


def _detect_encoding(raw: bytes) -> tuple[str, float]:
    result = chardet.detect(raw)
    detected = result.get("encoding") or "unknown"
    confidence = round(result.get("confidence") or 0.0, 2)
    return detected, confidence


def _decode_lines(raw: bytes, preferred_encoding: str) -> tuple[str, int]:
    """
    Decode raw bytes line-by-line.

    Strategy per line:
      1. Try UTF-8
      2. Try preferred_encoding (chardet result)
      3. Try latin-1
      4. CP1252 with replace (never crashes)

    Returns the text and the number of lines that needed a fallback.
    """
    decoded_lines: list[str] = []
    fallback_lines = 0
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        used = "cp1252"
        for enc in ("utf-8", preferred_encoding, "latin-1"):
            if not enc or enc == "unknown":
                continue
            try:
                decoded = raw_line.decode(enc)
                used = enc
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        if used != "utf-8":
            fallback_lines += 1
        decoded_lines.append(decoded.replace("\x00", ""))
    return "\n".join(decoded_lines), fallback_lines


def decode_bytes(raw: bytes) -> DecodedText:
    if not raw:
        return DecodedText(text="", encoding="utf-8", confidence=1.0)

    warnings: list[str] = []
    encoding, confidence = _detect_encoding(raw)
    text, fallback_lines = _decode_lines(raw, encoding)
    if fallback_lines:
        warnings.append(f"{fallback_lines} line(s) were not valid UTF-8 and were decoded as {encoding}")
    if b"\x00" in raw:
        warnings.append("Null bytes were removed from the export")
    if text.startswith(BOM):
        text = text[len(BOM):]
    return DecodedText(text=text, encoding=encoding, confidence=confidence, warnings=tuple(warnings))


def read_csv_file(path: str | Path) -> DecodedText:
    if str(path) == "-":
        return decode_bytes(sys.stdin.buffer.read())
    return decode_bytes(Path(path).read_bytes())
