"""Shared versioned contracts for deployable sheet-metrics outputs."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any

CONTRACT_VERSIONS = {
    "sheet_metrics.report": "1.0.0",
    "sheet_metrics.dashboard": "1.0.0",
}

OUTPUT_STAMP_ENV = "SHEET_METRICS_OUTPUT_STAMP"


def utc_now_iso() -> str:
    override = os.environ.get(OUTPUT_STAMP_ENV)
    if override:
        return override
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    version = CONTRACT_VERSIONS[name]
    return {"name": name, "version": version}


def build_run_summary(
    *,
    command: str,
    sources: dict[str, str],
    status: str = "ok",
    output_path: str | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "tool": "sheet-metrics",
        "command": command,
        "status": status,
        "generated_at": utc_now_iso(),
        "sources": dict(sources),
        "output_file": output_path,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "metrics": metrics or {},
    }
