from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from sheet_metrics.families import REGRESSION, SMOKE

ENV_PREFIX = "SHEET_METRICS_"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    spreadsheet_id: str | None = None
    smoke_gid: str = SMOKE.default_gid
    regression_gid: str = REGRESSION.default_gid
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = DEFAULT_LOG_LEVEL
    warnings: tuple[str, ...] = field(default=(), compare=False)

    def gid_for(self, family_name: str) -> str:
        return {SMOKE.name: self.smoke_gid, REGRESSION.name: self.regression_gid}[family_name]

    def with_overrides(self, **overrides) -> "Settings":
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})


def _env(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    environ = os.environ if environ is None else environ
    warnings: list[str] = []

    timeout = DEFAULT_TIMEOUT_SECONDS
    raw_timeout = _env(environ, "TIMEOUT")
    if raw_timeout is not None:
        try:
            timeout = float(raw_timeout)
            if not math.isfinite(timeout) or timeout <= 0:
                raise ValueError(raw_timeout)
        except ValueError:
            timeout = DEFAULT_TIMEOUT_SECONDS
            warnings.append(
                f"Ignoring {ENV_PREFIX}TIMEOUT={raw_timeout!r}; using {DEFAULT_TIMEOUT_SECONDS:g}s"
            )

    log_level = (_env(environ, "LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        warnings.append(f"Ignoring {ENV_PREFIX}LOG_LEVEL={log_level!r}; using {DEFAULT_LOG_LEVEL}")
        log_level = DEFAULT_LOG_LEVEL

    return Settings(
        spreadsheet_id=_env(environ, "SPREADSHEET_ID"),
        smoke_gid=_env(environ, "SMOKE_GID") or SMOKE.default_gid,
        regression_gid=_env(environ, "REGRESSION_GID") or REGRESSION.default_gid,
        timeout=timeout,
        log_level=log_level,
        warnings=tuple(warnings),
    )
