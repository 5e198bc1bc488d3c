from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from sheet_metrics import __version__ as TOOL_VERSION
from sheet_metrics.config import Settings, load_settings
from sheet_metrics.exporter import write_dashboard_workbook
from sheet_metrics.families import FAMILIES, REGRESSION, SMOKE, get_family
from sheet_metrics.fetcher import FetchError, export_url, fetch_sources, normalize_sheet_url
from sheet_metrics.loader import read_csv_file
from sheet_metrics.pipeline import Dashboard, build_dashboard, dashboard_payload, ingest_report, report_payload
from sheet_metrics.progress import FILTER_COLUMNS, ModuleProgressRow, filter_module_rows
from sheet_metrics.render import render_dashboard_text, render_report_text

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_INPUT_FAILED = 2
EXIT_FETCH_FAILED = 3

logger = logging.getLogger(__name__)


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class SheetMetricsArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def write_text(path: Path, payload: str) -> None:
    ensure_parent(path)
    path.write_text(payload, encoding="utf-8")


def write_json(path: Path, payload: Any) -> None:
    write_text(path, json_dumps(payload))


def configure_logging(args: argparse.Namespace, settings: Settings) -> None:
    if getattr(args, "verbose", False):
        level = logging.INFO
    elif getattr(args, "quiet", False):
        level = logging.ERROR
    else:
        level = logging.getLevelName(settings.log_level)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, FetchError):
        return EXIT_FETCH_FAILED
    if isinstance(exc, FileNotFoundError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, (OSError, UnicodeDecodeError)):
        return EXIT_INPUT_FAILED
    return EXIT_COMMAND_ERROR


def parse_filters(raw_filters: list[str] | None) -> dict[str, str]:
    filters: dict[str, str] = {}
    for raw in raw_filters or []:
        column, sep, value = raw.partition("=")
        column = column.strip()
        if not sep or not column:
            raise CliError(f"Filters must look like column=value, got: {raw!r}", EXIT_COMMAND_ERROR)
        if column not in FILTER_COLUMNS:
            raise CliError(
                f"Unknown filter column: {column}. Supported: {', '.join(FILTER_COLUMNS)}",
                EXIT_COMMAND_ERROR,
            )
        filters[column] = value
    return filters


def load_input(path_arg: str) -> str:
    if path_arg != "-" and not Path(path_arg).exists():
        raise CliError(f"File not found: {path_arg}", EXIT_COMMAND_ERROR)
    decoded = read_csv_file(path_arg)
    for warning in decoded.warnings:
        logger.warning("%s: %s", path_arg, warning)
    return decoded.text


def add_common_output_flags(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    subparser.add_argument("-o", "--out", dest="out", help="Write the JSON payload to this path")
    subparser.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    subparser.add_argument("-v", "--verbose", action="store_true", help="More human logs")


def build_parser() -> argparse.ArgumentParser:
    parser = SheetMetricsArgumentParser(
        prog="sheet-metrics",
        description="Smoke and regression test-tracking sheets turned into dashboard metrics.",
    )
    parser.add_argument("--version", action="version", version=TOOL_VERSION)
    subparsers = parser.add_subparsers(dest="command", required=True)

    report = subparsers.add_parser("report", help="Summarise one exported sheet.")
    report.add_argument("input", help="CSV export path (- for stdin)")
    report.add_argument("--family", choices=sorted(FAMILIES), required=True, help="Sheet family")
    report.add_argument("--header-row", type=int, help="1-based header row; skips header detection")
    add_common_output_flags(report)

    dashboard = subparsers.add_parser("dashboard", help="Combine a smoke and a regression export.")
    dashboard.add_argument("--smoke", required=True, help="Smoke sheet CSV export path")
    dashboard.add_argument("--regression", required=True, help="Regression sheet CSV export path")
    dashboard.add_argument("--smoke-header-row", type=int, help="1-based header row of the smoke sheet")
    dashboard.add_argument("--regression-header-row", type=int, help="1-based header row of the regression sheet")
    dashboard.add_argument("--xlsx", help="Also write an .xlsx workbook to this path")
    dashboard.add_argument("--filter", action="append", dest="filters", metavar="COLUMN=VALUE",
                           help="Filter the module table (repeatable)")
    add_common_output_flags(dashboard)

    fetch = subparsers.add_parser("fetch", help="Download both sheets from Google Sheets and combine them.")
    fetch.add_argument("--spreadsheet-id", help="Spreadsheet id (defaults to SHEET_METRICS_SPREADSHEET_ID)")
    fetch.add_argument("--smoke-gid", help="Tab id of the smoke sheet")
    fetch.add_argument("--regression-gid", help="Tab id of the regression sheet")
    fetch.add_argument("--smoke-url", help="Explicit smoke sheet URL")
    fetch.add_argument("--regression-url", help="Explicit regression sheet URL")
    fetch.add_argument("--timeout", type=float, help="Request timeout in seconds")
    fetch.add_argument("--xlsx", help="Also write an .xlsx workbook to this path")
    fetch.add_argument("--filter", action="append", dest="filters", metavar="COLUMN=VALUE",
                       help="Filter the module table (repeatable)")
    add_common_output_flags(fetch)
    return parser


def maybe_emit_json_stdout(payload: Any, enabled: bool) -> None:
    if enabled:
        print(json_dumps(payload))


def run_report(args: argparse.Namespace) -> int:
    family = get_family(args.family)
    text = load_input(args.input)
    report = ingest_report(text, family, explicit_header_row=args.header_row)
    payload = report_payload(report, source=args.input)
    if args.out:
        write_json(Path(args.out), payload)
    if args.json:
        maybe_emit_json_stdout(payload, True)
    else:
        emit_human(render_report_text(report), quiet=args.quiet)
        if args.out:
            emit_human(f"Report written: {args.out}", quiet=args.quiet)
    return EXIT_SUCCESS


def emit_dashboard(
    args: argparse.Namespace,
    dashboard: Dashboard,
    *,
    command: str,
    sources: dict[str, str],
) -> int:
    filters = parse_filters(args.filters)
    module_rows: list[ModuleProgressRow] = filter_module_rows(dashboard.module_progress, filters)
    payload = dashboard_payload(dashboard, command=command, sources=sources, module_progress=module_rows)
    if args.out:
        write_json(Path(args.out), payload)
    if args.xlsx:
        write_dashboard_workbook(dashboard, Path(args.xlsx), module_rows=module_rows)
    if args.json:
        maybe_emit_json_stdout(payload, True)
    else:
        emit_human(render_dashboard_text(dashboard, module_rows), quiet=args.quiet)
        if args.out:
            emit_human(f"Dashboard written: {args.out}", quiet=args.quiet)
        if args.xlsx:
            emit_human(f"Workbook written: {args.xlsx}", quiet=args.quiet)
    return EXIT_SUCCESS


def run_dashboard(args: argparse.Namespace) -> int:
    smoke_text = load_input(args.smoke)
    regression_text = load_input(args.regression)
    dashboard = build_dashboard(
        smoke_text,
        regression_text,
        smoke_header_row=args.smoke_header_row,
        regression_header_row=args.regression_header_row,
    )
    sources = {SMOKE.name: args.smoke, REGRESSION.name: args.regression}
    return emit_dashboard(args, dashboard, command="dashboard", sources=sources)


def resolve_fetch_sources(args: argparse.Namespace, settings: Settings) -> dict[str, str]:
    settings = settings.with_overrides(
        spreadsheet_id=args.spreadsheet_id,
        smoke_gid=args.smoke_gid,
        regression_gid=args.regression_gid,
    )
    explicit = {SMOKE.name: args.smoke_url, REGRESSION.name: args.regression_url}
    sources: dict[str, str] = {}
    for name, url in explicit.items():
        if url:
            sources[name] = normalize_sheet_url(url)
        elif settings.spreadsheet_id:
            sources[name] = export_url(settings.spreadsheet_id, settings.gid_for(name))
        else:
            raise CliError(
                f"No source for the {name} sheet. Pass --spreadsheet-id, --{name}-url, "
                "or set SHEET_METRICS_SPREADSHEET_ID.",
                EXIT_COMMAND_ERROR,
            )
    return sources


def run_fetch(args: argparse.Namespace, settings: Settings) -> int:
    sources = resolve_fetch_sources(args, settings)
    timeout = args.timeout if args.timeout and args.timeout > 0 else settings.timeout
    texts = fetch_sources(sources, timeout=timeout)
    dashboard = build_dashboard(texts[SMOKE.name], texts[REGRESSION.name])
    return emit_dashboard(args, dashboard, command="fetch", sources=sources)


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        settings = load_settings()
        configure_logging(args, settings)
        for warning in settings.warnings:
            emit_human(f"Warning: {warning}", quiet=args.quiet)

        if args.command == "report":
            return run_report(args)
        if args.command == "dashboard":
            return run_dashboard(args)
        if args.command == "fetch":
            return run_fetch(args, settings)
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


if __name__ == "__main__":
    raise SystemExit(main())
