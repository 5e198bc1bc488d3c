#!/usr/bin/env python3
from __future__ import annotations

import sys
import tempfile
from pathlib import Path
from typing import Optional

import pandas as pd
import streamlit as st

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sheet_metrics.config import load_settings
from sheet_metrics.exporter import write_dashboard_workbook
from sheet_metrics.families import REGRESSION, SMOKE
from sheet_metrics.fetcher import FetchError, export_url, fetch_sources, normalize_sheet_url
from sheet_metrics.loader import decode_bytes
from sheet_metrics.pipeline import Dashboard, build_dashboard
from sheet_metrics.models import DetailRow, ReportMetrics
from sheet_metrics.progress import TEXT_FILTERS, ModuleProgressRow, filter_detail_rows, filter_module_rows

FILTER_LABELS = {
    "testType": "Test type",
    "name": "Module",
    "totalTCs": "Total TCs",
    "manual": "Manual",
    "automated": "Automated",
    "overallPercent": "Overall %",
    "effectivePercent": "Effective %",
    "status": "Status",
}
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def ensure_state() -> None:
    st.session_state.setdefault("dashboard", None)
    st.session_state.setdefault("load_error", None)


def default_source_urls() -> dict[str, str]:
    settings = load_settings()
    if not settings.spreadsheet_id:
        return {SMOKE.name: "", REGRESSION.name: ""}
    return {
        name: export_url(settings.spreadsheet_id, settings.gid_for(name))
        for name in (SMOKE.name, REGRESSION.name)
    }


def load_from_uploads(smoke_upload, regression_upload) -> Dashboard:
    smoke = decode_bytes(smoke_upload.getvalue())
    regression = decode_bytes(regression_upload.getvalue())
    return build_dashboard(smoke.text, regression.text)


def load_from_urls(smoke_url: str, regression_url: str) -> Dashboard:
    settings = load_settings()
    texts = fetch_sources(
        {SMOKE.name: normalize_sheet_url(smoke_url), REGRESSION.name: normalize_sheet_url(regression_url)},
        timeout=settings.timeout,
    )
    return build_dashboard(texts[SMOKE.name], texts[REGRESSION.name])


def module_frame(rows: list[ModuleProgressRow]) -> pd.DataFrame:
    records = [
        {
            "Test type": row.test_type,
            "Module": row.name,
            "Total TCs": row.total_tcs,
            "Manual": row.manual,
            "Automated": row.automated,
            "Overall %": row.overall_percent,
            "Effective %": row.effective_percent,
            "Status": row.status_text,
        }
        for row in rows
    ]
    return pd.DataFrame(records, columns=list(FILTER_LABELS.values()))


def detail_frame(rows: list[DetailRow], name_label: str) -> pd.DataFrame:
    records = [
        {
            "Module": row.module,
            name_label: row.name,
            "Manual": row.manual,
            "Automated": row.automated,
            "Total": row.total,
            "Automation %": row.automation_percent,
            "Priority": row.priority or "N/A",
            "Status": row.status,
        }
        for row in rows
    ]
    return pd.DataFrame(records)


def workbook_bytes(
    dashboard: Dashboard,
    rows: list[ModuleProgressRow],
    details: dict[str, list[DetailRow]],
) -> bytes:
    with tempfile.TemporaryDirectory(prefix="sheet-metrics-") as tmp:
        path = write_dashboard_workbook(
            dashboard, Path(tmp) / "dashboard.xlsx", module_rows=rows, detail_rows=details
        )
        return path.read_bytes()


def render_overview(dashboard: Dashboard) -> None:
    overall = dashboard.overall
    cols = st.columns(4)
    cols[0].metric("Total tests", overall.total)
    cols[1].metric("Passed", overall.passed)
    cols[2].metric("Failed", overall.failed)
    cols[3].metric("Pass rate", f"{overall.pass_rate}%")
    cols = st.columns(4)
    cols[0].metric("Test cases", overall.total_test_cases)
    cols[1].metric("Manual", overall.total_manual)
    cols[2].metric("Automated", overall.total_automated)
    cols[3].metric("Automation", f"{overall.automation_rate}%")


def render_family(title: str, report: ReportMetrics) -> None:
    st.markdown(f"**{title}**")
    cols = st.columns(4)
    cols[0].metric("Rows", report.total)
    cols[1].metric("Passed", report.passed)
    cols[2].metric("Skipped", report.skipped)
    cols[3].metric("Automation", f"{report.automation_rate}%")
    if report.warnings:
        st.warning(" | ".join(report.warnings))
    if report.tests_by_priority:
        st.bar_chart(pd.Series(dict(report.tests_by_priority), name="Tests"))
    if report.recent_tests:
        st.dataframe(
            pd.DataFrame([test.to_dict() for test in report.recent_tests]),
            width="stretch",
            hide_index=True,
        )


def render_details(report: ReportMetrics, name_label: str) -> list[DetailRow]:
    key = report.family
    cols = st.columns(3)
    search = cols[0].text_input("Search", key=f"{key}_search", placeholder=f"Module or {name_label.lower()}")
    statuses = sorted({row.status for row in report.detail_rows}, key=str.lower)
    status = cols[1].selectbox("Status", ["all"] + statuses, key=f"{key}_status")
    priorities = sorted({row.priority or "N/A" for row in report.detail_rows})
    priority = cols[2].selectbox("Priority", ["all"] + priorities, key=f"{key}_priority")

    rows = filter_detail_rows(report.detail_rows, search=search, status=status, priority=priority)
    if rows:
        st.dataframe(detail_frame(rows, name_label), width="stretch", hide_index=True)
    else:
        st.info("No results found" if report.detail_rows else "No data available")
    return rows


def render_module_filters() -> dict[str, str]:
    filters: dict[str, str] = {}
    columns = st.columns(len(FILTER_LABELS))
    for col, (key, label) in zip(columns, FILTER_LABELS.items()):
        hint = "text" if key in TEXT_FILTERS else ">N, <N or N"
        filters[key] = col.text_input(label, key=f"filter_{key}", placeholder=hint)
    return filters


def render_modules(dashboard: Dashboard, details: dict[str, list[DetailRow]]) -> None:
    st.subheader("Module progress")
    filters = render_module_filters()
    rows = filter_module_rows(dashboard.module_progress, filters)
    if not rows:
        st.info("No modules match the current filters." if any(filters.values()) else "No module data available")
        return
    st.dataframe(
        module_frame(rows),
        width="stretch",
        hide_index=True,
    )
    st.download_button(
        "Download workbook",
        data=workbook_bytes(dashboard, rows, details),
        file_name="sheet-metrics.xlsx",
        mime=XLSX_MIME,
        width="stretch",
    )


def render_dashboard(dashboard: Optional[Dashboard]) -> None:
    if dashboard is None:
        st.info("Upload the two CSV exports or load them from Google Sheets.")
        return
    render_overview(dashboard)
    left, right = st.columns(2)
    with left:
        render_family(SMOKE.label, dashboard.smoke)
    with right:
        render_family(REGRESSION.label, dashboard.regression)

    details: dict[str, list[DetailRow]] = {}
    smoke_tab, regression_tab = st.tabs([f"{SMOKE.label} cases", f"{REGRESSION.label} stories"])
    with smoke_tab:
        details[SMOKE.name] = render_details(dashboard.smoke, "Test case")
    with regression_tab:
        details[REGRESSION.name] = render_details(dashboard.regression, "Story")
    render_modules(dashboard, details)


def main() -> None:
    st.set_page_config(page_title="sheet-metrics", layout="wide", initial_sidebar_state="collapsed")
    ensure_state()

    st.title("sheet-metrics")
    st.caption("Smoke and regression tracking sheets summarised into one test dashboard.")

    defaults = default_source_urls()
    upload_tab, url_tab = st.tabs(["Upload CSV exports", "Google Sheets"])
    with upload_tab:
        smoke_upload = st.file_uploader(f"{SMOKE.label} CSV", type=["csv"], key="smoke_upload")
        regression_upload = st.file_uploader(f"{REGRESSION.label} CSV", type=["csv"], key="regression_upload")
        if st.button("Build dashboard", type="primary", disabled=not (smoke_upload and regression_upload)):
            st.session_state["dashboard"] = load_from_uploads(smoke_upload, regression_upload)
            st.session_state["load_error"] = None
    with url_tab:
        smoke_url = st.text_input(f"{SMOKE.label} sheet URL", value=defaults[SMOKE.name])
        regression_url = st.text_input(f"{REGRESSION.label} sheet URL", value=defaults[REGRESSION.name])
        st.caption("Sheets must be shared as \"Anyone with the link can view\".")
        if st.button("Fetch sheets", type="primary", disabled=not (smoke_url and regression_url)):
            try:
                with st.spinner("Fetching sheets..."):
                    st.session_state["dashboard"] = load_from_urls(smoke_url, regression_url)
                st.session_state["load_error"] = None
            except FetchError as exc:
                st.session_state["load_error"] = str(exc)

    if st.session_state["load_error"]:
        st.error(st.session_state["load_error"])
    render_dashboard(st.session_state["dashboard"])


if __name__ == "__main__":
    main()
