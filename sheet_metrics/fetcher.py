"""
Fetch layer: downloads the CSV export of a Google Sheets tab.

This sits outside the metrics pipeline. It follows redirects, turns transport
errors and non-200 responses into ``FetchError`` and hands fully downloaded,
decoded text to the caller. Several tabs can be fetched in parallel; the
caller gets every text or an error, never a partial result.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import parse_qs, urlparse

import requests

from sheet_metrics.loader import decode_bytes

logger = logging.getLogger(__name__)

EXPORT_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{spreadsheet_id}/export?format=csv&gid={gid}"
MAX_EXPORT_MB = 25
MAX_EXPORT_BYTES = MAX_EXPORT_MB * 1024 * 1024


class FetchError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def export_url(spreadsheet_id: str, gid: str) -> str:
    if not spreadsheet_id or not spreadsheet_id.strip():
        raise FetchError("A spreadsheet id is required to build an export URL")
    return EXPORT_URL_TEMPLATE.format(spreadsheet_id=spreadsheet_id.strip(), gid=str(gid).strip())


def normalize_sheet_url(raw_url: str) -> str:
    """Turn a shared Google Sheets link into its CSV export URL; other URLs pass through."""
    parsed = urlparse(raw_url.strip())
    if parsed.netloc.lower() == "docs.google.com":
        match = re.search(r"/spreadsheets/d/([^/]+)", parsed.path)
        if match and "/export" not in parsed.path:
            query = parse_qs(parsed.query)
            gid = query.get("gid", [None])[0]
            if gid is None:
                fragment = parse_qs(parsed.fragment)
                gid = fragment.get("gid", ["0"])[0]
            return export_url(match.group(1), gid)
    return raw_url.strip()


def fetch_csv_text(
    url: str,
    timeout: float = 60.0,
    session: requests.Session | None = None,
) -> str:
    client = session or requests
    logger.info("Fetching sheet export %s", url)
    try:
        response = client.get(url, timeout=timeout, allow_redirects=True, stream=True)
    except requests.RequestException as exc:
        raise FetchError(f"Could not reach {url}: {exc}") from exc

    try:
        if response.status_code != 200:
            raise FetchError(
                f"Failed to fetch sheet. Status: {response.status_code}. Make sure the sheet is "
                'published or shared as "Anyone with the link can view"',
                status_code=response.status_code,
            )
        chunks: list[bytes] = []
        downloaded = 0
        try:
            for chunk in response.iter_content(chunk_size=1024 * 1024):
                if not chunk:
                    continue
                downloaded += len(chunk)
                if downloaded > MAX_EXPORT_BYTES:
                    raise FetchError(f"Sheet export is larger than {MAX_EXPORT_MB} MB")
                chunks.append(chunk)
        except requests.RequestException as exc:
            raise FetchError(f"Download from {url} was interrupted: {exc}") from exc
    finally:
        response.close()

    decoded = decode_bytes(b"".join(chunks))
    for warning in decoded.warnings:
        logger.warning("%s: %s", url, warning)
    logger.info("Fetched %d bytes from %s", downloaded, url)
    return decoded.text


def fetch_sources(
    sources: Mapping[str, str],
    timeout: float = 60.0,
    session: requests.Session | None = None,
    max_workers: int = 2,
) -> dict[str, str]:
    """Fetch ``{name: url}`` in parallel and wait for all of them."""
    if not sources:
        return {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(sources)))) as pool:
        futures = {
            name: pool.submit(fetch_csv_text, url, timeout, session)
            for name, url in sources.items()
        }
        return {name: future.result() for name, future in futures.items()}
