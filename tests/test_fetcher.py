from __future__ import annotations

import unittest
from unittest import mock

import requests

from sheet_metrics.fetcher import (
    FetchError,
    export_url,
    fetch_csv_text,
    fetch_sources,
    normalize_sheet_url,
)


def fake_response(status_code=200, chunks=(b"Features,Test Cases\n", b"Login,TC1\n")):
    response = mock.Mock()
    response.status_code = status_code
    response.iter_content.return_value = iter(chunks)
    return response


class ExportUrlTests(unittest.TestCase):
    def test_export_url(self):
        self.assertEqual(
            export_url("abc123", "954974616"),
            "https://docs.google.com/spreadsheets/d/abc123/export?format=csv&gid=954974616",
        )

    def test_export_url_requires_id(self):
        with self.assertRaises(FetchError):
            export_url("  ", "1")

    def test_share_link_is_normalized(self):
        url = "https://docs.google.com/spreadsheets/d/abc123/edit#gid=1915752702"
        self.assertEqual(normalize_sheet_url(url), export_url("abc123", "1915752702"))

    def test_share_link_without_gid_uses_first_tab(self):
        url = "https://docs.google.com/spreadsheets/d/abc123/edit"
        self.assertTrue(normalize_sheet_url(url).endswith("gid=0"))

    def test_other_urls_pass_through(self):
        self.assertEqual(normalize_sheet_url(" https://example.com/a.csv "), "https://example.com/a.csv")


class FetchCsvTextTests(unittest.TestCase):
    def test_returns_decoded_text_and_follows_redirects(self):
        session = mock.Mock()
        session.get.return_value = fake_response()
        text = fetch_csv_text("https://example.com/a.csv", timeout=5, session=session)
        self.assertEqual(text, "Features,Test Cases\nLogin,TC1\n")
        session.get.assert_called_once_with(
            "https://example.com/a.csv", timeout=5, allow_redirects=True, stream=True
        )
        session.get.return_value.close.assert_called_once()

    def test_non_200_raises_with_status(self):
        session = mock.Mock()
        session.get.return_value = fake_response(status_code=403)
        with self.assertRaises(FetchError) as ctx:
            fetch_csv_text("https://example.com/a.csv", session=session)
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertIn("Anyone with the link", str(ctx.exception))

    def test_transport_error_becomes_fetch_error(self):
        session = mock.Mock()
        session.get.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(FetchError) as ctx:
            fetch_csv_text("https://example.com/a.csv", session=session)
        self.assertIsNone(ctx.exception.status_code)

    def test_oversized_export_is_rejected(self):
        session = mock.Mock()
        session.get.return_value = fake_response(chunks=[b"x" * 1024] * 10)
        with mock.patch("sheet_metrics.fetcher.MAX_EXPORT_BYTES", 4096):
            with self.assertRaises(FetchError):
                fetch_csv_text("https://example.com/a.csv", session=session)


class FetchSourcesTests(unittest.TestCase):
    def test_fetches_every_source(self):
        session = mock.Mock()
        session.get.side_effect = lambda url, **kwargs: fake_response(chunks=[url.encode("utf-8")])
        texts = fetch_sources({"smoke": "https://a", "regression": "https://b"}, timeout=1, session=session)
        self.assertEqual(texts, {"smoke": "https://a", "regression": "https://b"})

    def test_any_failure_propagates(self):
        session = mock.Mock()

        def get(url, **kwargs):
            if url == "https://b":
                return fake_response(status_code=500)
            return fake_response()

        session.get.side_effect = get
        with self.assertRaises(FetchError):
            fetch_sources({"smoke": "https://a", "regression": "https://b"}, session=session)

    def test_no_sources(self):
        self.assertEqual(fetch_sources({}), {})


if __name__ == "__main__":
    unittest.main()
