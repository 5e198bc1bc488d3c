from __future__ import annotations

import unittest

from sheet_metrics.headers import NO_HEADER, locate, matched_header_keywords
from sheet_metrics.tokenizer import tokenize


class HeaderLocatorTests(unittest.TestCase):
    def test_skips_banner_rows_above_the_header(self):
        rows = tokenize(
            "Smoke Test Automation Report,,\n"
            "Release 4.2,,\n"
            "Features,Test Cases,Manual TCs\n"
            "Login,Valid credentials,1\n"
        )
        location = locate(rows)
        self.assertEqual(location.header_index, 2)
        self.assertEqual(location.headers, ("Features", "Test Cases", "Manual TCs"))
        self.assertEqual(location.data_rows, (("Login", "Valid credentials", "1"),))
        self.assertEqual(location.strategy, "keyword")
        self.assertIn("feature", location.matched_keywords)

    def test_feature_automation_banner_is_not_a_header(self):
        rows = [("Feature Automation Summary", ""), ("Stories", "Total Cases")]
        self.assertEqual(locate(rows).header_index, 1)

    def test_falls_back_to_first_non_empty_row(self):
        rows = [("", ""), ("Name", "Count"), ("a", "1")]
        location = locate(rows)
        self.assertEqual(location.header_index, 1)
        self.assertEqual(location.strategy, "first-non-empty")
        self.assertEqual(location.data_rows, (("a", "1"),))

    def test_no_rows_has_no_header(self):
        location = locate([])
        self.assertEqual(location.header_index, NO_HEADER)
        self.assertEqual(location.headers, ())
        self.assertEqual(location.data_rows, ())
        self.assertEqual(location.strategy, "none")

    def test_blank_rows_only_has_no_header(self):
        location = locate([("",), ("", "")])
        self.assertEqual(location.header_index, NO_HEADER)
        self.assertEqual(location.strategy, "none")

    def test_explicit_header_row_is_one_based(self):
        rows = [("Features", "x"), ("Title", "Other"), ("a", "b")]
        location = locate(rows, explicit_header_row=2)
        self.assertEqual(location.header_index, 1)
        self.assertEqual(location.headers, ("Title", "Other"))
        self.assertEqual(location.strategy, "explicit")

    def test_explicit_header_row_is_clamped(self):
        rows = [("a",), ("b",)]
        self.assertEqual(locate(rows, explicit_header_row=99).header_index, 1)
        self.assertEqual(locate(rows, explicit_header_row=0).header_index, 0)

    def test_matched_keywords_are_case_insensitive(self):
        self.assertEqual(
            matched_header_keywords(["USER STORY", "Priority", "Comments"]),
            ("story", "priority", "comment"),
        )


if __name__ == "__main__":
    unittest.main()
