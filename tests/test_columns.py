from __future__ import annotations

import unittest

from sheet_metrics.columns import (
    ABSENT,
    HeaderMap,
    RoleRule,
    contains_all,
    describe_mapping,
    equals,
    excluding,
    map_columns,
    normalise_header,
    rule,
)
from sheet_metrics.families import REGRESSION, SMOKE


class ColumnMapperTests(unittest.TestCase):
    def test_smoke_headers_bind_every_role(self):
        headers = ["Features", "Test Cases", "Manual TCs", "Automated TCs", "Automation Status", "Priority", "Comments"]
        header_map = map_columns(headers, SMOKE.role_rules)
        self.assertEqual(header_map.group_key, 0)
        self.assertEqual(header_map.test_case_name, 1)
        self.assertEqual(header_map.manual_count, 2)
        self.assertEqual(header_map.automated_count, 3)
        self.assertEqual(header_map.status_indicator, 4)
        self.assertEqual(header_map.priority, 5)
        self.assertEqual(header_map.comments, 6)
        self.assertEqual(header_map.total_count, ABSENT)

    def test_percent_column_is_a_smoke_status_indicator(self):
        header_map = map_columns(["Feature", "Done %"], SMOKE.role_rules)
        self.assertEqual(header_map.status_indicator, 1)

    def test_regression_headers_use_total_and_automated_cases(self):
        headers = ["Stories", "Total Cases", "Automated Cases", "Status", "Priority"]
        header_map = map_columns(headers, REGRESSION.role_rules)
        self.assertEqual(header_map.group_key, 0)
        self.assertEqual(header_map.total_count, 1)
        self.assertEqual(header_map.automated_count, 2)
        self.assertEqual(header_map.status_indicator, 3)
        self.assertFalse(header_map.has("manual_count"))
        self.assertFalse(header_map.has("test_case_name"))

    def test_a_column_is_claimed_by_at_most_one_role(self):
        # "Total Cases" would also satisfy the test-case predicate without exclusive claiming
        header_map = map_columns(["Story", "Test Cases Total"], REGRESSION.role_rules)
        self.assertEqual(header_map.total_count, 1)
        self.assertEqual(header_map.test_case_name, ABSENT)
        bound = [idx for idx in header_map.as_dict().values() if idx != ABSENT]
        self.assertEqual(len(bound), len(set(bound)))

    def test_earlier_predicate_wins_over_earlier_column(self):
        rules = (rule("manual_count", equals("manual tcs"), contains_all("manual")),)
        header_map = map_columns(["Manual notes", "Manual TCs"], rules)
        self.assertEqual(header_map.manual_count, 1)

    def test_excluding_predicate(self):
        predicate = excluding(contains_all("feature"), "automation")
        self.assertTrue(predicate("feature"))
        self.assertFalse(predicate("feature automation"))

    def test_headers_are_normalised_before_matching(self):
        self.assertEqual(normalise_header("  Manual   TCs "), "manual tcs")
        header_map = map_columns(["  MANUAL   TCs  "], SMOKE.role_rules)
        self.assertEqual(header_map.manual_count, 0)

    def test_no_headers_bind_nothing(self):
        self.assertEqual(map_columns([], SMOKE.role_rules), HeaderMap())

    def test_unknown_role_is_rejected(self):
        with self.assertRaises(ValueError):
            RoleRule("owner", (contains_all("owner"),))

    def test_cell_reads_bound_column_and_tolerates_short_rows(self):
        header_map = HeaderMap(group_key=0, test_case_name=3)
        self.assertEqual(header_map.cell(("  Login ", "x"), "group_key"), "Login")
        self.assertEqual(header_map.cell(("Login",), "test_case_name"), "")
        self.assertEqual(header_map.cell(("Login",), "priority"), "")

    def test_describe_mapping_lists_missing_roles(self):
        headers = ["Stories", "Total Cases"]
        header_map = map_columns(headers, REGRESSION.role_rules)
        mapping = describe_mapping(headers, header_map, REGRESSION.role_rules)
        self.assertEqual(mapping["bound"]["group_key"], {"column_index": 0, "header": "Stories"})
        self.assertIn("automated_count", mapping["missing"])
        self.assertNotIn("total_count", mapping["missing"])


if __name__ == "__main__":
    unittest.main()
