from __future__ import annotations

import unittest

from sheet_metrics.models import DetailRow, ModuleAggregate, ReportMetrics
from sheet_metrics.progress import (
    combined_progress_rows,
    filter_detail_rows,
    filter_module_rows,
    module_progress_rows,
    progress_tier,
)


def report_with(family: str, **modules: ModuleAggregate) -> ReportMetrics:
    return ReportMetrics(family=family, modules_by_key=modules)


class ProgressTierTests(unittest.TestCase):
    def test_tier_boundaries(self):
        self.assertEqual(progress_tier(100), ("Complete", "complete"))
        self.assertEqual(progress_tier(90), ("Near Complete", "near-complete"))
        self.assertEqual(progress_tier(89), ("Excellent Progress", "excellent"))
        self.assertEqual(progress_tier(60), ("Good Progress", "good"))
        self.assertEqual(progress_tier(40), ("In Progress", "in-progress"))
        self.assertEqual(progress_tier(0), ("Getting Started", "getting-started"))


class ModuleProgressTests(unittest.TestCase):
    def test_rows_skip_the_fallback_module(self):
        report = report_with(
            "smoke",
            Login=ModuleAggregate(total_test_cases=4, manual_count=3, automated_count=1),
            Other=ModuleAggregate(total_test_cases=2, manual_count=2),
        )
        rows = module_progress_rows(report)
        self.assertEqual([row.name for row in rows], ["Login"])
        row = rows[0]
        self.assertEqual(row.test_type, "Smoke Test")
        self.assertEqual((row.total_tcs, row.automatable, row.overall_percent, row.effective_percent), (4, 4, 25, 25))
        self.assertEqual(row.status_text, "Getting Started")

    def test_module_with_no_cases_is_zero_percent(self):
        rows = module_progress_rows(report_with("regression", Empty=ModuleAggregate()))
        self.assertEqual((rows[0].overall_percent, rows[0].effective_percent), (0, 0))
        self.assertEqual(rows[0].test_type, "Regression Test")

    def test_combined_rows_sorted_by_effective_percent(self):
        smoke = report_with(
            "smoke",
            Login=ModuleAggregate(total_test_cases=4, manual_count=3, automated_count=1),
            Checkout=ModuleAggregate(total_test_cases=5, manual_count=3, automated_count=2),
        )
        regression = report_with(
            "regression",
            Billing=ModuleAggregate(total_test_cases=7, automated_count=7),
            Reports=ModuleAggregate(total_test_cases=4, manual_count=4),
        )
        rows = combined_progress_rows([smoke, regression])
        self.assertEqual([row.name for row in rows], ["Billing", "Checkout", "Login", "Reports"])
        self.assertEqual(rows[0].to_dict()["statusClass"], "complete")


class FilterTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        smoke = report_with(
            "smoke",
            Login=ModuleAggregate(total_test_cases=4, manual_count=3, automated_count=1),
            Checkout=ModuleAggregate(total_test_cases=5, manual_count=3, automated_count=2),
        )
        regression = report_with(
            "regression",
            Billing=ModuleAggregate(total_test_cases=7, automated_count=7),
        )
        cls.rows = combined_progress_rows([smoke, regression])

    def names(self, **filters):
        return [row.name for row in filter_module_rows(self.rows, filters)]

    def test_text_filters_are_case_insensitive_substrings(self):
        self.assertEqual(self.names(testType="smoke"), ["Checkout", "Login"])
        self.assertEqual(self.names(name="LOG"), ["Login"])
        self.assertEqual(self.names(status="complete"), ["Billing"])

    def test_numeric_filters(self):
        self.assertEqual(self.names(totalTCs=">4"), ["Billing", "Checkout"])
        self.assertEqual(self.names(effectivePercent="<40"), ["Login"])
        self.assertEqual(self.names(automated="7"), ["Billing"])

    def test_filters_combine(self):
        self.assertEqual(self.names(testType="smoke", manual="3", overallPercent=">30"), ["Checkout"])

    def test_blank_and_unparsable_filters_are_ignored(self):
        self.assertEqual(len(self.names(name="  ", manual="lots")), 3)

    def test_unknown_filter_column(self):
        with self.assertRaises(ValueError):
            filter_module_rows(self.rows, {"owner": "me"})


class DetailFilterTests(unittest.TestCase):
    ROWS = (
        DetailRow("Account settings", "Account settings", 4, 8, "High", "Done"),
        DetailRow("Notifications", "Notifications", 4, 1, "Medium", "In Progress"),
        DetailRow("Billing history", "Billing history", 0, 7, "High", "Failed"),
        DetailRow("Login", "Forgot password", 1, 0, "", "Not Started"),
    )

    def names(self, **filters):
        return [row.name for row in filter_detail_rows(self.ROWS, **filters)]

    def test_no_filters_keep_every_row(self):
        self.assertEqual(len(self.names()), 4)
        self.assertEqual(len(self.names(search=" ", status="all", priority="ALL")), 4)

    def test_search_matches_module_or_name(self):
        self.assertEqual(self.names(search="BILL"), ["Billing history"])
        self.assertEqual(self.names(search="login"), ["Forgot password"])
        self.assertEqual(self.names(search="password"), ["Forgot password"])

    def test_status_and_priority_match_whole_values(self):
        self.assertEqual(self.names(status="in progress"), ["Notifications"])
        self.assertEqual(self.names(status="progress"), [])
        self.assertEqual(self.names(priority="high"), ["Account settings", "Billing history"])
        self.assertEqual(self.names(priority="N/A"), ["Forgot password"])

    def test_filters_combine(self):
        self.assertEqual(self.names(search="a", priority="High", status="Failed"), ["Billing history"])

    def test_automation_percent_uses_row_total(self):
        self.assertEqual([row.automation_percent for row in self.ROWS], [67, 20, 100, 0])


if __name__ == "__main__":
    unittest.main()
