from __future__ import annotations

import unittest

from sheet_metrics.combiner import combine, merge_counts, merge_modules
from sheet_metrics.models import CaseEntry, ModuleAggregate, ReportMetrics


class CombinerTests(unittest.TestCase):
    def test_overall_pass_rate_is_recomputed_from_sums(self):
        smoke = ReportMetrics(family="smoke", total=10, passed=5)
        regression = ReportMetrics(family="regression", total=20, passed=15)
        overall = combine(smoke, regression)
        self.assertEqual(overall.total, 30)
        self.assertEqual(overall.passed, 20)
        self.assertEqual(overall.pass_rate, 67)

    def test_counts_are_summed(self):
        smoke = ReportMetrics(
            family="smoke", total=3, passed=1, failed=1, skipped=1,
            total_manual=4, total_automated=2, total_test_cases=6,
        )
        regression = ReportMetrics(
            family="regression", total=2, passed=2,
            total_manual=1, total_automated=3, total_test_cases=4,
        )
        overall = combine(smoke, regression)
        self.assertEqual((overall.failed, overall.skipped), (1, 1))
        self.assertEqual(overall.total_manual, 5)
        self.assertEqual(overall.total_automated, 5)
        self.assertEqual(overall.total_test_cases, 10)
        self.assertEqual(overall.automation_rate, 50)

    def test_empty_reports_combine_to_zero_rates(self):
        overall = combine(ReportMetrics(family="smoke"), ReportMetrics(family="regression"))
        self.assertEqual(overall.total, 0)
        self.assertEqual(overall.pass_rate, 0)
        self.assertEqual(overall.automation_rate, 0)

    def test_shared_module_keys_are_merged(self):
        a = {"Login": ModuleAggregate(3, 2, 1, (CaseEntry("x", 2, 1, "Done"),), 1)}
        b = {
            "Login": ModuleAggregate(4, 4, 0, (CaseEntry("y", 4, 0, "WIP"),), 1),
            "Billing": ModuleAggregate(7, 0, 7, (), 1),
        }
        merged = merge_modules(a, b)
        self.assertEqual(list(merged), ["Login", "Billing"])
        login = merged["Login"]
        self.assertEqual((login.total_test_cases, login.manual_count, login.automated_count), (7, 6, 1))
        self.assertEqual([entry.name for entry in login.test_case_entries], ["x", "y"])
        self.assertEqual(login.row_count, 2)
        self.assertIs(merged["Billing"], b["Billing"])

    def test_merge_counts(self):
        self.assertEqual(merge_counts({"P1": 2, "P2": 1}, {"P2": 3, "Low": 1}), {"P1": 2, "P2": 4, "Low": 1})


if __name__ == "__main__":
    unittest.main()
