import unittest

from recruit_sheet.cli import display_average
from recruit_sheet.normalizer import NormalizedRecord
from recruit_sheet.summary import DatasetSummary, average, summarize


def record(**overrides):
    overrides.setdefault("row_number", 2)
    return NormalizedRecord(**overrides)


class SummarizeTests(unittest.TestCase):
    def test_empty_record_set_uses_zero_defaults(self):
        summary = summarize([])
        self.assertEqual(summary, DatasetSummary())
        self.assertEqual(summary.average_days, 0)
        self.assertEqual(summary.average_days_to_first_cv, 0)
        self.assertEqual(summary.average_cvs_shared_per_record, 0)

    def test_totals_and_distinct_counts(self):
        records = [
            record(recruiter="Asha", client_name="Acme", no_of_position=2, number_of_cvs=3, days=10),
            record(recruiter="Asha", client_name="Globex", no_of_position=1, number_of_cvs=0, days=None),
            record(recruiter="Bilal", client_name="Acme", no_of_position=4, number_of_cvs=5, days=5,
                   position_on_hold_date="2025-03-20"),
            record(recruiter=None, client_name=None),
        ]
        summary = summarize(records)
        self.assertEqual(summary.total_records, 4)
        self.assertEqual(summary.total_positions, 8)
        self.assertEqual(summary.total_cvs, 8)
        self.assertEqual(summary.unique_recruiters, 2)
        self.assertEqual(summary.unique_clients, 2)
        self.assertEqual(summary.positions_on_hold, 1)
        self.assertEqual(summary.average_days, 7.5)

    def test_shared_cv_metrics_only_average_records_that_have_any(self):
        records = [
            record(cvs_shared_count=2, days_to_first_cv=10),
            record(cvs_shared_count=1, days_to_first_cv=3),
            record(cvs_shared_count=0),
        ]
        summary = summarize(records)
        self.assertEqual(summary.records_with_cvs_shared, 2)
        self.assertEqual(summary.total_cvs_shared, 3)
        self.assertEqual(summary.average_cvs_shared_per_record, 1.5)
        self.assertEqual(summary.average_days_to_first_cv, 6.5)

    def test_to_dict_uses_camel_case_keys(self):
        self.assertEqual(
            list(summarize([]).to_dict()),
            [
                "totalRecords", "totalPositions", "totalCVs", "uniqueRecruiters", "uniqueClients",
                "positionsOnHold", "averageDays", "recordsWithCVsShared", "totalCVsShared",
                "averageDaysToFirstCV", "averageCVsSharedPerRecord",
            ],
        )


class AverageTests(unittest.TestCase):
    def test_empty_is_zero(self):
        self.assertEqual(average([]), 0)

    def test_is_not_rounded(self):
        self.assertAlmostEqual(average([1, 1, 2]), 4 / 3)
        summary = summarize([record(days=1), record(days=1), record(days=2)])
        self.assertAlmostEqual(summary.to_dict()["averageDays"], 4 / 3)

    def test_display_rounds_to_two_decimals(self):
        self.assertEqual(display_average(4 / 3), 1.33)
        self.assertEqual(display_average(0), 0)


if __name__ == "__main__":
    unittest.main()
