import unittest
from datetime import date, datetime

import numpy as np
import pandas as pd

from recruit_sheet.cells import cell_dates, coerce, is_effective_null, serial_to_date, stringify


class CoerceNullTests(unittest.TestCase):
    def test_null_tokens_yield_none_for_every_target(self):
        for raw in (None, "", "   ", "null", "NULL", "na", "N/A", "n/a", "-", "--", " -- "):
            for target in ("string", "number", "date"):
                with self.subTest(raw=raw, target=target):
                    self.assertIsNone(coerce(raw, target))

    def test_pandas_missing_values(self):
        self.assertIsNone(coerce(np.nan, "number"))
        self.assertIsNone(coerce(pd.NaT, "date"))
        self.assertTrue(is_effective_null(float("nan")))

    def test_unknown_target_yields_none(self):
        self.assertIsNone(coerce("Asha", "boolean"))


class CoerceStringTests(unittest.TestCase):
    def test_trims_whitespace(self):
        self.assertEqual(coerce("  Asha  "), "Asha")

    def test_integral_floats_drop_the_decimal(self):
        self.assertEqual(coerce(12.0, "string"), "12")

    def test_midnight_datetime_renders_as_date(self):
        self.assertEqual(stringify(datetime(2025, 3, 1)), "2025-03-01")


class CoerceNumberTests(unittest.TestCase):
    def test_numeric_text(self):
        self.assertEqual(coerce("12", "number"), 12)
        self.assertEqual(coerce(" 3.5 ", "number"), 3.5)
        self.assertEqual(coerce("-2", "number"), -2)

    def test_native_numbers(self):
        self.assertEqual(coerce(7, "number"), 7)
        self.assertEqual(coerce(np.int64(4), "number"), 4)
        self.assertEqual(coerce(2.0, "number"), 2)

    def test_unparseable_yields_none(self):
        self.assertIsNone(coerce("abc", "number"))
        self.assertIsNone(coerce("12 cvs", "number"))
        self.assertIsNone(coerce(float("inf"), "number"))
        self.assertIsNone(coerce("inf", "number"))
        self.assertIsNone(coerce(True, "number"))


class CoerceDateTests(unittest.TestCase):
    def test_iso_text(self):
        self.assertEqual(coerce("2025-03-01", "date"), "2025-03-01")
        self.assertEqual(coerce("2025-03-01T10:00:00", "date"), "2025-03-01")
        self.assertEqual(coerce("2025-3-1", "date"), "2025-03-01")

    def test_native_dates(self):
        self.assertEqual(coerce(datetime(2025, 3, 1, 9, 30), "date"), "2025-03-01")
        self.assertEqual(coerce(date(2025, 3, 1), "date"), "2025-03-01")
        self.assertEqual(coerce(pd.Timestamp("2025-03-01"), "date"), "2025-03-01")

    def test_spreadsheet_serials(self):
        self.assertEqual(coerce(45000, "date"), "2023-03-15")
        self.assertEqual(coerce("45000", "date"), "2023-03-15")
        self.assertEqual(coerce(1, "date"), "1899-12-31")
        self.assertEqual(serial_to_date(60), date(1900, 2, 28))
        self.assertEqual(serial_to_date(61), date(1900, 3, 1))

    def test_non_positive_serials_yield_none(self):
        self.assertIsNone(coerce(0, "date"))
        self.assertIsNone(coerce(-5, "date"))

    def test_free_text_date_notations(self):
        self.assertEqual(coerce("05/03/2025", "date"), "2025-03-05")
        self.assertEqual(coerce("10-Mar-2025", "date"), "2025-03-10")

    def test_invalid_dates_yield_none(self):
        self.assertIsNone(coerce("2025-02-30", "date"))
        self.assertIsNone(coerce("next week", "date"))
        self.assertIsNone(coerce(1e12, "date"))


class CellDatesTests(unittest.TestCase):
    def test_text_cell_is_scanned(self):
        self.assertEqual(cell_dates("11-Mar-2025, 18-Mar-2025").count, 2)

    def test_native_date_cell_contributes_one_date(self):
        result = cell_dates(datetime(2025, 3, 8))
        self.assertEqual(result.dates, ["2025-03-08"])

    def test_serial_cell(self):
        self.assertEqual(cell_dates(45000).dates, ["2023-03-15"])

    def test_early_serials_fall_under_the_year_guard(self):
        self.assertEqual(cell_dates(5).count, 0)

    def test_null_cells(self):
        self.assertEqual(cell_dates(None).count, 0)
        self.assertEqual(cell_dates("NA").count, 0)
        self.assertEqual(cell_dates("n/a").count, 0)


if __name__ == "__main__":
    unittest.main()
