import builtins
import tempfile
import unittest
from datetime import datetime
from pathlib import Path
from unittest import mock

from openpyxl import Workbook

from recruit_sheet import loader
from recruit_sheet.engine import parse_recruitment_grid

REPO_ROOT = Path(__file__).resolve().parents[1]
SAMPLE_CSV = REPO_ROOT / "sample-data" / "pipeline_sample.csv"


def write_workbook(path: Path) -> None:
    wb = Workbook()
    ws = wb.active
    ws.title = "Pipeline"
    ws.append(["Recruiter", "Client", "Logged Date", "CVs Shared Date"])
    ws.append(["Asha", "Acme", datetime(2025, 3, 1), "11-Mar-2025, 18-Mar-2025"])
    ws.append(["N/A", "-", None, None])
    ws.append(["Bilal", "Globex", 45722, datetime(2025, 3, 8)])
    archive = wb.create_sheet("Archive")
    archive.append(["Recruiter", "CVs"])
    archive.append(["Dana", 3])
    wb.save(path)


class LoaderTextTests(unittest.TestCase):
    def test_sample_csv_loads_and_normalizes(self):
        loaded = loader.load_grid(SAMPLE_CSV)
        self.assertEqual(loaded["detected_format"], "csv")
        self.assertEqual(loaded["delimiter"], ",")
        self.assertIsNone(loaded["sheet_name"])
        self.assertEqual(loaded["grid"][0][0], "Recruiter Name")

        result = parse_recruitment_grid(loaded["grid"])
        self.assertTrue(result.success, result.error)
        self.assertEqual(len(result.data), 4)
        self.assertEqual(result.summary.unique_recruiters, 3)
        self.assertEqual(result.summary.positions_on_hold, 1)

    def test_semicolon_delimiter_is_detected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "pipeline.csv"
            path.write_text("Recruiter;Client;CVs\nAsha;Acme;3\nBilal;Globex;2\n", encoding="utf-8")
            loaded = loader.load_grid(path)
        self.assertEqual(loaded["delimiter"], ";")
        self.assertEqual(loaded["grid"][1], ["Asha", "Acme", "3"])

    def test_tsv_uses_tab_delimiter(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "pipeline.tsv"
            path.write_text("Recruiter\tClient\nAsha\tAcme, Inc\n", encoding="utf-8")
            loaded = loader.load_grid(path)
        self.assertEqual(loaded["delimiter"], "\t")
        self.assertEqual(loaded["grid"][1], ["Asha", "Acme, Inc"])

    def test_bom_and_latin1_bytes_are_decoded(self):
        raw = "\ufeffRecruiter,Client\n".encode("utf-8") + "Jos\xe9,Acme\n".encode("latin-1")
        loaded = loader.load_bytes(raw, "pipeline.csv")
        self.assertEqual(loaded["grid"][0][0], "Recruiter")
        self.assertEqual(loaded["grid"][1][0], "Jos\xe9")

    def test_blank_lines_keep_their_row_numbers(self):
        loaded = loader.load_bytes(b"Recruiter,Client\nAsha,Acme\n\nBilal,Globex\n", "pipeline.csv")
        self.assertEqual(len(loaded["grid"]), 4)
        self.assertEqual(loaded["grid"][2], [])

        result = parse_recruitment_grid(loaded["grid"])
        self.assertTrue(result.success, result.error)
        self.assertEqual([(r.recruiter, r.row_number) for r in result.data], [("Asha", 2), ("Bilal", 4)])

    def test_trailing_blank_lines_are_dropped(self):
        loaded = loader.load_bytes(b"Recruiter\nAsha\n\n\n", "pipeline.csv")
        self.assertEqual(loaded["grid"], [["Recruiter"], ["Asha"]])

    def test_empty_upload_is_rejected(self):
        with self.assertRaisesRegex(ValueError, "Uploaded file is empty"):
            loader.load_bytes(b"", "pipeline.csv")


class LoaderWorkbookTests(unittest.TestCase):
    def test_first_sheet_is_used_with_a_warning(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "pipeline.xlsx"
            write_workbook(path)
            loaded = loader.load_grid(path)

        self.assertEqual(loaded["sheet_name"], "Pipeline")
        self.assertEqual(loaded["sheet_names"], ["Pipeline", "Archive"])
        self.assertTrue(any("Multiple sheets" in warning for warning in loaded["warnings"]))
        self.assertEqual(loaded["grid"][0], ["Recruiter", "Client", "Logged Date", "CVs Shared Date"])
        self.assertEqual(loaded["grid"][2], [None, "-", None, None])

        result = parse_recruitment_grid(loaded["grid"])
        self.assertEqual(len(result.data), 2)
        first, second = result.data
        self.assertEqual(first.requisition_logged_date, "2025-03-01")
        self.assertEqual(first.days_to_first_cv, 10)
        self.assertEqual(second.row_number, 4)
        self.assertEqual(second.requisition_logged_date, "2025-03-06")
        self.assertEqual(second.cvs_shared_dates, ["2025-03-08"])

    def test_named_sheet(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "pipeline.xlsx"
            write_workbook(path)
            loaded = loader.load_grid(path, sheet_name="Archive")
        self.assertEqual(loaded["sheet_name"], "Archive")
        self.assertEqual(loaded["warnings"], [])
        self.assertEqual(loaded["grid"][1], ["Dana", 3])

    def test_unknown_sheet(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "pipeline.xlsx"
            write_workbook(path)
            with self.assertRaisesRegex(ValueError, "Sheet 'Nope' not found"):
                loader.load_grid(path, sheet_name="Nope")

    def test_corrupt_workbook(self):
        with self.assertRaisesRegex(ValueError, "Could not read workbook"):
            loader.load_bytes(b"definitely not a zip archive", "pipeline.xlsx")

    def test_missing_xlrd_raises_clear_importerror(self):
        original_import = builtins.__import__

        def fake_import(name, globals=None, locals=None, fromlist=(), level=0):
            if name == "xlrd":
                raise ImportError("simulated missing xlrd")
            return original_import(name, globals, locals, fromlist, level)

        with mock.patch("builtins.__import__", side_effect=fake_import):
            with self.assertRaisesRegex(ImportError, "pip install xlrd"):
                loader.load_bytes(b"not-a-real-xls", "legacy.xls")


class LoaderInputTests(unittest.TestCase):
    def test_unsupported_format(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "notes.txt"
            path.write_text("hello\n", encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "Only Excel and CSV files are allowed"):
                loader.load_grid(path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            loader.load_grid("does/not/exist.csv")

    def test_is_url(self):
        self.assertTrue(loader.is_url("https://example.com/pipeline.xlsx"))
        self.assertFalse(loader.is_url("sample-data/pipeline_sample.csv"))
        self.assertFalse(loader.is_url(Path("pipeline.csv")))


class RemoteSourceTests(unittest.TestCase):
    def test_share_links_become_direct_downloads(self):
        self.assertEqual(
            loader.normalize_public_url("https://github.com/acme/hiring/blob/main/pipeline.csv"),
            "https://raw.githubusercontent.com/acme/hiring/main/pipeline.csv",
        )
        self.assertEqual(
            loader.normalize_public_url("https://docs.google.com/spreadsheets/d/abc123/edit#gid=0"),
            "https://docs.google.com/spreadsheets/d/abc123/export?format=xlsx&gid=0",
        )
        self.assertIn("dl=1", loader.normalize_public_url("https://www.dropbox.com/s/xyz/pipeline.xlsx?dl=0"))

    def test_fetch_remote_uses_content_disposition_name(self):
        response = mock.Mock()
        response.headers = {"content-disposition": 'attachment; filename="tracker.csv"', "Content-Length": "20"}
        response.url = "https://example.com/download?id=1"
        response.iter_content.return_value = [b"Recruiter,Client\n", b"Asha,Acme\n"]

        with mock.patch.object(loader.requests, "get", return_value=response) as get:
            filename, raw = loader.fetch_remote("https://example.com/download?id=1")

        get.assert_called_once()
        self.assertEqual(filename, "tracker.csv")
        self.assertEqual(raw, b"Recruiter,Client\nAsha,Acme\n")
        response.close.assert_called_once()

    def test_fetch_remote_refuses_large_files(self):
        response = mock.Mock()
        response.headers = {"Content-Length": str(loader.MAX_REMOTE_FILE_BYTES + 1)}
        with mock.patch.object(loader.requests, "get", return_value=response):
            with self.assertRaisesRegex(ValueError, "larger than"):
                loader.fetch_remote("https://example.com/huge.csv")

    def test_load_grid_from_url(self):
        with mock.patch.object(loader, "fetch_remote", return_value=("tracker.csv", b"Recruiter\nAsha\n")):
            loaded = loader.load_grid("https://example.com/tracker.csv")
        self.assertEqual(loaded["source"], "https://example.com/tracker.csv")
        self.assertEqual(loaded["grid"], [["Recruiter"], ["Asha"]])


if __name__ == "__main__":
    unittest.main()
