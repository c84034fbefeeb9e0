"""
loader.py: turn an uploaded spreadsheet into the raw cell grid the engine reads.

Supports: .xlsx .xlsm .xls .csv .tsv, from a local path, raw upload bytes, or a
public http(s) URL.

Public API:
    loaded = load_grid("path/to/pipeline.xlsx")
    grid   = loaded["grid"]

Result dict keys:
    grid              list of rows, row 0 is the header row
    source            path, URL or upload filename the grid came from
    detected_format   "csv", "xlsx", ...
    detected_encoding encoding name for text files; None for workbooks
    delimiter         delimiter char for text files; None otherwise
    sheet_name        sheet the grid was read from; None for text files
    sheet_names       all sheet names for workbooks; None otherwise
    warnings          list of warning strings
"""

from __future__ import annotations

import csv
import io
import re
from collections import Counter
from pathlib import Path
from typing import Any, Optional
from urllib.parse import parse_qs, urlencode, urlparse, urlunparse

import chardet
import pandas as pd
import requests

TEXT_FORMATS = {".csv", ".tsv"}
EXCEL_FORMATS = {".xlsx", ".xlsm", ".xls"}
ALL_FORMATS = TEXT_FORMATS | EXCEL_FORMATS

UNSUPPORTED_FORMAT_MESSAGE = "Only Excel and CSV files are allowed"

MAX_REMOTE_FILE_MB = 100
MAX_REMOTE_FILE_BYTES = MAX_REMOTE_FILE_MB * 1024 * 1024
REMOTE_TIMEOUT_SECONDS = 60

CONTENT_TYPE_FORMATS = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
    "application/vnd.ms-excel.sheet.macroenabled.12": ".xlsm",
    "application/vnd.ms-excel": ".xls",
    "text/csv": ".csv",
    "text/tab-separated-values": ".tsv",
}


def check_format(filename: str) -> str:
    suffix = Path(filename).suffix.lower()
    if suffix not in ALL_FORMATS:
        raise ValueError(
            f"{UNSUPPORTED_FORMAT_MESSAGE} (got '{suffix or '[missing extension]'}'; "
            f"supported: {', '.join(sorted(ALL_FORMATS))})"
        )
    return suffix


# ── Text files ────────────────────────────────────────────────────────────────

def detect_encoding(raw: bytes) -> str:
    result = chardet.detect(raw[:200_000])
    encoding = result.get("encoding")
    return encoding or "utf-8"


def decode_text(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode raw bytes line by line, trying UTF-8, the detected encoding, then
    latin-1, and finally CP1252 with replacement so decoding never fails.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding, "latin-1"):
            if not enc:
                continue
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        decoded_lines.append(decoded.replace("\x00", ""))
    return "\n".join(decoded_lines).lstrip("\ufeff")


def detect_delimiter(text: str) -> str:
    """
    Infer the delimiter with csv.Sniffer, falling back to scoring each
    candidate by column-count consistency and width.
    """
    sample_lines = [line for line in text.splitlines() if line.strip()][:50]
    sample = "\n".join(sample_lines[:25])

    if sample:
        try:
            return csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
        except csv.Error:
            pass

    best_delim = ","
    best_score = float("-inf")
    for delim in (",", ";", "\t", "|"):
        rows = [
            row
            for row in csv.reader(io.StringIO("\n".join(sample_lines)), delimiter=delim)
            if any(cell.strip() for cell in row)
        ]
        if not rows:
            continue
        widths = Counter(len(row) for row in rows)
        mode_width, mode_count = widths.most_common(1)[0]
        score = (mode_width * 2.0) + (mode_count / len(rows)) * mode_width
        if len(rows[0]) == mode_width:
            score += 1.0
        if mode_width == 1:
            score -= 10.0
        if score > best_score:
            best_score = score
            best_delim = delim
    return best_delim


def read_text_grid(raw: bytes, suffix: str) -> dict:
    encoding = detect_encoding(raw)
    text = decode_text(raw, encoding)
    delimiter = "\t" if suffix == ".tsv" else detect_delimiter(text)
    try:
        rows = list(csv.reader(io.StringIO(text), delimiter=delimiter))
    except csv.Error as exc:
        raise ValueError(f"Could not parse {suffix} file: {exc}") from exc
    # Grid row i is line i + 1 of the file; only trailing blank lines go.
    while rows and not any(cell.strip() for cell in rows[-1]):
        rows.pop()

    return {
        "grid": rows,
        "detected_format": suffix.lstrip("."),
        "detected_encoding": encoding,
        "delimiter": delimiter,
        "sheet_name": None,
        "sheet_names": None,
        "warnings": [],
    }


# ── Workbooks ─────────────────────────────────────────────────────────────────

def dataframe_to_grid(df: pd.DataFrame) -> list[list[Any]]:
    """Rows of plain Python cells; NaN/NaT become None, timestamps become datetimes."""
    grid: list[list[Any]] = []
    for row in df.itertuples(index=False, name=None):
        cells: list[Any] = []
        for value in row:
            if isinstance(value, pd.Timestamp):
                cells.append(None if pd.isna(value) else value.to_pydatetime())
            elif value is None or (not isinstance(value, str) and pd.isna(value)):
                cells.append(None)
            else:
                cells.append(value)
        grid.append(cells)
    return grid


def read_workbook_grid(raw: bytes, suffix: str, sheet_name: Optional[str] = None) -> dict:
    """
    Read one worksheet with pandas, keeping the header row as grid row 0.

    The first sheet is used unless ``sheet_name`` names another one.
    """
    if suffix == ".xls":
        try:
            import xlrd  # noqa: F401
        except ImportError:
            raise ImportError(".xls files require xlrd; run: pip install xlrd")

    warnings: list[str] = []
    try:
        workbook = pd.ExcelFile(io.BytesIO(raw))
    except ImportError:
        raise
    except Exception as exc:
        raise ValueError(f"Could not read workbook: {exc}") from exc

    with workbook:
        all_sheets = [str(name) for name in workbook.sheet_names]
        if not all_sheets:
            raise ValueError("Workbook has no sheets")
        if sheet_name is None:
            chosen = all_sheets[0]
            if len(all_sheets) > 1:
                warnings.append(
                    f"Multiple sheets found ({len(all_sheets)} total); used '{chosen}'. "
                    f"Ignored: {all_sheets[1:]}"
                )
        elif sheet_name in all_sheets:
            chosen = sheet_name
        else:
            raise ValueError(f"Sheet '{sheet_name}' not found. Available: {all_sheets}")
        try:
            df = pd.read_excel(workbook, sheet_name=chosen, header=None)
        except Exception as exc:
            raise ValueError(f"Could not read workbook: {exc}") from exc

    return {
        "grid": dataframe_to_grid(df),
        "detected_format": suffix.lstrip("."),
        "detected_encoding": None,
        "delimiter": None,
        "sheet_name": chosen,
        "sheet_names": all_sheets,
        "warnings": warnings,
    }


# ── Remote sources ────────────────────────────────────────────────────────────

def is_url(source: Any) -> bool:
    return isinstance(source, str) and urlparse(source.strip()).scheme in {"http", "https"}


def normalize_public_url(raw_url: str) -> str:
    """Rewrite common public share links into direct-download URLs."""
    parsed = urlparse(raw_url.strip())
    host = parsed.netloc.lower()
    path = parsed.path
    query = parse_qs(parsed.query, keep_blank_values=True)

    if host == "github.com" and "/blob/" in path:
        owner_repo, blob_path = path.lstrip("/").split("/blob/", 1)
        return f"https://raw.githubusercontent.com/{owner_repo}/{blob_path}"

    if "dropbox.com" in host:
        query["dl"] = ["1"]
        return urlunparse(parsed._replace(query=urlencode(query, doseq=True)))

    if host in {"drive.google.com", "docs.google.com"}:
        sheet_match = re.search(r"/spreadsheets/d/([^/]+)", path)
        if sheet_match:
            gid = query.get("gid", ["0"])[0]
            return (
                f"https://docs.google.com/spreadsheets/d/{sheet_match.group(1)}/export"
                f"?format=xlsx&gid={gid}"
            )
        file_match = re.search(r"/file/d/([^/]+)", path)
        if file_match:
            return f"https://drive.google.com/uc?export=download&id={file_match.group(1)}"

    if host.endswith("1drv.ms") or "onedrive.live.com" in host:
        query["download"] = ["1"]
        return urlunparse(parsed._replace(query=urlencode(query, doseq=True)))

    return raw_url.strip()


def remote_filename(raw_url: str, response: requests.Response) -> str:
    content_disposition = response.headers.get("content-disposition", "")
    match = re.search(r'filename="([^"]+)"|filename=([^;]+)', content_disposition, re.I)
    if match:
        for group in match.groups():
            if group:
                return Path(group.strip().strip('"')).name
    name = Path(urlparse(response.url or raw_url).path).name or "downloaded_file"
    if Path(name).suffix.lower() not in ALL_FORMATS:
        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if content_type in CONTENT_TYPE_FORMATS:
            name = f"{Path(name).stem}{CONTENT_TYPE_FORMATS[content_type]}"
    return name


def fetch_remote(raw_url: str) -> tuple[str, bytes]:
    """Download a public file, refusing anything over MAX_REMOTE_FILE_MB."""
    url = normalize_public_url(raw_url)
    response = requests.get(url, timeout=REMOTE_TIMEOUT_SECONDS, allow_redirects=True, stream=True)
    try:
        response.raise_for_status()
        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > MAX_REMOTE_FILE_BYTES:
            raise ValueError(f"Remote file is larger than {MAX_REMOTE_FILE_MB} MB.")

        chunks: list[bytes] = []
        downloaded = 0
        for chunk in response.iter_content(chunk_size=1024 * 1024):
            if not chunk:
                continue
            downloaded += len(chunk)
            if downloaded > MAX_REMOTE_FILE_BYTES:
                raise ValueError(f"Remote file is larger than {MAX_REMOTE_FILE_MB} MB.")
            chunks.append(chunk)
    finally:
        response.close()

    return remote_filename(raw_url, response), b"".join(chunks)


# ── Public API ────────────────────────────────────────────────────────────────

def load_bytes(raw: bytes, filename: str, sheet_name: Optional[str] = None) -> dict:
    """Read an in-memory upload; ``filename`` only decides the format."""
    suffix = check_format(filename)
    if not raw:
        raise ValueError("Uploaded file is empty")
    if suffix in TEXT_FORMATS:
        loaded = read_text_grid(raw, suffix)
    else:
        loaded = read_workbook_grid(raw, suffix, sheet_name)
    loaded["source"] = filename
    return loaded


def load_grid(source: "str | Path", sheet_name: Optional[str] = None) -> dict:
    """
    Load a local file or public URL into a raw grid.

    Raises:
        FileNotFoundError  if a local path does not exist.
        ValueError         if the format is unsupported or unreadable.
        ImportError        if .xls support (xlrd) is missing.
        requests.RequestException  if a URL cannot be fetched.
    """
    if is_url(source):
        filename, raw = fetch_remote(str(source))
        loaded = load_bytes(raw, filename, sheet_name)
        loaded["source"] = str(source)
        return loaded

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    check_format(path.name)
    loaded = load_bytes(path.read_bytes(), path.name, sheet_name)
    loaded["source"] = str(path)
    return loaded
