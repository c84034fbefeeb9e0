"""Cell value coercion shared by every field of a normalized record.

coerce() is total: any malformed cell degrades to None, nothing raises.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Any

import pandas as pd

from recruit_sheet.dates import MIN_YEAR_EXCLUSIVE, SharedDates, extract_dates, summarize_dates

NULL_TOKENS = {"null", "na", "n/a", "-", "--"}
TARGET_TYPES = ("string", "number", "date")

# Serial 1 is 1899-12-31 and serial 61 is 1900-03-01: anchoring one day early
# absorbs the phantom 1900-02-29 that spreadsheet formats kept for compatibility.
SPREADSHEET_EPOCH = datetime(1899, 12, 30)

NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ][0-9:.]*(?:Z|[+-]\d{2}:?\d{2})?)?$")


def normalize_scalar(value: Any) -> Any:
    """Unwrap pandas/NumPy scalars and blanks into plain Python values."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, (list, tuple, set, dict)):
        return None
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        if value.tzinfo is not None:
            value = value.tz_convert(None)
        return value.to_pydatetime()
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return None
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        value = value.item()
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value.replace("\x00", "")
    return value


def is_effective_null(value: Any) -> bool:
    normalized = normalize_scalar(value)
    if normalized is None:
        return True
    if isinstance(normalized, str):
        stripped = normalized.strip()
        return not stripped or stripped.lower() in NULL_TOKENS
    return False


def stringify(value: Any) -> str:
    normalized = normalize_scalar(value)
    if normalized is None:
        return ""
    if isinstance(normalized, datetime):
        if normalized.time() == datetime.min.time():
            return normalized.date().isoformat()
        return normalized.isoformat(sep=" ")
    if isinstance(normalized, date):
        return normalized.isoformat()
    if isinstance(normalized, float) and normalized.is_integer():
        return str(int(normalized))
    return str(normalized)


def _as_number(value: Any) -> int | float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    else:
        text = str(value).strip()
        if not NUMBER_RE.fullmatch(text):
            return None
        number = float(text)
    if isinstance(number, float):
        if math.isnan(number) or math.isinf(number):
            return None
        if number.is_integer():
            return int(number)
    return number


def serial_to_date(serial: float) -> date | None:
    if serial <= 0:
        return None
    try:
        return (SPREADSHEET_EPOCH + timedelta(days=float(serial))).date()
    except (OverflowError, ValueError):
        return None


def _iso_text_to_date(text: str) -> date | None:
    match = ISO_DATE_RE.fullmatch(text)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _as_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = _as_number(value)
        return serial_to_date(number) if number is not None else None

    text = str(value).strip()
    parsed = _iso_text_to_date(text)
    if parsed is not None:
        return parsed
    number = _as_number(text)
    if number is not None:
        return serial_to_date(number)
    extracted = extract_dates(text)
    if extracted.first_date:
        return date.fromisoformat(extracted.first_date)
    return None


def coerce(raw: Any, target: str = "string") -> Any:
    """Coerce one raw cell to ``target`` ("string", "number" or "date").

    Dates come back as ISO ``YYYY-MM-DD`` strings. Anything blank, a null
    token, or unparseable for the requested type yields None.
    """
    if target not in TARGET_TYPES:
        return None
    if is_effective_null(raw):
        return None
    value = normalize_scalar(raw)

    if target == "number":
        return _as_number(value)
    if target == "date":
        try:
            parsed = _as_date(value)
        except (OverflowError, ValueError):
            return None
        return parsed.isoformat() if parsed is not None else None

    text = stringify(value).strip()
    return text or None


def cell_dates(raw: Any) -> SharedDates:
    """Extract the shared-CV dates held by one cell.

    Text cells are scanned for every embedded date; native date cells and
    spreadsheet serials contribute the single date they represent.
    """
    if is_effective_null(raw):
        return summarize_dates([])
    value = normalize_scalar(raw)
    if isinstance(value, (date, int, float)) and not isinstance(value, bool):
        iso = coerce(value, "date")
        if iso is None:
            return summarize_dates([])
        parsed = date.fromisoformat(iso)
        return summarize_dates([parsed] if parsed.year > MIN_YEAR_EXCLUSIVE else [])
    return extract_dates(value)
