"""
dates.py: pull every calendar date out of a free-text spreadsheet cell.

Recruiters type shared-CV dates however they like, often several per cell:

    "11-Mar-2025, 18-Mar-2025"
    "2025-03-11 / 14.03.25 and 20/03/2025"

extract_dates() scans the text with the notations below, drops misfires,
deduplicates by calendar day and returns the dates in ascending order.
"""

from __future__ import annotations

import re
from datetime import date
from typing import NamedTuple

MONTH_ABBREVIATIONS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

MIN_YEAR_EXCLUSIVE = 1900
TWO_DIGIT_YEAR_PIVOT = 50

# Precedence order matters: a later notation never re-reads text an earlier
# notation already matched.
MON_NAME_RE = re.compile(r"(?<!\d)(\d{1,2})-([A-Za-z]{3})-(\d{4}|\d{2})(?!\d)")
ISO_RE = re.compile(r"(?<!\d)(\d{4})-(\d{2})-(\d{2})(?!\d)")
SLASH_RE = re.compile(r"(?<!\d)(\d{1,2})/(\d{1,2})/(\d{4})(?!\d)")
DOTTED_RE = re.compile(r"(?<!\d)(\d{1,2})\.(\d{1,2})\.(\d{4}|\d{2})(?!\d)")


class SharedDates(NamedTuple):
    dates: list[str]
    first_date: str | None
    last_date: str | None
    count: int


def expand_year(year: int) -> int:
    if year >= 100:
        return year
    return 2000 + year if year < TWO_DIGIT_YEAR_PIVOT else 1900 + year


def _safe_date(year: int, month: int | None, day: int) -> date | None:
    if month is None:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_mon_name(match: re.Match) -> date | None:
    day, month_name, year = match.groups()
    month = MONTH_ABBREVIATIONS.get(month_name.lower())
    return _safe_date(expand_year(int(year)), month, int(day))


def _parse_iso(match: re.Match) -> date | None:
    year, month, day = match.groups()
    return _safe_date(int(year), int(month), int(day))


def _parse_day_first(match: re.Match) -> date | None:
    day, month, year = match.groups()
    return _safe_date(expand_year(int(year)), int(month), int(day))


DATE_NOTATIONS = [
    ("D-Mon-YY", MON_NAME_RE, _parse_mon_name),
    ("YYYY-MM-DD", ISO_RE, _parse_iso),
    ("D/M/YYYY", SLASH_RE, _parse_day_first),
    ("D.M.YY", DOTTED_RE, _parse_day_first),
]


def _overlaps(span: tuple[int, int], taken: list[tuple[int, int]]) -> bool:
    start, end = span
    return any(start < taken_end and taken_start < end for taken_start, taken_end in taken)


def scan_dates(text: str) -> list[date]:
    """Return every valid date found in ``text`` in discovery order (duplicates kept)."""
    found: list[date] = []
    taken: list[tuple[int, int]] = []
    for _label, pattern, parse in DATE_NOTATIONS:
        for match in pattern.finditer(text):
            if _overlaps(match.span(), taken):
                continue
            taken.append(match.span())
            parsed = parse(match)
            if parsed is not None and parsed.year > MIN_YEAR_EXCLUSIVE:
                found.append(parsed)
    return found


def summarize_dates(values: list[date]) -> SharedDates:
    ordered = sorted(set(values))
    if not ordered:
        return SharedDates([], None, None, 0)
    iso = [value.isoformat() for value in ordered]
    return SharedDates(iso, iso[0], iso[-1], len(iso))


def extract_dates(text: object) -> SharedDates:
    """Parse, dedupe and sort all dates embedded in a single cell's text.

    >>> extract_dates("11-Mar-2025 and 18-Mar-2025").dates
    ['2025-03-11', '2025-03-18']
    """
    if text is None:
        return SharedDates([], None, None, 0)
    cleaned = str(text).strip()
    if not cleaned or cleaned.lower() == "na":
        return SharedDates([], None, None, 0)
    return summarize_dates(scan_dates(cleaned))


def merge_shared_dates(groups: list[SharedDates]) -> SharedDates:
    """Union several extraction results into one chronologically sorted set."""
    merged = sorted({value for group in groups for value in group.dates})
    if not merged:
        return SharedDates([], None, None, 0)
    return SharedDates(merged, merged[0], merged[-1], len(merged))
