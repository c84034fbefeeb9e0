from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Sequence

from recruit_sheet.cells import cell_dates, coerce, is_effective_null
from recruit_sheet.dates import SharedDates, merge_shared_dates
from recruit_sheet.fields import SHARED_DATE_FIELDS, CanonicalField
from recruit_sheet.headers import HeaderMap

HEADER_ROWS = 1
DEFAULT_POSITIONS = 1


@dataclass
class NormalizedRecord:
    row_number: int
    recruiter: str | None = None
    bdm: str | None = None
    client_name: str | None = None
    position_name: str | None = None
    no_of_position: int = DEFAULT_POSITIONS
    requisition_logged_date: str | None = None
    number_of_cvs: int = 0
    position_on_hold_date: str | None = None
    days: int | float | None = None
    remarks: str | None = None
    cvs_shared_dates: list[str] = field(default_factory=list)
    first_cv_shared_date: str | None = None
    last_cv_shared_date: str | None = None
    cvs_shared_count: int = 0
    days_to_first_cv: int | None = None

    def is_retained(self) -> bool:
        return bool(
            self.recruiter is not None
            or self.client_name is not None
            or self.position_name is not None
            or self.number_of_cvs > 0
            or self.no_of_position > 0
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "rowNumber": self.row_number,
            "recruiter": self.recruiter,
            "bdm": self.bdm,
            "clientName": self.client_name,
            "positionName": self.position_name,
            "noOfPosition": self.no_of_position,
            "requisitionLoggedDate": self.requisition_logged_date,
            "numberOfCVs": self.number_of_cvs,
            "positionOnHoldDate": self.position_on_hold_date,
            "days": self.days,
            "remarks": self.remarks,
            "cvsSharedDates": list(self.cvs_shared_dates),
            "firstCVSharedDate": self.first_cv_shared_date,
            "lastCVSharedDate": self.last_cv_shared_date,
            "cvsSharedCount": self.cvs_shared_count,
            "daysToFirstCV": self.days_to_first_cv,
        }


def cell_for(row: Sequence[Any], header_map: HeaderMap, canonical: CanonicalField) -> Any:
    column = header_map.get(canonical)
    if column is None or column >= len(row):
        return None
    return row[column]


def is_blank_row(row: Sequence[Any]) -> bool:
    return all(is_effective_null(cell) for cell in row)


def collect_shared_dates(row: Sequence[Any], header_map: HeaderMap) -> SharedDates:
    """Union the dates from every shared-CV column present in the header map.

    The same date entered in several legacy columns counts once.
    """
    columns = list(dict.fromkeys(
        header_map.get(canonical) for canonical in SHARED_DATE_FIELDS if canonical in header_map
    ))
    groups = [cell_dates(row[column]) for column in columns if column < len(row)]
    return merge_shared_dates(groups)


def _positive_count(raw: Any) -> int:
    number = coerce(raw, "number")
    if number is None or number <= 0:
        return 0
    return int(number)


def positions_from(raw: Any) -> int:
    return _positive_count(raw) or DEFAULT_POSITIONS


def cv_count_from(row: Sequence[Any], header_map: HeaderMap, shared: SharedDates) -> int:
    """Direct CV column first, then an explicit shared-count column, then the shared dates."""
    direct = _positive_count(cell_for(row, header_map, CanonicalField.NUMBER_OF_CVS))
    if direct:
        return direct
    counted = _positive_count(cell_for(row, header_map, CanonicalField.CVS_SHARED_COUNT))
    if counted:
        return counted
    return shared.count


def days_between(start_iso: str | None, end_iso: str | None) -> int | None:
    if not start_iso or not end_iso:
        return None
    try:
        start = date.fromisoformat(start_iso)
        end = date.fromisoformat(end_iso)
    except (TypeError, ValueError):
        return None
    return (end - start).days


def build_record(row: Sequence[Any], header_map: HeaderMap, row_index: int) -> NormalizedRecord:
    """Build the record for one data row without applying the discard rule."""

    def text(canonical: CanonicalField) -> str | None:
        return coerce(cell_for(row, header_map, canonical), "string")

    def when(canonical: CanonicalField) -> str | None:
        return coerce(cell_for(row, header_map, canonical), "date")

    shared = collect_shared_dates(row, header_map)
    requisition_date = when(CanonicalField.REQUISITION_LOGGED_DATE)

    return NormalizedRecord(
        row_number=row_index + HEADER_ROWS + 1,
        recruiter=text(CanonicalField.RECRUITER),
        bdm=text(CanonicalField.BDM),
        client_name=text(CanonicalField.CLIENT_NAME),
        position_name=text(CanonicalField.POSITION_NAME),
        no_of_position=positions_from(cell_for(row, header_map, CanonicalField.NO_OF_POSITION)),
        requisition_logged_date=requisition_date,
        number_of_cvs=cv_count_from(row, header_map, shared),
        position_on_hold_date=when(CanonicalField.POSITION_ON_HOLD_DATE),
        days=coerce(cell_for(row, header_map, CanonicalField.DAYS), "number"),
        remarks=text(CanonicalField.REMARKS),
        cvs_shared_dates=list(shared.dates),
        first_cv_shared_date=shared.first_date,
        last_cv_shared_date=shared.last_date,
        cvs_shared_count=shared.count,
        days_to_first_cv=days_between(requisition_date, shared.first_date),
    )


def normalize_row(row: Sequence[Any], header_map: HeaderMap, row_index: int) -> NormalizedRecord | None:
    """Normalize one data row; None means the row was discarded as blank.

    ``row_index`` is zero-based over the data rows, so the first data row
    reports ``rowNumber`` 2 (the spreadsheet row under the header).
    """
    if row is None or is_blank_row(row):
        return None
    record = build_record(row, header_map, row_index)
    return record if record.is_retained() else None


def normalize_rows(rows: Iterable[Sequence[Any]], header_map: HeaderMap) -> list[NormalizedRecord]:
    records = []
    for row_index, row in enumerate(rows):
        record = normalize_row(row, header_map, row_index)
        if record is not None:
            records.append(record)
    return records
