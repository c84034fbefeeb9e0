"""Canonical recruitment fields and the header aliases that identify them."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Mapping


class CanonicalField(Enum):
    RECRUITER = "recruiter"
    BDM = "bdm"
    CLIENT_NAME = "clientName"
    POSITION_NAME = "positionName"
    NO_OF_POSITION = "noOfPosition"
    REQUISITION_LOGGED_DATE = "requisitionLoggedDate"
    NUMBER_OF_CVS = "numberOfCVs"
    POSITION_ON_HOLD_DATE = "positionOnHoldDate"
    DAYS = "days"
    REMARKS = "remarks"
    CVS_SHARED_DATE = "cvsSharedDate"
    FIRST_CV_SHARED = "firstCVShared"
    LAST_CV_SHARED = "lastCVShared"
    CVS_SHARED_COUNT = "cvsSharedCount"

    @classmethod
    def from_name(cls, name: str) -> "CanonicalField":
        """Look up a field by its camelCase value or its enum member name."""
        for field in cls:
            if name == field.value or name.upper() == field.name:
                return field
        raise ValueError(f"Unknown field '{name}'. Known fields: {[field.value for field in cls]}")


FIELD_ORDER = tuple(CanonicalField)

# Order in which fields claim header cells. Fields whose aliases contain a
# broader field's alias ("position on hold date" vs "position") come first.
RESOLUTION_ORDER = (
    CanonicalField.POSITION_ON_HOLD_DATE,
    CanonicalField.NO_OF_POSITION,
    CanonicalField.REQUISITION_LOGGED_DATE,
    CanonicalField.NUMBER_OF_CVS,
    CanonicalField.POSITION_NAME,
    CanonicalField.RECRUITER,
    CanonicalField.BDM,
    CanonicalField.CLIENT_NAME,
    CanonicalField.DAYS,
    CanonicalField.REMARKS,
    CanonicalField.CVS_SHARED_DATE,
    CanonicalField.FIRST_CV_SHARED,
    CanonicalField.LAST_CV_SHARED,
    CanonicalField.CVS_SHARED_COUNT,
)

SHARED_DATE_FIELDS = (
    CanonicalField.CVS_SHARED_DATE,
    CanonicalField.FIRST_CV_SHARED,
    CanonicalField.LAST_CV_SHARED,
)

KEY_FIELDS = (
    CanonicalField.RECRUITER,
    CanonicalField.CLIENT_NAME,
    CanonicalField.POSITION_NAME,
)

HEADER_ALIASES: dict[CanonicalField, tuple[str, ...]] = {
    CanonicalField.RECRUITER: (
        "recruiter", "recruiter name", "recruiter_name", "recruitername",
    ),
    CanonicalField.BDM: (
        "bdm", "business development manager", "business_development_manager",
        "businessdevelopmentmanager",
    ),
    CanonicalField.CLIENT_NAME: (
        "client name", "client", "company name", "client_name", "company", "clientname",
    ),
    CanonicalField.POSITION_NAME: (
        "position name", "position", "job title", "role", "position_name", "positionname",
    ),
    CanonicalField.NO_OF_POSITION: (
        "no of position", "number of positions", "positions count", "position count",
        "no of positions", "noofposition",
    ),
    CanonicalField.REQUISITION_LOGGED_DATE: (
        "requisition logged date", "logged date", "req date", "start date",
        "requisition date", "requisitionloggeddate", "requisition_logged_date",
        "requisitiondate",
    ),
    CanonicalField.NUMBER_OF_CVS: (
        "number of cvs", "cvs", "cv count", "resumes", "number of cv", "cv_count",
        "numberofcvs", "number_of_cvs",
    ),
    CanonicalField.POSITION_ON_HOLD_DATE: (
        "position on hold date", "on hold date", "hold date", "position on hold",
        "onhold date", "on-hold date", "position hold date", "hold_date", "on hold",
        "position_on_hold_date", "positiononholddate",
    ),
    CanonicalField.DAYS: (
        "days", "duration", "days taken", "total_days", "totaldays",
    ),
    CanonicalField.REMARKS: (
        "remarks", "comments", "notes", "remark",
    ),
    CanonicalField.CVS_SHARED_DATE: (
        "cvs shared date", "cv shared date", "shared date", "cvs date", "cv date",
        "cv_shared_date", "cvs_shared_date", "cvsshareddate", "first cv shared",
        "last cv shared",
    ),
    CanonicalField.FIRST_CV_SHARED: (
        "first cv shared", "first cv", "first_cv_shared", "firstcvshared",
    ),
    CanonicalField.LAST_CV_SHARED: (
        "last cv shared", "last cv", "last_cv_shared", "lastcvshared",
    ),
    CanonicalField.CVS_SHARED_COUNT: (
        "cvs shared count", "cv shared count", "shared count", "cvs_shared_count",
        "cvssharedcount",
    ),
}


def build_alias_table(
    extra: Mapping[str | CanonicalField, Iterable[str]] | None = None,
) -> dict[CanonicalField, tuple[str, ...]]:
    """Return the canonical alias table with caller aliases appended per field.

    Extra aliases are tried after the built-in ones, so they never change how
    a spreadsheet that already resolves is read.
    """
    table = dict(HEADER_ALIASES)
    for key, aliases in (extra or {}).items():
        field = key if isinstance(key, CanonicalField) else CanonicalField.from_name(str(key))
        if isinstance(aliases, str):
            aliases = [aliases]
        cleaned = [str(alias).strip().lower() for alias in aliases]
        additions = tuple(
            alias for alias in dict.fromkeys(cleaned)
            if alias and alias not in table[field]
        )
        table[field] = table[field] + additions
    return table
