"""
engine.py: raw cell grid in, normalized recruitment dataset out.

    result = parse_recruitment_grid(grid)
    if result.success:
        records = result.data        # list[NormalizedRecord]
        summary = result.summary     # DatasetSummary
    else:
        print(result.error)

Row 0 of the grid is the header row. The engine never raises: empty input and
malformed grids come back as a failed ParseResult carrying a readable message.
"""

from __future__ import annotations

import json
from collections.abc import Sequence as SequenceABC
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from recruit_sheet.fields import KEY_FIELDS, CanonicalField, build_alias_table
from recruit_sheet.headers import HeaderMap, resolve_headers
from recruit_sheet.normalizer import NormalizedRecord, normalize_rows
from recruit_sheet.summary import DatasetSummary, summarize

EMPTY_GRID_MESSAGE = "Spreadsheet is empty"


@dataclass
class ParseResult:
    success: bool
    data: list[NormalizedRecord] | None = None
    summary: DatasetSummary | None = None
    error: str | None = None
    header_map: HeaderMap | None = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, message: str) -> "ParseResult":
        return cls(success=False, error=message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "data": [record.to_dict() for record in self.data] if self.data is not None else None,
            "summary": self.summary.to_dict() if self.summary is not None else None,
        }
        if self.error is not None:
            payload["error"] = self.error
        payload["headerMapping"] = self.header_map.to_dict() if self.header_map is not None else {}
        payload["warnings"] = list(self.warnings)
        return payload


def _is_row(value: Any) -> bool:
    return isinstance(value, SequenceABC) and not isinstance(value, (str, bytes, bytearray))


def _materialize(grid: Any) -> list[Sequence[Any]]:
    if grid is None:
        return []
    if isinstance(grid, (str, bytes, bytearray)) or not isinstance(grid, Iterable):
        raise ValueError(f"Malformed grid: expected a sequence of rows, got {type(grid).__name__}")
    rows = list(grid)
    for index, row in enumerate(rows):
        if row is not None and not _is_row(row):
            raise ValueError(
                f"Malformed grid: row {index + 1} is {type(row).__name__}, expected a sequence of cells"
            )
    return rows


def header_warnings(header_map: HeaderMap) -> list[str]:
    warnings: list[str] = []
    if not len(header_map):
        warnings.append("No recognised recruitment columns in the header row")
    missing_keys = [canonical.value for canonical in KEY_FIELDS if canonical not in header_map]
    if len(header_map) and missing_keys:
        warnings.append(f"Key columns not found: {', '.join(missing_keys)}")
    if header_map.unmatched:
        labels = ", ".join(f"'{label}'" for _column, label in header_map.unmatched)
        warnings.append(f"Ignored unrecognised columns: {labels}")
    return warnings


def parse_recruitment_grid(
    grid: Iterable[Sequence[Any]] | None,
    aliases: Mapping[str | CanonicalField, Iterable[str]] | None = None,
) -> ParseResult:
    """Resolve headers, normalize every data row and summarize the dataset."""
    try:
        rows = _materialize(grid)
        if not rows:
            return ParseResult.failure(EMPTY_GRID_MESSAGE)

        header_row = rows[0] or []
        header_map = resolve_headers(header_row, build_alias_table(aliases) if aliases else None)
        records = normalize_rows(rows[1:], header_map)

        return ParseResult(
            success=True,
            data=records,
            summary=summarize(records),
            header_map=header_map,
            warnings=header_warnings(header_map),
        )
    except Exception as exc:
        return ParseResult.failure(str(exc) or exc.__class__.__name__)


def dumps(result: ParseResult) -> str:
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
