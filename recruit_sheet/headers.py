"""
headers.py: map a spreadsheet's literal header row onto the canonical fields.

Each header label is normalised (lowercase, punctuation dropped, whitespace
collapsed) and tested against every field's aliases in three tiers:

  exact     normalised label == normalised alias
  partial   one contains the other (aliases longer than 3 characters)
  compound  same as partial with all whitespace removed from both sides

A label is tried tier by tier, and inside a tier field by field in
RESOLUTION_ORDER, where the more specific fields (on-hold date, position count)
come before position name. Columns are scanned left to right; the first column to claim a field
keeps it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Sequence

from recruit_sheet.cells import stringify
from recruit_sheet.fields import FIELD_ORDER, HEADER_ALIASES, RESOLUTION_ORDER, CanonicalField

MATCH_TIERS = ("exact", "partial", "compound")
MIN_FUZZY_ALIAS_LENGTH = 4

NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
WHITESPACE_RE = re.compile(r"\s+")


def normalize_header(value: Any) -> str:
    text = stringify(value).lower()
    text = NON_ALNUM_RE.sub("", text)
    return WHITESPACE_RE.sub(" ", text).strip()


def _compact(text: str) -> str:
    return WHITESPACE_RE.sub("", text)


class HeaderMap:
    """Column index per canonical field; at most one column per field."""

    def __init__(self) -> None:
        self._columns: dict[CanonicalField, int] = {}
        self.unmatched: list[tuple[int, str]] = []

    def assign(self, canonical: CanonicalField, column: int) -> bool:
        if canonical in self._columns:
            return False
        self._columns[canonical] = column
        return True

    def get(self, canonical: CanonicalField) -> int | None:
        return self._columns.get(canonical)

    def __contains__(self, canonical: object) -> bool:
        return canonical in self._columns

    def __iter__(self) -> Iterator[CanonicalField]:
        return (canonical for canonical in FIELD_ORDER if canonical in self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def items(self) -> list[tuple[CanonicalField, int]]:
        return [(canonical, self._columns[canonical]) for canonical in self]

    def missing(self) -> list[CanonicalField]:
        return [canonical for canonical in FIELD_ORDER if canonical not in self._columns]

    def to_dict(self) -> dict[str, int]:
        return {canonical.value: column for canonical, column in self.items()}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMap):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"HeaderMap({self.to_dict()!r})"


@dataclass
class HeaderMatch:
    column: int
    label: str
    normalized: str
    field: CanonicalField | None = None
    tier: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "label": self.label,
            "normalized": self.normalized,
            "field": self.field.value if self.field else None,
            "tier": self.tier,
        }


class _PreparedAliases:
    def __init__(self) -> None:
        self.exact: dict[CanonicalField, list[str]] = {}
        self.fuzzy: dict[CanonicalField, list[str]] = {}


def _prepare(aliases: Mapping[CanonicalField, Sequence[str]]) -> _PreparedAliases:
    prepared = _PreparedAliases()
    for canonical in RESOLUTION_ORDER:
        normalized = [normalize_header(alias) for alias in aliases.get(canonical, ())]
        normalized = [alias for alias in dict.fromkeys(normalized) if alias]
        prepared.exact[canonical] = normalized
        prepared.fuzzy[canonical] = [alias for alias in normalized if len(alias) >= MIN_FUZZY_ALIAS_LENGTH]
    return prepared


def _tier_hit(tier: str, header: str, alias: str) -> bool:
    if tier == "exact":
        return header == alias
    if tier == "partial":
        return alias in header or header in alias
    compact_header, compact_alias = _compact(header), _compact(alias)
    return compact_alias in compact_header or compact_header in compact_alias


def _match_label(
    normalized: str,
    prepared: _PreparedAliases,
    header_map: HeaderMap,
) -> tuple[CanonicalField, str] | None:
    for tier in MATCH_TIERS:
        candidates = prepared.exact if tier == "exact" else prepared.fuzzy
        for canonical in RESOLUTION_ORDER:
            if canonical in header_map:
                continue
            if any(_tier_hit(tier, normalized, alias) for alias in candidates[canonical]):
                return canonical, tier
    return None


def explain_headers(
    header_row: Sequence[Any],
    aliases: Mapping[CanonicalField, Sequence[str]] | None = None,
) -> tuple[HeaderMap, list[HeaderMatch]]:
    """Resolve ``header_row`` and report how every column was (or was not) matched."""
    prepared = _prepare(aliases if aliases is not None else HEADER_ALIASES)
    header_map = HeaderMap()
    matches: list[HeaderMatch] = []

    for column, raw in enumerate(header_row):
        label = stringify(raw).strip()
        normalized = normalize_header(raw)
        match = HeaderMatch(column=column, label=label, normalized=normalized)
        matches.append(match)
        if not normalized:
            continue
        hit = _match_label(normalized, prepared, header_map)
        if hit is None:
            header_map.unmatched.append((column, label))
            continue
        match.field, match.tier = hit
        header_map.assign(match.field, column)

    return header_map, matches


def resolve_headers(
    header_row: Sequence[Any],
    aliases: Mapping[CanonicalField, Sequence[str]] | None = None,
) -> HeaderMap:
    header_map, _ = explain_headers(header_row, aliases)
    return header_map
