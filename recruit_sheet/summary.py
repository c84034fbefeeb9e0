from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from recruit_sheet.normalizer import NormalizedRecord


@dataclass(frozen=True)
class DatasetSummary:
    """Totals over the retained records. Averages are unrounded; display code rounds them."""

    total_records: int = 0
    total_positions: int = 0
    total_cvs: int = 0
    unique_recruiters: int = 0
    unique_clients: int = 0
    positions_on_hold: int = 0
    average_days: float = 0
    records_with_cvs_shared: int = 0
    total_cvs_shared: int = 0
    average_days_to_first_cv: float = 0
    average_cvs_shared_per_record: float = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalRecords": self.total_records,
            "totalPositions": self.total_positions,
            "totalCVs": self.total_cvs,
            "uniqueRecruiters": self.unique_recruiters,
            "uniqueClients": self.unique_clients,
            "positionsOnHold": self.positions_on_hold,
            "averageDays": self.average_days,
            "recordsWithCVsShared": self.records_with_cvs_shared,
            "totalCVsShared": self.total_cvs_shared,
            "averageDaysToFirstCV": self.average_days_to_first_cv,
            "averageCVsSharedPerRecord": self.average_cvs_shared_per_record,
        }


def average(values: Sequence[float]) -> float:
    """Mean of ``values``; an empty sequence averages to 0, never NaN or None."""
    if not values:
        return 0
    return sum(values) / len(values)


def summarize(records: Iterable[NormalizedRecord]) -> DatasetSummary:
    records = list(records)
    with_cvs_shared = [record for record in records if record.cvs_shared_count > 0]
    return DatasetSummary(
        total_records=len(records),
        total_positions=sum(record.no_of_position or 0 for record in records),
        total_cvs=sum(record.number_of_cvs or 0 for record in records),
        unique_recruiters=len({record.recruiter for record in records if record.recruiter}),
        unique_clients=len({record.client_name for record in records if record.client_name}),
        positions_on_hold=sum(1 for record in records if record.position_on_hold_date is not None),
        average_days=average([record.days for record in records if record.days is not None]),
        records_with_cvs_shared=len(with_cvs_shared),
        total_cvs_shared=sum(record.cvs_shared_count for record in records),
        average_days_to_first_cv=average(
            [record.days_to_first_cv for record in records if record.days_to_first_cv is not None]
        ),
        average_cvs_shared_per_record=average([record.cvs_shared_count for record in with_cvs_shared]),
    )
