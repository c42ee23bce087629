"""In-memory record store over a pandas DataFrame.

The frame is a point-in-time snapshot of salary records (one row per record,
columns named after `SalaryRecord` fields). Technology statistics explode the
multi-valued `tech_stack` column first and then reuse the same grouping as
single-valued dimensions.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

import pandas as pd

from salary_analytics.models import (
    AnalyticsFilter,
    CategoryStat,
    CombinedStats,
    JobChangeRecord,
    RaiseTimelineRecord,
    SalaryRecord,
)
from salary_analytics.store.base import SALARY_FIELD, TECH_FIELD, filter_fields

RECORD_COLUMNS = list(SalaryRecord.model_fields)


def none_if_na(value: Any) -> Any:
    if value is None:
        return None
    return None if pd.isna(value) else value


def _has_raises(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0


def group_frame(pdf: pd.DataFrame, field: str) -> list[CategoryStat]:
    """Group rows by `field` and summarise `salary_min` per value.

    Rows whose field is missing or empty are excluded. Groups come back sorted
    by category.
    """
    if pdf.empty or field not in pdf.columns:
        return []

    values = pdf[field]
    subset = pdf[values.notna() & (values.astype(str) != "")]
    if subset.empty:
        return []

    grouped = (
        subset.assign(**{SALARY_FIELD: pd.to_numeric(subset[SALARY_FIELD])})
        .groupby(field, sort=True)[SALARY_FIELD]
        .agg(["mean", "min", "max", "count"])
    )
    return [
        CategoryStat(
            category=str(category),
            average=float(row["mean"]),
            min=float(row["min"]),
            max=float(row["max"]),
            count=int(row["count"]),
        )
        for category, row in grouped.iterrows()
    ]


def explode_tags(pdf: pd.DataFrame, field: str = TECH_FIELD) -> pd.DataFrame:
    """Return one row per (record, tag); records with no tags produce a NaN row."""
    if pdf.empty or field not in pdf.columns:
        return pdf
    return pdf.explode(field, ignore_index=True)


class FrameRecordStore:
    """`RecordStore` over an in-memory DataFrame snapshot."""

    def __init__(self, pdf: pd.DataFrame) -> None:
        missing = [c for c in RECORD_COLUMNS if c not in pdf.columns]
        if missing:
            pdf = pdf.assign(**{c: None for c in missing})
        self._pdf = pdf.reset_index(drop=True)

    @classmethod
    def from_records(cls, records: Iterable[SalaryRecord]) -> "FrameRecordStore":
        rows = [r.model_dump() for r in records]
        return cls(pd.DataFrame(rows, columns=RECORD_COLUMNS))

    @property
    def frame(self) -> pd.DataFrame:
        return self._pdf

    def _filtered(self, flt: AnalyticsFilter | None) -> pd.DataFrame:
        pdf = self._pdf
        for field, value in filter_fields(flt).items():
            pdf = pdf[pdf[field] == value]
        return pdf

    def group_by_dimension(self, dimension: str, flt: AnalyticsFilter | None = None) -> list[CategoryStat]:
        return group_frame(self._filtered(flt), dimension)

    def group_by_technology(self, flt: AnalyticsFilter | None = None) -> list[CategoryStat]:
        return group_frame(explode_tags(self._filtered(flt)), TECH_FIELD)

    def count_and_average(self, flt: AnalyticsFilter | None = None) -> tuple[int, float]:
        pdf = self._filtered(flt)
        if pdf.empty:
            return 0, 0.0
        return len(pdf), float(pd.to_numeric(pdf[SALARY_FIELD]).mean())

    def combined(self, flt: AnalyticsFilter | None, dimensions: Mapping[str, str]) -> CombinedStats:
        pdf = self._filtered(flt)
        total = len(pdf)
        return CombinedStats(
            total_count=total,
            overall_average=float(pd.to_numeric(pdf[SALARY_FIELD]).mean()) if total else 0.0,
            by_dimension={key: group_frame(pdf, field) for key, field in dimensions.items()},
        )

    def _with_raises(self) -> pd.DataFrame:
        return self._pdf[self._pdf["raises"].map(_has_raises).astype(bool)]

    def records_with_raises(self) -> list[JobChangeRecord]:
        return [
            JobChangeRecord(
                salary_min=int(row["salary_min"]),
                salary_max=none_if_na(row["salary_max"]),
                raises=list(row["raises"]),
            )
            for row in self._with_raises().to_dict("records")
        ]

    def records_with_raise_timeline(self) -> list[RaiseTimelineRecord]:
        return [
            RaiseTimelineRecord(
                raises=list(row["raises"]),
                start_time=row["start_time"],
                end_time=none_if_na(row["end_time"]),
            )
            for row in self._with_raises().to_dict("records")
        ]

    def distinct_values(self, dimension: str) -> list[str]:
        if dimension not in self._pdf.columns:
            return []
        values = self._pdf[dimension].dropna().astype(str)
        return sorted(v for v in values.unique() if v != "")
