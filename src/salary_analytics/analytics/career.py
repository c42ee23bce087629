"""Career-progression statistics computed from raw raise histories.

Both calculations take the projections returned by the record store and are
pure: no I/O, no caching. Raises are used in stored order, which is treated
as chronological. Empty inputs give zero-valued results.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Sequence

from salary_analytics.models import (
    CareerSnapshot,
    JobChangeRecord,
    JobChangeStats,
    RaiseStats,
    RaiseTimelineRecord,
)

DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365
SECONDS_PER_DAY = 24 * 60 * 60


def round_half_up(value: float, digits: int = 2) -> float:
    """Round to `digits` decimals, halves away from zero.

    Negative values mirror positive ones: ``round_half_up(-2.345) == -2.35``.
    """
    scale = 10 ** digits
    rounded = math.floor(abs(value) * scale + 0.5) / scale
    return math.copysign(rounded, value) if rounded else 0.0


def median_months(values: Sequence[int]) -> int:
    """Median of whole-month intervals; even lengths use the truncated mean of the middle pair."""
    if not values:
        return 0
    ordered = sorted(values)
    n = len(ordered)
    if n % 2 == 1:
        return ordered[n // 2]
    return int((ordered[n // 2 - 1] + ordered[n // 2]) / 2)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _days_between(start: datetime, end: datetime) -> float:
    return (_as_utc(end) - _as_utc(start)).total_seconds() / SECONDS_PER_DAY


def reference_salary(record: JobChangeRecord) -> int:
    """Salary before the job change: midpoint of the reported range, or its minimum."""
    if record.salary_max is None:
        return record.salary_min
    return (record.salary_min + record.salary_max) // 2


def job_change_stats(records: Sequence[JobChangeRecord]) -> JobChangeStats:
    """Compare each record's latest raise against its reference salary.

    Returns:
        Average percentage increase over the records whose latest raise beats
        the reference, and the share of records (with at least one raise)
        that had such an increase.
    """
    qualifying = 0
    with_increase = 0
    total_increase = 0.0

    for record in records:
        if not record.raises:
            continue
        qualifying += 1
        initial = reference_salary(record)
        latest = record.raises[-1].new_salary
        if latest > initial:
            with_increase += 1
            total_increase += (latest - initial) / initial * 100

    if qualifying == 0:
        return JobChangeStats()

    average_increase = total_increase / with_increase if with_increase else 0.0
    return JobChangeStats(
        average_salary_increase=round_half_up(average_increase),
        percentage_with_increase=round_half_up(with_increase / qualifying * 100),
    )


def raise_cadence_stats(
    records: Sequence[RaiseTimelineRecord],
    now: datetime | None = None,
) -> RaiseStats:
    """Raise frequency, size and spacing across all employment records.

    Open-ended employments run until `now` (defaults to the current UTC time).
    Intervals are whole 30-day months, the first one measured from the
    employment start.
    """
    now = now or datetime.now(timezone.utc)
    total_years = 0.0
    total_raises = 0
    total_percentage = 0.0
    intervals: list[int] = []

    for record in records:
        if not record.raises:
            continue

        end = record.end_time or now
        total_years += _days_between(record.start_time, end) / DAYS_PER_YEAR
        total_raises += len(record.raises)

        previous = record.start_time
        for item in record.raises:
            total_percentage += item.percentage
            intervals.append(int(_days_between(previous, item.raise_date) / DAYS_PER_MONTH))
            previous = item.raise_date

    average_per_year = total_raises / total_years if total_years > 0 else 0.0
    average_percentage = total_percentage / total_raises if total_raises else 0.0

    return RaiseStats(
        average_per_year=round_half_up(average_per_year),
        average_percentage=round_half_up(average_percentage),
        median_time_between_raises=median_months(intervals),
    )


def career_snapshot(
    job_records: Sequence[JobChangeRecord],
    timeline_records: Sequence[RaiseTimelineRecord],
    now: datetime | None = None,
) -> CareerSnapshot:
    return CareerSnapshot(
        job_changes=job_change_stats(job_records),
        raises=raise_cadence_stats(timeline_records, now=now),
    )
