"""Statistics composition.

Functions in this module turn already-fetched grouped statistics into the
`AnalyticsSnapshot` returned to callers. They are pure and synchronous.

Expectations:
- Input: `CombinedStats` whose `by_dimension` is keyed like
  `TRACKED_DIMENSIONS`, plus technology `CategoryStat` rows.
- Output: keyed average/min/max maps, top-N charts and the salary-range
  histogram for the requested currency.
"""
from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import NamedTuple, Sequence

from salary_analytics.analytics.career import round_half_up
from salary_analytics.models import AnalyticsSnapshot, CategoryStat, ChartDataPoint, CombinedStats

TOP_N = 10


class SalaryBucket(NamedTuple):
    low: float
    high: float
    label: str


TRY_BUCKETS: tuple[SalaryBucket, ...] = (
    SalaryBucket(0, 50_000, "Under ₺50K"),
    SalaryBucket(50_000, 100_000, "₺50K - ₺100K"),
    SalaryBucket(100_000, 200_000, "₺100K - ₺200K"),
    SalaryBucket(200_000, 300_000, "₺200K - ₺300K"),
    SalaryBucket(300_000, 500_000, "₺300K - ₺500K"),
    SalaryBucket(500_000, math.inf, "₺500K+"),
)

DEFAULT_BUCKETS: tuple[SalaryBucket, ...] = (
    SalaryBucket(0, 50_000, "Under $50K"),
    SalaryBucket(50_000, 75_000, "$50K - $75K"),
    SalaryBucket(75_000, 100_000, "$75K - $100K"),
    SalaryBucket(100_000, 150_000, "$100K - $150K"),
    SalaryBucket(150_000, 200_000, "$150K - $200K"),
    SalaryBucket(200_000, math.inf, "$200K+"),
)


# =========================================================
# MAPS + RANKINGS
# =========================================================

def category_maps(
    stats: Sequence[CategoryStat],
) -> tuple[dict[str, float], dict[str, float], dict[str, float]]:
    """Return ``(average, min, max)`` maps keyed by category."""
    averages = {s.category: s.average for s in stats}
    minimums = {s.category: s.min for s in stats}
    maximums = {s.category: s.max for s in stats}
    return averages, minimums, maximums


def top_n(stats: Sequence[CategoryStat], n: int = TOP_N) -> list[ChartDataPoint]:
    """Return the `n` categories with the highest average salary.

    The sort is stable, so categories with equal averages keep input order.
    Values are the averages rounded half-up to whole units.
    """
    ranked = sorted(stats, key=lambda s: s.average, reverse=True)[: max(n, 0)]
    return [
        ChartDataPoint(name=s.category, value=int(round_half_up(s.average, 0)), count=s.count)
        for s in ranked
    ]


# =========================================================
# SALARY RANGES
# =========================================================

def buckets_for(currency: str | None) -> tuple[SalaryBucket, ...]:
    """Return the bucket set for a currency; only TRY differs from the default."""
    return TRY_BUCKETS if (currency or "").upper() == "TRY" else DEFAULT_BUCKETS


def salary_range_histogram(
    role_stats: Sequence[CategoryStat],
    currency: str | None,
) -> list[ChartDataPoint]:
    """Count records per salary range, placing each role by its average salary.

    A role's whole `count` lands in the bucket containing its average, so this
    approximates a per-record histogram rather than computing one.

    Args:
        role_stats: Grouped statistics per role.
        currency: Currency whose bucket set and labels are used.

    Returns:
        One data point per bucket in ascending order, zero counts included.
    """
    points: list[ChartDataPoint] = []
    for bucket in buckets_for(currency):
        total = sum(s.count for s in role_stats if bucket.low <= s.average < bucket.high)
        points.append(ChartDataPoint(name=bucket.label, value=total))
    return points


# =========================================================
# SNAPSHOT
# =========================================================

def compose_snapshot(
    combined: CombinedStats,
    tech_stats: Sequence[CategoryStat],
    currency: str | None,
    now: datetime | None = None,
) -> AnalyticsSnapshot:
    """Assemble the full analytics snapshot from one coherent fetch.

    Args:
        combined: Count, overall average and per-dimension groups.
        tech_stats: Groups over the exploded technology tags.
        currency: Currency the histogram buckets are chosen for.
        now: Timestamp recorded as `last_updated` (defaults to UTC now).
    """
    groups = dict(combined.by_dimension)
    groups["tech"] = list(tech_stats)

    maps: dict[str, dict[str, float]] = {}
    for key, stats in groups.items():
        if f"average_salary_by_{key}" not in AnalyticsSnapshot.model_fields:
            continue
        averages, minimums, maximums = category_maps(stats)
        maps[f"average_salary_by_{key}"] = averages
        maps[f"min_salary_by_{key}"] = minimums
        maps[f"max_salary_by_{key}"] = maximums

    role_stats = groups.get("role", [])
    return AnalyticsSnapshot(
        total_entries=combined.total_count,
        average_salary=combined.overall_average,
        top_paying_roles=top_n(role_stats, TOP_N),
        top_paying_techs=top_n(groups["tech"], TOP_N),
        salary_ranges=salary_range_histogram(role_stats, currency),
        last_updated=now or datetime.now(timezone.utc),
        **maps,
    )
