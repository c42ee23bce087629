"""Analytics engine.

This package turns grouped record-store results into analytics snapshots
(per-dimension maps, top-paying charts, salary-range histograms), computes
career statistics from raise histories, and caches both behind
`AnalyticsService`.
"""
from __future__ import annotations

from salary_analytics.analytics.aggregator import TRACKED_DIMENSIONS, DimensionalAggregator
from salary_analytics.analytics.cache import CAREER_CACHE_KEY, TTLCache, analytics_cache_key
from salary_analytics.analytics.service import AnalyticsService

__all__ = [
    "AnalyticsService",
    "CAREER_CACHE_KEY",
    "DimensionalAggregator",
    "TRACKED_DIMENSIONS",
    "TTLCache",
    "analytics_cache_key",
]
