"""Analytics facade: cache lookup, concurrent fetch, composition."""
from __future__ import annotations

import logging
import threading
from typing import Any

from salary_analytics.analytics.aggregator import DimensionalAggregator
from salary_analytics.analytics.cache import CAREER_CACHE_KEY, TTLCache, analytics_cache_key
from salary_analytics.analytics.career import career_snapshot
from salary_analytics.analytics.composer import compose_snapshot
from salary_analytics.config import Settings
from salary_analytics.models import AnalyticsFilter, AnalyticsSnapshot, CareerSnapshot
from salary_analytics.store.base import FILTER_FIELDS, RecordStore

log = logging.getLogger(__name__)

DEFAULT_CURRENCY = "TRY"


class AnalyticsService:
    """Public query operations over a record store.

    The caches are owned by whoever constructs them and are passed in; the
    service only reads and populates them. `close()` stops their sweeps.
    """

    def __init__(
        self,
        store: RecordStore,
        analytics_cache: TTLCache[str, AnalyticsSnapshot],
        career_cache: TTLCache[str, CareerSnapshot],
        *,
        default_currency: str = DEFAULT_CURRENCY,
        aggregator: DimensionalAggregator | None = None,
    ) -> None:
        self._store = store
        self._analytics_cache = analytics_cache
        self._career_cache = career_cache
        self._default_currency = default_currency
        self._aggregator = aggregator or DimensionalAggregator(store)

    @classmethod
    def from_settings(cls, settings: Settings, store: RecordStore) -> "AnalyticsService":
        """Build the service with both caches configured and their sweeps started."""
        caches: list[TTLCache[str, Any]] = [
            TTLCache(
                ttl=settings.cache_ttl_seconds,
                capacity=settings.cache_capacity,
                sweep_interval=settings.cache_sweep_seconds,
                name=name,
            )
            for name in ("analytics-cache", "career-cache")
        ]
        for cache in caches:
            cache.start()
        return cls(store, caches[0], caches[1], default_currency=settings.default_currency)

    def get_general_analytics(
        self,
        level: str = "",
        role: str = "",
        currency: str = "",
        cancel_event: threading.Event | None = None,
    ) -> AnalyticsSnapshot:
        """Return general analytics for the filter, computing on a cache miss.

        Args:
            level: Seniority constraint; empty means any.
            role: Role constraint; empty means any.
            currency: ISO currency code, case-insensitive; empty means the
                default currency.
            cancel_event: Set by the caller to abandon the computation.

        Raises:
            StoreError: the record store failed.
            AnalyticsCancelled: `cancel_event` was set before completion.
        """
        currency = (currency.strip() or self._default_currency).upper()
        key = analytics_cache_key(level, role, currency)

        cached = self._analytics_cache.get(key)
        if cached is not None:
            log.debug("analytics cache hit level=%r role=%r currency=%s", level, role, currency)
            return cached

        log.info("Computing analytics level=%r role=%r currency=%s", level, role, currency)
        flt = AnalyticsFilter(role=role or None, level=level or None, currency=currency)
        combined, tech_stats = self._aggregator.fetch_all(flt, cancel_event=cancel_event)
        snapshot = compose_snapshot(combined, tech_stats, currency)

        if cancel_event is not None and cancel_event.is_set():
            log.info("Analytics computation cancelled; result not cached")
        else:
            self._analytics_cache.set(key, snapshot)
        return snapshot

    def get_career_analytics(self) -> CareerSnapshot:
        """Return job-change and raise-cadence statistics, computing on a cache miss."""
        cached = self._career_cache.get(CAREER_CACHE_KEY)
        if cached is not None:
            log.debug("career cache hit")
            return cached

        log.info("Computing career analytics")
        job_records = self._store.records_with_raises()
        timeline_records = self._store.records_with_raise_timeline()
        snapshot = career_snapshot(job_records, timeline_records)

        self._career_cache.set(CAREER_CACHE_KEY, snapshot)
        return snapshot

    def get_available_roles(self) -> list[str]:
        return self._store.distinct_values(FILTER_FIELDS["role"])

    def get_available_levels(self) -> list[str]:
        return self._store.distinct_values(FILTER_FIELDS["level"])

    def close(self) -> None:
        self._analytics_cache.stop()
        self._career_cache.stop()

    def __enter__(self) -> "AnalyticsService":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
