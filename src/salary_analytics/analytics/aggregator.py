"""Dimensional aggregation over the record store.

Fetches count/average plus every tracked single-valued dimension in one
combined round, and the exploded technology groups separately. `fetch_all`
runs both concurrently and fails fast.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait

from salary_analytics.errors import AnalyticsCancelled
from salary_analytics.models import AnalyticsFilter, CategoryStat, CombinedStats
from salary_analytics.store.base import RecordStore

log = logging.getLogger(__name__)

# Snapshot key -> stored field
TRACKED_DIMENSIONS: dict[str, str] = {
    "role": "position",
    "level": "level",
    "experience": "experience",
    "company": "company",
    "city": "city",
    "company_size": "company_size",
    "work_type": "work_type",
    "currency": "currency",
}

CANCEL_POLL_SECONDS = 0.05


class DimensionalAggregator:
    """Coordinates the two independent store fetches behind one snapshot.

    Args:
        store: Record store to query.
        executor: Optional shared thread pool. Without one, every `fetch_all`
            call runs on its own two-worker pool so concurrent requests never
            queue behind each other.
    """

    def __init__(self, store: RecordStore, executor: ThreadPoolExecutor | None = None) -> None:
        self._store = store
        self._executor = executor

    def fetch_combined(self, flt: AnalyticsFilter | None) -> CombinedStats:
        return self._store.combined(flt, TRACKED_DIMENSIONS)

    def fetch_technology(self, flt: AnalyticsFilter | None) -> list[CategoryStat]:
        return self._store.group_by_technology(flt)

    def fetch_all(
        self,
        flt: AnalyticsFilter | None,
        cancel_event: threading.Event | None = None,
    ) -> tuple[CombinedStats, list[CategoryStat]]:
        """Run both fetches concurrently and return ``(combined, technology)``.

        The first failure cancels the sibling and is re-raised; setting
        `cancel_event` abandons both and raises `AnalyticsCancelled`.
        """
        executor = self._executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="analytics-fetch")
        try:
            return self._gather(executor, flt, cancel_event)
        finally:
            if executor is not self._executor:
                executor.shutdown(wait=False, cancel_futures=True)

    def _gather(
        self,
        executor: ThreadPoolExecutor,
        flt: AnalyticsFilter | None,
        cancel_event: threading.Event | None,
    ) -> tuple[CombinedStats, list[CategoryStat]]:
        combined_future = executor.submit(self.fetch_combined, flt)
        tech_future = executor.submit(self.fetch_technology, flt)
        futures: list[Future] = [combined_future, tech_future]

        try:
            pending = set(futures)
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    raise AnalyticsCancelled("analytics computation cancelled by caller")
                timeout = CANCEL_POLL_SECONDS if cancel_event is not None else None
                done, pending = wait(pending, timeout=timeout, return_when=FIRST_EXCEPTION)
                for future in done:
                    exc = future.exception()
                    if exc is not None:
                        log.error("Analytics fetch failed: %s", exc)
                        raise exc
        except BaseException:
            for future in futures:
                future.cancel()
            raise

        return combined_future.result(), tech_future.result()
