"""Time- and capacity-bounded result cache.

One `TTLCache` instance fronts general analytics (keyed by a digest of the
filter) and another fronts career analytics (single constant key). Entries
expire a fixed time after insertion; the oldest-inserted entry is evicted when
a new key arrives at capacity. A daemon thread sweeps expired entries so stale
values that are never read again do not pile up.
"""
from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, TypeVar

log = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_TTL_SECONDS = 600.0
DEFAULT_CAPACITY = 100
DEFAULT_SWEEP_SECONDS = 60.0

CAREER_CACHE_KEY = "career_analytics"


def analytics_cache_key(level: str, role: str, currency: str) -> str:
    """Deterministic digest of a general-analytics filter."""
    raw = f"analytics:{level}:{role}:{currency}"
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[K, V]):
    """Thread-safe key/value cache with per-entry expiry.

    Args:
        ttl: Seconds an entry stays valid after it is written.
        capacity: Maximum number of live entries.
        sweep_interval: Seconds between background sweeps once started.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        capacity: int = DEFAULT_CAPACITY,
        sweep_interval: float = DEFAULT_SWEEP_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.ttl = ttl
        self.capacity = capacity
        self.sweep_interval = sweep_interval
        self.name = name
        self._clock = clock
        self._entries: OrderedDict[K, CacheEntry[V]] = OrderedDict()
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            entry = self._entries.get(key)  # type: ignore[arg-type]
            return entry is not None and entry.expires_at > self._clock()

    def get(self, key: K) -> V | None:
        """Return the live value for `key`, or ``None`` when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: K, value: V) -> None:
        """Insert or replace `key` with a fresh expiry."""
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                log.debug("%s full, evicted %s", self.name, evicted)
            self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + self.ttl)

    def delete(self, key: K) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Remove every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if e.expires_at <= now]
            for key in expired:
                del self._entries[key]
        if expired:
            log.debug("%s sweep removed %d expired entries", self.name, len(expired))
        return len(expired)

    # -------------------------
    # Background sweep
    # -------------------------
    def _run(self) -> None:
        while not self._stop.wait(self.sweep_interval):
            self.sweep()

    def start(self) -> None:
        """Start the background sweep thread (no-op if already running)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=f"{self.name}-sweep", daemon=True)
        self._thread.start()
        log.debug("%s sweep started (every %.1fs)", self.name, self.sweep_interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the sweep thread to exit and wait for it."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def __enter__(self) -> "TTLCache[K, V]":
        self.start()
        return self

    def __exit__(self, *exc: object) -> None:
        self.stop()
