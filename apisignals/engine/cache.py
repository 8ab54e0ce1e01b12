"""
Compliance Cache — Memoized Compliance Results per Window.

Optional memoization for callers that re-evaluate the same SLA window on a
polling cadence. Entries are keyed by (sla_id, window_start, window_end) and
every hit carries the time the result was computed: the cache never decides
whether a result is fresh, the caller does.
"""

import threading
from datetime import datetime
from typing import Callable, Optional

import structlog
from pydantic import BaseModel

from apisignals.errors import MissingConfigurationError
from apisignals.models.sla import ComplianceResult
from apisignals.models.timestamps import to_naive_utc

logger = structlog.get_logger()

CacheKey = tuple[str, datetime, datetime]


def cache_key(sla_id: str, window_start: datetime, window_end: datetime) -> CacheKey:
    """Key with window bounds normalized to naive UTC."""
    return (sla_id, to_naive_utc(window_start), to_naive_utc(window_end))


class CachedCompliance(BaseModel):
    """A cached result and when it was computed."""

    result: ComplianceResult
    computed_at: datetime


class ComplianceCache:
    """
    Thread-safe store of ComplianceResults keyed by SLA and window bounds.

    Attributes:
        max_entries: Oldest entries are evicted beyond this size

    Example:
        >>> cache = ComplianceCache()
        >>> cached = cache.get_or_compute(
        ...     sla.id, start, end, lambda: evaluator.evaluate_window(sla, window)
        ... )
        >>> print(cached.computed_at)
    """

    def __init__(self, max_entries: int = 1024):
        self.max_entries = max_entries
        self._entries: dict[CacheKey, CachedCompliance] = {}
        self._lock = threading.Lock()

    def get(
        self, sla_id: str, window_start: datetime, window_end: datetime
    ) -> Optional[CachedCompliance]:
        """Return the cached entry, or None."""
        with self._lock:
            return self._entries.get(cache_key(sla_id, window_start, window_end))

    def put(
        self,
        result: ComplianceResult,
        window_start: datetime,
        window_end: datetime,
        computed_at: Optional[datetime] = None,
    ) -> CachedCompliance:
        """Store a result under its SLA id and the given window bounds."""
        entry = CachedCompliance(
            result=result, computed_at=computed_at or result.evaluated_at
        )
        with self._lock:
            key = cache_key(result.sla_id, window_start, window_end)
            self._entries.pop(key, None)
            self._entries[key] = entry
            while len(self._entries) > self.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
        return entry

    def get_or_compute(
        self,
        sla_id: str,
        window_start: datetime,
        window_end: datetime,
        compute: Callable[[], ComplianceResult],
    ) -> CachedCompliance:
        """
        Return the cached entry or compute, store and return a new one.

        Errors raised by ``compute`` propagate and nothing is stored.

        Raises:
            MissingConfigurationError: If ``compute`` returns a result for a
                different SLA than ``sla_id``; nothing is stored
        """
        cached = self.get(sla_id, window_start, window_end)
        if cached is not None:
            logger.debug("compliance_cache_hit", sla_id=sla_id)
            return cached
        result = compute()
        if result.sla_id != sla_id:
            raise MissingConfigurationError(
                f"Computed result belongs to SLA {result.sla_id!r}, expected {sla_id!r}"
            )
        return self.put(result, window_start, window_end)

    def invalidate(
        self,
        sla_id: str,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> int:
        """
        Drop entries for an SLA, optionally only one window.

        Returns:
            Number of entries removed
        """
        with self._lock:
            keys = [
                key
                for key in self._entries
                if key[0] == sla_id
                and (window_start is None or key[1] == to_naive_utc(window_start))
                and (window_end is None or key[2] == to_naive_utc(window_end))
            ]
            for key in keys:
                del self._entries[key]
        if keys:
            logger.info("compliance_cache_invalidated", sla_id=sla_id, removed=len(keys))
        return len(keys)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
