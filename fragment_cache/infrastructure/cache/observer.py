"""
Fragment Cache Observer

All side effects of fragment cache operations that are not caching
itself: structured logs, timing and counters. Backend failures swallowed
by the manager are reported here.

Metrics Tracked:
- Local hits, backend hits, misses
- Writes, expiries
- Backend errors by operation
"""

import time
from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fragment_cache.core.config.constants import LOG_KEY_MAX_LENGTH, CacheSource, Stage
from fragment_cache.core.exceptions import FragmentCacheError
from fragment_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


def _short(key: str) -> str:
    return key[:LOG_KEY_MAX_LENGTH]


class FragmentCacheObserver:
    """
    Tracks fragment cache metrics and logs operations.

    The manager calls record_* after each operation; counters are read
    back through get_stats().
    """

    def __init__(self, logger_instance=None):
        self._logger = logger_instance or logger

        self._hits_local = 0
        self._hits_backend = 0
        self._misses = 0
        self._writes = 0
        self._expiries = 0
        self._errors: Counter[str] = Counter()

    def record_read(self, source: CacheSource, key: str) -> None:
        """
        Record the outcome of a fragment read.

        STAGE-2.1: Local hit
        STAGE-2.2: Backend hit or miss
        """
        if source == CacheSource.LOCAL:
            self._hits_local += 1
            log_stage(self._logger, Stage.LOCAL_LOOKUP, "Local fragment hit", level="debug", cache_key=_short(key))
        elif source == CacheSource.BACKEND:
            self._hits_backend += 1
            log_stage(self._logger, Stage.BACKEND_LOOKUP, "Backend fragment hit", level="debug", cache_key=_short(key))
        else:
            self._misses += 1
            log_stage(self._logger, Stage.BACKEND_LOOKUP, "Fragment miss", level="debug", cache_key=_short(key))

    def record_write(self, key: str, composite: bool) -> None:
        """STAGE-2.3: Fragment written to both tiers."""
        self._writes += 1
        log_stage(
            self._logger,
            Stage.FRAGMENT_WRITE,
            "Cached fragment",
            level="debug",
            cache_key=_short(key),
            composite=composite,
        )

    def record_expire(self, key: str, pattern: bool, deleted: int | None = None) -> None:
        """STAGE-2.4: Fragment(s) expired."""
        self._expiries += 1
        message = "Expired fragments matching" if pattern else "Expired fragment"
        log_stage(self._logger, Stage.FRAGMENT_EXPIRE, message, cache_key=_short(key), deleted=deleted)

    def record_error(self, operation: str, key: str, error: FragmentCacheError) -> None:
        """
        Report a backend failure the manager downgraded to a miss/no-op.

        The error never reaches the caller; this log line and the counter
        are its only trace.
        """
        self._errors[operation] += 1
        self._logger.warning(
            "Fragment backend operation failed",
            stage=Stage.BACKEND.value,
            operation=operation,
            cache_key=_short(key),
            **error.to_dict(),
        )

    @contextmanager
    def track(self, operation: str, key: str) -> Iterator[None]:
        """Log how long an operation took."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self._logger.debug(
                "Fragment operation timed",
                operation=operation,
                cache_key=_short(key),
                duration_ms=round((time.perf_counter() - start) * 1000, 3),
            )

    def get_stats(self) -> dict[str, Any]:
        """
        Get fragment cache statistics.

        Returns:
            Dict with hit/miss counts, hit rates and error counts
        """
        total = self._hits_local + self._hits_backend + self._misses
        hit_rate = (self._hits_local + self._hits_backend) / total if total > 0 else 0.0

        return {
            "local_hits": self._hits_local,
            "backend_hits": self._hits_backend,
            "misses": self._misses,
            "total_reads": total,
            "hit_rate": round(hit_rate, 3),
            "local_hit_rate": round(self._hits_local / total, 3) if total > 0 else 0.0,
            "writes": self._writes,
            "expiries": self._expiries,
            "backend_errors": dict(self._errors),
        }
