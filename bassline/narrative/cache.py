"""Short-lived in-memory cache of detailed track analysis.

Entries are keyed by track id and expire after ``cache_ttl_seconds``. When
the cache grows past ``cache_max_entries`` the oldest entries are evicted,
with some slack so eviction does not run on every insert.
"""

import logging
import time
from dataclasses import dataclass

from bassline.config import settings
from bassline.narrative.models import AnalysisData

logger = logging.getLogger(__name__)

_EVICTION_SLACK = 100


@dataclass
class _Entry:
    analysis: AnalysisData
    timestamp: float


@dataclass
class CacheStats:
    total_entries: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


class TrackAnalysisCache:
    """Per-process analysis cache keyed by track id."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        max_entries: int | None = None,
        clock=time.monotonic,
    ):
        self.ttl_seconds = settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self.max_entries = settings.cache_max_entries if max_entries is None else max_entries
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def _is_valid(self, entry: _Entry) -> bool:
        return self._clock() - entry.timestamp < self.ttl_seconds

    def get(self, track_id: str) -> AnalysisData | None:
        entry = self._entries.get(track_id)
        if entry is None:
            self._misses += 1
            logger.debug(f"Cache miss for {track_id}")
            return None
        if not self._is_valid(entry):
            del self._entries[track_id]
            self._misses += 1
            logger.debug(f"Cache expired for {track_id}")
            return None
        self._hits += 1
        logger.debug(f"Cache hit for {track_id}")
        return entry.analysis

    def put(self, track_id: str, analysis: AnalysisData) -> None:
        self._entries[track_id] = _Entry(analysis=analysis, timestamp=self._clock())
        if len(self._entries) > self.max_entries:
            self._evict_oldest()

    def _evict_oldest(self) -> None:
        n_remove = len(self._entries) - self.max_entries + _EVICTION_SLACK
        oldest = sorted(self._entries.items(), key=lambda kv: kv[1].timestamp)[:n_remove]
        for key, _ in oldest:
            del self._entries[key]
        logger.info(f"Evicted {len(oldest)} oldest cache entries")

    def cleanup_expired(self) -> int:
        """Drop expired entries and return how many were removed."""
        expired = [k for k, e in self._entries.items() if not self._is_valid(e)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info(f"Cleaned up {len(expired)} expired cache entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> CacheStats:
        return CacheStats(total_entries=len(self._entries), hits=self._hits, misses=self._misses)
