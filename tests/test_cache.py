"""Tests for the in-memory track analysis cache."""

import pytest

from bassline.narrative.cache import TrackAnalysisCache
from bassline.narrative.models import AnalysisData


def test_hit_and_miss_counting(clock):
    """Stats should count hits and misses."""
    cache = TrackAnalysisCache(clock=clock)
    analysis = AnalysisData(duration=180.0)

    assert cache.get("abc") is None
    cache.put("abc", analysis)
    assert cache.get("abc") is analysis

    stats = cache.stats()
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.total_entries == 1
    assert stats.hit_rate == pytest.approx(0.5)


def test_entries_expire(clock):
    """Entries older than the TTL should read as misses."""
    cache = TrackAnalysisCache(ttl_seconds=60.0, clock=clock)
    cache.put("abc", AnalysisData(duration=180.0))

    clock.advance(59.0)
    assert cache.get("abc") is not None
    clock.advance(2.0)
    assert cache.get("abc") is None
    assert len(cache) == 0


def test_cleanup_expired(clock):
    """cleanup_expired should drop only stale entries."""
    cache = TrackAnalysisCache(ttl_seconds=60.0, clock=clock)
    cache.put("old", AnalysisData())
    clock.advance(30.0)
    cache.put("new", AnalysisData())
    clock.advance(40.0)

    assert cache.cleanup_expired() == 1
    assert cache.get("new") is not None


def test_oldest_entries_evicted_past_capacity(clock):
    """Overflow should evict the oldest entries plus slack."""
    cache = TrackAnalysisCache(max_entries=200, clock=clock)
    for i in range(201):
        cache.put(f"t{i}", AnalysisData())
        clock.advance(1.0)

    assert len(cache) == 100
    assert cache.get("t0") is None
    assert cache.get("t200") is not None


def test_clear_resets_stats(clock):
    """clear should empty the cache and zero the stats."""
    cache = TrackAnalysisCache(clock=clock)
    cache.put("abc", AnalysisData())
    cache.get("abc")
    cache.clear()

    stats = cache.stats()
    assert (stats.total_entries, stats.hits, stats.misses) == (0, 0, 0)
    assert stats.hit_rate == 0.0
