"""
Tests for core.caching — version-stamped LRU cache.
"""

import pytest

from core.caching import VersionedCache


class TestVersionedCache:
    def test_miss_then_hit(self):
        cache = VersionedCache()
        assert cache.get("graph", 1) is None
        cache.put("graph", 1, "g1")
        assert cache.get("graph", 1) == "g1"
        assert cache.stats.hits == 1
        assert cache.stats.misses == 1

    def test_new_version_replaces_old(self):
        cache = VersionedCache()
        cache.put("graph", 1, "g1")
        cache.put("graph", 2, "g2")
        assert cache.get("graph", 1) is None
        assert cache.get("graph", 2) == "g2"
        assert cache.stats.invalidations == 1
        assert cache.size == 1

    def test_get_or_load_runs_loader_once_per_version(self):
        cache = VersionedCache()
        calls = []

        def loader():
            calls.append(1)
            return "graph"

        cache.get_or_load("graph", "v1", loader)
        cache.get_or_load("graph", "v1", loader)
        assert len(calls) == 1
        cache.get_or_load("graph", "v2", loader)
        assert len(calls) == 2

    def test_lru_eviction(self):
        cache = VersionedCache(max_size=2)
        cache.put("a", 1, "A")
        cache.put("b", 1, "B")
        cache.get("a", 1)
        cache.put("c", 1, "C")
        assert cache.get("b", 1) is None
        assert cache.get("a", 1) == "A"
        assert cache.stats.evictions == 1

    def test_invalidate_scope(self):
        cache = VersionedCache()
        cache.put("a", 1, "A")
        cache.put("b", 1, "B")
        assert cache.invalidate_scope("a") == 1
        assert cache.get("a", 1) is None
        assert cache.get("b", 1) == "B"

    def test_clear(self):
        cache = VersionedCache()
        cache.put("a", 1, "A")
        cache.clear()
        assert cache.size == 0

    def test_rejects_zero_size(self):
        with pytest.raises(ValueError, match="max_size"):
            VersionedCache(max_size=0)
