"""
HotelOps Core Caching — Versioned Read-Through Cache
======================================================
Derived read models (the configuration graph) are cached per
(scope, as-of version). The version stamp comes from the source
itself, so a cached value can never outlive the data it was built
from: when a newer version is stored for a scope, every older
version of that scope is evicted.

Cache is disposable: every value is rebuildable from the record log.
No module-level cache instances; owners create and inject their own.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional, Tuple


# ══════════════════════════════════════════════════════════════
# CACHE STATISTICS
# ══════════════════════════════════════════════════════════════

@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    invalidations: int = 0
    total_entries: int = 0


# ══════════════════════════════════════════════════════════════
# VERSIONED CACHE (LRU + version-stamped invalidation)
# ══════════════════════════════════════════════════════════════

_Key = Tuple[str, Hashable]


class VersionedCache:
    """
    LRU cache keyed by (scope, version).

    - get_or_load(): read-through; the loader runs on a miss only
    - storing version V for a scope drops all other versions of it
    - invalidate_scope(): explicit flush (e.g. after a config write)
    """

    def __init__(self, max_size: int = 32) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1.")
        self._max_size = max_size
        self._entries: "OrderedDict[_Key, Any]" = OrderedDict()
        self._stats = CacheStats()
        self._lock = threading.Lock()

    def get(self, scope: str, version: Hashable) -> Optional[Any]:
        with self._lock:
            key = (scope, version)
            if key not in self._entries:
                self._stats.misses += 1
                return None
            self._entries.move_to_end(key)
            self._stats.hits += 1
            return self._entries[key]

    def put(self, scope: str, version: Hashable, value: Any) -> None:
        with self._lock:
            stale = [k for k in self._entries if k[0] == scope and k[1] != version]
            for key in stale:
                del self._entries[key]
            self._stats.invalidations += len(stale)

            key = (scope, version)
            if key not in self._entries and len(self._entries) >= self._max_size:
                self._entries.popitem(last=False)
                self._stats.evictions += 1
            self._entries[key] = value
            self._entries.move_to_end(key)
            self._stats.total_entries = len(self._entries)

    def get_or_load(
        self, scope: str, version: Hashable, loader: Callable[[], Any]
    ) -> Any:
        cached = self.get(scope, version)
        if cached is not None:
            return cached
        value = loader()
        self.put(scope, version, value)
        return value

    def invalidate_scope(self, scope: str) -> int:
        with self._lock:
            keys = [k for k in self._entries if k[0] == scope]
            for key in keys:
                del self._entries[key]
            self._stats.invalidations += len(keys)
            self._stats.total_entries = len(self._entries)
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._stats.total_entries = 0

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def size(self) -> int:
        return len(self._entries)
