"""
In-memory cache

Holds the capability definitions between cron passes until something
invalidates them. Hits and misses are counted locally and exported to
Prometheus under the cache's `cache_type` label.
"""

from typing import Any

from cms_scheduler.utils.metrics import record_cache_hit, record_cache_miss


class MemoryCache:
    """Process-local key/value cache with hit and miss accounting."""

    def __init__(self, cache_type: str = "memory"):
        self._cache: dict[str, Any] = {}
        self._cache_type = cache_type
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        if key in self._cache:
            self._hits += 1
            record_cache_hit(self._cache_type)
            return self._cache[key]
        self._misses += 1
        record_cache_miss(self._cache_type)
        return None

    def set(self, key: str, value: Any) -> None:
        self._cache[key] = value

    def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    def get_stats(self) -> dict:
        return {"size": len(self._cache), "hits": self._hits, "misses": self._misses}
