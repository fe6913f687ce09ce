"""
Analysis cache for reconstructed games.

The cache is a plain object owned by whoever builds it (normally a TrendEngine
or the LiveBoard that rebuilds engines). Entries carry the key they were
computed under; a changed key or an expired TTL makes an entry stale.
"""
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional

from trend_engine.core.metrics import analysis_cache_hits_total, analysis_cache_misses_total

DEFAULT_TTL_SECONDS = 3600


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    inserted_at: float
    invalidation_key: Hashable


def is_stale(entry: CacheEntry, now: float, key: Hashable, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> bool:
    """
    Check whether a cached entry can no longer be served.

    Args:
        entry: Cached entry
        now: Current clock reading, same clock as entry.inserted_at
        key: Invalidation key the caller would compute the value under now
        ttl_seconds: Maximum entry age

    Returns:
        True if the entry expired or was computed under a different key
    """
    if entry.invalidation_key != key:
        return True
    return now - entry.inserted_at >= ttl_seconds


class AnalysisCache:
    """
    TTL cache keyed by trend id.

    Usage:
        cache = AnalysisCache(ttl_seconds=600)
        games = cache.get("t1", key)
        if games is None:
            games = compute()
            cache.put("t1", key, games)
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, trend_id: str, key: Hashable) -> Optional[Any]:
        """Return the cached value, or None (and drop the entry) if stale."""
        entry = self._entries.get(trend_id)
        if entry is None:
            analysis_cache_misses_total.inc()
            return None
        if is_stale(entry, self._clock(), key, self.ttl_seconds):
            del self._entries[trend_id]
            analysis_cache_misses_total.inc()
            return None
        analysis_cache_hits_total.inc()
        return entry.value

    def put(self, trend_id: str, key: Hashable, value: Any) -> CacheEntry:
        entry = CacheEntry(value=value, inserted_at=self._clock(), invalidation_key=key)
        self._entries[trend_id] = entry
        return entry

    def invalidate(self, trend_id: Optional[str] = None) -> None:
        """Drop one trend's entry, or everything when no id is given."""
        if trend_id is None:
            self._entries.clear()
        else:
            self._entries.pop(trend_id, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, trend_id: str) -> bool:
        return trend_id in self._entries
