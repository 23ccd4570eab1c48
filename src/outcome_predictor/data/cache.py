"""
Process-lifetime cache for source fetch results.

The cache is a plain key/value store: no TTL, no background expiry. Whoever
owns it decides eviction (``invalidate``, ``clear`` or ``prune``). A single
``asyncio.Lock`` guards the coroutine API (``get``, ``put``, ``invalidate``,
``clear``, ``prune``), so concurrent loaders never observe a half-written
entry and the last successful write for a key wins.

The synchronous accessors (``keys``, ``stats``, ``len``, ``in``) take no lock
and return a snapshot. They are safe on the event loop thread because no
locked section awaits while the entries are being changed. Fetch times are
naive UTC.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..utils.clock import utc_now

logger = logging.getLogger(__name__)


def _freeze(value: Any) -> Any:
    """Turn lists into tuples so cached payloads cannot be mutated in place."""
    if isinstance(value, list):
        return tuple(value)
    if isinstance(value, dict):
        return {k: _freeze(v) for k, v in value.items()}
    return value


@dataclass(frozen=True)
class CacheKey:
    """
    Structured identity of a fetch request.

    ``params`` is normalised to a sorted tuple of pairs, so identical
    requests always build identical (and equal-hashing) keys.
    """
    provider: str
    entity: str
    params: Tuple[Tuple[str, Any], ...] = ()

    def __post_init__(self):
        if isinstance(self.params, Mapping):
            items: Iterable = self.params.items()
        else:
            items = self.params
        object.__setattr__(self, "params", tuple(sorted((str(k), v) for k, v in items)))

    @classmethod
    def of(cls, provider: str, entity: str, **params: Any) -> "CacheKey":
        return cls(provider, entity, tuple(params.items()))

    def __str__(self) -> str:
        rendered = f"{self.provider}:{self.entity}"
        if self.params:
            rendered += ":" + ",".join(f"{k}={v}" for k, v in self.params)
        return rendered


@dataclass(frozen=True)
class CacheEntry:
    """Most recent successful fetch for a key."""
    key: CacheKey
    value: Any
    fetched_at: datetime = field(default_factory=utc_now)

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        return ((now or utc_now()) - self.fetched_at).total_seconds()


class DataCache:
    """Async-safe in-memory store shared by every DataLoader that holds it."""

    def __init__(self):
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._hits = 0
        self._misses = 0

    async def get(self, key: CacheKey) -> Optional[Any]:
        """Cached value for ``key``, or None on a miss (never an error)."""
        entry = await self.get_entry(key)
        return entry.value if entry is not None else None

    async def get_entry(self, key: CacheKey) -> Optional[CacheEntry]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(f"Cache miss: {key}")
            else:
                self._hits += 1
                logger.debug(f"Cache hit: {key}")
            return entry

    async def put(self, key: CacheKey, value: Any) -> CacheEntry:
        """Store ``value`` under ``key``, replacing any previous entry."""
        entry = CacheEntry(key=key, value=_freeze(value))
        async with self._lock:
            self._entries[key] = entry
        logger.debug(f"Cached {key}")
        return entry

    async def invalidate(self, key: CacheKey) -> bool:
        """Drop one entry. Returns whether it existed."""
        async with self._lock:
            removed = self._entries.pop(key, None) is not None
        if removed:
            logger.debug(f"Invalidated {key}")
        return removed

    async def clear(self) -> None:
        async with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info(f"Cleared cache ({count} entries)")

    async def prune(self, older_than: datetime) -> int:
        """Remove entries fetched before ``older_than``; returns how many went."""
        async with self._lock:
            stale = [k for k, e in self._entries.items() if e.fetched_at < older_than]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.info(f"Pruned {len(stale)} cache entries older than {older_than:%Y-%m-%d %H:%M:%S}")
        return len(stale)

    def keys(self) -> List[CacheKey]:
        return list(self._entries)

    def stats(self) -> Dict[str, Any]:
        """Entry count, hit/miss counters and fetch-time range."""
        fetched = [entry.fetched_at for entry in self._entries.values()]
        return {
            "entries": len(fetched),
            "hits": self._hits,
            "misses": self._misses,
            "oldest": min(fetched) if fetched else None,
            "newest": max(fetched) if fetched else None,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries
