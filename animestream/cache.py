"""Bounded TTL caches shared by acquisition and debrid resolution.

Each cache is an explicit object built once at process start and handed to
the components that use it. Entries expire after their own TTL. When a cache
is full, expired entries are purged first and then the least recently
*stored* entries are evicted; reads never refresh an entry's position.
"""

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from animestream.utilities.settings import get_int_setting


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at >= self.ttl


class TimedCache:
    def __init__(self, name: str, ttl: float, max_entries: int = 500, clock: Callable[[], float] = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.name = name
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: 'OrderedDict[str, CacheEntry]' = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None):
        with self._lock:
            now = self._clock()
            # Re-storing a key makes it the newest entry.
            self._entries.pop(key, None)
            if len(self._entries) >= self.max_entries:
                self._evict(now)
            self._entries[key] = CacheEntry(value=value, stored_at=now, ttl=self.ttl if ttl is None else ttl)

    def _evict(self, now: float):
        expired = [k for k, entry in self._entries.items() if entry.is_expired(now)]
        for k in expired:
            del self._entries[k]
        self.evictions += len(expired)
        while len(self._entries) >= self.max_entries:
            oldest_key, _ = self._entries.popitem(last=False)
            self.evictions += 1
            logging.debug(f"[{self.name}] cache full, evicted {oldest_key}")

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'name': self.name,
                'entries': len(self._entries),
                'max_entries': self.max_entries,
                'hits': self.hits,
                'misses': self.misses,
                'evictions': self.evictions,
            }

    async def get_or_fetch(self, key: str, fetcher: Callable[[], Awaitable[Any]], ttl: Optional[float] = None) -> Any:
        """Return the cached value or await fetcher(); None results are not stored."""
        cached = self.get(key)
        if cached is not None:
            logging.debug(f"[{self.name}] cache hit for {key}")
            return cached
        value = await fetcher()
        if value is not None:
            self.set(key, value, ttl)
        return value


class ResolutionCaches:
    """The three process-wide caches: indexer responses, acquired lists, direct URLs."""

    def __init__(self, search: TimedCache, torrents: TimedCache, direct_urls: TimedCache):
        self.search = search
        self.torrents = torrents
        self.direct_urls = direct_urls

    @classmethod
    def from_settings(cls, clock: Callable[[], float] = time.monotonic) -> 'ResolutionCaches':
        max_entries = get_int_setting('Cache', 'max_entries')
        return cls(
            search=TimedCache('search', get_int_setting('Cache', 'search_ttl'), max_entries, clock),
            torrents=TimedCache('torrents', get_int_setting('Cache', 'torrent_ttl'), max_entries, clock),
            direct_urls=TimedCache('direct_urls', get_int_setting('Cache', 'direct_url_ttl'), max_entries, clock),
        )

    def clear(self):
        for cache in (self.search, self.torrents, self.direct_urls):
            cache.clear()

    def stats(self) -> Dict[str, Dict[str, Any]]:
        return {cache.name: cache.stats() for cache in (self.search, self.torrents, self.direct_urls)}
