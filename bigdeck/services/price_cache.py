"""
Process-local TTL cache for resolved price pairs.

Time-based expiry, evaluated lazily on access, plus an optional LRU cap.
Operations never suspend; each runs inside a short lock so the cache is
safe to touch from worker threads as well as the event loop.
"""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from threading import Lock

from bigdeck.models.pricing import CacheEntry, CardKey, PricePair

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 10_000


class PriceCache:
    """
    CardKey -> CacheEntry mapping with expiry.

    Attributes:
        max_entries: LRU cap, None for unbounded
    """

    def __init__(
        self,
        max_entries: int | None = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive or None")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[CardKey, CacheEntry] = OrderedDict()
        self._lock = Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: CardKey) -> CacheEntry | None:
        """Return the unexpired entry for key, or None. Expired entries are dropped."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if not entry.is_fresh(self._clock()):
                del self._entries[key]
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry

    def put(self, key: CardKey, pair: PricePair, ttl: float) -> CacheEntry:
        """
        Store pair under key, replacing any existing entry.

        Args:
            key: Normalized card key
            pair: Resolved pair; its fetched_at anchors the expiry
            ttl: Lifetime in seconds (> 0)
        """
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        entry = CacheEntry(key=key, pair=pair, expires_at=pair.fetched_at + ttl)
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("PRICE_CACHE_EVICTED", extra={"key": str(evicted)})
        return entry

    def invalidate(self, key: CardKey) -> bool:
        """Remove one entry. Returns True if something was removed."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> int:
        """Remove every entry. Returns how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, CardKey):
            return False
        return self.get(key) is not None

    def stats(self) -> dict[str, int | None]:
        """Diagnostics for the cache stats endpoint."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
            }
