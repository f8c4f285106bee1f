"""Time-boxed cache of fetched rates."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Awaitable, Callable

from .models.cache import CacheStats, RateCacheEntry, RateKey

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 5 * 60
_DEFAULT_MAX_ENTRIES = 500


class RateCache:
    """TTL cache keyed by (base, quote, asset kind).

    Expiry is checked lazily on read. ``max_entries`` is a soft bound: pruning
    drops expired entries first, then the oldest ones that are still valid are
    kept even if that leaves the cache above the bound.
    """

    def __init__(
        self,
        ttl_s: float = DEFAULT_TTL_S,
        max_entries: int = _DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_s = ttl_s
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[RateKey, RateCacheEntry] = OrderedDict()
        self._locks: dict[RateKey, asyncio.Lock] = {}
        self.stats = CacheStats()

    def __len__(self) -> int:
        return len(self._entries)

    def _is_valid(self, entry: RateCacheEntry, now: float) -> bool:
        return (now - entry.fetched_at) < self.ttl_s

    def get(self, key: RateKey) -> float | None:
        entry = self._entries.get(key)
        if not entry:
            return None
        if not self._is_valid(entry, self._clock()):
            self._entries.pop(key, None)
            return None
        return entry.rate

    def put(self, key: RateKey, rate: float) -> None:
        self._entries[key] = RateCacheEntry(key=key, rate=rate, fetched_at=self._clock())
        self._entries.move_to_end(key)
        self._prune()

    def _prune(self) -> None:
        if len(self._entries) <= self.max_entries:
            return
        now = self._clock()
        stale_keys = [
            key for key, entry in self._entries.items() if not self._is_valid(entry, now)
        ]
        for key in stale_keys:
            self._entries.pop(key, None)
            self._locks.pop(key, None)
        if len(self._entries) > self.max_entries:
            logger.debug(
                "rate cache holds %d valid entries (soft max %d)",
                len(self._entries),
                self.max_entries,
            )

    async def get_or_fetch(
        self, key: RateKey, fetcher: Callable[[], Awaitable[float]]
    ) -> float:
        """Return a valid cached rate, or fetch, store and return a fresh one.

        Concurrent callers for the same key wait on one fetch. Failures are
        raised to the caller and nothing is cached.
        """
        rate = self.get(key)
        if rate is not None:
            self.stats.hits += 1
            return rate

        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        async with lock:
            # Another caller may have filled it while we waited
            rate = self.get(key)
            if rate is not None:
                self.stats.hits += 1
                return rate
            self.stats.misses += 1
            try:
                rate = await fetcher()
            except Exception:
                self.stats.failures += 1
                raise
            self.put(key, rate)
            return rate
