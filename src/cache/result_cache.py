# src/cache/result_cache.py — v2
"""Process-lifetime, time-boxed result cache.

Keys are canonical ConstraintSet keys; values are the last successfully
fetched or delivered records. Writes are last-write-wins per key. The
cache is advisory: a miss or stale entry only costs a round-trip.
Entries are copied on the way in and out, so callers never share
records with the cache.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable

from livequery.cache.models import CacheEntry
from livequery.core.models import Record
from livequery.query.constraints import collection_of

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW_S = 5 * 60


class ResultCache:
    """Keyed store of CacheEntry objects with a freshness window."""

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        freshness_window_s: float = DEFAULT_FRESHNESS_WINDOW_S,
    ) -> None:
        self._clock = clock
        self._window_s = freshness_window_s
        self._entries: dict[str, CacheEntry] = {}

    @property
    def freshness_window_s(self) -> float:
        return self._window_s

    def get(self, key: str) -> CacheEntry | None:
        """Return the entry for ``key`` regardless of age, or None."""
        entry = self._entries.get(key)
        return None if entry is None else entry.model_copy(deep=True)

    def get_fresh(self, key: str, window_s: float | None = None) -> CacheEntry | None:
        """Return the entry only if fresh; a stale entry is evicted."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.is_fresh(entry, window_s):
            return entry.model_copy(deep=True)
        del self._entries[key]
        logger.debug("Evicted stale cache entry %s", key)
        return None

    def put(self, key: str, records: Iterable[Record]) -> CacheEntry:
        """Store (overwrite) the result set for ``key``."""
        entry = CacheEntry(
            key=key,
            collection=collection_of(key),
            records=[record.model_copy(deep=True) for record in records],
            fetched_at=self._clock(),
        )
        self._entries[key] = entry
        return entry.model_copy(deep=True)

    def invalidate(self, collection: str) -> int:
        """Drop every entry belonging to ``collection``. Returns count removed."""
        stale = [k for k, e in self._entries.items() if e.collection == collection]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.info("Invalidated %d cache entries for %s", len(stale), collection)
        return len(stale)

    def is_fresh(self, entry: CacheEntry, window_s: float | None = None) -> bool:
        """Age check only; never touches the network."""
        window = self._window_s if window_s is None else window_s
        return (self._clock() - entry.fetched_at) < window

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
