"""
Time-to-live cache of item pools for the hosting layer.

Item pools are fetched per subject from the item repository and reused for a
few minutes so consecutive selections in a session do not hit storage. The
cache is an explicit object: the caller creates it, passes it where needed
and injects the clock, which keeps expiry testable without sleeping.

Thread-safe with a re-entrant lock for concurrent sessions.
"""
import logging
import threading
import time
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from aptitude.core.cat.items import Item
from aptitude.core.config import settings

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class ItemCache:
    """
    Per-subject item pool cache with expiry.

    Example usage:
        cache = ItemCache(ttl_seconds=300)
        pool = cache.get_or_load(subject_id, repository.fetch_pool)
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Clock = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Entry lifetime (default settings.ITEM_CACHE_TTL_SECONDS).
            clock: Monotonic time source in seconds.

        Raises:
            ValueError: If ttl_seconds is not positive.
        """
        if ttl_seconds is None:
            ttl_seconds = settings.ITEM_CACHE_TTL_SECONDS
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.RLock()
        # subject_id -> (stored_at, items)
        self._by_subject: Dict[Hashable, Tuple[float, List[Item]]] = {}
        # item_id -> (stored_at, item)
        self._by_id: Dict[Hashable, Tuple[float, Item]] = {}

    def _is_fresh(self, stored_at: float) -> bool:
        return self._clock() - stored_at < self._ttl

    def get(self, subject_id: Hashable) -> Optional[List[Item]]:
        """Cached pool for a subject, or None if absent or expired."""
        with self._lock:
            entry = self._by_subject.get(subject_id)
            if entry is None:
                return None
            stored_at, items = entry
            if not self._is_fresh(stored_at):
                del self._by_subject[subject_id]
                return None
            return list(items)

    def put(self, subject_id: Hashable, items: Sequence[Item]) -> None:
        """Store a subject's pool and index its items by id."""
        with self._lock:
            now = self._clock()
            self._by_subject[subject_id] = (now, list(items))
            for item in items:
                self._by_id[item.id] = (now, item)
        logger.debug(f"Cached {len(items)} items for subject {subject_id}")

    def get_or_load(
        self,
        subject_id: Hashable,
        loader: Callable[[Hashable], Sequence[Item]],
    ) -> List[Item]:
        """Cached pool for a subject, calling ``loader`` on a miss."""
        items = self.get(subject_id)
        if items is not None:
            return items
        loaded = list(loader(subject_id))
        self.put(subject_id, loaded)
        return loaded

    def get_item(self, item_id: Hashable) -> Optional[Item]:
        """Cached item by id, or None if absent or expired."""
        with self._lock:
            entry = self._by_id.get(item_id)
            if entry is None:
                return None
            stored_at, item = entry
            if not self._is_fresh(stored_at):
                del self._by_id[item_id]
                return None
            return item

    def invalidate_item(self, item_id: Hashable) -> None:
        """Drop an item from the id index and from any cached pool."""
        with self._lock:
            self._by_id.pop(item_id, None)
            for subject_id, (stored_at, items) in list(self._by_subject.items()):
                remaining = [item for item in items if item.id != item_id]
                if len(remaining) != len(items):
                    self._by_subject[subject_id] = (stored_at, remaining)

    def invalidate_subject(self, subject_id: Hashable) -> None:
        """Drop a subject's pool and its items from the id index."""
        with self._lock:
            entry = self._by_subject.pop(subject_id, None)
            if entry is None:
                return
            for item in entry[1]:
                self._by_id.pop(item.id, None)

    def clear(self) -> None:
        """Drop everything."""
        with self._lock:
            self._by_subject.clear()
            self._by_id.clear()

    def get_stats(self) -> dict:
        """
        Cache statistics (for monitoring/debugging).

        Returns:
            Dict with keys: subjects, items, expired_subjects
        """
        with self._lock:
            expired = sum(
                1 for stored_at, _ in self._by_subject.values()
                if not self._is_fresh(stored_at)
            )
            return {
                "subjects": len(self._by_subject),
                "items": len(self._by_id),
                "expired_subjects": expired,
            }
