"""Key-based cache for platform query results.

Query results are cached under tuple keys such as
("/api/questionnaire/questions", 3) and never go stale on their own; they
are dropped explicitly with invalidate() after a write, or reloaded with
refetch() when the caller needs the platform's latest answer.

A cache may be shared by requests served from different worker threads.
"""

import threading
from typing import Any, Callable, Hashable, Optional

from fokushub.logging_config import get_logger

logger = get_logger(__name__)

QueryKey = tuple[Hashable, ...]


class QueryCache:
    """In-memory query result cache with prefix invalidation."""

    def __init__(self):
        self._entries: dict[QueryKey, Any] = {}
        self._lock = threading.Lock()

    def fetch(self, key: QueryKey, loader: Callable[[], Any]) -> Any:
        """Return cached data for key, loading it once on a miss.

        The loader runs outside the lock, so two threads missing the same key
        may both load it; the last result is kept. Loader errors propagate
        and nothing is cached for the key.
        """
        key = tuple(key)
        with self._lock:
            if key in self._entries:
                return self._entries[key]
        data = loader()
        with self._lock:
            self._entries[key] = data
        logger.debug(f"Cached query {key}")
        return data

    def refetch(self, key: QueryKey, loader: Callable[[], Any]) -> Any:
        """Reload data for key even when it is cached."""
        key = tuple(key)
        with self._lock:
            self._entries.pop(key, None)
        return self.fetch(key, loader)

    def get_query_data(self, key: QueryKey, default: Optional[Any] = None) -> Any:
        with self._lock:
            return self._entries.get(tuple(key), default)

    def set_query_data(self, key: QueryKey, data: Any) -> None:
        with self._lock:
            self._entries[tuple(key)] = data

    def has(self, key: QueryKey) -> bool:
        with self._lock:
            return tuple(key) in self._entries

    def invalidate(self, prefix: QueryKey) -> int:
        """Drop every entry whose key starts with prefix.

        Returns:
            Number of entries dropped
        """
        prefix = tuple(prefix)
        with self._lock:
            stale = [key for key in self._entries if key[:len(prefix)] == prefix]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} queries under {prefix}")
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
