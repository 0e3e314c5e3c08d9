"""TTL cache for slow-changing GET responses (specialties, clinic hours).

Pattern: in-memory dict of (value, timestamp) with expiry on read and a size
cap that evicts expired entries first, then the oldest ones.
"""
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from clinic_booking import config


class TTLCache:
    """Small thread-safe cache keyed by request signature."""

    def __init__(
        self,
        ttl: float = config.CACHE_TTL_SECONDS,
        max_size: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            ttl: Time-to-live in seconds (default: 5 minutes)
            max_size: Maximum entries before cleanup
            clock: Time source, injectable for tests
        """
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if self._clock() - stored_at > self.ttl:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any):
        with self._lock:
            self._entries[key] = (value, self._clock())
            self._cleanup_if_needed()

    def get_or_fetch(self, key: str, fetch: Callable[[], Any]) -> Any:
        """Return the cached value or call ``fetch`` and remember its result.

        Failures of ``fetch`` propagate and are not cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = fetch()
        self.set(key, value)
        return value

    def clear(self, key: Optional[str] = None):
        """Drop one key, or everything when ``key`` is None."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)

    def _cleanup_if_needed(self):
        if len(self._entries) <= self.max_size:
            return

        now = self._clock()
        expired = [k for k, (_, ts) in self._entries.items() if now - ts > self.ttl]
        for key in expired:
            del self._entries[key]

        if len(self._entries) > self.max_size:
            oldest = sorted(self._entries.items(), key=lambda item: item[1][1])
            for key, _ in oldest[:len(self._entries) - self.max_size]:
                del self._entries[key]
