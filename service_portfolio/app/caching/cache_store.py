"""
In-process key/value store with per-entry TTL.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from shared.logging import get_logger


@dataclass(frozen=True)
class CacheEntry:
    """A stored value and the moment it stops being visible."""

    key: str
    value: Any
    inserted_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.inserted_at + self.ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CacheStore:
    """Thread-safe TTL store.

    Expiry is lazy: an expired entry is dropped by the ``get`` that finds it,
    or by an explicit ``purge_expired`` sweep. Every operation holds a single
    lock for a constant amount of work, so callers from event-loop tasks and
    worker threads can share one instance without further synchronization.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.logger = get_logger("portfolio.cache_store")

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store or overwrite ``key``, restarting its expiry clock."""
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl!r}")

        entry = CacheEntry(key=key, value=value, inserted_at=self._clock(), ttl=float(ttl))
        with self._lock:
            self._entries[key] = entry

    def get(self, key: str, default: Optional[Any] = None) -> Optional[Any]:
        """Return the live value for ``key`` or ``default``."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return default
            return entry.value

    def remove(self, key: str) -> bool:
        """Delete ``key``; returns whether a live or expired entry was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def contains(self, key: str) -> bool:
        """Whether ``key`` currently holds a live value."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def purge_expired(self) -> int:
        """Physically drop every expired entry; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]

        if expired:
            self.logger.debug("Purged expired cache entries", count=len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        """Entry counts, live and physically present."""
        now = self._clock()
        with self._lock:
            total = len(self._entries)
            live = sum(1 for entry in self._entries.values() if not entry.is_expired(now))
        return {"entries": total, "live_entries": live, "expired_entries": total - live}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
