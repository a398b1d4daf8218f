"""Single-read result store for the web front end.

Holds at most one pending ScanResult per session key.  Reading an entry
with ``take_once`` removes it, so a results page can only be rendered
once per scan.  Entries that are never read expire after a TTL.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class ResultStore(Generic[T]):
    """Thread-safe ``put`` / ``take_once`` cache with expiry."""

    def __init__(
        self,
        ttl_seconds: float = 600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[float, T]] = {}

    def put(self, key: str, value: T) -> None:
        """Store ``value`` under ``key``, replacing any unread entry."""
        with self._lock:
            self._prune_expired()
            self._entries[key] = (self._clock(), value)

    def take_once(self, key: str) -> T | None:
        """Remove and return the entry for ``key``, or None if absent/expired."""
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self._ttl:
            return None
        return value

    def __len__(self) -> int:
        with self._lock:
            self._prune_expired()
            return len(self._entries)

    def _prune_expired(self) -> None:
        now = self._clock()
        expired = [k for k, (ts, _) in self._entries.items() if now - ts >= self._ttl]
        for key in expired:
            del self._entries[key]
