"""TTL-bound memo of resolved latest action versions."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

DEFAULT_TTL_MS = 24 * 60 * 60 * 1000

Resolver = Callable[[str], str]
Clock = Callable[[], float]

logger = logging.getLogger("n00pin.cache")


@dataclass
class VersionCacheEntry:
    name: str
    resolved_version: str
    timestamp: float

    def is_fresh(self, now: float, ttl_ms: int) -> bool:
        return (now - self.timestamp) * 1000 <= ttl_ms


class VersionCache:
    """Cache ``resolver(name)`` results for ``ttl_ms`` milliseconds.

    The resolver is the only place a lookup happens, so a network-backed
    source can replace the static registry without touching callers. ``clock``
    returns seconds and defaults to ``time.monotonic``.
    """

    def __init__(
        self,
        resolver: Resolver,
        ttl_ms: int = DEFAULT_TTL_MS,
        clock: Clock | None = None,
    ) -> None:
        if ttl_ms < 0:
            raise ValueError("ttl_ms must be >= 0")
        self._resolver = resolver
        self._ttl_ms = ttl_ms
        self._clock = clock or time.monotonic
        self._entries: Dict[str, VersionCacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def set_ttl(self, ttl_ms: int) -> None:
        if ttl_ms < 0:
            raise ValueError("ttl_ms must be >= 0")
        with self._lock:
            self._ttl_ms = ttl_ms

    def get(self, name: str) -> str:
        with self._lock:
            now = self._clock()
            entry = self._entries.get(name)
            if entry is not None and entry.is_fresh(now, self._ttl_ms):
                return entry.resolved_version
            if entry is None:
                logger.debug("cache miss for %s", name)
            else:
                logger.debug("cache entry for %s expired", name)
            version = self._resolver(name)
            self._entries[name] = VersionCacheEntry(name, version, now)
            return version

    def entry(self, name: str) -> VersionCacheEntry | None:
        with self._lock:
            return self._entries.get(name)

    def is_expired(self, name: str) -> bool:
        """True when ``name`` has no entry or its entry is past the TTL."""
        with self._lock:
            entry = self._entries.get(name)
            return entry is None or not entry.is_fresh(self._clock(), self._ttl_ms)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries
