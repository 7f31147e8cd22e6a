"""
In-process TTL cache for dashboard API responses.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from shared.logging import get_logger


DEFAULT_TTL = 5 * 60
METRICS_TTL = 2 * 60


class CacheStore(ABC):
    """Operations the API gateway needs from a response cache."""

    @abstractmethod
    def get(self, key: str, ttl: float) -> Optional[Any]:
        """Return the value stored under key if younger than ttl seconds, else None."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous entry."""

    @abstractmethod
    def invalidate(self, pattern: str) -> int:
        """Drop every entry whose key contains pattern; return how many were dropped."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Return the keys currently held."""


@dataclass
class CacheEntry:
    data: Any
    timestamp: float


class TTLCache(CacheStore):
    """Thread-safe map of key -> (value, write time) with lazy expiry on read.

    The TTL is supplied by the reader, not stored with the entry, so one entry
    can be read under different freshness windows. Nothing is evicted except
    by an expired read, ``invalidate`` or ``clear``.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.logger = get_logger("dashboard.cache")

    def get(self, key: str, ttl: float = DEFAULT_TTL) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.timestamp > ttl:
                del self._entries[key]
                self.logger.debug("Cache entry expired", key=key, ttl=ttl)
                return None
            return entry.data

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(data=value, timestamp=self._clock())

    def invalidate(self, pattern: str) -> int:
        # Keys are built from hierarchical paths, so "/workers" also covers "/workers/foo/secrets".
        with self._lock:
            doomed = [key for key in self._entries if pattern in key]
            for key in doomed:
                del self._entries[key]
        if doomed:
            self.logger.debug("Cache invalidated", pattern=pattern, removed=len(doomed))
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


@dataclass(frozen=True)
class TTLPolicy:
    """Freshness window per resource class.

    The class is derived from the endpoint path, so a key is always read with
    the TTL of the class it was written under.
    """

    default: float = DEFAULT_TTL
    overrides: Tuple[Tuple[str, float], ...] = (("/metrics", METRICS_TTL),)

    def ttl_for(self, endpoint: str) -> float:
        for prefix, ttl in self.overrides:
            if endpoint == prefix or endpoint.startswith((prefix + "/", prefix + "?")):
                return ttl
        return self.default
