"""
Fixed-window attempt counters for the authentication endpoints.

Route code only sees the RateLimitStore interface; the in-process store is the
default and can be replaced (for example by a shared cache) through the
get_rate_limit_store dependency.
"""
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict

from cachetools import TTLCache


@dataclass
class RateLimitWindow:
    count: int
    # seconds until the window closes
    reset_in: float


@dataclass
class _Counter:
    count: int
    reset_at: float


class RateLimitStore(ABC):
    """Counts attempts per key within a fixed time window."""

    @abstractmethod
    def hit(self, key: str, window_seconds: int) -> RateLimitWindow:
        """Record one attempt for key and return the window it landed in."""

    @abstractmethod
    def reset(self, key: str) -> None:
        """Forget all attempts recorded for key."""


class InMemoryRateLimitStore(RateLimitStore):
    """
    Process-local store. Counters are lost on restart and are not shared
    between worker processes.
    """

    def __init__(self, maxsize: int = 10000, timer: Callable[[], float] = time.monotonic):
        self._maxsize = maxsize
        self._timer = timer
        self._lock = threading.Lock()
        # one cache per window length so entries expire with their window
        self._caches: Dict[int, TTLCache] = {}

    def _cache_for(self, window_seconds: int) -> TTLCache:
        cache = self._caches.get(window_seconds)
        if cache is None:
            cache = TTLCache(maxsize=self._maxsize, ttl=window_seconds, timer=self._timer)
            self._caches[window_seconds] = cache
        return cache

    def hit(self, key: str, window_seconds: int) -> RateLimitWindow:
        with self._lock:
            cache = self._cache_for(window_seconds)
            now = self._timer()
            window = cache.get(key)
            if window is None or now >= window.reset_at:
                window = _Counter(count=0, reset_at=now + window_seconds)
                cache[key] = window
            window.count += 1
            return RateLimitWindow(count=window.count, reset_in=window.reset_at - now)

    def reset(self, key: str) -> None:
        with self._lock:
            for cache in self._caches.values():
                cache.pop(key, None)


_default_store = InMemoryRateLimitStore()


def get_rate_limit_store() -> RateLimitStore:
    """FastAPI dependency returning the process-wide store."""
    return _default_store
