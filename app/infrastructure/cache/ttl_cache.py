from __future__ import annotations

from collections import OrderedDict
from threading import Lock
import time
from typing import Callable, Generic, TypeVar


V = TypeVar("V")


class TtlCache(Generic[V]):
    """In-process cache with per-entry expiry and a capacity bound.

    The clock is injectable so expiry can be tested without sleeping.
    When full, the oldest entry is evicted first.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float,
        max_size: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, V]] = OrderedDict()
        self._lock = Lock()

    def get(self, key: str) -> V | None:
        now = self._clock()
        with self._lock:
            cached = self._entries.get(key)
            if cached is None:
                return None
            expires_at, value = cached
            if expires_at <= now:
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key: str, value: V) -> None:
        if self.ttl_seconds <= 0 or self.max_size <= 0:
            return
        expires_at = self._clock() + self.ttl_seconds
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (expires_at, value)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def evict_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
