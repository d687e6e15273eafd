from collections import OrderedDict
from threading import RLock
from typing import Optional
import time

class LRUCacheImpl:
    """
    Thread-safe LRU cache with optional per-entry TTL.
    Values are immutable strings, so they are stored and returned as-is.
    """
    def __init__(self, capacity: int = 10_000, clock=time.monotonic):
        self.capacity = max(1, capacity)
        self._data: "OrderedDict[str, tuple[float, str]]" = OrderedDict()
        self._lock = RLock()
        self._clock = clock

    def get(self, key: str) -> Optional[str]:
        now = self._clock()
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            expires_at, value = item
            if expires_at and expires_at <= now:
                # Expired: evict and miss
                self._data.pop(key, None)
                return None
            # Move to MRU
            self._data.move_to_end(key)
            return value

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds else 0.0
        with self._lock:
            if key in self._data:
                self._data.pop(key)
            elif len(self._data) >= self.capacity:
                self._data.popitem(last=False)  # Evict LRU
            self._data[key] = (expires_at, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            victims = [k for k in self._data if k.startswith(prefix)]
            for k in victims:
                del self._data[k]
            return len(victims)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
