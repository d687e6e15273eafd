from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CacheError(Exception):
    """Raised by a backend when the cache itself could not be reached or answered badly."""


class Cache(ABC):
    """Minimal cache interface to enable swapping backends (memory, Redis, none) without changing callers."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def delete_prefix(self, prefix: str) -> int:
        """Drop every key starting with `prefix`; returns how many were removed."""
        ...

    def ping(self) -> bool:
        return True


class LookupStatus(str, Enum):
    HIT = "hit"
    MISS = "miss"
    ERROR = "error"


@dataclass(frozen=True)
class CacheLookup:
    """
    Tagged result of a cache read.
    Keeps "key absent" apart from "cache unreachable" so callers can decide per case.
    """
    status: LookupStatus
    value: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def hit(self) -> bool:
        return self.status is LookupStatus.HIT


def lookup(cache: Cache, key: str) -> CacheLookup:
    try:
        value = cache.get(key)
    except CacheError as e:
        return CacheLookup(LookupStatus.ERROR, error=e)
    if value is None:
        return CacheLookup(LookupStatus.MISS)
    return CacheLookup(LookupStatus.HIT, value=value)
