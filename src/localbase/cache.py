"""
Response Cache for Localbase
TTL-scoped LRU memoization of read results, keyed by request signature
"""

import hashlib
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

V = TypeVar('V')


@dataclass
class CacheEntry(Generic[V]):
    value: V
    timestamp: float
    ttl: float
    access_count: int = 0

    def expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class ResponseCache:
    """
    Advisory cache: nothing in the client depends on a hit for correctness.

    An entry is treated as absent as soon as its age exceeds its ttl, whether or
    not cleanup has run; the read that notices the expiry also evicts it.
    """

    def __init__(
        self,
        max_size: int = 500,
        default_ttl_minutes: float = 5,
        clock: Callable[[], float] = time.time
    ):
        self.max_size = max_size
        self.default_ttl_minutes = default_ttl_minutes
        self._clock = clock
        self._cache: 'OrderedDict[str, CacheEntry[Any]]' = OrderedDict()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        entry = self._cache.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.expired(self._clock()):
            del self._cache[key]
            self._misses += 1
            return None

        entry.access_count += 1
        self._cache.move_to_end(key)
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl_minutes: Optional[float] = None):
        if ttl_minutes is None:
            ttl_minutes = self.default_ttl_minutes

        if key in self._cache:
            del self._cache[key]

        while self._cache and len(self._cache) >= self.max_size:
            self._cache.popitem(last=False)

        self._cache[key] = CacheEntry(
            value=value,
            timestamp=self._clock(),
            ttl=ttl_minutes * 60
        )

    def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    def clear(self, pattern: Optional[str] = None) -> int:
        if pattern is None:
            removed = len(self._cache)
            self._cache.clear()
            return removed

        doomed = [key for key in self._cache if pattern in key]
        for key in doomed:
            del self._cache[key]
        return len(doomed)

    def cleanup_expired(self) -> int:
        now = self._clock()
        expired_keys = [key for key, entry in self._cache.items() if entry.expired(now)]
        for key in expired_keys:
            del self._cache[key]
        return len(expired_keys)

    def keys(self) -> List[str]:
        return list(self._cache.keys())

    def size(self) -> int:
        return len(self._cache)

    def hit_rate(self) -> float:
        total = self._hits + self._misses
        if total == 0:
            return 0.0
        return self._hits / total

    def stats(self) -> Dict[str, Any]:
        return {
            'size': len(self._cache),
            'max_size': self.max_size,
            'hits': self._hits,
            'misses': self._misses,
            'hit_rate': self.hit_rate(),
            'default_ttl_minutes': self.default_ttl_minutes
        }


def make_query_key(collection: str, signature: str) -> str:
    digest = hashlib.sha256(signature.encode('utf-8')).hexdigest()
    return f"select:{collection}:{digest}"


def collection_pattern(collection: str) -> str:
    return f"select:{collection}:"
