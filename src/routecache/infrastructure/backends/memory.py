"""In-memory cache backend implementation."""

import time
from collections.abc import Callable, Mapping
from typing import Any, NamedTuple

from cachetools import TLRUCache  # type: ignore[import-untyped]

from routecache.core.entities.cache_config import DEFAULT_TIMEOUT_MS
from routecache.core.entities.expiration_state import TTLTable


class _Stored(NamedTuple):
    value: Any
    ttl_ms: int


def _time_to_use(key: str, stored: _Stored, now: float) -> float:
    return now + stored.ttl_ms / 1000


class InMemoryCacheBackend:
    """In-memory cache backend using LRU with per-item TTL.

    Suitable for single-process deployments. Uses cachetools'
    TLRUCache so every entry expires on its own TTL.
    """

    def __init__(
        self,
        maxsize: int = 1000,
        default_ttl: int = DEFAULT_TIMEOUT_MS,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the in-memory cache backend.

        Args:
            maxsize: Maximum number of items in the cache.
            default_ttl: Default TTL in milliseconds for items.
            timer: Clock in seconds, injectable for tests.
        """
        self._maxsize = maxsize
        self._default_ttl = default_ttl
        self._cache: TLRUCache[str, _Stored] = TLRUCache(
            maxsize=maxsize,
            ttu=_time_to_use,
            timer=timer,
        )
        self._ttls: TTLTable | None = None

    @property
    def degraded(self) -> bool:
        """An in-process map is never degraded."""
        return False

    def use_ttl_table(self, table: TTLTable) -> None:
        self._ttls = table

    def resolve_ttl(self, key: str) -> int:
        """Resolve the TTL (ms) for a key from the bound table."""
        if self._ttls is None:
            return self._default_ttl
        return self._ttls.resolve(key, self._default_ttl)

    async def connect(self) -> None:
        pass

    async def has(self, key: str) -> bool:
        return key in self._cache

    async def get(self, key: str) -> Any | None:
        stored = self._cache.get(key)
        return stored.value if stored is not None else None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store value with a per-item TTL.

        Args:
            key: The cache key.
            value: The value to store.
            ttl: Optional TTL in milliseconds. If None, it is resolved
                from the TTL table, then the default. A TTL of zero or
                less removes the key instead.
        """
        ttl_ms = ttl if ttl is not None else self.resolve_ttl(key)
        if ttl_ms <= 0:
            self._cache.pop(key, None)
            return
        self._cache[key] = _Stored(value, ttl_ms)

    async def set_multiple(self, base_key: str, items: Mapping[str, Any]) -> None:
        """Store several values under one TTL resolved for ``base_key``."""
        ttl_ms = self.resolve_ttl(base_key)
        if ttl_ms <= 0:
            for key in items:
                self._cache.pop(key, None)
            return
        for key, value in items.items():
            if value is None:
                continue
            self._cache[key] = _Stored(value, ttl_ms)

    async def delete(self, key: str) -> bool:
        """Delete cached value.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        try:
            del self._cache[key]
            return True
        except KeyError:
            return False

    async def clear(self) -> None:
        """Clear all cached values."""
        self._cache.clear()

    async def close(self) -> None:
        await self.clear()

    def __len__(self) -> int:
        """Return the number of items in the cache."""
        self._cache.expire()
        return len(self._cache)

    @property
    def maxsize(self) -> int:
        """Return the maximum size of the cache."""
        return self._maxsize
