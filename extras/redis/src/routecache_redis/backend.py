"""Redis cache backend implementation."""

import asyncio
import logging
import math
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from routecache.core.entities.cache_config import DEFAULT_TIMEOUT_MS
from routecache.core.entities.expiration_state import TTLTable
from routecache.core.errors import BackendConnectionError

logger = logging.getLogger(__name__)

RETRY_INTERVAL_MS = 1000
MAX_CONNECT_ATTEMPTS = 5

_CONNECTION_ERRORS = (RedisConnectionError, RedisTimeoutError, OSError)


class ConnectionState(Enum):
    """Connection lifecycle of a RedisCacheBackend.

    CONNECTING -> READY on the first successful ping. Any failure moves
    to DEGRADED while retries continue at a fixed interval. After
    ``max_attempts`` consecutive failures the backend is FAILED for good.
    """

    CONNECTING = "connecting"
    READY = "ready"
    DEGRADED = "degraded"
    FAILED = "failed"


def ttl_seconds(ttl_ms: int) -> int:
    """Convert a TTL in milliseconds to whole seconds, rounding up."""
    return max(1, math.ceil(ttl_ms / 1000))


class RedisCacheBackend:
    """Redis cache backend for distributed deployments.

    Supports per-key TTLs and is suitable for multi-process
    deployments sharing one Redis server. Reports ``degraded`` whenever
    the connection is not READY so callers can bypass the cache.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: Optional[str] = None,
        default_ttl: int = DEFAULT_TIMEOUT_MS,
        retry_interval: int = RETRY_INTERVAL_MS,
        max_attempts: int = MAX_CONNECT_ATTEMPTS,
        on_failure: Optional[Callable[[BackendConnectionError], None]] = None,
        client: Optional[redis.Redis] = None,
    ) -> None:
        """Initialize the Redis cache backend.

        Args:
            redis_url: Redis connection URL.
            key_prefix: Optional prefix for all cache keys.
            default_ttl: Default TTL in milliseconds.
            retry_interval: Delay between connection attempts in milliseconds.
            max_attempts: Consecutive failures before giving up.
            on_failure: Called once when the backend gives up.
            client: Pre-built client, replaces ``redis_url``.
        """
        self._redis: redis.Redis = client or redis.from_url(redis_url)  # type: ignore
        self._key_prefix = key_prefix
        self._default_ttl = default_ttl
        self._retry_interval = retry_interval
        self._max_attempts = max_attempts
        self._on_failure = on_failure

        self._ttls: Optional[TTLTable] = None
        self._state = ConnectionState.CONNECTING
        self._failures = 0
        self._reconnect_task: Optional[asyncio.Task[None]] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def failures(self) -> int:
        """Consecutive connection failures so far."""
        return self._failures

    @property
    def degraded(self) -> bool:
        return self._state is not ConnectionState.READY

    def use_ttl_table(self, table: TTLTable) -> None:
        self._ttls = table

    def resolve_ttl(self, key: str) -> int:
        """Resolve the TTL (ms) for a key from the bound table."""
        if self._ttls is None:
            return self._default_ttl
        return self._ttls.resolve(key, self._default_ttl)

    async def connect(self) -> None:
        """Ping the server until it answers.

        Retries every ``retry_interval`` ms. Gives up after
        ``max_attempts`` consecutive failures.

        Raises:
            BackendConnectionError: When the backend enters FAILED.
        """
        if self._state is ConnectionState.FAILED:
            raise BackendConnectionError(
                "Redis backend has failed permanently", attempts=self._failures
            )
        await self._connect_loop()

    async def _connect_loop(self) -> None:
        while True:
            if self._failures:
                await asyncio.sleep(self._retry_interval / 1000)
            try:
                await self._redis.ping()
            except _CONNECTION_ERRORS as e:
                self._failures += 1
                logger.warning(
                    "Connection with redis failed %d times: %s", self._failures, e
                )
                if self._failures >= self._max_attempts:
                    self._fail(e)
                self._state = ConnectionState.DEGRADED
                continue

            self._failures = 0
            self._state = ConnectionState.READY
            logger.info("Using Redis for caching")
            return

    def _fail(self, cause: BaseException) -> None:
        self._state = ConnectionState.FAILED
        error = BackendConnectionError(
            f"Giving up on redis after {self._failures} attempts",
            attempts=self._failures,
        )
        logger.error("%s", error)
        if self._on_failure is not None:
            self._on_failure(error)
        raise error from cause

    def _connection_lost(self, cause: BaseException) -> BackendConnectionError:
        """Move to DEGRADED and schedule a reconnect in the background."""
        if self._state is not ConnectionState.FAILED:
            self._state = ConnectionState.DEGRADED
            self._failures = max(self._failures, 1)
            if self._reconnect_task is None or self._reconnect_task.done():
                self._reconnect_task = asyncio.get_running_loop().create_task(
                    self._reconnect(), name="routecache-redis-reconnect"
                )
        return BackendConnectionError(f"Redis unavailable: {cause}", self._failures)

    async def _reconnect(self) -> None:
        try:
            await self._connect_loop()
        except BackendConnectionError:
            # Already logged and reported through on_failure
            return

    async def _execute(self, command: str, *args: Any, **kwargs: Any) -> Any:
        if self._state is ConnectionState.FAILED:
            raise BackendConnectionError(
                "Redis backend has failed permanently", attempts=self._failures
            )
        try:
            return await getattr(self._redis, command)(*args, **kwargs)
        except _CONNECTION_ERRORS as e:
            raise self._connection_lost(e) from e

    async def has(self, key: str) -> bool:
        """Check if key exists in cache.

        Args:
            key: The cache key to check.

        Returns:
            True if the key exists, False otherwise.
        """
        result = await self._execute("exists", self._prefixed_key(key))
        return result > 0

    async def get(self, key: str) -> Optional[bytes]:
        """Retrieve cached value by key.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached value as bytes, or None if not found or expired.
        """
        return await self._execute("get", self._prefixed_key(key))

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store value with a TTL.

        Args:
            key: The cache key.
            value: The value to store.
            ttl: Optional TTL in milliseconds. If None, it is resolved
                from the TTL table, then the default. A TTL of zero or
                less deletes the key instead.
        """
        ttl_ms = ttl if ttl is not None else self.resolve_ttl(key)
        if ttl_ms <= 0:
            await self._execute("delete", self._prefixed_key(key))
            return
        await self._execute(
            "set", self._prefixed_key(key), value, ex=ttl_seconds(ttl_ms)
        )

    async def set_multiple(self, base_key: str, items: Mapping[str, Any]) -> None:
        """Store several values in one round trip under one TTL.

        Args:
            base_key: Key used for the TTL lookup.
            items: Full key to value. None values are skipped. A TTL of
                zero or less deletes every key instead.
        """
        if self._state is ConnectionState.FAILED:
            raise BackendConnectionError(
                "Redis backend has failed permanently", attempts=self._failures
            )

        ttl_ms = self.resolve_ttl(base_key)
        if ttl_ms <= 0:
            if items:
                await self._execute(
                    "delete", *(self._prefixed_key(key) for key in items)
                )
            return

        seconds = ttl_seconds(ttl_ms)
        try:
            async with self._redis.pipeline(transaction=False) as pipe:
                for key, value in items.items():
                    if value is None:
                        continue
                    pipe.set(self._prefixed_key(key), value, ex=seconds)
                await pipe.execute()
        except _CONNECTION_ERRORS as e:
            raise self._connection_lost(e) from e

    async def delete(self, key: str) -> bool:
        """Delete cached value.

        Args:
            key: The cache key to delete.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        result = await self._execute("delete", self._prefixed_key(key))
        return result > 0

    async def clear(self) -> int:
        """Clear all cached values with our prefix.

        Note: Without a prefix this clears every key in the database.

        Returns:
            Number of keys deleted.
        """
        pattern = f"{self._key_prefix}:*" if self._key_prefix else "*"
        count = 0
        cursor = 0

        # SCAN instead of KEYS for production safety
        while True:
            cursor, keys = await self._execute(
                "scan", cursor, match=pattern, count=100
            )

            if keys:
                count += await self._execute("delete", *keys)

            if cursor == 0:
                break

        return count

    def _prefixed_key(self, key: str) -> str:
        """Add prefix to key if configured and not already present.

        Args:
            key: The cache key.

        Returns:
            The key with prefix.
        """
        if not self._key_prefix or key.startswith(f"{self._key_prefix}:"):
            return key
        return f"{self._key_prefix}:{key}"

    async def close(self) -> None:
        """Stop reconnecting and close the Redis connection."""
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._redis.aclose()

    async def __aenter__(self) -> "RedisCacheBackend":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Async context manager exit."""
        await self.close()
