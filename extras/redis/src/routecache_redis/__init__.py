"""Redis backend for routecache."""

from routecache_redis.backend import (
    MAX_CONNECT_ATTEMPTS,
    RETRY_INTERVAL_MS,
    ConnectionState,
    RedisCacheBackend,
)

__all__ = [
    "ConnectionState",
    "MAX_CONNECT_ATTEMPTS",
    "RETRY_INTERVAL_MS",
    "RedisCacheBackend",
]
