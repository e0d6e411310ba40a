"""Cache backend interface."""

from collections.abc import Mapping
from typing import Any, Protocol

from routecache.core.entities.expiration_state import TTLTable


class ICacheBackend(Protocol):
    """Contract for cache storage backends.

    All cache backends must implement this protocol to be used with
    RequestDispatcher. Methods are async to support both in-memory and
    networked implementations.

    TTL resolution happens here, at write time: an explicit ``ttl``
    wins, then the bound TTLTable entry for the key, then the
    backend's default.
    """

    @property
    def degraded(self) -> bool:
        """True while the backend cannot serve requests reliably."""
        ...

    def use_ttl_table(self, table: TTLTable) -> None:
        """Bind the table consulted for per-key TTLs.

        Args:
            table: The TTL table owned by the expiration policy.
        """
        ...

    async def connect(self) -> None:
        """Establish connectivity. A no-op for in-process backends.

        Raises:
            BackendConnectionError: If a networked backend gives up.
        """
        ...

    async def has(self, key: str) -> bool:
        """Check if key exists in cache.

        Args:
            key: The cache key to check.

        Returns:
            True if the key exists, False otherwise.
        """
        ...

    async def get(self, key: str) -> Any | None:
        """Retrieve cached value by key.

        Args:
            key: The cache key to retrieve.

        Returns:
            The cached value, or None if not found or expired.
        """
        ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store value, resolving its TTL.

        Args:
            key: The cache key.
            value: The value to store.
            ttl: Optional TTL in milliseconds overriding the table.
        """
        ...

    async def set_multiple(self, base_key: str, items: Mapping[str, Any]) -> None:
        """Store related values sharing one TTL.

        Args:
            base_key: Key used for the single TTL lookup.
            items: Full key to value. None values are skipped.
        """
        ...

    async def delete(self, key: str) -> bool:
        """Delete cached value.

        Args:
            key: The cache key to delete.

        Returns:
            True if the key existed and was deleted, False otherwise.
        """
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...
