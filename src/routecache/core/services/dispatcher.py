"""Request dispatcher - main orchestrator for caching decisions."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from routecache.core.entities.cache_config import CacheConfig
from routecache.core.entities.http_exchange import CachedResponse, HttpRequest
from routecache.core.entities.route_spec import RouteTable
from routecache.core.errors import BackendConnectionError, SerializationError
from routecache.core.interfaces.cache_backend import ICacheBackend
from routecache.core.interfaces.key_builder import IKeyBuilder
from routecache.core.interfaces.serializer import ISerializer
from routecache.core.services.expiration_policy import ExpirationPolicy

logger = logging.getLogger(__name__)

HEADERS_SUFFIX = ":headers"
BODY_SUFFIX = ":body"

OriginCall = Callable[[], Awaitable[Any]]
Capture = Callable[[Any], Awaitable[CachedResponse]]


class DispatchOutcome(Enum):
    """How a request was handled."""

    PASSTHROUGH = "passthrough"  # no route matched
    DISABLED = "disabled"  # route never caches
    NO_CACHE = "no-cache"  # client sent Cache-Control: no-cache
    DEGRADED = "degraded"  # backend unavailable, failed open
    INVALIDATED = "invalidated"  # mutating method, entry deleted
    HIT = "hit"
    MISS = "miss"


@dataclass
class DispatchResult:
    """Response plus how it was produced.

    On HIT and MISS ``response`` is a CachedResponse. Every other
    outcome carries whatever the origin returned, untouched.
    """

    response: Any
    outcome: DispatchOutcome
    key: str | None = None

    @property
    def from_cache(self) -> bool:
        return self.outcome is DispatchOutcome.HIT


class RequestDispatcher:
    """Domain service that runs one request through the cache.

    Matches the route, builds the key, evaluates the expiration
    policy, then either replays a stored response or invokes the
    origin and stores what it returns. Backend failures never reach
    the caller; the request is served from the origin instead.
    """

    def __init__(
        self,
        routes: RouteTable,
        backend: ICacheBackend,
        key_builder: IKeyBuilder,
        serializer: ISerializer,
        policy: ExpirationPolicy,
        config: CacheConfig | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            routes: The compiled route table.
            backend: The cache backend to use for storage.
            key_builder: The key builder for deriving cache keys.
            serializer: The serializer for the headers record.
            policy: The expiration policy engine.
            config: Optional cache configuration. Uses defaults if not provided.
        """
        self._routes = routes
        self._backend = backend
        self._key_builder = key_builder
        self._serializer = serializer
        self._policy = policy
        self._config = config or CacheConfig()

        self._backend.use_ttl_table(policy.ttls)

        # Statistics
        self._hits = 0
        self._misses = 0

    @property
    def config(self) -> CacheConfig:
        """Get the cache configuration."""
        return self._config

    @property
    def routes(self) -> RouteTable:
        return self._routes

    @property
    def policy(self) -> ExpirationPolicy:
        return self._policy

    @property
    def stats(self) -> dict[str, int]:
        """Get cache statistics.

        Returns:
            Dictionary with hits, misses, and total requests.
        """
        return {
            "hits": self._hits,
            "misses": self._misses,
            "total": self._hits + self._misses,
        }

    def _log(self, message: str) -> None:
        if self._config.debug:
            logger.info("[CACHE] %s", message)

    async def dispatch(
        self,
        request: HttpRequest,
        call_origin: OriginCall,
        capture: Capture | None = None,
    ) -> DispatchResult:
        """Handle one request.

        Args:
            request: The incoming request.
            call_origin: Produces the origin response. Its exceptions
                propagate unchanged and nothing is cached for them.
            capture: Converts the origin response into a CachedResponse.
                Only awaited on a miss. When omitted the origin must
                return a CachedResponse itself.

        Returns:
            The response and the outcome that produced it.
        """
        if not self._config.enabled or not self._routes:
            return await self._passthrough(call_origin, DispatchOutcome.PASSTHROUGH)

        route = self._routes.match(request.path)
        if route is None:
            return await self._passthrough(call_origin, DispatchOutcome.PASSTHROUGH)

        self._log(f"matched route {route.pattern!r} for {request.path}")

        key = request.path
        if route.key_augmentation is not None:
            key = self._key_builder.build(key, route.key_augmentation, request)

        if not self._policy.evaluate(route, key):
            return await self._passthrough(call_origin, DispatchOutcome.DISABLED, key)

        if request.header("cache-control") == "no-cache":
            return await self._passthrough(call_origin, DispatchOutcome.NO_CACHE, key)

        if self._backend.degraded:
            self._log(f"backend degraded, bypassing cache for {key}")
            return await self._passthrough(call_origin, DispatchOutcome.DEGRADED, key)

        if request.method != "GET":
            await self._invalidate(key)
            return await self._passthrough(
                call_origin, DispatchOutcome.INVALIDATED, key
            )

        try:
            cached = await self._lookup(key)
        except BackendConnectionError as e:
            logger.warning("Cache lookup failed for %s: %s", key, e)
            return await self._passthrough(call_origin, DispatchOutcome.DEGRADED, key)

        if cached is not None:
            self._hits += 1
            self._log(f"returning from cache for {key}")
            return DispatchResult(cached, DispatchOutcome.HIT, key)

        self._misses += 1
        response = await call_origin()
        if capture is not None:
            response = await capture(response)
        await self._store(key, response)
        return DispatchResult(response, DispatchOutcome.MISS, key)

    async def _passthrough(
        self,
        call_origin: OriginCall,
        outcome: DispatchOutcome,
        key: str | None = None,
    ) -> DispatchResult:
        return DispatchResult(await call_origin(), outcome, key)

    async def _lookup(self, key: str) -> CachedResponse | None:
        """Read the stored headers record and body for ``key``."""
        headers_key = key + HEADERS_SUFFIX
        if not await self._backend.has(headers_key):
            return None

        raw = await self._backend.get(headers_key)
        if raw is None:
            # Expired between the existence check and the read
            return None

        try:
            record = self._serializer.deserialize(raw)
            if not isinstance(record, dict):
                raise SerializationError(f"expected an object, got {record!r}")
        except SerializationError as e:
            logger.warning("Ignoring corrupt cache entry %s: %s", key, e)
            return None

        body = None
        if record.get("body"):
            body = await self._backend.get(key + BODY_SUFFIX)

        return CachedResponse.from_record(record, body)

    async def _store(self, key: str, response: CachedResponse) -> None:
        self._log(f"caching {key}")
        items = {
            key + HEADERS_SUFFIX: self._serializer.serialize(
                response.to_headers_record()
            ),
            key + BODY_SUFFIX: response.body or None,
        }
        try:
            await self._backend.set_multiple(key, items)
        except BackendConnectionError as e:
            logger.warning("Failed to cache %s: %s", key, e)

    async def _invalidate(self, key: str) -> None:
        self._log(f"invalidating {key}")
        try:
            await self._backend.delete(key + HEADERS_SUFFIX)
            await self._backend.delete(key + BODY_SUFFIX)
        except BackendConnectionError as e:
            logger.warning("Failed to invalidate %s: %s", key, e)
