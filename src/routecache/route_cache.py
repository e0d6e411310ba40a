"""RouteCache - one-call setup of the whole engine."""

import logging
from collections.abc import Mapping
from typing import Any

from routecache.core.entities.cache_config import CacheConfig
from routecache.core.entities.http_exchange import HttpRequest
from routecache.core.entities.route_spec import RouteTable
from routecache.core.interfaces.cache_backend import ICacheBackend
from routecache.core.interfaces.key_builder import IKeyBuilder
from routecache.core.interfaces.serializer import ISerializer
from routecache.core.services.dispatcher import (
    Capture,
    DispatchResult,
    OriginCall,
    RequestDispatcher,
)
from routecache.core.services.expiration_policy import ExpirationPolicy
from routecache.core.services.route_compiler import RouteCompiler
from routecache.infrastructure.backends.memory import InMemoryCacheBackend
from routecache.infrastructure.key_builders.default import DefaultKeyBuilder
from routecache.infrastructure.serializers.json import JsonSerializer

logger = logging.getLogger(__name__)


class RouteCache:
    """Route-driven response cache.

    Compiles the route table once and wires the expiration policy,
    key builder, serializer and backend into a RequestDispatcher.

    Usage:
        from routecache import RouteCache

        cache = RouteCache(
            {
                "/users": True,
                "/users/:id": 10000,
                "/feed/*": "increasing",
            },
            options={"defaultTimeout": 3000, "increasing": {1: "1s", 5: "1m"}},
        )

        result = await cache.dispatch(request, call_origin)
    """

    def __init__(
        self,
        routes: Mapping[str, Any],
        options: Mapping[str, Any] | None = None,
        *,
        config: CacheConfig | None = None,
        backend: ICacheBackend | None = None,
        key_builder: IKeyBuilder | None = None,
        serializer: ISerializer | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            routes: Route pattern to route value.
            options: camelCase option mapping, see CacheConfig.from_options.
            config: Explicit configuration; takes precedence over options.
            backend: Storage backend. Defaults to InMemoryCacheBackend.
            key_builder: Key builder. Defaults to DefaultKeyBuilder.
            serializer: Headers record serializer. Defaults to JsonSerializer.
        """
        self._config = config or CacheConfig.from_options(options)
        if self._config.debug:
            logger.info("[CACHE] cache options: %r %r", dict(routes), self._config)

        self._routes = RouteCompiler().compile(routes)
        self._policy = ExpirationPolicy(
            config=self._config,
            adaptive_enabled=self._routes.adaptive_enabled,
        )
        if backend is None:
            backend = InMemoryCacheBackend(default_ttl=self._config.default_timeout)
        self._backend = backend
        self._dispatcher = RequestDispatcher(
            routes=self._routes,
            backend=self._backend,
            key_builder=key_builder or DefaultKeyBuilder(),
            serializer=serializer or JsonSerializer(),
            policy=self._policy,
            config=self._config,
        )

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def routes(self) -> RouteTable:
        return self._routes

    @property
    def backend(self) -> ICacheBackend:
        return self._backend

    @property
    def policy(self) -> ExpirationPolicy:
        return self._policy

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    @property
    def stats(self) -> dict[str, int]:
        return self._dispatcher.stats

    async def dispatch(
        self,
        request: HttpRequest,
        call_origin: OriginCall,
        capture: Capture | None = None,
    ) -> DispatchResult:
        """Run one request through the cache. See RequestDispatcher.dispatch."""
        return await self._dispatcher.dispatch(request, call_origin, capture)

    async def start(self) -> None:
        """Connect the backend and start the adaptive reset task."""
        await self._backend.connect()
        self._policy.start()

    async def close(self) -> None:
        """Stop background work and close the backend."""
        await self._policy.close()
        await self._backend.close()

    async def __aenter__(self) -> "RouteCache":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Async context manager exit."""
        await self.close()
