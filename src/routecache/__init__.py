"""routecache - route-driven HTTP response caching.

A Python library that decides, per request, whether a stored response
may be served instead of calling the origin handler. Routes declare
their caching policy: fixed TTLs, the default TTL, no caching, or an
adaptive TTL that grows with how often a key is requested.

Example with Starlette / FastAPI:
    from fastapi import FastAPI
    from routecache.adapters.starlette import RouteCacheMiddleware

    app = FastAPI()
    app.add_middleware(
        RouteCacheMiddleware,
        routes={
            "/health": False,              # never cached
            "/users": True,                # default timeout (5s)
            "/users/:id": 10000,           # 10s
            "/feed/*": "increasing",       # adaptive
            "/search": {
                "timeout": 2000,
                "cacheKeyArgs": {"query": True},
            },
        },
        options={"increasing": {1: "1s", 10: "30s", 100: "5m"}},
    )

With Redis (install routecache[redis]):
    from routecache import RouteCache
    from routecache_redis import RedisCacheBackend

    backend = RedisCacheBackend("redis://localhost:6379")
    await backend.connect()
    cache = RouteCache(routes, backend=backend)
    app.add_middleware(RouteCacheMiddleware, route_cache=cache)
"""

from routecache.core.entities import (
    ALL,
    AdaptiveStepTable,
    CacheConfig,
    CachedResponse,
    HttpRequest,
    KeyAugmentation,
    PatternKind,
    RouteSpec,
    RouteTable,
    TTLDescriptor,
    TTLKind,
    TTLTable,
)
from routecache.core.errors import (
    BackendConnectionError,
    ConfigurationError,
    RouteCacheError,
    SerializationError,
)
from routecache.core.interfaces import ICacheBackend, IKeyBuilder, ISerializer
from routecache.core.services import (
    DispatchOutcome,
    DispatchResult,
    ExpirationPolicy,
    RequestDispatcher,
    RouteCompiler,
)
from routecache.infrastructure import (
    DefaultKeyBuilder,
    InMemoryCacheBackend,
    JsonSerializer,
)
from routecache.route_cache import RouteCache

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Entry point
    "RouteCache",
    # Core entities
    "ALL",
    "AdaptiveStepTable",
    "CacheConfig",
    "CachedResponse",
    "HttpRequest",
    "KeyAugmentation",
    "PatternKind",
    "RouteSpec",
    "RouteTable",
    "TTLDescriptor",
    "TTLKind",
    "TTLTable",
    # Errors
    "RouteCacheError",
    "ConfigurationError",
    "BackendConnectionError",
    "SerializationError",
    # Core interfaces
    "ICacheBackend",
    "IKeyBuilder",
    "ISerializer",
    # Core services
    "DispatchOutcome",
    "DispatchResult",
    "ExpirationPolicy",
    "RequestDispatcher",
    "RouteCompiler",
    # Infrastructure implementations
    "InMemoryCacheBackend",
    "DefaultKeyBuilder",
    "JsonSerializer",
]
