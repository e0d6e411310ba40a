"""Core domain layer for routecache."""

from routecache.core.entities import (
    CacheConfig,
    CachedResponse,
    HttpRequest,
    RouteSpec,
    RouteTable,
    TTLDescriptor,
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

__all__ = [
    # Entities
    "CacheConfig",
    "CachedResponse",
    "HttpRequest",
    "RouteSpec",
    "RouteTable",
    "TTLDescriptor",
    # Errors
    "RouteCacheError",
    "ConfigurationError",
    "BackendConnectionError",
    "SerializationError",
    # Interfaces
    "ICacheBackend",
    "IKeyBuilder",
    "ISerializer",
    # Services
    "DispatchOutcome",
    "DispatchResult",
    "ExpirationPolicy",
    "RequestDispatcher",
    "RouteCompiler",
]
