"""Domain entities for routecache."""

from routecache.core.entities.cache_config import CacheConfig
from routecache.core.entities.expiration_state import (
    CallCounter,
    ExpirationState,
    TTLTable,
)
from routecache.core.entities.http_exchange import CachedResponse, HttpRequest
from routecache.core.entities.route_spec import (
    ALL,
    KeyAugmentation,
    PatternKind,
    RouteSpec,
    RouteTable,
)
from routecache.core.entities.ttl_policy import (
    DEFAULT_STEPS,
    AdaptiveStepTable,
    TTLDescriptor,
    TTLKind,
)

__all__ = [
    "CacheConfig",
    "CachedResponse",
    "HttpRequest",
    # Routes
    "ALL",
    "KeyAugmentation",
    "PatternKind",
    "RouteSpec",
    "RouteTable",
    # Expiration
    "AdaptiveStepTable",
    "CallCounter",
    "DEFAULT_STEPS",
    "ExpirationState",
    "TTLDescriptor",
    "TTLKind",
    "TTLTable",
]
