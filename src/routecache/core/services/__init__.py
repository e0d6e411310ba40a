"""Domain services for routecache."""

from routecache.core.services.dispatcher import (
    DispatchOutcome,
    DispatchResult,
    RequestDispatcher,
)
from routecache.core.services.expiration_policy import ExpirationPolicy
from routecache.core.services.route_compiler import RouteCompiler

__all__ = [
    "RequestDispatcher",
    "DispatchOutcome",
    "DispatchResult",
    "ExpirationPolicy",
    "RouteCompiler",
]
