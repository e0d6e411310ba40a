"""Starlette (and FastAPI) adapter for routecache."""

from routecache.adapters.starlette.middleware import RouteCacheMiddleware

__all__ = ["RouteCacheMiddleware"]
