"""Core interfaces (Protocol classes) for routecache."""

from routecache.core.interfaces.cache_backend import ICacheBackend
from routecache.core.interfaces.key_builder import IKeyBuilder
from routecache.core.interfaces.serializer import ISerializer

__all__ = [
    "ICacheBackend",
    "IKeyBuilder",
    "ISerializer",
]
