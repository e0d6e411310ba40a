"""Infrastructure layer implementations for routecache."""

from routecache.infrastructure.backends import InMemoryCacheBackend
from routecache.infrastructure.key_builders import DefaultKeyBuilder
from routecache.infrastructure.serializers import JsonSerializer

__all__ = [
    "InMemoryCacheBackend",
    "DefaultKeyBuilder",
    "JsonSerializer",
]
