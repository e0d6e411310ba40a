"""Serializer implementations."""

from routecache.infrastructure.serializers.json import (
    JsonSerializer,
    SerializationError,
)

__all__ = ["JsonSerializer", "SerializationError"]
