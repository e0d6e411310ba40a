"""Serializer interface."""

from typing import Any, Protocol


class ISerializer(Protocol):
    """Contract for encoding the ``{key}:headers`` record.

    Serializers handle the conversion between Python objects
    and bytes for storage in cache backends.
    """

    def serialize(self, value: Any) -> bytes:
        """Serialize value to bytes.

        Raises:
            SerializationError: If the value cannot be serialized.
        """
        ...

    def deserialize(self, data: bytes | str) -> Any:
        """Deserialize stored data to a value.

        Raises:
            SerializationError: If the data cannot be deserialized.
        """
        ...
