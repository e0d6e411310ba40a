"""JSON serializer implementation."""

import json
from typing import Any

from routecache.core.errors import SerializationError

__all__ = ["JsonSerializer", "SerializationError"]


class JsonSerializer:
    """JSON serializer for the ``{key}:headers`` record.

    Handles serialization of Python objects to JSON bytes
    and deserialization back to Python objects.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        """Initialize the JSON serializer.

        Args:
            encoding: Character encoding to use.
        """
        self._encoding = encoding

    def serialize(self, value: Any) -> bytes:
        """Serialize value to bytes.

        Args:
            value: The Python object to serialize.

        Returns:
            The serialized value as bytes.

        Raises:
            SerializationError: If the value cannot be serialized.
        """
        try:
            json_str = json.dumps(value, separators=(",", ":"))
            return json_str.encode(self._encoding)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize value: {e}") from e

    def deserialize(self, data: bytes | str) -> Any:
        """Deserialize stored data to a value.

        Backends may hand back either bytes (Redis) or the original
        object (in-memory), so text is accepted as well.

        Args:
            data: The bytes or text to deserialize.

        Returns:
            The deserialized Python object.

        Raises:
            SerializationError: If the data cannot be deserialized.
        """
        try:
            json_str = data.decode(self._encoding) if isinstance(data, bytes) else data
            return json.loads(json_str)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
            raise SerializationError(f"Failed to deserialize data: {e}") from e
