"""Exceptions raised by routecache."""


class RouteCacheError(Exception):
    """Base class for routecache errors."""

    pass


class ConfigurationError(RouteCacheError):
    """Raised when a route entry or option cannot be compiled.

    The compiler catches it, logs a warning and drops the offending
    entry, so it never escapes construction.
    """

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class BackendConnectionError(RouteCacheError):
    """Raised when a networked backend cannot reach its server."""

    def __init__(self, message: str, attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


class SerializationError(RouteCacheError):
    """Raised when serialization or deserialization fails."""

    pass
