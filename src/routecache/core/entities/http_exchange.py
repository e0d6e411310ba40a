"""Framework-neutral request and response values.

Adapters translate their framework's objects into HttpRequest and
CachedResponse so the dispatcher never depends on a web framework.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

# Fields persisted in the ``{key}:headers`` record
RESPONSE_FIELDS = ("status", "message", "header", "body")


@dataclass(frozen=True)
class HttpRequest:
    """Request attributes the engine needs.

    Attributes:
        method: HTTP method, upper case.
        path: Request path without the query string.
        headers: Ordered header mapping with lower-cased names.
        query_params: Ordered ``(name, value)`` pairs.
        query_string: Raw, unparsed query string.
    """

    method: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    query_params: tuple[tuple[str, str], ...] = ()
    query_string: str = ""

    def header(self, name: str) -> str | None:
        """Get a header value by case-insensitive name."""
        return self.headers.get(name.lower())

    def query_value(self, name: str) -> str | None:
        """Get the first query parameter value with this name."""
        for param, value in self.query_params:
            if param == name:
                return value
        return None

    @classmethod
    def create(
        cls,
        method: str,
        path: str,
        headers: Mapping[str, str] | None = None,
        query_params: list[tuple[str, str]] | None = None,
        query_string: str = "",
    ) -> "HttpRequest":
        """Factory method normalizing method and header names.

        Args:
            method: HTTP method.
            path: Request path.
            headers: Request headers in enumeration order.
            query_params: Parsed query parameters in enumeration order.
            query_string: Raw query string, without the leading ``?``.

        Returns:
            A new HttpRequest instance.
        """
        return cls(
            method=method.upper(),
            path=path,
            headers={k.lower(): v for k, v in (headers or {}).items()},
            query_params=tuple(query_params or ()),
            query_string=query_string,
        )


@dataclass
class CachedResponse:
    """A response as captured from the origin or replayed from the store.

    Attributes:
        status: HTTP status code.
        message: Reason phrase.
        header: Response header map.
        body: Raw payload, None when empty.
    """

    status: int = 200
    message: str = ""
    header: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None

    def to_headers_record(self) -> dict[str, Any]:
        """Build the ``{key}:headers`` record.

        Returns:
            The four persisted fields, with ``body`` reduced to a
            presence flag.
        """
        return {
            "status": self.status,
            "message": self.message,
            "header": dict(self.header),
            "body": bool(self.body),
        }

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        body: bytes | str | None = None,
    ) -> "CachedResponse":
        """Replay a stored headers record and body.

        Unknown fields in the record are ignored. The stored body only
        replaces the default when it is present.

        Args:
            record: The decoded ``{key}:headers`` record.
            body: The ``{key}:body`` value, if any.

        Returns:
            The reconstructed response.
        """
        response = cls()
        for name in RESPONSE_FIELDS:
            if name not in record or name == "body":
                continue
            if name == "header":
                for header_name, value in (record[name] or {}).items():
                    response.header[header_name] = value
                continue
            setattr(response, name, record[name])

        if body:
            response.body = body.encode() if isinstance(body, str) else body

        return response
