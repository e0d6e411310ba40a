"""Default key builder implementation."""

from routecache.core.entities.http_exchange import HttpRequest
from routecache.core.entities.route_spec import ALL, KeyAugmentation

HEADER_SEPARATOR = "#"
QUERY_SEPARATOR = "?"


class DefaultKeyBuilder:
    """Key builder appending raw header and query values to the path.

    Values are concatenated without separators between them, so
    adjacent values can collide (``"ab" + "c"`` vs ``"a" + "bc"``).
    When the query augmentation names parameters, every query value
    is appended, not only the named ones.
    """

    def build(
        self,
        base_key: str,
        augmentation: KeyAugmentation | None,
        request: HttpRequest,
    ) -> str:
        """Build the cache key for a request.

        Args:
            base_key: The starting key, usually the request path.
            augmentation: The matched route's key augmentation.
            request: The request supplying header and query values.

        Returns:
            The final cache key.
        """
        if augmentation is None:
            return base_key

        key = base_key

        # Named headers, in the listed order
        if isinstance(augmentation.headers, tuple):
            key += HEADER_SEPARATOR
            for name in augmentation.headers:
                key += request.header(name) or ""
        elif augmentation.headers is ALL:
            key += HEADER_SEPARATOR
            key += "".join(request.headers.values())

        if isinstance(augmentation.query, tuple):
            key += QUERY_SEPARATOR
            key += "".join(value for _, value in request.query_params)
        elif augmentation.query is ALL:
            key += QUERY_SEPARATOR + request.query_string

        if augmentation.custom is not None:
            key += self._custom_suffix(augmentation.custom, request)

        return key

    def _custom_suffix(self, name: str, request: HttpRequest) -> str:
        """Suffix for a single bare name: header first, then query."""
        value = request.header(name)
        if value is not None:
            return HEADER_SEPARATOR + value

        value = request.query_value(name)
        if value is not None:
            return QUERY_SEPARATOR + value

        return ""
