"""Key builder interface."""

from typing import Protocol

from routecache.core.entities.http_exchange import HttpRequest
from routecache.core.entities.route_spec import KeyAugmentation


class IKeyBuilder(Protocol):
    """Contract for deriving cache keys from requests.

    Key builders turn a base key (normally the request path) and a
    route's key augmentation into the final lookup key.
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
        ...
