"""Caching middleware for Starlette and FastAPI applications."""

import logging
from collections.abc import AsyncIterator, Mapping
from http import HTTPStatus
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from routecache.core.entities.http_exchange import CachedResponse, HttpRequest
from routecache.route_cache import RouteCache

logger = logging.getLogger(__name__)


def reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


def to_http_request(request: Request) -> HttpRequest:
    """Convert a Starlette request into an HttpRequest."""
    return HttpRequest.create(
        method=request.method,
        path=request.url.path,
        headers=dict(request.headers.items()),
        query_params=request.query_params.multi_items(),
        query_string=request.url.query,
    )


async def _replay(body: bytes) -> AsyncIterator[bytes]:
    yield body


async def capture_response(response: Response) -> CachedResponse:
    """Buffer a downstream response into a CachedResponse.

    A streamed body is drained and put back, so ``response`` can still
    be sent to the client afterwards.
    """
    body_iterator = getattr(response, "body_iterator", None)
    if body_iterator is not None:
        chunks = []
        async for chunk in body_iterator:
            chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode())
        body = b"".join(chunks)
        response.body_iterator = _replay(body)
    else:
        body = response.body

    return CachedResponse(
        status=response.status_code,
        message=reason_phrase(response.status_code),
        header=dict(response.headers),
        body=body or None,
    )


def render_response(cached: CachedResponse) -> Response:
    """Build a Starlette response from a CachedResponse."""
    return Response(
        content=cached.body or b"",
        status_code=cached.status,
        headers=cached.header,
    )


class RouteCacheMiddleware(BaseHTTPMiddleware):
    """HTTP middleware that serves matched routes from a RouteCache.

    Usage:
        app = FastAPI()
        app.add_middleware(
            RouteCacheMiddleware,
            routes={"/users": True, "/users/:id": 10000},
            options={"defaultTimeout": 3000},
        )

    Pass ``route_cache`` instead of ``routes`` to share a pre-built
    cache (for example one backed by Redis). Cache hits set
    ``request.state.cache_hit``. Only hits are rendered by the
    middleware; every other response is the one the application
    produced.

    A cache built from ``routes`` starts its adaptive reset task on
    first use. Await ``middleware.route_cache.close()`` on shutdown, or
    pass a ``route_cache`` whose lifetime the application manages.
    """

    def __init__(
        self,
        app: ASGIApp,
        route_cache: RouteCache | None = None,
        routes: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(app)
        if route_cache is None:
            if routes is None:
                raise ValueError("RouteCacheMiddleware needs route_cache or routes")
            route_cache = RouteCache(routes, options)
        self._route_cache = route_cache

    @property
    def route_cache(self) -> RouteCache:
        return self._route_cache

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        origin: list[Response] = []

        async def call_origin() -> Response:
            origin.append(await call_next(request))
            return origin[0]

        result = await self._route_cache.dispatch(
            to_http_request(request), call_origin, capture_response
        )

        if result.from_cache:
            request.state.cache_hit = True
            return render_response(result.response)

        return origin[0]
