"""Pytest configuration for routecache tests."""

from collections.abc import Callable

import pytest

from routecache import CachedResponse, HttpRequest


class Origin:
    """Fake origin handler counting how often it is invoked."""

    def __init__(self, response: CachedResponse | None = None) -> None:
        self.calls = 0
        self.response = response or CachedResponse(
            status=200,
            message="OK",
            header={"content-type": "application/json"},
            body=b'{"ok": true}',
        )

    async def __call__(self) -> CachedResponse:
        self.calls += 1
        return self.response


@pytest.fixture
def origin() -> Origin:
    """Create a fake origin handler."""
    return Origin()


@pytest.fixture
def make_request() -> Callable[..., HttpRequest]:
    """Factory for HttpRequest objects with an optional query string."""

    def factory(
        path: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
    ) -> HttpRequest:
        path, _, query_string = path.partition("?")
        query_params = [
            tuple(pair.split("=", 1)) if "=" in pair else (pair, "")
            for pair in query_string.split("&")
            if pair
        ]
        return HttpRequest.create(
            method=method,
            path=path,
            headers=headers,
            query_params=query_params,  # type: ignore[arg-type]
            query_string=query_string,
        )

    return factory
