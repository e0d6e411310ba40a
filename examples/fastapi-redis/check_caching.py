#!/usr/bin/env python3
"""Script to verify caching against a running example app."""

import asyncio

import httpx

BASE_URL = "http://localhost:8000"


async def handler_calls(client: httpx.AsyncClient, name: str) -> int:
    response = await client.get(f"{BASE_URL}/stats")
    return response.json()["handler_calls"].get(name, 0)


async def check_route(client: httpx.AsyncClient, path: str, handler: str) -> bool:
    """Request ``path`` twice and report whether the handler ran once."""
    print("\n" + "=" * 60)
    print(f"CHECK: {path}")
    print("=" * 60)

    before = await handler_calls(client, handler)

    first = await client.get(f"{BASE_URL}{path}")
    print(f"   First request X-Cache: {first.headers.get('X-Cache')}")
    second = await client.get(f"{BASE_URL}{path}")
    print(f"   Second request X-Cache: {second.headers.get('X-Cache')}")

    after = await handler_calls(client, handler)
    if after - before == 1 and second.json() == first.json():
        print("\n✅ SUCCESS: second request was served from the cache.")
        return True
    print(f"\n❌ FAILURE: handler ran {after - before} times.")
    return False


async def check_invalidation(client: httpx.AsyncClient) -> bool:
    """A POST to /users must drop the cached GET /users response."""
    print("\n" + "=" * 60)
    print("CHECK: POST /users invalidates GET /users")
    print("=" * 60)

    await client.get(f"{BASE_URL}/users")
    await client.post(f"{BASE_URL}/users", json={"name": "Carol"})
    response = await client.get(f"{BASE_URL}/users")

    names = [user["name"] for user in response.json()]
    if "Carol" in names:
        print("\n✅ SUCCESS: new user visible after invalidation.")
        return True
    print("\n❌ FAILURE: stale response served after POST.")
    return False


async def main() -> None:
    async with httpx.AsyncClient() as client:
        await client.post(f"{BASE_URL}/stats/reset")
        results = [
            await check_route(client, "/users/1", "get_user"),
            await check_route(client, "/search?q=al", "search"),
            await check_route(client, "/feed/news", "feed"),
            await check_invalidation(client),
        ]

    print("\n" + "=" * 60)
    print(f"{sum(results)}/{len(results)} checks passed")


if __name__ == "__main__":
    asyncio.run(main())
