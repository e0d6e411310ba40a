"""FastAPI + Redis + routecache example."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from routecache import BackendConnectionError, RouteCache
from routecache.adapters.starlette import RouteCacheMiddleware
from routecache_redis import RedisCacheBackend

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

logging.basicConfig(level=logging.INFO if DEBUG else logging.WARNING)

USERS = {
    "1": {"id": "1", "name": "Alice"},
    "2": {"id": "2", "name": "Bob"},
}

# Handler call counts, to show which requests reached the handlers
handler_calls: dict[str, int] = {}


def record_call(name: str) -> None:
    handler_calls[name] = handler_calls.get(name, 0) + 1


def on_redis_failure(error: BackendConnectionError) -> None:
    print(f"[REDIS] giving up, serving without cache: {error}")


cache_backend = RedisCacheBackend(
    redis_url=REDIS_URL,
    key_prefix="routecache:example",
    on_failure=on_redis_failure,
)

route_cache = RouteCache(
    {
        "/health": False,
        "/stats": False,
        "/users": True,
        "/users/:id": 10000,
        "/feed/*": "increasing",
        "/search": {"timeout": "30000", "cacheKeyArgs": {"query": True}},
        "/me": {"timeout": 5000, "cacheKeyArgs": {"headers": ["authorization"]}},
    },
    options={
        "defaultTimeout": 3000,
        "increasing": {1: "1s", 3: "10s", 10: "1m", 50: "5m"},
        "debug": DEBUG,
    },
    backend=cache_backend,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    print(f"[STARTUP] Connecting to Redis at {REDIS_URL}")
    try:
        await route_cache.start()
    except BackendConnectionError as e:
        print(f"[STARTUP] Redis unavailable, continuing uncached: {e}")
    yield
    print("[SHUTDOWN] Closing Redis connection")
    await route_cache.close()


app = FastAPI(
    title="routecache Example API",
    description="REST API with route-driven response caching",
    version="1.0.0",
    lifespan=lifespan,
)


class CacheHeaderMiddleware(BaseHTTPMiddleware):
    """Adds an X-Cache header to responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Cache"] = (
            "HIT" if getattr(request.state, "cache_hit", False) else "MISS"
        )
        return response


app.add_middleware(RouteCacheMiddleware, route_cache=route_cache)
app.add_middleware(CacheHeaderMiddleware)


@app.get("/users")
async def list_users():
    record_call("list_users")
    return list(USERS.values())


@app.post("/users")
async def create_user(user: dict[str, str]):
    record_call("create_user")
    user_id = str(len(USERS) + 1)
    USERS[user_id] = {"id": user_id, **user}
    return USERS[user_id]


@app.get("/users/{user_id}")
async def get_user(user_id: str):
    record_call("get_user")
    if user_id not in USERS:
        raise HTTPException(status_code=404, detail="User not found")
    return USERS[user_id]


@app.get("/feed/{topic}")
async def feed(topic: str):
    record_call("feed")
    return {"topic": topic, "items": [f"{topic}-{i}" for i in range(3)]}


@app.get("/search")
async def search(q: str = ""):
    record_call("search")
    return [user for user in USERS.values() if q.lower() in user["name"].lower()]


@app.get("/me")
async def me(request: Request):
    record_call("me")
    return {"authorization": request.headers.get("authorization")}


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "redis": cache_backend.state.value,
        "cache_enabled": route_cache.config.enabled,
    }


@app.get("/stats")
async def stats():
    return {
        "cache": route_cache.stats,
        "handler_calls": handler_calls,
        "routes": [route.pattern for route in route_cache.routes],
    }


@app.post("/stats/reset")
async def reset_stats():
    handler_calls.clear()
    return {"status": "reset"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
