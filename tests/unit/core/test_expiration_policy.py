"""Tests for ExpirationPolicy."""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from routecache.core.entities import CacheConfig, RouteSpec, TTLDescriptor
from routecache.core.services.expiration_policy import ExpirationPolicy
from routecache.core.services.route_compiler import compile_pattern


def _route(ttl: TTLDescriptor, pattern: str = "/a") -> RouteSpec:
    kind, matcher = compile_pattern(pattern)
    return RouteSpec(pattern=pattern, kind=kind, ttl=ttl, matcher=matcher)


class TestEvaluate:
    """Tests for TTL resolution of non-adaptive routes."""

    def test_disabled(self) -> None:
        """Test disabled routes are never cached and record nothing."""
        policy = ExpirationPolicy()

        assert policy.evaluate(_route(TTLDescriptor.disabled()), "/a") is False
        assert "/a" not in policy.ttls

    def test_fixed(self) -> None:
        """Test fixed routes record their own TTL."""
        policy = ExpirationPolicy()

        assert policy.evaluate(_route(TTLDescriptor.fixed(1234)), "/a") is True
        assert policy.ttls.get("/a") == 1234

    def test_use_default(self) -> None:
        """Test default routes record the configured default TTL."""
        policy = ExpirationPolicy(CacheConfig(default_timeout=777))

        assert policy.evaluate(_route(TTLDescriptor.use_default()), "/a") is True
        assert policy.ttls.get("/a") == 777

    def test_adaptive_disabled_uses_default(self) -> None:
        """Test adaptive routes fall back to the default TTL when counting is off."""
        policy = ExpirationPolicy(
            CacheConfig(default_timeout=777), adaptive_enabled=False
        )

        policy.evaluate(_route(TTLDescriptor.adaptive()), "/a")

        assert policy.ttls.get("/a") == 777
        assert len(policy.state.call_counts) == 0

    def test_ttl_recorded_per_key(self) -> None:
        """Test TTLs are keyed by the final cache key."""
        policy = ExpirationPolicy()
        route = _route(TTLDescriptor.fixed(10))

        policy.evaluate(route, "/a#x")
        policy.evaluate(route, "/a#y")

        assert policy.ttls.get("/a#x") == 10
        assert policy.ttls.get("/a#y") == 10
        assert "/a" not in policy.ttls


class TestAdaptive:
    """Tests for adaptive TTLs."""

    @pytest.mark.asyncio
    async def test_default_step_sequence(self) -> None:
        """Test the TTL only changes when the count hits a threshold exactly."""
        policy = ExpirationPolicy()
        route = _route(TTLDescriptor.adaptive())
        observed = []

        for _ in range(5):
            assert policy.evaluate(route, "/a") is True
            observed.append(policy.ttls.get("/a"))

        assert observed == [1000, 1000, 2000, 2000, 2000]
        assert policy.state.call_counts.get("/a") == 5
        await policy.close()

    @pytest.mark.asyncio
    async def test_keys_counted_independently(self) -> None:
        """Test each cache key has its own call count."""
        policy = ExpirationPolicy()
        route = _route(TTLDescriptor.adaptive())

        for _ in range(3):
            policy.evaluate(route, "/a#one")
        policy.evaluate(route, "/a#two")

        assert policy.ttls.get("/a#one") == 2000
        assert policy.ttls.get("/a#two") == 1000
        await policy.close()

    @pytest.mark.asyncio
    async def test_empty_step_table_uses_default(self) -> None:
        """Test adaptive routes use the default TTL when no step is valid."""
        config = CacheConfig(default_timeout=4321, increasing={1: "never"})
        policy = ExpirationPolicy(config)

        policy.evaluate(_route(TTLDescriptor.adaptive()), "/a")

        assert policy.ttls.get("/a") == 4321
        await policy.close()

    @pytest.mark.asyncio
    async def test_debug_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test debug mode logs call counts."""
        policy = ExpirationPolicy(CacheConfig(debug=True))

        with caplog.at_level(logging.INFO, logger="routecache"):
            policy.evaluate(_route(TTLDescriptor.adaptive()), "/a")

        assert "[CACHE] /a called 1 times, ttl 1000ms" in caplog.text
        await policy.close()

    def test_counts_without_event_loop(self) -> None:
        """Test evaluation works from synchronous code without a reset task."""
        policy = ExpirationPolicy()

        policy.evaluate(_route(TTLDescriptor.adaptive()), "/a")

        assert policy.state.call_counts.get("/a") == 1
        assert not policy.running

    def test_concurrent_evaluations_counted(self) -> None:
        """Test adaptive evaluations from several threads are all counted."""
        policy = ExpirationPolicy()
        route = _route(TTLDescriptor.adaptive())

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: policy.evaluate(route, "/a"), range(400)))

        assert all(results)
        assert policy.state.call_counts.get("/a") == 400
        assert policy.ttls.get("/a") == 2000


class TestReset:
    """Tests for the periodic call-count reset."""

    def test_manual_reset_keeps_ttls(self) -> None:
        """Test a reset sweep forgets counts but not TTLs."""
        policy = ExpirationPolicy()
        route = _route(TTLDescriptor.adaptive())
        for _ in range(3):
            policy.evaluate(route, "/a")

        policy.reset_call_counts()

        assert "/a" not in policy.state.call_counts
        assert policy.ttls.get("/a") == 2000

    def test_counting_restarts_after_reset(self) -> None:
        """Test the first call after a reset assigns the first step TTL again."""
        policy = ExpirationPolicy()
        route = _route(TTLDescriptor.adaptive())
        for _ in range(3):
            policy.evaluate(route, "/a")

        policy.reset_call_counts()
        policy.evaluate(route, "/a")

        assert policy.state.call_counts.get("/a") == 1
        assert policy.ttls.get("/a") == 1000

    @pytest.mark.asyncio
    async def test_reset_task_clears_counts(self) -> None:
        """Test the background task clears counts on its interval."""
        policy = ExpirationPolicy(CacheConfig(reset_interval=10))
        policy.evaluate(_route(TTLDescriptor.adaptive()), "/a")

        assert policy.running
        await asyncio.sleep(0.05)

        assert len(policy.state.call_counts) == 0
        assert policy.ttls.get("/a") == 1000
        await policy.close()

    @pytest.mark.asyncio
    async def test_start_and_close(self) -> None:
        """Test start schedules the task once and close cancels it."""
        policy = ExpirationPolicy()

        policy.start()
        policy.start()
        assert policy.running

        await policy.close()
        assert not policy.running

        await policy.close()

    @pytest.mark.asyncio
    async def test_start_noop_when_adaptive_disabled(self) -> None:
        """Test no task is scheduled without adaptive routes."""
        policy = ExpirationPolicy(adaptive_enabled=False)

        policy.start()

        assert not policy.running
