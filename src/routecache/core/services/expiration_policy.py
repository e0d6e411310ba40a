"""Expiration policy engine.

Resolves a route's TTLDescriptor into a caching decision and records
the effective TTL for the cache key, which backends read when the
entry is written.

Adaptive routes count calls per key. The TTL moves to a step's value
only when the count lands exactly on that step's threshold; counts in
between keep the previous TTL. All counts are forgotten on a fixed
interval, independent of any key's age.
"""

import asyncio
import contextlib
import logging

from routecache.core.entities.cache_config import CacheConfig
from routecache.core.entities.expiration_state import ExpirationState, TTLTable
from routecache.core.entities.route_spec import RouteSpec
from routecache.core.entities.ttl_policy import TTLKind

logger = logging.getLogger(__name__)


class ExpirationPolicy:
    """Evaluates TTL policies against per-key usage state.

    One instance owns one ExpirationState. The periodic reset runs as
    an asyncio task, started by ``start()`` or lazily on the first
    adaptive evaluation inside a running event loop.
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        adaptive_enabled: bool = True,
        state: ExpirationState | None = None,
    ) -> None:
        """Initialize the policy engine.

        Args:
            config: Cache configuration. Uses defaults if not provided.
            adaptive_enabled: Whether call counting and the periodic
                reset are active at all.
            state: Optional pre-built state, mainly for tests.
        """
        self._config = config or CacheConfig()
        self._adaptive_enabled = adaptive_enabled
        self._state = state or ExpirationState()
        self._reset_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ExpirationState:
        return self._state

    @property
    def ttls(self) -> TTLTable:
        """The effective TTL table consulted by backends."""
        return self._state.ttls

    @property
    def running(self) -> bool:
        """True while the reset task is scheduled."""
        return self._reset_task is not None and not self._reset_task.done()

    def evaluate(self, route: RouteSpec, key: str) -> bool:
        """Decide whether ``key`` may be cached and record its TTL.

        Args:
            route: The matched route.
            key: The final cache key.

        Returns:
            False for disabled routes, True otherwise. When True, the
            TTL table holds a TTL for ``key``.
        """
        kind = route.ttl.kind

        if kind is TTLKind.DISABLED:
            return False

        if kind is TTLKind.FIXED:
            assert route.ttl.ms is not None
            self._state.ttls.set(key, route.ttl.ms)
        elif kind is TTLKind.ADAPTIVE and self._adaptive_enabled:
            self._evaluate_adaptive(key)
        else:
            self._state.ttls.set(key, self._config.default_timeout)

        return True

    def _evaluate_adaptive(self, key: str) -> None:
        self._ensure_reset_task()

        steps = self._config.step_table
        first_ttl = steps.first_ttl
        if first_ttl is None:
            first_ttl = self._config.default_timeout

        count = self._state.record_call(key, first_ttl, steps.ttl_for_count)
        if self._config.debug:
            logger.info(
                "[CACHE] %s called %d times, ttl %sms",
                key,
                count,
                self._state.ttls.get(key),
            )

    def reset_call_counts(self) -> None:
        """Run one reset sweep now."""
        if self._config.debug:
            logger.info("[CACHE] clearing call hit counter")
        self._state.reset_call_counts()

    def start(self) -> None:
        """Schedule the periodic reset on the running event loop.

        Does nothing when adaptive routes are disabled or the task is
        already running.
        """
        if not self._adaptive_enabled or self.running:
            return
        self._reset_task = asyncio.get_running_loop().create_task(
            self._reset_loop(), name="routecache-reset-call-counts"
        )

    async def close(self) -> None:
        """Cancel the periodic reset."""
        task, self._reset_task = self._reset_task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    def _ensure_reset_task(self) -> None:
        if self.running:
            return
        try:
            self.start()
        except RuntimeError:
            # No running loop (synchronous caller); counts accumulate
            # until start() is called from async code.
            pass

    async def _reset_loop(self) -> None:
        interval = self._config.reset_interval / 1000
        while True:
            await asyncio.sleep(interval)
            self.reset_call_counts()
