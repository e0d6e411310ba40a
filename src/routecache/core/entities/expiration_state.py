"""Shared mutable state behind the expiration policy.

Both tables share one re-entrant lock, so an adaptive evaluation can
bump a call count and assign the resulting TTL as one atomic step.
"""

import threading
from collections.abc import Callable


class TTLTable:
    """Cache key -> resolved TTL in milliseconds.

    Written by the expiration policy, read by backends at write time.
    """

    def __init__(self, lock: "threading.RLock | None" = None) -> None:
        self._lock = lock if lock is not None else threading.RLock()
        self._ttls: dict[str, int] = {}

    def get(self, key: str) -> int | None:
        with self._lock:
            return self._ttls.get(key)

    def set(self, key: str, ttl_ms: int) -> None:
        with self._lock:
            self._ttls[key] = ttl_ms

    def resolve(self, key: str, default_ms: int) -> int:
        """Return the TTL for ``key``, falling back to ``default_ms``."""
        with self._lock:
            return self._ttls.get(key, default_ms)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._ttls

    def __len__(self) -> int:
        with self._lock:
            return len(self._ttls)


class CallCounter:
    """Cache key -> number of adaptive evaluations since the last reset."""

    def __init__(self, lock: "threading.RLock | None" = None) -> None:
        self._lock = lock if lock is not None else threading.RLock()
        self._counts: dict[str, int] = {}

    def get(self, key: str) -> int | None:
        with self._lock:
            return self._counts.get(key)

    def increment(self, key: str) -> int:
        """Bump the count for ``key`` (starting at 1) and return it."""
        with self._lock:
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count
            return count

    def clear(self) -> None:
        with self._lock:
            self._counts = {}

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._counts

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)


class ExpirationState:
    """Call counts and effective TTLs owned by one ExpirationPolicy."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.call_counts = CallCounter(self.lock)
        self.ttls = TTLTable(self.lock)

    def record_call(
        self,
        key: str,
        first_ttl: int,
        ttl_for_count: Callable[[int], int | None],
    ) -> int:
        """Count one adaptive evaluation of ``key`` and update its TTL.

        The first call assigns ``first_ttl``. Later calls assign
        ``ttl_for_count(count)`` unless it returns None, in which case
        the previous TTL stays in place.

        Returns:
            The new call count.
        """
        with self.lock:
            count = self.call_counts.increment(key)
            if count == 1:
                self.ttls.set(key, first_ttl)
            else:
                ttl = ttl_for_count(count)
                if ttl is not None:
                    self.ttls.set(key, ttl)
            return count

    def reset_call_counts(self) -> None:
        """Forget all call counts. TTLs are left untouched."""
        self.call_counts.clear()
