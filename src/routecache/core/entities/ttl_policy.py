"""TTL descriptors and the adaptive step table.

A route carries exactly one TTLDescriptor. Adaptive routes share the
process-wide AdaptiveStepTable, which maps call-count thresholds to TTLs.
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from routecache.core.errors import ConfigurationError
from routecache.utils.durations import parse_duration

logger = logging.getLogger(__name__)

# Threshold (call count) -> TTL in milliseconds
DEFAULT_STEPS: dict[int, int] = {
    1: 1000,
    3: 2000,
    10: 3000,
    20: 4000,
    50: 5000,
}


class TTLKind(Enum):
    """Kind of expiration policy attached to a route."""

    DISABLED = "disabled"
    USE_DEFAULT = "default"
    FIXED = "fixed"
    ADAPTIVE = "increasing"


@dataclass(frozen=True)
class TTLDescriptor:
    """Tagged TTL value.

    Attributes:
        kind: Which policy applies.
        ms: TTL in milliseconds, only set for FIXED.
    """

    kind: TTLKind
    ms: int | None = None

    @property
    def is_disabled(self) -> bool:
        return self.kind is TTLKind.DISABLED

    @classmethod
    def disabled(cls) -> "TTLDescriptor":
        """Never cache the route."""
        return cls(TTLKind.DISABLED)

    @classmethod
    def use_default(cls) -> "TTLDescriptor":
        """Cache with the configured default timeout."""
        return cls(TTLKind.USE_DEFAULT)

    @classmethod
    def fixed(cls, ms: int) -> "TTLDescriptor":
        """Cache for a fixed number of milliseconds."""
        return cls(TTLKind.FIXED, int(ms))

    @classmethod
    def adaptive(cls) -> "TTLDescriptor":
        """Cache with a TTL that grows with call frequency."""
        return cls(TTLKind.ADAPTIVE)


@dataclass(frozen=True)
class AdaptiveStepTable:
    """Ordered ``(threshold, ttl_ms)`` pairs, ascending by threshold."""

    steps: tuple[tuple[int, int], ...] = ()

    def __iter__(self) -> Iterator[tuple[int, int]]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __bool__(self) -> bool:
        return bool(self.steps)

    @property
    def first_ttl(self) -> int | None:
        """TTL of the smallest threshold, or None when the table is empty."""
        if not self.steps:
            return None
        return self.steps[0][1]

    def ttl_for_count(self, count: int) -> int | None:
        """Return the TTL whose threshold equals ``count`` exactly.

        Counts that fall between thresholds return None; callers keep
        whatever TTL was assigned last.
        """
        for threshold, ttl in self.steps:
            if threshold == count:
                return ttl
        return None

    @classmethod
    def from_mapping(cls, raw: Mapping[Any, Any] | None) -> "AdaptiveStepTable":
        """Build a step table from user configuration.

        Thresholds may be ints or numeric strings. TTLs may be
        milliseconds or duration strings. Invalid pairs are dropped
        with a warning.

        Args:
            raw: Mapping of threshold to TTL, or None for the defaults.

        Returns:
            The normalized step table.
        """
        if raw is None:
            raw = DEFAULT_STEPS

        steps: dict[int, int] = {}
        for threshold, value in raw.items():
            try:
                count = _parse_threshold(threshold)
                steps[count] = parse_duration(value)
            except ConfigurationError as e:
                logger.warning("Dropping increasing step %r: %s", threshold, e)

        return cls(steps=tuple(sorted(steps.items())))


def _parse_threshold(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid threshold: {value!r}")
    try:
        count = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid threshold: {value!r}") from e
    if count < 1:
        raise ConfigurationError(f"Threshold must be >= 1: {value!r}")
    return count
