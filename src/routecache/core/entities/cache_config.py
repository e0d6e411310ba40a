"""Cache configuration entity."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from routecache.core.entities.ttl_policy import AdaptiveStepTable

DEFAULT_TIMEOUT_MS = 5000
RESET_INTERVAL_MS = 60000


@dataclass
class CacheConfig:
    """Cache configuration.

    All durations are in milliseconds.

    Adaptive Mode:
        Routes declared as ``"increasing"`` use ``increasing``, a mapping
        from call-count threshold to TTL. Call counts are forgotten every
        ``reset_interval``.
    """

    enabled: bool = True
    default_timeout: int = DEFAULT_TIMEOUT_MS
    increasing: Mapping[Any, Any] | None = None
    reset_interval: int = RESET_INTERVAL_MS
    debug: bool = False

    step_table: AdaptiveStepTable = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Normalize the adaptive step table."""
        self.step_table = AdaptiveStepTable.from_mapping(self.increasing)

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> "CacheConfig":
        """Create a config from a camelCase option mapping.

        Recognized keys: ``defaultTimeout``, ``increasing``,
        ``resetInterval``, ``debug`` and ``enabled``. Snake-case
        spellings are accepted as well.

        Args:
            options: The option mapping, or None for defaults.

        Returns:
            A new CacheConfig.
        """
        options = options or {}

        def pick(camel: str, snake: str, default: Any) -> Any:
            if camel in options:
                return options[camel]
            return options.get(snake, default)

        return cls(
            enabled=bool(pick("enabled", "enabled", True)),
            default_timeout=int(
                pick("defaultTimeout", "default_timeout", DEFAULT_TIMEOUT_MS)
            ),
            increasing=pick("increasing", "increasing", None),
            reset_interval=int(
                pick("resetInterval", "reset_interval", RESET_INTERVAL_MS)
            ),
            debug=bool(pick("debug", "debug", False)),
        )
