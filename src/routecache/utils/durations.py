"""Duration parsing for adaptive step tables."""

import re

from routecache.core.errors import ConfigurationError

_DURATION_RE = re.compile(r"^(\d+(?:\.\d+)?)([smhd])$")

_UNIT_MS = {
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
}


def parse_duration(value: int | float | str) -> int:
    """Normalize a duration to milliseconds.

    Numbers are taken as milliseconds already. Strings must carry a
    unit suffix: ``"30s"``, ``"5m"``, ``"2h"`` or ``"1d"``.

    Args:
        value: The duration to normalize.

    Returns:
        The duration in milliseconds.

    Raises:
        ConfigurationError: If the value is not a valid duration.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid duration: {value!r}")

    if isinstance(value, (int, float)):
        if value < 0:
            raise ConfigurationError(f"Negative duration: {value!r}")
        return int(value)

    if isinstance(value, str):
        match = _DURATION_RE.match(value.strip())
        if match:
            amount, unit = match.groups()
            return int(float(amount) * _UNIT_MS[unit])

    raise ConfigurationError(f"Invalid duration: {value!r}")
