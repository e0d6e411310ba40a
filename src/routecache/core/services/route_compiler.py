"""Route table compiler.

Turns a declarative route mapping into an ordered RouteTable. Each
value selects a TTL policy:

    {
        "/health": False,                 # never cache
        "/users": True,                   # default timeout
        "/users/:id": 10000,              # fixed 10s
        "/feed/*": "increasing",          # adaptive
        "/search": {
            "timeout": 2000,
            "cacheKeyArgs": {"query": True, "headers": ["accept-language"]},
        },
    }

Entries that cannot be compiled are logged and dropped.
"""

import logging
import math
import re
from collections.abc import Mapping
from typing import Any

from routecache.core.entities.route_spec import (
    ALL,
    FieldSelection,
    KeyAugmentation,
    PatternKind,
    RouteSpec,
    RouteTable,
)
from routecache.core.entities.ttl_policy import TTLDescriptor, TTLKind
from routecache.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

ADAPTIVE_TAG = "increasing"

_PARAM_RE = re.compile(r":[A-Za-z0-9]+")
_PARAM_SEGMENT = "[A-Za-z0-9]+"


class RouteCompiler:
    """Compiles route mappings into RouteTables."""

    def compile(self, routes: Mapping[str, Any]) -> RouteTable:
        """Compile a route mapping, preserving declaration order.

        Args:
            routes: Route pattern to raw route value.

        Returns:
            The compiled table. ``adaptive_enabled`` is set when any
            surviving route uses the adaptive policy.
        """
        compiled: list[RouteSpec] = []

        for pattern, value in routes.items():
            try:
                route = self.compile_route(pattern, value)
            except ConfigurationError as e:
                logger.warning("Dropping route %r: %s", pattern, e)
                continue
            compiled.append(route)

        adaptive = any(route.ttl.kind is TTLKind.ADAPTIVE for route in compiled)
        return RouteTable(routes=tuple(compiled), adaptive_enabled=adaptive)

    def compile_route(self, pattern: str, value: Any) -> RouteSpec:
        """Compile a single route entry.

        Args:
            pattern: The declared route pattern.
            value: Bool, number, ``"increasing"`` or a mapping with
                ``timeout`` and ``cacheKeyArgs``.

        Returns:
            The compiled route.

        Raises:
            ConfigurationError: If the entry is malformed.
        """
        if not isinstance(pattern, str) or not pattern:
            raise ConfigurationError("route pattern must be a non-empty string")

        augmentation: KeyAugmentation | None = None

        if isinstance(value, Mapping):
            timeout = value.get("timeout")
            if timeout is None:
                ttl = TTLDescriptor.use_default()
            else:
                ttl = parse_timeout(timeout)
            if "cacheKeyArgs" in value:
                augmentation = parse_key_args(value["cacheKeyArgs"])
        else:
            ttl = parse_timeout(value)

        kind, matcher = compile_pattern(pattern)

        return RouteSpec(
            pattern=pattern,
            kind=kind,
            ttl=ttl,
            matcher=matcher,
            key_augmentation=augmentation,
        )


def parse_timeout(value: Any) -> TTLDescriptor:
    """Map a raw timeout value to a TTLDescriptor.

    Raises:
        ConfigurationError: If the value is not a bool, a number or
            the adaptive tag, or a number that is negative or not finite.
    """
    if isinstance(value, bool):
        return TTLDescriptor.use_default() if value else TTLDescriptor.disabled()
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ConfigurationError(f"non-finite timeout {value!r}")
        if value < 0:
            raise ConfigurationError(f"negative timeout {value!r}")
        return TTLDescriptor.fixed(int(value))
    if isinstance(value, str):
        if value == ADAPTIVE_TAG:
            return TTLDescriptor.adaptive()
        if value.isdigit():
            return TTLDescriptor.fixed(int(value))
    raise ConfigurationError(f"invalid timeout {value!r}")


def parse_key_args(value: Any) -> KeyAugmentation | None:
    """Normalize a ``cacheKeyArgs`` value.

    A bare string names one header or query parameter. A mapping may
    select ``headers`` and ``query``. Lists are rejected outright.

    Raises:
        ConfigurationError: If the value has an unsupported shape.
    """
    if value is None or value is False:
        return None
    if isinstance(value, (list, tuple)):
        raise ConfigurationError("cacheKeyArgs of array type not supported")
    if isinstance(value, str):
        return KeyAugmentation(custom=value)
    if isinstance(value, Mapping):
        augmentation = KeyAugmentation(
            headers=_parse_selection(value.get("headers"), "headers"),
            query=_parse_selection(value.get("query"), "query"),
        )
        return None if augmentation.is_empty else augmentation
    raise ConfigurationError(f"invalid cacheKeyArgs {value!r}")


def _parse_selection(value: Any, name: str) -> FieldSelection:
    if value is None or value is False:
        return None
    if value is True:
        return ALL
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return tuple(value)
    raise ConfigurationError(f"invalid cacheKeyArgs.{name} {value!r}")


def compile_pattern(pattern: str) -> tuple[PatternKind, re.Pattern[str] | None]:
    """Compile a route pattern into its kind and matcher.

    ``*`` matches any substring and the match is unanchored. ``:name``
    matches one or more alphanumerics, anchored, with an optional
    trailing slash. Anything else is an exact path.
    """
    if "*" in pattern:
        regex = ".*".join(re.escape(part) for part in pattern.split("*"))
        return PatternKind.WILDCARD, re.compile(regex)

    if _PARAM_RE.search(pattern):
        literals = _PARAM_RE.split(pattern)
        regex = _PARAM_SEGMENT.join(re.escape(part) for part in literals)
        if regex.endswith("/"):
            regex = regex[:-1]
        if pattern.startswith("/"):
            regex = "^" + regex
        return PatternKind.PARAMETERIZED, re.compile(regex + "/?$")

    return PatternKind.EXACT, None
