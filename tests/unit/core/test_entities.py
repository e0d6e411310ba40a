"""Tests for core entities."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from routecache.core.entities import (
    AdaptiveStepTable,
    CacheConfig,
    CachedResponse,
    CallCounter,
    ExpirationState,
    HttpRequest,
    PatternKind,
    RouteSpec,
    RouteTable,
    TTLDescriptor,
    TTLKind,
    TTLTable,
)
from routecache.core.services.route_compiler import compile_pattern


def _route(pattern: str, ttl: TTLDescriptor | None = None) -> RouteSpec:
    kind, matcher = compile_pattern(pattern)
    return RouteSpec(
        pattern=pattern,
        kind=kind,
        ttl=ttl or TTLDescriptor.use_default(),
        matcher=matcher,
    )


class TestTTLDescriptor:
    """Tests for TTLDescriptor entity."""

    def test_constructors(self) -> None:
        """Test the tagged constructors."""
        assert TTLDescriptor.disabled().kind is TTLKind.DISABLED
        assert TTLDescriptor.use_default().kind is TTLKind.USE_DEFAULT
        assert TTLDescriptor.adaptive().kind is TTLKind.ADAPTIVE

        fixed = TTLDescriptor.fixed(1500)
        assert fixed.kind is TTLKind.FIXED
        assert fixed.ms == 1500

    def test_is_disabled(self) -> None:
        """Test is_disabled property."""
        assert TTLDescriptor.disabled().is_disabled
        assert not TTLDescriptor.fixed(10).is_disabled

    def test_immutable(self) -> None:
        """Test that TTLDescriptor is immutable."""
        ttl = TTLDescriptor.fixed(10)

        with pytest.raises(AttributeError):
            ttl.ms = 20  # type: ignore


class TestAdaptiveStepTable:
    """Tests for AdaptiveStepTable."""

    def test_defaults(self) -> None:
        """Test the default thresholds."""
        table = AdaptiveStepTable.from_mapping(None)

        assert list(table) == [
            (1, 1000),
            (3, 2000),
            (10, 3000),
            (20, 4000),
            (50, 5000),
        ]
        assert table.first_ttl == 1000

    def test_sorted_by_threshold(self) -> None:
        """Test that steps are ordered ascending regardless of input order."""
        table = AdaptiveStepTable.from_mapping({10: 300, 1: 100, "5": 200})

        assert list(table) == [(1, 100), (5, 200), (10, 300)]

    def test_duration_strings(self) -> None:
        """Test duration strings are normalized to milliseconds."""
        table = AdaptiveStepTable.from_mapping(
            {1: "30s", 2: "5m", 3: "2h", 4: "1d"}
        )

        assert list(table) == [
            (1, 30000),
            (2, 300000),
            (3, 7200000),
            (4, 86400000),
        ]

    def test_invalid_values_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test invalid durations and thresholds are dropped with a warning."""
        table = AdaptiveStepTable.from_mapping(
            {1: "10s", 2: "soon", 3: "500", "x": 1000, 0: 1000}
        )

        assert list(table) == [(1, 10000)]
        assert "Dropping increasing step" in caplog.text

    def test_exact_threshold_lookup(self) -> None:
        """Test that only exact threshold counts yield a TTL."""
        table = AdaptiveStepTable.from_mapping(None)

        assert table.ttl_for_count(3) == 2000
        assert table.ttl_for_count(4) is None
        assert table.ttl_for_count(100) is None

    def test_empty(self) -> None:
        """Test an empty table."""
        table = AdaptiveStepTable.from_mapping({1: "never"})

        assert not table
        assert table.first_ttl is None


class TestRouteTable:
    """Tests for RouteTable matching."""

    def test_exact_match_beats_earlier_pattern(self) -> None:
        """Test that an exact route wins regardless of declaration order."""
        wildcard = _route("/users/*")
        param = _route("/users/:id")
        exact = _route("/users/me")
        table = RouteTable(routes=(wildcard, param, exact))

        assert table.match("/users/me") is exact

    def test_first_pattern_wins(self) -> None:
        """Test that the first matching pattern in declaration order wins."""
        param = _route("/users/:id")
        wildcard = _route("/users/*")
        table = RouteTable(routes=(param, wildcard))

        assert table.match("/users/42") is param
        assert table.match("/users/42/posts") is wildcard

    def test_no_match(self) -> None:
        """Test that unmatched paths return None."""
        table = RouteTable(routes=(_route("/users"),))

        assert table.match("/posts") is None

    def test_exact_route_does_not_match_prefix(self) -> None:
        """Test that exact routes only match the identical path."""
        table = RouteTable(routes=(_route("/users"),))

        assert table.match("/users/1") is None
        assert table.match("/users/") is None

    def test_len_and_bool(self) -> None:
        """Test container protocol."""
        assert not RouteTable()
        assert len(RouteTable(routes=(_route("/a"), _route("/b")))) == 2


class TestCachedResponse:
    """Tests for CachedResponse."""

    def test_headers_record(self) -> None:
        """Test the persisted headers record has exactly four fields."""
        response = CachedResponse(
            status=201,
            message="Created",
            header={"content-type": "text/plain"},
            body=b"hello",
        )

        assert response.to_headers_record() == {
            "status": 201,
            "message": "Created",
            "header": {"content-type": "text/plain"},
            "body": True,
        }

    def test_headers_record_without_body(self) -> None:
        """Test body presence flag for empty bodies."""
        record = CachedResponse(status=204, message="No Content").to_headers_record()

        assert record["body"] is False

    def test_from_record_replays_fields(self) -> None:
        """Test replaying a stored record and body."""
        record = {
            "status": 404,
            "message": "Not Found",
            "header": {"x-a": "1", "x-b": "2"},
            "body": True,
        }

        response = CachedResponse.from_record(record, b"missing")

        assert response.status == 404
        assert response.message == "Not Found"
        assert response.header == {"x-a": "1", "x-b": "2"}
        assert response.body == b"missing"

    def test_from_record_ignores_unknown_fields(self) -> None:
        """Test that fields outside the record schema are ignored."""
        record = {"status": 200, "message": "OK", "header": {}, "extra": "x"}

        response = CachedResponse.from_record(record)

        assert not hasattr(response, "extra")
        assert response.body is None

    def test_from_record_accepts_text_body(self) -> None:
        """Test that text bodies are encoded."""
        response = CachedResponse.from_record({"status": 200}, "text")

        assert response.body == b"text"


class TestHttpRequest:
    """Tests for HttpRequest."""

    def test_create_normalizes(self) -> None:
        """Test method and header names are normalized."""
        request = HttpRequest.create(
            method="get",
            path="/a",
            headers={"X-Token": "abc"},
        )

        assert request.method == "GET"
        assert request.header("x-token") == "abc"
        assert request.header("X-TOKEN") == "abc"

    def test_query_value(self) -> None:
        """Test query value lookup returns the first match."""
        request = HttpRequest.create(
            method="GET",
            path="/a",
            query_params=[("x", "1"), ("x", "2")],
        )

        assert request.query_value("x") == "1"
        assert request.query_value("y") is None


class TestCacheConfig:
    """Tests for CacheConfig."""

    def test_defaults(self) -> None:
        """Test default configuration values."""
        config = CacheConfig()

        assert config.enabled is True
        assert config.default_timeout == 5000
        assert config.reset_interval == 60000
        assert config.debug is False
        assert config.step_table.first_ttl == 1000

    def test_from_options(self) -> None:
        """Test camelCase option mapping."""
        config = CacheConfig.from_options(
            {
                "defaultTimeout": 1234,
                "increasing": {1: "1s", 2: "2s"},
                "debug": True,
            }
        )

        assert config.default_timeout == 1234
        assert list(config.step_table) == [(1, 1000), (2, 2000)]
        assert config.debug is True

    def test_from_options_snake_case(self) -> None:
        """Test snake_case spellings are accepted."""
        config = CacheConfig.from_options({"default_timeout": 10, "reset_interval": 5})

        assert config.default_timeout == 10
        assert config.reset_interval == 5

    def test_from_options_none(self) -> None:
        """Test that None yields defaults."""
        assert CacheConfig.from_options(None).default_timeout == 5000


class TestExpirationState:
    """Tests for ExpirationState."""

    def test_record_call_first_and_exact_steps(self) -> None:
        """Test the first call assigns the first TTL and gaps keep it."""
        state = ExpirationState()
        steps = {3: 30}.get

        assert state.record_call("k", 10, steps) == 1
        assert state.ttls.get("k") == 10

        assert state.record_call("k", 10, steps) == 2
        assert state.ttls.get("k") == 10

        assert state.record_call("k", 10, steps) == 3
        assert state.ttls.get("k") == 30

    def test_reset_keeps_ttls(self) -> None:
        """Test the counter reset leaves TTLs untouched."""
        state = ExpirationState()
        state.record_call("k", 10, {}.get)

        state.reset_call_counts()

        assert "k" not in state.call_counts
        assert state.ttls.get("k") == 10

    def test_resolve_default(self) -> None:
        """Test TTL fallback for unknown keys."""
        state = ExpirationState()

        assert state.ttls.resolve("missing", 5000) == 5000

    def test_tables_share_one_lock(self) -> None:
        """Test both tables accept and use an injected lock."""
        lock = threading.RLock()
        ttls = TTLTable(lock)
        counts = CallCounter(lock)

        with lock:
            ttls.set("k", 10)
            counts.increment("k")

        assert ttls.get("k") == 10
        assert counts.get("k") == 1

    def test_concurrent_calls_are_all_counted(self) -> None:
        """Test increments on one key from many threads are never lost."""
        state = ExpirationState()
        threads, calls_per_thread = 8, 500

        def hammer() -> None:
            for _ in range(calls_per_thread):
                state.record_call("k", 10, {}.get)

        with ThreadPoolExecutor(max_workers=threads) as pool:
            for future in [pool.submit(hammer) for _ in range(threads)]:
                future.result()

        assert state.call_counts.get("k") == threads * calls_per_thread
        assert state.ttls.get("k") == 10


class TestPatternKinds:
    """Tests for pattern kind detection."""

    @pytest.mark.parametrize(
        ("pattern", "kind"),
        [
            ("/users", PatternKind.EXACT),
            ("/users/:id", PatternKind.PARAMETERIZED),
            ("/files/*", PatternKind.WILDCARD),
            ("/a/:id/*", PatternKind.WILDCARD),
        ],
    )
    def test_kind(self, pattern: str, kind: PatternKind) -> None:
        """Test the kind assigned to each pattern."""
        assert compile_pattern(pattern)[0] is kind
