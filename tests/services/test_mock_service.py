"""Tests for the in-memory mock service."""

from __future__ import annotations

import logging

import pytest

from integration_harness.exceptions import (
    HealthCheckError,
    NotFoundError,
    ServiceConnectionError,
    TransientError,
)
from integration_harness.services import ExternalService, MockService
from integration_harness.testing import FakeClock, ScriptedRandom


def make_service(
    probability: float = 0.0,
    *,
    latency: float = 0.1,
    clock: FakeClock | None = None,
    rng: ScriptedRandom | None = None,
    failures_enabled: bool = True,
) -> MockService:
    return MockService(
        "Test Storage",
        latency,
        probability,
        clock=clock or FakeClock(),
        rng=rng or ScriptedRandom(default=0.5),
        failures_enabled=failures_enabled,
    )


class TestMockServiceContract:
    """Test suite for the basic service contract."""

    def test_is_external_service(self):
        """MockService implements the abstract service interface."""
        assert isinstance(make_service(), ExternalService)

    def test_put_then_get_returns_value(self):
        """Stored values are returned unchanged."""
        service = make_service(failures_enabled=False)

        service.put_data("greeting", "hello")

        assert service.get_data("greeting") == "hello"

    def test_put_overwrites_existing_value(self):
        """A second put replaces the first value."""
        service = make_service()
        service.put_data("k", "v1")
        service.put_data("k", "v2")

        assert service.get_data("k") == "v2"

    def test_list_keys_returns_exact_set(self):
        """Listing returns every stored key and nothing else."""
        service = make_service(failures_enabled=False)
        service.put_data("k1", "v1")
        service.put_data("k2", "v2")

        assert service.list_keys() == {"k1", "k2"}

    def test_list_keys_on_new_service_is_empty(self):
        """Stores start empty."""
        assert make_service().list_keys() == set()

    def test_get_missing_key_raises_not_found(self):
        """Missing keys surface as NotFoundError naming the key."""
        service = make_service()

        with pytest.raises(NotFoundError, match="key missing not found") as exc_info:
            service.get_data("missing")

        assert exc_info.value.key == "missing"

    def test_stores_are_not_shared(self):
        """Each instance owns its own store."""
        first = make_service()
        second = make_service()
        first.put_data("k", "v")

        assert second.list_keys() == set()

    def test_connect_logs_confirmation(self, caplog):
        """Successful connects emit a confirmation naming the service."""
        service = make_service()

        with caplog.at_level(logging.INFO):
            service.connect()

        assert "✓ Connected to Test Storage" in caplog.text

    def test_invalid_probability_rejected(self):
        """Probabilities outside [0, 1] are rejected."""
        with pytest.raises(ValueError):
            MockService("bad", 0.1, 1.5)

    def test_negative_latency_rejected(self):
        """Negative latency is rejected."""
        with pytest.raises(ValueError):
            MockService("bad", -0.1, 0.0)


class TestMockServiceLatency:
    """Test suite for simulated response times."""

    @pytest.mark.parametrize(
        "operation",
        [
            lambda s: s.connect(),
            lambda s: s.put_data("k", "v"),
            lambda s: s.list_keys(),
        ],
    )
    def test_full_latency_operations(self, operation):
        """Connect and data operations sleep for the full latency."""
        clock = FakeClock()
        service = make_service(latency=0.2, clock=clock)

        operation(service)

        assert clock.sleeps == [0.2]

    def test_get_sleeps_full_latency(self):
        """get_data sleeps for the full latency even when the key is missing."""
        clock = FakeClock()
        service = make_service(latency=0.2, clock=clock)

        with pytest.raises(NotFoundError):
            service.get_data("missing")

        assert clock.sleeps == [0.2]

    def test_ping_uses_half_latency(self):
        """Health checks are lightweight."""
        clock = FakeClock()
        service = make_service(latency=0.2, clock=clock)

        service.ping()

        assert clock.sleeps == [pytest.approx(0.1)]


class TestMockServiceFailureInjection:
    """Test suite for probabilistic failures."""

    def test_probability_one_fails_every_operation(self):
        """With p=1 every operation fails with its own error type."""
        service = make_service(1.0, rng=ScriptedRandom(default=0.999))

        with pytest.raises(ServiceConnectionError, match="failed to connect to Test Storage"):
            service.connect()
        with pytest.raises(HealthCheckError, match="Test Storage is not responding"):
            service.ping()
        with pytest.raises(TransientError, match="failed to get data from Test Storage"):
            service.get_data("k")
        with pytest.raises(TransientError, match="failed to put data to Test Storage"):
            service.put_data("k", "v")
        with pytest.raises(TransientError, match="failed to list keys from Test Storage"):
            service.list_keys()

    def test_probability_zero_never_fails(self):
        """With p=0 even a zero draw succeeds."""
        service = make_service(0.0, rng=ScriptedRandom(default=0.0))

        service.connect()
        service.ping()
        service.put_data("k", "v")
        assert service.get_data("k") == "v"
        assert service.list_keys() == {"k"}

    def test_draw_below_probability_fails(self):
        """A draw strictly below the probability injects a failure."""
        service = make_service(0.3, rng=ScriptedRandom([0.29, 0.3]))

        with pytest.raises(ServiceConnectionError):
            service.connect()
        service.connect()

    def test_failed_put_does_not_mutate(self):
        """Injected put failures leave the store untouched."""
        service = make_service(0.5, rng=ScriptedRandom([0.1, 0.9]))

        with pytest.raises(TransientError):
            service.put_data("k", "v")

        assert service.list_keys() == set()

    def test_transient_failure_takes_precedence_over_not_found(self):
        """A failed draw reports TransientError even for missing keys."""
        service = make_service(1.0)

        with pytest.raises(TransientError):
            service.get_data("missing")

    def test_disabled_failures_ignore_probability(self):
        """With failure simulation disabled, p=1 never fails."""
        service = make_service(1.0, failures_enabled=False)

        service.connect()
        service.put_data("k", "v")
        assert service.get_data("k") == "v"

    def test_each_call_draws_independently(self):
        """Every operation consumes exactly one draw."""
        rng = ScriptedRandom(default=0.9)
        service = make_service(0.1, rng=rng)

        service.connect()
        service.ping()
        service.put_data("k", "v")
        service.get_data("k")
        service.list_keys()

        assert rng.calls == 5
