"""In-memory service simulation with configurable latency and failure injection."""

from __future__ import annotations

from ..exceptions import HealthCheckError, NotFoundError, ServiceConnectionError, TransientError
from ..monitoring.metrics import record_service_operation
from ..utils.logging import PASS_MARK, setup_logger
from ..utils.timing import Clock, RandomSource, SystemClock, make_random_source
from .base import ExternalService

logger = setup_logger(__name__)


class MockService(ExternalService):
    """Simulates an external service backed by a private key-value store."""

    def __init__(
        self,
        name: str,
        latency: float,
        failure_probability: float,
        *,
        clock: Clock | None = None,
        rng: RandomSource | None = None,
        failures_enabled: bool = True,
    ) -> None:
        """
        Initialize the mock service.

        Args:
            name: Human-readable service name used in logs and errors
            latency: Simulated response time in seconds
            failure_probability: Chance (0.0-1.0) that any single call fails
            clock: Sleep capability, defaults to the wall clock
            rng: Uniform random source, defaults to a private generator
            failures_enabled: When False, no call ever draws a failure
        """
        if latency < 0:
            raise ValueError("latency must be non-negative")
        if not 0.0 <= failure_probability <= 1.0:
            raise ValueError("failure_probability must be between 0.0 and 1.0")

        self.name = name
        self.latency = latency
        self.failure_probability = failure_probability
        self.failures_enabled = failures_enabled
        self._clock = clock or SystemClock()
        self._rng = rng or make_random_source()
        self._data: dict[str, str] = {}
        self._context = {"service": name}

    def __repr__(self) -> str:
        return (
            f"MockService(name={self.name!r}, latency={self.latency}, "
            f"failure_probability={self.failure_probability})"
        )

    def _should_fail(self) -> bool:
        # One draw per call, including when injection is disabled.
        draw = self._rng.random()
        return self.failures_enabled and draw < self.failure_probability

    def _call(self, operation: str, delay: float) -> bool:
        self._clock.sleep(delay)
        failed = self._should_fail()
        record_service_operation(self.name, operation, "failure" if failed else "success")
        return failed

    def connect(self) -> None:
        if self._call("connect", self.latency):
            raise ServiceConnectionError(self.name)
        logger.info(f"{PASS_MARK} Connected to {self.name}", extra=self._context)

    def ping(self) -> None:
        if self._call("ping", self.latency / 2):
            raise HealthCheckError(self.name)

    def get_data(self, key: str) -> str:
        if self._call("get_data", self.latency):
            raise TransientError(self.name, "get data from")
        try:
            return self._data[key]
        except KeyError:
            raise NotFoundError(key, self.name) from None

    def put_data(self, key: str, value: str) -> None:
        if self._call("put_data", self.latency):
            raise TransientError(self.name, "put data to")
        self._data[key] = value

    def list_keys(self) -> set[str]:
        if self._call("list_keys", self.latency):
            raise TransientError(self.name, "list keys from")
        return set(self._data)
