"""Bounded connect retry built on tenacity."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_none,
)

from ..exceptions import ConnectionRetriesExhausted, ServiceConnectionError
from ..monitoring.metrics import record_connection_retry
from .logging import setup_logger
from .timing import Clock, SystemClock

logger = setup_logger(__name__)


class Connectable(Protocol):
    """Anything exposing the simulated service connect contract."""

    def connect(self) -> None: ...


def _service_name(service: Any) -> str:
    return str(getattr(service, "name", None) or service.__class__.__name__)


@dataclass(slots=True)
class ConnectionPolicy:
    """Retries a service connect a fixed number of times with no backoff."""

    max_retries: int = 3
    clock: Clock = field(default_factory=SystemClock)
    log: logging.Logger | logging.LoggerAdapter | None = None

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

    def connect(self, service: Connectable) -> int:
        """
        Connect to ``service``, retrying failed attempts immediately.

        Args:
            service: Object satisfying the connect contract

        Returns:
            Number of attempts it took to connect

        Raises:
            ConnectionRetriesExhausted: If every attempt failed
        """
        name = _service_name(service)
        log = self.log or logger
        attempts = 0

        def _attempt() -> None:
            nonlocal attempts
            attempts += 1
            service.connect()

        def _before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            record_connection_retry(name)
            log.warning(
                f"Retry attempt {retry_state.attempt_number}/{self.max_retries - 1} "
                f"connecting to {name}: {error}",
                extra={"service": name, "status": "retrying"},
            )

        def _give_up(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            raise ConnectionRetriesExhausted(name, attempts, error) from error

        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_none(),
            retry=retry_if_exception_type(ServiceConnectionError),
            before_sleep=_before_sleep,
            sleep=self.clock.sleep,
            retry_error_callback=_give_up,
        )
        retrying(_attempt)
        return attempts

    def to_dict(self) -> dict[str, object]:
        """Return a serializable representation for logging."""

        return {"max_retries": self.max_retries, "backoff": None}
