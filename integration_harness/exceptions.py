"""Custom exceptions for the integration harness."""

from __future__ import annotations

from collections.abc import Sequence


class HarnessError(Exception):
    """Base exception for all integration harness errors."""

    pass


class ServiceConnectionError(HarnessError, ConnectionError):
    """Raised when a connect attempt against a simulated service fails."""

    def __init__(self, service_name: str, message: str | None = None) -> None:
        super().__init__(message or f"failed to connect to {service_name}")
        self.service_name = service_name


class ConnectionRetriesExhausted(ServiceConnectionError):
    """Raised when the connection policy has used up every attempt."""

    def __init__(
        self,
        service_name: str,
        attempts: int,
        last_error: BaseException | None = None,
    ) -> None:
        message = f"failed to connect to {service_name} after {attempts} attempts"
        if last_error is not None:
            message = f"{message}: {last_error}"
        super().__init__(service_name, message)
        self.attempts = attempts
        self.last_error = last_error


class HealthCheckError(HarnessError):
    """Raised when a service does not answer a health check."""

    def __init__(self, service_name: str) -> None:
        super().__init__(f"{service_name} is not responding")
        self.service_name = service_name


class NotFoundError(HarnessError):
    """Raised when a requested key is absent from a service store."""

    def __init__(self, key: str, service_name: str | None = None) -> None:
        super().__init__(f"key {key} not found")
        self.key = key
        self.service_name = service_name


class TransientError(HarnessError):
    """Raised when a data operation hits a simulated failure."""

    def __init__(self, service_name: str, operation: str) -> None:
        super().__init__(f"failed to {operation} {service_name}")
        self.service_name = service_name
        self.operation = operation


class DataMismatchError(HarnessError):
    """Raised when a verification step reads back an unexpected value."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"data mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class ScenarioStepFailure(HarnessError):
    """Raised when a scenario halted at a failing step."""

    def __init__(self, scenario: str, step: str, reason: str) -> None:
        super().__init__(f"{scenario} failed at step '{step}': {reason}")
        self.scenario = scenario
        self.step = step
        self.reason = reason


class SuiteFailedError(HarnessError):
    """Raised when one or more selected scenarios did not pass."""

    def __init__(self, failures: Sequence[str]) -> None:
        joined = ", ".join(failures)
        super().__init__(f"{len(failures)} scenario(s) failed: {joined}")
        self.failures = list(failures)


class ConfigurationError(HarnessError):
    """Raised when configuration is invalid or missing."""

    pass


class CategoryNotFoundError(HarnessError):
    """Raised when a requested scenario category is not defined."""

    pass


class ServiceNotFoundError(HarnessError):
    """Raised when a requested service kind is not registered."""

    pass
