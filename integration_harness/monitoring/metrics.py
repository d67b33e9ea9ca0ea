"""Prometheus metrics definitions for the integration harness."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

SCENARIO_RUNS = Counter(
    "harness_scenario_runs_total",
    "Total scenario runs by category and outcome.",
    labelnames=("category", "status"),
)

SCENARIO_STEP_FAILURES = Counter(
    "harness_scenario_step_failures_total",
    "Total scenario steps that failed, grouped by failure kind.",
    labelnames=("kind",),
)

SCENARIO_DURATION = Histogram(
    "harness_scenario_duration_seconds",
    "Distribution of scenario run durations in seconds.",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)

SERVICE_OPERATIONS = Counter(
    "harness_service_operations_total",
    "Total simulated service operations by service, operation and outcome.",
    labelnames=("service", "operation", "status"),
)

CONNECTION_RETRIES = Counter(
    "harness_connection_retries_total",
    "Total connect retries issued by the connection policy.",
    labelnames=("service",),
)


def record_scenario_run(category: str, status: str) -> None:
    """Increment the scenario run counter with the supplied labels."""

    SCENARIO_RUNS.labels(category=category, status=status).inc()


def record_step_failure(kind: str) -> None:
    """Increment the step failure counter for the provided failure kind."""

    SCENARIO_STEP_FAILURES.labels(kind=kind).inc()


def observe_scenario_duration(duration_seconds: float) -> None:
    """Record how long a scenario run took."""

    if duration_seconds < 0:
        duration_seconds = 0.0
    SCENARIO_DURATION.observe(duration_seconds)


def record_service_operation(service: str, operation: str, status: str) -> None:
    """Increment the service operation counter."""

    SERVICE_OPERATIONS.labels(service=service, operation=operation, status=status).inc()


def record_connection_retry(service: str) -> None:
    CONNECTION_RETRIES.labels(service=service).inc()
