"""Ordered-step scenario runner with per-step failure injection."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

from ..exceptions import HarnessError, ScenarioStepFailure
from ..monitoring.metrics import (
    observe_scenario_duration,
    record_scenario_run,
    record_step_failure,
)
from ..services.base import ExternalService
from ..utils.config import RunOptions
from ..utils.logging import FAIL_MARK, PASS_MARK, bind_logger, log_scenario_outcome, setup_logger
from ..utils.retry import ConnectionPolicy
from ..utils.timing import Clock, RandomSource, SystemClock, make_random_source

logger = setup_logger(__name__)

SIMULATED_FAILURE = "simulated failure"


class ScenarioState(str, Enum):
    """Lifecycle of a single scenario run."""

    READY = "ready"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class StepStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class ScenarioContext:
    """Mutable state shared by the steps of one run."""

    scenario: str
    service: ExternalService | None
    policy: ConnectionPolicy
    written: dict[str, str] = field(default_factory=dict)
    last_key: str | None = None


StepAction = Callable[[ScenarioContext], None]


@dataclass(frozen=True, slots=True)
class Step:
    """A named step, optionally bound to an action against the scenario service."""

    name: str
    action: StepAction | None = None


class StepResult(BaseModel):
    """Outcome of a single step."""

    name: str
    status: StepStatus
    reason: str | None = None


class ScenarioResult(BaseModel):
    """Value-returned outcome of one scenario run."""

    scenario: str
    category: str = "custom"
    state: ScenarioState
    steps: list[StepResult] = Field(default_factory=list)
    failed_step: str | None = None
    failed_index: int | None = None
    reason: str | None = None
    duration_ms: int = 0

    @property
    def passed(self) -> bool:
        return self.state is ScenarioState.PASSED

    @property
    def completed_steps(self) -> list[str]:
        return [step.name for step in self.steps if step.status is StepStatus.PASSED]

    def raise_for_status(self) -> None:
        """Raise ScenarioStepFailure when the run did not pass."""

        if self.state is ScenarioState.FAILED:
            raise ScenarioStepFailure(
                self.scenario, self.failed_step or "-", self.reason or "unknown"
            )


class Scenario:
    """An ordered, named sequence of steps sharing a total duration budget."""

    def __init__(
        self,
        name: str,
        duration: float,
        failure_probability: float,
        steps: Sequence[str | Step],
        *,
        category: str = "custom",
    ) -> None:
        """
        Initialize scenario.

        Args:
            name: Scenario name for logging
            duration: Total duration budget in seconds, spread evenly across steps
            failure_probability: Chance (0.0-1.0) that any single step fails
            steps: Step names or bound steps, executed in order
            category: Category the scenario belongs to
        """
        if duration < 0:
            raise ValueError("duration must be non-negative")
        if not 0.0 <= failure_probability <= 1.0:
            raise ValueError("failure_probability must be between 0.0 and 1.0")

        self.name = name
        self.duration = duration
        self.failure_probability = failure_probability
        self.category = category
        self.steps: tuple[Step, ...] = tuple(
            step if isinstance(step, Step) else Step(step) for step in steps
        )

    def __repr__(self) -> str:
        return f"Scenario(name={self.name!r}, steps={len(self.steps)})"

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self.steps]

    @property
    def step_delay(self) -> float:
        if not self.steps:
            return 0.0
        return self.duration / len(self.steps)

    def run(
        self,
        options: RunOptions,
        *,
        clock: Clock | None = None,
        rng: RandomSource | None = None,
        service: ExternalService | None = None,
        policy: ConnectionPolicy | None = None,
        log: logging.Logger | logging.LoggerAdapter | None = None,
    ) -> ScenarioResult:
        """
        Execute every step in order, stopping at the first failure.

        Bound step actions only run when a service is supplied; without one
        the scenario is a pure timed sequence.

        Args:
            options: Run switches; failure injection and step logging follow them
            clock: Sleep capability, defaults to the wall clock
            rng: Uniform random source for failure draws
            service: Service the bound step actions run against
            policy: Connection policy used by connect actions
            log: Logger override

        Returns:
            ScenarioResult recording every step outcome
        """
        clock = clock or SystemClock()
        rng = rng or make_random_source()
        policy = policy or ConnectionPolicy(clock=clock)
        run_log = bind_logger(log or logger, scenario=self.name)
        context = ScenarioContext(scenario=self.name, service=service, policy=policy)

        delay = self.step_delay
        started = clock.monotonic()
        results: list[StepResult] = []
        failed_index: int | None = None
        reason: str | None = None

        run_log.info(f"Running {self.name} ({len(self.steps)} steps)")

        for index, step in enumerate(self.steps):
            if options.verbose:
                run_log.info(f"  → {step.name}...", extra={"step": step.name})

            clock.sleep(delay)
            if options.simulate_failures and rng.random() < self.failure_probability:
                reason = SIMULATED_FAILURE
                record_step_failure("simulated")
            elif step.action is not None and service is not None:
                try:
                    step.action(context)
                except HarnessError as exc:
                    reason = str(exc)
                    record_step_failure(type(exc).__name__)

            if reason is not None:
                failed_index = index
                results.append(StepResult(name=step.name, status=StepStatus.FAILED, reason=reason))
                if options.verbose:
                    run_log.warning(
                        f"  {FAIL_MARK} {step.name}: {reason}",
                        extra={"step": step.name, "status": "failed"},
                    )
                break

            results.append(StepResult(name=step.name, status=StepStatus.PASSED))
            if options.verbose:
                run_log.info(
                    f"  {PASS_MARK} {step.name}",
                    extra={"step": step.name, "status": "passed"},
                )

        if failed_index is not None:
            results.extend(
                StepResult(name=step.name, status=StepStatus.SKIPPED)
                for step in self.steps[failed_index + 1 :]
            )

        elapsed = clock.monotonic() - started
        duration_ms = int(round(elapsed * 1000))
        state = ScenarioState.PASSED if failed_index is None else ScenarioState.FAILED
        failed_step = self.steps[failed_index].name if failed_index is not None else None

        observe_scenario_duration(elapsed)
        record_scenario_run(self.category, state.value)
        log_scenario_outcome(
            run_log,
            self.name,
            state.value,
            duration_ms,
            step=failed_step,
            reason=reason,
        )

        return ScenarioResult(
            scenario=self.name,
            category=self.category,
            state=state,
            steps=results,
            failed_step=failed_step,
            failed_index=failed_index,
            reason=reason,
            duration_ms=duration_ms,
        )
