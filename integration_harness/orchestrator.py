"""Category selection and suite orchestration."""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from .exceptions import SuiteFailedError
from .scenarios.catalog import ScenarioCatalog, load_catalog, service_check_scenario
from .scenarios.runner import Scenario, ScenarioResult, ScenarioState
from .services.base import ExternalService
from .services.registry import DEFAULT_PROFILES, ServiceProfile, build_service
from .utils.config import HarnessSettings, RunOptions, get_settings
from .utils.logging import setup_logger
from .utils.retry import ConnectionPolicy
from .utils.timing import Clock, RandomSource, SystemClock, make_random_source

logger = setup_logger(__name__)

SUITE_TIMEOUT_REASON = "suite timeout"


class SuiteReport(BaseModel):
    """Per-scenario outcome matrix for one suite run."""

    options: RunOptions
    results: list[ScenarioResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_ms: int = 0

    def _with_state(self, state: ScenarioState) -> list[ScenarioResult]:
        return [result for result in self.results if result.state is state]

    @property
    def passed(self) -> list[ScenarioResult]:
        return self._with_state(ScenarioState.PASSED)

    @property
    def failed(self) -> list[ScenarioResult]:
        return self._with_state(ScenarioState.FAILED)

    @property
    def skipped(self) -> list[ScenarioResult]:
        return self._with_state(ScenarioState.SKIPPED)

    @property
    def succeeded(self) -> bool:
        """True only when every selected scenario ran and passed."""

        selected = set(self.options.resolve().selected_categories())
        for result in self.results:
            if result.state is ScenarioState.FAILED:
                return False
            if result.state is ScenarioState.SKIPPED and result.category in selected:
                return False
        return True

    def matrix(self) -> dict[str, str]:
        """Return scenario name -> outcome, in execution order."""

        return {result.scenario: result.state.value for result in self.results}

    def counts(self) -> dict[str, int]:
        return {
            "passed": len(self.passed),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
        }

    def raise_for_failures(self) -> None:
        """Raise SuiteFailedError naming every scenario that did not pass."""

        if self.succeeded:
            return
        selected = set(self.options.resolve().selected_categories())
        failures = [
            result.scenario
            for result in self.results
            if result.state is ScenarioState.FAILED
            or (result.state is ScenarioState.SKIPPED and result.category in selected)
        ]
        raise SuiteFailedError(failures)


class Orchestrator:
    """Maps selected categories to scenarios, runs them and aggregates outcomes."""

    def __init__(
        self,
        catalog: ScenarioCatalog | None = None,
        *,
        settings: HarnessSettings | None = None,
        clock: Clock | None = None,
        rng: RandomSource | None = None,
        profiles: dict[str, ServiceProfile] | None = None,
        max_workers: int | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initialize orchestrator.

        Args:
            catalog: Scenario catalog, defaults to the configured or built-in one
            settings: Harness settings, defaults to the cached global settings
            clock: Sleep capability shared by scenarios and services
            rng: Random source shared by every run; a private one per scenario otherwise
            profiles: Service profile per category
            max_workers: Scenarios to run concurrently (1 = sequential)
            timeout: Suite deadline in seconds; later scenarios are skipped once passed
        """
        self.settings = settings or get_settings()
        self.catalog = catalog or load_catalog(self.settings.catalog_path)
        self.clock = clock or SystemClock()
        self._rng = rng
        self.profiles = profiles if profiles is not None else dict(DEFAULT_PROFILES)
        self.max_workers = max_workers or self.settings.max_workers
        self.timeout = timeout if timeout is not None else self.settings.suite_timeout_seconds

    def _rng_for(self, index: int) -> RandomSource:
        if self._rng is not None:
            return self._rng
        seed = self.settings.random_seed
        return make_random_source(None if seed is None else seed + index)

    def _service_for(
        self,
        category: str,
        options: RunOptions,
        rng: RandomSource,
        *,
        profile_faults: bool = False,
    ) -> ExternalService | None:
        """
        Build a fresh service for one scenario run.

        Catalog scenarios get a zero-latency service with injection disabled,
        so the scenario's own step probability and duration are the only
        source of failures and delay. Service checks keep the profile's
        latency and failure rate.
        """
        profile = self.profiles.get(category)
        if profile is None:
            return None
        if not profile_faults:
            return build_service(
                profile.model_copy(update={"latency": 0.0}),
                kind=self.settings.service_kind,
                clock=self.clock,
                rng=make_random_source(),
                failures_enabled=False,
            )
        return build_service(
            profile,
            kind=self.settings.service_kind,
            clock=self.clock,
            rng=rng,
            failures_enabled=options.simulate_failures,
        )

    def categories(self, options: RunOptions) -> list[str]:
        """
        Return the catalog categories ``options`` selects, in canonical order.

        With no explicit selection every category the catalog defines runs.

        Raises:
            CategoryNotFoundError: If a category was explicitly selected but
                the catalog does not define it
        """
        resolved = options.resolve()
        if not options.any_category:
            return [
                category
                for category in resolved.selected_categories()
                if category in self.catalog.categories
            ]
        for category in resolved.selected_categories():
            self.catalog.get(category)
        return resolved.selected_categories()

    def select(self, options: RunOptions) -> list[Scenario]:
        """Return the scenarios selected by ``options``, in category order."""

        selected: list[Scenario] = []
        for category in self.categories(options):
            selected.extend(self.catalog.build(category))
        return selected

    def skipped(self, options: RunOptions) -> list[ScenarioResult]:
        """Return skip records for every catalog category left unselected."""

        resolved = options.resolve()
        enabled = set(resolved.selected_categories())
        results: list[ScenarioResult] = []
        for category in self.catalog.category_names():
            if category in enabled:
                continue
            reason = f"{category} tests not enabled (use --{category} flag)"
            results.extend(
                ScenarioResult(
                    scenario=name,
                    category=category,
                    state=ScenarioState.SKIPPED,
                    reason=reason,
                )
                for name in self.catalog.scenario_names(category)
            )
        return results

    def _execute(
        self,
        index: int,
        scenario: Scenario,
        options: RunOptions,
        deadline: float | None,
        profile_faults: bool,
    ) -> ScenarioResult:
        if deadline is not None and self.clock.monotonic() >= deadline:
            logger.warning(
                f"Skipping {scenario.name}: {SUITE_TIMEOUT_REASON}",
                extra={"scenario": scenario.name, "status": "skipped"},
            )
            return ScenarioResult(
                scenario=scenario.name,
                category=scenario.category,
                state=ScenarioState.SKIPPED,
                reason=SUITE_TIMEOUT_REASON,
            )

        rng = self._rng_for(index)
        return scenario.run(
            options,
            clock=self.clock,
            rng=rng,
            service=self._service_for(
                scenario.category, options, rng, profile_faults=profile_faults
            ),
            policy=ConnectionPolicy(max_retries=self.settings.max_retries, clock=self.clock),
        )

    def execute(
        self,
        scenarios: Sequence[Scenario],
        options: RunOptions,
        *,
        profile_faults: bool = False,
    ) -> list[ScenarioResult]:
        """
        Run ``scenarios`` independently; one failure never stops its siblings.

        Args:
            scenarios: Scenarios to run, in report order
            options: Resolved run options
            profile_faults: Inject service profile latency and failures
        """

        deadline = None
        if self.timeout is not None:
            deadline = self.clock.monotonic() + self.timeout

        if self.max_workers <= 1 or len(scenarios) <= 1:
            return [
                self._execute(index, scenario, options, deadline, profile_faults)
                for index, scenario in enumerate(scenarios)
            ]

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="integration-harness"
        ) as executor:
            futures = [
                executor.submit(
                    self._execute, index, scenario, options, deadline, profile_faults
                )
                for index, scenario in enumerate(scenarios)
            ]
            return [future.result() for future in futures]

    def run(self, options: RunOptions) -> SuiteReport:
        """Run every selected scenario and return the per-scenario report."""

        resolved = options.resolve()
        if not options.any_category:
            logger.info("No category selected, running every category")

        started = self.clock.monotonic()
        report = SuiteReport(options=options)

        categories = self.categories(options)
        scenarios = self.select(options)
        logger.info(f"Running {len(scenarios)} scenarios across {', '.join(categories)}")
        for category in categories:
            profile = self.profiles.get(category)
            if profile is not None:
                logger.info(
                    f"Initializing {profile.name} service "
                    f"({self.settings.type_label(category)})...",
                    extra={"service": profile.name},
                )

        report.results.extend(self.execute(scenarios, resolved))
        report.results.extend(self.skipped(resolved))
        report.duration_ms = int(round((self.clock.monotonic() - started) * 1000))

        counts = report.counts()
        log_method = logger.info if report.succeeded else logger.error
        log_method(
            f"Suite finished: {counts['passed']} passed, {counts['failed']} failed, "
            f"{counts['skipped']} skipped",
            extra={"status": "passed" if report.succeeded else "failed"},
        )
        return report

    def run_service_checks(self, options: RunOptions) -> SuiteReport:
        """Connect, ping and round-trip data against each selected service profile."""

        resolved = options.resolve()
        started = self.clock.monotonic()
        report = SuiteReport(options=options)

        checks: list[Scenario] = []
        for category in resolved.selected_categories():
            profile = self.profiles.get(category)
            if profile is None:
                continue
            logger.info(
                f"Initializing {profile.name} service ({self.settings.type_label(category)})...",
                extra={"service": profile.name},
            )
            checks.append(service_check_scenario(profile))

        report.results.extend(self.execute(checks, resolved, profile_faults=True))
        report.duration_ms = int(round((self.clock.monotonic() - started) * 1000))
        return report
