"""CLI for running simulated integration suites."""
import json
from pathlib import Path
from typing import Any

import click

from integration_harness.orchestrator import Orchestrator, SuiteReport
from integration_harness.scenarios.catalog import load_catalog
from integration_harness.scenarios.runner import ScenarioResult, ScenarioState
from integration_harness.utils.config import RunOptions, get_settings
from integration_harness.utils.logging import FAIL_MARK, PASS_MARK
from integration_harness.utils.timing import make_random_source

STATE_MARKS = {
    ScenarioState.PASSED: PASS_MARK,
    ScenarioState.FAILED: FAIL_MARK,
    ScenarioState.SKIPPED: "-",
}


def format_result(result: ScenarioResult) -> str:
    """Format one scenario outcome as a single report line."""
    mark = STATE_MARKS.get(result.state, "?")
    line = f"  {mark} {result.scenario}"
    if result.state is ScenarioState.FAILED:
        line += f" (step '{result.failed_step}': {result.reason})"
    elif result.state is ScenarioState.SKIPPED and result.reason:
        line += f" (skipped: {result.reason})"
    return line


def print_report(report: SuiteReport, title: str = "INTEGRATION SUITE") -> None:
    """Print formatted per-scenario matrix and totals."""
    click.echo("\n" + "=" * 70)
    click.echo(title)
    click.echo("=" * 70)

    current_category = None
    for result in report.results:
        if result.category != current_category:
            current_category = result.category
            click.echo(f"\n[{current_category}]")
        click.echo(format_result(result))

    counts = report.counts()
    click.echo("\n" + "-" * 70)
    click.echo(
        f"  Passed: {counts['passed']}   Failed: {counts['failed']}   "
        f"Skipped: {counts['skipped']}   Duration: {report.duration_ms} ms"
    )
    status = f"{PASS_MARK} PASSED" if report.succeeded else f"{FAIL_MARK} FAILED"
    click.echo(f"  Status: {status}")
    click.echo("=" * 70 + "\n")


def print_json_output(report: SuiteReport) -> None:
    """Print the report as JSON."""
    output: dict[str, Any] = {
        "succeeded": report.succeeded,
        "counts": report.counts(),
        "duration_ms": report.duration_ms,
        "options": report.options.model_dump(),
        "results": [
            {
                "scenario": result.scenario,
                "category": result.category,
                "state": result.state.value,
                "failed_step": result.failed_step,
                "reason": result.reason,
                "duration_ms": result.duration_ms,
                "completed_steps": result.completed_steps,
            }
            for result in report.results
        ],
    }
    click.echo(json.dumps(output, indent=2))


def build_orchestrator(
    catalog_path: str | None,
    workers: int | None,
    timeout: float | None,
    seed: int | None,
) -> Orchestrator:
    """Create an orchestrator honouring CLI overrides over settings."""
    settings = get_settings()
    catalog = load_catalog(Path(catalog_path) if catalog_path else settings.catalog_path)
    if seed is None:
        seed = settings.random_seed
    rng = make_random_source(seed) if seed is not None else None
    return Orchestrator(
        catalog,
        settings=settings,
        rng=rng,
        max_workers=workers,
        timeout=timeout,
    )


@click.group()
def cli() -> None:
    """Exercise integration suites against simulated external services."""


@cli.command("run")
@click.option("--storage", is_flag=True, help="Run storage scenarios")
@click.option("--database", is_flag=True, help="Run database scenarios")
@click.option("--api", is_flag=True, help="Run API scenarios")
@click.option("--fail", "simulate_failures", is_flag=True, help="Enable failure simulation")
@click.option("-v", "--verbose", is_flag=True, help="Log every scenario step")
@click.option("--json", "output_json", is_flag=True, help="Output report as JSON")
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Scenarios to run in parallel")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None, help="Suite timeout in seconds")
@click.option("--catalog", "catalog_path", type=click.Path(exists=True, dir_okay=False), default=None, help="YAML scenario catalog")
@click.option("--seed", type=int, default=None, help="Seed for failure injection")
@click.pass_context
def run_suite(
    ctx: click.Context,
    storage: bool,
    database: bool,
    api: bool,
    simulate_failures: bool,
    verbose: bool,
    output_json: bool,
    workers: int | None,
    timeout: float | None,
    catalog_path: str | None,
    seed: int | None,
) -> None:
    """
    Run the selected scenario categories and report a pass/fail matrix.

    With no category flag every category runs.

    Examples:

        # Everything, quietly
        integration-harness run

        # Storage only, step by step, with failure injection
        integration-harness run --storage --fail -v

        # JSON report for automation
        integration-harness run --api --json
    """
    options = RunOptions(
        storage=storage,
        database=database,
        api=api,
        simulate_failures=simulate_failures,
        verbose=verbose,
    )

    try:
        orchestrator = build_orchestrator(catalog_path, workers, timeout, seed)
        report = orchestrator.run(options)
    except Exception as e:
        click.echo(f"\n{FAIL_MARK} Error running suite: {str(e)}", err=True)
        raise click.Abort()

    if output_json:
        print_json_output(report)
    else:
        print_report(report)

    if not report.succeeded:
        ctx.exit(1)


@cli.command("services")
@click.option("--storage", is_flag=True, help="Check the storage service")
@click.option("--database", is_flag=True, help="Check the database service")
@click.option("--api", is_flag=True, help="Check the API service")
@click.option("--fail", "simulate_failures", is_flag=True, help="Enable failure simulation")
@click.option("--seed", type=int, default=None, help="Seed for failure injection")
@click.pass_context
def check_services(
    ctx: click.Context,
    storage: bool,
    database: bool,
    api: bool,
    simulate_failures: bool,
    seed: int | None,
) -> None:
    """Connect, ping and round-trip data against each simulated service."""
    options = RunOptions(
        storage=storage,
        database=database,
        api=api,
        simulate_failures=simulate_failures,
        verbose=True,
    )

    click.echo("=== Integration Testing Demo ===")
    click.echo("This simulates integration with external services")

    try:
        orchestrator = build_orchestrator(None, None, None, seed)
        report = orchestrator.run_service_checks(options)
    except Exception as e:
        click.echo(f"\n{FAIL_MARK} Error checking services: {str(e)}", err=True)
        raise click.Abort()

    print_report(report, title="SERVICE CHECKS")

    if not report.succeeded:
        ctx.exit(1)


if __name__ == "__main__":
    cli()
