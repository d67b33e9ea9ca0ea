"""Scenario definitions and the step runner."""

from .catalog import (
    ACTIONS,
    ScenarioCatalog,
    default_catalog,
    load_catalog,
    service_check_scenario,
)
from .runner import (
    SIMULATED_FAILURE,
    Scenario,
    ScenarioContext,
    ScenarioResult,
    ScenarioState,
    Step,
    StepResult,
    StepStatus,
)

__all__ = [
    "ACTIONS",
    "SIMULATED_FAILURE",
    "Scenario",
    "ScenarioCatalog",
    "ScenarioContext",
    "ScenarioResult",
    "ScenarioState",
    "Step",
    "StepResult",
    "StepStatus",
    "default_catalog",
    "load_catalog",
    "service_check_scenario",
]
