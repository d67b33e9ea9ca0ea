"""Built-in scenario catalog and the step actions it binds to services."""

from __future__ import annotations

import re
import uuid
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..exceptions import CategoryNotFoundError, DataMismatchError, HarnessError
from ..services.base import ExternalService
from ..services.registry import ServiceProfile
from ..utils.config import CATEGORIES, load_yaml_config, validate_config
from .runner import Scenario, ScenarioContext, Step, StepAction


def _bound(context: ScenarioContext) -> ExternalService:
    if context.service is None:
        raise HarnessError(f"{context.scenario} has no service bound")
    return context.service


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def connect_action(context: ScenarioContext) -> None:
    context.policy.connect(_bound(context))


def ping_action(context: ScenarioContext) -> None:
    _bound(context).ping()


def generate_action(context: ScenarioContext) -> None:
    """Create the test key/value pair later steps write and verify."""

    key = f"{_slug(context.scenario)}-{uuid.uuid4().hex[:8]}"
    context.last_key = key
    context.written[key] = f"test-value-{context.scenario}"


def put_action(context: ScenarioContext) -> None:
    if context.last_key is None:
        generate_action(context)
    key = str(context.last_key)
    _bound(context).put_data(key, context.written[key])


def verify_action(context: ScenarioContext) -> None:
    """Read the last written key back and compare it with what was stored."""

    if context.last_key is None:
        raise HarnessError(f"{context.scenario} has no written data to verify")
    expected = context.written[context.last_key]
    actual = _bound(context).get_data(context.last_key)
    if actual != expected:
        raise DataMismatchError(expected, actual)


def list_action(context: ScenarioContext) -> None:
    keys = _bound(context).list_keys()
    if not set(context.written) <= keys:
        raise DataMismatchError(
            f"keys {sorted(context.written)}", f"keys {sorted(keys)}"
        )


ACTIONS: dict[str, StepAction] = {
    "connect": connect_action,
    "ping": ping_action,
    "generate": generate_action,
    "put": put_action,
    "verify": verify_action,
    "list": list_action,
}


class StepDefinition(BaseModel):
    """Declarative step: a name plus an optional action keyword."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    action: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_shorthand(cls, value: Any) -> Any:
        """Allow bare strings for steps with no action."""

        if isinstance(value, str):
            return {"name": value}
        return value

    @field_validator("action")
    @classmethod
    def _known_action(cls, value: str | None) -> str | None:
        if value is not None and value not in ACTIONS:
            available = ", ".join(sorted(ACTIONS))
            raise ValueError(f"unknown step action '{value}' (available: {available})")
        return value

    def build(self) -> Step:
        return Step(self.name, ACTIONS[self.action] if self.action else None)


class ScenarioDefinition(BaseModel):
    """Declarative scenario inside a category."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    duration: float = Field(default=0.5, ge=0)
    failure_probability: float = Field(default=0.1, ge=0.0, le=1.0)
    steps: list[StepDefinition] = Field(default_factory=list)


class CategoryDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    label: str
    scenarios: list[ScenarioDefinition] = Field(default_factory=list)


class ScenarioCatalog(BaseModel):
    """Mapping from category name to its fixed, ordered scenario list."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    categories: dict[str, CategoryDefinition]

    @field_validator("categories")
    @classmethod
    def _selectable_categories(
        cls, value: dict[str, CategoryDefinition]
    ) -> dict[str, CategoryDefinition]:
        """Only categories with a selection flag may be defined."""

        unknown = sorted(set(value) - set(CATEGORIES))
        if unknown:
            raise ValueError(
                f"unknown categories {', '.join(unknown)} "
                f"(available: {', '.join(CATEGORIES)})"
            )
        return value

    def category_names(self) -> list[str]:
        """Return defined category names in canonical order."""

        return [name for name in CATEGORIES if name in self.categories]

    def get(self, category: str) -> CategoryDefinition:
        if category not in self.categories:
            available = ", ".join(self.category_names()) or "none"
            raise CategoryNotFoundError(
                f"Category '{category}' is not defined. Available categories: {available}."
            )
        return self.categories[category]

    def scenario_names(self, category: str) -> list[str]:
        definition = self.get(category)
        return [f"{definition.label} {item.name}" for item in definition.scenarios]

    def build(self, category: str) -> list[Scenario]:
        """Instantiate runnable scenarios for ``category``."""

        definition = self.get(category)
        return [
            Scenario(
                f"{definition.label} {item.name}",
                item.duration,
                item.failure_probability,
                [step.build() for step in item.steps],
                category=category,
            )
            for item in definition.scenarios
        ]


def _scenario(name: str, duration: float, probability: float, *steps: Any) -> dict[str, Any]:
    return {
        "name": name,
        "duration": duration,
        "failure_probability": probability,
        "steps": [
            {"name": step[0], "action": step[1]} if isinstance(step, tuple) else step
            for step in steps
        ],
    }


DEFAULT_CATALOG: dict[str, Any] = {
    "categories": {
        "storage": {
            "label": "Storage",
            "scenarios": [
                _scenario(
                    "Upload", 0.5, 0.1,
                    ("Connecting to storage", "connect"),
                    ("Generating test data", "generate"),
                    ("Uploading object", "put"),
                    ("Verifying upload", "verify"),
                    ("Checking object listing", "list"),
                ),
                _scenario(
                    "Download", 0.5, 0.1,
                    ("Connecting to storage", "connect"),
                    ("Seeding object", "put"),
                    ("Downloading object", "verify"),
                    "Validating content",
                ),
                _scenario(
                    "List", 0.3, 0.1,
                    ("Connecting to storage", "connect"),
                    ("Seeding objects", "put"),
                    ("Listing objects", "list"),
                    "Paginating results",
                ),
                _scenario(
                    "Delete", 0.4, 0.1,
                    ("Connecting to storage", "connect"),
                    ("Creating object", "put"),
                    "Deleting object",
                    "Confirming deletion",
                ),
                _scenario(
                    "Metadata", 0.3, 0.1,
                    ("Connecting to storage", "connect"),
                    ("Checking bucket health", "ping"),
                    "Reading versioning status",
                    "Reading object metadata",
                ),
            ],
        },
        "database": {
            "label": "Database",
            "scenarios": [
                _scenario(
                    "Connection", 0.3, 0.05,
                    ("Connecting to database", "connect"),
                    ("Pinging server", "ping"),
                    "Checking connection pool",
                ),
                _scenario(
                    "Migration", 0.4, 0.05,
                    ("Connecting to database", "connect"),
                    ("Applying migrations", "put"),
                    ("Verifying schema version", "verify"),
                    "Rolling back",
                ),
                _scenario(
                    "CRUD", 0.5, 0.05,
                    ("Connecting to database", "connect"),
                    ("Inserting row", "put"),
                    ("Reading row", "verify"),
                    ("Updating row", "put"),
                    ("Listing rows", "list"),
                    "Deleting row",
                ),
                _scenario(
                    "Transaction", 0.4, 0.05,
                    ("Connecting to database", "connect"),
                    "Beginning transaction",
                    ("Writing rows", "put"),
                    "Committing",
                    ("Verifying commit", "verify"),
                ),
                _scenario(
                    "Performance", 0.6, 0.05,
                    ("Connecting to database", "connect"),
                    ("Warming up", "ping"),
                    ("Running bulk insert", "put"),
                    ("Measuring query latency", "verify"),
                ),
            ],
        },
        "api": {
            "label": "API",
            "scenarios": [
                _scenario(
                    "Authentication", 0.3, 0.1,
                    ("Connecting to API", "connect"),
                    "Requesting token",
                    ("Validating token", "ping"),
                ),
                _scenario(
                    "GET", 0.4, 0.1,
                    ("Connecting to API", "connect"),
                    ("Seeding resource", "put"),
                    ("Sending GET request", "verify"),
                    "Validating response",
                ),
                _scenario(
                    "POST", 0.4, 0.1,
                    ("Connecting to API", "connect"),
                    ("Building payload", "generate"),
                    ("Sending POST request", "put"),
                    ("Validating response", "verify"),
                ),
                _scenario(
                    "PUT", 0.4, 0.1,
                    ("Connecting to API", "connect"),
                    ("Creating resource", "put"),
                    ("Sending PUT request", "put"),
                    ("Validating response", "verify"),
                ),
                _scenario(
                    "DELETE", 0.4, 0.1,
                    ("Connecting to API", "connect"),
                    ("Creating resource", "put"),
                    "Sending DELETE request",
                    ("Validating response", "list"),
                ),
                _scenario(
                    "RateLimit", 0.5, 0.1,
                    ("Connecting to API", "connect"),
                    ("Sending burst requests", "ping"),
                    "Checking rate-limit headers",
                    "Backing off",
                ),
            ],
        },
    }
}


def default_catalog() -> ScenarioCatalog:
    return ScenarioCatalog.model_validate(DEFAULT_CATALOG)


def load_catalog(path: str | Path | None = None) -> ScenarioCatalog:
    """
    Load a scenario catalog from YAML, or the built-in catalog when no path is given.

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid
    """
    if path is None:
        return default_catalog()
    raw = load_yaml_config(path)
    return validate_config(raw, ScenarioCatalog)  # type: ignore[return-value]


def service_check_scenario(profile: ServiceProfile) -> Scenario:
    """Connect, ping and round-trip data against one service profile."""

    return Scenario(
        f"{profile.name} service check",
        0.0,
        0.0,
        [
            Step("Connecting", connect_action),
            Step("Pinging", ping_action),
            Step("Storing data", put_action),
            Step("Retrieving data", verify_action),
            Step("Listing keys", list_action),
        ],
        category=profile.category,
    )
