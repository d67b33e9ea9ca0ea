"""Pytest configuration - no path manipulation, rely on proper package installation."""

from __future__ import annotations

import pytest

from integration_harness.testing import FakeClock, ScriptedRandom
from integration_harness.utils.config import HarnessSettings, RunOptions, get_settings

pytest_plugins = ["pytester", "integration_harness.testing.pytest_plugin"]


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch):
    """Keep type labels and harness overrides from leaking in from the environment."""

    for name in ("STORAGE_TYPE", "DB_TYPE", "API_TYPE"):
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"HARNESS_{name}", raising=False)
    for name in ("CATALOG_PATH", "MAX_WORKERS", "SUITE_TIMEOUT_SECONDS", "RANDOM_SEED"):
        monkeypatch.delenv(f"HARNESS_{name}", raising=False)

    get_settings(reload=True)
    yield
    get_settings(reload=True)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock that advances instantly."""
    return FakeClock()


@pytest.fixture
def never_fail() -> ScriptedRandom:
    """Random source whose draws never fall below a probability under 1.0."""
    return ScriptedRandom(default=0.999999)


@pytest.fixture
def settings() -> HarnessSettings:
    """Settings with built-in defaults only."""
    return HarnessSettings(_env_file=None)


@pytest.fixture
def quiet_options() -> RunOptions:
    """Every category, no failure injection, no step logging."""
    return RunOptions()


@pytest.fixture
def verbose_failing_options() -> RunOptions:
    """Failure injection and step logging enabled."""
    return RunOptions(simulate_failures=True, verbose=True)
