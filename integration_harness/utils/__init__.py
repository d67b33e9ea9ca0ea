"""Utilities package initialization."""
from .config import (
    CATEGORIES,
    HarnessSettings,
    RunOptions,
    get_settings,
    load_yaml_config,
    validate_config,
)
from .logging import bind_logger, log_scenario_outcome, setup_logger
from .retry import ConnectionPolicy
from .timing import Clock, RandomSource, SystemClock, make_random_source

__all__ = [
    "CATEGORIES",
    "Clock",
    "ConnectionPolicy",
    "HarnessSettings",
    "RandomSource",
    "RunOptions",
    "SystemClock",
    "bind_logger",
    "get_settings",
    "load_yaml_config",
    "log_scenario_outcome",
    "make_random_source",
    "setup_logger",
    "validate_config",
]
