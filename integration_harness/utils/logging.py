"""Logging configuration for the integration harness."""

from __future__ import annotations

import logging
import sys
from threading import Lock
from typing import Any, Final

from .config import get_settings

# Define log format with structured context placeholders.
LOG_FORMAT: Final[str] = (
    "%(asctime)s | %(levelname)s | %(name)s | "
    "service=%(service)s | scenario=%(scenario)s | step=%(step)s | "
    "status=%(status)s | %(message)s"
)

DEFAULT_CONTEXT: Final[dict[str, str]] = {
    "service": "-",
    "scenario": "-",
    "step": "-",
    "status": "-",
}

PASS_MARK: Final[str] = "✓"
FAIL_MARK: Final[str] = "✗"

_LOG_CONFIGURED = False
_CONFIG_LOCK: Final = Lock()


class ContextualFormatter(logging.Formatter):
    """Formatter that injects default structured context fields when absent."""

    def __init__(self, fmt: str, defaults: dict[str, str] | None = None) -> None:
        super().__init__(fmt)
        self._defaults = defaults or {}

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        for key, value in self._defaults.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return super().format(record)


def _configure_root_logger() -> None:
    """Configure the root logger exactly once based on global settings."""

    global _LOG_CONFIGURED
    with _CONFIG_LOCK:
        if _LOG_CONFIGURED:
            return

        settings = get_settings()
        resolved_level = getattr(logging, settings.log_level.upper(), logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(resolved_level)

        formatter = ContextualFormatter(LOG_FORMAT, DEFAULT_CONTEXT)

        if not root_logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(resolved_level)
            handler.setFormatter(formatter)
            root_logger.addHandler(handler)
        else:
            for handler in root_logger.handlers:
                handler.setFormatter(formatter)

        _LOG_CONFIGURED = True


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that lets per-call extras override defaults."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:  # type: ignore[override]
        base_extra = self.extra or {}
        extra = dict(base_extra)
        provided_extra = kwargs.get("extra") or {}
        extra.update(provided_extra)
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logger(
    name: str,
    *,
    level: str | None = None,
    context: dict[str, Any] | None = None,
) -> logging.LoggerAdapter:
    """Return a logger configured with the global logging defaults.

    Args:
        name: Logger name to retrieve.
        level: Optional log level override (primarily for tests).
        context: Optional default structured context to include with every entry.

    Returns:
        LoggerAdapter injecting structured defaults for consistent formatting.
    """

    _configure_root_logger()
    logger = logging.getLogger(name)

    if level is not None:
        resolved_value = getattr(logging, level.upper(), logging.INFO)
        logger.setLevel(resolved_value)
    else:
        logger.setLevel(logging.NOTSET)

    adapter_context: dict[str, Any] = dict(DEFAULT_CONTEXT)
    if context:
        for key, value in context.items():
            adapter_context[key] = value

    return StructuredLoggerAdapter(logger, adapter_context)


def bind_logger(
    logger: logging.Logger | logging.LoggerAdapter, **context: Any
) -> logging.LoggerAdapter:
    """Return an adapter that layers extra structured context on an existing logger."""

    if isinstance(logger, logging.LoggerAdapter):
        merged = dict(logger.extra or {})
        merged.update(context)
        return StructuredLoggerAdapter(logger.logger, merged)
    merged = dict(DEFAULT_CONTEXT)
    merged.update(context)
    return StructuredLoggerAdapter(logger, merged)


def log_scenario_outcome(
    logger: logging.Logger | logging.LoggerAdapter,
    scenario: str,
    status: str,
    duration_ms: int,
    *,
    step: str | None = None,
    reason: str | None = None,
) -> None:
    """
    Log the terminal summary line for a scenario run.

    Args:
        logger: Logger instance
        scenario: Scenario name
        status: "passed" or "failed"
        duration_ms: Wall time of the run in milliseconds
        step: Failing step, when the run failed
        reason: Failure reason, when the run failed
    """
    structured_context: dict[str, Any] = {
        "scenario": scenario,
        "status": status,
        "step": step or "-",
    }
    if status == "passed":
        logger.info(f"{PASS_MARK} {scenario} ({duration_ms} ms)", extra=structured_context)
    else:
        logger.error(
            f"{FAIL_MARK} {scenario} failed at step '{step}': {reason}",
            extra=structured_context,
        )
