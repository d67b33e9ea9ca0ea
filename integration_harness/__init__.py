"""Simulated external services and scenario orchestration for integration suites."""

__version__ = "0.1.0"
