"""Testing utilities for the integration harness."""

from .fakes import AlwaysFailingService, FakeClock, FlakyService, ScriptedRandom

__all__ = [
    "AlwaysFailingService",
    "FakeClock",
    "FlakyService",
    "ScriptedRandom",
]
