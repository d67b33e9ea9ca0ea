"""Clock and randomness capabilities injected into services and scenarios."""

from __future__ import annotations

import random
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Something that can block for a duration and report elapsed time."""

    def sleep(self, seconds: float) -> None: ...

    def monotonic(self) -> float: ...


@runtime_checkable
class RandomSource(Protocol):
    """Something that yields uniform floats in [0.0, 1.0)."""

    def random(self) -> float: ...


class SystemClock:
    """Wall clock backed by the time module."""

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)

    def monotonic(self) -> float:
        return time.monotonic()


def make_random_source(seed: int | None = None) -> RandomSource:
    """Return a private generator, seeded when a seed is supplied."""

    return random.Random(seed)
