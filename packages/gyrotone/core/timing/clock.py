"""Musical time conversion and clock sources.

Time is measured in ticks at a fixed resolution of 480 ticks per beat (PPQ)
with four beats per measure.
"""

from __future__ import annotations

import logging
import time
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

TICKS_PER_BEAT = 480
BEATS_PER_MEASURE = 4
TICKS_PER_MEASURE = TICKS_PER_BEAT * BEATS_PER_MEASURE
DEFAULT_BPM = 120.0


def seconds_to_ticks(seconds: float, bpm: float) -> float:
    """Convert seconds to ticks.

    Example:
        >>> seconds_to_ticks(0.5, 120)
        480.0
    """
    return seconds * (TICKS_PER_BEAT * bpm) / 60.0


def ticks_to_seconds(ticks: float, bpm: float) -> float:
    """Convert ticks to seconds.

    Example:
        >>> ticks_to_seconds(960, 120)
        1.0
    """
    return ticks * 60.0 / (TICKS_PER_BEAT * bpm)


def measure_duration(bpm: float) -> float:
    """Length of one 4/4 measure in seconds."""
    return ticks_to_seconds(TICKS_PER_MEASURE, bpm)


@runtime_checkable
class Clock(Protocol):
    """Source of the current time in seconds."""

    def now(self) -> float:
        """Current time in seconds."""
        ...


class SystemClock:
    """Monotonic wall clock, zeroed at construction."""

    def __init__(self) -> None:
        self._origin = time.perf_counter()

    def now(self) -> float:
        return time.perf_counter() - self._origin


class ManualClock:
    """Clock advanced explicitly by the caller.

    Used by simulations and tests to drive the frame loop deterministically.

    Example:
        >>> clock = ManualClock()
        >>> clock.advance(0.25)
        0.25
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, dt: float) -> float:
        """Move time forward by ``dt`` seconds and return the new time."""
        if dt < 0:
            raise ValueError(f"ManualClock cannot move backwards (dt={dt})")
        self._now += dt
        return self._now

    def set(self, value: float) -> None:
        self._now = value


__all__ = [
    "BEATS_PER_MEASURE",
    "DEFAULT_BPM",
    "TICKS_PER_BEAT",
    "TICKS_PER_MEASURE",
    "Clock",
    "ManualClock",
    "SystemClock",
    "measure_duration",
    "seconds_to_ticks",
    "ticks_to_seconds",
]
