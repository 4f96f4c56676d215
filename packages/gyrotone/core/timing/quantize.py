"""Musical-grid quantization of trigger times.

A trigger observed at time t is either fired now (when t is already close
enough to a grid point) or deferred to a grid point. Grid values use note
fractions: "1/4" is a quarter note, "1/8T" an eighth-note triplet.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from gyrotone.core.timing.clock import (
    TICKS_PER_BEAT,
    TICKS_PER_MEASURE,
    seconds_to_ticks,
    ticks_to_seconds,
)

logger = logging.getLogger(__name__)

DEFAULT_GRID = "1/4"
# Upper bound on the fire-now window, in seconds
TOLERANCE_CEILING = 0.03
# Fraction of one grid interval used for the fire-now window
TOLERANCE_GRID_FRACTION = 0.1
# Pending triggers due within this many seconds of "now" are released
FLUSH_TOLERANCE = 0.002

_GRID_PATTERN = re.compile(r"^\s*1/(\d+)(T?)\s*$", re.IGNORECASE)


class QuantizeAction(str, Enum):
    """What to do with a trigger after quantization.

    Attributes:
        FIRE_NOW: Dispatch immediately.
        SCHEDULE: Enqueue for ``execute_time``.
    """

    FIRE_NOW = "fire_now"
    SCHEDULE = "schedule"


class QuantizeDecision(BaseModel):
    """Result of ``decide``.

    Attributes:
        action: Fire now or schedule.
        execute_time: Grid time the trigger belongs to (seconds).
        quantized: Whether the trigger was grid aligned.
        grid_ticks: Grid interval used.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    action: QuantizeAction
    execute_time: float
    quantized: bool = True
    grid_ticks: float = Field(default=float(TICKS_PER_BEAT), gt=0)

    @property
    def fire_now(self) -> bool:
        return self.action == QuantizeAction.FIRE_NOW


def parse_grid_ticks(grid: str | None, measure_ticks: int = TICKS_PER_MEASURE) -> float:
    """Convert a grid label to ticks.

    Straight values are ``measure / N``; a trailing "T" makes a triplet,
    two thirds of the straight value rounded to whole ticks. Anything
    unparseable falls back to a quarter note.

    Args:
        grid: Grid label such as "1/4", "1/16" or "1/8T"
        measure_ticks: Ticks in one measure

    Returns:
        Grid interval in ticks

    Example:
        >>> parse_grid_ticks("1/8"), parse_grid_ticks("1/8T"), parse_grid_ticks("bogus")
        (240.0, 160.0, 480.0)
    """
    if not grid:
        return float(TICKS_PER_BEAT)

    match = _GRID_PATTERN.match(grid)
    if match is None or int(match.group(1)) <= 0:
        logger.debug(f"Unrecognized quantization grid {grid!r}, using quarter notes")
        return float(TICKS_PER_BEAT)

    denominator = int(match.group(1))
    if match.group(2):
        return float(round(measure_ticks / denominator * 2 / 3))
    return measure_ticks / denominator


def quantize_to_grid(ticks: float, grid_ticks: float) -> float:
    """Round ``ticks`` to the nearest multiple of ``grid_ticks``."""
    if grid_ticks <= 0:
        return ticks
    return round(ticks / grid_ticks) * grid_ticks


def tolerance_window(grid_ticks: float, bpm: float, ceiling: float = TOLERANCE_CEILING) -> float:
    """Fire-now window: the lesser of ``ceiling`` and 10% of one grid interval."""
    return min(ceiling, ticks_to_seconds(grid_ticks, bpm) * TOLERANCE_GRID_FRACTION)


def decide(
    now: float,
    bpm: float,
    grid: str | None = DEFAULT_GRID,
    tolerance_ceiling: float = TOLERANCE_CEILING,
) -> QuantizeDecision:
    """Decide when a trigger observed at ``now`` should execute.

    The candidate is the nearest grid point. Inside the tolerance window the
    trigger fires now (its event time is the grid time). Otherwise it is
    scheduled at the candidate if that is still ahead, or at the following
    grid point if rotation already carried it past.

    Args:
        now: Observation time in seconds
        bpm: Tempo
        grid: Grid label
        tolerance_ceiling: Upper bound on the fire-now window

    Returns:
        QuantizeDecision

    Example:
        >>> decide(0.51, 120, "1/4").fire_now
        True
        >>> decide(0.30, 120, "1/4").execute_time
        0.5
    """
    grid_ticks = parse_grid_ticks(grid)
    candidate_ticks = quantize_to_grid(seconds_to_ticks(now, bpm), grid_ticks)
    candidate = ticks_to_seconds(candidate_ticks, bpm)
    window = tolerance_window(grid_ticks, bpm, tolerance_ceiling)

    if abs(candidate - now) < window:
        return QuantizeDecision(
            action=QuantizeAction.FIRE_NOW, execute_time=candidate, grid_ticks=grid_ticks
        )

    if candidate > now:
        return QuantizeDecision(
            action=QuantizeAction.SCHEDULE, execute_time=candidate, grid_ticks=grid_ticks
        )

    next_time = ticks_to_seconds(candidate_ticks + grid_ticks, bpm)
    logger.debug(
        f"Grid point {candidate:.4f}s already passed at {now:.4f}s, using {next_time:.4f}s"
    )
    return QuantizeDecision(
        action=QuantizeAction.SCHEDULE, execute_time=next_time, grid_ticks=grid_ticks
    )


__all__ = [
    "DEFAULT_GRID",
    "FLUSH_TOLERANCE",
    "TOLERANCE_CEILING",
    "QuantizeAction",
    "QuantizeDecision",
    "decide",
    "parse_grid_ticks",
    "quantize_to_grid",
    "tolerance_window",
]
