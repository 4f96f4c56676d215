"""Reference-axis crossing tests.

The reference axis is the positive y half-axis (x = 0, y > 0). Rotation is
counter-clockwise, so a point crosses when it moves from x > 0 to x <= 0
while above the origin.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import NamedTuple

DEFAULT_BOUNDARY_EPSILON = 1e-6


class CrossingKind(str, Enum):
    """Which test detected the crossing.

    Attributes:
        BASIC: x changed sign from positive to non-positive.
        LARGE_STEP: Angle from the axis changed sign in one large frame step.
        BOUNDARY: Point landed within epsilon of the axis.
    """

    BASIC = "basic"
    LARGE_STEP = "large_step"
    BOUNDARY = "boundary"


class Crossing(NamedTuple):
    kind: CrossingKind
    factor: float


def check_axis_crossing(
    prev_x: float,
    prev_y: float,
    curr_x: float,
    curr_y: float,
    boundary_epsilon: float = DEFAULT_BOUNDARY_EPSILON,
) -> Crossing | None:
    """Test whether a point crossed the reference axis between two frames.

    The three cases are evaluated in order and overlap for some rotation
    deltas; the first match wins.

    Args:
        prev_x: Previous-frame x
        prev_y: Previous-frame y
        curr_x: Current-frame x
        curr_y: Current-frame y
        boundary_epsilon: Half-width of the boundary band around x = 0

    Returns:
        Crossing with its kind and the interpolated fraction of the frame at
        which it happened, or None

    Example:
        >>> check_axis_crossing(5.0, 5.0, -5.0, 5.0).kind
        <CrossingKind.BASIC: 'basic'>
        >>> check_axis_crossing(5.0, 5.0, 6.0, 4.0) is None
        True
    """
    if curr_y <= 0:
        return None

    if prev_x > 0 and curr_x <= 0:
        return Crossing(CrossingKind.BASIC, prev_x / (prev_x - curr_x))

    prev_angle = math.atan2(prev_x, prev_y)
    curr_angle = math.atan2(curr_x, curr_y)
    if prev_angle > 0 and curr_angle <= 0:
        delta = abs(prev_angle - curr_angle)
        if 0 < delta < math.pi:
            return Crossing(CrossingKind.LARGE_STEP, abs(prev_angle) / delta)

    if abs(curr_x) < boundary_epsilon and prev_x > 0:
        return Crossing(CrossingKind.BOUNDARY, 1.0)

    return None


__all__ = ["Crossing", "CrossingKind", "DEFAULT_BOUNDARY_EPSILON", "check_axis_crossing"]
