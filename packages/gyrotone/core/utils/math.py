"""Math utilities for common operations."""

from __future__ import annotations

import math
from typing import TypeVar

import numpy as np

Number = TypeVar("Number", int, float, np.number)


def clamp(value: Number, min_val: Number, max_val: Number) -> Number:
    """Clamp value to range [min_val, max_val].

    Args:
        value: Value to clamp
        min_val: Minimum allowed value
        max_val: Maximum allowed value

    Returns:
        Clamped value
    """
    return max(min_val, min(max_val, value))


def lerp(a: Number, b: Number, t: float) -> float:
    """Linear interpolation between a and b.

    Args:
        a: Start value
        b: End value
        t: Interpolation factor [0, 1]

    Returns:
        Interpolated value
    """
    return float(a) + (float(b) - float(a)) * t


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two 2-D points."""
    return math.hypot(x2 - x1, y2 - y1)


def rotate(x: float, y: float, angle_rad: float) -> tuple[float, float]:
    """Rotate (x, y) counter-clockwise about the origin.

    Args:
        x: X coordinate
        y: Y coordinate
        angle_rad: Rotation angle in radians

    Returns:
        Rotated (x, y)
    """
    cos_a = math.cos(angle_rad)
    sin_a = math.sin(angle_rad)
    return x * cos_a - y * sin_a, x * sin_a + y * cos_a


def circle_points(n: int, radius: float) -> np.ndarray:
    """Return an (n, 2) array of points evenly spaced on a circle.

    Point i sits at angle 2*pi*i/n, so point 0 is on the positive x axis.

    Args:
        n: Number of points
        radius: Circle radius

    Returns:
        Array of shape (n, 2)
    """
    angles = np.arange(n, dtype=float) * (2.0 * math.pi / n)
    return np.column_stack((np.cos(angles) * radius, np.sin(angles) * radius))
