"""Shared utilities for Gyrotone."""

from gyrotone.core.utils.math import circle_points, clamp, distance, lerp, rotate

__all__ = [
    "circle_points",
    "clamp",
    "distance",
    "lerp",
    "rotate",
]
