"""Shape specification and change detection.

``ShapeSpec`` is the immutable-per-frame description of one layer's shape.
Out-of-range values are clamped rather than rejected so geometry generation
stays total; ``changed_fields`` compares two specs with per-field absolute
thresholds so a layer only rebuilds when something meaningful moved.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gyrotone.core.geometry.models import ShapeFamily

logger = logging.getLogger(__name__)

MIN_RADIUS = 1e-3
MIN_SEGMENTS = 2

# Absolute thresholds for "did this field change" checks
INTEGER_THRESHOLD = 0.01
RADIUS_THRESHOLD = 0.5
ANGLE_THRESHOLD = 0.01
SCALE_THRESHOLD = 0.001

_FIELD_THRESHOLDS: dict[str, float] = {
    "radius": RADIUS_THRESHOLD,
    "segment_count": INTEGER_THRESHOLD,
    "star_skip": INTEGER_THRESHOLD,
    "euclid_pulses": INTEGER_THRESHOLD,
    "fractal_divisions": INTEGER_THRESHOLD,
    "copies": INTEGER_THRESHOLD,
    "modulus_value": INTEGER_THRESHOLD,
    "alt_step_n": INTEGER_THRESHOLD,
    "angle_degrees": ANGLE_THRESHOLD,
    "starting_angle_degrees": ANGLE_THRESHOLD,
    "step_scale": SCALE_THRESHOLD,
    "alt_scale": SCALE_THRESHOLD,
}


def _is_non_finite(value: Any) -> bool:
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, str):
        try:
            return not math.isfinite(float(value))
        except ValueError:
            return False
    return False


def _as_int(value: Any) -> Any:
    """Round numeric input to int, leaving anything else for pydantic to reject."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int | float) and not _is_non_finite(value):
        return int(round(value))
    if isinstance(value, str) and not _is_non_finite(value):
        try:
            return int(round(float(value)))
        except ValueError:
            return value
    return value


class ShapeSpec(BaseModel):
    """Parametric description of a layer's base shape and its copies.

    Attributes:
        radius: Circumradius of the base polygon.
        segment_count: Number of points on the circle (n).
        shape_family: Which generation algorithm to use.
        star_skip: Step k for {n/k} star polygons.
        use_cuts: Compute star self-intersections ("cuts").
        euclid_pulses: Onsets for the Euclidean family (k).
        fractal_divisions: Sub-edges per edge; 1 disables subdivision.
        copies: Number of concentric copies; 0 hides the shape.
        step_scale: Geometric scale ratio between consecutive copies.
        angle_degrees: Rotation increment between consecutive copies.
        starting_angle_degrees: Rotation of copy 0.
        use_modulus: Scale copies by the modulus sequence.
        modulus_value: Length of the modulus sequence.
        use_alt_scale: Scale every ``alt_step_n``-th copy by ``alt_scale``.
        alt_scale: Extra scale applied to alternate copies.
        alt_step_n: Period of the alternate scale.
        use_intersections: Compute intersections between copies.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    radius: float = Field(default=432.0, description="Circumradius of the base polygon")
    segment_count: int = Field(default=4, description="Points on the circle")
    shape_family: ShapeFamily = ShapeFamily.REGULAR
    star_skip: int = Field(default=1, description="Star step k")
    use_cuts: bool = False
    euclid_pulses: int = Field(default=3, description="Euclidean onsets k")
    fractal_divisions: int = Field(default=1, description="Sub-edges per edge")
    copies: int = Field(default=1, description="Concentric copies")
    step_scale: float = 1.0
    angle_degrees: float = 15.0
    starting_angle_degrees: float = 0.0
    use_modulus: bool = False
    modulus_value: int = 4
    use_alt_scale: bool = False
    alt_scale: float = 1.0
    alt_step_n: int = 2
    use_intersections: bool = False

    @field_validator("radius", mode="before")
    @classmethod
    def _clamp_radius(cls, value: Any) -> Any:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return max(MIN_RADIUS, float(value))
        return value

    @field_validator("segment_count", mode="before")
    @classmethod
    def _clamp_segments(cls, value: Any) -> Any:
        value = _as_int(value)
        return max(MIN_SEGMENTS, value) if isinstance(value, int) else value

    @field_validator(
        "star_skip", "fractal_divisions", "modulus_value", "alt_step_n", mode="before"
    )
    @classmethod
    def _clamp_positive(cls, value: Any) -> Any:
        value = _as_int(value)
        return max(1, value) if isinstance(value, int) else value

    @field_validator("copies", mode="before")
    @classmethod
    def _clamp_copies(cls, value: Any) -> Any:
        value = _as_int(value)
        return max(0, value) if isinstance(value, int) else value

    @field_validator("euclid_pulses", mode="before")
    @classmethod
    def _round_pulses(cls, value: Any) -> Any:
        value = _as_int(value)
        return max(0, value) if isinstance(value, int) else value

    @model_validator(mode="before")
    @classmethod
    def _normalize_inputs(cls, data: Any) -> Any:
        """Replace non-finite numbers with field defaults, then cap pulses at n."""
        if not isinstance(data, dict):
            return data
        for name, value in list(data.items()):
            if name in cls.model_fields and _is_non_finite(value):
                default = cls.model_fields[name].default
                logger.warning(f"ShapeSpec.{name}={value!r} is not finite, using {default}")
                data = {**data, name: default}
        pulses = data.get("euclid_pulses")
        segments = data.get("segment_count")
        if isinstance(pulses, int | float) and isinstance(segments, int | float):
            n = max(MIN_SEGMENTS, int(round(segments)))
            if pulses > n:
                logger.debug(f"euclid_pulses {pulses} clamped to segment_count {n}")
                data = {**data, "euclid_pulses": n}
        return data

    @property
    def materialized(self) -> bool:
        """False when the shape has no copies and must not render or trigger."""
        return self.copies > 0

    @property
    def effective_family(self) -> ShapeFamily:
        """Family that will actually be generated after degradations.

        A star with k <= 1 or k >= n is a regular polygon.
        """
        if self.shape_family == ShapeFamily.STAR and not 1 < self.star_skip < self.segment_count:
            return ShapeFamily.REGULAR
        return self.shape_family


def changed_fields(previous: ShapeSpec | None, current: ShapeSpec) -> list[str]:
    """List the fields that differ meaningfully between two specs.

    Numeric fields use absolute thresholds; booleans and enums compare
    exactly. A missing previous spec means everything changed.

    Args:
        previous: Last spec a buffer was built from (or None)
        current: Candidate spec

    Returns:
        Names of changed fields, in declaration order
    """
    if previous is None:
        return list(ShapeSpec.model_fields)

    changed: list[str] = []
    for name in ShapeSpec.model_fields:
        old = getattr(previous, name)
        new = getattr(current, name)
        threshold = _FIELD_THRESHOLDS.get(name)
        if threshold is None:
            if old != new:
                changed.append(name)
        elif abs(float(new) - float(old)) > threshold:
            changed.append(name)
    return changed


def geometry_changed(previous: ShapeSpec | None, current: ShapeSpec) -> bool:
    """True when a rebuild is required to reflect ``current``."""
    return bool(changed_fields(previous, current))


__all__ = [
    "ANGLE_THRESHOLD",
    "INTEGER_THRESHOLD",
    "RADIUS_THRESHOLD",
    "SCALE_THRESHOLD",
    "ShapeSpec",
    "changed_fields",
    "geometry_changed",
]
