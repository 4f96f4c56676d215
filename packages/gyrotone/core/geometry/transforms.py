"""Per-copy scale and rotation.

Copies are concentric: copy i is the base shape scaled by ``scale(i)`` and
rotated by ``rotation(i)`` about the origin. Rotations are stored in degrees
and converted only where a point is actually transformed.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from gyrotone.core.geometry.intersections import Segment
from gyrotone.core.geometry.models import Point, ShapePath
from gyrotone.core.geometry.spec import ShapeSpec

logger = logging.getLogger(__name__)

# Floor applied to computed copy scales so transforms stay invertible
MIN_COPY_SCALE = 1e-6

ModulusScale = Callable[[int], float]


class CopyTransform(BaseModel):
    """Scale and rotation for one concentric copy.

    Attributes:
        copy_index: Position of the copy, 0 is the innermost reference copy.
        scale: Uniform scale factor relative to the base shape.
        rotation_degrees: Rotation about the origin, in degrees.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    copy_index: int = Field(ge=0)
    scale: float = Field(gt=0)
    rotation_degrees: float = 0.0

    @property
    def rotation_radians(self) -> float:
        return math.radians(self.rotation_degrees)


def modulus_sequence(index: int, modulus: int) -> float:
    """Default modulus scale: ``((index mod m) + 1) / m``.

    Cycles 1/m, 2/m, ..., 1 and repeats.

    Example:
        >>> [modulus_sequence(i, 4) for i in range(5)]
        [0.25, 0.5, 0.75, 1.0, 0.25]
    """
    m = max(1, modulus)
    return ((index % m) + 1) / m


class CopyTransformer:
    """Compute deterministic transforms for every copy of a shape.

    ``scale(i) = step_scale ** i``, then multiplied by the modulus factor
    when modulus scaling is enabled, otherwise by ``alt_scale`` on every
    ``alt_step_n``-th copy when alternate scaling is enabled. Modulus takes
    precedence when both are on.
    """

    def scale_for(
        self, spec: ShapeSpec, index: int, modulus_scale: ModulusScale | None = None
    ) -> float:
        scale = spec.step_scale**index
        if spec.use_modulus:
            factor = (
                modulus_scale(index)
                if modulus_scale is not None
                else modulus_sequence(index, spec.modulus_value)
            )
            scale *= factor
        elif spec.use_alt_scale and (index + 1) % spec.alt_step_n == 0:
            scale *= spec.alt_scale

        if scale < MIN_COPY_SCALE:
            logger.debug(f"Copy {index} scale {scale} floored to {MIN_COPY_SCALE}")
            scale = MIN_COPY_SCALE
        return scale

    def rotation_for(self, spec: ShapeSpec, index: int) -> float:
        return spec.starting_angle_degrees + index * spec.angle_degrees

    def transforms_for(
        self, spec: ShapeSpec, modulus_scale: ModulusScale | None = None
    ) -> list[CopyTransform]:
        """Build the transform list for ``spec.copies`` copies.

        Args:
            spec: Shape specification
            modulus_scale: Optional per-index scale function replacing the
                default modulus sequence

        Returns:
            One CopyTransform per copy; empty when the shape has no copies

        Example:
            >>> spec = ShapeSpec(copies=3, step_scale=2, angle_degrees=90)
            >>> [(t.scale, t.rotation_degrees) for t in CopyTransformer().transforms_for(spec)]
            [(1.0, 0.0), (2.0, 90.0), (4.0, 180.0)]
        """
        if spec.copies <= 0:
            return []
        return [
            CopyTransform(
                copy_index=i,
                scale=self.scale_for(spec, i, modulus_scale),
                rotation_degrees=self.rotation_for(spec, i),
            )
            for i in range(spec.copies)
        ]


def apply_transform(
    point: Point, transform: CopyTransform, extra_rotation_rad: float = 0.0
) -> Point:
    """Scale ``point`` by the copy scale, then rotate by copy + extra rotation."""
    return point.scaled(transform.scale).rotated(transform.rotation_radians + extra_rotation_rad)


def transformed_segments(path: ShapePath, transform: CopyTransform) -> list[Segment]:
    """Resolve a path's segments to coordinates in one copy's frame."""
    moved = [apply_transform(p, transform) for p in path.points]
    return [(moved[s.start], moved[s.end]) for s in path.segments]


__all__ = [
    "CopyTransform",
    "CopyTransformer",
    "ModulusScale",
    "apply_transform",
    "modulus_sequence",
    "transformed_segments",
]
