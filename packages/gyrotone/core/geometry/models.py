"""Geometry value types.

Points, index-based line segments, intersection provenance and the
immutable ``GeometryBuffer`` snapshot handed to rendering collaborators.
"""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gyrotone.core.utils.math import distance

# Dedup keys round coordinates to this many decimals (1e-6)
POINT_KEY_DECIMALS = 6


class ShapeFamily(str, Enum):
    """Generative algorithm for the base polygon.

    Attributes:
        REGULAR: Evenly spaced points joined cyclically.
        STAR: {n/k} star polygon, possibly several disjoint cycles.
        EUCLIDEAN: Subset of the regular points chosen by a Euclidean rhythm.
        FRACTAL: Regular path with every edge subdivided.
    """

    REGULAR = "regular"
    STAR = "star"
    EUCLIDEAN = "euclidean"
    FRACTAL = "fractal"


class Point(BaseModel):
    """A 2-D coordinate."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    def key(self) -> tuple[float, float]:
        """Fixed-precision identity used for deduplication."""
        return (round(self.x, POINT_KEY_DECIMALS), round(self.y, POINT_KEY_DECIMALS))

    def distance_to(self, other: Point) -> float:
        return distance(self.x, self.y, other.x, other.y)

    def scaled(self, factor: float) -> Point:
        return Point(x=self.x * factor, y=self.y * factor)

    def rotated(self, angle_rad: float) -> Point:
        cos_a = math.cos(angle_rad)
        sin_a = math.sin(angle_rad)
        return Point(x=self.x * cos_a - self.y * sin_a, y=self.x * sin_a + self.y * cos_a)


class LineSegment(BaseModel):
    """An ordered pair of vertex indices into a shared vertex list."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)


class IntersectionPoint(Point):
    """A point produced by intersecting two segments.

    Attributes:
        segment_a: Index of the first segment in its source segment list.
        segment_b: Index of the second segment in its source segment list.
        copy_a: Copy index owning ``segment_a`` (None for untransformed paths).
        copy_b: Copy index owning ``segment_b`` (None for untransformed paths).
    """

    segment_a: int
    segment_b: int
    copy_a: int | None = None
    copy_b: int | None = None

    def as_point(self) -> Point:
        return Point(x=self.x, y=self.y)


class ShapePath(BaseModel):
    """Raw output of a shape builder before intersections are merged in.

    Attributes:
        points: Ordered vertex list.
        segments: Edges as index pairs into ``points``.
        path_count: Number of disjoint closed sub-paths.
    """

    model_config = ConfigDict(frozen=True)

    points: tuple[Point, ...] = ()
    segments: tuple[LineSegment, ...] = ()
    path_count: int = Field(default=0, ge=0)

    def segment_endpoints(self) -> list[tuple[Point, Point]]:
        """Resolve segments to coordinate pairs."""
        return [(self.points[s.start], self.points[s.end]) for s in self.segments]


class GeometryMetadata(BaseModel):
    """Topology metadata carried alongside a geometry buffer."""

    model_config = ConfigDict(frozen=True)

    base_vertex_count: int = Field(ge=0)
    intersection_vertex_count: int = Field(default=0, ge=0)
    shape_family: ShapeFamily = ShapeFamily.REGULAR
    star_skip: int = Field(default=1, ge=1)
    fractal_level: int = Field(default=1, ge=1)
    path_count: int = Field(default=0, ge=0)


class GeometryBuffer(BaseModel):
    """Indexed vertex/segment buffer for one layer's base shape.

    Base vertices occupy indices ``[0, base_vertex_count)``; intersection
    vertices follow. The buffer is an immutable snapshot: a rebuild produces
    a new buffer and the old one is simply dropped.
    """

    model_config = ConfigDict(frozen=True)

    vertices: tuple[Point, ...] = ()
    segments: tuple[LineSegment, ...] = ()
    intersections: tuple[IntersectionPoint, ...] = ()
    metadata: GeometryMetadata

    @model_validator(mode="after")
    def _validate_topology(self) -> GeometryBuffer:
        meta = self.metadata
        expected = meta.base_vertex_count + meta.intersection_vertex_count
        if len(self.vertices) != expected:
            raise ValueError(
                f"GeometryBuffer: {len(self.vertices)} vertices but metadata declares {expected}"
            )
        total = len(self.vertices)
        for seg in self.segments:
            if seg.start >= total or seg.end >= total:
                raise ValueError(
                    f"GeometryBuffer: segment ({seg.start}, {seg.end}) out of range "
                    f"for {total} vertices"
                )
        return self

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def base_vertices(self) -> tuple[Point, ...]:
        return self.vertices[: self.metadata.base_vertex_count]

    @property
    def intersection_vertices(self) -> tuple[Point, ...]:
        return self.vertices[self.metadata.base_vertex_count :]

    @classmethod
    def empty(cls, shape_family: ShapeFamily = ShapeFamily.REGULAR) -> GeometryBuffer:
        """Buffer with no vertices (used before the first successful build)."""
        return cls(metadata=GeometryMetadata(base_vertex_count=0, shape_family=shape_family))


__all__ = [
    "GeometryBuffer",
    "GeometryMetadata",
    "IntersectionPoint",
    "LineSegment",
    "Point",
    "ShapeFamily",
    "ShapePath",
]
