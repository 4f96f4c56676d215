"""Merge base and intersection vertices into one indexed buffer."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from gyrotone.core.geometry.models import (
    GeometryBuffer,
    GeometryMetadata,
    IntersectionPoint,
    LineSegment,
    Point,
    ShapeFamily,
    ShapePath,
)
from gyrotone.core.geometry.spec import ShapeSpec

logger = logging.getLogger(__name__)

# Perpendicular distance within which a point counts as lying on a segment
ON_SEGMENT_TOLERANCE = 1e-6
# Parametric margin that keeps a segment's own endpoints out of its chain
ENDPOINT_MARGIN = 1e-9


def point_on_segment(
    point: Point, start: Point, end: Point, tolerance: float = ON_SEGMENT_TOLERANCE
) -> float | None:
    """Test whether ``point`` lies strictly inside segment start-end.

    Uses the cross-product distance to the supporting line plus the
    parametric position along the segment.

    Args:
        point: Candidate point
        start: Segment start
        end: Segment end
        tolerance: Maximum perpendicular distance

    Returns:
        Distance from ``start`` when the point is on the segment interior,
        otherwise None
    """
    dx = end.x - start.x
    dy = end.y - start.y
    length = math.hypot(dx, dy)
    if length == 0.0:
        return None

    cross = (point.x - start.x) * dy - (point.y - start.y) * dx
    if abs(cross) / length > tolerance:
        return None

    t = ((point.x - start.x) * dx + (point.y - start.y) * dy) / (length * length)
    if t <= ENDPOINT_MARGIN or t >= 1.0 - ENDPOINT_MARGIN:
        return None
    return t * length


class GeometryAssembler:
    """Build a ``GeometryBuffer`` from a shape path and optional intersections.

    Base vertices keep their indices; intersection vertices are appended
    after them. Each base segment that passes through intersection vertices
    is replaced by a chain of edges through them, ordered from the segment's
    start.

    Args:
        tolerance: Perpendicular distance for the point-on-segment test
    """

    def __init__(self, tolerance: float = ON_SEGMENT_TOLERANCE) -> None:
        self.tolerance = tolerance

    def assemble(
        self,
        path: ShapePath,
        intersection_points: Sequence[IntersectionPoint] = (),
        spec: ShapeSpec | None = None,
    ) -> GeometryBuffer:
        """Produce the indexed buffer.

        Args:
            path: Base points and segments
            intersection_points: Points to append after the base vertices
            spec: Spec the path was built from (fills metadata)

        Returns:
            Immutable GeometryBuffer
        """
        base_count = len(path.points)
        extra = [p.as_point() for p in intersection_points]
        vertices = tuple(path.points) + tuple(extra)

        segments: list[LineSegment] = []
        for seg in path.segments:
            start = path.points[seg.start]
            end = path.points[seg.end]
            hits: list[tuple[float, int]] = []
            for offset, candidate in enumerate(extra):
                along = point_on_segment(candidate, start, end, self.tolerance)
                if along is not None:
                    hits.append((along, base_count + offset))
            if not hits:
                segments.append(seg)
                continue

            hits.sort()
            chain = [seg.start, *(idx for _, idx in hits), seg.end]
            segments.extend(
                LineSegment(start=chain[i], end=chain[i + 1]) for i in range(len(chain) - 1)
            )

        metadata = GeometryMetadata(
            base_vertex_count=base_count,
            intersection_vertex_count=len(extra),
            shape_family=spec.effective_family if spec is not None else ShapeFamily.REGULAR,
            star_skip=spec.star_skip if spec is not None else 1,
            fractal_level=spec.fractal_divisions if spec is not None else 1,
            path_count=path.path_count,
        )
        if len(segments) != len(path.segments):
            logger.debug(
                f"Routed {len(path.segments)} segment(s) through intersections -> {len(segments)}"
            )

        return GeometryBuffer(
            vertices=vertices,
            segments=tuple(segments),
            intersections=tuple(intersection_points),
            metadata=metadata,
        )


__all__ = ["GeometryAssembler", "point_on_segment"]
