"""Shape builders for the four polygon families.

Each builder returns a ``ShapePath`` (ordered points plus index-pair
segments). Fractal subdivision composes on top of whichever family produced
the path.
"""

from __future__ import annotations

import logging
import math

from gyrotone.core.geometry.models import LineSegment, Point, ShapeFamily, ShapePath
from gyrotone.core.geometry.rhythm import euclidean_rhythm
from gyrotone.core.geometry.spec import ShapeSpec
from gyrotone.core.utils.math import circle_points

logger = logging.getLogger(__name__)


def _circle(radius: float, n: int) -> tuple[Point, ...]:
    return tuple(Point(x=float(x), y=float(y)) for x, y in circle_points(n, radius))


def _cycle(indices: list[int]) -> list[LineSegment]:
    """Segments joining ``indices`` in order and closing back to the first."""
    if len(indices) < 2:
        return []
    return [
        LineSegment(start=indices[i], end=indices[(i + 1) % len(indices)])
        for i in range(len(indices))
    ]


def regular_polygon(radius: float, n: int) -> ShapePath:
    """n points evenly spaced on the circle, joined cyclically.

    Args:
        radius: Circumradius
        n: Number of points (>= 2)

    Returns:
        ShapePath with n points and n segments forming one cycle
    """
    points = _circle(radius, n)
    return ShapePath(points=points, segments=tuple(_cycle(list(range(n)))), path_count=1)


def star_polygon(radius: float, n: int, k: int) -> ShapePath:
    """Star polygon {n/k}.

    Vertex i connects to vertex (i + k) mod n. When gcd(n, k) = g > 1 the
    figure splits into g disjoint cycles of n/g vertices; each cycle is walked
    from its own start offset so no edge is dropped. k <= 1 or k >= n
    degrades to a regular polygon.

    Args:
        radius: Circumradius
        n: Number of points
        k: Step between connected points

    Returns:
        ShapePath with n points, n segments and g sub-paths
    """
    if k <= 1 or k >= n:
        return regular_polygon(radius, n)

    points = _circle(radius, n)
    g = math.gcd(n, k)
    per_path = n // g

    segments: list[LineSegment] = []
    for offset in range(g):
        walk = [(offset + step * k) % n for step in range(per_path)]
        segments.extend(_cycle(walk))

    logger.debug(f"Star {{{n}/{k}}}: {g} path(s) of {per_path} vertices")
    return ShapePath(points=points, segments=tuple(segments), path_count=g)


def euclidean_polygon(radius: float, n: int, k: int) -> ShapePath:
    """Polygon through the onsets of a Euclidean rhythm.

    Only the "on" steps of ``euclidean_rhythm(n, k)`` keep their circle point;
    retained points stay in angular order and are joined cyclically.

    Args:
        radius: Circumradius
        n: Number of steps on the circle
        k: Number of onsets

    Returns:
        ShapePath with k points (k segments when k >= 2)
    """
    pattern = euclidean_rhythm(n, k)
    circle = _circle(radius, n)
    points = tuple(circle[i] for i, on in enumerate(pattern) if on)
    if not points:
        logger.debug(f"Euclidean pattern n={n}, k={k} has no onsets")
        return ShapePath()
    segments = _cycle(list(range(len(points))))
    return ShapePath(points=points, segments=tuple(segments), path_count=1 if segments else 0)


def subdivide(path: ShapePath, divisions: int) -> ShapePath:
    """Split every edge into ``divisions`` equal sub-edges.

    Vertices are laid out in path order: each original vertex is followed by
    the interior points of its outgoing edge, so the original vertices remain
    a subsequence of the result. A path of m edges becomes m * divisions
    edges. ``divisions <= 1`` returns the path unchanged.

    Args:
        path: Path to subdivide
        divisions: Sub-edges per edge

    Returns:
        Subdivided ShapePath
    """
    if divisions <= 1 or not path.segments:
        return path

    interior = divisions - 1

    # Pass 1: assign new indices to original vertices in order of traversal
    new_index: dict[int, int] = {}
    cursor = 0
    for seg in path.segments:
        if seg.start not in new_index:
            new_index[seg.start] = cursor
            cursor += 1
        cursor += interior
    for original in range(len(path.points)):
        if original not in new_index:
            new_index[original] = cursor
            cursor += 1

    points: list[Point | None] = [None] * cursor
    for original, idx in new_index.items():
        points[idx] = path.points[original]

    # Pass 2: interior points and the chained segments
    segments: list[LineSegment] = []
    for seg in path.segments:
        a = path.points[seg.start]
        b = path.points[seg.end]
        base = new_index[seg.start]
        chain = [base]
        for j in range(1, divisions):
            t = j / divisions
            idx = base + j
            points[idx] = Point(x=a.x + (b.x - a.x) * t, y=a.y + (b.y - a.y) * t)
            chain.append(idx)
        chain.append(new_index[seg.end])
        segments.extend(
            LineSegment(start=chain[i], end=chain[i + 1]) for i in range(len(chain) - 1)
        )

    return ShapePath(
        points=tuple(p for p in points if p is not None),
        segments=tuple(segments),
        path_count=path.path_count,
    )


class ShapeBuilder:
    """Build the base path for a ``ShapeSpec``.

    Star and Euclidean generation are mutually exclusive (selected by
    ``shape_family``); subdivision is applied afterwards when
    ``fractal_divisions > 1``.

    Example:
        >>> path = ShapeBuilder().build(ShapeSpec(radius=100, segment_count=4))
        >>> len(path.points), len(path.segments)
        (4, 4)
    """

    def build(self, spec: ShapeSpec) -> ShapePath:
        """Construct points and segments for ``spec``.

        Args:
            spec: Shape specification (already clamped)

        Returns:
            ShapePath for the base (untransformed) shape
        """
        family = spec.effective_family
        n = spec.segment_count

        if family == ShapeFamily.STAR:
            path = star_polygon(spec.radius, n, spec.star_skip)
        elif family == ShapeFamily.EUCLIDEAN:
            path = euclidean_polygon(spec.radius, n, spec.euclid_pulses)
        else:
            path = regular_polygon(spec.radius, n)

        return subdivide(path, spec.fractal_divisions)


__all__ = [
    "ShapeBuilder",
    "euclidean_polygon",
    "regular_polygon",
    "star_polygon",
    "subdivide",
]
