"""Line-segment intersection with point deduplication.

Segments are passed as coordinate pairs so the same solver serves both the
untransformed star path ("cuts") and the transformed copies of a layer.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from gyrotone.core.geometry.models import IntersectionPoint, Point

logger = logging.getLogger(__name__)

# Parametric slack on both segments
PARAM_EPSILON = 1e-5
# Below this determinant the segments are treated as parallel
DETERMINANT_EPSILON = 1e-10
DEFAULT_MERGE_THRESHOLD = 0.001

Segment = tuple[Point, Point]


def segment_intersection(p1: Point, p2: Point, p3: Point, p4: Point) -> Point | None:
    """Intersect segment p1-p2 with segment p3-p4.

    Args:
        p1: Start of the first segment
        p2: End of the first segment
        p3: Start of the second segment
        p4: End of the second segment

    Returns:
        Intersection point, or None when the segments are parallel,
        degenerate, or do not overlap within their parametric range
    """
    denom = (p4.y - p3.y) * (p2.x - p1.x) - (p4.x - p3.x) * (p2.y - p1.y)
    if abs(denom) <= DETERMINANT_EPSILON:
        return None

    ua = ((p4.x - p3.x) * (p1.y - p3.y) - (p4.y - p3.y) * (p1.x - p3.x)) / denom
    ub = ((p2.x - p1.x) * (p1.y - p3.y) - (p2.y - p1.y) * (p1.x - p3.x)) / denom

    lo, hi = -PARAM_EPSILON, 1 + PARAM_EPSILON
    if not (lo <= ua <= hi and lo <= ub <= hi):
        return None

    return Point(x=p1.x + ua * (p2.x - p1.x), y=p1.y + ua * (p2.y - p1.y))


class IntersectionSolver:
    """Pairwise segment intersection with merge-threshold deduplication.

    A candidate closer than ``merge_threshold`` to an already accepted point
    is dropped, so the first point found in scan order wins.

    Args:
        merge_threshold: Distance below which two points are the same point

    Example:
        >>> solver = IntersectionSolver()
        >>> a = [(Point(x=-1, y=0), Point(x=1, y=0))]
        >>> b = [(Point(x=0, y=-1), Point(x=0, y=1))]
        >>> [(p.x, p.y) for p in solver.find_intersections(a, b)]
        [(0.0, 0.0)]
    """

    def __init__(self, merge_threshold: float = DEFAULT_MERGE_THRESHOLD) -> None:
        self.merge_threshold = merge_threshold

    def _is_duplicate(self, candidate: Point, accepted: Sequence[Point]) -> bool:
        return any(candidate.distance_to(p) < self.merge_threshold for p in accepted)

    def _touches_endpoint(self, candidate: Point, *segments: Segment) -> bool:
        return any(
            candidate.distance_to(end) < self.merge_threshold
            for seg in segments
            for end in seg
        )

    def _shares_endpoint(self, a: Segment, b: Segment) -> bool:
        return any(pa.distance_to(pb) < self.merge_threshold for pa in a for pb in b)

    def find_intersections(
        self,
        segments_a: Sequence[Segment],
        segments_b: Sequence[Segment],
        copy_a: int | None = None,
        copy_b: int | None = None,
        accepted: list[IntersectionPoint] | None = None,
    ) -> list[IntersectionPoint]:
        """Intersect every segment of ``segments_a`` with every segment of ``segments_b``.

        Args:
            segments_a: First segment set
            segments_b: Second segment set
            copy_a: Copy index recorded as provenance for ``segments_a``
            copy_b: Copy index recorded as provenance for ``segments_b``
            accepted: Points already accepted by an enclosing scan; new points
                are deduplicated against (and appended to) this list

        Returns:
            Newly accepted intersection points in scan order
        """
        pool = accepted if accepted is not None else []
        found: list[IntersectionPoint] = []
        for ia, (p1, p2) in enumerate(segments_a):
            for ib, (p3, p4) in enumerate(segments_b):
                hit = segment_intersection(p1, p2, p3, p4)
                if hit is None or self._is_duplicate(hit, pool):
                    continue
                point = IntersectionPoint(
                    x=hit.x, y=hit.y, segment_a=ia, segment_b=ib, copy_a=copy_a, copy_b=copy_b
                )
                pool.append(point)
                found.append(point)
        return found

    def find_self_intersections(
        self,
        segments: Sequence[Segment],
        copy_index: int | None = None,
        accepted: list[IntersectionPoint] | None = None,
    ) -> list[IntersectionPoint]:
        """Find crossings between non-adjacent segments of one path.

        Pairs that share an endpoint (consecutive and wrap-around neighbours
        of each closed sub-path) are skipped, as are candidates that land on
        an endpoint of either segment. Adjacency is judged by shared vertices
        rather than list position so that the boundary between two disjoint
        star cycles is still scanned.

        Args:
            segments: Segments of a single (possibly multi-cycle) path
            copy_index: Copy index recorded as provenance
            accepted: Shared dedup pool, see ``find_intersections``

        Returns:
            Newly accepted intersection points in scan order
        """
        pool = accepted if accepted is not None else []
        found: list[IntersectionPoint] = []
        count = len(segments)
        for i in range(count):
            for j in range(i + 1, count):
                seg_a, seg_b = segments[i], segments[j]
                # Neighbours within a cycle, including the wrap pair, share a vertex
                if self._shares_endpoint(seg_a, seg_b):
                    continue
                hit = segment_intersection(*seg_a, *seg_b)
                if hit is None:
                    continue
                if self._touches_endpoint(hit, seg_a, seg_b) or self._is_duplicate(hit, pool):
                    continue
                point = IntersectionPoint(
                    x=hit.x, y=hit.y, segment_a=i, segment_b=j, copy_a=copy_index, copy_b=copy_index
                )
                pool.append(point)
                found.append(point)
        return found

    def find_copy_intersections(
        self, copies: Sequence[Sequence[Segment]]
    ) -> list[IntersectionPoint]:
        """Intersections between transformed copies plus each copy's own crossings.

        Every segment of copy i is tested against every segment of copy j for
        i < j, then each copy is scanned for self-intersections. All results
        share one dedup pool.

        Args:
            copies: Transformed segment sets, one per copy, in copy order

        Returns:
            Deduplicated intersection points; empty when there is at most one copy
        """
        if len(copies) <= 1:
            return []

        pool: list[IntersectionPoint] = []
        for i in range(len(copies)):
            for j in range(i + 1, len(copies)):
                self.find_intersections(copies[i], copies[j], copy_a=i, copy_b=j, accepted=pool)
        for i, segments in enumerate(copies):
            self.find_self_intersections(segments, copy_index=i, accepted=pool)

        logger.debug(f"Found {len(pool)} intersection(s) across {len(copies)} copies")
        return pool


__all__ = [
    "DEFAULT_MERGE_THRESHOLD",
    "IntersectionSolver",
    "Segment",
    "segment_intersection",
]
