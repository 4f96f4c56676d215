"""Tests for segment intersection and the intersection solver."""

import math

import pytest

from gyrotone.core.geometry.intersections import IntersectionSolver, segment_intersection
from gyrotone.core.geometry.models import Point
from gyrotone.core.geometry.shapes import regular_polygon, star_polygon
from gyrotone.core.geometry.transforms import CopyTransform, transformed_segments


def P(x, y):
    return Point(x=x, y=y)


# ============================================================================
# segment_intersection
# ============================================================================


class TestSegmentIntersection:
    def test_crossing_segments(self):
        hit = segment_intersection(P(-1, 0), P(1, 0), P(0, -1), P(0, 1))

        assert hit is not None
        assert hit.x == pytest.approx(0.0)
        assert hit.y == pytest.approx(0.0)

    def test_off_center_crossing(self):
        hit = segment_intersection(P(0, 0), P(4, 4), P(0, 4), P(4, 0))

        assert hit.x == pytest.approx(2.0)
        assert hit.y == pytest.approx(2.0)

    def test_parallel_is_none(self):
        assert segment_intersection(P(0, 0), P(1, 0), P(0, 1), P(1, 1)) is None

    def test_collinear_is_none(self):
        assert segment_intersection(P(0, 0), P(2, 0), P(1, 0), P(3, 0)) is None

    def test_degenerate_segment_is_none(self):
        assert segment_intersection(P(1, 1), P(1, 1), P(0, 0), P(2, 2)) is None

    def test_lines_cross_outside_segments(self):
        assert segment_intersection(P(0, 0), P(1, 0), P(2, -1), P(2, 1)) is None

    def test_touching_endpoint_within_slack(self):
        hit = segment_intersection(P(0, 0), P(1, 0), P(1, -1), P(1, 1))

        assert hit is not None
        assert hit.x == pytest.approx(1.0)


# ============================================================================
# IntersectionSolver
# ============================================================================


class TestFindIntersections:
    def test_records_provenance(self):
        solver = IntersectionSolver()
        a = [(P(-1, 0), P(1, 0))]
        b = [(P(5, 5), P(6, 6)), (P(0, -1), P(0, 1))]

        (point,) = solver.find_intersections(a, b, copy_a=0, copy_b=3)

        assert (point.segment_a, point.segment_b) == (0, 1)
        assert (point.copy_a, point.copy_b) == (0, 3)

    def test_concurrent_lines_yield_one_point(self):
        """Three lines through the origin produce a single deduplicated point."""
        solver = IntersectionSolver()
        horizontal = (P(-1, 0), P(1, 0))
        vertical = (P(0, -1), P(0, 1))
        diagonal = (P(-1, -1), P(1, 1))

        forward = solver.find_intersections([horizontal, vertical], [diagonal])
        backward = solver.find_intersections([diagonal], [vertical, horizontal])

        assert len(forward) == 1
        assert len(backward) == 1
        assert forward[0].key() == backward[0].key()

    def test_shared_pool_deduplicates_across_calls(self):
        solver = IntersectionSolver()
        pool = []
        a = [(P(-1, 0), P(1, 0))]
        b = [(P(0, -1), P(0, 1))]

        assert len(solver.find_intersections(a, b, accepted=pool)) == 1
        assert solver.find_intersections(b, a, accepted=pool) == []
        assert len(pool) == 1

    def test_merge_threshold_controls_dedup(self):
        a = [(P(-1, 0), P(1, 0))]
        b = [(P(0, -1), P(0, 1)), (P(0.01, -1), P(0.01, 1))]

        assert len(IntersectionSolver(merge_threshold=0.001).find_intersections(a, b)) == 2
        assert len(IntersectionSolver(merge_threshold=0.1).find_intersections(a, b)) == 1


class TestFindSelfIntersections:
    def test_pentagram_has_five_cuts(self):
        segments = star_polygon(100.0, 5, 2).segment_endpoints()

        points = IntersectionSolver().find_self_intersections(segments, copy_index=0)

        assert len(points) == 5
        inner_radius = 100.0 * math.cos(math.radians(72)) / math.cos(math.radians(36))
        for p in points:
            assert math.hypot(p.x, p.y) == pytest.approx(inner_radius)
            assert p.copy_a == p.copy_b == 0

    def test_convex_polygon_has_none(self):
        segments = regular_polygon(100.0, 6).segment_endpoints()
        assert IntersectionSolver().find_self_intersections(segments) == []

    def test_crossings_between_disjoint_star_cycles(self):
        """{6/2} is two triangles; their six crossings are all found."""
        segments = star_polygon(100.0, 6, 2).segment_endpoints()

        points = IntersectionSolver().find_self_intersections(segments)

        assert len(points) == 6
        for p in points:
            assert math.hypot(p.x, p.y) == pytest.approx(100.0 / math.sqrt(3))


class TestFindCopyIntersections:
    def test_single_copy_is_empty(self):
        segments = star_polygon(100.0, 5, 2).segment_endpoints()
        assert IntersectionSolver().find_copy_intersections([segments]) == []

    def test_no_copies_is_empty(self):
        assert IntersectionSolver().find_copy_intersections([]) == []

    def test_square_and_rotated_square(self):
        path = regular_polygon(100.0, 4)
        copies = [
            transformed_segments(path, CopyTransform(copy_index=0, scale=1.0)),
            transformed_segments(path, CopyTransform(copy_index=1, scale=1.0, rotation_degrees=45)),
        ]

        points = IntersectionSolver().find_copy_intersections(copies)

        assert len(points) == 8
        assert all((p.copy_a, p.copy_b) == (0, 1) for p in points)
        assert len({p.key() for p in points}) == 8

    def test_includes_each_copy_self_intersections(self):
        path = star_polygon(100.0, 5, 2)
        copies = [
            transformed_segments(path, CopyTransform(copy_index=0, scale=1.0)),
            transformed_segments(path, CopyTransform(copy_index=1, scale=0.1)),
        ]

        points = IntersectionSolver().find_copy_intersections(copies)
        self_points = [p for p in points if p.copy_a == p.copy_b]

        # The small copy sits inside the inner pentagon, so only cuts remain
        assert len(points) == 10
        assert {p.copy_a for p in self_points} == {0, 1}
