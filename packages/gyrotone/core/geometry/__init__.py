"""Polygon geometry: shape generation, intersections, copies and layer buffers."""

from gyrotone.core.geometry.assembler import GeometryAssembler, point_on_segment
from gyrotone.core.geometry.intersections import IntersectionSolver, segment_intersection
from gyrotone.core.geometry.layer import GeometryRebuildError, RebuildResult, ShapeLayer
from gyrotone.core.geometry.models import (
    GeometryBuffer,
    GeometryMetadata,
    IntersectionPoint,
    LineSegment,
    Point,
    ShapeFamily,
    ShapePath,
)
from gyrotone.core.geometry.rhythm import euclidean_rhythm
from gyrotone.core.geometry.shapes import (
    ShapeBuilder,
    euclidean_polygon,
    regular_polygon,
    star_polygon,
    subdivide,
)
from gyrotone.core.geometry.spec import ShapeSpec, changed_fields, geometry_changed
from gyrotone.core.geometry.transforms import (
    CopyTransform,
    CopyTransformer,
    apply_transform,
    modulus_sequence,
)

__all__ = [
    "CopyTransform",
    "CopyTransformer",
    "GeometryAssembler",
    "GeometryBuffer",
    "GeometryMetadata",
    "GeometryRebuildError",
    "IntersectionPoint",
    "IntersectionSolver",
    "LineSegment",
    "Point",
    "RebuildResult",
    "ShapeBuilder",
    "ShapeFamily",
    "ShapeLayer",
    "ShapePath",
    "ShapeSpec",
    "apply_transform",
    "changed_fields",
    "euclidean_polygon",
    "euclidean_rhythm",
    "geometry_changed",
    "modulus_sequence",
    "point_on_segment",
    "regular_polygon",
    "segment_intersection",
    "star_polygon",
    "subdivide",
]
