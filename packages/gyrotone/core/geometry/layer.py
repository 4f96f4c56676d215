"""Layer geometry ownership and rebuild tracking.

A ``ShapeLayer`` holds the latest ``ShapeSpec`` for one layer, the spec its
current ``GeometryBuffer`` was built from, and the copy transforms. It
rebuilds only when a geometry-affecting field moved past its threshold, and
never publishes a half-built buffer: a failed rebuild keeps serving the
previous one.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from gyrotone.core.geometry.assembler import GeometryAssembler
from gyrotone.core.geometry.intersections import IntersectionSolver
from gyrotone.core.geometry.models import GeometryBuffer, IntersectionPoint, ShapeFamily
from gyrotone.core.geometry.shapes import ShapeBuilder
from gyrotone.core.geometry.spec import ShapeSpec, changed_fields, geometry_changed
from gyrotone.core.geometry.transforms import (
    CopyTransform,
    CopyTransformer,
    ModulusScale,
    transformed_segments,
)
from gyrotone.core.utils.logging import log_performance

logger = logging.getLogger(__name__)


class GeometryRebuildError(Exception):
    """Raised when a layer's geometry cannot be rebuilt.

    Attributes:
        layer_id: Layer whose rebuild failed.
        reason: What went wrong.
    """

    def __init__(self, *, layer_id: str, reason: str) -> None:
        self.layer_id = layer_id
        self.reason = reason
        super().__init__(f"Layer '{layer_id}' rebuild failed: {reason}")


class RebuildResult(BaseModel):
    """Outcome of ``ShapeLayer.rebuild_if_dirty``.

    Never raises; a failure is captured here and the previous buffer is
    returned unchanged.

    Attributes:
        layer_id: Layer the result belongs to
        success: False only when a rebuild was attempted and failed
        rebuilt: Whether a new buffer was published
        buffer: Buffer the layer is serving after the call
        changed_fields: Spec fields that triggered the rebuild
        error: Error message when ``success`` is False
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    layer_id: str
    success: bool = True
    rebuilt: bool = False
    buffer: GeometryBuffer
    changed_fields: list[str] = Field(default_factory=list)
    error: str | None = None


class ShapeLayer:
    """One layer's spec snapshot, geometry buffer and copy transforms.

    Args:
        layer_id: Stable identifier used in trigger keys
        spec: Initial spec (defaults to ``ShapeSpec()``)
        builder: Shape builder
        solver: Intersection solver
        assembler: Geometry assembler
        transformer: Copy transformer
        modulus_scale: Optional external modulus scale function

    Example:
        >>> layer = ShapeLayer("a", ShapeSpec(segment_count=5))
        >>> layer.rebuild_if_dirty().rebuilt
        True
        >>> layer.rebuild_if_dirty().rebuilt
        False
    """

    def __init__(
        self,
        layer_id: str,
        spec: ShapeSpec | None = None,
        *,
        builder: ShapeBuilder | None = None,
        solver: IntersectionSolver | None = None,
        assembler: GeometryAssembler | None = None,
        transformer: CopyTransformer | None = None,
        modulus_scale: ModulusScale | None = None,
    ) -> None:
        self.layer_id = layer_id
        self._spec = spec or ShapeSpec()
        self._builder = builder or ShapeBuilder()
        self._solver = solver or IntersectionSolver()
        self._assembler = assembler or GeometryAssembler()
        self._transformer = transformer or CopyTransformer()
        self._modulus_scale = modulus_scale

        self._built_spec: ShapeSpec | None = None
        self._failed_spec: ShapeSpec | None = None
        self._buffer = GeometryBuffer.empty(self._spec.shape_family)
        self._transforms: list[CopyTransform] = []
        self._geometry_version = 0

    @property
    def spec(self) -> ShapeSpec:
        return self._spec

    @property
    def built_spec(self) -> ShapeSpec | None:
        """Spec the current buffer was built from (None before the first build)."""
        return self._built_spec

    @property
    def buffer(self) -> GeometryBuffer:
        return self._buffer

    @property
    def transforms(self) -> list[CopyTransform]:
        return list(self._transforms)

    @property
    def geometry_version(self) -> int:
        """Incremented on every successful rebuild."""
        return self._geometry_version

    @property
    def materialized(self) -> bool:
        """True when the built spec has at least one copy."""
        return self._built_spec is not None and self._built_spec.materialized

    @property
    def needs_rebuild(self) -> bool:
        if self._failed_spec is not None and not geometry_changed(self._failed_spec, self._spec):
            return False
        return geometry_changed(self._built_spec, self._spec)

    def update_spec(self, spec: ShapeSpec) -> bool:
        """Store a new spec.

        Returns:
            True if the new spec requires a rebuild
        """
        self._spec = spec
        return self.needs_rebuild

    def rebuild_if_dirty(self) -> RebuildResult:
        """Rebuild when the spec moved meaningfully since the last build.

        Returns:
            RebuildResult describing what happened
        """
        if not self.needs_rebuild:
            return RebuildResult(layer_id=self.layer_id, buffer=self._buffer)
        return self.rebuild()

    def rebuild(self) -> RebuildResult:
        """Unconditionally rebuild from the current spec."""
        spec = self._spec
        changed = changed_fields(self._built_spec, spec)
        try:
            buffer, transforms = self._build(spec)
        except Exception as e:
            error = GeometryRebuildError(layer_id=self.layer_id, reason=str(e) or type(e).__name__)
            logger.warning(f"{error}; keeping geometry version {self._geometry_version}")
            self._failed_spec = spec
            return RebuildResult(
                layer_id=self.layer_id,
                success=False,
                buffer=self._buffer,
                changed_fields=changed,
                error=str(error),
            )

        self._buffer = buffer
        self._transforms = transforms
        self._built_spec = spec
        self._failed_spec = None
        self._geometry_version += 1
        logger.debug(
            f"Layer '{self.layer_id}' rebuilt (v{self._geometry_version}): "
            f"{buffer.metadata.base_vertex_count} base + "
            f"{buffer.metadata.intersection_vertex_count} intersection vertices, "
            f"changed={changed}"
        )
        return RebuildResult(
            layer_id=self.layer_id, rebuilt=True, buffer=buffer, changed_fields=changed
        )

    @log_performance
    def _build(self, spec: ShapeSpec) -> tuple[GeometryBuffer, list[CopyTransform]]:
        path = self._builder.build(spec)
        transforms = self._transformer.transforms_for(spec, self._modulus_scale)

        intersections: list[IntersectionPoint] = []
        if transforms and (spec.use_intersections or spec.use_cuts):
            copies = [transformed_segments(path, t) for t in transforms]
            if spec.use_intersections and len(copies) > 1:
                intersections = self._solver.find_copy_intersections(copies)
            elif spec.use_cuts and spec.effective_family == ShapeFamily.STAR:
                for index, segments in enumerate(copies):
                    self._solver.find_self_intersections(
                        segments, copy_index=index, accepted=intersections
                    )

        return self._assembler.assemble(path, intersections, spec), transforms


__all__ = ["GeometryRebuildError", "RebuildResult", "ShapeLayer"]
