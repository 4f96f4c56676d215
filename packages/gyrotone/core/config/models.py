"""Configuration models for Gyrotone."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gyrotone.core.geometry.intersections import DEFAULT_MERGE_THRESHOLD
from gyrotone.core.geometry.spec import ShapeSpec
from gyrotone.core.notes.models import NoteSettings
from gyrotone.core.timing.clock import DEFAULT_BPM
from gyrotone.core.timing.quantize import DEFAULT_GRID, FLUSH_TOLERANCE, TOLERANCE_CEILING


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    filename: str | None = Field(default=None, description="Optional log file")
    structured: bool = Field(default=False, description="Emit JSON log lines")


class TriggerConfig(BaseModel):
    """Trigger detection and quantization settings.

    Attributes:
        overlap_threshold: Distance below which simultaneous crossings collapse.
        boundary_epsilon: Band around the axis for the boundary crossing case.
        quantize: Align triggers to a musical grid.
        grid: Grid label ("1/4", "1/8T", ...).
        tolerance_ceiling: Upper bound on the fire-now window in seconds.
        flush_tolerance: Slack when releasing pending triggers in seconds.
        fire_intersections: Detect crossings of intersection vertices.
    """

    model_config = ConfigDict(extra="forbid")

    overlap_threshold: float = Field(default=20.0, ge=0.0)
    boundary_epsilon: float = Field(default=1e-6, ge=0.0)
    quantize: bool = False
    grid: str = DEFAULT_GRID
    tolerance_ceiling: float = Field(default=TOLERANCE_CEILING, ge=0.0)
    flush_tolerance: float = Field(default=FLUSH_TOLERANCE, ge=0.0)
    fire_intersections: bool = True


class GeometryConfig(BaseModel):
    """Intersection and assembly tolerances."""

    model_config = ConfigDict(extra="forbid")

    merge_threshold: float = Field(default=DEFAULT_MERGE_THRESHOLD, gt=0.0)


class LayerConfig(BaseModel):
    """One rotating layer."""

    model_config = ConfigDict(extra="forbid")

    layer_id: str = Field(min_length=1)
    shape: ShapeSpec = Field(default_factory=ShapeSpec)


class AppConfig(BaseModel):
    """Application-level configuration.

    Attributes:
        bpm: Tempo; one full revolution takes one 4/4 measure.
        rotation_multiplier: Scales the rotation speed derived from ``bpm``.
        rearm_each_revolution: Let every vertex fire again on each full turn.
        logging: Logging setup.
        triggers: Trigger engine settings.
        notes: Default note resolver settings.
        geometry: Geometry tolerances.
        layers: Layers to build and rotate.
    """

    model_config = ConfigDict(extra="ignore")

    bpm: float = Field(default=DEFAULT_BPM, gt=0)
    rotation_multiplier: float = Field(default=1.0, ge=0.0)
    rearm_each_revolution: bool = True
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    triggers: TriggerConfig = Field(default_factory=TriggerConfig)
    notes: NoteSettings = Field(default_factory=NoteSettings)
    geometry: GeometryConfig = Field(default_factory=GeometryConfig)
    layers: list[LayerConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_layer_ids(self) -> AppConfig:
        seen: set[str] = set()
        for layer in self.layers:
            if layer.layer_id in seen:
                raise ValueError(f"Duplicate layer_id '{layer.layer_id}'")
            seen.add(layer.layer_id)
        return self


__all__ = [
    "AppConfig",
    "GeometryConfig",
    "LayerConfig",
    "LoggingConfig",
    "TriggerConfig",
]
