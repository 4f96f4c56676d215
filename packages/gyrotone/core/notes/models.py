"""Note resolution contract: trigger data in, note parameters out."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ParameterMode(str, Enum):
    """How a per-trigger parameter is derived from the point index.

    Attributes:
        MODULO: Max on every modulo-th point, min elsewhere.
        RANDOM: Deterministic pseudo-random value seeded by the index.
        INTERPOLATION: Sine oscillation over one modulo cycle.
    """

    MODULO = "modulo"
    RANDOM = "random"
    INTERPOLATION = "interpolation"


class ParameterSettings(BaseModel):
    """Range and pattern for one note parameter.

    ``minimum > maximum`` is allowed and inverts the pattern.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    mode: ParameterMode = ParameterMode.MODULO
    minimum: float = Field(default=0.1, description="Low end of the range")
    maximum: float = Field(default=0.5, description="High end of the range")
    modulo: int = Field(default=3, ge=1, description="Pattern length")
    phase: float = Field(default=0.0, ge=0.0, le=1.0, description="Pattern phase shift")


class NoteSettings(BaseModel):
    """Settings for ``DefaultNoteResolver``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    use_equal_temperament: bool = False
    reference_frequency: float = Field(default=440.0, gt=0)
    duration: ParameterSettings = Field(
        default_factory=lambda: ParameterSettings(minimum=0.1, maximum=0.5, modulo=3)
    )
    velocity: ParameterSettings = Field(
        default_factory=lambda: ParameterSettings(minimum=0.3, maximum=0.9, modulo=4)
    )


class TriggerData(BaseModel):
    """Everything known about a crossing at the moment it is detected.

    Attributes:
        layer_id: Layer that produced the crossing.
        x: Position in the layer frame (copy transform applied, group rotation not).
        y: See ``x``.
        world_x: Position after the current group rotation.
        world_y: See ``world_x``.
        angle: Current group rotation in radians.
        vertex_index: Base vertex index, or intersection index for intersections.
        copy_index: Copy the vertex belongs to (None for intersections).
        is_intersection: Whether the point is an intersection vertex.
        sequential_index: Global fire counter value reserved for this trigger.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    layer_id: str
    x: float
    y: float
    world_x: float
    world_y: float
    angle: float = 0.0
    vertex_index: int = Field(ge=0)
    copy_index: int | None = None
    is_intersection: bool = False
    sequential_index: int | None = None


class NoteParameters(BaseModel):
    """Resolved musical parameters for one trigger.

    Attributes:
        frequency: Pitch in Hz.
        duration: Note length in seconds.
        velocity: Loudness in [0, 1].
        pan: Stereo position in [-1, 1].
        note_name: Equal-temperament name (e.g. "A4") when quantized.
        point_index: Index that drove duration and velocity patterns.
        copy_index: Copy of the source vertex, if any.
        vertex_index: Source vertex or intersection index.
        is_intersection: Whether the source is an intersection vertex.
        x: Layer-frame x of the source point.
        y: Layer-frame y of the source point.
        time: Execution time in seconds (set when fired).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    frequency: float
    duration: float
    velocity: float
    pan: float = 0.0
    note_name: str | None = None
    point_index: int = 0
    copy_index: int | None = None
    vertex_index: int = 0
    is_intersection: bool = False
    x: float = 0.0
    y: float = 0.0
    time: float | None = None


__all__ = [
    "NoteParameters",
    "NoteSettings",
    "ParameterMode",
    "ParameterSettings",
    "TriggerData",
]
