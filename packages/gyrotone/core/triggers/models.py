"""Trigger identities, scheduled triggers and fired events."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from gyrotone.core.notes.models import NoteParameters


class TriggerKind(str, Enum):
    """Source of a trigger.

    Attributes:
        VERTEX: Base vertex of one copy.
        INTERSECTION: Intersection vertex (not tied to a copy).
    """

    VERTEX = "vertex"
    INTERSECTION = "intersection"


class TriggerKey(BaseModel):
    """Identity of a crossing within one reset epoch.

    Keys always carry the layer id so one layer's rotation cannot suppress
    another layer's identical vertex.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: TriggerKind
    index: int = Field(ge=0)
    copy_index: int | None = None
    layer_id: str

    @classmethod
    def vertex(cls, layer_id: str, vertex_index: int, copy_index: int) -> TriggerKey:
        return cls(
            kind=TriggerKind.VERTEX, index=vertex_index, copy_index=copy_index, layer_id=layer_id
        )

    @classmethod
    def intersection(cls, layer_id: str, index: int) -> TriggerKey:
        return cls(kind=TriggerKind.INTERSECTION, index=index, layer_id=layer_id)


class PendingTrigger(BaseModel):
    """A resolved trigger waiting for its grid time.

    Attributes:
        note: Snapshot of the resolved note.
        execute_time: When to fire, in seconds.
        layer_id: Owning layer (used by per-layer cancellation).
        quantized: Whether the time came from grid quantization.
        key: Crossing that produced the trigger.
        world_x: World position at detection.
        world_y: World position at detection.
        sequential_index: Global index assigned at detection.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    note: NoteParameters
    execute_time: float
    layer_id: str
    quantized: bool = True
    key: TriggerKey
    world_x: float = 0.0
    world_y: float = 0.0
    sequential_index: int = 0


class TriggerEvent(BaseModel):
    """A fired trigger as seen by dispatch and visualization collaborators.

    Attributes:
        note: Independent copy of the dispatched note.
        layer_id: Owning layer.
        world_x: World position of the crossing.
        world_y: World position of the crossing.
        quantized: Whether the event was grid aligned.
        sequential_index: Global fire counter value.
        key: Crossing identity.
        time_seconds: Interpolated crossing time (grid time when quantized).
        crossing_factor: Fraction of the frame at which the crossing occurred.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    note: NoteParameters
    layer_id: str
    world_x: float
    world_y: float
    quantized: bool = False
    sequential_index: int
    key: TriggerKey
    time_seconds: float
    crossing_factor: float | None = None


__all__ = ["PendingTrigger", "TriggerEvent", "TriggerKey", "TriggerKind"]
