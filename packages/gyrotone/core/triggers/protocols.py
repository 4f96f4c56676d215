"""Collaborator protocols for the trigger engine."""

from __future__ import annotations

from typing import Protocol

from gyrotone.core.geometry.spec import ShapeSpec
from gyrotone.core.notes.models import NoteParameters, TriggerData
from gyrotone.core.triggers.models import PendingTrigger, TriggerEvent, TriggerKey


class NoteResolver(Protocol):
    """Turns crossing data into note parameters.

    Implementations must not mutate the spec or any geometry.
    """

    def resolve(self, data: TriggerData, spec: ShapeSpec | None = None) -> NoteParameters:
        """Resolve one trigger.

        Args:
            data: Crossing data
            spec: Spec of the layer that produced the crossing

        Returns:
            Note parameters
        """
        ...


class Dispatcher(Protocol):
    """Receives one independent note per fired trigger."""

    def __call__(self, note: NoteParameters) -> None: ...


class TriggerObserver(Protocol):
    """Optional sink for trigger lifecycle notifications."""

    def on_fire(self, event: TriggerEvent) -> None: ...

    def on_suppressed(self, key: TriggerKey) -> None: ...

    def on_scheduled(self, pending: PendingTrigger) -> None: ...

    def on_error(self, key: TriggerKey, error: Exception) -> None: ...


__all__ = ["Dispatcher", "NoteResolver", "TriggerObserver"]
