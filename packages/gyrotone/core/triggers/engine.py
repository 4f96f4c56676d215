"""Axis-crossing trigger engine.

Every frame the host passes the previous and current group rotation of a
layer. The engine re-derives each vertex's world position for both angles,
fires the ones that crossed the reference axis, and guarantees each
``TriggerKey`` fires at most once per reset epoch.

Per key the lifecycle is Armed -> Fired, or Armed -> Pending -> Fired when
quantization defers the trigger to a grid point.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from gyrotone.core.config.models import TriggerConfig
from gyrotone.core.geometry.models import GeometryBuffer
from gyrotone.core.geometry.spec import ShapeSpec
from gyrotone.core.geometry.transforms import CopyTransform
from gyrotone.core.notes.models import NoteParameters, TriggerData
from gyrotone.core.notes.resolver import DefaultNoteResolver
from gyrotone.core.timing.clock import DEFAULT_BPM
from gyrotone.core.timing.quantize import decide
from gyrotone.core.triggers.crossing import Crossing, check_axis_crossing
from gyrotone.core.triggers.models import PendingTrigger, TriggerEvent, TriggerKey
from gyrotone.core.triggers.protocols import Dispatcher, NoteResolver, TriggerObserver
from gyrotone.core.triggers.queue import PendingQueue
from gyrotone.core.triggers.sequence import SequentialIndex
from gyrotone.core.utils.logging import get_trigger_logger
from gyrotone.core.utils.math import rotate

logger = logging.getLogger(__name__)
trigger_logger = get_trigger_logger()


class _Frame:
    """Scratch state for one ``detect`` call."""

    __slots__ = ("events", "fired_points", "layer_id", "now", "dt", "spec", "angle")

    def __init__(
        self, layer_id: str, now: float, dt: float, angle: float, spec: ShapeSpec | None
    ) -> None:
        self.layer_id = layer_id
        self.now = now
        self.dt = dt
        self.angle = angle
        self.spec = spec
        self.events: list[TriggerEvent] = []
        self.fired_points: list[tuple[float, float]] = []


class TriggerEngine:
    """Detect, suppress, quantize and dispatch axis-crossing triggers.

    Args:
        config: Detection and quantization settings
        resolver: Note-parameter resolver (defaults to ``DefaultNoteResolver``)
        dispatcher: Callable receiving one independent note per fired trigger
        sequence: Shared global sequential index
        observer: Optional lifecycle observer
        bpm: Tempo used for quantization

    Example:
        >>> engine = TriggerEngine()
        >>> engine.reset()
    """

    def __init__(
        self,
        config: TriggerConfig | None = None,
        resolver: NoteResolver | None = None,
        dispatcher: Dispatcher | None = None,
        sequence: SequentialIndex | None = None,
        observer: TriggerObserver | None = None,
        bpm: float = DEFAULT_BPM,
    ) -> None:
        self.config = config or TriggerConfig()
        self.resolver: NoteResolver = resolver or DefaultNoteResolver()
        self.dispatcher = dispatcher
        self.sequence = sequence or SequentialIndex()
        self.observer = observer
        self.bpm = bpm
        self._seen: dict[str, set[TriggerKey]] = {}
        self._pending = PendingQueue(self.config.flush_tolerance)

    @property
    def pending(self) -> list[PendingTrigger]:
        """Pending triggers in execute-time order."""
        return self._pending.snapshot()

    def has_fired(self, key: TriggerKey) -> bool:
        return key in self._seen.get(key.layer_id, ())

    def seen_count(self, layer_id: str) -> int:
        return len(self._seen.get(layer_id, ()))

    def reset(self) -> None:
        """Clear every layer's seen-set and the pending queue."""
        self._seen.clear()
        self._pending.clear()
        logger.debug("Trigger engine reset")

    def reset_layer(self, layer_id: str) -> None:
        """Clear one layer's seen-set and drop its pending triggers."""
        self._seen.pop(layer_id, None)
        self._pending.remove_layer(layer_id)
        logger.debug(f"Trigger epoch reset for layer '{layer_id}'")

    def rearm_layer(self, layer_id: str) -> None:
        """Clear one layer's seen-set, leaving its pending triggers queued."""
        self._seen.pop(layer_id, None)

    def detect(
        self,
        layer_id: str,
        buffer: GeometryBuffer,
        transforms: Sequence[CopyTransform],
        previous_angle: float,
        current_angle: float,
        now: float,
        spec: ShapeSpec | None = None,
        dt: float = 0.0,
    ) -> list[TriggerEvent]:
        """Scan one layer for crossings between two group rotations.

        Base vertices are scanned for every copy; intersection vertices are
        already in the layer frame and only take the group rotation.

        Args:
            layer_id: Layer being scanned
            buffer: Layer geometry
            transforms: Copy transforms (empty means not materialized)
            previous_angle: Group rotation at the previous frame, radians
            current_angle: Group rotation now, radians
            now: Current time in seconds
            spec: Layer spec passed through to the resolver
            dt: Frame duration in seconds; crossings are back-dated by the part
                of the frame left after the crossing point

        Returns:
            Events fired immediately during this call
        """
        if not transforms:
            return []

        seen = self._seen.setdefault(layer_id, set())
        frame = _Frame(layer_id, now, max(0.0, dt), current_angle, spec)

        for transform in transforms:
            scale = transform.scale
            rotation = transform.rotation_radians
            for vi, vertex in enumerate(buffer.base_vertices):
                lx, ly = rotate(vertex.x * scale, vertex.y * scale, rotation)
                key = TriggerKey.vertex(layer_id, vi, transform.copy_index)
                self._evaluate(
                    frame, seen, key, lx, ly, previous_angle, current_angle, transform.copy_index
                )

        if self.config.fire_intersections:
            for ii, vertex in enumerate(buffer.intersection_vertices):
                key = TriggerKey.intersection(layer_id, ii)
                self._evaluate(
                    frame, seen, key, vertex.x, vertex.y, previous_angle, current_angle, None
                )

        return frame.events

    def flush(self, now: float) -> list[TriggerEvent]:
        """Fire every pending trigger due by ``now`` (within tolerance), in time order.

        Args:
            now: Current time in seconds

        Returns:
            Events fired
        """
        events: list[TriggerEvent] = []
        for pending in self._pending.pop_due(now):
            event = TriggerEvent(
                note=pending.note,
                layer_id=pending.layer_id,
                world_x=pending.world_x,
                world_y=pending.world_y,
                quantized=pending.quantized,
                sequential_index=pending.sequential_index,
                key=pending.key,
                time_seconds=pending.execute_time,
            )
            try:
                events.append(self._fire(event))
            except Exception as e:
                logger.exception(f"Dispatch failed for pending trigger {pending.key}")
                self._notify_error(pending.key, e)
        return events

    def _evaluate(
        self,
        frame: _Frame,
        seen: set[TriggerKey],
        key: TriggerKey,
        local_x: float,
        local_y: float,
        previous_angle: float,
        current_angle: float,
        copy_index: int | None,
    ) -> None:
        if key in seen:
            return

        prev_x, prev_y = rotate(local_x, local_y, previous_angle)
        curr_x, curr_y = rotate(local_x, local_y, current_angle)
        crossing = check_axis_crossing(
            prev_x, prev_y, curr_x, curr_y, self.config.boundary_epsilon
        )
        if crossing is None:
            return

        try:
            if self._overlaps(curr_x, curr_y, frame.fired_points):
                trigger_logger.debug(f"Suppressed overlapping trigger {key}")
                if self.observer is not None:
                    self.observer.on_suppressed(key)
                return

            frame.fired_points.append((curr_x, curr_y))
            data = TriggerData(
                layer_id=frame.layer_id,
                x=local_x,
                y=local_y,
                world_x=curr_x,
                world_y=curr_y,
                angle=frame.angle,
                vertex_index=key.index,
                copy_index=copy_index,
                is_intersection=copy_index is None,
                sequential_index=self.sequence.next(),
            )
            note = self.resolver.resolve(data, frame.spec)
            self._route(frame, key, data, note, crossing)
        except Exception as e:
            logger.exception(f"Trigger {key} failed")
            self._notify_error(key, e)
        finally:
            seen.add(key)

    def _overlaps(self, x: float, y: float, points: list[tuple[float, float]]) -> bool:
        threshold = self.config.overlap_threshold
        return any(math.hypot(x - px, y - py) < threshold for px, py in points)

    def _route(
        self,
        frame: _Frame,
        key: TriggerKey,
        data: TriggerData,
        note: NoteParameters,
        crossing: Crossing,
    ) -> None:
        sequential_index = data.sequential_index or 0
        crossing_time = frame.now - (1.0 - crossing.factor) * frame.dt

        if not self.config.quantize:
            event = TriggerEvent(
                note=note,
                layer_id=frame.layer_id,
                world_x=data.world_x,
                world_y=data.world_y,
                quantized=False,
                sequential_index=sequential_index,
                key=key,
                time_seconds=crossing_time,
                crossing_factor=crossing.factor,
            )
            frame.events.append(self._fire(event))
            return

        decision = decide(crossing_time, self.bpm, self.config.grid, self.config.tolerance_ceiling)
        if decision.fire_now:
            event = TriggerEvent(
                note=note,
                layer_id=frame.layer_id,
                world_x=data.world_x,
                world_y=data.world_y,
                quantized=True,
                sequential_index=sequential_index,
                key=key,
                time_seconds=decision.execute_time,
                crossing_factor=crossing.factor,
            )
            frame.events.append(self._fire(event))
            return

        pending = PendingTrigger(
            note=note.model_copy(deep=True),
            execute_time=decision.execute_time,
            layer_id=frame.layer_id,
            quantized=True,
            key=key,
            world_x=data.world_x,
            world_y=data.world_y,
            sequential_index=sequential_index,
        )
        self._pending.push(pending)
        trigger_logger.debug(f"Scheduled {key} for {decision.execute_time:.4f}s")
        if self.observer is not None:
            self.observer.on_scheduled(pending)

    def _fire(self, event: TriggerEvent) -> TriggerEvent:
        """Stamp the note time, dispatch an independent copy and notify."""
        note = event.note.model_copy(update={"time": event.time_seconds}, deep=True)
        event = event.model_copy(update={"note": note})
        if self.dispatcher is not None:
            self.dispatcher(note.model_copy(deep=True))
        trigger_logger.debug(
            f"Fired {event.key} #{event.sequential_index} at {event.time_seconds:.4f}s "
            f"freq={note.frequency:.2f} quantized={event.quantized}"
        )
        if self.observer is not None:
            self.observer.on_fire(event)
        return event

    def _notify_error(self, key: TriggerKey, error: Exception) -> None:
        if self.observer is None:
            return
        try:
            self.observer.on_error(key, error)
        except Exception:
            logger.exception(f"Observer on_error failed for {key}")


__all__ = ["TriggerEngine"]
