"""Rotation session coordinator.

The session owns a set of ``ShapeLayer``s and a ``TriggerEngine`` and is
driven by the host through ``tick(dt, now)``. Each tick runs, in order:

1. rebuild every dirty layer (a successful rebuild resets that layer's
   trigger epoch),
2. trigger detection for every materialized layer,
3. flush of pending quantized triggers.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from gyrotone.core.config.loader import load_app_config
from gyrotone.core.config.models import AppConfig
from gyrotone.core.geometry.intersections import IntersectionSolver
from gyrotone.core.geometry.layer import RebuildResult, ShapeLayer
from gyrotone.core.geometry.spec import ShapeSpec
from gyrotone.core.notes.resolver import DefaultNoteResolver
from gyrotone.core.timing.clock import DEFAULT_BPM, measure_duration
from gyrotone.core.triggers.engine import TriggerEngine
from gyrotone.core.triggers.models import TriggerEvent
from gyrotone.core.triggers.protocols import Dispatcher, NoteResolver, TriggerObserver
from gyrotone.core.triggers.sequence import SequentialIndex
from gyrotone.core.utils.logging import get_logger

logger = logging.getLogger(__name__)


class FrameReport(BaseModel):
    """What happened during one ``tick``.

    Attributes:
        frame: Frame counter (1 for the first tick).
        now: Time passed to the tick, seconds.
        previous_angle_degrees: Group rotation before the tick.
        current_angle_degrees: Group rotation after the tick.
        rebuilds: Results for layers that attempted a rebuild.
        fired: Events fired immediately by detection.
        flushed: Pending events released this tick.
        pending: Triggers still waiting after the flush.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    frame: int
    now: float
    previous_angle_degrees: float
    current_angle_degrees: float
    rebuilds: list[RebuildResult] = Field(default_factory=list)
    fired: list[TriggerEvent] = Field(default_factory=list)
    flushed: list[TriggerEvent] = Field(default_factory=list)
    pending: int = 0

    @property
    def events(self) -> list[TriggerEvent]:
        """All events dispatched this tick, detection first."""
        return [*self.fired, *self.flushed]

    @property
    def rebuild_failures(self) -> list[RebuildResult]:
        return [r for r in self.rebuilds if not r.success]


class RotationSession:
    """Frame-driven coordinator for rotating layers.

    The group angle advances by ``dt * degrees_per_second``; one full turn
    takes one 4/4 measure at ``bpm``, scaled by ``rotation_multiplier``.

    With ``rearm_each_revolution`` every layer's seen-set is cleared each
    time the group completes a full turn, so each vertex fires once per
    revolution. Pending triggers are not touched by re-arming.

    Args:
        engine: Trigger engine
        bpm: Tempo
        rotation_multiplier: Speed factor relative to one turn per measure
        layers: Initial layers
        rearm_each_revolution: Clear seen-sets on every completed turn

    Example:
        >>> session = RotationSession(TriggerEngine(), bpm=120)
        >>> session.degrees_per_second
        180.0
    """

    def __init__(
        self,
        engine: TriggerEngine,
        bpm: float = DEFAULT_BPM,
        rotation_multiplier: float = 1.0,
        layers: list[ShapeLayer] | None = None,
        rearm_each_revolution: bool = True,
    ) -> None:
        self.engine = engine
        self.rearm_each_revolution = rearm_each_revolution
        self.bpm = bpm
        self.rotation_multiplier = rotation_multiplier
        self._layers: dict[str, ShapeLayer] = {}
        self._angle_degrees = 0.0
        self._frame = 0
        for layer in layers or []:
            self.add_layer(layer)

    @classmethod
    def from_config(
        cls,
        config: AppConfig | Path | str | None = None,
        *,
        resolver: NoteResolver | None = None,
        dispatcher: Dispatcher | None = None,
        observer: TriggerObserver | None = None,
        sequence: SequentialIndex | None = None,
    ) -> RotationSession:
        """Build a session, engine and layers from configuration.

        Args:
            config: AppConfig instance, path to a config file, or None for defaults
            resolver: Note resolver (defaults to one built from ``config.notes``)
            dispatcher: Note dispatch callable
            observer: Trigger lifecycle observer
            sequence: Shared sequential index

        Returns:
            Configured RotationSession

        Raises:
            TypeError: If ``config`` has the wrong type
            FileNotFoundError: If a config path does not exist
        """
        app_config = cls._resolve_config(config)
        engine = TriggerEngine(
            config=app_config.triggers,
            resolver=resolver or DefaultNoteResolver(app_config.notes),
            dispatcher=dispatcher,
            sequence=sequence,
            observer=observer,
            bpm=app_config.bpm,
        )
        layers = [
            ShapeLayer(
                lc.layer_id,
                lc.shape,
                solver=IntersectionSolver(app_config.geometry.merge_threshold),
            )
            for lc in app_config.layers
        ]
        return cls(
            engine,
            bpm=app_config.bpm,
            rotation_multiplier=app_config.rotation_multiplier,
            layers=layers,
            rearm_each_revolution=app_config.rearm_each_revolution,
        )

    @staticmethod
    def _resolve_config(value: Any) -> AppConfig:
        if value is None:
            return AppConfig()
        if isinstance(value, AppConfig):
            return value
        if isinstance(value, (Path, str)):
            return load_app_config(value)
        raise TypeError(f"Expected AppConfig, Path, str, or None; got {type(value).__name__}")

    @property
    def layers(self) -> list[ShapeLayer]:
        return list(self._layers.values())

    @property
    def angle_degrees(self) -> float:
        return self._angle_degrees

    @property
    def frame(self) -> int:
        return self._frame

    @property
    def degrees_per_second(self) -> float:
        return 360.0 / measure_duration(self.bpm) * self.rotation_multiplier

    def get_layer(self, layer_id: str) -> ShapeLayer:
        """Look up a layer.

        Raises:
            KeyError: If no layer has ``layer_id``
        """
        try:
            return self._layers[layer_id]
        except KeyError:
            raise KeyError(f"Layer '{layer_id}' not found") from None

    def add_layer(self, layer: ShapeLayer) -> None:
        if layer.layer_id in self._layers:
            raise ValueError(f"Layer '{layer.layer_id}' already exists")
        self._layers[layer.layer_id] = layer

    def remove_layer(self, layer_id: str) -> None:
        """Drop a layer and cancel its seen-set and pending triggers."""
        self._layers.pop(layer_id, None)
        self.engine.reset_layer(layer_id)

    def update_spec(self, layer_id: str, spec: ShapeSpec) -> bool:
        """Replace a layer's spec; the rebuild happens on the next tick.

        Returns:
            True if the change requires a rebuild
        """
        return self.get_layer(layer_id).update_spec(spec)

    def set_angle(self, degrees: float) -> None:
        """Jump the group rotation without scanning the skipped arc."""
        self._angle_degrees = degrees

    def reset(self) -> None:
        """Re-arm every trigger and drop all pending triggers."""
        self.engine.reset()

    def tick(self, dt: float, now: float) -> FrameReport:
        """Advance one frame.

        Args:
            dt: Seconds since the previous tick
            now: Current time in seconds

        Returns:
            FrameReport for this frame
        """
        self._frame += 1
        previous = self._angle_degrees
        current = previous + dt * self.degrees_per_second
        self._angle_degrees = current

        turn = math.floor(current / 360.0)
        if self.rearm_each_revolution and turn != math.floor(previous / 360.0):
            for layer_id in self._layers:
                self.engine.rearm_layer(layer_id)
            logger.debug(f"Revolution {turn} started, layers re-armed")

        rebuilds: list[RebuildResult] = []
        for layer in self._layers.values():
            if not layer.needs_rebuild:
                continue
            result = layer.rebuild_if_dirty()
            rebuilds.append(result)
            if result.rebuilt:
                self.engine.reset_layer(layer.layer_id)

        fired: list[TriggerEvent] = []
        prev_rad = math.radians(previous)
        curr_rad = math.radians(current)
        for layer in self._layers.values():
            if not layer.materialized:
                continue
            events = self.engine.detect(
                layer.layer_id,
                layer.buffer,
                layer.transforms,
                prev_rad,
                curr_rad,
                now,
                spec=layer.built_spec,
                dt=dt,
            )
            if events:
                get_logger(__name__, layer_id=layer.layer_id).debug(
                    f"Frame {self._frame}: {len(events)} trigger(s)"
                )
            fired.extend(events)

        flushed = self.engine.flush(now)

        return FrameReport(
            frame=self._frame,
            now=now,
            previous_angle_degrees=previous,
            current_angle_degrees=current,
            rebuilds=rebuilds,
            fired=fired,
            flushed=flushed,
            pending=len(self.engine.pending),
        )


__all__ = ["FrameReport", "RotationSession"]
