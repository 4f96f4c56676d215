"""Default note-parameter resolver.

Maps a crossing to frequency, duration, velocity and pan. Frequency is the
point's distance from the origin; duration and velocity follow a per-index
pattern so successive triggers form a rhythmic accent cycle.
"""

from __future__ import annotations

import logging
import math

from gyrotone.core.geometry.spec import ShapeSpec
from gyrotone.core.notes.frequency import note_name, quantize_to_equal_temperament
from gyrotone.core.notes.models import (
    NoteParameters,
    NoteSettings,
    ParameterMode,
    ParameterSettings,
    TriggerData,
)
from gyrotone.core.utils.math import lerp

logger = logging.getLogger(__name__)

# Linear congruential generator constants (Numerical Recipes)
_LCG_A = 1664525
_LCG_C = 1013904223
_LCG_M = 2**32


def seeded_random(seed: int) -> float:
    """Deterministic value in [0, 1) for ``seed``."""
    return ((_LCG_A * (seed + 1) + _LCG_C) % _LCG_M) / _LCG_M


def modulo_value(index: int, modulo: int, minimum: float, maximum: float) -> float:
    """Accent pattern [max, min, min, ...] repeating every ``modulo`` points.

    Index 0 is always the high value. ``minimum > maximum`` inverts the
    pattern.

    Example:
        >>> [modulo_value(i, 3, 0.1, 0.5) for i in range(4)]
        [0.5, 0.1, 0.1, 0.5]
    """
    if index == 0:
        return max(minimum, maximum)
    low, high = min(minimum, maximum), max(minimum, maximum)
    accent = index % modulo == 0
    if minimum > maximum:
        return low if accent else high
    return high if accent else low


def random_value(index: int, minimum: float, maximum: float) -> float:
    low, high = min(minimum, maximum), max(minimum, maximum)
    r = seeded_random(index)
    if minimum > maximum:
        return lerp(high, low, r)
    return lerp(low, high, r)


def interpolated_value(index: int, modulo: int, minimum: float, maximum: float) -> float:
    """Sine oscillation between the bounds over one modulo cycle."""
    if index == 0:
        return max(minimum, maximum)
    low, high = min(minimum, maximum), max(minimum, maximum)
    position = (index % modulo) / modulo
    oscillation = (math.sin(position * 2 * math.pi) + 1) / 2
    if minimum > maximum:
        return lerp(high, low, oscillation)
    return lerp(low, high, oscillation)


def parameter_value(index: int, settings: ParameterSettings) -> float:
    """Evaluate one parameter for ``index`` with phase shift applied.

    Args:
        index: Point index
        settings: Mode, range, modulo and phase

    Returns:
        Parameter value
    """
    if settings.phase > 0:
        index += math.floor(settings.phase * settings.modulo)

    if settings.mode == ParameterMode.RANDOM:
        return random_value(index, settings.minimum, settings.maximum)
    if settings.mode == ParameterMode.INTERPOLATION:
        return interpolated_value(index, settings.modulo, settings.minimum, settings.maximum)
    return modulo_value(index, settings.modulo, settings.minimum, settings.maximum)


class DefaultNoteResolver:
    """Resolve trigger data to ``NoteParameters``.

    Args:
        settings: Temperament and parameter pattern settings

    Example:
        >>> resolver = DefaultNoteResolver()
        >>> data = TriggerData(layer_id="a", x=0, y=220, world_x=0, world_y=220, vertex_index=0)
        >>> resolver.resolve(data).frequency
        220.0
    """

    def __init__(self, settings: NoteSettings | None = None) -> None:
        self.settings = settings or NoteSettings()

    def point_index(self, data: TriggerData, spec: ShapeSpec | None = None) -> int:
        """Index driving the duration and velocity patterns.

        The global sequential index when present; otherwise a position
        derived from copy and vertex index.
        """
        if data.sequential_index is not None:
            return data.sequential_index
        segments = spec.segment_count if spec is not None else 0
        if data.is_intersection:
            copies = spec.copies if spec is not None else 0
            return copies * segments + data.vertex_index
        return (data.copy_index or 0) * segments + data.vertex_index

    def resolve(self, data: TriggerData, spec: ShapeSpec | None = None) -> NoteParameters:
        """Compute note parameters for one trigger.

        Args:
            data: Crossing data from the trigger engine
            spec: Spec of the layer that produced it

        Returns:
            NoteParameters (``time`` left unset for the engine to fill)
        """
        frequency = math.hypot(data.x, data.y)
        name: str | None = None
        if self.settings.use_equal_temperament:
            reference = self.settings.reference_frequency
            frequency = quantize_to_equal_temperament(frequency, reference)
            name = note_name(frequency, reference)

        index = self.point_index(data, spec)
        return NoteParameters(
            frequency=frequency,
            duration=parameter_value(index, self.settings.duration),
            velocity=parameter_value(index, self.settings.velocity),
            pan=math.sin(data.angle % (2 * math.pi)),
            note_name=name,
            point_index=index,
            copy_index=data.copy_index,
            vertex_index=data.vertex_index,
            is_intersection=data.is_intersection,
            x=data.x,
            y=data.y,
        )


__all__ = [
    "DefaultNoteResolver",
    "interpolated_value",
    "modulo_value",
    "parameter_value",
    "random_value",
    "seeded_random",
]
