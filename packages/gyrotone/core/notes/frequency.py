"""Twelve-tone equal temperament helpers."""

from __future__ import annotations

import math

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")
# A4 sits 9 semitones above C4, and C4 is 48 semitones above C0
_A4_FROM_C0 = 9 + 4 * 12


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def semitones_from_reference(frequency: float, reference: float = 440.0) -> int:
    """Nearest whole number of semitones between ``frequency`` and ``reference``."""
    return _round_half_up(12 * math.log2(frequency / reference))


def quantize_to_equal_temperament(frequency: float, reference: float = 440.0) -> float:
    """Snap ``frequency`` to the nearest 12-TET pitch.

    Non-positive or non-finite input is returned unchanged.

    Example:
        >>> round(quantize_to_equal_temperament(450.0), 3)
        440.0
    """
    if frequency <= 0 or not math.isfinite(frequency):
        return frequency
    return reference * 2 ** (semitones_from_reference(frequency, reference) / 12)


def note_name(frequency: float, reference: float = 440.0) -> str:
    """Name of the nearest 12-TET note with octave, e.g. "A4" or "C#5".

    Returns "N/A" for non-positive or non-finite input.

    Example:
        >>> note_name(440.0), note_name(261.63)
        ('A4', 'C4')
    """
    if frequency <= 0 or not math.isfinite(frequency):
        return "N/A"
    from_c0 = semitones_from_reference(frequency, reference) + _A4_FROM_C0
    return f"{NOTE_NAMES[from_c0 % 12]}{from_c0 // 12}"


__all__ = [
    "NOTE_NAMES",
    "note_name",
    "quantize_to_equal_temperament",
    "semitones_from_reference",
]
