"""Note parameter resolution for triggers."""

from gyrotone.core.notes.frequency import note_name, quantize_to_equal_temperament
from gyrotone.core.notes.models import (
    NoteParameters,
    NoteSettings,
    ParameterMode,
    ParameterSettings,
    TriggerData,
)
from gyrotone.core.notes.resolver import DefaultNoteResolver, parameter_value

__all__ = [
    "DefaultNoteResolver",
    "NoteParameters",
    "NoteSettings",
    "ParameterMode",
    "ParameterSettings",
    "TriggerData",
    "note_name",
    "parameter_value",
    "quantize_to_equal_temperament",
]
