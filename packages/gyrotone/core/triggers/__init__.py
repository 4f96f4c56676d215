"""Axis-crossing trigger detection, quantized scheduling and dispatch."""

from gyrotone.core.triggers.crossing import Crossing, CrossingKind, check_axis_crossing
from gyrotone.core.triggers.engine import TriggerEngine
from gyrotone.core.triggers.models import PendingTrigger, TriggerEvent, TriggerKey, TriggerKind
from gyrotone.core.triggers.protocols import Dispatcher, NoteResolver, TriggerObserver
from gyrotone.core.triggers.queue import PendingQueue
from gyrotone.core.triggers.sequence import SequentialIndex

__all__ = [
    "Crossing",
    "CrossingKind",
    "Dispatcher",
    "NoteResolver",
    "PendingQueue",
    "PendingTrigger",
    "SequentialIndex",
    "TriggerEngine",
    "TriggerEvent",
    "TriggerKey",
    "TriggerKind",
    "TriggerObserver",
    "check_axis_crossing",
]
