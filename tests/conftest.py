"""Shared pytest fixtures for gyrotone tests."""

from __future__ import annotations

import pytest

from gyrotone.core.config.models import TriggerConfig
from gyrotone.core.geometry.models import GeometryBuffer, GeometryMetadata, Point
from gyrotone.core.geometry.spec import ShapeSpec
from gyrotone.core.geometry.transforms import CopyTransform
from gyrotone.core.notes.models import NoteParameters
from gyrotone.core.triggers.engine import TriggerEngine
from gyrotone.core.triggers.models import PendingTrigger, TriggerEvent, TriggerKey
from gyrotone.core.triggers.sequence import SequentialIndex

# ============================================================================
# Geometry Fixtures
# ============================================================================


@pytest.fixture
def square_spec() -> ShapeSpec:
    """Regular square, radius 100, one copy."""
    return ShapeSpec(radius=100, segment_count=4)


@pytest.fixture
def pentagram_spec() -> ShapeSpec:
    """{5/2} star with cuts enabled."""
    return ShapeSpec(radius=100, segment_count=5, shape_family="star", star_skip=2, use_cuts=True)


@pytest.fixture
def single_vertex_buffer() -> GeometryBuffer:
    """Buffer holding one base vertex at (10, 0)."""
    return GeometryBuffer(
        vertices=(Point(x=10.0, y=0.0),),
        metadata=GeometryMetadata(base_vertex_count=1),
    )


@pytest.fixture
def identity_transforms() -> list[CopyTransform]:
    """One unscaled, unrotated copy."""
    return [CopyTransform(copy_index=0, scale=1.0, rotation_degrees=0.0)]


# ============================================================================
# Trigger Fixtures
# ============================================================================


class RecordingDispatcher:
    """Dispatcher that keeps every note it receives."""

    def __init__(self) -> None:
        self.notes: list[NoteParameters] = []

    def __call__(self, note: NoteParameters) -> None:
        self.notes.append(note)


class RecordingObserver:
    """Observer that records every callback."""

    def __init__(self) -> None:
        self.fired: list[TriggerEvent] = []
        self.suppressed: list[TriggerKey] = []
        self.scheduled: list[PendingTrigger] = []
        self.errors: list[tuple[TriggerKey, Exception]] = []

    def on_fire(self, event: TriggerEvent) -> None:
        self.fired.append(event)

    def on_suppressed(self, key: TriggerKey) -> None:
        self.suppressed.append(key)

    def on_scheduled(self, pending: PendingTrigger) -> None:
        self.scheduled.append(pending)

    def on_error(self, key: TriggerKey, error: Exception) -> None:
        self.errors.append((key, error))


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def engine(dispatcher: RecordingDispatcher, observer: RecordingObserver) -> TriggerEngine:
    """Engine with quantization off, recording dispatch and observer."""
    return TriggerEngine(
        config=TriggerConfig(),
        dispatcher=dispatcher,
        observer=observer,
        sequence=SequentialIndex(),
    )


@pytest.fixture
def quantized_engine(dispatcher: RecordingDispatcher, observer: RecordingObserver) -> TriggerEngine:
    """Engine quantizing to quarter notes at 120 BPM."""
    return TriggerEngine(
        config=TriggerConfig(quantize=True, grid="1/4"),
        dispatcher=dispatcher,
        observer=observer,
        sequence=SequentialIndex(),
        bpm=120.0,
    )
