"""Tests for TriggerEngine detection, suppression, quantization and dispatch."""

import math

import pytest

from gyrotone.core.config.models import TriggerConfig
from gyrotone.core.geometry.models import GeometryBuffer, GeometryMetadata, Point
from gyrotone.core.geometry.spec import ShapeSpec
from gyrotone.core.geometry.transforms import CopyTransform
from gyrotone.core.notes.resolver import DefaultNoteResolver
from gyrotone.core.triggers.engine import TriggerEngine
from gyrotone.core.triggers.models import TriggerKey, TriggerKind
from gyrotone.core.triggers.sequence import SequentialIndex

PREV = math.radians(10)
CURR = math.radians(100)


def _buffer(*points, intersections=()):
    vertices = tuple(Point(x=x, y=y) for x, y in (*points, *intersections))
    return GeometryBuffer(
        vertices=vertices,
        metadata=GeometryMetadata(
            base_vertex_count=len(points), intersection_vertex_count=len(intersections)
        ),
    )


def _copy(index=0, scale=1.0, rotation=0.0):
    return CopyTransform(copy_index=index, scale=scale, rotation_degrees=rotation)


class FailingResolver(DefaultNoteResolver):
    """Raises for one vertex index, resolves the rest normally."""

    def __init__(self, fail_index: int) -> None:
        super().__init__()
        self.fail_index = fail_index

    def resolve(self, data, spec=None):
        if data.vertex_index == self.fail_index:
            raise RuntimeError("resolver exploded")
        return super().resolve(data, spec)


# ============================================================================
# Detection and exactly-once firing
# ============================================================================


class TestDetection:
    def test_vertex_crossing_fires_once(
        self, engine, dispatcher, single_vertex_buffer, identity_transforms
    ):
        """Vertex (10, 0) rotated from 10 to 100 degrees crosses the axis."""
        events = engine.detect("a", single_vertex_buffer, identity_transforms, PREV, CURR, 1.25)

        assert len(events) == 1
        event = events[0]
        assert event.key == TriggerKey.vertex("a", 0, 0)
        assert event.time_seconds == 1.25
        assert not event.quantized
        assert event.world_x < 0 < event.world_y
        assert event.note.frequency == pytest.approx(10.0)
        assert event.note.time == 1.25
        assert len(dispatcher.notes) == 1

        again = engine.detect("a", single_vertex_buffer, identity_transforms, PREV, CURR, 1.3)

        assert again == []
        assert len(dispatcher.notes) == 1
        assert engine.has_fired(event.key)
        assert engine.seen_count("a") == 1

    def test_no_crossing(self, engine, single_vertex_buffer, identity_transforms):
        events = engine.detect(
            "a",
            single_vertex_buffer,
            identity_transforms,
            math.radians(10),
            math.radians(40),
            0.0,
        )

        assert events == []
        assert engine.seen_count("a") == 0

    def test_no_transforms_means_nothing(self, engine, single_vertex_buffer):
        assert engine.detect("a", single_vertex_buffer, [], PREV, CURR, 0.0) == []

    def test_copy_transform_applied(self, engine):
        """Copy scale and rotation are applied before the group rotation."""
        buffer = _buffer((10.0, 0.0))
        rotated = [_copy(0, scale=2.0, rotation=40.0)]

        events = engine.detect("a", buffer, rotated, PREV, CURR, 0.0)

        assert len(events) == 1
        assert events[0].note.frequency == pytest.approx(20.0)

    def test_layers_are_isolated(self, engine, single_vertex_buffer, identity_transforms):
        a = engine.detect("a", single_vertex_buffer, identity_transforms, PREV, CURR, 0.0)
        b = engine.detect("b", single_vertex_buffer, identity_transforms, PREV, CURR, 0.0)

        assert len(a) == 1
        assert len(b) == 1
        assert b[0].key.layer_id == "b"

    def test_sequential_indices(self, engine):
        buffer = _buffer((10.0, 0.0), (50.0, 0.0))

        events = engine.detect("a", buffer, [_copy()], PREV, CURR, 0.0)

        assert [e.sequential_index for e in events] == [0, 1]
        assert [e.note.point_index for e in events] == [0, 1]
        assert engine.sequence.current == 2

    def test_shared_sequence(self, dispatcher):
        sequence = SequentialIndex(start=7)
        engine = TriggerEngine(dispatcher=dispatcher, sequence=sequence)

        events = engine.detect("a", _buffer((10.0, 0.0)), [_copy()], PREV, CURR, 0.0)

        assert events[0].sequential_index == 7
        assert sequence.current == 8

    def test_boundary_case_fires_exactly_once(self, dispatcher):
        engine = TriggerEngine(config=TriggerConfig(boundary_epsilon=1.0), dispatcher=dispatcher)
        buffer = _buffer((10.0, 0.0))
        near_axis = math.radians(89.95)

        first = engine.detect("a", buffer, [_copy()], math.radians(80), near_axis, 0.0)
        second = engine.detect("a", buffer, [_copy()], near_axis, math.radians(95), 0.1)

        assert len(first) == 1
        assert first[0].crossing_factor == 1.0
        assert second == []
        assert len(dispatcher.notes) == 1


# ============================================================================
# Intersection vertices
# ============================================================================


class TestIntersectionVertices:
    def test_intersection_key_has_no_copy(self, engine):
        buffer = _buffer(intersections=[(10.0, 0.0)])

        (event,) = engine.detect("a", buffer, [_copy(scale=3.0)], PREV, CURR, 0.0)

        assert event.key.kind == TriggerKind.INTERSECTION
        assert event.key.copy_index is None
        assert event.note.is_intersection
        # Intersections are already in the layer frame; copy scale is not applied
        assert event.note.frequency == pytest.approx(10.0)

    def test_can_be_disabled(self, dispatcher):
        engine = TriggerEngine(
            config=TriggerConfig(fire_intersections=False), dispatcher=dispatcher
        )
        buffer = _buffer(intersections=[(10.0, 0.0)])

        assert engine.detect("a", buffer, [_copy()], PREV, CURR, 0.0) == []


# ============================================================================
# Overlap suppression
# ============================================================================


class TestOverlapSuppression:
    def test_coincident_copies_fire_once(self, engine, observer, single_vertex_buffer):
        copies = [_copy(0), _copy(1)]

        events = engine.detect("a", single_vertex_buffer, copies, PREV, CURR, 0.0)

        assert len(events) == 1
        suppressed = TriggerKey.vertex("a", 0, 1)
        assert observer.suppressed == [suppressed]
        assert engine.has_fired(suppressed)

    def test_distant_points_both_fire(self, engine, single_vertex_buffer):
        copies = [_copy(0), _copy(1, scale=4.0)]

        events = engine.detect("a", single_vertex_buffer, copies, PREV, CURR, 0.0)

        assert len(events) == 2

    def test_threshold_is_configurable(self, dispatcher, single_vertex_buffer):
        engine = TriggerEngine(config=TriggerConfig(overlap_threshold=0.0), dispatcher=dispatcher)

        events = engine.detect(
            "a", single_vertex_buffer, [_copy(0), _copy(1)], PREV, CURR, 0.0
        )

        assert len(events) == 2


# ============================================================================
# Reset epochs
# ============================================================================


class TestReset:
    @staticmethod
    def _sweep(engine, layer_id, buffer):
        return engine.detect(layer_id, buffer, [_copy()], PREV, CURR, 0.0)

    def test_reset_rearms_everything(self, engine, single_vertex_buffer):
        self._sweep(engine, "a", single_vertex_buffer)
        self._sweep(engine, "b", single_vertex_buffer)

        engine.reset()

        assert engine.seen_count("a") == 0
        assert len(self._sweep(engine, "a", single_vertex_buffer)) == 1
        assert len(self._sweep(engine, "b", single_vertex_buffer)) == 1

    def test_reset_layer_only_touches_that_layer(self, engine, single_vertex_buffer):
        self._sweep(engine, "a", single_vertex_buffer)
        self._sweep(engine, "b", single_vertex_buffer)

        engine.reset_layer("a")

        assert len(self._sweep(engine, "a", single_vertex_buffer)) == 1
        assert self._sweep(engine, "b", single_vertex_buffer) == []


# ============================================================================
# Failure isolation
# ============================================================================


class TestFailureIsolation:
    def test_resolver_failure_does_not_stop_other_triggers(self, dispatcher, observer):
        engine = TriggerEngine(
            resolver=FailingResolver(fail_index=0), dispatcher=dispatcher, observer=observer
        )
        buffer = _buffer((10.0, 0.0), (50.0, 0.0))

        events = engine.detect("a", buffer, [_copy()], PREV, CURR, 0.0)

        assert [e.key.index for e in events] == [1]
        assert len(observer.errors) == 1
        key, error = observer.errors[0]
        assert key == TriggerKey.vertex("a", 0, 0)
        assert isinstance(error, RuntimeError)
        # The failed key is consumed for this epoch
        assert engine.has_fired(key)
        assert engine.detect("a", buffer, [_copy()], PREV, CURR, 0.1) == []

    def test_dispatch_failure_is_isolated(self, observer):
        calls = []

        def flaky_dispatch(note):
            calls.append(note)
            if len(calls) == 1:
                raise ConnectionError("synth offline")

        engine = TriggerEngine(dispatcher=flaky_dispatch, observer=observer)
        buffer = _buffer((10.0, 0.0), (50.0, 0.0))

        events = engine.detect("a", buffer, [_copy()], PREV, CURR, 0.0)

        assert len(calls) == 2
        assert [e.key.index for e in events] == [1]
        assert isinstance(observer.errors[0][1], ConnectionError)

    def test_failing_observer_error_hook_is_contained(self):
        class BadObserver:
            def on_fire(self, event):
                pass

            def on_suppressed(self, key):
                pass

            def on_scheduled(self, pending):
                pass

            def on_error(self, key, error):
                raise ValueError("observer broke")

        engine = TriggerEngine(resolver=FailingResolver(fail_index=0), observer=BadObserver())

        assert engine.detect("a", _buffer((10.0, 0.0)), [_copy()], PREV, CURR, 0.0) == []


# ============================================================================
# Dispatch payload
# ============================================================================


class TestDispatchPayload:
    def test_dispatcher_receives_independent_copy(
        self, engine, dispatcher, observer, single_vertex_buffer, identity_transforms
    ):
        (event,) = engine.detect("a", single_vertex_buffer, identity_transforms, PREV, CURR, 2.0)

        dispatched = dispatcher.notes[0]
        assert dispatched == event.note
        assert dispatched is not event.note
        assert observer.fired == [event]

    def test_note_carries_source(self, engine):
        buffer = _buffer((10.0, 0.0))

        (event,) = engine.detect(
            "a", buffer, [_copy()], PREV, CURR, 0.0, spec=ShapeSpec(segment_count=6)
        )

        assert event.note.copy_index == 0
        assert event.note.vertex_index == 0
        assert event.note.pan == pytest.approx(math.sin(CURR))


# ============================================================================
# Sub-frame timing
# ============================================================================


class TestSubframeTiming:
    def test_event_is_back_dated_to_crossing(
        self, engine, dispatcher, single_vertex_buffer, identity_transforms
    ):
        """x goes 9.85 -> -1.74, so the crossing sits 85% into the frame."""
        (event,) = engine.detect(
            "a", single_vertex_buffer, identity_transforms, PREV, CURR, 1.0, dt=0.1
        )

        assert event.crossing_factor == pytest.approx(0.8501, abs=1e-4)
        assert event.time_seconds == pytest.approx(1.0 - (1 - event.crossing_factor) * 0.1)
        assert event.time_seconds == pytest.approx(0.98501, abs=1e-5)
        assert dispatcher.notes[0].time == event.time_seconds

    def test_early_crossing_in_long_frame(self, engine, single_vertex_buffer):
        (event,) = engine.detect(
            "a",
            single_vertex_buffer,
            [_copy()],
            math.radians(89),
            math.radians(135),
            1.0,
            dt=0.25,
        )

        assert event.crossing_factor == pytest.approx(0.0241, abs=1e-4)
        assert event.time_seconds == pytest.approx(0.75602, abs=1e-4)

    def test_without_frame_duration_time_is_now(
        self, engine, single_vertex_buffer, identity_transforms
    ):
        (event,) = engine.detect("a", single_vertex_buffer, identity_transforms, PREV, CURR, 1.0)

        assert event.time_seconds == 1.0

    def test_quantization_uses_crossing_time(
        self, quantized_engine, single_vertex_buffer, identity_transforms
    ):
        """At 0.55 s the trigger would wait for 1.0 s; back-dated to 0.52 s it snaps to 0.5 s."""
        (event,) = quantized_engine.detect(
            "a", single_vertex_buffer, identity_transforms, PREV, CURR, 0.55, dt=0.2
        )

        assert event.quantized
        assert event.time_seconds == pytest.approx(0.5)
        assert quantized_engine.pending == []


# ============================================================================
# Quantization
# ============================================================================


class TestQuantization:
    def test_schedules_future_grid_point(
        self, quantized_engine, observer, dispatcher, single_vertex_buffer, identity_transforms
    ):
        events = quantized_engine.detect(
            "a", single_vertex_buffer, identity_transforms, PREV, CURR, 0.3
        )

        assert events == []
        assert dispatcher.notes == []
        (pending,) = quantized_engine.pending
        assert pending.execute_time == pytest.approx(0.5)
        assert pending.quantized
        assert observer.scheduled == [pending]
        assert quantized_engine.has_fired(pending.key)

    def test_flush_releases_due_triggers(
        self, quantized_engine, dispatcher, single_vertex_buffer, identity_transforms
    ):
        quantized_engine.detect("a", single_vertex_buffer, identity_transforms, PREV, CURR, 0.3)

        assert quantized_engine.flush(0.4) == []

        (event,) = quantized_engine.flush(0.499)

        assert event.quantized
        assert event.time_seconds == pytest.approx(0.5)
        assert dispatcher.notes[0].time == pytest.approx(0.5)
        assert quantized_engine.pending == []

    def test_fires_now_inside_window(
        self, quantized_engine, dispatcher, single_vertex_buffer, identity_transforms
    ):
        (event,) = quantized_engine.detect(
            "a", single_vertex_buffer, identity_transforms, PREV, CURR, 0.51
        )

        assert event.quantized
        assert event.time_seconds == pytest.approx(0.5)
        assert quantized_engine.pending == []
        assert len(dispatcher.notes) == 1

    def test_execute_times_land_on_grid(self, quantized_engine, single_vertex_buffer):
        events = []
        for i in range(20):
            events += quantized_engine.detect(
                f"layer-{i}", single_vertex_buffer, [_copy()], PREV, CURR, i * 0.137
            )

        events += quantized_engine.flush(100.0)

        assert len(events) == 20
        for event in events:
            beats = event.time_seconds / 0.5
            assert beats == pytest.approx(round(beats), abs=1e-9)

    def test_flush_is_time_ordered(self, quantized_engine, single_vertex_buffer):
        quantized_engine.detect("late", single_vertex_buffer, [_copy()], PREV, CURR, 1.3)
        quantized_engine.detect("early", single_vertex_buffer, [_copy()], PREV, CURR, 0.3)

        events = quantized_engine.flush(5.0)

        assert [e.layer_id for e in events] == ["early", "late"]

    def test_reset_drops_pending(self, quantized_engine, single_vertex_buffer):
        quantized_engine.detect("a", single_vertex_buffer, [_copy()], PREV, CURR, 0.3)

        quantized_engine.reset()

        assert quantized_engine.pending == []
        assert quantized_engine.flush(1.0) == []

    def test_reset_layer_drops_only_that_layer(self, quantized_engine, single_vertex_buffer):
        quantized_engine.detect("a", single_vertex_buffer, [_copy()], PREV, CURR, 0.3)
        quantized_engine.detect("b", single_vertex_buffer, [_copy()], PREV, CURR, 0.3)

        quantized_engine.reset_layer("a")

        assert [p.layer_id for p in quantized_engine.pending] == ["b"]

    def test_rearm_keeps_pending(self, quantized_engine, single_vertex_buffer):
        quantized_engine.detect("a", single_vertex_buffer, [_copy()], PREV, CURR, 0.3)

        quantized_engine.rearm_layer("a")
        quantized_engine.detect("a", single_vertex_buffer, [_copy()], PREV, CURR, 0.31)

        assert len(quantized_engine.pending) == 2
