"""Tests for the single-flight FaceDetectionController."""

import threading

import pytest

from conftest import FakeBackend, ImmediateExecutor, pump_until
from faceoverlay.controller import FaceDetectionController, UiLoop
from faceoverlay.conversion import CameraImage, Plane, camera_image_from_bgr
from faceoverlay.errors import DetectorInitError


@pytest.fixture
def frame(bgr_frame):
    return camera_image_from_bgr(bgr_frame)


@pytest.fixture
def ui():
    return UiLoop()


@pytest.fixture
def started(ui, full_face):
    """Started controller on a synchronous executor, plus its backend."""
    backend = FakeBackend(faces=[full_face])
    controller = FaceDetectionController(backend, post=ui.post, executor=ImmediateExecutor())
    controller.start()
    return controller, backend


class TestUiLoop:
    def test_runs_in_post_order(self):
        ui = UiLoop()
        calls = []
        ui.post(lambda: calls.append(1))
        ui.post(lambda: calls.append(2))
        assert len(ui) == 2
        assert ui.run_pending() == 2
        assert calls == [1, 2]
        assert ui.run_pending() == 0


class TestLifecycle:
    def test_start_initializes_backend(self, started):
        controller, backend = started
        assert controller.is_running
        assert backend.init_calls == 1

    def test_start_twice_is_noop(self, started):
        controller, backend = started
        controller.start()
        assert backend.init_calls == 1

    def test_init_failure(self, ui):
        controller = FaceDetectionController(FakeBackend(fail_init=True), post=ui.post)
        with pytest.raises(DetectorInitError, match="model missing"):
            controller.start()
        assert not controller.is_running

    def test_frames_dropped_before_start(self, ui, frame):
        controller = FaceDetectionController(FakeBackend(), post=ui.post)
        assert controller.on_frame(frame) is False
        assert controller.stats.frames_dropped == 1

    def test_stop_is_idempotent(self, started):
        controller, backend = started
        controller.stop()
        controller.stop()
        assert backend.cleanup_calls == 1
        assert not controller.is_running

    def test_stop_without_start_cleans_up(self, ui):
        backend = FakeBackend()
        controller = FaceDetectionController(backend, post=ui.post)
        controller.stop()
        assert backend.cleanup_calls == 1

    def test_cannot_restart(self, started):
        controller, _ = started
        controller.stop()
        with pytest.raises(RuntimeError):
            controller.start()


class TestSingleFlight:
    def test_second_frame_dropped_while_pending(self, started, ui, frame):
        controller, backend = started

        assert controller.on_frame(frame) is True
        assert controller.in_flight
        assert controller.on_frame(frame) is False
        assert len(backend.images) == 1
        assert controller.stats.frames_dropped == 1

    def test_gate_reopens_after_delivery(self, started, ui, frame):
        controller, backend = started

        controller.on_frame(frame)
        ui.run_pending()
        assert not controller.in_flight
        assert controller.on_frame(frame) is True
        assert len(backend.images) == 2

    def test_result_applied_on_ui_loop(self, started, ui, frame, full_face):
        controller, _ = started
        seen = []
        controller.add_listener(seen.append)

        controller.on_frame(frame)
        assert controller.faces == []
        assert seen == []

        ui.run_pending()
        assert controller.faces == [full_face]
        assert seen == [[full_face]]

    def test_faces_replaced_wholesale(self, started, ui, frame):
        controller, _ = started
        controller.on_frame(frame)
        ui.run_pending()
        first = controller.faces

        controller.on_frame(frame)
        ui.run_pending()
        assert controller.faces is not first
        assert controller.faces == first

    def test_empty_result_clears_faces(self, started, ui, frame):
        controller, backend = started
        controller.on_frame(frame)
        ui.run_pending()

        backend.faces = []
        controller.on_frame(frame)
        ui.run_pending()
        assert controller.faces == []


class TestFailures:
    def test_detection_failure_keeps_previous_faces(self, started, ui, frame, full_face):
        controller, backend = started
        controller.on_frame(frame)
        ui.run_pending()
        before = controller.faces

        backend.error = RuntimeError("inference exploded")
        controller.on_frame(frame)
        ui.run_pending()

        assert controller.faces is before
        assert controller.stats.detection_failures == 1
        assert not controller.in_flight

    def test_conversion_failure_releases_gate(self, started, frame):
        controller, backend = started
        bad = CameraImage(planes=[], width=64, height=48)

        assert controller.on_frame(bad) is False
        assert not controller.in_flight
        assert controller.stats.conversion_failures == 1
        assert backend.images == []

        assert controller.on_frame(frame) is True

    def test_odd_nv21_frame_is_conversion_failure(self, started, ui):
        controller, backend = started
        odd = CameraImage(planes=[Plane(b"\x00" * 30, 4)], width=4, height=5)

        assert controller.on_frame(odd) is False
        ui.run_pending()

        assert controller.stats.conversion_failures == 1
        assert controller.stats.detection_failures == 0
        assert backend.images == []


class TestStopDiscardsResults:
    def test_pending_result_discarded(self, started, ui, frame):
        controller, _ = started
        seen = []
        controller.add_listener(seen.append)

        controller.on_frame(frame)
        controller.stop()
        ui.run_pending()

        assert controller.faces == []
        assert seen == []

    def test_stop_during_conversion_skips_detect(self, started, frame):
        controller, backend = started

        class StoppingFrame:
            """Calls stop() while the controller reads its planes."""

            format = frame.format
            width = frame.width
            height = frame.height
            sensor_rotation = frame.sensor_rotation

            @property
            def planes(self):
                controller.stop()
                return frame.planes

        assert controller.on_frame(StoppingFrame()) is False
        assert backend.cleanup_calls == 1
        assert backend.images == []

    def test_frames_after_stop_dropped(self, started, frame):
        controller, backend = started
        controller.stop()
        assert controller.on_frame(frame) is False
        assert backend.images == []


class TestThreaded:
    def test_drop_while_detector_busy(self, ui, frame, full_face):
        block = threading.Event()
        backend = FakeBackend(faces=[full_face], block=block)
        controller = FaceDetectionController(backend, post=ui.post)
        controller.start()
        try:
            assert controller.on_frame(frame) is True
            assert backend.detect_started.wait(timeout=2.0)
            for _ in range(5):
                assert controller.on_frame(frame) is False

            block.set()
            assert pump_until(ui, lambda: not controller.in_flight)
            assert controller.faces == [full_face]
            assert len(backend.images) == 1
            assert controller.stats.frames_dropped == 5
        finally:
            block.set()
            controller.stop()

    def test_cleanup_waits_for_running_detection(self, ui, frame, full_face):
        block = threading.Event()
        backend = FakeBackend(faces=[full_face], block=block)
        controller = FaceDetectionController(backend, post=ui.post)
        controller.start()

        controller.on_frame(frame)
        assert backend.detect_started.wait(timeout=2.0)
        controller.stop()
        assert backend.cleanup_calls == 0

        block.set()
        assert pump_until(ui, lambda: backend.cleanup_calls == 1)
        assert controller.faces == []
