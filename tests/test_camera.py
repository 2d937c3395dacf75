"""Tests for CameraSource with a fake capture device."""

import threading

import cv2
import pytest

from conftest import FakeCapture
from faceoverlay.camera import CameraSource, ResolutionPreset
from faceoverlay.conversion import CameraImage, ImageFormat
from faceoverlay.errors import CameraError
from faceoverlay.types import ImageRotation, LensDirection, Size


@pytest.fixture
def capture():
    return FakeCapture(width=64, height=48)


@pytest.fixture
def camera(capture):
    source = CameraSource(capture_factory=lambda index: capture)
    yield source
    source.release()


class TestResolutionPreset:
    def test_sizes(self):
        assert ResolutionPreset.MEDIUM.size == (720, 480)
        assert ResolutionPreset.VERY_HIGH.size == (1920, 1080)

    def test_from_string(self):
        assert ResolutionPreset.from_string("very-high") is ResolutionPreset.VERY_HIGH
        assert ResolutionPreset.from_string("low") is ResolutionPreset.LOW

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown resolution preset"):
            ResolutionPreset.from_string("ultra")


class TestOpen:
    def test_open_configures_capture(self, camera, capture):
        camera.open()
        assert camera.is_open
        assert capture.props[cv2.CAP_PROP_FRAME_WIDTH] == 720
        assert capture.props[cv2.CAP_PROP_FRAME_HEIGHT] == 480
        assert camera.geometry.width == 64

    def test_open_failure(self):
        camera = CameraSource(capture_factory=lambda index: FakeCapture(opened=False))
        with pytest.raises(CameraError, match="Failed to open camera 0"):
            camera.open()
        assert not camera.is_open

    def test_factory_exception_wrapped(self):
        def broken(index):
            raise OSError("no such device")

        with pytest.raises(CameraError, match="no such device"):
            CameraSource(capture_factory=broken).open()

    def test_stream_requires_open(self, camera):
        with pytest.raises(CameraError, match="not open"):
            camera.start_image_stream(lambda image: None)


class TestGeometry:
    def test_front_is_mirrored(self, capture):
        camera = CameraSource(
            lens_direction=LensDirection.FRONT,
            sensor_rotation=90,
            capture_factory=lambda index: capture,
        )
        camera.open()
        geometry = camera.geometry
        assert geometry.mirrored
        assert geometry.rotation is ImageRotation.ROTATION_90
        assert geometry.upright_size == Size(48, 64)
        camera.release()

    def test_back_is_not_mirrored(self, capture):
        camera = CameraSource(lens_direction=LensDirection.BACK, capture_factory=lambda i: capture)
        assert not camera.geometry.mirrored


class TestStreaming:
    def test_pushes_camera_images(self, camera):
        received = []
        got = threading.Event()

        def on_image(image):
            received.append(image)
            got.set()

        camera.open()
        camera.start_image_stream(on_image)
        assert got.wait(timeout=2.0)
        camera.stop_image_stream()

        image = received[0]
        assert isinstance(image, CameraImage)
        assert image.format is ImageFormat.NV21
        assert (image.width, image.height) == (64, 48)
        assert camera.latest_frame().shape == (48, 64, 3)
        assert camera.frames_captured >= 1

    def test_callback_errors_do_not_stop_stream(self, camera):
        calls = []
        second = threading.Event()

        def flaky(image):
            calls.append(image)
            if len(calls) >= 2:
                second.set()
            raise RuntimeError("boom")

        camera.open()
        camera.start_image_stream(flaky)
        assert second.wait(timeout=2.0)
        assert camera.is_streaming

    def test_cannot_start_twice(self, camera):
        camera.open()
        camera.start_image_stream(lambda image: None)
        with pytest.raises(CameraError, match="already running"):
            camera.start_image_stream(lambda image: None)

    def test_stop_is_idempotent(self, camera):
        camera.open()
        camera.start_image_stream(lambda image: None)
        camera.stop_image_stream()
        camera.stop_image_stream()
        assert not camera.is_streaming

    def test_latest_frame_none_before_stream(self, camera):
        assert camera.latest_frame() is None

    def test_geometry_follows_streamed_frames(self, camera, capture):
        camera.open()
        assert (camera.geometry.width, camera.geometry.height) == (64, 48)

        capture.frame = capture.frame[:24, :32].copy()
        got = threading.Event()
        camera.start_image_stream(lambda image: got.set())
        assert got.wait(timeout=2.0)
        camera.stop_image_stream()

        frame, geometry = camera.snapshot()
        assert frame.shape == (24, 32, 3)
        assert (geometry.width, geometry.height) == (32, 24)
        assert camera.geometry == geometry

    def test_snapshot_before_stream(self, camera):
        camera.open()
        frame, geometry = camera.snapshot()
        assert frame is None
        assert geometry.mirrored


class TestRelease:
    def test_release_is_idempotent(self, camera, capture):
        camera.open()
        camera.release()
        camera.release()
        assert capture.released
        assert not camera.is_open

    def test_context_manager(self, capture):
        with CameraSource(capture_factory=lambda index: capture) as camera:
            assert camera.is_open
        assert capture.released
