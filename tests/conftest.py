"""Shared fixtures for faceoverlay tests.

Detectors and cameras are fakes: NO ML models or camera devices needed.
"""

import threading
import time
from concurrent.futures import Executor, Future

import cv2
import numpy as np
import pytest

from faceoverlay.types import DetectedFace, LandmarkKind, Point, Rect


class FakeBackend:
    """Scriptable detection backend.

    Args:
        faces: Faces returned by every detect() call.
        fail_init: Make initialize() raise.
        block: If set, detect() waits on this event before returning.
    """

    def __init__(self, faces=None, fail_init=False, block=None):
        self.faces = list(faces or [])
        self.fail_init = fail_init
        self.block = block
        self.error = None
        self.initialized = False
        self.init_calls = 0
        self.cleanup_calls = 0
        self.images = []
        self.detect_started = threading.Event()

    def initialize(self):
        self.init_calls += 1
        if self.fail_init:
            raise RuntimeError("model missing")
        self.initialized = True

    def detect(self, image):
        self.images.append(image)
        self.detect_started.set()
        if self.block is not None:
            self.block.wait(timeout=5.0)
        if self.error is not None:
            raise self.error
        return list(self.faces)

    def cleanup(self):
        self.cleanup_calls += 1
        self.initialized = False


class ImmediateExecutor(Executor):
    """Runs submitted calls synchronously; futures are done on return."""

    def __init__(self):
        self._shutdown = False
        self.submitted = 0

    def submit(self, fn, /, *args, **kwargs):
        if self._shutdown:
            raise RuntimeError("cannot schedule new futures after shutdown")
        self.submitted += 1
        future = Future()
        try:
            result = fn(*args, **kwargs)
        except Exception as e:
            future.set_exception(e)
        else:
            future.set_result(result)
        return future

    def shutdown(self, wait=True, *, cancel_futures=False):
        self._shutdown = True


class FakeCapture:
    """cv2.VideoCapture stand-in serving a fixed BGR frame."""

    def __init__(self, width=64, height=48, opened=True):
        self._opened = opened
        self.frame = np.full((height, width, 3), 128, dtype=np.uint8)
        self.props = {}
        self.released = False
        self.reads = 0

    def isOpened(self):
        return self._opened

    def set(self, prop, value):
        self.props[prop] = value
        return True

    def get(self, prop):
        if prop == cv2.CAP_PROP_FRAME_WIDTH:
            return self.frame.shape[1]
        if prop == cv2.CAP_PROP_FRAME_HEIGHT:
            return self.frame.shape[0]
        return 0

    def read(self):
        self.reads += 1
        time.sleep(0.002)
        return True, self.frame.copy()

    def release(self):
        self.released = True


def pump_until(ui, predicate, timeout=2.0):
    """Drain ``ui`` until ``predicate()`` holds or ``timeout`` passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        ui.run_pending()
        if predicate():
            return True
        time.sleep(0.005)
    ui.run_pending()
    return predicate()


@pytest.fixture
def blank_canvas():
    """200x200 black canvas."""
    return np.zeros((200, 200, 3), dtype=np.uint8)


@pytest.fixture
def bgr_frame():
    """Deterministic 64x48 BGR frame with some structure."""
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, size=(48, 64, 3), dtype=np.uint8)


@pytest.fixture
def full_face():
    """Face with all five landmarks and a slight smile."""
    return DetectedFace(
        bounding_box=Rect(10, 10, 50, 50),
        landmarks={
            LandmarkKind.LEFT_EYE: Point(20, 25),
            LandmarkKind.RIGHT_EYE: Point(40, 25),
            LandmarkKind.NOSE_BASE: Point(30, 35),
            LandmarkKind.LEFT_MOUTH: Point(22, 42),
            LandmarkKind.RIGHT_MOUTH: Point(38, 42),
        },
        smile_probability=0.42,
    )


@pytest.fixture
def bare_face():
    """Face with no landmarks and no classification."""
    return DetectedFace(bounding_box=Rect(60, 20, 90, 70))


def wait_for(predicate, timeout=2.0):
    """Poll ``predicate()`` until it holds or ``timeout`` passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()
