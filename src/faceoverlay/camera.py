"""CameraSource - OpenCV camera with a push-style image stream.

The stream thread reads frames at the camera's native rate, keeps the
latest BGR frame for the preview, and pushes each frame to the stream
callback as a :class:`~faceoverlay.conversion.CameraImage`. The callback
must return quickly; :class:`~faceoverlay.controller.FaceDetectionController`
drops frames rather than blocking.

Example:
    >>> camera = CameraSource(index=0, preset=ResolutionPreset.MEDIUM)
    >>> camera.open()
    >>> camera.start_image_stream(controller.on_frame)
    >>> ...
    >>> camera.stop_image_stream()
    >>> camera.release()
"""

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Optional, Tuple

import cv2
import numpy as np

from faceoverlay.conversion import CameraImage, ImageFormat, camera_image_from_bgr
from faceoverlay.errors import CameraError
from faceoverlay.types import FrameGeometry, ImageRotation, LensDirection

logger = logging.getLogger(__name__)

ImageCallback = Callable[[CameraImage], Any]


class ResolutionPreset(Enum):
    """Requested capture resolution as (width, height)."""

    LOW = (352, 288)
    MEDIUM = (720, 480)
    HIGH = (1280, 720)
    VERY_HIGH = (1920, 1080)

    @property
    def size(self) -> Tuple[int, int]:
        return self.value

    @classmethod
    def from_string(cls, value: str) -> "ResolutionPreset":
        try:
            return cls[value.upper().replace("-", "_")]
        except KeyError:
            raise ValueError(
                f"Unknown resolution preset {value!r}. "
                f"Choose from: {', '.join(p.name.lower() for p in cls)}"
            ) from None


class CameraSource:
    """Camera frame source backed by ``cv2.VideoCapture``.

    Args:
        index: Camera device index.
        preset: Requested resolution.
        lens_direction: FRONT cameras are shown mirrored.
        sensor_rotation: Degrees to rotate frames upright (0/90/180/270).
        image_format: Pixel format of pushed CameraImages.
        capture_factory: Callable returning a VideoCapture-like object.
    """

    def __init__(
        self,
        index: int = 0,
        preset: ResolutionPreset = ResolutionPreset.MEDIUM,
        lens_direction: LensDirection = LensDirection.FRONT,
        sensor_rotation: int = 0,
        image_format: ImageFormat = ImageFormat.NV21,
        capture_factory: Callable[[int], Any] = cv2.VideoCapture,
    ):
        self.index = index
        self.preset = preset
        self.lens_direction = lens_direction
        self.sensor_rotation = sensor_rotation
        self.image_format = image_format
        self._capture_factory = capture_factory

        self._cap = None
        self._size: Tuple[int, int] = (0, 0)

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._callback: Optional[ImageCallback] = None

        self._latest_frame: Optional[np.ndarray] = None
        self._latest_lock = threading.Lock()

        self.frames_captured = 0

    # ========== Acquisition ==========

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    @property
    def is_streaming(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def open(self) -> None:
        """Open and configure the camera.

        Raises:
            CameraError: If the device cannot be opened.
        """
        if self._cap is not None:
            return

        try:
            cap = self._capture_factory(self.index)
        except Exception as e:
            raise CameraError(f"Failed to open camera {self.index}: {e}") from e

        if not cap.isOpened():
            cap.release()
            raise CameraError(f"Failed to open camera {self.index}")

        width, height = self.preset.size
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        # Reduce buffer to minimize latency
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        actual_w = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or width
        actual_h = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or height
        with self._latest_lock:
            self._size = (actual_w, actual_h)
        self._cap = cap
        logger.info(f"Camera {self.index} opened: {actual_w}x{actual_h}")

    @property
    def geometry(self) -> FrameGeometry:
        """Geometry of streamed frames (sensor size, rotation, mirroring)."""
        with self._latest_lock:
            width, height = self._size
        return self._geometry(width, height)

    def _geometry(self, width: int, height: int) -> FrameGeometry:
        return FrameGeometry(
            width=width,
            height=height,
            rotation=ImageRotation.from_degrees(self.sensor_rotation),
            mirrored=self.lens_direction.mirrored,
        )

    # ========== Streaming ==========

    def start_image_stream(self, callback: ImageCallback) -> None:
        """Start pushing frames to ``callback`` from a background thread."""
        if self._cap is None:
            raise CameraError("Camera is not open")
        if self.is_streaming:
            raise CameraError("Image stream already running")

        self._callback = callback
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="camera-stream", daemon=True
        )
        self._thread.start()
        logger.info("Camera image stream started")

    def _run(self) -> None:
        callback = self._callback
        while not self._stop_event.is_set():
            ok, frame = self._cap.read()
            if not ok or frame is None:
                logger.debug("Frame capture failed")
                time.sleep(0.01)
                continue

            self.frames_captured += 1
            h, w = frame.shape[:2]
            with self._latest_lock:
                self._latest_frame = frame
                self._size = (w, h)

            image = camera_image_from_bgr(frame, self.sensor_rotation, self.image_format)
            try:
                callback(image)
            except Exception as e:
                logger.warning("Image stream callback raised: %s", e)

    def stop_image_stream(self, timeout: float = 1.0) -> None:
        """Stop the stream thread. Safe to call when not streaming."""
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=timeout)
        self._thread = None
        self._callback = None
        logger.info("Camera image stream stopped")

    def latest_frame(self) -> Optional[np.ndarray]:
        """Most recent BGR frame as captured (not rotated), or None."""
        with self._latest_lock:
            if self._latest_frame is None:
                return None
            return self._latest_frame.copy()

    def snapshot(self) -> Tuple[Optional[np.ndarray], FrameGeometry]:
        """Latest frame together with the geometry it was captured at."""
        with self._latest_lock:
            frame = None if self._latest_frame is None else self._latest_frame.copy()
            width, height = self._size
        return frame, self._geometry(width, height)

    def release(self) -> None:
        """Stop streaming and release the device. Idempotent."""
        self.stop_image_stream()
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info("Camera released")

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


__all__ = ["ResolutionPreset", "CameraSource"]
