"""Single-flight face detection controller.

Frames arrive from the camera's stream thread. At most one detection runs
at a time: a frame that arrives while a detection is pending is dropped,
never queued. The detector runs on a one-worker thread pool; its result is
handed back to the UI loop through ``post`` and only there does it replace
the current face list.

::

    camera thread --on_frame()--> [gate] --executor--> backend.detect()
                                                             |
    UI loop <--------------------post(deliver)---------------+

Example:
    >>> ui = UiLoop()
    >>> controller = FaceDetectionController(backend, post=ui.post)
    >>> controller.start()
    >>> camera.start_image_stream(controller.on_frame)
    >>> while running:
    ...     ui.run_pending()
    ...     draw(controller.faces)
    >>> controller.stop()
"""

import logging
import queue
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional, Sequence

from faceoverlay.backends.base import FaceDetectionBackend
from faceoverlay.conversion import CameraImage, convert_camera_image
from faceoverlay.errors import DetectorInitError, FrameConversionError
from faceoverlay.types import DetectedFace

logger = logging.getLogger(__name__)

FacesCallback = Callable[[Sequence[DetectedFace]], None]
PostFn = Callable[[Callable[[], None]], None]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class UiLoop:
    """Callables posted from any thread, run on the thread that drains them."""

    def __init__(self):
        self._queue: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()

    def post(self, fn: Callable[[], None]) -> None:
        self._queue.put(fn)

    def run_pending(self) -> int:
        """Run everything posted so far. Returns the number of callables run."""
        count = 0
        while True:
            try:
                fn = self._queue.get_nowait()
            except queue.Empty:
                return count
            fn()
            count += 1

    def __len__(self) -> int:
        return self._queue.qsize()


@dataclass
class ControllerStats:
    """Frame accounting for one controller session."""

    frames_received: int = 0
    frames_submitted: int = 0
    frames_dropped: int = 0
    conversion_failures: int = 0
    detection_failures: int = 0
    detections_completed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class FaceDetectionController:
    """Owns the detector, the in-flight gate and the latest face list.

    Args:
        backend: Face detection backend.
        post: Schedules a callable on the UI loop. Defaults to calling it
            immediately on the detector thread.
        executor: Executor for detection calls. Defaults to a private
            single-worker thread pool.
    """

    def __init__(
        self,
        backend: FaceDetectionBackend,
        *,
        post: Optional[PostFn] = None,
        executor: Optional[Executor] = None,
    ):
        self._backend = backend
        self._post = post or _call_now
        self._executor = executor
        self._owns_executor = executor is None

        self._lock = threading.Lock()
        self._in_flight = False
        self._running = False
        self._stopped = False

        self._faces: List[DetectedFace] = []
        self._listeners: List[FacesCallback] = []
        self.stats = ControllerStats()

    # ========== Lifecycle ==========

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def faces(self) -> List[DetectedFace]:
        """Most recent complete detection result.

        Replaced wholesale by each new result, so identity changes exactly
        when content may have changed.
        """
        return self._faces

    def add_listener(self, callback: FacesCallback) -> None:
        """Call ``callback(faces)`` on the UI loop after each new result."""
        self._listeners.append(callback)

    def start(self) -> None:
        """Initialize the detector and open the gate.

        Raises:
            DetectorInitError: If the backend fails to initialize.
            RuntimeError: If the controller was already stopped.
        """
        if self._running:
            return
        if self._stopped:
            raise RuntimeError("Controller was stopped; create a new one")

        try:
            self._backend.initialize()
        except Exception as e:
            raise DetectorInitError(f"Detector failed to initialize: {e}") from e

        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=1, thread_name_prefix="face-detect"
            )
        self._running = True
        logger.info("Face detection controller started")

    def stop(self) -> None:
        """Close the gate and release the detector. Safe to call repeatedly.

        A detection still running is allowed to finish; its result is
        discarded. Backend cleanup is queued behind it on the detector
        thread so the model is never torn down mid-call.
        """
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            self._running = False
            self._in_flight = False

        executor = self._executor
        if executor is None:
            self._cleanup_backend()
        else:
            try:
                executor.submit(self._cleanup_backend)
            except RuntimeError:
                # Executor already shut down by its owner.
                self._cleanup_backend()
            if self._owns_executor:
                executor.shutdown(wait=False)
        logger.info("Face detection controller stopped (%s)", self.stats.to_dict())

    def _cleanup_backend(self) -> None:
        try:
            self._backend.cleanup()
        except Exception as e:
            logger.warning("Detector cleanup failed: %s", e)

    # ========== Frame path ==========

    def on_frame(self, image: CameraImage) -> bool:
        """Offer one camera frame for detection.

        Called from the camera stream thread.

        Returns:
            True if the frame was submitted, False if it was dropped
            (detection pending, controller not running, or unconvertible).
        """
        with self._lock:
            self.stats.frames_received += 1
            if not self._running or self._in_flight:
                self.stats.frames_dropped += 1
                return False
            self._in_flight = True

        try:
            input_image = convert_camera_image(image)
        except FrameConversionError as e:
            logger.debug("Skipping frame: %s", e)
            with self._lock:
                self.stats.conversion_failures += 1
                self._in_flight = False
            return False

        # Submit under the lock so stop() cannot queue cleanup ahead of us.
        with self._lock:
            if not self._running:
                self.stats.frames_dropped += 1
                return False
            try:
                future = self._executor.submit(self._backend.detect, input_image)
            except RuntimeError:
                # Executor shut down by its owner.
                self._in_flight = False
                return False
            self.stats.frames_submitted += 1
        future.add_done_callback(self._on_detection_done)
        return True

    def _on_detection_done(self, future: Future) -> None:
        self._post(lambda: self._deliver(future))

    def _deliver(self, future: Future) -> None:
        """Apply a finished detection. Runs on the UI loop."""
        if not self._running:
            return

        try:
            try:
                faces = future.result()
            except Exception as e:
                # Keep the previous overlay.
                self.stats.detection_failures += 1
                logger.warning("Face detection failed: %s", e)
                return

            self._faces = list(faces)
            self.stats.detections_completed += 1
            for listener in list(self._listeners):
                listener(self._faces)
        finally:
            with self._lock:
                self._in_flight = False


__all__ = [
    "UiLoop",
    "ControllerStats",
    "FaceDetectionController",
]
