"""OverlayApp - live camera preview with a face detection overlay.

Composes the camera source, the detection controller, the painter and the
HUD. All drawing and all face-list updates happen on the thread that calls
:meth:`OverlayApp.tick`; the camera and the detector run on their own
threads and only hand data over.

Example:
    >>> from faceoverlay.app import OverlayApp
    >>> from faceoverlay.config import AppConfig
    >>> app = OverlayApp(AppConfig())
    >>> app.run()  # ESC to quit
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from faceoverlay.backends import FaceDetectionBackend, create_backend
from faceoverlay.camera import CameraSource
from faceoverlay.config import AppConfig
from faceoverlay.controller import FaceDetectionController, UiLoop
from faceoverlay.conversion import (
    ImageFormat,
    camera_image_from_bgr,
    convert_camera_image,
    rotate_upright,
)
from faceoverlay.display import FrameDisplay
from faceoverlay.errors import AcquisitionError
from faceoverlay.marks import Mark
from faceoverlay.painter import FacePainter
from faceoverlay.preview import compose_preview, draw_hud, draw_not_ready
from faceoverlay.renderer import render_marks
from faceoverlay.skins import Skin, get_skin
from faceoverlay.types import DetectedFace, FrameGeometry, Size

logger = logging.getLogger(__name__)

DEFAULT_CANVAS = Size(720, 480)
SPINNER_STEP_DEG = 12.0


class OverlayApp:
    """Live face overlay application.

    Args:
        config: App configuration.
        backend: Detection backend; created from ``config.detector`` if None.
        camera: Frame source; created from ``config.camera`` if None.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        *,
        backend: Optional[FaceDetectionBackend] = None,
        camera: Optional[CameraSource] = None,
    ):
        self.config = config or AppConfig()
        cam_cfg = self.config.camera
        self._camera = camera or CameraSource(
            index=cam_cfg.index,
            preset=cam_cfg.resolution_preset,
            lens_direction=cam_cfg.lens,
            sensor_rotation=cam_cfg.sensor_rotation,
            image_format=cam_cfg.format,
        )
        self._backend = backend
        self._skin: Skin = get_skin(self.config.display.skin)

        self._ui = UiLoop()
        self._controller: Optional[FaceDetectionController] = None
        self._painter: Optional[FacePainter] = None
        self._marks: Optional[Tuple[Size, List[Mark]]] = None

        self.ready = False
        self.error: Optional[str] = None
        self._spinner_phase = 0.0
        self._stopped = False

    # ========== Lifecycle ==========

    @property
    def faces(self) -> Sequence[DetectedFace]:
        if self._controller is None:
            return []
        return self._controller.faces

    @property
    def controller(self) -> Optional[FaceDetectionController]:
        return self._controller

    @property
    def camera(self) -> CameraSource:
        return self._camera

    def start(self) -> bool:
        """Acquire detector and camera, then start streaming.

        Failures are logged and leave the app in the "not ready" state;
        nothing is retried.

        Returns:
            True if the app is ready.
        """
        if self.ready:
            return True
        if self._stopped:
            return False

        try:
            backend = self._backend or create_backend(
                self.config.detector.backend, self.config.detector.to_options()
            )
            self._controller = FaceDetectionController(backend, post=self._ui.post)
            self._controller.add_listener(self._on_faces)
            self._controller.start()

            self._camera.open()
            self._camera.start_image_stream(self._controller.on_frame)
        except AcquisitionError as e:
            logger.error("Initialization failed: %s", e)
            self.error = str(e)
            self._release()
            return False

        self.ready = True
        logger.info("Overlay app ready")
        return True

    def stop(self) -> None:
        """Stop streaming and release detector and camera. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        self.ready = False
        self._release()

    def _release(self) -> None:
        self._camera.stop_image_stream()
        if self._controller is not None:
            self._controller.stop()
        self._camera.release()

    # ========== Rendering ==========

    def _on_faces(self, faces: Sequence[DetectedFace]) -> None:
        painter = FacePainter(faces, self._camera.geometry, self._skin)
        if self._painter is not None and not painter.should_repaint(self._painter):
            return
        self._painter = painter
        self._marks = None

    def _overlay_marks(self, canvas_size: Size) -> List[Mark]:
        if self._painter is None:
            return []
        if self._marks is None or self._marks[0] != canvas_size:
            self._marks = (canvas_size, self._painter.annotate(canvas_size))
        return self._marks[1]

    def render(self, canvas_size: Optional[Size] = None) -> np.ndarray:
        """Compose preview, overlay and HUD into one canvas."""
        canvas_size = canvas_size or self.config.display.canvas_size

        frame, geometry = self._camera.snapshot() if self.ready else (None, None)
        if frame is None:
            self._spinner_phase = (self._spinner_phase + SPINNER_STEP_DEG) % 360
            message = self.error or "Starting camera..."
            return draw_not_ready(canvas_size or DEFAULT_CANVAS, message, self._spinner_phase)

        upright = rotate_upright(frame, geometry.rotation)
        if canvas_size is None:
            h, w = upright.shape[:2]
            canvas_size = Size(w, h)

        canvas = compose_preview(upright, canvas_size, geometry.mirrored)
        canvas = render_marks(canvas, self._overlay_marks(canvas_size))

        if self.config.display.show_hud:
            canvas = draw_hud(canvas, len(self.faces))
        return canvas

    def tick(self, canvas_size: Optional[Size] = None) -> np.ndarray:
        """Apply pending detection results, then render."""
        self._ui.run_pending()
        return self.render(canvas_size)

    def run(self, display: Optional[FrameDisplay] = None) -> None:
        """Run the window loop until the user quits."""
        display = display or FrameDisplay(
            title=self.config.display.title,
            wait_ms=self.config.display.wait_ms,
        )
        self.start()
        try:
            while display.show(self.tick()):
                pass
        finally:
            self.stop()
            display.close()


def annotate_image(
    image: np.ndarray,
    backend: FaceDetectionBackend,
    skin: Optional[Skin] = None,
    canvas_size: Optional[Size] = None,
    mirrored: bool = False,
) -> Tuple[np.ndarray, List[DetectedFace]]:
    """Detect faces in a still BGR image and draw the overlay.

    The backend must already be initialized.

    Returns:
        (annotated canvas, detected faces)
    """
    h, w = image.shape[:2]
    input_image = convert_camera_image(
        camera_image_from_bgr(image, image_format=ImageFormat.BGR888)
    )
    faces = list(backend.detect(input_image))

    canvas_size = canvas_size or Size(w, h)
    painter = FacePainter(faces, FrameGeometry(w, h, mirrored=mirrored), skin)
    canvas = compose_preview(image, canvas_size, mirrored)
    return painter.paint(canvas), faces


__all__ = ["OverlayApp", "annotate_image"]
