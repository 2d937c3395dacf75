"""MediaPipe Face Landmarker backend."""

import logging
import urllib.request
from pathlib import Path
from typing import Dict, List, Optional

import cv2
import numpy as np

from faceoverlay.backends.base import DetectorOptions
from faceoverlay.conversion import InputImage, decode_input_image
from faceoverlay.errors import DetectionError
from faceoverlay.types import DetectedFace, LandmarkKind, Point, Rect

logger = logging.getLogger(__name__)

# Model download URL
FACE_LANDMARKER_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/face_landmarker/"
    "face_landmarker/float16/1/face_landmarker.task"
)

# Face mesh indices for the named landmarks. Left/right are the subject's.
MESH_INDICES: Dict[LandmarkKind, int] = {
    LandmarkKind.LEFT_EYE: 473,    # left iris center
    LandmarkKind.RIGHT_EYE: 468,   # right iris center
    LandmarkKind.NOSE_BASE: 2,
    LandmarkKind.LEFT_MOUTH: 291,
    LandmarkKind.RIGHT_MOUTH: 61,
}

SMILE_BLENDSHAPES = ("mouthSmileLeft", "mouthSmileRight")


def _get_model_path() -> Path:
    """Get path to face landmarker model, downloading if necessary."""
    cache_dir = Path.home() / ".cache" / "faceoverlay" / "models"
    cache_dir.mkdir(parents=True, exist_ok=True)

    model_path = cache_dir / "face_landmarker.task"

    if not model_path.exists():
        logger.info(f"Downloading face landmarker model to {model_path}...")
        try:
            urllib.request.urlretrieve(FACE_LANDMARKER_MODEL_URL, model_path)
            logger.info("Download complete.")
        except Exception as e:
            raise RuntimeError(
                f"Failed to download face landmarker model: {e}\n"
                f"You can manually download from: {FACE_LANDMARKER_MODEL_URL}\n"
                f"And save to: {model_path}"
            ) from e

    return model_path


def landmarks_to_face(
    points: np.ndarray,
    width: int,
    height: int,
    smile_probability: Optional[float] = None,
    enable_landmarks: bool = True,
) -> DetectedFace:
    """Build a DetectedFace from normalized mesh points.

    Args:
        points: (N, 2+) array of normalized [0, 1] mesh coordinates.
        width: Upright image width in pixels.
        height: Upright image height in pixels.
        smile_probability: Optional smile score.
        enable_landmarks: Include the five named landmarks.
    """
    xs = points[:, 0] * width
    ys = points[:, 1] * height
    box = Rect(float(xs.min()), float(ys.min()), float(xs.max()), float(ys.max()))

    landmarks: Dict[LandmarkKind, Point] = {}
    if enable_landmarks:
        for kind, idx in MESH_INDICES.items():
            if idx < len(points):
                landmarks[kind] = Point(float(xs[idx]), float(ys[idx]))

    return DetectedFace(
        bounding_box=box,
        landmarks=landmarks,
        smile_probability=smile_probability,
    )


def smile_from_blendshapes(categories) -> Optional[float]:
    """Mean of the mouth-smile blendshape scores, or None if absent."""
    scores = [
        c.score for c in categories if c.category_name in SMILE_BLENDSHAPES
    ]
    if not scores:
        return None
    return float(min(1.0, max(0.0, sum(scores) / len(scores))))


class MediaPipeFaceBackend:
    """MediaPipe Face Landmarker backend.

    Uses MediaPipe Tasks API (0.10.x+) with FaceLandmarker in IMAGE mode.
    The 478-point mesh gives the bounding box (landmark extent) and the five
    named landmarks; face blendshapes give the smile probability.

    Args:
        options: Detector feature switches.
    """

    def __init__(self, options: Optional[DetectorOptions] = None):
        self._options = options or DetectorOptions()
        self._landmarker: Optional[object] = None
        self._initialized = False

    @property
    def options(self) -> DetectorOptions:
        return self._options

    def initialize(self) -> None:
        """Initialize MediaPipe FaceLandmarker."""
        if self._initialized:
            return

        try:
            from mediapipe.tasks import python
            from mediapipe.tasks.python import vision
        except ImportError as e:
            raise ImportError(
                "MediaPipe is required for face detection. "
                "Install it with: pip install mediapipe"
            ) from e

        model_path = self._options.model_path or _get_model_path()

        base_options = python.BaseOptions(model_asset_path=str(model_path))
        options = vision.FaceLandmarkerOptions(
            base_options=base_options,
            running_mode=vision.RunningMode.IMAGE,
            num_faces=self._options.max_faces,
            min_face_detection_confidence=self._options.min_detection_confidence,
            output_face_blendshapes=self._options.enable_classification,
        )

        self._landmarker = vision.FaceLandmarker.create_from_options(options)
        self._initialized = True
        logger.info("MediaPipe face backend initialized (Tasks API)")

    def detect(self, image: InputImage) -> List[DetectedFace]:
        """Detect faces and landmarks in one frame.

        Returns:
            Faces in upright-image pixel coordinates.

        Raises:
            DetectionError: If inference fails on this frame.
        """
        if not self._initialized or self._landmarker is None:
            raise RuntimeError("Backend not initialized. Call initialize() first.")

        import mediapipe as mp

        bgr = decode_input_image(image)
        h, w = bgr.shape[:2]

        # MediaPipe expects RGB
        rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)

        try:
            result = self._landmarker.detect(mp_image)
        except Exception as e:
            raise DetectionError(f"FaceLandmarker failed: {e}") from e

        faces = []
        blendshapes = getattr(result, "face_blendshapes", None) or []
        for idx, face_lms in enumerate(result.face_landmarks or []):
            points = np.array([[lm.x, lm.y] for lm in face_lms], dtype=np.float32)
            smile = None
            if self._options.enable_classification and idx < len(blendshapes):
                smile = smile_from_blendshapes(blendshapes[idx])
            faces.append(landmarks_to_face(
                points,
                w,
                h,
                smile_probability=smile,
                enable_landmarks=self._options.enable_landmarks,
            ))

        return faces

    def cleanup(self) -> None:
        """Release MediaPipe resources."""
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None
        self._initialized = False
        logger.info("MediaPipe face backend cleaned up")


__all__ = [
    "MediaPipeFaceBackend",
    "MESH_INDICES",
    "landmarks_to_face",
    "smile_from_blendshapes",
]
