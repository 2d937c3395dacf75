"""Backend protocol definitions for face detection."""

from dataclasses import dataclass
from typing import List, Optional, Protocol, runtime_checkable

from faceoverlay.conversion import InputImage
from faceoverlay.types import DetectedFace


@dataclass(frozen=True)
class DetectorOptions:
    """Detector feature switches.

    Attributes:
        enable_landmarks: Report the five named landmarks.
        enable_classification: Report smile probability.
        max_faces: Upper bound on faces returned per frame.
        min_detection_confidence: Minimum face detection score [0, 1].
        model_path: Local model file; None downloads the default model.
    """

    enable_landmarks: bool = True
    enable_classification: bool = True
    max_faces: int = 4
    min_detection_confidence: float = 0.5
    model_path: Optional[str] = None


@runtime_checkable
class FaceDetectionBackend(Protocol):
    """Protocol for face detection backends.

    Implementations should be swappable without changing controller logic.
    ``detect`` is called from a worker thread, one call at a time.
    """

    def initialize(self) -> None:
        """Load models. Called once from ``start()``."""
        ...

    def detect(self, image: InputImage) -> List[DetectedFace]:
        """Detect faces in one frame.

        Coordinates are pixels in the upright (rotated) image.
        """
        ...

    def cleanup(self) -> None:
        """Release resources and unload models."""
        ...


__all__ = ["DetectorOptions", "FaceDetectionBackend"]
