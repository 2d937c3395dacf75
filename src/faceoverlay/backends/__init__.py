"""Face detection backends.

Backends are looked up by name so configs can pick one:

    >>> from faceoverlay.backends import create_backend
    >>> backend = create_backend("mediapipe")
"""

from typing import Optional

from faceoverlay.backends.base import DetectorOptions, FaceDetectionBackend


def create_backend(
    name: str = "mediapipe",
    options: Optional[DetectorOptions] = None,
) -> FaceDetectionBackend:
    """Instantiate a detection backend by name.

    Raises:
        ValueError: If ``name`` is not a known backend.
    """
    if name == "mediapipe":
        from faceoverlay.backends.mediapipe_face import MediaPipeFaceBackend

        return MediaPipeFaceBackend(options)

    raise ValueError(f"Unknown detection backend: {name!r}")


BACKEND_NAMES = ("mediapipe",)

__all__ = [
    "DetectorOptions",
    "FaceDetectionBackend",
    "create_backend",
    "BACKEND_NAMES",
]
