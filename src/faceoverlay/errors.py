"""Exception hierarchy for faceoverlay.

No error here is fatal to the process: acquisition failures put the app
into a "not ready" state, per-frame failures drop the frame.
"""


class FaceOverlayError(Exception):
    """Base class for faceoverlay errors."""


class AcquisitionError(FaceOverlayError):
    """Camera or detector could not be initialized."""


class CameraError(AcquisitionError):
    """Camera could not be opened or configured."""


class DetectorInitError(AcquisitionError):
    """Detector backend failed to initialize."""


class FrameConversionError(FaceOverlayError):
    """A camera frame could not be turned into detector input."""


class DetectionError(FaceOverlayError):
    """The detector failed on a single frame."""


class ConfigError(FaceOverlayError, ValueError):
    """Invalid configuration value."""


__all__ = [
    "FaceOverlayError",
    "AcquisitionError",
    "CameraError",
    "DetectorInitError",
    "FrameConversionError",
    "DetectionError",
    "ConfigError",
]
