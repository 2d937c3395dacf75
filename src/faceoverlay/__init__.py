"""faceoverlay - Live face detection overlay for camera previews.

Example:
    >>> from faceoverlay import OverlayApp, AppConfig
    >>> OverlayApp(AppConfig()).run()

Mapping detector coordinates onto a canvas:
    >>> from faceoverlay import Rect, Size, scale_rect
    >>> scale_rect(Rect(10, 10, 50, 50), Size(100, 200), Size(200, 200), mirrored=True)
"""

__version__ = "0.1.0"

from faceoverlay.types import (
    Point,
    Size,
    Rect,
    LandmarkKind,
    DetectedFace,
    ImageRotation,
    LensDirection,
    FrameGeometry,
)
from faceoverlay.mapping import CoverTransform, cover_transform, scale_rect, scale_point
from faceoverlay.painter import FacePainter
from faceoverlay.skins import BadgeSkin, PlainSkin, get_skin
from faceoverlay.controller import FaceDetectionController, UiLoop
from faceoverlay.config import AppConfig
from faceoverlay.app import OverlayApp, annotate_image

__all__ = [
    "Point",
    "Size",
    "Rect",
    "LandmarkKind",
    "DetectedFace",
    "ImageRotation",
    "LensDirection",
    "FrameGeometry",
    "CoverTransform",
    "cover_transform",
    "scale_rect",
    "scale_point",
    "FacePainter",
    "BadgeSkin",
    "PlainSkin",
    "get_skin",
    "FaceDetectionController",
    "UiLoop",
    "AppConfig",
    "OverlayApp",
    "annotate_image",
]
