"""Face overlay domain types.

Geometry values are plain frozen dataclasses so they compare with ``==``
and can be used as dict keys in tests.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional


@dataclass(frozen=True)
class Point:
    """2D point in pixels."""

    x: float
    y: float


@dataclass(frozen=True)
class Size:
    """Width/height pair in pixels."""

    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its edges (left, top, right, bottom)."""

    left: float
    top: float
    right: float
    bottom: float

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def center(self) -> Point:
        return Point(self.left + self.width / 2, self.top + self.height / 2)

    @classmethod
    def from_ltwh(cls, left: float, top: float, width: float, height: float) -> "Rect":
        return cls(left, top, left + width, top + height)

    @classmethod
    def from_center(cls, center: Point, width: float, height: float) -> "Rect":
        return cls(
            center.x - width / 2,
            center.y - height / 2,
            center.x + width / 2,
            center.y + height / 2,
        )


class LandmarkKind(Enum):
    """Named facial landmarks drawn on the overlay."""

    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    NOSE_BASE = "nose_base"
    LEFT_MOUTH = "left_mouth"
    RIGHT_MOUTH = "right_mouth"


# Drawing order for landmark circles.
FACE_LANDMARKS = (
    LandmarkKind.LEFT_EYE,
    LandmarkKind.RIGHT_EYE,
    LandmarkKind.NOSE_BASE,
    LandmarkKind.LEFT_MOUTH,
    LandmarkKind.RIGHT_MOUTH,
)


@dataclass(frozen=True)
class DetectedFace:
    """A single face returned by a detector backend.

    Attributes:
        bounding_box: Face box in upright frame pixels.
        landmarks: Landmark positions in upright frame pixels. Landmarks the
            detector could not locate are simply absent.
        smile_probability: Smile classification in [0, 1], or None when
            classification is disabled.
    """

    bounding_box: Rect
    landmarks: Mapping[LandmarkKind, Point] = field(default_factory=dict)
    smile_probability: Optional[float] = None


class ImageRotation(Enum):
    """Clockwise rotation needed to bring a sensor image upright."""

    ROTATION_0 = 0
    ROTATION_90 = 90
    ROTATION_180 = 180
    ROTATION_270 = 270

    @property
    def degrees(self) -> int:
        return self.value

    @property
    def swaps_axes(self) -> bool:
        return self in (ImageRotation.ROTATION_90, ImageRotation.ROTATION_270)

    @classmethod
    def from_degrees(cls, degrees: int) -> "ImageRotation":
        """Map sensor orientation degrees to a rotation.

        Anything other than 90, 180 or 270 is treated as no rotation.
        """
        if degrees == 90:
            return cls.ROTATION_90
        if degrees == 180:
            return cls.ROTATION_180
        if degrees == 270:
            return cls.ROTATION_270
        return cls.ROTATION_0


class LensDirection(Enum):
    """Which way the camera faces."""

    FRONT = "front"
    BACK = "back"
    EXTERNAL = "external"

    @property
    def mirrored(self) -> bool:
        return self is LensDirection.FRONT


@dataclass(frozen=True)
class FrameGeometry:
    """Size and orientation of a source frame.

    Attributes:
        width: Sensor frame width in pixels.
        height: Sensor frame height in pixels.
        rotation: Sensor-to-display rotation.
        mirrored: True for a front-facing camera.
    """

    width: float
    height: float
    rotation: ImageRotation = ImageRotation.ROTATION_0
    mirrored: bool = False

    @property
    def upright_size(self) -> Size:
        """Frame size after rotation, i.e. the detector's coordinate space."""
        if self.rotation.swaps_axes:
            return Size(self.height, self.width)
        return Size(self.width, self.height)


__all__ = [
    "Point",
    "Size",
    "Rect",
    "LandmarkKind",
    "FACE_LANDMARKS",
    "DetectedFace",
    "ImageRotation",
    "LensDirection",
    "FrameGeometry",
]
