"""Overlay skins: turn detected faces into canvas marks.

A skin decides how faces look, never where they are. Geometry always comes
from the shared :class:`~faceoverlay.mapping.CoverTransform`, so every skin
lines up with the preview.

Two skins are provided:

- ``badge``: per-face colored rounded boxes, a numbered badge at the top-left
  corner, a smile label under the box, and landmark dots.
- ``plain``: a green box and landmark dots.

Example:
    >>> from faceoverlay.skins import get_skin
    >>> skin = get_skin("badge")
    >>> marks = skin.annotate(faces, transform, mirrored=True)
"""

import math
from enum import Enum
from typing import Dict, List, Protocol, Sequence, runtime_checkable

from faceoverlay.mapping import CoverTransform, adjust_box
from faceoverlay.marks import (
    BadgeMark,
    CircleMark,
    Color,
    LabelBoxMark,
    Mark,
    RoundedRectMark,
)
from faceoverlay.types import FACE_LANDMARKS, DetectedFace, Rect

# Smile tiers: strictly greater than the threshold.
VERY_HAPPY_THRESHOLD = 0.7
SLIGHT_SMILE_THRESHOLD = 0.3

# Badge sits on the box corner, pulled out by a small inset.
BADGE_INSET = 5.0
BADGE_RADIUS = 15.0

LABEL_GAP = 8.0
LABEL_WIDTH = 100.0
LABEL_HEIGHT = 30.0

LANDMARK_RADIUS = 5.0
BOX_RADIUS = 12.0
BOX_THICKNESS = 3

# BGR
WHITE: Color = (255, 255, 255)
GREEN: Color = (80, 175, 76)
GREEN_ACCENT: Color = (174, 240, 105)
LANDMARK_RED: Color = (54, 67, 244)
LABEL_BACKGROUND: Color = (33, 33, 33)

FACE_COLORS: tuple[Color, ...] = (
    GREEN,
    (243, 150, 33),   # blue
    (176, 39, 156),   # purple
    (0, 152, 255),    # orange
    (99, 30, 233),    # pink
    (212, 188, 0),    # cyan
    (59, 235, 255),   # yellow
    (54, 67, 244),    # red
)


class SmileTier(Enum):
    """Smile classification buckets."""

    VERY_HAPPY = "Very Happy"
    SLIGHT_SMILE = "Slight Smile"
    NEUTRAL = "Neutral"

    @property
    def label(self) -> str:
        return self.value


def classify_smile(probability: float) -> SmileTier:
    if probability > VERY_HAPPY_THRESHOLD:
        return SmileTier.VERY_HAPPY
    if probability > SLIGHT_SMILE_THRESHOLD:
        return SmileTier.SLIGHT_SMILE
    return SmileTier.NEUTRAL


def smile_percent(probability: float) -> int:
    """Probability as an integer percentage, halves rounded up."""
    return int(math.floor(probability * 100 + 0.5))


def format_smile(probability: float) -> str:
    """Label text, e.g. ``"Slight Smile 42%"``."""
    return f"{classify_smile(probability).label} {smile_percent(probability)}%"


def face_color(index: int) -> Color:
    return FACE_COLORS[index % len(FACE_COLORS)]


@runtime_checkable
class Skin(Protocol):
    """Protocol for overlay skins."""

    name: str

    def annotate(
        self,
        faces: Sequence[DetectedFace],
        transform: CoverTransform,
        mirrored: bool,
    ) -> List[Mark]:
        """Produce canvas marks for ``faces``, in list order."""
        ...


def map_face_box(face: DetectedFace, transform: CoverTransform, mirrored: bool) -> Rect:
    return transform.apply_rect(adjust_box(face.bounding_box), mirrored)


def landmark_marks(
    face: DetectedFace,
    transform: CoverTransform,
    mirrored: bool,
    color: Color = LANDMARK_RED,
) -> List[Mark]:
    """One filled dot per landmark the face actually has."""
    marks: List[Mark] = []
    for kind in FACE_LANDMARKS:
        point = face.landmarks.get(kind)
        if point is None:
            continue
        mapped = transform.apply_point(point, mirrored)
        marks.append(CircleMark(x=mapped.x, y=mapped.y, radius=LANDMARK_RADIUS, color=color))
    return marks


class BadgeSkin:
    """Colored per-face boxes with numbered badges and smile labels."""

    name = "badge"

    def annotate(
        self,
        faces: Sequence[DetectedFace],
        transform: CoverTransform,
        mirrored: bool,
    ) -> List[Mark]:
        marks: List[Mark] = []
        for i, face in enumerate(faces):
            color = face_color(i)
            rect = map_face_box(face, transform, mirrored)

            marks.append(RoundedRectMark(
                left=rect.left,
                top=rect.top,
                right=rect.right,
                bottom=rect.bottom,
                color=color,
                radius=BOX_RADIUS,
                thickness=BOX_THICKNESS,
            ))
            marks.append(BadgeMark(
                x=rect.left - BADGE_INSET,
                y=rect.top - BADGE_INSET,
                text=str(i + 1),
                color=color,
                radius=BADGE_RADIUS,
            ))

            if face.smile_probability is not None:
                tier = classify_smile(face.smile_probability)
                marks.append(LabelBoxMark(
                    left=rect.left,
                    top=rect.bottom + LABEL_GAP,
                    width=LABEL_WIDTH,
                    height=LABEL_HEIGHT,
                    text=format_smile(face.smile_probability),
                    border_color=color,
                    background=LABEL_BACKGROUND,
                    text_color=GREEN_ACCENT if tier is SmileTier.VERY_HAPPY else WHITE,
                ))

            marks.extend(landmark_marks(face, transform, mirrored))
        return marks


class PlainSkin:
    """Plain green box plus landmark dots."""

    name = "plain"

    def __init__(self, color: Color = GREEN):
        self._color = color

    def annotate(
        self,
        faces: Sequence[DetectedFace],
        transform: CoverTransform,
        mirrored: bool,
    ) -> List[Mark]:
        marks: List[Mark] = []
        for face in faces:
            rect = map_face_box(face, transform, mirrored)
            marks.append(RoundedRectMark(
                left=rect.left,
                top=rect.top,
                right=rect.right,
                bottom=rect.bottom,
                color=self._color,
                radius=0.0,
                thickness=BOX_THICKNESS,
            ))
            marks.extend(landmark_marks(face, transform, mirrored))
        return marks


SKINS: Dict[str, type] = {
    BadgeSkin.name: BadgeSkin,
    PlainSkin.name: PlainSkin,
}


def get_skin(name: str) -> Skin:
    """Instantiate a registered skin by name.

    Raises:
        ValueError: If no skin is registered under ``name``.
    """
    try:
        return SKINS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown skin {name!r}. Available: {', '.join(sorted(SKINS))}"
        ) from None


__all__ = [
    "VERY_HAPPY_THRESHOLD",
    "SLIGHT_SMILE_THRESHOLD",
    "BADGE_INSET",
    "FACE_COLORS",
    "SmileTier",
    "classify_smile",
    "smile_percent",
    "format_smile",
    "face_color",
    "Skin",
    "BadgeSkin",
    "PlainSkin",
    "SKINS",
    "get_skin",
    "map_face_box",
    "landmark_marks",
]
