"""FacePainter - paints the current detection result onto a canvas."""

from typing import List, Optional, Sequence

import numpy as np

from faceoverlay.mapping import CoverTransform, cover_transform
from faceoverlay.marks import DrawStyle, Mark
from faceoverlay.renderer import render_marks
from faceoverlay.skins import BadgeSkin, Skin
from faceoverlay.types import DetectedFace, FrameGeometry, Size


class FacePainter:
    """Pairs one detection result with the geometry needed to draw it.

    A painter is cheap and meant to be rebuilt whenever a new face list
    arrives. It computes a single :class:`CoverTransform` per paint pass so
    boxes and landmarks always share the same scale.

    Args:
        faces: Most recent complete detector result.
        frame: Geometry of the frame the faces were detected in.
        skin: Visual style (default: :class:`BadgeSkin`).
        style: Optional renderer overrides.
    """

    def __init__(
        self,
        faces: Sequence[DetectedFace],
        frame: FrameGeometry,
        skin: Optional[Skin] = None,
        style: Optional[DrawStyle] = None,
    ):
        self.faces = faces
        self.frame = frame
        self.skin = skin or BadgeSkin()
        self.style = style

    def transform_for(self, canvas_size: Size) -> CoverTransform:
        return cover_transform(self.frame.upright_size, canvas_size)

    def annotate(self, canvas_size: Size) -> List[Mark]:
        """Marks for every face, in list order, in canvas pixels."""
        transform = self.transform_for(canvas_size)
        return self.skin.annotate(self.faces, transform, self.frame.mirrored)

    def paint(self, canvas: np.ndarray) -> np.ndarray:
        """Draw the overlay onto a copy of ``canvas``."""
        h, w = canvas.shape[:2]
        marks = self.annotate(Size(w, h))
        return render_marks(canvas, marks, self.style)

    def should_repaint(self, old: "FacePainter") -> bool:
        """True when ``old`` was built from a different face list or frame.

        Identity is checked first; equal content counts as unchanged.
        """
        if old.frame != self.frame:
            return True
        if old.faces is self.faces:
            return False
        return list(old.faces) != list(self.faces)


__all__ = ["FacePainter"]
