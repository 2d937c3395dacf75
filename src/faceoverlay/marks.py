"""Declarative overlay mark types.

Marks describe *what* to draw on the canvas, not *how*. Skins turn
detected faces into marks; :mod:`faceoverlay.renderer` turns marks into
pixels.

All coordinates are canvas pixels: the coordinate mapping has already been
applied. All Mark types are frozen dataclasses, comparable with ``==`` for
easy testing.

Example:
    >>> from faceoverlay.marks import RoundedRectMark, CircleMark
    >>> marks = [
    ...     RoundedRectMark(left=10, top=20, right=110, bottom=150, color=(0, 255, 0)),
    ...     CircleMark(x=40, y=60, radius=5, color=(0, 0, 255)),
    ... ]
"""

from dataclasses import dataclass

Color = tuple[int, int, int]  # BGR


@dataclass(frozen=True)
class DrawStyle:
    """App-level style overrides applied by the renderer."""

    color: Color | None = None
    thickness: int | None = None
    font_scale: float | None = None
    show_labels: bool = True


@dataclass(frozen=True)
class RoundedRectMark:
    """Outlined rectangle with rounded corners."""

    left: float
    top: float
    right: float
    bottom: float
    color: Color = (0, 255, 0)
    radius: float = 12.0
    thickness: int = 3


@dataclass(frozen=True)
class CircleMark:
    """Circle; ``thickness=-1`` fills it."""

    x: float
    y: float
    radius: float
    color: Color = (0, 0, 255)
    thickness: int = -1


@dataclass(frozen=True)
class BadgeMark:
    """Filled circular badge with a ring and centered text."""

    x: float
    y: float
    text: str
    color: Color
    radius: float = 15.0
    ring_color: Color = (255, 255, 255)
    ring_thickness: int = 2
    text_color: Color = (255, 255, 255)
    font_scale: float = 0.55


@dataclass(frozen=True)
class LabelBoxMark:
    """Filled rounded box with a colored border and centered text."""

    left: float
    top: float
    width: float
    height: float
    text: str
    border_color: Color
    background: Color = (30, 30, 30)
    text_color: Color = (255, 255, 255)
    radius: float = 6.0
    border_thickness: int = 2
    font_scale: float = 0.45


@dataclass(frozen=True)
class TextMark:
    """Free-standing text; (x, y) is the baseline origin."""

    text: str
    x: float
    y: float
    color: Color = (255, 255, 255)
    font_scale: float = 0.6
    thickness: int = 1


Mark = RoundedRectMark | CircleMark | BadgeMark | LabelBoxMark | TextMark

__all__ = [
    "Color",
    "DrawStyle",
    "Mark",
    "RoundedRectMark",
    "CircleMark",
    "BadgeMark",
    "LabelBoxMark",
    "TextMark",
]
