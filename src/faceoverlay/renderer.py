"""Mark renderer: draws Mark objects onto canvases using cv2.

This module converts declarative Mark data into actual pixels.
All rendering is done on a copy of the input canvas.

Example:
    >>> from faceoverlay.renderer import render_marks
    >>> from faceoverlay.marks import RoundedRectMark
    >>> marks = [RoundedRectMark(left=40, top=30, right=200, bottom=220)]
    >>> output = render_marks(canvas, marks)
"""

from __future__ import annotations

import logging
import math
from dataclasses import astuple

import cv2
import numpy as np

from faceoverlay.marks import (
    BadgeMark,
    CircleMark,
    Color,
    DrawStyle,
    LabelBoxMark,
    Mark,
    RoundedRectMark,
    TextMark,
)

logger = logging.getLogger(__name__)

FONT = cv2.FONT_HERSHEY_SIMPLEX


def render_marks(
    canvas: np.ndarray,
    marks: list[Mark],
    style: DrawStyle | None = None,
) -> np.ndarray:
    """Render a list of marks onto a canvas.

    Args:
        canvas: BGR image (H, W, 3). A copy is made internally.
        marks: Marks from a skin, in drawing order.
        style: Optional style overrides.

    Returns:
        Annotated canvas (copy), or ``canvas`` itself when there is
        nothing to draw.
    """
    if not marks:
        return canvas

    output = canvas.copy()
    for mark in marks:
        if not _is_finite(mark):
            # Degenerate frame/canvas geometry upstream.
            logger.debug("Skipping non-finite mark %r", mark)
            continue
        if isinstance(mark, RoundedRectMark):
            _render_rounded_rect(output, mark, style)
        elif isinstance(mark, CircleMark):
            _render_circle(output, mark, style)
        elif isinstance(mark, BadgeMark):
            _render_badge(output, mark, style)
        elif isinstance(mark, LabelBoxMark):
            _render_label_box(output, mark, style)
        elif isinstance(mark, TextMark):
            _render_text(output, mark, style)

    return output


def _is_finite(mark: Mark) -> bool:
    return all(
        math.isfinite(v) for v in astuple(mark) if isinstance(v, float)
    )


def _px(value: float) -> int:
    return int(round(value))


def _resolve_color(mark_color: Color, style: DrawStyle | None) -> Color:
    """Resolve color: style override > mark color."""
    if style and style.color is not None:
        return style.color
    return mark_color


def _resolve_font_scale(mark_scale: float, style: DrawStyle | None) -> float:
    if style and style.font_scale is not None:
        return style.font_scale
    return mark_scale


def draw_rounded_rect(
    image: np.ndarray,
    left: float,
    top: float,
    right: float,
    bottom: float,
    radius: float,
    color: Color,
    thickness: int,
) -> None:
    """Draw an outlined (thickness > 0) or filled (thickness < 0) rounded rect."""
    x1, y1, x2, y2 = _px(left), _px(top), _px(right), _px(bottom)
    r = int(max(0.0, min(radius, (x2 - x1) / 2, (y2 - y1) / 2)))

    if r == 0:
        cv2.rectangle(image, (x1, y1), (x2, y2), color, thickness)
        return

    corners = (
        ((x1 + r, y1 + r), 180),
        ((x2 - r, y1 + r), 270),
        ((x2 - r, y2 - r), 0),
        ((x1 + r, y2 - r), 90),
    )

    if thickness < 0:
        cv2.rectangle(image, (x1 + r, y1), (x2 - r, y2), color, -1)
        cv2.rectangle(image, (x1, y1 + r), (x2, y2 - r), color, -1)
        for center, _ in corners:
            cv2.circle(image, center, r, color, -1, cv2.LINE_AA)
        return

    cv2.line(image, (x1 + r, y1), (x2 - r, y1), color, thickness, cv2.LINE_AA)
    cv2.line(image, (x2, y1 + r), (x2, y2 - r), color, thickness, cv2.LINE_AA)
    cv2.line(image, (x1 + r, y2), (x2 - r, y2), color, thickness, cv2.LINE_AA)
    cv2.line(image, (x1, y1 + r), (x1, y2 - r), color, thickness, cv2.LINE_AA)
    for center, start_angle in corners:
        cv2.ellipse(image, center, (r, r), start_angle, 0, 90, color, thickness, cv2.LINE_AA)


def draw_centered_text(
    image: np.ndarray,
    text: str,
    cx: float,
    cy: float,
    color: Color,
    font_scale: float,
    thickness: int = 1,
) -> None:
    (w, h), _ = cv2.getTextSize(text, FONT, font_scale, thickness)
    origin = (_px(cx - w / 2), _px(cy + h / 2))
    cv2.putText(image, text, origin, FONT, font_scale, color, thickness, cv2.LINE_AA)


def _render_rounded_rect(
    image: np.ndarray,
    mark: RoundedRectMark,
    style: DrawStyle | None,
) -> None:
    color = _resolve_color(mark.color, style)
    thickness = style.thickness if style and style.thickness is not None else mark.thickness
    draw_rounded_rect(
        image, mark.left, mark.top, mark.right, mark.bottom, mark.radius, color, thickness
    )


def _render_circle(
    image: np.ndarray,
    mark: CircleMark,
    style: DrawStyle | None,
) -> None:
    color = _resolve_color(mark.color, style)
    cv2.circle(
        image, (_px(mark.x), _px(mark.y)), _px(mark.radius), color, mark.thickness, cv2.LINE_AA
    )


def _render_badge(
    image: np.ndarray,
    mark: BadgeMark,
    style: DrawStyle | None,
) -> None:
    center = (_px(mark.x), _px(mark.y))
    radius = _px(mark.radius)
    cv2.circle(image, center, radius, _resolve_color(mark.color, style), -1, cv2.LINE_AA)
    cv2.circle(image, center, radius, mark.ring_color, mark.ring_thickness, cv2.LINE_AA)

    show_labels = style.show_labels if style else True
    if mark.text and show_labels:
        draw_centered_text(
            image,
            mark.text,
            mark.x,
            mark.y,
            mark.text_color,
            _resolve_font_scale(mark.font_scale, style),
            thickness=2,
        )


def _render_label_box(
    image: np.ndarray,
    mark: LabelBoxMark,
    style: DrawStyle | None,
) -> None:
    right = mark.left + mark.width
    bottom = mark.top + mark.height

    draw_rounded_rect(
        image, mark.left, mark.top, right, bottom, mark.radius, mark.background, -1
    )
    draw_rounded_rect(
        image,
        mark.left,
        mark.top,
        right,
        bottom,
        mark.radius,
        _resolve_color(mark.border_color, style),
        mark.border_thickness,
    )

    show_labels = style.show_labels if style else True
    if mark.text and show_labels:
        draw_centered_text(
            image,
            mark.text,
            mark.left + mark.width / 2,
            mark.top + mark.height / 2,
            mark.text_color,
            _resolve_font_scale(mark.font_scale, style),
        )


def _render_text(
    image: np.ndarray,
    mark: TextMark,
    style: DrawStyle | None,
) -> None:
    cv2.putText(
        image,
        mark.text,
        (_px(mark.x), _px(mark.y)),
        FONT,
        _resolve_font_scale(mark.font_scale, style),
        _resolve_color(mark.color, style),
        mark.thickness,
        cv2.LINE_AA,
    )


__all__ = ["render_marks", "draw_rounded_rect", "draw_centered_text"]
