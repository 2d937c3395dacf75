"""Preview composition and HUD drawing.

The preview is the camera frame aspect-filled onto the canvas with the same
:class:`~faceoverlay.mapping.CoverTransform` the overlay uses, so boxes and
pixels line up.
"""

from typing import Optional

import cv2
import numpy as np

from faceoverlay.mapping import cover_transform
from faceoverlay.renderer import FONT, draw_rounded_rect
from faceoverlay.skins import GREEN_ACCENT, WHITE
from faceoverlay.types import Size

HUD_ORIGIN = (20, 100)
HUD_PADDING = 12
HUD_BACKGROUND = (33, 33, 33)


def blank_canvas(canvas_size: Size) -> np.ndarray:
    return np.zeros((int(canvas_size.height), int(canvas_size.width), 3), dtype=np.uint8)


def compose_preview(frame: np.ndarray, canvas_size: Size, mirrored: bool) -> np.ndarray:
    """Scale ``frame`` to cover the canvas, crop the overflow, mirror if asked.

    Args:
        frame: Upright BGR frame.
        canvas_size: Destination canvas size.
        mirrored: Flip horizontally (front camera).

    Returns:
        New BGR array of exactly ``canvas_size``.
    """
    fh, fw = frame.shape[:2]
    cw, ch = int(canvas_size.width), int(canvas_size.height)
    transform = cover_transform(Size(fw, fh), Size(cw, ch))

    scaled_w = max(cw, int(round(fw * transform.scale)))
    scaled_h = max(ch, int(round(fh * transform.scale)))
    interpolation = cv2.INTER_AREA if transform.scale < 1 else cv2.INTER_LINEAR
    scaled = cv2.resize(frame, (scaled_w, scaled_h), interpolation=interpolation)

    x0 = (scaled_w - cw) // 2
    y0 = (scaled_h - ch) // 2
    canvas = scaled[y0 : y0 + ch, x0 : x0 + cw]

    if mirrored:
        canvas = cv2.flip(canvas, 1)
    return np.ascontiguousarray(canvas)


def draw_hud(canvas: np.ndarray, face_count: int) -> np.ndarray:
    """Draw the "Faces Detected" panel in place and return ``canvas``."""
    lines = [(f"Faces Detected: {face_count}", WHITE, 0.7, 2)]
    if face_count > 0:
        lines.append(("Analyzing...", GREEN_ACCENT, 0.55, 1))

    sizes = [cv2.getTextSize(text, FONT, scale, thick)[0] for text, _, scale, thick in lines]
    line_gap = 8
    width = max(w for w, _ in sizes) + 2 * HUD_PADDING
    height = sum(h for _, h in sizes) + line_gap * (len(lines) - 1) + 2 * HUD_PADDING

    x, y = HUD_ORIGIN
    draw_rounded_rect(canvas, x, y, x + width, y + height, 8, HUD_BACKGROUND, -1)

    cursor = y + HUD_PADDING
    for (text, color, scale, thick), (_, h) in zip(lines, sizes):
        cursor += h
        cv2.putText(canvas, text, (x + HUD_PADDING, cursor), FONT, scale, color, thick, cv2.LINE_AA)
        cursor += line_gap
    return canvas


def draw_not_ready(
    canvas_size: Size,
    message: Optional[str] = None,
    phase: float = 0.0,
) -> np.ndarray:
    """Placeholder shown until the camera is ready: a spinner and a message.

    Args:
        canvas_size: Canvas size.
        message: Optional status line under the spinner.
        phase: Spinner angle in degrees; advance it per tick to animate.
    """
    canvas = blank_canvas(canvas_size)
    h, w = canvas.shape[:2]
    center = (w // 2, h // 2)
    radius = max(4, min(w, h) // 16)

    cv2.circle(canvas, center, radius, (60, 60, 60), 3, cv2.LINE_AA)
    cv2.ellipse(canvas, center, (radius, radius), phase, 0, 90, GREEN_ACCENT, 3, cv2.LINE_AA)

    if message:
        (tw, th), _ = cv2.getTextSize(message, FONT, 0.6, 1)
        origin = (max(0, (w - tw) // 2), center[1] + radius + 20 + th)
        cv2.putText(canvas, message, origin, FONT, 0.6, WHITE, 1, cv2.LINE_AA)
    return canvas


__all__ = ["blank_canvas", "compose_preview", "draw_hud", "draw_not_ready"]
