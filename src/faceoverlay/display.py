"""FrameDisplay - Live cv2 window."""

import cv2
import numpy as np

_QUIT_KEYS = (27, ord("q"))  # ESC, q


class FrameDisplay:
    """Live display window using cv2.imshow. ESC or q to quit.

    Args:
        title: Window title.
        wait_ms: cv2.waitKey delay in milliseconds.
    """

    def __init__(self, title: str = "Face Detection", wait_ms: int = 1):
        self._title = title
        self._wait_ms = wait_ms

    @property
    def title(self) -> str:
        return self._title

    def show(self, canvas: np.ndarray) -> bool:
        """Display a canvas.

        Returns:
            True to continue, False if the user asked to quit.
        """
        cv2.imshow(self._title, canvas)
        key = cv2.waitKey(self._wait_ms) & 0xFF
        return key not in _QUIT_KEYS

    def close(self) -> None:
        """Close the display window."""
        cv2.destroyAllWindows()
