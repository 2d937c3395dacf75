"""Camera frame to detector input conversion.

A camera pushes :class:`CameraImage` objects (raw planes plus per-frame
metadata). Detectors consume :class:`InputImage` objects: the plane bytes
concatenated in order, tagged with size, rotation, pixel format and the
stride of the first plane.

Supported pixel formats:

- ``NV21``: full-resolution Y plane followed by interleaved V/U at half
  resolution (Android's default camera format).
- ``BGRA8888``: packed 4 bytes per pixel (iOS camera format).
- ``BGR888``: packed 3 bytes per pixel (OpenCV's native layout).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import cv2
import numpy as np

from faceoverlay.errors import FrameConversionError
from faceoverlay.types import ImageRotation, Size


class ImageFormat(Enum):
    """Pixel format tag carried with every frame."""

    NV21 = "nv21"
    BGRA8888 = "bgra8888"
    BGR888 = "bgr888"

    @classmethod
    def from_string(cls, value: str) -> "ImageFormat":
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(
                f"Unsupported image format {value!r}. "
                f"Choose from: {', '.join(f.value for f in cls)}"
            ) from None


_BYTES_PER_PIXEL = {
    ImageFormat.NV21: 1,  # luma row; chroma rows share the stride
    ImageFormat.BGRA8888: 4,
    ImageFormat.BGR888: 3,
}


@dataclass(frozen=True)
class Plane:
    """One image plane as delivered by the camera."""

    data: bytes
    bytes_per_row: int


@dataclass(frozen=True)
class CameraImage:
    """A raw camera frame.

    Attributes:
        planes: Image planes in format order.
        width: Frame width in pixels.
        height: Frame height in pixels.
        format: Pixel format of the planes.
        sensor_rotation: Sensor orientation in degrees (0/90/180/270).
    """

    planes: Sequence[Plane]
    width: int
    height: int
    format: ImageFormat = ImageFormat.NV21
    sensor_rotation: int = 0


@dataclass(frozen=True)
class InputImageMetadata:
    size: Size
    rotation: ImageRotation
    format: ImageFormat
    bytes_per_row: int


@dataclass(frozen=True)
class InputImage:
    """Encoded detector input: concatenated plane bytes plus metadata."""

    data: bytes
    metadata: InputImageMetadata

    @property
    def upright_size(self) -> Size:
        size = self.metadata.size
        if self.metadata.rotation.swaps_axes:
            return Size(size.height, size.width)
        return size


def expected_byte_count(fmt: ImageFormat, bytes_per_row: int, height: int) -> int:
    if fmt is ImageFormat.NV21:
        return bytes_per_row * height * 3 // 2
    return bytes_per_row * height


def convert_camera_image(image: CameraImage) -> InputImage:
    """Encode a camera frame for the detector.

    Raises:
        FrameConversionError: On missing or empty planes, an unsupported
            format, odd NV21 dimensions, or a byte count that does not fit
            the format.
    """
    if not isinstance(image.format, ImageFormat):
        raise FrameConversionError(f"Unsupported pixel format: {image.format!r}")
    if not image.planes:
        raise FrameConversionError("Camera image has no planes")
    if any(len(plane.data) == 0 for plane in image.planes):
        raise FrameConversionError("Camera image has an empty plane")
    if image.width <= 0 or image.height <= 0:
        raise FrameConversionError(
            f"Invalid frame size {image.width}x{image.height}"
        )
    if image.format is ImageFormat.NV21 and (image.width % 2 or image.height % 2):
        raise FrameConversionError(
            f"NV21 needs even dimensions, got {image.width}x{image.height}"
        )

    bytes_per_row = image.planes[0].bytes_per_row
    min_stride = image.width * _BYTES_PER_PIXEL[image.format]
    if bytes_per_row < min_stride:
        raise FrameConversionError(
            f"Stride {bytes_per_row} too small for {image.width}px {image.format.value}"
        )

    data = b"".join(plane.data for plane in image.planes)
    expected = expected_byte_count(image.format, bytes_per_row, image.height)
    if len(data) < expected:
        raise FrameConversionError(
            f"Expected at least {expected} bytes for {image.format.value}, got {len(data)}"
        )

    metadata = InputImageMetadata(
        size=Size(image.width, image.height),
        rotation=ImageRotation.from_degrees(image.sensor_rotation),
        format=image.format,
        bytes_per_row=bytes_per_row,
    )
    return InputImage(data=data, metadata=metadata)


_ROTATE_CODES = {
    ImageRotation.ROTATION_90: cv2.ROTATE_90_CLOCKWISE,
    ImageRotation.ROTATION_180: cv2.ROTATE_180,
    ImageRotation.ROTATION_270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def rotate_upright(image: np.ndarray, rotation: ImageRotation) -> np.ndarray:
    code = _ROTATE_CODES.get(rotation)
    if code is None:
        return image
    return cv2.rotate(image, code)


def decode_input_image(image: InputImage) -> np.ndarray:
    """Decode detector input into an upright BGR array (H, W, 3).

    Raises:
        FrameConversionError: If the buffer does not fit the metadata.
    """
    meta = image.metadata
    width, height = int(meta.size.width), int(meta.size.height)
    stride = meta.bytes_per_row
    expected = expected_byte_count(meta.format, stride, height)
    buf = np.frombuffer(image.data, dtype=np.uint8)
    if buf.size < expected:
        raise FrameConversionError(
            f"Buffer holds {buf.size} bytes, {expected} required"
        )
    buf = buf[:expected]

    if meta.format is ImageFormat.NV21:
        yuv = buf.reshape(height * 3 // 2, stride)[:, :width]
        bgr = cv2.cvtColor(np.ascontiguousarray(yuv), cv2.COLOR_YUV2BGR_NV21)
    elif meta.format is ImageFormat.BGRA8888:
        rows = buf.reshape(height, stride)[:, : width * 4]
        bgr = cv2.cvtColor(rows.reshape(height, width, 4), cv2.COLOR_BGRA2BGR)
    else:
        rows = buf.reshape(height, stride)[:, : width * 3]
        bgr = np.ascontiguousarray(rows.reshape(height, width, 3))

    return rotate_upright(bgr, meta.rotation)


def camera_image_from_bgr(
    frame: np.ndarray,
    sensor_rotation: int = 0,
    image_format: ImageFormat = ImageFormat.NV21,
) -> CameraImage:
    """Package an OpenCV BGR frame as a camera image in ``image_format``.

    NV21 needs even dimensions; odd frames lose their last row/column.
    """
    if image_format is ImageFormat.NV21:
        h, w = frame.shape[:2]
        frame = frame[: h - h % 2, : w - w % 2]
        h, w = frame.shape[:2]
        i420 = cv2.cvtColor(frame, cv2.COLOR_BGR2YUV_I420).reshape(-1)
        luma = i420[: w * h]
        u = i420[w * h : w * h + w * h // 4]
        v = i420[w * h + w * h // 4 :]
        vu = np.empty(u.size * 2, dtype=np.uint8)
        vu[0::2] = v
        vu[1::2] = u
        planes = (Plane(luma.tobytes(), w), Plane(vu.tobytes(), w))
    elif image_format is ImageFormat.BGRA8888:
        bgra = cv2.cvtColor(frame, cv2.COLOR_BGR2BGRA)
        h, w = bgra.shape[:2]
        planes = (Plane(bgra.tobytes(), w * 4),)
    else:
        h, w = frame.shape[:2]
        planes = (Plane(np.ascontiguousarray(frame).tobytes(), w * 3),)

    return CameraImage(
        planes=planes,
        width=w,
        height=h,
        format=image_format,
        sensor_rotation=sensor_rotation,
    )


__all__ = [
    "ImageFormat",
    "Plane",
    "CameraImage",
    "InputImageMetadata",
    "InputImage",
    "expected_byte_count",
    "convert_camera_image",
    "rotate_upright",
    "decode_input_image",
    "camera_image_from_bgr",
]
