"""
Raw frame buffers and their conversion to RGBA images.

Capture sources hand over packed byte buffers in one of two layouts:

- YUYV422: 4:2:2 subsampled, each 4-byte group ``Y0 Cb Y1 Cr`` describes
  two horizontally adjacent pixels that share one chroma pair
- RGB888: headerless row-major ``R G B`` triples

Both are decoded into a Pillow ``RGBA`` image that the rest of the
pipeline works on.
"""

from dataclasses import dataclass
from enum import Enum
import numpy as np
from PIL import Image

from .errors import DecodeError


class PixelFormat(Enum):
    """Pixel layouts a frame source can produce."""
    YUYV422 = "YUYV"
    RGB888 = "RGB3"


@dataclass(frozen=True)
class RawFrame:
    """A single captured buffer with its declared layout and size."""
    data: bytes
    pixel_format: PixelFormat
    width: int
    height: int


def frame_byte_count(pixel_format: PixelFormat, width: int, height: int) -> int:
    """Number of bytes a complete frame of this layout occupies."""
    if pixel_format is PixelFormat.YUYV422:
        return width * height * 2
    return width * height * 3


def _check_dimensions(width: int, height: int):
    if width <= 0 or height <= 0:
        raise DecodeError(f"Invalid frame size {width}x{height}")


def ycbcr_to_rgb(y: np.ndarray, cb: np.ndarray, cr: np.ndarray) -> np.ndarray:
    """
    Convert full-range (JFIF) YCbCr samples to RGB.

    Args:
        y: Luma samples (0-255)
        cb: Blue-difference chroma samples (0-255)
        cr: Red-difference chroma samples (0-255)

    Returns:
        uint8 array with a trailing RGB axis
    """
    y = y.astype(np.float32)
    cb = cb.astype(np.float32) - 128.0
    cr = cr.astype(np.float32) - 128.0

    r = y + 1.402 * cr
    g = y - 0.344136 * cb - 0.714136 * cr
    b = y + 1.772 * cb

    rgb = np.stack([r, g, b], axis=-1)
    return np.clip(np.rint(rgb), 0, 255).astype(np.uint8)


def yuyv422_to_image(data: bytes, width: int, height: int) -> Image.Image:
    """
    Decode a packed YUYV422 buffer into an opaque RGBA image.

    Args:
        data: Raw buffer, exactly width * height * 2 bytes
        width: Frame width in pixels
        height: Frame height in pixels

    Returns:
        RGBA image of size (width, height)

    Raises:
        DecodeError: If the buffer length does not match the frame size
    """
    _check_dimensions(width, height)

    expected = frame_byte_count(PixelFormat.YUYV422, width, height)
    if len(data) != expected:
        raise DecodeError(
            f"YUYV422 buffer is {len(data)} bytes, expected {expected} "
            f"for {width}x{height}"
        )
    if expected % 4:
        raise DecodeError(f"YUYV422 needs an even pixel count, got {width}x{height}")

    groups = np.frombuffer(data, dtype=np.uint8).reshape(-1, 4)

    # Y0 Cb Y1 Cr -> two pixels sharing Cb/Cr
    luma = groups[:, [0, 2]].reshape(-1)
    cb = np.repeat(groups[:, 1], 2)
    cr = np.repeat(groups[:, 3], 2)

    rgba = np.empty((width * height, 4), dtype=np.uint8)
    rgba[:, :3] = ycbcr_to_rgb(luma, cb, cr)
    rgba[:, 3] = 255

    return Image.fromarray(rgba.reshape(height, width, 4))


def rgb888_to_image(data: bytes, width: int, height: int) -> Image.Image:
    """
    Decode a packed RGB888 buffer into an RGBA image.

    A short buffer is tolerated: pixels without backing bytes are left
    transparent black. Bytes past the end of the frame are ignored.

    Args:
        data: Raw buffer, normally width * height * 3 bytes
        width: Frame width in pixels
        height: Frame height in pixels

    Returns:
        RGBA image of size (width, height)
    """
    _check_dimensions(width, height)

    pixel_count = width * height
    available = min(len(data) // 3, pixel_count)

    rgba = np.zeros((pixel_count, 4), dtype=np.uint8)
    if available:
        rgb = np.frombuffer(data, dtype=np.uint8, count=available * 3)
        rgba[:available, :3] = rgb.reshape(available, 3)
        rgba[:available, 3] = 255

    return Image.fromarray(rgba.reshape(height, width, 4))


class FrameDecoder:
    """Turns RawFrame buffers into RGBA images."""

    def decode(self, frame: RawFrame) -> Image.Image:
        """
        Decode a raw frame according to its declared pixel format.

        Args:
            frame: Captured frame

        Returns:
            RGBA image with the frame's dimensions
        """
        if frame.pixel_format is PixelFormat.YUYV422:
            return yuyv422_to_image(frame.data, frame.width, frame.height)
        elif frame.pixel_format is PixelFormat.RGB888:
            return rgb888_to_image(frame.data, frame.width, frame.height)
        raise DecodeError(f"Unsupported pixel format: {frame.pixel_format}")
