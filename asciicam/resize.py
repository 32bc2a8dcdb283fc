"""
Image resampling used between decode and rendering.
"""

from typing import Protocol
from PIL import Image


class Resizer(Protocol):
    """Anything that can resample an image to an exact size."""

    def resize(self, image: Image.Image, width: int, height: int) -> Image.Image:
        ...


class BilinearResizer:
    """Bilinear resampling backed by Pillow."""

    def resize(self, image: Image.Image, width: int, height: int) -> Image.Image:
        if image.size == (width, height):
            return image.copy()
        return image.resize((width, height), Image.Resampling.BILINEAR)
