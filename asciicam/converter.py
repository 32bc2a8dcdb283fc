"""
Core ASCII rendering engine.

Turns an RGBA image into colored terminal text in one of two modes:
- Character mode: one glyph per pixel, picked from a density ramp by the
  alpha-weighted channel sum
- ANSI half-block mode: one upper-half-block glyph per pair of rows, top
  pixel as foreground and bottom pixel as background
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
import numpy as np
from PIL import Image

from .palette import CSI, RESET, ColorProfile, sgr_background, sgr_foreground


# Ordered by perceived density (light to dark)
GLYPH_RAMP = " .,:;i1tfLCG08@"

HALF_BLOCK = "▀"

# Maximum alpha-weighted intensity: (255 + 255 + 255) * 255 / 255
INTENSITY_SPAN = 255 * 3


@dataclass(frozen=True)
class RenderConfig:
    """
    Rendering settings fixed for the whole session.

    ``height`` is the height of the image handed to the renderer, which in
    ANSI mode is twice the number of terminal rows.
    """
    width: int
    height: int
    ansi: bool = False
    color: Optional[Tuple[int, int, int]] = None


def glyph_indices(rgba: np.ndarray, ramp_size: int = len(GLYPH_RAMP)) -> np.ndarray:
    """
    Map RGBA pixels to indices into a glyph ramp.

    The intensity (R + G + B) * A / 255 is quantized into ``ramp_size``
    buckets and rounded to the nearest bucket, so the index never decreases
    as intensity grows.

    Args:
        rgba: Array with a trailing axis of 4 channels
        ramp_size: Number of glyphs in the ramp

    Returns:
        Integer array of ramp indices in [0, ramp_size - 1]
    """
    rgba = np.asarray(rgba, dtype=np.int32)
    intensity = rgba[..., :3].sum(axis=-1) * rgba[..., 3] // 255
    bucket = INTENSITY_SPAN // (ramp_size - 1)

    index = np.floor(intensity / bucket + 0.5).astype(np.int32)
    return np.clip(index, 0, ramp_size - 1)


class AsciiRenderer:
    """
    Converts images to colored terminal text.

    The mode, output size and optional override color come from an
    immutable RenderConfig; the escape sequences follow the terminal's
    ColorProfile.
    """

    def __init__(
        self,
        config: RenderConfig,
        profile: ColorProfile = ColorProfile.TRUECOLOR,
        ramp: str = GLYPH_RAMP
    ):
        """
        Initialize the renderer.

        Args:
            config: Output size, mode and override color
            profile: Color capability of the target terminal
            ramp: Glyphs ordered by increasing density
        """
        if len(ramp) < 2:
            raise ValueError("Glyph ramp needs at least two characters")

        self.config = config
        self.profile = profile
        self.ramp = ramp

    def render(self, image: Image.Image) -> str:
        """
        Render an image sized exactly to the configured output.

        Args:
            image: RGBA image of size (config.width, config.height)

        Returns:
            Text with one line break per terminal row
        """
        expected = (self.config.width, self.config.height)
        if image.size != expected:
            raise ValueError(
                f"Image is {image.size[0]}x{image.size[1]}, "
                f"renderer expects {expected[0]}x{expected[1]}"
            )

        if image.mode != "RGBA":
            image = image.convert("RGBA")
        pixels = np.asarray(image)

        if self.config.ansi:
            return self.render_half_blocks(pixels)
        return self.render_characters(pixels)

    def _foreground_codes(self, pixels: np.ndarray) -> List[str]:
        height, width = pixels.shape[:2]
        if self.config.color is not None:
            code = sgr_foreground(np.array(self.config.color), self.profile)[0]
            return [code] * (width * height)
        return sgr_foreground(pixels[..., :3], self.profile)

    def render_characters(self, pixels: np.ndarray) -> str:
        """Render one glyph per pixel, one line per pixel row."""
        height, width = pixels.shape[:2]
        glyphs = [self.ramp[i] for i in glyph_indices(pixels, len(self.ramp)).reshape(-1).tolist()]

        if self.profile is ColorProfile.NONE:
            lines = ["".join(glyphs[y * width:(y + 1) * width]) for y in range(height)]
            return "".join(line + "\n" for line in lines)

        codes = self._foreground_codes(pixels)

        out = []
        for y in range(height):
            row = slice(y * width, (y + 1) * width)
            line = "".join(
                f"{CSI}{code}m{glyph}" for code, glyph in zip(codes[row], glyphs[row])
            )
            out.append(line + RESET + "\n")

        return "".join(out)

    def render_half_blocks(self, pixels: np.ndarray) -> str:
        """Render two pixel rows per line using the upper half block."""
        height, width = pixels.shape[:2]
        if height % 2:
            raise ValueError(f"Half-block rendering needs an even height, got {height}")

        if self.profile is ColorProfile.NONE:
            return (HALF_BLOCK * width + "\n") * (height // 2)

        top = sgr_foreground(pixels[0::2, :, :3], self.profile)
        bottom = sgr_background(pixels[1::2, :, :3], self.profile)

        out = []
        for y in range(height // 2):
            row = slice(y * width, (y + 1) * width)
            line = "".join(
                f"{CSI}{fg};{bg}m{HALF_BLOCK}" for fg, bg in zip(top[row], bottom[row])
            )
            out.append(line + RESET + "\n")

        return "".join(out)
