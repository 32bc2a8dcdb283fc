"""
Terminal color capability profiles and RGB to SGR conversion.

Glyph colors are emitted as SGR parameters matching what the terminal
advertises: 24-bit true color, the xterm 256-color palette, the 16 basic
ANSI colors, or nothing at all.
"""

from enum import Enum
from typing import List
import numpy as np


CSI = "\033["
RESET = "\033[0m"

# xterm default values for the 16 basic colors
ANSI16_PALETTE = np.array([
    (0, 0, 0), (205, 0, 0), (0, 205, 0), (205, 205, 0),
    (0, 0, 238), (205, 0, 205), (0, 205, 205), (229, 229, 229),
    (127, 127, 127), (255, 0, 0), (0, 255, 0), (255, 255, 0),
    (92, 92, 255), (255, 0, 255), (0, 255, 255), (255, 255, 255),
], dtype=np.int32)

# Channel levels of the 6x6x6 cube (indices 16-231)
CUBE_LEVELS = np.array([0, 95, 135, 175, 215, 255], dtype=np.int32)


class ColorProfile(Enum):
    """Color capability of the output terminal."""
    TRUECOLOR = "truecolor"
    ANSI256 = "256"
    ANSI = "16"
    NONE = "none"

    @classmethod
    def from_colors(cls, number_of_colors: int) -> "ColorProfile":
        """Pick a profile from a terminal's advertised color count."""
        if number_of_colors >= 1 << 24:
            return cls.TRUECOLOR
        if number_of_colors >= 256:
            return cls.ANSI256
        if number_of_colors >= 8:
            return cls.ANSI
        return cls.NONE


def rgb_to_ansi256(rgb: np.ndarray) -> np.ndarray:
    """
    Map RGB values to the nearest xterm 256-color index.

    Both the color cube and the grayscale ramp are considered and the
    closer of the two candidates wins.
    """
    rgb = np.asarray(rgb, dtype=np.int32)

    cube_idx = np.where(rgb < 48, 0, np.where(rgb < 115, 1, (rgb - 35) // 40))
    cube_rgb = CUBE_LEVELS[cube_idx]
    cube_code = 16 + 36 * cube_idx[..., 0] + 6 * cube_idx[..., 1] + cube_idx[..., 2]

    avg = rgb.sum(axis=-1) // 3
    gray_idx = np.clip((avg - 3) // 10, 0, 23)
    gray_val = 8 + 10 * gray_idx
    gray_code = 232 + gray_idx

    cube_dist = ((rgb - cube_rgb) ** 2).sum(axis=-1)
    gray_dist = ((rgb - gray_val[..., None]) ** 2).sum(axis=-1)

    return np.where(gray_dist < cube_dist, gray_code, cube_code)


def rgb_to_ansi16(rgb: np.ndarray) -> np.ndarray:
    """Map RGB values to the nearest of the 16 basic ANSI colors (0-15)."""
    rgb = np.asarray(rgb, dtype=np.int32)
    diff = rgb[..., None, :] - ANSI16_PALETTE
    return (diff ** 2).sum(axis=-1).argmin(axis=-1)


def _sgr_params(rgb: np.ndarray, profile: ColorProfile, background: bool) -> List[str]:
    flat = np.asarray(rgb, dtype=np.int32).reshape(-1, 3)

    if profile is ColorProfile.TRUECOLOR:
        lead = "48;2" if background else "38;2"
        return [f"{lead};{r};{g};{b}" for r, g, b in flat.tolist()]

    if profile is ColorProfile.ANSI256:
        lead = "48;5" if background else "38;5"
        return [f"{lead};{code}" for code in rgb_to_ansi256(flat).tolist()]

    if profile is ColorProfile.ANSI:
        codes = []
        for idx in rgb_to_ansi16(flat).tolist():
            code = 30 + idx if idx < 8 else 90 + idx - 8
            codes.append(str(code + 10 if background else code))
        return codes

    return [""] * len(flat)


def sgr_foreground(rgb: np.ndarray, profile: ColorProfile) -> List[str]:
    """
    SGR parameter strings setting the foreground to each RGB value.

    Args:
        rgb: Array with a trailing axis of 3 channels
        profile: Terminal color profile

    Returns:
        Flat list of parameter strings ("" when the profile has no color)
    """
    return _sgr_params(rgb, profile, background=False)


def sgr_background(rgb: np.ndarray, profile: ColorProfile) -> List[str]:
    """SGR parameter strings setting the background to each RGB value."""
    return _sgr_params(rgb, profile, background=True)
