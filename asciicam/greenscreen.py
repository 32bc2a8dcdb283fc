"""
Virtual greenscreen: background samples and perceptual background removal.

A session can either record a run of background samples to disk, or load
one of them and mask every pixel of the live image that is perceptually
close (CIE Lab distance) to the same pixel of the sample.
"""

import logging
from pathlib import Path
from typing import Optional, Union
import cv2
import numpy as np
from PIL import Image

from .errors import SampleError
from .resize import Resizer


logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.13

# Generate mode records indices 0..SAMPLE_COUNT-1
SAMPLE_COUNT = 101

# Late enough for the camera's exposure to have settled
BACKGROUND_SAMPLE_INDEX = 40


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """
    Convert 8-bit sRGB values to CIE Lab (D65).

    L is scaled to 0..1 and a/b by 1/100 so that distances compare against
    thresholds like 0.13.

    Args:
        rgb: uint8 array with a trailing axis of 3 channels

    Returns:
        float32 array of the same shape holding L, a, b
    """
    rgb = np.asarray(rgb)
    shape = rgb.shape
    flat = rgb.reshape(-1, 1, 3).astype(np.float32) / 255.0
    lab = cv2.cvtColor(flat, cv2.COLOR_RGB2Lab) / 100.0
    return lab.reshape(shape)


def lab_distance(lab_a: np.ndarray, lab_b: np.ndarray) -> np.ndarray:
    """Euclidean distance between two arrays of Lab colors (see rgb_to_lab)."""
    diff = lab_a - lab_b
    return np.sqrt((diff ** 2).sum(axis=-1))


class BackgroundSubtractor:
    """
    Masks pixels that match a reference background.

    Pixels whose Lab distance to the background is below ``threshold`` become
    transparent black (0, 0, 0, 0); everything else is left untouched.
    With no background the subtractor does nothing.
    """

    def __init__(
        self,
        background: Optional[Image.Image] = None,
        threshold: float = DEFAULT_THRESHOLD
    ):
        """
        Initialize the subtractor.

        Args:
            background: Reference image, already sized to the output
            threshold: Absolute Lab distance cutoff
        """
        self.threshold = threshold
        self._size = None
        self._background_lab = None

        if background is not None:
            self._size = background.size
            self._background_lab = rgb_to_lab(np.asarray(background.convert("RGB")))

    @property
    def enabled(self) -> bool:
        return self._background_lab is not None

    def apply(self, image: Image.Image) -> Image.Image:
        """
        Make background pixels transparent black, modifying ``image`` in place.

        Args:
            image: RGBA image of the same size as the background

        Returns:
            The same image object
        """
        if not self.enabled:
            return image

        if image.size != self._size:
            raise ValueError(
                f"Image size {image.size} does not match background size {self._size}"
            )
        if image.mode != "RGBA":
            raise ValueError(f"Background subtraction needs an RGBA image, got {image.mode}")

        pixels = np.array(image)
        distance = lab_distance(rgb_to_lab(pixels[..., :3]), self._background_lab)

        pixels[distance < self.threshold] = 0
        image.paste(Image.fromarray(pixels))

        return image


class SampleStore:
    """
    Directory of numbered PNG background samples (``<dir>/<index>.png``).
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path(self, index: int) -> Path:
        return self.directory / f"{index}.png"

    def save(self, index: int, image: Image.Image) -> Path:
        """
        Write one sample.

        Raises:
            SampleError: If the directory or file cannot be written
        """
        path = self.path(index)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            image.save(path, format="PNG")
        except OSError as e:
            raise SampleError(f"Could not write sample {path}: {e}") from e
        return path

    def load(self, index: int = BACKGROUND_SAMPLE_INDEX) -> Image.Image:
        """
        Read one sample as an RGBA image.

        Raises:
            SampleError: If the file is missing or not a readable image
        """
        path = self.path(index)
        try:
            with Image.open(path) as img:
                return img.convert("RGBA")
        except OSError as e:
            raise SampleError(f"Could not load background sample {path}: {e}") from e

    def load_background(
        self,
        width: int,
        height: int,
        resizer: Resizer,
        index: int = BACKGROUND_SAMPLE_INDEX
    ) -> Image.Image:
        """Load a sample and resample it to the output dimensions."""
        sample = self.load(index)
        logger.info("Loaded background sample %s (%dx%d)", self.path(index), *sample.size)
        return resizer.resize(sample, width, height)


class SampleRecorder:
    """Saves consecutive frames until the sample quota is reached."""

    def __init__(self, store: SampleStore, count: int = SAMPLE_COUNT):
        self.store = store
        self.count = count
        self._next_index = 0

    @property
    def recorded(self) -> int:
        return self._next_index

    @property
    def done(self) -> bool:
        return self._next_index >= self.count

    def add(self, image: Image.Image) -> bool:
        """
        Save ``image`` under the next index.

        Returns:
            True once the last sample has been written
        """
        if self.done:
            return True

        path = self.store.save(self._next_index, image)
        logger.info("Saved background sample %d/%d to %s", self._next_index + 1, self.count, path)
        self._next_index += 1

        return self.done
