"""
Per-frame processing: decode, resize, subtract the background, render.
"""

from typing import Optional
from PIL import Image

from .converter import AsciiRenderer
from .frames import FrameDecoder, RawFrame
from .greenscreen import BackgroundSubtractor
from .resize import BilinearResizer, Resizer


class FramePipeline:
    """
    Runs one raw frame through every stage in order.

    The image produced by each stage is handed straight to the next one;
    nothing is kept between frames.
    """

    def __init__(
        self,
        renderer: AsciiRenderer,
        subtractor: Optional[BackgroundSubtractor] = None,
        resizer: Optional[Resizer] = None,
        decoder: Optional[FrameDecoder] = None
    ):
        self.renderer = renderer
        self.subtractor = subtractor or BackgroundSubtractor()
        self.resizer = resizer or BilinearResizer()
        self.decoder = decoder or FrameDecoder()

    def prepare(self, frame: RawFrame) -> Image.Image:
        """Decode and resize a frame to the output size, then mask its background."""
        config = self.renderer.config

        image = self.decoder.decode(frame)
        image = self.resizer.resize(image, config.width, config.height)
        return self.subtractor.apply(image)

    def process(self, frame: RawFrame) -> str:
        """Turn a raw frame into rendered terminal text."""
        return self.renderer.render(self.prepare(frame))
