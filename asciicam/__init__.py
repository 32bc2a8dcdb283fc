"""
ASCII Cam - Live camera feed rendered as colored text in the terminal

Converts a webcam or GStreamer video stream to text art with support for:
- YUYV422 and RGB888 capture buffers
- Character rendering from a 15-glyph density ramp
- Colored half-block (ANSI) rendering at double vertical resolution
- True color, 256 color and 16 color terminals
- Virtual greenscreen using recorded background samples
- Rolling FPS display
"""

__version__ = "1.0.0"

from .errors import (
    AsciiCamError,
    ConfigError,
    SourceStartError,
    CaptureError,
    EndOfStream,
    SampleError,
    DecodeError,
)
from .frames import PixelFormat, RawFrame, FrameDecoder, yuyv422_to_image, rgb888_to_image
from .resize import Resizer, BilinearResizer
from .greenscreen import BackgroundSubtractor, SampleStore, SampleRecorder
from .converter import AsciiRenderer, RenderConfig, GLYPH_RAMP
from .palette import ColorProfile
from .fps import FPSEstimator
from .camera import FrameSource, DeviceCamera, PipelineCamera, MockCamera
from .display import Display
from .pipeline import FramePipeline

__all__ = [
    # Errors
    "AsciiCamError",
    "ConfigError",
    "SourceStartError",
    "CaptureError",
    "EndOfStream",
    "SampleError",
    "DecodeError",
    # Frames
    "PixelFormat",
    "RawFrame",
    "FrameDecoder",
    "yuyv422_to_image",
    "rgb888_to_image",
    # Processing
    "Resizer",
    "BilinearResizer",
    "BackgroundSubtractor",
    "SampleStore",
    "SampleRecorder",
    "AsciiRenderer",
    "RenderConfig",
    "GLYPH_RAMP",
    "ColorProfile",
    "FPSEstimator",
    "FramePipeline",
    # Sources and output
    "FrameSource",
    "DeviceCamera",
    "PipelineCamera",
    "MockCamera",
    "Display",
]
