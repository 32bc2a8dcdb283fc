"""
Frame sources for live capture.

Provides one interface over three producers of raw frame buffers:
- DeviceCamera: a V4L2 camera opened through OpenCV, streaming YUYV
- PipelineCamera: a GStreamer child process writing raw RGB888 to stdout
- MockCamera: animated test patterns for running without hardware
"""

import logging
import shlex
import subprocess
import sys
from typing import List, Optional, Tuple
import cv2
import numpy as np

from .errors import CaptureError, ConfigError, EndOfStream, SourceStartError
from .frames import PixelFormat, RawFrame, frame_byte_count


logger = logging.getLogger(__name__)

GST_LAUNCH = "gst-launch-1.0"


def decode_fourcc(fourcc: int) -> str:
    """Decode an OpenCV fourcc integer to its four-character code."""
    return "".join([chr((fourcc >> 8 * i) & 0xFF) for i in range(4)])


class FrameSource:
    """
    Base class for anything that yields raw frames.

    ``read`` returns a RawFrame, or None when no frame is available this
    time round and the caller should simply try again. A source that has
    finished cleanly raises EndOfStream; fatal failures raise CaptureError.
    """

    def open(self):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError

    def read(self) -> Optional[RawFrame]:
        raise NotImplementedError

    @property
    def resolution(self) -> Tuple[int, int]:
        """Frame size (width, height) the source actually produces."""
        raise NotImplementedError

    def __enter__(self):
        """Context manager entry - opens the source."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - releases the source."""
        self.close()
        return False


class DeviceCamera(FrameSource):
    """
    V4L2 capture device streaming raw YUYV frames.

    The device may not honour the requested size; ``resolution`` reports
    what was actually negotiated.
    """

    def __init__(
        self,
        device: str = "/dev/video0",
        width: int = 320,
        height: int = 180,
        timeout: float = 1.0
    ):
        """
        Initialize the camera.

        Args:
            device: Device node path
            width: Requested capture width
            height: Requested capture height
            timeout: Seconds to wait for a frame before reporting a timeout
        """
        self.device = device
        self.requested_width = width
        self.requested_height = height
        self.timeout = timeout
        self._cap: Optional[cv2.VideoCapture] = None
        self._width = 0
        self._height = 0

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self._width, self._height)

    def open(self):
        """
        Open the device and negotiate a YUYV stream.

        Raises:
            SourceStartError: If the device cannot be opened or has no YUYV mode
        """
        if not sys.platform.startswith("linux"):
            raise SourceStartError(
                "Device capture only works on Linux, use the GStreamer pipeline mode instead"
            )

        cap = cv2.VideoCapture(self.device, cv2.CAP_V4L2)
        if not cap.isOpened():
            cap.release()
            raise SourceStartError(f"Could not open camera {self.device}")

        self._cap = cap
        try:
            self._negotiate()
        except Exception:
            self.close()
            raise

    def _negotiate(self):
        cap = self._cap

        cap.set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*"YUYV"))
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.requested_width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.requested_height)

        fourcc = decode_fourcc(int(cap.get(cv2.CAP_PROP_FOURCC)))
        if fourcc != "YUYV":
            raise SourceStartError(
                f"Camera {self.device} has no YUYV format (negotiated {fourcc!r})"
            )

        self._width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        self._height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if self._width <= 0 or self._height <= 0:
            raise SourceStartError(
                f"Camera {self.device} reported an invalid size {self._width}x{self._height}"
            )

        # One buffer in flight: an unread frame is overwritten, never queued
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
        # Hand out the raw YUYV bytes instead of converted BGR
        cap.set(cv2.CAP_PROP_CONVERT_RGB, 0)

        timeout_prop = getattr(cv2, "CAP_PROP_READ_TIMEOUT_MSEC", None)
        if timeout_prop is not None:
            cap.set(timeout_prop, self.timeout * 1000)

        logger.info(
            "Camera %s streaming %s %dx%d (requested %dx%d)",
            self.device, fourcc, self._width, self._height,
            self.requested_width, self.requested_height
        )

    def close(self):
        """Stop streaming and release the device."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def read(self) -> Optional[RawFrame]:
        """
        Wait for the next frame.

        Returns:
            RawFrame, or None on a wait timeout or an empty buffer

        Raises:
            CaptureError: If the device stopped or the frame cannot be read
        """
        cap = self._cap
        if cap is None:
            raise CaptureError(f"Camera {self.device} is not open")

        if not cap.grab():
            if cap.isOpened():
                logger.warning("Timeout waiting for a frame from %s", self.device)
                return None
            raise CaptureError(f"Failed waiting for a frame from {self.device}")

        ok, frame = cap.retrieve()
        if not ok:
            raise CaptureError(f"Failed to read a frame from {self.device}")

        if frame is None or frame.size == 0:
            return None

        # Some backends ignore CONVERT_RGB and deliver BGR anyway
        if frame.ndim == 3 and frame.shape[2] == 3:
            rgb = np.ascontiguousarray(frame[:, :, ::-1])
            return RawFrame(rgb.tobytes(), PixelFormat.RGB888, frame.shape[1], frame.shape[0])

        return RawFrame(frame.tobytes(), PixelFormat.YUYV422, self._width, self._height)


class PipelineCamera(FrameSource):
    """
    GStreamer child process emitting raw RGB888 frames on stdout.

    The pipeline description is split like a shell command line and passed
    to ``gst-launch-1.0 -e``; it must end in something like ``fdsink fd=1``.
    """

    def __init__(
        self,
        pipeline: str,
        width: int = 320,
        height: int = 180,
        executable: str = GST_LAUNCH
    ):
        """
        Initialize the pipeline source.

        Args:
            pipeline: GStreamer pipeline description
            width: Frame width the pipeline produces
            height: Frame height the pipeline produces
            executable: Launcher binary

        Raises:
            ConfigError: If the pipeline description is empty or malformed
        """
        if not pipeline or not pipeline.strip():
            raise ConfigError("A GStreamer pipeline is required in pipeline mode")

        try:
            args = shlex.split(pipeline)
        except ValueError as e:
            raise ConfigError(f"Invalid GStreamer pipeline: {e}") from e

        self.pipeline = pipeline
        self.width = width
        self.height = height
        self.command: List[str] = [executable, "-e", *args]
        self._process: Optional[subprocess.Popen] = None
        self._closed = False

    @property
    def frame_size(self) -> int:
        return frame_byte_count(PixelFormat.RGB888, self.width, self.height)

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def open(self):
        """
        Launch the pipeline process.

        Raises:
            SourceStartError: If the process cannot be started
        """
        logger.info("Starting pipeline: %s", " ".join(self.command))
        try:
            self._process = subprocess.Popen(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
            )
        except OSError as e:
            raise SourceStartError(f"Failed to start GStreamer pipeline: {e}") from e

    def close(self):
        """Close the output pipe and kill the process; later calls do nothing."""
        process = self._process
        if process is None or self._closed:
            return
        self._closed = True

        try:
            if process.stdout is not None:
                process.stdout.close()
        finally:
            if process.poll() is None:
                process.kill()
            process.wait()

    def read(self) -> Optional[RawFrame]:
        """
        Read exactly one frame from the pipeline.

        Raises:
            EndOfStream: When the process closes its output
            CaptureError: If reading from the pipe fails
        """
        if self._process is None or self._closed:
            raise CaptureError("GStreamer pipeline is not running")

        stdout = self._process.stdout
        size = self.frame_size
        buf = bytearray()

        try:
            while len(buf) < size:
                chunk = stdout.read(size - len(buf))
                if not chunk:
                    break
                buf += chunk
        except (OSError, ValueError) as e:
            raise CaptureError(f"Failed to read from GStreamer stdout: {e}") from e

        if not buf:
            logger.info("GStreamer pipeline ended")
            raise EndOfStream("GStreamer pipeline ended")

        if len(buf) < size:
            logger.warning(
                "GStreamer pipeline ended mid-frame (%d of %d bytes)", len(buf), size
            )
            raise EndOfStream("GStreamer pipeline ended mid-frame")

        return RawFrame(bytes(buf), PixelFormat.RGB888, self.width, self.height)


class MockCamera(FrameSource):
    """
    Mock camera for testing without a real webcam.

    Generates animated RGB888 test patterns.
    """

    PATTERNS = ("gradient", "noise", "checkerboard")

    def __init__(
        self,
        width: int = 320,
        height: int = 180,
        pattern: str = "gradient"
    ):
        """
        Initialize mock camera.

        Args:
            width: Frame width
            height: Frame height
            pattern: Test pattern type ('gradient', 'noise', 'checkerboard')
        """
        if pattern not in self.PATTERNS:
            raise ConfigError(f"Unknown test pattern: {pattern}")

        self.width = width
        self.height = height
        self.pattern = pattern
        self._frame_count = 0
        self._is_open = False

    @property
    def resolution(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def open(self):
        self._is_open = True

    def close(self):
        self._is_open = False

    def read(self) -> Optional[RawFrame]:
        """Generate the next test pattern frame."""
        if not self._is_open:
            raise CaptureError("Mock camera is not open")

        self._frame_count += 1

        if self.pattern == "noise":
            frame = self._generate_noise()
        elif self.pattern == "checkerboard":
            frame = self._generate_checkerboard()
        else:
            frame = self._generate_gradient()

        return RawFrame(frame.tobytes(), PixelFormat.RGB888, self.width, self.height)

    def _generate_gradient(self) -> np.ndarray:
        """Generate an animated horizontal gradient."""
        offset = (self._frame_count * 2) % 256
        values = (np.arange(self.width) * 256 // self.width + offset) % 256

        row = np.stack([(values + 170) % 256, (values + 85) % 256, values], axis=-1)
        return np.broadcast_to(row, (self.height, self.width, 3)).astype(np.uint8)

    def _generate_noise(self) -> np.ndarray:
        """Generate random noise."""
        return np.random.randint(0, 256, (self.height, self.width, 3), dtype=np.uint8)

    def _generate_checkerboard(self) -> np.ndarray:
        """Generate an animated checkerboard."""
        block_size = 32
        offset = (self._frame_count // 10) % 2

        ys = np.arange(self.height)[:, None] // block_size
        xs = np.arange(self.width)[None, :] // block_size
        on = (xs + ys + offset) % 2 == 1

        frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        frame[on] = 255
        return frame
