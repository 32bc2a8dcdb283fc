#!/usr/bin/env python3
"""
Command-line interface for the ASCII camera.

Runs a live capture session that renders every frame as colored text in
the terminal, or records background samples for the virtual greenscreen.
"""

import argparse
import logging
import signal
import sys
import threading
from typing import Optional

from .camera import DeviceCamera, FrameSource, MockCamera, PipelineCamera
from .config import AppConfig
from .converter import AsciiRenderer
from .display import Display
from .errors import AsciiCamError, EndOfStream
from .fps import FPSEstimator
from .frames import FrameDecoder
from .greenscreen import BackgroundSubtractor, SampleRecorder, SampleStore
from .logging_setup import setup_logging
from .pipeline import FramePipeline
from .resize import BilinearResizer


logger = logging.getLogger(__name__)


class ASCIICamApp:
    """
    Main application class for ASCII Camera.

    Handles source selection, session setup, the frame loop and cleanup.
    """

    def __init__(
        self,
        config: AppConfig,
        display: Optional[Display] = None,
        stop_event: Optional[threading.Event] = None
    ):
        """
        Initialize the application.

        Args:
            config: Validated session configuration
            display: Terminal sink (stdout if None)
            stop_event: Cancellation flag checked once per frame
        """
        self.config = config
        self.display = display or Display()
        self.stop_event = stop_event or threading.Event()

    @property
    def running(self) -> bool:
        return not self.stop_event.is_set()

    def stop(self):
        """Ask the loop to finish after the current frame."""
        self.stop_event.set()

    def _setup_signal_handlers(self) -> dict:
        """Set up signal handlers for graceful shutdown."""
        def handler(signum, frame):
            logger.info("Shutting down...")
            self.stop()

        previous = {}
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, handler)
        return previous

    def create_source(self) -> FrameSource:
        """Pick the frame source the configuration asks for."""
        config = self.config
        if config.mock:
            return MockCamera(width=config.cam_width, height=config.cam_height)
        if config.gst:
            return PipelineCamera(
                config.gst_pipeline, width=config.cam_width, height=config.cam_height
            )
        return DeviceCamera(config.device, width=config.cam_width, height=config.cam_height)

    def create_pipeline(self) -> FramePipeline:
        """Build the per-frame pipeline, loading the background sample if needed."""
        config = self.config
        render_config = config.render_config
        resizer = BilinearResizer()

        background = None
        if config.use_background:
            background = SampleStore(config.sample_dir).load_background(
                render_config.width, render_config.height, resizer
            )

        renderer = AsciiRenderer(render_config, self.display.color_profile())
        subtractor = BackgroundSubtractor(background, config.threshold)

        return FramePipeline(renderer, subtractor=subtractor, resizer=resizer)

    def run(self) -> int:
        """
        Run a full session until the source ends or a stop is requested.

        Returns:
            Exit code (0 for success)
        """
        previous = {}
        if threading.current_thread() is threading.main_thread():
            previous = self._setup_signal_handlers()

        try:
            with self.create_source() as source:
                width, height = source.resolution
                logger.info("Capturing %dx%d frames", width, height)

                if self.config.generate:
                    return self.record_samples(source)

                pipeline = self.create_pipeline()
                with self.display.session():
                    self.render_loop(source, pipeline)
        finally:
            for signum, old_handler in previous.items():
                signal.signal(signum, old_handler)

        return 0

    def render_loop(self, source: FrameSource, pipeline: FramePipeline):
        """Capture, process and draw frames until stopped or the stream ends."""
        fps = FPSEstimator()

        while self.running:
            try:
                frame = source.read()
            except EndOfStream:
                return

            if frame is None:
                continue

            content = pipeline.process(frame)
            rate = fps.tick() if self.config.show_fps else None
            self.display.render(content, fps=rate)

    def record_samples(self, source: FrameSource) -> int:
        """
        Save decoded frames as numbered background samples.

        Returns:
            Exit code (0 for success)
        """
        store = SampleStore(self.config.sample_dir)
        recorder = SampleRecorder(store)
        decoder = FrameDecoder()

        while self.running:
            try:
                frame = source.read()
            except EndOfStream:
                break

            if frame is None:
                continue

            if recorder.add(decoder.decode(frame)):
                break

        print(f"Saved {recorder.recorded} background samples to {store.directory}")
        return 0


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="asciicam",
        description="ASCII Camera - Render a live camera feed as colored text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  asciicam                          Stream /dev/video0 as ASCII art
  asciicam --ansi --fps             Half-block rendering with FPS counter
  asciicam --color '#00ff00'        Draw every glyph in green
  asciicam --gen                    Record background samples to ./bgsample
  asciicam --greenscreen            Hide the recorded background
  asciicam --gst --gst-pipeline "videotestsrc ! video/x-raw,format=RGB,width=320,height=180 ! fdsink fd=1"
  asciicam --mock                   Test with mock camera (no webcam needed)
"""
    )

    # Source options
    parser.add_argument(
        "--dev",
        default="/dev/video0",
        help="Video device (default: /dev/video0)"
    )
    parser.add_argument(
        "--cam-width",
        type=int,
        default=320,
        help="Capture width (default: 320)"
    )
    parser.add_argument(
        "--cam-height",
        type=int,
        default=180,
        help="Capture height (default: 180)"
    )
    parser.add_argument(
        "--gst",
        action="store_true",
        help="Read frames from a GStreamer pipeline instead of the device"
    )
    parser.add_argument(
        "--gst-pipeline",
        default="",
        help="GStreamer pipeline that writes raw RGB frames to fdsink fd=1"
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use mock camera for testing"
    )

    # Greenscreen
    parser.add_argument(
        "--sample",
        default="bgsample",
        help="Where to find/store the background samples (default: bgsample)"
    )
    parser.add_argument(
        "--gen",
        action="store_true",
        help="Record new background samples and exit"
    )
    parser.add_argument(
        "--greenscreen",
        action="store_true",
        help="Remove the recorded background"
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=0.13,
        help="Greenscreen Lab distance threshold (default: 0.13)"
    )

    # Display options
    parser.add_argument(
        "--ansi",
        action="store_true",
        help="Render with colored half blocks instead of characters"
    )
    parser.add_argument(
        "--color",
        help="Draw all characters in a single color (#rrggbb)"
    )
    parser.add_argument(
        "-w", "--width",
        type=int,
        default=0,
        help="Output width in characters (default: terminal width)"
    )
    parser.add_argument(
        "--height",
        type=int,
        default=0,
        help="Output height in lines (default: terminal height)"
    )
    parser.add_argument(
        "--fps",
        action="store_true",
        help="Show FPS"
    )

    # Logging
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)"
    )
    parser.add_argument(
        "--log-file",
        help="Also write log records to this file"
    )

    return parser


def main(argv=None) -> int:
    """Main entry point for CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    try:
        config = AppConfig.from_args(args, Display.get_terminal_size())
        return ASCIICamApp(config).run()
    except AsciiCamError as e:
        logger.debug("Session failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
