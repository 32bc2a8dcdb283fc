"""
Terminal display module for rendering ASCII frames.

Handles the alternate screen, cursor visibility and positioning through
blessed, and works out which color profile the terminal supports.
"""

import os
import sys
from contextlib import contextmanager
from typing import Optional, Tuple
from blessed import Terminal

from .palette import RESET, ColorProfile


class Display:
    """
    Terminal display manager for live ASCII output.

    Each frame is drawn from the home position of the alternate screen so
    the previous frame is overwritten in place.
    """

    def __init__(self, output_stream=None, terminal=None):
        """
        Initialize display.

        Args:
            output_stream: Output stream (defaults to stdout)
            terminal: blessed Terminal to use (created on the stream if None)
        """
        self.output = output_stream or sys.stdout
        self.term = terminal if terminal is not None else Terminal(stream=self.output)

    def color_profile(self) -> ColorProfile:
        """Color profile matching what the terminal advertises."""
        return ColorProfile.from_colors(self.term.number_of_colors)

    @contextmanager
    def session(self):
        """
        Switch to the alternate screen with a hidden cursor.

        The terminal is restored when the block exits, however it exits.
        """
        self.output.write(self.term.hide_cursor + self.term.enter_fullscreen)
        self.output.flush()
        try:
            yield self
        finally:
            self.output.write(RESET + self.term.exit_fullscreen + self.term.normal_cursor)
            self.output.flush()

    def render(self, content: str, fps: Optional[float] = None):
        """
        Draw a frame at the top-left corner.

        Args:
            content: Rendered frame text
            fps: Frame rate to print below the frame, if any
        """
        self.output.write(self.term.home)
        self.output.write(content)

        if fps is not None:
            self.output.write(f"FPS: {fps:.0f}" + self.term.clear_eol)

        self.output.flush()

    @staticmethod
    def get_terminal_size(stream=None) -> Optional[Tuple[int, int]]:
        """Terminal dimensions (columns, rows), or None when not a terminal."""
        stream = stream or sys.stdout
        try:
            if not stream.isatty():
                return None
            size = os.get_terminal_size(stream.fileno())
        except (OSError, ValueError):
            return None
        return (size.columns, size.lines)
