"""
Exception types raised across the capture and render pipeline.
"""


class AsciiCamError(Exception):
    """Base class for all asciicam errors."""


class ConfigError(AsciiCamError):
    """Invalid configuration detected before the main loop starts."""


class SourceStartError(AsciiCamError):
    """A frame source could not be opened, negotiated or launched."""


class CaptureError(AsciiCamError):
    """Unrecoverable failure while waiting for or reading a frame."""


class EndOfStream(AsciiCamError):
    """The frame source finished cleanly; not an error exit."""


class SampleError(AsciiCamError):
    """Background sample files could not be read or written."""


class DecodeError(AsciiCamError, ValueError):
    """A raw buffer does not match its declared format and size."""
