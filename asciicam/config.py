"""
Session configuration built from command-line arguments.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .converter import RenderConfig
from .errors import ConfigError
from .greenscreen import DEFAULT_THRESHOLD


# Used when the output is not a terminal and no size was given
DEFAULT_WIDTH = 125
DEFAULT_HEIGHT = 50

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def parse_hex_color(value: str) -> Tuple[int, int, int]:
    """
    Parse a ``#rgb`` or ``#rrggbb`` color.

    Raises:
        ConfigError: If the value is not a hex color
    """
    match = _HEX_COLOR.match(value.strip())
    if not match:
        raise ConfigError(f"Invalid color: {value!r} (expected #rrggbb or #rgb)")

    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)

    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


@dataclass(frozen=True)
class AppConfig:
    """Everything a session needs, validated once before it starts."""
    device: str = "/dev/video0"
    sample_dir: str = "bgsample"
    generate: bool = False
    greenscreen: bool = False
    threshold: float = DEFAULT_THRESHOLD
    ansi: bool = False
    color: Optional[Tuple[int, int, int]] = None
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    cam_width: int = 320
    cam_height: int = 180
    show_fps: bool = False
    gst: bool = False
    gst_pipeline: str = ""
    mock: bool = False

    def __post_init__(self):
        for name in ("width", "height", "cam_width", "cam_height"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")
        if self.threshold < 0:
            raise ConfigError(f"threshold must not be negative, got {self.threshold}")
        if self.gst and not self.gst_pipeline.strip():
            raise ConfigError("--gst-pipeline is required when --gst is set")

    @property
    def use_background(self) -> bool:
        """Whether a background sample is loaded for subtraction."""
        return self.greenscreen and not self.generate

    @property
    def render_config(self) -> RenderConfig:
        # Half blocks pack two pixel rows into each terminal line
        height = self.height * 2 if self.ansi else self.height
        return RenderConfig(width=self.width, height=height, ansi=self.ansi, color=self.color)

    @classmethod
    def from_args(cls, args, terminal_size: Optional[Tuple[int, int]] = None) -> "AppConfig":
        """
        Build a configuration from parsed arguments.

        Args:
            args: argparse namespace from the CLI parser
            terminal_size: (columns, rows) used for an unset output size

        Raises:
            ConfigError: If any value is invalid
        """
        color = parse_hex_color(args.color) if args.color else None

        term_width, term_height = terminal_size or (0, 0)
        width = args.width or term_width or DEFAULT_WIDTH
        height = args.height or term_height or DEFAULT_HEIGHT

        return cls(
            device=args.dev,
            sample_dir=args.sample,
            generate=args.gen,
            greenscreen=args.greenscreen,
            threshold=args.threshold,
            ansi=args.ansi,
            color=color,
            width=width,
            height=height,
            cam_width=args.cam_width,
            cam_height=args.cam_height,
            show_fps=args.fps,
            gst=args.gst,
            gst_pipeline=args.gst_pipeline or "",
            mock=args.mock,
        )
