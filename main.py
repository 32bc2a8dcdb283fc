#!/usr/bin/env python3
"""
ASCII Cam - Live camera feed rendered as colored text in the terminal.

Quick start:
    python main.py                    # Stream /dev/video0
    python main.py --ansi --fps       # Half-block mode with FPS counter
    python main.py --gen              # Record background samples
    python main.py --greenscreen      # Remove the recorded background
    python main.py --mock             # Test without camera

For more options: python main.py --help
"""

import sys

from asciicam.cli import main

if __name__ == "__main__":
    sys.exit(main())
