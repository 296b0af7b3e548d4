#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Terminal Image Viewer
======================================
Copyright (c) 2025 PNGN-Tec LLC

Browse local images and URLs as colored half-block glyphs.

Usage
=====
    imgcat path/to/image.jpg
    imgcat *.jpg
    imgcat https://example.com/image.jpg

Keys
====
- j / down:  next image (wraps around)
- k / up:    previous image (wraps around)
- q / Ctrl-C: quit

Exit Status
===========
- 0: quit by the user, or help requested
- 1: no arguments, a failed load, or an unexpected error
"""

import logging
import sys
from typing import List, Optional

from rich.console import Console

from config import configure_logging, get_config
from imgcat_color import detect_color_profile
from imgcat_terminal import TerminalSession, Viewer

logger = logging.getLogger('imgcat')

USAGE = """imgcat [pattern|url]

Examples:
    imgcat path/to/image.jpg
    imgcat *.jpg
    imgcat https://example.com/image.jpg"""


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line entry point.

    Args:
        argv: Arguments without the program name (sys.argv[1:] if None)

    Returns:
        Process exit status
    """
    args = sys.argv[1:] if argv is None else list(argv)

    if not args:
        print(USAGE)
        return 1

    if args[0] in ("-h", "--help"):
        print(USAGE)
        return 0

    try:
        config = get_config()
    except ValueError as e:
        print(f"imgcat: invalid configuration: {e}", file=sys.stderr)
        return 1

    configure_logging(config)

    console = Console()
    if not console.is_terminal:
        print("imgcat: output is not a terminal", file=sys.stderr)
        return 1

    profile = detect_color_profile(config, console)
    logger.info(f"Starting with {len(args)} reference(s), profile={profile.value}")

    try:
        with TerminalSession(console) as screen:
            viewer = Viewer(args, profile, config, screen)
            try:
                return viewer.run()
            finally:
                viewer.close()
    except Exception as e:
        logger.exception("Viewer crashed")
        print(f"imgcat: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
