#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Color Quantizer
================================
Copyright (c) 2025 PNGN-Tec LLC

Terminal Color Mapping
======================
Maps true-color samples to the closest color the terminal can show.

Profiles
========
- TRUECOLOR: 24-bit passthrough
- ANSI256: nearest xterm 256-color palette entry
- ANSI: nearest of the 16 standard colors
- ASCII: terminal default colors, no escape codes

Palette matching is delegated to rich's ``Color.downgrade``, which is
deterministic, so the same sample and profile always produce the same
color and golden-output tests stay stable.

The profile is detected once per process by ``detect_color_profile``
and passed explicitly to everything that renders.
"""

import logging
from functools import lru_cache
from typing import Optional, Tuple

from rich.color import Color, ColorSystem
from rich.console import Console

from config import ColorProfile, ViewerConfig

# Configure logging
logger = logging.getLogger('imgcat_color')

RGB = Tuple[int, int, int]
TerminalColor = Color

CSI = "\x1b["
RESET = CSI + "0m"

# rich color system names as reported by Console.color_system
_RICH_SYSTEMS = {
    "truecolor": ColorProfile.TRUECOLOR,
    "256": ColorProfile.ANSI256,
    "standard": ColorProfile.ANSI,
    "windows": ColorProfile.ANSI,
}

_DOWNGRADE_TARGETS = {
    ColorProfile.TRUECOLOR: ColorSystem.TRUECOLOR,
    ColorProfile.ANSI256: ColorSystem.EIGHT_BIT,
    ColorProfile.ANSI: ColorSystem.STANDARD,
}

_DEFAULT_COLOR = Color.default()


@lru_cache(maxsize=65536)
def quantize(rgb: RGB, profile: ColorProfile) -> TerminalColor:
    """
    Convert a true-color sample to the best color for ``profile``.

    Args:
        rgb: (red, green, blue) in 0-255
        profile: Active terminal color profile

    Returns:
        rich Color usable for foreground or background codes
    """
    if profile is ColorProfile.ASCII:
        return _DEFAULT_COLOR

    red, green, blue = (int(channel) for channel in rgb)
    color = Color.from_rgb(red, green, blue)
    return color.downgrade(_DOWNGRADE_TARGETS[profile])


def sgr(foreground: TerminalColor, background: TerminalColor) -> str:
    """
    Build the SGR escape that sets both cell colors.

    Returns an empty string when both colors are terminal defaults.
    """
    if foreground.is_default and background.is_default:
        return ""
    codes = foreground.get_ansi_codes(foreground=True) + background.get_ansi_codes(foreground=False)
    return f"{CSI}{';'.join(codes)}m"


def profile_from_color_system(color_system: Optional[str]) -> ColorProfile:
    """Map rich's color system name onto a ColorProfile."""
    if color_system is None:
        return ColorProfile.ASCII
    return _RICH_SYSTEMS.get(color_system, ColorProfile.ANSI)


def detect_color_profile(config: ViewerConfig, console: Optional[Console] = None) -> ColorProfile:
    """
    Detect the terminal color profile once for this process.

    An explicit IMGCAT_COLOR_PROFILE override wins. Otherwise rich
    inspects COLORTERM, TERM and NO_COLOR for the output stream.

    Args:
        config: Viewer configuration
        console: Console bound to the output stream (a new one if None)

    Returns:
        The profile to inject into the rasterizer
    """
    if config.color_profile is not None:
        logger.info(f"Color profile forced by configuration: {config.color_profile.value}")
        return config.color_profile

    console = console or Console()
    profile = profile_from_color_system(console.color_system)
    logger.info(f"Detected color profile: {profile.value} (rich: {console.color_system})")
    return profile
