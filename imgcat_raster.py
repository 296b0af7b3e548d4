#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Half-Block Rasterizer
======================================
Copyright (c) 2025 PNGN-Tec LLC

Image to Terminal Cells
=======================
Turns a decoded pixel grid into rows of colored half-block glyphs.

Terminal cells are roughly twice as tall as they are wide, so each
cell shows two vertically stacked pixels: the upper half block ``▀``
is painted with the top pixel as foreground and the bottom pixel as
background.

Pipeline
========
1. Resize to ``2 * target_rows`` pixels high (Lanczos by default),
   width following the aspect ratio
2. Flatten alpha: fully transparent pixels become black
3. Pair rows (y, y+1) into cells, quantizing both colors for the
   active terminal profile

The result is a ``TerminalFrame``, immutable and rendered to text once.

Module Interface
================
- PixelGrid: RGBA numpy array wrapper produced by the decoder
- Cell / TerminalFrame: Rasterized output
- rasterize(): Resize and convert in one call
- frame_from_pixels(): Convert an already sized grid
"""

import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Tuple

import numpy as np
from PIL import Image

from config import ColorProfile, ScalingAlgorithm
from imgcat_color import RESET, TerminalColor, quantize, sgr
from imgcat_scale import ScalingContext, scale_image

# Configure logging
logger = logging.getLogger('imgcat_raster')

UPPER_HALF_BLOCK = "▀"


# ============================================================================
# PIXEL GRID
# ============================================================================

@dataclass(frozen=True, eq=False)
class PixelGrid:
    """
    Read-only grid of RGBA samples.

    Attributes:
        pixels: uint8 array shaped (height, width, 4)
    """
    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected an (H, W, 4) RGBA array, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 samples, got {self.pixels.dtype}")
        if self.pixels.shape[0] == 0 or self.pixels.shape[1] == 0:
            raise ValueError("Pixel grid cannot be empty")

        frozen = np.array(self.pixels, copy=True)
        frozen.setflags(write=False)
        object.__setattr__(self, 'pixels', frozen)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelGrid":
        """Build a grid from any PIL image, converting to RGBA."""
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.asarray(image, dtype=np.uint8))

    def to_image(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.pixels))


# ============================================================================
# TERMINAL FRAME
# ============================================================================

@dataclass(frozen=True)
class Cell:
    """One glyph with its two colors."""
    glyph: str
    foreground: TerminalColor
    background: TerminalColor

    def render(self) -> str:
        prefix = sgr(self.foreground, self.background)
        if not prefix:
            return self.glyph
        return f"{prefix}{self.glyph}{RESET}"


@dataclass(frozen=True)
class TerminalFrame:
    """
    Fully rasterized image, one tuple of cells per text row.

    ``text`` is the escape-coded rendition, built on first access.
    """
    rows: Tuple[Tuple[Cell, ...], ...] = field(default_factory=tuple)

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return len(self.rows[0]) if self.rows else 0

    @cached_property
    def text(self) -> str:
        return "\n".join("".join(cell.render() for cell in row) for row in self.rows)


# ============================================================================
# RASTERIZATION
# ============================================================================

def _flatten_alpha(pixels: np.ndarray) -> np.ndarray:
    """Drop the alpha channel; fully transparent samples turn black."""
    rgb = np.array(pixels[..., :3], copy=True)
    rgb[pixels[..., 3] == 0] = 0
    return rgb


def frame_from_pixels(grid: PixelGrid, profile: ColorProfile,
                      glyph: str = UPPER_HALF_BLOCK) -> TerminalFrame:
    """
    Pair pixel rows into half-block cells.

    An odd trailing row is duplicated so it becomes a cell whose top
    and bottom share one color.

    Args:
        grid: Pixels already sized for the terminal
        profile: Active terminal color profile
        glyph: Glyph drawn in every cell

    Returns:
        TerminalFrame with ceil(height / 2) rows and ``width`` columns
    """
    rgb = _flatten_alpha(grid.pixels)
    if rgb.shape[0] % 2:
        rgb = np.concatenate([rgb, rgb[-1:]], axis=0)

    rows = []
    for top_row, bottom_row in zip(rgb[0::2].tolist(), rgb[1::2].tolist()):
        rows.append(tuple(
            Cell(glyph, quantize(tuple(top), profile), quantize(tuple(bottom), profile))
            for top, bottom in zip(top_row, bottom_row)
        ))
    return TerminalFrame(tuple(rows))


def rasterize(pixels: PixelGrid, target_rows: int, profile: ColorProfile,
              algorithm: ScalingAlgorithm = ScalingAlgorithm.LANCZOS,
              glyph: str = UPPER_HALF_BLOCK) -> TerminalFrame:
    """
    Resample a pixel grid and convert it to terminal cells.

    The grid is resized to exactly ``2 * target_rows`` pixels high, so
    the frame always has ``target_rows`` rows. The width follows the
    aspect ratio and is not limited by the terminal width.

    Args:
        pixels: Decoded image
        target_rows: Text rows available for the image
        profile: Active terminal color profile
        algorithm: Resampling filter
        glyph: Glyph drawn in every cell

    Returns:
        TerminalFrame of ``target_rows`` rows

    Raises:
        ValueError: If target_rows is less than one
    """
    if target_rows < 1:
        raise ValueError(f"Target rows must be positive: {target_rows}")

    context = ScalingContext.for_height(pixels.width, pixels.height, 2 * target_rows, algorithm)
    resized = PixelGrid.from_image(scale_image(pixels.to_image(), context))
    frame = frame_from_pixels(resized, profile, glyph)

    logger.debug(f"Rasterized {pixels.width}x{pixels.height} into "
                 f"{frame.width}x{frame.height} cells ({profile.value})")
    return frame
