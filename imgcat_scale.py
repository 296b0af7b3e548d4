#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Image Scaling Module
=====================================
Copyright (c) 2025 PNGN-Tec LLC

Image Scaling
=============
Resizes decoded images to the pixel height the terminal can show while
keeping the aspect ratio.

Core Features:
- Multi-algorithm scaling (nearest, bilinear, bicubic, lanczos)
- Lanczos (support radius 3) as the default band-limited filter
- Aspect-preserving width derived from the target height

Module Interface:
- ScalingContext: Source/target dimensions and algorithm
- ScalingContext.for_height(): Build a context from a target height
- scale_image(): Resize a PIL image according to a context
"""

import logging
from dataclasses import dataclass

from PIL import Image

from config import ScalingAlgorithm

# Configure logging
logger = logging.getLogger('imgcat_scale')

# PIL algorithm mapping
ALGORITHM_MAP = {
    ScalingAlgorithm.NEAREST: Image.Resampling.NEAREST,
    ScalingAlgorithm.BILINEAR: Image.Resampling.BILINEAR,
    ScalingAlgorithm.BICUBIC: Image.Resampling.BICUBIC,
    ScalingAlgorithm.LANCZOS: Image.Resampling.LANCZOS,
}

# Rounding bias applied to the derived width
WIDTH_ROUNDING = 0.7


@dataclass(frozen=True)
class ScalingContext:
    """
    Context for image scaling operations.

    Defines source and target dimensions and the resampling filter.
    """
    # Source dimensions
    source_width: int
    source_height: int

    # Target dimensions
    target_width: int
    target_height: int

    algorithm: ScalingAlgorithm = ScalingAlgorithm.LANCZOS

    @classmethod
    def for_height(cls, source_width: int, source_height: int, target_height: int,
                   algorithm: ScalingAlgorithm = ScalingAlgorithm.LANCZOS) -> "ScalingContext":
        """
        Build a context that scales to ``target_height`` pixels.

        The width follows from the source aspect ratio and is never
        less than one pixel.

        Raises:
            ValueError: If any dimension is not positive
        """
        if source_width <= 0 or source_height <= 0:
            raise ValueError(f"Source dimensions must be positive: {source_width}x{source_height}")
        if target_height <= 0:
            raise ValueError(f"Target height must be positive: {target_height}")

        target_width = int(source_width * target_height / source_height + WIDTH_ROUNDING)
        return cls(
            source_width=source_width,
            source_height=source_height,
            target_width=max(1, target_width),
            target_height=target_height,
            algorithm=algorithm,
        )

    @property
    def needs_scaling(self) -> bool:
        """Check if scaling is needed"""
        return (self.source_width != self.target_width or
                self.source_height != self.target_height)


def scale_image(image: Image.Image, context: ScalingContext) -> Image.Image:
    """
    Scale image according to context.

    Always returns a new image; the source is never modified.

    Args:
        image: Source PIL Image
        context: Scaling context with parameters

    Returns:
        Scaled PIL Image
    """
    if not context.needs_scaling:
        return image.copy()

    target_size = (context.target_width, context.target_height)
    logger.debug(f"Scaling {image.size} -> {target_size} with {context.algorithm.value}")
    return image.resize(target_size, ALGORITHM_MAP[context.algorithm])
