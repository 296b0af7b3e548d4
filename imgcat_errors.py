#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Error Types
============================
Copyright (c) 2025 PNGN-Tec LLC

Every failure that can happen while turning an image reference into a
terminal frame is one of these. They all end up on the same screen:
the viewer shows ``str(error)`` and waits for a key.
"""

from typing import Optional


class ImgcatError(Exception):
    """Base class for image loading failures."""

    kind = "error"

    def __init__(self, message: str, reference: Optional[str] = None):
        super().__init__(message)
        self.reference = reference


class SourceUnavailable(ImgcatError):
    """The file could not be opened or the HTTP fetch failed."""

    kind = "source unavailable"


class DecodeFailed(ImgcatError):
    """The bytes are not an image format the decoder understands."""

    kind = "decode failed"


class Unsupported(ImgcatError):
    """The image decoded but cannot be represented as RGBA pixels."""

    kind = "unsupported"
