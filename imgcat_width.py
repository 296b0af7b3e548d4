#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Width Calculation Module
=========================================
Copyright (c) 2025 PNGN-Tec LLC

Visual Width Calculation
========================
Terminal column width of status text (reference names, error lines),
so the footer and placeholder never wrap onto a second row.

- Unicode-aware width via wcwidth (CJK, emoji, combining marks)
- Control characters count as zero columns
- Truncation that respects double-width characters

Module Interface
================
- get_width(): Visual width of a string
- fit_width(): Truncate a string to a column budget
"""

import logging
from functools import lru_cache

from wcwidth import wcwidth, wcswidth

# Configure logging
logger = logging.getLogger('imgcat_width')

ELLIPSIS = "…"


@lru_cache(maxsize=1024)
def get_width(text: str) -> int:
    """
    Get visual width of text in terminal columns.

    Args:
        text: Text to measure

    Returns:
        Visual width in columns (0 for empty/control-only text)
    """
    if not text:
        return 0

    # Fast path - no control characters
    width = wcswidth(text)
    if width >= 0:
        return width

    # Contains control characters - count char by char
    return sum(max(0, wcwidth(char)) for char in text)


def fit_width(text: str, columns: int) -> str:
    """
    Truncate text so it occupies at most ``columns`` terminal columns.

    Truncated text ends with an ellipsis. A wide character that would
    straddle the limit is dropped rather than split.

    Args:
        text: Text to fit
        columns: Available columns

    Returns:
        Text no wider than ``columns``
    """
    if columns <= 0:
        return ""
    if get_width(text) <= columns:
        return text

    budget = columns - get_width(ELLIPSIS)
    used = 0
    kept = []
    for char in text:
        char_width = max(0, wcwidth(char))
        if used + char_width > budget:
            break
        kept.append(char)
        used += char_width

    logger.debug(f"Truncated {len(text)} chars to {len(kept)} for {columns} columns")
    return "".join(kept) + ELLIPSIS
