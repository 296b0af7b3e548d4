#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Image Sources
==============================
Copyright (c) 2025 PNGN-Tec LLC

Reference Resolution and Decoding
=================================
An image reference is a URL when it starts with ``http`` and a local
path otherwise. Either way it becomes a binary stream that is decoded
by Pillow into a ``PixelGrid``.

The stream is opened in a ``with`` block around the decode, so files
and HTTP responses are closed on every path including decode errors.

Error Mapping
=============
- OSError / requests.RequestException / HTTP status -> SourceUnavailable
- PIL.UnidentifiedImageError / truncated data      -> DecodeFailed
- Mode conversion failure / empty image            -> Unsupported
"""

import io
import logging
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional

import requests
from PIL import Image, UnidentifiedImageError

from config import NetworkConfig
from imgcat_errors import DecodeFailed, SourceUnavailable, Unsupported
from imgcat_raster import PixelGrid

# Configure logging
logger = logging.getLogger('imgcat_source')

URL_PREFIX = "http"


def is_url(reference: str) -> bool:
    """A reference is fetched over HTTP iff it starts with ``http``."""
    return reference.startswith(URL_PREFIX)


@contextmanager
def _open_url(url: str, network: NetworkConfig) -> Iterator[BinaryIO]:
    headers = {'User-Agent': network.user_agent}
    try:
        response = requests.get(url, headers=headers, timeout=network.timeout_seconds)
        response.raise_for_status()
    except requests.RequestException as e:
        raise SourceUnavailable(f"failed to fetch {url}: {e}", reference=url) from e

    logger.debug(f"Fetched {url}: {len(response.content)} bytes, "
                 f"content-type={response.headers.get('content-type')}")
    try:
        with io.BytesIO(response.content) as body:
            yield body
    finally:
        response.close()


@contextmanager
def _open_file(path: str) -> Iterator[BinaryIO]:
    try:
        handle = open(path, 'rb')
    except OSError as e:
        raise SourceUnavailable(f"failed to open {path}: {e}", reference=path) from e

    with handle:
        yield handle


@contextmanager
def open_source(reference: str, network: Optional[NetworkConfig] = None) -> Iterator[BinaryIO]:
    """
    Open a reference as a binary stream.

    Args:
        reference: URL or filesystem path
        network: HTTP settings (defaults if None)

    Yields:
        Readable binary stream, closed when the block exits

    Raises:
        SourceUnavailable: If the file cannot be opened or the fetch fails
    """
    if is_url(reference):
        with _open_url(reference, network or NetworkConfig()) as stream:
            yield stream
    else:
        with _open_file(reference) as stream:
            yield stream


def decode(stream: BinaryIO, reference: str = "<stream>") -> PixelGrid:
    """
    Decode an image stream into RGBA pixels.

    The first frame is used for animated formats.

    Raises:
        DecodeFailed: If the bytes are not a readable image
        Unsupported: If the image cannot be converted to RGBA
    """
    try:
        with Image.open(stream) as image:
            image.load()
            image_format = image.format
            try:
                rgba = image.convert("RGBA")
            except (ValueError, OSError) as e:
                raise Unsupported(f"{reference}: cannot convert {image.mode} image to RGBA: {e}",
                                  reference=reference) from e
    except UnidentifiedImageError as e:
        raise DecodeFailed(f"{reference}: {e}", reference=reference) from e
    except (OSError, SyntaxError) as e:
        raise DecodeFailed(f"{reference}: corrupt image data: {e}", reference=reference) from e

    if rgba.width == 0 or rgba.height == 0:
        raise Unsupported(f"{reference}: image has no pixels", reference=reference)

    logger.debug(f"Decoded {reference}: {image_format} {rgba.width}x{rgba.height}")
    return PixelGrid.from_image(rgba)


def load_pixels(reference: str, network: Optional[NetworkConfig] = None) -> PixelGrid:
    """
    Resolve, open and decode one reference.

    Args:
        reference: URL or filesystem path
        network: HTTP settings (defaults if None)

    Returns:
        Decoded PixelGrid
    """
    with open_source(reference, network) as stream:
        return decode(stream, reference)
