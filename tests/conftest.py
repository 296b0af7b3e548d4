"""Shared fixtures: small images written with Pillow and a fake screen."""

import numpy as np
import pytest
from PIL import Image

from config import ViewerConfig
from imgcat_raster import PixelGrid
from imgcat_state import KeyPressed


def gradient(width, height):
    """RGBA gradient: red grows left to right, green top to bottom."""
    xs = np.linspace(0, 255, width, dtype=np.uint8)
    ys = np.linspace(0, 255, height, dtype=np.uint8)
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = xs[np.newaxis, :]
    pixels[..., 1] = ys[:, np.newaxis]
    pixels[..., 2] = 64
    pixels[..., 3] = 255
    return pixels


@pytest.fixture
def config():
    return ViewerConfig()


@pytest.fixture
def grid():
    return PixelGrid(gradient(40, 20))


@pytest.fixture
def png_path(tmp_path):
    path = tmp_path / "a.png"
    Image.fromarray(gradient(40, 20)).save(path, "PNG")
    return str(path)


@pytest.fixture
def jpeg_path(tmp_path):
    path = tmp_path / "b.jpg"
    Image.fromarray(gradient(30, 30)).convert("RGB").save(path, "JPEG")
    return str(path)


@pytest.fixture
def text_path(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("definitely not an image\n")
    return str(path)


class FakeScreen:
    """Records painted text instead of touching a terminal."""

    def __init__(self, width=80, height=24, keys=()):
        self.width = width
        self.height = height
        self.keys = list(keys)
        self.painted = []

    def size(self):
        return self.width, self.height

    def paint(self, text):
        self.painted.append(text)

    def poll_resize(self):
        return None

    def start_input(self, post):
        for key in self.keys:
            post(KeyPressed(key))


class FakeLoader:
    """Collects load commands without running them."""

    def __init__(self):
        self.commands = []
        self.closed = False

    def submit(self, command):
        self.commands.append(command)

    def shutdown(self, wait=False):
        self.closed = True


@pytest.fixture
def screen():
    return FakeScreen()


@pytest.fixture
def loader():
    return FakeLoader()


@pytest.fixture
def make_screen():
    return FakeScreen
