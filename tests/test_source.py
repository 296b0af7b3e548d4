import io

import pytest
import requests
from PIL import Image

import imgcat_source
from config import NetworkConfig
from imgcat_errors import DecodeFailed, ImgcatError, SourceUnavailable, Unsupported
from imgcat_source import decode, is_url, load_pixels, open_source


@pytest.mark.parametrize("reference, expected", [
    ("http://example.com/a.png", True),
    ("https://example.com/a.png", True),
    ("httpbin.png", True),
    ("images/http.png", False),
    ("/tmp/a.png", False),
    ("a.jpg", False),
])
def test_url_detection_uses_http_prefix(reference, expected):
    assert is_url(reference) is expected


def test_load_png(png_path):
    grid = load_pixels(png_path)
    assert (grid.width, grid.height) == (40, 20)
    assert grid.pixels.shape == (20, 40, 4)


def test_load_jpeg_is_opaque(jpeg_path):
    grid = load_pixels(jpeg_path)
    assert (grid.width, grid.height) == (30, 30)
    assert (grid.pixels[..., 3] == 255).all()


def test_missing_file_is_source_unavailable(tmp_path):
    missing = str(tmp_path / "nope.png")
    with pytest.raises(SourceUnavailable) as info:
        load_pixels(missing)
    assert info.value.reference == missing
    assert "No such file" in str(info.value)


def test_text_file_fails_to_decode(text_path):
    with pytest.raises(DecodeFailed) as info:
        load_pixels(text_path)
    assert "cannot identify image file" in str(info.value)
    assert isinstance(info.value, ImgcatError)


def test_truncated_png_fails_to_decode(png_path, tmp_path):
    data = open(png_path, 'rb').read()
    broken = tmp_path / "broken.png"
    broken.write_bytes(data[:len(data) // 2])
    with pytest.raises(DecodeFailed):
        load_pixels(str(broken))


def test_file_closed_after_decode_failure(text_path, monkeypatch):
    opened = []

    def tracking_open(path, mode):
        handle = open(path, mode)
        opened.append(handle)
        return handle

    monkeypatch.setattr(imgcat_source, "open", tracking_open, raising=False)
    with pytest.raises(DecodeFailed):
        load_pixels(text_path)
    assert len(opened) == 1
    assert opened[0].closed


def test_decode_palette_image():
    image = Image.new("P", (4, 2))
    buffer = io.BytesIO()
    image.save(buffer, "PNG")
    buffer.seek(0)
    grid = decode(buffer, "palette.png")
    assert grid.pixels.shape == (2, 4, 4)


def test_unconvertible_image_is_unsupported(monkeypatch, png_path):
    def refuse(self, mode=None, *args, **kwargs):
        raise ValueError("conversion not supported")

    monkeypatch.setattr(Image.Image, "convert", refuse)
    with pytest.raises(Unsupported):
        load_pixels(png_path)


class FakeResponse:
    def __init__(self, content, status=200):
        self.content = content
        self.status = status
        self.headers = {'content-type': 'image/png'}
        self.closed = False

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} Client Error: Not Found")

    def close(self):
        self.closed = True


def test_url_is_fetched_with_requests(png_path, monkeypatch):
    response = FakeResponse(open(png_path, 'rb').read())
    calls = []

    def fake_get(url, headers=None, timeout=None):
        calls.append((url, headers, timeout))
        return response

    monkeypatch.setattr(imgcat_source.requests, "get", fake_get)
    network = NetworkConfig(timeout_seconds=3.0, user_agent="tester/1")

    grid = load_pixels("https://example.com/a.png", network)

    assert (grid.width, grid.height) == (40, 20)
    assert calls == [("https://example.com/a.png", {'User-Agent': "tester/1"}, 3.0)]
    assert response.closed


def test_http_error_is_source_unavailable(monkeypatch):
    response = FakeResponse(b"", status=404)
    monkeypatch.setattr(imgcat_source.requests, "get", lambda *a, **k: response)
    with pytest.raises(SourceUnavailable, match="404"):
        load_pixels("http://example.com/missing.png")


def test_connection_error_is_source_unavailable(monkeypatch):
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr(imgcat_source.requests, "get", refuse)
    with pytest.raises(SourceUnavailable, match="connection refused"):
        load_pixels("http://localhost:1/a.png")


def test_response_closed_after_decode_failure(monkeypatch):
    response = FakeResponse(b"<html>not an image</html>")
    monkeypatch.setattr(imgcat_source.requests, "get", lambda *a, **k: response)
    with pytest.raises(DecodeFailed):
        load_pixels("http://example.com/page")
    assert response.closed


def test_open_source_yields_file_stream(png_path):
    with open_source(png_path) as stream:
        assert stream.read(8) == b"\x89PNG\r\n\x1a\n"
    assert stream.closed
