"""Pytest configuration and fixtures."""

import io

import pytest
from PIL import Image

from favicon_studio.config import get_settings


@pytest.fixture(autouse=True)
def test_environment(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("FAVICON_SIZES", "[16, 32, 48, 64, 128, 256]")
    monkeypatch.setenv("PREVIEW_SIZE", "128")
    monkeypatch.setenv("FONT_PATH", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_png(size: int = 64, color: tuple = (59, 130, 246, 255)) -> bytes:
    """Create a solid-colour RGBA PNG image."""
    buffer = io.BytesIO()
    Image.new("RGBA", (size, size), color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_factory():
    """Factory for solid-colour PNG images."""
    return make_png


@pytest.fixture
def sample_png():
    """A 64x64 solid blue PNG upload."""
    return make_png()


@pytest.fixture
def sample_jpeg():
    """A non-square JPEG upload."""
    buffer = io.BytesIO()
    Image.new("RGB", (120, 80), (16, 185, 129)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def sample_svg():
    """A minimal SVG document."""
    return (
        b'<?xml version="1.0" encoding="UTF-8"?>\n'
        b'<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100">'
        b'<rect width="100" height="100" fill="#EC4899"/></svg>'
    )
