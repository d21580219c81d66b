"""Favicon generation service."""

import asyncio
import base64
import io
import logging
import zipfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from favicon_studio.config import get_settings
from favicon_studio.services.ico import MAX_ICON_SIZE, ImageEntry, encode_ico
from favicon_studio.services.rasterizer import (
    load_source_image,
    render_image_icon,
    render_letter_icon,
)

logger = logging.getLogger(__name__)

PNG_MEDIA_TYPE = "image/png"
ICO_MEDIA_TYPE = "image/x-icon"


def data_url(data: bytes, media_type: str) -> str:
    """Encode bytes as a base64 data URL."""
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


@dataclass
class GeneratedFavicon:
    """A single rasterized favicon size."""

    size: int
    data: bytes

    @property
    def filename(self) -> str:
        return f"favicon-{self.size}x{self.size}.png"

    @property
    def media_type(self) -> str:
        return PNG_MEDIA_TYPE

    @property
    def data_url(self) -> str:
        return data_url(self.data, self.media_type)


@dataclass
class FaviconSet:
    """Result of one generation request: every PNG size plus the ICO file."""

    favicons: list[GeneratedFavicon]
    ico: bytes
    ico_filename: str = "favicon.ico"

    @property
    def sizes(self) -> list[int]:
        return [favicon.size for favicon in self.favicons]

    @property
    def ico_data_url(self) -> str:
        return data_url(self.ico, ICO_MEDIA_TYPE)

    def to_zip(self) -> bytes:
        """Bundle all PNG files and the ICO file into one zip archive."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for favicon in self.favicons:
                archive.writestr(favicon.filename, favicon.data)
            archive.writestr(self.ico_filename, self.ico)
        return buffer.getvalue()


def check_sizes(sizes: Sequence[int]) -> list[int]:
    """Validate a size policy: non-empty, unique, each within 1-256."""
    sizes = list(sizes)
    if not sizes:
        raise ValueError("At least one favicon size is required")
    if len(set(sizes)) != len(sizes):
        raise ValueError(f"Favicon sizes must be unique: {sizes}")
    for size in sizes:
        if not 1 <= size <= MAX_ICON_SIZE:
            raise ValueError(f"Favicon size {size} is outside 1-{MAX_ICON_SIZE}")
    return sizes


class FaviconService:
    """Render favicons at every configured size and package them."""

    def __init__(self, sizes: Sequence[int] | None = None):
        settings = get_settings()
        self.sizes = check_sizes(sizes if sizes is not None else settings.favicon_sizes)
        self.preview_size = settings.preview_size
        self.ico_filename = settings.ico_filename

    async def _render_all(self, render: Callable[[int], bytes]) -> FaviconSet:
        """Rasterize every size in worker threads, then encode the ICO.

        asyncio.gather keeps results in the order of self.sizes, so the ICO
        directory order is the size policy order regardless of which
        thread finishes first.
        """
        results = await asyncio.gather(
            *(asyncio.to_thread(render, size) for size in self.sizes)
        )
        favicons = [GeneratedFavicon(size=size, data=data) for size, data in zip(self.sizes, results)]

        ico = encode_ico([ImageEntry(size=f.size, data=f.data) for f in favicons])
        logger.info(
            f"Generated {len(favicons)} favicons ({', '.join(str(s) for s in self.sizes)}), "
            f"ico={len(ico)} bytes"
        )
        return FaviconSet(favicons=favicons, ico=ico, ico_filename=self.ico_filename)

    async def generate_from_image(self, data: bytes, border_radius: float = 0) -> FaviconSet:
        """Generate favicons from an uploaded image."""
        source = await asyncio.to_thread(load_source_image, data)
        logger.info(f"Generating favicons from {source.width}x{source.height} image")

        return await self._render_all(lambda size: render_image_icon(source, size, border_radius))

    async def generate_from_letter(
        self,
        letter: str,
        background_color: str,
        text_color: str,
        border_radius: float = 0,
    ) -> FaviconSet:
        """Generate favicons showing a single letter."""
        logger.info(f"Generating letter favicons for {letter[:1]!r}")
        return await self._render_all(
            lambda size: render_letter_icon(
                letter, size, background_color, text_color, border_radius
            )
        )

    async def preview_image(self, data: bytes, border_radius: float = 0) -> bytes:
        """Render a single preview-sized PNG of an uploaded image."""

        def render() -> bytes:
            return render_image_icon(load_source_image(data), self.preview_size, border_radius)

        return await asyncio.to_thread(render)
