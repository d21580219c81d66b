"""Pillow rasterizer producing square PNG favicons.

Icons are drawn onto a square RGBA canvas and clipped to a rounded
rectangle whose corner radius is a percentage of the icon size.
"""

import io
import logging

from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFont, UnidentifiedImageError

from favicon_studio.config import get_settings

logger = logging.getLogger(__name__)

MAX_BORDER_RADIUS = 50

UTF8_BOM = b"\xef\xbb\xbf"
SVG_PROLOG_PREFIXES = (b"<?xml", b"<!--", b"<!doctype")

# Bold sans-serif faces commonly installed on Linux, macOS and Windows
DEFAULT_FONT_CANDIDATES = (
    "DejaVuSans-Bold.ttf",
    "Arial Bold.ttf",
    "arialbd.ttf",
)


class RasterizeError(ValueError):
    """Raised when an icon cannot be rendered from the given input."""

    pass


def is_svg(data: bytes) -> bool:
    """Sniff whether uploaded bytes are an SVG document.

    Accepts a bare <svg> root, or a prolog (XML declaration, comment or
    doctype) followed by <svg> within the first kilobyte. A UTF-8 BOM is
    ignored.
    """
    head = data[:1024].removeprefix(UTF8_BOM).lstrip().lower()
    if head.startswith(b"<svg"):
        return True
    return head.startswith(SVG_PROLOG_PREFIXES) and b"<svg" in head


def _render_svg(data: bytes, size: int) -> bytes:
    # cairosvg needs the native cairo library, so only load it for SVG input
    import cairosvg

    return cairosvg.svg2png(bytestring=data, output_width=size, output_height=size)


def load_source_image(data: bytes) -> Image.Image:
    """Decode an uploaded image (raster or SVG) into an RGBA image."""
    if not data:
        raise RasterizeError("Uploaded image is empty")

    settings = get_settings()
    if is_svg(data):
        try:
            data = _render_svg(data, settings.svg_render_size)
        except Exception as e:
            raise RasterizeError(f"Could not render SVG image: {e}") from e

    try:
        image = Image.open(io.BytesIO(data))
    except Image.DecompressionBombError as e:
        raise RasterizeError("Uploaded image has too many pixels") from e
    except (UnidentifiedImageError, OSError) as e:
        raise RasterizeError("Uploaded file is not a supported image") from e

    width, height = image.size
    if width * height > settings.max_source_pixels:
        raise RasterizeError(
            f"Uploaded image is too large ({width}x{height}, "
            f"limit {settings.max_source_pixels:,} pixels)"
        )

    try:
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise RasterizeError("Uploaded file is not a supported image") from e

    return image.convert("RGBA")


def _check_border_radius(border_radius: float) -> None:
    if not 0 <= border_radius <= MAX_BORDER_RADIUS:
        raise RasterizeError(f"Border radius must be between 0 and {MAX_BORDER_RADIUS} percent")


def _check_size(size: int) -> None:
    if size < 1:
        raise RasterizeError(f"Icon size must be positive, got {size}")


def apply_rounded_corners(image: Image.Image, border_radius: float) -> Image.Image:
    """Clip an RGBA image to a rounded square, keeping existing transparency."""
    width, height = image.size
    radius = round(min(width, height) * border_radius / 100)
    if radius == 0:
        return image

    mask = Image.new("L", (width, height), 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, width - 1, height - 1), radius=radius, fill=255)
    image.putalpha(ImageChops.multiply(image.getchannel("A"), mask))
    return image


def to_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


def render_image_icon(source: Image.Image, size: int, border_radius: float = 0) -> bytes:
    """Scale a source image into a size x size rounded PNG icon."""
    _check_size(size)
    _check_border_radius(border_radius)

    icon = source.convert("RGBA").resize((size, size), Image.Resampling.LANCZOS)
    return to_png(apply_rounded_corners(icon, border_radius))


def load_font(size: int, font_path: str | None = None) -> ImageFont.FreeTypeFont:
    """Load a bold TrueType font, falling back to Pillow's bundled font."""
    candidates = (font_path,) if font_path else DEFAULT_FONT_CANDIDATES
    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            logger.debug(f"Font not available: {candidate}")

    if font_path:
        raise RasterizeError(f"Could not load font: {font_path}")
    return ImageFont.load_default(size=size)


def parse_color(value: str) -> tuple[int, ...]:
    """Parse a CSS-style colour string into an RGBA tuple."""
    try:
        return ImageColor.getcolor(value, "RGBA")
    except ValueError as e:
        raise RasterizeError(f"Invalid color: {value!r}") from e


def render_letter_icon(
    letter: str,
    size: int,
    background_color: str,
    text_color: str,
    border_radius: float = 0,
    font_path: str | None = None,
    letter_scale: float | None = None,
) -> bytes:
    """Draw a single upper-cased letter centred on a coloured rounded square."""
    _check_size(size)
    _check_border_radius(border_radius)

    letter = letter.strip()[:1].upper()
    if not letter:
        raise RasterizeError("A letter is required")

    background = parse_color(background_color)
    foreground = parse_color(text_color)

    settings = get_settings()
    scale = letter_scale if letter_scale is not None else settings.letter_scale
    font = load_font(max(1, round(size * scale)), font_path or settings.font_path or None)

    icon = Image.new("RGBA", (size, size), background)
    ImageDraw.Draw(icon).text((size / 2, size / 2), letter, fill=foreground, font=font, anchor="mm")
    return to_png(apply_rounded_corners(icon, border_radius))
