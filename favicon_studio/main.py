"""FastAPI application for the favicon generator."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, Response
from fastapi.templating import Jinja2Templates

from favicon_studio.config import get_settings
from favicon_studio.services.generator import (
    ICO_MEDIA_TYPE,
    PNG_MEDIA_TYPE,
    FaviconService,
    FaviconSet,
    data_url,
)

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

BACKGROUND_COLORS = [
    {"name": "Blue", "value": "#3B82F6"},
    {"name": "Purple", "value": "#8B5CF6"},
    {"name": "Pink", "value": "#EC4899"},
    {"name": "Green", "value": "#10B981"},
    {"name": "Orange", "value": "#F59E0B"},
    {"name": "Red", "value": "#EF4444"},
    {"name": "Indigo", "value": "#6366F1"},
    {"name": "Teal", "value": "#14B8A6"},
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting Favicon Studio (sizes: {settings.favicon_sizes})")
    if settings.font_configured:
        logger.info(f"Letter icons use font {settings.font_path}")
    else:
        logger.info("Letter icons use the default bold font")
    yield
    logger.info("Favicon Studio stopped")


app = FastAPI(
    title="Favicon Studio",
    description="Generate favicons from an image or a letter",
    version="0.1.0",
    lifespan=lifespan,
)

# Setup templates
templates_path = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=templates_path)


def get_favicon_service() -> FaviconService:
    """Dependency providing a favicon service for the configured sizes."""
    return FaviconService()


async def read_upload(file: UploadFile) -> bytes:
    """Read an uploaded image, rejecting non-images and oversized files."""
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Uploaded file must be an image")

    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Uploaded image is too large")
    return data


async def generate_image_set(
    file: UploadFile, border_radius: int, service: FaviconService
) -> FaviconSet:
    data = await read_upload(file)
    try:
        return await service.generate_from_image(data, border_radius)
    except ValueError as e:
        logger.warning(f"Rejected image upload {file.filename!r}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error generating favicons from {file.filename!r}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate favicons")


async def generate_letter_set(
    letter: str,
    background_color: str,
    text_color: str,
    border_radius: int,
    service: FaviconService,
) -> FaviconSet:
    try:
        return await service.generate_from_letter(
            letter, background_color, text_color, border_radius
        )
    except ValueError as e:
        logger.warning(f"Rejected letter icon request: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error generating letter favicons: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate favicons")


def attachment(content: bytes, filename: str, media_type: str) -> Response:
    """Build a download response for generated files."""
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(content)),
        },
    )


def render_favicon_grid(request: Request, favicon_set: FaviconSet) -> HTMLResponse:
    return templates.TemplateResponse(
        request, "partials/favicon_grid.html", {"favicon_set": favicon_set}
    )


# Routes
@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Generator page with the image upload and letter icon forms."""
    context = {
        "sizes": settings.favicon_sizes,
        "background_colors": BACKGROUND_COLORS,
        "default_background_color": settings.default_background_color,
        "default_text_color": settings.default_text_color,
        "default_border_radius": settings.default_border_radius,
    }
    return templates.TemplateResponse(request, "index.html", context)


@app.get("/health")
async def health():
    """Liveness check."""
    return {"status": "ok"}


@app.post("/api/generate/image", response_class=HTMLResponse)
async def generate_from_image(
    request: Request,
    file: UploadFile = File(...),
    border_radius: int = Form(settings.default_border_radius, ge=0, le=50),
    service: FaviconService = Depends(get_favicon_service),
):
    """Generate favicons from an uploaded image and show them."""
    favicon_set = await generate_image_set(file, border_radius, service)
    return render_favicon_grid(request, favicon_set)


@app.post("/api/generate/letter", response_class=HTMLResponse)
async def generate_from_letter(
    request: Request,
    letter: str = Form(..., min_length=1),
    background_color: str = Form(settings.default_background_color),
    text_color: str = Form(settings.default_text_color),
    border_radius: int = Form(settings.default_border_radius, ge=0, le=50),
    service: FaviconService = Depends(get_favicon_service),
):
    """Generate favicons from a single letter and show them."""
    favicon_set = await generate_letter_set(
        letter, background_color, text_color, border_radius, service
    )
    return render_favicon_grid(request, favicon_set)


@app.post("/api/download/image")
async def download_image_zip(
    file: UploadFile = File(...),
    border_radius: int = Form(settings.default_border_radius, ge=0, le=50),
    service: FaviconService = Depends(get_favicon_service),
):
    """Download every favicon size plus favicon.ico as a zip archive."""
    favicon_set = await generate_image_set(file, border_radius, service)
    return attachment(favicon_set.to_zip(), settings.zip_filename, "application/zip")


@app.post("/api/download/letter")
async def download_letter_zip(
    letter: str = Form(..., min_length=1),
    background_color: str = Form(settings.default_background_color),
    text_color: str = Form(settings.default_text_color),
    border_radius: int = Form(settings.default_border_radius, ge=0, le=50),
    service: FaviconService = Depends(get_favicon_service),
):
    """Download every letter favicon size plus favicon.ico as a zip archive."""
    favicon_set = await generate_letter_set(
        letter, background_color, text_color, border_radius, service
    )
    return attachment(favicon_set.to_zip(), settings.zip_filename, "application/zip")


@app.post("/api/download/image/ico")
async def download_image_ico(
    file: UploadFile = File(...),
    border_radius: int = Form(settings.default_border_radius, ge=0, le=50),
    service: FaviconService = Depends(get_favicon_service),
):
    """Download only the multi-resolution favicon.ico for an uploaded image."""
    favicon_set = await generate_image_set(file, border_radius, service)
    return attachment(favicon_set.ico, favicon_set.ico_filename, ICO_MEDIA_TYPE)


@app.post("/api/download/letter/ico")
async def download_letter_ico(
    letter: str = Form(..., min_length=1),
    background_color: str = Form(settings.default_background_color),
    text_color: str = Form(settings.default_text_color),
    border_radius: int = Form(settings.default_border_radius, ge=0, le=50),
    service: FaviconService = Depends(get_favicon_service),
):
    """Download only the multi-resolution favicon.ico for a letter icon."""
    favicon_set = await generate_letter_set(
        letter, background_color, text_color, border_radius, service
    )
    return attachment(favicon_set.ico, favicon_set.ico_filename, ICO_MEDIA_TYPE)


@app.post("/api/preview", response_class=HTMLResponse)
async def preview(
    file: UploadFile = File(...),
    border_radius: int = Form(settings.default_border_radius, ge=0, le=50),
    service: FaviconService = Depends(get_favicon_service),
):
    """Preview an uploaded image with the chosen border radius."""
    data = await read_upload(file)
    try:
        png = await service.preview_image(data, border_radius)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error rendering preview for {file.filename!r}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to render preview")

    size = service.preview_size
    return HTMLResponse(
        f'<img src="{data_url(png, PNG_MEDIA_TYPE)}" width="{size}" height="{size}" alt="Preview">'
    )
