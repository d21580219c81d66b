"""Services for the favicon generator."""

from favicon_studio.services.generator import FaviconService, FaviconSet, GeneratedFavicon
from favicon_studio.services.ico import ImageEntry, encode_ico, validate_ico

__all__ = [
    "FaviconService",
    "FaviconSet",
    "GeneratedFavicon",
    "ImageEntry",
    "encode_ico",
    "validate_ico",
]
