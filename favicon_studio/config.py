"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

FAVICON_SIZES = [16, 32, 48, 64, 128, 256]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Size policy (order is the directory order inside favicon.ico)
    favicon_sizes: list[int] = FAVICON_SIZES
    preview_size: int = 128

    # Styling defaults
    default_border_radius: int = 20  # percent of the icon size, 0-50
    default_background_color: str = "#3B82F6"
    default_text_color: str = "#FFFFFF"
    letter_scale: float = 0.6  # font size relative to icon size
    font_path: str = ""  # TrueType font for letter icons; empty = bundled fallback

    # Upload handling
    svg_render_size: int = 512
    max_source_pixels: int = 40_000_000  # decoded width x height, checked before loading
    max_upload_bytes: int = 10 * 1024 * 1024  # 10 MB

    # Download filenames
    ico_filename: str = "favicon.ico"
    zip_filename: str = "favicons.zip"

    log_level: str = "INFO"

    @field_validator("favicon_sizes")
    @classmethod
    def check_favicon_sizes(cls, sizes: list[int]) -> list[int]:
        if not sizes:
            raise ValueError("favicon_sizes must not be empty")
        for size in sizes:
            if not 1 <= size <= 256:
                raise ValueError(f"favicon size {size} is outside 1-256")
        return sizes

    @property
    def font_configured(self) -> bool:
        """Return True if a custom font file is configured."""
        return bool(self.font_path)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
