"""Runtime settings loaded from environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Tunable knobs of the composition engine.

    Every field can be overridden with a ``PDFRANCHER_`` prefixed environment
    variable, e.g. ``PDFRANCHER_THUMBNAIL_MAX_WIDTH=300``.
    """

    thumbnail_max_width: int = Field(default=500, ge=1, description="Thumbnail bounding box width in pixels.")
    thumbnail_max_height: int = Field(default=500, ge=1, description="Thumbnail bounding box height in pixels.")
    thumbnail_quality: int = Field(default=85, ge=1, le=95, description="JPEG quality of thumbnails.")

    header_search_window: int = Field(
        default=1024, ge=0, description="How many leading bytes may precede the %PDF- signature."
    )
    page_margin: float = Field(default=36.0, ge=0, description="Margin around synthesized image pages, in points.")
    output_version: str = Field(default="1.5", pattern=r"^\d\.\d$")
    compress_streams: bool = True

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="PDFRANCHER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
