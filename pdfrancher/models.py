"""Caller-facing value types exchanged with the shell."""

from __future__ import annotations

import base64
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Rotation(IntEnum):
    """Clockwise page rotation in degrees; serialises as the degree value."""

    NONE = 0
    CW_90 = 90
    CW_180 = 180
    CW_270 = 270


class Selector(BaseModel):
    """One requested output page.

    Attributes:
        source_index: Position of the source document in the project.
        page_index: Zero-based page number inside that source.
        rotation: Rotation override; ``0`` keeps the source page's own rotation.
    """

    model_config = ConfigDict(frozen=True)

    source_index: int = Field(..., ge=0, description="Index of the source document")
    page_index: int = Field(..., ge=0, description="Zero-based page index within the source")
    rotation: Rotation = Field(Rotation.NONE, description="Rotation override in degrees")

    @classmethod
    def of(cls, source_index: int, page_index: int, rotation: int = 0) -> "Selector":
        return cls(source_index=source_index, page_index=page_index, rotation=rotation)

    @classmethod
    def from_text(cls, text: str) -> "Selector":
        """Build a selector from ``SOURCE:PAGE[:ROTATION]`` text."""

        parts = text.split(":")
        if len(parts) not in (2, 3):
            raise ValueError(f"Selector {text!r} must look like SOURCE:PAGE[:ROTATION]")
        return cls.of(*(int(part) for part in parts))


class Page(BaseModel):
    """A rendered page thumbnail.

    Presentation only; thumbnails never end up in exported documents.
    """

    model_config = ConfigDict(frozen=True)

    raster_bytes: bytes = Field(..., description="JPEG encoded preview")
    width: int = Field(..., ge=0, description="Pixel width")
    height: int = Field(..., ge=0, description="Pixel height")

    @property
    def dimensions(self) -> tuple[int, int]:
        return self.width, self.height

    @field_serializer("raster_bytes")
    def _serialize_raster(self, value: bytes) -> str:
        return base64.b64encode(value).decode("ascii")


__all__ = ["Page", "Rotation", "Selector"]
