"""Synthesize a one-page PDF document graph from a raster image."""

from __future__ import annotations

import io
import logging
import zlib
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .document import DocumentGraph, new_catalog_graph
from .errors import ImageDecodeError, SourceIOError
from .primitives import PDFName

logger = logging.getLogger(__name__)

A4_PORTRAIT = (595.0, 842.0)
A4_LANDSCAPE = (842.0, 595.0)
DEFAULT_MARGIN = 36.0

IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "bmp", "tif", "tiff", "webp"})


def _format_number(value: float) -> str:
    if abs(value - int(value)) < 1e-6:
        return str(int(round(value)))
    text = f"{value:.4f}"
    return text.rstrip("0").rstrip(".")


def _fit_scale(width: float, height: float, page: tuple[float, float], margin: float) -> float:
    """Largest scale (capped at 1.0) that fits the image in the margined area."""

    box_width = max(page[0] - 2 * margin, 0.0)
    box_height = max(page[1] - 2 * margin, 0.0)
    return min(1.0, box_width / width, box_height / height)


@dataclass(frozen=True)
class PageLayout:
    page_width: float
    page_height: float
    scale: float
    pixel_width: int
    pixel_height: int
    margin: float

    @property
    def landscape(self) -> bool:
        return self.page_width > self.page_height

    @property
    def downscaled(self) -> bool:
        return self.scale < 1.0

    def image_origin(self) -> tuple[float, float]:
        """Bottom-left corner that puts the image at the top-left of the margined area."""

        return self.margin, self.page_height - self.margin - self.pixel_height


def choose_layout(width: int, height: int, margin: float = DEFAULT_MARGIN) -> PageLayout:
    """Pick the A4 orientation and scale for a ``width`` × ``height`` image.

    Portrait wins whenever the image fits it unscaled.  Otherwise a wide
    image goes landscape unless portrait allows a larger picture, and any
    other image takes the orientation with the larger scale (portrait on
    ties).  One image pixel maps to one point and images are never upscaled.
    """

    if width <= 0 or height <= 0:
        raise ImageDecodeError(f"Image has invalid dimensions {width}x{height}")
    portrait = _fit_scale(width, height, A4_PORTRAIT, margin)
    landscape = _fit_scale(width, height, A4_LANDSCAPE, margin)
    if portrait >= 1.0:
        page, scale = A4_PORTRAIT, portrait
    elif width > height and landscape >= portrait:
        page, scale = A4_LANDSCAPE, landscape
    elif landscape > portrait:
        page, scale = A4_LANDSCAPE, landscape
    else:
        page, scale = A4_PORTRAIT, portrait
    return PageLayout(
        page_width=page[0],
        page_height=page[1],
        scale=scale,
        pixel_width=max(1, round(width * scale)),
        pixel_height=max(1, round(height * scale)),
        margin=margin,
    )


def _image_stream_dict(width: int, height: int, color_space: str) -> dict:
    return {
        "Type": PDFName("XObject"),
        "Subtype": PDFName("Image"),
        "Width": width,
        "Height": height,
        "ColorSpace": PDFName(color_space),
        "BitsPerComponent": 8,
        "Filter": PDFName("FlateDecode"),
    }


def synthesize_image_document(image: Image.Image, margin: float = DEFAULT_MARGIN) -> DocumentGraph:
    """Build a one-page document graph showing *image*.

    The image is converted to RGBA, downsampled with Lanczos when it does not
    fit the page, and embedded as an RGB image XObject.  Transparency is kept
    through a DeviceGray soft mask, omitted for fully opaque images.
    """

    rgba = image.convert("RGBA")
    layout = choose_layout(rgba.width, rgba.height, margin)
    if layout.downscaled:
        rgba = rgba.resize((layout.pixel_width, layout.pixel_height), Image.Resampling.LANCZOS)
        logger.debug(
            "Downsampled image from %dx%d to %dx%d", image.width, image.height, rgba.width, rgba.height
        )

    graph, catalog, pages = new_catalog_graph()

    alpha = rgba.getchannel("A")
    image_dict = _image_stream_dict(rgba.width, rgba.height, "DeviceRGB")
    min_alpha, _ = alpha.getextrema()
    if min_alpha < 255:
        mask_dict = _image_stream_dict(rgba.width, rgba.height, "DeviceGray")
        mask = graph.add_object(mask_dict, zlib.compress(alpha.tobytes()))
        image_dict["SMask"] = mask.reference()
    xobject = graph.add_object(image_dict, zlib.compress(rgba.convert("RGB").tobytes()))

    x, y = layout.image_origin()
    content = "\n".join(
        [
            "q",
            f"{rgba.width} 0 0 {rgba.height} {_format_number(x)} {_format_number(y)} cm",
            "/Im1 Do",
            "Q",
        ]
    ).encode("latin-1")
    content_obj = graph.add_object({}, content)

    page = graph.add_object(
        {
            "Type": PDFName("Page"),
            "Parent": pages.reference(),
            "MediaBox": [0, 0, _page_number(layout.page_width), _page_number(layout.page_height)],
            "Resources": {"XObject": {"Im1": xobject.reference()}},
            "Contents": content_obj.reference(),
        }
    )
    pages.value["Kids"] = [page.reference()]
    pages.value["Count"] = 1
    return graph


def _page_number(value: float) -> int | float:
    return int(value) if value.is_integer() else value


def image_to_document(path: str | Path, margin: float = DEFAULT_MARGIN) -> DocumentGraph:
    """Decode the raster image at *path* and synthesize its document graph."""

    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise SourceIOError(f"Cannot read {path}: {exc}") from exc
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return synthesize_image_document(image, margin)
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeError(f"Cannot decode image {path}: {exc}") from exc


__all__ = [
    "A4_LANDSCAPE",
    "A4_PORTRAIT",
    "DEFAULT_MARGIN",
    "IMAGE_EXTENSIONS",
    "PageLayout",
    "choose_layout",
    "image_to_document",
    "synthesize_image_document",
]
