"""Rasterize PDF pages into JPEG thumbnails."""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

import pypdfium2 as pdfium
from PIL import Image

from .errors import RenderError
from .models import Page

logger = logging.getLogger(__name__)

ProgressSink = Callable[[int, int], None]


class Rasterizer(ABC):
    """Page rendering backend.

    Implementations receive serialised PDF bytes and must return thumbnails
    that fit inside the ``max_width`` × ``max_height`` box.
    """

    @abstractmethod
    def render_page(self, pdf_bytes: bytes, page_index: int, max_width: int, max_height: int) -> Page:
        raise NotImplementedError

    def render_pages(
        self,
        pdf_bytes: bytes,
        page_count: int,
        max_width: int,
        max_height: int,
        progress: Optional[ProgressSink] = None,
    ) -> List[Page]:
        pages = []
        for index in range(page_count):
            pages.append(self.render_page(pdf_bytes, index, max_width, max_height))
            if progress is not None:
                progress(index + 1, page_count)
        return pages


def encode_jpeg(image: Image.Image, quality: int = 85) -> bytes:
    buffer = io.BytesIO()
    image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


class PdfiumRasterizer(Rasterizer):
    """Renders pages with pypdfium2 and encodes them with Pillow."""

    def __init__(self, quality: int = 85) -> None:
        self.quality = quality

    def _open(self, pdf_bytes: bytes) -> pdfium.PdfDocument:
        try:
            return pdfium.PdfDocument(pdf_bytes)
        except pdfium.PdfiumError as exc:
            raise RenderError(f"Rasterizer rejected the document: {exc}") from exc

    def _render(self, pdf: pdfium.PdfDocument, page_index: int, max_width: int, max_height: int) -> Page:
        if not 0 <= page_index < len(pdf):
            raise RenderError(f"Page {page_index} out of range (0..{len(pdf) - 1})")
        page = pdf[page_index]
        try:
            width, height = page.get_size()
            if width <= 0 or height <= 0:
                raise RenderError(f"Page {page_index} has an empty media box")
            scale = min(max_width / width, max_height / height)
            image = page.render(scale=scale, draw_annots=True).to_pil().convert("RGB")
        except pdfium.PdfiumError as exc:
            raise RenderError(f"Cannot render page {page_index}: {exc}") from exc
        finally:
            page.close()
        if image.width > max_width or image.height > max_height:
            image.thumbnail((max_width, max_height), Image.Resampling.LANCZOS)
        return Page(raster_bytes=encode_jpeg(image, self.quality), width=image.width, height=image.height)

    def render_page(self, pdf_bytes: bytes, page_index: int, max_width: int, max_height: int) -> Page:
        pdf = self._open(pdf_bytes)
        try:
            return self._render(pdf, page_index, max_width, max_height)
        finally:
            pdf.close()

    def render_pages(
        self,
        pdf_bytes: bytes,
        page_count: int,
        max_width: int,
        max_height: int,
        progress: Optional[ProgressSink] = None,
    ) -> List[Page]:
        pdf = self._open(pdf_bytes)
        try:
            total = len(pdf)
            if total != page_count:
                logger.warning("Rasterizer sees %d pages, document graph has %d", total, page_count)
            pages = []
            for index in range(total):
                pages.append(self._render(pdf, index, max_width, max_height))
                if progress is not None:
                    progress(index + 1, total)
            return pages
        finally:
            pdf.close()


__all__ = ["PdfiumRasterizer", "ProgressSink", "Rasterizer", "encode_jpeg"]
