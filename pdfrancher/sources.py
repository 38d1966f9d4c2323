"""Load PDFs and raster images as source documents."""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from .config import get_settings
from .document import DocumentGraph
from .errors import UnsupportedSourceType
from .imaging import IMAGE_EXTENSIONS, image_to_document
from .models import Page
from .parser import parse_pdf_from_file
from .render import PdfiumRasterizer, ProgressSink, Rasterizer
from .serializer import write_pdf

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_letters + string.digits
_ID_LENGTH = 7


class SourceKind(str, Enum):
    """Where the document graph of a source came from."""

    PDF = "pdf"
    IMAGE = "image"


def new_source_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


def detect_kind(path: str | Path) -> SourceKind:
    extension = Path(path).suffix.lower().lstrip(".")
    if extension == "pdf":
        return SourceKind.PDF
    if extension in IMAGE_EXTENSIONS:
        return SourceKind.IMAGE
    if not extension:
        raise UnsupportedSourceType(f"{path} has no file extension")
    raise UnsupportedSourceType(f"Unsupported file type .{extension} for {path}")


@dataclass(frozen=True)
class SourceDocument:
    """An imported input document.

    The graph is owned by the source and must never be mutated; the compose
    engine clones it before touching anything.
    """

    id: str
    path: str
    kind: SourceKind
    graph: DocumentGraph = field(repr=False, compare=False)
    pages: Tuple[Page, ...] = field(default=(), repr=False, compare=False)

    @property
    def page_count(self) -> int:
        return len(self.page_ids)

    @property
    def page_ids(self) -> List[int]:
        return self.graph.page_ids()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "path": self.path,
            "kind": self.kind.value,
            "pages": [page.model_dump(mode="json") for page in self.pages],
        }


def load_graph(path: str | Path) -> tuple[SourceKind, DocumentGraph]:
    """Read *path* into a document graph, synthesizing one for images."""

    settings = get_settings()
    kind = detect_kind(path)
    if kind is SourceKind.PDF:
        graph = parse_pdf_from_file(path, settings.header_search_window)
    else:
        graph = image_to_document(path, settings.page_margin)
    # fail early on documents whose page tree cannot be walked
    graph.page_ids()
    return kind, graph


def open_source(
    path: str | Path,
    progress: Optional[ProgressSink] = None,
    rasterizer: Optional[Rasterizer] = None,
    thumbnails: bool = True,
) -> SourceDocument:
    """Open a PDF or raster image and render one thumbnail per page.

    ``progress`` receives ``(current_page, total_pages)`` after each rendered
    thumbnail.  Headless callers pass ``thumbnails=False`` to skip rendering.
    """

    settings = get_settings()
    kind, graph = load_graph(path)
    pages: List[Page] = []
    if thumbnails:
        rasterizer = rasterizer or PdfiumRasterizer(quality=settings.thumbnail_quality)
        pages = rasterizer.render_pages(
            write_pdf(graph),
            graph.page_count,
            settings.thumbnail_max_width,
            settings.thumbnail_max_height,
            progress,
        )
    source = SourceDocument(id=new_source_id(), path=str(path), kind=kind, graph=graph, pages=tuple(pages))
    logger.info("Opened %s source %s with %d pages", kind.value, source.path, graph.page_count)
    return source


__all__ = ["SourceDocument", "SourceKind", "detect_kind", "load_graph", "new_source_id", "open_source"]
