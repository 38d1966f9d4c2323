"""A project: the ordered collection of sources the user has imported."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from . import compose
from .document import DocumentGraph
from .models import Page, Selector
from .render import Rasterizer
from .serializer import write_pdf
from .sources import SourceDocument, open_source

logger = logging.getLogger(__name__)

# (current_document, total_documents, current_page, total_pages)
ImportProgressSink = Callable[[int, int, int, int], None]


class Project:
    """Thread-safe holder of imported sources.

    Mutations take the lock; exports and previews work on a snapshot taken
    under the lock, so they never observe a half-updated collection.
    """

    def __init__(self, sources: Iterable[SourceDocument] = ()) -> None:
        self._lock = threading.Lock()
        self._sources: List[SourceDocument] = list(sources)

    @property
    def sources(self) -> Tuple[SourceDocument, ...]:
        with self._lock:
            return tuple(self._sources)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)

    def add_sources(self, new_sources: Iterable[SourceDocument]) -> None:
        new_sources = list(new_sources)
        with self._lock:
            self._sources.extend(new_sources)
        logger.info("Added %d source(s) to project", len(new_sources))

    def open_files(
        self,
        paths: Sequence[str | Path],
        progress: Optional[ImportProgressSink] = None,
        rasterizer: Optional[Rasterizer] = None,
    ) -> List[SourceDocument]:
        """Open every path and add the results.

        All or nothing: if one file fails to open, the error propagates and
        no source from this call is added.
        """

        opened: List[SourceDocument] = []
        total = len(paths)
        for index, path in enumerate(paths, start=1):
            page_progress = None
            if progress is not None:
                page_progress = _document_progress(progress, index, total)
            opened.append(open_source(path, page_progress, rasterizer))
        self.add_sources(opened)
        return opened

    def clear(self) -> None:
        with self._lock:
            self._sources.clear()
        logger.info("Cleared project")

    def export(self, selectors: Sequence[Selector]) -> DocumentGraph:
        return compose.export(self.sources, selectors)

    def export_bytes(self, selectors: Sequence[Selector]) -> bytes:
        return write_pdf(self.export(selectors))

    def preview(self, selector: Selector, rasterizer: Optional[Rasterizer] = None) -> Page:
        return compose.preview(self.sources, selector, rasterizer)

    def to_dict(self) -> dict:
        return {"source_files": [source.to_dict() for source in self.sources]}


def _document_progress(sink: ImportProgressSink, document: int, total_documents: int) -> Callable[[int, int], None]:
    def report(current_page: int, total_pages: int) -> None:
        sink(document, total_documents, current_page, total_pages)

    return report


__all__ = ["ImportProgressSink", "Project"]
