"""Compose selected pages of several source documents into one new PDF.

Every call works on deep copies of the source graphs, so sources are never
mutated and concurrent calls share no state.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from .compaction import compact
from .config import get_settings
from .document import INHERITABLE_PAGE_KEYS, DocumentGraph, ObjectKind, classify
from .errors import EmptySources, SelectorOutOfRange, StructuralError
from .models import Page, Rotation, Selector
from .primitives import PDFName, PDFObject, PDFReference
from .render import PdfiumRasterizer, Rasterizer
from .serializer import write_pdf
from .sources import SourceDocument

logger = logging.getLogger(__name__)

SourcePages = List[Tuple[int, PDFObject]]


def validate_selectors(sources: Sequence[SourceDocument], selectors: Sequence[Selector]) -> None:
    """Check every selector against the sources before anything is built."""

    if not sources:
        raise EmptySources("Cannot export without at least one source document")
    page_counts = [source.page_count for source in sources]
    for position, selector in enumerate(selectors):
        if selector.source_index >= len(sources):
            raise SelectorOutOfRange(
                f"Selector {position} names source {selector.source_index}, "
                f"but only {len(sources)} source(s) are loaded"
            )
        count = page_counts[selector.source_index]
        if selector.page_index >= count:
            raise SelectorOutOfRange(
                f"Selector {position} names page {selector.page_index} of source "
                f"{selector.source_index}, which has {count} page(s)"
            )


def _pool_sources(sources: Sequence[SourceDocument]) -> tuple[Dict[int, PDFObject], List[SourcePages]]:
    """Clone and renumber every source into one collision-free id space.

    Returns the pooled objects and, per source, its ``(id, page)`` pairs in
    page order.  Attributes a page inherits from its page tree are copied
    onto the page because the merged document has a flat tree.
    """

    pooled: Dict[int, PDFObject] = {}
    source_pages: List[SourcePages] = []
    max_id = 1
    for source in sources:
        graph = source.graph.clone()
        graph.renumber(max_id)
        max_id = graph.max_id + 1
        pages: SourcePages = []
        for page_id in graph.page_ids():
            page = graph.objects[page_id]
            value = dict(page.value)
            for key, item in graph.inherited_attributes(page_id).items():
                value.setdefault(key, item)
            pages.append((page_id, page.clone_with(value=value)))
        source_pages.append(pages)
        pooled.update(graph.objects)
    return pooled, source_pages


def export(
    sources: Sequence[SourceDocument],
    selectors: Sequence[Selector],
    version: Optional[str] = None,
    compress: Optional[bool] = None,
) -> DocumentGraph:
    """Build a new document containing exactly the selected pages, in order.

    An empty selector list yields a valid document without pages.
    """

    settings = get_settings()
    validate_selectors(sources, selectors)
    pooled, source_pages = _pool_sources(sources)

    output = DocumentGraph(version=version or settings.output_version)
    catalog_id: Optional[int] = None
    pages_id: Optional[int] = None
    pages_dict: dict = {}
    for obj_id, obj in sorted(pooled.items()):
        kind = classify(obj)
        if kind is ObjectKind.CATALOG:
            if catalog_id is None:
                catalog_id = obj_id
        elif kind is ObjectKind.PAGES:
            if pages_id is None:
                pages_id = obj_id
            # keys already collected from earlier sources win
            for key, item in obj.value.items():
                pages_dict.setdefault(key, item)
        elif kind in (ObjectKind.PAGE, ObjectKind.OUTLINES, ObjectKind.OUTLINE):
            continue
        elif kind is ObjectKind.OTHER:
            output.objects[obj_id] = obj
        else:
            raise AssertionError(f"Unhandled object kind {kind!r}")

    if pages_id is None:
        raise StructuralError("No Pages root found in any source document")
    if catalog_id is None:
        raise StructuralError("No Catalog found in any source document")

    next_id = max(pooled) + 1
    used: set[int] = set()
    kids: List[PDFReference] = []
    for selector in selectors:
        page_id, page = source_pages[selector.source_index][selector.page_index]
        if page_id in used:
            # the same page selected twice needs its own object
            page_id = next_id
            next_id += 1
        used.add(page_id)
        value = dict(page.value)
        value["Parent"] = PDFReference(pages_id)
        if selector.rotation is not Rotation.NONE:
            value["Rotate"] = int(selector.rotation)
        output.objects[page_id] = PDFObject(page_id, 0, value)
        kids.append(PDFReference(page_id))

    # pages carry their own copies of inheritable attributes
    pages_dict = {key: item for key, item in pages_dict.items() if key not in INHERITABLE_PAGE_KEYS}
    pages_dict.pop("Parent", None)
    pages_dict["Type"] = PDFName("Pages")
    pages_dict["Count"] = len(selectors)
    pages_dict["Kids"] = kids
    output.objects[pages_id] = PDFObject(pages_id, 0, pages_dict)

    catalog_dict = dict(pooled[catalog_id].value)
    catalog_dict["Pages"] = PDFReference(pages_id)
    catalog_dict.pop("Outlines", None)
    output.objects[catalog_id] = PDFObject(catalog_id, 0, catalog_dict)

    output.trailer = {"Root": PDFReference(catalog_id)}
    output.objects = dict(sorted(output.objects.items()))
    output.renumber(1)
    compact(output, settings.compress_streams if compress is None else compress)
    logger.info(
        "Exported %d page(s) from %d source(s) into %d objects",
        len(selectors),
        len(sources),
        len(output.objects),
    )
    return output


def export_bytes(sources: Sequence[SourceDocument], selectors: Sequence[Selector]) -> bytes:
    return write_pdf(export(sources, selectors))


def preview(
    sources: Sequence[SourceDocument],
    selector: Selector,
    rasterizer: Optional[Rasterizer] = None,
) -> Page:
    """Render the page named by *selector* from its source document."""

    if selector.source_index >= len(sources):
        raise SelectorOutOfRange(f"Source {selector.source_index} does not exist")
    source = sources[selector.source_index]
    if selector.page_index >= source.page_count:
        raise SelectorOutOfRange(
            f"Page {selector.page_index} does not exist in source {selector.source_index}"
        )
    settings = get_settings()
    rasterizer = rasterizer or PdfiumRasterizer(quality=settings.thumbnail_quality)
    return rasterizer.render_page(
        write_pdf(source.graph),
        selector.page_index,
        settings.thumbnail_max_width,
        settings.thumbnail_max_height,
    )


__all__ = ["export", "export_bytes", "preview", "validate_selectors"]
