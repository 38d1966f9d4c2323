from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Sequence

import pytest

from pdfrancher.document import DocumentGraph, new_catalog_graph
from pdfrancher.models import Page
from pdfrancher.primitives import PDFName
from pdfrancher.render import Rasterizer
from pdfrancher.serializer import write_pdf_to_file
from pdfrancher.sources import SourceDocument, SourceKind, new_source_id


def build_graph(
    markers: Sequence[str],
    rotations: Optional[Sequence[Optional[int]]] = None,
    nested: bool = False,
    outline: bool = False,
) -> DocumentGraph:
    """Build a document with one page per marker, each drawing ``(marker)``.

    ``nested`` puts the pages under an intermediate Pages node that carries
    the MediaBox and the font resources instead of the pages themselves.
    """

    graph, catalog, pages = new_catalog_graph()
    font = graph.add_object(
        {"Type": PDFName("Font"), "Subtype": PDFName("Type1"), "BaseFont": PDFName("Helvetica")}
    )
    resources = {"Font": {"F1": font.reference()}}
    parent = pages
    if nested:
        parent = graph.add_object(
            {
                "Type": PDFName("Pages"),
                "Parent": pages.reference(),
                "Kids": [],
                "Count": 0,
                "MediaBox": [0, 0, 300, 400],
                "Resources": resources,
            }
        )
        pages.value["Kids"] = [parent.reference()]
    kids = []
    for index, marker in enumerate(markers):
        content = graph.add_object({}, f"BT /F1 24 Tf 72 72 Td ({marker}) Tj ET".encode("latin-1"))
        page_value = {
            "Type": PDFName("Page"),
            "Parent": parent.reference(),
            "Contents": content.reference(),
        }
        if not nested:
            page_value["MediaBox"] = [0, 0, 300, 400]
            page_value["Resources"] = resources
        if rotations is not None and rotations[index] is not None:
            page_value["Rotate"] = rotations[index]
        kids.append(graph.add_object(page_value).reference())
    parent.value["Kids"] = kids
    parent.value["Count"] = len(kids)
    pages.value["Count"] = len(kids)
    if outline:
        outlines = graph.add_object({"Type": PDFName("Outlines"), "Count": 1})
        item = graph.add_object(
            {"Title": "Chapter", "Parent": outlines.reference(), "Dest": [kids[0], PDFName("Fit")]}
        )
        outlines.value["First"] = item.reference()
        outlines.value["Last"] = item.reference()
        catalog.value["Outlines"] = outlines.reference()
    return graph


class StubRasterizer(Rasterizer):
    """Records render calls and returns fake thumbnails."""

    def __init__(self) -> None:
        self.calls: list[int] = []

    def render_page(self, pdf_bytes: bytes, page_index: int, max_width: int, max_height: int) -> Page:
        assert pdf_bytes.startswith(b"%PDF-")
        self.calls.append(page_index)
        return Page(raster_bytes=b"\xff\xd8stub", width=max_width // 2, height=max_height)


@pytest.fixture
def make_graph() -> Callable[..., DocumentGraph]:
    return build_graph


@pytest.fixture
def make_source() -> Callable[..., SourceDocument]:
    def factory(markers: Sequence[str] = ("1", "2", "3"), **kwargs) -> SourceDocument:
        graph = build_graph(markers, **kwargs)
        return SourceDocument(id=new_source_id(), path="memory.pdf", kind=SourceKind.PDF, graph=graph)

    return factory


@pytest.fixture
def write_source(tmp_path: Path) -> Callable[..., Path]:
    def factory(name: str, markers: Sequence[str] = ("1", "2", "3"), **kwargs) -> Path:
        path = tmp_path / name
        write_pdf_to_file(build_graph(markers, **kwargs), path)
        return path

    return factory


@pytest.fixture
def stub_rasterizer() -> StubRasterizer:
    return StubRasterizer()
