from __future__ import annotations

import pytest
from PIL import Image

from pdfrancher.errors import PDFSyntaxError, SourceIOError, UnsupportedSourceType
from pdfrancher.sources import SourceKind, detect_kind, load_graph, new_source_id, open_source


@pytest.mark.parametrize(
    "name, kind",
    [
        ("report.pdf", SourceKind.PDF),
        ("REPORT.PDF", SourceKind.PDF),
        ("photo.jpeg", SourceKind.IMAGE),
        ("scan.TIFF", SourceKind.IMAGE),
        ("icon.webp", SourceKind.IMAGE),
    ],
)
def test_detect_kind(name, kind):
    assert detect_kind(name) is kind


@pytest.mark.parametrize("name", ["notes.txt", "archive.tar.gz", "README"])
def test_detect_kind_rejects_unknown_types(name):
    with pytest.raises(UnsupportedSourceType):
        detect_kind(name)


def test_new_source_id_is_short_and_alphanumeric():
    ids = {new_source_id() for _ in range(50)}

    assert all(len(value) == 7 and value.isalnum() for value in ids)
    assert len(ids) > 1


def test_load_graph_errors(tmp_path):
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"this is not a pdf")

    with pytest.raises(SourceIOError):
        load_graph(tmp_path / "missing.pdf")
    with pytest.raises(PDFSyntaxError):
        load_graph(broken)
    with pytest.raises(UnsupportedSourceType):
        load_graph(tmp_path / "notes.txt")


def test_open_source_renders_every_page(write_source, stub_rasterizer):
    path = write_source("three.pdf", ["a", "b", "c"])
    progress = []

    source = open_source(path, lambda *args: progress.append(args), stub_rasterizer)

    assert source.kind is SourceKind.PDF
    assert source.page_count == 3
    assert len(source.pages) == 3
    assert stub_rasterizer.calls == [0, 1, 2]
    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert source.path == str(path)


def test_open_source_without_thumbnails(write_source, stub_rasterizer):
    source = open_source(write_source("one.pdf", ["a"]), rasterizer=stub_rasterizer, thumbnails=False)

    assert source.pages == ()
    assert stub_rasterizer.calls == []


def test_open_image_source(tmp_path, stub_rasterizer):
    path = tmp_path / "photo.png"
    Image.new("RGB", (40, 30), "red").save(path)

    source = open_source(path, rasterizer=stub_rasterizer)

    assert source.kind is SourceKind.IMAGE
    assert source.page_count == 1
    assert len(source.pages) == 1


def test_to_dict(make_source):
    source = make_source(["a"])

    data = source.to_dict()

    assert data["id"] == source.id
    assert data["kind"] == "pdf"
    assert data["pages"] == []
