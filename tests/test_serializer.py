from __future__ import annotations

import re

import pytest

from pdfrancher.compaction import prune_objects
from pdfrancher.errors import EncodeError
from pdfrancher.parser import parse_pdf
from pdfrancher.primitives import PDFName, PDFReference
from pdfrancher.serializer import serialize, write_pdf


def test_serialize_scalars_and_containers():
    assert serialize(PDFName("Type")) == b"/Type"
    assert serialize(PDFName("A B#")) == b"/A#20B#23"
    assert serialize(PDFReference(3, 0)) == b"3 0 R"
    assert serialize(True) == b"true"
    assert serialize(None) == b"null"
    assert serialize(0.5) == b"0.5"
    assert serialize(2.0) == b"2"
    assert serialize("a(b)") == b"(a\\(b\\))"
    assert serialize(b"\x01\xff") == b"<01ff>"
    assert serialize([1, PDFName("X")]) == b"[1 /X]"
    assert serialize({"K": 1}) == b"<</K 1\n>>"


def test_unserialisable_values_raise_encode_error():
    with pytest.raises(EncodeError):
        serialize("☃")
    with pytest.raises(EncodeError):
        serialize(object())
    with pytest.raises(EncodeError):
        serialize(float("nan"))


def test_write_pdf_layout(make_graph):
    graph = make_graph(["a"])
    graph.version = "1.5"

    data = write_pdf(graph)

    assert data.startswith(b"%PDF-1.5\n")
    assert data.rstrip().endswith(b"%%EOF")
    assert b"/Size %d" % (graph.max_id + 1) in data
    offset = int(re.search(rb"startxref\n(\d+)", data).group(1))
    assert data[offset:].startswith(b"xref\n0 %d\n" % (graph.max_id + 1))


def test_xref_offsets_point_at_objects(make_graph):
    graph = make_graph(["a", "b"])

    data = write_pdf(graph)

    xref = data[data.rindex(b"\nxref\n") :]
    entries = re.findall(rb"(\d{10}) (\d{5}) n", xref)
    assert len(entries) == len(graph.objects)
    for number, (offset, _) in zip(sorted(graph.objects), entries):
        assert data[int(offset) :].startswith(b"%d 0 obj" % number)


def test_xref_marks_gaps_as_free(make_graph):
    graph = make_graph(["a"])
    orphan = graph.add_object({"Unused": True})
    info = graph.add_object({"Producer": "test"})
    graph.trailer["Info"] = info.reference()

    assert prune_objects(graph) == [orphan.obj_id]
    data = write_pdf(graph)

    xref = data[data.rindex(b"\nxref\n") :].split(b"trailer")[0]
    lines = xref.splitlines()[3:]
    assert lines[0] == b"%010d 65535 f " % orphan.obj_id
    assert lines[orphan.obj_id] == b"0000000000 00001 f "
    assert lines[info.obj_id].endswith(b" n ")


def test_stream_length_reflects_data_without_mutating(make_graph):
    graph = make_graph(["a"])
    stream = graph.stream_objects()[0]
    stream.value["Length"] = 9999

    data = write_pdf(graph)

    assert b"/Length %d" % len(stream.stream.data) in data
    assert stream.value["Length"] == 9999


def test_xref_entries_carry_object_generations():
    graph = parse_pdf(
        b"%PDF-1.4\n"
        b"1 0 obj\n<< /Type /Catalog /Pages 2 0 R >>\nendobj\n"
        b"2 0 obj\n<< /Type /Pages /Kids [3 1 R] /Count 1 >>\nendobj\n"
        b"3 1 obj\n<< /Type /Page /Parent 2 0 R /MediaBox [0 0 100 100] >>\nendobj\n"
        b"trailer\n<< /Size 4 /Root 1 0 R >>\nstartxref\n0\n%%EOF\n"
    )

    data = write_pdf(graph)

    lines = data[data.rindex(b"\nxref\n") :].split(b"trailer")[0].splitlines()[3:]
    offset = int(lines[3][:10])
    assert data[offset:].startswith(b"3 1 obj")
    assert lines[3].endswith(b" 00001 n ")
    assert lines[2].endswith(b" 00000 n ")
