from __future__ import annotations

import pytest

from pdfrancher.document import DocumentGraph, ObjectKind, classify, iter_references
from pdfrancher.errors import StructuralError
from pdfrancher.primitives import PDFName, PDFObject, PDFReference


def test_page_ids_follow_kids_order(make_graph):
    graph = make_graph(["a", "b", "c"])
    pages = graph.pages_root()

    pages.value["Kids"].reverse()

    contents = [graph.objects[page_id].value["Contents"] for page_id in graph.page_ids()]
    assert contents == sorted(contents, key=lambda ref: -ref.obj_id)


def test_page_ids_descend_into_nested_trees(make_graph):
    graph = make_graph(["a", "b"], nested=True)

    assert len(graph.page_ids()) == 2
    assert graph.page_count == 2


def test_page_tree_cycles_do_not_loop(make_graph):
    graph = make_graph(["a"])
    root = graph.pages_root()
    root.value["Kids"].append(root.reference())

    assert len(graph.page_ids()) == 1


def test_inherited_attributes_come_from_nearest_ancestor(make_graph):
    graph = make_graph(["a"], nested=True)
    graph.pages_root().value["MediaBox"] = [0, 0, 10, 10]
    graph.pages_root().value["Rotate"] = 90
    (page_id,) = graph.page_ids()

    inherited = graph.inherited_attributes(page_id)

    assert inherited["MediaBox"] == [0, 0, 300, 400]
    assert inherited["Rotate"] == 90
    assert "Resources" in inherited


def test_renumber_rewrites_every_reference(make_graph):
    graph = make_graph(["a", "b"])
    old_count = len(graph.objects)

    mapping = graph.renumber(100)

    assert sorted(graph.objects) == list(range(100, 100 + old_count))
    assert mapping[1] == 100
    assert graph.trailer["Root"] == PDFReference(100, 0)
    for obj in graph.objects.values():
        for ref in iter_references(obj.value):
            assert ref.obj_id in graph.objects
    assert len(graph.page_ids()) == 2


def test_renumber_turns_dangling_references_into_null():
    graph = DocumentGraph(
        objects={5: PDFObject(5, 0, {"Type": PDFName("Catalog"), "Missing": PDFReference(9, 0)})},
        trailer={"Root": PDFReference(5, 0)},
    )

    graph.renumber()

    assert graph.objects[1].value["Missing"] is None


def test_clone_shares_nothing(make_graph):
    graph = make_graph(["a"])
    copy = graph.clone()

    copy.pages_root().value["Count"] = 42
    copy.renumber(50)

    assert graph.pages_root().value["Count"] == 1
    assert graph.trailer["Root"] == PDFReference(1, 0)


def test_classify_recognises_structural_objects():
    assert classify(PDFObject(1, 0, {"Type": PDFName("Catalog")})) is ObjectKind.CATALOG
    assert classify(PDFObject(1, 0, {"Type": PDFName("Pages")})) is ObjectKind.PAGES
    assert classify(PDFObject(1, 0, {"Type": PDFName("Page")})) is ObjectKind.PAGE
    assert classify(PDFObject(1, 0, {"Type": PDFName("Outlines")})) is ObjectKind.OUTLINES
    assert classify(PDFObject(1, 0, {"Title": "x", "Parent": PDFReference(2)})) is ObjectKind.OUTLINE
    assert classify(PDFObject(1, 0, {"Type": PDFName("Font")})) is ObjectKind.OTHER
    assert classify(PDFObject(1, 0, [1, 2])) is ObjectKind.OTHER


def test_missing_pages_tree_is_structural_error():
    graph = DocumentGraph(
        objects={1: PDFObject(1, 0, {"Type": PDFName("Catalog")})},
        trailer={"Root": PDFReference(1, 0)},
    )

    with pytest.raises(StructuralError):
        graph.page_ids()


def test_add_object_numbers_above_max(make_graph):
    graph = make_graph(["a"])
    top = graph.max_id

    obj = graph.add_object({"Answer": 42}, b"data")

    assert obj.obj_id == top + 1
    assert obj.stream.dictionary is obj.value
