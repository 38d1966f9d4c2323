from __future__ import annotations

import base64

import pytest
from pydantic import ValidationError

from pdfrancher.models import Page, Rotation, Selector


def test_selector_defaults_and_json():
    selector = Selector.of(1, 2, 90)

    assert selector.rotation is Rotation.CW_90
    assert Selector.of(0, 0).rotation is Rotation.NONE
    assert selector.model_dump(mode="json") == {"source_index": 1, "page_index": 2, "rotation": 90}


@pytest.mark.parametrize(
    "kwargs",
    [
        {"source_index": -1, "page_index": 0},
        {"source_index": 0, "page_index": -3},
        {"source_index": 0, "page_index": 0, "rotation": 45},
    ],
)
def test_invalid_selectors(kwargs):
    with pytest.raises(ValidationError):
        Selector(**kwargs)


def test_selector_is_frozen():
    selector = Selector.of(0, 0)

    with pytest.raises(ValidationError):
        selector.page_index = 3


def test_from_text():
    assert Selector.from_text("2:5") == Selector.of(2, 5)
    assert Selector.from_text("0:1:270").rotation is Rotation.CW_270
    with pytest.raises(ValueError):
        Selector.from_text("1")
    with pytest.raises(ValueError):
        Selector.from_text("a:b")


def test_page_serialises_raster_as_base64():
    page = Page(raster_bytes=b"\xff\xd8\xff", width=10, height=20)

    data = page.model_dump(mode="json")

    assert base64.b64decode(data["raster_bytes"]) == b"\xff\xd8\xff"
    assert page.dimensions == (10, 20)
