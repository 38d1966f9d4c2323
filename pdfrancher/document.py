"""In-memory document graph: the object space of one PDF."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from .errors import StructuralError
from .primitives import PDFName, PDFObject, PDFReference, PDFStream, type_name

logger = logging.getLogger(__name__)

# Page attributes a page may inherit from its ancestors in the page tree.
INHERITABLE_PAGE_KEYS = ("Resources", "MediaBox", "CropBox", "Rotate")


class ObjectKind(Enum):
    """Structural role of an indirect object inside a document."""

    CATALOG = "Catalog"
    PAGES = "Pages"
    PAGE = "Page"
    OUTLINES = "Outlines"
    OUTLINE = "Outline"
    OTHER = "Other"


def classify(obj: PDFObject) -> ObjectKind:
    """Return the structural kind of *obj*.

    Streams are always :attr:`ObjectKind.OTHER`.  Outline items rarely carry
    a ``/Type`` so they are recognised by their ``Title`` and ``Parent`` keys.
    """

    if obj.is_stream or not isinstance(obj.value, dict):
        return ObjectKind.OTHER
    name = type_name(obj.value)
    if name == "Catalog":
        return ObjectKind.CATALOG
    if name == "Pages":
        return ObjectKind.PAGES
    if name == "Page":
        return ObjectKind.PAGE
    if name == "Outlines":
        return ObjectKind.OUTLINES
    if name == "Outline" or (name is None and "Title" in obj.value and "Parent" in obj.value):
        return ObjectKind.OUTLINE
    return ObjectKind.OTHER


def iter_references(value: Any) -> Iterator[PDFReference]:
    """Yield every reference nested anywhere inside *value*."""

    if isinstance(value, PDFReference):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_references(item)
    elif isinstance(value, list):
        for item in value:
            yield from iter_references(item)


def _rewrite_references(value: Any, mapping: Dict[int, int]) -> Any:
    if isinstance(value, PDFReference):
        new_id = mapping.get(value.obj_id)
        if new_id is None:
            # dangling references are equivalent to null
            return None
        return PDFReference(new_id, 0)
    if isinstance(value, dict):
        return {key: _rewrite_references(item, mapping) for key, item in value.items()}
    if isinstance(value, list):
        return [_rewrite_references(item, mapping) for item in value]
    return value


@dataclass
class DocumentGraph:
    """A complete PDF object space.

    ``objects`` maps object numbers to :class:`PDFObject` instances and the
    trailer dictionary must carry a ``Root`` reference to the Catalog.
    """

    objects: Dict[int, PDFObject] = field(default_factory=dict)
    trailer: dict = field(default_factory=dict)
    version: str = "1.4"

    @property
    def max_id(self) -> int:
        return max(self.objects) if self.objects else 0

    def get(self, ref: PDFReference | int | None) -> Optional[PDFObject]:
        if isinstance(ref, PDFReference):
            return self.objects.get(ref.obj_id)
        if isinstance(ref, int) and not isinstance(ref, bool):
            return self.objects.get(ref)
        return None

    def resolve(self, value: Any) -> Any:
        """Follow references until a direct value is reached."""

        seen = set()
        while isinstance(value, PDFReference):
            if value.obj_id in seen:
                return None
            seen.add(value.obj_id)
            target = self.objects.get(value.obj_id)
            value = target.value if target is not None else None
        return value

    def add_object(self, value: Any, stream_data: bytes | None = None) -> PDFObject:
        """Append a new object numbered one above the current maximum."""

        new_id = self.max_id + 1
        stream = PDFStream(value, stream_data) if stream_data is not None else None
        obj = PDFObject(new_id, 0, value, stream)
        self.objects[new_id] = obj
        return obj

    def clone(self) -> "DocumentGraph":
        """Deep copy; nothing is shared with the original graph."""

        return copy.deepcopy(self)

    def renumber(self, start: int = 1) -> Dict[int, int]:
        """Renumber objects sequentially from *start*, rewriting every reference.

        Returns the mapping from old to new object numbers.
        """

        mapping = {old: new for new, old in enumerate(sorted(self.objects), start=start)}
        renumbered: Dict[int, PDFObject] = {}
        for old_id, obj in self.objects.items():
            new_id = mapping[old_id]
            value = _rewrite_references(obj.value, mapping)
            stream = PDFStream(value, obj.stream.data) if obj.stream is not None else None
            renumbered[new_id] = PDFObject(new_id, 0, value, stream)
        self.objects = dict(sorted(renumbered.items()))
        self.trailer = _rewrite_references(self.trailer, mapping)
        logger.debug("Renumbered %d objects starting at %d", len(mapping), start)
        return mapping

    def catalog(self) -> PDFObject:
        catalog = self.get(self.trailer.get("Root"))
        if catalog is None or not isinstance(catalog.value, dict):
            raise StructuralError("Trailer Root does not resolve to a Catalog dictionary")
        return catalog

    def pages_root(self) -> PDFObject:
        pages = self.get(self.catalog().value.get("Pages"))
        if pages is None or not isinstance(pages.value, dict):
            raise StructuralError("Catalog is missing its /Pages tree")
        return pages

    def page_ids(self) -> List[int]:
        """Return the page object numbers in document order."""

        result: List[int] = []
        visited: set[int] = set()

        def walk(node: PDFObject) -> None:
            if node.obj_id in visited:
                return
            visited.add(node.obj_id)
            name = type_name(node.value)
            kids = self.resolve(node.value.get("Kids"))
            if name == "Pages" or (name != "Page" and isinstance(kids, list)):
                for kid in kids if isinstance(kids, list) else []:
                    child = self.get(kid)
                    if child is not None and isinstance(child.value, dict):
                        walk(child)
                return
            result.append(node.obj_id)

        walk(self.pages_root())
        return result

    @property
    def page_count(self) -> int:
        return len(self.page_ids())

    def inherited_attributes(self, page_id: int) -> dict:
        """Collect inheritable attributes the page receives from its ancestors.

        Only keys the page does not define itself are returned; the nearest
        ancestor wins.
        """

        page = self.objects[page_id]
        inherited: dict = {}
        seen = {page_id}
        parent = self.get(page.value.get("Parent"))
        while parent is not None and parent.obj_id not in seen and isinstance(parent.value, dict):
            seen.add(parent.obj_id)
            for key in INHERITABLE_PAGE_KEYS:
                if key in parent.value and key not in page.value and key not in inherited:
                    inherited[key] = parent.value[key]
            parent = self.get(parent.value.get("Parent"))
        return inherited

    def stream_objects(self) -> List[PDFObject]:
        return [obj for obj in self.objects.values() if obj.is_stream]


def new_catalog_graph(version: str = "1.4") -> tuple[DocumentGraph, PDFObject, PDFObject]:
    """Create a graph holding an empty Catalog and Pages pair.

    Returns the graph, the Catalog object and the Pages object.
    """

    graph = DocumentGraph(version=version)
    catalog = graph.add_object({"Type": PDFName("Catalog")})
    pages = graph.add_object({"Type": PDFName("Pages"), "Count": 0, "Kids": []})
    catalog.value["Pages"] = pages.reference()
    graph.trailer["Root"] = catalog.reference()
    return graph, catalog, pages


__all__ = [
    "DocumentGraph",
    "INHERITABLE_PAGE_KEYS",
    "ObjectKind",
    "classify",
    "iter_references",
    "new_catalog_graph",
]
