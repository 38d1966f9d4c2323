"""Core PDF primitive data structures.

These classes are the leaves of the document graph.  Everything else in a
PDF object is represented with plain Python values: ``None``, ``bool``,
``int``, ``float``, ``str`` (literal strings), ``bytes`` (hex strings),
``list`` (arrays) and ``dict`` (dictionaries keyed by the name without its
leading slash).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PDFName:
    """Represents a PDF name object (e.g. ``/Page``).

    The value is stored without the leading slash to make it easier to work
    with inside Python code.  ``str(name)`` reintroduces the slash when
    serialising.
    """

    value: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"/{self.value}"

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"PDFName({self.value!r})"


@dataclass(frozen=True)
class PDFReference:
    """Object reference (``12 0 R``), i.e. an object id inside one document."""

    obj_id: int
    generation: int = 0

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"PDFReference({self.obj_id}, {self.generation})"


@dataclass
class PDFStream:
    """Holds a PDF stream dictionary and the associated (still encoded) bytes."""

    dictionary: dict
    data: bytes


@dataclass
class PDFObject:
    """One indirect object of a document graph.

    Attributes
    ----------
    obj_id:
        Integer identifier of the object.
    generation:
        Generation number (``0`` for every object we create or renumber).
    value:
        Parsed Python representation of the object.  For streams this is the
        stream dictionary.
    stream:
        Optional :class:`PDFStream` holding the stream data.  Its
        ``dictionary`` is the same object as ``value``.
    """

    obj_id: int
    generation: int
    value: Any
    stream: PDFStream | None = None

    @property
    def is_stream(self) -> bool:
        return self.stream is not None

    def reference(self) -> PDFReference:
        return PDFReference(self.obj_id, self.generation)

    def clone_with(self, *, value: Any | None = None, stream: PDFStream | None = None) -> "PDFObject":
        """Return a shallow copy with the provided overrides."""

        return PDFObject(
            obj_id=self.obj_id,
            generation=self.generation,
            value=self.value if value is None else value,
            stream=self.stream if stream is None else stream,
        )


def type_name(value: Any) -> str | None:
    """Return the ``/Type`` of a dictionary value, without the slash."""

    if not isinstance(value, dict):
        return None
    kind = value.get("Type")
    if isinstance(kind, PDFName):
        return kind.value
    return None


__all__ = ["PDFName", "PDFObject", "PDFReference", "PDFStream", "type_name"]
