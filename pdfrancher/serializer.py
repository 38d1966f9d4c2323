"""Helpers for serialising document graphs back into PDF syntax."""

from __future__ import annotations

import io
import math
from pathlib import Path

from .document import DocumentGraph
from .errors import EncodeError, SourceIOError
from .primitives import PDFName, PDFReference

_NAME_DELIMITERS = b"()<>[]{}/%#"


def _escape_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace("(", "\\(")
        .replace(")", "\\)")
        .replace("\r", "\\r")
        .replace("\n", "\\n")
    )


def _encode_name(text: str) -> bytes:
    try:
        raw = text.encode("latin-1")
    except UnicodeEncodeError as exc:
        raise EncodeError(f"Name /{text} is not latin-1 encodable") from exc
    out = bytearray(b"/")
    for byte in raw:
        if byte < 0x21 or byte > 0x7E or byte in _NAME_DELIMITERS:
            out.extend(b"#%02X" % byte)
        else:
            out.append(byte)
    return bytes(out)


def serialize(value) -> bytes:
    if isinstance(value, PDFName):
        return _encode_name(value.value)
    if isinstance(value, PDFReference):
        return f"{value.obj_id} {value.generation} R".encode("ascii")
    if isinstance(value, bool):
        return b"true" if value else b"false"
    if value is None:
        return b"null"
    if isinstance(value, (int, float)):
        if isinstance(value, float):
            if not math.isfinite(value):
                raise EncodeError(f"Cannot serialise non-finite number {value!r}")
            text = ("%.6f" % value).rstrip("0").rstrip(".")
            if text in ("", "-", "-0"):
                text = "0"
        else:
            text = str(value)
        return text.encode("ascii")
    if isinstance(value, str):
        try:
            return f"({_escape_text(value)})".encode("latin-1")
        except UnicodeEncodeError as exc:
            raise EncodeError("String is not latin-1 encodable") from exc
    if isinstance(value, bytes):
        return b"<" + value.hex().encode("ascii") + b">"
    if isinstance(value, dict):
        parts = [b"<<"]
        for key, item in value.items():
            if isinstance(key, PDFName):
                key_bytes = serialize(key)
            elif isinstance(key, str):
                key_bytes = _encode_name(key)
            else:
                raise EncodeError(f"Unsupported key type: {type(key)!r}")
            parts.append(key_bytes + b" ")
            parts.append(serialize(item))
            parts.append(b"\n")
        parts.append(b">>")
        return b"".join(parts)
    if isinstance(value, (list, tuple)):
        items = b" ".join(serialize(item) for item in value)
        return b"[" + items + b"]"
    raise EncodeError(f"Unsupported value type: {type(value)!r}")


def _xref_entries(offsets: dict[int, tuple[int, int]], size: int) -> list[bytes]:
    """Build xref lines from ``{number: (offset, generation)}``."""

    free = [number for number in range(size) if number not in offsets]
    next_free = {number: free[index + 1] if index + 1 < len(free) else 0 for index, number in enumerate(free)}
    entries = []
    for number in range(size):
        if number == 0:
            entries.append(f"{next_free[0]:010d} 65535 f \n".encode("ascii"))
        elif number in offsets:
            offset, generation = offsets[number]
            entries.append(f"{offset:010d} {generation:05d} n \n".encode("ascii"))
        else:
            entries.append(f"{next_free[number]:010d} 00001 f \n".encode("ascii"))
    return entries


def write_pdf(graph: DocumentGraph) -> bytes:
    """Serialise *graph* with a classic cross-reference table."""

    buffer = io.BytesIO()
    buffer.write(f"%PDF-{graph.version}\n".encode("ascii"))
    buffer.write(b"%\xE2\xE3\xCF\xD3\n")
    offsets: dict[int, tuple[int, int]] = {}
    for obj_id in sorted(graph.objects):
        obj = graph.objects[obj_id]
        offsets[obj_id] = (buffer.tell(), obj.generation)
        buffer.write(f"{obj_id} {obj.generation} obj\n".encode("ascii"))
        if obj.stream is not None:
            stream_data = obj.stream.data
            header = dict(obj.stream.dictionary)
            header["Length"] = len(stream_data)
            buffer.write(serialize(header))
            buffer.write(b"\nstream\n")
            buffer.write(stream_data)
            buffer.write(b"\nendstream")
        else:
            buffer.write(serialize(obj.value))
        buffer.write(b"\nendobj\n")
    xref_position = buffer.tell()
    size = graph.max_id + 1
    buffer.write(f"xref\n0 {size}\n".encode("ascii"))
    buffer.writelines(_xref_entries(offsets, size))
    trailer_dict = dict(graph.trailer)
    trailer_dict["Size"] = size
    buffer.write(b"trailer\n")
    buffer.write(serialize(trailer_dict))
    buffer.write(b"\nstartxref\n")
    buffer.write(str(xref_position).encode("ascii") + b"\n%%EOF\n")
    return buffer.getvalue()


def write_pdf_to_file(graph: DocumentGraph, path: str | Path) -> None:
    data = write_pdf(graph)
    try:
        with open(path, "wb") as handle:
            handle.write(data)
    except OSError as exc:
        raise SourceIOError(f"Cannot write {path}: {exc}") from exc


__all__ = ["serialize", "write_pdf", "write_pdf_to_file"]
