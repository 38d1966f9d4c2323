"""Byte-level PDF parsing.

The parser scans the file body for ``N G obj … endobj`` sections instead of
trusting the cross-reference table, which makes it tolerant of files with
stale offsets or leading garbage.  Object streams are expanded and the
trailer is rebuilt from the ``trailer`` sections (or from the last
cross-reference stream when the file has none).
"""

from __future__ import annotations

import logging
import re
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

from .document import DocumentGraph
from .errors import PDFSyntaxError, SourceIOError
from .primitives import PDFName, PDFObject, PDFReference, PDFStream, type_name
from .tokenizer import PDFHexString, PDFString, TokenStream, tokenize

logger = logging.getLogger(__name__)

PDF_SIGNATURE = b"%PDF-"
DEFAULT_HEADER_WINDOW = 1024

_OBJECT_RE = re.compile(rb"(\d+)\s+(\d+)\s+obj\b")
_BODY_END_RE = re.compile(rb"\(|%|\bendobj\b|\bstream(?:\r\n|\n|\r)")
_STRING_DELIMITER_RE = re.compile(rb"\\.|[()]", re.DOTALL)
_EOL_RE = re.compile(rb"\r\n|\n|\r")
_ENDSTREAM_RE = re.compile(rb"[\r\n\s]*endstream")
_TRAILER_RE = re.compile(rb"\btrailer\b")
_VERSION_RE = re.compile(rb"%PDF-(\d+\.\d+)")

# Only these keys describe the document; the rest describe the file layout.
_TRAILER_KEYS = ("Root", "Info", "ID")


def _parse_value(tokens: TokenStream):
    token = tokens.pop()
    if token == "<<":
        result: Dict[str, object] = {}
        while tokens.peek() != ">>":
            key = tokens.pop()
            if not isinstance(key, PDFName):
                raise PDFSyntaxError("Expected PDF name inside dictionary")
            result[key.value] = _parse_value(tokens)
        tokens.pop()  # consume '>>'
        return result
    if token == "[":
        items = []
        while tokens.peek() != "]":
            items.append(_parse_value(tokens))
        tokens.pop()
        return items
    if isinstance(token, PDFString):
        return token.value
    if isinstance(token, PDFHexString):
        return token.value
    if isinstance(token, PDFName):
        return token
    if isinstance(token, (int, float)):
        next_token = tokens.peek()
        next_next = tokens.peek_n(1)
        if (
            isinstance(token, int)
            and isinstance(next_token, int)
            and next_next == "R"
        ):
            obj_id = token
            generation = tokens.pop()
            tokens.pop()  # consume 'R'
            return PDFReference(obj_id, generation)
        return token
    if token in {"true", "false"}:
        return token == "true"
    if token == "null":
        return None
    raise PDFSyntaxError(f"Unexpected token {token!r}")


def parse_object_body(body: bytes):
    """Parse the first PDF value found in *body*."""

    try:
        tokens = TokenStream(tokenize(body))
        if tokens.exhausted():
            return None
        return _parse_value(tokens)
    except ValueError as exc:
        raise PDFSyntaxError(str(exc)) from exc


def locate_header(data: bytes, window: int = DEFAULT_HEADER_WINDOW) -> int:
    """Return the offset of the ``%PDF-`` signature within the first *window* bytes."""

    offset = data.find(PDF_SIGNATURE, 0, window + len(PDF_SIGNATURE))
    if offset == -1:
        raise PDFSyntaxError("PDF header signature not found")
    return offset


def decode_stream_data(stream: PDFStream) -> bytes:
    """Return the decoded bytes of *stream*.

    Only ``FlateDecode`` without predictors is supported, which covers
    content streams and object streams written by common producers.
    """

    filters = stream.dictionary.get("Filter")
    if filters is None:
        return stream.data
    if isinstance(filters, PDFName):
        filters = [filters]
    parms = stream.dictionary.get("DecodeParms")
    for parm in parms if isinstance(parms, list) else [parms]:
        predictor = parm.get("Predictor", 1) if isinstance(parm, dict) else 1
        if isinstance(predictor, int) and predictor > 1:
            raise PDFSyntaxError("Stream predictors are not supported")
    data = stream.data
    for name in filters:
        if not isinstance(name, PDFName) or name.value not in ("FlateDecode", "Fl"):
            raise PDFSyntaxError(f"Unsupported stream filter {name!r}")
        try:
            data = zlib.decompressobj().decompress(data)
        except zlib.error as exc:
            raise PDFSyntaxError(f"Corrupt Flate stream: {exc}") from exc
    return data


@dataclass
class _ScanResult:
    objects: Dict[int, PDFObject] = field(default_factory=dict)
    # file offset of the definition kept for each object number
    positions: Dict[int, int] = field(default_factory=dict)
    body_spans: List[Tuple[int, int]] = field(default_factory=list)
    xref_dicts: List[dict] = field(default_factory=list)


def _skip_literal_string(data: bytes, pos: int) -> int:
    """Return the offset just past the literal string opening at *pos*."""

    depth = 0
    while True:
        match = _STRING_DELIMITER_RE.search(data, pos)
        if match is None:
            raise PDFSyntaxError("Unterminated literal string")
        pos = match.end()
        token = match.group(0)
        if token.startswith(b"\\"):
            continue
        if token == b"(":
            depth += 1
        else:
            depth -= 1
            if depth == 0:
                return pos


def _find_body_end(data: bytes, start: int):
    """Find the ``endobj`` or ``stream`` keyword closing the body at *start*.

    Literal strings and comments are skipped so keywords inside them do not
    end the object early.
    """

    pos = start
    while True:
        match = _BODY_END_RE.search(data, pos)
        if match is None:
            return None
        token = match.group(0)
        if token == b"(":
            pos = _skip_literal_string(data, match.start())
        elif token == b"%":
            eol = _EOL_RE.search(data, match.end())
            pos = eol.end() if eol is not None else len(data)
        else:
            return match


def _read_stream(data: bytes, start: int, length) -> Tuple[bytes, int]:
    """Slice stream bytes starting at *start*; return them and the end offset."""

    if isinstance(length, int) and not isinstance(length, bool) and length >= 0:
        end = start + length
        if _ENDSTREAM_RE.match(data, end):
            return data[start:end], end
    marker = data.find(b"endstream", start)
    if marker == -1:
        raise PDFSyntaxError("Stream without endstream")
    end = marker
    if data[end - 2 : end] == b"\r\n":
        end -= 2
    elif data[end - 1 : end] in (b"\n", b"\r"):
        end -= 1
    return data[start:end], max(end, start)


def _scan_objects(data: bytes) -> _ScanResult:
    result = _ScanResult()
    pos = 0
    while True:
        match = _OBJECT_RE.search(data, pos)
        if match is None:
            break
        obj_id = int(match.group(1))
        generation = int(match.group(2))
        start = match.end()
        body_end = _find_body_end(data, start)
        if body_end is None:
            raise PDFSyntaxError(f"Object {obj_id} is not terminated")
        if body_end.group(0) == b"endobj":
            value = parse_object_body(data[start : body_end.start()])
            obj = PDFObject(obj_id, generation, value)
            pos = body_end.end()
        else:
            head = parse_object_body(data[start : body_end.start()])
            if not isinstance(head, dict):
                raise PDFSyntaxError(f"Stream object {obj_id} has no dictionary")
            stream_bytes, data_end = _read_stream(data, body_end.end(), head.get("Length"))
            head["Length"] = len(stream_bytes)
            obj = PDFObject(obj_id, generation, head, PDFStream(head, stream_bytes))
            if type_name(head) == "XRef":
                result.xref_dicts.append(head)
            endobj = data.find(b"endobj", data_end)
            pos = endobj + len(b"endobj") if endobj != -1 else data_end
        # later definitions belong to later revisions
        result.objects[obj_id] = obj
        result.positions[obj_id] = match.start()
        result.body_spans.append((match.start(), pos))
    return result


def _inside_body(offset: int, spans: List[Tuple[int, int]]) -> bool:
    return any(start <= offset < end for start, end in spans)


def _parse_trailer(data: bytes, scan: _ScanResult) -> dict:
    merged: dict = {}
    for match in _TRAILER_RE.finditer(data):
        if _inside_body(match.start(), scan.body_spans):
            continue
        end = data.find(b"startxref", match.end())
        value = parse_object_body(data[match.end() : end if end != -1 else len(data)])
        if isinstance(value, dict):
            merged.update(value)
    if "Root" not in merged:
        for xref in scan.xref_dicts:
            merged.update(xref)
    if "Encrypt" in merged:
        raise PDFSyntaxError("Encrypted documents are not supported")
    if not isinstance(merged.get("Root"), PDFReference):
        raise PDFSyntaxError("Trailer dictionary missing /Root")
    return {key: merged[key] for key in _TRAILER_KEYS if key in merged}


def _expand_object_streams(objects: Dict[int, PDFObject], positions: Dict[int, int]) -> None:
    """Replace object streams by the objects they hold.

    A compressed object replaces another definition of the same number only
    when its container appears later in the file.
    """

    containers = sorted(
        (obj for obj in objects.values() if obj.is_stream and type_name(obj.value) == "ObjStm"),
        key=lambda obj: positions.get(obj.obj_id, 0),
    )
    for container in containers:
        container_position = positions.get(container.obj_id, 0)
        raw = decode_stream_data(container.stream)
        count = container.value.get("N")
        first = container.value.get("First")
        if not isinstance(count, int) or not isinstance(first, int):
            raise PDFSyntaxError(f"Object stream {container.obj_id} lacks /N or /First")
        header = tokenize(raw[:first])
        if len(header) < 2 * count or not all(isinstance(item, int) for item in header[: 2 * count]):
            raise PDFSyntaxError(f"Object stream {container.obj_id} has a malformed header")
        for index in range(count):
            number, offset = header[2 * index], header[2 * index + 1]
            stop = header[2 * index + 3] if index + 1 < count else len(raw) - first
            if number == container.obj_id or positions.get(number, -1) > container_position:
                continue
            value = parse_object_body(raw[first + offset : first + stop])
            objects[number] = PDFObject(number, 0, value)
            positions[number] = container_position
        logger.debug("Expanded %d objects from object stream %d", count, container.obj_id)
    for container in containers:
        if objects.get(container.obj_id) is container:
            del objects[container.obj_id]


def parse_pdf(data: bytes, header_window: int = DEFAULT_HEADER_WINDOW) -> DocumentGraph:
    """Parse *data* into a :class:`DocumentGraph`.

    Bytes preceding the ``%PDF-`` signature are ignored.
    """

    data = data[locate_header(data, header_window) :]
    version_match = _VERSION_RE.match(data)
    version = version_match.group(1).decode("ascii") if version_match else "1.4"

    scan = _scan_objects(data)
    trailer = _parse_trailer(data, scan)
    objects = scan.objects
    _expand_object_streams(objects, scan.positions)
    for obj_id in [obj_id for obj_id, obj in objects.items() if type_name(obj.value) == "XRef" and obj.is_stream]:
        del objects[obj_id]

    logger.debug("Parsed PDF %s with %d objects", version, len(objects))
    return DocumentGraph(objects=dict(sorted(objects.items())), trailer=trailer, version=version)


def parse_pdf_from_file(path: str | Path, header_window: int = DEFAULT_HEADER_WINDOW) -> DocumentGraph:
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise SourceIOError(f"Cannot read {path}: {exc}") from exc
    return parse_pdf(data, header_window)


__all__ = [
    "DEFAULT_HEADER_WINDOW",
    "PDF_SIGNATURE",
    "decode_stream_data",
    "locate_header",
    "parse_object_body",
    "parse_pdf",
    "parse_pdf_from_file",
]
