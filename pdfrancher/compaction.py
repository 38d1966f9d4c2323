"""Dead-object pruning and stream compression for finished documents."""

from __future__ import annotations

import logging
import zlib
from typing import List

from .document import DocumentGraph, iter_references
from .primitives import PDFName, PDFStream, type_name

logger = logging.getLogger(__name__)


def prune_objects(graph: DocumentGraph) -> List[int]:
    """Drop every object that cannot be reached from the trailer.

    Returns the removed object numbers in ascending order.
    """

    reachable: set[int] = set()
    pending = [ref.obj_id for ref in iter_references(graph.trailer)]
    while pending:
        obj_id = pending.pop()
        if obj_id in reachable or obj_id not in graph.objects:
            continue
        reachable.add(obj_id)
        pending.extend(ref.obj_id for ref in iter_references(graph.objects[obj_id].value))
    removed = sorted(set(graph.objects) - reachable)
    for obj_id in removed:
        del graph.objects[obj_id]
    logger.debug("Pruned %d unreachable objects, %d remain", len(removed), len(graph.objects))
    return removed


def compress_streams(graph: DocumentGraph) -> int:
    """Deflate unfiltered streams when that makes them smaller.

    XMP metadata streams are left as plain text.  Returns the number of
    streams that were compressed.
    """

    compressed_count = 0
    for obj in graph.stream_objects():
        dictionary = obj.stream.dictionary
        if "Filter" in dictionary or type_name(dictionary) == "Metadata":
            continue
        compressed = zlib.compress(obj.stream.data)
        if len(compressed) >= len(obj.stream.data):
            continue
        dictionary = dict(dictionary)
        dictionary["Filter"] = PDFName("FlateDecode")
        dictionary.pop("DecodeParms", None)
        dictionary["Length"] = len(compressed)
        obj.value = dictionary
        obj.stream = PDFStream(dictionary, compressed)
        compressed_count += 1
    logger.debug("Compressed %d streams", compressed_count)
    return compressed_count


def compact(graph: DocumentGraph, compress: bool = True) -> DocumentGraph:
    """Prune unreachable objects, then compress the streams that survive."""

    prune_objects(graph)
    if compress:
        compress_streams(graph)
    return graph


__all__ = ["compact", "compress_streams", "prune_objects"]
