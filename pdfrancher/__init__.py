"""Public interface of the pdfrancher composition engine."""

from .compose import export, export_bytes, preview
from .document import DocumentGraph, ObjectKind, classify
from .errors import (
    EmptySources,
    EncodeError,
    ImageDecodeError,
    PDFRancherError,
    PDFSyntaxError,
    RenderError,
    SelectorOutOfRange,
    SourceIOError,
    StructuralError,
    UnsupportedSourceType,
)
from .models import Page, Rotation, Selector
from .parser import parse_pdf
from .primitives import PDFName, PDFObject, PDFReference, PDFStream
from .project import Project
from .serializer import write_pdf
from .sources import SourceDocument, SourceKind, open_source

__all__ = [
    "DocumentGraph",
    "EmptySources",
    "EncodeError",
    "ImageDecodeError",
    "ObjectKind",
    "PDFName",
    "PDFObject",
    "PDFRancherError",
    "PDFReference",
    "PDFStream",
    "PDFSyntaxError",
    "Page",
    "Project",
    "RenderError",
    "Rotation",
    "Selector",
    "SelectorOutOfRange",
    "SourceDocument",
    "SourceIOError",
    "SourceKind",
    "StructuralError",
    "UnsupportedSourceType",
    "classify",
    "export",
    "export_bytes",
    "open_source",
    "parse_pdf",
    "preview",
    "write_pdf",
]
