"""Exception hierarchy shared by every pdfrancher module.

Every failure surfaced to callers derives from :class:`PDFRancherError` so the
shell can catch one type and still inspect the concrete subclass.
"""

from __future__ import annotations


class PDFRancherError(RuntimeError):
    """Base class for all errors raised by pdfrancher."""


class SourceIOError(PDFRancherError, OSError):
    """Raised when a source file cannot be read."""


class PDFSyntaxError(PDFRancherError):
    """Raised when the parser encounters malformed or unsupported input."""


class ImageDecodeError(PDFSyntaxError):
    """Raised when a raster image cannot be decoded."""


class UnsupportedSourceType(PDFRancherError):
    """Raised for files whose extension is neither PDF nor a known raster format."""


class StructuralError(PDFRancherError):
    """Raised when a document lacks a Catalog or a root Pages node."""


class SelectorOutOfRange(PDFRancherError, IndexError):
    """Raised when a selector names a source or page that does not exist."""


class EmptySources(PDFRancherError):
    """Raised when an export is requested without any source document."""


class RenderError(PDFRancherError):
    """Raised when a page cannot be rasterized."""


class EncodeError(PDFRancherError):
    """Raised when an image or a PDF cannot be serialized."""


__all__ = [
    "EmptySources",
    "EncodeError",
    "ImageDecodeError",
    "PDFRancherError",
    "PDFSyntaxError",
    "RenderError",
    "SelectorOutOfRange",
    "SourceIOError",
    "StructuralError",
    "UnsupportedSourceType",
]
