"""
Core business logic for Textmark PDF.
"""
from .errors import (
    DocumentLoadError,
    ExportError,
    NoDocumentError,
    TextmarkError,
    UnsupportedFileError,
)

__all__ = [
    'DocumentLoadError',
    'ExportError',
    'NoDocumentError',
    'TextmarkError',
    'UnsupportedFileError',
]
