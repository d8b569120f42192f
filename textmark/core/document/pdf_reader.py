"""
PDF document reading and rendering functionality.
"""
import logging
from typing import List, Optional, Tuple

import fitz  # PyMuPDF

from textmark.core.errors import DocumentLoadError
from textmark.core.page.models import RenderedPage

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


def looks_like_pdf(file_name: str, data: bytes) -> bool:
    """Check whether a file is a PDF, by extension or by header."""
    return file_name.lower().endswith(".pdf") or data[:1024].lstrip().startswith(PDF_MAGIC)


class PDFDocumentReader:
    """Opens PDF bytes and renders pages to RGB rasters."""

    def __init__(self, data: bytes, invert: bool = False):
        """
        Open a PDF from memory.

        Args:
            data: Raw PDF bytes
            invert: Whether to invert rendered colors (dark mode)

        Raises:
            DocumentLoadError: If the bytes are not a readable PDF
        """
        self.invert = invert
        try:
            self.doc: Optional[fitz.Document] = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            raise DocumentLoadError(f"Error loading PDF: {e}") from e

        if self.doc.page_count == 0:
            self.doc.close()
            raise DocumentLoadError("The PDF has no pages.")

    def close(self) -> None:
        if self.doc:
            self.doc.close()
            self.doc = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    @property
    def page_count(self) -> int:
        return self.doc.page_count if self.doc else 0

    def get_page_size(self, page_index: int) -> Tuple[float, float]:
        """
        Get the size of a page in points.

        Args:
            page_index: 0-based index of the page

        Returns:
            Tuple of (width, height) in points
        """
        rect = self.doc.load_page(page_index).rect
        return rect.width, rect.height

    def get_page_sizes(self) -> List[Tuple[float, float]]:
        return [self.get_page_size(i) for i in range(self.page_count)]

    def render_page(self, page_index: int, scale: float) -> RenderedPage:
        """
        Render a single page of the PDF.

        Args:
            page_index: 0-based index of the page to render
            scale: Zoom factor for rendering

        Returns:
            The RGB raster and its pixel size
        """
        page = self.doc.load_page(page_index)
        pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)

        if self.invert:
            pix.invert_irect(pix.irect)

        return RenderedPage(
            page_index=page_index,
            scale=scale,
            width=pix.width,
            height=pix.height,
            samples=bytes(pix.samples),
            stride=pix.stride,
        )
