"""
Background worker that renders a pass without blocking the UI.
"""
import logging

from PyQt5.QtCore import QThread, pyqtSignal

from textmark.core.document.pdf_reader import PDFDocumentReader
from textmark.core.errors import DocumentLoadError

from .render_coordinator import PageRenderCoordinator

logger = logging.getLogger(__name__)


class RenderWorker(QThread):
    """Renders every page of one pass and emits the rasters in page order."""

    # Signals
    page_rendered = pyqtSignal(int, object)  # generation, RenderedPage
    failed = pyqtSignal(int, str)  # generation, message

    def __init__(self, coordinator: PageRenderCoordinator, document_bytes: bytes,
                 generation: int, dark_mode: bool = False, parent=None):
        super().__init__(parent)
        self.coordinator = coordinator
        self.document_bytes = document_bytes
        self.generation = generation
        self.dark_mode = dark_mode

    def run(self):
        """Execute the pass in the background thread."""
        # PyMuPDF documents are not shared across threads, so open a private one
        try:
            reader = PDFDocumentReader(self.document_bytes, invert=self.dark_mode)
        except DocumentLoadError as e:
            self.failed.emit(self.generation, str(e))
            return

        try:
            for rendered in self.coordinator.iter_pass(self.generation, reader):
                self.page_rendered.emit(self.generation, rendered)
        except Exception as e:
            logger.exception("Render pass %d failed", self.generation)
            self.failed.emit(self.generation, str(e))
        finally:
            reader.close()
