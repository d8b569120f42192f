"""
The editing session: the loaded document, its pages and its annotations.
"""
import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

from textmark.config import Settings, get_settings
from textmark.core.annotations.persistence import Preferences, SessionPersistence
from textmark.core.annotations.store import AnnotationStore, IdAllocator
from textmark.core.errors import DocumentLoadError, NoDocumentError, UnsupportedFileError
from textmark.core.export.flatten import DrawCommand, FlatteningEngine, group_by_page
from textmark.core.page.render_coordinator import PageRenderCoordinator

from .pdf_exporter import PDFExporter
from .pdf_reader import PDFDocumentReader, looks_like_pdf

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """Original bytes of a loaded PDF and its unscaled page sizes."""
    data: bytes
    name: str
    page_sizes: Tuple[Tuple[float, float], ...]

    @property
    def page_count(self) -> int:
        return len(self.page_sizes)


class DocumentSession:
    """Owns the document, the annotation store and the page geometry."""

    def __init__(self, persistence: Optional[SessionPersistence] = None,
                 settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.persistence = persistence
        self.preferences = persistence.load_preferences() if persistence else Preferences()

        self.document: Optional[Document] = None
        self.store = AnnotationStore(IdAllocator())
        self.coordinator = PageRenderCoordinator()

    @property
    def is_loaded(self) -> bool:
        return self.document is not None

    def require_document(self, action: str = "This action") -> Document:
        """
        Raises:
            NoDocumentError: If no document is loaded
        """
        if self.document is None:
            raise NoDocumentError(action)
        return self.document

    # ===== Loading =====

    def load_file(self, file_path: str) -> bool:
        """
        Load a PDF from disk, replacing the current document.

        Returns:
            False if the file is not a PDF (nothing changes)

        Raises:
            DocumentLoadError: If the file cannot be read or parsed
        """
        try:
            with open(file_path, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise DocumentLoadError(f"Cannot read {file_path}: {e}") from e

        try:
            self.load_bytes(data, os.path.basename(file_path))
        except UnsupportedFileError:
            logger.info("Ignoring unsupported file %s", file_path)
            return False
        return True

    def load_bytes(self, data: bytes, name: str, persist: bool = True) -> Document:
        """
        Load a PDF from memory, replacing the current document and clearing
        all annotations. The session is unchanged if loading fails.

        Raises:
            UnsupportedFileError: If the data is not a PDF
            DocumentLoadError: If the PDF cannot be parsed
        """
        if not looks_like_pdf(name, data):
            raise UnsupportedFileError(name)

        with PDFDocumentReader(data) as reader:
            page_sizes = tuple(reader.get_page_sizes())

        self.document = Document(data=data, name=name, page_sizes=page_sizes)
        self.store.reset(IdAllocator())
        self.coordinator.load_pages(page_sizes)
        logger.info("Loaded %s (%d pages)", name, len(page_sizes))

        if persist:
            self._save_document()
        return self.document

    def restore(self) -> bool:
        """
        Restore the document and annotations saved by a previous session.

        Returns:
            True if a saved session was restored
        """
        if self.persistence is None:
            return False

        saved = self.persistence.load_session()
        if saved is None:
            return False

        try:
            self.load_bytes(saved.document_bytes, saved.document_name, persist=False)
        except (DocumentLoadError, UnsupportedFileError) as e:
            logger.warning("Discarding saved session: %s", e)
            self.persistence.clear_session()
            return False

        count = self.store.restore(saved.annotations)
        logger.info("Restored %d annotation(s) for %s", count, saved.document_name)
        return True

    def close(self) -> None:
        """Unload the document and drop its annotations."""
        self.document = None
        self.store.reset(IdAllocator())
        self.coordinator.clear()
        if self._save_enabled:
            self.persistence.clear_session()

    # ===== Persistence =====

    @property
    def _save_enabled(self) -> bool:
        return self.persistence is not None and self.preferences.save_enabled

    def _save_document(self) -> None:
        if not self._save_enabled or self.document is None:
            return
        try:
            self.persistence.save_document(self.document.data, self.document.name)
            self.persistence.save_annotations(self.store.all())
        except OSError as e:
            logger.warning("Saving the document failed: %s", e)

    def save_annotations(self) -> None:
        """Persist the current annotations. Failures are logged, not raised."""
        if not self._save_enabled or self.document is None:
            return
        try:
            self.persistence.save_annotations(self.store.all())
        except OSError as e:
            logger.warning("Auto-save failed: %s", e)

    def set_save_enabled(self, enabled: bool) -> None:
        """Turn session saving on, saving the current state, or off, clearing it."""
        self.preferences.save_enabled = enabled
        self.save_preferences()
        if self.persistence is None:
            return
        if enabled:
            self._save_document()
        else:
            self.persistence.clear_session()

    def save_preferences(self) -> None:
        if self.persistence is None:
            return
        try:
            self.persistence.save_preferences(self.preferences)
        except OSError as e:
            logger.warning("Saving preferences failed: %s", e)

    # ===== Export =====

    def flatten(self, engine: Optional[FlatteningEngine] = None) -> List[DrawCommand]:
        """
        Flatten the annotations against the original page sizes.

        Raises:
            NoDocumentError: If no document is loaded
        """
        document = self.require_document("Download")
        engine = engine or FlatteningEngine(settings=self.settings)
        return engine.flatten(self.store.all(), document.page_sizes)

    def export_bytes(self, exporter=None, engine: Optional[FlatteningEngine] = None) -> bytes:
        """
        Produce the annotated PDF.

        Raises:
            NoDocumentError: If no document is loaded
            ExportError: If writing the PDF fails
        """
        document = self.require_document("Download")
        exporter = exporter or PDFExporter()
        return exporter.apply_commands(document.data, group_by_page(self.flatten(engine)))
