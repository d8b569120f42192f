# core/export/export_worker.py

import logging
import os
import shutil
import tempfile
from typing import Dict, List

from PyQt5.QtCore import QThread, pyqtSignal

from textmark.core.document.pdf_exporter import PDFExporter
from textmark.core.errors import ExportError

from .flatten import DrawCommand

logger = logging.getLogger(__name__)


class ExportWorker(QThread):
    """Worker thread for writing the annotated PDF without freezing the UI."""

    # Signals
    finished = pyqtSignal(bool, str)  # success, message
    progress = pyqtSignal(str)  # status message
    page_progress = pyqtSignal(int, int)  # current, total pages

    def __init__(self, source_bytes: bytes, output_pdf: str,
                 commands_by_page: Dict[int, List[DrawCommand]]):
        super().__init__()
        self.source_bytes = source_bytes
        self.output_pdf = output_pdf
        self.commands_by_page = commands_by_page
        self.temp_path = None
        self.exporter = PDFExporter()

    def run(self):
        """Execute the export in a background thread."""
        try:
            self.exporter.progress_signal.connect(self._on_page_progress)
            self.progress.emit("Exporting annotations...")

            output_bytes = self.exporter.apply_commands(self.source_bytes, self.commands_by_page)

            self.progress.emit("Finalizing...")
            # Write next to the target and move into place
            output_dir = os.path.dirname(os.path.abspath(self.output_pdf))
            temp_fd, self.temp_path = tempfile.mkstemp(suffix='.pdf', dir=output_dir)
            with os.fdopen(temp_fd, 'wb') as f:
                f.write(output_bytes)
            shutil.move(self.temp_path, self.output_pdf)
            self.temp_path = None

            self.finished.emit(True, f"Saved annotated PDF to {self.output_pdf}")

        except (ExportError, OSError) as e:
            logger.error("Export to %s failed: %s", self.output_pdf, e)
            if self.temp_path and os.path.exists(self.temp_path):
                os.remove(self.temp_path)
            self.finished.emit(False, f"Error during export: {e}")

    def _on_page_progress(self, current, total):
        """Handle page-level progress updates."""
        self.page_progress.emit(current, total)
