import logging
from typing import Dict, List

import fitz  # PyMuPDF
from PyQt5.QtCore import QObject, pyqtSignal

from textmark.core.errors import ExportError
from textmark.core.export.flatten import DrawCommand, DrawRectangle, DrawText
from textmark.core.layout.text_wrap import EXPORT_FONT

logger = logging.getLogger(__name__)


def _to_unit_color(color):
    """PyMuPDF uses 0-1 color components."""
    return [c / 255.0 for c in color]


class PDFExporter(QObject):
    """Applies draw commands to a PDF and returns the new file bytes."""

    # Signal for progress updates
    progress_signal = pyqtSignal(int, int)  # current, total

    def apply_commands(self, source_bytes: bytes,
                       commands_by_page: Dict[int, List[DrawCommand]]) -> bytes:
        """
        Draw commands onto a copy of the document.

        Commands are in PDF user space (origin bottom-left, y up) relative to
        the page as displayed.

        Args:
            source_bytes: The original PDF bytes
            commands_by_page: Draw commands grouped by 0-based page index

        Returns:
            The encoded output PDF

        Raises:
            ExportError: If the document cannot be opened or saved
        """
        try:
            doc = fitz.open(stream=source_bytes, filetype="pdf")
        except Exception as e:
            raise ExportError(f"Failed to open PDF for export: {e}") from e

        try:
            total_pages = len(commands_by_page)
            for current_page, (page_idx, commands) in enumerate(sorted(commands_by_page.items())):
                self.progress_signal.emit(current_page, total_pages)

                if page_idx >= len(doc):
                    logger.debug("Skipping commands for missing page %d", page_idx)
                    continue

                page = doc[page_idx]
                for command in commands:
                    self._draw(page, command)

            self.progress_signal.emit(total_pages, total_pages)
            return doc.tobytes(garbage=4, deflate=True)
        except ExportError:
            raise
        except Exception as e:
            raise ExportError(f"Failed to export annotations to PDF: {e}") from e
        finally:
            doc.close()

    def _draw(self, page: fitz.Page, command: DrawCommand) -> None:
        """Draw a single command on a PDF page."""
        page_height = page.rect.height

        if isinstance(command, DrawRectangle):
            # Flip to top-left origin, then undo the page rotation
            rect = fitz.Rect(
                command.x,
                page_height - (command.y + command.height),
                command.x + command.width,
                page_height - command.y,
            ) * page.derotation_matrix
            page.draw_rect(
                rect,
                color=None,
                fill=_to_unit_color(command.color),
                fill_opacity=command.opacity,
                width=0,
                overlay=True,
            )

        elif isinstance(command, DrawText):
            point = fitz.Point(command.x, page_height - command.y) * page.derotation_matrix
            page.insert_text(
                point,
                command.text,
                fontsize=command.size,
                fontname=EXPORT_FONT,
                color=_to_unit_color(command.color),
                rotate=page.rotation,
            )

        else:
            raise ExportError(f"Unknown draw command: {command!r}")
