"""
On-page widget for one text annotation: an editor framed by a drag border
with a resize handle in the bottom-right corner.
"""
from PyQt5.QtCore import QPoint, Qt, pyqtSignal
from PyQt5.QtGui import QColor, QFont, QMouseEvent, QPainter, QPen, QTextCursor
from PyQt5.QtWidgets import QFrame, QTextEdit, QWidget

from textmark.config import Settings
from textmark.controllers.overlay_controller import InteractionMode, OverlayController, PixelBox
from textmark.core.annotations.models import Annotation


class AnnotationEditor(QTextEdit):
    """Text editor that reports focus and delete-on-empty to its box."""

    focused = pyqtSignal()
    focus_lost = pyqtSignal()
    delete_on_empty = pyqtSignal()

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setFrameShape(QFrame.NoFrame)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setLineWrapMode(QTextEdit.WidgetWidth)
        self.document().setDocumentMargin(0)

    def focusInEvent(self, event):
        super().focusInEvent(event)
        self.focused.emit()

    def focusOutEvent(self, event):
        super().focusOutEvent(event)
        self.focus_lost.emit()

    def keyPressEvent(self, event):
        if event.key() in (Qt.Key_Backspace, Qt.Key_Delete) and not self.toPlainText():
            self.delete_on_empty.emit()
            event.accept()
            return
        super().keyPressEvent(event)


class AnnotationBox(QWidget):
    """
    Positioned child of a page label. Presses on the border start a drag or,
    on the corner handle, a resize; all geometry comes from the controller.
    """

    def __init__(self, annotation_id: int, controller: OverlayController,
                 settings: Settings, paste_formatting: bool = False, parent=None):
        super().__init__(parent)
        self.annotation_id = annotation_id
        self.controller = controller
        self.settings = settings
        self._mode = InteractionMode.IDLE
        self._syncing = False

        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setMouseTracking(True)

        self.editor = AnnotationEditor(self)
        self.editor.setAcceptRichText(paste_formatting)
        self.editor.textChanged.connect(self._on_text_changed)
        self.editor.focused.connect(self._on_focused)
        self.editor.focus_lost.connect(self._on_focus_lost)
        self.editor.delete_on_empty.connect(self._on_delete_on_empty)

        controller.mode_changed.connect(self._on_mode_changed)

    # ===== Sync from the controller =====

    def sync(self, annotation: Annotation, box: PixelBox, font_scale: float) -> None:
        """Apply the annotation's text, style and pixel box."""
        self._syncing = True
        try:
            if self.editor.toPlainText() != annotation.text:
                self.editor.setPlainText(annotation.text)

            font = QFont("Helvetica")
            font.setPixelSize(max(1, round(annotation.font_size * font_scale)))
            self.editor.setFont(font)

            r, g, b = annotation.color
            if annotation.highlight_color is not None:
                hr, hg, hb = annotation.highlight_color
                background = f"rgb({hr}, {hg}, {hb})"
            else:
                background = "transparent"
            self.editor.setStyleSheet(
                f"QTextEdit {{ color: rgb({r}, {g}, {b}); background-color: {background}; }}"
            )
        finally:
            self._syncing = False

        self.setGeometry(round(box.x), round(box.y), round(box.width), round(box.height))
        margin = self.settings.text_margin
        self.editor.setGeometry(margin, margin,
                                max(1, self.width() - 2 * margin),
                                max(1, self.height() - 2 * margin))
        self.update()

    def start_editing(self) -> None:
        self.editor.setFocus(Qt.OtherFocusReason)
        self.editor.moveCursor(QTextCursor.End)

    # ===== Editor events =====

    def _on_text_changed(self):
        if not self._syncing:
            self.controller.text_changed(self.annotation_id, self.editor.toPlainText())

    def _on_focused(self):
        if self.annotation_id in self.controller.store:
            self.controller.begin_edit(self.annotation_id)

    def _on_focus_lost(self):
        self.controller.end_edit(self.annotation_id)

    def _on_delete_on_empty(self):
        self.controller.delete_pressed(self.annotation_id)

    def _on_mode_changed(self, annotation_id: int, mode):
        if annotation_id == self.annotation_id:
            self._mode = mode
            self.update()

    # ===== Pointer =====

    def _page_pos(self, event: QMouseEvent) -> QPoint:
        """Pointer position in the coordinates of the page label."""
        return self.parentWidget().mapFromGlobal(event.globalPos())

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.LeftButton:
            return super().mousePressEvent(event)
        pos = self._page_pos(event)
        mode = self.controller.pointer_down(self.annotation_id, pos.x(), pos.y())
        if mode is InteractionMode.EDITING:
            self.start_editing()
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent):
        if event.buttons() & Qt.LeftButton:
            pos = self._page_pos(event)
            self.controller.pointer_move(pos.x(), pos.y())
        else:
            self._update_cursor(event.pos())
        event.accept()

    def mouseReleaseEvent(self, event: QMouseEvent):
        if event.button() == Qt.LeftButton:
            self.controller.pointer_up()
        event.accept()

    def _update_cursor(self, pos: QPoint):
        handle = self.settings.resize_handle_size
        if pos.x() >= self.width() - handle and pos.y() >= self.height() - handle:
            self.setCursor(Qt.SizeFDiagCursor)
        else:
            self.setCursor(Qt.SizeAllCursor)

    # ===== Painting =====

    def paintEvent(self, event):
        super().paintEvent(event)
        painter = QPainter(self)

        active = self._mode is not InteractionMode.IDLE or self.controller.active_id == self.annotation_id
        pen = QPen(QColor(74, 158, 255) if active else QColor(136, 153, 170))
        pen.setStyle(Qt.SolidLine if active else Qt.DashLine)
        painter.setPen(pen)
        painter.drawRect(self.rect().adjusted(0, 0, -1, -1))

        # Resize handle
        handle = self.settings.resize_handle_size
        painter.fillRect(self.width() - handle, self.height() - handle, handle, handle,
                         QColor(74, 158, 255))
        painter.end()
