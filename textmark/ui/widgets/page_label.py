"""
Page label: shows one page raster and hosts its annotation boxes.
"""
from typing import Optional

from PyQt5.QtCore import QRectF, Qt
from PyQt5.QtGui import QColor, QImage, QMouseEvent, QPainter, QPen, QPixmap
from PyQt5.QtWidgets import QLabel

from textmark.controllers.overlay_controller import OverlayController, PixelBox
from textmark.core.page.models import RenderedPage


class PageLabel(QLabel):
    """
    Raster of a single page. The pixmap is scaled to the label, so resizing
    the label gives a cosmetic zoom until the next raster arrives.
    """

    def __init__(self, page_index: int, controller: OverlayController, parent=None):
        super().__init__(parent)

        self.page_index = page_index
        self.controller = controller

        # Scale of the raster currently shown, None before the first one
        self.raster_scale: Optional[float] = None
        self._preview: Optional[PixelBox] = None

        self.setScaledContents(True)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.ClickFocus)
        self.setStyleSheet("background-color: white;")

    def set_raster(self, rendered: RenderedPage) -> None:
        image = QImage(rendered.samples, rendered.width, rendered.height,
                       rendered.stride, QImage.Format_RGB888)
        # Detach from the sample buffer owned by the render result
        self.setPixmap(QPixmap.fromImage(image.copy()))
        self.setFixedSize(rendered.width, rendered.height)
        self.raster_scale = rendered.scale

    def set_display_size(self, width: int, height: int) -> None:
        """Resize without re-rendering; the current raster is stretched."""
        self.setFixedSize(max(1, width), max(1, height))
        self.update()

    @property
    def is_stretched(self) -> bool:
        pixmap = self.pixmap()
        return pixmap is None or pixmap.isNull() or pixmap.size() != self.size()

    # ===== Placement =====

    def set_placement_mode(self, enabled: bool) -> None:
        self.setCursor(Qt.CrossCursor if enabled else Qt.ArrowCursor)
        if not enabled:
            self.set_preview(None)

    def set_preview(self, box: Optional[PixelBox]) -> None:
        self._preview = box
        self.update()

    def leaveEvent(self, event):
        if self._preview is not None:
            self.set_preview(None)
        super().leaveEvent(event)

    def mouseMoveEvent(self, event: QMouseEvent):
        if self.controller.placement_active:
            self.controller.placement_hover(self.page_index, event.pos().x(), event.pos().y())
        super().mouseMoveEvent(event)

    def mousePressEvent(self, event: QMouseEvent):
        if event.button() != Qt.LeftButton:
            return super().mousePressEvent(event)

        if self.controller.placement_active:
            self.controller.place_at(self.page_index, event.pos().x(), event.pos().y())
        else:
            # Clicking the bare page leaves the active annotation
            self.setFocus(Qt.MouseFocusReason)
            self.controller.deactivate()
        event.accept()

    def paintEvent(self, event):
        super().paintEvent(event)
        if self._preview is None:
            return

        painter = QPainter(self)
        style = self.controller.default_style
        box = QRectF(self._preview.x, self._preview.y, self._preview.width, self._preview.height)
        if style.highlight_color is not None:
            fill = QColor(*style.highlight_color)
            fill.setAlpha(128)
            painter.fillRect(box, fill)
        pen = QPen(QColor(74, 158, 255))
        pen.setStyle(Qt.DashLine)
        painter.setPen(pen)
        painter.drawRect(box)
        painter.setPen(QColor(*style.color))
        margin = self.controller.settings.text_margin
        painter.drawText(box.adjusted(margin, margin, -margin, -margin),
                         Qt.AlignLeft | Qt.AlignTop | Qt.TextWordWrap,
                         self.controller.settings.placeholder_text)
        painter.end()
