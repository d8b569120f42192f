"""
Controller for zoom level and scroll position of the page view.
"""
import logging
from typing import Optional

from PyQt5.QtCore import QObject, QTimer, pyqtSignal
from PyQt5.QtWidgets import QScrollArea, QWidget

from textmark.config import Settings, get_settings
from textmark.core.geometry.zoom import ZoomGesture, ZoomPreset, ZoomSpec, parse_zoom, resolve_scale
from textmark.core.page.models import ScrollAnchor
from textmark.core.page.render_coordinator import PageRenderCoordinator

logger = logging.getLogger(__name__)


class ViewController(QObject):
    """Manages the render scale and keeps the view anchored while zooming."""

    # Signals
    zoom_changed = pyqtSignal(float)  # committed scale, a new pass is due
    preview_changed = pyqtSignal(float)  # temporary scale during a gesture

    def __init__(self, scroll_area: QScrollArea, page_container: QWidget,
                 coordinator: PageRenderCoordinator, settings: Optional[Settings] = None):
        super().__init__()

        self.scroll_area = scroll_area
        self.page_container = page_container
        self.coordinator = coordinator
        self.settings = settings or get_settings()

        # View state
        self.zoom_spec: ZoomSpec = self.settings.default_scale
        self.scale: float = self.settings.default_scale
        self.gesture = ZoomGesture(
            self.scale,
            throttle=self.settings.zoom_throttle_ms / 1000.0,
            debounce=self.settings.zoom_debounce_ms / 1000.0,
        )
        self._anchor: Optional[ScrollAnchor] = None

        # Trailing commit once the wheel goes quiet
        self._settle_timer = QTimer(self)
        self._settle_timer.setSingleShot(True)
        self._settle_timer.setInterval(self.settings.zoom_debounce_ms)
        self._settle_timer.timeout.connect(self._settle)

    # ===== Zoom =====

    def resolve(self, spec: ZoomSpec) -> float:
        viewport = self.scroll_area.viewport()
        margins = self.page_container.contentsMargins()
        return resolve_scale(
            spec,
            first_page=self.coordinator.first_page,
            viewport_height=viewport.height(),
            container_width=viewport.width() - margins.left() - margins.right(),
            fixed_offset=self.settings.toolbar_offset,
        )

    def set_zoom(self, spec: ZoomSpec) -> float:
        """
        Apply a zoom specifier from the zoom box or a preset.

        Returns:
            The resolved scale
        """
        self.zoom_spec = spec
        scale = self.resolve(spec)
        self._settle_timer.stop()
        self.gesture.reset(scale)
        self._commit(scale)
        return scale

    def refit(self) -> None:
        """Re-resolve fit presets after the viewport or document changed."""
        if isinstance(parse_zoom(self.zoom_spec), ZoomPreset):
            self.set_zoom(self.zoom_spec)

    def wheel_zoom(self, steps: float, pointer_y: Optional[float] = None) -> None:
        """
        Handle ctrl+wheel: preview immediately, commit throttled.

        Args:
            steps: Wheel notches, positive to zoom in
            pointer_y: Pointer position within the viewport
        """
        if self.coordinator.page_count == 0:
            return
        if self._anchor is None:
            self._anchor = self.capture_anchor(pointer_y)

        committed = self.gesture.tick(self.settings.wheel_zoom_step ** steps)
        self.preview_changed.emit(self.gesture.temp_scale)
        if committed is not None:
            self.zoom_spec = committed
            self._commit(committed)
        self._settle_timer.start()

    def _settle(self) -> None:
        committed = self.gesture.settle()
        if committed is not None:
            self.zoom_spec = committed
            self._commit(committed)
        elif self.gesture.pending:
            self._settle_timer.start()

    def _commit(self, scale: float) -> None:
        self.scale = scale
        if self._anchor is None:
            self._anchor = self.capture_anchor()
        logger.debug("Zoom committed at %.3f", scale)
        self.zoom_changed.emit(scale)

    def zoom_label(self) -> str:
        """Text for the zoom box."""
        parsed = parse_zoom(self.zoom_spec)
        if isinstance(parsed, ZoomPreset):
            return parsed.value
        return f"{round(self.scale * 100)}%"

    # ===== Scroll anchoring =====

    def content_height(self) -> int:
        return max(self.page_container.minimumHeight(), self.page_container.height())

    def capture_anchor(self, pointer_y: Optional[float] = None) -> Optional[ScrollAnchor]:
        return self.coordinator.capture_anchor(
            self.scroll_area.verticalScrollBar().value(),
            self.content_height(),
            self.scroll_area.viewport().height(),
            pointer_y,
        )

    def restore_anchor(self) -> None:
        """Scroll so the anchored content is back under the pointer."""
        anchor, self._anchor = self._anchor, None
        if anchor is None:
            return
        content = self.content_height()
        viewport = self.scroll_area.viewport().height()
        value = self.coordinator.restore_anchor(anchor, content, max(0, content - viewport))
        self.scroll_area.verticalScrollBar().setValue(value)

    def discard_anchor(self) -> None:
        self._anchor = None
