"""
PDF viewer: lays out page labels, runs render passes and keeps annotation
boxes in sync with the overlay controller.
"""
import logging
from typing import Dict, List, Optional

from PyQt5.QtCore import QEvent, QObject, Qt, QTimer
from PyQt5.QtWidgets import QScrollArea, QWidget

from textmark.config import Settings
from textmark.controllers.overlay_controller import OverlayController
from textmark.controllers.view_controller import ViewController
from textmark.core.document.session import DocumentSession
from textmark.core.page.models import RenderedPage
from textmark.core.page.render_worker import RenderWorker
from textmark.ui.widgets.annotation_box import AnnotationBox
from textmark.ui.widgets.page_label import PageLabel

logger = logging.getLogger(__name__)


class _WheelFilter(QObject):
    """Routes ctrl+wheel on the scroll viewport to the view controller."""

    def __init__(self, view_controller: ViewController):
        super().__init__()
        self.view_controller = view_controller

    def eventFilter(self, obj, event):
        if event.type() == QEvent.Wheel and event.modifiers() & Qt.ControlModifier:
            steps = event.angleDelta().y() / 120.0
            if steps:
                self.view_controller.wheel_zoom(steps, event.pos().y())
            return True
        return False


class PDFViewer:
    """
    Manages page display for the loaded document.
    """

    def __init__(
        self,
        page_container_widget: QWidget,
        scroll_area_widget: QScrollArea,
        session: DocumentSession,
        overlay_controller: OverlayController,
        view_controller: ViewController,
        settings: Settings,
    ):
        self.page_container = page_container_widget
        self.scroll_area = scroll_area_widget
        self.session = session
        self.overlay = overlay_controller
        self.view_controller = view_controller
        self.settings = settings

        self.dark_mode = session.preferences.dark_mode
        self.page_spacing = settings.page_spacing

        # Page management
        self.page_labels: Dict[int, PageLabel] = {}
        self.boxes: Dict[int, AnnotationBox] = {}
        self._workers: List[RenderWorker] = []

        self.page_container.resizeEvent = self.container_resize_event

        self._wheel_filter = _WheelFilter(view_controller)
        self.scroll_area.viewport().installEventFilter(self._wheel_filter)

        view_controller.zoom_changed.connect(self.start_render)
        view_controller.preview_changed.connect(self.apply_preview_scale)

        overlay_controller.annotation_added.connect(self._on_annotation_added)
        overlay_controller.annotation_changed.connect(self._sync_box)
        overlay_controller.annotation_removed.connect(self._on_annotation_removed)
        overlay_controller.page_reprojected.connect(self._sync_page)
        overlay_controller.placement_changed.connect(self._on_placement_changed)
        overlay_controller.preview_moved.connect(self._on_preview_moved)

    # ===== Page Management Methods =====

    def clear_all(self):
        """Remove every page label and annotation box."""
        self.session.coordinator.begin_pass(self.view_controller.scale)
        self.view_controller.discard_anchor()
        for box in self.boxes.values():
            box.deleteLater()
        self.boxes.clear()
        for label in self.page_labels.values():
            label.hide()
            label.deleteLater()
        self.page_labels.clear()
        self.page_container.setMinimumHeight(0)

    def load_document(self):
        """Create page labels for the session's document and render them."""
        self.clear_all()
        self.overlay.reset()
        if not self.session.is_loaded:
            return

        for page in self.session.coordinator.pages:
            label = PageLabel(page.page_index, self.overlay, self.page_container)
            width, height = page.expected_size(self.view_controller.scale)
            label.set_display_size(width, height)
            label.show()
            self.page_labels[page.page_index] = label

        for annotation in self.session.store.all():
            self._create_box(annotation.id)

        self._layout_pages()
        self.view_controller.set_zoom(self.view_controller.zoom_spec)

    def _layout_pages(self):
        """Stack the labels vertically, centered, and size the container."""
        container_width = self.page_container.width()
        y = self.page_spacing
        for index in sorted(self.page_labels):
            label = self.page_labels[index]
            x = max(0, (container_width - label.width()) // 2)
            label.move(x, y)
            y += label.height() + self.page_spacing
        self.page_container.setMinimumHeight(y if self.page_labels else 0)
        widest = max((label.width() for label in self.page_labels.values()), default=0)
        self.page_container.setMinimumWidth(widest + 2 * self.page_spacing if widest else 0)

    def container_resize_event(self, event):
        """Re-center the pages when the container size changes."""
        self._layout_pages()
        event.accept()

    # ===== Rendering =====

    def start_render(self, scale: float):
        """Start a render pass at ``scale``, superseding any pass in progress."""
        document = self.session.document
        if document is None:
            return

        generation = self.session.coordinator.begin_pass(scale)
        self.apply_preview_scale(scale)

        worker = RenderWorker(self.session.coordinator, document.data, generation,
                              dark_mode=self.dark_mode)
        worker.page_rendered.connect(self._on_page_rendered)
        worker.failed.connect(self._on_render_failed)
        worker.finished.connect(lambda w=worker: self._on_worker_finished(w))
        self._workers.append(worker)
        worker.start()

    def apply_preview_scale(self, scale: float):
        """Stretch every page to its size at ``scale`` until new rasters land."""
        for index, label in self.page_labels.items():
            page = self.session.coordinator.page(index)
            if page is None:
                continue
            width, height = page.expected_size(scale)
            if (width, height) != (label.width(), label.height()):
                label.set_display_size(width, height)
            self._set_boxes_visible(index, not label.is_stretched)
        self._layout_pages()

    def _on_page_rendered(self, generation: int, rendered: RenderedPage):
        coordinator = self.session.coordinator
        if not coordinator.commit_page(generation, rendered):
            return

        label = self.page_labels.get(rendered.page_index)
        if label is not None:
            label.set_raster(rendered)
        self._layout_pages()
        self.overlay.on_page_rendered(rendered.page_index)

        if coordinator.is_complete(generation):
            logger.debug("Render pass %d complete", generation)
            QTimer.singleShot(0, self.view_controller.restore_anchor)

    def _on_render_failed(self, generation: int, message: str):
        if self.session.coordinator.is_current(generation):
            logger.error("Rendering failed: %s", message)

    def _on_worker_finished(self, worker: RenderWorker):
        if worker in self._workers:
            self._workers.remove(worker)
        worker.deleteLater()

    def set_dark_mode(self, dark_mode: bool):
        """Re-render every page with or without inverted colors."""
        if self.dark_mode != dark_mode:
            self.dark_mode = dark_mode
            self.start_render(self.view_controller.scale)

    def set_paste_formatting(self, enabled: bool):
        for box in self.boxes.values():
            box.editor.setAcceptRichText(enabled)

    def shutdown(self):
        """Supersede the running pass and wait for workers to stop."""
        self.session.coordinator.begin_pass(self.view_controller.scale)
        for worker in list(self._workers):
            worker.wait()

    # ===== Annotation boxes =====

    def _create_box(self, annotation_id: int) -> Optional[AnnotationBox]:
        annotation = self.session.store.get(annotation_id)
        label = self.page_labels.get(annotation.page_index) if annotation else None
        if label is None:
            return None

        box = AnnotationBox(annotation_id, self.overlay, self.settings,
                            paste_formatting=self.session.preferences.paste_formatting,
                            parent=label)
        self.boxes[annotation_id] = box
        self._sync_box(annotation_id)
        return box

    def _sync_box(self, annotation_id: int):
        box = self.boxes.get(annotation_id)
        annotation = self.session.store.get(annotation_id)
        if box is None or annotation is None:
            return

        pixel_box = self.overlay.pixel_box(annotation_id)
        page = self.session.coordinator.page(annotation.page_index)
        if pixel_box is None or page is None or not page.is_rendered:
            box.hide()
            return

        box.sync(annotation, pixel_box, page.rendered_width / page.unscaled_width)
        label = self.page_labels[annotation.page_index]
        box.setVisible(not label.is_stretched)

    def _sync_page(self, page_index: int):
        for annotation in self.session.store.for_page(page_index):
            if annotation.id not in self.boxes:
                self._create_box(annotation.id)
            else:
                self._sync_box(annotation.id)

    def _set_boxes_visible(self, page_index: int, visible: bool):
        for annotation in self.session.store.for_page(page_index):
            box = self.boxes.get(annotation.id)
            if box is not None:
                box.setVisible(visible)

    def _on_annotation_added(self, annotation_id: int):
        box = self._create_box(annotation_id)
        if box is not None and self.overlay.editing_id == annotation_id:
            box.start_editing()

    def _on_annotation_removed(self, annotation_id: int):
        box = self.boxes.pop(annotation_id, None)
        if box is not None:
            box.hide()
            box.deleteLater()

    def _on_placement_changed(self, active: bool):
        for label in self.page_labels.values():
            label.set_placement_mode(active)

    def _on_preview_moved(self, page_index: int, box):
        for index, label in self.page_labels.items():
            label.set_preview(box if index == page_index else None)
