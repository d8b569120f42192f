"""
Controller for the interactive annotation overlay.

All pointer gestures go through one dispatcher: ``pointer_down`` picks the
annotation and the mode (drag or resize), later ``pointer_move`` and
``pointer_up`` calls are routed to that gesture only. Coordinates are pixels
relative to the top-left corner of the annotation's page.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple

from PyQt5.QtCore import QObject, pyqtSignal

from textmark.config import Settings, get_settings
from textmark.core.annotations.models import Annotation, AnnotationStyle
from textmark.core.annotations.store import AnnotationStore
from textmark.core.document.session import DocumentSession
from textmark.core.layout.text_wrap import FontMetrics, helvetica_metrics, widest_line, wrap
from textmark.core.page.models import PageGeometry

logger = logging.getLogger(__name__)

_UNSET = object()


class InteractionMode(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"
    EDITING = "editing"


class HitRegion(Enum):
    NONE = "none"
    BODY = "body"
    RESIZE_HANDLE = "resize_handle"
    TEXT = "text"


@dataclass(frozen=True)
class PixelBox:
    """Annotation box in page pixels."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom


@dataclass
class _Gesture:
    annotation_id: int
    mode: InteractionMode
    start_x: float
    start_y: float
    box: PixelBox


class OverlayController(QObject):
    """Drives drag, resize, edit and placement of annotations."""

    # Signals
    annotation_added = pyqtSignal(int)
    annotation_changed = pyqtSignal(int)
    annotation_removed = pyqtSignal(int)
    page_reprojected = pyqtSignal(int)  # page index
    mode_changed = pyqtSignal(int, object)  # annotation id, InteractionMode
    placement_changed = pyqtSignal(bool)
    preview_moved = pyqtSignal(int, object)  # page index, PixelBox
    default_style_changed = pyqtSignal(object)  # AnnotationStyle
    state_committed = pyqtSignal()

    def __init__(self, session: DocumentSession, font_metrics: FontMetrics = helvetica_metrics,
                 settings: Optional[Settings] = None):
        super().__init__()
        self.session = session
        self.font_metrics = font_metrics
        self.settings = settings or get_settings()

        self.default_style = AnnotationStyle(
            font_size=self.settings.default_font_size,
            color=tuple(self.settings.default_color),
            highlight_color=(
                tuple(self.settings.default_highlight)
                if self.settings.default_highlight is not None else None
            ),
        )

        # Most recently interacted-with annotation
        self.active_id: Optional[int] = None
        self.editing_id: Optional[int] = None
        self.placement_active: bool = False

        self._gesture: Optional[_Gesture] = None
        # Pixel size of a box being resized, until the gesture commits
        self._live_sizes: Dict[int, Tuple[float, float]] = {}

    @property
    def store(self) -> AnnotationStore:
        return self.session.store

    def reset(self) -> None:
        """Drop all interaction state, e.g. when the document is replaced."""
        self.active_id = None
        self.editing_id = None
        self._gesture = None
        self._live_sizes.clear()
        if self.placement_active:
            self.placement_active = False
            self.placement_changed.emit(False)

    def mode_of(self, annotation_id: int) -> InteractionMode:
        if self._gesture and self._gesture.annotation_id == annotation_id:
            return self._gesture.mode
        if self.editing_id == annotation_id:
            return InteractionMode.EDITING
        return InteractionMode.IDLE

    # ===== Geometry =====

    def _rendered_page(self, page_index: int) -> Optional[PageGeometry]:
        page = self.session.coordinator.page(page_index)
        if page is None or not page.is_rendered or page.rendered_width <= 0:
            return None
        return page

    def _page_scale(self, page: PageGeometry) -> float:
        return page.rendered_width / page.unscaled_width

    def _natural_size(self, text: str, style: AnnotationStyle,
                      page: PageGeometry) -> Tuple[float, float]:
        """Box size needed to show ``text`` at the page's current scale."""
        pad = self.settings.text_margin
        font_px = style.font_size * self._page_scale(page)
        # Same wrap width the export uses, the margins sit outside it
        max_text_width = self.settings.default_wrap_fraction * page.rendered_width
        lines = wrap(text, self.font_metrics, font_px, max(1.0, max_text_width))
        width = widest_line(lines, self.font_metrics, font_px) + 2 * pad
        height = len(lines) * font_px * self.settings.line_spacing + 2 * pad
        return (
            min(max(width, self.settings.min_box_width), page.rendered_width),
            min(max(height, self.settings.min_box_height), page.rendered_height),
        )

    def box_size(self, annotation: Annotation, page: PageGeometry) -> Tuple[float, float]:
        """
        Pixel size of an annotation box.

        Size ratios measure the text area; the box adds the text margin on
        every side.
        """
        if annotation.id in self._live_sizes:
            return self._live_sizes[annotation.id]

        pad = 2 * self.settings.text_margin
        width, height = self._natural_size(annotation.text, annotation.style, page)
        if annotation.width_ratio is not None:
            width = min(annotation.width_ratio * page.rendered_width + pad, page.rendered_width)
        if annotation.height_ratio is not None:
            height = min(annotation.height_ratio * page.rendered_height + pad, page.rendered_height)
        return width, height

    def _text_ratios(self, width: float, height: float,
                     page: PageGeometry) -> Tuple[float, float]:
        """Size ratios of the text area inside a box of the given pixel size."""
        pad = 2 * self.settings.text_margin
        return (
            max(0.0, width - pad) / page.rendered_width,
            max(0.0, height - pad) / page.rendered_height,
        )

    def _clamp_position(self, annotation_id: int) -> None:
        """Store the on-screen position so the ratios describe the box shown."""
        annotation = self.store.get(annotation_id)
        box = self.pixel_box(annotation_id)
        if annotation is None or box is None:
            return
        page = self._rendered_page(annotation.page_index)
        x_ratio = box.x / page.rendered_width
        y_ratio = box.y / page.rendered_height
        if (x_ratio, y_ratio) != (annotation.x_ratio, annotation.y_ratio):
            self.store.move(annotation_id, x_ratio, y_ratio)

    def pixel_box(self, annotation_id: int) -> Optional[PixelBox]:
        """
        Current on-screen box of an annotation, derived from its ratios.

        Returns:
            None if the annotation does not exist or its page is not rendered
        """
        annotation = self.store.get(annotation_id)
        if annotation is None:
            return None
        page = self._rendered_page(annotation.page_index)
        if page is None:
            return None

        width, height = self.box_size(annotation, page)
        x = min(annotation.x_ratio * page.rendered_width, max(0.0, page.rendered_width - width))
        y = min(annotation.y_ratio * page.rendered_height, max(0.0, page.rendered_height - height))
        return PixelBox(x, y, width, height)

    def hit_test(self, annotation_id: int, x: float, y: float) -> HitRegion:
        box = self.pixel_box(annotation_id)
        if box is None or not box.contains(x, y):
            return HitRegion.NONE

        handle = self.settings.resize_handle_size
        if x >= box.right - handle and y >= box.bottom - handle:
            return HitRegion.RESIZE_HANDLE

        margin = self.settings.text_margin
        if (box.x + margin <= x <= box.right - margin
                and box.y + margin <= y <= box.bottom - margin):
            return HitRegion.TEXT
        return HitRegion.BODY

    # ===== Pointer gestures =====

    def pointer_down(self, annotation_id: int, x: float, y: float) -> InteractionMode:
        """
        Start a gesture on an annotation.

        Returns:
            DRAGGING or RESIZING when a gesture started, EDITING when the press
            landed on the text, IDLE when nothing happened
        """
        region = self.hit_test(annotation_id, x, y)
        if region is HitRegion.NONE:
            return InteractionMode.IDLE

        self.active_id = annotation_id

        if region is HitRegion.TEXT:
            self.begin_edit(annotation_id)
            return InteractionMode.EDITING

        if self.editing_id is not None:
            self.end_edit(self.editing_id)

        mode = InteractionMode.RESIZING if region is HitRegion.RESIZE_HANDLE else InteractionMode.DRAGGING
        self._gesture = _Gesture(
            annotation_id=annotation_id,
            mode=mode,
            start_x=x,
            start_y=y,
            box=self.pixel_box(annotation_id),
        )
        self.mode_changed.emit(annotation_id, mode)
        return mode

    def pointer_move(self, x: float, y: float) -> bool:
        """
        Continue the active gesture.

        Returns:
            True if an annotation was updated
        """
        gesture = self._gesture
        if gesture is None:
            return False

        annotation = self.store.get(gesture.annotation_id)
        page = self._rendered_page(annotation.page_index) if annotation else None
        if page is None:
            self._gesture = None
            return False

        page_w, page_h = page.rendered_width, page.rendered_height
        dx, dy = x - gesture.start_x, y - gesture.start_y

        if gesture.mode is InteractionMode.DRAGGING:
            width, height = self.box_size(annotation, page)
            new_x = max(0.0, min(gesture.box.x + dx, page_w - width))
            new_y = max(0.0, min(gesture.box.y + dy, page_h - height))
            self.store.move(annotation.id, new_x / page_w, new_y / page_h)
        else:
            box = gesture.box
            # The page-boundary ceiling wins over the minimum size
            new_w = min(max(box.width + dx, self.settings.min_box_width), page_w - box.x)
            new_h = min(max(box.height + dy, self.settings.min_box_height), page_h - box.y)
            self._live_sizes[annotation.id] = (new_w, new_h)

        self.annotation_changed.emit(annotation.id)
        return True

    def pointer_up(self) -> Optional[int]:
        """
        Finish the active gesture and commit its size ratios.

        Returns:
            Id of the annotation the gesture applied to, if any
        """
        gesture = self._gesture
        if gesture is None:
            return None
        self._gesture = None

        annotation = self.store.get(gesture.annotation_id)
        page = self._rendered_page(annotation.page_index) if annotation else None
        if page is None:
            self._live_sizes.pop(gesture.annotation_id, None)
            return None

        width, height = self.box_size(annotation, page)
        self._live_sizes.pop(annotation.id, None)

        width_ratio, height_ratio = self._text_ratios(width, height, page)
        if gesture.mode is InteractionMode.RESIZING:
            self.store.resize(annotation.id, width_ratio, height_ratio)
        else:
            self.store.resize(annotation.id, width_ratio=width_ratio)
        self._clamp_position(annotation.id)

        self.annotation_changed.emit(annotation.id)
        self.mode_changed.emit(annotation.id, InteractionMode.IDLE)
        self.state_committed.emit()
        return annotation.id

    # ===== Text editing =====

    def begin_edit(self, annotation_id: int) -> str:
        """
        Enter editing on an annotation; clears placeholder text on first focus.

        Returns:
            The text to show in the editor
        """
        annotation = self.store.require(annotation_id)
        if self.editing_id not in (None, annotation_id):
            self.end_edit(self.editing_id)

        self.active_id = annotation_id
        if self.editing_id != annotation_id:
            self.editing_id = annotation_id
            self.mode_changed.emit(annotation_id, InteractionMode.EDITING)

        if annotation.placeholder:
            self.store.set_text(annotation_id, "")
            self._clamp_position(annotation_id)
            self.annotation_changed.emit(annotation_id)
        return annotation.text

    def text_changed(self, annotation_id: int, text: str) -> None:
        annotation = self.store.get(annotation_id)
        if annotation is None or (annotation.text == text and not annotation.placeholder):
            return
        self.store.set_text(annotation_id, text)
        self._clamp_position(annotation_id)
        self.annotation_changed.emit(annotation_id)
        self.state_committed.emit()

    def delete_pressed(self, annotation_id: int) -> bool:
        """
        Handle delete/backspace in the editor.

        Returns:
            True if the annotation was empty and has been removed
        """
        annotation = self.store.get(annotation_id)
        if annotation is None or annotation.text:
            return False
        self.remove_annotation(annotation_id)
        return True

    def end_edit(self, annotation_id: int) -> None:
        if self.editing_id != annotation_id:
            return
        self.editing_id = None
        self.mode_changed.emit(annotation_id, InteractionMode.IDLE)

    def remove_annotation(self, annotation_id: int) -> bool:
        if not self.store.remove(annotation_id):
            return False
        if self.editing_id == annotation_id:
            self.editing_id = None
        if self.active_id == annotation_id:
            self.active_id = None
        if self._gesture and self._gesture.annotation_id == annotation_id:
            self._gesture = None
        self._live_sizes.pop(annotation_id, None)
        self.annotation_removed.emit(annotation_id)
        self.state_committed.emit()
        return True

    # ===== Placement =====

    def begin_placement(self) -> None:
        """
        Enter placement mode; the next click on a page adds an annotation.

        Raises:
            NoDocumentError: If no document is loaded
        """
        self.session.require_document("Add Text")
        if self.editing_id is not None:
            self.end_edit(self.editing_id)
        self.placement_active = True
        self.placement_changed.emit(True)

    def cancel_placement(self) -> None:
        if self.placement_active:
            self.placement_active = False
            self.placement_changed.emit(False)

    def preview_box(self, page_index: int, x: float, y: float) -> Optional[PixelBox]:
        """Box the new annotation would get if placed at (x, y)."""
        page = self._rendered_page(page_index)
        if page is None:
            return None
        width, height = self._natural_size(self.settings.placeholder_text, self.default_style, page)
        return PixelBox(
            max(0.0, min(x, page.rendered_width - width)),
            max(0.0, min(y, page.rendered_height - height)),
            width,
            height,
        )

    def placement_hover(self, page_index: int, x: float, y: float) -> None:
        if not self.placement_active:
            return
        box = self.preview_box(page_index, x, y)
        if box is not None:
            self.preview_moved.emit(page_index, box)

    def place_at(self, page_index: int, x: float, y: float) -> Optional[Annotation]:
        """
        Commit a new annotation at a click position and start editing it.

        Returns:
            The new annotation, or None when not in placement mode or the page
            is not rendered
        """
        if not self.placement_active:
            return None
        page = self._rendered_page(page_index)
        box = self.preview_box(page_index, x, y)
        if page is None or box is None:
            return None

        annotation = self.store.create(
            page_index,
            box.x / page.rendered_width,
            box.y / page.rendered_height,
            self.default_style,
            text=self.settings.placeholder_text,
            placeholder=True,
        )
        self.placement_active = False
        self.placement_changed.emit(False)

        self.begin_edit(annotation.id)
        self.annotation_added.emit(annotation.id)
        self.state_committed.emit()
        return annotation

    # ===== Style =====

    def apply_style(self, font_size: Optional[float] = None, color=None,
                    highlight_color=_UNSET) -> Optional[int]:
        """
        Apply a style change to the active annotation, or to the default
        style used for the next placement when there is none.

        ``highlight_color=None`` removes the highlight.

        Returns:
            Id of the annotation that changed, or None if the default changed
        """
        if self.active_id is not None and self.active_id in self.store:
            kwargs = {'font_size': font_size, 'color': color}
            if highlight_color is not _UNSET:
                kwargs['highlight_color'] = highlight_color
            self.store.set_style(self.active_id, **kwargs)
            self._clamp_position(self.active_id)
            self.annotation_changed.emit(self.active_id)
            self.state_committed.emit()
            return self.active_id

        changes = {}
        if font_size is not None:
            changes['font_size'] = float(font_size)
        if color is not None:
            changes['color'] = tuple(color)
        if highlight_color is not _UNSET:
            changes['highlight_color'] = tuple(highlight_color) if highlight_color is not None else None
        self.default_style = replace(self.default_style, **changes)
        self.default_style_changed.emit(self.default_style)
        return None

    def deactivate(self) -> None:
        """Forget the active annotation so style controls target the default."""
        if self.editing_id is not None:
            self.end_edit(self.editing_id)
        if self.active_id is not None:
            self.active_id = None
            self.default_style_changed.emit(self.default_style)

    # ===== Re-rendering =====

    def on_page_rendered(self, page_index: int) -> None:
        """Re-derive pixel boxes of a page's annotations after a render commit."""
        if self._gesture is not None:
            annotation = self.store.get(self._gesture.annotation_id)
            if annotation is None or annotation.page_index == page_index:
                # The gesture's pixel reference is gone with the old raster
                self._gesture = None
                self._live_sizes.clear()
        for annotation in self.store.for_page(page_index):
            self._clamp_position(annotation.id)
        self.page_reprojected.emit(page_index)
