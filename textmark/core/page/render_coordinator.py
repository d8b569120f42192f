"""
Coordinates page rendering passes at a given scale.

Each pass is tagged with a generation id. Results of a pass that has been
superseded by a newer one are discarded instead of committed, and pages are
committed strictly in page order.
"""
import logging
from typing import Iterator, List, Optional, Protocol, Sequence, Tuple

from .models import PageGeometry, RenderedPage, ScrollAnchor

logger = logging.getLogger(__name__)


class PageRenderer(Protocol):
    """Rendering collaborator: rasterizes one page at a scale."""

    def render_page(self, page_index: int, scale: float) -> RenderedPage: ...


class PageRenderCoordinator:
    """Owns page geometry and the lifecycle of render passes."""

    def __init__(self):
        self.pages: List[PageGeometry] = []
        self.generation: int = 0
        self.pass_scale: Optional[float] = None
        self._next_page: int = 0

    # ===== Document =====

    def load_pages(self, sizes: Sequence[Tuple[float, float]]) -> None:
        """
        Reset geometry for a newly loaded document.

        Args:
            sizes: Unscaled (width, height) of every page in page order
        """
        self.pages = [
            PageGeometry(page_index=i, unscaled_width=w, unscaled_height=h)
            for i, (w, h) in enumerate(sizes)
        ]
        # Anything still running belongs to the previous document
        self.generation += 1
        self.pass_scale = None
        self._next_page = 0

    def clear(self) -> None:
        self.load_pages([])

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def first_page(self) -> Optional[PageGeometry]:
        return self.pages[0] if self.pages else None

    def page(self, page_index: int) -> Optional[PageGeometry]:
        if 0 <= page_index < len(self.pages):
            return self.pages[page_index]
        return None

    # ===== Render passes =====

    def begin_pass(self, scale: float) -> int:
        """
        Start a new render pass, superseding any pass in progress.

        Returns:
            The generation id of the new pass
        """
        self.generation += 1
        self.pass_scale = scale
        self._next_page = 0
        logger.debug("Render pass %d started at scale %.3f", self.generation, scale)
        return self.generation

    def is_current(self, generation: int) -> bool:
        return generation == self.generation

    def is_complete(self, generation: int) -> bool:
        return self.is_current(generation) and self._next_page >= len(self.pages)

    def iter_pass(self, generation: int, renderer: PageRenderer) -> Iterator[RenderedPage]:
        """
        Render every page of a pass in page order.

        Stops as soon as the pass is superseded. A request already issued when
        that happens still completes, but its result is not yielded.
        """
        scale = self.pass_scale
        for page_index in range(len(self.pages)):
            if not self.is_current(generation):
                logger.debug("Render pass %d superseded before page %d", generation, page_index)
                return
            rendered = renderer.render_page(page_index, scale)
            if not self.is_current(generation):
                logger.debug("Discarding page %d of superseded pass %d", page_index, generation)
                return
            yield rendered

    def commit_page(self, generation: int, rendered: RenderedPage) -> bool:
        """
        Apply a rendered page's pixel size to the page geometry.

        Returns:
            False if the result is stale or out of order and was discarded
        """
        if not self.is_current(generation):
            logger.debug("Dropped stale page %d from pass %d", rendered.page_index, generation)
            return False

        if rendered.page_index != self._next_page:
            logger.warning(
                "Dropped out-of-order page %d (expected %d) in pass %d",
                rendered.page_index, self._next_page, generation,
            )
            return False

        geometry = self.pages[rendered.page_index]
        geometry.rendered_width = rendered.width
        geometry.rendered_height = rendered.height
        geometry.scale = rendered.scale
        self._next_page += 1
        return True

    # ===== Layout & scroll anchoring =====

    def page_offset(self, page_index: int, spacing: int) -> int:
        """Vertical pixel offset of a page's top edge in the page column."""
        return sum(p.rendered_height + spacing for p in self.pages[:page_index])

    def content_height(self, spacing: int) -> int:
        if not self.pages:
            return 0
        return sum(p.rendered_height for p in self.pages) + spacing * (len(self.pages) - 1)

    def capture_anchor(self, scroll_value: float, content_height: float,
                       viewport_height: float,
                       pointer_y: Optional[float] = None) -> Optional[ScrollAnchor]:
        """
        Record which part of the content is under the pointer.

        Args:
            scroll_value: Current vertical scroll position
            content_height: Total height of the scrollable content
            viewport_height: Height of the visible area
            pointer_y: Pointer position within the viewport, if known

        Returns:
            The anchor, or None if there is no content yet
        """
        if content_height <= 0:
            return None
        offset = viewport_height / 2 if pointer_y is None else pointer_y
        fraction = (scroll_value + offset) / content_height
        return ScrollAnchor(fraction=max(0.0, min(1.0, fraction)), viewport_offset=offset)

    def restore_anchor(self, anchor: ScrollAnchor, content_height: float,
                       max_scroll: Optional[float] = None) -> int:
        """
        Compute the scroll position that puts the anchored content back under
        the same viewport offset.
        """
        target = anchor.fraction * content_height - anchor.viewport_offset
        if max_scroll is not None:
            target = min(target, max_scroll)
        return int(round(max(0.0, target)))
