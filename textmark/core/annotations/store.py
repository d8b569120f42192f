"""
Annotation store: the single source of truth for a document's annotations.
"""
import logging
from typing import Dict, Iterable, Iterator, List, Optional

from .models import NO_HIGHLIGHT, Annotation, AnnotationStyle, clamp_ratio

logger = logging.getLogger(__name__)

_UNSET = object()


class IdAllocator:
    """Hands out monotonically increasing annotation ids for one session."""

    def __init__(self, start: int = 1):
        self._next = start

    def allocate(self) -> int:
        value = self._next
        self._next += 1
        return value

    def advance_past(self, used_id: int) -> None:
        """Make sure ids up to ``used_id`` are never handed out again."""
        if used_id >= self._next:
            self._next = used_id + 1

    @property
    def next_id(self) -> int:
        return self._next


class AnnotationStore:
    """Holds the annotations of the loaded document and their mutation API."""

    def __init__(self, id_allocator: Optional[IdAllocator] = None):
        self.id_allocator = id_allocator or IdAllocator()
        self._annotations: Dict[int, Annotation] = {}

    def __len__(self) -> int:
        return len(self._annotations)

    def __contains__(self, annotation_id: int) -> bool:
        return annotation_id in self._annotations

    def __iter__(self) -> Iterator[Annotation]:
        return iter(self.all())

    def get(self, annotation_id: int) -> Optional[Annotation]:
        return self._annotations.get(annotation_id)

    def require(self, annotation_id: int) -> Annotation:
        """
        Get an annotation that must exist.

        Raises:
            KeyError: If no annotation has this id
        """
        try:
            return self._annotations[annotation_id]
        except KeyError:
            raise KeyError(f"No annotation with id {annotation_id}") from None

    def all(self) -> List[Annotation]:
        """All annotations in document order (page, then creation)."""
        return sorted(self._annotations.values(), key=lambda a: (a.page_index, a.id))

    def for_page(self, page_index: int) -> List[Annotation]:
        return [a for a in self.all() if a.page_index == page_index]

    def create(self, page_index: int, x_ratio: float, y_ratio: float,
               style: AnnotationStyle, text: str = "",
               placeholder: bool = False) -> Annotation:
        """
        Create and add a new annotation with a fresh id.

        Args:
            page_index: 0-based page index
            x_ratio: Left edge as a fraction of the page width
            y_ratio: Top edge as a fraction of the page height
            style: Font size and colors to use
            text: Initial text
            placeholder: Whether ``text`` is a placeholder to clear on first edit

        Returns:
            The new annotation
        """
        annotation = Annotation(
            id=self.id_allocator.allocate(),
            page_index=page_index,
            x_ratio=clamp_ratio(x_ratio),
            y_ratio=clamp_ratio(y_ratio),
            text=text,
            font_size=style.font_size,
            color=style.color,
            highlight_color=style.highlight_color,
            placeholder=placeholder,
        )
        self._annotations[annotation.id] = annotation
        logger.debug("Created annotation %d on page %d", annotation.id, page_index)
        return annotation

    def move(self, annotation_id: int, x_ratio: float, y_ratio: float) -> Annotation:
        annotation = self.require(annotation_id)
        annotation.x_ratio = clamp_ratio(x_ratio)
        annotation.y_ratio = clamp_ratio(y_ratio)
        return annotation

    def resize(self, annotation_id: int, width_ratio: Optional[float] = None,
               height_ratio: Optional[float] = None) -> Annotation:
        """Set the size ratios; a None argument leaves that ratio unchanged."""
        annotation = self.require(annotation_id)
        if width_ratio is not None:
            annotation.width_ratio = clamp_ratio(width_ratio)
        if height_ratio is not None:
            annotation.height_ratio = clamp_ratio(height_ratio)
        return annotation

    def set_text(self, annotation_id: int, text: str) -> Annotation:
        annotation = self.require(annotation_id)
        annotation.text = text
        annotation.placeholder = False
        return annotation

    def set_style(self, annotation_id: int, font_size: Optional[float] = None,
                  color=None, highlight_color=_UNSET) -> Annotation:
        """
        Update style fields of an annotation.

        ``highlight_color`` may be passed as None to remove the highlight;
        leaving it out keeps the current one.
        """
        annotation = self.require(annotation_id)
        if font_size is not None:
            annotation.font_size = float(font_size)
        if color is not None:
            annotation.color = tuple(color)
        if highlight_color is not _UNSET:
            annotation.highlight_color = (
                tuple(highlight_color) if highlight_color is not NO_HIGHLIGHT else NO_HIGHLIGHT
            )
        return annotation

    def remove(self, annotation_id: int) -> bool:
        """
        Remove an annotation.

        Returns:
            True if annotation was found and removed
        """
        if self._annotations.pop(annotation_id, None) is None:
            return False
        logger.debug("Removed annotation %d", annotation_id)
        return True

    def clear(self) -> None:
        """Remove all annotations. Ids already handed out stay used."""
        self._annotations.clear()

    def reset(self, id_allocator: Optional[IdAllocator] = None) -> None:
        """Start over for a new document with its own id sequence."""
        self._annotations.clear()
        self.id_allocator = id_allocator or IdAllocator()

    def restore(self, annotations: Iterable[Annotation]) -> int:
        """
        Replace the contents with previously saved annotations.

        The id counter is advanced past the largest restored id. Duplicate ids
        keep the first occurrence.

        Returns:
            Number of annotations restored
        """
        self._annotations.clear()
        for annotation in annotations:
            if annotation.id in self._annotations:
                logger.warning("Skipping duplicate annotation id %d", annotation.id)
                continue
            self._annotations[annotation.id] = annotation
            self.id_allocator.advance_past(annotation.id)
        return len(self._annotations)
