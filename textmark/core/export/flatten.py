"""
Flattening of annotations into draw commands in PDF user space.

PDF user space has its origin at the bottom-left corner with y pointing up,
while annotation ratios are measured from the top-left with y pointing down.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from textmark.config import Settings, get_settings
from textmark.core.annotations.models import RGB, Annotation
from textmark.core.layout.text_wrap import FontMetrics, helvetica_metrics, widest_line, wrap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawRectangle:
    """Filled rectangle; (x, y) is the bottom-left corner."""
    page_index: int
    x: float
    y: float
    width: float
    height: float
    color: RGB
    opacity: float = 1.0


@dataclass(frozen=True)
class DrawText:
    """Single line of text; (x, y) is the start of the baseline."""
    page_index: int
    x: float
    y: float
    text: str
    size: float
    color: RGB


DrawCommand = Union[DrawRectangle, DrawText]


class FlatteningEngine:
    """Projects annotations onto absolute draw commands for export."""

    def __init__(self, font_metrics: FontMetrics = helvetica_metrics,
                 settings: Optional[Settings] = None):
        self.font_metrics = font_metrics
        self.settings = settings or get_settings()

    def flatten(self, annotations: Iterable[Annotation],
                page_sizes: Sequence[Tuple[float, float]]) -> List[DrawCommand]:
        """
        Build draw commands for all annotations.

        Args:
            annotations: Annotations in document order
            page_sizes: Unscaled (width, height) of every page of the target
                document, in points

        Returns:
            Ordered draw commands. Annotations on pages the document does not
            have are skipped.
        """
        commands: List[DrawCommand] = []
        for annotation in annotations:
            if not 0 <= annotation.page_index < len(page_sizes):
                logger.debug(
                    "Skipping annotation %d: page %d not in document",
                    annotation.id, annotation.page_index,
                )
                continue
            commands.extend(self.flatten_annotation(annotation, *page_sizes[annotation.page_index]))
        return commands

    def wrap_width(self, annotation: Annotation, page_width: float) -> float:
        if annotation.width_ratio is not None:
            return annotation.width_ratio * page_width
        return self.settings.default_wrap_fraction * page_width

    def flatten_annotation(self, annotation: Annotation, page_width: float,
                           page_height: float) -> List[DrawCommand]:
        if not annotation.text.strip():
            return []

        font_size = annotation.font_size
        lines = wrap(annotation.text, self.font_metrics, font_size,
                     self.wrap_width(annotation, page_width))

        line_spacing = font_size * self.settings.line_spacing
        baseline_offset = font_size * self.settings.baseline_offset
        abs_x = annotation.x_ratio * page_width
        top_y = (1.0 - annotation.y_ratio) * page_height

        commands: List[DrawCommand] = []

        if annotation.highlight_color is not None:
            height = len(lines) * line_spacing + font_size * self.settings.highlight_padding
            commands.append(DrawRectangle(
                page_index=annotation.page_index,
                x=abs_x,
                y=top_y - height,
                width=widest_line(lines, self.font_metrics, font_size),
                height=height,
                color=annotation.highlight_color,
                opacity=self.settings.highlight_opacity,
            ))

        for i, line in enumerate(lines):
            if not line:
                continue
            commands.append(DrawText(
                page_index=annotation.page_index,
                x=abs_x,
                y=top_y - (i + 1) * line_spacing + baseline_offset,
                text=line,
                size=font_size,
                color=annotation.color,
            ))

        return commands


def group_by_page(commands: Iterable[DrawCommand]) -> Dict[int, List[DrawCommand]]:
    """Group commands by page, keeping their relative order."""
    grouped: Dict[int, List[DrawCommand]] = {}
    for command in commands:
        grouped.setdefault(command.page_index, []).append(command)
    return grouped
