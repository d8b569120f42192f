from dataclasses import dataclass
from typing import Optional


@dataclass
class PageGeometry:
    """Size of one page, in PDF points and in pixels at the current scale."""

    page_index: int  # 0-based page index
    unscaled_width: float
    unscaled_height: float

    # Set by the render pass that last committed this page
    rendered_width: int = 0
    rendered_height: int = 0
    scale: Optional[float] = None

    @property
    def is_rendered(self) -> bool:
        return self.scale is not None

    def expected_size(self, scale: float):
        """Pixel size this page will have once rendered at ``scale``."""
        return round(self.unscaled_width * scale), round(self.unscaled_height * scale)


@dataclass
class RenderedPage:
    """Raster produced by the rendering collaborator for one page."""

    page_index: int
    scale: float
    width: int
    height: int

    # RGB samples, ``stride`` bytes per row
    samples: bytes = b""
    stride: int = 0


@dataclass(frozen=True)
class ScrollAnchor:
    """Fraction of the scrollable content under a fixed viewport offset."""

    fraction: float
    viewport_offset: float
