"""
Page geometry and render pass coordination.
"""

from .models import PageGeometry, RenderedPage, ScrollAnchor
from .render_coordinator import PageRenderCoordinator, PageRenderer

__all__ = [
    "PageGeometry",
    "RenderedPage",
    "ScrollAnchor",
    "PageRenderCoordinator",
    "PageRenderer",
]
