"""
Zoom resolution: turns a zoom specifier into a render scale.
"""
import logging
import time
from enum import Enum
from typing import Callable, Optional, Union

from textmark.core.page.models import PageGeometry

logger = logging.getLogger(__name__)

MIN_SCALE = 0.1

# Whole numbers typed in the zoom box from here up are read as percentages
MIN_PERCENT_ENTRY = 25


class ZoomPreset(Enum):
    """Named zoom levels."""

    ACTUAL_SIZE = "actual-size"
    PAGE_FIT = "page-fit"
    PAGE_WIDTH = "page-width"


ZoomSpec = Union[ZoomPreset, str, float, int]


def parse_zoom(spec: ZoomSpec) -> Union[ZoomPreset, float, None]:
    """
    Interpret a zoom specifier.

    Returns:
        A preset, a numeric scale, or None if the input cannot be parsed
    """
    if isinstance(spec, ZoomPreset):
        return spec
    if isinstance(spec, bool):
        return None
    if isinstance(spec, (int, float)):
        return float(spec)

    text = str(spec).strip().lower()
    for preset in ZoomPreset:
        if text in (preset.value, preset.value.replace("-", " "), preset.name.lower()):
            return preset

    try:
        if text.endswith("%"):
            return float(text[:-1].strip()) / 100.0
        return float(text)
    except ValueError:
        return None


def normalize_zoom_entry(text: str) -> str:
    """
    Read a whole number typed in the zoom box as a percentage.

    "150" becomes "150%". Numbers with a decimal point and whole numbers
    below 25 are left alone, so "1.5" and "2" stay scale factors.
    """
    stripped = text.strip()
    if stripped.isdecimal() and int(stripped) >= MIN_PERCENT_ENTRY:
        return stripped + "%"
    return text


def resolve_scale(spec: ZoomSpec, first_page: Optional[PageGeometry] = None,
                  viewport_height: float = 0.0, container_width: float = 0.0,
                  fixed_offset: float = 0.0) -> float:
    """
    Resolve a zoom specifier into a scale factor, floor-clamped to 0.1.

    Args:
        spec: Preset, percentage string, decimal string or number
        first_page: Geometry of the first page, used by the fit presets
        viewport_height: Height of the visible area in pixels
        container_width: Width available for a page in pixels
        fixed_offset: Height taken by fixed chrome above the pages

    Returns:
        Scale factor; 1.0 when the input is unparseable or a fit preset is
        requested without a document
    """
    parsed = parse_zoom(spec)
    if parsed is None:
        logger.debug("Unparseable zoom %r, using actual size", spec)
        return 1.0

    if parsed is ZoomPreset.ACTUAL_SIZE:
        return 1.0

    if isinstance(parsed, ZoomPreset):
        if first_page is None or first_page.unscaled_width <= 0 or first_page.unscaled_height <= 0:
            return 1.0
        if parsed is ZoomPreset.PAGE_FIT:
            return max(MIN_SCALE, (viewport_height - fixed_offset) / first_page.unscaled_height)
        return max(MIN_SCALE, container_width / first_page.unscaled_width)

    if parsed != parsed or parsed in (float("inf"), float("-inf")):
        return 1.0
    return max(MIN_SCALE, parsed)


class ZoomGesture:
    """
    Tracks a continuous zoom gesture such as ctrl+wheel.

    Every tick updates ``temp_scale`` right away for a cheap visual preview.
    The authoritative ``committed_scale`` changes at most once per throttle
    window while ticks keep coming, and once more when the gesture has been
    idle for the debounce window.
    """

    def __init__(self, committed_scale: float, throttle: float = 0.08,
                 debounce: float = 0.2, clock: Callable[[], float] = time.monotonic):
        self.committed_scale = committed_scale
        self.temp_scale = committed_scale
        self.throttle = throttle
        self.debounce = debounce
        self._clock = clock
        self._last_commit_at: Optional[float] = None
        self._last_tick_at: Optional[float] = None

    @property
    def preview_factor(self) -> float:
        """Visual scale to apply on top of the committed raster."""
        return self.temp_scale / self.committed_scale

    @property
    def pending(self) -> bool:
        return self.temp_scale != self.committed_scale

    def reset(self, scale: float) -> None:
        """Adopt a scale committed by other means (zoom box, presets)."""
        self.committed_scale = scale
        self.temp_scale = scale

    def tick(self, factor: float) -> Optional[float]:
        """
        Apply one gesture step.

        Returns:
            The new committed scale if this tick commits, else None
        """
        now = self._clock()
        self.temp_scale = max(MIN_SCALE, self.temp_scale * factor)
        self._last_tick_at = now

        if self._last_commit_at is None or now - self._last_commit_at >= self.throttle:
            return self._commit(now)
        return None

    def settle(self) -> Optional[float]:
        """
        Trailing commit once the gesture has rested for the debounce window.

        Returns:
            The new committed scale if one was pending, else None
        """
        now = self._clock()
        if not self.pending:
            return None
        if self._last_tick_at is not None and now - self._last_tick_at < self.debounce:
            return None
        return self._commit(now)

    def _commit(self, now: float) -> Optional[float]:
        self._last_commit_at = now
        if not self.pending:
            return None
        self.committed_scale = self.temp_scale
        return self.committed_scale
