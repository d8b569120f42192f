"""
Zoom and scale resolution.
"""
from .zoom import MIN_SCALE, ZoomGesture, ZoomPreset, normalize_zoom_entry, parse_zoom, resolve_scale

__all__ = ['MIN_SCALE', 'ZoomGesture', 'ZoomPreset', 'normalize_zoom_entry', 'parse_zoom', 'resolve_scale']
