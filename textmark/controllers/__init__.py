"""
Controllers for user interaction.
"""
from .overlay_controller import HitRegion, InteractionMode, OverlayController, PixelBox
from .view_controller import ViewController

__all__ = ['HitRegion', 'InteractionMode', 'OverlayController', 'PixelBox', 'ViewController']
