"""
Toolbar components.
"""
from .style_toolbar import StyleToolbar

__all__ = ['StyleToolbar']
