"""
Flattening annotations into draw commands for export.
"""
from .flatten import DrawCommand, DrawRectangle, DrawText, FlatteningEngine, group_by_page

__all__ = ['DrawCommand', 'DrawRectangle', 'DrawText', 'FlatteningEngine', 'group_by_page']
