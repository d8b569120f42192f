"""
Utility functions and helpers.
"""
from .resource_loader import get_app_data_dir, get_session_file
from .warning_manager import WarningManager, WarningType, warning_manager

__all__ = [
    'get_app_data_dir',
    'get_session_file',
    'WarningManager',
    'WarningType',
    'warning_manager',
]
