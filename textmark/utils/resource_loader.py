"""
Locations for user data written by the application.
"""
import os
import sys
from pathlib import Path
from typing import Optional

from textmark.config import Settings, get_settings


def get_app_data_dir(app_name: str = "TextmarkPDF") -> Path:
    """
    Get the application data directory for storing user data.

    Args:
        app_name: Name of the application

    Returns:
        Path to the app data directory
    """
    if os.name == 'nt':  # Windows
        base_dir = os.environ.get('APPDATA', os.path.expanduser('~'))
    elif sys.platform == 'darwin':  # macOS
        base_dir = os.path.expanduser('~/Library/Application Support')
    else:  # Linux and others
        base_dir = os.environ.get('XDG_DATA_HOME', os.path.expanduser('~/.local/share'))

    app_dir = Path(base_dir) / app_name
    app_dir.mkdir(parents=True, exist_ok=True)

    return app_dir


def get_session_file(settings: Optional[Settings] = None) -> Path:
    """
    Path of the JSON file holding the saved session and preferences.

    ``settings.data_dir`` overrides the platform data directory.
    """
    settings = settings or get_settings()
    if settings.data_dir is not None:
        data_dir = Path(settings.data_dir)
        data_dir.mkdir(parents=True, exist_ok=True)
    else:
        data_dir = get_app_data_dir(settings.app_name)
    return data_dir / "session.json"
