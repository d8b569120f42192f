"""
Light and dark style sheets for the application chrome.
"""
from dataclasses import dataclass

from PyQt5.QtWidgets import QWidget


@dataclass(frozen=True)
class ThemeColors:
    """Color definitions for a theme."""
    # Background colors
    bg_primary: str
    bg_secondary: str
    bg_tertiary: str

    # Text colors
    text_primary: str
    text_secondary: str
    text_muted: str

    # Accent colors
    accent_primary: str
    accent_hover: str

    border_primary: str


DARK_THEME = ThemeColors(
    bg_primary="#2e2e2e",
    bg_secondary="#3e3e3e",
    bg_tertiary="#4e4e4e",
    text_primary="#f0f0f0",
    text_secondary="#B5B5C5",
    text_muted="#8899AA",
    accent_primary="#4a9eff",
    accent_hover="#3a8eef",
    border_primary="#555555",
)

LIGHT_THEME = ThemeColors(
    bg_primary="#f0f0f0",
    bg_secondary="#ffffff",
    bg_tertiary="#e0e0e0",
    text_primary="#2e2e2e",
    text_secondary="#7A899C",
    text_muted="#8899AA",
    accent_primary="#4a9eff",
    accent_hover="#3a8eef",
    border_primary="#cccccc",
)


def generate_stylesheet(theme: ThemeColors) -> str:
    return f"""
        /* --- GENERAL STYLES --- */
        QMainWindow, #TopFrame, #StyleToolbar {{
            background-color: {theme.bg_primary};
            color: {theme.text_primary};
        }}
        #TopFrame {{
            border-bottom: 1px solid {theme.bg_secondary};
        }}

        /* --- TOOL BUTTONS --- */
        QToolButton {{
            background-color: transparent;
            color: {theme.text_secondary};
            border: none;
            border-radius: 4px;
            padding: 4px 8px;
        }}
        QToolButton:hover {{
            background-color: {theme.bg_secondary};
        }}
        QToolButton:checked {{
            background-color: {theme.accent_primary};
            color: white;
        }}
        QToolButton:checked:hover {{
            background-color: {theme.accent_hover};
        }}

        /* --- INPUTS --- */
        QComboBox {{
            background-color: {theme.bg_secondary};
            border: 1px solid {theme.border_primary};
            border-radius: 6px;
            padding: 4px 8px;
            color: {theme.text_primary};
        }}
        QComboBox:focus {{
            border: 1px solid {theme.accent_primary};
        }}

        /* --- LABELS --- */
        QLabel {{
            background-color: transparent;
            color: {theme.text_primary};
        }}
        QLabel[objectName="fileNameLabel"] {{
            font-weight: bold;
            color: {theme.text_muted};
        }}

        QScrollArea, #PageContainer {{
            background-color: {theme.bg_tertiary};
            border: none;
        }}
    """


def apply_style(widget: QWidget, dark_mode: bool) -> None:
    """Apply the light or dark style sheet to a widget and its children."""
    widget.setStyleSheet(generate_stylesheet(DARK_THEME if dark_mode else LIGHT_THEME))
