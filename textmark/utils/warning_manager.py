"""
Warning manager for confirmations that can be silenced for the session.
"""
from enum import Enum
from typing import Dict, Set

from PyQt5.QtWidgets import QCheckBox, QMessageBox, QWidget


class WarningType(Enum):
    """Types of warnings that can be suppressed."""
    REPLACE_DOCUMENT = "replace_document"


class WarningManager:
    """
    Remembers which confirmations the user asked not to see again.
    Singleton pattern to maintain state across the application.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._initialized = True
        self._suppressed_warnings: Set[WarningType] = set()
        self._last_choices: Dict[WarningType, int] = {}

    def should_show_warning(self, warning_type: WarningType) -> bool:
        return warning_type not in self._suppressed_warnings

    def suppress_warning(self, warning_type: WarningType) -> None:
        self._suppressed_warnings.add(warning_type)

    def reset_all_warnings(self) -> None:
        """Reset all warnings for the session."""
        self._suppressed_warnings.clear()
        self._last_choices.clear()

    def show_confirmation(self, parent: QWidget, warning_type: WarningType,
                          title: str, message: str, show_dont_ask: bool = True) -> bool:
        """
        Show a Yes/No confirmation with an optional "don't ask again" checkbox.

        Args:
            parent: Parent widget
            warning_type: Type of warning
            title: Dialog title
            message: Confirmation message
            show_dont_ask: Whether to show "don't ask again" checkbox

        Returns:
            True if user clicked Yes (or chose Yes before and silenced it)
        """
        if not self.should_show_warning(warning_type):
            return self._last_choices.get(warning_type, QMessageBox.Yes) == QMessageBox.Yes

        msg_box = QMessageBox(parent)
        msg_box.setIcon(QMessageBox.Question)
        msg_box.setWindowTitle(title)
        msg_box.setText(message)
        msg_box.setStandardButtons(QMessageBox.Yes | QMessageBox.No)
        msg_box.setDefaultButton(QMessageBox.No)

        dont_ask_checkbox = None
        if show_dont_ask:
            dont_ask_checkbox = QCheckBox("Don't ask again this session")
            msg_box.setCheckBox(dont_ask_checkbox)

        result = msg_box.exec_()
        self._last_choices[warning_type] = result

        if dont_ask_checkbox and dont_ask_checkbox.isChecked():
            self.suppress_warning(warning_type)

        return result == QMessageBox.Yes


# Global instance for easy access
warning_manager = WarningManager()
