from typing import Optional

from PyQt5.QtCore import pyqtSignal
from PyQt5.QtGui import QColor, QDoubleValidator
from PyQt5.QtWidgets import QColorDialog, QComboBox, QFrame, QHBoxLayout, QLabel, QToolButton

from textmark.core.annotations.models import RGB, AnnotationStyle

FONT_SIZES = (14, 18, 24, 32)


class StyleToolbar(QFrame):
    """Font size, text color and highlight controls for annotations."""

    font_size_changed = pyqtSignal(float)
    color_changed = pyqtSignal(tuple)
    highlight_changed = pyqtSignal(object)  # RGB tuple, or None for no highlight

    def __init__(self, style: AnnotationStyle, parent=None):
        super().__init__(parent)
        self.setObjectName("StyleToolbar")
        self.current_color: RGB = style.color
        self.current_highlight: Optional[RGB] = style.highlight_color
        # Last real highlight, restored when "No highlight" is switched off
        self._last_highlight: RGB = style.highlight_color or (255, 255, 0)

        self.setup_ui()
        self.set_style(style)

    def setup_ui(self):
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        layout.addWidget(QLabel("Size:", self))
        self.font_size_combo = QComboBox(self)
        self.font_size_combo.setEditable(True)
        self.font_size_combo.setFixedWidth(64)
        self.font_size_combo.addItems([str(size) for size in FONT_SIZES])
        self.font_size_combo.lineEdit().setValidator(QDoubleValidator(1.0, 500.0, 1, self))
        self.font_size_combo.activated.connect(self._on_font_size)
        self.font_size_combo.lineEdit().returnPressed.connect(self._on_font_size)
        layout.addWidget(self.font_size_combo)

        layout.addWidget(QLabel("Text:", self))
        self.color_button = QToolButton(self)
        self.color_button.setToolTip("Text color")
        self.color_button.setFixedSize(28, 28)
        self.color_button.clicked.connect(self._choose_color)
        layout.addWidget(self.color_button)

        layout.addWidget(QLabel("Highlight:", self))
        self.highlight_button = QToolButton(self)
        self.highlight_button.setToolTip("Highlight color")
        self.highlight_button.setFixedSize(28, 28)
        self.highlight_button.clicked.connect(self._choose_highlight)
        layout.addWidget(self.highlight_button)

        self.no_highlight_button = QToolButton(self)
        self.no_highlight_button.setText("No highlight")
        self.no_highlight_button.setCheckable(True)
        self.no_highlight_button.toggled.connect(self._on_no_highlight)
        layout.addWidget(self.no_highlight_button)

    def set_style(self, style: AnnotationStyle):
        """Show ``style`` in the controls without emitting change signals."""
        self.blockSignals(True)
        try:
            size = style.font_size
            self.font_size_combo.setEditText(str(int(size)) if size == int(size) else str(size))
            self.current_color = style.color
            self.current_highlight = style.highlight_color
            if style.highlight_color is not None:
                self._last_highlight = style.highlight_color
            self.no_highlight_button.blockSignals(True)
            self.no_highlight_button.setChecked(style.highlight_color is None)
            self.no_highlight_button.blockSignals(False)
            self._update_color_buttons()
        finally:
            self.blockSignals(False)

    def _on_font_size(self, *_):
        try:
            size = float(self.font_size_combo.currentText())
        except ValueError:
            return
        if size > 0:
            self.font_size_changed.emit(size)

    def _choose_color(self):
        """Open color picker dialog for the text color."""
        color = QColorDialog.getColor(QColor(*self.current_color), self, "Choose Text Color")
        if color.isValid():
            self.current_color = (color.red(), color.green(), color.blue())
            self._update_color_buttons()
            self.color_changed.emit(self.current_color)

    def _choose_highlight(self):
        """Open color picker dialog for the highlight."""
        initial = QColor(*(self.current_highlight or self._last_highlight))
        color = QColorDialog.getColor(initial, self, "Choose Highlight Color")
        if color.isValid():
            self._last_highlight = (color.red(), color.green(), color.blue())
            self.current_highlight = self._last_highlight
            self.no_highlight_button.blockSignals(True)
            self.no_highlight_button.setChecked(False)
            self.no_highlight_button.blockSignals(False)
            self._update_color_buttons()
            self.highlight_changed.emit(self.current_highlight)

    def _on_no_highlight(self, checked: bool):
        self.current_highlight = None if checked else self._last_highlight
        self._update_color_buttons()
        self.highlight_changed.emit(self.current_highlight)

    def _update_color_buttons(self):
        """Update the swatches to show the current colors."""
        r, g, b = self.current_color
        self.color_button.setStyleSheet(
            f"QToolButton {{ background-color: rgb({r}, {g}, {b}); "
            f"border: 2px solid #555555; border-radius: 4px; }}"
        )
        if self.current_highlight is None:
            swatch = "background-color: transparent; border: 2px dashed #555555;"
        else:
            hr, hg, hb = self.current_highlight
            swatch = f"background-color: rgb({hr}, {hg}, {hb}); border: 2px solid #555555;"
        self.highlight_button.setStyleSheet(f"QToolButton {{ {swatch} border-radius: 4px; }}")
