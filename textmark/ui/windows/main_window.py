import logging

from PyQt5.QtCore import Qt, QTimer
from PyQt5.QtGui import QKeySequence
from PyQt5.QtWidgets import (
    QAction, QComboBox, QFileDialog, QFrame, QHBoxLayout, QLabel, QMainWindow,
    QMenu, QMessageBox, QProgressDialog, QScrollArea, QSizePolicy, QSpacerItem,
    QToolButton, QVBoxLayout, QWidget,
)

from textmark.config import Settings, get_settings
from textmark.controllers.overlay_controller import OverlayController
from textmark.controllers.view_controller import ViewController
from textmark.core.document.session import DocumentSession
from textmark.core.errors import DocumentLoadError, NoDocumentError
from textmark.core.export.export_worker import ExportWorker
from textmark.core.export.flatten import group_by_page
from textmark.core.geometry.zoom import ZoomPreset, normalize_zoom_entry
from textmark.ui.styles import apply_style
from textmark.ui.toolbars.style_toolbar import StyleToolbar
from textmark.ui.widgets.pdf_viewer import PDFViewer
from textmark.utils.warning_manager import WarningType, warning_manager

logger = logging.getLogger(__name__)

ZOOM_CHOICES = [preset.value for preset in ZoomPreset] + [
    "50%", "75%", "100%", "125%", "150%", "200%", "300%",
]

DEFAULT_DOWNLOAD_NAME = "edited.pdf"


class MainWindow(QMainWindow):
    def __init__(self, session: DocumentSession, settings: Settings = None):
        super().__init__()
        self.setWindowTitle("Textmark PDF")

        self.settings = settings or get_settings()
        self.session = session
        self.overlay = OverlayController(session, settings=self.settings)
        self.export_worker = None

        # Autosave is deferred to the event loop so a drag commits once
        self._autosave_timer = QTimer(self)
        self._autosave_timer.setSingleShot(True)
        self._autosave_timer.setInterval(0)
        self._autosave_timer.timeout.connect(self.session.save_annotations)
        self.overlay.state_committed.connect(self._autosave_timer.start)

        self.setup_ui()
        self.apply_style()

        self.overlay.default_style_changed.connect(self.style_toolbar.set_style)
        self.overlay.mode_changed.connect(self._on_mode_changed)
        self.overlay.placement_changed.connect(self.add_text_button.setChecked)

        if self.session.is_loaded:
            self._show_document()

    def create_text_button(self, text, tooltip, parent=None, checkable=False):
        """Helper to create flat toolbar buttons."""
        btn = QToolButton(parent)
        btn.setText(text)
        btn.setToolTip(tooltip)
        btn.setCheckable(checkable)
        btn.setFixedHeight(32)
        return btn

    def setup_ui(self):
        # TOP TOOLBAR
        self.top_frame = QFrame()
        self.top_frame.setObjectName("TopFrame")
        self.top_layout = QHBoxLayout(self.top_frame)
        self.top_layout.setContentsMargins(10, 8, 10, 8)
        self.top_layout.setSpacing(8)

        # Open PDF Button
        self.open_button = self.create_text_button("Open", "Open PDF (Ctrl+O)", self.top_frame)
        self.open_button.clicked.connect(self.open_pdf)
        self.top_layout.addWidget(self.open_button)

        # File name label
        self.file_name_label = QLabel("No PDF Loaded", self.top_frame)
        self.file_name_label.setObjectName("fileNameLabel")
        self.top_layout.addWidget(self.file_name_label)

        self.top_layout.addSpacerItem(QSpacerItem(40, 20, QSizePolicy.Expanding, QSizePolicy.Minimum))

        # Zoom box: presets or free text
        self.zoom_combo = QComboBox(self.top_frame)
        self.zoom_combo.setEditable(True)
        self.zoom_combo.setInsertPolicy(QComboBox.NoInsert)
        self.zoom_combo.setFixedWidth(120)
        self.zoom_combo.addItems(ZOOM_CHOICES)
        self.zoom_combo.activated[str].connect(self.zoom_entered)
        self.zoom_combo.lineEdit().returnPressed.connect(
            lambda: self.zoom_entered(self.zoom_combo.currentText())
        )
        self.top_layout.addWidget(self.zoom_combo)

        separator = QFrame()
        separator.setFrameShape(QFrame.VLine)
        separator.setFrameShadow(QFrame.Sunken)
        self.top_layout.addWidget(separator)

        # Annotation controls
        self.add_text_button = self.create_text_button(
            "Add Text", "Click a page to place a text annotation", self.top_frame, checkable=True
        )
        self.add_text_button.clicked.connect(self.toggle_placement)
        self.top_layout.addWidget(self.add_text_button)

        self.style_toolbar = StyleToolbar(self.overlay.default_style, self.top_frame)
        self.style_toolbar.font_size_changed.connect(
            lambda size: self.overlay.apply_style(font_size=size))
        self.style_toolbar.color_changed.connect(
            lambda color: self.overlay.apply_style(color=color))
        self.style_toolbar.highlight_changed.connect(
            lambda highlight: self.overlay.apply_style(highlight_color=highlight))
        self.top_layout.addWidget(self.style_toolbar)

        self.top_layout.addSpacerItem(QSpacerItem(40, 20, QSizePolicy.Expanding, QSizePolicy.Minimum))

        # Download button
        self.download_button = self.create_text_button("Download", "Download PDF (Ctrl+S)", self.top_frame)
        self.download_button.clicked.connect(self.download_pdf)
        self.top_layout.addWidget(self.download_button)

        # Preferences menu
        self.settings_button = self.create_text_button("Settings", "Preferences", self.top_frame)
        self.settings_button.setPopupMode(QToolButton.InstantPopup)
        menu = QMenu(self.settings_button)
        self.dark_mode_action = self._add_preference(menu, "Dark mode", "dark_mode")
        self._add_preference(menu, "Keep formatting when pasting", "paste_formatting")
        self._add_preference(menu, "Restore session on start", "save_enabled")
        self.settings_button.setMenu(menu)
        self.top_layout.addWidget(self.settings_button)

        # PAGE DISPLAY AREA
        self.page_container = QWidget()
        self.page_container.setObjectName("PageContainer")
        self.scroll_area = QScrollArea()
        self.scroll_area.setWidgetResizable(True)
        self.scroll_area.setAlignment(Qt.AlignHCenter)
        self.scroll_area.setWidget(self.page_container)

        self.view_controller = ViewController(
            self.scroll_area, self.page_container, self.session.coordinator, self.settings
        )
        self.view_controller.zoom_changed.connect(lambda _: self._update_zoom_box())

        self.page_manager = PDFViewer(
            page_container_widget=self.page_container,
            scroll_area_widget=self.scroll_area,
            session=self.session,
            overlay_controller=self.overlay,
            view_controller=self.view_controller,
            settings=self.settings,
        )

        # MAIN LAYOUT
        main_layout = QVBoxLayout()
        main_layout.setSpacing(0)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.addWidget(self.top_frame)
        main_layout.addWidget(self.scroll_area)

        container = QWidget()
        container.setLayout(main_layout)
        self.setCentralWidget(container)

        self._update_zoom_box()

    def _add_preference(self, menu: QMenu, text: str, field: str) -> QAction:
        action = QAction(text, menu)
        action.setCheckable(True)
        action.setChecked(getattr(self.session.preferences, field))
        action.toggled.connect(lambda checked: self.set_preference(field, checked))
        menu.addAction(action)
        return action

    def apply_style(self):
        apply_style(self, self.session.preferences.dark_mode)

    # ===== Document =====

    def open_pdf(self):
        file_path, _ = QFileDialog.getOpenFileName(self, "Open PDF", "", "PDF Files (*.pdf)")
        if file_path:
            self.load_pdf(file_path)

    def load_pdf(self, file_path: str) -> bool:
        if self.session.is_loaded and len(self.session.store) > 0:
            if not warning_manager.show_confirmation(
                self,
                WarningType.REPLACE_DOCUMENT,
                "Replace Document",
                "Opening another PDF discards the current annotations. Continue?",
            ):
                return False

        try:
            loaded = self.session.load_file(file_path)
        except DocumentLoadError as e:
            logger.warning("Failed to open %s: %s", file_path, e)
            QMessageBox.critical(self, "Cannot Open PDF", str(e))
            return False

        if loaded:
            self._show_document()
        return loaded

    def _show_document(self):
        document = self.session.document
        self.file_name_label.setText(document.name if document else "No PDF Loaded")
        self.scroll_area.verticalScrollBar().setValue(0)
        self.page_manager.load_document()

    # ===== Zoom =====

    def zoom_entered(self, text: str):
        self.view_controller.set_zoom(normalize_zoom_entry(text))
        self._update_zoom_box()

    def _update_zoom_box(self):
        self.zoom_combo.setEditText(self.view_controller.zoom_label())

    def resizeEvent(self, event):
        """Keep fit presets fitted when the window size changes."""
        super().resizeEvent(event)
        if self.session.is_loaded:
            self.view_controller.refit()

    # ===== Annotations =====

    def toggle_placement(self, checked: bool):
        if not checked:
            self.overlay.cancel_placement()
            return
        try:
            self.overlay.begin_placement()
        except NoDocumentError as e:
            self.add_text_button.setChecked(False)
            QMessageBox.warning(self, "No PDF", str(e))

    def _on_mode_changed(self, annotation_id: int, mode):
        annotation = self.session.store.get(annotation_id)
        if annotation is not None and self.overlay.active_id == annotation_id:
            self.style_toolbar.set_style(annotation.style)

    # ===== Export =====

    def download_pdf(self):
        """Flatten annotations into the PDF and save it using a background thread."""
        try:
            document = self.session.require_document("Download")
        except NoDocumentError as e:
            QMessageBox.warning(self, "No PDF", str(e))
            return False

        if self.export_worker is not None:
            return False

        output_path, _ = QFileDialog.getSaveFileName(
            self, "Save Annotated PDF", DEFAULT_DOWNLOAD_NAME, "PDF Files (*.pdf)"
        )
        if not output_path:
            return False

        progress = QProgressDialog("Preparing to export annotations...", None, 0, 100, self)
        progress.setWindowTitle("Saving PDF")
        progress.setWindowModality(Qt.WindowModal)
        progress.setMinimumDuration(0)
        progress.setCancelButton(None)
        progress.setAutoClose(False)
        progress.setAutoReset(False)
        progress.show()

        self.export_worker = ExportWorker(
            document.data, output_path, group_by_page(self.session.flatten())
        )

        def on_progress(message):
            progress.setLabelText(message)

        def on_page_progress(current, total):
            if total > 0:
                progress.setValue(int((current / total) * 100))
                progress.setLabelText(f"Writing annotations: {current}/{total} pages")

        def on_finished(success, message):
            progress.close()
            if success:
                QMessageBox.information(self, "Success", message)
            else:
                QMessageBox.critical(self, "Save Failed", message)
            self.export_worker.deleteLater()
            self.export_worker = None

        self.export_worker.progress.connect(on_progress)
        self.export_worker.page_progress.connect(on_page_progress)
        self.export_worker.finished.connect(on_finished)
        self.export_worker.start()
        return True

    # ===== Preferences =====

    def set_preference(self, field: str, value: bool):
        if field == "save_enabled":
            self.session.set_save_enabled(value)
            return

        setattr(self.session.preferences, field, value)
        self.session.save_preferences()
        if field == "dark_mode":
            self.apply_style()
            self.page_manager.set_dark_mode(value)
        elif field == "paste_formatting":
            self.page_manager.set_paste_formatting(value)

    # ===== Events =====

    def keyPressEvent(self, event):
        if event.matches(QKeySequence.Open):
            self.open_pdf()
            event.accept()
        elif event.matches(QKeySequence.Save):
            self.download_pdf()
            event.accept()
        elif event.key() == Qt.Key_Escape and self.overlay.placement_active:
            self.overlay.cancel_placement()
            event.accept()
        else:
            super().keyPressEvent(event)

    def closeEvent(self, event):
        """Save the session and stop background work before closing."""
        self._autosave_timer.stop()
        self.session.save_annotations()
        self.page_manager.shutdown()
        if self.export_worker is not None:
            self.export_worker.wait()
        event.accept()
