import logging
import sys

from PyQt5.QtWidgets import QApplication

from textmark.config import get_settings
from textmark.core.annotations.persistence import JsonFileStore, SessionPersistence
from textmark.core.document.session import DocumentSession
from textmark.core.errors import DocumentLoadError
from textmark.ui import MainWindow
from textmark.utils.resource_loader import get_session_file


def main():
    """
    Main function to run the annotation application.
    It restores the previous session, or opens a file passed as a
    command-line argument.
    """
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)

    persistence = SessionPersistence(JsonFileStore(get_session_file(settings)))
    session = DocumentSession(persistence, settings)

    file_path = sys.argv[1] if len(sys.argv) > 1 else None
    if file_path:
        try:
            session.load_file(file_path)
        except DocumentLoadError as e:
            logging.getLogger(__name__).error("%s", e)
    else:
        session.restore()

    window = MainWindow(session, settings)
    window.showMaximized()
    sys.exit(app.exec_())


if __name__ == '__main__':
    main()
