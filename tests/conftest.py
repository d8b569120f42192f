import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import fitz  # PyMuPDF
import pytest
from PyQt5.QtWidgets import QApplication

from textmark.config import Settings
from textmark.core.annotations.persistence import SessionPersistence
from textmark.core.document.session import DocumentSession
from textmark.core.page.models import RenderedPage

LETTER = (612.0, 792.0)


class MemoryStore:
    """In-memory key/value store."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def remove(self, key):
        self.data.pop(key, None)


def mono_metrics(text, font_size):
    """Every character is half the font size wide."""
    return len(text) * font_size * 0.5


def make_pdf(sizes=(LETTER, LETTER), rotation=0):
    doc = fitz.open()
    for width, height in sizes:
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 72), "Sample page", fontsize=12)
        if rotation:
            page.set_rotation(rotation)
    data = doc.tobytes()
    doc.close()
    return data


def commit_pass(coordinator, scale):
    """Commit a full render pass without rasterizing anything."""
    generation = coordinator.begin_pass(scale)
    for page in coordinator.pages:
        width, height = page.expected_size(scale)
        coordinator.commit_page(generation, RenderedPage(page.page_index, scale, width, height))
    return generation


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def pdf_bytes():
    return make_pdf()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def session(settings, memory_store):
    return DocumentSession(SessionPersistence(memory_store), settings)


@pytest.fixture
def loaded_session(session, pdf_bytes):
    session.load_bytes(pdf_bytes, "sample.pdf")
    return session
