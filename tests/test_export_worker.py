import os

import fitz  # PyMuPDF
import pytest

from textmark.core.document.pdf_exporter import PDFExporter
from textmark.core.errors import ExportError
from textmark.core.export.export_worker import ExportWorker
from textmark.core.export.flatten import DrawRectangle, DrawText

COMMANDS = {
    0: [
        DrawRectangle(0, 72, 700, 100, 20, (255, 255, 0), opacity=0.5),
        DrawText(0, 72, 705, "Worker note", 14, (0, 0, 0)),
    ],
}


def record(signal):
    calls = []
    signal.connect(lambda *args: calls.append(args))
    return calls


def test_worker_writes_output(qapp, tmp_path, pdf_bytes):
    output = tmp_path / "edited.pdf"
    worker = ExportWorker(pdf_bytes, str(output), COMMANDS)
    finished = record(worker.finished)
    pages = record(worker.page_progress)

    # Run synchronously in the test thread
    worker.run()

    assert finished and finished[0][0] is True
    assert pages[-1] == (1, 1)
    with fitz.open(str(output)) as doc:
        assert "Worker note" in doc[0].get_text()
    assert os.listdir(tmp_path) == ["edited.pdf"]


def test_worker_reports_failure_and_cleans_up(qapp, tmp_path):
    output = tmp_path / "edited.pdf"
    worker = ExportWorker(b"not a pdf", str(output), COMMANDS)
    finished = record(worker.finished)

    worker.run()

    [(success, message)] = finished
    assert success is False
    assert "Error during export" in message
    assert os.listdir(tmp_path) == []


def test_exporter_skips_missing_pages(qapp, pdf_bytes):
    exporter = PDFExporter()
    progress = record(exporter.progress_signal)

    output = exporter.apply_commands(pdf_bytes, {5: [DrawText(5, 10, 10, "lost", 12, (0, 0, 0))]})

    with fitz.open(stream=output, filetype="pdf") as doc:
        assert doc.page_count == 2
        assert all("lost" not in page.get_text() for page in doc)
    assert progress == [(0, 1), (1, 1)]


def test_exporter_rejects_unknown_commands(qapp, pdf_bytes):
    with pytest.raises(ExportError):
        PDFExporter().apply_commands(pdf_bytes, {0: ["not a command"]})
