"""
Document loading, export and session state.
"""
from .pdf_exporter import PDFExporter
from .pdf_reader import PDFDocumentReader, looks_like_pdf
from .session import Document, DocumentSession

__all__ = ['PDFExporter', 'PDFDocumentReader', 'looks_like_pdf', 'Document', 'DocumentSession']
