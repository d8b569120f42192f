"""
Custom widgets for page display and annotation editing.
"""
from .annotation_box import AnnotationBox, AnnotationEditor
from .page_label import PageLabel
from .pdf_viewer import PDFViewer

__all__ = ['AnnotationBox', 'AnnotationEditor', 'PageLabel', 'PDFViewer']
