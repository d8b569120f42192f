"""
Textmark PDF: place styled text annotations on PDF pages and flatten them
into the document.
"""
__version__ = "0.1.0"
