"""
Exceptions raised by the core.
"""


class TextmarkError(Exception):
    """Base class for all application errors."""


class UnsupportedFileError(TextmarkError):
    """The file is not a PDF and is ignored."""


class DocumentLoadError(TextmarkError):
    """The document bytes could not be parsed."""


class NoDocumentError(TextmarkError):
    """An operation that needs a loaded document was invoked without one."""

    def __init__(self, action: str = "This action"):
        super().__init__(f"{action} requires a loaded PDF document.")
        self.action = action


class ExportError(TextmarkError):
    """Writing the annotated document failed."""
