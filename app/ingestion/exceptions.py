class IngestionError(Exception):
    """Base exception for all PDF ingestion errors."""


class EmptyDocumentError(IngestionError):
    """Raised for a zero-length upload or a PDF that reports zero pages."""


class MissingIdentifierError(IngestionError):
    """Raised when no document identifier is supplied."""


class InvalidDocumentError(IngestionError):
    """Raised when the upload cannot be parsed as a PDF."""


class DirectoryError(IngestionError):
    """Raised when the document's directory tree cannot be created or written."""


class PageProcessingError(IngestionError):
    """Raised when rasterizing or re-encoding a single page fails."""

    def __init__(self, page_number: int, message: str) -> None:
        super().__init__(f"Page {page_number}: {message}")
        self.page_number = page_number


class InvalidIdentifierError(MissingIdentifierError):
    """Raised when a document identifier is not a single path segment."""
