class PdfEngineError(Exception):
    """Base exception for PDF engine adapters."""


class PdfParseError(PdfEngineError):
    """Raised when bytes cannot be opened as a PDF document."""


class RasterizationError(PdfEngineError):
    """Raised when a single page cannot be rendered to a bitmap."""
