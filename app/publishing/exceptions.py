class PublishingError(Exception):
    """Base exception for magazine publishing errors."""


class UploadValidationError(PublishingError):
    """Raised when an upload is missing fields, is not a PDF or is too large."""


class SlugConflictError(PublishingError):
    """Raised when another magazine already uses the derived slug."""


class MagazineNotFoundError(PublishingError):
    """Raised when a magazine cannot be found in the database."""


class MagazineForbiddenError(PublishingError):
    """Raised when a user modifies a magazine they do not own."""
