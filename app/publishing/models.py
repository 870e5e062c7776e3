from dataclasses import dataclass, field

PDF_MIME_TYPE = "application/pdf"


@dataclass(frozen=True)
class UploadRequest:
    """A decoded upload: the PDF bytes plus the form fields sent with it."""

    user_id: str
    title: str
    pdf_bytes: bytes = field(repr=False)
    mime_type: str = PDF_MIME_TYPE
    description: str = ""
    published: bool = False


@dataclass(frozen=True)
class UpdateRequest:
    """Edits to an existing magazine; pdf_bytes is None for metadata-only edits."""

    user_id: str
    title: str
    description: str = ""
    published: bool = False
    pdf_bytes: bytes | None = field(default=None, repr=False)
    mime_type: str = PDF_MIME_TYPE
