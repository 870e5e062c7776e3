from pathlib import Path

from app.ingestion import storage
from app.ingestion.exceptions import (
    DirectoryError,
    EmptyDocumentError,
    InvalidDocumentError,
    InvalidIdentifierError,
    MissingIdentifierError,
)
from app.ingestion.models import SourceDocument
from app.logging.logger import Log
from app.pdf.base import BasePdfEngine
from app.pdf.exceptions import PdfParseError

PDF_HEADER = b"%PDF-"
# Readers accept a header anywhere in the first kilobyte.
HEADER_SEARCH_BYTES = 1024


class DocumentLoader:
    """Validates an uploaded PDF and persists it under its document directory."""

    def __init__(self, pdf_engine: BasePdfEngine, upload_root: Path) -> None:
        self._pdf_engine = pdf_engine
        self._upload_root = upload_root

    @property
    def upload_root(self) -> Path:
        return self._upload_root

    def load(self, pdf_bytes: bytes, document_id: str) -> SourceDocument:
        """Validate, parse and persist the original document.

        Nothing is written to disk until the bytes have been parsed, so
        rejected uploads leave no directory behind.

        Raises:
            EmptyDocumentError: if the buffer is empty or the PDF has no pages.
            MissingIdentifierError: if document_id is empty.
            InvalidIdentifierError: if document_id contains a path separator.
            InvalidDocumentError: if the buffer is not a parseable PDF.
            DirectoryError: if the directory tree or original file cannot be written.
        """
        if not pdf_bytes:
            raise EmptyDocumentError("Uploaded document is empty")
        if not document_id or not document_id.strip():
            raise MissingIdentifierError("Document identifier is required")
        if "/" in document_id or "\\" in document_id or document_id in (".", ".."):
            raise InvalidIdentifierError(
                f"Document identifier '{document_id}' is not a single path segment"
            )

        page_count = self._count_pages(pdf_bytes, document_id)
        original = self._persist(pdf_bytes, document_id)
        Log.info(
            f"Loaded document {document_id}: {page_count} pages, {len(pdf_bytes)} bytes"
        )
        return SourceDocument(
            document_id=document_id,
            pdf_bytes=pdf_bytes,
            page_count=page_count,
            directory=original.parent,
            original_path=original,
        )

    def inspect(self, pdf_bytes: bytes, document_id: str) -> int:
        """Parse the buffer and return its page count without touching disk.

        Raises:
            EmptyDocumentError: if the buffer is empty or the PDF has no pages.
            InvalidDocumentError: if the buffer is not a parseable PDF.
        """
        if not pdf_bytes:
            raise EmptyDocumentError("Uploaded document is empty")
        return self._count_pages(pdf_bytes, document_id)

    def _count_pages(self, pdf_bytes: bytes, document_id: str) -> int:
        if PDF_HEADER not in pdf_bytes[:HEADER_SEARCH_BYTES]:
            raise InvalidDocumentError(f"Document {document_id} has no PDF header")
        try:
            page_count = self._pdf_engine.count_pages(pdf_bytes)
        except PdfParseError as exc:
            raise InvalidDocumentError(
                f"Document {document_id} is not a valid PDF: {exc}"
            ) from exc
        if page_count < 1:
            raise EmptyDocumentError(f"Document {document_id} has no pages")
        return page_count

    def _persist(self, pdf_bytes: bytes, document_id: str) -> Path:
        directory = storage.document_dir(self._upload_root, document_id)
        created = not directory.exists()
        try:
            storage.pages_dir(self._upload_root, document_id).mkdir(
                parents=True, exist_ok=True
            )
            original = storage.original_path(self._upload_root, document_id)
            original.write_bytes(pdf_bytes)
        except OSError as exc:
            if created:
                storage.delete_document_files(document_id, self._upload_root)
            raise DirectoryError(
                f"Could not prepare directory for document {document_id}: {exc}"
            ) from exc
        return original
