import asyncio
import uuid
from pathlib import Path

from app.config.settings import Settings
from app.database.models import MagazineRecord
from app.database.repositories.magazine_repository import MagazineRepository
from app.ingestion import storage
from app.ingestion.models import ProcessingResult
from app.ingestion.pipeline import PdfIngestionPipeline, build_pipeline
from app.ingestion.slug import generate_slug
from app.logging.logger import Log
from app.publishing.exceptions import (
    MagazineForbiddenError,
    SlugConflictError,
    UploadValidationError,
)
from app.publishing.models import PDF_MIME_TYPE, UpdateRequest, UploadRequest


class MagazinePublisher:
    """Creates, replaces and deletes magazines around the ingestion pipeline.

    The magazine row is created before processing so its ID can name the
    document directory. When processing fails the row and the files are
    rolled back and the original error is re-raised.
    """

    def __init__(
        self,
        pipeline: PdfIngestionPipeline,
        magazine_repo: MagazineRepository,
        settings: Settings,
    ) -> None:
        self._pipeline = pipeline
        self._magazine_repo = magazine_repo
        self._settings = settings

    def upload(self, request: UploadRequest) -> MagazineRecord:
        """Publish a new magazine from an uploaded PDF."""
        title = self._require_title(request.title)
        self._validate_file(request.pdf_bytes, request.mime_type)
        slug = self._slug_for(title)

        for orphan_id in self._magazine_repo.delete_incomplete_by_slug(slug):
            Log.warning(f"Removed incomplete magazine {orphan_id} with slug '{slug}'")
            storage.delete_document_files(orphan_id, self._pipeline.upload_root)
        if self._magazine_repo.find_by_slug(slug) is not None:
            raise SlugConflictError(f"A magazine with slug '{slug}' already exists")

        magazine = self._magazine_repo.create_placeholder(
            magazine_id=uuid.uuid4().hex,
            title=title,
            slug=slug,
            user_id=request.user_id,
            description=request.description,
            published=request.published,
        )
        Log.info(f"Created magazine {magazine.id} ('{slug}') for user {request.user_id}")

        try:
            result = asyncio.run(self._pipeline.process(request.pdf_bytes, magazine.id))
            self._persist_result(magazine.id, result)
        except Exception as exc:
            Log.error(f"Upload of magazine {magazine.id} failed: {exc}")
            self._rollback_upload(magazine.id)
            raise

        return self._magazine_repo.find_by_id(magazine.id)

    def replace(self, magazine_id: str, request: UpdateRequest) -> MagazineRecord:
        """Update a magazine's metadata and, when a PDF is given, its pages."""
        existing = self._magazine_repo.find_by_id(magazine_id)
        self._check_owner(existing, request.user_id)

        title = self._require_title(request.title)
        slug = self._slug_for(title) if title != existing.title else existing.slug
        if slug != existing.slug and self._magazine_repo.find_by_slug(slug) is not None:
            raise SlugConflictError(f"A magazine with slug '{slug}' already exists")
        metadata: dict[str, object] = {
            "title": title,
            "slug": slug,
            "description": request.description,
            "published": request.published,
        }

        if request.pdf_bytes is None:
            self._magazine_repo.update_metadata(magazine_id, **metadata)
            Log.info(f"Updated metadata of magazine {magazine_id}")
            return self._magazine_repo.find_by_id(magazine_id)

        self._validate_file(request.pdf_bytes, request.mime_type)
        # Reject an unreadable replacement while the current pages still exist.
        self._pipeline.inspect(request.pdf_bytes, magazine_id)
        storage.delete_document_files(magazine_id, self._pipeline.upload_root)
        self._magazine_repo.delete_pages(magazine_id)

        try:
            result = asyncio.run(self._pipeline.process(request.pdf_bytes, magazine_id))
            self._persist_result(magazine_id, result, **metadata)
        except Exception as exc:
            Log.error(f"Replacing PDF of magazine {magazine_id} failed: {exc}")
            self._mark_unprocessed(magazine_id)
            raise

        Log.info(f"Replaced PDF of magazine {magazine_id}: {result.total_pages} pages")
        return self._magazine_repo.find_by_id(magazine_id)

    def delete(self, magazine_id: str, user_id: str) -> None:
        """Delete a magazine row, its pages and its files."""
        existing = self._magazine_repo.find_by_id(magazine_id)
        self._check_owner(existing, user_id)
        self._magazine_repo.delete(magazine_id)
        storage.delete_document_files(magazine_id, self._pipeline.upload_root)
        Log.info(f"Deleted magazine {magazine_id}")

    def _persist_result(
        self, magazine_id: str, result: ProcessingResult, **metadata: object
    ) -> None:
        prefix = self._settings.public_url_prefix
        self._magazine_repo.complete_processing(
            magazine_id,
            total_pages=result.total_pages,
            cover_image=storage.public_url(prefix, result.cover_image),
            pdf_path=storage.public_original_path(prefix, magazine_id),
            pages=[storage.public_url(prefix, page) for page in result.pages],
            **metadata,
        )

    def _rollback_upload(self, magazine_id: str) -> None:
        try:
            self._magazine_repo.delete(magazine_id)
        except Exception as exc:
            Log.exception(
                f"Failed to clean up magazine {magazine_id} after processing error: {exc}"
            )
        storage.delete_document_files(magazine_id, self._pipeline.upload_root)

    def _mark_unprocessed(self, magazine_id: str) -> None:
        """Reset a magazine whose files are gone so it reads as incomplete."""
        try:
            self._magazine_repo.complete_processing(
                magazine_id, total_pages=0, cover_image="", pdf_path="", pages=[]
            )
        except Exception as exc:
            Log.exception(
                f"Failed to reset magazine {magazine_id} after processing error: {exc}"
            )

    def _validate_file(self, pdf_bytes: bytes | None, mime_type: str) -> None:
        if not pdf_bytes:
            raise UploadValidationError("File and title are required")
        if mime_type != PDF_MIME_TYPE:
            raise UploadValidationError("Only PDF files are allowed")
        limit = self._settings.max_upload_bytes
        if len(pdf_bytes) > limit:
            raise UploadValidationError(
                f"File size exceeds {limit // (1024 * 1024)}MB limit"
            )

    @staticmethod
    def _require_title(title: str) -> str:
        title = title.strip()
        if not title:
            raise UploadValidationError("File and title are required")
        return title

    @staticmethod
    def _slug_for(title: str) -> str:
        slug = generate_slug(title)
        if not slug:
            raise UploadValidationError(f"Title '{title}' must contain letters or digits")
        return slug

    @staticmethod
    def _check_owner(magazine: MagazineRecord, user_id: str) -> None:
        if magazine.user_id != user_id:
            raise MagazineForbiddenError(
                f"User {user_id} does not own magazine {magazine.id}"
            )


def build_publisher(settings: Settings, upload_root: Path | None = None) -> MagazinePublisher:
    """Build a MagazinePublisher with the configured pipeline and repository."""
    return MagazinePublisher(
        pipeline=build_pipeline(settings, upload_root=upload_root),
        magazine_repo=MagazineRepository(),
        settings=settings,
    )
