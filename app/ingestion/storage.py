import shutil
from pathlib import Path

from app.logging.logger import Log

MAGAZINES_DIR = "magazines"
PAGES_DIR = "pages"
ORIGINAL_FILENAME = "original.pdf"
PAGE_IMAGE_FORMAT = "webp"


def document_dir(upload_root: Path, document_id: str) -> Path:
    """Build path to a document's directory: {upload_root}/magazines/{document_id}"""
    return upload_root / MAGAZINES_DIR / document_id


def pages_dir(upload_root: Path, document_id: str) -> Path:
    return document_dir(upload_root, document_id) / PAGES_DIR


def original_path(upload_root: Path, document_id: str) -> Path:
    return document_dir(upload_root, document_id) / ORIGINAL_FILENAME


def page_filename(page_number: int, extension: str = PAGE_IMAGE_FORMAT) -> str:
    return f"page-{page_number}.{extension}"


def page_image_path(upload_root: Path, document_id: str, page_number: int) -> Path:
    return pages_dir(upload_root, document_id) / page_filename(page_number)


def relative_page_path(document_id: str, page_number: int) -> str:
    """Path of a page image relative to the magazines root."""
    return f"{document_id}/{PAGES_DIR}/{page_filename(page_number)}"


def public_url(url_prefix: str, relative_path: str) -> str:
    """URL under which a file below the magazines root is served.

    public_url("/uploads", "abc/pages/page-1.webp") == "/uploads/magazines/abc/pages/page-1.webp"
    """
    if not relative_path:
        return ""
    prefix = url_prefix.rstrip("/")
    relative = relative_path.lstrip("/")
    return f"{prefix}/{MAGAZINES_DIR}/{relative}"


def public_original_path(url_prefix: str, document_id: str) -> str:
    return public_url(url_prefix, f"{document_id}/{ORIGINAL_FILENAME}")


def delete_document_files(document_id: str, upload_root: Path) -> None:
    """Remove a document's whole directory tree.

    Best effort: a missing directory is a no-op and removal errors are logged,
    never raised, so this is safe to call from an error path.
    """
    if not document_id:
        Log.warning("Refusing to delete files for an empty document id")
        return
    directory = document_dir(upload_root, document_id)
    try:
        shutil.rmtree(directory)
    except FileNotFoundError:
        Log.debug(f"No files to delete for document {document_id}")
        return
    except OSError as exc:
        Log.error(f"Error deleting files for document {document_id}: {exc}")
        return
    Log.info(f"Deleted files for document {document_id}")
