import threading
from pathlib import Path

import pymupdf

from app.ingestion.models import RenderConfig
from app.pdf.base import BasePdfEngine, fit_scale, raw_page_path
from app.pdf.exceptions import PdfParseError, RasterizationError

# Page counting runs in caller threads and MuPDF is not thread-safe.
# Rendering happens in worker processes and takes no lock.
_COUNT_LOCK = threading.Lock()


class PyMuPdfAdapter(BasePdfEngine):
    """Counts and renders PDF pages using PyMuPDF."""

    def count_pages(self, pdf_bytes: bytes) -> int:
        try:
            with _COUNT_LOCK, pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                return int(doc.page_count)
        except Exception as exc:
            raise PdfParseError(f"pymupdf could not open document: {exc}") from exc

    def open_document(self, pdf_path: Path) -> pymupdf.Document:
        try:
            return pymupdf.open(pdf_path)  # type: ignore[no-untyped-call]
        except Exception as exc:
            raise RasterizationError(f"pymupdf could not open {pdf_path.name}: {exc}") from exc

    def render_page(
        self,
        document: pymupdf.Document,
        page_number: int,
        output_dir: Path,
        config: RenderConfig,
    ) -> Path:
        target = raw_page_path(output_dir, page_number, config)
        try:
            page = document.load_page(page_number - 1)
            scale = fit_scale(page.rect.width, page.rect.height, config)
            pixmap = page.get_pixmap(matrix=pymupdf.Matrix(scale, scale), alpha=False)
            pixmap.save(str(target))
        except Exception as exc:
            raise RasterizationError(
                f"pymupdf failed to render page {page_number}: {exc}"
            ) from exc
        return target

    def close_document(self, document: pymupdf.Document) -> None:
        document.close()
