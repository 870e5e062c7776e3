import io
import threading
from pathlib import Path

import pdfplumber
from pdfplumber.pdf import PDF

from app.ingestion.models import RenderConfig
from app.pdf.base import BasePdfEngine, fit_scale, raw_page_path
from app.pdf.exceptions import PdfParseError, RasterizationError

# Page counting runs in caller threads and pypdfium2 must not be entered
# concurrently. Rendering happens in worker processes and takes no lock.
_COUNT_LOCK = threading.Lock()


class PdfPlumberAdapter(BasePdfEngine):
    """Counts and renders PDF pages using pdfplumber."""

    def count_pages(self, pdf_bytes: bytes) -> int:
        try:
            with _COUNT_LOCK, pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                return len(pdf.pages)
        except Exception as exc:
            raise PdfParseError(f"pdfplumber could not open document: {exc}") from exc

    def open_document(self, pdf_path: Path) -> PDF:
        try:
            return pdfplumber.open(pdf_path)
        except Exception as exc:
            raise RasterizationError(
                f"pdfplumber could not open {pdf_path.name}: {exc}"
            ) from exc

    def render_page(
        self,
        document: PDF,
        page_number: int,
        output_dir: Path,
        config: RenderConfig,
    ) -> Path:
        target = raw_page_path(output_dir, page_number, config)
        try:
            # The page list is built once per open document and then cached.
            page = document.pages[page_number - 1]
            resolution = fit_scale(page.width, page.height, config) * 72
            image = page.to_image(resolution=resolution)
            image.save(target, format=config.raw_format.upper(), quantize=False)
            page.close()
        except Exception as exc:
            raise RasterizationError(
                f"pdfplumber failed to render page {page_number}: {exc}"
            ) from exc
        return target

    def close_document(self, document: PDF) -> None:
        document.close()
