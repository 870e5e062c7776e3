from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from app.ingestion.models import RenderConfig


class BasePdfEngine(ABC):
    """Contract for all PDF adapters: page counting and page rasterization.

    Adapters hold no state, so they can be pickled into render worker
    processes. An open document is an opaque handle owned by the caller.
    """

    @abstractmethod
    def count_pages(self, pdf_bytes: bytes) -> int:
        """Parse PDF bytes and return the number of pages.

        Raises:
            PdfParseError: if the bytes are not a readable PDF.
        """

    @abstractmethod
    def open_document(self, pdf_path: Path) -> Any:
        """Open a PDF on disk for rendering.

        Raises:
            RasterizationError: if the file cannot be opened.
        """

    @abstractmethod
    def render_page(
        self,
        document: Any,
        page_number: int,
        output_dir: Path,
        config: RenderConfig,
    ) -> Path:
        """Render one page of an open document to a raw bitmap file.

        Args:
            document: Handle returned by open_document().
            page_number: 1-indexed page to render.
            output_dir: Directory receiving the raw bitmap.
            config: Resolution and size limits.

        Returns:
            Path of the written bitmap, ``page-{page_number}.{config.raw_format}``.

        Raises:
            RasterizationError: if the page cannot be rendered.
        """

    @abstractmethod
    def close_document(self, document: Any) -> None:
        """Release a handle returned by open_document()."""

    def rasterize(
        self,
        pdf_path: Path,
        page_number: int,
        output_dir: Path,
        config: RenderConfig,
    ) -> Path:
        """Open the PDF, render a single page and close it again."""
        document = self.open_document(pdf_path)
        try:
            return self.render_page(document, page_number, output_dir, config)
        finally:
            self.close_document(document)


def fit_scale(width: float, height: float, config: RenderConfig) -> float:
    """Scale factor from PDF points to pixels at the configured DPI.

    The result is reduced, keeping the aspect ratio, when the rendered page
    would exceed ``max_width`` x ``max_height``.
    """
    scale = config.dpi / 72.0
    if width <= 0 or height <= 0:
        return scale
    limit = min(config.max_width / (width * scale), config.max_height / (height * scale))
    return scale * min(1.0, limit)


def raw_page_path(output_dir: Path, page_number: int, config: RenderConfig) -> Path:
    return output_dir / f"page-{page_number}.{config.raw_format}"
