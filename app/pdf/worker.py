"""Page rendering inside process-pool workers.

MuPDF and pdfium are CPU-bound and not thread-safe, so pages are rendered in
separate processes. Each worker keeps the document it opened last and
renders further pages of the same file from that handle.
"""

from pathlib import Path
from typing import Any

from app.ingestion.models import RenderConfig
from app.pdf.base import BasePdfEngine
from app.pdf.exceptions import RasterizationError

_DocumentKey = tuple[type[BasePdfEngine], Path, int]

_open: tuple[_DocumentKey, BasePdfEngine, Any] | None = None


def render_page(
    engine: BasePdfEngine,
    pdf_path: Path,
    page_number: int,
    output_dir: Path,
    config: RenderConfig,
) -> Path:
    """Render one page in the current worker process."""
    document = _document_for(engine, pdf_path)
    return engine.render_page(document, page_number, output_dir, config)


def close_document() -> None:
    """Close the document held by this worker process, if any."""
    global _open  # noqa: PLW0603
    if _open is not None:
        _key, engine, document = _open
        _open = None
        engine.close_document(document)


def _document_for(engine: BasePdfEngine, pdf_path: Path) -> Any:
    global _open  # noqa: PLW0603
    # The modification time keeps a rewritten original from being served stale.
    try:
        key = (type(engine), pdf_path, pdf_path.stat().st_mtime_ns)
    except OSError as exc:
        raise RasterizationError(f"Cannot read {pdf_path.name}: {exc}") from exc
    if _open is not None and _open[0] == key:
        return _open[2]
    close_document()
    document = engine.open_document(pdf_path)
    _open = (key, engine, document)
    return document
