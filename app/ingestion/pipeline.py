"""PDF ingestion pipeline: load -> rasterize -> optimize, in bounded page batches."""

import asyncio
import time
from collections.abc import Iterator
from concurrent.futures import ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from multiprocessing import get_context
from pathlib import Path

from app.config.settings import Settings
from app.image.base import BaseImageOptimizer
from app.image.exceptions import ImageOptimizationError
from app.image.webp_adapter import WebpOptimizer
from app.ingestion import storage
from app.ingestion.document_loader import DocumentLoader
from app.ingestion.exceptions import PageProcessingError
from app.ingestion.models import PageArtifact, ProcessingResult, RenderConfig, SourceDocument
from app.logging.logger import Log
from app.pdf import worker
from app.pdf.base import BasePdfEngine
from app.pdf.exceptions import RasterizationError
from app.pdf.factory import PdfEngineFactory


def page_batches(page_count: int, batch_size: int) -> Iterator[list[int]]:
    """Yield 1-indexed page numbers in consecutive chunks of at most batch_size."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    for start in range(1, page_count + 1, batch_size):
        yield list(range(start, min(start + batch_size, page_count + 1)))


class PdfIngestionPipeline:
    """Turns an uploaded PDF into one optimized image per page.

    Pages are processed in fixed-size batches. Pages inside a batch are
    rendered concurrently in a process pool sized to the batch, then encoded
    in worker threads; a batch is fully joined before the next one starts.
    The first failing page aborts the document: remaining batches are
    skipped, the document directory is removed and the page error is
    re-raised.
    """

    def __init__(
        self,
        loader: DocumentLoader,
        pdf_engine: BasePdfEngine,
        optimizer: BaseImageOptimizer,
        render_config: RenderConfig | None = None,
        batch_size: int = 5,
        quality: int = 78,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._loader = loader
        self._pdf_engine = pdf_engine
        self._optimizer = optimizer
        self._render_config = render_config or RenderConfig()
        self._batch_size = batch_size
        self._quality = quality

    @property
    def upload_root(self) -> Path:
        return self._loader.upload_root

    def inspect(self, pdf_bytes: bytes, document_id: str) -> int:
        """Validate a PDF and return its page count without writing anything."""
        return self._loader.inspect(pdf_bytes, document_id)

    async def process(self, pdf_bytes: bytes, document_id: str) -> ProcessingResult:
        """Run the whole pipeline for one document.

        Raises:
            IngestionError: any validation, directory or page failure. On a
                page failure the document directory no longer exists.
        """
        started = time.monotonic()
        document = await asyncio.to_thread(self._loader.load, pdf_bytes, document_id)

        artifacts: list[PageArtifact | None] = [None] * document.page_count
        try:
            with self._render_pool(document) as pool:
                for batch in page_batches(document.page_count, self._batch_size):
                    Log.debug(f"Document {document_id}: processing pages {batch[0]}-{batch[-1]}")
                    await self._run_batch(pool, document, batch, artifacts)
        except Exception as exc:
            Log.error(f"Processing failed for document {document_id}: {exc}")
            storage.delete_document_files(document_id, self.upload_root)
            raise

        result = ProcessingResult.from_artifacts(document.page_count, artifacts)
        Log.info(
            f"Processed document {document_id}: {result.total_pages} pages "
            f"in {time.monotonic() - started:.2f}s"
        )
        return result

    async def process_file(self, pdf_path: Path, document_id: str) -> ProcessingResult:
        """Read a PDF from disk and run the pipeline on its bytes."""
        pdf_bytes = await asyncio.to_thread(pdf_path.read_bytes)
        return await self.process(pdf_bytes, document_id)

    def _render_pool(self, document: SourceDocument) -> ProcessPoolExecutor:
        workers = min(self._batch_size, document.page_count)
        return ProcessPoolExecutor(max_workers=workers, mp_context=get_context("spawn"))

    async def _run_batch(
        self,
        pool: ProcessPoolExecutor,
        document: SourceDocument,
        page_numbers: list[int],
        artifacts: list[PageArtifact | None],
    ) -> None:
        outcomes = await asyncio.gather(
            *(self._process_page(pool, document, page_number) for page_number in page_numbers),
            return_exceptions=True,
        )
        # Every member has finished; report the lowest failing page.
        for page_number, outcome in zip(page_numbers, outcomes):
            if isinstance(outcome, BaseException):
                raise outcome
            artifacts[page_number - 1] = outcome

    async def _process_page(
        self, pool: ProcessPoolExecutor, document: SourceDocument, page_number: int
    ) -> PageArtifact:
        loop = asyncio.get_running_loop()
        try:
            raw_path = await loop.run_in_executor(
                pool,
                worker.render_page,
                self._pdf_engine,
                document.original_path,
                page_number,
                document.pages_dir,
                self._render_config,
            )
        except (RasterizationError, BrokenProcessPool) as exc:
            raise PageProcessingError(page_number, str(exc) or type(exc).__name__) from exc
        return await asyncio.to_thread(self._finish_page, document, page_number, raw_path)

    def _finish_page(
        self, document: SourceDocument, page_number: int, raw_path: Path
    ) -> PageArtifact:
        """Encode a rendered page and drop its raw bitmap once the output exists."""
        dest_path = storage.page_image_path(self.upload_root, document.document_id, page_number)
        try:
            self._optimizer.optimize(raw_path, dest_path, self._quality)
        except ImageOptimizationError as exc:
            raise PageProcessingError(page_number, str(exc)) from exc
        if not dest_path.is_file():
            raise PageProcessingError(page_number, f"{dest_path.name} was not written")

        try:
            raw_path.unlink(missing_ok=True)
        except OSError as exc:
            raise PageProcessingError(
                page_number, f"could not remove {raw_path.name}: {exc}"
            ) from exc
        return PageArtifact(
            page_number=page_number,
            image_path=storage.relative_page_path(document.document_id, page_number),
        )


def build_pipeline(settings: Settings, upload_root: Path | None = None) -> PdfIngestionPipeline:
    """Build a PdfIngestionPipeline with the configured adapters."""
    pdf_engine = PdfEngineFactory.create(settings)
    root = upload_root if upload_root is not None else Path(settings.upload_dir)
    return PdfIngestionPipeline(
        loader=DocumentLoader(pdf_engine, root),
        pdf_engine=pdf_engine,
        optimizer=WebpOptimizer(),
        render_config=PdfEngineFactory.render_config(settings),
        batch_size=settings.page_batch_size,
        quality=settings.webp_quality,
    )
