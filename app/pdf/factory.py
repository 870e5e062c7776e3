from app.config.settings import Settings
from app.ingestion.models import RenderConfig
from app.pdf.base import BasePdfEngine
from app.pdf.pdfplumber_adapter import PdfPlumberAdapter
from app.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfEngineFactory:
    """Creates the configured PDF engine and its render configuration."""

    ADAPTERS: dict[str, type[BasePdfEngine]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfEngine:
        engine = settings.pdf_engine.lower()
        adapter_cls = cls.ADAPTERS.get(engine)
        if adapter_cls is None:
            raise ValueError(
                f"Unknown PDF engine '{engine}'. Choose from: {list(cls.ADAPTERS)}"
            )
        return adapter_cls()

    @staticmethod
    def render_config(settings: Settings) -> RenderConfig:
        return RenderConfig(
            dpi=settings.raster_dpi,
            max_width=settings.raster_max_width,
            max_height=settings.raster_max_height,
        )
