from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class RenderConfig:
    """Fixed rendering parameters applied to every page of a document."""

    dpi: int = 200
    max_width: int = 1920
    max_height: int = 2560
    raw_format: str = "png"


@dataclass(frozen=True)
class SourceDocument:
    """An uploaded PDF after validation, persisted to its document directory."""

    document_id: str
    pdf_bytes: bytes = field(repr=False)
    page_count: int
    directory: Path
    original_path: Path

    @property
    def pages_dir(self) -> Path:
        return self.directory / "pages"


@dataclass(frozen=True)
class PageArtifact:
    """One rasterized-then-optimized page."""

    page_number: int
    image_path: str


@dataclass
class ProcessingResult:
    """Page manifest handed back to the caller after a successful run."""

    total_pages: int
    cover_image: str = ""
    pages: list[str] = field(default_factory=list)

    @classmethod
    def from_artifacts(
        cls, total_pages: int, artifacts: list[PageArtifact | None]
    ) -> "ProcessingResult":
        """Build the manifest from page-indexed artifacts, dropping gaps."""
        pages = [a.image_path for a in artifacts if a is not None]
        first = artifacts[0] if artifacts else None
        cover_image = first.image_path if first is not None else ""
        return cls(total_pages=total_pages, cover_image=cover_image, pages=pages)
