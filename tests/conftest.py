import io
from collections.abc import Callable, Sequence

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

PdfFactory = Callable[..., bytes]


def build_pdf(page_count: int, page_sizes: Sequence[tuple[float, float]] | None = None) -> bytes:
    """Generate a PDF whose pages say "Page N"; page_sizes overrides letter size per page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for index in range(page_count):
        width, height = page_sizes[index] if page_sizes else letter
        c.setPageSize((width, height))
        c.drawString(36, height - 72, f"Page {index + 1}")
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def make_pdf() -> PdfFactory:
    return build_pdf


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    return build_pdf(1)


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a five-page PDF."""
    return build_pdf(5)


@pytest.fixture()
def not_a_pdf_bytes() -> bytes:
    return b"\x89GARBAGE\x00\x17 definitely not a document " * 64
