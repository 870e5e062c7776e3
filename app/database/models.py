from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class MagazinePageRecord:
    """Represents a row from the magazine_pages table."""

    magazine_id: str
    page_number: int
    image_path: str
    id: int | None = None


@dataclass
class MagazineRecord:
    """Represents a row from the magazines table.

    A row with an empty pdf_path or zero total_pages is a placeholder whose
    PDF has not finished processing.
    """

    id: str
    title: str
    slug: str
    user_id: str
    description: str = ""
    published: bool = False
    pdf_path: str = ""
    cover_image: str = ""
    total_pages: int = 0
    pages: list[MagazinePageRecord] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.pdf_path) and self.total_pages > 0
