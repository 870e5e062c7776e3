from typing import Any, ClassVar

from psycopg.rows import dict_row

from app.database.connection import get_connection
from app.database.models import MagazinePageRecord, MagazineRecord
from app.publishing.exceptions import MagazineNotFoundError

_MAGAZINE_COLUMNS = """
    id, title, slug, description, published, user_id,
    pdf_path, cover_image, total_pages, created_at, updated_at
"""


def _to_record(row: dict[str, Any]) -> MagazineRecord:
    return MagazineRecord(
        id=row["id"],
        title=row["title"],
        slug=row["slug"],
        user_id=row["user_id"],
        description=row["description"] or "",
        published=bool(row["published"]),
        pdf_path=row["pdf_path"] or "",
        cover_image=row["cover_image"] or "",
        total_pages=row["total_pages"],
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class MagazineRepository:
    """Database operations for the magazines and magazine_pages tables."""

    _METADATA_FIELDS: ClassVar[tuple[str, ...]] = ("title", "slug", "description", "published")

    def create_placeholder(
        self,
        magazine_id: str,
        title: str,
        slug: str,
        user_id: str,
        description: str = "",
        published: bool = False,
    ) -> MagazineRecord:
        """Insert a magazine row whose PDF has not been processed yet."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO magazines
                    (id, title, slug, description, published, user_id, pdf_path, total_pages)
                    VALUES (%s, %s, %s, %s, %s, %s, '', 0)
                    RETURNING {_MAGAZINE_COLUMNS}
                    """,
                    (magazine_id, title, slug, description, published, user_id),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError(f"Insert of magazine {magazine_id} returned no row")
        return _to_record(row)

    def delete_incomplete_by_slug(self, slug: str) -> list[str]:
        """Delete placeholder rows left behind by failed uploads with this slug.

        Returns:
            IDs of the removed rows.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    DELETE FROM magazines
                    WHERE slug = %s AND (pdf_path = '' OR total_pages = 0)
                    RETURNING id
                    """,
                    (slug,),
                )
                deleted = [row[0] for row in cur.fetchall()]
            conn.commit()
        return deleted

    def find_by_id(self, magazine_id: str) -> MagazineRecord:
        """Find a magazine and its pages by ID.

        Raises:
            MagazineNotFoundError: if no magazine with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_MAGAZINE_COLUMNS} FROM magazines WHERE id = %s",
                    (magazine_id,),
                )
                row = cur.fetchone()
                if row is None:
                    raise MagazineNotFoundError(f"Magazine {magazine_id} not found")
                cur.execute(
                    """
                    SELECT id, magazine_id, page_number, image_path
                    FROM magazine_pages
                    WHERE magazine_id = %s
                    ORDER BY page_number
                    """,
                    (magazine_id,),
                )
                page_rows = cur.fetchall()

        record = _to_record(row)
        record.pages = [
            MagazinePageRecord(
                id=p["id"],
                magazine_id=p["magazine_id"],
                page_number=p["page_number"],
                image_path=p["image_path"],
            )
            for p in page_rows
        ]
        return record

    def find_by_slug(self, slug: str) -> MagazineRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_MAGAZINE_COLUMNS} FROM magazines WHERE slug = %s",
                    (slug,),
                )
                row = cur.fetchone()
        return _to_record(row) if row is not None else None

    def complete_processing(
        self,
        magazine_id: str,
        total_pages: int,
        cover_image: str,
        pdf_path: str,
        pages: list[str],
        **metadata: object,
    ) -> None:
        """Store the page manifest and replace the magazine's page rows.

        Extra keyword arguments (title, slug, description, published) are
        written in the same transaction.

        Raises:
            MagazineNotFoundError: if no magazine with this ID exists.
        """
        assignments, values = self._metadata_assignments(metadata)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    UPDATE magazines
                    SET total_pages = %s, cover_image = %s, pdf_path = %s,
                        {assignments}updated_at = NOW()
                    WHERE id = %s
                    """,
                    (total_pages, cover_image, pdf_path, *values, magazine_id),
                )
                if cur.rowcount == 0:
                    raise MagazineNotFoundError(f"Magazine {magazine_id} not found")
                cur.execute("DELETE FROM magazine_pages WHERE magazine_id = %s", (magazine_id,))
                cur.executemany(
                    """
                    INSERT INTO magazine_pages (magazine_id, page_number, image_path)
                    VALUES (%s, %s, %s)
                    """,
                    [
                        (magazine_id, index + 1, image_path)
                        for index, image_path in enumerate(pages)
                    ],
                )
            conn.commit()

    def update_metadata(self, magazine_id: str, **metadata: object) -> None:
        """Update title, slug, description or published without touching pages.

        Raises:
            MagazineNotFoundError: if no magazine with this ID exists.
        """
        assignments, values = self._metadata_assignments(metadata)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"UPDATE magazines SET {assignments}updated_at = NOW() WHERE id = %s",
                    (*values, magazine_id),
                )
                if cur.rowcount == 0:
                    raise MagazineNotFoundError(f"Magazine {magazine_id} not found")
            conn.commit()

    def delete_pages(self, magazine_id: str) -> None:
        with get_connection() as conn:
            conn.execute("DELETE FROM magazine_pages WHERE magazine_id = %s", (magazine_id,))
            conn.commit()

    def delete(self, magazine_id: str) -> None:
        """Delete a magazine row; its pages go with it (ON DELETE CASCADE)."""
        with get_connection() as conn:
            conn.execute("DELETE FROM magazines WHERE id = %s", (magazine_id,))
            conn.commit()

    def _metadata_assignments(self, metadata: dict[str, object]) -> tuple[str, list[object]]:
        unknown = set(metadata) - set(self._METADATA_FIELDS)
        if unknown:
            raise ValueError(f"Unknown magazine fields: {sorted(unknown)}")
        names = [name for name in self._METADATA_FIELDS if name in metadata]
        assignments = "".join(f"{name} = %s, " for name in names)
        return assignments, [metadata[name] for name in names]
