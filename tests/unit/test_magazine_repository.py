from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from app.database.models import MagazineRecord
from app.database.repositories.magazine_repository import MagazineRepository
from app.publishing.exceptions import MagazineNotFoundError

PATCH_TARGET = "app.database.repositories.magazine_repository.get_connection"


def _make_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": "mag-1",
        "title": "Edisi Januari",
        "slug": "edisi-januari",
        "description": None,
        "published": True,
        "user_id": "user-1",
        "pdf_path": "/uploads/magazines/mag-1/original.pdf",
        "cover_image": "/uploads/magazines/mag-1/pages/page-1.webp",
        "total_pages": 2,
        "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2025, 1, 2, tzinfo=timezone.utc),
    }
    row.update(overrides)
    return row


def _mock_connection(mock_get_conn: MagicMock) -> tuple[MagicMock, MagicMock]:
    """Wire up a mock connection + cursor and return (mock_conn, mock_cursor)."""
    mock_cursor = MagicMock()
    mock_conn = MagicMock()
    mock_conn.cursor.return_value.__enter__ = MagicMock(return_value=mock_cursor)
    mock_conn.cursor.return_value.__exit__ = MagicMock(return_value=False)
    mock_get_conn.return_value.__enter__ = MagicMock(return_value=mock_conn)
    mock_get_conn.return_value.__exit__ = MagicMock(return_value=False)
    return mock_conn, mock_cursor


class TestCreatePlaceholder:
    @patch(PATCH_TARGET)
    def test_inserts_incomplete_row(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _make_row(pdf_path="", cover_image="", total_pages=0)

        record = MagazineRepository().create_placeholder(
            magazine_id="mag-1", title="Edisi Januari", slug="edisi-januari", user_id="user-1"
        )

        sql, params = mock_cursor.execute.call_args.args
        assert "INSERT INTO magazines" in sql
        assert params == ("mag-1", "Edisi Januari", "edisi-januari", "", False, "user-1")
        assert isinstance(record, MagazineRecord)
        assert record.is_complete is False
        mock_conn.commit.assert_called_once()


class TestDeleteIncompleteBySlug:
    @patch(PATCH_TARGET)
    def test_returns_deleted_ids(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchall.return_value = [("old-1",), ("old-2",)]

        deleted = MagazineRepository().delete_incomplete_by_slug("edisi-januari")

        sql, params = mock_cursor.execute.call_args.args
        assert "pdf_path = ''" in sql
        assert "total_pages = 0" in sql
        assert params == ("edisi-januari",)
        assert deleted == ["old-1", "old-2"]


class TestFindById:
    @patch(PATCH_TARGET)
    def test_returns_record_with_ordered_pages(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _make_row()
        mock_cursor.fetchall.return_value = [
            {"id": 1, "magazine_id": "mag-1", "page_number": 1, "image_path": "p1"},
            {"id": 2, "magazine_id": "mag-1", "page_number": 2, "image_path": "p2"},
        ]

        record = MagazineRepository().find_by_id("mag-1")

        assert record.id == "mag-1"
        assert record.description == ""
        assert record.is_complete is True
        assert [p.page_number for p in record.pages] == [1, 2]
        assert [p.image_path for p in record.pages] == ["p1", "p2"]

    @patch(PATCH_TARGET)
    def test_raises_when_missing(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        with pytest.raises(MagazineNotFoundError, match="Magazine nope not found"):
            MagazineRepository().find_by_id("nope")


class TestFindBySlug:
    @patch(PATCH_TARGET)
    def test_returns_none_when_missing(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = None

        assert MagazineRepository().find_by_slug("nope") is None

    @patch(PATCH_TARGET)
    def test_returns_record(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.fetchone.return_value = _make_row()

        record = MagazineRepository().find_by_slug("edisi-januari")

        assert record is not None
        assert record.slug == "edisi-januari"


class TestCompleteProcessing:
    @patch(PATCH_TARGET)
    def test_updates_row_and_replaces_pages(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        MagazineRepository().complete_processing(
            "mag-1",
            total_pages=2,
            cover_image="c",
            pdf_path="o",
            pages=["p1", "p2"],
        )

        update_sql, update_params = mock_cursor.execute.call_args_list[0].args
        assert "UPDATE magazines" in update_sql
        assert update_params == (2, "c", "o", "mag-1")
        delete_sql, _ = mock_cursor.execute.call_args_list[1].args
        assert "DELETE FROM magazine_pages" in delete_sql
        _insert_sql, rows = mock_cursor.executemany.call_args.args
        assert rows == [("mag-1", 1, "p1"), ("mag-1", 2, "p2")]
        mock_conn.commit.assert_called_once()

    @patch(PATCH_TARGET)
    def test_writes_metadata_in_same_update(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        MagazineRepository().complete_processing(
            "mag-1",
            total_pages=1,
            cover_image="c",
            pdf_path="o",
            pages=["p1"],
            title="T",
            published=True,
        )

        sql, params = mock_cursor.execute.call_args_list[0].args
        assert "title = %s" in sql
        assert "published = %s" in sql
        assert params == (1, "c", "o", "T", True, "mag-1")

    @patch(PATCH_TARGET)
    def test_raises_when_missing(self, mock_get_conn: MagicMock) -> None:
        mock_conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 0

        with pytest.raises(MagazineNotFoundError):
            MagazineRepository().complete_processing(
                "nope", total_pages=1, cover_image="", pdf_path="", pages=[]
            )
        mock_conn.commit.assert_not_called()


class TestUpdateMetadata:
    @patch(PATCH_TARGET)
    def test_updates_only_given_fields(self, mock_get_conn: MagicMock) -> None:
        _conn, mock_cursor = _mock_connection(mock_get_conn)
        mock_cursor.rowcount = 1

        MagazineRepository().update_metadata("mag-1", slug="s", description="d")

        sql, params = mock_cursor.execute.call_args.args
        assert "slug = %s, description = %s" in sql
        assert "title" not in sql
        assert params == ("s", "d", "mag-1")

    def test_rejects_unknown_fields(self) -> None:
        with pytest.raises(ValueError, match="total_pages"):
            MagazineRepository().update_metadata("mag-1", total_pages=3)


class TestDelete:
    @patch(PATCH_TARGET)
    def test_deletes_magazine(self, mock_get_conn: MagicMock) -> None:
        mock_conn, _cursor = _mock_connection(mock_get_conn)

        MagazineRepository().delete("mag-1")

        sql, params = mock_conn.execute.call_args.args
        assert "DELETE FROM magazines" in sql
        assert params == ("mag-1",)
        mock_conn.commit.assert_called_once()

    @patch(PATCH_TARGET)
    def test_delete_pages(self, mock_get_conn: MagicMock) -> None:
        mock_conn, _cursor = _mock_connection(mock_get_conn)

        MagazineRepository().delete_pages("mag-1")

        sql, params = mock_conn.execute.call_args.args
        assert "DELETE FROM magazine_pages" in sql
        assert params == ("mag-1",)
