import os
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from app.config.settings import Settings
from app.database.connection import close_pool, get_connection, init_pool

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "app" / "database" / "schema.sql"


def _test_settings() -> Settings:
    return Settings(db_database=os.environ.get("DB_TEST_DATABASE", "magazine_test"))


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        with get_connection() as conn:
            conn.execute(SCHEMA_PATH.read_text())
            conn.commit()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def integration_cleanup(
    integration_pool: None,
) -> Generator[list[str], None, None]:
    """Collects magazine IDs to delete after the test (pages cascade)."""
    cleanup: list[str] = []
    yield cleanup
    with get_connection() as conn:
        with conn.cursor() as cur:
            for magazine_id in cleanup:
                cur.execute("DELETE FROM magazines WHERE id = %s", (magazine_id,))
            cur.execute("DELETE FROM magazines WHERE slug LIKE 'it-%'")
        conn.commit()


@pytest.fixture
def upload_root(tmp_path: Path) -> Path:
    return tmp_path / "uploads"
