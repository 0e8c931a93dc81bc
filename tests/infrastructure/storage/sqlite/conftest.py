"""Pytest fixtures for SQLite storage tests."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def migrated_db(temp_db_path: Path) -> Path:
    """Temporary database with every migration applied."""
    results = await run_migrations(temp_db_path)
    assert results and all(r.success for r in results)
    return temp_db_path


@pytest.fixture
def mock_settings(migrated_db: Path) -> MagicMock:
    """Settings pointing the global pool at the migrated database."""
    settings = MagicMock()
    settings.storage.db_path = migrated_db
    settings.storage.pool_size = 2
    settings.storage.busy_timeout = 5000
    return settings


@pytest.fixture
async def pooled_db(mock_settings: MagicMock) -> AsyncGenerator[Path, None]:
    """Global connection pool bound to the migrated database."""
    import src.infrastructure.storage.sqlite.connection as conn_module

    conn_module._pool = None
    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield mock_settings.storage.db_path
        finally:
            await conn_module.close_pool()
