"""Tests for schema bootstrap."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

import simple_service
from simple_service.schema import MIGRATIONS_DIR, apply_migrations, migration_files


class TestMigrationFiles:
    """Tests for migration_files()"""

    def test_packaged_migrations(self):
        files = migration_files()

        assert [f.name for f in files] == ["001_initial_schema.sql"]
        assert "CREATE TABLE IF NOT EXISTS resources" in files[0].read_text()

    def test_migrations_ship_inside_the_package(self):
        package_dir = Path(simple_service.__file__).parent

        assert Path(str(MIGRATIONS_DIR)) == package_dir / "migrations"

    def test_sorted_by_name(self, tmp_path):
        for name in ("010_later.sql", "002_second.sql", "notes.txt", "001_first.sql"):
            (tmp_path / name).write_text("SELECT 1;")

        files = migration_files(tmp_path)

        assert [f.name for f in files] == ["001_first.sql", "002_second.sql", "010_later.sql"]

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            migration_files(tmp_path / "nope")


class TestApplyMigrations:
    """Tests for apply_migrations()"""

    async def test_executes_each_packaged_file(self):
        cur = MagicMock()
        cur.execute = AsyncMock()
        conn = MagicMock()
        conn.__aenter__.return_value = conn
        conn.cursor.return_value.__aenter__.return_value = cur

        with patch(
            "simple_service.schema.psycopg.AsyncConnection.connect",
            AsyncMock(return_value=conn),
        ) as connect:
            applied = await apply_migrations("postgresql://localhost/test")

        connect.assert_awaited_once_with("postgresql://localhost/test")
        assert applied == 1
        cur.execute.assert_awaited_once_with(
            (MIGRATIONS_DIR / "001_initial_schema.sql").read_text()
        )

    async def test_missing_directory_does_not_connect(self, tmp_path):
        with patch("simple_service.schema.psycopg.AsyncConnection.connect") as connect:
            with pytest.raises(FileNotFoundError):
                await apply_migrations("postgresql://localhost/test", tmp_path / "nope")

        connect.assert_not_called()
