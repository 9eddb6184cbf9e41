"""
Schema bootstrap.

Applies the SQL files shipped in the simple_service.migrations package
data, in name order, inside a single transaction.
"""

from importlib import resources
from typing import Any, List, Optional

import psycopg

from simple_service.log import get_logger

logger = get_logger(__name__)

MIGRATIONS_DIR = resources.files("simple_service") / "migrations"


def migration_files(migrations_dir: Optional[Any] = None) -> List[Any]:
    """Return the migration files to apply, sorted by name."""
    migrations_dir = migrations_dir if migrations_dir is not None else MIGRATIONS_DIR
    if not migrations_dir.is_dir():
        raise FileNotFoundError(f"Migrations directory not found: {migrations_dir}")
    return sorted(
        (f for f in migrations_dir.iterdir() if f.name.endswith(".sql")),
        key=lambda f: f.name,
    )


async def apply_migrations(
    database_url: str, migrations_dir: Optional[Any] = None
) -> int:
    """
    Apply every migration file to the database.

    Args:
        database_url: libpq connection string
        migrations_dir: Directory holding *.sql files; the packaged
            migrations when omitted

    Returns:
        Number of files applied
    """
    files = migration_files(migrations_dir)
    async with await psycopg.AsyncConnection.connect(database_url) as conn:
        async with conn.cursor() as cur:
            for path in files:
                logger.info("Applying migration %s", path.name)
                await cur.execute(path.read_text())
    return len(files)
