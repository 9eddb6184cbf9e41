# src/simple_service/conftest.py
"""
Pytest configuration and shared fixtures.

Tests are co-located with implementation files using the *_test.py suffix.
Unit tests run against mocked connections or the in-memory store; the
PostgreSQL fixtures skip their tests when DATABASE_URL is not reachable.
"""

import os

# Set environment BEFORE importing any app modules
os.environ["SIMPLE_SERVICE_ENV"] = "test"

from unittest.mock import AsyncMock

import psycopg
import pytest

from simple_service.config import config
from simple_service.db import PooledDB
from simple_service.memory import MemoryDB
from simple_service.resource import ResourceRepository
from simple_service.schema import migration_files

# =============================================================================
# Connection Doubles
# =============================================================================


@pytest.fixture
def mock_conn() -> AsyncMock:
    """A connection whose prepare/execute/query/close are AsyncMocks."""
    return AsyncMock()


@pytest.fixture
def mock_db(mock_conn) -> AsyncMock:
    """A provider that hands out mock_conn."""
    db = AsyncMock()
    db.get_conn.return_value = mock_conn
    return db


@pytest.fixture
def memory_db() -> MemoryDB:
    return MemoryDB()


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
def resource_repo(mock_db) -> ResourceRepository:
    """A ResourceRepository over mock_db."""
    return ResourceRepository(mock_db)


@pytest.fixture
def memory_repo(memory_db) -> ResourceRepository:
    """A ResourceRepository over the in-memory store."""
    return ResourceRepository(memory_db)


# =============================================================================
# PostgreSQL Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_db():
    """
    Apply the schema to the test database once per session.

    Skips dependent tests when the server cannot be reached.
    """
    try:
        conn = psycopg.connect(config.database_url, connect_timeout=3)
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")

    with conn:
        with conn.cursor() as cur:
            for path in migration_files():
                cur.execute(path.read_text())

    yield config.database_url


@pytest.fixture
async def pooled_db(test_db):
    """
    Provide an open single-connection PooledDB over an empty resources table.

    One connection means consecutive operations share a session, which is
    what exercises prepared statement reuse.
    """
    with psycopg.connect(test_db) as conn:
        conn.execute("TRUNCATE resources RESTART IDENTITY")

    database = PooledDB(test_db, min_size=1, max_size=1, acquire_timeout=5)
    await database.open()
    yield database
    await database.close()


@pytest.fixture
def pg_repo(pooled_db) -> ResourceRepository:
    return ResourceRepository(pooled_db)
