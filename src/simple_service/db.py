"""
Database connection provider.

Hands out one exclusive connection per repository operation from a
psycopg AsyncConnectionPool. Statements are prepared server-side under
stable names (PREPARE "readResource" AS ...) so the plan is reused by every
later operation that lands on the same physical connection.

The pool is an explicit object: open it at service start, close it at
shutdown, and pass it to the repositories that need it.

    async with PooledDB.from_config(config) as database:
        repo = ResourceRepository(database)
        await repo.read(101)

For tests, simple_service.memory.MemoryDB implements the same interface
without a server.
"""

import weakref
from typing import Any, Protocol

import psycopg
from psycopg import sql
from psycopg_pool import AsyncConnectionPool

from simple_service.config import Config
from simple_service.errors import DBConnectionError
from simple_service.log import get_logger

logger = get_logger(__name__)

# =============================================================================
# Interfaces
# =============================================================================


class Conn(Protocol):
    """A connection scoped to a single repository operation."""

    async def prepare(self, name: str, query: str) -> None: ...

    async def execute(self, name: str, *args: Any) -> int: ...

    async def query(self, name: str, *args: Any) -> list[tuple]: ...

    async def close(self) -> None: ...


class DB(Protocol):
    """Supplies connections; raises DBConnectionError when it cannot."""

    async def get_conn(self) -> Conn: ...


# =============================================================================
# Pooled Connection
# =============================================================================


def _execute_statement(name: str, nargs: int) -> sql.Composed:
    """Build EXECUTE "name" (%s, ...) for a prepared statement."""
    query = sql.SQL("EXECUTE {}").format(sql.Identifier(name))
    if nargs:
        query += sql.SQL(" ({})").format(sql.SQL(", ").join(sql.Placeholder() * nargs))
    return query


class PooledConn:
    """
    A pooled psycopg connection checked out for one operation.

    close() hands the connection back to the pool; calling it again is a
    no-op. Arguments are bound client-side because EXECUTE is a utility
    statement and cannot take server-side parameters.
    """

    def __init__(
        self,
        pool: AsyncConnectionPool,
        conn: psycopg.AsyncConnection,
        prepared: set[str],
    ):
        self._pool = pool
        self._conn = conn
        self._prepared = prepared
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def prepare(self, name: str, query: str) -> None:
        """
        Prepare `query` as `name` unless this connection already has it.

        Args:
            name: Stable statement identifier, e.g. "createResource"
            query: SQL text with $1, $2 ... placeholders
        """
        if name in self._prepared:
            return
        await self._conn.execute(
            sql.SQL("PREPARE {} AS {}").format(sql.Identifier(name), sql.SQL(query))
        )
        self._prepared.add(name)

    async def execute(self, name: str, *args: Any) -> int:
        """Execute a prepared statement and return the affected row count."""
        async with psycopg.AsyncClientCursor(self._conn) as cur:
            await cur.execute(_execute_statement(name, len(args)), args or None)
            return cur.rowcount

    async def query(self, name: str, *args: Any) -> list[tuple]:
        """Execute a prepared statement and return all rows as tuples."""
        async with psycopg.AsyncClientCursor(self._conn) as cur:
            await cur.execute(_execute_statement(name, len(args)), args or None)
            return await cur.fetchall()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._pool.putconn(self._conn)


# =============================================================================
# Pooled Provider
# =============================================================================


class PooledDB:
    """
    Connection provider backed by psycopg_pool.AsyncConnectionPool.

    Connections run in autocommit mode: every operation is exactly one
    statement and nothing spans operations.
    """

    def __init__(
        self,
        conninfo: str,
        min_size: int = 1,
        max_size: int = 10,
        acquire_timeout: float = 30.0,
    ):
        self._pool = AsyncConnectionPool(
            conninfo,
            min_size=min_size,
            max_size=max_size,
            timeout=acquire_timeout,
            kwargs={"autocommit": True},
            open=False,
        )
        # Statement names prepared on each physical connection. Entries go
        # away with the connection, so a reconnect prepares again.
        self._prepared: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

    @classmethod
    def from_config(cls, config: Config) -> "PooledDB":
        return cls(
            config.database_url,
            min_size=config.pool_min_size,
            max_size=config.pool_max_size,
            acquire_timeout=config.acquire_timeout,
        )

    async def open(self) -> None:
        """Open the pool; raises DBConnectionError if the server is unreachable."""
        try:
            await self._pool.open(wait=True)
        except psycopg.Error as e:
            raise DBConnectionError("could not open the connection pool") from e
        logger.info("Database connection pool opened (max_size=%s).", self._pool.max_size)

    async def close(self) -> None:
        await self._pool.close()
        logger.info("Database connection pool closed.")

    async def __aenter__(self) -> "PooledDB":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def get_conn(self) -> PooledConn:
        """
        Check a connection out of the pool.

        Raises:
            DBConnectionError: The pool is closed, timed out, or could not
                connect. The psycopg error is kept as __cause__.
        """
        try:
            conn = await self._pool.getconn()
        except psycopg.Error as e:
            raise DBConnectionError("could not acquire a database connection") from e

        prepared = self._prepared.get(conn)
        if prepared is None:
            prepared = self._prepared[conn] = set()
        return PooledConn(self._pool, conn, prepared)
