from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, List

from simple_service.db import DB, Conn
from simple_service.errors import ExecutionError, NotFoundError, PrepareError, QueryError
from simple_service.log import get_logger
from simple_service.resource.entity import Resource

logger = get_logger(__name__)


@dataclass(frozen=True)
class Statement:
    """A prepared statement: stable name plus the SQL it is bound to."""

    name: str
    sql: str


CREATE_RESOURCE = Statement("createResource", "INSERT into resources (name) VALUES ($1)")
READ_RESOURCE = Statement("readResource", "SELECT id, name FROM resources WHERE id=$1")
READ_ALL_RESOURCES = Statement("readAllResources", "SELECT id, name FROM resources")
UPDATE_RESOURCE = Statement("updateResource", "UPDATE resources SET name=$1 WHERE id=$2")
DELETE_RESOURCE = Statement("deleteResource", "DELETE FROM resources WHERE id=$1")


class ResourceRepository:
    """
    Repository for resource data access.
    Encapsulates all SQL for the resources table.

    Every operation checks out its own connection, prepares one named
    statement, runs it, and hands the connection back, whether it succeeded,
    failed, or was cancelled. Nothing is cached or retried.
    """

    def __init__(self, db: DB):
        self.db = db

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[Conn]:
        # Acquisition errors propagate untouched; there is nothing to release.
        conn = await self.db.get_conn()
        try:
            yield conn
        finally:
            try:
                await conn.close()
            except Exception as e:
                logger.warning("Failed to release connection: %s", e)

    async def _prepare(self, conn: Conn, statement: Statement) -> None:
        try:
            await conn.prepare(statement.name, statement.sql)
        except Exception as e:
            raise PrepareError(statement.name) from e

    async def _execute(self, statement: Statement, *args: Any) -> int:
        async with self._connection() as conn:
            await self._prepare(conn, statement)
            try:
                return await conn.execute(statement.name, *args)
            except Exception as e:
                raise ExecutionError(statement.name) from e

    async def _query(self, statement: Statement, *args: Any) -> List[tuple]:
        async with self._connection() as conn:
            await self._prepare(conn, statement)
            try:
                return await conn.query(statement.name, *args)
            except Exception as e:
                raise QueryError(statement.name) from e

    async def create(self, resource: Resource) -> None:
        """
        Insert a resource. The store assigns the id; it is not returned.

        Raises:
            DBConnectionError: No connection could be acquired
            PrepareError: The insert could not be prepared
            ExecutionError: The insert failed
        """
        logger.debug("Creating resource %r", resource.name)
        await self._execute(CREATE_RESOURCE, resource.name)

    async def read(self, resource_id: int) -> Resource:
        """
        Get a resource by ID.

        Raises:
            NotFoundError: No resource has this ID
            DBConnectionError, PrepareError, QueryError: as for the other operations
        """
        logger.debug("Reading resource %s", resource_id)
        rows = await self._query(READ_RESOURCE, resource_id)
        if not rows:
            raise NotFoundError(READ_RESOURCE.name, resource_id)
        row = rows[0]
        return Resource(id=row[0], name=row[1])

    async def read_all(self) -> List[Resource]:
        """List all resources in the store's row order; empty list if none."""
        logger.debug("Reading all resources")
        rows = await self._query(READ_ALL_RESOURCES)
        return [Resource(id=row[0], name=row[1]) for row in rows]

    async def update(self, resource: Resource) -> int:
        """
        Rename the resource with `resource.id`.

        Returns the number of rows affected. An unknown ID affects zero rows
        and is not an error; callers that need existence check the count.
        """
        logger.debug("Updating resource %s", resource.id)
        return await self._execute(UPDATE_RESOURCE, resource.name, resource.id)

    async def delete(self, resource_id: int) -> int:
        """Delete a resource by ID. Returns rows affected (0 if it did not exist)."""
        logger.debug("Deleting resource %s", resource_id)
        return await self._execute(DELETE_RESOURCE, resource_id)
