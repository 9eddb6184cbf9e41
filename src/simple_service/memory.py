"""
In-memory connection provider.

MemoryDB stands in for PooledDB where no PostgreSQL server is available.
It understands the statement shapes the resource repository issues against
the resources table, keeps rows in insertion order, and counts connection
checkouts and returns so tests can assert nothing leaks.
"""

import re
from typing import Any, Callable

from simple_service.errors import DBConnectionError


class MemoryStoreError(Exception):
    """Raised by the in-memory store the way a driver error would be."""


def _normalize(query: str) -> str:
    return re.sub(r"\s+", " ", query).strip().lower()


class MemoryConn:
    """A MemoryDB connection with its own set of prepared statements."""

    def __init__(self, db: "MemoryDB"):
        self._db = db
        self._statements: dict[str, Callable[..., Any]] = {}
        self.closed = False

    def _check_open(self) -> None:
        if self.closed:
            raise MemoryStoreError("connection is closed")

    def _handler(self, name: str) -> Callable[..., Any]:
        self._check_open()
        try:
            return self._statements[name]
        except KeyError:
            raise MemoryStoreError(f"prepared statement {name!r} does not exist") from None

    async def prepare(self, name: str, query: str) -> None:
        self._check_open()
        handler = self._db.handlers.get(_normalize(query))
        if handler is None:
            raise MemoryStoreError(f"unsupported statement: {query}")
        self._statements[name] = handler

    async def execute(self, name: str, *args: Any) -> int:
        result = self._handler(name)(*args)
        if isinstance(result, list):
            return len(result)
        return result

    async def query(self, name: str, *args: Any) -> list[tuple]:
        result = self._handler(name)(*args)
        if not isinstance(result, list):
            raise MemoryStoreError(f"statement {name!r} returns no rows")
        return result

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._db.released += 1


class MemoryDB:
    """
    Connection provider over an in-process resources table.

    Attributes:
        rows: id -> name, in insertion order
        acquired: Number of connections handed out
        released: Number of connections closed
        available: Set to False to make get_conn() fail
    """

    def __init__(self):
        self.rows: dict[int, str] = {}
        self.acquired = 0
        self.released = 0
        self.available = True
        self._next_id = 1
        self.handlers: dict[str, Callable[..., Any]] = {
            _normalize("INSERT into resources (name) VALUES ($1)"): self._insert,
            _normalize("SELECT id, name FROM resources WHERE id=$1"): self._select_one,
            _normalize("SELECT id, name FROM resources"): self._select_all,
            _normalize("UPDATE resources SET name=$1 WHERE id=$2"): self._update,
            _normalize("DELETE FROM resources WHERE id=$1"): self._delete,
        }

    @property
    def in_use(self) -> int:
        """Connections handed out and not yet closed."""
        return self.acquired - self.released

    async def get_conn(self) -> MemoryConn:
        if not self.available:
            raise DBConnectionError("in-memory store is unavailable")
        self.acquired += 1
        return MemoryConn(self)

    def _insert(self, name: str) -> int:
        if name is None:
            raise MemoryStoreError('null value in column "name" violates not-null constraint')
        self.rows[self._next_id] = name
        self._next_id += 1
        return 1

    def _select_one(self, resource_id: int) -> list[tuple]:
        if resource_id in self.rows:
            return [(resource_id, self.rows[resource_id])]
        return []

    def _select_all(self) -> list[tuple]:
        return list(self.rows.items())

    def _update(self, name: str, resource_id: int) -> int:
        if resource_id not in self.rows:
            return 0
        if name is None:
            raise MemoryStoreError('null value in column "name" violates not-null constraint')
        self.rows[resource_id] = name
        return 1

    def _delete(self, resource_id: int) -> int:
        return 1 if self.rows.pop(resource_id, None) is not None else 0
