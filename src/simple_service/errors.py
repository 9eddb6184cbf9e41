"""
Error taxonomy for the data-access layer.

Every error raised by a repository operation derives from RepositoryError
and keeps the underlying driver or pool failure as its __cause__.
"""

from typing import Optional


class RepositoryError(Exception):
    """Base class for all data-access failures."""


class DBConnectionError(RepositoryError):
    """The connection provider could not supply a connection."""


class StatementError(RepositoryError):
    """A failure tied to one named prepared statement."""

    def __init__(self, statement: str, message: Optional[str] = None):
        self.statement = statement
        super().__init__(message or f"statement {statement!r} failed")


class PrepareError(StatementError):
    """The store rejected preparation of a statement."""

    def __init__(self, statement: str):
        super().__init__(statement, f"could not prepare statement {statement!r}")


class ExecutionError(StatementError):
    """Executing a prepared statement failed."""

    def __init__(self, statement: str):
        super().__init__(statement, f"could not execute statement {statement!r}")


class QueryError(StatementError):
    """Querying through a prepared statement failed."""

    def __init__(self, statement: str, message: Optional[str] = None):
        super().__init__(statement, message or f"could not query statement {statement!r}")


class NotFoundError(QueryError):
    """A single-row read matched no row."""

    def __init__(self, statement: str, resource_id: int):
        self.resource_id = resource_id
        super().__init__(statement, f"resource {resource_id} not found")
