"""Data layer error hierarchy."""

from cyro.errors import CyroError


class DataError(CyroError):
    """Base for all cyro.data errors."""


class ConnectionError(DataError):  # noqa: A001
    """Raised when the database is not connected or cannot be opened."""


class IdentifierError(DataError):
    """Raised when a table or column name is not ``[A-Za-z0-9_]+``."""


class QueryError(DataError):
    """Raised when a statement is rejected or fails in SQLite."""
