"""Validated SQLite table access for cyro handlers.

Rows in, dicts out. Not an ORM.

Basic usage::

    from cyro.data import Database

    db = Database("data/app.db")
    await db.connect()
    user = await db.get("users", {"id": 42})

Blocking sqlite3 calls run on worker threads via ``anyio``.
"""

from cyro.data.database import Database
from cyro.data.errors import ConnectionError, DataError, IdentifierError, QueryError

__all__ = [
    "ConnectionError",
    "DataError",
    "Database",
    "IdentifierError",
    "QueryError",
]
