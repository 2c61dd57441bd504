"""Validated table access over SQLite.

Not an ORM and not a query builder: each method issues exactly one
statement built from checked identifiers, with every value passed as a
bound parameter.

Usage::

    db = Database("data/app.db")
    await db.connect()

    if not await db.exists("users"):
        await db.create("users", {"id": "INTEGER PRIMARY KEY", "name": "TEXT"})

    await db.insert("users", {"name": "Ada"})
    rows = await db.select(
        "users",
        filters={"id": (">", 10)},
        order_by=[("name", "DESC")],
        limit=5,
    )
"""

from __future__ import annotations

import logging
import re
import sqlite3
import time
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Literal

import anyio

from cyro.data._sqlite import AsyncConnection, connect
from cyro.data.errors import ConnectionError, IdentifierError, QueryError

logger = logging.getLogger("cyro.data")

_IDENTIFIER = re.compile(r"[A-Za-z0-9_]+")
# Column type declarations: words, sizes, and constraint keywords only
_COLUMN_TYPE = re.compile(r"[A-Za-z0-9_ (),.]+")

OPERATORS = frozenset({"=", "!=", ">", "<", ">=", "<=", "LIKE"})


def validate_identifier(name: object) -> str:
    """Return *name* if it is a safe table or column name.

    Raises:
        IdentifierError: If *name* is not a non-empty ``[A-Za-z0-9_]+`` string.
    """
    if not isinstance(name, str) or not _IDENTIFIER.fullmatch(name):
        msg = f"Invalid identifier: {name!r}"
        raise IdentifierError(msg)
    return name


def build_where(filters: Mapping[str, Any] | None) -> tuple[str, list[Any]]:
    """Build a ``WHERE`` clause and its parameters.

    A plain value means equality. A ``(operator, value)`` tuple picks
    one of ``= != > < >= <= LIKE``. Conditions are joined with ``AND``.
    """
    if not filters:
        return "", []
    conditions: list[str] = []
    params: list[Any] = []
    for column, value in filters.items():
        validate_identifier(column)
        if isinstance(value, tuple):
            if len(value) != 2:
                msg = f"Filter for {column!r} must be (operator, value)"
                raise QueryError(msg)
            operator, operand = value
            operator = str(operator).upper()
            if operator not in OPERATORS:
                msg = f"Unsupported operator {operator!r} for filter {column!r}"
                raise QueryError(msg)
        else:
            operator, operand = "=", value
        conditions.append(f"{column} {operator} ?")
        params.append(operand)
    return " WHERE " + " AND ".join(conditions), params


def build_order(order_by: Sequence[str | tuple[str, str]]) -> str:
    """Build an ``ORDER BY`` clause from column names or ``(column, direction)`` pairs."""
    if not order_by:
        return ""
    parts: list[str] = []
    for item in order_by:
        if isinstance(item, str):
            column, direction = item, "ASC"
        else:
            column, direction = item
        validate_identifier(column)
        direction = "DESC" if str(direction).upper() == "DESC" else "ASC"
        parts.append(f"{column} {direction}")
    return " ORDER BY " + ", ".join(parts)


def _require_data(data: Mapping[str, Any]) -> list[str]:
    if not isinstance(data, Mapping) or not data:
        msg = "Data must be a non-empty mapping of column -> value"
        raise QueryError(msg)
    return [validate_identifier(column) for column in data]


class Database:
    """A single SQLite database file, accessed asynchronously.

    Statements are serialized through an ``anyio.Lock``: one connection,
    one statement at a time, each run on a worker thread.

    Rows come back as plain ``dict`` objects keyed by column name.
    """

    __slots__ = ("_conn", "_lock", "echo", "path")

    def __init__(self, path: str = ":memory:", *, echo: bool = False) -> None:
        self.path = path
        self.echo = echo
        self._conn: AsyncConnection | None = None
        self._lock: anyio.Lock | None = None

    def __repr__(self) -> str:
        state = "connected" if self._conn is not None else "closed"
        return f"<Database {self.path!r} {state}>"

    @property
    def connected(self) -> bool:
        return self._conn is not None

    # -- Connection management --

    async def connect(self) -> None:
        """Open the database, creating parent directories for a file path."""
        if self._conn is not None:
            return
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = await connect(self.path)
        except sqlite3.Error as exc:
            msg = f"Cannot open database {self.path!r}: {exc}"
            raise ConnectionError(msg) from exc
        logger.debug("Connected to %s", self.path)

    async def close(self) -> None:
        """Close the connection.

        Raises:
            ConnectionError: If there is no open connection.
        """
        if self._conn is None:
            msg = "No active database connection to close."
            raise ConnectionError(msg)
        conn, self._conn = self._conn, None
        await conn.close()
        logger.debug("Closed %s", self.path)

    async def __aenter__(self) -> Database:
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._conn is not None:
            await self.close()

    async def _execute(
        self, sql: str, params: Sequence[Any] = (), *, fetch: Literal["all", "one"] | None = None
    ) -> Any:
        """Run *sql* under the connection lock.

        With *fetch*, rows are read before the lock is released and
        returned instead of the cursor.
        """
        if self._conn is None:
            msg = "No active database connection."
            raise ConnectionError(msg)
        if self._lock is None:
            # Created lazily: an anyio.Lock needs a running event loop
            self._lock = anyio.Lock()
        start = time.perf_counter()
        async with self._lock:
            try:
                cursor = await self._conn.execute(sql, params)
                if fetch == "all":
                    result = await cursor.fetchall()
                elif fetch == "one":
                    result = await cursor.fetchone()
                else:
                    result = cursor
            except sqlite3.Error as exc:
                raise QueryError(f"{exc} [{sql}]") from exc
        if self.echo:
            elapsed = (time.perf_counter() - start) * 1000
            logger.info("%s  params=%r  (%.1fms)", sql, list(params), elapsed)
        return result

    async def _fetchall(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        return [dict(row) for row in await self._execute(sql, params, fetch="all")]

    # -- Tables --

    async def exists(self, table: str) -> bool:
        """Whether *table* exists."""
        validate_identifier(table)
        row = await self._execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?", (table,), fetch="one"
        )
        return row is not None

    async def create(self, table: str, schema: Mapping[str, str]) -> None:
        """Create *table* with ``{column: type declaration}``.

        Raises:
            QueryError: If the table exists or the schema is empty or unsafe.
        """
        validate_identifier(table)
        if not isinstance(schema, Mapping) or not schema:
            msg = "Schema must define at least one column."
            raise QueryError(msg)
        columns: list[str] = []
        for column, declaration in schema.items():
            validate_identifier(column)
            if not isinstance(declaration, str) or not _COLUMN_TYPE.fullmatch(declaration):
                msg = f"Invalid type declaration for {column!r}: {declaration!r}"
                raise QueryError(msg)
            columns.append(f"{column} {declaration}")
        if await self.exists(table):
            msg = f"Table {table!r} already exists."
            raise QueryError(msg)
        await self._execute(f"CREATE TABLE {table} ({', '.join(columns)})")
        logger.debug("Created table %s", table)

    async def drop(self, table: str) -> None:
        """Drop *table*.

        Raises:
            QueryError: If the table does not exist.
        """
        validate_identifier(table)
        if not await self.exists(table):
            msg = f"Table {table!r} does not exist."
            raise QueryError(msg)
        await self._execute(f"DROP TABLE {table}")
        logger.debug("Dropped table %s", table)

    # -- Rows --

    async def insert(self, table: str, data: Mapping[str, Any]) -> int | None:
        """Insert one row. Returns its rowid."""
        validate_identifier(table)
        columns = _require_data(data)
        placeholders = ", ".join("?" for _ in columns)
        cursor = await self._execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            list(data.values()),
        )
        return cursor.lastrowid

    async def update(
        self,
        table: str,
        data: Mapping[str, Any],
        filters: Mapping[str, Any] | None = None,
    ) -> int:
        """Update matching rows. Returns the number of rows changed.

        Without *filters* every row is updated.
        """
        validate_identifier(table)
        columns = _require_data(data)
        where, params = build_where(filters)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        cursor = await self._execute(
            f"UPDATE {table} SET {assignments}{where}",
            [*data.values(), *params],
        )
        return cursor.rowcount

    async def delete(self, table: str, filters: Mapping[str, Any] | None = None) -> int:
        """Delete matching rows. Returns the number of rows removed.

        Without *filters* every row is deleted.
        """
        validate_identifier(table)
        where, params = build_where(filters)
        cursor = await self._execute(f"DELETE FROM {table}{where}", params)
        return cursor.rowcount

    async def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Mapping[str, Any] | None = None,
        order_by: Sequence[str | tuple[str, str]] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Return matching rows as dicts."""
        validate_identifier(table)
        selected = ", ".join(validate_identifier(c) for c in columns) if columns else "*"
        where, params = build_where(filters)
        sql = f"SELECT {selected} FROM {table}{where}{build_order(order_by)}"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        return await self._fetchall(sql, params)

    async def get(self, table: str, filters: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        """Return the first matching row, or ``None``."""
        rows = await self.select(table, filters=filters, limit=1)
        return rows[0] if rows else None
