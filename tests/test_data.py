"""Tests for cyro.data — validated async SQLite table access."""

import logging

import anyio
import pytest

from cyro.data import ConnectionError, Database, DataError, IdentifierError, QueryError
from cyro.data._sqlite import AsyncCursor
from cyro.data.database import build_order, build_where, validate_identifier
from cyro.errors import CyroError

USERS = {
    "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
    "name": "TEXT NOT NULL",
    "age": "INTEGER",
}


# -- Fixtures --


@pytest.fixture
async def db():
    """A fresh in-memory database with a users table."""
    db = Database()
    await db.connect()
    await db.create("users", USERS)
    yield db
    await db.close()


@pytest.fixture
async def seeded_db(db):
    """Database with three users."""
    await db.insert("users", {"name": "Alice", "age": 31})
    await db.insert("users", {"name": "Bob", "age": 25})
    await db.insert("users", {"name": "Carol", "age": 40})
    return db


# =============================================================================
# Statement building
# =============================================================================


class TestIdentifiers:
    def test_valid(self) -> None:
        assert validate_identifier("user_2") == "user_2"

    @pytest.mark.parametrize("name", ["", "users;", "a b", "users--", 'x"', 3, None])
    def test_invalid(self, name) -> None:
        with pytest.raises(IdentifierError):
            validate_identifier(name)


class TestBuildWhere:
    def test_empty(self) -> None:
        assert build_where(None) == ("", [])
        assert build_where({}) == ("", [])

    def test_equality_and_operators(self) -> None:
        where, params = build_where({"name": "Ada", "age": (">=", 30)})
        assert where == " WHERE name = ? AND age >= ?"
        assert params == ["Ada", 30]

    def test_operator_case_insensitive(self) -> None:
        where, params = build_where({"name": ("like", "A%")})
        assert where == " WHERE name LIKE ?"
        assert params == ["A%"]

    def test_unknown_operator(self) -> None:
        with pytest.raises(QueryError, match="Unsupported operator"):
            build_where({"age": ("; DROP", 1)})

    def test_bad_tuple(self) -> None:
        with pytest.raises(QueryError):
            build_where({"age": (">", 1, 2)})

    def test_bad_column(self) -> None:
        with pytest.raises(IdentifierError):
            build_where({"age)": 1})


class TestBuildOrder:
    def test_empty(self) -> None:
        assert build_order(()) == ""

    def test_columns_and_directions(self) -> None:
        assert build_order(["name", ("age", "desc")]) == " ORDER BY name ASC, age DESC"

    def test_unknown_direction_defaults_to_asc(self) -> None:
        assert build_order([("age", "sideways")]) == " ORDER BY age ASC"


# =============================================================================
# Connection lifecycle
# =============================================================================


class TestConnection:
    async def test_file_database_creates_parent(self, tmp_path) -> None:
        path = tmp_path / "nested" / "app.db"
        db = Database(str(path))
        await db.connect()
        assert db.connected
        assert path.parent.is_dir()
        await db.close()
        assert not db.connected

    async def test_context_manager(self) -> None:
        async with Database() as db:
            assert db.connected
        assert not db.connected

    async def test_double_connect_is_safe(self, db) -> None:
        await db.connect()
        assert db.connected

    async def test_close_without_connection_raises(self) -> None:
        with pytest.raises(ConnectionError):
            await Database().close()

    async def test_query_without_connection_raises(self) -> None:
        with pytest.raises(ConnectionError):
            await Database().exists("users")

    def test_repr(self) -> None:
        assert repr(Database()) == "<Database ':memory:' closed>"


# =============================================================================
# Tables
# =============================================================================


class TestTables:
    async def test_exists(self, db) -> None:
        assert await db.exists("users")
        assert not await db.exists("posts")

    async def test_create_existing_raises(self, db) -> None:
        with pytest.raises(QueryError, match="already exists"):
            await db.create("users", USERS)

    async def test_create_empty_schema_raises(self, db) -> None:
        with pytest.raises(QueryError):
            await db.create("posts", {})

    async def test_create_rejects_unsafe_declaration(self, db) -> None:
        with pytest.raises(QueryError, match="Invalid type declaration"):
            await db.create("posts", {"id": "INTEGER); DROP TABLE users; --"})
        assert await db.exists("users")

    async def test_drop(self, db) -> None:
        await db.drop("users")
        assert not await db.exists("users")

    async def test_drop_missing_raises(self, db) -> None:
        with pytest.raises(QueryError, match="does not exist"):
            await db.drop("posts")

    async def test_invalid_table_name(self, db) -> None:
        with pytest.raises(IdentifierError):
            await db.exists("users; DROP TABLE users")


# =============================================================================
# Rows
# =============================================================================


class TestRows:
    async def test_insert_returns_rowid(self, db) -> None:
        first = await db.insert("users", {"name": "Alice", "age": 31})
        second = await db.insert("users", {"name": "Bob", "age": 25})
        assert (first, second) == (1, 2)

    async def test_insert_empty_data_raises(self, db) -> None:
        with pytest.raises(QueryError):
            await db.insert("users", {})

    async def test_insert_constraint_violation(self, db) -> None:
        with pytest.raises(QueryError, match="NOT NULL"):
            await db.insert("users", {"age": 1})

    async def test_select_all(self, seeded_db) -> None:
        rows = await seeded_db.select("users")
        assert [row["name"] for row in rows] == ["Alice", "Bob", "Carol"]
        assert rows[0] == {"id": 1, "name": "Alice", "age": 31}

    async def test_select_columns_filters_order_limit(self, seeded_db) -> None:
        rows = await seeded_db.select(
            "users",
            columns=["name"],
            filters={"age": (">", 26)},
            order_by=[("age", "DESC")],
            limit=1,
        )
        assert rows == [{"name": "Carol"}]

    async def test_select_like(self, seeded_db) -> None:
        rows = await seeded_db.select("users", filters={"name": ("LIKE", "%o%")})
        assert {row["name"] for row in rows} == {"Bob", "Carol"}

    async def test_values_are_bound_not_interpolated(self, seeded_db) -> None:
        rows = await seeded_db.select("users", filters={"name": "x' OR '1'='1"})
        assert rows == []

    async def test_get(self, seeded_db) -> None:
        assert (await seeded_db.get("users", {"name": "Bob"}))["age"] == 25
        assert await seeded_db.get("users", {"name": "Zed"}) is None

    async def test_update(self, seeded_db) -> None:
        changed = await seeded_db.update("users", {"age": 26}, {"name": "Bob"})
        assert changed == 1
        assert (await seeded_db.get("users", {"name": "Bob"}))["age"] == 26

    async def test_update_without_filters_touches_all(self, seeded_db) -> None:
        assert await seeded_db.update("users", {"age": 0}) == 3

    async def test_delete(self, seeded_db) -> None:
        removed = await seeded_db.delete("users", {"age": ("<", 35)})
        assert removed == 2
        assert [row["name"] for row in await seeded_db.select("users")] == ["Carol"]

    async def test_missing_table_raises_query_error(self, db) -> None:
        with pytest.raises(QueryError, match="no such table"):
            await db.select("posts")


class TestLocking:
    async def test_rows_fetched_while_lock_held(self, seeded_db, monkeypatch) -> None:
        held: list[bool] = []
        fetchall, fetchone = AsyncCursor.fetchall, AsyncCursor.fetchone

        async def fetchall_locked(cursor):
            held.append(seeded_db._lock.locked())
            return await fetchall(cursor)

        async def fetchone_locked(cursor):
            held.append(seeded_db._lock.locked())
            return await fetchone(cursor)

        monkeypatch.setattr(AsyncCursor, "fetchall", fetchall_locked)
        monkeypatch.setattr(AsyncCursor, "fetchone", fetchone_locked)

        assert len(await seeded_db.select("users")) == 3
        assert await seeded_db.exists("users")
        assert held == [True, True]

    async def test_concurrent_reads_and_writes(self, seeded_db) -> None:
        results: dict[str, list[dict]] = {}

        async def read(name: str) -> None:
            results[name] = await seeded_db.select("users", columns=["name"], filters={"name": name})

        async with anyio.create_task_group() as tg:
            for i in range(10):
                tg.start_soon(seeded_db.insert, "users", {"name": f"user{i}", "age": i})
            for name in ("Alice", "Bob", "Carol"):
                tg.start_soon(read, name)

        assert results == {name: [{"name": name}] for name in ("Alice", "Bob", "Carol")}
        assert len(await seeded_db.select("users")) == 13


class TestEcho:
    async def test_echo_logs_statements(self, caplog) -> None:
        async with Database(echo=True) as db:
            with caplog.at_level(logging.INFO, logger="cyro.data"):
                await db.exists("users")
        assert any("sqlite_master" in record.getMessage() for record in caplog.records)

    async def test_no_echo_by_default(self, db, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="cyro.data"):
            await db.exists("users")
        assert not caplog.records


class TestErrors:
    def test_error_hierarchy(self) -> None:
        for exc in (ConnectionError, IdentifierError, QueryError):
            assert issubclass(exc, DataError)
        assert issubclass(DataError, CyroError)
