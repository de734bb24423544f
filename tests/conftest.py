# File: tests/conftest.py
# Fixtures shared by the unit tests (in-memory schema readers, fake DB-API
# connections) and by the opt-in PostgreSQL integration tests.

import pytest
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, Dict, Generator, List, Optional, Sequence

import psycopg2
from testcontainers.postgres import PostgresContainer

from entity_auto_generator.domain.models import ColumnDescriptor, ConstraintRole


# --- Constants ---
GENERATOR_PROJECT_ROOT = Path(__file__).parent.parent
TEST_SCHEMAS_DIR = GENERATOR_PROJECT_ROOT / "tests" / "schemas"


# --- Column helpers ---
def pk(name: str = "id", data_type: str = "integer", references: Optional[str] = None) -> ColumnDescriptor:
    return ColumnDescriptor(
        name=name, data_type=data_type, nullable=False,
        constraint_role=ConstraintRole.PRIMARY_KEY, is_unique=True,
        referenced_table=references, referenced_column="id" if references else None,
    )


def col(name: str, data_type: str = "text", nullable: bool = True, unique: bool = False,
        max_length: Optional[int] = None) -> ColumnDescriptor:
    return ColumnDescriptor(
        name=name, data_type=data_type, nullable=nullable, max_length=max_length, is_unique=unique,
    )


def fk(name: str, table: str, column: str = "id", unique: bool = False,
       data_type: str = "integer") -> ColumnDescriptor:
    return ColumnDescriptor(
        name=name, data_type=data_type, nullable=True,
        constraint_role=ConstraintRole.FOREIGN_KEY,
        referenced_table=table, referenced_column=column, is_unique=unique,
    )


class StubSchemaReader:
    """
    In-memory stand-in for SchemaReader.

    Children are derived from the foreign keys of the other tables, the same
    way the catalog query derives them.
    """

    def __init__(self, tables: Dict[str, List[ColumnDescriptor]], schema: str = "public"):
        self.tables = tables
        self.schema = schema
        self.calls: List[str] = []

    def list_tables(self) -> List[str]:
        self.calls.append("list_tables")
        return sorted(self.tables)

    def read_columns(self, table: str) -> List[ColumnDescriptor]:
        self.calls.append(f"read_columns:{table}")
        return list(self.tables.get(table, []))

    def find_children(self, table: str) -> Dict[str, bool]:
        self.calls.append(f"find_children:{table}")
        children: Dict[str, bool] = {}
        for child in sorted(self.tables):
            for column in self.tables[child]:
                if column.referenced_table == table and child not in children:
                    children[child] = column.is_unique
        return children


class FakeCursor:
    """DB-API cursor answering queries through a handler function."""

    def __init__(self, handler: Callable[[str, Sequence[Any]], List[tuple]], log: List[tuple]):
        self.handler = handler
        self.log = log
        self._rows: List[tuple] = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, sql: str, params: Sequence[Any] = ()):
        self.log.append((sql, tuple(params)))
        self._rows = list(self.handler(sql, params))

    def fetchall(self) -> List[tuple]:
        return self._rows


class FakeConnection:
    def __init__(self, handler: Callable[[str, Sequence[Any]], List[tuple]]):
        self.handler = handler
        self.executed: List[tuple] = []

    def cursor(self) -> FakeCursor:
        return FakeCursor(self.handler, self.executed)


# --- Fixtures for unit tests ---
@pytest.fixture
def make_reader() -> Callable[..., StubSchemaReader]:
    """Factory for in-memory schema readers."""
    return StubSchemaReader


@pytest.fixture
def make_connection() -> Callable[..., FakeConnection]:
    """Factory for fake connections driven by a ``handler(sql, params) -> rows``."""
    return FakeConnection


@pytest.fixture
def columns():
    """Column descriptor builders: ``columns.pk()``, ``columns.col()``, ``columns.fk()``."""
    return SimpleNamespace(pk=pk, col=col, fk=fk)


@pytest.fixture
def shop_reader(make_reader) -> StubSchemaReader:
    """
    ``user`` <- ``order`` (non-unique FK) and ``user`` <- ``profile`` (unique FK).
    """
    return make_reader({
        "user": [pk(), col("name"), col("email", unique=True)],
        "order": [pk(), fk("user_id", "user"), col("total", "numeric"), col("placed_at", "timestamp without time zone")],
        "profile": [pk(), fk("user_id", "user", unique=True), col("bio")],
    })


# --- Fixtures for integration tests (need Docker) ---
@pytest.fixture(scope="session")
def pg_service() -> Generator[Dict[str, Any], Any, None]:
    """
    Starts/stops a PostgreSQL container for the test session using testcontainers.
    Skips the requesting tests when Docker is not available.
    """
    try:
        pg_container = PostgresContainer(
            image="postgres:15-alpine",
            username="testuser",
            password="testpassword",
            dbname="testdb",
        )
        pg_container.start()
    except Exception as e:
        pytest.skip(f"PostgreSQL testcontainer unavailable: {e}")

    try:
        yield {
            "host": pg_container.get_container_host_ip(),
            "port": int(pg_container.get_exposed_port(5432)),
            "user": pg_container.username,
            "password": pg_container.password,
            "db_name": pg_container.dbname,
        }
    finally:
        pg_container.stop()


@pytest.fixture(scope="session")
def db_connection(pg_service: Dict[str, Any]):
    """psycopg2 connection to the test database container, loaded with the test schema."""
    conn = psycopg2.connect(
        dbname=pg_service["db_name"],
        user=pg_service["user"],
        password=pg_service["password"],
        host=pg_service["host"],
        port=pg_service["port"],
        connect_timeout=5,
    )
    try:
        with conn.cursor() as cursor:
            cursor.execute((TEST_SCHEMAS_DIR / "shop.sql").read_text(encoding="utf-8"))
        conn.commit()
        yield conn
    finally:
        conn.close()
