"""
Schema introspection for Entity Auto Generator.

``SchemaReader`` issues read-only queries against ``information_schema`` and
``pg_catalog`` over any DB-API connection whose cursors support the context
manager protocol (Django's connection wrapper, or a raw psycopg2 connection).
Query parameters use the ``%s`` placeholder style shared by both.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .constants import ColumnTypes, ConstraintTypes, DefaultConfig, TableTypes
from .domain.models import ColumnDescriptor, ConstraintRole
from .exceptions import MalformedConstraintError, SchemaAccessError

logger = logging.getLogger(__name__)


# Correlated sub-select: true when any unique index on the table covers the column.
_UNIQUE_INDEX_EXISTS = """
    EXISTS (
        SELECT 1
        FROM pg_catalog.pg_index i
        JOIN pg_catalog.pg_class t ON t.oid = i.indrelid
        JOIN pg_catalog.pg_namespace n ON n.oid = t.relnamespace
        JOIN pg_catalog.pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(i.indkey)
        WHERE i.indisunique
          AND n.nspname = {schema}
          AND t.relname = {table}
          AND a.attname = {column}
    )
"""

LIST_TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = %s AND table_type = %s
    ORDER BY table_name
"""

READ_COLUMNS_SQL = """
    SELECT
        c.column_name,
        c.data_type,
        c.udt_name,
        c.is_nullable,
        c.character_maximum_length,
        tc.constraint_type,
        ccu.table_name AS referenced_table,
        ccu.column_name AS referenced_column,
        {unique} AS is_unique
    FROM information_schema.columns c
    LEFT JOIN information_schema.key_column_usage kcu
        ON kcu.table_schema = c.table_schema
        AND kcu.table_name = c.table_name
        AND kcu.column_name = c.column_name
    LEFT JOIN information_schema.table_constraints tc
        ON tc.constraint_schema = kcu.constraint_schema
        AND tc.constraint_name = kcu.constraint_name
        AND tc.constraint_type IN (%s, %s)
    LEFT JOIN information_schema.constraint_column_usage ccu
        ON tc.constraint_type = %s
        AND ccu.constraint_schema = tc.constraint_schema
        AND ccu.constraint_name = tc.constraint_name
    WHERE c.table_schema = %s AND c.table_name = %s
    ORDER BY c.ordinal_position
""".format(unique=_UNIQUE_INDEX_EXISTS.format(
    schema="c.table_schema", table="c.table_name", column="c.column_name"))

FIND_CHILDREN_SQL = """
    SELECT
        kcu.table_name AS child_table,
        kcu.column_name,
        {unique} AS is_unique
    FROM information_schema.table_constraints tc
    JOIN information_schema.key_column_usage kcu
        ON kcu.constraint_schema = tc.constraint_schema
        AND kcu.constraint_name = tc.constraint_name
    JOIN information_schema.constraint_column_usage ccu
        ON ccu.constraint_schema = tc.constraint_schema
        AND ccu.constraint_name = tc.constraint_name
    WHERE tc.constraint_type = %s
      AND tc.table_schema = %s
      AND ccu.table_schema = %s
      AND ccu.table_name = %s
    ORDER BY kcu.table_name, kcu.ordinal_position
""".format(unique=_UNIQUE_INDEX_EXISTS.format(
    schema="kcu.table_schema", table="kcu.table_name", column="kcu.column_name"))


class SchemaReader:
    """
    Read-only view of one database schema.

    Holds nothing beyond the connection and schema name, so one reader can be
    shared across every table build of a run.
    """

    def __init__(self, connection: Any, schema: str = DefaultConfig.SCHEMA):
        self.connection = connection
        self.schema = schema

    def list_tables(self) -> List[str]:
        """Base tables of the schema, ordered by name. Views are skipped."""
        rows = self._fetch(LIST_TABLES_SQL, (self.schema, TableTypes.BASE_TABLE))
        tables = [row[0] for row in rows]
        logger.debug(f"Found {len(tables)} base tables in schema '{self.schema}'")
        return tables

    def read_columns(self, table: str) -> List[ColumnDescriptor]:
        """
        Describe every column of ``table`` in ordinal order.

        The constraint joins can repeat a column (one row per constraint it
        takes part in); those rows are folded into a single descriptor. A
        primary key that is also a foreign key keeps the primary-key role
        along with its target. Extension and array types are reported by
        their ``udt_name`` (``hstore``, ``_int4``).

        Raises:
            SchemaAccessError: If the query cannot be executed
            MalformedConstraintError: If a column references more than one target
        """
        rows = self._fetch(
            READ_COLUMNS_SQL,
            (
                ConstraintTypes.PRIMARY_KEY,
                ConstraintTypes.FOREIGN_KEY,
                ConstraintTypes.FOREIGN_KEY,
                self.schema,
                table,
            ),
            table=table,
        )

        grouped: Dict[str, List[Sequence[Any]]] = {}
        for row in rows:
            grouped.setdefault(row[0], []).append(row)

        columns = [self._fold_column(table, name, col_rows) for name, col_rows in grouped.items()]
        logger.debug(f"Read {len(columns)} columns for table '{table}'")
        return columns

    def find_children(self, table: str) -> Dict[str, bool]:
        """
        Tables holding a foreign key to ``table``, mapped to whether the
        referencing column is unique in the child. Ordered by child name.
        """
        rows = self._fetch(
            FIND_CHILDREN_SQL,
            (ConstraintTypes.FOREIGN_KEY, self.schema, self.schema, table),
            table=table,
        )

        children: Dict[str, bool] = {}
        for child_table, column_name, is_unique in rows:
            if child_table in children:
                logger.warning(
                    f"Table '{child_table}' references '{table}' more than once; "
                    f"ignoring column '{column_name}'"
                )
                continue
            children[child_table] = bool(is_unique)
        return children

    def _fetch(self, sql: str, params: Tuple[Any, ...], table: Optional[str] = None) -> List[Sequence[Any]]:
        try:
            with self.connection.cursor() as cursor:
                cursor.execute(sql, params)
                return list(cursor.fetchall())
        except Exception as exc:
            target = f"table '{table}'" if table else f"schema '{self.schema}'"
            raise SchemaAccessError(
                f"Introspection query failed for {target}: {exc}",
                table=table,
                query=" ".join(sql.split())[:200],
            ) from exc

    @staticmethod
    def _fold_column(table: str, name: str, rows: List[Sequence[Any]]) -> ColumnDescriptor:
        _, data_type, udt_name, is_nullable, max_length = rows[0][:5]
        constraint_types = {row[5] for row in rows if row[5]}
        is_unique = any(bool(row[8]) for row in rows)

        # extension and array types only name themselves through udt_name
        if data_type in (ColumnTypes.USER_DEFINED, ColumnTypes.ARRAY) and udt_name:
            data_type = udt_name

        targets = []
        for row in rows:
            target = (row[6], row[7])
            if row[5] == ConstraintTypes.FOREIGN_KEY and target not in targets:
                targets.append(target)
        if len(targets) > 1:
            raise MalformedConstraintError(
                f"Column '{table}.{name}' references more than one target: "
                + ", ".join(f"{t}.{c}" for t, c in targets),
                table=table,
                column=name,
            )
        referenced_table, referenced_column = targets[0] if targets else (None, None)

        if ConstraintTypes.PRIMARY_KEY in constraint_types:
            role = ConstraintRole.PRIMARY_KEY
        elif targets:
            role = ConstraintRole.FOREIGN_KEY
        else:
            role = ConstraintRole.NONE

        return ColumnDescriptor(
            name=name,
            data_type=data_type,
            nullable=is_nullable in (True, "YES"),
            max_length=max_length,
            constraint_role=role,
            referenced_table=referenced_table,
            referenced_column=referenced_column,
            is_unique=is_unique,
        )
