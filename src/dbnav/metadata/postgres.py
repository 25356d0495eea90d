"""
PostgreSQL metadata extractor using psycopg2.

Extracts table names and column names from ``information_schema`` views
and foreign-key constraints from ``pg_catalog.pg_constraint``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from dbnav.exceptions import UnsupportedForeignKey
from dbnav.models import ForeignKey, Schema

logger = logging.getLogger(__name__)


TABLES_SQL = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = %s
    ORDER BY table_name
"""

COLUMNS_SQL = """
    SELECT table_name, column_name
    FROM information_schema.columns
    WHERE table_schema = %s
    ORDER BY table_name, ordinal_position
"""

TABLE_COLUMNS_SQL = """
    SELECT column_name
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""

# Constraint names are only unique per table: rows are scoped by conrelid
# and columns are paired by key position.
FOREIGN_KEYS_SQL = """
    SELECT
        c.conname AS constraint_name,
        src.relname AS from_table,
        src_col.attname AS from_column,
        dst.relname AS to_table,
        dst_col.attname AS to_column
    FROM pg_catalog.pg_constraint AS c
    JOIN pg_catalog.pg_class AS src
        ON src.oid = c.conrelid
    JOIN pg_catalog.pg_namespace AS ns
        ON ns.oid = src.relnamespace
    JOIN pg_catalog.pg_class AS dst
        ON dst.oid = c.confrelid
    CROSS JOIN LATERAL unnest(c.conkey, c.confkey)
        WITH ORDINALITY AS k(src_attnum, dst_attnum, position)
    JOIN pg_catalog.pg_attribute AS src_col
        ON src_col.attrelid = c.conrelid
        AND src_col.attnum = k.src_attnum
    JOIN pg_catalog.pg_attribute AS dst_col
        ON dst_col.attrelid = c.confrelid
        AND dst_col.attnum = k.dst_attnum
    WHERE c.contype = 'f'
        AND ns.nspname = %s
        {table_filter}
    ORDER BY src.relname, c.conname, k.position
"""

FkRow = Tuple[str, str, str, str, str]


def group_foreign_keys(rows: Iterable[FkRow]) -> List[ForeignKey]:
    """
    Turn ``(constraint, from_table, from_column, to_table, to_column)`` rows
    into single-column foreign keys.

    Composite constraints are logged and skipped.
    """
    constraints: Dict[Tuple[str, str], List[FkRow]] = {}
    for row in rows:
        constraints.setdefault((row[1], row[0]), []).append(row)

    foreign_keys = []
    for (table, name), members in constraints.items():
        try:
            foreign_keys.append(_single_column_fk(name, table, members))
        except UnsupportedForeignKey as e:
            logger.warning(f"Skipping foreign key: {e}")
    return foreign_keys


def _single_column_fk(name: str, table: str, members: List[FkRow]) -> ForeignKey:
    from_columns = {m[2] for m in members}
    to_columns = {(m[3], m[4]) for m in members}
    if len(from_columns) > 1 or len(to_columns) > 1:
        raise UnsupportedForeignKey(name, table, max(len(from_columns), len(to_columns)))

    _, from_table, from_column, to_table, to_column = members[0]
    return ForeignKey(
        from_table=from_table,
        from_column=from_column,
        to_table=to_table,
        to_column=to_column,
    )


class PostgresMetadataExtractor:
    """
    Extracts metadata from a PostgreSQL catalog.

    Uses catalog views:
    - information_schema.TABLES
    - information_schema.COLUMNS
    - pg_catalog.PG_CONSTRAINT (foreign keys)
    """

    def __init__(
        self,
        database_url: str,
        schema: str = "public",
        statement_timeout_ms: Optional[int] = None,
    ):
        """
        Initialize extractor with a PostgreSQL connection URL.

        Args:
            database_url: libpq connection string or postgres:// URL
            schema: Schema whose tables are explored
            statement_timeout_ms: Optional per-statement timeout
        """
        self.database_url = database_url
        self.schema = schema
        self.statement_timeout_ms = statement_timeout_ms
        self._conn = None

    def connect(self) -> None:
        """Establish database connection."""
        import psycopg2

        options = None
        if self.statement_timeout_ms:
            options = f"-c statement_timeout={int(self.statement_timeout_ms)}"

        self._conn = psycopg2.connect(self.database_url, options=options)
        self._conn.autocommit = True
        logger.info(f"Connected to PostgreSQL (schema: {self.schema})")

    def disconnect(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    @property
    def connection(self):
        """Return the open connection, connecting on first use."""
        if not self._conn:
            self.connect()
        return self._conn

    def _fetch(self, sql: str, params: Tuple[Any, ...]) -> List[Tuple[Any, ...]]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, params)
            return list(cursor.fetchall())
        finally:
            cursor.close()

    def fetch_tables(self) -> List[str]:
        """Get all table names in the schema, ordered by name."""
        return [row[0] for row in self._fetch(TABLES_SQL, (self.schema,))]

    def fetch_columns(self, table_name: str) -> List[str]:
        """Get column names for one table in ordinal order."""
        rows = self._fetch(TABLE_COLUMNS_SQL, (self.schema, table_name))
        return [row[0] for row in rows]

    def fetch_all_columns(self) -> Dict[str, List[str]]:
        """Get column names for every table: {table_name: [column, ...]}."""
        columns: Dict[str, List[str]] = {}
        for table_name, column_name in self._fetch(COLUMNS_SQL, (self.schema,)):
            columns.setdefault(table_name, []).append(column_name)
        return columns

    def fetch_foreign_keys(self, table_name: str) -> List[ForeignKey]:
        """Get single-column foreign keys declared on one table."""
        sql = FOREIGN_KEYS_SQL.format(table_filter="AND src.relname = %s")
        return group_foreign_keys(self._fetch(sql, (self.schema, table_name)))

    def fetch_all_foreign_keys(self) -> Dict[str, List[ForeignKey]]:
        """Get foreign keys for every table: {from_table: [ForeignKey, ...]}."""
        sql = FOREIGN_KEYS_SQL.format(table_filter="")
        foreign_keys: Dict[str, List[ForeignKey]] = {}
        for fk in group_foreign_keys(self._fetch(sql, (self.schema,))):
            foreign_keys.setdefault(fk.from_table, []).append(fk)
        return foreign_keys

    def load_schema(self) -> Schema:
        """Load a complete schema snapshot."""
        tables = self.fetch_tables()
        columns = self.fetch_all_columns()
        foreign_keys = self.fetch_all_foreign_keys()

        schema = Schema.build(tables, columns, foreign_keys)
        logger.info(
            f"Loaded {len(schema.tables)} tables with "
            f"{sum(len(fks) for fks in foreign_keys.values())} foreign keys"
        )
        return schema

    def execute(self, sql: str, params: Tuple[Any, ...] = ()) -> List[Tuple[Any, ...]]:
        """Execute a query and return all rows."""
        logger.debug(f"Executing: {sql} {params}")
        return self._fetch(sql, params)
