"""
Interactive session state.

A session loads the schema snapshot once and keeps it for its lifetime.
Schema changes made by other clients are not seen until a new session is
started.
"""

from __future__ import annotations

import logging
from typing import Any, List, Tuple

from dbnav.exceptions import InvalidCondition
from dbnav.models import ForeignKey, Schema, Table

logger = logging.getLogger(__name__)


def parse_condition(where: str) -> Tuple[str, str]:
    """
    Split a ``table.column`` filter into its parts.

    Raises:
        InvalidCondition: if the filter is not exactly ``table.column``
    """
    parts = where.split(".")
    if len(parts) != 2 or not all(p.strip() for p in parts):
        raise InvalidCondition(
            f"Invalid condition '{where}': expected the form table.column"
        )
    return parts[0].strip(), parts[1].strip()


def format_value(value: Any) -> str:
    """Render a result value as text."""
    if value is None:
        return "NULL"
    return str(value)


class Session:
    """
    Holds the database extractor and the schema snapshot.

    The extractor must provide ``fetch_tables``, ``load_schema``,
    ``execute`` and ``disconnect``.
    """

    def __init__(self, extractor, schema: Schema):
        self.extractor = extractor
        self.schema = schema

    @classmethod
    def start(cls, extractor) -> Session:
        """Load the schema snapshot and open a session."""
        schema = extractor.load_schema()
        logger.info(f"Session initialized with {len(schema.tables)} tables")
        return cls(extractor, schema)

    def close(self) -> None:
        """Close the underlying connection."""
        self.extractor.disconnect()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def list_tables(self) -> List[str]:
        """Fetch current table names from the database."""
        return self.extractor.fetch_tables()

    def describe(self) -> List[Table]:
        """Return snapshot tables sorted by name."""
        return [self.schema.tables[name] for name in sorted(self.schema.tables)]

    def join_path(self, from_table: str, to_table: str) -> List[ForeignKey]:
        """Shortest join path between two tables."""
        return self.schema.find_join_path(from_table, to_table)

    def build_query(self, table: str, column: str, where: str, value: Any):
        """Build the parameterized lookup for ``query``."""
        condition_table, condition_column = parse_condition(where)
        return self.schema.generate_query(
            table, column, condition_table, condition_column, value,
        )

    def build_literal_sql(self, table: str, column: str, where: str, value: str) -> str:
        """Build the lookup with the value inlined, for display only."""
        condition_table, condition_column = parse_condition(where)
        return self.schema.generate_sql(
            table, column, condition_table, condition_column, value,
        )

    def query(self, table: str, column: str, where: str, value: Any) -> List[str]:
        """
        Look up ``table.column`` for rows reachable from a filter.

        Args:
            table: Table holding the requested column
            column: Column to return
            where: Filter column as ``table.column``
            value: Value the filter column must equal

        Returns:
            One text value per result row
        """
        generated = self.build_query(table, column, where, value)
        rows = self.extractor.execute(generated.sql, generated.params)
        logger.debug(f"Query returned {len(rows)} rows")
        return [format_value(row[0]) for row in rows]
