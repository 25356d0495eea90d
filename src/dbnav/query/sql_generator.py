"""
SQL generation for cross-table lookups.

Renders a single ``SELECT ... FROM ... JOIN ... WHERE ...`` statement that
walks a join path from the filtered table to the table holding the requested
column.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Tuple

from dbnav.exceptions import UnknownIdentifier
from dbnav.models import ForeignKey, Schema
from dbnav.query.path_resolver import find_join_path

logger = logging.getLogger(__name__)

PLACEHOLDER = "%s"


@dataclass(frozen=True)
class GeneratedQuery:
    """SQL text plus the parameters to bind when executing it."""
    sql: str
    params: Tuple[Any, ...]


def render_joins(path: List[ForeignKey], start_table: str) -> List[str]:
    """
    Render one JOIN clause per edge.

    Each clause joins whichever endpoint of the edge has not been reached
    yet, so edges walked against their declared direction render correctly.
    """
    clauses = []
    last_table = start_table
    for fk in path:
        next_table = fk.other_end(last_table)
        clauses.append(
            f"JOIN {next_table} ON {fk.from_table}.{fk.from_column} = "
            f"{fk.to_table}.{fk.to_column}"
        )
        last_table = next_table
    return clauses


def _render_select(
    schema: Schema,
    target_table: str,
    target_column: str,
    condition_table: str,
) -> str:
    path = find_join_path(schema, condition_table, target_table)
    parts = [f"SELECT {target_table}.{target_column} FROM {condition_table}"]
    parts.extend(render_joins(path, condition_table))
    return " ".join(parts)


def generate_sql(
    schema: Schema,
    target_table: str,
    target_column: str,
    condition_table: str,
    condition_column: str,
    condition_value: str,
) -> str:
    """
    Generate a lookup query with the filter value inlined.

    The value is quoted but not escaped: a value containing ``'`` changes
    the statement. Use :func:`generate_query` for anything that is executed.

    Raises:
        NoJoinPath: if the two tables are not connected
    """
    select = _render_select(schema, target_table, target_column, condition_table)
    return f"{select} WHERE {condition_table}.{condition_column} = '{condition_value}'"


def validate_identifiers(schema: Schema, *pairs: Tuple[str, str]) -> None:
    """
    Check that every ``(table, column)`` pair exists in the schema.

    Raises:
        UnknownIdentifier: on the first table or column not found
    """
    for table_name, column_name in pairs:
        table = schema.get_table(table_name)
        if table is None:
            raise UnknownIdentifier("table", table_name)
        if not table.has_column(column_name):
            raise UnknownIdentifier("column", f"{table_name}.{column_name}")


def generate_query(
    schema: Schema,
    target_table: str,
    target_column: str,
    condition_table: str,
    condition_column: str,
    condition_value: Any,
) -> GeneratedQuery:
    """
    Generate a lookup query with the filter value bound as a parameter.

    Only identifiers are interpolated, and only after they have been checked
    against the schema snapshot.

    Raises:
        UnknownIdentifier: if a table or column is not in the schema
        NoJoinPath: if the two tables are not connected
    """
    validate_identifiers(
        schema,
        (target_table, target_column),
        (condition_table, condition_column),
    )
    select = _render_select(schema, target_table, target_column, condition_table)
    sql = f"{select} WHERE {condition_table}.{condition_column} = {PLACEHOLDER}"
    logger.debug(f"Generated query: {sql}")
    return GeneratedQuery(sql=sql, params=(condition_value,))
