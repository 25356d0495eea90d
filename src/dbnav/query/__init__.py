"""
Join path resolution and SQL generation over a schema snapshot.
"""

from dbnav.query.path_resolver import find_join_path, is_reachable
from dbnav.query.sql_generator import (
    GeneratedQuery,
    generate_query,
    generate_sql,
    render_joins,
    validate_identifiers,
)

__all__ = [
    "find_join_path",
    "is_reachable",
    "GeneratedQuery",
    "generate_query",
    "generate_sql",
    "render_joins",
    "validate_identifiers",
]
