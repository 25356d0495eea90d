"""
dbnav - Navigate a relational database through its foreign keys

Loads a schema snapshot (tables, columns, foreign keys) once per session and
answers lookups across tables that are only related through a chain of
foreign keys.

Features:
- Shortest join path search over foreign keys in either direction
- Deterministic single-statement SQL generation
- Bound filter values with identifiers checked against the schema
- Interactive shell with history
"""

__version__ = "0.1.0"

from dbnav.exceptions import (
    ConfigError,
    DbnavError,
    InvalidCondition,
    NoJoinPath,
    UnknownIdentifier,
    UnsupportedForeignKey,
)
from dbnav.models import ForeignKey, Schema, Table
from dbnav.query import GeneratedQuery, find_join_path, generate_query, generate_sql
from dbnav.session import Session

__all__ = [
    # Core models
    "ForeignKey",
    "Table",
    "Schema",
    # Query
    "GeneratedQuery",
    "find_join_path",
    "generate_query",
    "generate_sql",
    # Session
    "Session",
    # Errors
    "DbnavError",
    "ConfigError",
    "NoJoinPath",
    "UnknownIdentifier",
    "InvalidCondition",
    "UnsupportedForeignKey",
]
