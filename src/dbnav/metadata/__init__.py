"""
Metadata introspection module for PostgreSQL databases.

Provides table names, column names, and foreign-key edges read from the
database catalog.
"""

from dbnav.metadata.postgres import PostgresMetadataExtractor, group_foreign_keys

__all__ = [
    "PostgresMetadataExtractor",
    "group_foreign_keys",
]
