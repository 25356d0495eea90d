"""Exceptions raised by dbnav."""

from __future__ import annotations


class DbnavError(Exception):
    """Base class for all dbnav errors."""


class ConfigError(DbnavError):
    """Configuration is missing or malformed."""


class NoJoinPath(DbnavError):
    """No chain of foreign keys connects two tables."""

    def __init__(self, from_table: str, to_table: str):
        self.from_table = from_table
        self.to_table = to_table
        super().__init__(f"No join path found from '{from_table}' to '{to_table}'")


class UnknownIdentifier(DbnavError):
    """A table or column name is not present in the schema snapshot."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Unknown {kind}: '{name}'")


class InvalidCondition(DbnavError):
    """A filter condition is not of the form ``table.column``."""


class UnsupportedForeignKey(DbnavError):
    """A foreign key spans more than one column."""

    def __init__(self, constraint_name: str, table: str, columns: int):
        self.constraint_name = constraint_name
        self.table = table
        self.columns = columns
        super().__init__(
            f"Composite foreign key {constraint_name} on {table} "
            f"({columns} columns) is not supported"
        )
