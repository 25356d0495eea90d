"""
Core data models for the dbnav package.

Defines the schema snapshot used throughout the system: tables, their
columns, and the foreign keys that connect them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class ForeignKey:
    """A single-column foreign key declared on ``from_table``."""
    from_table: str
    from_column: str
    to_table: str
    to_column: str

    def other_end(self, table: str) -> str:
        """Return the endpoint of this edge that is not ``table``."""
        return self.to_table if table == self.from_table else self.from_table

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for serialization."""
        return {
            "from_table": self.from_table,
            "from_column": self.from_column,
            "to_table": self.to_table,
            "to_column": self.to_column,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ForeignKey:
        """Create from dictionary."""
        return cls(
            from_table=data["from_table"],
            from_column=data["from_column"],
            to_table=data["to_table"],
            to_column=data["to_column"],
        )

    def __str__(self) -> str:
        return f"{self.from_table}.{self.from_column} -> {self.to_table}.{self.to_column}"


@dataclass
class Table:
    """A table in the schema snapshot."""
    name: str
    columns: List[str] = field(default_factory=list)
    foreign_keys: List[ForeignKey] = field(default_factory=list)

    def has_column(self, name: str) -> bool:
        """Check whether the table has a column (case-sensitive)."""
        return name in self.columns

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "columns": list(self.columns),
            "foreign_keys": [fk.to_dict() for fk in self.foreign_keys],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Table:
        """Create from dictionary."""
        return cls(
            name=data["name"],
            columns=list(data.get("columns", [])),
            foreign_keys=[ForeignKey.from_dict(fk) for fk in data.get("foreign_keys", [])],
        )


# (neighbor table, edge used to reach it)
Adjacency = Dict[str, List[Tuple[str, ForeignKey]]]


@dataclass
class Schema:
    """
    Immutable snapshot of tables and their foreign-key edges.

    Built once per session. Foreign keys keep their declared direction for
    JOIN rendering but are indexed in both directions for path search: each
    table's neighbors list its own foreign keys first, then the foreign keys
    of other tables that point at it, in table order.
    """
    tables: Dict[str, Table] = field(default_factory=dict)
    _adjacency: Adjacency = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._adjacency = self._build_adjacency()

    @classmethod
    def build(
        cls,
        table_names: Iterable[str],
        columns_by_table: Mapping[str, Sequence[str]],
        fks_by_table: Mapping[str, Sequence[ForeignKey]],
    ) -> Schema:
        """
        Build a schema from independently fetched metadata collections.

        Tables missing from ``columns_by_table`` or ``fks_by_table`` get
        empty lists. No validation is performed.
        """
        tables: Dict[str, Table] = {}
        for name in table_names:
            tables[name] = Table(
                name=name,
                columns=list(columns_by_table.get(name, [])),
                foreign_keys=list(fks_by_table.get(name, [])),
            )
        return cls(tables=tables)

    def _build_adjacency(self) -> Adjacency:
        adjacency: Adjacency = {}
        for name, table in self.tables.items():
            neighbors = [(fk.to_table, fk) for fk in table.foreign_keys]
            for other in self.tables.values():
                for fk in other.foreign_keys:
                    if fk.to_table == name:
                        neighbors.append((fk.from_table, fk))
            adjacency[name] = neighbors
        return adjacency

    def get_table(self, name: str) -> Optional[Table]:
        """Get table by name (case-sensitive)."""
        return self.tables.get(name)

    def table_names(self) -> List[str]:
        """Return all table names in load order."""
        return list(self.tables.keys())

    def foreign_keys(self, name: str) -> List[ForeignKey]:
        """Return the foreign keys declared on a table."""
        table = self.tables.get(name)
        return list(table.foreign_keys) if table else []

    def neighbors(self, name: str) -> List[Tuple[str, ForeignKey]]:
        """Return ``(neighbor, edge)`` pairs in discovery order."""
        return list(self._adjacency.get(name, []))

    def find_join_path(self, from_table: str, to_table: str) -> List[ForeignKey]:
        """Shortest foreign-key path between two tables. See ``dbnav.query``."""
        from dbnav.query.path_resolver import find_join_path

        return find_join_path(self, from_table, to_table)

    def generate_sql(
        self,
        target_table: str,
        target_column: str,
        condition_table: str,
        condition_column: str,
        condition_value: str,
    ) -> str:
        """Render a lookup with the filter value inlined as a literal."""
        from dbnav.query.sql_generator import generate_sql

        return generate_sql(
            self, target_table, target_column,
            condition_table, condition_column, condition_value,
        )

    def generate_query(
        self,
        target_table: str,
        target_column: str,
        condition_table: str,
        condition_column: str,
        condition_value: Any,
    ):
        """Render a lookup with the filter value bound as a parameter."""
        from dbnav.query.sql_generator import generate_query

        return generate_query(
            self, target_table, target_column,
            condition_table, condition_column, condition_value,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"tables": [t.to_dict() for t in self.tables.values()]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Schema:
        """Create from dictionary."""
        tables = [Table.from_dict(t) for t in data.get("tables", [])]
        return cls(tables={t.name: t for t in tables})
