"""
Join path resolution over the schema's foreign-key graph.

Foreign keys are treated as undirected edges: a table can be reached from
the table it references and vice versa.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Optional, Tuple

from dbnav.exceptions import NoJoinPath
from dbnav.models import ForeignKey, Schema

logger = logging.getLogger(__name__)


def find_join_path(schema: Schema, from_table: str, to_table: str) -> List[ForeignKey]:
    """
    Find the shortest chain of foreign keys connecting two tables.

    Breadth-first search from ``from_table``. Ties between equally short
    paths go to whichever edge is discovered first: the current table's own
    foreign keys, then foreign keys on other tables that reference it.

    Args:
        schema: Schema snapshot to search
        from_table: Starting table
        to_table: Destination table

    Returns:
        Ordered edges from ``from_table`` to ``to_table``; empty when they
        are the same table

    Raises:
        NoJoinPath: if either table is unknown or no path exists
    """
    if schema.get_table(from_table) is None or schema.get_table(to_table) is None:
        raise NoJoinPath(from_table, to_table)

    parents: Dict[str, Optional[Tuple[str, ForeignKey]]] = {from_table: None}
    queue = deque([from_table])

    while queue:
        current = queue.popleft()
        if current == to_table:
            path = _reconstruct(parents, to_table)
            logger.debug(f"Join path {from_table} -> {to_table}: {len(path)} hop(s)")
            return path

        for neighbor, fk in schema.neighbors(current):
            if neighbor in parents:
                continue
            parents[neighbor] = (current, fk)
            queue.append(neighbor)

    raise NoJoinPath(from_table, to_table)


def _reconstruct(
    parents: Dict[str, Optional[Tuple[str, ForeignKey]]],
    to_table: str,
) -> List[ForeignKey]:
    """Walk parent pointers back to the start and return edges in order."""
    path: List[ForeignKey] = []
    node = to_table
    while parents[node] is not None:
        previous, fk = parents[node]
        path.append(fk)
        node = previous
    path.reverse()
    return path


def is_reachable(schema: Schema, from_table: str, to_table: str) -> bool:
    """Check whether any join path connects two tables."""
    try:
        find_join_path(schema, from_table, to_table)
    except NoJoinPath:
        return False
    return True
