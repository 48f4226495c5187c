"""Node store — persistence for USER and GROUP entities.

The store is bound to a caller-owned ``Connection`` so its writes take part
in the surrounding transaction. Nodes are created once and never updated or
deleted.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select

from orgtree.domain.ids import generate_node_id
from orgtree.domain.types import Node, NodeKind
from orgtree.infrastructure.database.schema import nodes

if TYPE_CHECKING:
    from sqlalchemy import Connection


def _row_to_node(row: Any) -> Node:
    return Node(
        id=str(row.id),
        kind=NodeKind(row.kind),
        name=str(row.name),
        email=row.email,
        created_at=str(row.created_at),
        updated_at=str(row.updated_at),
    )


class NodeStore:
    """Reads and writes rows of the ``nodes`` table."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def create(self, kind: NodeKind, name: str, email: str | None = None) -> Node:
        """Insert a node with a fresh id and both timestamps stamped now.

        Raises:
            sqlalchemy.exc.IntegrityError: If *email* is already taken.
        """
        stamp = datetime.now(UTC).isoformat()
        node = Node(
            id=generate_node_id(),
            kind=kind,
            name=name,
            email=email,
            created_at=stamp,
            updated_at=stamp,
        )
        self._conn.execute(
            insert(nodes).values(
                id=node.id,
                kind=str(node.kind),
                name=node.name,
                email=node.email,
                created_at=node.created_at,
                updated_at=node.updated_at,
            )
        )
        return node

    def find_by_id(self, node_id: str) -> Node | None:
        row = self._conn.execute(select(nodes).where(nodes.c.id == node_id)).first()
        return _row_to_node(row) if row is not None else None

    def find_by_kind_and_id(self, node_id: str, kind: NodeKind) -> Node | None:
        """Fetch *node_id* only if it has the given *kind*."""
        row = self._conn.execute(
            select(nodes).where(nodes.c.id == node_id, nodes.c.kind == str(kind))
        ).first()
        return _row_to_node(row) if row is not None else None

    def find_by_email(self, email: str) -> Node | None:
        row = self._conn.execute(select(nodes).where(nodes.c.email == email)).first()
        return _row_to_node(row) if row is not None else None

