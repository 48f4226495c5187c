"""Closure store — the ``(ancestor_id, descendant_id, depth)`` rows.

Append-only: rows are inserted, never updated or deleted. The composite
primary key makes a duplicate ``(ancestor_id, descendant_id)`` pair fail
with ``IntegrityError`` even when two writers race past the same
existence check.

Besides the raw edge lookups used by the hierarchy service, the store
carries the joined read projections the query service returns: closure
rows at ``depth >= 1`` joined to ``nodes``, nearest relation first.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select

from orgtree.domain.types import ClosureEdge, NodeKind
from orgtree.infrastructure.database.schema import closure, nodes

if TYPE_CHECKING:
    from sqlalchemy import Connection


def _row_to_edge(row: Any) -> ClosureEdge:
    return ClosureEdge(
        ancestor_id=str(row.ancestor_id),
        descendant_id=str(row.descendant_id),
        depth=int(row.depth),
    )


class ClosureStore:
    """Reads and writes rows of the ``closure`` table."""

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert_edge(self, ancestor_id: str, descendant_id: str, depth: int) -> ClosureEdge:
        edge = ClosureEdge(ancestor_id=ancestor_id, descendant_id=descendant_id, depth=depth)
        self.insert_edges([edge])
        return edge

    def insert_edges(self, edges: Iterable[ClosureEdge]) -> int:
        """Insert *edges* as one batched statement. Returns the row count.

        The caller owns the transaction: a failure part-way leaves nothing
        behind once the caller's block rolls back.
        """
        stamp = datetime.now(UTC).isoformat()
        rows = [
            {
                "ancestor_id": e.ancestor_id,
                "descendant_id": e.descendant_id,
                "depth": e.depth,
                "created_at": stamp,
            }
            for e in edges
        ]
        if not rows:
            return 0
        self._conn.execute(insert(closure), rows)
        return len(rows)

    # ------------------------------------------------------------------
    # Edge lookups
    # ------------------------------------------------------------------

    def find_edge(self, ancestor_id: str, descendant_id: str) -> ClosureEdge | None:
        row = self._conn.execute(
            select(closure.c.ancestor_id, closure.c.descendant_id, closure.c.depth).where(
                closure.c.ancestor_id == ancestor_id,
                closure.c.descendant_id == descendant_id,
            )
        ).first()
        return _row_to_edge(row) if row is not None else None

    def find_ancestor_edges_of(self, node_id: str) -> list[ClosureEdge]:
        """Rows whose descendant is *node_id*, its reflexive row included."""
        rows = self._conn.execute(
            select(closure.c.ancestor_id, closure.c.descendant_id, closure.c.depth)
            .where(closure.c.descendant_id == node_id)
            .order_by(closure.c.depth, closure.c.ancestor_id)
        ).fetchall()
        return [_row_to_edge(r) for r in rows]

    def find_descendant_edges_of(self, node_id: str) -> list[ClosureEdge]:
        """Rows whose ancestor is *node_id*, its reflexive row included."""
        rows = self._conn.execute(
            select(closure.c.ancestor_id, closure.c.descendant_id, closure.c.depth)
            .where(closure.c.ancestor_id == node_id)
            .order_by(closure.c.depth, closure.c.descendant_id)
        ).fetchall()
        return [_row_to_edge(r) for r in rows]

    def all_edges(self) -> list[ClosureEdge]:
        rows = self._conn.execute(
            select(closure.c.ancestor_id, closure.c.descendant_id, closure.c.depth)
        ).fetchall()
        return [_row_to_edge(r) for r in rows]

    # ------------------------------------------------------------------
    # Joined read projections
    # ------------------------------------------------------------------

    def ancestors_of(self, node_id: str) -> list[dict[str, Any]]:
        """``{id, name, kind, depth}`` for every proper ancestor, nearest first."""
        stmt = (
            select(nodes.c.id, nodes.c.name, nodes.c.kind, closure.c.depth)
            .select_from(closure.join(nodes, nodes.c.id == closure.c.ancestor_id))
            .where(closure.c.descendant_id == node_id, closure.c.depth >= 1)
            .order_by(closure.c.depth, nodes.c.name, nodes.c.id)
        )
        return [dict(r) for r in self._conn.execute(stmt).mappings().all()]

    def descendants_of(self, node_id: str) -> list[dict[str, Any]]:
        """``{id, name, kind, depth}`` for every proper descendant, nearest first."""
        stmt = (
            select(nodes.c.id, nodes.c.name, nodes.c.kind, closure.c.depth)
            .select_from(closure.join(nodes, nodes.c.id == closure.c.descendant_id))
            .where(closure.c.ancestor_id == node_id, closure.c.depth >= 1)
            .order_by(closure.c.depth, nodes.c.name, nodes.c.id)
        )
        return [dict(r) for r in self._conn.execute(stmt).mappings().all()]

    def organizations_of(self, user_id: str) -> list[dict[str, Any]]:
        """``{id, name, depth}`` for every GROUP above *user_id*, nearest first."""
        stmt = (
            select(nodes.c.id, nodes.c.name, closure.c.depth)
            .select_from(closure.join(nodes, nodes.c.id == closure.c.ancestor_id))
            .where(
                closure.c.descendant_id == user_id,
                closure.c.depth >= 1,
                nodes.c.kind == str(NodeKind.GROUP),
            )
            .order_by(closure.c.depth, nodes.c.name, nodes.c.id)
        )
        return [dict(r) for r in self._conn.execute(stmt).mappings().all()]
