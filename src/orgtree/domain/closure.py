"""Closure-table derivation — how new rows follow from existing ones.

Pure functions, no infrastructure dependencies. The hierarchy service reads
a parent's ancestor rows from the closure store, derives the rows for the
node being linked, and writes them back in one batch.

Every ancestor of the parent becomes an ancestor of the new node one level
deeper. The parent's own reflexive row ``(P, P, 0)`` therefore yields
``(P, new, 1)``, the direct membership row.

Rows already written are never recomputed: a node inherits the ancestry its
parent had at link time, and later changes to that ancestry are not
propagated downwards.
"""

from __future__ import annotations

from collections.abc import Iterable

from orgtree.domain.types import ClosureEdge


def self_edge(node_id: str) -> ClosureEdge:
    """The reflexive ``(node, node, 0)`` row every linked node carries."""
    return ClosureEdge(ancestor_id=node_id, descendant_id=node_id, depth=0)


def inherit_ancestry(
    ancestor_edges: Iterable[ClosureEdge], descendant_id: str
) -> list[ClosureEdge]:
    """Shift a parent's ancestor rows one level down onto *descendant_id*.

    *ancestor_edges* are the rows whose ``descendant_id`` is the parent,
    including the parent's reflexive row. Returns one new row per input row,
    ordered by depth.
    """
    derived = [
        ClosureEdge(
            ancestor_id=edge.ancestor_id,
            descendant_id=descendant_id,
            depth=edge.depth + 1,
        )
        for edge in ancestor_edges
    ]
    derived.sort(key=lambda e: e.depth)
    return derived


def would_create_cycle(ancestor_edges: Iterable[ClosureEdge], node_id: str) -> bool:
    """True when *node_id* already appears among the ancestors described by *ancestor_edges*.

    Linking *node_id* below the owner of those rows would make it its own
    ancestor.
    """
    return any(edge.ancestor_id == node_id for edge in ancestor_edges)
