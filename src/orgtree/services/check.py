"""CheckService — closure-table integrity report.

Read-only, following the linter pattern: every rule yields issue dicts
with ``severity``, ``category``, ``message``, and ``node_id``. The closure
table is append-only, so there is no repair mode — a broken table has to be
re-derived outside this tool.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from sqlalchemy import select

from orgtree.domain.types import ClosureEdge, NodeKind
from orgtree.infrastructure.database.schema import nodes
from orgtree.services.base import BaseService
from orgtree.services.result import ServiceResult
from orgtree.services.telemetry import observed, trace_span, traced

# ---------------------------------------------------------------------------
# Issue severity and category constants
# ---------------------------------------------------------------------------

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

CAT_REFLEXIVE = "reflexive_rows"
CAT_DEPTH = "depth_values"
CAT_STRUCTURE = "node_kinds"
CAT_TRANSITIVITY = "transitivity"
CAT_MEMBERSHIP = "membership"


def _issue(severity: str, category: str, message: str, node_id: str | None) -> dict[str, Any]:
    return {
        "severity": severity,
        "category": category,
        "message": message,
        "node_id": node_id,
    }


# ---------------------------------------------------------------------------
# Rules: pure functions over snapshots of both tables
# ---------------------------------------------------------------------------


def check_reflexive_rows(kinds: dict[str, str], edges: list[ClosureEdge]) -> list[dict[str, Any]]:
    """Every node carries exactly one ``(N, N, 0)`` row."""
    issues: list[dict[str, Any]] = []
    self_rows = {e.ancestor_id: e for e in edges if e.is_self}
    for node_id in kinds:
        row = self_rows.get(node_id)
        if row is None:
            issues.append(
                _issue(SEVERITY_ERROR, CAT_REFLEXIVE, "missing reflexive closure row", node_id)
            )
        elif row.depth != 0:
            issues.append(
                _issue(
                    SEVERITY_ERROR,
                    CAT_REFLEXIVE,
                    f"reflexive closure row has depth {row.depth}",
                    node_id,
                )
            )
    return issues


def check_depth_values(edges: list[ClosureEdge]) -> list[dict[str, Any]]:
    """Rows between distinct nodes are at least one hop deep."""
    return [
        _issue(
            SEVERITY_ERROR,
            CAT_DEPTH,
            f"row {e.ancestor_id} -> {e.descendant_id} has depth {e.depth}",
            e.descendant_id,
        )
        for e in edges
        if not e.is_self and e.depth < 1
    ]


def check_node_kinds(kinds: dict[str, str], edges: list[ClosureEdge]) -> list[dict[str, Any]]:
    """Users are leaves: a USER never appears as a proper ancestor."""
    offenders = sorted(
        {
            e.ancestor_id
            for e in edges
            if not e.is_self and kinds.get(e.ancestor_id) == str(NodeKind.USER)
        }
    )
    return [
        _issue(SEVERITY_ERROR, CAT_STRUCTURE, "USER node has descendants", node_id)
        for node_id in offenders
    ]


def check_transitivity(edges: list[ClosureEdge]) -> list[dict[str, Any]]:
    """Each row ``(A, D, k)`` with k >= 2 passes through a direct parent of D.

    Some P with ``(P, D, 1)`` must also have ``(A, P, k - 1)``. Rows written
    by the hierarchy service satisfy this because they were copied from the
    parent's ancestor rows at link time.
    """
    depth_of: dict[tuple[str, str], int] = {
        (e.ancestor_id, e.descendant_id): e.depth for e in edges
    }
    parents: dict[str, list[str]] = defaultdict(list)
    for e in edges:
        if e.depth == 1 and not e.is_self:
            parents[e.descendant_id].append(e.ancestor_id)

    issues: list[dict[str, Any]] = []
    for e in edges:
        if e.is_self or e.depth < 2:
            continue
        via_parent = (
            depth_of.get((e.ancestor_id, p)) == e.depth - 1 for p in parents[e.descendant_id]
        )
        if not any(via_parent):
            issues.append(
                _issue(
                    SEVERITY_ERROR,
                    CAT_TRANSITIVITY,
                    f"row {e.ancestor_id} -> {e.descendant_id} at depth {e.depth} "
                    "has no intermediate parent",
                    e.descendant_id,
                )
            )
    return issues


def check_membership(kinds: dict[str, str], edges: list[ClosureEdge]) -> list[dict[str, Any]]:
    """Users that belong to no group are reported as warnings."""
    linked = {e.descendant_id for e in edges if not e.is_self}
    return [
        _issue(SEVERITY_WARNING, CAT_MEMBERSHIP, "user belongs to no group", node_id)
        for node_id, kind in kinds.items()
        if kind == str(NodeKind.USER) and node_id not in linked
    ]


# ---------------------------------------------------------------------------
# CheckService
# ---------------------------------------------------------------------------


class CheckService(BaseService):
    """Reports closure-table integrity issues without modifying anything."""

    @traced
    @observed
    def check(self, *, min_severity: str = SEVERITY_WARNING) -> ServiceResult:
        """Run every rule against a snapshot of both tables."""
        with self._directory.reader() as reader:
            rows = reader.conn.execute(select(nodes.c.id, nodes.c.kind))
            kinds = {str(r.id): str(r.kind) for r in rows}
            edges = reader.closure.all_edges()

        issues: list[dict[str, Any]] = []
        with trace_span("reflexive_rows"):
            issues.extend(check_reflexive_rows(kinds, edges))
        with trace_span("depth_values"):
            issues.extend(check_depth_values(edges))
        with trace_span("node_kinds"):
            issues.extend(check_node_kinds(kinds, edges))
        with trace_span("transitivity"):
            issues.extend(check_transitivity(edges))
        with trace_span("membership"):
            issues.extend(check_membership(kinds, edges))

        if min_severity == SEVERITY_ERROR:
            issues = [i for i in issues if i["severity"] == SEVERITY_ERROR]

        error_count = sum(1 for i in issues if i["severity"] == SEVERITY_ERROR)
        return ServiceResult(
            ok=True,
            op="check",
            data={
                "issues": issues,
                "count": len(issues),
                "error_count": error_count,
                "warning_count": len(issues) - error_count,
                "healthy": error_count == 0,
                "nodes": len(kinds),
                "edges": len(edges),
            },
        )
