"""QueryService — read-side projections over the closure table.

Four read-only surfaces: get_node, get_ancestors, get_descendants,
get_user_organizations. Each is a single join of ``closure`` to ``nodes``;
no recursion, no caching — every call hits the store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from orgtree.domain.errors import BadRequest, HierarchyError, NotFound
from orgtree.domain.ids import normalize_node_id
from orgtree.domain.types import NodeKind
from orgtree.services.base import BaseService, error_result, invalid_id_result
from orgtree.services.result import ServiceResult
from orgtree.services.telemetry import observed, trace_span, traced

if TYPE_CHECKING:
    from orgtree.infrastructure.directory import DirectoryTransaction


def _items_result(op: str, node_id: str, items: list[dict[str, Any]]) -> ServiceResult:
    return ServiceResult(
        ok=True,
        op=op,
        data={"id": node_id, "items": items, "count": len(items)},
    )


class QueryService(BaseService):
    """Read-only queries: nodes, ancestors, descendants, and user organizations."""

    # ------------------------------------------------------------------
    # get_node
    # ------------------------------------------------------------------

    @traced
    @observed
    def get_node(self, node_id: str) -> ServiceResult:
        """Retrieve a single node by id."""
        op = "get_node"
        try:
            node_id = normalize_node_id(node_id)
        except ValueError:
            return invalid_id_result(op, "node_id", node_id)

        with self._directory.reader() as reader:
            node = reader.nodes.find_by_id(node_id)
        if node is None:
            return error_result(op, NotFound("node not found", node_id=node_id))
        return ServiceResult(ok=True, op=op, data=node.to_dict())

    # ------------------------------------------------------------------
    # get_ancestors / get_descendants
    # ------------------------------------------------------------------

    @traced
    @observed
    def get_ancestors(self, node_id: str) -> ServiceResult:
        """Proper ancestors of *node_id* as ``{id, name, kind, depth}``, nearest first."""
        op = "get_ancestors"
        try:
            node_id = normalize_node_id(node_id)
        except ValueError:
            return invalid_id_result(op, "node_id", node_id)

        try:
            with self._directory.reader() as reader:
                self._require_node(reader, node_id)
                with trace_span("select"):
                    items = reader.closure.ancestors_of(node_id)
        except HierarchyError as exc:
            return error_result(op, exc)
        return _items_result(op, node_id, items)

    @traced
    @observed
    def get_descendants(self, node_id: str) -> ServiceResult:
        """Proper descendants of *node_id* as ``{id, name, kind, depth}``, nearest first."""
        op = "get_descendants"
        try:
            node_id = normalize_node_id(node_id)
        except ValueError:
            return invalid_id_result(op, "node_id", node_id)

        try:
            with self._directory.reader() as reader:
                self._require_node(reader, node_id)
                with trace_span("select"):
                    items = reader.closure.descendants_of(node_id)
        except HierarchyError as exc:
            return error_result(op, exc)
        return _items_result(op, node_id, items)

    # ------------------------------------------------------------------
    # get_user_organizations
    # ------------------------------------------------------------------

    @traced
    @observed
    def get_user_organizations(self, user_id: str) -> ServiceResult:
        """Groups above *user_id* as ``{id, name, depth}``, nearest first.

        A user's ancestors are groups by construction; the query still
        filters on kind so a stray row can never surface as an organization.
        """
        op = "get_user_organizations"
        try:
            user_id = normalize_node_id(user_id)
        except ValueError:
            return invalid_id_result(op, "user_id", user_id)

        try:
            with self._directory.reader() as reader:
                user = reader.nodes.find_by_id(user_id)
                if user is None:
                    raise NotFound("user not found", user_id=user_id)
                if user.kind != NodeKind.USER:
                    raise BadRequest("node is not a USER", user_id=user_id, kind=str(user.kind))
                with trace_span("select"):
                    items = reader.closure.organizations_of(user_id)
        except HierarchyError as exc:
            return error_result(op, exc)
        return _items_result(op, user_id, items)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_node(reader: DirectoryTransaction, node_id: str) -> None:
        if reader.nodes.find_by_id(node_id) is None:
            raise NotFound("node not found", node_id=node_id)
