"""HierarchyService — the write side of the closure-table hierarchy.

Pipeline for every operation: VALIDATE → CHECK → DERIVE → PERSIST → EVENT → RESPOND.

CHECK, DERIVE, and PERSIST share one serializable directory transaction.
Rejections are raised as :class:`HierarchyError` inside it, so a rejected
operation leaves neither a node nor a closure row behind, and are turned
into a failed ServiceResult at the method boundary.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from orgtree.domain.closure import inherit_ancestry, self_edge, would_create_cycle
from orgtree.domain.errors import (
    BadRequest,
    Conflict,
    HierarchyError,
    NotFound,
    UnprocessableEntity,
)
from orgtree.domain.ids import normalize_node_id
from orgtree.domain.requests import (
    AddUserToGroupRequest,
    CreateGroupRequest,
    CreateUserRequest,
)
from orgtree.domain.types import ClosureEdge, NodeKind
from orgtree.services.base import (
    BaseService,
    error_result,
    invalid_id_result,
    validation_result,
)
from orgtree.services.result import ServiceResult
from orgtree.services.telemetry import observed, trace_span, traced

logger = logging.getLogger(__name__)


class HierarchyService(BaseService):
    """Creates users and groups and links them into the hierarchy."""

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    @traced
    @observed
    def create_group(self, name: str, *, parent_id: str | None = None) -> ServiceResult:
        """Create a GROUP, optionally below an existing parent group.

        The new group inherits its parent's whole ancestor chain, each row
        shifted one level deeper; the parent itself lands at depth 1.
        """
        op = "create_group"
        try:
            request = CreateGroupRequest(name=name, parent_id=parent_id)
        except ValidationError as exc:
            return validation_result(op, exc)

        try:
            with self._directory.transaction() as txn:
                with trace_span("check"):
                    if request.parent_id is not None:
                        parent = txn.nodes.find_by_kind_and_id(request.parent_id, NodeKind.GROUP)
                        if parent is None:
                            raise NotFound("parent group not found", parent_id=request.parent_id)

                with trace_span("persist") as span:
                    group = txn.nodes.create(NodeKind.GROUP, request.name)
                    staged: list[ClosureEdge] = [self_edge(group.id)]
                    if request.parent_id is not None:
                        staged += inherit_ancestry(
                            txn.closure.find_ancestor_edges_of(request.parent_id), group.id
                        )
                    edges_added = txn.closure.insert_edges(staged)
                    if span:
                        span.annotate("edges", edges_added)
        except HierarchyError as exc:
            logger.debug("create_group rejected: %s", exc.message)
            return error_result(op, exc)

        warnings: list[str] = []
        self._dispatch_event(
            "post_create_group",
            {"group_id": group.id, "name": group.name, "parent_id": request.parent_id},
            warnings,
        )
        logger.debug("Created group %s (parent=%s)", group.id, request.parent_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={**group.to_dict(), "parent_id": request.parent_id},
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @traced
    @observed
    def create_user(self, name: str, email: str) -> ServiceResult:
        """Create a USER with a unique email and its reflexive closure row."""
        op = "create_user"
        try:
            request = CreateUserRequest(name=name, email=email)
        except ValidationError as exc:
            return validation_result(op, exc)

        try:
            with self._directory.transaction() as txn:
                with trace_span("check"):
                    if txn.nodes.find_by_email(request.email) is not None:
                        raise Conflict("email already exists", email=request.email)
                with trace_span("persist"):
                    user = txn.nodes.create(NodeKind.USER, request.name, request.email)
                    txn.closure.insert_edges([self_edge(user.id)])
        except HierarchyError as exc:
            logger.debug("create_user rejected: %s", exc.message)
            return error_result(op, exc)
        except IntegrityError:
            # Another writer committed the same email after our lookup.
            return error_result(op, Conflict("email already exists", email=request.email))

        warnings: list[str] = []
        self._dispatch_event(
            "post_create_user",
            {"user_id": user.id, "name": user.name, "email": user.email},
            warnings,
        )
        logger.debug("Created user %s", user.id)
        return ServiceResult(ok=True, op=op, data=user.to_dict(), warnings=warnings)

    @traced
    @observed
    def add_user_to_group(self, user_id: str, group_id: str) -> ServiceResult:
        """Link a USER below a GROUP.

        Every ancestor row of the group, including its reflexive row, is
        copied onto the user one level deeper. Ancestors the user already
        reaches through another group keep their existing row. The user's own
        reflexive row is added if it is missing.
        """
        op = "add_user_to_group"
        try:
            request = AddUserToGroupRequest(group_id=group_id)
            user_id = normalize_node_id(user_id)
        except ValidationError as exc:
            return validation_result(op, exc)
        except ValueError:
            return invalid_id_result(op, "user_id", user_id)

        group_id = request.group_id
        try:
            with self._directory.transaction() as txn:
                with trace_span("check"):
                    user = txn.nodes.find_by_id(user_id)
                    if user is None:
                        raise NotFound("user not found", user_id=user_id)
                    if user.kind != NodeKind.USER:
                        raise BadRequest(
                            "node is not a USER", user_id=user_id, kind=str(user.kind)
                        )

                    group = txn.nodes.find_by_id(group_id)
                    if group is None:
                        raise NotFound("group not found", group_id=group_id)
                    if group.kind != NodeKind.GROUP:
                        raise BadRequest(
                            "node is not a GROUP", group_id=group_id, kind=str(group.kind)
                        )

                    if txn.closure.find_edge(group_id, user_id) is not None:
                        raise Conflict(
                            "user already belongs to group", user_id=user_id, group_id=group_id
                        )

                    group_ancestors = txn.closure.find_ancestor_edges_of(group_id)
                    if would_create_cycle(group_ancestors, user_id):
                        raise UnprocessableEntity(
                            "cyclic relationship detected", user_id=user_id, group_id=group_id
                        )

                with trace_span("derive"):
                    # Rows the user already holds through another group stay as they are.
                    held = {e.ancestor_id for e in txn.closure.find_ancestor_edges_of(user_id)}
                    staged = [
                        edge
                        for edge in inherit_ancestry(group_ancestors, user_id)
                        if edge.ancestor_id not in held
                    ]
                    if user_id not in held:
                        staged.append(self_edge(user_id))

                with trace_span("persist"):
                    edges_added = txn.closure.insert_edges(staged)
        except HierarchyError as exc:
            logger.debug("add_user_to_group rejected: %s", exc.message)
            return error_result(op, exc)
        except IntegrityError:
            # A concurrent identical link committed first; the primary key caught it.
            return error_result(
                op,
                Conflict("user already belongs to group", user_id=user_id, group_id=group_id),
            )

        warnings: list[str] = []
        self._dispatch_event(
            "post_add_user_to_group",
            {"user_id": user_id, "group_id": group_id, "edges_added": edges_added},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"user_id": user_id, "group_id": group_id, "edges_added": edges_added},
            warnings=warnings,
        )
