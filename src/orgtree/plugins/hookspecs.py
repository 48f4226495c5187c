"""Pluggy hook specifications for orgtree lifecycle events.

Three hierarchy events fire after a successful write commits. One
operation hook fires after every service call, successful or not. The
timing hooks report each HTTP request served by the API and each SQL
statement the engine executes.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("orgtree")
hookimpl = pluggy.HookimplMarker("orgtree")


class OrgtreeHookSpec:
    """Hook specifications for the orgtree plugin system."""

    @hookspec
    def post_create_group(
        self,
        group_id: str,
        name: str,
        parent_id: str | None,
    ) -> None:
        """Called after a group is created."""

    @hookspec
    def post_create_user(
        self,
        user_id: str,
        name: str,
        email: str,
    ) -> None:
        """Called after a user is created."""

    @hookspec
    def post_add_user_to_group(
        self,
        user_id: str,
        group_id: str,
        edges_added: int,
    ) -> None:
        """Called after a user is linked below a group."""

    @hookspec
    def post_operation(
        self,
        op: str,
        ok: bool,
        duration_seconds: float,
    ) -> None:
        """Called after any service operation with its outcome and duration."""

    @hookspec
    def post_http_request(
        self,
        method: str,
        route: str,
        status_code: int,
        duration_seconds: float,
    ) -> None:
        """Called after the HTTP API answers a request."""

    @hookspec
    def post_db_query(self, duration_seconds: float) -> None:
        """Called after each SQL statement completes."""
