"""Command group: USER nodes and their memberships."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orgtree.commands._base import OrgGroup

if TYPE_CHECKING:
    from orgtree.commands._context import AppContext


@click.group(
    cls=OrgGroup,
    examples="""\
  orgtree user create "Ada Lovelace" ada@example.com
  orgtree user join USER_ID GROUP_ID
  orgtree --json user orgs USER_ID""",
)
def user() -> None:
    """Create users and link them into groups."""


@user.command()
@click.argument("name")
@click.argument("email")
@click.pass_obj
def create(app: AppContext, name: str, email: str) -> None:
    """Create a user with a unique EMAIL."""
    from orgtree.services.hierarchy import HierarchyService

    app.emit(HierarchyService(app.directory).create_user(name, email))


@user.command()
@click.argument("user_id")
@click.argument("group_id")
@click.pass_obj
def join(app: AppContext, user_id: str, group_id: str) -> None:
    """Link USER_ID below GROUP_ID."""
    from orgtree.services.hierarchy import HierarchyService

    app.emit(HierarchyService(app.directory).add_user_to_group(user_id, group_id))


@user.command()
@click.argument("user_id")
@click.pass_obj
def orgs(app: AppContext, user_id: str) -> None:
    """List every group USER_ID belongs to, directly or transitively."""
    from orgtree.services.query import QueryService

    app.emit(QueryService(app.directory).get_user_organizations(user_id))
