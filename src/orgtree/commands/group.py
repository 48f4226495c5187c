"""Command group: GROUP nodes."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orgtree.commands._base import OrgGroup

if TYPE_CHECKING:
    from orgtree.commands._context import AppContext


@click.group(
    cls=OrgGroup,
    examples="""\
  orgtree group create "Engineering"
  orgtree group create "Platform" --parent 3f2b...""",
)
def group() -> None:
    """Create groups."""


@group.command()
@click.argument("name")
@click.option("--parent", "parent_id", default=None, help="Id of the parent group.")
@click.pass_obj
def create(app: AppContext, name: str, parent_id: str | None) -> None:
    """Create a group, optionally below PARENT."""
    from orgtree.services.hierarchy import HierarchyService

    app.emit(HierarchyService(app.directory).create_group(name, parent_id=parent_id))
