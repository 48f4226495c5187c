"""Command group: read-only node queries."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orgtree.commands._base import OrgGroup

if TYPE_CHECKING:
    from orgtree.commands._context import AppContext


@click.group(
    cls=OrgGroup,
    examples="""\
  orgtree node get NODE_ID
  orgtree node ancestors NODE_ID
  orgtree -q node descendants NODE_ID""",
)
def node() -> None:
    """Look up nodes and walk the hierarchy."""


@node.command()
@click.argument("node_id")
@click.pass_obj
def get(app: AppContext, node_id: str) -> None:
    """Show a single node."""
    from orgtree.services.query import QueryService

    app.emit(QueryService(app.directory).get_node(node_id))


@node.command()
@click.argument("node_id")
@click.pass_obj
def ancestors(app: AppContext, node_id: str) -> None:
    """List the nodes above NODE_ID, nearest first."""
    from orgtree.services.query import QueryService

    app.emit(QueryService(app.directory).get_ancestors(node_id))


@node.command()
@click.argument("node_id")
@click.pass_obj
def descendants(app: AppContext, node_id: str) -> None:
    """List the nodes below NODE_ID, nearest first."""
    from orgtree.services.query import QueryService

    app.emit(QueryService(app.directory).get_descendants(node_id))
