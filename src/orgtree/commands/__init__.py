"""Subcommand modules for orgtree.

Provides register_commands() which uses deferred imports to keep
``orgtree --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    3 groups (have subcommands) + 4 standalone commands.
    """
    # --- Groups ---
    from orgtree.commands.group import group
    from orgtree.commands.node import node
    from orgtree.commands.user import user

    cli.add_command(group)
    cli.add_command(user)
    cli.add_command(node)

    # --- Standalone commands ---
    from orgtree.commands.check import check
    from orgtree.commands.metrics import metrics
    from orgtree.commands.serve import serve
    from orgtree.commands.upgrade import upgrade

    cli.add_command(check)
    cli.add_command(upgrade)
    cli.add_command(metrics)
    cli.add_command(serve)
