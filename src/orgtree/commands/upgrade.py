"""Command: database schema migration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orgtree.commands._base import OrgCommand

if TYPE_CHECKING:
    from orgtree.commands._context import AppContext


@click.command(
    cls=OrgCommand,
    examples="""\
  orgtree upgrade
  orgtree upgrade --check
  orgtree --json upgrade --check""",
)
@click.option(
    "--check", "check_only", is_flag=True, help="Show pending migrations without applying."
)
@click.pass_obj
def upgrade(app: AppContext, check_only: bool) -> None:
    """Run pending database migrations."""
    from orgtree.services.upgrade import UpgradeService

    svc = UpgradeService(app.directory)
    app.emit(svc.check_pending() if check_only else svc.apply())
