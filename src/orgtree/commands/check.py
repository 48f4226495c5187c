"""Command: closure-table integrity check."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orgtree.commands._base import OrgCommand

if TYPE_CHECKING:
    from orgtree.commands._context import AppContext


@click.command(
    cls=OrgCommand,
    examples="""\
  orgtree check
  orgtree check --errors-only
  orgtree --json check""",
)
@click.option(
    "--min-severity",
    type=click.Choice(["warning", "error"]),
    default="warning",
    help="Hide issues below this severity.",
)
@click.option("--errors-only", is_flag=True, help="Shortcut for --min-severity error.")
@click.pass_obj
def check(app: AppContext, min_severity: str, errors_only: bool) -> None:
    """Check closure-table integrity. Exits 1 when errors are found."""
    from orgtree.services.check import CheckService

    result = CheckService(app.directory).check(
        min_severity="error" if errors_only else min_severity
    )
    app.emit(result)
    if not result.data.get("healthy", True):
        raise SystemExit(1)
