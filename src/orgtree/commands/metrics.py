"""Command: print the in-process Prometheus metrics."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orgtree.commands._base import OrgCommand

if TYPE_CHECKING:
    from orgtree.commands._context import AppContext


@click.command(cls=OrgCommand)
@click.pass_obj
def metrics(app: AppContext) -> None:
    """Print metrics in the Prometheus text exposition format.

    Counters only cover operations run by this process, so this is mostly
    useful after other commands in the same session (tests, scripts) or
    against a running ``orgtree serve`` via ``GET /metrics``.
    """
    from orgtree.plugins.builtins.metrics import render_metrics

    if not app.settings.metrics.enabled:
        click.echo("Metrics are disabled ([metrics] enabled = false).", err=True)
        raise SystemExit(1)
    click.echo(render_metrics(app.settings.metrics.namespace).decode("utf-8"), nl=False)
