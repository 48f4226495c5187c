"""serve — run the HTTP API under uvicorn."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orgtree.commands._base import OrgCommand

if TYPE_CHECKING:
    from orgtree.commands._context import AppContext


@click.command(
    cls=OrgCommand,
    examples="""\
  # Serve on the configured address ([api] host/port, default 127.0.0.1:8000)
  orgtree serve

  # Listen on all interfaces
  orgtree serve --host 0.0.0.0 --port 9000""",
)
@click.option("--host", default=None, help="Bind address (overrides [api] host).")
@click.option("--port", default=None, type=int, help="Listen port (overrides [api] port).")
@click.pass_obj
def serve(app: AppContext, host: str | None, port: int | None) -> None:
    """Start the HTTP API."""
    import uvicorn

    from orgtree.api.app import create_app

    uvicorn.run(
        create_app(app.settings),
        host=host or app.settings.api.host,
        port=port or app.settings.api.port,
        log_config=None,
    )
