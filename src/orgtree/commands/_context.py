"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy Directory initialization and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from orgtree.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from orgtree.config.settings import OrgSettings
    from orgtree.infrastructure.directory import Directory
    from orgtree.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The directory is lazily initialized on first use so ``--help`` and
    ``--version`` never touch the database.
    """

    def __init__(self, settings: OrgSettings) -> None:
        self.settings = settings
        self._directory: Directory | None = None

        from orgtree.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

        if settings.verbose:
            from orgtree.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def directory(self) -> Directory:
        """The directory instance (created lazily on first access)."""
        if self._directory is None:
            from orgtree.infrastructure.directory import Directory

            self._directory = Directory(self.settings)
            self._directory.init_event_bus(sync=self.settings.sync_events)
        return self._directory

    def close(self) -> None:
        """Drain pending events and release the engine, if one was opened."""
        if self._directory is not None:
            self._directory.close()
            self._directory = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
