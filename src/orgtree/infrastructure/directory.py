"""Directory — repository pattern with serializable transaction coordination.

The Directory is the single dependency injected into every service. It owns
the database engine and the plugin event bus. :meth:`transaction` opens one
serializable unit of work and hands out stores bound to its connection, so
the existence checks, cycle check, and batch insert of a hierarchy operation
either all commit or all roll back.
Every SQL statement on its engine is timed and reported through the
``post_db_query`` hook once the event bus is up.

- **SQLite**: the transaction starts with ``BEGIN IMMEDIATE``. Writers queue
  on the database lock (bounded by the busy timeout); WAL readers continue.
- **Other dialects**: the connection runs at ``SERIALIZABLE`` isolation.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import event

from orgtree.infrastructure.database.engine import init_database, is_sqlite
from orgtree.infrastructure.repositories.closure import ClosureStore
from orgtree.infrastructure.repositories.nodes import NodeStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from orgtree.config.settings import OrgSettings

logger = logging.getLogger(__name__)


@dataclass
class DirectoryTransaction:
    """Active unit of work: one connection and the stores bound to it."""

    conn: Connection
    nodes: NodeStore = field(init=False)
    closure: ClosureStore = field(init=False)

    def __post_init__(self) -> None:
        self.nodes = NodeStore(self.conn)
        self.closure = ClosureStore(self.conn)


class Directory:
    """Repository encapsulating database access and lifecycle event dispatch.

    Constructed once per process from :class:`OrgSettings` (CLI startup or
    API app factory). Services receive it via their :class:`BaseService`
    constructor.
    """

    def __init__(self, settings: OrgSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(
            settings.database_url,
            echo=settings.database.echo,
            busy_timeout_ms=settings.database.busy_timeout_ms,
        )
        self._event_bus: Any | None = None
        event.listen(self._engine, "before_cursor_execute", self._start_statement)
        event.listen(self._engine, "after_cursor_execute", self._finish_statement)
        event.listen(self._engine, "handle_error", self._abandon_statement)

    @property
    def root(self) -> Path:
        """The directory root (where ``orgtree.toml`` lives, or the CWD)."""
        return self._settings.root

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def settings(self) -> OrgSettings:
        return self._settings

    @property
    def event_bus(self) -> Any | None:
        """The plugin event bus (None if not initialized)."""
        return self._event_bus

    def init_event_bus(self, *, sync: bool = False) -> None:
        """Initialize the plugin event bus.

        Creates a PluginManager, discovers entry-point plugins, registers the
        built-in MetricsPlugin when metrics are enabled, and wires up the
        EventBus.
        """
        from orgtree.plugins.builtins.metrics import get_metrics_plugin
        from orgtree.plugins.event_bus import EventBus
        from orgtree.plugins.manager import PluginManager

        pm = PluginManager()
        pm.discover_and_load(local_dir=self.root / ".orgtree" / "plugins")

        if self._settings.metrics.enabled:
            pm.register_plugin(
                get_metrics_plugin(self._settings.metrics.namespace),
                name="metrics-builtin",
            )

        self._event_bus = EventBus(
            pm,
            sync=sync,
            max_workers=self._settings.events.max_workers,
        )

    def _start_statement(self, conn: Connection, *_: Any) -> None:
        conn.info.setdefault("orgtree_statement_started", []).append(time.perf_counter())

    def _finish_statement(self, conn: Connection, *_: Any) -> None:
        """Report each statement's duration through ``post_db_query``."""
        started = conn.info["orgtree_statement_started"].pop()
        if self._event_bus is not None:
            self._event_bus.dispatch(
                "post_db_query", {"duration_seconds": time.perf_counter() - started}
            )

    @staticmethod
    def _abandon_statement(context: Any) -> None:
        if context.connection is not None:
            pending = context.connection.info.get("orgtree_statement_started")
            if pending:
                pending.pop()

    @contextmanager
    def transaction(self) -> Iterator[DirectoryTransaction]:
        """Serializable unit of work; commits on success, rolls back on any exception.

        Usage::

            with directory.transaction() as txn:
                node = txn.nodes.create(NodeKind.GROUP, "Eng")
                txn.closure.insert_edges([self_edge(node.id)])
        """
        if is_sqlite(self._engine):
            with self._engine.connect() as conn, conn.begin():
                # Take the write lock up front so the reads that guard the
                # insert see the same state the insert commits against.
                conn.exec_driver_sql("BEGIN IMMEDIATE")
                yield DirectoryTransaction(conn=conn)
        else:
            with (
                self._engine.connect().execution_options(isolation_level="SERIALIZABLE") as conn,
                conn.begin(),
            ):
                yield DirectoryTransaction(conn=conn)

    @contextmanager
    def reader(self) -> Iterator[DirectoryTransaction]:
        """Read-only view for queries; nothing is committed."""
        with self._engine.connect() as conn:
            yield DirectoryTransaction(conn=conn)

    def close(self) -> None:
        """Drain the event bus and release pooled connections."""
        if self._event_bus is not None:
            self._event_bus.shutdown()
            self._event_bus = None
        self._engine.dispose()
