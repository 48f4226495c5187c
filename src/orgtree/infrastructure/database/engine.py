"""Database engine setup.

SQLite is the default persistence layer: WAL mode so readers keep running
while a writer holds the lock, foreign keys enforced, and a busy timeout so
concurrent writers queue instead of failing immediately. Any other
SQLAlchemy URL is accepted as-is.

SQLAlchemy Core (not ORM) is used because every operation is a handful of
explicit statements inside one transaction — no benefit from session
management or identity maps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url

from orgtree.infrastructure.database.schema import metadata

DB_DIRNAME = ".orgtree"
DB_FILENAME = "orgtree.db"


def default_database_url(root: Path) -> str:
    """SQLite URL for ``{root}/.orgtree/orgtree.db``."""
    return f"sqlite:///{root / DB_DIRNAME / DB_FILENAME}"


def is_sqlite(engine: Engine) -> bool:
    return engine.dialect.name == "sqlite"


def create_db_engine(url: str, *, echo: bool = False, busy_timeout_ms: int = 5000) -> Engine:
    """Create an engine; SQLite connections get WAL, foreign keys, and a busy timeout."""
    engine = create_engine(url, echo=echo)

    if is_sqlite(engine):

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
            cursor.close()

    return engine


def init_database(url: str, *, echo: bool = False, busy_timeout_ms: int = 5000) -> Engine:
    """Create the engine and all tables from :data:`schema.metadata`.

    For file-backed SQLite URLs the parent directory is created first.
    Idempotent — safe to call on an existing database.

    Returns the engine ready for use.
    """
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(url, echo=echo, busy_timeout_ms=busy_timeout_ms)
    metadata.create_all(engine)
    return engine
