"""Alembic environment for the orgtree schema.

Invoked by ``alembic.command`` with a Config from :func:`build_config`;
the target URL comes from its ``sqlalchemy.url`` option.
"""

from __future__ import annotations

from alembic import context

from orgtree.infrastructure.database.engine import create_db_engine
from orgtree.infrastructure.database.schema import metadata


def _url() -> str:
    url = context.config.get_main_option("sqlalchemy.url")
    if not url:
        raise RuntimeError("sqlalchemy.url is not set on the Alembic config")
    return url


def run_offline() -> None:
    """Emit migration SQL without connecting."""
    context.configure(
        url=_url(),
        target_metadata=metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    """Apply migrations over a connection with the same pragmas the app uses."""
    engine = create_db_engine(_url())
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, target_metadata=metadata)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
