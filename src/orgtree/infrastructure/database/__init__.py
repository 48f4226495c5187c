"""Database engine and schema via SQLAlchemy Core."""

from orgtree.infrastructure.database.engine import (
    create_db_engine,
    default_database_url,
    init_database,
)
from orgtree.infrastructure.database.schema import closure, metadata, nodes

__all__ = [
    "closure",
    "create_db_engine",
    "default_database_url",
    "init_database",
    "metadata",
    "nodes",
]
