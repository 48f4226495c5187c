"""SQLAlchemy Core table definitions for the orgtree database.

Two tables: ``nodes`` holds every USER and GROUP, ``closure`` holds one row
per (ancestor, descendant) pair with the hop count between them. Timestamps
are ISO-8601 UTC strings.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
)

metadata = MetaData()

nodes = Table(
    "nodes",
    metadata,
    Column("id", Text, primary_key=True),  # UUID4
    Column("kind", Text, nullable=False),  # USER | GROUP
    Column("name", Text, nullable=False),
    Column("email", Text, unique=True),  # NULL for groups
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

closure = Table(
    "closure",
    metadata,
    Column(
        "ancestor_id",
        Text,
        ForeignKey("nodes.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "descendant_id",
        Text,
        ForeignKey("nodes.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("depth", Integer, nullable=False),
    Column("created_at", Text, nullable=False),
    # At most one row per ordered pair; concurrent duplicate links collide here.
    PrimaryKeyConstraint("ancestor_id", "descendant_id", name="pk_closure"),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_nodes_kind", nodes.c.kind)
Index("ix_closure_descendant", closure.c.descendant_id)
Index("ix_closure_depth", closure.c.depth)
