"""Baseline schema — nodes and the closure table.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-10-18

Databases created directly from ``schema.metadata`` get stamped at this
revision without running it; empty databases get it applied during
``orgtree upgrade``.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None


def upgrade() -> None:
    op.create_table(
        "nodes",
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("kind", sa.Text, nullable=False),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("email", sa.Text, unique=True),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.Column("updated_at", sa.Text, nullable=False),
    )
    op.create_index("ix_nodes_kind", "nodes", ["kind"])

    op.create_table(
        "closure",
        sa.Column(
            "ancestor_id",
            sa.Text,
            sa.ForeignKey("nodes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "descendant_id",
            sa.Text,
            sa.ForeignKey("nodes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("depth", sa.Integer, nullable=False),
        sa.Column("created_at", sa.Text, nullable=False),
        sa.PrimaryKeyConstraint("ancestor_id", "descendant_id", name="pk_closure"),
    )
    op.create_index("ix_closure_descendant", "closure", ["descendant_id"])
    op.create_index("ix_closure_depth", "closure", ["depth"])


def downgrade() -> None:
    op.drop_index("ix_closure_depth", table_name="closure")
    op.drop_index("ix_closure_descendant", table_name="closure")
    op.drop_table("closure")
    op.drop_index("ix_nodes_kind", table_name="nodes")
    op.drop_table("nodes")
