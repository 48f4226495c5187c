"""Tests for the Alembic migration scripts."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine, inspect

from orgtree.infrastructure.database.migrations import build_config


class TestMigrations:
    def test_single_head(self) -> None:
        script = ScriptDirectory.from_config(build_config("sqlite://"))
        assert len(script.get_heads()) == 1

    def test_upgrade_then_downgrade(self, tmp_path: Path) -> None:
        url = f"sqlite:///{tmp_path / 'm.db'}"
        cfg = build_config(url)

        command.upgrade(cfg, "head")
        engine = create_engine(url)
        try:
            tables = set(inspect(engine).get_table_names())
            assert {"nodes", "closure", "alembic_version"} <= tables

            command.downgrade(cfg, "base")
            inspect_after = inspect(engine)
            remaining = set(inspect_after.get_table_names())
            assert "nodes" not in remaining
            assert "closure" not in remaining
        finally:
            engine.dispose()
