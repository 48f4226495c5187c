"""Shared pytest fixtures and test helpers for orgtree tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from orgtree.config.settings import OrgSettings
from orgtree.infrastructure.directory import Directory


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def settings(tmp_path: Path) -> OrgSettings:
    """Settings rooted at a temp directory with synchronous event dispatch."""
    return OrgSettings.from_cli(root=tmp_path, sync=True)


@pytest.fixture
def directory(settings: OrgSettings) -> Iterator[Directory]:
    """Directory on a fresh SQLite file with the plugin event bus wired up."""
    d = Directory(settings)
    d.init_event_bus(sync=True)
    try:
        yield d
    finally:
        d.close()


@pytest.fixture
def _isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_root")`` on command test
    classes.
    """
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ORGTREE_CONFIG", raising=False)


@pytest.fixture(autouse=True)
def _reset_telemetry() -> Iterator[None]:
    """``-v`` enables span collection for the rest of the thread; undo it per test."""
    yield
    from orgtree.services.telemetry import disable_telemetry

    disable_telemetry()


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def create_group(directory: Directory, name: str, **kwargs: Any) -> dict[str, Any]:
    """Create a group via HierarchyService, asserting success."""
    from orgtree.services.hierarchy import HierarchyService

    result = HierarchyService(directory).create_group(name, **kwargs)
    assert result.ok, result.error
    return result.data


def create_user(directory: Directory, name: str, email: str) -> dict[str, Any]:
    """Create a user via HierarchyService, asserting success."""
    from orgtree.services.hierarchy import HierarchyService

    result = HierarchyService(directory).create_user(name, email)
    assert result.ok, result.error
    return result.data


def add_to_group(directory: Directory, user_id: str, group_id: str) -> dict[str, Any]:
    """Link a user below a group via HierarchyService, asserting success."""
    from orgtree.services.hierarchy import HierarchyService

    result = HierarchyService(directory).add_user_to_group(user_id, group_id)
    assert result.ok, result.error
    return result.data
