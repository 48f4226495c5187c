"""Tests for the check, upgrade, and metrics commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from orgtree.cli import cli


@pytest.mark.usefixtures("_isolated_root")
class TestCheckCommand:
    def test_empty_database_healthy(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["check"])
        assert result.exit_code == 0
        assert "No issues found" in result.output

    def test_unlinked_user_warning(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["user", "create", "Jane", "jane@x.com"])
        result = cli_runner.invoke(cli, ["--json", "check"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["data"]["warning_count"] == 1

        result = cli_runner.invoke(cli, ["--json", "check", "--errors-only"])
        assert json.loads(result.output)["data"]["count"] == 0


@pytest.mark.usefixtures("_isolated_root")
class TestUpgradeCommand:
    def test_upgrade_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["upgrade", "--help"])
        assert result.exit_code == 0
        assert "--check" in result.output

    def test_upgrade_check_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "upgrade", "--check"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert "pending_count" in data["data"]

    def test_upgrade_apply(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["upgrade"])
        assert result.exit_code == 0
        assert "upgrade" in result.output

        again = cli_runner.invoke(cli, ["--json", "upgrade", "--check"])
        assert json.loads(again.output)["data"]["pending_count"] == 0


@pytest.mark.usefixtures("_isolated_root")
class TestMetricsCommand:
    def test_prometheus_text(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["metrics"])
        assert result.exit_code == 0
        assert "# TYPE orgtree_user_created_total counter" in result.output
        assert "orgtree_operation_duration_seconds" in result.output


@pytest.mark.usefixtures("_isolated_root")
class TestRootGroup:
    def test_version(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "orgtree" in result.output

    def test_no_subcommand_prints_help(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "group" in result.output
        assert "serve" in result.output

    def test_verbose_shows_telemetry(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-v", "group", "create", "Eng"])
        assert result.exit_code == 0
        assert "HierarchyService.create_group" in result.output

    def test_serve_examples(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["serve", "--examples"])
        assert result.exit_code == 0
        assert "orgtree serve" in result.output
