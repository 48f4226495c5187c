"""Tests for ServiceResult formatting and Rich renderers."""

from __future__ import annotations

import json

from orgtree.output.formatters import OutputSettings, format_result
from orgtree.output.renderers import render_quiet, render_result
from orgtree.services.result import ServiceError, ServiceResult

_ITEMS = [
    {"id": "g1", "name": "Backend", "depth": 1},
    {"id": "g2", "name": "Eng", "depth": 2},
]


class TestFormatResult:
    def test_json(self) -> None:
        result = ServiceResult(ok=True, op="get_node", data={"id": "n1"})
        out = format_result(result, settings=OutputSettings(json_output=True))
        assert json.loads(out)["data"] == {"id": "n1"}

    def test_quiet(self) -> None:
        result = ServiceResult(ok=True, op="get_user_organizations", data={"items": _ITEMS})
        assert format_result(result, settings=OutputSettings(quiet=True)) == "g1\ng2"

    def test_default_is_rich(self) -> None:
        result = ServiceResult(ok=True, op="something_else", data={"answer": 42})
        out = format_result(result)
        assert "OK" in out
        assert "answer: 42" in [line.strip() for line in out.splitlines()]


class TestRenderers:
    def test_mutation(self) -> None:
        result = ServiceResult(
            ok=True,
            op="create_user",
            data={"id": "u1", "kind": "USER", "name": "Ada", "email": "ada@example.com"},
        )
        out = render_result(result)
        assert "create_user" in out
        assert "ada@example.com" in out

    def test_organizations_table(self) -> None:
        result = ServiceResult(
            ok=True,
            op="get_user_organizations",
            data={"id": "u1", "items": _ITEMS, "count": 2},
        )
        out = render_result(result)
        assert "Backend" in out
        assert "Eng" in out
        assert "2 organizations" in out

    def test_check_issues(self) -> None:
        result = ServiceResult(
            ok=True,
            op="check",
            data={
                "issues": [
                    {
                        "severity": "error",
                        "category": "reflexive_rows",
                        "message": "missing reflexive closure row",
                        "node_id": "n1",
                    }
                ],
                "count": 1,
                "error_count": 1,
                "warning_count": 0,
                "nodes": 1,
                "edges": 0,
            },
        )
        out = render_result(result)
        assert "reflexive_rows" in out
        assert "1 errors, 0 warnings" in out

    def test_error(self) -> None:
        result = ServiceResult(
            ok=False,
            op="add_user_to_group",
            error=ServiceError(code="CONFLICT", message="user already belongs to group"),
        )
        out = render_result(result)
        assert "ERROR" in out
        assert "CONFLICT" in out
        assert render_quiet(result) == "ERROR: add_user_to_group: user already belongs to group"
