"""Tests for CheckService — closure-table integrity rules."""

from __future__ import annotations

from orgtree.domain.types import ClosureEdge
from orgtree.infrastructure.database.schema import closure
from orgtree.infrastructure.directory import Directory
from orgtree.services.check import (
    CheckService,
    check_depth_values,
    check_membership,
    check_node_kinds,
    check_reflexive_rows,
    check_transitivity,
)
from tests.conftest import add_to_group, create_group, create_user


class TestRules:
    def test_reflexive_missing_and_wrong_depth(self) -> None:
        kinds = {"a": "GROUP", "b": "GROUP"}
        issues = check_reflexive_rows(kinds, [ClosureEdge("b", "b", 3)])
        assert [(i["node_id"], i["message"]) for i in issues] == [
            ("a", "missing reflexive closure row"),
            ("b", "reflexive closure row has depth 3"),
        ]

    def test_depth_values(self) -> None:
        issues = check_depth_values([ClosureEdge("a", "b", 0), ClosureEdge("a", "c", 1)])
        assert [i["node_id"] for i in issues] == ["b"]

    def test_user_with_descendants(self) -> None:
        kinds = {"u": "USER", "g": "GROUP"}
        issues = check_node_kinds(kinds, [ClosureEdge("u", "g", 1)])
        assert [i["node_id"] for i in issues] == ["u"]

    def test_transitivity(self) -> None:
        good = [
            ClosureEdge("r", "p", 1),
            ClosureEdge("p", "c", 1),
            ClosureEdge("r", "c", 2),
        ]
        assert check_transitivity(good) == []
        bad = [ClosureEdge("r", "c", 2)]
        assert [i["category"] for i in check_transitivity(bad)] == ["transitivity"]

    def test_unlinked_user_warning(self) -> None:
        issues = check_membership({"u": "USER", "g": "GROUP"}, [ClosureEdge("u", "u", 0)])
        assert [(i["severity"], i["node_id"]) for i in issues] == [("warning", "u")]


class TestCheckService:
    def test_healthy_hierarchy(self, directory: Directory) -> None:
        eng = create_group(directory, "Eng")
        backend = create_group(directory, "Backend", parent_id=eng["id"])
        john = create_user(directory, "John", "john@x.com")
        add_to_group(directory, john["id"], backend["id"])

        result = CheckService(directory).check()
        assert result.ok
        assert result.data["healthy"] is True
        assert result.data["issues"] == []
        assert result.data["nodes"] == 3
        assert result.data["edges"] == 6

    def test_reports_broken_rows(self, directory: Directory) -> None:
        eng = create_group(directory, "Eng")
        with directory.transaction() as txn:
            txn.conn.execute(closure.delete().where(closure.c.descendant_id == eng["id"]))

        result = CheckService(directory).check()
        assert result.data["healthy"] is False
        assert result.data["error_count"] == 1
        assert result.data["issues"][0]["category"] == "reflexive_rows"

    def test_min_severity_error_hides_warnings(self, directory: Directory) -> None:
        create_user(directory, "Jane", "jane@x.com")
        svc = CheckService(directory)
        assert svc.check().data["warning_count"] == 1
        filtered = svc.check(min_severity="error").data
        assert filtered["count"] == 0
        assert filtered["healthy"] is True
