"""Tests for span telemetry and operation observation."""

from __future__ import annotations

from typing import Any

import pytest

from orgtree.infrastructure.directory import Directory
from orgtree.services.base import BaseService
from orgtree.services.hierarchy import HierarchyService
from orgtree.services.result import ServiceResult
from orgtree.services.telemetry import (
    disable_telemetry,
    enable_telemetry,
    get_current_span,
    observed,
    trace_span,
    traced,
)


class _Recorder(BaseService):
    def __init__(self) -> None:
        self.observations: list[tuple[str, bool]] = []

    def _observe(self, op: str, *, ok: bool, duration_seconds: float) -> None:
        assert duration_seconds >= 0
        self.observations.append((op, ok))

    @observed
    def succeed(self) -> ServiceResult:
        return ServiceResult(ok=True, op="succeed")

    @observed
    def explode(self) -> ServiceResult:
        raise RuntimeError("boom")


class TestObserved:
    def test_reports_result_op(self) -> None:
        svc = _Recorder()
        svc.succeed()
        assert svc.observations == [("succeed", True)]

    def test_reports_failure_and_reraises(self) -> None:
        svc = _Recorder()
        with pytest.raises(RuntimeError):
            svc.explode()
        assert svc.observations == [("explode", False)]


class TestTraced:
    def test_disabled_leaves_meta_empty(self, directory: Directory) -> None:
        disable_telemetry()
        result = HierarchyService(directory).create_group("Eng")
        assert result.meta is None
        assert get_current_span() is None

    def test_enabled_injects_span_tree(self, directory: Directory) -> None:
        enable_telemetry()
        result = HierarchyService(directory).create_group("Eng")
        telemetry = result.meta["telemetry"]
        assert telemetry["name"] == "HierarchyService.create_group"
        children = {c["name"]: c for c in telemetry["children"]}
        assert {"check", "persist"} <= set(children)
        assert children["persist"]["annotations"] == {"edges": 1}

    def test_trace_span_without_parent(self) -> None:
        enable_telemetry()
        with trace_span("orphan") as span:
            assert span is None

    def test_traced_plain_function(self) -> None:
        enable_telemetry()

        @traced
        def work() -> dict[str, Any]:
            return {"done": True}

        assert work() == {"done": True}
