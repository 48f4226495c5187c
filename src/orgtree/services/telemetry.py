"""Operation timing: span trees for ``--verbose`` and duration reporting.

Two independent mechanisms live here:

* ``@traced`` and ``trace_span`` record a tree of timed spans for one
  service call and attach it to ``ServiceResult.meta["telemetry"]``. They
  only do work when verbose telemetry is switched on for the current
  context; otherwise each call costs one ContextVar lookup.
* ``@observed`` times every service call unconditionally and hands the op
  name, outcome, and duration to ``BaseService._observe``, which forwards
  them to the ``post_operation`` plugin hook.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Concatenate, ParamSpec, TypeVar

import structlog

from orgtree.services.result import ServiceResult

log = structlog.get_logger("orgtree.telemetry")

_P = ParamSpec("_P")
_R = TypeVar("_R")

_enabled: ContextVar[bool] = ContextVar("orgtree_telemetry_enabled", default=False)
_active: ContextVar[Span | None] = ContextVar("orgtree_active_span", default=None)


@dataclass
class Span:
    """One timed step. Children are nested steps opened while it was active."""

    name: str
    started: float = field(default_factory=time.perf_counter)
    finished: float | None = None
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        if self.finished is None:
            return 0.0
        return (self.finished - self.started) * 1000

    def end(self) -> None:
        self.finished = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            out["annotations"] = dict(self.annotations)
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Open a child span under the active one.

    Yields None when telemetry is off or no ``@traced`` call is running,
    so callers guard annotations with ``if span:``.
    """
    parent = _active.get() if _enabled.get() else None
    if parent is None:
        yield None
        return

    child = Span(name=name)
    parent.children.append(child)
    token = _active.set(child)
    try:
        yield child
    finally:
        child.end()
        _active.reset(token)


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Run *func* as a root span and attach the tree to its ServiceResult."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        span = Span(name=func.__qualname__)
        token = _active.set(span)
        ok = False
        try:
            result = func(*args, **kwargs)
            ok = True
        finally:
            span.end()
            _active.reset(token)
            log.debug(
                "span.complete",
                span_name=span.name,
                duration_ms=round(span.duration_ms, 2),
                ok=ok,
                children=len(span.children),
            )

        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def observed(
    func: Callable[Concatenate[Any, _P], ServiceResult],
) -> Callable[Concatenate[Any, _P], ServiceResult]:
    """Report op, outcome, and duration of a BaseService method.

    An exception counts as a failed call under the method's name and is
    re-raised unchanged.
    """

    @functools.wraps(func)
    def wrapper(self: Any, *args: _P.args, **kwargs: _P.kwargs) -> ServiceResult:
        start = time.perf_counter()
        try:
            result = func(self, *args, **kwargs)
        except Exception:
            self._observe(func.__name__, ok=False, duration_seconds=time.perf_counter() - start)
            raise
        self._observe(result.op, ok=result.ok, duration_seconds=time.perf_counter() - start)
        return result

    return wrapper


def enable_telemetry() -> None:
    """Turn span recording on for the current context."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """Return the active span, or None when telemetry is off."""
    return _active.get() if _enabled.get() else None
