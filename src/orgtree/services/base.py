"""BaseService — abstract foundation for all orgtree services.

Every service receives a :class:`Directory` at construction time. The
Directory provides serializable transactions over the node and closure
stores. Services own their transaction boundaries via
``self._directory.transaction()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from orgtree.domain.errors import VALIDATION_FAILED, HierarchyError
from orgtree.domain.requests import validation_messages
from orgtree.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from pydantic import ValidationError

    from orgtree.infrastructure.directory import Directory

logger = logging.getLogger(__name__)


def error_result(op: str, exc: HierarchyError) -> ServiceResult:
    """Convert a hierarchy rejection into a failed ServiceResult."""
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=exc.code, message=exc.message, detail=exc.detail),
    )


def validation_result(op: str, exc: ValidationError) -> ServiceResult:
    """Convert a request-model ValidationError into a failed ServiceResult."""
    messages = validation_messages(exc)
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(
            code=VALIDATION_FAILED,
            message="; ".join(messages),
            detail={"errors": messages},
        ),
    )


def invalid_id_result(op: str, field_name: str, value: str) -> ServiceResult:
    """Failed ServiceResult for an identifier that is not a UUID."""
    message = f"{field_name}: {value!r} is not a valid UUID"
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=VALIDATION_FAILED, message=message, detail={"errors": [message]}),
    )


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class HierarchyService(BaseService):
            def create_group(self, name: str, ...) -> ServiceResult:
                with self._directory.transaction() as txn:
                    ...
    """

    def __init__(self, directory: Directory) -> None:
        self._directory = directory

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a lifecycle event. No-op if event bus not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._directory.event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")

    def _observe(self, op: str, *, ok: bool, duration_seconds: float) -> None:
        """Report an operation's outcome and duration to plugins (fire-and-forget)."""
        bus = self._directory.event_bus
        if bus is None:
            return
        try:
            bus.dispatch(
                "post_operation",
                {"op": op, "ok": ok, "duration_seconds": duration_seconds},
            )
        except Exception:
            logger.debug("Operation observation failed for %s", op, exc_info=True)
