"""Semantic rejections raised by the hierarchy engine.

Each error carries a stable ``code`` (used in ``ServiceError.code``) and the
HTTP status the API layer answers with. They are terminal for the request:
nothing retries them, and raising one inside a directory transaction rolls
back every pending write.
"""

from __future__ import annotations

from typing import Any, ClassVar


class HierarchyError(Exception):
    """Base class for rejections surfaced verbatim to the caller."""

    code: ClassVar[str] = "HIERARCHY_ERROR"
    http_status: ClassVar[int] = 500

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class NotFound(HierarchyError):
    """A referenced node does not exist."""

    code = "NOT_FOUND"
    http_status = 404


class BadRequest(HierarchyError):
    """The node exists but has the wrong kind for the operation."""

    code = "BAD_REQUEST"
    http_status = 400


class Conflict(HierarchyError):
    """Duplicate email on create, or duplicate direct membership on link."""

    code = "CONFLICT"
    http_status = 409


class UnprocessableEntity(HierarchyError):
    """The link would introduce a cycle."""

    code = "UNPROCESSABLE_ENTITY"
    http_status = 422


VALIDATION_FAILED = "VALIDATION_FAILED"

HTTP_STATUS_BY_CODE: dict[str, int] = {
    NotFound.code: NotFound.http_status,
    BadRequest.code: BadRequest.http_status,
    Conflict.code: Conflict.http_status,
    UnprocessableEntity.code: UnprocessableEntity.http_status,
    VALIDATION_FAILED: 400,
}
