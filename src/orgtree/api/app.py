"""FastAPI application for the orgtree HTTP API.

Routes translate JSON bodies into service calls and ServiceResult errors
into status codes (NOT_FOUND 404, BAD_REQUEST and VALIDATION_FAILED 400,
CONFLICT 409, UNPROCESSABLE_ENTITY 422). Bodies accept both snake_case and
camelCase keys (``parent_id`` / ``parentId``).

The Directory is opened in the lifespan handler and shared by every request.
Route functions are plain ``def`` so FastAPI runs them on its threadpool
next to the synchronous SQLAlchemy engine.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import AliasChoices, BaseModel, Field
from starlette.routing import Match

from orgtree import __version__
from orgtree.config.settings import OrgSettings
from orgtree.domain.errors import HTTP_STATUS_BY_CODE, VALIDATION_FAILED
from orgtree.domain.requests import validation_messages
from orgtree.infrastructure.directory import Directory
from orgtree.plugins.builtins.metrics import render_metrics
from orgtree.services.hierarchy import HierarchyService
from orgtree.services.query import QueryService
from orgtree.services.result import ServiceResult

logger = logging.getLogger(__name__)


# ==========================================
# Request bodies
# ==========================================


class GroupBody(BaseModel):
    name: str
    parent_id: str | None = Field(
        default=None, validation_alias=AliasChoices("parent_id", "parentId")
    )


class UserBody(BaseModel):
    name: str
    email: str


class MembershipBody(BaseModel):
    group_id: str = Field(validation_alias=AliasChoices("group_id", "groupId"))


# ==========================================
# Helpers
# ==========================================


def get_directory(request: Request) -> Directory:
    return request.app.state.directory


def _error_response(result: ServiceResult) -> JSONResponse:
    assert result.error is not None
    status = HTTP_STATUS_BY_CODE.get(result.error.code, 500)
    return JSONResponse(status_code=status, content={"error": result.error.model_dump()})


def _respond(result: ServiceResult, *, status_code: int = 200, key: str | None = None) -> Any:
    """Return *result.data* (or ``data[key]``) on success, an error body otherwise."""
    if not result.ok:
        return _error_response(result)
    body = result.data[key] if key else result.data
    return JSONResponse(status_code=status_code, content=body)


# ==========================================
# Routes
# ==========================================

router = APIRouter()


@router.post("/groups", status_code=201)
def create_group(body: GroupBody, directory: Directory = Depends(get_directory)) -> Any:
    result = HierarchyService(directory).create_group(body.name, parent_id=body.parent_id)
    return _respond(result, status_code=201)


@router.post("/users", status_code=201)
def create_user(body: UserBody, directory: Directory = Depends(get_directory)) -> Any:
    result = HierarchyService(directory).create_user(body.name, body.email)
    return _respond(result, status_code=201)


@router.post("/users/{user_id}/groups", status_code=204, response_model=None)
def add_user_to_group(
    user_id: str, body: MembershipBody, directory: Directory = Depends(get_directory)
) -> Response:
    result = HierarchyService(directory).add_user_to_group(user_id, body.group_id)
    if not result.ok:
        return _error_response(result)
    return Response(status_code=204)


@router.get("/nodes/{node_id}")
def get_node(node_id: str, directory: Directory = Depends(get_directory)) -> Any:
    return _respond(QueryService(directory).get_node(node_id))


@router.get("/nodes/{node_id}/ancestors")
def get_ancestors(node_id: str, directory: Directory = Depends(get_directory)) -> Any:
    return _respond(QueryService(directory).get_ancestors(node_id), key="items")


@router.get("/nodes/{node_id}/descendants")
def get_descendants(node_id: str, directory: Directory = Depends(get_directory)) -> Any:
    return _respond(QueryService(directory).get_descendants(node_id), key="items")


@router.get("/users/{user_id}/organizations")
def get_user_organizations(user_id: str, directory: Directory = Depends(get_directory)) -> Any:
    return _respond(QueryService(directory).get_user_organizations(user_id), key="items")


@router.get("/metrics")
def metrics(request: Request) -> PlainTextResponse:
    settings: OrgSettings = request.app.state.settings
    return PlainTextResponse(
        render_metrics(settings.metrics.namespace), media_type=CONTENT_TYPE_LATEST
    )


# ==========================================
# Middleware and app factory
# ==========================================


def _route_template(request: Request) -> str:
    """The matched route path (e.g. ``/nodes/{node_id}``), keeping label cardinality bounded."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", request.url.path)
    return "unmatched"


async def _time_request(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Report method, route, status, and duration of every request to plugins."""
    start = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start

    directory: Directory | None = getattr(request.app.state, "directory", None)
    bus = directory.event_bus if directory is not None else None
    if bus is not None:
        bus.dispatch(
            "post_http_request",
            {
                "method": request.method,
                "route": _route_template(request),
                "status_code": response.status_code,
                "duration_seconds": duration,
            },
        )
    return response


async def _validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    messages = validation_messages(exc)  # type: ignore[arg-type]
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": VALIDATION_FAILED,
                "message": "; ".join(messages),
                "detail": {"errors": messages},
            }
        },
    )


def create_app(settings: OrgSettings | None = None) -> FastAPI:
    """Build the API application.

    When *settings* is omitted they are loaded the way the CLI loads them
    (``orgtree.toml`` walk-up, ``ORGTREE_*`` env vars) and logging is
    configured here.
    """
    if settings is None:
        from orgtree.config.logging import configure_logging

        settings = OrgSettings.from_cli()
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        directory = Directory(settings)
        directory.init_event_bus(sync=settings.sync_events)
        app.state.directory = directory
        logger.info("Directory opened at %s", settings.database_url)
        try:
            yield
        finally:
            directory.close()

    app = FastAPI(
        title="orgtree API",
        description="Users and groups in a closure-table hierarchy",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.middleware("http")(_time_request)
    app.include_router(router)
    return app
