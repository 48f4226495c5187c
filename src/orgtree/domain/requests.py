"""Request models validated before the hierarchy engine is invoked.

Every service validates its arguments through them before opening a
transaction, so the CLI and the HTTP API reject the same inputs.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ValidationError, field_validator

from orgtree.domain.ids import normalize_node_id

# local@domain.tld: no whitespace, one @, at least one dot in the domain.
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _non_empty_name(value: str) -> str:
    value = value.strip()
    if not value:
        msg = "name must not be empty"
        raise ValueError(msg)
    return value


def _node_id(value: str) -> str:
    try:
        return normalize_node_id(value)
    except ValueError:
        msg = f"{value!r} is not a valid UUID"
        raise ValueError(msg) from None


class CreateGroupRequest(BaseModel):
    """Body of ``POST /groups``."""

    model_config = {"frozen": True}

    name: str
    parent_id: str | None = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _non_empty_name(value)

    @field_validator("parent_id")
    @classmethod
    def check_parent_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _node_id(value)


class CreateUserRequest(BaseModel):
    """Body of ``POST /users``."""

    model_config = {"frozen": True}

    name: str
    email: str

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _non_empty_name(value)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not _EMAIL_PATTERN.match(value):
            msg = f"{value!r} is not a valid email address"
            raise ValueError(msg)
        return value


class AddUserToGroupRequest(BaseModel):
    """Body of ``POST /users/{id}/groups``."""

    model_config = {"frozen": True}

    group_id: str

    @field_validator("group_id")
    @classmethod
    def check_group_id(cls, value: str) -> str:
        return _node_id(value)


def validation_messages(exc: ValidationError) -> list[str]:
    """Flatten a pydantic ``ValidationError`` into ``field: message`` strings."""
    messages: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        msg = str(err.get("msg", "invalid value")).removeprefix("Value error, ")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return messages
