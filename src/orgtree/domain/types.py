"""Node kinds and the value objects exchanged between stores and services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class NodeKind(StrEnum):
    """The two kinds of node a hierarchy may contain."""

    USER = "USER"
    GROUP = "GROUP"


@dataclass(frozen=True)
class Node:
    """A persisted USER or GROUP entity."""

    id: str
    kind: NodeKind
    name: str
    email: str | None
    created_at: str
    updated_at: str

    def to_dict(self) -> dict[str, str | None]:
        return {
            "id": self.id,
            "kind": str(self.kind),
            "name": self.name,
            "email": self.email,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class ClosureEdge:
    """One row of the closure table: *ancestor_id* reaches *descendant_id* in *depth* hops."""

    ancestor_id: str
    descendant_id: str
    depth: int

    @property
    def is_self(self) -> bool:
        return self.ancestor_id == self.descendant_id
