"""Tests for node and closure value objects."""

from __future__ import annotations

from orgtree.domain.types import ClosureEdge, Node, NodeKind


class TestNodeKind:
    def test_values(self) -> None:
        assert str(NodeKind.USER) == "USER"
        assert NodeKind("GROUP") is NodeKind.GROUP


class TestNode:
    def test_to_dict_uses_plain_kind(self) -> None:
        node = Node(
            id="n1",
            kind=NodeKind.USER,
            name="Ada",
            email="ada@example.com",
            created_at="2024-01-01T00:00:00+00:00",
            updated_at="2024-01-01T00:00:00+00:00",
        )
        data = node.to_dict()
        assert data["kind"] == "USER"
        assert type(data["kind"]) is str
        assert data["email"] == "ada@example.com"


class TestClosureEdge:
    def test_is_self(self) -> None:
        assert ClosureEdge("a", "a", 0).is_self
        assert not ClosureEdge("a", "b", 1).is_self
