"""Tests for node id generation and validation."""

from __future__ import annotations

import uuid

import pytest

from orgtree.domain.ids import generate_node_id, normalize_node_id


class TestGenerateNodeId:
    def test_uuid4(self) -> None:
        value = generate_node_id()
        assert uuid.UUID(value).version == 4
        assert value == value.lower()

    def test_unique(self) -> None:
        assert len({generate_node_id() for _ in range(100)}) == 100


class TestNormalizeNodeId:
    def test_canonicalizes_case_and_whitespace(self) -> None:
        raw = "  6F9619FF-8B86-D011-B42D-00C04FC964FF "
        assert normalize_node_id(raw) == "6f9619ff-8b86-d011-b42d-00c04fc964ff"

    def test_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            normalize_node_id("not-a-uuid")
