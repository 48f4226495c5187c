"""Tests for the FastAPI HTTP surface."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from orgtree.api import create_app
from orgtree.config.settings import OrgSettings
from orgtree.plugins.builtins.metrics import get_metrics_plugin

_MISSING = "00000000-0000-4000-8000-000000000000"


@pytest.fixture
def client(settings: OrgSettings) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as c:
        yield c


def _post(client: TestClient, path: str, body: dict[str, Any]) -> dict[str, Any]:
    response = client.post(path, json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreate:
    def test_create_group_201(self, client: TestClient) -> None:
        data = _post(client, "/groups", {"name": "Eng"})
        assert data["kind"] == "GROUP"
        assert data["parent_id"] is None

    def test_camel_case_parent(self, client: TestClient) -> None:
        eng = _post(client, "/groups", {"name": "Eng"})
        backend = _post(client, "/groups", {"name": "Backend", "parentId": eng["id"]})
        assert backend["parent_id"] == eng["id"]

    def test_missing_parent_404(self, client: TestClient) -> None:
        response = client.post("/groups", json={"name": "X", "parent_id": _MISSING})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_create_user_and_duplicate_409(self, client: TestClient) -> None:
        _post(client, "/users", {"name": "John", "email": "john@x.com"})
        response = client.post("/users", json={"name": "John", "email": "john@x.com"})
        assert response.status_code == 409
        assert response.json()["error"]["message"] == "email already exists"

    def test_invalid_email_400(self, client: TestClient) -> None:
        response = client.post("/users", json={"name": "John", "email": "nope"})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_FAILED"

    def test_missing_field_400(self, client: TestClient) -> None:
        response = client.post("/users", json={"name": "John"})
        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_FAILED"
        assert error["detail"]["errors"][0].startswith("email:")


class TestMembership:
    def test_join_204_then_409(self, client: TestClient) -> None:
        eng = _post(client, "/groups", {"name": "Eng"})
        john = _post(client, "/users", {"name": "John", "email": "john@x.com"})

        first = client.post(f"/users/{john['id']}/groups", json={"groupId": eng["id"]})
        assert first.status_code == 204
        assert first.content == b""

        second = client.post(f"/users/{john['id']}/groups", json={"group_id": eng["id"]})
        assert second.status_code == 409

    def test_join_sibling_after_shared_parent(self, client: TestClient) -> None:
        eng = _post(client, "/groups", {"name": "Eng"})
        backend = _post(client, "/groups", {"name": "Backend", "parentId": eng["id"]})
        frontend = _post(client, "/groups", {"name": "Frontend", "parentId": eng["id"]})
        john = _post(client, "/users", {"name": "John", "email": "john@x.com"})

        path = f"/users/{john['id']}/groups"
        assert client.post(path, json={"groupId": backend["id"]}).status_code == 204
        assert client.post(path, json={"groupId": frontend["id"]}).status_code == 204

        orgs = client.get(f"/users/{john['id']}/organizations").json()
        assert [(o["name"], o["depth"]) for o in orgs] == [
            ("Backend", 1),
            ("Frontend", 1),
            ("Eng", 2),
        ]

    def test_wrong_kind_400(self, client: TestClient) -> None:
        eng = _post(client, "/groups", {"name": "Eng"})
        ops = _post(client, "/groups", {"name": "Ops"})
        response = client.post(f"/users/{ops['id']}/groups", json={"group_id": eng["id"]})
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "BAD_REQUEST"

    def test_missing_user_404(self, client: TestClient) -> None:
        eng = _post(client, "/groups", {"name": "Eng"})
        response = client.post(f"/users/{_MISSING}/groups", json={"group_id": eng["id"]})
        assert response.status_code == 404


class TestQueries:
    def test_scenario(self, client: TestClient) -> None:
        eng = _post(client, "/groups", {"name": "Eng"})
        backend = _post(client, "/groups", {"name": "Backend", "parentId": eng["id"]})
        john = _post(client, "/users", {"name": "John", "email": "john@x.com"})
        client.post(f"/users/{john['id']}/groups", json={"groupId": backend["id"]})

        ancestors = client.get(f"/nodes/{backend['id']}/ancestors")
        assert ancestors.status_code == 200
        assert [(a["name"], a["depth"]) for a in ancestors.json()] == [("Eng", 1)]

        orgs = client.get(f"/users/{john['id']}/organizations").json()
        assert orgs == [
            {"id": backend["id"], "name": "Backend", "depth": 1},
            {"id": eng["id"], "name": "Eng", "depth": 2},
        ]

        descendants = client.get(f"/nodes/{eng['id']}/descendants").json()
        assert [(d["name"], d["kind"], d["depth"]) for d in descendants] == [
            ("Backend", "GROUP", 1),
            ("John", "USER", 2),
        ]

    def test_get_node(self, client: TestClient) -> None:
        eng = _post(client, "/groups", {"name": "Eng"})
        response = client.get(f"/nodes/{eng['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Eng"

    def test_unknown_node_404(self, client: TestClient) -> None:
        assert client.get(f"/nodes/{_MISSING}/ancestors").status_code == 404
        assert client.get(f"/nodes/{_MISSING}").status_code == 404

    def test_invalid_id_400(self, client: TestClient) -> None:
        response = client.get("/nodes/not-a-uuid/descendants")
        assert response.status_code == 400

    def test_organizations_of_group_400(self, client: TestClient) -> None:
        eng = _post(client, "/groups", {"name": "Eng"})
        assert client.get(f"/users/{eng['id']}/organizations").status_code == 400


class TestMetricsEndpoint:
    def test_exposition(self, client: TestClient) -> None:
        _post(client, "/users", {"name": "John", "email": "john@x.com"})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "orgtree_user_created_total" in response.text

    def test_request_durations_by_route_template(self, client: TestClient) -> None:
        plugin = get_metrics_plugin("orgtree")
        labels = {"method": "GET", "route": "/nodes/{node_id}", "status_code": "200"}
        before = plugin.registry.get_sample_value(
            "orgtree_http_request_duration_seconds_count", labels
        ) or 0.0

        eng = _post(client, "/groups", {"name": "Eng"})
        client.get(f"/nodes/{eng['id']}")
        client.get(f"/nodes/{eng['id']}")

        after = plugin.registry.get_sample_value(
            "orgtree_http_request_duration_seconds_count", labels
        )
        assert after == before + 2
        assert 'route="/nodes/{node_id}"' in client.get("/metrics").text
