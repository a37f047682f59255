"""Tests for workspace and profile routes."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.services.workspace import next_order


def _create(client: TestClient, headers: dict, name: str = "Work") -> dict:
    response = client.post("/v1/workspace", json={"name": name}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestWorkspaces:
    def test_create(self, client, auth_headers, user) -> None:
        data = _create(client, auth_headers)
        assert data["name"] == "Work"
        assert data["order"] == 0
        assert data["services"] == []
        assert data["userId"] == user.id
        assert data["id"]

    def test_order_is_max_plus_one(self, client, auth_headers) -> None:
        first = _create(client, auth_headers, "One")
        _create(client, auth_headers, "Two")
        client.delete(f"/v1/workspace/{first['id']}", headers=auth_headers)
        # Deleting does not free a position for reuse
        assert _create(client, auth_headers, "Three")["order"] == 2

    def test_next_order_starts_at_zero(self, db, user) -> None:
        assert next_order(db, user) == 0

    def test_missing_name(self, client, auth_headers) -> None:
        response = client.post("/v1/workspace", json={}, headers=auth_headers)
        assert response.status_code == 422

    def test_list_sorted_by_order(self, client, auth_headers) -> None:
        _create(client, auth_headers, "One")
        _create(client, auth_headers, "Two")
        response = client.get("/v1/workspace", headers=auth_headers)
        assert response.status_code == 200
        assert [w["name"] for w in response.json()] == ["One", "Two"]

    def test_edit_replaces_name_and_members(self, client, auth_headers) -> None:
        service = client.post(
            "/v1/service", json={"name": "Slack", "recipeId": "slack"}, headers=auth_headers
        ).json()["data"]
        workspace = _create(client, auth_headers)
        response = client.put(
            f"/v1/workspace/{workspace['id']}",
            json={"name": "Office", "services": [service["id"]]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Office"
        assert data["services"] == [service["id"]]
        assert data["order"] == workspace["order"]

    def test_edit_requires_services(self, client, auth_headers) -> None:
        workspace = _create(client, auth_headers)
        response = client.put(
            f"/v1/workspace/{workspace['id']}", json={"name": "Office"}, headers=auth_headers
        )
        assert response.status_code == 422

    def test_edit_unknown(self, client, auth_headers) -> None:
        response = client.put(
            "/v1/workspace/nope", json={"name": "X", "services": []}, headers=auth_headers
        )
        assert response.status_code == 404
        assert response.json()["code"] == "workspace-not-found"

    def test_delete(self, client, auth_headers) -> None:
        workspace = _create(client, auth_headers)
        response = client.delete(f"/v1/workspace/{workspace['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get("/v1/workspace", headers=auth_headers).json() == []

    def test_delete_unknown(self, client, auth_headers) -> None:
        assert client.delete("/v1/workspace/nope", headers=auth_headers).status_code == 404


class TestProfile:
    def test_me(self, client, auth_headers, user) -> None:
        response = client.get("/v1/me", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(user.id)
        assert data["email"] == user.email
        assert data["firstname"] == "Jane"
        assert data["lastname"] == "Doe"
        assert data["isPremium"] is True

    def test_update_me_merges_settings(self, client, auth_headers) -> None:
        client.put("/v1/me", json={"locale": "de-DE"}, headers=auth_headers)
        response = client.put("/v1/me", json={"darkMode": True}, headers=auth_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == ["data-updated"]
        assert body["data"]["locale"] == "de-DE"
        assert body["data"]["darkMode"] is True

        me = client.get("/v1/me", headers=auth_headers).json()
        assert me["locale"] == "de-DE"
