"""
Integration tests for prompt templates, user settings and stats

Tests:
- /api/templates CRUD
- GET/PUT /api/settings
- GET /api/stats
"""

import pytest
from uuid import uuid4

from chatapp.models.prompt_template import PromptTemplate
from tests.conftest import auth_headers, make_chat, make_message


@pytest.mark.integration
class TestTemplatesAPI:
    """Integration tests for /api/templates"""

    def _create(self, client, user, **overrides):
        payload = {"name": "Summarize", "content": "Summarize the following text", **overrides}
        return client.post("/api/templates", json=payload, headers=auth_headers(user))

    def test_create_template(self, client, test_user):
        response = self._create(client, test_user, description="  Short summary  ", isFavorite=True)

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Summarize"
        assert data["description"] == "Short summary"
        assert data["isFavorite"] is True
        assert data["userId"] == str(test_user.id)

    def test_list_templates(self, client, test_user, other_user):
        self._create(client, test_user, name="Mine")
        self._create(client, other_user, name="Theirs")

        response = client.get("/api/templates", headers=auth_headers(test_user))

        assert response.status_code == 200
        assert [t["name"] for t in response.json()] == ["Mine"]

    @pytest.mark.parametrize("overrides", [
        {"name": "   "},
        {"content": ""},
        {"isFavorite": "yes"},
    ])
    def test_create_invalid(self, client, test_user, overrides):
        response = self._create(client, test_user, **overrides)
        assert response.status_code == 400

    def test_partial_update(self, client, test_user):
        template_id = self._create(client, test_user).json()["id"]

        response = client.put(
            f"/api/templates/{template_id}",
            json={"isFavorite": True},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["isFavorite"] is True
        assert data["name"] == "Summarize"
        assert data["content"] == "Summarize the following text"

    def test_update_blank_name(self, client, test_user):
        template_id = self._create(client, test_user).json()["id"]

        response = client.put(
            f"/api/templates/{template_id}",
            json={"name": ""},
            headers=auth_headers(test_user),
        )

        assert response.status_code == 400

    def test_delete_template(self, client, db_session, test_user):
        template_id = self._create(client, test_user).json()["id"]

        response = client.delete(f"/api/templates/{template_id}", headers=auth_headers(test_user))

        assert response.status_code == 204
        assert db_session.query(PromptTemplate).count() == 0

    def test_other_users_template(self, client, test_user, other_user):
        template_id = self._create(client, test_user).json()["id"]
        headers = auth_headers(other_user)

        assert client.get(f"/api/templates/{template_id}", headers=headers).status_code == 404
        assert client.put(f"/api/templates/{template_id}", json={"name": "x"}, headers=headers).status_code == 404
        assert client.delete(f"/api/templates/{template_id}", headers=headers).status_code == 404

    def test_missing_template(self, client, test_user):
        response = client.get(f"/api/templates/{uuid4()}", headers=auth_headers(test_user))
        assert response.status_code == 404

    def test_requires_session(self, client):
        assert client.get("/api/templates").status_code == 401


@pytest.mark.integration
class TestSettingsAPI:
    """Integration tests for /api/settings"""

    def test_defaults(self, client, test_user):
        response = client.get("/api/settings", headers=auth_headers(test_user))

        assert response.status_code == 200
        assert response.json() == {
            "model": None,
            "temperature": None,
            "maxTokens": None,
            "useTemplatesAsSystem": True,
        }

    def test_upsert(self, client, test_user):
        headers = auth_headers(test_user)

        first = client.put("/api/settings", json={"temperature": 0.3, "maxTokens": 512}, headers=headers)
        assert first.status_code == 200

        second = client.put("/api/settings", json={"useTemplatesAsSystem": False}, headers=headers)
        data = second.json()
        assert data["temperature"] == 0.3
        assert data["maxTokens"] == 512
        assert data["useTemplatesAsSystem"] is False

        assert client.get("/api/settings", headers=headers).json() == data

    @pytest.mark.parametrize("payload", [
        {"temperature": 3},
        {"temperature": -0.1},
        {"maxTokens": 0},
        {"useTemplatesAsSystem": "no"},
    ])
    def test_invalid_settings(self, client, test_user, payload):
        response = client.put("/api/settings", json=payload, headers=auth_headers(test_user))
        assert response.status_code == 400

    def test_requires_session(self, client):
        assert client.get("/api/settings").status_code == 401


@pytest.mark.integration
class TestStatsAPI:
    """Integration tests for GET /api/stats"""

    def test_stats(self, client, db_session, test_user, other_user):
        chat = make_chat(db_session, test_user, title="Recent")
        make_message(db_session, chat, role="user")
        make_message(db_session, chat, role="assistant")
        make_message(db_session, make_chat(db_session, other_user), role="user")

        response = client.get("/api/stats", headers=auth_headers(test_user))

        assert response.status_code == 200
        data = response.json()
        assert data["totalSessions"] == 1
        assert data["totalMessages"] == 2
        assert len(data["last7Days"]) == 7
        assert data["last7Days"][-1]["messagesCount"] == 2
        assert [s["title"] for s in data["recentSessions"]] == ["Recent"]

    def test_empty_stats(self, client, test_user):
        data = client.get("/api/stats", headers=auth_headers(test_user)).json()

        assert data["totalSessions"] == 0
        assert data["totalMessages"] == 0
        assert all(day["messagesCount"] == 0 for day in data["last7Days"])
