"""
Integration tests for the admin back-office API

Tests:
- Login / logout with Redis-backed admin sessions
- Admin user management
- Site settings envelope and profile
- App users, usage, metrics and message trend
"""

import pytest
from datetime import timedelta
from uuid import uuid4

from chatapp.config import settings
from chatapp.core.security import hash_password
from chatapp.models.admin import AdminUser
from chatapp.models.user import User
from chatapp.utils.datetime_utils import utcnow
from tests.conftest import make_chat, make_message, make_user


def _add_admin(db_session, email, role="admin", status="active", name=None):
    admin = AdminUser(id=uuid4(), email=email, name=name, role=role, status=status)
    db_session.add(admin)
    db_session.commit()
    db_session.refresh(admin)
    return admin


@pytest.mark.integration
class TestAdminSession:
    """Integration tests for admin login, logout and session checks"""

    def test_login(self, client, admin_user, admin_store):
        response = client.post("/api/admin/login", json={"email": "Admin@Example.com"})

        assert response.status_code == 200
        assert response.json()["email"] == admin_user.email
        assert "password" not in response.json()
        assert "passwordHash" not in response.json()

        session_id = response.cookies.get(settings.ADMIN_SESSION_COOKIE_NAME)
        assert admin_store.get(session_id) == str(admin_user.id)

    def test_login_checks_stored_password(self, client, db_session):
        admin = _add_admin(db_session, "owner@example.com")
        admin.password_hash = hash_password("secret1")
        db_session.commit()

        wrong = client.post("/api/admin/login", json={"email": "owner@example.com", "password": "nope"})
        missing = client.post("/api/admin/login", json={"email": "owner@example.com"})
        correct = client.post("/api/admin/login", json={"email": "owner@example.com", "password": "secret1"})

        assert wrong.status_code == 401
        assert missing.status_code == 401
        assert correct.status_code == 200
        assert correct.json()["email"] == "owner@example.com"

    def test_login_unknown_email(self, client):
        response = client.post("/api/admin/login", json={"email": "nobody@example.com"})
        assert response.status_code == 401

    def test_login_invalid_email(self, client):
        response = client.post("/api/admin/login", json={"email": "not-an-email"})
        assert response.status_code == 400

    @pytest.mark.parametrize("role,status", [("admin", "disabled"), ("user", "active")])
    def test_login_forbidden(self, client, db_session, role, status):
        _add_admin(db_session, "staff@example.com", role=role, status=status)

        response = client.post("/api/admin/login", json={"email": "staff@example.com"})

        assert response.status_code == 403

    def test_requires_session(self, client):
        assert client.get("/api/admin/users").status_code == 401

    def test_unknown_session(self, client):
        client.cookies.set(settings.ADMIN_SESSION_COOKIE_NAME, "not-a-session")
        assert client.get("/api/admin/users").status_code == 401

    def test_disabled_admin_loses_access(self, admin_client, db_session, admin_user):
        admin_user.status = "disabled"
        db_session.commit()

        assert admin_client.get("/api/admin/users").status_code == 401

    def test_logout(self, admin_client, admin_store, fake_redis):
        response = admin_client.post("/api/admin/logout")

        assert response.status_code == 200
        assert fake_redis.values == {}


@pytest.mark.integration
class TestAdminUsers:
    """Integration tests for /api/admin/users"""

    def test_list(self, admin_client, db_session):
        _add_admin(db_session, "alice@example.com", role="user", name="Alice")

        response = admin_client.get("/api/admin/users")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["page"] == 1
        assert data["totalPages"] == 1

    def test_search_and_filters(self, admin_client, db_session):
        _add_admin(db_session, "alice@example.com", role="user", name="Alice")
        _add_admin(db_session, "bob@example.com", role="user", status="disabled", name="Bob")

        by_name = admin_client.get("/api/admin/users?search=ALI").json()
        assert [u["email"] for u in by_name["users"]] == ["alice@example.com"]

        disabled = admin_client.get("/api/admin/users?status=disabled").json()
        assert [u["email"] for u in disabled["users"]] == ["bob@example.com"]

        admins = admin_client.get("/api/admin/users?role=admin").json()
        assert [u["email"] for u in admins["users"]] == ["admin@example.com"]

    def test_pagination(self, admin_client, db_session):
        for i in range(4):
            _add_admin(db_session, f"staff{i}@example.com", role="user")

        data = admin_client.get("/api/admin/users?page=2&limit=2").json()

        assert data["total"] == 5
        assert data["totalPages"] == 3
        assert len(data["users"]) == 2

    def test_create(self, admin_client, db_session):
        response = admin_client.post(
            "/api/admin/users",
            json={"email": "New@Example.com", "name": "New", "password": "secret1"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "new@example.com"
        assert data["role"] == "user"
        assert data["status"] == "active"

        stored = db_session.query(AdminUser).filter(AdminUser.email == "new@example.com").one()
        assert stored.password_hash and stored.password_hash != "secret1"

    def test_create_duplicate(self, admin_client):
        response = admin_client.post("/api/admin/users", json={"email": "admin@example.com"})
        assert response.status_code == 409

    @pytest.mark.parametrize("payload", [
        {"email": "bad-email"},
        {"email": "ok@example.com", "role": "owner"},
        {"email": "ok@example.com", "status": "paused"},
    ])
    def test_create_invalid(self, admin_client, payload):
        assert admin_client.post("/api/admin/users", json=payload).status_code == 400

    def test_get(self, admin_client, admin_user):
        response = admin_client.get(f"/api/admin/users/{admin_user.id}")
        assert response.status_code == 200
        assert response.json()["id"] == str(admin_user.id)

    def test_get_missing(self, admin_client):
        assert admin_client.get(f"/api/admin/users/{uuid4()}").status_code == 404

    def test_update(self, admin_client, db_session):
        staff = _add_admin(db_session, "staff@example.com", role="user")

        response = admin_client.patch(
            f"/api/admin/users/{staff.id}",
            json={"role": "admin", "name": "Staff"},
        )

        assert response.status_code == 200
        assert response.json()["role"] == "admin"
        assert response.json()["name"] == "Staff"

    def test_update_empty_body(self, admin_client, admin_user):
        response = admin_client.patch(f"/api/admin/users/{admin_user.id}", json={})
        assert response.status_code == 400

    @pytest.mark.parametrize("payload", [{"email": None}, {"role": None, "status": None}])
    def test_update_only_null_fields(self, admin_client, admin_user, payload):
        response = admin_client.patch(f"/api/admin/users/{admin_user.id}", json=payload)
        assert response.status_code == 400

    def test_update_duplicate_email(self, admin_client, db_session):
        staff = _add_admin(db_session, "staff@example.com", role="user")

        response = admin_client.patch(f"/api/admin/users/{staff.id}", json={"email": "admin@example.com"})

        assert response.status_code == 409

    def test_delete(self, admin_client, db_session):
        staff_id = _add_admin(db_session, "staff@example.com", role="user").id

        response = admin_client.delete(f"/api/admin/users/{staff_id}")

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.query(AdminUser).filter(AdminUser.id == staff_id).first() is None

    def test_delete_missing(self, admin_client):
        assert admin_client.delete(f"/api/admin/users/{uuid4()}").status_code == 404


@pytest.mark.integration
class TestAdminSettings:
    """Integration tests for site settings and profile"""

    def test_defaults(self, admin_client):
        response = admin_client.get("/api/admin/settings")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["data"]["siteName"] == "Admin Panel"
        assert body["data"]["allowSignup"] is True
        assert body["data"]["dailyTokenLimit"] == 20000

    def test_update(self, admin_client):
        response = admin_client.patch(
            "/api/admin/settings",
            json={"siteName": "  Control Room ", "dailyTokenLimit": 500},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["siteName"] == "Control Room"
        assert data["dailyTokenLimit"] == 500
        assert data["allowSignup"] is True

    @pytest.mark.parametrize("payload", [
        {"dailyTokenLimit": -1},
        {"dailyTokenLimit": 1.5},
        {"allowSignup": "yes"},
        {"siteName": "   "},
        {},
    ])
    def test_invalid_update(self, admin_client, payload):
        response = admin_client.patch("/api/admin/settings", json=payload)

        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert body["error"]

    def test_profile(self, admin_client, admin_user):
        response = admin_client.patch("/api/admin/profile", json={"name": "  Root  "})

        assert response.status_code == 200
        assert response.json()["name"] == "Root"

    def test_profile_blank_name(self, admin_client):
        assert admin_client.patch("/api/admin/profile", json={"name": " "}).status_code == 400


@pytest.mark.integration
class TestAdminAppUsers:
    """Integration tests for app users, usage, metrics and trends"""

    def test_list_app_users(self, admin_client, db_session, test_user, guest_user):
        response = admin_client.get("/api/admin/app-users")

        assert response.status_code == 200
        assert response.json()["total"] == 2

        guests = admin_client.get("/api/admin/app-users?type=guest").json()
        assert [u["id"] for u in guests["users"]] == [str(guest_user.id)]

        found = admin_client.get("/api/admin/app-users?search=TEST@").json()
        assert [u["email"] for u in found["users"]] == ["test@example.com"]

    def test_app_user_detail(self, admin_client, db_session, test_user):
        chat = make_chat(db_session, test_user, title="Planning")
        make_message(db_session, chat, role="user")
        make_message(db_session, chat, role="assistant")

        response = admin_client.get(f"/api/admin/app-users/{test_user.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == "test@example.com"
        assert data["usage"]["totalChats"] == 1
        assert data["usage"]["totalMessages"] == 2
        assert data["usage"]["lastActivity"] is not None
        assert data["recentChats"][0]["title"] == "Planning"
        assert data["recentChats"][0]["messageCount"] == 2

    def test_app_user_missing(self, admin_client):
        assert admin_client.get(f"/api/admin/app-users/{uuid4()}").status_code == 404

    def test_toggle_status(self, admin_client, db_session, test_user):
        first = admin_client.post(f"/api/admin/app-users/{test_user.id}/toggle-status")
        assert first.json()["status"] == "banned"

        second = admin_client.post(f"/api/admin/app-users/{test_user.id}/toggle-status")
        assert second.json()["status"] == "active"

        db_session.expire_all()
        assert db_session.query(User).filter(User.id == test_user.id).one().status == "active"

    def test_usage(self, admin_client, db_session, test_user, other_user):
        older = make_chat(db_session, other_user, created_at=utcnow() - timedelta(days=2))
        make_message(db_session, older, created_at=utcnow() - timedelta(days=2))
        make_message(db_session, make_chat(db_session, test_user))
        make_user(db_session, email="idle@example.com")

        response = admin_client.get("/api/admin/usage")

        assert response.status_code == 200
        rows = response.json()
        assert [r["email"] for r in rows] == ["test@example.com", "other@example.com"]
        assert rows[0]["totalChats"] == 1
        assert rows[0]["totalMessages"] == 1

    def test_metrics(self, admin_client, db_session, test_user, other_user):
        make_message(db_session, make_chat(db_session, test_user))
        old_chat = make_chat(db_session, other_user, created_at=utcnow() - timedelta(days=30))
        make_message(db_session, old_chat, created_at=utcnow() - timedelta(days=30))

        response = admin_client.get("/api/admin/metrics")

        assert response.status_code == 200
        assert response.json() == {
            "totalUsers": 2,
            "activeUsersLast7Days": 1,
            "totalChats": 2,
            "totalMessages": 2,
        }

    def test_message_trend(self, admin_client, db_session, test_user):
        chat = make_chat(db_session, test_user)
        make_message(db_session, chat)
        make_message(db_session, chat, created_at=utcnow() - timedelta(days=2))
        make_message(db_session, chat, created_at=utcnow() - timedelta(days=20))

        response = admin_client.get("/api/admin/message-trend?days=7")

        assert response.status_code == 200
        points = response.json()
        assert len(points) == 7
        assert points[-1]["date"] == utcnow().date().isoformat()
        assert points[-1]["count"] == 1
        assert sum(p["count"] for p in points) == 2

    def test_message_trend_default_window(self, admin_client):
        assert len(admin_client.get("/api/admin/message-trend").json()) == 30
