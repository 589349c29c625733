"""
tests/test_api.py — End-to-end route tests with FastAPI's TestClient.

Every request gets its own session on the shared in-memory database, and
background review processing is pointed at the same database, so a
submitted review is already processed when the POST returns.
"""

import pytest
from fastapi.testclient import TestClient

from api.main import app
from app.db.session import get_db
from app.services.auth_service import create_access_token


@pytest.fixture
def client(db, background_sessions, superadmin, head, member, technical_criteria):
    def override_get_db():
        session = background_sessions()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    db.commit()
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


LEAD = {"name": "Suresh Iyer", "phone": "+91 9876543210", "state": "Kerala"}
CODE_SNIPPET = "This function wraps a class and runs a loop over the input."


# ── System ────────────────────────────────────────────────────────────────────

class TestSystem:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/docs"


# ── Auth ──────────────────────────────────────────────────────────────────────

class TestAuthRoutes:
    def test_login_and_me(self, client, member):
        response = client.post("/auth/login", json={"email": member.email, "password": "secret123"})
        assert response.status_code == 200
        token = response.json()["token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["username"] == "member"
        assert me.json()["role"] == "department_user"

    def test_login_wrong_password(self, client, member):
        response = client.post("/auth/login", json={"email": member.email, "password": "bad"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_missing_token(self, client):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authorized to access this route"

    def test_garbage_token(self, client):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_register_department_user(self, client, head):
        payload = {
            "username": "newrep",
            "email": "newrep@example.com",
            "password": "secret123",
            "department_type": "telesales",
            "company_name": "Acme",
            "role": "department_user",
            "head_user": head.email,
        }
        response = client.post("/auth/register", json=payload)
        assert response.status_code == 201
        assert response.json()["head_user_id"] == head.id

        again = client.post("/auth/register", json=payload)
        assert again.status_code == 409

    def test_register_rejects_bad_username(self, client):
        payload = {
            "username": "no spaces!",
            "email": "x@example.com",
            "password": "secret123",
            "department_type": "telesales",
            "company_name": "Acme",
            "role": "department_head",
        }
        assert client.post("/auth/register", json=payload).status_code == 422

    def test_head_impersonates_member(self, client, head, member):
        response = client.post("/auth/impersonate", json={"email": member.email}, headers=auth(head))
        assert response.status_code == 200
        token = response.json()["token"]
        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["id"] == member.id

    def test_member_cannot_impersonate(self, client, head, member):
        response = client.post("/auth/impersonate", json={"email": head.email}, headers=auth(member))
        assert response.status_code == 403
        assert response.json()["detail"] == "User role department_user is not authorized to access this route"

    def test_change_password(self, client, member):
        response = client.put(
            "/auth/change-password",
            json={"current_password": "secret123", "new_password": "fresh-pass"},
            headers=auth(member),
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully"

        login = client.post("/auth/login", json={"email": member.email, "password": "fresh-pass"})
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client, member):
        response = client.put(
            "/auth/change-password",
            json={"current_password": "nope", "new_password": "fresh-pass"},
            headers=auth(member),
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Current password is incorrect"

    def test_change_password_requires_login(self, client):
        response = client.put(
            "/auth/change-password", json={"current_password": "a", "new_password": "fresh-pass"}
        )
        assert response.status_code == 401


# ── Leads ─────────────────────────────────────────────────────────────────────

class TestLeadRoutes:
    def test_create_and_list(self, client, member):
        created = client.post("/leads/", json=LEAD, headers=auth(member))
        assert created.status_code == 201
        assert created.json()["connected_status"] == "pending"

        listing = client.get("/leads/", params={"search": "suresh"}, headers=auth(member))
        body = listing.json()
        assert body["pagination"]["total"] == 1
        assert body["leads"][0]["name"] == "Suresh Iyer"
        assert body["stats"]["pending"] == 1

    def test_invalid_phone_rejected(self, client, member):
        response = client.post("/leads/", json={**LEAD, "phone": "12345"}, headers=auth(member))
        assert response.status_code == 422

    def test_invisible_lead_is_404(self, client, head, member):
        lead_id = client.post("/leads/", json=LEAD, headers=auth(head)).json()["id"]
        assert client.get(f"/leads/{lead_id}", headers=auth(member)).status_code == 404
        assert client.get(f"/leads/{lead_id}", headers=auth(head)).status_code == 200

    def test_update_and_delete(self, client, member):
        lead_id = client.post("/leads/", json=LEAD, headers=auth(member)).json()["id"]

        updated = client.put(
            f"/leads/{lead_id}", json={"connected_status": "connected"}, headers=auth(member)
        )
        assert updated.json()["connected_status"] == "connected"

        assert client.put(f"/leads/{lead_id}", json={}, headers=auth(member)).status_code == 400
        assert client.delete(f"/leads/{lead_id}", headers=auth(member)).status_code == 200
        assert client.get(f"/leads/{lead_id}", headers=auth(member)).status_code == 404

    def test_transfer(self, client, head, member):
        lead_id = client.post("/leads/", json=LEAD, headers=auth(member)).json()["id"]
        response = client.post(
            f"/leads/{lead_id}/transfer",
            json={"transferred_to": head.id, "reason": "escalation"},
            headers=auth(member),
        )
        assert response.status_code == 200
        assert response.json()["transferred_to_id"] == head.id

    def test_import_and_stats(self, client, member):
        rows = [{"name": f"Lead {i}", "phone": "9876543210"} for i in range(3)]
        response = client.post("/leads/import", json={"leads": rows}, headers=auth(member))
        assert response.status_code == 201
        assert response.json()["imported_count"] == 3

        stats = client.get("/leads/stats", headers=auth(member)).json()
        assert stats["total"] == 3

    def test_empty_import_rejected(self, client, member):
        assert client.post("/leads/import", json={"leads": []}, headers=auth(member)).status_code == 422


# ── Reviews ──────────────────────────────────────────────────────────────────

class TestReviewRoutes:
    def submit(self, client, user, **overrides):
        payload = {"title": "Snippet", "content": CODE_SNIPPET, "category": "technical", **overrides}
        return client.post("/reviews/submit", json=payload, headers=auth(user))

    def test_submit_then_fetch_result(self, client, member):
        response = self.submit(client, member)
        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        review_id = response.json()["id"]

        detail = client.get(f"/reviews/{review_id}", headers=auth(member)).json()
        assert detail["status"] == "completed"
        assert detail["overall_score"] == 0.77
        assert detail["feedback"] == "Review completed successfully"
        assert [s["criterion_name"] for s in detail["scores"]] == ["Code Quality", "Security"]
        assert detail["user"]["username"] == "member"

    def test_content_too_short(self, client, member):
        assert self.submit(client, member, content="tiny").status_code == 422

    def test_list_is_owner_scoped(self, client, head, member):
        self.submit(client, member)
        self.submit(client, head)
        body = client.get("/reviews/", headers=auth(member)).json()
        assert body["pagination"]["total"] == 1

    def test_completed_review_cannot_be_edited(self, client, member):
        review_id = self.submit(client, member).json()["id"]
        response = client.put(f"/reviews/{review_id}", json={"title": "Edited"}, headers=auth(member))
        assert response.status_code == 400

    def test_delete(self, client, member):
        review_id = self.submit(client, member).json()["id"]
        assert client.delete(f"/reviews/{review_id}", headers=auth(member)).status_code == 200
        assert client.get(f"/reviews/{review_id}", headers=auth(member)).status_code == 404

    def test_other_users_review_is_404(self, client, head, member):
        review_id = self.submit(client, member).json()["id"]
        assert client.get(f"/reviews/{review_id}", headers=auth(head)).status_code == 404


# ── Admin ────────────────────────────────────────────────────────────────────

class TestAdminRoutes:
    def test_requires_superadmin(self, client, head):
        response = client.get("/admin/stats", headers=auth(head))
        assert response.status_code == 403

    def test_stats(self, client, superadmin, member):
        client.post(
            "/reviews/submit",
            json={"title": "Snippet", "content": CODE_SNIPPET, "category": "technical"},
            headers=auth(member),
        )
        stats = client.get("/admin/stats", headers=auth(superadmin)).json()
        assert stats["total_users"] == 3
        assert stats["completed_reviews"] == 1
        assert stats["by_category"][0] == {"category": "technical", "count": 1, "avg_score": 0.77}

    def test_list_users_by_role(self, client, superadmin):
        body = client.get("/admin/users", params={"role": "department_head"}, headers=auth(superadmin)).json()
        assert [u["username"] for u in body["users"]] == ["head"]

    def test_deactivated_user_is_locked_out(self, client, superadmin, member):
        response = client.put(
            f"/admin/users/{member.id}/status", json={"is_active": False}, headers=auth(superadmin)
        )
        assert response.status_code == 200
        assert response.json()["is_active"] is False
        assert client.get("/auth/me", headers=auth(member)).status_code == 401

    def test_reviews_and_criteria(self, client, superadmin, member):
        review_id = client.post(
            "/reviews/submit",
            json={"title": "Snippet", "content": CODE_SNIPPET, "category": "technical"},
            headers=auth(member),
        ).json()["id"]

        listing = client.get("/admin/reviews", params={"status": "completed"}, headers=auth(superadmin)).json()
        assert listing["reviews"][0]["user"]["email"] == member.email

        detail = client.get(f"/admin/reviews/{review_id}", headers=auth(superadmin)).json()
        assert len(detail["scores"]) == 2

        criteria = client.get("/admin/criteria", params={"category": "technical"}, headers=auth(superadmin)).json()
        assert [c["name"] for c in criteria] == ["Code Quality", "Security"]


# ── Department users ─────────────────────────────────────────────────────────

class TestDepartmentUserRoutes:
    BASE = "/admin/department-users"

    def test_requires_superadmin(self, client, head):
        assert client.get(f"{self.BASE}/", headers=auth(head)).status_code == 403

    def test_create_get_and_list(self, client, superadmin, head):
        payload = {
            "username": "rep",
            "email": "rep@example.com",
            "password": "secret123",
            "department_type": "telesales",
            "company_name": "Acme",
            "role": "department_user",
            "head_user": head.email,
        }
        created = client.post(f"{self.BASE}/", json=payload, headers=auth(superadmin))
        assert created.status_code == 201
        user_id = created.json()["id"]
        assert created.json()["head_user_id"] == head.id

        assert client.post(f"{self.BASE}/", json=payload, headers=auth(superadmin)).status_code == 409

        fetched = client.get(f"{self.BASE}/{user_id}", headers=auth(superadmin))
        assert fetched.json()["username"] == "rep"

        listing = client.get(
            f"{self.BASE}/", params={"role": "department_user"}, headers=auth(superadmin)
        ).json()
        assert {u["username"] for u in listing["users"]} == {"member", "rep"}

    def test_second_head_for_department_rejected(self, client, superadmin, head):
        payload = {
            "username": "rival",
            "email": "rival@example.com",
            "password": "secret123",
            "department_type": "telesales",
            "company_name": "Acme",
            "role": "department_head",
        }
        response = client.post(f"{self.BASE}/", json=payload, headers=auth(superadmin))
        assert response.status_code == 400

    def test_stats(self, client, superadmin):
        stats = client.get(f"{self.BASE}/stats", headers=auth(superadmin)).json()
        assert stats["total_users"] == 2
        assert stats["by_department"][0]["department_type"] == "telesales"

    def test_heads_and_users_under_head(self, client, superadmin, head, member):
        heads = client.get(f"{self.BASE}/heads/Acme/telesales", headers=auth(superadmin)).json()
        assert [h["id"] for h in heads] == [head.id]

        users = client.get(f"{self.BASE}/under-head/{head.id}", headers=auth(superadmin)).json()
        assert [u["id"] for u in users] == [member.id]

        assert client.get(f"{self.BASE}/under-head/{member.id}", headers=auth(superadmin)).status_code == 404

    def test_update(self, client, superadmin, member):
        response = client.put(
            f"{self.BASE}/{member.id}", json={"username": "renamed", "target": 9}, headers=auth(superadmin)
        )
        assert response.status_code == 200
        assert response.json()["username"] == "renamed"
        assert response.json()["target"] is None

    def test_superadmin_is_not_listed_or_fetched(self, client, superadmin):
        assert client.get(f"{self.BASE}/{superadmin.id}", headers=auth(superadmin)).status_code == 404

    def test_delete_order(self, client, superadmin, head, member):
        assert client.delete(f"{self.BASE}/{head.id}", headers=auth(superadmin)).status_code == 400
        assert client.delete(f"{self.BASE}/{member.id}", headers=auth(superadmin)).status_code == 200
        assert client.delete(f"{self.BASE}/{head.id}", headers=auth(superadmin)).status_code == 200
        assert client.get(f"{self.BASE}/{head.id}", headers=auth(superadmin)).status_code == 404
