from __future__ import annotations

from fastapi.testclient import TestClient

from itkit.auth.crud import count_users
from itkit.auth.security import create_access_token

from conftest import ADMIN_EMAIL, bearer


def _register(client: TestClient, **overrides):
    payload = {"email": "new.user@example.com", "password": "hunter22", "full_name": "New User"}
    payload.update(overrides)
    return client.post("/api/auth/register", json=payload)


def test_health_and_info(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.json()["message"] == "ITKit Backend API is running"

    r = client.get("/api")
    assert r.json() == {"message": "Welcome to ITKit API", "version": "1.0.0"}


def test_unknown_route_is_enveloped_404(client: TestClient):
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert r.json() == {"success": False, "error": "Route not found"}


def test_bootstrap_admin_exists(client: TestClient, db):
    assert count_users(db) == 1
    r = client.post("/api/auth/login", json={"email": ADMIN_EMAIL.upper(), "password": "admin123"})
    assert r.status_code == 200
    assert r.json()["data"]["user"]["role"] == "admin"


def test_register_returns_user_and_token(client: TestClient):
    r = _register(client)
    assert r.status_code == 201
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "User registered successfully"
    assert body["data"]["user"]["email"] == "new.user@example.com"
    assert body["data"]["user"]["role"] == "user"
    assert "password_hash" not in body["data"]["user"]
    assert body["data"]["token"]


def test_register_validation_messages(client: TestClient):
    assert _register(client, email="nope").json()["error"] == "Invalid email format"
    assert _register(client, password="123").json()["error"] == "Password must be at least 6 characters long"
    assert _register(client, full_name="A").json()["error"] == "Full name must be at least 2 characters long"


def test_duplicate_email_is_rejected_without_new_row(client: TestClient, db):
    assert _register(client).status_code == 201
    before = count_users(db)

    r = _register(client, email="New.User@Example.com", full_name="Someone Else")
    assert r.status_code == 400
    assert r.json()["error"] == "User with this email already exists"
    assert count_users(db) == before


def test_login_errors(client: TestClient):
    r = client.post("/api/auth/login", json={"email": "", "password": ""})
    assert (r.status_code, r.json()["error"]) == (400, "Email and password are required")

    r = client.post("/api/auth/login", json={"email": "bad", "password": "x"})
    assert (r.status_code, r.json()["error"]) == (400, "Invalid email format")

    r = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": "wrong-pass"})
    assert (r.status_code, r.json()["error"]) == (401, "Invalid email or password")

    r = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "whatever"})
    assert (r.status_code, r.json()["error"]) == (401, "Invalid email or password")


def test_profile_requires_token(client: TestClient):
    r = client.get("/api/auth/profile")
    assert (r.status_code, r.json()["error"]) == (401, "No token provided")

    r = client.get("/api/auth/profile", headers=bearer("garbage"))
    assert (r.status_code, r.json()["error"]) == (401, "Invalid or expired token")


def test_token_for_deleted_user_is_rejected(client: TestClient, cfg):
    token = create_access_token(
        secret=cfg.AUTH_JWT_SECRET, user_id="missing-id", email="x@y.co", role="admin", expires_minutes=5
    )
    r = client.get("/api/auth/profile", headers=bearer(token))
    assert (r.status_code, r.json()["error"]) == (401, "User not found")


def test_token_signed_with_other_secret_is_rejected(client: TestClient, cfg, user_token):
    profile = client.get("/api/auth/profile", headers=bearer(user_token)).json()["data"]
    token = create_access_token(
        secret=cfg.AUTH_JWT_SECRET, user_id=profile["id"], email=profile["email"], role="user", expires_minutes=1
    )
    assert client.get("/api/auth/profile", headers=bearer(token)).status_code == 200

    stale = create_access_token(
        secret="some-other-secret", user_id=profile["id"], email=profile["email"], role="user", expires_minutes=5
    )
    assert client.get("/api/auth/profile", headers=bearer(stale)).status_code == 401


def test_update_profile(client: TestClient, user_token):
    r = client.put("/api/auth/profile", json={"full_name": "X"}, headers=bearer(user_token))
    assert (r.status_code, r.json()["error"]) == (400, "Full name must be at least 2 characters long")

    r = client.put("/api/auth/profile", json={"full_name": "  Riley R.  "}, headers=bearer(user_token))
    assert r.status_code == 200
    assert r.json()["data"]["full_name"] == "Riley R."
    assert client.get("/api/auth/profile", headers=bearer(user_token)).json()["data"]["full_name"] == "Riley R."
