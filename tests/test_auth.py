from datetime import datetime, timedelta, timezone

import jwt

from backend.auth import create_token
from conftest import PASSWORD


class TestSetupAndLogin:
    def test_status_reflects_setup(self, client):
        assert client.get("/api/auth/status").json() == {"isSetup": False}
        response = client.post("/api/auth/setup", json={"password": PASSWORD})
        assert response.status_code == 201
        body = response.json()
        assert len(body["id"]) == 32
        assert body["token"]
        assert client.get("/api/auth/status").json() == {"isSetup": True}

    def test_setup_only_once(self, client, auth_headers):
        response = client.post("/api/auth/setup", json={"password": "another"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Application has already been set up"

    def test_setup_rejects_empty_password(self, client):
        response = client.post("/api/auth/setup", json={"password": ""})
        assert response.status_code == 400
        assert client.get("/api/auth/status").json() == {"isSetup": False}

    def test_wrong_password_issues_no_token(self, client, auth_headers):
        response = client.post("/api/auth/login", json={"password": "nope"})
        assert response.status_code == 401
        assert "token" not in response.json()

    def test_login_before_setup_fails(self, client):
        response = client.post("/api/auth/login", json={"password": PASSWORD})
        assert response.status_code == 401

    def test_login_returns_working_token(self, client, auth_headers):
        response = client.post("/api/auth/login", json={"password": PASSWORD})
        assert response.status_code == 200
        headers = {"Authorization": f"Bearer {response.json()['token']}"}
        assert client.get("/api/tasks", headers=headers).status_code == 200


class TestTokenGate:
    def test_missing_header(self, client, auth_headers):
        response = client.get("/api/tasks")
        assert response.status_code == 401

    def test_garbage_token(self, client, auth_headers):
        response = client.get("/api/tasks", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_unknown_user(self, client, auth_headers):
        token = create_token("0" * 32)
        response = client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_expired_token(self, client, auth_headers):
        user_id = client.post("/api/auth/login", json={"password": PASSWORD}).json()["id"]
        past = datetime.now(timezone.utc) - timedelta(days=1)
        token = jwt.encode(
            {"id": user_id, "iat": past - timedelta(days=1), "exp": past},
            "test-secret-key-with-enough-length-for-hs256",
            algorithm="HS256",
        )
        response = client.get("/api/tasks", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_public_routes_need_no_token(self, client):
        assert client.get("/health").json() == {"ok": True}
        assert client.get("/api/auth/status").status_code == 200


class TestAccount:
    def test_change_password(self, client, auth_headers):
        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": "wrong", "newPassword": "next"},
            headers=auth_headers,
        )
        assert response.status_code == 401

        response = client.post("/api/auth/change-password", json={"currentPassword": PASSWORD}, headers=auth_headers)
        assert response.status_code == 400

        response = client.post(
            "/api/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "next"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert client.post("/api/auth/login", json={"password": PASSWORD}).status_code == 401
        assert client.post("/api/auth/login", json={"password": "next"}).status_code == 200

    def test_delete_account_wipes_everything(self, client, auth_headers):
        client.post(
            "/api/habits",
            json={"name": "Read", "createdAt": "2024-05-01T08:00:00"},
            headers=auth_headers,
        )
        response = client.delete("/api/auth/delete-account", headers=auth_headers)
        assert response.status_code == 200
        assert client.get("/api/auth/status").json() == {"isSetup": False}
        assert client.get("/api/habits", headers=auth_headers).status_code == 401

        headers = {"Authorization": f"Bearer {client.post('/api/auth/setup', json={'password': 'x'}).json()['token']}"}
        assert client.get("/api/habits", headers=headers).json() == []
