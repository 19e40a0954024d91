import sqlite3

from backend.schemas import ENTITIES_BY_SLUG
from backend.settings import reset_settings

TASK = {
    "text": "Write weekly review",
    "dueDate": "2024-05-02T09:00:00",
    "createdAt": "2024-05-01T08:00:00",
}


class TestCreateAndRead:
    def test_create_echoes_document_with_id(self, client, auth_headers):
        response = client.post("/api/tasks", json=TASK, headers=auth_headers)
        assert response.status_code == 201
        created = response.json()
        assert len(created["id"]) == 32
        assert created["text"] == TASK["text"]
        assert created["completed"] is False

        listed = client.get("/api/tasks", headers=auth_headers).json()
        assert [item["id"] for item in listed] == [created["id"]]
        fetched = client.get(f"/api/tasks/{created['id']}", headers=auth_headers).json()
        assert fetched == created

    def test_list_keeps_insertion_order(self, client, auth_headers):
        ids = [
            client.post(
                "/api/time-logs",
                json={"activity": name, "minutes": 30, "createdAt": "2024-05-01T10:00:00"},
                headers=auth_headers,
            ).json()["id"]
            for name in ("Reading", "Coding", "Walking")
        ]
        listed = client.get("/api/time-logs", headers=auth_headers).json()
        assert [item["id"] for item in listed] == ids

    def test_missing_required_field_is_rejected(self, client, auth_headers):
        response = client.post(
            "/api/tasks",
            json={"dueDate": "2024-05-02T09:00:00", "createdAt": "2024-05-01T08:00:00"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert "text" in response.json()["fields"]
        assert client.get("/api/tasks", headers=auth_headers).json() == []

    def test_unknown_category_is_rejected(self, client, auth_headers):
        response = client.post(
            "/api/expenses",
            json={"category": "Yachts", "amount": 10, "description": "x", "createdAt": "2024-05-01T08:00:00"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["fields"] == ["category"]

    def test_non_object_body_is_rejected(self, client, auth_headers):
        response = client.post("/api/habits", json=["Read"], headers=auth_headers)
        assert response.status_code == 400

    def test_bad_timestamp_is_rejected(self, client, auth_headers):
        response = client.post(
            "/api/mood-logs",
            json={"mood": "Good", "createdAt": "yesterday"},
            headers=auth_headers,
        )
        assert response.status_code == 400
        assert response.json()["fields"] == ["createdAt"]

    def test_malformed_and_unknown_ids_are_not_found(self, client, auth_headers):
        assert client.get("/api/tasks/not-an-id", headers=auth_headers).status_code == 404
        assert client.get(f"/api/tasks/{'a' * 32}", headers=auth_headers).status_code == 404
        assert client.put(f"/api/tasks/{'a' * 32}", json={"completed": True}, headers=auth_headers).status_code == 404
        assert client.delete("/api/tasks/42", headers=auth_headers).status_code == 404

    def test_collections_are_isolated(self, client, auth_headers):
        created = client.post("/api/tasks", json=TASK, headers=auth_headers).json()
        assert client.get(f"/api/expenses/{created['id']}", headers=auth_headers).status_code == 404


class TestUpdateAndDelete:
    def test_put_merges_fields(self, client, auth_headers):
        created = client.post("/api/tasks", json=TASK, headers=auth_headers).json()
        response = client.put(f"/api/tasks/{created['id']}", json={"completed": True}, headers=auth_headers)
        assert response.status_code == 200
        updated = response.json()
        assert updated["completed"] is True
        assert updated["text"] == TASK["text"]
        assert updated["dueDate"] == TASK["dueDate"]

    def test_put_can_clear_optional_field(self, client, auth_headers):
        created = client.post("/api/tasks", json={**TASK, "notificationMinutes": 15}, headers=auth_headers).json()
        response = client.put(
            f"/api/tasks/{created['id']}", json={"notificationMinutes": None}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json()["notificationMinutes"] is None

    def test_put_cannot_null_required_field(self, client, auth_headers):
        created = client.post("/api/tasks", json=TASK, headers=auth_headers).json()
        response = client.put(f"/api/tasks/{created['id']}", json={"text": None}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["fields"] == ["text"]
        fetched = client.get(f"/api/tasks/{created['id']}", headers=auth_headers).json()
        assert fetched["text"] == TASK["text"]

    def test_put_validates_values(self, client, auth_headers):
        created = client.post(
            "/api/income",
            json={"category": "Salary", "amount": 1000, "description": "May", "createdAt": "2024-05-01T08:00:00"},
            headers=auth_headers,
        ).json()
        response = client.put(f"/api/income/{created['id']}", json={"amount": -5}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["fields"] == ["amount"]

    def test_delete(self, client, auth_headers):
        created = client.post("/api/tasks", json=TASK, headers=auth_headers).json()
        response = client.delete(f"/api/tasks/{created['id']}", headers=auth_headers)
        assert response.status_code == 204
        assert response.content == b""
        assert client.get(f"/api/tasks/{created['id']}", headers=auth_headers).status_code == 404
        assert client.delete(f"/api/tasks/{created['id']}", headers=auth_headers).status_code == 404

    def test_goal_milestones_are_replaced_whole(self, client, auth_headers):
        created = client.post(
            "/api/goals",
            json={
                "title": "Run a marathon",
                "createdAt": "2024-05-01T08:00:00",
                "milestones": [
                    {"id": "m1", "text": "10k", "completed": False, "createdAt": "2024-05-01T08:00:00"},
                ],
            },
            headers=auth_headers,
        ).json()
        milestones = [{**created["milestones"][0], "completed": True}]
        updated = client.put(
            f"/api/goals/{created['id']}", json={"milestones": milestones}, headers=auth_headers
        ).json()
        assert updated["milestones"][0]["completed"] is True
        assert updated["title"] == "Run a marathon"


class TestCredentials:
    CREDENTIAL = {"website": "example.com", "username": "me", "password": "s3cret", "note": ""}

    def test_plaintext_without_key(self, client, auth_headers, db_path):
        created = client.post("/api/credentials", json=self.CREDENTIAL, headers=auth_headers).json()
        assert created["password"] == "s3cret"
        with sqlite3.connect(db_path) as conn:
            (raw,) = conn.execute("SELECT payload_json FROM life_credentials").fetchone()
        assert "s3cret" in raw

    def test_encrypted_at_rest_with_key(self, client, auth_headers, db_path, monkeypatch):
        monkeypatch.setenv("CREDENTIAL_ENCRYPTION_KEY", "a long local passphrase")
        reset_settings()
        created = client.post("/api/credentials", json=self.CREDENTIAL, headers=auth_headers).json()
        assert created["password"] == "s3cret"
        fetched = client.get(f"/api/credentials/{created['id']}", headers=auth_headers).json()
        assert fetched["password"] == "s3cret"
        with sqlite3.connect(db_path) as conn:
            (raw,) = conn.execute("SELECT payload_json FROM life_credentials").fetchone()
        assert "s3cret" not in raw
        assert "fernet:" in raw


class TestNullGuard:
    def test_defaulted_fields_cannot_be_nulled(self, client, auth_headers):
        created = client.post("/api/tasks", json=TASK, headers=auth_headers).json()
        response = client.put(f"/api/tasks/{created['id']}", json={"completed": None}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["fields"] == ["completed"]
        fetched = client.get(f"/api/tasks/{created['id']}", headers=auth_headers).json()
        assert fetched["completed"] is False

    def test_list_fields_cannot_be_nulled(self, client, auth_headers):
        habit = client.post(
            "/api/habits", json={"name": "Read", "createdAt": "2024-05-01T08:00:00"}, headers=auth_headers
        ).json()
        goal = client.post(
            "/api/goals", json={"title": "Marathon", "createdAt": "2024-05-01T08:00:00"}, headers=auth_headers
        ).json()
        assert client.put(f"/api/habits/{habit['id']}", json={"completions": None}, headers=auth_headers).status_code == 400
        assert client.put(f"/api/goals/{goal['id']}", json={"milestones": None}, headers=auth_headers).status_code == 400

    def test_non_nullable_fields_follow_create_model(self):
        tasks = ENTITIES_BY_SLUG["tasks"]
        assert tasks.non_nullable_fields == {"text", "completed", "dueDate", "createdAt"}
        assert "description" not in ENTITIES_BY_SLUG["habits"].non_nullable_fields
        assert "password" not in ENTITIES_BY_SLUG["credentials"].non_nullable_fields
