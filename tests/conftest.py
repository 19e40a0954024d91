import pytest
from fastapi.testclient import TestClient

from backend.db import reset_engine
from backend.main import create_app
from backend.services.gemini import clear_model_cache
from backend.settings import reset_settings

PASSWORD = "correct horse battery staple"


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "life_dashboard_test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{path}")
    monkeypatch.setenv("JWT_SECRET", "test-secret-key-with-enough-length-for-hs256")
    monkeypatch.setenv("APP_TIMEZONE", "UTC")
    monkeypatch.setenv("CURRENCY", "PKR")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("CREDENTIAL_ENCRYPTION_KEY", raising=False)
    reset_settings()
    reset_engine()
    clear_model_cache()
    yield path
    reset_settings()
    reset_engine()
    clear_model_cache()


@pytest.fixture
def app(db_path):
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client):
    response = client.post("/api/auth/setup", json={"password": PASSWORD})
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}
