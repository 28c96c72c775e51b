"""Health endpoint tests."""

from pathlib import Path

from fastapi.testclient import TestClient

from cms.app import create_app
from cms.config import Settings
from cms.storage.local import LocalStorage


def test_liveness(client: TestClient) -> None:
    """Liveness endpoint returns alive status."""
    response = client.get("/api/cms/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_readiness_reports_storage_and_auth(client: TestClient) -> None:
    """Readiness checks storage and admin configuration without authentication."""
    response = client.get("/api/cms/health/ready")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "ready"
    assert [(c["name"], c["status"]) for c in data["checks"]] == [
        ("storage:local", "ok"),
        ("auth:admin", "ok"),
    ]


def test_readiness_fails_when_storage_is_broken(settings: Settings, tmp_path: Path) -> None:
    broken_root = tmp_path / "not-a-dir"
    broken_root.write_text("file")
    app = create_app(settings, storage=LocalStorage(broken_root, tmp_path / "uploads"))

    response = TestClient(app).get("/api/cms/health/ready")
    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not_ready"
    assert data["checks"][0]["status"] == "failed"
    assert "not a directory" in data["checks"][0]["message"]


def test_readiness_fails_without_admin_credentials(
    settings: Settings, storage: LocalStorage
) -> None:
    app = create_app(settings.model_copy(update={"admin_username": ""}), storage=storage)

    response = TestClient(app).get("/api/cms/health/ready")
    assert response.status_code == 503
    assert response.json()["checks"][1] == {
        "name": "auth:admin",
        "status": "failed",
        "message": "Admin credentials are not configured",
        "duration_ms": 0.0,
    }
