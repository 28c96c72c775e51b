"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from cms.app import create_app
from cms.config import Settings
from cms.storage.local import LocalStorage

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "password123"
SESSION_SECRET = "test-secret-that-is-at-least-32-characters-long"


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Create test settings with local storage under tmp_path."""
    return Settings(
        _env_file=None,
        host="127.0.0.1",
        port=8000,
        debug=True,
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        session_secret=SESSION_SECRET,
        content_dir=str(tmp_path / "content"),
        uploads_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def storage(settings: Settings) -> LocalStorage:
    """Create local storage rooted in the test directories."""
    return LocalStorage(settings.content_dir, settings.uploads_dir)


@pytest.fixture
def app(settings: Settings, storage: LocalStorage) -> FastAPI:
    """Create configured app."""
    return create_app(settings, storage=storage)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client with configured app."""
    return TestClient(app)


@pytest.fixture
def auth_client(app: FastAPI) -> TestClient:
    """Create test client holding a valid session cookie."""
    client = TestClient(app)
    response = client.post(
        "/api/cms/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200
    return client
