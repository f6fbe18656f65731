"""
Pytest configuration and shared fixtures.

Every test gets its own storage root under tmp_path, so nothing touches the
real /var/cdn-storage.
"""

import pytest
from fastapi.testclient import TestClient

from src.api.config import Settings
from src.api.main import create_app


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: tests of single storage components")
    config.addinivalue_line("markers", "integration: tests through the HTTP application")


@pytest.fixture
def storage_root(tmp_path):
    return tmp_path / "cdn-storage"


@pytest.fixture
def settings(storage_root):
    return Settings(
        storage_root=storage_root,
        public_base_url="https://cdn.example.test",
        max_upload_bytes=1024 * 1024,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c
