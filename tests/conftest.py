"""Pytest configuration and shared fixtures for tests.

Every test gets its own fixture tree under tmp_path, so tests that edit
fixture files never leak into each other.
"""

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from mock_fixture_server import MockServer


# ============================================================
# Fixture Tree
# ============================================================


USERS = {"id": 1, "name": "a"}


@pytest.fixture
def fixture_dir(tmp_path: Path) -> Path:
    """Fixture tree used across unit and integration tests.

    Layout:
        users.json          {"id": 1, "name": "a"}
        broken.json         {invalid json
        list.json           [1, 2, 3]
        page.html           <html>...
        notes               plain text, no extension
        exact               object fixture without extension
        exact.json          fallback that must lose to "exact"
        nested/             directory
        nested.json         fallback for the directory path
        api/v1/items.json   nested fixture
    """
    root = tmp_path / "fixtures"
    root.mkdir()

    (root / "users.json").write_text(json.dumps(USERS))
    (root / "broken.json").write_text("{invalid json")
    (root / "list.json").write_text("[1, 2, 3]")
    (root / "page.html").write_text("<html><body>hello</body></html>")
    (root / "notes").write_text("just some notes")
    (root / "exact").write_text('{"source": "exact"}')
    (root / "exact.json").write_text('{"source": "fallback"}')
    (root / "nested").mkdir()
    (root / "nested.json").write_text('{"source": "nested fallback"}')

    api = root / "api" / "v1"
    api.mkdir(parents=True)
    (api / "items.json").write_text(json.dumps({"items": [{"id": 1, "tags": []}], "total": 1}))

    return root


@pytest.fixture
def mock_server(fixture_dir: Path) -> MockServer:
    """MockServer over the fixture tree (not listening)."""
    return MockServer(dir=fixture_dir, name="test-server")


@pytest.fixture
def client(mock_server: MockServer) -> TestClient:
    """In-process HTTP client for mock_server's app."""
    return TestClient(mock_server.app)
