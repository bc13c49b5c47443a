"""
Shared pytest fixtures for all tests

Provides a settings factory, a recording stand-in for the GitHub contents
client, and a TestClient wired to both through dependency overrides.
"""

from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.handlers.upload_handler import get_client_factory
from app.main import app
from app.services.github import GitHubAPIError


def make_settings(**overrides: Any) -> Settings:
    """Build Settings without reading the process environment or .env."""
    values: dict[str, Any] = {
        "github_token": "ghp_test",
        "github_repo": "acme/catalog",
        "github_branch": "main",
        "upload_secret": None,
        "cors_allow_origin": "*",
        "github_strict_lookup": False,
        "image_compress": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeContentStore:
    """
    Records every lookup and write instead of calling GitHub.

    ``existing`` maps path -> sha for files that already exist;
    ``fail_writes`` maps path -> error JSON returned for a write to that path.
    """

    def __init__(self, existing=None, fail_writes=None):
        self.existing = dict(existing or {})
        self.fail_writes = dict(fail_writes or {})
        self.calls = []
        self.writes = []
        self.closed = False

    async def get_file_sha(self, path):
        self.calls.append(("lookup", path))
        return self.existing.get(path)

    async def put_file(self, path, content_base64, message, *, sha=None):
        self.calls.append(("write", path))
        self.writes.append(
            {"path": path, "content": content_base64, "message": message, "sha": sha}
        )
        if path in self.fail_writes:
            raise GitHubAPIError(409, "conflict", self.fail_writes[path])
        return {"content": {"path": path, "sha": "new-sha"}, "commit": {"sha": "commit-sha"}}

    async def upsert_file(self, path, content_base64, message):
        sha = await self.get_file_sha(path)
        return await self.put_file(path, content_base64, message, sha=sha)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    def paths(self):
        return [path for _, path in self.calls]


@pytest.fixture
def fake_store():
    return FakeContentStore()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def client(settings, fake_store):
    """TestClient using the ``settings`` and ``fake_store`` fixtures."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_client_factory] = lambda: (lambda _settings: fake_store)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
