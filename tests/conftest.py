"""
tests/conftest.py -- Shared test fixtures for AuthGate.

This module provides:
  - FakeClock / clock: an injectable, manually advanced clock for token expiry
  - document, credentials, hasher, tokens: unit-level building blocks on tmp files
  - gateway: factory that starts a TestClient on the real app with a chosen
    AccessPolicy, wired to a fresh JSON document via a patched lifespan

The environment must be prepared before any api/auth/core import:
  DEBUG=true lets get_settings() auto-generate SECRET_KEY instead of raising.
  LOGIN_RATE_LIMIT is raised so the login tests never trip the limiter.
  UPLOAD_FOLDER points the static mount at a throwaway directory.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("UPLOAD_FOLDER", tempfile.mkdtemp(prefix="authgate-uploads-"))

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.gate import AccessGate, AccessPolicy
from auth.passwords import PasswordHasher
from auth.store import CredentialStore
from auth.tokens import TokenService
from core.config import get_settings
from core.document import JsonDocument
from resources.store import ResourceStore
from resources.uploads import UploadStore

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"

# Lowest cost bcrypt accepts -- keeps the suite fast.
FAST_ROUNDS = 4

SEED = {
    "items": [{"id": 1, "name": "first"}],
    "users": [],
}


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 31, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def document(tmp_path: Path) -> JsonDocument:
    doc = JsonDocument(tmp_path / "db.json")
    with doc.transaction() as data:
        data.update(SEED)
    return doc


@pytest.fixture
def credentials(document: JsonDocument) -> CredentialStore:
    return CredentialStore(document)


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=FAST_ROUNDS)


@pytest.fixture
def tokens(clock: FakeClock) -> TokenService:
    return TokenService(TEST_SECRET, lifetime_seconds=3600, clock=clock)


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(state: dict):
    """Return a lifespan that installs pre-built collaborators on app.state."""

    @asynccontextmanager
    async def test_lifespan(app):
        for name, value in state.items():
            setattr(app.state, name, value)
        yield

    return test_lifespan


@pytest.fixture
def gateway(
    document: JsonDocument,
    hasher: PasswordHasher,
    tokens: TokenService,
    clock: FakeClock,
) -> Generator[Callable[..., tuple[TestClient, dict]], None, None]:
    """Factory fixture: gateway(policy) -> (client, state).

    state is the dict of collaborators installed on app.state, so tests can
    inspect (or replace) the stores behind the client.
    """
    opened: list[TestClient] = []

    def start(policy: AccessPolicy = AccessPolicy()) -> tuple[TestClient, dict]:
        state = {
            "document": document,
            "credentials": CredentialStore(document),
            "resources": ResourceStore(document),
            "hasher": hasher,
            "tokens": tokens,
            "gate": AccessGate(policy, tokens, clock=clock),
            "uploads": UploadStore(get_settings().upload_folder),
        }
        app.router.lifespan_context = _patch_lifespan(state)
        client = TestClient(app, raise_server_exceptions=True)
        client.__enter__()
        opened.append(client)
        return client, state

    yield start

    for client in opened:
        client.__exit__(None, None, None)


@pytest.fixture
def api_client(gateway) -> tuple[TestClient, dict]:
    """Default policy: anonymous reads, authenticated writes."""
    return gateway(AccessPolicy(require_auth_on_read=False, require_auth_on_write=True))


@pytest.fixture
def register_and_login() -> Callable[..., str]:
    """Return a helper that registers a user through the API and logs in."""

    def _register_and_login(client: TestClient, username: str = "alice", password: str = "pw1") -> str:
        resp = client.post("/auth/register", json={"username": username, "password": password})
        assert resp.status_code == 201, resp.text
        resp = client.post("/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 201, resp.text
        return resp.json()["accessToken"]

    return _register_and_login
