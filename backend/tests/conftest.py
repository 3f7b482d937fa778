"""
Jotter Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: Mock AsyncSession for service-level tests (no DB)
    ├── sample_note_data: Field values of a stored note
    ├── identity_transport: httpx.MockTransport playing the identity provider
    ├── test_app: Real app on an in-memory SQLite database, schema created
    └── test_client: HTTPX AsyncClient talking to test_app over ASGI

Identity provider fake:
    "token-alice" → localId "alice"
    "token-bob"   → localId "bob"
    "no-match"    → 200 without users
    anything else → 400 INVALID_ID_TOKEN
"""

import json
import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set BEFORE any jotter import: the settings singleton reads the environment
# once, and jotter.main builds a module-level app from it
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["IDENTITY_API_KEY"] = "test-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

from jotter.config import Settings  # noqa: E402
from jotter.main import create_app  # noqa: E402

TEST_API_KEY = "test-key-not-real"

KNOWN_TOKENS = {
    "token-alice": "alice",
    "token-bob": "bob",
}


def identity_provider(request: httpx.Request) -> httpx.Response:
    """Stand-in for accounts:lookup, keyed on the posted idToken."""
    if request.url.params.get("key") != TEST_API_KEY:
        return httpx.Response(400, json={"error": {"message": "API_KEY_INVALID"}})

    token = json.loads(request.content).get("idToken")
    if token == "no-match":
        return httpx.Response(200, json={"kind": "identitytoolkit#GetAccountInfoResponse"})
    if token in KNOWN_TOKENS:
        return httpx.Response(
            200,
            json={"users": [{"localId": KNOWN_TOKENS[token], "email": f"{token}@example.com"}]},
        )
    return httpx.Response(400, json={"error": {"message": "INVALID_ID_TOKEN"}})


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "identity_api_key": TEST_API_KEY,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
        result = await note_service.update_note(mock_db_session, ...)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def sample_note_data():
    now = datetime.now(timezone.utc)
    return {
        "id": 7,
        "user_id": "alice",
        "title": "Groceries",
        "content": "eggs, milk",
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def identity_transport():
    return httpx.MockTransport(identity_provider)


@pytest_asyncio.fixture
async def test_app(identity_transport):
    """
    A fresh app per test with its own in-memory database.

    ASGITransport does not run the lifespan, so the schema is created here
    and the shared resources are closed on teardown.
    """
    app = create_app(make_settings(), identity_transport=identity_transport)
    await app.state.database.create_schema()
    yield app
    await app.state.identity_verifier.close()
    await app.state.database.dispose()


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    Usage:
        async def test_list(test_client):
            response = await test_client.get("/notes", headers=session_header(cookie))
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def session_header(cookie_value: str) -> dict:
    return {"Cookie": f"session={cookie_value}"}


async def login(client: AsyncClient, token: str) -> str:
    """POST /auth and return the issued session cookie value."""
    response = await client.post("/auth", json={"idToken": token})
    assert response.status_code == 200, response.text
    set_cookie = response.headers["set-cookie"]
    # Requests in tests name their user explicitly via session_header()
    client.cookies.clear()
    return set_cookie.split(";", 1)[0].split("=", 1)[1]
