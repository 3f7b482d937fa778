"""
Jotter Backend — HTTP Endpoint Tests
======================================

What:  Drives the real app over ASGI with an in-memory SQLite database and
       a mocked identity provider.

What we test:
    ✅ Login sets an HttpOnly, site-wide, 5-day session cookie
    ✅ Failed logins answer 401 and set no cookie
    ✅ Protected endpoints answer 401 without issuing a query
    ✅ Ownership: another user's note behaves like a missing one
    ✅ Listing order follows updated_at, newest first
    ✅ The full login → create → list → update → delete scenario
    ✅ Store failures answer 500 without internal detail
"""

import base64

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event, text

from conftest import identity_provider, login, make_settings, session_header
from jotter.main import create_app
from jotter.services.session_service import session_codec


def _set_cookie(response) -> str:
    return response.headers.get("set-cookie", "")


class TestLogin:

    @pytest.mark.asyncio
    async def test_login_sets_session_cookie(self, test_client):
        response = await test_client.post("/auth", json={"idToken": "token-alice"})

        assert response.status_code == 200
        assert response.json() == {"status": "success"}

        cookie = _set_cookie(response)
        assert cookie.startswith("session=")
        assert "HttpOnly" in cookie
        assert "Max-Age=432000" in cookie
        assert "Path=/" in cookie
        assert "Secure" not in cookie

        value = cookie.split(";", 1)[0].split("=", 1)[1]
        assert session_codec.decode(value).user_id == "alice"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{"idToken": "forged"}, {"idToken": "no-match"}, {}])
    async def test_rejected_login_sets_no_cookie(self, test_client, body):
        response = await test_client.post("/auth", json=body)

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content",
        [b"not json", b'{"idToken": 123}', b'["token-alice"]', b""],
    )
    async def test_unreadable_login_body_is_401(self, test_client, content):
        response = await test_client.post(
            "/auth", content=content, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_provider_outage_is_401(self):
        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        app = create_app(make_settings(), identity_transport=httpx.MockTransport(unreachable))
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/auth", json={"idToken": "token-alice"})
        await app.state.identity_verifier.close()
        await app.state.database.dispose()

        assert response.status_code == 401
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_production_cookie_is_secure(self):
        app = create_app(
            make_settings(app_env="production"),
            identity_transport=httpx.MockTransport(identity_provider),
        )
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/auth", json={"idToken": "token-alice"})
        await app.state.identity_verifier.close()
        await app.state.database.dispose()

        assert response.status_code == 200
        assert "Secure" in _set_cookie(response)


class TestSessionGuardOnNotes:

    @pytest_asyncio.fixture
    async def statements(self, test_app):
        """Every SQL statement the app sends during the test."""
        seen = []

        def record(conn, cursor, statement, parameters, context, executemany):
            seen.append(statement)

        engine = test_app.state.database.engine.sync_engine
        event.listen(engine, "before_cursor_execute", record)
        yield seen
        event.remove(engine, "before_cursor_execute", record)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, body",
        [
            ("GET", None),
            ("POST", {"title": "a", "content": "b"}),
            ("PUT", {"id": 1, "title": "a", "content": "b"}),
            ("DELETE", {"id": 1}),
        ],
    )
    async def test_no_cookie_is_401_without_query(self, test_client, statements, method, body):
        response = await test_client.request(method, "/notes", json=body)

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert statements == []

    @pytest.mark.asyncio
    async def test_expired_cookie_is_401(self, test_client, statements):
        expired = session_codec.encode("alice", -1)
        response = await test_client.get("/notes", headers=session_header(expired))

        assert response.status_code == 401
        assert statements == []

    @pytest.mark.asyncio
    async def test_malformed_cookie_is_401(self, test_client):
        response = await test_client.get("/notes", headers=session_header("not-a-session"))
        assert response.status_code == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exp_literal", ["NaN", "Infinity", "1e400"])
    async def test_non_integer_expiry_cookie_is_401(self, test_client, statements, exp_literal):
        payload = '{"userId": "alice", "exp": %s}' % exp_literal
        forged = base64.urlsafe_b64encode(payload.encode()).rstrip(b"=").decode()

        response = await test_client.get("/notes", headers=session_header(forged))

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert statements == []


class TestNotesOwnership:

    @pytest.mark.asyncio
    async def test_other_user_cannot_update_or_delete(self, test_client):
        alice = await login(test_client, "token-alice")
        bob = await login(test_client, "token-bob")

        created = await test_client.post(
            "/notes", json={"title": "mine", "content": "secret"}, headers=session_header(alice)
        )
        note = created.json()

        put = await test_client.put(
            "/notes",
            json={"id": note["id"], "title": "hacked", "content": "x"},
            headers=session_header(bob),
        )
        delete = await test_client.request(
            "DELETE", "/notes", json={"id": note["id"]}, headers=session_header(bob)
        )
        missing = await test_client.request(
            "DELETE", "/notes", json={"id": 999_999}, headers=session_header(bob)
        )

        assert put.status_code == 404
        assert delete.status_code == 404
        # Not-yours and not-found are indistinguishable
        assert delete.json()["message"] == missing.json()["message"]

        listed = await test_client.get("/notes", headers=session_header(alice))
        assert listed.json() == [note]

        bob_list = await test_client.get("/notes", headers=session_header(bob))
        assert bob_list.json() == []

    @pytest.mark.asyncio
    async def test_client_cannot_choose_owner(self, test_client):
        alice = await login(test_client, "token-alice")

        response = await test_client.post(
            "/notes",
            json={"title": "t", "content": "c", "user_id": "bob"},
            headers=session_header(alice),
        )

        assert response.status_code == 422


class TestNotesOrdering:

    @pytest.mark.asyncio
    async def test_updated_note_moves_to_front(self, test_client):
        alice = await login(test_client, "token-alice")
        headers = session_header(alice)

        ids = []
        for title in ("first", "second", "third"):
            response = await test_client.post(
                "/notes", json={"title": title, "content": ""}, headers=headers
            )
            ids.append(response.json()["id"])

        listed = await test_client.get("/notes", headers=headers)
        assert [n["id"] for n in listed.json()] == list(reversed(ids))

        await test_client.put(
            "/notes", json={"id": ids[0], "title": "first, edited", "content": ""}, headers=headers
        )

        listed = await test_client.get("/notes", headers=headers)
        notes = listed.json()
        assert [n["id"] for n in notes] == [ids[0], ids[2], ids[1]]
        stamps = [n["updated_at"] for n in notes]
        assert stamps == sorted(stamps, reverse=True)


class TestNotesEndToEnd:

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, test_client):
        login_response = await test_client.post("/auth", json={"idToken": "token-alice"})
        assert login_response.status_code == 200
        assert "session=" in _set_cookie(login_response)
        cookie = await login(test_client, "token-alice")
        headers = session_header(cookie)

        created = await test_client.post(
            "/notes", json={"title": "a", "content": "b"}, headers=headers
        )
        assert created.status_code == 201
        note = created.json()
        assert isinstance(note["id"], int)
        assert note["user_id"] == "alice"
        assert note["created_at"] and note["updated_at"]

        listed = await test_client.get("/notes", headers=headers)
        assert listed.status_code == 200
        assert listed.json() == [note]

        updated = await test_client.put(
            "/notes", json={"id": note["id"], "title": "c", "content": "d"}, headers=headers
        )
        assert updated.status_code == 200
        assert updated.json()["title"] == "c"
        assert updated.json()["content"] == "d"
        assert updated.json()["created_at"] == note["created_at"]
        assert updated.json()["updated_at"] != note["updated_at"]

        deleted = await test_client.request(
            "DELETE", "/notes", json={"id": note["id"]}, headers=headers
        )
        assert deleted.status_code == 204
        assert deleted.content == b""

        listed = await test_client.get("/notes", headers=headers)
        assert listed.json() == []

        again = await test_client.request(
            "DELETE", "/notes", json={"id": note["id"]}, headers=headers
        )
        assert again.status_code == 404
        assert again.json()["error"] == "not_found"


class TestStoreFailure:

    @pytest.mark.asyncio
    async def test_store_failure_is_generic_500(self, test_app, test_client):
        alice = await login(test_client, "token-alice")
        async with test_app.state.database.engine.begin() as conn:
            await conn.execute(text("DROP TABLE notes"))

        response = await test_client.get("/notes", headers=session_header(alice))

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert body["message"] == "Failed to fetch notes"
        assert "request_id" in body


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_dependencies(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["identity_provider"] == "configured"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/notes", headers={"X-Request-ID": "abc12345"})

        assert response.headers["X-Request-ID"] == "abc12345"
        assert response.json()["request_id"] == "abc12345"
