"""Integration tests for the HTTP surface (in-memory UoW via dependency override)."""
from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from relay_service.api.deps import get_uow
from relay_service.app import create_app
from tests.conftest import FakeUoW, RecordingSink, make_connection, make_message


@pytest.fixture
def app_with_uow():
    app = create_app()
    uow = FakeUoW()

    async def _override():
        yield uow

    app.dependency_overrides[get_uow] = _override
    return app, uow


@pytest.fixture
def client(app_with_uow):
    app, _ = app_with_uow
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def uow(app_with_uow):
    _, uow = app_with_uow
    return uow


@pytest.fixture
def registry(app_with_uow):
    app, _ = app_with_uow
    return app.state.registry


def _subscribe(registry, session_id: str = "s1") -> RecordingSink:
    """Register a recording subscriber directly, as if its handshake had completed."""
    conn, sink = make_connection(registry, session_id, RecordingSink())
    registry.register(session_id, conn)
    return sink


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_root_lists_connected_sessions(client, registry):
    _subscribe(registry, "s9")

    resp = client.get("/")

    assert resp.status_code == 200
    assert resp.json()["connected_sessions"] == ["s9"]
    assert resp.headers["X-Request-ID"]


def test_correlation_id_is_echoed(client):
    resp = client.get("/healthz", headers={"X-Request-ID": "abc123"})
    assert resp.headers["X-Request-ID"] == "abc123"


def test_store_connectivity(client, uow):
    uow.messages._messages.append(make_message())

    resp = client.get("/api/test")

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["total_messages"] == 1


def test_store_connectivity_failure(client, uow):
    uow.messages.fail_with = "could not connect"

    resp = client.get("/api/test")

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert "could not connect" in body["error"]


def test_send_message_persists_and_broadcasts_once(client, uow, registry):
    sink = _subscribe(registry, "s1")
    other = _subscribe(registry, "s2")

    resp = client.post(
        "/api/messages",
        json={"session_id": "s1", "sender_id": "u1", "message_text": "hi"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["recipient_id"] == "bot"
    assert body["data"]["message_type"] == "text"
    assert body["data"]["status"] == "sent"
    assert body["id"]
    assert body["timestamp"]

    assert len(sink.writes) == 1
    envelope = json.loads(sink.writes[0])
    assert envelope["type"] == "NEW_MESSAGE"
    assert envelope["message"]["id"] == body["id"]
    assert other.writes == []


@pytest.mark.parametrize(
    ("payload", "field"),
    [
        ({"sender_id": "u1", "message_text": "hi"}, "session_id"),
        ({"session_id": "s1", "message_text": "hi"}, "sender_id"),
        ({"session_id": "s1", "sender_id": "u1", "message_text": "   "}, "message_text"),
    ],
)
def test_send_message_validation(client, uow, payload, field):
    resp = client.post("/api/messages", json=payload)

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["field"] == field
    assert body["required_fields"] == ["session_id", "sender_id", "message_text"]
    assert uow.messages._messages == []


def test_list_messages_for_session(client, uow):
    first = make_message(session_id="s1", body="first")
    uow.messages._messages.append(first)

    resp = client.get("/api/messages/s1")

    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["messages"][0]["id"] == str(first.id)


def test_get_message(client, uow):
    msg = make_message()
    uow.messages._messages.append(msg)

    resp = client.get(f"/api/message/{msg.id}")

    assert resp.status_code == 200
    assert resp.json()["message"]["message_text"] == msg.message_text


@pytest.mark.parametrize("message_id", ["00000000-0000-0000-0000-000000000000", "nope"])
def test_get_message_not_found(client, message_id):
    resp = client.get(f"/api/message/{message_id}")

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Message not found"}


def test_get_message_store_error_is_500(client, uow):
    uow.messages.fail_with = "timeout"

    resp = client.get("/api/message/00000000-0000-0000-0000-000000000000")

    assert resp.status_code == 500


def test_list_messages_store_error_keeps_session_shape(client, uow):
    uow.messages.fail_with = "timeout"

    resp = client.get("/api/messages/s1")

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert "timeout" in body["error"]
    assert body["session_id"] == "s1"
    assert body["messages"] == []
    assert "hint" in body


def test_list_sessions(client, uow, registry):
    for sid in ("b", "a", "b"):
        uow.messages._messages.append(make_message(session_id=sid))
    _subscribe(registry, "a")

    resp = client.get("/api/sessions")

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "count": 2,
        "sessions": ["a", "b"],
        "active_sse_sessions": ["a"],
    }


def test_webhook_insert_is_broadcast(client, registry):
    sink = _subscribe(registry, "s1")
    event = {
        "type": "INSERT",
        "table": "messages",
        "record": {"id": "m1", "session_id": "s1", "message_text": "from feed"},
        "old_record": None,
    }

    resp = client.post("/webhook/supabase", json=event)

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Webhook received"}
    assert len(sink.writes) == 1
    assert json.loads(sink.writes[0])["message"]["message_text"] == "from feed"


@pytest.mark.parametrize("body", [b"not json", b"{}", b'{"type": "INSERT"}'])
def test_webhook_acknowledges_malformed_events(client, registry, body):
    sink = _subscribe(registry, "s1")

    resp = client.post("/webhook/supabase", content=body)

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert sink.writes == []


def test_unknown_route(client):
    resp = client.get("/api/nothing-here")

    assert resp.status_code == 404
    body = resp.json()
    assert body["error"] == "Route not found"
    assert "POST /api/messages" in body["available_endpoints"]
