import asyncio

from event_manager_api.app.core.security import create_access_token, decode_access_token
from event_manager_api.app.services.audit_service import AuditService


def test_token_roundtrip():
    payload = decode_access_token(create_access_token({"sub": "owner@example.com"}))
    assert payload["sub"] == "owner@example.com"
    assert "exp" in payload


def test_expired_token_is_refused():
    assert decode_access_token(create_access_token({"sub": "a@example.com"}, expires_delta=-10)) is None


def test_tampered_token_is_refused():
    header, payload, signature = create_access_token({"sub": "a@example.com"}).split(".")
    forged = create_access_token({"sub": "b@example.com"}).split(".")[1]
    assert decode_access_token(f"{header}.{forged}.{signature}") is None


def test_malformed_tokens_are_refused():
    assert decode_access_token("not-a-token") is None
    assert decode_access_token("a.b.c") is None


def test_token_for_unknown_user_is_rejected(client):
    token = create_access_token({"sub": "ghost@example.com"})
    response = client.get("/api/events", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_anonymous_feedback_is_audited_without_user(client, event, participant):
    client.post(
        f"/api/events/{event['id']}/feedback",
        json={"participant_id": participant["id"], "rating": 3},
    )
    logs = asyncio.run(AuditService.list_logs(object_type="feedback"))
    assert len(logs) == 1
    assert logs[0]["user_id"] is None
    assert logs[0]["action"] == "create"
    assert logs[0]["details"]["fields"] == ["rating"]


def test_event_changes_are_audited(client, owner, event):
    client.patch(f"/api/events/{event['id']}", json={"title": "Renamed"}, headers=owner["headers"])
    logs = asyncio.run(AuditService.list_logs(object_type="event", object_id=event["id"]))
    assert [entry["action"] for entry in logs] == ["update", "create"]
    assert all(entry["user_id"] == owner["id"] for entry in logs)
    assert logs[0]["details"] == {"title": "Renamed"}
