# tests/test_attendance_api.py
from http import HTTPStatus
from typing import Any, Dict, List

import httpx
import pytest

from meetings_attendance.api.dependencies.services import get_audit_sink, get_http_client
from meetings_attendance.core.config import Settings, get_settings

ZOOM_PARTICIPANTS: List[Dict[str, Any]] = [
    {
        "id": "zoom-alice",
        "user_email": "Alice@X.com",
        "duration": 45,
        "join_time": "2025-11-10T10:00:00Z",
        "leave_time": "2025-11-10T10:45:00Z",
    },
    {
        "id": "zoom-guest",
        "user_email": "guest@elsewhere.org",
        "duration": 10,
        "join_time": "2025-11-10T10:05:00Z",
        "leave_time": "2025-11-10T10:15:00Z",
    },
]


class ZoomApiStub:
    """
    MockTransport handler for the Zoom token endpoint and participants report.
    """

    def __init__(self, participants=None, token_body=None):
        self.participants = ZOOM_PARTICIPANTS if participants is None else participants
        self.token_body = {"access_token": "zoom-token"} if token_body is None else token_body
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if request.url.host == "zoom.us":
            return httpx.Response(200, json=self.token_body)
        return httpx.Response(200, json={"participants": self.participants})


@pytest.fixture
def zoom_api(app):
    stub = ZoomApiStub()

    async def _override_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(stub)) as http_client:
            yield http_client

    app.dependency_overrides[get_http_client] = _override_http_client
    return stub


@pytest.fixture
def recorded_audit(app, audit_sink):
    app.dependency_overrides[get_audit_sink] = lambda: audit_sink
    return audit_sink


@pytest.fixture
def users(client) -> Dict[str, int]:
    ids = {}
    for email, name in (("alice@x.com", "Alice"), ("bob@x.com", "Bob")):
        resp = client.post("/users", json={"email": email, "full_name": name})
        ids[email] = resp.json()["id"]
    return ids


@pytest.fixture
def zoom_session(client) -> Dict[str, Any]:
    resp = client.post(
        "/sessions",
        json={
            "name": "Zoom seminar",
            "platform": "zoom",
            "meeting_url": "https://zoom.us/j/85746065432",
            "meeting_id": "85746065432",
            "organizer_email": "organizer@example.edu",
            "expected_duration": 3600,
            "required_attendance": 75,
            "completion_attendance": True,
        },
    )
    assert resp.status_code == HTTPStatus.CREATED
    return resp.json()


def _sync(client, session_id: int):
    return client.post(f"/sessions/{session_id}/sync")


def test_sync_reconciles_participants(client, zoom_api, users, zoom_session, recorded_audit):
    """
    Alice is matched by email, the guest stays unassigned, and the returned
    stats describe exactly that.
    """
    resp = _sync(client, zoom_session["id"])

    assert resp.status_code == HTTPStatus.OK
    stats = resp.json()
    assert stats["processed"] == 2
    assert stats["matched"] == 1
    assert stats["unassigned"] == 1
    assert stats["errors"] == []
    assert zoom_api.calls == 2

    assert [event for event, _ in recorded_audit.events] == ["attendance_sync"]

    unassigned = client.get(f"/sessions/{zoom_session['id']}/unassigned").json()
    assert [r["platform_user_id"] for r in unassigned] == ["zoom-guest"]
    assert unassigned[0]["user_id"] == 0
    assert unassigned[0]["attendance_duration"] == 600


def test_sync_twice_does_not_duplicate_records(client, zoom_api, users, zoom_session):
    assert _sync(client, zoom_session["id"]).status_code == HTTPStatus.OK
    assert _sync(client, zoom_session["id"]).status_code == HTTPStatus.OK

    report = client.get(f"/sessions/{zoom_session['id']}/report").json()
    assert report["total_records"] == 2


def test_sync_with_no_participants_returns_note(client, zoom_api, zoom_session):
    zoom_api.participants = []

    resp = _sync(client, zoom_session["id"])

    assert resp.status_code == HTTPStatus.OK
    assert resp.json()["processed"] == 0
    assert resp.json()["notes"] == ["No participants found in the attendance report."]


def test_sync_authentication_failure_returns_502_with_stats(client, zoom_api, zoom_session):
    zoom_api.token_body = {"reason": "Invalid client_id or client_secret"}

    resp = _sync(client, zoom_session["id"])

    assert resp.status_code == HTTPStatus.BAD_GATEWAY
    body = resp.json()
    assert "access token" in body["detail"]
    assert body["stats"]["processed"] == 0
    assert body["stats"]["errors"] == [body["detail"]]


def test_sync_of_closed_register_returns_409(client, zoom_api, zoom_session):
    client.post(f"/sessions/{zoom_session['id']}/close")

    resp = _sync(client, zoom_session["id"])

    assert resp.status_code == HTTPStatus.CONFLICT
    assert zoom_api.calls == 0


def test_sync_unknown_session_returns_404(client, zoom_api):
    assert _sync(client, 999).status_code == HTTPStatus.NOT_FOUND


def test_sync_without_credentials_returns_500(app, client, zoom_api, zoom_session):
    app.dependency_overrides[get_settings] = lambda: Settings(
        APP_ENV="test", ZOOM_CLIENT_ID=None, ZOOM_CLIENT_SECRET=None, ZOOM_ACCOUNT_ID=None
    )

    resp = _sync(client, zoom_session["id"])

    assert resp.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    body = resp.json()
    assert "Missing zoom configuration" in body["detail"]
    assert body["stats"]["errors"] == [body["detail"]]


def test_manual_assignment_flow(client, zoom_api, users, zoom_session):
    _sync(client, zoom_session["id"])
    (guest,) = client.get(f"/sessions/{zoom_session['id']}/unassigned").json()

    resp = client.post(f"/attendance/{guest['id']}/assign", json={"user_id": users["bob@x.com"]})

    assert resp.status_code == HTTPStatus.OK
    assigned = resp.json()
    assert assigned["user_id"] == users["bob@x.com"]
    assert assigned["manually_assigned"] is True

    # A later sync without an email match keeps the manual link.
    _sync(client, zoom_session["id"])
    assert client.get(f"/sessions/{zoom_session['id']}/unassigned").json() == []


def test_assign_unknown_record_or_user_returns_404(client, zoom_api, users, zoom_session):
    resp = client.post("/attendance/999/assign", json={"user_id": users["bob@x.com"]})
    assert resp.status_code == HTTPStatus.NOT_FOUND

    _sync(client, zoom_session["id"])
    (guest,) = client.get(f"/sessions/{zoom_session['id']}/unassigned").json()
    resp = client.post(f"/attendance/{guest['id']}/assign", json={"user_id": 9999})
    assert resp.status_code == HTTPStatus.NOT_FOUND


def test_assign_rejects_non_positive_user_id(client):
    resp = client.post("/attendance/1/assign", json={"user_id": 0})
    assert resp.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_session_report(client, zoom_api, users, zoom_session):
    _sync(client, zoom_session["id"])

    resp = client.get(f"/sessions/{zoom_session['id']}/report")

    assert resp.status_code == HTTPStatus.OK
    report = resp.json()
    assert report["platform"] == "zoom"
    assert report["status"] == "open"
    assert report["total_records"] == 2
    assert report["assigned_count"] == 1
    assert report["unassigned_count"] == 1
    assert report["completion_met_count"] == 0

    alice = next(e for e in report["entries"] if e["platform_user_id"] == "zoom-alice")
    assert alice["user_email"] == "alice@x.com"
    assert alice["user_full_name"] == "Alice"
    assert alice["attendance_duration"] == 2700
    assert alice["join_time"] == 1762768800
    assert alice["leave_time"] == 1762771500

    guest = next(e for e in report["entries"] if e["platform_user_id"] == "zoom-guest")
    assert guest["user_email"] is None


def test_completion_endpoints(client, zoom_api, users, zoom_session, recorded_audit):
    _sync(client, zoom_session["id"])
    alice_id = users["alice@x.com"]

    resp = client.post(f"/sessions/{zoom_session['id']}/completion/{alice_id}")
    assert resp.status_code == HTTPStatus.OK
    result = resp.json()
    assert result["has_record"] is True
    assert result["percentage"] == 75.0
    assert result["completion_met"] is True
    assert result["completion_enabled"] is True
    assert "completion_updated" in [event for event, _ in recorded_audit.events]

    resp = client.post(f"/sessions/{zoom_session['id']}/completion/{users['bob@x.com']}")
    assert resp.json()["has_record"] is False

    resp = client.post(f"/sessions/{zoom_session['id']}/completion")
    assert resp.status_code == HTTPStatus.OK
    assert [r["user_id"] for r in resp.json()] == [alice_id]

    report = client.get(f"/sessions/{zoom_session['id']}/report").json()
    assert report["completion_met_count"] == 1
    alice = next(e for e in report["entries"] if e["user_id"] == alice_id)
    assert alice["actual_attendance"] == 75.0
    assert alice["completion_met"] is True


def test_delete_session_removes_its_attendance(client, zoom_api, users, zoom_session):
    _sync(client, zoom_session["id"])
    (guest,) = client.get(f"/sessions/{zoom_session['id']}/unassigned").json()

    assert client.delete(f"/sessions/{zoom_session['id']}").status_code == HTTPStatus.NO_CONTENT

    resp = client.post(f"/attendance/{guest['id']}/assign", json={"user_id": users["bob@x.com"]})
    assert resp.status_code == HTTPStatus.NOT_FOUND


def test_completion_switched_off_for_session(client, zoom_api, users, zoom_session, recorded_audit):
    """
    With attendance-based completion disabled, 75% attendance does not
    complete the activity and no completion event is emitted.
    """
    client.patch(f"/sessions/{zoom_session['id']}", json={"completion_attendance": False})
    _sync(client, zoom_session["id"])

    resp = client.post(f"/sessions/{zoom_session['id']}/completion/{users['alice@x.com']}")

    assert resp.status_code == HTTPStatus.OK
    result = resp.json()
    assert result["completion_enabled"] is False
    assert result["percentage"] == 75.0
    assert result["completion_met"] is False
    assert "completion_updated" not in [event for event, _ in recorded_audit.events]

    report = client.get(f"/sessions/{zoom_session['id']}/report").json()
    assert report["completion_met_count"] == 0
