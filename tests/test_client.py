import io

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from event_manager_client import EventManagerClient


class AppSession:
    """Route ``requests`` calls of the client into the ASGI test client."""

    def __init__(self, client):
        self.client = client
        self.calls = []

    def request(self, method, url, json=None, data=None, files=None, headers=None, timeout=None):
        self.calls.append((method, url, json))
        answer = self.client.request(method, url, json=json, data=data, files=files, headers=headers)
        response = requests.Response()
        response.status_code = answer.status_code
        response._content = answer.content
        response.headers = CaseInsensitiveDict(answer.headers)
        response.url = url
        response.encoding = "utf-8"
        return response


class BrokenSession:
    def request(self, *args, **kwargs):
        raise requests.ConnectionError("Connection refused")


def token(user):
    return user["headers"]["Authorization"].split(" ", 1)[1]


@pytest.fixture
def session(client):
    return AppSession(client)


@pytest.fixture
def api(session, owner):
    return EventManagerClient(base_url="http://testserver", api_key=token(owner), session=session)


EVENT = {
    "title": "Hackathon",
    "location": "Lab",
    "start_date": "2025-10-03T09:00:00",
    "end_date": "2025-10-04T18:00:00",
}


def test_event_lifecycle(api):
    created, error = api.create_event(EVENT)
    assert error is None
    assert created["title"] == "Hackathon"

    events, error = api.list_events()
    assert [e["id"] for e in events] == [created["id"]]

    updated, error = api.update_event(created["id"], {"location": "Hall B"})
    assert updated["location"] == "Hall B"

    deleted, error = api.delete_event(created["id"])
    assert deleted is True
    assert error is None

    _, error = api.get_event(created["id"])
    assert error == {"status_code": 404, "message": "Event not found"}


def test_forbidden_event(api, session, stranger):
    created, _ = api.create_event(EVENT)
    intruder = EventManagerClient(base_url="http://testserver", api_key=token(stranger), session=session)
    data, error = intruder.get_event(created["id"])
    assert data is None
    assert error == {"status_code": 403, "message": "Unauthorized"}

    participants, error = intruder.list_participants(created["id"])
    assert participants == []
    assert error["status_code"] == 403


def test_invite_and_rsvp(api, mailer):
    created, _ = api.create_event(EVENT)
    result, error = api.invite_participants(created["id"], [("ann@example.com", "Ann")])
    assert error is None
    participant = result["participants"][0]
    assert mailer.attempts == ["ann@example.com"]

    answered, error = api.rsvp(participant["id"], "decline")
    assert answered["status"] == "declined"

    dispatches, _ = api.list_dispatches(created["id"])
    assert [d["status"] for d in dispatches] == ["sent"]


def test_upload_and_download(api):
    created, _ = api.create_event(EVENT)
    material, error = api.upload_material(
        created["id"], "Rules", io.BytesIO(b"Be nice."), "rules.txt", "text/plain"
    )
    assert error is None
    assert material["name"] == "Rules"

    content, error = api.download_material(material["id"])
    assert content == b"Be nice."

    deleted, error = api.delete_material(material["id"])
    assert deleted is True


def test_submit_feedback_sends_only_given_fields(api, session):
    created, _ = api.create_event(EVENT)
    participant, _ = api.add_participant(created["id"], "ann@example.com", "Ann", status="attended")

    api.submit_feedback(created["id"], participant["id"], rating=5)
    feedback, error = api.submit_feedback(created["id"], participant["id"], comments="Fun")
    assert error is None
    assert (feedback["rating"], feedback["comments"]) == (5, "Fun")
    assert session.calls[-1][2] == {"participant_id": participant["id"], "comments": "Fun"}


def test_service_error_message_is_extracted(api):
    created, _ = api.create_event(EVENT)
    participant, _ = api.add_participant(created["id"], "ann@example.com", "Ann")
    _, error = api.submit_feedback(created["id"], participant["id"])
    assert error == {"status_code": 422, "message": "Either rating or comments must be provided"}


def test_network_error_is_returned():
    api = EventManagerClient(base_url="http://unreachable", session=BrokenSession())
    events, error = api.list_events()
    assert events == []
    assert error == {"status_code": None, "message": "Connection refused"}


def test_prefix_and_trailing_slash():
    api = EventManagerClient(base_url="https://events.example.com/", api_prefix="/v2")
    assert api.base_url == "https://events.example.com/v2"
