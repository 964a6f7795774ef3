import pytest

from event_manager_api.app.core.config import settings

from conftest import count_rows


def submit(client, event, payload, headers=None):
    return client.post(f"/api/events/{event['id']}/feedback", json=payload, headers=headers or {})


class TestSubmitFeedback:
    def test_first_submission_creates(self, client, event, participant):
        response = submit(client, event, {"participant_id": participant["id"], "rating": 4})
        assert response.status_code == 201
        body = response.json()
        assert body["rating"] == 4
        assert body["comments"] is None
        assert body["event_id"] == event["id"]

    def test_second_submission_updates_only_given_fields(self, client, event, participant):
        first = submit(client, event, {"participant_id": participant["id"], "rating": 4}).json()
        response = submit(
            client, event, {"participant_id": participant["id"], "comments": "  Great talks  "}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == first["id"]
        assert body["rating"] == 4
        assert body["comments"] == "Great talks"
        assert count_rows("feedback", event_id=event["id"]) == 1

    @pytest.mark.parametrize(
        "extra",
        [
            {},
            {"rating": None, "comments": None},
            {"comments": ""},
            {"comments": "   "},
        ],
    )
    def test_rating_or_comments_is_required(self, client, event, participant, extra):
        response = submit(client, event, {"participant_id": participant["id"], **extra})
        assert response.status_code == 422
        body = response.json()
        assert body["message"] == "Either rating or comments must be provided"
        assert set(body["errors"]) == {"rating", "comments"}
        assert count_rows("feedback") == 0

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, client, event, participant, rating):
        response = submit(client, event, {"participant_id": participant["id"], "rating": rating})
        assert response.status_code == 422

    def test_participant_of_another_event_is_rejected(self, client, owner, event):
        other = client.post(
            "/api/events",
            json={
                "title": "Summer Party",
                "start_date": "2025-07-01T18:00:00",
                "end_date": "2025-07-01T23:00:00",
            },
            headers=owner["headers"],
        ).json()
        outsider = client.post(
            f"/api/events/{other['id']}/participants",
            json={"email": "otto@example.com", "name": "Otto"},
            headers=owner["headers"],
        ).json()

        response = submit(client, event, {"participant_id": outsider["id"], "rating": 5})
        assert response.status_code == 422
        assert response.json()["errors"] == {
            "participant_id": ["The selected participant id is invalid."]
        }

    def test_unknown_participant_is_rejected(self, client, event):
        response = submit(client, event, {"participant_id": 999, "rating": 5})
        assert response.status_code == 422

    def test_unknown_event_is_404(self, client, participant):
        response = client.post(
            "/api/events/999/feedback", json={"participant_id": participant["id"], "rating": 3}
        )
        assert response.status_code == 404
        assert response.json() == {"message": "Event not found"}

    def test_private_mode_requires_the_participant_or_owner(
        self, client, owner, guest, stranger, event, participant, monkeypatch
    ):
        monkeypatch.setattr(settings, "public_feedback", False)
        payload = {"participant_id": participant["id"], "rating": 2}

        assert submit(client, event, payload).status_code == 403
        assert submit(client, event, payload, stranger["headers"]).status_code == 403
        assert submit(client, event, payload, guest["headers"]).status_code == 201
        assert submit(client, event, {**payload, "rating": 3}, owner["headers"]).status_code == 200


class TestListFeedback:
    def test_owner_lists_feedback(self, client, owner, event, participant):
        submit(client, event, {"participant_id": participant["id"], "rating": 5, "comments": "Loved it"})
        response = client.get(f"/api/events/{event['id']}/feedback", headers=owner["headers"])
        assert response.status_code == 200
        assert [(f["rating"], f["comments"]) for f in response.json()] == [(5, "Loved it")]

    def test_participant_cannot_list(self, client, guest, event, participant):
        response = client.get(f"/api/events/{event['id']}/feedback", headers=guest["headers"])
        assert response.status_code == 403

    def test_anonymous_cannot_list(self, client, event):
        response = client.get(f"/api/events/{event['id']}/feedback")
        assert response.status_code == 401


class TestRequestFeedback:
    def add(self, client, owner, event, email, status):
        return client.post(
            f"/api/events/{event['id']}/participants",
            json={"email": email, "name": email.split("@")[0].title(), "status": status},
            headers=owner["headers"],
        ).json()

    def test_only_confirmed_and_attending_participants_are_asked(self, client, owner, event, mailer):
        self.add(client, owner, event, "ann@example.com", "confirmed")
        self.add(client, owner, event, "bea@example.com", "attended")
        self.add(client, owner, event, "cid@example.com", "invited")
        self.add(client, owner, event, "dee@example.com", "declined")

        response = client.post(f"/api/events/{event['id']}/feedback/request", headers=owner["headers"])
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Feedback requests sent successfully"
        assert [d["email"] for d in body["dispatches"]] == ["ann@example.com", "bea@example.com"]
        assert {d["kind"] for d in body["dispatches"]} == {"feedback_request"}

        assert mailer.attempts == ["ann@example.com", "bea@example.com"]
        assert mailer.sent[0]["Subject"] == "We'd like your feedback: Spring Conference"
        assert "/feedback/" in mailer.sent[0].get_content()

    def test_no_eligible_participants(self, client, owner, event, participant, mailer):
        response = client.post(f"/api/events/{event['id']}/feedback/request", headers=owner["headers"])
        assert response.status_code == 200
        assert response.json()["dispatches"] == []
        assert mailer.attempts == []
