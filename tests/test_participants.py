from event_manager_api.app.core.config import settings

from conftest import count_rows


class TestAddParticipant:
    def test_default_status_is_invited(self, client, owner, event):
        response = client.post(
            f"/api/events/{event['id']}/participants",
            json={"email": "ann@example.com", "name": "Ann"},
            headers=owner["headers"],
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "invited"
        assert body["event_id"] == event["id"]

    def test_blank_name_is_rejected(self, client, owner, event):
        response = client.post(
            f"/api/events/{event['id']}/participants",
            json={"email": "ann@example.com", "name": "   "},
            headers=owner["headers"],
        )
        assert response.status_code == 422
        assert count_rows("participants") == 0

    def test_explicit_status_is_kept(self, client, owner, event):
        response = client.post(
            f"/api/events/{event['id']}/participants",
            json={"email": "ann@example.com", "name": "Ann", "status": "confirmed"},
            headers=owner["headers"],
        )
        assert response.json()["status"] == "confirmed"

    def test_invalid_email_is_rejected(self, client, owner, event):
        response = client.post(
            f"/api/events/{event['id']}/participants",
            json={"email": "not-an-email", "name": "Ann"},
            headers=owner["headers"],
        )
        assert response.status_code == 422
        assert count_rows("participants") == 0

    def test_adding_does_not_send_mail(self, client, owner, event, mailer):
        client.post(
            f"/api/events/{event['id']}/participants",
            json={"email": "ann@example.com", "name": "Ann"},
            headers=owner["headers"],
        )
        assert mailer.attempts == []

    def test_list(self, client, owner, event, participant):
        response = client.get(f"/api/events/{event['id']}/participants", headers=owner["headers"])
        assert response.status_code == 200
        assert [p["id"] for p in response.json()] == [participant["id"]]


class TestInvite:
    def invite(self, client, owner, event, emails, names):
        return client.post(
            f"/api/events/{event['id']}/participants/invite",
            json={"emails": emails, "names": names},
            headers=owner["headers"],
        )

    def test_invite_creates_participants_and_sends_mail(self, client, owner, event, mailer):
        response = self.invite(
            client, owner, event, ["a@example.com", "b@example.com"], ["Alice", "Bob"]
        )
        assert response.status_code == 201
        body = response.json()
        assert [p["status"] for p in body["participants"]] == ["invited", "invited"]
        assert [d["email"] for d in body["dispatches"]] == ["a@example.com", "b@example.com"]
        assert {d["kind"] for d in body["dispatches"]} == {"invitation"}

        assert mailer.attempts == ["a@example.com", "b@example.com"]
        message = mailer.sent[0]
        assert message["Subject"] == "Invitation: Spring Conference"
        body_text = message.get_content()
        assert "Hello Alice" in body_text
        assert f"/rsvp/{body['participants'][0]['id']}/confirm" in body_text

    def test_failed_delivery_does_not_stop_the_rest(self, client, owner, event, mailer):
        mailer.fail_for = {"a@example.com"}
        response = self.invite(
            client, owner, event, ["a@example.com", "b@example.com"], ["Alice", "Bob"]
        )
        assert response.status_code == 201
        assert count_rows("participants", event_id=event["id"]) == 2
        assert mailer.attempts == ["a@example.com", "b@example.com"]

        dispatches = client.get(
            f"/api/events/{event['id']}/dispatches", headers=owner["headers"]
        ).json()
        status_by_email = {d["email"]: d["status"] for d in dispatches}
        assert status_by_email == {"a@example.com": "failed", "b@example.com": "sent"}
        failed = next(d for d in dispatches if d["status"] == "failed")
        assert "Mailbox unavailable" in failed["error_message"]

    def test_lengths_must_match(self, client, owner, event):
        response = self.invite(client, owner, event, ["a@example.com", "b@example.com"], ["Alice"])
        assert response.status_code == 422
        assert count_rows("participants") == 0

    def test_lists_must_not_be_empty(self, client, owner, event):
        response = self.invite(client, owner, event, [], [])
        assert response.status_code == 422

    def test_every_email_is_validated(self, client, owner, event, mailer):
        response = self.invite(client, owner, event, ["a@example.com", "nope"], ["Alice", "Nope"])
        assert response.status_code == 422
        assert count_rows("participants") == 0
        assert mailer.attempts == []

    def test_stranger_cannot_invite(self, client, stranger, event, mailer):
        response = self.invite(client, stranger, event, ["a@example.com"], ["Alice"])
        assert response.status_code == 403
        assert count_rows("participants") == 0
        assert mailer.attempts == []


class TestUpdateAndDelete:
    def test_any_status_transition_is_allowed(self, client, owner, participant):
        for status in ("attended", "invited", "declined", "confirmed"):
            response = client.put(
                f"/api/participants/{participant['id']}",
                json={"status": status},
                headers=owner["headers"],
            )
            assert response.status_code == 200
            assert response.json()["status"] == status

    def test_unknown_status_is_rejected(self, client, owner, participant):
        response = client.put(
            f"/api/participants/{participant['id']}",
            json={"status": "maybe"},
            headers=owner["headers"],
        )
        assert response.status_code == 422

    def test_stranger_cannot_update(self, client, stranger, participant):
        response = client.put(
            f"/api/participants/{participant['id']}",
            json={"status": "declined"},
            headers=stranger["headers"],
        )
        assert response.status_code == 403
        assert count_rows("participants", id=participant["id"], status="invited") == 1

    def test_delete_removes_participant_and_feedback(self, client, owner, event, participant):
        client.post(
            f"/api/events/{event['id']}/feedback",
            json={"participant_id": participant["id"], "comments": "Nice"},
        )
        response = client.delete(f"/api/participants/{participant['id']}", headers=owner["headers"])
        assert response.status_code == 204
        assert count_rows("participants", id=participant["id"]) == 0
        assert count_rows("feedback", participant_id=participant["id"]) == 0

    def test_stranger_cannot_delete(self, client, stranger, participant):
        response = client.delete(f"/api/participants/{participant['id']}", headers=stranger["headers"])
        assert response.status_code == 403
        assert count_rows("participants", id=participant["id"]) == 1

    def test_unknown_participant_is_404(self, client, owner):
        response = client.put("/api/participants/999", json={"status": "confirmed"}, headers=owner["headers"])
        assert response.status_code == 404


class TestRsvp:
    def test_confirm_and_decline(self, client, participant):
        response = client.post(f"/api/rsvp/{participant['id']}/confirm")
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"

        response = client.post(f"/api/rsvp/{participant['id']}/decline")
        assert response.json()["status"] == "declined"

    def test_unknown_decision_is_rejected(self, client, participant):
        response = client.post(f"/api/rsvp/{participant['id']}/perhaps")
        assert response.status_code == 422

    def test_private_mode_requires_the_participant(self, client, participant, guest, stranger, monkeypatch):
        monkeypatch.setattr(settings, "public_feedback", False)
        assert client.post(f"/api/rsvp/{participant['id']}/confirm").status_code == 403
        assert (
            client.post(f"/api/rsvp/{participant['id']}/confirm", headers=stranger["headers"]).status_code
            == 403
        )
        response = client.post(f"/api/rsvp/{participant['id']}/confirm", headers=guest["headers"])
        assert response.status_code == 200
