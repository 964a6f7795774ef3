import smtplib

import pytest
from fastapi.testclient import TestClient

from event_manager_api.app.core.config import settings
from event_manager_api.app.core.db import get_connection, init_db
from event_manager_api.app.core.mail import get_mailer
from event_manager_api.app.core.security import create_access_token
from event_manager_api.app.core.storage import LocalFileStore, get_file_store
from event_manager_api.app.main import app
from event_manager_api.app.services.user_service import UserService


class RecordingMailer:
    """Collects messages instead of sending them; refuses addresses in ``fail_for``."""

    def __init__(self):
        self.attempts = []
        self.sent = []
        self.fail_for = set()

    def send(self, message):
        self.attempts.append(message["To"])
        if message["To"] in self.fail_for:
            raise smtplib.SMTPRecipientsRefused({message["To"]: (550, b"Mailbox unavailable")})
        self.sent.append(message)


def make_user(email, name):
    user = UserService.get_or_create_user(email, name)
    token = create_access_token({"sub": email})
    user["headers"] = {"Authorization": f"Bearer {token}"}
    return user


def count_rows(table, **where):
    clause = " AND ".join(f"{key} = ?" for key in where) or "1 = 1"
    conn = get_connection()
    try:
        return conn.execute(
            f"SELECT COUNT(*) FROM {table} WHERE {clause}", tuple(where.values())
        ).fetchone()[0]
    finally:
        conn.close()


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "test.db"))
    monkeypatch.setattr(settings, "public_feedback", True)
    init_db()


@pytest.fixture
def store(tmp_path):
    return LocalFileStore(str(tmp_path / "storage"))


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def client(store, mailer):
    app.dependency_overrides[get_file_store] = lambda: store
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def owner():
    return make_user("owner@example.com", "Olivia Owner")


@pytest.fixture
def stranger():
    return make_user("stranger@example.com", "Sam Stranger")


@pytest.fixture
def guest():
    return make_user("guest@example.com", "Gina Guest")


@pytest.fixture
def event(client, owner):
    response = client.post(
        "/api/events",
        json={
            "title": "Spring Conference",
            "description": "Talks and workshops",
            "location": "Berlin",
            "start_date": "2025-04-10T09:00:00",
            "end_date": "2025-04-11T17:00:00",
        },
        headers=owner["headers"],
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def participant(client, owner, event):
    response = client.post(
        f"/api/events/{event['id']}/participants",
        json={"email": "guest@example.com", "name": "Gina Guest"},
        headers=owner["headers"],
    )
    assert response.status_code == 201
    return response.json()
