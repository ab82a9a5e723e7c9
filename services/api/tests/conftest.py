"""Shared fixtures for the API tests.

The API runs against an in-memory SQLite database (single shared connection).
Environment variables are set before the app is imported so the cached
settings pick them up.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from services.api.app.db import engine
from services.api.app.main import app
from services.api.app.models import ensure_tables
from services.api.app.rate_limit import limiter

# children before parents
TABLES = [
    "golf_player_stats",
    "golf_shots",
    "golf_holes",
    "golf_rounds",
    "golf_qualifier_entries",
    "golf_qualifiers",
    "golf_course_holes",
    "golf_courses",
    "announcement_acknowledgements",
    "team_announcements",
    "team_members",
    "teams",
    "notifications",
    "messages",
    "conversation_participants",
    "conversations",
    "player_engagement_events",
    "watchlists",
    "recruiting_interests",
    "player_comparisons",
    "colleges",
    "coaches",
    "players",
    "password_resets",
    "sessions",
    "users",
]


@pytest.fixture()
def client():
    ensure_tables(engine)
    limiter.reset()
    with TestClient(app) as c:
        yield c
    with engine.begin() as conn:
        for table in TABLES:
            conn.execute(text(f"DELETE FROM {table}"))


@pytest.fixture()
def make_user(client):
    """Sign up an account and return `(headers, user)`."""

    def _make(email: str, role: str = "player", sport: str = "baseball", first: str = "Test", last: str = "User"):
        resp = client.post(
            "/api/v1/auth/signup",
            json={
                "email": email,
                "password": "correct-horse",
                "role": role,
                "sport": sport,
                "first_name": first,
                "last_name": last,
            },
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        headers = {"Authorization": f"Bearer {body['session']['access_token']}"}
        return headers, body["user"]

    return _make
