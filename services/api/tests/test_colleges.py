"""College directory and recruiting interests."""

import pytest
from sqlalchemy import text

from services.api.app.db import engine

COLLEGES = [
    ("c1", "Austin State", "Austin", "TX", "D1", "Big 12"),
    ("c2", "Bay College", "Oakland", "CA", "D2", "Pacific West"),
    ("c3", "Coastal Tech", "Houston", "TX", "D1", "Sun Belt"),
    ("c4", "Desert JC", "Tucson", "AZ", "JUCO", None),
]


@pytest.fixture()
def colleges(client):
    with engine.begin() as conn:
        for row in COLLEGES:
            conn.execute(
                text("""
                    INSERT INTO colleges (id, name, city, state, division, conference)
                    VALUES (:id, :name, :city, :state, :division, :conference)
                """),
                dict(zip(["id", "name", "city", "state", "division", "conference"], row)),
            )


def test_list_and_filter_colleges(client, make_user, colleges) -> None:
    headers, _ = make_user("fan@helmsports.com")

    def ids(**params):
        return [c["id"] for c in client.get("/api/v1/colleges", params=params, headers=headers).json()["colleges"]]

    assert ids() == ["c1", "c2", "c3", "c4"]
    assert ids(division="D1") == ["c1", "c3"]
    assert ids(state="tx") == ["c1", "c3"]
    assert ids(conference="big") == ["c1"]
    assert ids(search="oakland") == ["c2"]
    assert ids(search="az") == ["c4"]


def test_states_and_conferences(client, make_user, colleges) -> None:
    headers, _ = make_user("fan@helmsports.com")
    assert client.get("/api/v1/colleges/states", headers=headers).json()["states"] == ["AZ", "CA", "TX"]
    assert client.get("/api/v1/colleges/conferences", headers=headers).json()["conferences"] == [
        "Big 12",
        "Pacific West",
        "Sun Belt",
    ]


def test_interests_are_idempotent(client, make_user, colleges) -> None:
    headers, _ = make_user("recruit@helmsports.com")

    assert client.post("/api/v1/interests/c1", headers=headers).status_code == 200
    assert client.post("/api/v1/interests/c1", headers=headers).status_code == 200
    assert client.post("/api/v1/interests/c3", headers=headers).status_code == 200
    assert client.post("/api/v1/interests/nope", headers=headers).status_code == 404

    interests = client.get("/api/v1/interests", headers=headers).json()["interests"]
    assert [i["college_id"] for i in interests] == ["c1", "c3"]

    client.delete("/api/v1/interests/c1", headers=headers)
    interests = client.get("/api/v1/interests", headers=headers).json()["interests"]
    assert [i["college_id"] for i in interests] == ["c3"]

    assert client.get("/api/v1/dashboard/player", headers=headers).json()["stats"]["interests"] == 1
