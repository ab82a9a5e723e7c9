"""Profiles, privacy, player discovery and profile view tracking."""

import pytest


@pytest.fixture()
def roster(client, make_user):
    """Three players with profiles and one coach."""

    def player(email, first, last, **profile):
        headers, user = make_user(email, role="player", first=first, last=last)
        resp = client.patch("/api/v1/profile", json=profile, headers=headers)
        assert resp.status_code == 200, resp.text
        return headers, user

    players = {
        "ace": player("ace@helmsports.com", "Ace", "Adams", grad_year=2026, primary_position="P", state="tx", gpa=3.9, bats="R"),
        "bo": player("bo@helmsports.com", "Bo", "Baker", grad_year=2027, primary_position="C", state="CA", gpa=3.2, bats="L"),
        "cy": player("cy@helmsports.com", "Cy", "Cole", grad_year=2026, primary_position="P", state="TX", bats="S"),
    }
    for headers, _ in players.values():
        client.patch("/api/v1/profile/privacy", json={"recruiting_activated": True}, headers=headers)

    coach_headers, coach = make_user("coach@helmsports.com", role="coach", first="Kim", last="Coach")
    return players, coach_headers


def test_profile_update_validates_ranges(client, make_user) -> None:
    headers, _ = make_user("ranges@helmsports.com")
    assert client.patch("/api/v1/profile", json={"grad_year": 2050}, headers=headers).status_code == 422
    assert client.patch("/api/v1/profile", json={"gpa": 5.5}, headers=headers).status_code == 422

    resp = client.patch("/api/v1/profile", json={"first_name": "Renamed", "state": "ny"}, headers=headers)
    profile = resp.json()["profile"]
    assert profile["full_name"] == "Renamed User"
    assert profile["state"] == "NY"


def test_coach_profile_update(client, make_user) -> None:
    headers, _ = make_user("kim@helmsports.com", role="coach")
    resp = client.patch(
        "/api/v1/profile",
        json={"full_name": "Kim Lee", "organization_name": "State U", "division": "D1"},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["profile"]["organization_name"] == "State U"
    assert client.patch("/api/v1/profile", json={"full_name": "K"}, headers=headers).status_code == 422


def test_required_names_cannot_be_nulled(client, make_user) -> None:
    player_headers, _ = make_user("names@helmsports.com", first="Nia", last="Lowe")
    coach_headers, _ = make_user("names-coach@helmsports.com", role="coach")

    for body in ({"first_name": None}, {"last_name": None}):
        assert client.patch("/api/v1/profile", json=body, headers=player_headers).status_code == 422
    assert client.patch("/api/v1/profile", json={"full_name": None}, headers=coach_headers).status_code == 422

    # nullable columns can still be cleared
    resp = client.patch("/api/v1/profile", json={"bio": None}, headers=player_headers)
    assert resp.status_code == 200
    assert resp.json()["profile"]["full_name"] == "Nia Lowe"


def test_discover_only_returns_activated_players(client, make_user, roster) -> None:
    _, coach_headers = roster
    make_user("hidden@helmsports.com", first="Hidden", last="Player")

    body = client.get("/api/v1/discover", headers=coach_headers).json()
    assert body["total"] == 3
    assert body["total_pages"] == 1
    assert {p["first_name"] for p in body["players"]} == {"Ace", "Bo", "Cy"}


def test_discover_filters_and_search(client, roster) -> None:
    _, coach_headers = roster

    def names(**params):
        body = client.get("/api/v1/discover", params=params, headers=coach_headers).json()
        return [p["first_name"] for p in body["players"]]

    assert sorted(names(grad_year=2026)) == ["Ace", "Cy"]
    assert names(position="C") == ["Bo"]
    assert sorted(names(state="tx")) == ["Ace", "Cy"]
    assert names(min_gpa=3.5) == ["Ace"]
    assert names(bats="L") == ["Bo"]
    assert names(search="BAK") == ["Bo"]


def test_discover_sorting_and_pagination(client, roster) -> None:
    _, coach_headers = roster

    body = client.get("/api/v1/discover", params={"sort": "gpa_desc"}, headers=coach_headers).json()
    # players without a GPA sort last
    assert [p["first_name"] for p in body["players"]] == ["Ace", "Bo", "Cy"]

    body = client.get("/api/v1/discover", params={"sort": "name_desc", "limit": 2, "page": 2}, headers=coach_headers).json()
    assert [p["first_name"] for p in body["players"]] == ["Ace"]
    assert body["total_pages"] == 2

    assert client.get("/api/v1/discover", params={"sort": "bogus"}, headers=coach_headers).status_code == 400


def test_hidden_gpa_is_null(client, roster) -> None:
    players, coach_headers = roster
    ace_headers, ace = players["ace"]
    client.patch("/api/v1/profile/privacy", json={"show_gpa": False}, headers=ace_headers)

    body = client.get("/api/v1/discover", params={"search": "ace"}, headers=coach_headers).json()
    assert body["players"][0]["gpa"] is None

    detail = client.get(f"/api/v1/players/{ace['profile_id']}", headers=coach_headers).json()["player"]
    assert detail["gpa"] is None
    assert detail["email"] is None

    own = client.get(f"/api/v1/players/{ace['profile_id']}", headers=ace_headers).json()["player"]
    assert own["gpa"] == 3.9


def test_profile_view_is_recorded_for_coaches(client, roster) -> None:
    players, coach_headers = roster
    bo_headers, bo = players["bo"]

    client.get(f"/api/v1/players/{bo['profile_id']}", headers=coach_headers)
    client.get(f"/api/v1/players/{bo['profile_id']}", headers=coach_headers)
    client.get(f"/api/v1/players/{bo['profile_id']}", headers=bo_headers)

    stats = client.get("/api/v1/dashboard/player", headers=bo_headers).json()["stats"]
    assert stats["profile_views"] == 2
    assert stats["profile_views_30d"] == 2
    assert stats["coaches_engaged"] == 1

    recent = client.get("/api/v1/dashboard/coach", headers=coach_headers).json()["recent_activity"]
    assert [e["engagement_type"] for e in recent] == ["profile_view", "profile_view"]


def test_undiscoverable_player_is_not_found_for_others(client, make_user, roster) -> None:
    _, coach_headers = roster
    headers, hidden = make_user("private@helmsports.com")

    assert client.get(f"/api/v1/players/{hidden['profile_id']}", headers=coach_headers).status_code == 404
    assert client.get(f"/api/v1/players/{hidden['profile_id']}", headers=headers).status_code == 200
    assert client.get("/api/v1/players/does-not-exist", headers=coach_headers).status_code == 404
