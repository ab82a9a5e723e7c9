"""Coach watchlist and recruiting pipeline."""

import pytest


@pytest.fixture()
def setup(client, make_user):
    coach_headers, _ = make_user("coach@helmsports.com", role="coach")
    _, p1 = make_user("one@helmsports.com", first="Alex", last="One")
    _, p2 = make_user("two@helmsports.com", first="Blake", last="Two")
    return coach_headers, p1["profile_id"], p2["profile_id"]


def test_add_and_list(client, setup) -> None:
    headers, p1, p2 = setup

    resp = client.post("/api/v1/watchlist", json={"player_id": p1, "notes": "strong arm", "tags": ["arm"]}, headers=headers)
    assert resp.status_code == 201
    entry = resp.json()["entry"]
    assert entry["pipeline_stage"] == "watchlist"
    assert entry["tags"] == ["arm"]
    assert entry["full_name"] == "Alex One"

    client.post("/api/v1/watchlist", json={"player_id": p2, "stage": "high_priority"}, headers=headers)

    entries = client.get("/api/v1/watchlist", headers=headers).json()["entries"]
    assert [e["player_id"] for e in entries] == [p2, p1]

    only_high = client.get("/api/v1/watchlist", params={"stage": "high_priority"}, headers=headers).json()["entries"]
    assert [e["player_id"] for e in only_high] == [p2]

    by_name = client.get("/api/v1/watchlist", params={"search": "alex"}, headers=headers).json()["entries"]
    assert [e["player_id"] for e in by_name] == [p1]


def test_duplicate_and_unknown_player(client, setup) -> None:
    headers, p1, _ = setup
    client.post("/api/v1/watchlist", json={"player_id": p1}, headers=headers)

    assert client.post("/api/v1/watchlist", json={"player_id": p1}, headers=headers).status_code == 409
    assert client.post("/api/v1/watchlist", json={"player_id": "missing"}, headers=headers).status_code == 404


def test_stage_update_moves_pipeline_card(client, setup) -> None:
    headers, p1, p2 = setup
    client.post("/api/v1/watchlist", json={"player_id": p1}, headers=headers)
    client.post("/api/v1/watchlist", json={"player_id": p2}, headers=headers)

    resp = client.patch(f"/api/v1/watchlist/{p1}", json={"stage": "offer_extended", "priority": 5}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["entry"]["pipeline_stage"] == "offer_extended"
    assert resp.json()["entry"]["priority"] == 5

    pipeline = client.get("/api/v1/watchlist/pipeline", headers=headers).json()["pipeline"]
    assert set(pipeline) == {"watchlist", "high_priority", "offer_extended", "committed", "uninterested"}
    assert [e["player_id"] for e in pipeline["offer_extended"]] == [p1]
    assert [e["player_id"] for e in pipeline["watchlist"]] == [p2]
    assert pipeline["committed"] == []

    stats = client.get("/api/v1/watchlist/stats", headers=headers).json()
    assert stats["total"] == 2
    assert stats["by_stage"]["offer_extended"] == 1
    assert stats["by_stage"]["committed"] == 0

    assert client.patch(f"/api/v1/watchlist/{p1}", json={"stage": "signed"}, headers=headers).status_code == 422


def test_notes_and_tags_can_be_cleared(client, setup) -> None:
    headers, p1, _ = setup
    client.post("/api/v1/watchlist", json={"player_id": p1, "notes": "strong arm", "tags": ["arm"]}, headers=headers)
    url = f"/api/v1/watchlist/{p1}"

    entry = client.patch(url, json={"notes": None, "tags": None}, headers=headers).json()["entry"]
    assert entry["notes"] is None
    assert entry["tags"] == []

    client.patch(url, json={"notes": "revisit", "tags": ["bat"]}, headers=headers)
    entry = client.patch(url, json={"notes": "", "tags": []}, headers=headers).json()["entry"]
    assert entry["notes"] is None
    assert entry["tags"] == []

    # leaving a field out keeps it
    client.patch(url, json={"notes": "keep me"}, headers=headers)
    entry = client.patch(url, json={"priority": 2}, headers=headers).json()["entry"]
    assert entry["notes"] == "keep me"

    assert client.patch(url, json={"stage": None}, headers=headers).status_code == 422
    assert client.patch(url, json={"priority": None}, headers=headers).status_code == 422


def test_remove(client, setup) -> None:
    headers, p1, _ = setup
    client.post("/api/v1/watchlist", json={"player_id": p1}, headers=headers)

    assert client.delete(f"/api/v1/watchlist/{p1}", headers=headers).status_code == 200
    assert client.delete(f"/api/v1/watchlist/{p1}", headers=headers).status_code == 404
    assert client.get("/api/v1/watchlist", headers=headers).json()["entries"] == []


def test_entries_are_scoped_to_the_coach(client, make_user, setup) -> None:
    headers, p1, _ = setup
    client.post("/api/v1/watchlist", json={"player_id": p1}, headers=headers)

    other_headers, _ = make_user("rival@helmsports.com", role="coach")
    assert client.get("/api/v1/watchlist", headers=other_headers).json()["entries"] == []
    assert client.patch(f"/api/v1/watchlist/{p1}", json={"notes": "x"}, headers=other_headers).status_code == 404
    # the rival can still add the same player to their own list
    assert client.post("/api/v1/watchlist", json={"player_id": p1}, headers=other_headers).status_code == 201


def test_watchlist_add_counts_on_player_dashboard(client, make_user) -> None:
    coach_headers, _ = make_user("c@helmsports.com", role="coach")
    player_headers, player = make_user("p@helmsports.com")
    client.post("/api/v1/watchlist", json={"player_id": player["profile_id"]}, headers=coach_headers)

    stats = client.get("/api/v1/dashboard/player", headers=player_headers).json()["stats"]
    assert stats["watchlist_adds"] == 1

    coach_dash = client.get("/api/v1/dashboard/coach", headers=coach_headers).json()
    assert coach_dash["watchlist"]["total"] == 1
