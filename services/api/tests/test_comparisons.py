"""Saved player comparisons."""


def test_save_list_and_delete_comparisons(client, make_user) -> None:
    coach_headers, _ = make_user("cmpcoach@helmsports.com", role="coach")
    _, ace = make_user("ace@helmsports.com", first="Ace", last="Adams")
    _, bo = make_user("bo@helmsports.com", first="Bo", last="Baker")
    ids = [ace["profile_id"], bo["profile_id"]]

    resp = client.post(
        "/api/v1/comparisons",
        json={"name": "  Catchers  ", "player_ids": ids, "comparison_data": {"metrics": ["pop_time"]}},
        headers=coach_headers,
    )
    assert resp.status_code == 201
    saved = resp.json()["comparison"]
    assert saved["name"] == "Catchers"
    assert [p["full_name"] for p in saved["players"]] == ["Ace Adams", "Bo Baker"]

    listed = client.get("/api/v1/comparisons", headers=coach_headers).json()["comparisons"]
    assert len(listed) == 1
    assert listed[0]["player_ids"] == ids
    assert listed[0]["comparison_data"] == {"metrics": ["pop_time"]}

    other_coach, _ = make_user("cmpother@helmsports.com", role="coach")
    assert client.get("/api/v1/comparisons", headers=other_coach).json()["comparisons"] == []
    assert client.delete(f"/api/v1/comparisons/{saved['id']}", headers=other_coach).status_code == 404
    assert client.delete(f"/api/v1/comparisons/{saved['id']}", headers=coach_headers).status_code == 200
    assert client.get("/api/v1/comparisons", headers=coach_headers).json()["comparisons"] == []


def test_comparison_validation(client, make_user) -> None:
    coach_headers, _ = make_user("cmpval@helmsports.com", role="coach")
    player_headers, ace = make_user("solo@helmsports.com", first="Solo", last="Player")
    url = "/api/v1/comparisons"

    assert client.post(url, json={"name": "One", "player_ids": [ace["profile_id"]]}, headers=coach_headers).status_code == 422
    twice = {"name": "Twice", "player_ids": [ace["profile_id"], ace["profile_id"]]}
    assert client.post(url, json=twice, headers=coach_headers).status_code == 422
    blank = {"name": "   ", "player_ids": [ace["profile_id"], "x"]}
    assert client.post(url, json=blank, headers=coach_headers).status_code == 422

    ghost = {"name": "Ghost", "player_ids": [ace["profile_id"], "missing"]}
    assert client.post(url, json=ghost, headers=coach_headers).status_code == 404
    assert client.post(url, json={**ghost, "player_ids": [ace["profile_id"], "x"]}, headers=player_headers).status_code == 403
