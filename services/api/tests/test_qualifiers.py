"""Team qualifiers: scheduling, entries, qualifying rounds and the leaderboard."""

import pytest

BIRDIE_THREE = [
    {"shot_number": 1, "shot_type": "tee", "club_type": "non_driver", "lie_before": "tee",
     "distance_to_hole_before": 160, "result": "green", "distance_to_hole_after": 6, "distance_unit_after": "feet"},
    {"shot_number": 2, "shot_type": "putting", "club_type": "putter", "lie_before": "green",
     "distance_to_hole_before": 6, "distance_unit_before": "feet", "result": "hole", "distance_to_hole_after": 0},
]


@pytest.fixture()
def squad(client, make_user):
    """A golf coach with a team of two players."""
    coach_headers, _ = make_user("qcoach@helmsports.com", role="coach", sport="golf")
    first = make_user("first@helmsports.com", role="player", sport="golf", first="Ada", last="First")
    second = make_user("second@helmsports.com", role="player", sport="golf", first="Bo", last="Second")

    team = client.post("/api/v1/teams", json={"name": "Travel"}, headers=coach_headers).json()["team"]
    for _, user in (first, second):
        client.post(f"/api/v1/teams/{team['id']}/members", json={"player_id": user["profile_id"]}, headers=coach_headers)
    return coach_headers, team, first, second


def _qualifier(client, coach_headers, team_id, **overrides):
    payload = {"name": "Spring Qualifier", "start_date": "2026-04-10", "num_rounds": 2, **overrides}
    resp = client.post(f"/api/v1/golf/teams/{team_id}/qualifiers", json=payload, headers=coach_headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_qualifier_with_entries(client, squad) -> None:
    coach_headers, team, (_, first), _ = squad
    body = _qualifier(client, coach_headers, team["id"], player_ids=[first["profile_id"]])
    assert body["qualifier"]["status"] == "upcoming"
    assert body["qualifier"]["holes_per_round"] == 18
    assert [e["player_id"] for e in body["entries"]] == [first["profile_id"]]

    listed = client.get(f"/api/v1/golf/teams/{team['id']}/qualifiers", headers=coach_headers).json()["qualifiers"]
    assert [(q["name"], q["entry_count"]) for q in listed] == [("Spring Qualifier", 1)]


def test_qualifier_validation(client, make_user, squad) -> None:
    coach_headers, team, _, _ = squad
    url = f"/api/v1/golf/teams/{team['id']}/qualifiers"

    backwards = {"name": "Q", "start_date": "2026-04-10", "end_date": "2026-04-01"}
    assert client.post(url, json=backwards, headers=coach_headers).status_code == 422
    nine_and_half = {"name": "Q", "start_date": "2026-04-10", "holes_per_round": 12}
    assert client.post(url, json=nine_and_half, headers=coach_headers).status_code == 422

    _, outsider = make_user("outsider@helmsports.com", role="player", sport="golf")
    resp = client.post(
        url, json={"name": "Q", "start_date": "2026-04-10", "player_ids": [outsider["profile_id"]]}, headers=coach_headers
    )
    assert resp.status_code == 400

    other_coach, _ = make_user("otherq@helmsports.com", role="coach", sport="golf")
    assert client.post(url, json={"name": "Q", "start_date": "2026-04-10"}, headers=other_coach).status_code == 404

    baseball_coach, _ = make_user("bbcoach@helmsports.com", role="coach", sport="baseball")
    bb_team = client.post("/api/v1/teams", json={"name": "Nine"}, headers=baseball_coach).json()["team"]
    resp = client.post(
        f"/api/v1/golf/teams/{bb_team['id']}/qualifiers",
        json={"name": "Q", "start_date": "2026-04-10"},
        headers=baseball_coach,
    )
    assert resp.status_code == 400


def test_qualifying_rounds_need_an_entry(client, squad) -> None:
    coach_headers, team, (first_headers, first), (second_headers, _) = squad
    qualifier = _qualifier(client, coach_headers, team["id"], player_ids=[first["profile_id"]])["qualifier"]
    payload = {"course_name": "Ridge", "round_date": "2026-04-10", "qualifier_id": qualifier["id"]}

    resp = client.post("/api/v1/golf/rounds", json=payload, headers=first_headers)
    assert resp.status_code == 201
    assert resp.json()["round"]["round_type"] == "qualifying"
    assert resp.json()["round"]["qualifier_id"] == qualifier["id"]

    assert client.post("/api/v1/golf/rounds", json=payload, headers=second_headers).status_code == 400
    unknown = {**payload, "qualifier_id": "missing"}
    assert client.post("/api/v1/golf/rounds", json=unknown, headers=first_headers).status_code == 404


def test_leaderboard_and_visibility(client, make_user, squad) -> None:
    coach_headers, team, (first_headers, first), (second_headers, second) = squad
    qualifier = _qualifier(
        client,
        coach_headers,
        team["id"],
        player_ids=[first["profile_id"], second["profile_id"]],
        show_live_leaderboard=False,
    )["qualifier"]
    url = f"/api/v1/golf/qualifiers/{qualifier['id']}"

    rnd = client.post(
        "/api/v1/golf/rounds",
        json={"course_name": "Ridge", "round_date": "2026-04-10", "qualifier_id": qualifier["id"]},
        headers=first_headers,
    ).json()["round"]
    client.put(f"/api/v1/golf/rounds/{rnd['id']}/holes/1", json={"par": 3, "shots": BIRDIE_THREE}, headers=first_headers)
    client.post(f"/api/v1/golf/rounds/{rnd['id']}/complete", headers=first_headers)

    board = client.get(url, headers=coach_headers).json()["leaderboard"]
    assert [(row["player_id"], row["position"], row["total_score"]) for row in board] == [
        (first["profile_id"], 1, 2),
        (second["profile_id"], None, None),
    ]

    # hidden from players until the qualifier is completed
    assert client.get(url, headers=second_headers).json()["leaderboard"] is None
    resp = client.patch(f"{url}/status", json={"status": "completed"}, headers=coach_headers)
    assert resp.status_code == 200
    assert resp.json()["qualifier"]["status"] == "completed"
    assert client.get(url, headers=second_headers).json()["leaderboard"][0]["player_id"] == first["profile_id"]

    outsider_headers, _ = make_user("nosyq@helmsports.com", role="player", sport="golf")
    assert client.get(url, headers=outsider_headers).status_code == 404
    assert client.patch(f"{url}/status", json={"status": "upcoming"}, headers=first_headers).status_code == 403
    assert client.patch(f"{url}/status", json={"status": "done"}, headers=coach_headers).status_code == 422
