"""Saved golf courses and rounds played on them."""

import pytest

TWO_PUTT_PAR = [
    {"shot_number": 1, "shot_type": "tee", "club_type": "non_driver", "lie_before": "tee",
     "distance_to_hole_before": 170, "result": "green", "distance_to_hole_after": 30, "distance_unit_after": "feet"},
    {"shot_number": 2, "shot_type": "putting", "club_type": "putter", "lie_before": "green",
     "distance_to_hole_before": 30, "distance_unit_before": "feet", "result": "green",
     "distance_to_hole_after": 3, "distance_unit_after": "feet"},
    {"shot_number": 3, "shot_type": "putting", "club_type": "putter", "lie_before": "green",
     "distance_to_hole_before": 3, "distance_unit_before": "feet", "result": "hole", "distance_to_hole_after": 0},
]

LAYOUT = [
    {"hole_number": 1, "par": 4, "yardage": 410},
    {"hole_number": 2, "par": 3, "yardage": 175},
    {"hole_number": 3, "par": 5, "yardage": 530},
]


@pytest.fixture()
def golfer(client, make_user):
    return make_user("courses@helmsports.com", role="player", sport="golf", first="Cy", last="Course")


def _save_course(client, headers, **overrides):
    payload = {
        "name": "Harbor Links",
        "city": "Sandpoint",
        "state": "ID",
        "course_rating": 71.4,
        "slope_rating": 126,
        "tee_name": "Blue",
        "holes": LAYOUT,
    }
    resp = client.post("/api/v1/golf/courses", json={**payload, **overrides}, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_course_sums_layout(client, golfer) -> None:
    headers, _ = golfer
    body = _save_course(client, headers)
    course = body["course"]
    assert course["total_par"] == 12
    assert course["total_yardage"] == 1115
    assert course["default_tee_name"] == "Blue"
    assert [h["hole_number"] for h in body["holes"]] == [1, 2, 3]

    listed = client.get("/api/v1/golf/courses", headers=headers).json()["courses"]
    assert [c["name"] for c in listed] == ["Harbor Links"]


def test_course_validation_and_duplicate_name(client, golfer) -> None:
    headers, _ = golfer
    repeated = [LAYOUT[0], LAYOUT[0]]
    resp = client.post("/api/v1/golf/courses", json={"name": "Twice", "holes": repeated}, headers=headers)
    assert resp.status_code == 422
    resp = client.post("/api/v1/golf/courses", json={"name": "Empty", "holes": []}, headers=headers)
    assert resp.status_code == 422

    _save_course(client, headers)
    resp = client.post("/api/v1/golf/courses", json={"name": "Harbor Links", "holes": LAYOUT}, headers=headers)
    assert resp.status_code == 409


def test_update_course_replaces_layout(client, golfer) -> None:
    headers, _ = golfer
    course = _save_course(client, headers)["course"]
    url = f"/api/v1/golf/courses/{course['id']}"

    body = client.patch(url, json={"tee_name": "White", "holes": LAYOUT[:2]}, headers=headers).json()
    assert body["course"]["default_tee_name"] == "White"
    assert body["course"]["total_par"] == 7
    assert len(body["holes"]) == 2

    assert client.patch(url, json={"name": None}, headers=headers).status_code == 422


def test_courses_are_private_to_creator(client, make_user, golfer) -> None:
    headers, _ = golfer
    course = _save_course(client, headers)["course"]
    other_headers, _ = make_user("othergolfer@helmsports.com", role="player", sport="golf")
    url = f"/api/v1/golf/courses/{course['id']}"

    assert client.get(url, headers=other_headers).status_code == 404
    assert client.get("/api/v1/golf/courses", headers=other_headers).json()["courses"] == []
    assert client.delete(url, headers=other_headers).status_code == 404
    assert client.delete(url, headers=headers).status_code == 200
    assert client.get(url, headers=headers).status_code == 404


def test_round_from_course_uses_layout(client, golfer) -> None:
    headers, _ = golfer
    course = _save_course(client, headers)["course"]

    resp = client.post(
        "/api/v1/golf/rounds", json={"course_id": course["id"], "round_date": "2026-06-02"}, headers=headers
    )
    assert resp.status_code == 201, resp.text
    rnd = resp.json()["round"]
    assert rnd["course_id"] == course["id"]
    assert rnd["course_name"] == "Harbor Links"
    assert rnd["course_rating"] == 71.4
    assert rnd["course_slope"] == 126

    base = f"/api/v1/golf/rounds/{rnd['id']}/holes"
    hole = client.put(f"{base}/2", json={"shots": TWO_PUTT_PAR}, headers=headers).json()["hole"]
    assert hole["par"] == 3
    assert hole["yardage"] == 175
    assert hole["score_to_par"] == 0

    # hole 7 is not part of the saved layout
    assert client.put(f"{base}/7", json={"shots": TWO_PUTT_PAR}, headers=headers).status_code == 400
    assert client.put(f"{base}/7", json={"par": 3, "shots": TWO_PUTT_PAR}, headers=headers).status_code == 200

    # deleting the course keeps the round
    client.delete(f"/api/v1/golf/courses/{course['id']}", headers=headers)
    kept = client.get(f"/api/v1/golf/rounds/{rnd['id']}", headers=headers).json()["round"]
    assert kept["course_id"] is None
    assert kept["course_name"] == "Harbor Links"


def test_round_needs_course_name_or_course(client, golfer) -> None:
    headers, _ = golfer
    assert client.post("/api/v1/golf/rounds", json={"round_date": "2026-06-02"}, headers=headers).status_code == 422
    resp = client.post("/api/v1/golf/rounds", json={"course_id": "missing", "round_date": "2026-06-02"}, headers=headers)
    assert resp.status_code == 404

    rnd = client.post(
        "/api/v1/golf/rounds", json={"course_name": "Muni", "round_date": "2026-06-02"}, headers=headers
    ).json()["round"]
    resp = client.put(f"/api/v1/golf/rounds/{rnd['id']}/holes/1", json={"shots": TWO_PUTT_PAR}, headers=headers)
    assert resp.status_code == 400
