"""Batch recalculation of cached golf stats."""

import json

from sqlalchemy import text

from jobs.golf_stats.app.main import main, run

NOW = "2026-05-01T12:00:00.000000+00:00"


def _seed(engine) -> None:
    with engine.begin() as conn:
        for user_id, player_id, sport in (("u1", "p1", "golf"), ("u2", "p2", "golf"), ("u3", "p3", "baseball")):
            conn.execute(
                text("""
                    INSERT INTO users (id, email, password_hash, role, sport, created_at)
                    VALUES (:id, :email, 'x', 'player', :sport, :now)
                """),
                {"id": user_id, "email": f"{user_id}@helmsports.com", "sport": sport, "now": NOW},
            )
            conn.execute(
                text("""
                    INSERT INTO players (id, user_id, sport, first_name, last_name, full_name, created_at, updated_at)
                    VALUES (:id, :user_id, :sport, 'A', 'B', 'A B', :now, :now)
                """),
                {"id": player_id, "user_id": user_id, "sport": sport, "now": NOW},
            )

        conn.execute(
            text("""
                INSERT INTO golf_rounds (id, player_id, course_name, round_type, round_date, created_at, updated_at)
                VALUES ('r1', 'p1', 'Links', 'practice', '2026-04-30', :now, :now)
            """),
            {"now": NOW},
        )
        conn.execute(
            text("""
                INSERT INTO golf_holes (id, round_id, hole_number, par, score, score_to_par, putts, green_in_regulation)
                VALUES ('h1', 'r1', 1, 3, 2, -1, 1, 1)
            """)
        )
        for number, shot_type, lie, before, unit, result, after in (
            (1, "tee", "tee", 150, "yards", "green", 6),
            (2, "putting", "green", 6, "feet", "hole", None),
        ):
            conn.execute(
                text("""
                    INSERT INTO golf_shots
                      (id, round_id, hole_id, hole_number, shot_number, shot_type, lie_before,
                       distance_to_hole_before, distance_unit_before, result, distance_to_hole_after,
                       distance_unit_after)
                    VALUES
                      (:id, 'r1', 'h1', 1, :number, :shot_type, :lie, :before, :unit, :result, :after, 'feet')
                """),
                {
                    "id": f"s{number}",
                    "number": number,
                    "shot_type": shot_type,
                    "lie": lie,
                    "before": before,
                    "unit": unit,
                    "result": result,
                    "after": after,
                },
            )


def test_run_recalculates_every_golf_player(engine) -> None:
    _seed(engine)

    summary = run(engine)
    assert summary == {"players": 2, "rounds": 1}

    with engine.connect() as conn:
        rows = {
            r["player_id"]: r
            for r in conn.execute(text("SELECT player_id, rounds_included, stats FROM golf_player_stats")).mappings()
        }
    assert set(rows) == {"p1", "p2"}
    stats = json.loads(rows["p1"]["stats"])
    assert stats["scoring"]["total_birdies"] == 1
    assert stats["gir"]["gir_pct_par3"] == 100.0
    assert stats["putting"]["putt_make_pct_5_10"] == 100.0
    assert rows["p2"]["rounds_included"] == 0


def test_main_exit_codes(db_url, tmp_path) -> None:
    assert main(["--database-url", db_url]) == 0

    # a database without the schema makes the job fail
    empty = f"sqlite:///{tmp_path / 'empty.db'}"
    assert main(["--database-url", empty]) == 1
