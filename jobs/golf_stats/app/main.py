"""Golf stats batch job entrypoint.

Recomputes the cached shot-based statistics (`golf_player_stats`) for every
golf player. The API recalculates a single player on demand; this job is the
nightly/full rebuild.

Steps:
- load golf players, rounds, holes and shots with pandas (one query each)
- run the stats calculator per player
- upsert the JSON payload with a `calculated_at` timestamp

Returns:
    The process exit code (0 = success, 1 = failure).
"""

import argparse
import logging

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from libs.common_python.common.db import database_url, make_engine
from libs.common_python.common.logging import setup_logging
from services.api.app.golf import calculate_stats_from_shots
from services.api.app.golf.store import save_player_stats

logger = logging.getLogger(__name__)


def _records(df: pd.DataFrame) -> list[dict]:
    """DataFrame rows as plain dicts with NaN/NaT replaced by None."""
    return df.astype(object).where(df.notna(), None).to_dict("records")


def load_frames(engine: Engine) -> dict[str, pd.DataFrame]:
    """Load everything the calculator needs for all golf players.

    Holes and shots carry the owning `player_id` (joined from the round) so
    they can be split per player in memory.
    """
    queries = {
        "players": "SELECT id FROM players WHERE sport = 'golf'",
        "rounds": """
            SELECT r.id, r.player_id, r.round_date, r.round_type, r.created_at
            FROM golf_rounds r
            JOIN players p ON p.id = r.player_id
            WHERE p.sport = 'golf'
        """,
        "holes": """
            SELECT h.round_id, h.hole_number, h.par, r.player_id
            FROM golf_holes h
            JOIN golf_rounds r ON r.id = h.round_id
        """,
        "shots": """
            SELECT s.*, r.player_id
            FROM golf_shots s
            JOIN golf_rounds r ON r.id = s.round_id
        """,
    }
    with engine.connect() as conn:
        return {name: pd.read_sql(text(sql), conn) for name, sql in queries.items()}


def run(engine: Engine) -> dict:
    """Recalculate and store stats for every golf player.

    Returns:
        dict: `{"players": <count processed>, "rounds": <rounds included in total>}`.
    """
    frames = load_frames(engine)
    rounds, holes, shots = frames["rounds"], frames["holes"], frames["shots"]

    processed = 0
    rounds_total = 0
    with engine.begin() as conn:
        for player_id in frames["players"]["id"]:
            stats = calculate_stats_from_shots(
                _records(shots[shots["player_id"] == player_id]),
                _records(holes[holes["player_id"] == player_id]),
                _records(rounds[rounds["player_id"] == player_id]),
            )
            rounds_included = stats["scoring"]["rounds_played"]
            save_player_stats(conn, player_id, stats, rounds_included)
            processed += 1
            rounds_total += rounds_included

    logger.info("golf stats job finished", extra={"players": processed, "rounds": rounds_total})
    return {"players": processed, "rounds": rounds_total}


def main(argv: list[str] | None = None) -> int:
    """Run the job."""
    parser = argparse.ArgumentParser(description="Recalculate cached golf stats for all golf players.")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL.")
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    try:
        run(make_engine(database_url(args.database_url)))
    except Exception:
        logger.exception("golf stats job failed")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
