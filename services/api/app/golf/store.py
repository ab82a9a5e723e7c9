"""SQL access for golf data shared by the API routes and the stats jobs."""

import json
import logging

from sqlalchemy import text

from ..db import utcnow
from .stats_calculator import calculate_stats_from_shots

logger = logging.getLogger(__name__)

ROUND_COLUMNS = """
    id, player_id, course_id, qualifier_id, course_name, course_city, course_state, round_type, round_date,
    course_rating, course_slope, total_score, total_par, total_to_par, total_putts,
    fairways_hit, fairways_total, greens_in_regulation, greens_total, is_complete,
    created_at, updated_at
"""

SHOT_COLUMNS = """
    s.id, s.round_id, s.hole_id, s.hole_number, s.shot_number, s.shot_type, s.club_type,
    s.lie_before, s.distance_to_hole_before, s.distance_unit_before, s.result,
    s.distance_to_hole_after, s.distance_unit_after, s.shot_distance, s.miss_direction,
    s.putt_break, s.putt_slope, s.is_penalty, s.penalty_type
"""


def load_player_rounds(db, player_id: str) -> list[dict]:
    rows = db.execute(
        text(f"""
            SELECT {ROUND_COLUMNS}
            FROM golf_rounds
            WHERE player_id = :player_id
            ORDER BY round_date DESC, created_at DESC
        """),
        {"player_id": player_id},
    ).mappings().all()
    return [dict(r) for r in rows]


def load_player_holes(db, player_id: str) -> list[dict]:
    rows = db.execute(
        text("""
            SELECT h.id, h.round_id, h.hole_number, h.par, h.yardage, h.score,
                   h.score_to_par, h.putts, h.fairway_hit, h.green_in_regulation
            FROM golf_holes h
            JOIN golf_rounds r ON r.id = h.round_id
            WHERE r.player_id = :player_id
        """),
        {"player_id": player_id},
    ).mappings().all()
    return [dict(r) for r in rows]


def load_player_shots(db, player_id: str) -> list[dict]:
    rows = db.execute(
        text(f"""
            SELECT {SHOT_COLUMNS}
            FROM golf_shots s
            JOIN golf_rounds r ON r.id = s.round_id
            WHERE r.player_id = :player_id
            ORDER BY s.round_id, s.hole_number, s.shot_number
        """),
        {"player_id": player_id},
    ).mappings().all()
    return [dict(r) for r in rows]


def save_player_stats(db, player_id: str, stats: dict, rounds_included: int) -> str:
    """Upsert the cached stats payload for a player. The caller commits.

    Returns:
        str: The `calculated_at` timestamp that was stored.
    """
    calculated_at = utcnow()
    db.execute(
        text("""
            INSERT INTO golf_player_stats (player_id, rounds_included, stats, calculated_at)
            VALUES (:player_id, :rounds_included, :stats, :calculated_at)
            ON CONFLICT (player_id) DO UPDATE SET
              rounds_included = excluded.rounds_included,
              stats = excluded.stats,
              calculated_at = excluded.calculated_at
        """),
        {
            "player_id": player_id,
            "rounds_included": rounds_included,
            "stats": json.dumps(stats),
            "calculated_at": calculated_at,
        },
    )
    return calculated_at


def recalculate_player_stats(db, player_id: str) -> dict:
    """Recompute shot-based stats for one player and store them. The caller commits.

    Returns:
        dict: `{player_id, rounds_included, calculated_at, stats}`.
    """
    rounds = load_player_rounds(db, player_id)
    stats = calculate_stats_from_shots(
        load_player_shots(db, player_id),
        load_player_holes(db, player_id),
        rounds,
    )
    rounds_included = stats["scoring"]["rounds_played"]
    calculated_at = save_player_stats(db, player_id, stats, rounds_included)
    logger.info("golf stats recalculated", extra={"player_id": player_id, "rounds": rounds_included})
    return {
        "player_id": player_id,
        "rounds_included": rounds_included,
        "calculated_at": calculated_at,
        "stats": stats,
    }
