"""Golf round tracking and statistics routes.

Flow for a player:
1) `POST /golf/rounds` creates an open round
2) `PUT /golf/rounds/{id}/holes/{n}` records the shots of a hole; score,
   putts, fairway and GIR are derived from the shots
3) `POST /golf/rounds/{id}/complete` totals the holes and closes the round

Coaches can read rounds and stats of players on their team rosters.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..db import get_db, new_id, utcnow
from ..golf import (
    average_by_round_type,
    calculate_stats_from_shots,
    hole_stats_from_shots,
    recent_rounds,
    round_summary_stats,
    scoring_distribution,
    scoring_trend,
    team_stats,
)
from ..golf.store import ROUND_COLUMNS, SHOT_COLUMNS, load_player_holes, load_player_rounds, load_player_shots
from ..rate_limit import RATE_LIMITS, rate_limited
from ..schemas import HoleIn, RoundCreateIn
from ..security import get_current_user, require_coach, require_player
from .golf_courses import visible_course
from .qualifiers import require_qualifier_entry
from .teams import coach_has_player, owned_team

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/golf", tags=["golf"])

_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))


def _golf_player(player: dict = Depends(require_player)) -> dict:
    if player["sport"] != "golf":
        raise HTTPException(status_code=403, detail="Golf player account required")
    return player


def _check_player_access(db: Session, user: dict, player_id: str) -> None:
    """Players see their own data; coaches see players on their rosters."""
    if user["role"] == "player":
        own = db.execute(
            text("SELECT 1 FROM players WHERE id = :player_id AND user_id = :user_id"),
            {"player_id": player_id, "user_id": user["id"]},
        ).first()
        if own:
            return
    else:
        coach = db.execute(
            text("SELECT id FROM coaches WHERE user_id = :user_id"),
            {"user_id": user["id"]},
        ).mappings().first()
        if coach and coach_has_player(db, coach["id"], player_id):
            return
    raise HTTPException(status_code=403, detail="Not allowed to view this player's rounds")


def _load_round(db: Session, round_id: str) -> dict:
    row = db.execute(
        text(f"SELECT {ROUND_COLUMNS} FROM golf_rounds WHERE id = :id"),
        {"id": round_id},
    ).mappings().first()
    if not row:
        raise HTTPException(status_code=404, detail="Round not found")
    return dict(row)


def _own_round(db: Session, round_id: str, player: dict) -> dict:
    rnd = _load_round(db, round_id)
    if rnd["player_id"] != player["player_id"]:
        raise HTTPException(status_code=404, detail="Round not found")
    return rnd


@router.post("/rounds", status_code=201, dependencies=[_write_limit])
def create_round(payload: RoundCreateIn, player: dict = Depends(_golf_player), db: Session = Depends(get_db)):
    """Open a new round.

    With `course_id`, course fields left out of the body come from the saved
    course. With `qualifier_id`, the player must be entered in the qualifier
    and the round is recorded as a qualifying round.

    Raises:
        HTTPException: 404 for an unknown course or qualifier; 400 when the
            player is not entered in the qualifier.
    """
    values = payload.model_dump(exclude={"course_id", "qualifier_id"})
    if payload.course_id:
        course = visible_course(db, payload.course_id, player["id"])
        values["course_name"] = values["course_name"] or course["name"]
        values["course_city"] = values["course_city"] or course["city"]
        values["course_state"] = values["course_state"] or course["state"]
        if values["course_rating"] is None:
            values["course_rating"] = course["course_rating"]
        if values["course_slope"] is None:
            values["course_slope"] = course["slope_rating"]
    if payload.qualifier_id:
        require_qualifier_entry(db, payload.qualifier_id, player["player_id"])
        values["round_type"] = "qualifying"

    now = utcnow()
    round_id = new_id()
    db.execute(
        text("""
            INSERT INTO golf_rounds
              (id, player_id, course_id, qualifier_id, course_name, course_city, course_state,
               round_type, round_date, course_rating, course_slope, is_complete, created_at, updated_at)
            VALUES
              (:id, :player_id, :course_id, :qualifier_id, :course_name, :course_city, :course_state,
               :round_type, :round_date, :course_rating, :course_slope, :is_complete, :now, :now)
        """),
        {
            **values,
            "round_date": payload.round_date.isoformat(),
            "id": round_id,
            "player_id": player["player_id"],
            "course_id": payload.course_id,
            "qualifier_id": payload.qualifier_id,
            "is_complete": False,
            "now": now,
        },
    )
    db.commit()
    logger.info("golf round created", extra={"round_id": round_id, "player_id": player["player_id"]})
    return {"ok": True, "round": _load_round(db, round_id)}


@router.get("/rounds")
def list_rounds(
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
    player_id: str | None = Query(default=None, description="Required for coaches."),
):
    """List rounds, newest first, for the caller or a rostered player."""
    if player_id is None:
        if user["role"] != "player":
            raise HTTPException(status_code=400, detail="player_id is required")
        player_id = db.execute(
            text("SELECT id FROM players WHERE user_id = :user_id"),
            {"user_id": user["id"]},
        ).scalar_one()
    _check_player_access(db, user, player_id)
    return {"ok": True, "rounds": load_player_rounds(db, player_id)}


@router.get("/rounds/{round_id}")
def get_round(round_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """A round with its holes and, per hole, the recorded shots."""
    rnd = _load_round(db, round_id)
    _check_player_access(db, user, rnd["player_id"])

    holes = db.execute(
        text("""
            SELECT id, hole_number, par, yardage, score, score_to_par, putts,
                   fairway_hit, green_in_regulation
            FROM golf_holes
            WHERE round_id = :round_id
            ORDER BY hole_number
        """),
        {"round_id": round_id},
    ).mappings().all()
    shots = db.execute(
        text(f"""
            SELECT {SHOT_COLUMNS}
            FROM golf_shots s
            WHERE s.round_id = :round_id
            ORDER BY s.hole_number, s.shot_number
        """),
        {"round_id": round_id},
    ).mappings().all()

    by_hole: dict[int, list] = {}
    for s in shots:
        by_hole.setdefault(int(s["hole_number"]), []).append(dict(s))

    rnd["holes"] = [{**dict(h), "shots": by_hole.get(int(h["hole_number"]), [])} for h in holes]
    return {"ok": True, "round": rnd}


@router.put("/rounds/{round_id}/holes/{hole_number}", dependencies=[_write_limit])
def record_hole(
    round_id: str,
    payload: HoleIn,
    hole_number: int = Path(ge=1, le=18),
    player: dict = Depends(_golf_player),
    db: Session = Depends(get_db),
):
    """Record (or re-record) the shots of one hole.

    Existing shots of the hole are replaced. The hole row is upserted with the
    values derived from the shots.

    Without `par` (or `yardage`) the hole layout of the round's saved course
    is used.

    Raises:
        HTTPException: 404 for an unknown round; 409 if the round is complete;
            400 when `par` is missing and the course does not define the hole.
    """
    rnd = _own_round(db, round_id, player)
    if rnd["is_complete"]:
        raise HTTPException(status_code=409, detail="Round is already complete")

    par, yardage = payload.par, payload.yardage
    if par is None or yardage is None:
        layout = None
        if rnd["course_id"]:
            layout = db.execute(
                text("""
                    SELECT par, yardage FROM golf_course_holes
                    WHERE course_id = :course_id AND hole_number = :hole_number
                """),
                {"course_id": rnd["course_id"], "hole_number": hole_number},
            ).mappings().first()
        if layout:
            par = par if par is not None else layout["par"]
            yardage = yardage if yardage is not None else layout["yardage"]
        elif par is None:
            raise HTTPException(status_code=400, detail="par is required for this hole")

    shots = [s.model_dump() for s in payload.shots]
    derived = hole_stats_from_shots(shots, par, hole_number)

    db.execute(
        text("DELETE FROM golf_shots WHERE round_id = :round_id AND hole_number = :hole_number"),
        {"round_id": round_id, "hole_number": hole_number},
    )
    db.execute(
        text("""
            INSERT INTO golf_holes
              (id, round_id, hole_number, par, yardage, score, score_to_par, putts,
               fairway_hit, green_in_regulation)
            VALUES
              (:id, :round_id, :hole_number, :par, :yardage, :score, :score_to_par, :putts,
               :fairway_hit, :green_in_regulation)
            ON CONFLICT (round_id, hole_number) DO UPDATE SET
              par = excluded.par,
              yardage = excluded.yardage,
              score = excluded.score,
              score_to_par = excluded.score_to_par,
              putts = excluded.putts,
              fairway_hit = excluded.fairway_hit,
              green_in_regulation = excluded.green_in_regulation
        """),
        {
            "id": new_id(),
            "round_id": round_id,
            "hole_number": hole_number,
            "par": par,
            "yardage": yardage,
            "score": derived.score,
            "score_to_par": derived.score_to_par,
            "putts": derived.putts,
            "fairway_hit": derived.fairway_hit,
            "green_in_regulation": derived.green_in_regulation,
        },
    )
    hole_id = db.execute(
        text("SELECT id FROM golf_holes WHERE round_id = :round_id AND hole_number = :hole_number"),
        {"round_id": round_id, "hole_number": hole_number},
    ).scalar_one()

    for shot in shots:
        db.execute(
            text("""
                INSERT INTO golf_shots
                  (id, round_id, hole_id, hole_number, shot_number, shot_type, club_type, lie_before,
                   distance_to_hole_before, distance_unit_before, result, distance_to_hole_after,
                   distance_unit_after, shot_distance, miss_direction, putt_break, putt_slope,
                   is_penalty, penalty_type)
                VALUES
                  (:id, :round_id, :hole_id, :hole_number, :shot_number, :shot_type, :club_type, :lie_before,
                   :distance_to_hole_before, :distance_unit_before, :result, :distance_to_hole_after,
                   :distance_unit_after, :shot_distance, :miss_direction, :putt_break, :putt_slope,
                   :is_penalty, :penalty_type)
            """),
            {**shot, "id": new_id(), "round_id": round_id, "hole_id": hole_id, "hole_number": hole_number},
        )

    db.execute(
        text("UPDATE golf_rounds SET updated_at = :now WHERE id = :id"),
        {"now": utcnow(), "id": round_id},
    )
    db.commit()

    return {
        "ok": True,
        "hole": {
            "id": hole_id,
            "hole_number": hole_number,
            "par": par,
            "yardage": yardage,
            "score": derived.score,
            "score_to_par": derived.score_to_par,
            "putts": derived.putts,
            "fairway_hit": derived.fairway_hit,
            "green_in_regulation": derived.green_in_regulation,
        },
    }


@router.post("/rounds/{round_id}/complete", dependencies=[_write_limit])
def complete_round(round_id: str, player: dict = Depends(_golf_player), db: Session = Depends(get_db)):
    """Total the recorded holes and mark the round complete.

    Fairway opportunities are the par 4 and par 5 holes; GIR opportunities are
    all recorded holes.

    Raises:
        HTTPException: 400 if no hole has been recorded.
    """
    _own_round(db, round_id, player)
    holes = db.execute(
        text("""
            SELECT par, score, putts, fairway_hit, green_in_regulation
            FROM golf_holes WHERE round_id = :round_id
        """),
        {"round_id": round_id},
    ).mappings().all()
    if not holes:
        raise HTTPException(status_code=400, detail="Cannot complete a round without holes")

    total_score = sum(h["score"] for h in holes)
    total_par = sum(h["par"] for h in holes)
    totals = {
        "total_score": total_score,
        "total_par": total_par,
        "total_to_par": total_score - total_par,
        "total_putts": sum(h["putts"] for h in holes),
        "fairways_hit": sum(1 for h in holes if h["par"] >= 4 and h["fairway_hit"]),
        "fairways_total": sum(1 for h in holes if h["par"] >= 4),
        "greens_in_regulation": sum(1 for h in holes if h["green_in_regulation"]),
        "greens_total": len(holes),
    }

    db.execute(
        text("""
            UPDATE golf_rounds SET
              total_score = :total_score,
              total_par = :total_par,
              total_to_par = :total_to_par,
              total_putts = :total_putts,
              fairways_hit = :fairways_hit,
              fairways_total = :fairways_total,
              greens_in_regulation = :greens_in_regulation,
              greens_total = :greens_total,
              is_complete = :is_complete,
              updated_at = :now
            WHERE id = :id
        """),
        {**totals, "is_complete": True, "now": utcnow(), "id": round_id},
    )
    db.commit()
    logger.info("golf round completed", extra={"round_id": round_id, "total_score": total_score})
    return {"ok": True, "round": _load_round(db, round_id)}


@router.delete("/rounds/{round_id}", dependencies=[_write_limit])
def delete_round(round_id: str, player: dict = Depends(_golf_player), db: Session = Depends(get_db)):
    _own_round(db, round_id, player)
    params = {"round_id": round_id}
    db.execute(text("DELETE FROM golf_shots WHERE round_id = :round_id"), params)
    db.execute(text("DELETE FROM golf_holes WHERE round_id = :round_id"), params)
    db.execute(text("DELETE FROM golf_rounds WHERE id = :round_id"), params)
    db.commit()
    return {"ok": True}


@router.get("/players/{player_id}/stats")
def player_stats(player_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """Shot-based statistics plus round-level summaries for a player.

    Returns:
        dict: `{ "ok": true, "stats": {...}, "summary": {...}, "trend",
        "distribution", "by_round_type", "recent_rounds" }`.
    """
    _check_player_access(db, user, player_id)
    rounds = load_player_rounds(db, player_id)
    holes = load_player_holes(db, player_id)
    completed = [r for r in rounds if r["is_complete"]]

    return {
        "ok": True,
        "stats": calculate_stats_from_shots(load_player_shots(db, player_id), holes, rounds),
        "summary": round_summary_stats(completed),
        "trend": scoring_trend(completed),
        "distribution": scoring_distribution(holes),
        "by_round_type": average_by_round_type(completed),
        "recent_rounds": recent_rounds(rounds),
    }


@router.get("/teams/{team_id}/stats")
def golf_team_stats(team_id: str, coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    owned_team(db, team_id, coach["coach_id"])
    members = db.execute(
        text("SELECT player_id, status FROM team_members WHERE team_id = :team_id"),
        {"team_id": team_id},
    ).mappings().all()
    rounds = db.execute(
        text("""
            SELECT r.total_score, r.round_date
            FROM golf_rounds r
            JOIN team_members tm ON tm.player_id = r.player_id
            WHERE tm.team_id = :team_id AND r.is_complete = :is_complete
        """),
        {"team_id": team_id, "is_complete": True},
    ).mappings().all()

    return {
        "ok": True,
        "stats": team_stats(
            len(members),
            sum(1 for m in members if m["status"] == "active"),
            [dict(r) for r in rounds],
            date.today(),
        ),
    }
