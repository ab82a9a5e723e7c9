"""Coach-managed teams and rosters."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..db import get_db, new_id, utcnow
from ..rate_limit import RATE_LIMITS, rate_limited
from ..schemas import TeamCreateIn, TeamMemberIn, TeamMemberStatusIn
from ..security import get_current_user, require_coach

router = APIRouter(prefix="/teams", tags=["teams"])

_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))


def owned_team(db: Session, team_id: str, coach_id: str) -> dict:
    """Team row owned by `coach_id`; 404 otherwise (other coaches' teams are not revealed)."""
    team = db.execute(
        text("SELECT id, coach_id, name, sport, created_at FROM teams WHERE id = :id AND coach_id = :coach_id"),
        {"id": team_id, "coach_id": coach_id},
    ).mappings().first()
    if not team:
        raise HTTPException(status_code=404, detail="Team not found")
    return dict(team)


def coach_has_player(db: Session, coach_id: str, player_id: str) -> bool:
    """True when the player is on any of the coach's team rosters."""
    row = db.execute(
        text("""
            SELECT 1
            FROM team_members tm
            JOIN teams t ON t.id = tm.team_id
            WHERE t.coach_id = :coach_id AND tm.player_id = :player_id
            LIMIT 1
        """),
        {"coach_id": coach_id, "player_id": player_id},
    ).first()
    return row is not None


def team_access(db: Session, team_id: str, user: dict) -> dict:
    """Team row for its owning coach or a rostered player; 404 for anyone else.

    `player_id` in the result is the caller's roster entry (None for the coach).
    """
    team = db.execute(
        text("""
            SELECT t.id, t.coach_id, t.name, t.sport, c.user_id AS coach_user_id
            FROM teams t
            JOIN coaches c ON c.id = t.coach_id
            WHERE t.id = :id
        """),
        {"id": team_id},
    ).mappings().first()
    if team:
        if team["coach_user_id"] == user["id"]:
            return {**team, "player_id": None}
        player_id = db.execute(
            text("""
                SELECT tm.player_id
                FROM team_members tm
                JOIN players p ON p.id = tm.player_id
                WHERE tm.team_id = :team_id AND p.user_id = :user_id
            """),
            {"team_id": team_id, "user_id": user["id"]},
        ).scalar()
        if player_id:
            return {**team, "player_id": player_id}
    raise HTTPException(status_code=404, detail="Team not found")


@router.post("", status_code=201, dependencies=[_write_limit])
def create_team(payload: TeamCreateIn, coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    team_id = new_id()
    db.execute(
        text("""
            INSERT INTO teams (id, coach_id, name, sport, created_at)
            VALUES (:id, :coach_id, :name, :sport, :created_at)
        """),
        {
            "id": team_id,
            "coach_id": coach["coach_id"],
            "name": payload.name.strip(),
            "sport": coach["sport"],
            "created_at": utcnow(),
        },
    )
    db.commit()
    return {"ok": True, "team": owned_team(db, team_id, coach["coach_id"])}


@router.get("")
def list_teams(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """Coaches get the teams they own; players get the teams they belong to."""
    if user["role"] == "coach":
        rows = db.execute(
            text("""
                SELECT t.id, t.name, t.sport, t.created_at,
                       (SELECT COUNT(*) FROM team_members tm WHERE tm.team_id = t.id) AS member_count
                FROM teams t
                JOIN coaches c ON c.id = t.coach_id
                WHERE c.user_id = :user_id
                ORDER BY t.name
            """),
            {"user_id": user["id"]},
        ).mappings().all()
    else:
        rows = db.execute(
            text("""
                SELECT t.id, t.name, t.sport, tm.status, tm.joined_at, c.full_name AS coach_name
                FROM team_members tm
                JOIN teams t ON t.id = tm.team_id
                JOIN coaches c ON c.id = t.coach_id
                JOIN players p ON p.id = tm.player_id
                WHERE p.user_id = :user_id
                ORDER BY t.name
            """),
            {"user_id": user["id"]},
        ).mappings().all()
    return {"ok": True, "teams": list(rows)}


@router.get("/{team_id}/members")
def list_members(team_id: str, coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    owned_team(db, team_id, coach["coach_id"])
    rows = db.execute(
        text("""
            SELECT tm.player_id, tm.status, tm.joined_at,
                   p.full_name, p.grad_year, p.primary_position, p.sport
            FROM team_members tm
            JOIN players p ON p.id = tm.player_id
            WHERE tm.team_id = :team_id
            ORDER BY p.last_name, p.first_name
        """),
        {"team_id": team_id},
    ).mappings().all()
    return {"ok": True, "members": list(rows)}


@router.post("/{team_id}/members", status_code=201, dependencies=[_write_limit])
def add_member(
    team_id: str,
    payload: TeamMemberIn,
    coach: dict = Depends(require_coach),
    db: Session = Depends(get_db),
):
    """Add a player to the roster.

    Raises:
        HTTPException: 404 for an unknown team or player; 409 if already a member.
    """
    owned_team(db, team_id, coach["coach_id"])
    player = db.execute(
        text("SELECT id FROM players WHERE id = :player_id"),
        {"player_id": payload.player_id},
    ).first()
    if not player:
        raise HTTPException(status_code=404, detail="Player not found")

    existing = db.execute(
        text("SELECT 1 FROM team_members WHERE team_id = :team_id AND player_id = :player_id"),
        {"team_id": team_id, "player_id": payload.player_id},
    ).first()
    if existing:
        raise HTTPException(status_code=409, detail="Player is already on this team")

    db.execute(
        text("""
            INSERT INTO team_members (id, team_id, player_id, status, joined_at)
            VALUES (:id, :team_id, :player_id, 'active', :joined_at)
        """),
        {"id": new_id(), "team_id": team_id, "player_id": payload.player_id, "joined_at": utcnow()},
    )
    db.commit()
    return {"ok": True}


@router.patch("/{team_id}/members/{player_id}", dependencies=[_write_limit])
def set_member_status(
    team_id: str,
    player_id: str,
    payload: TeamMemberStatusIn,
    coach: dict = Depends(require_coach),
    db: Session = Depends(get_db),
):
    owned_team(db, team_id, coach["coach_id"])
    result = db.execute(
        text("UPDATE team_members SET status = :status WHERE team_id = :team_id AND player_id = :player_id"),
        {"status": payload.status, "team_id": team_id, "player_id": player_id},
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Team member not found")
    db.commit()
    return {"ok": True, "status": payload.status}


@router.delete("/{team_id}/members/{player_id}", dependencies=[_write_limit])
def remove_member(team_id: str, player_id: str, coach: dict = Depends(require_coach), db: Session = Depends(get_db)):
    owned_team(db, team_id, coach["coach_id"])
    result = db.execute(
        text("DELETE FROM team_members WHERE team_id = :team_id AND player_id = :player_id"),
        {"team_id": team_id, "player_id": player_id},
    )
    if result.rowcount == 0:
        raise HTTPException(status_code=404, detail="Team member not found")
    db.commit()
    return {"ok": True}
