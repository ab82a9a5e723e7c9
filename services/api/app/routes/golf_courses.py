"""Saved golf courses.

A course stores the par and yardage of each hole so rounds can be created
from it: a round with `course_id` takes its name, location and rating from
the course, and holes recorded without `par` use the course's hole layout.

Users see the courses they created plus public courses; only the creator can
change or delete a course.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db, new_id, utcnow
from ..rate_limit import RATE_LIMITS, rate_limited
from ..schemas import CourseCreateIn, CourseHoleIn, CourseUpdateIn
from ..security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/golf/courses", tags=["golf"])

_write_limit = Depends(rate_limited(RATE_LIMITS["api_write"], "api_write"))

COURSE_COLUMNS = """
    id, created_by, name, city, state, course_rating, slope_rating, default_tee_name,
    total_par, total_yardage, is_public, created_at, updated_at
"""


def visible_course(db: Session, course_id: str, user_id: str) -> dict:
    """Course row readable by `user_id` (own or public); 404 otherwise."""
    course = db.execute(
        text(f"""
            SELECT {COURSE_COLUMNS} FROM golf_courses
            WHERE id = :id AND (created_by = :user_id OR is_public = :public)
        """),
        {"id": course_id, "user_id": user_id, "public": True},
    ).mappings().first()
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return dict(course)


def course_holes(db: Session, course_id: str) -> list[dict]:
    rows = db.execute(
        text("""
            SELECT hole_number, par, yardage FROM golf_course_holes
            WHERE course_id = :course_id
            ORDER BY hole_number
        """),
        {"course_id": course_id},
    ).mappings().all()
    return [dict(r) for r in rows]


def _own_course(db: Session, course_id: str, user_id: str) -> dict:
    course = visible_course(db, course_id, user_id)
    if course["created_by"] != user_id:
        raise HTTPException(status_code=403, detail="Only the creator can change this course")
    return course


def _replace_holes(db: Session, course_id: str, holes: list[CourseHoleIn]) -> None:
    db.execute(text("DELETE FROM golf_course_holes WHERE course_id = :course_id"), {"course_id": course_id})
    for hole in holes:
        db.execute(
            text("""
                INSERT INTO golf_course_holes (id, course_id, hole_number, par, yardage)
                VALUES (:id, :course_id, :hole_number, :par, :yardage)
            """),
            {"id": new_id(), "course_id": course_id, **hole.model_dump()},
        )


def _commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="You already have a course with this name") from None


@router.get("")
def list_courses(user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    rows = db.execute(
        text(f"""
            SELECT {COURSE_COLUMNS} FROM golf_courses
            WHERE created_by = :user_id OR is_public = :public
            ORDER BY name
        """),
        {"user_id": user["id"], "public": True},
    ).mappings().all()
    return {"ok": True, "courses": list(rows)}


@router.get("/{course_id}")
def get_course(course_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    course = visible_course(db, course_id, user["id"])
    return {"ok": True, "course": course, "holes": course_holes(db, course_id)}


@router.post("", status_code=201, dependencies=[_write_limit])
def create_course(payload: CourseCreateIn, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    """Save a course with its hole layout; totals are summed from the holes.

    Raises:
        HTTPException: 409 when the caller already has a course with this name.
    """
    now = utcnow()
    course_id = new_id()
    db.execute(
        text("""
            INSERT INTO golf_courses
              (id, created_by, name, city, state, course_rating, slope_rating, default_tee_name,
               total_par, total_yardage, is_public, created_at, updated_at)
            VALUES
              (:id, :created_by, :name, :city, :state, :course_rating, :slope_rating, :tee_name,
               :total_par, :total_yardage, :is_public, :now, :now)
        """),
        {
            "id": course_id,
            "created_by": user["id"],
            "name": payload.name.strip(),
            "city": payload.city,
            "state": payload.state,
            "course_rating": payload.course_rating,
            "slope_rating": payload.slope_rating,
            "tee_name": payload.tee_name,
            "total_par": sum(h.par for h in payload.holes),
            "total_yardage": sum(h.yardage for h in payload.holes),
            "is_public": False,
            "now": now,
        },
    )
    _replace_holes(db, course_id, payload.holes)
    _commit_or_conflict(db)

    logger.info("golf course saved", extra={"course_id": course_id, "holes": len(payload.holes)})
    return {"ok": True, "course": visible_course(db, course_id, user["id"]), "holes": course_holes(db, course_id)}


@router.patch("/{course_id}", dependencies=[_write_limit])
def update_course(
    course_id: str,
    payload: CourseUpdateIn,
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Change course details; a `holes` list replaces the layout and its totals."""
    _own_course(db, course_id, user["id"])
    changes = payload.model_dump(exclude_unset=True, exclude={"holes"})
    if "tee_name" in changes:
        changes["default_tee_name"] = changes.pop("tee_name")
    if payload.holes is not None:
        _replace_holes(db, course_id, payload.holes)
        changes["total_par"] = sum(h.par for h in payload.holes)
        changes["total_yardage"] = sum(h.yardage for h in payload.holes)

    if changes:
        assignments = ", ".join(f"{column} = :{column}" for column in changes)
        db.execute(
            text(f"UPDATE golf_courses SET {assignments}, updated_at = :updated_at WHERE id = :id"),
            {**changes, "updated_at": utcnow(), "id": course_id},
        )
    _commit_or_conflict(db)
    return {"ok": True, "course": visible_course(db, course_id, user["id"]), "holes": course_holes(db, course_id)}


@router.delete("/{course_id}", dependencies=[_write_limit])
def delete_course(course_id: str, user: dict = Depends(get_current_user), db: Session = Depends(get_db)):
    _own_course(db, course_id, user["id"])
    params = {"course_id": course_id}
    db.execute(text("UPDATE golf_rounds SET course_id = NULL WHERE course_id = :course_id"), params)
    db.execute(text("DELETE FROM golf_course_holes WHERE course_id = :course_id"), params)
    db.execute(text("DELETE FROM golf_courses WHERE id = :course_id"), params)
    db.commit()
    return {"ok": True}
