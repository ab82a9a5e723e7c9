"""Request schemas.

FastAPI validates every request body against these Pydantic models. Responses
stay plain dictionaries (`{"ok": true, ...}`) built directly from SQL rows.
"""

from datetime import date
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

Role = Literal["coach", "player"]
Sport = Literal["baseball", "golf"]
PipelineStage = Literal["watchlist", "high_priority", "offer_extended", "committed", "uninterested"]
MemberStatus = Literal["active", "injured", "redshirt", "inactive"]
RoundType = Literal["practice", "qualifying", "tournament"]
QualifierStatus = Literal["upcoming", "in_progress", "completed"]
ShotType = Literal["tee", "approach", "around_green", "putting", "penalty"]
ClubType = Literal["driver", "non_driver", "putter"]
Lie = Literal["tee", "fairway", "rough", "sand", "green", "other"]
ShotResult = Literal["fairway", "rough", "sand", "green", "hole", "other", "penalty"]
DistanceUnit = Literal["yards", "feet"]


class _StateMixin(BaseModel):
    @field_validator("state", check_fields=False)
    @classmethod
    def _upper_state(cls, v):
        return v.upper() if isinstance(v, str) else v


# ---------------------------------------------------------------------------
# auth
# ---------------------------------------------------------------------------


class SignupIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    role: Role
    sport: Sport = "baseball"
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class ForgotPasswordIn(BaseModel):
    email: EmailStr


class ResetPasswordIn(BaseModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=128)


# ---------------------------------------------------------------------------
# profiles
# ---------------------------------------------------------------------------


class PlayerProfileUpdate(_StateMixin):
    """Partial update of the caller's player profile; omitted fields are untouched."""

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = None
    city: str | None = Field(default=None, min_length=1)
    state: str | None = Field(default=None, min_length=2, max_length=2)
    grad_year: int | None = Field(default=None, ge=2024, le=2035)
    primary_position: str | None = Field(default=None, min_length=1)
    secondary_position: str | None = None
    bats: Literal["R", "L", "S"] | None = None
    throws: Literal["R", "L"] | None = None
    height_in: int | None = Field(default=None, ge=48, le=96)
    weight_lb: int | None = Field(default=None, ge=50, le=400)
    high_school_name: str | None = Field(default=None, min_length=1)
    gpa: float | None = Field(default=None, ge=0, le=5.0)
    bio: str | None = Field(default=None, max_length=1000)
    exit_velocity: float | None = Field(default=None, ge=0, le=120)
    pitch_velocity: float | None = Field(default=None, ge=0, le=110)
    sixty_yard_time: float | None = Field(default=None, ge=5, le=12)
    pop_time: float | None = Field(default=None, ge=1, le=4)

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class CoachProfileUpdate(_StateMixin):
    full_name: str | None = Field(default=None, min_length=2, max_length=200)
    phone: str | None = None
    title: str | None = Field(default=None, min_length=1)
    organization_name: str | None = Field(default=None, min_length=1)
    city: str | None = Field(default=None, min_length=1)
    state: str | None = Field(default=None, min_length=2, max_length=2)
    division: str | None = None
    conference: str | None = None
    bio: str | None = Field(default=None, max_length=1000)

    @field_validator("full_name", mode="before")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class PrivacySettingsIn(BaseModel):
    recruiting_activated: bool | None = None
    show_gpa: bool | None = None
    show_contact_info: bool | None = None


# ---------------------------------------------------------------------------
# watchlist
# ---------------------------------------------------------------------------


class WatchlistAddIn(BaseModel):
    player_id: str
    stage: PipelineStage = "watchlist"
    notes: str | None = Field(default=None, max_length=5000)
    tags: list[str] | None = None


class WatchlistUpdateIn(BaseModel):
    stage: PipelineStage | None = None
    notes: str | None = Field(default=None, max_length=5000)
    tags: list[str] | None = None
    priority: int | None = Field(default=None, ge=0, le=10)

    @field_validator("stage", "priority", mode="before")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


# ---------------------------------------------------------------------------
# messaging
# ---------------------------------------------------------------------------


class ConversationCreateIn(BaseModel):
    participant_user_ids: list[str]


class MessageIn(BaseModel):
    content: str = Field(min_length=1, max_length=5000)

    @field_validator("content")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v


# ---------------------------------------------------------------------------
# teams
# ---------------------------------------------------------------------------


class TeamCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class TeamMemberIn(BaseModel):
    player_id: str


class TeamMemberStatusIn(BaseModel):
    status: MemberStatus


class AnnouncementIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    body: str = Field(min_length=1, max_length=5000)
    urgency: Literal["low", "normal", "high", "urgent"] = "normal"
    requires_acknowledgement: bool = False


# ---------------------------------------------------------------------------
# golf
# ---------------------------------------------------------------------------


class RoundCreateIn(BaseModel):
    """A new round. With `course_id`, unset course fields are filled from the saved course."""

    course_id: str | None = None
    qualifier_id: str | None = None
    course_name: str | None = Field(default=None, min_length=1, max_length=200)
    course_city: str | None = None
    course_state: str | None = None
    round_type: RoundType = "practice"
    round_date: date
    course_rating: float | None = Field(default=None, ge=50, le=90)
    course_slope: int | None = Field(default=None, ge=55, le=155)

    @model_validator(mode="after")
    def _course_given(self):
        if not self.course_name and not self.course_id:
            raise ValueError("course_name or course_id is required")
        return self


class ShotIn(BaseModel):
    shot_number: int = Field(ge=1, le=30)
    shot_type: ShotType
    club_type: ClubType | None = None
    lie_before: Lie = "other"
    distance_to_hole_before: float = Field(default=0, ge=0)
    distance_unit_before: DistanceUnit = "yards"
    result: ShotResult
    distance_to_hole_after: float = Field(default=0, ge=0)
    distance_unit_after: DistanceUnit = "yards"
    shot_distance: float = Field(default=0, ge=0)
    miss_direction: str | None = None
    putt_break: Literal["left", "right", "straight"] | None = None
    putt_slope: Literal["uphill", "downhill", "flat"] | None = None
    is_penalty: bool = False
    penalty_type: str | None = None


class HoleIn(BaseModel):
    """Shots of one hole. `par` and `yardage` default to the round's saved course."""

    par: int | None = Field(default=None, ge=3, le=5)
    yardage: int | None = Field(default=None, ge=50, le=700)
    shots: list[ShotIn] = Field(min_length=1)

    @field_validator("shots")
    @classmethod
    def _unique_shot_numbers(cls, v: list[ShotIn]) -> list[ShotIn]:
        numbers = [s.shot_number for s in v]
        if len(numbers) != len(set(numbers)):
            raise ValueError("shot_number values must be unique within a hole")
        return v


class CourseHoleIn(BaseModel):
    hole_number: int = Field(ge=1, le=18)
    par: int = Field(ge=3, le=5)
    yardage: int = Field(ge=50, le=700)


def _check_course_holes(holes: list[CourseHoleIn] | None) -> list[CourseHoleIn] | None:
    if holes is not None:
        numbers = [h.hole_number for h in holes]
        if len(numbers) != len(set(numbers)):
            raise ValueError("hole_number values must be unique")
    return holes


class CourseCreateIn(_StateMixin):
    name: str = Field(min_length=1, max_length=200)
    city: str | None = None
    state: str | None = Field(default=None, min_length=2, max_length=2)
    course_rating: float | None = Field(default=None, ge=50, le=90)
    slope_rating: int | None = Field(default=None, ge=55, le=155)
    tee_name: str | None = None
    holes: list[CourseHoleIn] = Field(min_length=1, max_length=18)

    @field_validator("holes")
    @classmethod
    def _unique_holes(cls, v):
        return _check_course_holes(v)


class CourseUpdateIn(_StateMixin):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    city: str | None = None
    state: str | None = Field(default=None, min_length=2, max_length=2)
    course_rating: float | None = Field(default=None, ge=50, le=90)
    slope_rating: int | None = Field(default=None, ge=55, le=155)
    tee_name: str | None = None
    holes: list[CourseHoleIn] | None = Field(default=None, min_length=1, max_length=18)

    @field_validator("holes")
    @classmethod
    def _unique_holes(cls, v):
        return _check_course_holes(v)

    @field_validator("name", mode="before")
    @classmethod
    def _name_not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class QualifierCreateIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    course_name: str | None = None
    location: str | None = None
    num_rounds: int = Field(default=1, ge=1, le=10)
    holes_per_round: Literal[9, 18] = 18
    start_date: date
    end_date: date | None = None
    show_live_leaderboard: bool = True
    player_ids: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _dates_in_order(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class QualifierStatusIn(BaseModel):
    status: QualifierStatus


# ---------------------------------------------------------------------------
# comparisons
# ---------------------------------------------------------------------------


class ComparisonIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    player_ids: list[str] = Field(min_length=2, max_length=4)
    comparison_data: dict = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comparison name is required")
        return v.strip()

    @field_validator("player_ids")
    @classmethod
    def _distinct_players(cls, v: list[str]) -> list[str]:
        if len(v) != len(set(v)):
            raise ValueError("player_ids must be distinct")
        return v


# ---------------------------------------------------------------------------
# misc
# ---------------------------------------------------------------------------


class ClientErrorReport(BaseModel):
    message: str = Field(min_length=1, max_length=5000)
    severity: Literal["low", "medium", "high", "critical"] = "medium"
    stack: str | None = Field(default=None, max_length=20000)
    url: str | None = None
    context: dict | None = None
    timestamp: str | None = None
