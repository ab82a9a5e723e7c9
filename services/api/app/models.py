"""Relational schema for the API service.

Routes use raw SQL (`sqlalchemy.text`) and return response dictionaries, so
the schema is declared here as DDL rather than as ORM classes. The DDL is
kept portable between PostgreSQL (deployments) and SQLite (tests, local demos):

- primary keys are UUID strings generated by the application
- timestamps are ISO-8601 strings written by the application
- JSON payloads (tags, event metadata, cached stats) are stored as TEXT

`ensure_tables` is idempotent and is run by `jobs.maintenance init-db` and by
the test fixtures.
"""

import logging

from sqlalchemy import text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

PIPELINE_STAGES = ("watchlist", "high_priority", "offer_extended", "committed", "uninterested")

DDL = """
CREATE TABLE IF NOT EXISTS users (
  id TEXT PRIMARY KEY,
  email TEXT NOT NULL UNIQUE,
  password_hash TEXT NOT NULL,
  role TEXT NOT NULL,
  sport TEXT NOT NULL,
  created_at TIMESTAMP NOT NULL,
  last_login_at TIMESTAMP
);

CREATE TABLE IF NOT EXISTS sessions (
  token_hash TEXT PRIMARY KEY,
  user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
  created_at TIMESTAMP NOT NULL,
  expires_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS password_resets (
  token_hash TEXT PRIMARY KEY,
  user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
  created_at TIMESTAMP NOT NULL,
  expires_at TIMESTAMP NOT NULL,
  used BOOLEAN NOT NULL DEFAULT FALSE
);

CREATE TABLE IF NOT EXISTS players (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
  sport TEXT NOT NULL,
  first_name TEXT NOT NULL,
  last_name TEXT NOT NULL,
  full_name TEXT NOT NULL,
  phone TEXT,
  city TEXT,
  state TEXT,
  grad_year INTEGER,
  primary_position TEXT,
  secondary_position TEXT,
  bats TEXT,
  throws TEXT,
  height_in INTEGER,
  weight_lb INTEGER,
  high_school_name TEXT,
  gpa DOUBLE PRECISION,
  bio TEXT,
  exit_velocity DOUBLE PRECISION,
  pitch_velocity DOUBLE PRECISION,
  sixty_yard_time DOUBLE PRECISION,
  pop_time DOUBLE PRECISION,
  recruiting_activated BOOLEAN NOT NULL DEFAULT FALSE,
  show_gpa BOOLEAN NOT NULL DEFAULT TRUE,
  show_contact_info BOOLEAN NOT NULL DEFAULT FALSE,
  created_at TIMESTAMP NOT NULL,
  updated_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS coaches (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
  sport TEXT NOT NULL,
  full_name TEXT NOT NULL,
  phone TEXT,
  title TEXT,
  organization_name TEXT,
  city TEXT,
  state TEXT,
  division TEXT,
  conference TEXT,
  bio TEXT,
  created_at TIMESTAMP NOT NULL,
  updated_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS colleges (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL,
  city TEXT,
  state TEXT,
  division TEXT,
  conference TEXT
);

CREATE TABLE IF NOT EXISTS recruiting_interests (
  id TEXT PRIMARY KEY,
  player_id TEXT NOT NULL REFERENCES players(id) ON DELETE CASCADE,
  college_id TEXT NOT NULL REFERENCES colleges(id) ON DELETE CASCADE,
  created_at TIMESTAMP NOT NULL,
  UNIQUE (player_id, college_id)
);

CREATE TABLE IF NOT EXISTS watchlists (
  id TEXT PRIMARY KEY,
  coach_id TEXT NOT NULL REFERENCES coaches(id) ON DELETE CASCADE,
  player_id TEXT NOT NULL REFERENCES players(id) ON DELETE CASCADE,
  pipeline_stage TEXT NOT NULL,
  notes TEXT,
  tags TEXT,
  priority INTEGER NOT NULL DEFAULT 0,
  added_at TIMESTAMP NOT NULL,
  updated_at TIMESTAMP NOT NULL,
  UNIQUE (coach_id, player_id)
);

CREATE TABLE IF NOT EXISTS player_engagement_events (
  id TEXT PRIMARY KEY,
  player_id TEXT NOT NULL REFERENCES players(id) ON DELETE CASCADE,
  coach_id TEXT REFERENCES coaches(id) ON DELETE SET NULL,
  engagement_type TEXT NOT NULL,
  engagement_date TIMESTAMP NOT NULL,
  metadata TEXT
);

CREATE TABLE IF NOT EXISTS conversations (
  id TEXT PRIMARY KEY,
  created_at TIMESTAMP NOT NULL,
  updated_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS conversation_participants (
  id TEXT PRIMARY KEY,
  conversation_id TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
  user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
  last_read_at TIMESTAMP,
  UNIQUE (conversation_id, user_id)
);

CREATE TABLE IF NOT EXISTS messages (
  id TEXT PRIMARY KEY,
  conversation_id TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
  sender_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
  content TEXT NOT NULL,
  sent_at TIMESTAMP NOT NULL,
  is_read BOOLEAN NOT NULL DEFAULT FALSE
);

CREATE TABLE IF NOT EXISTS notifications (
  id TEXT PRIMARY KEY,
  user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
  notification_type TEXT NOT NULL,
  title TEXT NOT NULL,
  body TEXT,
  action_url TEXT,
  is_read BOOLEAN NOT NULL DEFAULT FALSE,
  created_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS teams (
  id TEXT PRIMARY KEY,
  coach_id TEXT NOT NULL REFERENCES coaches(id) ON DELETE CASCADE,
  name TEXT NOT NULL,
  sport TEXT NOT NULL,
  created_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS team_members (
  id TEXT PRIMARY KEY,
  team_id TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
  player_id TEXT NOT NULL REFERENCES players(id) ON DELETE CASCADE,
  status TEXT NOT NULL DEFAULT 'active',
  joined_at TIMESTAMP NOT NULL,
  UNIQUE (team_id, player_id)
);

CREATE TABLE IF NOT EXISTS team_announcements (
  id TEXT PRIMARY KEY,
  team_id TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
  title TEXT NOT NULL,
  body TEXT NOT NULL,
  urgency TEXT NOT NULL DEFAULT 'normal',
  requires_acknowledgement BOOLEAN NOT NULL DEFAULT FALSE,
  published_at TIMESTAMP NOT NULL,
  created_by TEXT NOT NULL REFERENCES coaches(id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS announcement_acknowledgements (
  id TEXT PRIMARY KEY,
  announcement_id TEXT NOT NULL REFERENCES team_announcements(id) ON DELETE CASCADE,
  player_id TEXT NOT NULL REFERENCES players(id) ON DELETE CASCADE,
  acknowledged_at TIMESTAMP NOT NULL,
  UNIQUE (announcement_id, player_id)
);

CREATE TABLE IF NOT EXISTS player_comparisons (
  id TEXT PRIMARY KEY,
  coach_id TEXT NOT NULL REFERENCES coaches(id) ON DELETE CASCADE,
  name TEXT NOT NULL,
  description TEXT,
  player_ids TEXT NOT NULL,
  comparison_data TEXT NOT NULL,
  created_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS golf_courses (
  id TEXT PRIMARY KEY,
  created_by TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
  name TEXT NOT NULL,
  city TEXT,
  state TEXT,
  course_rating DOUBLE PRECISION,
  slope_rating INTEGER,
  default_tee_name TEXT,
  total_par INTEGER NOT NULL,
  total_yardage INTEGER NOT NULL,
  is_public BOOLEAN NOT NULL DEFAULT FALSE,
  created_at TIMESTAMP NOT NULL,
  updated_at TIMESTAMP NOT NULL,
  UNIQUE (created_by, name)
);

CREATE TABLE IF NOT EXISTS golf_course_holes (
  id TEXT PRIMARY KEY,
  course_id TEXT NOT NULL REFERENCES golf_courses(id) ON DELETE CASCADE,
  hole_number INTEGER NOT NULL,
  par INTEGER NOT NULL,
  yardage INTEGER NOT NULL,
  UNIQUE (course_id, hole_number)
);

CREATE TABLE IF NOT EXISTS golf_qualifiers (
  id TEXT PRIMARY KEY,
  team_id TEXT NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
  name TEXT NOT NULL,
  description TEXT,
  course_name TEXT,
  location TEXT,
  num_rounds INTEGER NOT NULL,
  holes_per_round INTEGER NOT NULL,
  start_date DATE NOT NULL,
  end_date DATE,
  status TEXT NOT NULL DEFAULT 'upcoming',
  show_live_leaderboard BOOLEAN NOT NULL DEFAULT TRUE,
  created_by TEXT NOT NULL REFERENCES coaches(id) ON DELETE CASCADE,
  created_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS golf_qualifier_entries (
  id TEXT PRIMARY KEY,
  qualifier_id TEXT NOT NULL REFERENCES golf_qualifiers(id) ON DELETE CASCADE,
  player_id TEXT NOT NULL REFERENCES players(id) ON DELETE CASCADE,
  UNIQUE (qualifier_id, player_id)
);

CREATE TABLE IF NOT EXISTS golf_rounds (
  id TEXT PRIMARY KEY,
  player_id TEXT NOT NULL REFERENCES players(id) ON DELETE CASCADE,
  course_id TEXT REFERENCES golf_courses(id) ON DELETE SET NULL,
  qualifier_id TEXT REFERENCES golf_qualifiers(id) ON DELETE SET NULL,
  course_name TEXT NOT NULL,
  course_city TEXT,
  course_state TEXT,
  round_type TEXT NOT NULL,
  round_date DATE NOT NULL,
  course_rating DOUBLE PRECISION,
  course_slope INTEGER,
  total_score INTEGER,
  total_par INTEGER,
  total_to_par INTEGER,
  total_putts INTEGER,
  fairways_hit INTEGER,
  fairways_total INTEGER,
  greens_in_regulation INTEGER,
  greens_total INTEGER,
  is_complete BOOLEAN NOT NULL DEFAULT FALSE,
  created_at TIMESTAMP NOT NULL,
  updated_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS golf_holes (
  id TEXT PRIMARY KEY,
  round_id TEXT NOT NULL REFERENCES golf_rounds(id) ON DELETE CASCADE,
  hole_number INTEGER NOT NULL,
  par INTEGER NOT NULL,
  yardage INTEGER,
  score INTEGER NOT NULL,
  score_to_par INTEGER NOT NULL,
  putts INTEGER NOT NULL,
  fairway_hit BOOLEAN,
  green_in_regulation BOOLEAN NOT NULL,
  UNIQUE (round_id, hole_number)
);

CREATE TABLE IF NOT EXISTS golf_shots (
  id TEXT PRIMARY KEY,
  round_id TEXT NOT NULL REFERENCES golf_rounds(id) ON DELETE CASCADE,
  hole_id TEXT REFERENCES golf_holes(id) ON DELETE CASCADE,
  hole_number INTEGER NOT NULL,
  shot_number INTEGER NOT NULL,
  shot_type TEXT NOT NULL,
  club_type TEXT,
  lie_before TEXT,
  distance_to_hole_before DOUBLE PRECISION,
  distance_unit_before TEXT,
  result TEXT NOT NULL,
  distance_to_hole_after DOUBLE PRECISION,
  distance_unit_after TEXT,
  shot_distance DOUBLE PRECISION,
  miss_direction TEXT,
  putt_break TEXT,
  putt_slope TEXT,
  is_penalty BOOLEAN NOT NULL DEFAULT FALSE,
  penalty_type TEXT,
  UNIQUE (round_id, hole_number, shot_number)
);

CREATE TABLE IF NOT EXISTS golf_player_stats (
  player_id TEXT PRIMARY KEY REFERENCES players(id) ON DELETE CASCADE,
  rounds_included INTEGER NOT NULL,
  stats TEXT NOT NULL,
  calculated_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages (conversation_id, sent_at);
CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications (user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_engagement_player ON player_engagement_events (player_id, engagement_date);
CREATE INDEX IF NOT EXISTS idx_golf_rounds_player ON golf_rounds (player_id, round_date);
CREATE INDEX IF NOT EXISTS idx_golf_shots_round ON golf_shots (round_id, hole_number)
"""


def ensure_tables(engine: Engine) -> None:
    """Create every table and index if it does not exist yet."""
    statements = [s.strip() for s in DDL.split(";") if s.strip()]
    with engine.begin() as conn:
        for stmt in statements:
            conn.execute(text(stmt))
    logger.info("schema ensured (%d statements)", len(statements))
