"""Maintenance CLI.

Operational one-offs against the platform database:

    python -m jobs.maintenance.app.main init-db
    python -m jobs.maintenance.app.main create-user --email a@b.co --password ... --role player --sport golf
    python -m jobs.maintenance.app.main convert-to-player --email a@b.co
    python -m jobs.maintenance.app.main import-colleges colleges.csv
    python -m jobs.maintenance.app.main check-users

`DATABASE_URL` selects the database (or `--database-url`).
"""

import argparse
import logging
import sys

import pandas as pd
from sqlalchemy import text
from sqlalchemy.engine import Engine

from libs.common_python.common.db import database_url, make_engine
from libs.common_python.common.logging import setup_logging
from services.api.app.accounts import EmailTakenError, create_account, create_player_profile
from services.api.app.db import new_id
from services.api.app.models import ensure_tables

logger = logging.getLogger(__name__)

COLLEGE_COLUMNS = ["name", "city", "state", "division", "conference"]


def init_db(engine: Engine, args) -> int:
    ensure_tables(engine)
    return 0


def create_user(engine: Engine, args) -> int:
    """Create a test account (user + profile), optionally discoverable."""
    with engine.begin() as conn:
        try:
            account = create_account(
                conn, args.email, args.password, args.role, args.sport, args.first_name, args.last_name
            )
        except EmailTakenError:
            logger.error("an account already exists for %s", args.email)
            return 1
        if args.role == "player" and args.discoverable:
            conn.execute(
                text("UPDATE players SET recruiting_activated = :on WHERE id = :id"),
                {"on": True, "id": account["profile_id"]},
            )
    logger.info("created %s account %s (%s)", account["role"], account["email"], account["id"])
    return 0


def convert_to_player(engine: Engine, args) -> int:
    """Turn a coach account into a player account.

    The coach profile is removed and a player profile is created from its
    name (first word = first name, rest = last name).
    """
    with engine.begin() as conn:
        user = conn.execute(
            text("SELECT id, role, sport FROM users WHERE LOWER(email) = :email"),
            {"email": args.email.strip().lower()},
        ).mappings().first()
        if not user:
            logger.error("no user with email %s", args.email)
            return 1
        if user["role"] == "player":
            logger.info("%s is already a player", args.email)
            return 0

        coach = conn.execute(
            text("SELECT id, full_name FROM coaches WHERE user_id = :user_id"),
            {"user_id": user["id"]},
        ).mappings().first()
        full_name = coach["full_name"] if coach else args.email.split("@")[0]
        first_name, _, last_name = full_name.partition(" ")

        if coach:
            conn.execute(text("DELETE FROM coaches WHERE id = :id"), {"id": coach["id"]})
        conn.execute(
            text("UPDATE users SET role = 'player' WHERE id = :id"),
            {"id": user["id"]},
        )
        profile_id = create_player_profile(conn, user["id"], user["sport"], first_name, last_name or "-")

    logger.info("converted %s to player (profile %s)", args.email, profile_id)
    return 0


def import_colleges(engine: Engine, args) -> int:
    """Append colleges from a CSV file with columns name, city, state, division, conference."""
    df = pd.read_csv(args.csv_path)
    missing = [c for c in COLLEGE_COLUMNS if c not in df.columns]
    if missing:
        logger.error("CSV is missing columns: %s", ", ".join(missing))
        return 1

    out = df[COLLEGE_COLUMNS].dropna(subset=["name"]).drop_duplicates(subset=["name"]).copy()
    out["state"] = out["state"].str.upper()
    out.insert(0, "id", [new_id() for _ in range(len(out))])

    with engine.begin() as conn:
        out.to_sql("colleges", conn, if_exists="append", index=False)
    logger.info("imported %d colleges", len(out))
    return 0


def users_report(engine: Engine) -> pd.DataFrame:
    """One row per user with profile and active session info."""
    sql = """
        SELECT
          u.email,
          u.role,
          u.sport,
          u.created_at,
          u.last_login_at,
          CASE WHEN p.id IS NOT NULL OR c.id IS NOT NULL THEN 1 ELSE 0 END AS has_profile,
          (SELECT COUNT(*) FROM sessions s WHERE s.user_id = u.id) AS sessions
        FROM users u
        LEFT JOIN players p ON p.user_id = u.id
        LEFT JOIN coaches c ON c.user_id = u.id
        ORDER BY u.created_at
    """
    with engine.connect() as conn:
        df = pd.read_sql(text(sql), conn)
    df["has_profile"] = df["has_profile"].astype(bool)
    return df


def check_users(engine: Engine, args) -> int:
    """Print the users report; exit 1 when some user has no profile row."""
    df = users_report(engine)
    if df.empty:
        print("no users")
        return 0
    print(df.to_string(index=False))
    print()
    print(df.groupby(["role", "sport"]).size().rename("users").to_string())

    broken = int((~df["has_profile"]).sum())
    if broken:
        logger.warning("%d user(s) without a profile row", broken)
        return 1
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="maintenance", description="Database maintenance commands.")
    parser.add_argument("--database-url", default=None, help="Overrides DATABASE_URL.")
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create tables and indexes.").set_defaults(func=init_db)

    p = sub.add_parser("create-user", help="Create a test account.")
    p.add_argument("--email", required=True)
    p.add_argument("--password", required=True)
    p.add_argument("--role", choices=["coach", "player"], required=True)
    p.add_argument("--sport", choices=["baseball", "golf"], default="baseball")
    p.add_argument("--first-name", default="Test")
    p.add_argument("--last-name", default="User")
    p.add_argument("--discoverable", action="store_true", help="Players only: enable recruiting visibility.")
    p.set_defaults(func=create_user)

    p = sub.add_parser("convert-to-player", help="Convert a coach account to a player account.")
    p.add_argument("--email", required=True)
    p.set_defaults(func=convert_to_player)

    p = sub.add_parser("import-colleges", help="Load colleges from a CSV file.")
    p.add_argument("csv_path")
    p.set_defaults(func=import_colleges)

    sub.add_parser("check-users", help="Print a users/profile diagnostic report.").set_defaults(func=check_users)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    engine = make_engine(database_url(args.database_url))
    return args.func(engine, args)


if __name__ == "__main__":
    sys.exit(main())
