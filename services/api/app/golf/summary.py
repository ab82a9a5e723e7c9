"""Round-level golf summaries (scoring average, handicap, trends, team totals).

These work on completed round rows (`total_score`, `total_putts`,
`fairways_hit`, ...) rather than on shots. Values are rounded half-up to one
decimal.
"""

from datetime import date

from .stats_calculator import _round_half_up


def _one_decimal(value: float) -> float:
    return _round_half_up(value, 1)


def _scored(rounds) -> list:
    return [r for r in rounds if r.get("total_score") is not None and r["total_score"] > 0]


def _as_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def round_summary_stats(rounds) -> dict:
    """Scoring summary over rounds with a positive total score."""
    valid = _scored(rounds)
    if not valid:
        return {
            "rounds_played": 0,
            "scoring_average": 0,
            "best_round": 0,
            "worst_round": 0,
            "putts_per_round": 0,
            "fairways_hit_percentage": 0,
            "greens_in_regulation_percentage": 0,
            "handicap_index": None,
        }

    scores = [r["total_score"] for r in valid]

    with_putts = [r for r in valid if r.get("total_putts") is not None]
    putts_per_round = sum(r["total_putts"] for r in with_putts) / len(with_putts) if with_putts else 0

    with_fairways = [r for r in valid if r.get("fairways_hit") is not None and (r.get("fairways_total") or 0) > 0]
    fairway_pct = (
        sum(r["fairways_hit"] for r in with_fairways) / sum(r["fairways_total"] for r in with_fairways) * 100
        if with_fairways
        else 0
    )

    with_greens = [r for r in valid if r.get("greens_in_regulation") is not None and (r.get("greens_total") or 0) > 0]
    gir_pct = (
        sum(r["greens_in_regulation"] for r in with_greens) / sum(r["greens_total"] for r in with_greens) * 100
        if with_greens
        else 0
    )

    return {
        "rounds_played": len(valid),
        "scoring_average": _one_decimal(sum(scores) / len(scores)),
        "best_round": min(scores),
        "worst_round": max(scores),
        "putts_per_round": _one_decimal(putts_per_round),
        "fairways_hit_percentage": _one_decimal(fairway_pct),
        "greens_in_regulation_percentage": _one_decimal(gir_pct),
        "handicap_index": handicap_index(valid),
    }


def handicap_index(rounds) -> float | None:
    """Simplified USGA handicap index.

    Score differentials are `(score - course_rating) * 113 / course_slope` for
    rounds with a rating and a positive slope. The best differentials are
    averaged (1 for 3-5 rounds, n-2 for 6-9, n/2 for 10-19, 10 for 20+) and the
    index is 96% of that average. Fewer than 3 eligible rounds gives None.
    """
    eligible = [
        r
        for r in rounds
        if r.get("total_score") is not None
        and r.get("course_rating") is not None
        and r.get("course_slope") is not None
        and r["course_slope"] > 0
    ]
    n = len(eligible)
    if n < 3:
        return None

    differentials = sorted(
        (r["total_score"] - float(r["course_rating"])) * 113 / float(r["course_slope"]) for r in eligible
    )

    if n >= 20:
        use = 10
    elif n >= 10:
        use = n // 2
    elif n >= 6:
        use = n - 2
    else:
        use = 1

    best = differentials[:use]
    return _one_decimal(sum(best) / len(best) * 0.96)


def scoring_trend(rounds) -> str:
    """Compare the earlier half of dated rounds with the recent half."""
    dated = sorted(
        (r for r in rounds if r.get("total_score") is not None and _as_date(r.get("round_date"))),
        key=lambda r: _as_date(r["round_date"]),
    )
    if len(dated) < 4:
        return "stable"

    midpoint = len(dated) // 2
    earlier, recent = dated[:midpoint], dated[midpoint:]
    earlier_avg = sum(r["total_score"] for r in earlier) / len(earlier)
    recent_avg = sum(r["total_score"] for r in recent) / len(recent)

    difference = earlier_avg - recent_avg
    if difference > 2:
        return "improving"
    if difference < -2:
        return "declining"
    return "stable"


def scoring_distribution(holes) -> dict:
    distribution = {"eagles": 0, "birdies": 0, "pars": 0, "bogeys": 0, "double_plus": 0}
    for hole in holes:
        if hole.get("score") is None or hole.get("par") is None:
            continue
        to_par = hole["score"] - hole["par"]
        if to_par <= -2:
            distribution["eagles"] += 1
        elif to_par == -1:
            distribution["birdies"] += 1
        elif to_par == 0:
            distribution["pars"] += 1
        elif to_par == 1:
            distribution["bogeys"] += 1
        else:
            distribution["double_plus"] += 1
    return distribution


def average_by_round_type(rounds) -> dict:
    totals: dict[str, list[int]] = {}
    for r in rounds:
        if not r.get("total_score") or not r.get("round_type"):
            continue
        totals.setdefault(r["round_type"], []).append(r["total_score"])
    return {round_type: _one_decimal(sum(scores) / len(scores)) for round_type, scores in totals.items()}


def recent_rounds(rounds, count: int = 5) -> list:
    dated = [r for r in rounds if _as_date(r.get("round_date"))]
    dated.sort(key=lambda r: _as_date(r["round_date"]), reverse=True)
    return dated[:count]


def team_stats(player_count: int, active_count: int, rounds, today: date | None = None) -> dict:
    """Team totals over the scored rounds of all roster players."""
    today = today or date.today()
    valid = _scored(rounds)
    scores = [r["total_score"] for r in valid]
    first_of_month = today.replace(day=1)

    return {
        "total_players": player_count,
        "active_players": active_count,
        "total_rounds": len(valid),
        "team_scoring_average": _one_decimal(sum(scores) / len(scores)) if scores else 0,
        "best_team_round": min(scores) if scores else None,
        "rounds_this_month": sum(
            1 for r in valid if (_as_date(r.get("round_date")) or date.min) >= first_of_month
        ),
    }


def qualifier_leaderboard(entries, rounds) -> list[dict]:
    """Standings of a qualifier from its completed rounds.

    `entries` are player rows (`player_id`, `full_name`); `rounds` are the
    qualifier's round rows. Players are ordered by total score, then by
    rounds played (more first); players without a completed round come last
    with a null total. Equal totals share a position (1, 1, 3).
    """
    completed: dict[str, list[dict]] = {}
    for r in rounds:
        if r.get("is_complete") and r.get("total_score"):
            completed.setdefault(r["player_id"], []).append(r)

    standings = []
    for entry in entries:
        played = completed.get(entry["player_id"], [])
        played.sort(key=lambda r: (_as_date(r.get("round_date")) or date.min, r.get("created_at") or ""))
        standings.append({
            "player_id": entry["player_id"],
            "full_name": entry.get("full_name"),
            "rounds_played": len(played),
            "round_scores": [r["total_score"] for r in played],
            "total_score": sum(r["total_score"] for r in played) if played else None,
        })

    standings.sort(key=lambda s: (
        s["total_score"] is None,
        s["total_score"] or 0,
        -s["rounds_played"],
        s["full_name"] or "",
    ))

    previous_total, previous_position = None, None
    for index, row in enumerate(standings):
        if row["total_score"] is None:
            row["position"] = None
        elif row["total_score"] == previous_total:
            row["position"] = previous_position
        else:
            row["position"] = index + 1
        previous_total, previous_position = row["total_score"], row["position"]

    positions = [row["position"] for row in standings]
    for row in standings:
        row["is_tied"] = row["position"] is not None and positions.count(row["position"]) > 1
    return standings
