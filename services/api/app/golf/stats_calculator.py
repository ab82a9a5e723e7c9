"""Shot-based golf statistics.

Every statistic is derived from individual shot records; hole rows only
contribute the par. The calculation runs in two passes:

1. `hole_stats_from_shots` turns the shots of one hole into a `HoleStats`
   (score, putts, fairway, GIR, approach, first putt, scrambling...).
2. `aggregate_hole_stats` walks all holes of all rounds in chronological order
   and produces the grouped statistics dictionary (driving, gir, putting,
   approach, scrambling, scoring).

Distances are normalized to yards for full shots and to feet on the green.
Percentages are rounded to one decimal and averages to two, half-up; any ratio
with a zero denominator is `None`.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field

LIES = ("fairway", "rough", "sand")

# (inclusive upper bound, bucket key); anything above the last bound falls in the tail bucket
PUTT_BUCKETS = [(3, "0_3"), (5, "3_5"), (10, "5_10"), (15, "10_15"), (20, "15_20"), (25, "20_25"), (30, "25_30"), (35, "30_35")]
PUTT_TAIL = "35_plus"
PROXIMITY_BUCKETS = [(5, "0_5"), (10, "5_10"), (15, "10_15"), (20, "15_20")]
PROXIMITY_TAIL = "20_plus"
APPROACH_BUCKETS = [(75, "30_75"), (100, "75_100"), (125, "100_125"), (150, "125_150"), (175, "150_175"), (200, "175_200"), (225, "200_225")]
APPROACH_TAIL = "225_plus"
ATG_BUCKETS = [(10, "0_10"), (20, "10_20"), (30, "20_30")]

# shots from this distance (yards) or closer are around-the-green shots
ATG_MAX_YARDS = 30


def _bucket(value: float, bounds, tail: str | None) -> str | None:
    for upper, key in bounds:
        if value <= upper:
            return key
    return tail


def _bucket_keys(bounds, tail: str | None = None) -> list[str]:
    keys = [key for _, key in bounds]
    return keys + [tail] if tail else keys


def _round_half_up(value: float, places: int) -> float:
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


def safe_percent(made: int, attempts: int) -> float | None:
    """Percentage with one decimal, or None when there were no attempts."""
    if attempts == 0:
        return None
    return _round_half_up(made / attempts * 100, 1)


def safe_average(total: float, count: int) -> float | None:
    """Average with two decimals, or None when `count` is zero."""
    if count == 0:
        return None
    return _round_half_up(total / count, 2)


def _mean(values: list) -> float | None:
    return safe_average(sum(values), len(values))


def to_yards(distance, unit) -> float:
    distance = float(distance or 0)
    return distance / 3 if unit == "feet" else distance


def to_feet(distance, unit) -> float:
    distance = float(distance or 0)
    return distance * 3 if unit == "yards" else distance


@dataclass
class HoleStats:
    """Per-hole facts derived from the shots of that hole."""

    hole_number: int
    par: int
    score: int
    putts: int
    fairway_hit: bool | None = None
    used_driver: bool | None = None
    driving_distance: float | None = None
    drive_miss_direction: str | None = None
    green_in_regulation: bool = False
    approach_distance: float | None = None
    approach_lie: str | None = None
    approach_proximity: float | None = None
    strokes_to_hole_out: int | None = None
    first_putt_distance: float | None = None
    first_putt_leave: float | None = None
    first_putt_break: str | None = None
    first_putt_slope: str | None = None
    first_putt_miss_direction: str | None = None
    scramble_attempt: bool = False
    scramble_made: bool = False
    sand_save_attempt: bool = False
    sand_save_made: bool = False
    penalties: int = 0
    holed_out_distance: float | None = None

    @property
    def score_to_par(self) -> int:
        return self.score - self.par

    @property
    def three_putt(self) -> bool:
        return self.putts >= 3


@dataclass
class PlayedRound:
    round_id: str
    round_type: str
    holes: list[HoleStats] = field(default_factory=list)

    @property
    def total_score(self) -> int:
        return sum(h.score for h in self.holes)


def hole_stats_from_shots(shots, par: int, hole_number: int | None = None) -> HoleStats:
    """Derive hole-level stats from the raw shots of a single hole.

    Args:
        shots: Mappings with the shot columns (`shot_number`, `shot_type`,
            `club_type`, `lie_before`, `distance_to_hole_before`,
            `distance_unit_before`, `result`, `distance_to_hole_after`,
            `distance_unit_after`, `shot_distance`, `miss_direction`,
            `putt_break`, `putt_slope`, `is_penalty`).
        par: Par of the hole.
        hole_number: Hole number; defaults to the first shot's `hole_number`.

    Returns:
        HoleStats: Derived facts. The score is the number of recorded shots.

    Notes:
        - Driving and fairway facts only exist on par 4 and par 5 holes.
        - The green is "reached" by the first shot whose result is `green` or
          `hole`; GIR means that shot number is <= par - 2.
        - A shot holed from off the green therefore counts as reaching the
          green: an eagle holed from the fairway on a par 4 is a GIR, unlike
          a green-only reading where that hole would have no GIR.
    """
    ordered = sorted(shots, key=lambda s: int(s["shot_number"]))
    if hole_number is None:
        hole_number = int(ordered[0].get("hole_number") or 0) if ordered else 0

    putting = [s for s in ordered if s["shot_type"] == "putting"]
    stats = HoleStats(hole_number=hole_number, par=par, score=len(ordered), putts=len(putting))

    tee = next((s for s in ordered if s["shot_type"] == "tee"), None)
    if tee is not None and par >= 4:
        stats.fairway_hit = tee["result"] == "fairway"
        stats.used_driver = tee.get("club_type") == "driver"
        if tee.get("shot_distance"):
            stats.driving_distance = to_yards(tee["shot_distance"], tee.get("distance_unit_before"))
        if not stats.fairway_hit:
            stats.drive_miss_direction = tee.get("miss_direction")

    reach_index = next((i for i, s in enumerate(ordered) if s["result"] in ("green", "hole")), None)
    if reach_index is not None:
        reach = ordered[reach_index]
        stats.green_in_regulation = int(reach["shot_number"]) <= par - 2
        if reach["shot_type"] in ("approach", "around_green"):
            stats.approach_distance = to_yards(reach.get("distance_to_hole_before"), reach.get("distance_unit_before"))
            stats.approach_lie = reach.get("lie_before")
            stats.strokes_to_hole_out = len(ordered) - reach_index
        if reach["shot_type"] != "putting":
            stats.approach_proximity = to_feet(reach.get("distance_to_hole_after"), reach.get("distance_unit_after"))
        if not stats.green_in_regulation and reach.get("lie_before") == "sand":
            stats.sand_save_attempt = True

    if putting:
        first = putting[0]
        stats.first_putt_distance = to_feet(first.get("distance_to_hole_before"), first.get("distance_unit_before"))
        if first["result"] != "hole":
            stats.first_putt_leave = to_feet(first.get("distance_to_hole_after"), first.get("distance_unit_after"))
        stats.first_putt_break = first.get("putt_break")
        stats.first_putt_slope = first.get("putt_slope")
        stats.first_putt_miss_direction = first.get("miss_direction")

    stats.scramble_attempt = not stats.green_in_regulation
    stats.scramble_made = stats.scramble_attempt and stats.score <= par
    stats.sand_save_made = stats.sand_save_attempt and stats.score <= par

    stats.penalties = sum(1 for s in ordered if s.get("is_penalty"))

    if ordered and ordered[-1]["result"] == "hole" and ordered[-1]["shot_type"] != "putting":
        last = ordered[-1]
        stats.holed_out_distance = to_yards(last.get("distance_to_hole_before"), last.get("distance_unit_before"))

    return stats


def _round_sort_key(rnd) -> tuple:
    return (str(rnd.get("round_date") or ""), str(rnd.get("created_at") or ""), str(rnd["id"]))


def calculate_stats_from_shots(shots, holes, rounds) -> dict:
    """Calculate the full statistics set for a player.

    Args:
        shots: Shot mappings; each needs `round_id` and `hole_number`.
        holes: Hole mappings with `round_id`, `hole_number` and `par`.
        rounds: Round mappings with `id`, `round_date` and `round_type`.

    Returns:
        dict: Statistics grouped as `driving`, `gir`, `putting`, `approach`,
        `scrambling` and `scoring`.

    Notes:
        Holes without shots are skipped; rounds without any scored hole are
        not counted as played.
    """
    shots_by_round = defaultdict(lambda: defaultdict(list))
    for shot in shots:
        shots_by_round[str(shot["round_id"])][int(shot["hole_number"])].append(shot)

    holes_by_round = defaultdict(list)
    for hole in holes:
        holes_by_round[str(hole["round_id"])].append(hole)

    played = []
    for rnd in sorted(rounds, key=_round_sort_key):
        round_id = str(rnd["id"])
        played_round = PlayedRound(round_id=round_id, round_type=rnd.get("round_type") or "practice")
        for hole in sorted(holes_by_round.get(round_id, []), key=lambda h: int(h["hole_number"])):
            hole_shots = shots_by_round[round_id].get(int(hole["hole_number"]))
            if hole_shots:
                played_round.holes.append(
                    hole_stats_from_shots(hole_shots, int(hole["par"]), int(hole["hole_number"]))
                )
        if played_round.holes:
            played.append(played_round)

    return aggregate_hole_stats(played)


class _Ratio:
    __slots__ = ("made", "total")

    def __init__(self):
        self.made = 0
        self.total = 0

    def add(self, success: bool) -> None:
        self.total += 1
        if success:
            self.made += 1

    @property
    def pct(self) -> float | None:
        return safe_percent(self.made, self.total)


def aggregate_hole_stats(rounds: list[PlayedRound]) -> dict:
    """Aggregate per-hole facts of chronologically ordered rounds."""
    n_rounds = len(rounds)
    all_holes = [h for r in rounds for h in r.holes]

    return {
        "driving": _driving(all_holes, n_rounds),
        "gir": _gir(all_holes, n_rounds),
        "putting": _putting(all_holes, n_rounds),
        "approach": _approach(all_holes),
        "scrambling": _scrambling(all_holes),
        "scoring": _scoring(rounds, all_holes),
    }


def _driving(holes: list[HoleStats], n_rounds: int) -> dict:
    distances = [h.driving_distance for h in holes if h.driving_distance is not None]
    driver_distances = [h.driving_distance for h in holes if h.driving_distance is not None and h.used_driver]

    overall, par4, par5, driver, non_driver = _Ratio(), _Ratio(), _Ratio(), _Ratio(), _Ratio()
    miss_left = miss_right = 0
    for h in holes:
        if h.fairway_hit is None:
            continue
        overall.add(h.fairway_hit)
        if h.par == 4:
            par4.add(h.fairway_hit)
        elif h.par == 5:
            par5.add(h.fairway_hit)
        (driver if h.used_driver else non_driver).add(h.fairway_hit)
        if not h.fairway_hit and h.drive_miss_direction:
            direction = h.drive_miss_direction.lower()
            if "left" in direction:
                miss_left += 1
            if "right" in direction:
                miss_right += 1

    misses = miss_left + miss_right
    return {
        "driving_distance_avg": _mean(distances),
        "driving_distance_driver_only": _mean(driver_distances),
        "fairways_hit": overall.made,
        "fairway_opportunities": overall.total,
        "fairway_percentage": overall.pct,
        "fairway_pct_par4": par4.pct,
        "fairway_pct_par5": par5.pct,
        "fairway_pct_driver": driver.pct,
        "fairway_pct_non_driver": non_driver.pct,
        "fairways_hit_per_round": safe_average(overall.made, n_rounds),
        "miss_left_count": miss_left,
        "miss_right_count": miss_right,
        "miss_left_pct": safe_percent(miss_left, misses),
        "miss_right_pct": safe_percent(miss_right, misses),
    }


def _gir(holes: list[HoleStats], n_rounds: int) -> dict:
    by_par = {3: _Ratio(), 4: _Ratio(), 5: _Ratio()}
    total = _Ratio()
    for h in holes:
        total.add(h.green_in_regulation)
        if h.par in by_par:
            by_par[h.par].add(h.green_in_regulation)
    return {
        "gir_total": total.made,
        "gir_opportunities": total.total,
        "gir_percentage": total.pct,
        "gir_per_round": safe_average(total.made, n_rounds),
        "gir_pct_par3": by_par[3].pct,
        "gir_pct_par4": by_par[4].pct,
        "gir_pct_par5": by_par[5].pct,
    }


def _putting(holes: list[HoleStats], n_rounds: int) -> dict:
    total_putts = sum(h.putts for h in holes)
    gir_holes = [h for h in holes if h.green_in_regulation]

    make = defaultdict(_Ratio)
    efficiency = defaultdict(list)
    proximity = defaultdict(list)
    leaves = []
    misses = {"left": 0, "right": 0, "short": 0, "long": 0}
    miss_total = 0

    for h in holes:
        if h.first_putt_distance is None:
            continue
        bucket = _bucket(h.first_putt_distance, PUTT_BUCKETS, PUTT_TAIL)
        make[bucket].add(h.putts == 1)
        efficiency[bucket].append(h.putts)

        if h.first_putt_leave is not None:
            proximity[_bucket(h.first_putt_distance, PROXIMITY_BUCKETS, PROXIMITY_TAIL)].append(h.first_putt_leave)
            leaves.append(h.first_putt_leave)

        if h.putts > 1 and h.first_putt_leave:
            miss_total += 1
            direction = (h.first_putt_miss_direction or "").lower()
            for key in misses:
                if key in direction:
                    misses[key] += 1

    stats = {
        "total_putts": total_putts,
        "putts_per_round": safe_average(total_putts, n_rounds),
        "putts_per_hole": safe_average(total_putts, len(holes)),
        "putts_per_gir": safe_average(sum(h.putts for h in gir_holes), len(gir_holes)),
        "three_putts_total": sum(1 for h in holes if h.three_putt),
        "one_putts_total": sum(1 for h in holes if h.putts == 1),
        "putt_proximity_avg": _mean(leaves),
    }
    stats["three_putts_per_round"] = safe_average(stats["three_putts_total"], n_rounds)

    for key in _bucket_keys(PUTT_BUCKETS, PUTT_TAIL):
        stats[f"putt_make_pct_{key}"] = make[key].pct if key in make else None
        stats[f"putt_eff_{key}"] = _mean(efficiency.get(key, []))
    for key in _bucket_keys(PROXIMITY_BUCKETS, PROXIMITY_TAIL):
        stats[f"putt_proximity_{key}"] = _mean(proximity.get(key, []))
    for key, count in misses.items():
        stats[f"putt_miss_{key}_pct"] = safe_percent(count, miss_total)
    return stats


def _approach(holes: list[HoleStats]) -> dict:
    proximities = []
    by_par = defaultdict(list)
    by_lie = defaultdict(list)
    by_distance = defaultdict(list)
    efficiency = defaultdict(lambda: defaultdict(list))

    for h in holes:
        if h.approach_proximity is None:
            continue
        proximities.append(h.approach_proximity)
        by_par[h.par].append(h.approach_proximity)
        if h.approach_lie in LIES:
            by_lie[h.approach_lie].append(h.approach_proximity)
        if h.approach_distance is not None and h.approach_distance > ATG_MAX_YARDS:
            bucket = _bucket(h.approach_distance, APPROACH_BUCKETS, APPROACH_TAIL)
            by_distance[bucket].append(h.approach_proximity)
            if h.approach_lie in LIES and h.strokes_to_hole_out is not None:
                efficiency[bucket][h.approach_lie].append(h.strokes_to_hole_out)

    stats = {
        "approach_proximity_avg": _mean(proximities),
        "approach_proximity_par3": _mean(by_par[3]),
        "approach_proximity_par4": _mean(by_par[4]),
        "approach_proximity_par5": _mean(by_par[5]),
    }
    for lie in LIES:
        stats[f"approach_proximity_{lie}"] = _mean(by_lie[lie])
    for key in _bucket_keys(APPROACH_BUCKETS, APPROACH_TAIL):
        stats[f"approach_prox_{key}"] = _mean(by_distance.get(key, []))
    stats["approach_eff"] = {
        key: {lie: _mean(efficiency[key][lie]) for lie in LIES}
        for key in _bucket_keys(APPROACH_BUCKETS, APPROACH_TAIL)
    }
    return stats


def _scrambling(holes: list[HoleStats]) -> dict:
    overall = _Ratio()
    by_lie = {lie: _Ratio() for lie in LIES}
    by_distance = {key: _Ratio() for key in _bucket_keys(ATG_BUCKETS)}
    sand = _Ratio()

    atg_all = []
    atg_by_distance = defaultdict(list)
    atg_by_lie = defaultdict(list)
    atg_by_distance_lie = defaultdict(lambda: defaultdict(list))

    for h in holes:
        if h.scramble_attempt:
            overall.add(h.scramble_made)
            if h.approach_lie in by_lie:
                by_lie[h.approach_lie].add(h.scramble_made)
            if h.approach_distance is not None and h.approach_distance <= ATG_MAX_YARDS:
                by_distance[_bucket(h.approach_distance, ATG_BUCKETS, None)].add(h.scramble_made)

        if h.sand_save_attempt:
            sand.add(h.sand_save_made)

        if h.approach_distance is not None and h.approach_distance <= ATG_MAX_YARDS and h.strokes_to_hole_out is not None:
            bucket = _bucket(h.approach_distance, ATG_BUCKETS, None)
            atg_all.append(h.strokes_to_hole_out)
            atg_by_distance[bucket].append(h.strokes_to_hole_out)
            if h.approach_lie in LIES:
                atg_by_lie[h.approach_lie].append(h.strokes_to_hole_out)
                atg_by_distance_lie[bucket][h.approach_lie].append(h.strokes_to_hole_out)

    stats = {
        "scramble_attempts": overall.total,
        "scrambles_made": overall.made,
        "scrambling_percentage": overall.pct,
        "atg_efficiency_avg": _mean(atg_all),
        "sand_save_attempts": sand.total,
        "sand_saves_made": sand.made,
        "sand_save_percentage": sand.pct,
    }
    for lie in LIES:
        stats[f"scrambling_pct_{lie}"] = by_lie[lie].pct
        stats[f"atg_eff_{lie}"] = _mean(atg_by_lie[lie])
    for key in _bucket_keys(ATG_BUCKETS):
        stats[f"scrambling_pct_{key}"] = by_distance[key].pct
        stats[f"atg_efficiency_{key}"] = _mean(atg_by_distance[key])
    stats["atg_eff_by_distance_lie"] = {
        key: {lie: _mean(atg_by_distance_lie[key][lie]) for lie in LIES}
        for key in _bucket_keys(ATG_BUCKETS)
    }
    return stats


def _scoring(rounds: list[PlayedRound], holes: list[HoleStats]) -> dict:
    n_rounds = len(rounds)
    totals = [r.total_score for r in rounds]

    counts = {"eagles": 0, "birdies": 0, "pars": 0, "bogeys": 0, "double_plus": 0}
    for h in holes:
        diff = h.score_to_par
        if diff <= -2:
            counts["eagles"] += 1
        elif diff == -1:
            counts["birdies"] += 1
        elif diff == 0:
            counts["pars"] += 1
        elif diff == 1:
            counts["bogeys"] += 1
        else:
            counts["double_plus"] += 1

    # streaks carry across consecutive holes, including round boundaries
    birdie_run = par_run = no_three_putt_run = 0
    most_birdies_row = most_pars_row = longest_no_three_putt = 0
    for h in holes:
        birdie_run = birdie_run + 1 if h.score_to_par == -1 else 0
        par_run = par_run + 1 if h.score_to_par == 0 else 0
        no_three_putt_run = no_three_putt_run + 1 if not h.three_putt else 0
        most_birdies_row = max(most_birdies_row, birdie_run)
        most_pars_row = max(most_pars_row, par_run)
        longest_no_three_putt = max(longest_no_three_putt, no_three_putt_run)

    hole_outs = [h.holed_out_distance for h in holes if h.holed_out_distance is not None]
    total_penalties = sum(h.penalties for h in holes)

    stats = {
        "rounds_played": n_rounds,
        "holes_played": len(holes),
        "scoring_average": safe_average(sum(totals), n_rounds),
        "best_round": min(totals) if totals else None,
        "worst_round": max(totals) if totals else None,
        "most_birdies_round": max((sum(1 for h in r.holes if h.score_to_par == -1) for r in rounds), default=0),
        "most_birdies_row": most_birdies_row,
        "most_pars_row": most_pars_row,
        "current_no_3putt_streak": no_three_putt_run,
        "longest_no_3putt_streak": longest_no_three_putt,
        "longest_hole_out": max(hole_outs) if hole_outs else None,
        "total_penalties": total_penalties,
        "penalties_per_round": safe_average(total_penalties, n_rounds),
    }
    for key, count in counts.items():
        stats[f"total_{key}"] = count
        stats[f"{key}_per_round"] = safe_average(count, n_rounds)
    for round_type in ("practice", "qualifying", "tournament"):
        typed = [r.total_score for r in rounds if r.round_type == round_type]
        stats[f"{round_type}_rounds"] = len(typed)
        stats[f"{round_type}_scoring_avg"] = _mean(typed)
    return stats
