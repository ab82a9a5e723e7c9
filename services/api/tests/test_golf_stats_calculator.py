"""Shot-based golf statistics."""

import pytest

from services.api.app.golf import calculate_stats_from_shots, hole_stats_from_shots
from services.api.app.golf.stats_calculator import safe_average, safe_percent


def shot(number, shot_type, result, *, lie="other", before=0, unit_before="yards", after=0, unit_after="yards",
         club=None, distance=0, miss=None, penalty=False, hole=1, round_id="r1"):
    return {
        "round_id": round_id,
        "hole_number": hole,
        "shot_number": number,
        "shot_type": shot_type,
        "club_type": club,
        "lie_before": lie,
        "distance_to_hole_before": before,
        "distance_unit_before": unit_before,
        "result": result,
        "distance_to_hole_after": after,
        "distance_unit_after": unit_after,
        "shot_distance": distance,
        "miss_direction": miss,
        "putt_break": None,
        "putt_slope": None,
        "is_penalty": penalty,
    }


def par4_two_putt(round_id="r1", hole=1):
    """Driver in the fairway, 150 yd approach to 20 ft, two putts."""
    kw = {"round_id": round_id, "hole": hole}
    return [
        shot(1, "tee", "fairway", lie="tee", before=400, club="driver", distance=280, **kw),
        shot(2, "approach", "green", lie="fairway", before=150, after=20, unit_after="feet", club="non_driver", **kw),
        shot(3, "putting", "green", lie="green", before=20, unit_before="feet", after=2, unit_after="feet", club="putter", **kw),
        shot(4, "putting", "hole", lie="green", before=2, unit_before="feet", unit_after="feet", club="putter", **kw),
    ]


def par3_sand_save(round_id="r1", hole=2):
    """Tee shot into a bunker, splash to 4 ft, one putt."""
    kw = {"round_id": round_id, "hole": hole}
    return [
        shot(1, "tee", "sand", lie="tee", before=170, club="non_driver", distance=160, **kw),
        shot(2, "around_green", "green", lie="sand", before=15, after=4, unit_after="feet", **kw),
        shot(3, "putting", "hole", lie="green", before=4, unit_before="feet", unit_after="feet", club="putter", **kw),
    ]


def par4_three_putt(round_id="r2", hole=1):
    """Driver missed right into the rough, approach to 30 ft, three putts."""
    kw = {"round_id": round_id, "hole": hole}
    return [
        shot(1, "tee", "rough", lie="tee", before=410, club="driver", distance=260, miss="right", **kw),
        shot(2, "approach", "green", lie="rough", before=140, after=30, unit_after="feet", **kw),
        shot(3, "putting", "green", lie="green", before=30, unit_before="feet", after=4, unit_after="feet", miss="short", **kw),
        shot(4, "putting", "green", lie="green", before=4, unit_before="feet", after=1, unit_after="feet", **kw),
        shot(5, "putting", "hole", lie="green", before=1, unit_before="feet", unit_after="feet", **kw),
    ]


def test_safe_math_rounds_half_up_and_handles_zero() -> None:
    assert safe_percent(2, 3) == 66.7
    assert safe_percent(1, 8) == 12.5
    assert safe_percent(0, 0) is None
    assert safe_average(5, 2) == 2.5
    assert safe_average(10, 3) == 3.33
    assert safe_average(1, 0) is None


def test_hole_stats_regulation_par() -> None:
    stats = hole_stats_from_shots(par4_two_putt(), par=4)

    assert stats.score == 4
    assert stats.score_to_par == 0
    assert stats.putts == 2
    assert stats.fairway_hit is True
    assert stats.used_driver is True
    assert stats.driving_distance == 280
    assert stats.green_in_regulation is True
    assert stats.approach_distance == 150
    assert stats.approach_lie == "fairway"
    assert stats.approach_proximity == 20
    assert stats.strokes_to_hole_out == 3
    assert stats.first_putt_distance == 20
    assert stats.first_putt_leave == 2
    assert stats.scramble_attempt is False
    assert stats.sand_save_attempt is False


def test_hole_stats_par3_has_no_fairway_and_counts_sand_save() -> None:
    stats = hole_stats_from_shots(par3_sand_save(), par=3)

    assert stats.score == 3
    assert stats.fairway_hit is None
    assert stats.driving_distance is None
    assert stats.green_in_regulation is False
    assert stats.scramble_attempt and stats.scramble_made
    assert stats.sand_save_attempt and stats.sand_save_made
    assert stats.approach_distance == 15
    assert stats.approach_proximity == 4
    assert stats.first_putt_leave is None


def test_hole_stats_shots_are_ordered_by_number() -> None:
    shots = list(reversed(par4_two_putt()))
    assert hole_stats_from_shots(shots, par=4).first_putt_distance == 20


def test_hole_out_from_approach() -> None:
    shots = [
        shot(1, "tee", "fairway", lie="tee", before=380, club="driver", distance=260),
        shot(2, "approach", "hole", lie="fairway", before=120),
    ]
    stats = hole_stats_from_shots(shots, par=4)

    assert stats.score == 2
    assert stats.putts == 0
    assert stats.green_in_regulation is True
    assert stats.holed_out_distance == 120
    assert stats.approach_proximity == 0


def test_holed_shot_counts_as_reaching_the_green() -> None:
    ace = [shot(1, "tee", "hole", lie="tee", before=160, club="non_driver", distance=160)]
    assert hole_stats_from_shots(ace, par=3).green_in_regulation is True

    chip_in = [
        shot(1, "tee", "rough", lie="tee", before=390, club="driver", distance=250),
        shot(2, "approach", "rough", lie="rough", before=140, after=15),
        shot(3, "around_green", "hole", lie="rough", before=15),
    ]
    stats = hole_stats_from_shots(chip_in, par=4)
    assert stats.green_in_regulation is False
    assert stats.score == 3


def test_feet_are_converted_to_yards_for_full_shots() -> None:
    shots = [
        shot(1, "tee", "green", lie="tee", before=450, unit_before="feet", after=9, unit_after="feet"),
        shot(2, "putting", "hole", lie="green", before=9, unit_before="feet"),
    ]
    stats = hole_stats_from_shots(shots, par=3)
    assert stats.green_in_regulation is True
    assert stats.approach_proximity == 9


def test_penalties_are_counted() -> None:
    shots = [
        shot(1, "tee", "penalty", lie="tee", before=400, club="driver", penalty=True, miss="left"),
        shot(2, "penalty", "other", penalty=True),
        shot(3, "approach", "green", lie="rough", before=180, after=25, unit_after="feet"),
        shot(4, "putting", "hole", lie="green", before=25, unit_before="feet"),
    ]
    stats = hole_stats_from_shots(shots, par=4)
    assert stats.penalties == 2
    assert stats.fairway_hit is False
    assert stats.drive_miss_direction == "left"
    assert stats.green_in_regulation is False


@pytest.fixture()
def two_rounds():
    rounds = [
        {"id": "r2", "round_date": "2026-05-08", "round_type": "practice"},
        {"id": "r1", "round_date": "2026-05-01", "round_type": "practice"},
    ]
    holes = [
        {"round_id": "r1", "hole_number": 1, "par": 4},
        {"round_id": "r1", "hole_number": 2, "par": 3},
        {"round_id": "r2", "hole_number": 1, "par": 4},
        # recorded hole row without shots is ignored
        {"round_id": "r2", "hole_number": 2, "par": 5},
    ]
    shots = par4_two_putt() + par3_sand_save() + par4_three_putt()
    return calculate_stats_from_shots(shots, holes, rounds)


def test_scoring(two_rounds) -> None:
    scoring = two_rounds["scoring"]
    assert scoring["rounds_played"] == 2
    assert scoring["holes_played"] == 3
    assert scoring["scoring_average"] == 6.0
    assert scoring["best_round"] == 5
    assert scoring["worst_round"] == 7
    assert scoring["total_pars"] == 2
    assert scoring["total_bogeys"] == 1
    assert scoring["total_birdies"] == 0
    assert scoring["pars_per_round"] == 1.0
    assert scoring["practice_rounds"] == 2
    assert scoring["practice_scoring_avg"] == 6.0
    assert scoring["tournament_scoring_avg"] is None
    assert scoring["total_penalties"] == 0
    assert scoring["longest_hole_out"] is None


def test_streaks_run_in_chronological_order(two_rounds) -> None:
    scoring = two_rounds["scoring"]
    assert scoring["most_pars_row"] == 2
    assert scoring["most_birdies_row"] == 0
    assert scoring["longest_no_3putt_streak"] == 2
    assert scoring["current_no_3putt_streak"] == 0


def test_driving(two_rounds) -> None:
    driving = two_rounds["driving"]
    assert driving["driving_distance_avg"] == 270.0
    assert driving["driving_distance_driver_only"] == 270.0
    assert driving["fairway_opportunities"] == 2
    assert driving["fairway_percentage"] == 50.0
    assert driving["fairway_pct_par4"] == 50.0
    assert driving["fairway_pct_par5"] is None
    assert driving["fairway_pct_non_driver"] is None
    assert driving["miss_right_count"] == 1
    assert driving["miss_right_pct"] == 100.0


def test_gir(two_rounds) -> None:
    gir = two_rounds["gir"]
    assert gir["gir_total"] == 2
    assert gir["gir_percentage"] == 66.7
    assert gir["gir_pct_par3"] == 0.0
    assert gir["gir_pct_par4"] == 100.0
    assert gir["gir_per_round"] == 1.0


def test_putting(two_rounds) -> None:
    putting = two_rounds["putting"]
    assert putting["total_putts"] == 6
    assert putting["putts_per_round"] == 3.0
    assert putting["putts_per_hole"] == 2.0
    assert putting["putts_per_gir"] == 2.5
    assert putting["three_putts_total"] == 1
    assert putting["one_putts_total"] == 1
    assert putting["putt_make_pct_3_5"] == 100.0
    assert putting["putt_make_pct_15_20"] == 0.0
    assert putting["putt_make_pct_0_3"] is None
    assert putting["putt_eff_25_30"] == 3.0
    assert putting["putt_proximity_15_20"] == 2.0
    assert putting["putt_proximity_20_plus"] == 4.0
    assert putting["putt_proximity_avg"] == 3.0
    assert putting["putt_miss_short_pct"] == 50.0
    assert putting["putt_miss_long_pct"] == 0.0


def test_approach(two_rounds) -> None:
    approach = two_rounds["approach"]
    assert approach["approach_proximity_avg"] == 18.0
    assert approach["approach_proximity_par3"] == 4.0
    assert approach["approach_proximity_par4"] == 25.0
    assert approach["approach_proximity_fairway"] == 20.0
    assert approach["approach_proximity_rough"] == 30.0
    assert approach["approach_prox_125_150"] == 25.0
    assert approach["approach_prox_30_75"] is None
    assert approach["approach_eff"]["125_150"] == {"fairway": 3.0, "rough": 4.0, "sand": None}


def test_scrambling_and_sand_saves(two_rounds) -> None:
    scrambling = two_rounds["scrambling"]
    assert scrambling["scramble_attempts"] == 1
    assert scrambling["scrambling_percentage"] == 100.0
    assert scrambling["scrambling_pct_sand"] == 100.0
    assert scrambling["scrambling_pct_10_20"] == 100.0
    assert scrambling["sand_save_attempts"] == 1
    assert scrambling["sand_save_percentage"] == 100.0
    assert scrambling["atg_efficiency_avg"] == 2.0
    assert scrambling["atg_eff_by_distance_lie"]["10_20"]["sand"] == 2.0


def test_empty_input_returns_skeleton() -> None:
    stats = calculate_stats_from_shots([], [], [])

    assert stats["scoring"]["rounds_played"] == 0
    assert stats["scoring"]["scoring_average"] is None
    assert stats["scoring"]["best_round"] is None
    assert stats["driving"]["fairway_percentage"] is None
    assert stats["putting"]["total_putts"] == 0
    assert stats["approach"]["approach_eff"]["225_plus"] == {"fairway": None, "rough": None, "sand": None}
    assert set(stats["scrambling"]["atg_eff_by_distance_lie"]) == {"0_10", "10_20", "20_30"}
