"""Golf statistics: shot-level calculator and round-level summaries."""

from .stats_calculator import calculate_stats_from_shots, hole_stats_from_shots
from .summary import (
    average_by_round_type,
    handicap_index,
    qualifier_leaderboard,
    recent_rounds,
    round_summary_stats,
    scoring_distribution,
    scoring_trend,
    team_stats,
)
