"""Scoring package initialization."""

from .active_windows import RosterRun, roster_runs
from .leaderboard import (
    HighPointsAward,
    TeamStanding,
    build_cfp_top12,
    distribute_prizes,
    rank_teams,
    weekly_high_points,
)
from .points_engine import ActiveWindow, compute_points, game_points, season_total, split_points
from .service import ScoringService

__all__ = [
    "ActiveWindow",
    "HighPointsAward",
    "RosterRun",
    "ScoringService",
    "TeamStanding",
    "build_cfp_top12",
    "compute_points",
    "distribute_prizes",
    "game_points",
    "rank_teams",
    "roster_runs",
    "season_total",
    "split_points",
    "weekly_high_points",
]
