"""Leaderboard ranking and prize distribution.

Rankings use standard competition ranking ("1224"): tied teams share a rank
and the next rank skips the tied places. pandas' ``rank(method="min")`` on
the negated totals gives exactly that.

Prize pooling:
Walk the distinct ranks from the top. A group of k tied teams starting at
paid position ``pos`` pools the prizes for positions pos..pos+k-1 (only
those that are paid) and splits the pool evenly. ``pos`` then advances by k.

Example: prizes [$100, $50, $25], two teams tie for 1st -> $75 each; the
next team is 3rd and gets $25.
"""

import logging
from dataclasses import dataclass, field

import pandas as pd

from ..season import ALL_PERIODS, LAST_PERIOD, SeasonPeriod

logger = logging.getLogger(__name__)

PeriodTotals = dict[str, dict[SeasonPeriod, int]]

CFP_FIELD_SIZE = 12


@dataclass
class TeamStanding:
    """One team's line on the leaderboard. Derived; never edited by hand."""

    team_name: str
    period_totals: dict[SeasonPeriod, int]
    season_total: int
    rank: int
    period_ranks: dict[SeasonPeriod, int] = field(default_factory=dict)
    prize_amount: float = 0.0
    high_points_amount: float = 0.0

    @property
    def total_winnings(self) -> float:
        return round(self.prize_amount + self.high_points_amount, 2)

    def to_dict(self) -> dict:
        return {
            "team_name": self.team_name,
            "period_totals": {int(p): v for p, v in self.period_totals.items()},
            "season_total": self.season_total,
            "rank": self.rank,
            "period_ranks": {int(p): v for p, v in self.period_ranks.items()},
            "prize_amount": self.prize_amount,
            "high_points_amount": self.high_points_amount,
        }


@dataclass(frozen=True)
class HighPointsAward:
    period: SeasonPeriod
    teams: tuple[str, ...]
    points: int
    amount_each: float


def totals_frame(period_totals: PeriodTotals) -> pd.DataFrame:
    """Teams x periods table of points, missing values as 0."""
    frame = pd.DataFrame.from_dict(
        {team: {int(p): v for p, v in totals.items()} for team, totals in period_totals.items()},
        orient="index",
    )
    frame = frame.reindex(columns=[int(p) for p in ALL_PERIODS]).fillna(0).astype(int)
    return frame


def rank_teams(period_totals: PeriodTotals) -> list[TeamStanding]:
    """Rank teams by season total, with per-period ranks.

    Returns standings ordered by rank, then team name.
    """
    if not period_totals:
        return []

    frame = totals_frame(period_totals)
    season = frame.sum(axis=1)
    overall = season.rank(method="min", ascending=False).astype(int)
    per_period = frame.rank(method="min", ascending=False).astype(int)

    standings = [
        TeamStanding(
            team_name=team,
            period_totals={SeasonPeriod(p): int(frame.at[team, p]) for p in frame.columns},
            season_total=int(season[team]),
            rank=int(overall[team]),
            period_ranks={SeasonPeriod(p): int(per_period.at[team, p]) for p in frame.columns},
        )
        for team in frame.index
    ]
    standings.sort(key=lambda s: (s.rank, s.team_name))
    return standings


def distribute_prizes(
    standings: list[TeamStanding], prize_table: list[float], number_winners: int
) -> dict[str, float]:
    """Prize per team, pooling and splitting prizes across ties.

    Args:
        standings: Ranked standings
        prize_table: Prize for 1st, 2nd, 3rd
        number_winners: How many paid positions (1-3)

    Returns:
        {team: amount} for every team that wins something
    """
    paid = list(prize_table[:number_winners]) + [0.0] * max(0, number_winners - len(prize_table))
    groups: dict[int, list[str]] = {}
    for standing in standings:
        groups.setdefault(standing.rank, []).append(standing.team_name)

    awards: dict[str, float] = {}
    position = 0
    for rank in sorted(groups):
        if position >= number_winners:
            break
        tied = groups[rank]
        take = min(len(tied), number_winners - position)
        pool = sum(paid[position : position + take])
        share = round(pool / len(tied), 2)
        for team in tied:
            awards[team] = share
        if len(tied) > 1:
            logger.info(f"{len(tied)} teams tied at rank {rank} split ${pool:.2f}")
        position += len(tied)
    return awards


def weekly_high_points(
    period_totals: PeriodTotals,
    start_period: int,
    weeks: int,
    weekly_amount: float,
    allow_ties: bool = True,
) -> list[HighPointsAward]:
    """Weekly high-points winners over ``weeks`` periods from ``start_period``.

    Periods without any points are skipped. A tie splits the amount when ties
    are allowed and pays nobody otherwise.
    """
    if not period_totals or weeks <= 0:
        return []
    frame = totals_frame(period_totals)
    last = min(int(start_period) + weeks - 1, int(LAST_PERIOD))

    awards = []
    for period in range(int(start_period), last + 1):
        column = frame[period]
        best = int(column.max())
        if best <= 0:
            continue
        leaders = tuple(sorted(column[column == best].index))
        if len(leaders) > 1 and not allow_ties:
            logger.info(f"High points for period {period} tied; not awarded")
            continue
        awards.append(
            HighPointsAward(SeasonPeriod(period), leaders, best, round(weekly_amount / len(leaders), 2))
        )
    return awards


def build_cfp_top12(rankings: list[tuple[int, str]] | list[str]) -> dict[str, int]:
    """School -> seed for the top 12.

    Accepts either (rank, school) pairs or school names already in seed order.
    """
    if rankings and isinstance(rankings[0], str):
        ordered = list(rankings)
    else:
        ordered = [school for _, school in sorted(rankings, key=lambda pair: pair[0])]
    seeds: dict[str, int] = {}
    for school in ordered:
        if school not in seeds:
            seeds[school] = len(seeds) + 1
        if len(seeds) == CFP_FIELD_SIZE:
            break
    return seeds
