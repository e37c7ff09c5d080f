"""Scoring service: school points, team totals and the published leaderboard.

Reads a consistent snapshot of games and roster history, runs the pure points
engine over it and ranks the teams. Results are memoized in the league cache
until the next write (a game completes or a transaction is applied).

Key Features:
- Raw (ungated) points per school
- Per-team points gated by the periods each school was actually rostered
- Weekly double picks, which count a school's game points twice
- Ranked standings with season prizes and weekly high-points payouts
- Commissioner inputs: Heisman winner and the CFP Top 12 ordering
- Nightly reconciliation of the eligibility counters
"""

import logging
from collections.abc import Callable
from datetime import datetime

from ..config.league import LeagueConfig
from ..data.collection.game_store import GameStore
from ..data.collection.score_feed_client import AP_POLL, CFP_POLL
from ..data.schools import SchoolRegistry
from ..database.kv_store import KeyValueStore
from ..database.locks import WriteLock
from ..exceptions import ValidationError
from ..league.cache import LeagueCache
from ..league.double_points import DoublePointsService
from ..league.eligibility import EligibilityTracker
from ..league.roster_store import RosterStore
from ..season import ALL_PERIODS, SeasonPeriod, roster_period, utcnow
from .active_windows import roster_runs
from .leaderboard import (
    HighPointsAward,
    PeriodTotals,
    TeamStanding,
    build_cfp_top12,
    distribute_prizes,
    rank_teams,
    weekly_high_points,
)
from .points_engine import PointsTable, compute_points, gate_points, split_points

logger = logging.getLogger(__name__)

HEISMAN_KEY = "scoring:heisman_winner"
CFP_TOP12_KEY = "scoring:cfp_top12"
STANDINGS_KEY = "scoring:standings"


def _add_tables(total: PointsTable, extra: PointsTable) -> PointsTable:
    """Sum two gated tables; a period stays None only if both are None."""
    merged = {}
    for period in ALL_PERIODS:
        a, b = total.get(period), extra.get(period)
        merged[period] = None if a is None and b is None else (a or 0) + (b or 0)
    return merged


class ScoringService:
    """Computes and publishes league scoring.

    Args:
        config: League configuration (scoring rules and prizes)
        roster: Roster store
        games: Game store
        kv: Key-value store for commissioner inputs and published standings
        registry: School catalog
        eligibility: Selection counters, for nightly reconciliation
        lock: League write lock
        cache: Shared league cache
        double_points: Weekly double picks; None scores without them
        clock: Returns the current naive-UTC time
    """

    def __init__(
        self,
        config: LeagueConfig,
        roster: RosterStore,
        games: GameStore,
        kv: KeyValueStore,
        registry: SchoolRegistry,
        eligibility: EligibilityTracker,
        lock: WriteLock,
        cache: LeagueCache | None = None,
        double_points: DoublePointsService | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.roster = roster
        self.games = games
        self.kv = kv
        self.registry = registry
        self.eligibility = eligibility
        self.lock = lock
        self.cache = cache or LeagueCache()
        self.double_points = double_points
        self.clock = clock

    def current_period(self) -> SeasonPeriod:
        now = self.clock()
        return self.cache.get_or_load(
            f"current_period:{now:%Y%m%d%H}",
            lambda: self.games.current_period(now),
        )

    def refresh(self, *_args) -> None:
        """Drop memoized scoring; wired as the games-completed and transaction-applied hook."""
        self.cache.invalidate()

    # Commissioner inputs

    def set_heisman_winner(self, school_name: str | None) -> None:
        """Record (or clear, with None) the Heisman-winning school."""
        if school_name is None:
            self.kv.delete(HEISMAN_KEY)
            logger.info("Heisman winner cleared")
        else:
            school = self.registry.get(school_name)
            if school is None:
                raise ValidationError(f"Unknown school: {school_name}")
            self.kv.set(HEISMAN_KEY, school.name)
            logger.info(f"Heisman winner recorded: {school.name}")
        self.cache.invalidate()

    def heisman_winner(self) -> str | None:
        return self.kv.get(HEISMAN_KEY)

    def set_cfp_top12(self, ordering: list[str]) -> dict[str, int]:
        """Store a commissioner-supplied Top 12, best seed first."""
        names = []
        for name in ordering:
            school = self.registry.get(name)
            if school is None:
                raise ValidationError(f"Unknown school: {name}")
            names.append(school.name)
        seeds = build_cfp_top12(names)
        self.kv.set_json(CFP_TOP12_KEY, list(seeds))
        self.cache.invalidate()
        logger.info(f"CFP Top 12 recorded: {', '.join(seeds)}")
        return seeds

    def cfp_top12(self) -> dict[str, int]:
        """School -> seed, from the commissioner's ordering or the latest poll snapshot."""

        def load() -> dict[str, int]:
            stored = self.kv.get_json(CFP_TOP12_KEY)
            if stored:
                return build_cfp_top12(stored)
            for poll in (CFP_POLL, AP_POLL, None):
                entries = self.games.rankings(poll_name=poll)
                if entries:
                    return build_cfp_top12([(e.rank, e.school_name) for e in entries])
            return {}

        return self.cache.get_or_load("cfp_top12", load)

    # Points

    def school_points(self, school_name: str) -> PointsTable:
        """Points a school earned in every period, ignoring rosters."""

        def load() -> PointsTable:
            return compute_points(
                school_name,
                self.cache.get_or_load("games", self.games.games),
                self.config.scoring,
                cfp_top12=self.cfp_top12(),
                heisman_winner=self.heisman_winner(),
                season_period=self.current_period(),
            )

        return self.cache.get_or_load(f"points:{school_name}", load)

    def school_game_points(self, school_name: str) -> dict[SeasonPeriod, int]:
        """The per-game formula part of ``school_points``, without event awards."""

        def load() -> dict[SeasonPeriod, int]:
            formula, _ = split_points(
                school_name,
                self.cache.get_or_load("games", self.games.games),
                self.config.scoring,
                cfp_top12=self.cfp_top12(),
            )
            return formula

        return self.cache.get_or_load(f"game_points:{school_name}", load)

    def team_school_points(
        self, team_name: str, history: dict[int, list[str | None]] | None = None
    ) -> dict[str, PointsTable]:
        """Each rostered school's points, blank outside the periods the team held it."""
        if history is None:
            history = self.roster.slot_history(team_name)
        tables: dict[str, PointsTable] = {}
        for run in roster_runs(history):
            gated = gate_points(self.school_points(run.school_name), [run.window])
            previous = tables.get(run.school_name)
            tables[run.school_name] = gated if previous is None else _add_tables(previous, gated)
        return tables

    def double_pick_points(
        self, team_name: str, history: dict[int, list[str | None]] | None = None
    ) -> dict[SeasonPeriod, int]:
        """Extra points from the team's double picks, per period.

        A pick whose school has since left the roster for that period earns
        nothing.
        """
        picks = self.double_points.picks_by_team().get(team_name, {}) if self.double_points else {}
        if not picks:
            return {}
        if history is None:
            history = self.roster.slot_history(team_name)
        extra = {}
        for period, school in picks.items():
            if school in history.get(int(roster_period(period)), []):
                extra[period] = self.school_game_points(school)[period]
        return extra

    def team_period_totals(self) -> PeriodTotals:
        """{team: {period: points}} over every registered team."""

        def load() -> PeriodTotals:
            totals: PeriodTotals = {}
            for team in self.roster.teams():
                history = self.roster.slot_history(team.name)
                per_period = {period: 0 for period in ALL_PERIODS}
                for table in self.team_school_points(team.name, history).values():
                    for period, value in table.items():
                        per_period[period] += value or 0
                for period, value in self.double_pick_points(team.name, history).items():
                    per_period[period] += value
                totals[team.name] = per_period
            return totals

        return self.cache.get_or_load("team_period_totals", load)

    def high_points_awards(self, totals: PeriodTotals | None = None) -> list[HighPointsAward]:
        prizes = self.config.prizes
        if not prizes.high_points_enabled:
            return []
        return weekly_high_points(
            totals if totals is not None else self.team_period_totals(),
            prizes.high_points_start_period,
            prizes.high_points_weeks,
            prizes.high_points_weekly_amount,
            prizes.high_points_allow_ties,
        )

    def standings(self) -> list[TeamStanding]:
        """Ranked standings with season prizes and weekly high-points money."""
        totals = self.team_period_totals()
        standings = rank_teams(totals)
        prizes = self.config.prizes
        awards = distribute_prizes(standings, prizes.prize_table(), prizes.number_winners)

        high_points: dict[str, float] = {}
        for award in self.high_points_awards(totals):
            for team in award.teams:
                high_points[team] = round(high_points.get(team, 0.0) + award.amount_each, 2)

        for standing in standings:
            standing.prize_amount = awards.get(standing.team_name, 0.0)
            standing.high_points_amount = high_points.get(standing.team_name, 0.0)
        return standings

    def publish_standings(self) -> list[TeamStanding]:
        """Store the latest standings snapshot for readers outside this process."""
        standings = self.standings()
        self.kv.set_json(
            STANDINGS_KEY,
            {
                "published_at": self.clock().isoformat(),
                "period": int(self.current_period()),
                "standings": [standing.to_dict() for standing in standings],
            },
        )
        logger.info(f"Published standings for {len(standings)} teams")
        return standings

    def published_standings(self) -> dict | None:
        return self.kv.get_json(STANDINGS_KEY)

    # Maintenance

    def reconcile_eligibility(self) -> dict[str, tuple[int, int]]:
        """Reset selection counters to what the current-period rosters hold.

        Returns:
            {school: (old, new)} for every counter that was corrected
        """
        with self.lock.hold(reason="eligibility reconcile"):
            self.eligibility.load()
            period = roster_period(self.current_period())
            corrections = self.eligibility.reconcile(self.roster.school_counts(period))
        if corrections:
            self.cache.invalidate()
        return corrections
