"""Shared fixtures for the league test suite.

Every test gets a fresh in-memory SQLite database (``sqlite://`` on a
StaticPool, so all sessions share one connection), a four-team league with
two schools per team and a clock the test can move.

Usage:
    pytest tests/ -v
"""

import copy
from datetime import datetime, timedelta

import pytest

from cfb_fantasy.config.league import load_league_config
from cfb_fantasy.data.collection.game_store import GameStore
from cfb_fantasy.data.games import GameResult, GameStatus, TeamRef
from cfb_fantasy.data.schools import SchoolRegistry
from cfb_fantasy.database.connection import Database, create_db_engine
from cfb_fantasy.database.init_db import create_database
from cfb_fantasy.database.kv_store import KeyValueStore
from cfb_fantasy.database.locks import WriteLock
from cfb_fantasy.league.cache import LeagueCache
from cfb_fantasy.league.eligibility import EligibilityTracker
from cfb_fantasy.league.roster_store import RosterStore
from cfb_fantasy.notifications import LoggingNotifier
from cfb_fantasy.season import CalendarPeriod, SeasonCalendar, SeasonPeriod

SEASON_START = datetime(2025, 8, 25)

ADMIN = "commish@example.com"

LEAGUE_DICT = {
    "league_name": "Saturday Degenerates",
    "season_year": 2025,
    "teams": [
        {"name": "Tailgaters", "owners": ["Ann@Example.com"]},
        {"name": "Red Zone", "owners": ["bob@example.com"]},
        {"name": "Hail Marys", "owners": ["cat@example.com"]},
        {"name": "Pick Sixers", "owners": ["dan@example.com", "eve@example.com"]},
    ],
    "admins": [ADMIN],
    "draft": {
        "draft_date": "2025-08-01",
        "draft_type": "Snake",
        "team_count": 4,
        "schools_per_team": 2,
        "max_times_school_per_team": 1,
        "max_school_selections": 3,
        "timer_seconds": 60,
    },
    "transactions": {"final_add_drop_date": "2025-10-06", "max_add_drops": 50},
    "prizes": {
        "prize_pool": 200.0,
        "number_winners": 3,
        "payout_percentages": [50.0, 25.0, 12.5],
    },
}


class FakeClock:
    """Naive-UTC clock a test can set or advance."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def week_start(period: int) -> datetime:
    return SEASON_START + timedelta(days=7 * period)


def season_calendar() -> SeasonCalendar:
    """Weekly periods 0-16 from Monday 08/25/2025, then the postseason."""
    entries = [
        CalendarPeriod(
            SeasonPeriod(p),
            SeasonPeriod(p).label,
            week_start(p),
            week_start(p) + timedelta(days=7) - timedelta(seconds=1),
        )
        for p in range(17)
    ]
    postseason_start = week_start(17)
    for offset, period in enumerate(
        (SeasonPeriod.BOWLS, SeasonPeriod.PLAYOFF, SeasonPeriod.NATIONAL_CHAMPIONSHIP)
    ):
        start = postseason_start + timedelta(days=14 * offset)
        entries.append(
            CalendarPeriod(period, period.label, start, start + timedelta(days=14) - timedelta(seconds=1))
        )
    return SeasonCalendar(entries)


def make_game(
    game_id: str,
    period: int,
    home: str,
    away: str,
    home_score: int | None = None,
    away_score: int | None = None,
    status: GameStatus = GameStatus.COMPLETED,
    home_rank: int = 0,
    away_rank: int = 0,
    conference: bool = False,
    game_name: str = "",
    start_time: datetime | None = None,
    season_type: int = 2,
) -> GameResult:
    """Build a GameResult with sensible defaults for tests."""
    if start_time is None:
        start_time = week_start(min(period, 16)) + timedelta(days=5, hours=16)
    return GameResult(
        game_id=game_id,
        period=SeasonPeriod(period),
        home=TeamRef(home, home_rank),
        away=TeamRef(away, away_rank),
        status=status,
        home_score=home_score,
        away_score=away_score,
        is_conference_game=conference,
        game_name=game_name,
        start_time=start_time,
        season_type=season_type,
    )


@pytest.fixture
def league_dict():
    return copy.deepcopy(LEAGUE_DICT)


@pytest.fixture
def league_config(league_dict):
    return load_league_config(league_dict)


@pytest.fixture
def clock():
    # Tuesday of week 1
    return FakeClock(datetime(2025, 9, 2, 12, 0))


@pytest.fixture
def db():
    database = Database(create_db_engine("sqlite://"))
    create_database(database.engine)
    yield database
    database.dispose()


@pytest.fixture
def kv(db):
    return KeyValueStore(db)


@pytest.fixture
def lock(kv):
    return WriteLock(kv, wait_timeout=0.5, poll_interval=0.01)


@pytest.fixture
def registry():
    return SchoolRegistry()


@pytest.fixture
def cache():
    return LeagueCache()


@pytest.fixture
def notifier():
    return LoggingNotifier()


@pytest.fixture
def roster(db, league_config):
    store = RosterStore(db, league_config.draft.schools_per_team)
    store.register_teams(league_config.teams)
    return store


@pytest.fixture
def eligibility(kv):
    return EligibilityTracker(kv)


@pytest.fixture
def game_store(db):
    store = GameStore(db)
    store.save_calendar(season_calendar())
    return store
