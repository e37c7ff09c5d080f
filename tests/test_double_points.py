"""Tests for weekly double-points picks and how they score.

Rosters: Tailgaters hold Georgia and Navy, Red Zone hold Texas and Michigan.
Georgia beats Marshall 48-0 in week 1 (2 game points) and Texas 35-0 in the
Sugar Bowl (2 game points plus the 5-point bowl appearance).
"""

from datetime import timedelta

import pytest

from conftest import ADMIN, make_game, week_start

from cfb_fantasy.config.league import ScoringRules
from cfb_fantasy.exceptions import (
    AuthorizationError,
    DeadlineError,
    RosterError,
    TransactionLimitError,
    ValidationError,
)
from cfb_fantasy.league.double_points import DoublePointsService
from cfb_fantasy.scoring.points_engine import split_points
from cfb_fantasy.scoring.service import ScoringService
from cfb_fantasy.season import SeasonPeriod

OWNER = "ann@example.com"

BOWL_KICKOFF = week_start(17) + timedelta(days=3)

GAMES = [
    make_game("1", 1, "Georgia", "Marshall", 48, 0),
    make_game("2", 1, "Texas", "Rice", 20, 17),
    make_game(
        "7", 17, "Georgia", "Texas", 35, 0,
        season_type=3, game_name="Sugar Bowl", start_time=BOWL_KICKOFF,
    ),
]


@pytest.fixture
def populated(roster, game_store, clock):
    roster.write_from_period("Tailgaters", 0, "Georgia", 0)
    roster.write_from_period("Tailgaters", 1, "Navy", 0)
    roster.write_from_period("Red Zone", 0, "Texas", 0)
    roster.write_from_period("Red Zone", 1, "Michigan", 0)
    game_store.upsert_games(GAMES, clock())


@pytest.fixture
def make_config(league_config):
    def build(**options):
        options.setdefault("double_points_enabled", True)
        prizes = league_config.prizes.model_copy(update=options)
        return league_config.model_copy(update={"prizes": prizes})

    return build


@pytest.fixture
def make_services(populated, db, roster, game_store, kv, registry, eligibility, lock, cache, clock):
    def build(config):
        picks = DoublePointsService(config, db, roster, game_store, registry, cache=cache, clock=clock)
        scoring = ScoringService(
            config, roster, game_store, kv, registry, eligibility, lock,
            cache=cache, double_points=picks, clock=clock,
        )
        return picks, scoring

    return build


@pytest.fixture
def services(make_services, make_config):
    return make_services(make_config())


def test_game_points_and_event_awards_are_split():
    game, bonus = split_points("Georgia", GAMES, ScoringRules())

    assert game[SeasonPeriod.WEEK_1] == 2
    assert game[SeasonPeriod.BOWLS] == 2
    assert bonus[SeasonPeriod.BOWLS] == 5
    assert bonus[SeasonPeriod.WEEK_1] == 0


def test_double_pick_counts_game_points_twice(services):
    picks, scoring = services

    pick = picks.set_pick("Tailgaters", 1, "georgia", OWNER)

    assert (pick.school_name, pick.period) == ("Georgia", SeasonPeriod.WEEK_1)
    totals = scoring.team_period_totals()
    assert totals["Tailgaters"][SeasonPeriod.WEEK_1] == 4
    assert totals["Red Zone"][SeasonPeriod.WEEK_1] == 1, "Other teams are unaffected"


def test_event_awards_are_not_doubled(services, clock):
    picks, scoring = services
    clock.now = week_start(17) + timedelta(days=1)

    picks.set_pick("Tailgaters", SeasonPeriod.BOWLS, "Georgia", OWNER)
    clock.now = BOWL_KICKOFF + timedelta(hours=5)
    scoring.refresh()

    # 2 game points doubled, plus the bowl appearance once
    assert scoring.team_period_totals()["Tailgaters"][SeasonPeriod.BOWLS] == 2 * 2 + 5


def test_pick_must_be_on_roster(services):
    picks, _ = services

    with pytest.raises(RosterError, match="Texas is not on Tailgaters's roster for Week 1"):
        picks.set_pick("Tailgaters", 1, "Texas", OWNER)

    assert picks.picks("Tailgaters") == []


def test_pick_closes_at_first_kickoff(services, clock):
    picks, _ = services
    clock.now = week_start(1) + timedelta(days=5, hours=16)

    with pytest.raises(DeadlineError):
        picks.set_pick("Tailgaters", 1, "Georgia", OWNER)


def test_only_owners_and_admins_pick(services):
    picks, _ = services

    with pytest.raises(AuthorizationError):
        picks.set_pick("Tailgaters", 1, "Georgia", "bob@example.com")

    assert picks.set_pick("Tailgaters", 1, "Georgia", ADMIN).actor == ADMIN


def test_changing_a_pick_is_free_but_new_weeks_count(make_services, make_config):
    picks, _ = make_services(make_config(max_double_picks=1))

    picks.set_pick("Tailgaters", 1, "Georgia", OWNER)
    picks.set_pick("Tailgaters", 1, "Navy", OWNER)

    with pytest.raises(TransactionLimitError):
        picks.set_pick("Tailgaters", 2, "Georgia", OWNER)
    assert [(p.period, p.school_name) for p in picks.picks("Tailgaters")] == [(SeasonPeriod.WEEK_1, "Navy")]


def test_disabled_league_rejects_picks_and_scores_normally(make_services, make_config):
    picks, scoring = make_services(make_config(double_points_enabled=False))

    with pytest.raises(ValidationError, match="not enabled"):
        picks.set_pick("Tailgaters", 1, "Georgia", OWNER)
    assert scoring.team_period_totals()["Tailgaters"][SeasonPeriod.WEEK_1] == 2


def test_pick_lapses_when_school_leaves_roster(services, roster):
    picks, scoring = services
    picks.set_pick("Tailgaters", 1, "Georgia", OWNER)

    roster.write_from_period("Tailgaters", 0, "Tennessee", 1)
    scoring.refresh()

    assert scoring.double_pick_points("Tailgaters") == {}
    assert scoring.team_period_totals()["Tailgaters"][SeasonPeriod.WEEK_1] == 0


def test_roster_clear_removes_picks(services, roster):
    picks, _ = services
    picks.set_pick("Tailgaters", 1, "Georgia", OWNER)

    roster.clear()

    assert picks.picks() == []
