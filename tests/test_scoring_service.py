"""Tests for the scoring service over a real (in-memory) store.

Rosters for week 1:
    Tailgaters   Georgia, Navy (Navy swapped for Tennessee from week 3)
    Red Zone     Texas, Michigan
    Hail Marys   Ohio State, Alabama
    Pick Sixers  Oregon, Notre Dame
"""

import pytest

from conftest import make_game

from cfb_fantasy.data.collection.score_feed_client import AP_POLL, RankedSchool
from cfb_fantasy.exceptions import ValidationError
from cfb_fantasy.scoring.service import ScoringService
from cfb_fantasy.season import SeasonPeriod

ROSTERS = {
    "Tailgaters": ["Georgia", "Navy"],
    "Red Zone": ["Texas", "Michigan"],
    "Hail Marys": ["Ohio State", "Alabama"],
    "Pick Sixers": ["Oregon", "Notre Dame"],
}

GAMES = [
    make_game("1", 1, "Georgia", "Marshall", 48, 0),
    make_game("2", 1, "Tennessee", "Chattanooga", 69, 3),
    make_game("3", 1, "Texas", "Ohio State", 20, 14),
    make_game("4", 3, "Tennessee", "Kentucky", 24, 10, conference=True),
    make_game("5", 3, "Michigan", "Oregon", 31, 27),
]


@pytest.fixture
def populated(roster, game_store, clock):
    for team, schools in ROSTERS.items():
        for slot, school in enumerate(schools):
            roster.write_from_period(team, slot, school, 0)
    roster.write_from_period("Tailgaters", 1, "Tennessee", 3)
    game_store.upsert_games(GAMES, clock())


@pytest.fixture
def make_service(populated, roster, game_store, kv, registry, eligibility, lock, cache, clock):
    def build(config):
        return ScoringService(
            config, roster, game_store, kv, registry, eligibility, lock, cache=cache, clock=clock
        )

    return build


@pytest.fixture
def service(make_service, league_config):
    return make_service(league_config)


def test_school_points_ignore_rosters(service):
    points = service.school_points("Tennessee")

    assert points[SeasonPeriod.WEEK_1] == 2
    assert points[SeasonPeriod.WEEK_3] == 2


def test_team_points_are_gated_by_roster_window(service):
    tables = service.team_school_points("Tailgaters")

    assert tables["Tennessee"][SeasonPeriod.WEEK_1] is None, "Not rostered in week 1"
    assert tables["Tennessee"][SeasonPeriod.WEEK_3] == 2
    assert tables["Georgia"][SeasonPeriod.WEEK_1] == 2
    assert tables["Navy"][SeasonPeriod.WEEK_3] is None

    totals = service.team_period_totals()["Tailgaters"]
    assert totals[SeasonPeriod.WEEK_1] == 2
    assert sum(totals.values()) == 4


def test_standings_with_prizes_and_tie_for_last_paid_place(service):
    standings = service.standings()

    lines = [(s.team_name, s.rank, s.season_total, s.prize_amount) for s in standings]
    assert lines == [
        ("Tailgaters", 1, 4, 100.0),
        ("Red Zone", 2, 2, 50.0),
        ("Hail Marys", 3, 0, 12.5),
        ("Pick Sixers", 3, 0, 12.5),
    ]


def test_weekly_high_points_money(make_service, league_config):
    prizes = league_config.prizes.model_copy(
        update={
            "high_points_enabled": True,
            "high_points_weekly_amount": 10.0,
            "high_points_start_period": 1,
            "high_points_weeks": 3,
        }
    )
    service = make_service(league_config.model_copy(update={"prizes": prizes}))

    awards = service.high_points_awards()
    standings = {s.team_name: s for s in service.standings()}

    assert [(a.period, a.teams) for a in awards] == [
        (SeasonPeriod.WEEK_1, ("Tailgaters",)),
        (SeasonPeriod.WEEK_3, ("Tailgaters",)),
    ]
    assert standings["Tailgaters"].high_points_amount == 20.0
    assert standings["Tailgaters"].total_winnings == 120.0


def test_high_points_disabled_by_default(service):
    assert service.high_points_awards() == []


def test_heisman_winner_adds_points_and_can_be_cleared(service):
    service.set_heisman_winner("georgia")

    assert service.heisman_winner() == "Georgia"
    assert service.team_period_totals()["Tailgaters"][SeasonPeriod.HEISMAN] == 10

    service.set_heisman_winner(None)
    assert service.heisman_winner() is None
    assert service.team_period_totals()["Tailgaters"][SeasonPeriod.HEISMAN] == 0


def test_unknown_heisman_school(service):
    with pytest.raises(ValidationError):
        service.set_heisman_winner("Hogwarts")


def test_cfp_top12_prefers_commissioner_ordering(service, game_store, clock):
    assert service.cfp_top12() == {}

    game_store.save_rankings(
        SeasonPeriod.WEEK_1,
        [RankedSchool(1, "Texas", AP_POLL), RankedSchool(2, "Penn State", AP_POLL)],
        clock(),
    )
    service.refresh()
    assert service.cfp_top12() == {"Texas": 1, "Penn State": 2}

    seeds = service.set_cfp_top12(["oregon", "Georgia"])
    assert seeds == {"Oregon": 1, "Georgia": 2}
    assert service.cfp_top12() == seeds

    with pytest.raises(ValidationError):
        service.set_cfp_top12(["Oregon", "Hogwarts"])


def test_results_are_cached_until_refresh(service, game_store, clock):
    before = service.team_period_totals()["Red Zone"][SeasonPeriod.WEEK_3]

    game_store.upsert_games([make_game("6", 3, "Texas", "Rice", 38, 0)], clock())
    assert service.team_period_totals()["Red Zone"][SeasonPeriod.WEEK_3] == before

    service.refresh(["6"])
    assert service.team_period_totals()["Red Zone"][SeasonPeriod.WEEK_3] == before + 2


def test_publish_standings_snapshot(service, clock):
    service.publish_standings()

    snapshot = service.published_standings()
    assert snapshot["period"] == 1
    assert snapshot["published_at"] == clock().isoformat()
    assert [line["team_name"] for line in snapshot["standings"]][:2] == ["Tailgaters", "Red Zone"]


def test_reconcile_eligibility_resets_counters_to_rosters(service, eligibility, registry):
    eligibility.initialize(registry.names(), 3)

    corrections = service.reconcile_eligibility()

    assert corrections["Georgia"] == (0, 1)
    assert corrections["Navy"] == (0, 1)
    assert "Tennessee" not in corrections, "Week 1 rosters still hold Navy"
    assert service.reconcile_eligibility() == {}
