"""Tests for leaderboard ranking, prize pooling and active roster windows."""

import pytest

from cfb_fantasy.scoring.active_windows import roster_runs
from cfb_fantasy.scoring.leaderboard import (
    build_cfp_top12,
    distribute_prizes,
    rank_teams,
    weekly_high_points,
)
from cfb_fantasy.scoring.points_engine import ActiveWindow
from cfb_fantasy.season import SeasonPeriod

W1, W2, W3 = SeasonPeriod.WEEK_1, SeasonPeriod.WEEK_2, SeasonPeriod.WEEK_3


def totals(**teams):
    return {name.replace("_", " "): dict(periods) for name, periods in teams.items()}


def test_standard_competition_ranking():
    standings = rank_teams(
        totals(
            Alpha={W1: 10, W2: 5},
            Bravo={W1: 8, W2: 7},
            Charlie={W1: 3, W2: 2},
            Delta={W1: 1, W2: 1},
        )
    )

    ranks = {s.team_name: s.rank for s in standings}
    assert ranks == {"Alpha": 1, "Bravo": 1, "Charlie": 3, "Delta": 4}
    assert [s.team_name for s in standings] == ["Alpha", "Bravo", "Charlie", "Delta"]
    assert standings[0].season_total == 15


def test_period_ranks_share_ties():
    standings = rank_teams(totals(Alpha={W1: 4}, Bravo={W1: 4}, Charlie={W1: 9}))
    by_team = {s.team_name: s for s in standings}

    assert by_team["Charlie"].period_ranks[W1] == 1
    assert by_team["Alpha"].period_ranks[W1] == 2
    assert by_team["Bravo"].period_ranks[W1] == 2


def test_rank_teams_empty():
    assert rank_teams({}) == []


def test_prize_pooling_for_tie_at_first():
    standings = rank_teams(
        totals(Alpha={W1: 20}, Bravo={W1: 20}, Charlie={W1: 10}, Delta={W1: 5})
    )

    awards = distribute_prizes(standings, [100.0, 50.0, 25.0], number_winners=3)

    assert awards == {"Alpha": 75.0, "Bravo": 75.0, "Charlie": 25.0}


def test_tie_wider_than_paid_places_splits_only_paid_prizes():
    standings = rank_teams(totals(Alpha={W1: 20}, Bravo={W1: 20}, Charlie={W1: 10}))

    awards = distribute_prizes(standings, [100.0, 50.0, 25.0], number_winners=1)

    assert awards == {"Alpha": 50.0, "Bravo": 50.0}


def test_three_way_tie_for_second():
    standings = rank_teams(
        totals(Alpha={W1: 30}, Bravo={W1: 20}, Charlie={W1: 20}, Delta={W1: 20})
    )

    awards = distribute_prizes(standings, [90.0, 60.0, 30.0], number_winners=3)

    assert awards["Alpha"] == 90.0
    assert awards["Bravo"] == awards["Charlie"] == awards["Delta"] == 30.0


def test_no_ties_pays_in_order():
    standings = rank_teams(totals(Alpha={W1: 3}, Bravo={W1: 2}, Charlie={W1: 1}))

    assert distribute_prizes(standings, [100.0, 50.0, 25.0], 2) == {"Alpha": 100.0, "Bravo": 50.0}


def test_weekly_high_points_split_and_skip():
    period_totals = totals(
        Alpha={W1: 10, W2: 6, W3: 0},
        Bravo={W1: 10, W2: 4, W3: 0},
    )

    awards = weekly_high_points(period_totals, start_period=1, weeks=3, weekly_amount=20.0)

    assert [(a.period, a.teams, a.amount_each) for a in awards] == [
        (W1, ("Alpha", "Bravo"), 10.0),
        (W2, ("Alpha",), 20.0),
    ]


def test_weekly_high_points_ties_not_allowed():
    period_totals = totals(Alpha={W1: 10}, Bravo={W1: 10})

    assert weekly_high_points(period_totals, 1, 1, 20.0, allow_ties=False) == []


@pytest.mark.parametrize(
    "rankings, expected_first, expected_len",
    [
        ([(2, "Georgia"), (1, "Oregon"), (3, "Texas")], "Oregon", 3),
        ([f"School {n}" for n in range(25)], "School 0", 12),
    ],
)
def test_build_cfp_top12(rankings, expected_first, expected_len):
    seeds = build_cfp_top12(rankings)

    assert seeds[expected_first] == 1
    assert len(seeds) == expected_len
    assert max(seeds.values()) == expected_len


def test_roster_runs_extend_week_16_through_postseason():
    history = {p: ["Georgia", "Navy"] for p in range(17)}
    for p in range(5, 17):
        history[p][1] = "Army"

    runs = roster_runs(history)

    assert (0, "Georgia", ActiveWindow(0, 20)) in [(r.slot_index, r.school_name, r.window) for r in runs]
    assert (1, "Navy", ActiveWindow(0, 4)) in [(r.slot_index, r.school_name, r.window) for r in runs]
    assert (1, "Army", ActiveWindow(5, 20)) in [(r.slot_index, r.school_name, r.window) for r in runs]
