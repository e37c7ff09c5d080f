"""Tests for the roster store: slots, copy-forward, history and the transaction log."""

from datetime import datetime

import pytest

from cfb_fantasy.exceptions import RosterError
from cfb_fantasy.season import SeasonPeriod


def test_register_teams_creates_empty_slots(roster):
    teams = roster.teams()

    assert [t.name for t in teams] == ["Tailgaters", "Red Zone", "Hail Marys", "Pick Sixers"]
    assert teams[0].owners == ("ann@example.com",), "Owner emails are stored lowercased"
    assert roster.roster("Red Zone", 0) == [None, None]
    assert set(roster.slot_history("Red Zone")) == set(range(17))


def test_register_teams_is_idempotent(roster, league_config):
    roster.set_slot("Tailgaters", 0, 0, "Georgia")

    roster.register_teams(league_config.teams)

    assert roster.roster("Tailgaters", 0) == ["Georgia", None]
    assert len(roster.teams()) == 4


def test_unknown_team_raises(roster):
    with pytest.raises(RosterError):
        roster.require_team("Nobody")
    assert roster.team("Nobody") is None


def test_copy_forward_fills_every_week(roster):
    roster.set_slot("Tailgaters", 0, 0, "Georgia")
    roster.set_slot("Tailgaters", 0, 1, "Navy")

    roster.copy_forward(0)

    for period in range(17):
        assert roster.roster("Tailgaters", period) == ["Georgia", "Navy"]


def test_postseason_reads_week_16(roster):
    roster.write_from_period("Red Zone", 1, "Army", 16)

    assert roster.roster("Red Zone", SeasonPeriod.NATIONAL_CHAMPIONSHIP) == [None, "Army"]
    assert roster.roster("Red Zone", SeasonPeriod.BOWLS) == [None, "Army"]


def test_write_from_period_leaves_earlier_weeks(roster):
    roster.set_slot("Hail Marys", 0, 0, "Clemson")
    roster.copy_forward(0)

    written = roster.write_from_period("Hail Marys", 0, "Miami", 6)

    assert written == list(range(6, 17))
    assert roster.roster("Hail Marys", 5) == ["Clemson", None]
    assert roster.roster("Hail Marys", 6) == ["Miami", None]
    history = roster.slot_history("Hail Marys")
    assert history[0][0] == "Clemson"
    assert history[16][0] == "Miami"


def test_slot_index_is_checked(roster):
    with pytest.raises(RosterError):
        roster.set_slot("Hail Marys", 0, 2, "Clemson")


def test_school_counts(roster):
    roster.set_slot("Tailgaters", 3, 0, "Georgia")
    roster.set_slot("Red Zone", 3, 1, "Georgia")
    roster.set_slot("Red Zone", 3, 0, "Texas")

    assert roster.school_counts(3) == {"Georgia": 2, "Texas": 1}
    assert roster.team_school_count("Red Zone", "Georgia", 3) == 1
    assert roster.rosters(3)["Red Zone"] == ["Texas", "Georgia"]


def test_transaction_log_is_newest_first(roster):
    when = datetime(2025, 9, 2, 12)
    first = roster.log_transaction("Tailgaters", 1, 0, "Georgia", "Texas", "ann@example.com", when)
    second = roster.log_transaction("Red Zone", 1, 1, "Navy", "Army", "bob@example.com", when)

    assert second > first
    assert [t.position for t in roster.history()] == [second, first]
    assert [t.added_school for t in roster.history("Tailgaters")] == ["Texas"]


def test_increment_add_drops(roster):
    roster.increment_add_drops("Pick Sixers")

    assert roster.increment_add_drops("Pick Sixers") == 2
    assert roster.require_team("Pick Sixers").add_drops_used == 2


def test_clear_wipes_slots_log_and_counters(roster):
    roster.set_slot("Tailgaters", 0, 0, "Georgia")
    roster.log_transaction("Tailgaters", 0, 0, "Georgia", "Texas", "ann@example.com", datetime(2025, 9, 1))
    roster.increment_add_drops("Tailgaters")

    roster.clear()

    assert roster.roster("Tailgaters", 0) == [None, None]
    assert roster.history() == []
    assert roster.require_team("Tailgaters").add_drops_used == 0
