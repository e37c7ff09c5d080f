"""Tests for league configuration loading and process settings."""

import json

import pytest

from cfb_fantasy.config.league import DraftType, ScoringRules, load_league_config
from cfb_fantasy.config.settings import Settings
from cfb_fantasy.exceptions import ConfigError


def test_valid_config_normalizes_emails(league_config):
    assert league_config.teams[0].owners == ["ann@example.com"]
    assert league_config.draft.draft_type is DraftType.SNAKE
    assert league_config.team_names() == ["Tailgaters", "Red Zone", "Hail Marys", "Pick Sixers"]


def test_scoring_defaults():
    rules = ScoringRules()

    assert (rules.win, rules.conference_game, rules.over_50, rules.shutout) == (1, 1, 1, 1)
    assert (rules.ranked_25, rules.ranked_10) == (1, 2)
    assert rules.loss == 0
    assert (rules.championship_win, rules.championship_loss) == (20, 5)


def test_prize_table_pads_to_three_places(league_config):
    assert league_config.prizes.prize_table() == [100.0, 50.0, 25.0]


@pytest.mark.parametrize("field", ["team_count", "schools_per_team"])
def test_required_draft_fields(league_dict, field):
    del league_dict["draft"][field]

    with pytest.raises(ConfigError, match=field):
        load_league_config(league_dict)


@pytest.mark.parametrize("name", ["AB", "x" * 26, "Admin", " commissioner "])
def test_bad_team_names(league_dict, name):
    league_dict["teams"][0]["name"] = name

    with pytest.raises(ConfigError, match="teams.0.name"):
        load_league_config(league_dict)


def test_duplicate_team_names(league_dict):
    league_dict["teams"][1]["name"] = "TAILGATERS"

    with pytest.raises(ConfigError, match="unique"):
        load_league_config(league_dict)


def test_team_count_must_match(league_dict):
    league_dict["draft"]["team_count"] = 5

    with pytest.raises(ConfigError, match="team_count"):
        load_league_config(league_dict)


def test_timer_must_be_a_listed_choice(league_dict):
    league_dict["draft"]["timer_seconds"] = 75

    with pytest.raises(ConfigError, match="timer"):
        load_league_config(league_dict)


@pytest.mark.parametrize(
    "percentages",
    [[60.0, 30.0, 20.0], [-5.0], [40.0, 30.0, 20.0, 10.0]],
)
def test_bad_payout_percentages(league_dict, percentages):
    league_dict["prizes"]["payout_percentages"] = percentages

    with pytest.raises(ConfigError, match="payout_percentages"):
        load_league_config(league_dict)


def test_negative_point_value(league_dict):
    league_dict["scoring"] = {"win": -1}

    with pytest.raises(ConfigError, match="scoring.win"):
        load_league_config(league_dict)


def test_double_points_default_off(league_config, league_dict):
    assert league_config.prizes.double_points_enabled is False
    assert league_config.prizes.max_double_picks == 0

    league_dict["prizes"]["max_double_picks"] = -1
    with pytest.raises(ConfigError, match="prizes.max_double_picks"):
        load_league_config(league_dict)


def test_load_from_json_file(tmp_path, league_dict):
    path = tmp_path / "league.json"
    path.write_text(json.dumps(league_dict), encoding="utf-8")

    assert load_league_config(path).league_name == "Saturday Degenerates"
    assert load_league_config(str(path)).season_year == 2025


def test_missing_and_malformed_files(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_league_config(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError, match="not valid JSON"):
        load_league_config(broken)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///elsewhere.db")
    monkeypatch.setenv("SCORE_FEED_MAX_RETRIES", "5")

    settings = Settings(_env_file=None)

    assert settings.database_url == "sqlite:///elsewhere.db"
    assert settings.score_feed_max_retries == 5
    assert settings.smtp_host is None
    assert settings.data_dir.name == "data"
