"""Tests for the composition root."""

import httpx
import pytest

from cfb_fantasy.config.settings import Settings
from cfb_fantasy.database.connection import Database, create_db_engine
from cfb_fantasy.exceptions import ExternalFetchError, NotInitializedError
from cfb_fantasy.league.initializer import PhaseStatus
from cfb_fantasy.league.services import (
    build_infrastructure,
    build_initializer,
    build_league,
    build_notifier,
)
from cfb_fantasy.notifications import LoggingNotifier, SmtpNotifier

CALENDAR = {
    "leagues": [
        {
            "calendar": [
                {
                    "value": "2",
                    "entries": [
                        {
                            "label": "Week 1",
                            "startDate": "2025-08-25T07:00Z",
                            "endDate": "2025-09-01T06:59Z",
                        },
                        {
                            "label": "Week 2",
                            "startDate": "2025-09-01T07:00Z",
                            "endDate": "2025-09-08T06:59Z",
                        },
                    ],
                }
            ]
        }
    ]
}


def feed_with_calendar(request: httpx.Request) -> httpx.Response:
    # The calendar request asks for the whole season year; schedules are empty
    if request.url.params.get("dates") == "2025":
        return httpx.Response(200, json=CALENDAR)
    return httpx.Response(200, json={"events": []})


def feed_down(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503)


@pytest.fixture
def make_infra():
    built = []

    def build(handler=feed_with_calendar):
        infrastructure = build_infrastructure(
            Settings(_env_file=None, season_year=2025),
            db=Database(create_db_engine("sqlite://")),
            http_client=httpx.Client(transport=httpx.MockTransport(handler)),
            notifier=LoggingNotifier(),
            sleep=lambda seconds: None,
        )
        built.append(infrastructure)
        return infrastructure

    yield build
    for infrastructure in built:
        infrastructure.close()


@pytest.fixture
def infra(make_infra):
    return make_infra()


def test_league_needs_initialized_season(infra):
    build_initializer(infra)

    with pytest.raises(NotInitializedError):
        build_league(infra)


def test_build_league_shares_components_and_hooks(infra, league_dict):
    build_initializer(infra).run(league_dict)

    league = build_league(infra)

    assert league.config.league_name == "Saturday Degenerates"
    assert league.draft.cache is infra.cache
    assert league.transactions.cache is infra.cache
    assert league.transactions.on_applied == league.scoring.refresh
    assert infra.pipeline.on_games_completed == league.scoring.refresh
    assert [team.name for team in league.roster.teams()][0] == "Tailgaters"
    assert league.eligibility.is_initialized
    assert len(infra.games.load_calendar()) == 2


def test_feed_outage_leaves_schedule_phase_failed(make_infra, league_dict):
    infra = make_infra(feed_down)
    initializer = build_initializer(infra)

    with pytest.raises(ExternalFetchError):
        initializer.run(league_dict)

    assert initializer.phase_status("eligibility") is PhaseStatus.COMPLETE
    assert initializer.phase_status("schedule") is PhaseStatus.FAILED
    assert not initializer.is_complete
    assert len(infra.games.load_calendar()) == 0


def test_notifier_choice():
    assert isinstance(build_notifier(Settings(_env_file=None)), LoggingNotifier)
    assert isinstance(build_notifier(Settings(_env_file=None, smtp_host="mail.local")), SmtpNotifier)
