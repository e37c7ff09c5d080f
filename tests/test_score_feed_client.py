"""Tests for the score feed client.

The feed is replaced by an ``httpx.MockTransport`` and backoff sleeps are
recorded instead of slept, so these run offline and instantly.
"""

from datetime import date, datetime

import httpx
import pytest

from conftest import season_calendar

from cfb_fantasy.data.collection.score_feed_client import (
    AP_POLL,
    CFP_POLL,
    ScoreFeedClient,
    parse_feed_time,
    period_from_label,
)
from cfb_fantasy.data.games import GameStatus
from cfb_fantasy.exceptions import ExternalFetchError
from cfb_fantasy.season import SeasonPeriod

BASE_URL = "https://feed.example.com/apis/site/v2/sports/football/college-football"


def competitor(feed_id, location, side, score=None, rank=99):
    return {
        "homeAway": side,
        "team": {"id": feed_id, "location": location},
        "score": score,
        "curatedRank": {"current": rank},
    }


def event(event_id, home, away, state="post", week=3, season_type=2, headline=None, conference=None):
    competition = {
        "date": "2025-09-13T16:00Z",
        "status": {"type": {"state": state, "completed": state == "post"}},
        "competitors": [home, away],
    }
    if headline:
        competition["notes"] = [{"headline": headline}]
    if conference is not None:
        competition["conferenceCompetition"] = conference
    return {
        "id": event_id,
        "season": {"type": season_type},
        "week": {"number": week},
        "competitions": [competition],
    }


GEORGIA_KENTUCKY = event(
    "401",
    competitor("61", "Georgia", "home", "48", rank=3),
    competitor("96", "Kentucky", "away", "0"),
)


class Recorder:
    """MockTransport handler that replays queued responses per path."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.rsplit("/", 1)[-1]
        queue = self.routes[path]
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, int):
            return httpx.Response(reply)
        if isinstance(reply, str):
            return httpx.Response(200, text=reply)
        return httpx.Response(200, json=reply)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_client(registry, sleeps):
    def build(routes, **kwargs):
        handler = Recorder(routes)
        client = ScoreFeedClient(
            registry,
            BASE_URL,
            client=httpx.Client(transport=httpx.MockTransport(handler)),
            sleep=sleeps.append,
            **kwargs,
        )
        client.handler = handler
        return client

    return build


def test_parse_feed_time_is_naive_utc():
    assert parse_feed_time("2025-08-30T16:00Z") == datetime(2025, 8, 30, 16, 0)
    assert parse_feed_time("2025-08-30T12:00-04:00") == datetime(2025, 8, 30, 16, 0)
    assert parse_feed_time(None) is None


@pytest.mark.parametrize(
    "label, season_type, expected",
    [
        ("Week 1", 2, SeasonPeriod.WEEK_1),
        ("Week 16", 2, SeasonPeriod.WEEK_16),
        ("Week 17", 2, None),
        ("Conference Championships", 2, SeasonPeriod.CONFERENCE_CHAMPIONSHIP),
        ("Bowls", 3, SeasonPeriod.BOWLS),
        ("CFP", 3, SeasonPeriod.PLAYOFF),
        ("National Championship", 3, SeasonPeriod.NATIONAL_CHAMPIONSHIP),
        ("All-Star Games", 3, None),
    ],
)
def test_period_from_label(label, season_type, expected):
    assert period_from_label(label, season_type) == expected


def test_games_are_parsed_into_catalog_names(make_client):
    client = make_client({"scoreboard": [{"events": [GEORGIA_KENTUCKY]}]})

    games = client.get_games_for_date_range(date(2025, 9, 13), date(2025, 9, 13))

    assert len(games) == 1
    game = games[0]
    assert (game.home.school_name, game.away.school_name) == ("Georgia", "Kentucky")
    assert (game.home.curated_rank, game.away.curated_rank) == (3, 0)
    assert (game.home_score, game.away_score) == (48, 0)
    assert game.status is GameStatus.COMPLETED
    assert game.period is SeasonPeriod.WEEK_3
    assert game.is_conference_game, "Both SEC schools in the catalog"
    assert client.handler.requests[0].url.params["dates"] == "20250913-20250913"


def test_feed_flag_overrides_conference_lookup(make_client):
    flagged = event(
        "402",
        competitor("61", "Georgia", "home", "20"),
        competitor("96", "Kentucky", "away", "17"),
        conference=False,
    )
    client = make_client({"scoreboard": [{"events": [flagged]}]})

    [game] = client.get_games_for_date_range(date(2025, 9, 13), date(2025, 9, 13))

    assert not game.is_conference_game


def test_postseason_games_are_classified_by_headline(make_client):
    quarterfinal = event(
        "501",
        competitor("2483", "Oregon", "home"),
        competitor("194", "Ohio State", "away"),
        state="pre",
        week=1,
        season_type=3,
        headline="College Football Playoff Quarterfinal at the Rose Bowl",
    )
    client = make_client({"scoreboard": [{"events": [quarterfinal]}]})

    [game] = client.get_games_for_date_range(date(2026, 1, 1), date(2026, 1, 1))

    assert game.period is SeasonPeriod.PLAYOFF
    assert game.status is GameStatus.SCHEDULED
    assert game.home_score is None


def test_unknown_feed_team_keeps_feed_name(make_client):
    fcs = event(
        "403",
        competitor("61", "Georgia", "home", "45"),
        competitor("2046", "Austin Peay", "away", "3"),
    )
    client = make_client({"scoreboard": [{"events": [fcs]}]})

    [game] = client.get_games_for_date_range(date(2025, 9, 13), date(2025, 9, 13))

    assert game.away.school_name == "Austin Peay"
    assert not game.is_conference_game


def test_retries_with_backoff_then_succeeds(make_client, sleeps):
    client = make_client({"scoreboard": [503, 500, {"events": [GEORGIA_KENTUCKY]}]})

    games = client.get_games_for_date_range(date(2025, 9, 13), date(2025, 9, 13))

    assert len(games) == 1
    assert sleeps == [1.0, 2.0]
    assert len(client.handler.requests) == 3


def test_timeouts_exhaust_retries(make_client, sleeps):
    client = make_client({"scoreboard": [httpx.ReadTimeout("slow")]})

    with pytest.raises(ExternalFetchError):
        client.get_games_for_date_range(date(2025, 9, 13), date(2025, 9, 13))

    assert len(client.handler.requests) == 3
    assert sleeps == [1.0, 2.0]


def test_not_found_is_not_retried(make_client, sleeps):
    client = make_client({"summary": [404]})

    with pytest.raises(ExternalFetchError, match="404"):
        client._request("summary", {"event": "999"})

    assert len(client.handler.requests) == 1
    assert sleeps == []


def test_falls_back_to_last_good_response(make_client):
    client = make_client({"scoreboard": [{"events": [GEORGIA_KENTUCKY]}, "not json", 502]})

    first = client.get_games_for_date_range(date(2025, 9, 13), date(2025, 9, 13))
    second = client.get_games_for_date_range(date(2025, 9, 13), date(2025, 9, 13))

    assert first == second


def test_game_updates_dedupe_and_keep_order(make_client):
    summaries = {
        "summary": [
            {"header": {"id": "12", "season": {"type": 2}, "week": 3, "competitions": GEORGIA_KENTUCKY["competitions"]}},
            {"header": {"id": "11", "season": {"type": 2}, "week": 3, "competitions": GEORGIA_KENTUCKY["competitions"]}},
        ]
    }
    client = make_client(summaries, batch_size=1)

    updates = client.get_game_updates(["12", "11", "12"])

    assert [game.game_id for game in updates] == ["12", "11"]
    assert [r.url.params["event"] for r in client.handler.requests] == ["12", "11"]


def test_missing_game_update_is_skipped(make_client):
    client = make_client({"summary": [404]})

    assert client.get_game_updates(["77"]) == []


def test_calendar_parses_regular_and_postseason_sections(make_client):
    payload = {
        "leagues": [
            {
                "calendar": [
                    {
                        "value": "2",
                        "entries": [
                            {"label": "Week 1", "startDate": "2025-08-25T07:00Z", "endDate": "2025-09-02T06:59Z"},
                            {"label": "Week 2", "startDate": "2025-09-02T07:00Z", "endDate": "2025-09-09T06:59Z"},
                        ],
                    },
                    {
                        "value": "3",
                        "entries": [
                            {"label": "Bowls", "startDate": "2025-12-13T08:00Z", "endDate": "2026-01-20T07:59Z"},
                            {"label": "All-Star Games", "startDate": "2026-01-20T08:00Z", "endDate": "2026-02-01T07:59Z"},
                        ],
                    },
                    "2025-08-23T07:00Z",
                ]
            }
        ]
    }
    client = make_client({"scoreboard": [payload]})

    calendar = client.get_calendar(2025)

    assert [entry.period for entry in calendar.periods] == [
        SeasonPeriod.WEEK_1,
        SeasonPeriod.WEEK_2,
        SeasonPeriod.BOWLS,
    ]
    assert calendar.current_period(datetime(2025, 9, 3)) is SeasonPeriod.WEEK_2


def test_rankings_prefer_committee_poll(make_client):
    payload = {
        "rankings": [
            {
                "name": AP_POLL,
                "ranks": [{"current": 1, "team": {"id": "251", "location": "Texas"}}],
            },
            {
                "name": CFP_POLL,
                "ranks": [
                    {"current": 2, "team": {"id": "61", "location": "Georgia"}},
                    {"current": 1, "team": {"id": "2483", "location": "Oregon"}},
                ],
            },
        ]
    }
    client = make_client({"rankings": [payload]})

    default = client.get_rankings()
    ap = client.get_rankings(AP_POLL)

    assert [(r.rank, r.school_name) for r in default] == [(1, "Oregon"), (2, "Georgia")]
    assert default[0].poll_name == CFP_POLL
    assert [r.school_name for r in ap] == ["Texas"]
    assert client.get_rankings("Coaches Poll") == []


def test_undated_week_is_placed_by_calendar(make_client):
    undated = event(
        "404",
        competitor("61", "Georgia", "home", "10"),
        competitor("96", "Kentucky", "away", "7"),
        week=None,
    )
    undated["competitions"][0]["date"] = "2025-09-27T20:00Z"
    client = make_client({"scoreboard": [{"events": [undated]}]})

    [game] = client.get_games_for_date_range(date(2025, 9, 27), date(2025, 9, 27), season_calendar())

    assert game.period is SeasonPeriod.WEEK_4
