"""Score feed client for the ESPN college football site API.

This module fetches everything the league needs from the outside world:
the season calendar, game schedules and results, live game updates and the
poll rankings. It turns the feed's JSON into the engine's own types
(``CalendarPeriod``, ``GameResult``, ``RankedSchool``) and nothing else: it
writes no rows and knows nothing about fantasy teams.

Endpoints Used:
- scoreboard?dates=YYYY           season calendar (leagues[0].calendar)
- scoreboard?dates=YYYYMMDD-YYYYMMDD&groups=80   FBS games in a date range
- summary?event=ID                one game, for live updates
- rankings                        current polls (AP Top 25, CFP committee)

Reliability:
The feed is public and occasionally slow or flaky. Every call is retried
with exponential backoff (3 attempts, 1s base delay, doubling). When a call
still fails, or returns malformed JSON, the client falls back to the last
good response for the same request. Only when there is nothing cached does
it raise ExternalFetchError, which callers treat as a soft failure.

For beginners:

Curated rank: the feed attaches each team's current poll rank to every game
as ``curatedRank.current``; 99 means unranked.

Season type: 2 is the regular season, 3 the postseason. Postseason games are
classified into bowl/playoff rounds by their notes headline.
"""

import logging
import re
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

import httpx
from httpx import ConnectError, HTTPError, TimeoutException

from ...exceptions import ExternalFetchError
from ...season import CalendarPeriod, SeasonCalendar, SeasonPeriod
from ..games import (
    GameResult,
    GameStatus,
    TeamRef,
    classify_postseason,
    normalize_rank,
    postseason_period,
)
from ..schools import SchoolRegistry

logger = logging.getLogger(__name__)

FBS_GROUP = "80"
REGULAR_SEASON = 2
POSTSEASON = 3
AP_POLL = "AP Top 25"
CFP_POLL = "Playoff Committee Rankings"

_WEEK_LABEL = re.compile(r"week\s*(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class RankedSchool:
    """One entry of a poll."""

    rank: int
    school_name: str
    poll_name: str


def parse_feed_time(value: str | None) -> datetime | None:
    """Parse a feed timestamp ("2025-08-30T16:00Z") into naive UTC."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def period_from_label(label: str, season_type: int) -> SeasonPeriod | None:
    """Map a feed calendar label to a season period.

    "Week 3" -> 3 for the regular season; the postseason "Bowls" entry maps to
    the Bowls period. Labels that match nothing return None.
    """
    text = (label or "").lower()
    if season_type == POSTSEASON:
        if "national championship" in text:
            return SeasonPeriod.NATIONAL_CHAMPIONSHIP
        if "playoff" in text or "cfp" in text:
            return SeasonPeriod.PLAYOFF
        if "bowl" in text:
            return SeasonPeriod.BOWLS
        return None

    if "conference championship" in text or "conf champ" in text:
        return SeasonPeriod.CONFERENCE_CHAMPIONSHIP
    match = _WEEK_LABEL.search(text)
    if not match:
        return None
    week = int(match.group(1))
    if week > int(SeasonPeriod.WEEK_16):
        return None
    return SeasonPeriod(week)


class ScoreFeedClient:
    """HTTP client for the score feed.

    Key Features:
    - Retries with exponential backoff and an injectable ``sleep``
    - Last-known-good fallback per request
    - Order-preserving, de-duplicated batch updates
    - Feed team ids resolved to catalog school names through the registry

    Args:
        registry: School catalog used to resolve feed team ids
        base_url: Feed root, e.g. ".../sports/football/college-football"
        timeout: Per-request timeout in seconds
        max_retries: Attempts per call
        backoff_base: Delay before the second attempt, doubled afterwards
        batch_size: Game ids fetched per update batch
        client: Pre-built httpx.Client (tests pass one with a MockTransport)
        sleep: Sleep function used for backoff
    """

    def __init__(
        self,
        registry: SchoolRegistry,
        base_url: str,
        timeout: float = 15.0,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        batch_size: int = 25,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.registry = registry
        self.base_url = base_url.rstrip("/")
        self.max_retries = max(1, max_retries)
        self.backoff_base = backoff_base
        self.batch_size = max(1, batch_size)
        self.sleep = sleep
        self.client = client or httpx.Client(
            timeout=timeout, headers={"User-Agent": "CFB-Fantasy-League/1.0"}
        )
        # Last good payload per (path, params)
        self._cache: dict[tuple, Any] = {}

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "ScoreFeedClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, path: str, params: dict[str, Any]) -> Any:
        """GET with retries; returns decoded JSON.

        Raises:
            ExternalFetchError: If every attempt failed
        """
        url = f"{self.base_url}/{path}"
        last_problem = "no attempt made"

        for attempt in range(self.max_retries):
            if attempt > 0:
                self.sleep(self.backoff_base * (2 ** (attempt - 1)))  # 1s, 2s, ...

            try:
                logger.debug(f"Score feed request to {url} {params} (attempt {attempt + 1})")
                response = self.client.get(url, params=params)

                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError:
                        last_problem = "malformed JSON"
                        logger.warning(f"Score feed returned malformed JSON for {path}")
                        continue
                elif response.status_code == 404:
                    last_problem = "404 not found"
                    logger.warning(f"Score feed resource not found: {url}")
                    break  # Don't retry a missing resource
                else:
                    last_problem = f"status {response.status_code}"
                    logger.warning(f"Score feed returned status {response.status_code} for {path}")

            except TimeoutException:
                last_problem = "timeout"
                logger.warning(f"Score feed request timeout (attempt {attempt + 1})")
            except (ConnectError, HTTPError) as e:
                last_problem = str(e)
                logger.warning(f"Score feed request error (attempt {attempt + 1}): {e}")

        raise ExternalFetchError(f"Score feed request to {path} failed: {last_problem}")

    def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        """Request with last-known-good fallback."""
        cache_key = (path, tuple(sorted(params.items())))
        try:
            payload = self._request(path, params)
        except ExternalFetchError:
            if cache_key in self._cache:
                logger.warning(f"Using cached score feed data for {path} {params}")
                return self._cache[cache_key]
            raise
        self._cache[cache_key] = payload
        return payload

    # Calendar

    def get_calendar(self, season_year: int) -> SeasonCalendar:
        """Dated periods of the season, from the scoreboard's league calendar."""
        payload = self._get_json("scoreboard", {"dates": str(season_year), "groups": FBS_GROUP})
        periods: list[CalendarPeriod] = []

        leagues = (payload or {}).get("leagues") or [{}]
        for section in leagues[0].get("calendar") or []:
            if not isinstance(section, dict):
                continue  # Some sports publish bare date strings here
            try:
                season_type = int(section.get("value", REGULAR_SEASON))
            except (TypeError, ValueError):
                season_type = REGULAR_SEASON
            for entry in section.get("entries") or []:
                period = period_from_label(entry.get("label", ""), season_type)
                if period is None:
                    logger.debug(f"Ignoring calendar entry '{entry.get('label')}'")
                    continue
                start = parse_feed_time(entry.get("startDate"))
                end = parse_feed_time(entry.get("endDate"))
                if start is None or end is None:
                    logger.warning(f"Calendar entry '{entry.get('label')}' has no date range")
                    continue
                periods.append(CalendarPeriod(period, period.label, start, end))

        logger.info(f"Fetched season calendar with {len(periods)} periods")
        return SeasonCalendar(periods)

    # Games

    def get_games_for_date_range(
        self, start: date, end: date, calendar: SeasonCalendar | None = None
    ) -> list[GameResult]:
        """All FBS games between two dates, inclusive."""
        dates = f"{start:%Y%m%d}-{end:%Y%m%d}"
        payload = self._get_json(
            "scoreboard", {"dates": dates, "groups": FBS_GROUP, "limit": "1000"}
        )
        games = []
        for event in (payload or {}).get("events") or []:
            game = self.parse_event(event, calendar)
            if game is not None:
                games.append(game)
        logger.info(f"Fetched {len(games)} games for {dates}")
        return games

    def get_game_updates(
        self, game_ids: Iterable[str], calendar: SeasonCalendar | None = None
    ) -> list[GameResult]:
        """Current state of specific games.

        Ids are de-duplicated and results come back in request order. A game
        that cannot be fetched (and has no cached snapshot) is logged and left
        out, so one bad id does not sink the batch.
        """
        unique_ids = list(dict.fromkeys(str(game_id) for game_id in game_ids))
        results: list[GameResult] = []

        for offset in range(0, len(unique_ids), self.batch_size):
            batch = unique_ids[offset : offset + self.batch_size]
            logger.debug(f"Fetching updates for {len(batch)} games")
            for game_id in batch:
                try:
                    payload = self._get_json("summary", {"event": game_id})
                except ExternalFetchError as e:
                    logger.warning(f"Skipping update for game {game_id}: {e}")
                    continue
                game = self.parse_summary(payload, calendar)
                if game is not None:
                    results.append(game)

        return results

    # Rankings

    def get_rankings(self, poll_name: str | None = None) -> list[RankedSchool]:
        """Ranked list from one poll.

        Without a poll name the committee ranking is used when it has been
        published, otherwise the AP poll, otherwise the first poll listed.
        """
        payload = self._get_json("rankings", {})
        polls = [p for p in (payload or {}).get("rankings") or [] if isinstance(p, dict)]
        if not polls:
            return []

        by_name = {poll.get("name"): poll for poll in polls}
        if poll_name is not None:
            poll = by_name.get(poll_name)
            if poll is None:
                logger.warning(f"Poll '{poll_name}' not published; available: {list(by_name)}")
                return []
        else:
            poll = by_name.get(CFP_POLL) or by_name.get(AP_POLL) or polls[0]

        name = poll.get("name", "")
        entries = []
        for rank_entry in poll.get("ranks") or []:
            rank = normalize_rank(rank_entry.get("current"))
            team = rank_entry.get("team") or {}
            if not rank:
                continue
            entries.append(RankedSchool(rank, self._school_name(team), name))
        entries.sort(key=lambda entry: entry.rank)
        return entries

    # Parsing

    def _school_name(self, team: dict[str, Any]) -> str:
        school = self.registry.by_feed_id(str(team.get("id", "")))
        if school is not None:
            return school.name
        return team.get("location") or team.get("shortDisplayName") or team.get("displayName") or ""

    def _team_ref(self, competitor: dict[str, Any]) -> TeamRef:
        rank = (competitor.get("curatedRank") or {}).get("current")
        return TeamRef(self._school_name(competitor.get("team") or {}), normalize_rank(rank))

    @staticmethod
    def _score(competitor: dict[str, Any]) -> int | None:
        score = competitor.get("score")
        if isinstance(score, dict):
            score = score.get("value")
        if score in (None, ""):
            return None
        try:
            return int(float(score))
        except (TypeError, ValueError):
            return None

    @staticmethod
    def _status(competition: dict[str, Any]) -> GameStatus:
        status_type = (competition.get("status") or {}).get("type") or {}
        state = status_type.get("state")
        if state == "post" and status_type.get("completed", True):
            return GameStatus.COMPLETED
        if state == "in":
            return GameStatus.LIVE
        return GameStatus.SCHEDULED

    def _build_game(
        self,
        game_id: str,
        season_type: int,
        week_number: int | None,
        competition: dict[str, Any],
        game_name: str,
        start_time: datetime | None,
        calendar: SeasonCalendar | None,
    ) -> GameResult | None:
        competitors = competition.get("competitors") or []
        home = next((c for c in competitors if c.get("homeAway") == "home"), None)
        away = next((c for c in competitors if c.get("homeAway") == "away"), None)
        if home is None or away is None:
            logger.debug(f"Game {game_id} has no home/away pair; skipping")
            return None

        home_ref = self._team_ref(home)
        away_ref = self._team_ref(away)

        if season_type == POSTSEASON:
            period = postseason_period(classify_postseason(game_name))
        elif week_number is not None and 0 <= week_number <= int(SeasonPeriod.WEEK_16):
            period = SeasonPeriod(week_number)
        elif calendar is not None and start_time is not None:
            period = calendar.period_for_date(start_time)
        else:
            period = None
        if period is None:
            logger.warning(f"Cannot place game {game_id} in a season period; skipping")
            return None

        if "conferenceCompetition" in competition:
            is_conference = bool(competition["conferenceCompetition"])
        else:
            is_conference = self.registry.is_conference_game(
                home_ref.school_name, away_ref.school_name
            )

        return GameResult(
            game_id=str(game_id),
            period=period,
            home=home_ref,
            away=away_ref,
            status=self._status(competition),
            home_score=self._score(home),
            away_score=self._score(away),
            is_conference_game=is_conference,
            game_name=game_name if season_type == POSTSEASON else "",
            start_time=start_time,
            season_type=season_type,
        )

    def parse_event(
        self, event: dict[str, Any], calendar: SeasonCalendar | None = None
    ) -> GameResult | None:
        """Convert one scoreboard event into a GameResult."""
        competitions = event.get("competitions") or []
        if not competitions:
            return None
        competition = competitions[0]
        season_type = int((event.get("season") or {}).get("type", REGULAR_SEASON))
        week_number = (event.get("week") or {}).get("number")
        notes = competition.get("notes") or []
        game_name = (notes[0].get("headline") if notes else "") or ""
        start_time = parse_feed_time(competition.get("date") or event.get("date"))
        return self._build_game(
            event.get("id", ""),
            season_type,
            week_number,
            competition,
            game_name,
            start_time,
            calendar,
        )

    def parse_summary(
        self, payload: dict[str, Any], calendar: SeasonCalendar | None = None
    ) -> GameResult | None:
        """Convert a game summary response into a GameResult."""
        header = (payload or {}).get("header") or {}
        competitions = header.get("competitions") or []
        if not competitions:
            return None
        competition = competitions[0]
        season_type = int((header.get("season") or {}).get("type", REGULAR_SEASON))
        week_number = header.get("week")
        notes = competition.get("notes") or []
        game_name = (notes[0].get("headline") if notes else "") or header.get("gameNote") or ""
        start_time = parse_feed_time(competition.get("date"))
        return self._build_game(
            header.get("id", ""),
            season_type,
            week_number,
            competition,
            game_name,
            start_time,
            calendar,
        )
