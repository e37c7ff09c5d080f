"""Score ingestion pipeline.

Pulls the calendar, schedule, live updates and rankings from the score feed
and writes them to the game store. The external scheduler calls these on a
fixed cadence (daily schedule sync, frequent game-day polling, weekly
rankings); the pipeline never schedules itself.

Failure containment:
- A feed outage is a soft failure: it is logged, the pass returns what it
  managed to store, and the next tick tries again.
- Each calendar period of a season sync is fetched separately, so one bad
  week does not stop the rest.
- Game writes go through the league write lock. If the lock is busy the
  ConcurrencyError propagates and the scheduler retries later.
- A batch that collides with games another writer stored is dropped whole;
  the next tick fetches those games again.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime

from ...database.locks import WriteLock
from ...exceptions import DataIntegrityError, ExternalFetchError
from ...season import SeasonCalendar, utcnow
from ..games import GameResult
from .game_store import GameStore, UpsertSummary
from .score_feed_client import RankedSchool, ScoreFeedClient

logger = logging.getLogger(__name__)


class ScoreIngestionPipeline:
    """Feed-to-store ingestion.

    Args:
        client: Score feed client
        store: Game store
        lock: League write lock, held while games are written
        season_year: Season to sync
        on_games_completed: Called with the ids of games that just completed
        clock: Returns the current naive-UTC time
    """

    def __init__(
        self,
        client: ScoreFeedClient,
        store: GameStore,
        lock: WriteLock,
        season_year: int,
        on_games_completed: Callable[[list[str]], None] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.store = store
        self.lock = lock
        self.season_year = season_year
        self.on_games_completed = on_games_completed
        self.clock = clock

    def sync_calendar(self) -> SeasonCalendar:
        """Refresh the stored season calendar; keep the stored one if the feed is down."""
        try:
            calendar = self.client.get_calendar(self.season_year)
        except ExternalFetchError as e:
            logger.warning(f"Calendar sync failed, keeping stored calendar: {e}")
            return self.store.load_calendar()

        if len(calendar) == 0:
            logger.warning("Score feed returned an empty calendar; keeping stored calendar")
            return self.store.load_calendar()

        self.store.save_calendar(calendar)
        return calendar

    def _store_games(self, games: list[GameResult]) -> UpsertSummary:
        with self.lock.hold(reason="append games"):
            try:
                summary = self.store.upsert_games(games, self.clock())
            except DataIntegrityError as e:
                logger.warning(f"Dropping batch of {len(games)} games: {e}")
                return UpsertSummary()
        if summary.newly_completed and self.on_games_completed is not None:
            self.on_games_completed(summary.newly_completed)
        return summary

    def sync_games(self, start: date, end: date) -> UpsertSummary:
        """Fetch and store all games between two dates."""
        calendar = self.store.load_calendar()
        try:
            games = self.client.get_games_for_date_range(start, end, calendar)
        except ExternalFetchError as e:
            logger.warning(f"Game sync for {start:%Y-%m-%d}..{end:%Y-%m-%d} failed: {e}")
            return UpsertSummary()
        return self._store_games(games)

    def sync_season(self) -> UpsertSummary:
        """Populate the whole schedule, one calendar period at a time.

        Periods the feed cannot deliver are logged and skipped; the schedule is
        left partial rather than the sync aborted.
        """
        calendar = self.store.load_calendar()
        if len(calendar) == 0:
            calendar = self.sync_calendar()

        total = UpsertSummary()
        failed = []
        for entry in calendar.periods:
            try:
                games = self.client.get_games_for_date_range(
                    entry.start.date(), entry.end.date(), calendar
                )
            except ExternalFetchError as e:
                logger.warning(f"Schedule sync for {entry.label} failed: {e}")
                failed.append(entry.label)
                continue
            summary = self._store_games(games)
            total.inserted += summary.inserted
            total.updated += summary.updated
            total.unchanged += summary.unchanged
            total.newly_completed.extend(summary.newly_completed)
            total.duplicates.extend(summary.duplicates)

        if failed:
            logger.warning(f"Season schedule is partial; periods not synced: {', '.join(failed)}")
        logger.info(f"Season sync complete: {total.inserted} new games, {total.updated} updated")
        return total

    def poll_updates(self) -> UpsertSummary:
        """Refresh every game that has kicked off but is not final."""
        now = self.clock()
        game_ids = self.store.pending_game_ids(now)
        if not game_ids:
            logger.debug("No games in progress")
            return UpsertSummary()

        updates = self.client.get_game_updates(game_ids, self.store.load_calendar())
        if not updates:
            logger.warning(f"No updates received for {len(game_ids)} pending games")
            return UpsertSummary()
        return self._store_games(updates)

    def refresh_rankings(self, poll_name: str | None = None) -> list[RankedSchool]:
        """Store the current poll snapshot against the current period."""
        try:
            entries = self.client.get_rankings(poll_name)
        except ExternalFetchError as e:
            logger.warning(f"Rankings refresh failed: {e}")
            return []
        if not entries:
            logger.warning("Score feed returned no rankings")
            return []

        period = self.store.load_calendar().current_period(self.clock())
        self.store.save_rankings(period, entries, self.clock())
        return entries
