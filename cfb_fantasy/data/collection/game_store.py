"""Canonical store for feed data: games, poll rankings and the season calendar.

The game table is the authoritative record of results. Writers append and
advance games under the league write lock; readers take a whole-table
snapshot in one query, which is all the points engine needs.

Upsert rules:
- A new game id is inserted.
- An existing game only moves forward (scheduled -> live -> completed).
- A completed game is never rewritten.
- The same game id twice in one batch: the repeat is
  logged and dropped, and the rest of the batch continues.
- A game inserted by another writer mid-batch (a stolen lock) fails the
  whole batch with DataIntegrityError; the caller drops that batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...database.connection import Database
from ...database.models import CalendarPeriodRecord, GameRecord, PollRanking
from ...exceptions import DataIntegrityError, NotInitializedError
from ...season import CalendarPeriod, SeasonCalendar, SeasonPeriod
from ..games import GameResult, GameStatus, TeamRef
from .score_feed_client import RankedSchool

logger = logging.getLogger(__name__)


@dataclass
class UpsertSummary:
    """What one upsert pass did."""

    inserted: int = 0
    updated: int = 0
    newly_completed: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    unchanged: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.updated)


def _to_result(row: GameRecord) -> GameResult:
    return GameResult(
        game_id=row.game_id,
        period=SeasonPeriod(row.period),
        home=TeamRef(row.home_school, row.home_rank or 0),
        away=TeamRef(row.away_school, row.away_rank or 0),
        status=GameStatus(row.status),
        home_score=row.home_score,
        away_score=row.away_score,
        is_conference_game=bool(row.is_conference_game),
        game_name=row.game_name or "",
        start_time=row.start_time,
        completion_time=row.completed_at,
        season_type=row.season_type,
    )


def _apply(row: GameRecord, game: GameResult) -> None:
    row.period = int(game.period)
    row.season_type = game.season_type
    row.status = game.status.value
    row.game_name = game.game_name
    row.is_conference_game = game.is_conference_game
    row.home_school = game.home.school_name
    row.away_school = game.away.school_name
    row.home_score = game.home_score
    row.away_score = game.away_score
    row.home_rank = game.home.curated_rank
    row.away_rank = game.away.curated_rank
    row.start_time = game.start_time


class GameStore:
    """Persistence for games, rankings and the calendar."""

    def __init__(self, db: Database):
        self.db = db

    # Games

    def upsert_games(self, games: list[GameResult], now: datetime) -> UpsertSummary:
        """Insert new games and advance existing ones.

        Must run under the league write lock.

        Raises:
            DataIntegrityError: If another writer inserted one of these games
                while this batch was being written; nothing in the batch is
                stored
        """
        summary = UpsertSummary()
        try:
            with self.db.session_scope() as session:
                self._upsert(session, games, now, summary)
        except IntegrityError as e:
            raise DataIntegrityError(
                f"Batch collides with games stored by another writer: {e.orig}"
            ) from e

        if summary.changed:
            logger.info(
                f"Games upserted: {summary.inserted} new, {summary.updated} updated, "
                f"{len(summary.newly_completed)} newly completed"
            )
        return summary

    def _upsert(
        self, session: Session, games: list[GameResult], now: datetime, summary: UpsertSummary
    ) -> None:
        ids = [game.game_id for game in games]
        existing = {
            row.game_id: row
            for row in session.scalars(select(GameRecord).where(GameRecord.game_id.in_(ids)))
        }
        seen: set[str] = set()

        for game in games:
            if game.game_id in seen:
                logger.warning(f"Dropping duplicate game {game.game_id} in this batch")
                summary.duplicates.append(game.game_id)
                continue
            seen.add(game.game_id)

            row = existing.get(game.game_id)
            if row is None:
                row = GameRecord(game_id=game.game_id)
                _apply(row, game)
                if game.is_completed:
                    row.completed_at = game.completion_time or now
                    summary.newly_completed.append(game.game_id)
                session.add(row)
                existing[game.game_id] = row
                summary.inserted += 1
                continue

            current = _to_result(row)
            merged = current.advanced_to(game)
            if merged is current or merged == current:
                summary.unchanged += 1
                continue

            _apply(row, merged)
            if merged.is_completed and not current.is_completed:
                row.completed_at = merged.completion_time or now
                summary.newly_completed.append(game.game_id)
            summary.updated += 1

    def games(
        self, period: int | None = None, status: GameStatus | None = None
    ) -> list[GameResult]:
        """Snapshot of the game table, ordered by kickoff."""
        with self.db.session_scope() as session:
            stmt = select(GameRecord)
            if period is not None:
                stmt = stmt.where(GameRecord.period == int(period))
            if status is not None:
                stmt = stmt.where(GameRecord.status == status.value)
            rows = session.scalars(stmt.order_by(GameRecord.start_time, GameRecord.game_id)).all()
            return [_to_result(row) for row in rows]

    def completed_games(self) -> list[GameResult]:
        return self.games(status=GameStatus.COMPLETED)

    def game(self, game_id: str) -> GameResult | None:
        with self.db.session_scope() as session:
            row = session.scalars(select(GameRecord).where(GameRecord.game_id == game_id)).first()
            return _to_result(row) if row else None

    def pending_game_ids(self, now: datetime) -> list[str]:
        """Games that have kicked off but are not completed yet."""
        with self.db.session_scope() as session:
            stmt = (
                select(GameRecord.game_id)
                .where(GameRecord.status != GameStatus.COMPLETED.value)
                .where(GameRecord.start_time <= now)
                .order_by(GameRecord.start_time, GameRecord.game_id)
            )
            return list(session.scalars(stmt))

    def first_kickoff(self, period: int, schools: set[str] | None = None) -> datetime | None:
        """Earliest kickoff in a period, optionally only for games involving ``schools``."""
        kickoffs = [
            game.start_time
            for game in self.games(period=period)
            if game.start_time is not None
            and (schools is None or game.home.school_name in schools or game.away.school_name in schools)
        ]
        return min(kickoffs) if kickoffs else None

    # Calendar

    def save_calendar(self, calendar: SeasonCalendar) -> None:
        with self.db.session_scope() as session:
            session.execute(delete(CalendarPeriodRecord))
            for entry in calendar.periods:
                session.add(
                    CalendarPeriodRecord(
                        period=int(entry.period), label=entry.label, start=entry.start, end=entry.end
                    )
                )
        logger.info(f"Saved season calendar ({len(calendar)} periods)")

    def load_calendar(self) -> SeasonCalendar:
        with self.db.session_scope() as session:
            rows = session.scalars(select(CalendarPeriodRecord)).all()
            return SeasonCalendar(
                [CalendarPeriod(SeasonPeriod(r.period), r.label, r.start, r.end) for r in rows]
            )

    def current_period(self, now: datetime) -> SeasonPeriod:
        """Period containing ``now`` on the stored calendar.

        Raises:
            NotInitializedError: If no calendar has been synced yet
        """
        calendar = self.load_calendar()
        if len(calendar) == 0:
            raise NotInitializedError("No season calendar stored; run the schedule phase")
        return calendar.current_period(now)

    # Rankings

    def save_rankings(self, period: int, entries: list[RankedSchool], now: datetime) -> int:
        """Replace the snapshot of each poll in ``entries`` for a period."""
        polls = {entry.poll_name for entry in entries}
        with self.db.session_scope() as session:
            for poll_name in polls:
                session.execute(
                    delete(PollRanking)
                    .where(PollRanking.period == int(period))
                    .where(PollRanking.poll_name == poll_name)
                )
            for entry in entries:
                session.add(
                    PollRanking(
                        period=int(period),
                        poll_name=entry.poll_name,
                        rank=entry.rank,
                        school_name=entry.school_name,
                        captured_at=now,
                    )
                )
        logger.info(f"Saved {len(entries)} poll entries for period {int(period)}")
        return len(entries)

    def rankings(self, period: int | None = None, poll_name: str | None = None) -> list[RankedSchool]:
        """A stored snapshot, by default the latest period that has one."""
        with self.db.session_scope() as session:
            stmt = select(PollRanking)
            if poll_name is not None:
                stmt = stmt.where(PollRanking.poll_name == poll_name)
            if period is None:
                latest = session.scalars(
                    stmt.order_by(PollRanking.period.desc()).limit(1)
                ).first()
                if latest is None:
                    return []
                period = latest.period
                if poll_name is None:
                    poll_name = latest.poll_name
                    stmt = stmt.where(PollRanking.poll_name == poll_name)
            rows = session.scalars(
                stmt.where(PollRanking.period == int(period)).order_by(PollRanking.rank)
            ).all()
            return [RankedSchool(row.rank, row.school_name, row.poll_name) for row in rows]
