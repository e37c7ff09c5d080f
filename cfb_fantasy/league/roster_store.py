"""Roster store: the authoritative (team, period) -> school slots mapping.

Every team has ``schools_per_team`` slots in each roster period 0-16. The
draft fills period 0 and copies it forward; after that only validated
transactions write, always from a period onward and never into the past.
Periods 17-20 have no rows of their own and read the week-16 roster.

Methods that write accept an optional open session so a caller can make
several writes (slot swap, transaction log entry, quota counter) in one
database transaction.

The same module owns the append-only transaction log, since the log and the
slots must change together.
"""

import logging
from collections import Counter
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from ..config.league import TeamConfig
from ..database.connection import Database
from ..database.models import DoublePickRecord, RosterSlot, Team, TransactionRecord
from ..exceptions import RosterError
from ..season import LAST_ROSTER_PERIOD, ROSTER_PERIODS, roster_period

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamInfo:
    name: str
    owners: tuple[str, ...]
    draft_position: int
    add_drops_used: int


@dataclass(frozen=True)
class LoggedTransaction:
    """One entry of the transaction log; ``position`` only ever increases."""

    position: int
    team_name: str
    period: int
    slot_index: int
    dropped_school: str
    added_school: str
    actor: str
    recorded_at: datetime


def _team_info(team: Team) -> TeamInfo:
    return TeamInfo(team.name, tuple(team.owners or ()), team.draft_position, team.add_drops_used)


class RosterStore:
    """Typed access to teams, roster slots and the transaction log."""

    def __init__(self, db: Database, schools_per_team: int):
        self.db = db
        self.schools_per_team = schools_per_team

    @contextmanager
    def _scope(self, session: Session | None) -> Generator[Session, None, None]:
        if session is not None:
            yield session
        else:
            with self.db.session_scope() as own:
                yield own

    def _team_row(self, session: Session, team_name: str) -> Team:
        team = session.scalars(select(Team).where(Team.name == team_name)).first()
        if team is None:
            raise RosterError(f"Unknown team: {team_name}")
        return team

    def _slot_rows(self, session: Session, team_id: int, period: int) -> list[RosterSlot]:
        stmt = (
            select(RosterSlot)
            .where(RosterSlot.team_id == team_id)
            .where(RosterSlot.period == int(period))
            .order_by(RosterSlot.slot_index)
        )
        return list(session.scalars(stmt))

    def _check_slot(self, slot_index: int) -> None:
        if not 0 <= slot_index < self.schools_per_team:
            raise RosterError(
                f"Slot {slot_index} is outside the roster (0-{self.schools_per_team - 1})"
            )

    # Teams

    def register_teams(self, team_configs: list[TeamConfig]) -> list[TeamInfo]:
        """Create or update teams and their empty slots.

        Draft position follows the order of ``team_configs``. Existing slots are
        kept, so re-running registration does not wipe a drafted roster.
        """
        with self.db.session_scope() as session:
            for position, config in enumerate(team_configs):
                team = session.scalars(select(Team).where(Team.name == config.name)).first()
                if team:
                    team.owners = list(config.owners)
                    team.draft_position = position
                else:
                    team = Team(name=config.name, owners=list(config.owners), draft_position=position)
                    session.add(team)
                    session.flush()

                existing = {
                    (slot.period, slot.slot_index)
                    for slot in session.scalars(select(RosterSlot).where(RosterSlot.team_id == team.id))
                }
                for period in ROSTER_PERIODS:
                    for slot_index in range(self.schools_per_team):
                        if (int(period), slot_index) not in existing:
                            session.add(
                                RosterSlot(team_id=team.id, period=int(period), slot_index=slot_index)
                            )

        logger.info(f"Registered {len(team_configs)} teams")
        return self.teams()

    def team(self, team_name: str) -> TeamInfo | None:
        with self.db.session_scope() as session:
            team = session.scalars(select(Team).where(Team.name == team_name)).first()
            return _team_info(team) if team else None

    def require_team(self, team_name: str) -> TeamInfo:
        team = self.team(team_name)
        if team is None:
            raise RosterError(f"Unknown team: {team_name}")
        return team

    def teams(self) -> list[TeamInfo]:
        """All teams in draft order."""
        with self.db.session_scope() as session:
            rows = session.scalars(select(Team).order_by(Team.draft_position)).all()
            return [_team_info(team) for team in rows]

    def team_at_position(self, draft_position: int) -> TeamInfo:
        for team in self.teams():
            if team.draft_position == draft_position:
                return team
        raise RosterError(f"No team at draft position {draft_position}")

    def increment_add_drops(self, team_name: str, session: Session | None = None) -> int:
        with self._scope(session) as s:
            team = self._team_row(s, team_name)
            team.add_drops_used = (team.add_drops_used or 0) + 1
            return team.add_drops_used

    # Slots

    def roster(self, team_name: str, period: int) -> list[str | None]:
        """Slots of one team for a period; postseason periods read week 16."""
        with self.db.session_scope() as session:
            team = self._team_row(session, team_name)
            rows = self._slot_rows(session, team.id, roster_period(period))
            slots: list[str | None] = [None] * self.schools_per_team
            for row in rows:
                if row.slot_index < self.schools_per_team:
                    slots[row.slot_index] = row.school_name
            return slots

    def rosters(self, period: int) -> dict[str, list[str | None]]:
        """Every team's slots for a period, read in one query."""
        with self.db.session_scope() as session:
            stmt = (
                select(Team.name, RosterSlot.slot_index, RosterSlot.school_name)
                .join(RosterSlot, RosterSlot.team_id == Team.id)
                .where(RosterSlot.period == int(roster_period(period)))
                .order_by(Team.draft_position, RosterSlot.slot_index)
            )
            result: dict[str, list[str | None]] = {
                name: [None] * self.schools_per_team
                for name in session.scalars(select(Team.name).order_by(Team.draft_position))
            }
            for team_name, slot_index, school_name in session.execute(stmt):
                if slot_index < self.schools_per_team:
                    result[team_name][slot_index] = school_name
            return result

    def set_slot(
        self,
        team_name: str,
        period: int,
        slot_index: int,
        school_name: str | None,
        session: Session | None = None,
    ) -> None:
        self._check_slot(slot_index)
        period = int(roster_period(period))
        with self._scope(session) as s:
            team = self._team_row(s, team_name)
            row = s.scalars(
                select(RosterSlot)
                .where(RosterSlot.team_id == team.id)
                .where(RosterSlot.period == period)
                .where(RosterSlot.slot_index == slot_index)
            ).first()
            if row is None:
                row = RosterSlot(team_id=team.id, period=period, slot_index=slot_index)
                s.add(row)
            row.school_name = school_name

    def write_from_period(
        self,
        team_name: str,
        slot_index: int,
        school_name: str | None,
        start_period: int,
        session: Session | None = None,
    ) -> list[int]:
        """Write a school into one slot for ``start_period`` through week 16.

        Earlier periods are left untouched. Returns the periods written.
        """
        self._check_slot(slot_index)
        start = int(roster_period(start_period))
        periods = list(range(start, int(LAST_ROSTER_PERIOD) + 1))
        with self._scope(session) as s:
            team = self._team_row(s, team_name)
            rows = {
                row.period: row
                for row in s.scalars(
                    select(RosterSlot)
                    .where(RosterSlot.team_id == team.id)
                    .where(RosterSlot.slot_index == slot_index)
                    .where(RosterSlot.period >= start)
                )
            }
            for period in periods:
                row = rows.get(period)
                if row is None:
                    row = RosterSlot(team_id=team.id, period=period, slot_index=slot_index)
                    s.add(row)
                row.school_name = school_name
        return periods

    def copy_forward(self, from_period: int = 0) -> None:
        """Copy every team's ``from_period`` roster into all later roster periods."""
        source = int(roster_period(from_period))
        if source >= int(LAST_ROSTER_PERIOD):
            return
        with self.db.session_scope() as session:
            for team in session.scalars(select(Team)).all():
                for slot in self._slot_rows(session, team.id, source):
                    self.write_from_period(
                        team.name, slot.slot_index, slot.school_name, source + 1, session=session
                    )
        logger.info(f"Copied period {source} rosters forward to week {int(LAST_ROSTER_PERIOD)}")

    def school_counts(self, period: int) -> dict[str, int]:
        """How many slots hold each school in a period, across all teams."""
        counts: Counter[str] = Counter()
        for slots in self.rosters(period).values():
            counts.update(school for school in slots if school)
        return dict(counts)

    def team_school_count(self, team_name: str, school_name: str, period: int) -> int:
        return sum(1 for school in self.roster(team_name, period) if school == school_name)

    def slot_history(self, team_name: str) -> dict[int, list[str | None]]:
        """Team's slots for every roster period 0-16."""
        with self.db.session_scope() as session:
            team = self._team_row(session, team_name)
            history = {int(p): [None] * self.schools_per_team for p in ROSTER_PERIODS}
            rows = session.scalars(select(RosterSlot).where(RosterSlot.team_id == team.id))
            for row in rows:
                if row.period in history and row.slot_index < self.schools_per_team:
                    history[row.period][row.slot_index] = row.school_name
            return history

    def clear(self) -> None:
        """Empty every slot, wipe the transaction log and double picks, reset add/drop counters."""
        with self.db.session_scope() as session:
            session.execute(update(RosterSlot).values(school_name=None))
            session.execute(delete(TransactionRecord))
            session.execute(delete(DoublePickRecord))
            session.execute(update(Team).values(add_drops_used=0))
        logger.info("Cleared all rosters and the transaction log")

    # Transaction log

    def log_transaction(
        self,
        team_name: str,
        period: int,
        slot_index: int,
        dropped_school: str,
        added_school: str,
        actor: str,
        recorded_at: datetime,
        session: Session | None = None,
    ) -> int:
        """Append a log entry and return its position."""
        with self._scope(session) as s:
            team = self._team_row(s, team_name)
            record = TransactionRecord(
                team_id=team.id,
                period=int(period),
                slot_index=slot_index,
                dropped_school=dropped_school,
                added_school=added_school,
                actor=actor,
                recorded_at=recorded_at,
            )
            s.add(record)
            s.flush()
            return record.id

    def history(self, team_name: str | None = None) -> list[LoggedTransaction]:
        """Logged transactions, newest first."""
        with self.db.session_scope() as session:
            stmt = select(TransactionRecord, Team.name).join(Team, TransactionRecord.team_id == Team.id)
            if team_name is not None:
                stmt = stmt.where(Team.name == team_name)
            rows = session.execute(stmt.order_by(TransactionRecord.id.desc())).all()
            return [
                LoggedTransaction(
                    position=record.id,
                    team_name=name,
                    period=record.period,
                    slot_index=record.slot_index,
                    dropped_school=record.dropped_school,
                    added_school=record.added_school,
                    actor=record.actor,
                    recorded_at=record.recorded_at,
                )
                for record, name in rows
            ]
