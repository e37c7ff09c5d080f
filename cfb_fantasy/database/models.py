"""SQLAlchemy database models for the fantasy league.

This file defines the league's persistent schema using SQLAlchemy ORM. Every
piece of state the engine owns lives here as a typed table instead of a
cell range:

1. Reference data: schools
2. League state: teams, roster slots, the append-only transaction log,
   weekly double-points picks
3. Ingested feed data: games, poll rankings, the season calendar
4. Small durable values: the key-value store (eligibility state, locks,
   initialization phase status, standings snapshots)

For beginners:

SQLAlchemy ORM: each class is a table and each instance a row.

Natural keys: schools and teams are identified by name throughout the engine;
the integer ``id`` is only the storage key. Games are identified by the score
feed's game id.

Design Patterns:
- Base declarative class for all models
- Consistent primary key and timestamp patterns
- UniqueConstraints enforce the "one row per key" rules the engine relies on
"""

from sqlalchemy import JSON
from sqlalchemy import Boolean
from sqlalchemy import Column
from sqlalchemy import DateTime
from sqlalchemy import ForeignKey
from sqlalchemy import Index
from sqlalchemy import Integer
from sqlalchemy import String
from sqlalchemy import Text
from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

Base = declarative_base()


class SchoolRecord(Base):
    """Draftable school, loaded from the static catalog at season setup."""

    __tablename__ = "schools"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(60), unique=True, nullable=False, index=True)  # "Ohio State"
    conference = Column(String(40), nullable=False)  # "Big Ten", "Independent"
    primary_color = Column(String(7), nullable=False)  # "#BB0000"
    secondary_color = Column(String(7), nullable=False)

    created_at = Column(DateTime, default=func.now())


class Team(Base):
    """Fantasy team.

    ``draft_position`` is the team's zero-based column in the draft board.
    ``add_drops_used`` counts applied transactions against the season quota.
    """

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(25), unique=True, nullable=False, index=True)
    owners = Column(JSON, nullable=False, default=list)  # Lowercased owner emails
    draft_position = Column(Integer, nullable=False)
    add_drops_used = Column(Integer, nullable=False, default=0)

    slots = relationship("RosterSlot", back_populates="team", cascade="all, delete-orphan")
    transactions = relationship("TransactionRecord", back_populates="team")

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class RosterSlot(Base):
    """One cell of a team's roster: (team, period, slot) -> school or empty.

    Only periods 0-16 are stored. Postseason periods read the week-16 rows.
    """

    __tablename__ = "roster_slots"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    period = Column(Integer, nullable=False)
    slot_index = Column(Integer, nullable=False)
    school_name = Column(String(60), nullable=True)  # NULL = empty slot

    team = relationship("Team", back_populates="slots")

    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("team_id", "period", "slot_index"),
        # School counts per period (eligibility reconciliation)
        Index("idx_roster_period_school", "period", "school_name"),
    )


class TransactionRecord(Base):
    """Append-only add/drop log entry.

    The autoincrement ``id`` is the entry's position in the log. Rows are
    never updated or deleted outside a full draft reset.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    period = Column(Integer, nullable=False)
    slot_index = Column(Integer, nullable=False)
    dropped_school = Column(String(60), nullable=False)
    added_school = Column(String(60), nullable=False)
    actor = Column(String(120), nullable=False)  # Email of the user who submitted it
    recorded_at = Column(DateTime, nullable=False)

    team = relationship("Team", back_populates="transactions")


class DoublePickRecord(Base):
    """A team's double-points school for one period; at most one per period."""

    __tablename__ = "weekly_double_picks"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False, index=True)
    period = Column(Integer, nullable=False)
    school_name = Column(String(60), nullable=False)
    actor = Column(String(120), nullable=False)
    picked_at = Column(DateTime, nullable=False)

    team = relationship("Team")

    __table_args__ = (UniqueConstraint("team_id", "period"),)


class GameRecord(Base):
    """A game from the score feed.

    Status only moves forward: scheduled -> live -> completed. A completed
    row is never rewritten.
    """

    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    game_id = Column(String(20), unique=True, nullable=False, index=True)  # Feed event id
    period = Column(Integer, nullable=False, index=True)
    season_type = Column(Integer, nullable=False, default=2)  # 2 regular, 3 postseason
    status = Column(String(12), nullable=False, default="scheduled")
    game_name = Column(String(200))  # Bowl / notes headline, "" for regular games
    is_conference_game = Column(Boolean, nullable=False, default=False)

    home_school = Column(String(60), nullable=False)
    away_school = Column(String(60), nullable=False)
    home_score = Column(Integer)
    away_score = Column(Integer)
    home_rank = Column(Integer, nullable=False, default=0)  # 0 = unranked
    away_rank = Column(Integer, nullable=False, default=0)

    start_time = Column(DateTime)
    completed_at = Column(DateTime)

    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (Index("idx_game_period_status", "period", "status"),)


class PollRanking(Base):
    """One school's position in a poll snapshot for a period."""

    __tablename__ = "poll_rankings"

    id = Column(Integer, primary_key=True, index=True)
    period = Column(Integer, nullable=False)
    poll_name = Column(String(60), nullable=False)  # "AP Top 25", "Playoff Committee Rankings"
    rank = Column(Integer, nullable=False)
    school_name = Column(String(60), nullable=False)
    captured_at = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("period", "poll_name", "school_name"),
        Index("idx_poll_period", "period", "poll_name"),
    )


class CalendarPeriodRecord(Base):
    """Date range of one season period, as published by the feed calendar."""

    __tablename__ = "calendar_periods"

    id = Column(Integer, primary_key=True, index=True)
    period = Column(Integer, unique=True, nullable=False)
    label = Column(String(40), nullable=False)
    start = Column(DateTime, nullable=False)
    end = Column(DateTime, nullable=False)


class KeyValueEntry(Base):
    """Durable string value stored under a key."""

    __tablename__ = "kv_store"

    key = Column(String(200), primary_key=True)
    value = Column(Text, nullable=False)

    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())
