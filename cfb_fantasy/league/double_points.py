"""Weekly double-points picks.

When the league enables double points, each team may name one school on
its roster per period. That school's game points for the period count twice;
event awards (bowl appearance, playoff rounds, titles, Heisman) do not.

A pick is checked in this order:
1. Double points are enabled for the league
2. The actor owns the team or is a league admin
3. The school is on the team's roster for that period
4. None of the team's games for that period has kicked off
5. The team has picks left (changing an existing pick is free)

A pick can be changed until the deadline; the latest one stands.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select

from ..config.league import LeagueConfig
from ..data.collection.game_store import GameStore
from ..data.schools import SchoolRegistry
from ..database.connection import Database
from ..database.models import DoublePickRecord, Team
from ..exceptions import (
    AuthorizationError,
    DeadlineError,
    RosterError,
    TransactionLimitError,
    ValidationError,
)
from ..season import SeasonPeriod, utcnow
from .cache import LeagueCache
from .roster_store import RosterStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DoublePick:
    team_name: str
    period: SeasonPeriod
    school_name: str
    actor: str
    picked_at: datetime


class DoublePointsService:
    """Validates and stores double-points picks.

    Args:
        config: League configuration (prize settings hold the options)
        db: Database holding the picks table
        roster: Roster store
        games: Game store, for the kickoff deadline
        registry: School catalog
        cache: Shared league cache; cleared after every pick
        clock: Returns the current naive-UTC time
    """

    def __init__(
        self,
        config: LeagueConfig,
        db: Database,
        roster: RosterStore,
        games: GameStore,
        registry: SchoolRegistry,
        cache: LeagueCache | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.db = db
        self.roster = roster
        self.games = games
        self.registry = registry
        self.cache = cache or LeagueCache()
        self.clock = clock

    @property
    def enabled(self) -> bool:
        return self.config.prizes.double_points_enabled

    def set_pick(self, team_name: str, period: int, school_name: str, actor: str) -> DoublePick:
        """Record ``school_name`` as the team's double pick for ``period``.

        Raises:
            ValidationError: The first rule that fails, with its reason
        """
        if not self.enabled:
            raise ValidationError("Double points are not enabled in this league")
        period = SeasonPeriod(period)

        team = self.roster.require_team(team_name)
        actor_email = (actor or "").strip().lower()
        if actor_email not in team.owners and actor_email not in self.config.admins:
            raise AuthorizationError(f"{actor} is not an owner of {team.name} or a league admin")

        school = self.registry.get(school_name)
        name = school.name if school else school_name
        slots = self.roster.roster(team.name, period)
        if name not in slots:
            raise RosterError(f"{name} is not on {team.name}'s roster for {period.label}")

        now = self.clock()
        first_kickoff = self.games.first_kickoff(int(period), {s for s in slots if s})
        if first_kickoff is not None and now >= first_kickoff:
            raise DeadlineError(
                f"Double pick deadline for {period.label} has passed "
                f"(first kickoff {first_kickoff:%m/%d/%Y %H:%M} UTC)"
            )

        existing = self.picks(team.name)
        limit = self.config.prizes.max_double_picks
        changing = any(pick.period == period for pick in existing)
        if limit and not changing and len(existing) >= limit:
            raise TransactionLimitError(f"{team.name} has used all {limit} double picks")

        with self.db.session_scope() as session:
            team_id = session.scalars(select(Team.id).where(Team.name == team.name)).one()
            row = session.scalars(
                select(DoublePickRecord).where(
                    DoublePickRecord.team_id == team_id,
                    DoublePickRecord.period == int(period),
                )
            ).first()
            if row is None:
                row = DoublePickRecord(team_id=team_id, period=int(period))
                session.add(row)
            row.school_name = name
            row.actor = actor_email
            row.picked_at = now

        self.cache.invalidate()
        logger.info(f"{team.name} doubled {name} for {period.label}")
        return DoublePick(team.name, period, name, actor_email, now)

    def picks(self, team_name: str | None = None) -> list[DoublePick]:
        """Stored picks in period order, for one team or all of them."""
        with self.db.session_scope() as session:
            stmt = select(DoublePickRecord, Team.name).join(Team, DoublePickRecord.team_id == Team.id)
            if team_name is not None:
                stmt = stmt.where(Team.name == team_name)
            rows = session.execute(stmt.order_by(Team.name, DoublePickRecord.period)).all()
            return [
                DoublePick(name, SeasonPeriod(row.period), row.school_name, row.actor, row.picked_at)
                for row, name in rows
            ]

    def picks_by_team(self) -> dict[str, dict[SeasonPeriod, str]]:
        """{team: {period: school}}; empty when double points are off."""
        if not self.enabled:
            return {}
        by_team: dict[str, dict[SeasonPeriod, str]] = {}
        for pick in self.picks():
            by_team.setdefault(pick.team_name, {})[pick.period] = pick.school_name
        return by_team
