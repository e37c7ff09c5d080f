"""Add/drop transaction service.

A transaction swaps one school off a team's roster for another, from the
current period onward. Each request moves through

    SUBMITTED -> VALIDATED -> CONFIRMED -> APPLIED

or ends REJECTED at the first rule it breaks. Validation runs in a fixed
order and stops at the first failure:

1. Both the dropped and the added school are given (every change is a swap)
2. The actor owns the team or is a league admin
3. Neither the season deadline nor this period's deadline has passed
4. The team has add/drops left
5. The dropped school is on the team's roster this period
6. The added school is below its league-wide cap and the team's own cap

Nothing is written until validation passes, and nothing validates before the
season calendar is stored (NotInitializedError). Applying re-validates under the
league write lock, then writes the slot swap, the log entry and the quota
counter in one database transaction and updates eligibility.

Rejected requests carry the literal rule that failed, e.g.
"Final add/drop deadline has passed (10/06/2025)".
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from ..config.league import LeagueConfig
from ..data.collection.game_store import GameStore
from ..data.schools import SchoolRegistry
from ..database.locks import WriteLock
from ..exceptions import (
    AuthorizationError,
    DeadlineError,
    EligibilityError,
    RosterError,
    TransactionLimitError,
    ValidationError,
)
from ..notifications import Notifier, notify_all
from ..season import SeasonPeriod, roster_period, utcnow
from .cache import LeagueCache
from .eligibility import EligibilityTracker
from .roster_store import LoggedTransaction, RosterStore

logger = logging.getLogger(__name__)


class TransactionStatus(str, Enum):
    SUBMITTED = "submitted"
    VALIDATED = "validated"
    CONFIRMED = "confirmed"
    APPLIED = "applied"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TransactionRequest:
    team_name: str
    drop_school: str | None
    add_school: str | None
    actor: str


@dataclass(frozen=True)
class ValidatedTransaction:
    """A request that passed every rule, with where it will land."""

    request: TransactionRequest
    period: SeasonPeriod
    slot_index: int
    drop_school: str
    add_school: str
    confirmed: bool = False

    @property
    def status(self) -> TransactionStatus:
        return TransactionStatus.CONFIRMED if self.confirmed else TransactionStatus.VALIDATED


@dataclass(frozen=True)
class TransactionResult:
    status: TransactionStatus
    request: TransactionRequest
    reason: str | None = None
    period: int | None = None
    slot_index: int | None = None
    position: int | None = None

    @property
    def ok(self) -> bool:
        return self.status is TransactionStatus.APPLIED


class TransactionService:
    """Validates and applies add/drop requests.

    Args:
        config: League configuration
        roster: Roster store
        eligibility: League-wide selection counters
        games: Game store, for the per-period kickoff deadline
        registry: School catalog
        lock: League write lock
        cache: Invalidated after every applied transaction
        notifier: Optional notification channel for team owners
        on_applied: Called with the team name after a transaction is applied
            (the scoring refresh hook)
        clock: Returns the current naive-UTC time
    """

    def __init__(
        self,
        config: LeagueConfig,
        roster: RosterStore,
        eligibility: EligibilityTracker,
        games: GameStore,
        registry: SchoolRegistry,
        lock: WriteLock,
        cache: LeagueCache | None = None,
        notifier: Notifier | None = None,
        on_applied: Callable[[str], None] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.roster = roster
        self.eligibility = eligibility
        self.games = games
        self.registry = registry
        self.lock = lock
        self.cache = cache or LeagueCache()
        self.notifier = notifier
        self.on_applied = on_applied
        self.clock = clock

    def current_period(self) -> SeasonPeriod:
        """Period the add/drop counts toward.

        Raises:
            NotInitializedError: If the season calendar has not been synced
        """
        now = self.clock()
        return self.cache.get_or_load(
            f"current_period:{now:%Y%m%d%H}", lambda: self.games.current_period(now)
        )

    # Individual rules

    def _check_swap(self, request: TransactionRequest) -> tuple[str, str]:
        drop = (request.drop_school or "").strip()
        add = (request.add_school or "").strip()
        if not drop or not add:
            raise RosterError(
                "Every transaction must drop one school and add one school"
            )
        return drop, add

    def _check_authorized(self, request: TransactionRequest) -> None:
        team = self.roster.require_team(request.team_name)
        actor = (request.actor or "").strip().lower()
        if actor not in team.owners and actor not in self.config.admins:
            raise AuthorizationError(
                f"{request.actor} is not an owner of {team.name} or a league admin"
            )

    def _check_deadlines(self, period: SeasonPeriod) -> None:
        now = self.clock()
        final_date = self.config.transactions.final_add_drop_date
        if now.date() > final_date:
            raise DeadlineError(f"Final add/drop deadline has passed ({final_date:%m/%d/%Y})")

        first_kickoff = self.games.first_kickoff(roster_period(period))
        if first_kickoff is not None and now >= first_kickoff:
            raise DeadlineError(
                f"Add/drop deadline for {period.label} has passed "
                f"(first kickoff {first_kickoff:%m/%d/%Y %H:%M} UTC)"
            )

    def _check_quota(self, team_name: str) -> None:
        team = self.roster.require_team(team_name)
        limit = self.config.transactions.max_add_drops
        if team.add_drops_used >= limit:
            raise TransactionLimitError(f"{team.name} has used all {limit} add/drops")

    def _check_drop(self, team_name: str, drop: str, period: SeasonPeriod) -> tuple[int, list, str]:
        known = self.registry.get(drop)
        drop = known.name if known else drop
        slots = self.roster.roster(team_name, period)
        if drop not in slots:
            raise RosterError(f"{drop} is not on {team_name}'s roster for {period.label}")
        return slots.index(drop), slots, drop

    def _check_add(self, team_name: str, drop: str, add: str, slots: list) -> str:
        school = self.registry.get(add)
        if school is None:
            raise EligibilityError(f"Unknown school: {add}")
        add = school.name
        if add == drop:
            raise RosterError(f"Cannot drop and add the same school ({add})")

        self.eligibility.load()
        if not self.eligibility.is_available(add):
            raise EligibilityError(
                f"{add} has already been selected {self.eligibility.max_selections(add)} times"
            )

        per_team = self.config.draft.max_times_school_per_team
        held = sum(1 for slot in slots if slot == add)
        if held >= per_team:
            raise EligibilityError(f"{team_name} already has {add} the maximum {per_team} time(s)")

        # Unreachable while every request is a swap
        if sum(1 for slot in slots if slot) > self.config.draft.schools_per_team:
            raise RosterError(f"{team_name}'s roster is over {self.config.draft.schools_per_team} schools")
        return add

    # Lifecycle

    def validate(self, request: TransactionRequest) -> ValidatedTransaction:
        """Run every rule in order.

        Raises:
            ValidationError: The first rule that fails, with its reason
        """
        drop, add = self._check_swap(request)
        self._check_authorized(request)
        period = self.current_period()
        self._check_deadlines(period)
        self._check_quota(request.team_name)
        slot_index, slots, drop = self._check_drop(request.team_name, drop, period)
        add = self._check_add(request.team_name, drop, add, slots)
        return ValidatedTransaction(request, period, slot_index, drop, add)

    def confirm(self, validated: ValidatedTransaction) -> ValidatedTransaction:
        """Mark a validated request as confirmed by the user."""
        return replace(validated, confirmed=True)

    def apply(self, validated: ValidatedTransaction) -> TransactionResult:
        """Apply a validated, confirmed transaction.

        Re-validates under the write lock so a concurrent change cannot slip in
        between validation and the write.

        Raises:
            ValidationError: If the request no longer passes
            ConcurrencyError: If the write lock is busy
        """
        request = validated.request
        if not validated.confirmed:
            raise ValidationError("The transaction has not been confirmed")
        with self.lock.hold(reason=f"transaction for {request.team_name}"):
            current = self.validate(request)
            now = self.clock()

            with self.roster.db.session_scope() as session:
                self.roster.write_from_period(
                    request.team_name,
                    current.slot_index,
                    current.add_school,
                    current.period,
                    session=session,
                )
                position = self.roster.log_transaction(
                    request.team_name,
                    current.period,
                    current.slot_index,
                    current.drop_school,
                    current.add_school,
                    request.actor.strip().lower(),
                    now,
                    session=session,
                )
                self.roster.increment_add_drops(request.team_name, session=session)

            self.eligibility.record_transaction(current.drop_school, current.add_school)

        self.cache.invalidate()
        logger.info(
            f"Transaction applied: {request.team_name} dropped {current.drop_school}, "
            f"added {current.add_school} from {current.period.label}"
        )

        if self.on_applied is not None:
            self.on_applied(request.team_name)

        team = self.roster.require_team(request.team_name)
        notify_all(
            self.notifier,
            team.owners,
            f"{self.config.league_name}: transaction applied for {team.name}",
            f"{current.drop_school} was dropped and {current.add_school} added, "
            f"effective {current.period.label}.",
        )

        return TransactionResult(
            TransactionStatus.APPLIED,
            request,
            period=int(current.period),
            slot_index=current.slot_index,
            position=position,
        )

    def submit(
        self,
        team_name: str,
        drop_school: str | None,
        add_school: str | None,
        actor: str,
        confirmed: bool = True,
    ) -> TransactionResult:
        """Validate and, when confirmed, apply a request.

        Rule violations come back as a REJECTED result with the reason rather
        than an exception. An unconfirmed request stops at VALIDATED.
        """
        request = TransactionRequest(team_name, drop_school, add_school, actor)
        try:
            validated = self.validate(request)
            if not confirmed:
                return TransactionResult(
                    TransactionStatus.VALIDATED,
                    request,
                    period=int(validated.period),
                    slot_index=validated.slot_index,
                )
            return self.apply(self.confirm(validated))
        except ValidationError as e:
            logger.info(f"Transaction rejected for {team_name}: {e.reason}")
            return TransactionResult(TransactionStatus.REJECTED, request, reason=e.reason)

    def history(self, team_name: str | None = None) -> list[LoggedTransaction]:
        """Applied transactions, newest first."""
        return self.roster.history(team_name)
