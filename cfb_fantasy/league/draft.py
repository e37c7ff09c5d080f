"""Draft state machine.

Teams take turns selecting schools on a board with one column per team (in
draft-position order) and one row per round. Picks land in roster period 0;
when the last pick is made the week-0 rosters are copied forward through
week 16.

States only move forward:

    NOT_STARTED -> IN_PROGRESS -> COMPLETE

The only way back is ``reset_draft()``, which wipes picks, rosters,
the transaction log and eligibility counters.

Turn order:
- Linear: left to right every round.
- Snake: row parity sets the direction. Even rows run left to right, odd
  rows right to left, so the team that picks last in one round picks first
  in the next.

Draft state (status, current cell, picks) is persisted in the key-value
store, so a restarted process resumes the same draft.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from ..config.league import DraftType, LeagueConfig
from ..data.schools import SchoolRegistry
from ..database.kv_store import KeyValueStore
from ..database.locks import WriteLock
from ..exceptions import (
    AuthorizationError,
    InvalidConfigError,
    InvalidDateError,
    NotOnTheClockError,
    SchoolUnavailableError,
    ValidationError,
)
from ..notifications import Notifier, notify_all
from ..season import FIRST_PERIOD, utcnow
from .cache import LeagueCache
from .draft_timer import DraftTimer
from .eligibility import EligibilityTracker
from .roster_store import RosterStore, TeamInfo

logger = logging.getLogger(__name__)

STATE_KEY = "draft:state"


class DraftStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Turn:
    """The cell on the clock."""

    team_name: str
    row: int
    column: int

    @property
    def key(self) -> str:
        return f"{self.row}:{self.column}"


@dataclass(frozen=True)
class PickResult:
    team_name: str
    row: int
    column: int
    school_name: str
    next_turn: Turn | None
    completed: bool


def next_cell(row: int, column: int, columns: int, draft_type: DraftType) -> tuple[int, int]:
    """Board cell after (row, column)."""
    if draft_type == DraftType.LINEAR or row % 2 == 0:
        if column + 1 < columns:
            return row, column + 1
        # Snake turns back at the end of an even row
        return (row + 1, 0) if draft_type == DraftType.LINEAR else (row + 1, columns - 1)

    if column - 1 >= 0:
        return row, column - 1
    return row + 1, 0


def terminal_column(row: int, columns: int, draft_type: DraftType) -> int:
    """Column of the last pick in a row."""
    if draft_type == DraftType.SNAKE and row % 2 == 1:
        return 0
    return columns - 1


def pick_order(rows: int, columns: int, draft_type: DraftType) -> list[tuple[int, int]]:
    """Every (row, column) in the order picks are made."""
    order = []
    row, column = 0, 0
    while row < rows:
        order.append((row, column))
        if row == rows - 1 and column == terminal_column(row, columns, draft_type):
            break
        row, column = next_cell(row, column, columns, draft_type)
    return order


class DraftStateMachine:
    """Turn-based school selection that builds the initial rosters.

    Args:
        config: League configuration (draft settings, teams, admins)
        roster: Roster store the picks are written to
        eligibility: League-wide selection counters
        kv: Key-value store holding the draft state
        registry: School catalog
        lock: League write lock; picks change rosters and eligibility
        cache: Invalidated after every write
        timer: Optional turn countdown
        notifier: Optional notification channel
        clock: Returns the current naive-UTC time
    """

    def __init__(
        self,
        config: LeagueConfig,
        roster: RosterStore,
        eligibility: EligibilityTracker,
        kv: KeyValueStore,
        registry: SchoolRegistry,
        lock: WriteLock,
        cache: LeagueCache | None = None,
        timer: DraftTimer | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.roster = roster
        self.eligibility = eligibility
        self.kv = kv
        self.registry = registry
        self.lock = lock
        self.cache = cache or LeagueCache()
        self.timer = timer
        self.notifier = notifier
        self.clock = clock

        self.rows = config.draft.schools_per_team
        self.columns = config.draft.team_count
        self._state = self._load_state()

    # State persistence

    def _blank_state(self) -> dict:
        return {
            "status": DraftStatus.NOT_STARTED.value,
            "draft_type": self.config.draft.draft_type.value,
            "row": 0,
            "column": 0,
            "picks": [],
        }

    def _load_state(self) -> dict:
        state = self.kv.get_json(STATE_KEY)
        if not isinstance(state, dict) or "status" not in state:
            return self._blank_state()
        return state

    def _save_state(self) -> None:
        self.kv.set_json(STATE_KEY, self._state)

    @property
    def status(self) -> DraftStatus:
        return DraftStatus(self._state["status"])

    @property
    def draft_type(self) -> DraftType:
        return DraftType(self._state["draft_type"])

    @property
    def picks(self) -> list[tuple[int, int, str]]:
        return [tuple(pick) for pick in self._state["picks"]]

    def _team_for_column(self, column: int) -> TeamInfo:
        return self.roster.team_at_position(column)

    # Transitions

    def start(
        self,
        draft_date: date | None = None,
        draft_type: DraftType | str | None = None,
    ) -> Turn:
        """Open the draft.

        Raises:
            ValidationError: If the draft has already started
            InvalidDateError: If today is before the draft date
            InvalidConfigError: If the draft type is not Snake or Linear
        """
        if self.status is not DraftStatus.NOT_STARTED:
            raise ValidationError("The draft has already started; reset it to start over")

        draft_date = draft_date or self.config.draft.draft_date
        today = self.clock().date()
        if today < draft_date:
            raise InvalidDateError(f"The draft opens on {draft_date:%m/%d/%Y}")

        raw_type = draft_type if draft_type is not None else self.config.draft.draft_type
        try:
            resolved_type = DraftType(raw_type)
        except ValueError as e:
            raise InvalidConfigError(
                f"Draft type must be Snake or Linear, got '{raw_type}'"
            ) from e

        with self.lock.hold(reason="start draft"):
            self.roster.clear()
            self.eligibility.initialize(self.registry.names(), self.config.draft.max_school_selections)
            self._state = self._blank_state()
            self._state["status"] = DraftStatus.IN_PROGRESS.value
            self._state["draft_type"] = resolved_type.value
            self._state["started_at"] = self.clock().isoformat()
            self._save_state()
        self.cache.invalidate()

        turn = self.on_the_clock()
        logger.info(f"Draft started ({resolved_type.value}, {self.rows} rounds x {self.columns} teams)")
        self._arm_timer(turn)
        return turn

    def _check_actor(self, team: TeamInfo, actor: str | None) -> None:
        if actor is None:
            return
        actor = actor.strip().lower()
        if actor not in team.owners and actor not in self.config.admins:
            raise AuthorizationError(f"{actor} may not pick for {team.name}")

    def _check_school(self, team: TeamInfo, school_name: str) -> str:
        school = self.registry.get(school_name)
        if school is None:
            raise SchoolUnavailableError(f"Unknown school: {school_name}")
        if not self.eligibility.is_available(school.name):
            raise SchoolUnavailableError(
                f"{school.name} has already been selected "
                f"{self.eligibility.max_selections(school.name)} times"
            )
        per_team = self.config.draft.max_times_school_per_team
        if self.roster.team_school_count(team.name, school.name, FIRST_PERIOD) >= per_team:
            raise SchoolUnavailableError(
                f"{team.name} already has {school.name} the maximum {per_team} time(s)"
            )
        return school.name

    def select_school(
        self, column: int, row: int, school_name: str, actor: str | None = None
    ) -> PickResult:
        """Record a pick at (row, column) for the team on the clock.

        Raises:
            NotOnTheClockError: If the draft is not running or the cell is not current
            AuthorizationError: If ``actor`` is given and may not pick for the team
            SchoolUnavailableError: If the school is at its league or team cap
        """
        with self.lock.hold(reason="draft pick"):
            self._state = self._load_state()
            self.eligibility.load()

            if self.status is not DraftStatus.IN_PROGRESS:
                raise NotOnTheClockError("The draft is not in progress")

            current = self.on_the_clock()
            if (row, column) != (current.row, current.column):
                raise NotOnTheClockError(
                    f"{current.team_name} is on the clock (round {current.row + 1}, "
                    f"pick {current.column + 1})"
                )

            team = self._team_for_column(column)
            self._check_actor(team, actor)
            school = self._check_school(team, school_name)

            self.roster.set_slot(team.name, FIRST_PERIOD, row, school)
            self.eligibility.record_transaction(None, school)
            self._state["picks"].append([row, column, school])

            completed = row == self.rows - 1 and column == terminal_column(
                row, self.columns, self.draft_type
            )
            if completed:
                self._state["status"] = DraftStatus.COMPLETE.value
                self._state["completed_at"] = self.clock().isoformat()
                self.roster.copy_forward(FIRST_PERIOD)
            else:
                next_row, next_column = next_cell(row, column, self.columns, self.draft_type)
                self._state["row"] = next_row
                self._state["column"] = next_column
            self._save_state()

        self.cache.invalidate()
        logger.info(f"Pick recorded: {team.name} selected {school} (round {row + 1})")

        if completed:
            if self.timer is not None:
                self.timer.stop()
            self._notify_complete()
            return PickResult(team.name, row, column, school, None, True)

        next_turn = self.on_the_clock()
        self._arm_timer(next_turn)
        return PickResult(team.name, row, column, school, next_turn, False)

    def reset_draft(self) -> None:
        """Wipe picks, rosters, the transaction log and eligibility; back to NOT_STARTED."""
        if self.timer is not None:
            self.timer.stop()
        with self.lock.hold(reason="reset draft"):
            self.roster.clear()
            self.eligibility.clear()
            self._state = self._blank_state()
            self._save_state()
        self.cache.invalidate()
        logger.info("Draft reset")

    # Queries

    def on_the_clock(self) -> Turn | None:
        if self.status is not DraftStatus.IN_PROGRESS:
            return None
        row, column = self._state["row"], self._state["column"]
        return Turn(self._team_for_column(column).name, row, column)

    def draft_board(self) -> list[list[str | None]]:
        """Pick grid: one list per round, one entry per team column."""
        board: list[list[str | None]] = [[None] * self.columns for _ in range(self.rows)]
        for row, column, school in self.picks:
            board[row][column] = school
        return board

    def available_schools(self, team_name: str) -> list[str]:
        """Schools the team could pick now: not at the league cap or the team cap."""
        if not self.eligibility.is_initialized:
            return []
        at_league_cap = self.eligibility.unavailable_schools()
        per_team = self.config.draft.max_times_school_per_team
        team_counts: dict[str, int] = {}
        for school in self.roster.roster(team_name, FIRST_PERIOD):
            if school:
                team_counts[school] = team_counts.get(school, 0) + 1
        return [
            name
            for name in self.registry.names()
            if name not in at_league_cap and team_counts.get(name, 0) < per_team
        ]

    # Timer and notifications

    def _turn_key(self, turn: Turn) -> str:
        return f"{turn.key}:{len(self._state['picks'])}"

    def _arm_timer(self, turn: Turn | None) -> None:
        if self.timer is None or turn is None:
            return
        self.timer.start(
            self._turn_key(turn), self.config.draft.timer_seconds, on_expire=self._turn_expired
        )

    def _turn_expired(self, turn_key: str) -> None:
        """Timer callback: tell the owners their turn ran out, if it is still theirs."""
        turn = self.on_the_clock()
        if turn is None or self._turn_key(turn) != turn_key:
            logger.debug(f"Ignoring expiry of stale turn {turn_key}")
            return
        team = self.roster.require_team(turn.team_name)
        logger.warning(f"{team.name} ran out of time in round {turn.row + 1}")
        notify_all(
            self.notifier,
            team.owners,
            f"{self.config.league_name}: your draft pick is overdue",
            f"The {self.config.draft.timer_seconds}-second timer for {team.name} "
            f"(round {turn.row + 1}) has run out. Make your pick as soon as you can.",
        )

    def _notify_complete(self) -> None:
        recipients = [owner for team in self.roster.teams() for owner in team.owners]
        notify_all(
            self.notifier,
            recipients + list(self.config.admins),
            f"{self.config.league_name}: the draft is complete",
            "All picks are in. Rosters are set for week 0 onward.",
        )
