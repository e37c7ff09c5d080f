"""Season initializer: the four-phase startup sequence.

Phases, in order:
1. validate_config - load and validate the league configuration, store it
2. setup_database  - create the schema, register schools and teams
3. eligibility     - create the selection counters
4. schedule        - sync the season calendar and schedule from the feed;
                     fails while the feed has no calendar to give

Each phase records its status under ``init:phase:<name>`` in the key-value
store (pending, complete or failed). A failed phase stops the sequence and
later phases are not attempted. Running again skips completed phases and
resumes at the first one that is not complete, so every phase must be safe to
re-run.
"""

import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from sqlalchemy import select

from ..config.league import LeagueConfig, load_league_config
from ..data.collection.ingestion import ScoreIngestionPipeline
from ..data.schools import SchoolRegistry
from ..database.connection import Database
from ..database.init_db import create_database
from ..database.kv_store import KeyValueStore
from ..database.models import SchoolRecord
from ..exceptions import ExternalFetchError, NotInitializedError
from ..notifications import Notifier, notify_all
from .eligibility import EligibilityTracker
from .roster_store import RosterStore

logger = logging.getLogger(__name__)

CONFIG_KEY = "league:config"
PHASE_KEY_PREFIX = "init:phase:"


class PhaseStatus(str, Enum):
    PENDING = "pending"
    COMPLETE = "complete"
    FAILED = "failed"


PHASES = ("validate_config", "setup_database", "eligibility", "schedule")


def register_schools(db: Database, registry: SchoolRegistry) -> int:
    """Insert catalog schools that are not in the schools table yet.

    Returns:
        Number of schools added
    """
    with db.session_scope() as session:
        existing = set(session.scalars(select(SchoolRecord.name)))
        added = 0
        for school in registry:
            if school.name in existing:
                continue
            session.add(
                SchoolRecord(
                    name=school.name,
                    conference=school.conference,
                    primary_color=school.primary_color,
                    secondary_color=school.secondary_color,
                )
            )
            added += 1
    logger.info(f"Registered {added} schools ({len(registry)} in catalog)")
    return added


def load_stored_config(kv: KeyValueStore) -> LeagueConfig:
    """The configuration saved by a completed first phase.

    Raises:
        NotInitializedError: If no season has been initialized
    """
    raw = kv.get_json(CONFIG_KEY)
    if raw is None:
        raise NotInitializedError("No league configuration stored; run the season initializer")
    return load_league_config(raw)


class SeasonInitializer:
    """Runs the startup phases with resumable status tracking.

    Args:
        db: Database
        registry: School catalog
        pipeline: Ingestion pipeline used by the schedule phase
        notifier: Receives admin alerts when a phase fails
    """

    def __init__(
        self,
        db: Database,
        registry: SchoolRegistry,
        pipeline: ScoreIngestionPipeline,
        notifier: Notifier | None = None,
    ):
        self.db = db
        self.registry = registry
        self.pipeline = pipeline
        self.notifier = notifier
        # The status rows live in the key-value table itself
        create_database(db.engine)
        self.kv = KeyValueStore(db)
        self.config: LeagueConfig | None = None

    # Status tracking

    def phase_status(self, phase: str) -> PhaseStatus:
        value = self.kv.get(PHASE_KEY_PREFIX + phase)
        return PhaseStatus(value) if value else PhaseStatus.PENDING

    def statuses(self) -> dict[str, PhaseStatus]:
        return {phase: self.phase_status(phase) for phase in PHASES}

    def _mark(self, phase: str, status: PhaseStatus) -> None:
        self.kv.set(PHASE_KEY_PREFIX + phase, status.value)

    @property
    def is_complete(self) -> bool:
        return all(status is PhaseStatus.COMPLETE for status in self.statuses().values())

    def reset(self) -> None:
        """Mark every phase pending so the next run starts over."""
        for phase in PHASES:
            self.kv.delete(PHASE_KEY_PREFIX + phase)
        logger.info("Initialization status reset")

    # Phases

    def _validate_config(self, source: dict[str, Any] | str | Path | None) -> None:
        if source is None:
            self.config = load_stored_config(self.kv)
            return
        self.config = load_league_config(source)
        self.kv.set_json(CONFIG_KEY, self.config.model_dump(mode="json"))

    def _setup_database(self) -> None:
        create_database(self.db.engine)
        register_schools(self.db, self.registry)
        roster = RosterStore(self.db, self.config.draft.schools_per_team)
        roster.register_teams(self.config.teams)

    def _eligibility(self) -> None:
        tracker = EligibilityTracker(self.kv)
        max_selections = self.config.draft.max_school_selections
        if tracker.is_initialized:
            # Counters carry draft results; only the cap follows the config
            tracker.set_max_selections(max_selections)
            return
        tracker.initialize(self.registry.names(), max_selections)

    def _schedule(self) -> None:
        calendar = self.pipeline.sync_calendar()
        if len(calendar) == 0:
            raise ExternalFetchError("Score feed has no season calendar yet; rerun to retry")
        self.pipeline.sync_season()

    def run(self, config_source: dict[str, Any] | str | Path | None = None) -> dict[str, PhaseStatus]:
        """Run every phase that is not complete yet.

        Args:
            config_source: League configuration (dict, JSON string or path).
                None reuses the stored configuration.

        Returns:
            Status of every phase after the run

        Raises:
            ConfigError: If the configuration is invalid (phase 1 is marked failed)
            Exception: Whatever stopped a later phase, after marking it failed
        """
        steps: dict[str, Callable[[], None]] = {
            "validate_config": lambda: self._validate_config(config_source),
            "setup_database": self._setup_database,
            "eligibility": self._eligibility,
            "schedule": self._schedule,
        }

        # A new configuration re-validates, re-registers teams and re-applies caps
        if config_source is not None:
            self._mark("validate_config", PhaseStatus.PENDING)
            self._mark("setup_database", PhaseStatus.PENDING)
            self._mark("eligibility", PhaseStatus.PENDING)

        for phase in PHASES:
            if self.phase_status(phase) is PhaseStatus.COMPLETE:
                if phase == "validate_config":
                    self.config = load_stored_config(self.kv)
                logger.info(f"Initialization phase '{phase}' already complete, skipping")
                continue

            logger.info(f"Initialization phase '{phase}' starting")
            try:
                steps[phase]()
            except Exception as e:
                self._mark(phase, PhaseStatus.FAILED)
                logger.exception(f"Initialization phase '{phase}' failed")
                self._alert_admins(phase, e)
                raise
            self._mark(phase, PhaseStatus.COMPLETE)
            logger.info(f"Initialization phase '{phase}' complete")

        return self.statuses()

    def _alert_admins(self, phase: str, error: Exception) -> None:
        admins = self.config.admins if self.config is not None else []
        if not admins:
            return
        notify_all(
            self.notifier,
            admins,
            f"{self.config.league_name}: season initialization failed",
            f"Phase '{phase}' failed: {error}",
        )
