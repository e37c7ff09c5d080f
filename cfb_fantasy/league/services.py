"""Composition root: builds and wires every league component.

Library classes take their collaborators through constructor arguments.
This module is the one place that reads process settings and connects them:
one database, one key-value store, one write lock, one cache and one
notifier shared by every component, plus the refresh hooks that keep the
scoring cache current after ingestion and transactions.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

import httpx

from ..config.league import LeagueConfig
from ..config.settings import Settings
from ..data.collection.game_store import GameStore
from ..data.collection.ingestion import ScoreIngestionPipeline
from ..data.collection.score_feed_client import ScoreFeedClient
from ..data.schools import SchoolRegistry
from ..database.connection import Database
from ..database.kv_store import KeyValueStore
from ..database.locks import WriteLock
from ..notifications import LoggingNotifier, Notifier, SmtpNotifier
from ..scoring.service import ScoringService
from ..season import utcnow
from .cache import LeagueCache
from .double_points import DoublePointsService
from .draft import DraftStateMachine
from .draft_timer import DraftTimer
from .eligibility import EligibilityTracker
from .initializer import SeasonInitializer, load_stored_config
from .roster_store import RosterStore
from .transactions import TransactionService

logger = logging.getLogger(__name__)


@dataclass
class Infrastructure:
    """Components that do not depend on the league configuration."""

    db: Database
    kv: KeyValueStore
    lock: WriteLock
    cache: LeagueCache
    registry: SchoolRegistry
    notifier: Notifier
    client: ScoreFeedClient
    games: GameStore
    pipeline: ScoreIngestionPipeline

    def close(self) -> None:
        self.client.close()
        self.db.dispose()


@dataclass
class League:
    """Every component of one league season, wired together."""

    config: LeagueConfig
    infra: Infrastructure
    roster: RosterStore
    eligibility: EligibilityTracker
    draft: DraftStateMachine
    transactions: TransactionService
    double_points: DoublePointsService
    scoring: ScoringService

    def close(self) -> None:
        if self.draft.timer is not None:
            self.draft.timer.stop()
        self.infra.close()


def build_notifier(settings: Settings) -> Notifier:
    if settings.smtp_host:
        return SmtpNotifier(settings.smtp_host, settings.smtp_port, settings.smtp_sender)
    return LoggingNotifier()


def build_infrastructure(
    settings: Settings,
    db: Database | None = None,
    http_client: httpx.Client | None = None,
    notifier: Notifier | None = None,
    clock: Callable[[], datetime] = utcnow,
    sleep: Callable[[float], None] = time.sleep,
) -> Infrastructure:
    """Shared components built from process settings.

    ``db``, ``http_client`` and ``notifier`` replace the settings-built ones
    (tests pass an in-memory database and a mock transport).
    """
    db = db or Database.from_url(settings.database_url, echo=settings.database_echo)
    kv = KeyValueStore(db)
    lock = WriteLock(
        kv,
        stale_after=settings.write_lock_stale_after,
        wait_timeout=settings.write_lock_wait_timeout,
        sleep=sleep,
    )
    registry = SchoolRegistry()
    client = ScoreFeedClient(
        registry,
        settings.score_feed_base_url,
        timeout=settings.score_feed_timeout,
        max_retries=settings.score_feed_max_retries,
        backoff_base=settings.score_feed_backoff_base,
        batch_size=settings.score_feed_batch_size,
        client=http_client,
        sleep=sleep,
    )
    games = GameStore(db)
    pipeline = ScoreIngestionPipeline(client, games, lock, settings.season_year, clock=clock)
    return Infrastructure(
        db=db,
        kv=kv,
        lock=lock,
        cache=LeagueCache(),
        registry=registry,
        notifier=notifier or build_notifier(settings),
        client=client,
        games=games,
        pipeline=pipeline,
    )


def build_initializer(infra: Infrastructure) -> SeasonInitializer:
    return SeasonInitializer(infra.db, infra.registry, infra.pipeline, infra.notifier)


def build_league(
    infra: Infrastructure,
    config: LeagueConfig | None = None,
    clock: Callable[[], datetime] = utcnow,
    timer: DraftTimer | None = None,
) -> League:
    """Wire the league components for one season.

    Args:
        infra: Shared components
        config: League configuration; None loads the one stored by the
            season initializer
        clock: Returns the current naive-UTC time
        timer: Draft turn timer; None runs the draft without a countdown

    Raises:
        NotInitializedError: If no config is given and none is stored
    """
    config = config or load_stored_config(infra.kv)

    roster = RosterStore(infra.db, config.draft.schools_per_team)
    eligibility = EligibilityTracker(infra.kv)
    double_points = DoublePointsService(
        config, infra.db, roster, infra.games, infra.registry, cache=infra.cache, clock=clock
    )
    scoring = ScoringService(
        config,
        roster,
        infra.games,
        infra.kv,
        infra.registry,
        eligibility,
        infra.lock,
        cache=infra.cache,
        double_points=double_points,
        clock=clock,
    )
    draft = DraftStateMachine(
        config,
        roster,
        eligibility,
        infra.kv,
        infra.registry,
        infra.lock,
        cache=infra.cache,
        timer=timer,
        notifier=infra.notifier,
        clock=clock,
    )
    transactions = TransactionService(
        config,
        roster,
        eligibility,
        infra.games,
        infra.registry,
        infra.lock,
        cache=infra.cache,
        notifier=infra.notifier,
        on_applied=scoring.refresh,
        clock=clock,
    )
    infra.pipeline.on_games_completed = scoring.refresh

    logger.info(f"League '{config.league_name}' ({config.season_year}) ready")
    return League(
        config=config,
        infra=infra,
        roster=roster,
        eligibility=eligibility,
        draft=draft,
        transactions=transactions,
        double_points=double_points,
        scoring=scoring,
    )
