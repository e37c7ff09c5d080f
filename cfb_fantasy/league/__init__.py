"""League package: rosters, eligibility, draft, transactions, double picks and season setup.

The composition root lives in ``cfb_fantasy.league.services``; it is not
imported here because it also wires the scoring package.
"""

from .cache import LeagueCache
from .double_points import DoublePick, DoublePointsService
from .draft import DraftStateMachine, DraftStatus, PickResult, Turn, pick_order
from .draft_timer import DraftTimer
from .eligibility import EligibilityTracker
from .initializer import PhaseStatus, SeasonInitializer, load_stored_config
from .roster_store import LoggedTransaction, RosterStore, TeamInfo
from .transactions import (
    TransactionRequest,
    TransactionResult,
    TransactionService,
    TransactionStatus,
    ValidatedTransaction,
)

__all__ = [
    "DoublePick",
    "DoublePointsService",
    "DraftStateMachine",
    "DraftStatus",
    "DraftTimer",
    "EligibilityTracker",
    "LeagueCache",
    "LoggedTransaction",
    "PhaseStatus",
    "PickResult",
    "RosterStore",
    "SeasonInitializer",
    "TeamInfo",
    "TransactionRequest",
    "TransactionResult",
    "TransactionService",
    "TransactionStatus",
    "Turn",
    "ValidatedTransaction",
    "load_stored_config",
    "pick_order",
]
