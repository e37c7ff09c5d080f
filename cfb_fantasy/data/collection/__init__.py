"""Score feed collection: HTTP client, game store and ingestion pipeline."""

from .game_store import GameStore, UpsertSummary
from .ingestion import ScoreIngestionPipeline
from .score_feed_client import RankedSchool, ScoreFeedClient

__all__ = [
    "GameStore",
    "RankedSchool",
    "ScoreFeedClient",
    "ScoreIngestionPipeline",
    "UpsertSummary",
]
