"""Reference data and feed data types."""

from .games import GameResult, GameStatus, PostseasonRound, TeamRef, classify_postseason
from .schools import School, SchoolRegistry

__all__ = [
    "GameResult",
    "GameStatus",
    "PostseasonRound",
    "School",
    "SchoolRegistry",
    "TeamRef",
    "classify_postseason",
]
