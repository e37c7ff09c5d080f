"""Game result types shared by the score feed, the game store and scoring.

A ``GameResult`` is the immutable fact the points engine consumes. Games
move SCHEDULED -> LIVE -> COMPLETED exactly once; only completed games have
a winner and a loser.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ..season import SeasonPeriod

UNRANKED = 0
FEED_UNRANKED = 99  # The feed reports unranked teams as curated rank 99


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"

    @property
    def order(self) -> int:
        return _STATUS_ORDER[self]


_STATUS_ORDER = {GameStatus.SCHEDULED: 0, GameStatus.LIVE: 1, GameStatus.COMPLETED: 2}


class PostseasonRound(str, Enum):
    """What kind of game a postseason matchup is, derived from its name."""

    BOWL = "bowl"
    FIRST_ROUND = "first_round"
    QUARTERFINAL = "quarterfinal"
    SEMIFINAL = "semifinal"
    CHAMPIONSHIP = "championship"

    @property
    def is_playoff(self) -> bool:
        return self is not PostseasonRound.BOWL


def classify_postseason(game_name: str | None) -> PostseasonRound:
    """Classify a postseason game from its bowl/notes headline.

    Only names mentioning the College Football Playoff are playoff games,
    e.g. "College Football Playoff Quarterfinal at the Rose Bowl". Anything
    else ("Duke's Mayo Bowl") is a plain bowl.
    """
    name = (game_name or "").lower()
    if "college football playoff" not in name:
        return PostseasonRound.BOWL
    if "national championship" in name:
        return PostseasonRound.CHAMPIONSHIP
    if "semifinal" in name:
        return PostseasonRound.SEMIFINAL
    if "quarterfinal" in name:
        return PostseasonRound.QUARTERFINAL
    if "first round" in name:
        return PostseasonRound.FIRST_ROUND
    return PostseasonRound.BOWL


def postseason_period(round_: PostseasonRound) -> SeasonPeriod:
    """Scoring period a postseason game belongs to."""
    if round_ is PostseasonRound.CHAMPIONSHIP:
        return SeasonPeriod.NATIONAL_CHAMPIONSHIP
    if round_.is_playoff:
        return SeasonPeriod.PLAYOFF
    return SeasonPeriod.BOWLS


def normalize_rank(rank: int | None) -> int:
    """Curated rank with 0 meaning unranked."""
    if not rank or rank >= FEED_UNRANKED or rank < 0:
        return UNRANKED
    return int(rank)


@dataclass(frozen=True)
class TeamRef:
    """One side of a game: the school and its curated rank at kickoff."""

    school_name: str
    curated_rank: int = UNRANKED


@dataclass(frozen=True)
class GameResult:
    """A game as the engine sees it.

    ``winner``/``loser`` and their scores are only defined once the game is
    COMPLETED with a non-tied score.
    """

    game_id: str
    period: SeasonPeriod
    home: TeamRef
    away: TeamRef
    status: GameStatus = GameStatus.SCHEDULED
    home_score: int | None = None
    away_score: int | None = None
    is_conference_game: bool = False
    game_name: str = ""
    start_time: datetime | None = None
    completion_time: datetime | None = None
    season_type: int = 2

    @property
    def is_completed(self) -> bool:
        return self.status is GameStatus.COMPLETED

    @property
    def postseason_round(self) -> PostseasonRound | None:
        if self.season_type != 3:
            return None
        return classify_postseason(self.game_name)

    def involves(self, school_name: str) -> bool:
        return school_name in (self.home.school_name, self.away.school_name)

    def opponent_of(self, school_name: str) -> TeamRef:
        return self.away if self.home.school_name == school_name else self.home

    def _decided(self) -> bool:
        return (
            self.is_completed
            and self.home_score is not None
            and self.away_score is not None
            and self.home_score != self.away_score
        )

    @property
    def winner(self) -> TeamRef | None:
        if not self._decided():
            return None
        return self.home if self.home_score > self.away_score else self.away

    @property
    def loser(self) -> TeamRef | None:
        if not self._decided():
            return None
        return self.away if self.home_score > self.away_score else self.home

    @property
    def winner_score(self) -> int | None:
        if not self._decided():
            return None
        return max(self.home_score, self.away_score)

    @property
    def loser_score(self) -> int | None:
        if not self._decided():
            return None
        return min(self.home_score, self.away_score)

    def advanced_to(self, newer: "GameResult") -> "GameResult":
        """Merge a newer feed snapshot, never moving the status backwards."""
        if self.is_completed or newer.status.order < self.status.order:
            return self
        return newer
