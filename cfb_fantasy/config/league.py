"""Season configuration for one league.

The commissioner supplies these values once, at season setup. They are
validated at load time with Pydantic models so that a bad value is reported
against the field that holds it, instead of surfacing later as a wrong
score or a stuck draft.

Sections:
- teams / admins: who plays and who may act for whom
- draft: order type, roster size and the two selection caps
- transactions: final add/drop date and per-team add/drop budget
- scoring: point values per event kind (ScoringRules)
- prizes: season payouts and the optional weekly high-points prize

Required fields (team count, schools per team) have no defaults on purpose.
"""

import json
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigError

RESERVED_TEAM_NAMES = {"admin", "system", "commissioner", "null"}
TEAM_NAME_MIN_LENGTH = 3
TEAM_NAME_MAX_LENGTH = 25
TIMER_CHOICES = (30, 45, 60, 90, 120)


class DraftType(str, Enum):
    """Turn order for the draft.

    Snake: order reverses each round
    Linear: same order each round
    """

    SNAKE = "Snake"
    LINEAR = "Linear"


class ScoringRules(BaseModel):
    """Point values for each event kind.

    Defaults are the recommended values from the league setup sheet. All
    values must be >= 0; win >= loss is deliberately not enforced.

    The loss-side values exist for leagues that award consolation points.
    They default to 0, so with the defaults a losing school earns nothing.
    """

    model_config = ConfigDict(frozen=True)

    # Win scoring
    win: int = Field(1, ge=0)
    conference_game: int = Field(1, ge=0)
    over_50: int = Field(1, ge=0)
    shutout: int = Field(1, ge=0)
    ranked_25: int = Field(1, ge=0)  # Beat an opponent ranked 11-25
    ranked_10: int = Field(2, ge=0)  # Beat an opponent ranked 1-10

    # Loss scoring
    loss: int = Field(0, ge=0)
    conference_game_loss: int = Field(0, ge=0)
    over_50_loss: int = Field(0, ge=0)
    shutout_loss: int = Field(0, ge=0)
    ranked_25_loss: int = Field(0, ge=0)
    ranked_10_loss: int = Field(0, ge=0)

    # Postseason and special events
    conference_win: int = Field(10, ge=0)  # Conference championship game winner
    conference_loss: int = Field(0, ge=0)
    heisman_winner: int = Field(10, ge=0)
    bowl_appearance: int = Field(5, ge=0)
    playoff_first_round: int = Field(5, ge=0)
    playoff_quarterfinal: int = Field(5, ge=0)
    playoff_semifinal: int = Field(5, ge=0)
    championship_win: int = Field(20, ge=0)
    championship_loss: int = Field(5, ge=0)


class TeamConfig(BaseModel):
    """A fantasy team and the emails of the people who may act for it."""

    name: str
    owners: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        value = value.strip()
        if not TEAM_NAME_MIN_LENGTH <= len(value) <= TEAM_NAME_MAX_LENGTH:
            raise ValueError(
                f"Team name must be {TEAM_NAME_MIN_LENGTH}-{TEAM_NAME_MAX_LENGTH} characters"
            )
        if value.lower() in RESERVED_TEAM_NAMES:
            raise ValueError(f"Team name '{value}' is reserved")
        return value

    @field_validator("owners")
    @classmethod
    def normalize_owners(cls, value: list[str]) -> list[str]:
        return [email.strip().lower() for email in value if email.strip()]


class DraftSettings(BaseModel):
    """Draft rules. team_count and schools_per_team are required."""

    draft_date: date
    draft_type: DraftType = DraftType.SNAKE
    team_count: int = Field(..., ge=2)
    schools_per_team: int = Field(..., ge=1)
    max_times_school_per_team: int = Field(1, ge=1)  # Same school on one team
    max_school_selections: int = Field(3, ge=1)  # Same school across the league
    timer_seconds: int = 60

    @field_validator("timer_seconds")
    @classmethod
    def validate_timer(cls, value: int) -> int:
        if value not in TIMER_CHOICES:
            raise ValueError(f"Draft timer must be one of {TIMER_CHOICES} seconds")
        return value


class TransactionSettings(BaseModel):
    """Add/drop rules."""

    final_add_drop_date: date
    max_add_drops: int = Field(50, ge=0)


class PrizeSettings(BaseModel):
    """Season payouts, the optional weekly high-points prize and double-points picks."""

    entry_fee: float = Field(0.0, ge=0)
    prize_pool: float = Field(0.0, ge=0)
    number_winners: int = Field(1, ge=1, le=3)
    payout_percentages: list[float] = Field(default_factory=lambda: [100.0])

    high_points_enabled: bool = False
    high_points_weekly_amount: float = Field(0.0, ge=0)
    high_points_start_period: int = Field(1, ge=0, le=20)
    high_points_weeks: int = Field(0, ge=0)
    high_points_allow_ties: bool = True

    # One school per team per week scores its game points twice
    double_points_enabled: bool = False
    max_double_picks: int = Field(0, ge=0)  # Per team per season; 0 = unlimited

    @field_validator("payout_percentages")
    @classmethod
    def validate_percentages(cls, value: list[float]) -> list[float]:
        if len(value) > 3:
            raise ValueError("At most three payout percentages (first, second, third)")
        if any(pct < 0 for pct in value):
            raise ValueError("Payout percentages must be >= 0")
        if sum(value) > 100.0 + 1e-9:
            raise ValueError("Payout percentages must not add up to more than 100")
        return value

    def prize_table(self) -> list[float]:
        """Prize amounts for first, second and third place."""
        amounts = [round(self.prize_pool * pct / 100.0, 2) for pct in self.payout_percentages]
        return (amounts + [0.0, 0.0, 0.0])[:3]


class LeagueConfig(BaseModel):
    """Complete configuration of one league season."""

    league_name: str
    season_year: int
    teams: list[TeamConfig]
    admins: list[str] = Field(default_factory=list)
    draft: DraftSettings
    transactions: TransactionSettings
    scoring: ScoringRules = Field(default_factory=ScoringRules)
    prizes: PrizeSettings = Field(default_factory=PrizeSettings)

    @field_validator("admins")
    @classmethod
    def normalize_admins(cls, value: list[str]) -> list[str]:
        return [email.strip().lower() for email in value if email.strip()]

    @model_validator(mode="after")
    def check_teams(self) -> "LeagueConfig":
        names = [team.name.lower() for team in self.teams]
        if len(set(names)) != len(names):
            raise ValueError("Team names must be unique")
        if len(self.teams) != self.draft.team_count:
            raise ValueError(
                f"draft.team_count is {self.draft.team_count} but {len(self.teams)} teams are listed"
            )
        return self

    def team_names(self) -> list[str]:
        return [team.name for team in self.teams]


def load_league_config(source: dict[str, Any] | str | Path) -> LeagueConfig:
    """Load and validate a league configuration.

    Args:
        source: A dict, or a path to a JSON file

    Returns:
        Validated LeagueConfig

    Raises:
        ConfigError: If the file is missing or unreadable, or any field fails validation
    """
    if isinstance(source, dict):
        raw = source
    else:
        path = Path(source)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigError(f"League configuration not found: {path}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"League configuration is not valid JSON: {e}") from e

    try:
        return LeagueConfig.model_validate(raw)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid league configuration: {problems}") from e
