"""Configuration package."""

from .league import (
    DraftSettings,
    DraftType,
    LeagueConfig,
    PrizeSettings,
    ScoringRules,
    TeamConfig,
    TransactionSettings,
    load_league_config,
)
from .settings import Settings, settings

__all__ = [
    "DraftSettings",
    "DraftType",
    "LeagueConfig",
    "PrizeSettings",
    "ScoringRules",
    "Settings",
    "TeamConfig",
    "TransactionSettings",
    "load_league_config",
    "settings",
]
