"""College football fantasy league: draft, rosters, transactions and scoring."""

__version__ = "0.1.0"
