"""Process settings and environment configuration.

This file implements the process-level configuration using Pydantic Settings.
It covers the things that differ between deployments (database location,
score feed endpoint, retry budget, lock timeouts, mail relay) and leaves
league rules to ``league.py``.

Configuration Sources (in priority order):
1. Environment variables (highest priority)
2. .env file values
3. Default values defined here (lowest priority)

Example:
- Environment variable: `DATABASE_URL=sqlite:///prod.db`
- .env file: `score_feed_timeout=30`
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database Configuration - SQLAlchemy connection settings
    database_url: str = "sqlite:///data/database/cfb_fantasy.db"
    database_echo: bool = False  # Log all SQL statements

    # Season
    season_year: int = 2025

    # Score feed (ESPN college football site API)
    score_feed_base_url: str = "https://site.api.espn.com/apis/site/v2/sports/football/college-football"
    score_feed_timeout: float = 15.0  # Per-request timeout in seconds
    score_feed_max_retries: int = 3  # Attempts per call
    score_feed_backoff_base: float = 1.0  # First retry delay, doubled each attempt
    score_feed_batch_size: int = 25  # Game ids per update request batch

    # Write lock - guards the game table, roster swaps and eligibility recompute
    write_lock_stale_after: float = 30.0  # A lock older than this is abandoned
    write_lock_wait_timeout: float = 10.0  # How long a writer waits before giving up

    # Notifications (optional) - without a host, mail is only logged
    smtp_host: str | None = None
    smtp_port: int = 25
    smtp_sender: str = "commissioner@localhost"

    # Logging Configuration
    log_level: str = "INFO"
    log_file: Path = Path("data/logs/cfb_fantasy.log")

    @property
    def project_root(self) -> Path:
        """Get the project root directory.

        cfb_fantasy/config/settings.py -> cfb_fantasy/config -> cfb_fantasy -> project_root
        """
        return Path(__file__).parent.parent.parent

    @property
    def data_dir(self) -> Path:
        """Directory for the SQLite database and log files."""
        return self.project_root / "data"


# Settings instance for the CLI composition root. Library components take
# their configuration through constructor arguments instead of importing this.
settings = Settings()
