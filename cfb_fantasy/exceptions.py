"""Custom exceptions for the fantasy league engine.

This file defines the error taxonomy shared by every league component.
Specific exception types let callers decide how to react:

1. Configuration errors abort the operation and go back to the commissioner
2. Validation errors reject a single user action (draft pick, add/drop) and
   leave roster and eligibility state untouched
3. Fetch, concurrency and integrity errors come from the ingestion side and
   are contained per batch

Inheritance Pattern:
Every exception derives from LeagueError so the CLI can catch the whole
family in one place. Validation errors carry a ``reason`` attribute holding
the literal rule that failed; that text is what a rejected user sees.

Usage Examples:
- raise InvalidConfigError("Draft type must be Snake or Linear, got 'Random'")
- raise DeadlineError("Final add/drop deadline has passed (10/06/2025)")
- raise SchoolUnavailableError("Georgia has already been selected 3 times")
"""


class LeagueError(Exception):
    """Base class for all league engine errors."""


class ConfigError(LeagueError):
    """Raised when required season settings are missing or invalid.

    Configuration errors are fatal to the attempted operation. Required fields
    such as team count and schools per team are never silently defaulted.
    """


class InvalidConfigError(ConfigError):
    """Raised when a configuration value is present but not allowed.

    Example:
    ```python
    if draft_type not in DraftType.__members__.values():
        raise InvalidConfigError(f"Unknown draft type: {draft_type}")
    ```
    """


class NotInitializedError(LeagueError):
    """Raised when persisted state is absent and must be initialized first."""


class ValidationError(LeagueError):
    """Raised when a user action breaks a draft or transaction rule.

    The ``reason`` attribute is the human-readable rule text. It is shown to
    the user verbatim, so it names the rule instead of a generic failure.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidDateError(ValidationError):
    """Raised when an action is attempted before its allowed date."""


class NotOnTheClockError(ValidationError):
    """Raised when a pick is made outside the active draft turn."""


class AuthorizationError(ValidationError):
    """Raised when the acting user may not act for the team."""


class DeadlineError(ValidationError):
    """Raised when a season or weekly add/drop deadline has passed."""


class TransactionLimitError(ValidationError):
    """Raised when a team has used all of its add/drops."""


class RosterError(ValidationError):
    """Raised when a roster slot does not hold what the request expects."""


class EligibilityError(ValidationError):
    """Raised when a school is at its selection cap."""


class SchoolUnavailableError(EligibilityError):
    """Raised when a drafted school is at the league-wide or per-team cap."""


class ExternalFetchError(LeagueError):
    """Raised when the score feed cannot be reached after all retries.

    Callers fall back to cached data when they have it and otherwise log the
    failure and continue with partial data.
    """


class ConcurrencyError(LeagueError):
    """Raised when the write lock cannot be acquired within its timeout.

    The write is aborted. The caller or the scheduler retries later; nothing
    proceeds without the lock.
    """


class DataIntegrityError(LeagueError):
    """Raised when a record would be applied twice (duplicate game id)."""
