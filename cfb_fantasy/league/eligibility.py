"""Eligibility tracker: league-wide selection counts per school.

Each school may be selected at most ``max_selections`` times across all
teams. The tracker keeps ``{school: {"max": n, "current": k}}`` and writes it
to the key-value store after every mutation, so counts survive restarts.

Lifecycle:
1. ``initialize()`` at draft start sets every counter to 0.
2. Draft picks and add/drops call ``record_transaction()``.
3. The nightly pass calls ``reconcile()`` with counts taken from the roster
   store, which heals drift left by a partially failed write.

If the stored state is missing or unreadable, the tracker reports itself
uninitialized; callers detect that and call ``initialize()``. Operations that
need state raise NotInitializedError until then.
"""

import logging

from ..database.kv_store import KeyValueStore
from ..exceptions import EligibilityError, NotInitializedError

logger = logging.getLogger(__name__)

STATE_KEY = "eligibility:state"


class EligibilityTracker:
    """Per-school selection counters with a league-wide cap."""

    def __init__(self, kv: KeyValueStore, key: str = STATE_KEY):
        self.kv = kv
        self.key = key
        self._state: dict[str, dict[str, int]] | None = None
        self.load()

    def load(self) -> bool:
        """Reload persisted state. Returns False when there is none to load."""
        raw = self.kv.get_json(self.key)
        if raw is None:
            self._state = None
            return False

        state: dict[str, dict[str, int]] = {}
        try:
            for school, entry in raw.items():
                state[school] = {"max": int(entry["max"]), "current": int(entry["current"])}
        except (AttributeError, KeyError, TypeError, ValueError):
            logger.warning("Stored eligibility state is malformed; treating it as absent")
            self._state = None
            return False

        self._state = state
        return True

    @property
    def is_initialized(self) -> bool:
        return self._state is not None

    def _require(self) -> dict[str, dict[str, int]]:
        if self._state is None:
            raise NotInitializedError("Eligibility state has not been initialized")
        return self._state

    def _persist(self) -> None:
        self.kv.set_json(self.key, self._state)

    def initialize(self, schools: list[str], max_selections: int) -> None:
        """Reset every school's counter to 0 with the given cap."""
        self._state = {school: {"max": int(max_selections), "current": 0} for school in schools}
        self._persist()
        logger.info(f"Eligibility initialized for {len(schools)} schools (max {max_selections})")

    def set_max_selections(self, max_selections: int) -> int:
        """Apply a new league-wide cap, keeping current counts.

        A school already over the new cap stays selected but is unavailable
        until enough teams drop it.

        Returns:
            Number of schools whose cap changed
        """
        state = self._require()
        changed = 0
        for entry in state.values():
            if entry["max"] != max_selections:
                entry["max"] = int(max_selections)
                changed += 1
        if changed:
            self._persist()
            logger.info(f"Eligibility cap changed to {max_selections} for {changed} schools")
        return changed

    def clear(self) -> None:
        """Forget all state (draft reset)."""
        self._state = None
        self.kv.delete(self.key)

    def is_available(self, school: str) -> bool:
        entry = self._require().get(school)
        return entry is not None and entry["current"] < entry["max"]

    def current_selections(self, school: str) -> int:
        entry = self._require().get(school)
        return entry["current"] if entry else 0

    def max_selections(self, school: str) -> int:
        entry = self._require().get(school)
        return entry["max"] if entry else 0

    def counts(self) -> dict[str, int]:
        return {school: entry["current"] for school, entry in self._require().items()}

    def unavailable_schools(self) -> set[str]:
        return {
            school
            for school, entry in self._require().items()
            if entry["current"] >= entry["max"]
        }

    def record_transaction(self, dropped: str | None = None, added: str | None = None) -> None:
        """Decrement ``dropped`` and increment ``added``.

        The cap is checked on a copy first, so a rejected add leaves the
        counters untouched. A counter that would go negative is logged and
        held at 0. There is no de-duplication: calling twice counts twice.

        Raises:
            EligibilityError: If ``added`` is unknown or already at its cap
        """
        state = {school: dict(entry) for school, entry in self._require().items()}

        if dropped:
            entry = state.get(dropped)
            if entry is None:
                logger.warning(f"Dropped school '{dropped}' is not tracked")
            elif entry["current"] <= 0:
                logger.warning(
                    f"Selection count for {dropped} would go negative; holding it at 0"
                )
                entry["current"] = 0
            else:
                entry["current"] -= 1

        if added:
            entry = state.get(added)
            if entry is None:
                raise EligibilityError(f"Unknown school: {added}")
            if entry["current"] >= entry["max"]:
                raise EligibilityError(
                    f"{added} has already been selected {entry['max']} times"
                )
            entry["current"] += 1

        self._state = state
        self._persist()

    def reconcile(self, actual_counts: dict[str, int]) -> dict[str, tuple[int, int]]:
        """Overwrite counters with ground truth from the roster store.

        Schools missing from ``actual_counts`` are set to 0.

        Returns:
            {school: (old, new)} for every counter that changed
        """
        state = self._require()
        corrections: dict[str, tuple[int, int]] = {}

        for school, entry in state.items():
            actual = int(actual_counts.get(school, 0))
            if entry["current"] != actual:
                corrections[school] = (entry["current"], actual)
                entry["current"] = actual

        for school in actual_counts:
            if school not in state:
                logger.warning(f"Roster holds untracked school '{school}'")

        if corrections:
            self._persist()
            logger.warning(f"Eligibility reconciled {len(corrections)} drifted counters: {corrections}")
        else:
            logger.info("Eligibility counters match rosters")
        return corrections
