"""Active roster windows: when a team actually held a school.

Roster history exists for periods 0-16 only. A run of periods that reaches
week 16 extends through the National Championship, because every postseason
period reads the week-16 roster.
"""

from dataclasses import dataclass

from ..season import LAST_PERIOD, LAST_ROSTER_PERIOD
from .points_engine import ActiveWindow

SlotHistory = dict[int, list[str | None]]


@dataclass(frozen=True)
class RosterRun:
    """One school held in one slot for a contiguous span of periods."""

    slot_index: int
    school_name: str
    window: ActiveWindow


def _close(start: int, end: int) -> ActiveWindow:
    if end >= int(LAST_ROSTER_PERIOD):
        end = int(LAST_PERIOD)
    return ActiveWindow(start, end)


def roster_runs(history: SlotHistory) -> list[RosterRun]:
    """Every contiguous (slot, school) run in a team's slot history."""
    periods = sorted(history)
    if not periods:
        return []
    slot_count = max(len(slots) for slots in history.values())

    runs: list[RosterRun] = []
    for slot_index in range(slot_count):
        current: str | None = None
        start = 0
        previous = None
        for period in periods:
            slots = history[period]
            school = slots[slot_index] if slot_index < len(slots) else None
            contiguous = previous is not None and period == previous + 1
            if school != current or not contiguous:
                if current is not None:
                    runs.append(RosterRun(slot_index, current, _close(start, previous)))
                current, start = school, period
            previous = period
        if current is not None:
            runs.append(RosterRun(slot_index, current, _close(start, previous)))
    return runs
