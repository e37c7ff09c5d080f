"""Season timeline: the 21 scoring periods and the calendar that dates them.

Period numbering:
- 0-14: regular weeks (Week 0 is the opening weekend)
- 15: conference championship week (flat bonus only)
- 16: Week 16, the last week with its own roster
- 17: Bowls
- 18: Heisman (fixed slot, not tied to a game date)
- 19: Playoff (CFP first round, quarterfinal, semifinal)
- 20: National Championship

Roster data exists for weeks 0-16 only. Every period after week 16 reads the
week-16 roster; see ``roster_period``.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum


class SeasonPeriod(IntEnum):
    WEEK_0 = 0
    WEEK_1 = 1
    WEEK_2 = 2
    WEEK_3 = 3
    WEEK_4 = 4
    WEEK_5 = 5
    WEEK_6 = 6
    WEEK_7 = 7
    WEEK_8 = 8
    WEEK_9 = 9
    WEEK_10 = 10
    WEEK_11 = 11
    WEEK_12 = 12
    WEEK_13 = 13
    WEEK_14 = 14
    CONFERENCE_CHAMPIONSHIP = 15
    WEEK_16 = 16
    BOWLS = 17
    HEISMAN = 18
    PLAYOFF = 19
    NATIONAL_CHAMPIONSHIP = 20

    @property
    def label(self) -> str:
        return PERIOD_LABELS.get(self, f"Week {int(self)}")

    @property
    def is_regular(self) -> bool:
        """Weeks scored with the per-game formula (everything up to Week 16 except conf champs)."""
        return self <= SeasonPeriod.WEEK_16 and self != SeasonPeriod.CONFERENCE_CHAMPIONSHIP

    @property
    def is_postseason(self) -> bool:
        return self >= SeasonPeriod.BOWLS


PERIOD_LABELS = {
    SeasonPeriod.CONFERENCE_CHAMPIONSHIP: "Conf Champ",
    SeasonPeriod.WEEK_16: "Week 16",
    SeasonPeriod.BOWLS: "Bowls",
    SeasonPeriod.HEISMAN: "Heisman",
    SeasonPeriod.PLAYOFF: "Playoff",
    SeasonPeriod.NATIONAL_CHAMPIONSHIP: "Natty",
}

ALL_PERIODS = tuple(SeasonPeriod)
LAST_ROSTER_PERIOD = SeasonPeriod.WEEK_16
ROSTER_PERIODS = tuple(p for p in SeasonPeriod if p <= LAST_ROSTER_PERIOD)
FIRST_PERIOD = SeasonPeriod.WEEK_0
LAST_PERIOD = SeasonPeriod.NATIONAL_CHAMPIONSHIP


def roster_period(period: int) -> SeasonPeriod:
    """Map a scoring period to the period whose roster it uses.

    Bowls, Heisman, Playoff and National Championship all use the Week 16
    roster.
    """
    return SeasonPeriod(min(int(period), int(LAST_ROSTER_PERIOD)))


@dataclass(frozen=True)
class CalendarPeriod:
    """Dated span of one period, as published by the score feed."""

    period: SeasonPeriod
    label: str
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class SeasonCalendar:
    """Ordered date ranges for the periods that have a date range.

    Heisman has no games and never appears in the feed calendar.
    """

    def __init__(self, periods: list[CalendarPeriod]):
        self.periods = sorted(periods, key=lambda p: (p.start, int(p.period)))

    def __len__(self) -> int:
        return len(self.periods)

    def current_period(self, now: datetime) -> SeasonPeriod:
        """Period containing ``now``.

        Between two ranges the next upcoming period is current (add/drops made
        on a Tuesday count for the coming weekend). Before the season that is
        the first period; after it, the last.
        """
        if not self.periods:
            return FIRST_PERIOD
        for entry in self.periods:
            if entry.contains(now):
                return entry.period
            if now < entry.start:
                return entry.period
        return self.periods[-1].period

    def period_for_date(self, moment: datetime) -> SeasonPeriod | None:
        for entry in self.periods:
            if entry.contains(moment):
                return entry.period
        return None


def utcnow() -> datetime:
    """Current time as a naive UTC datetime.

    All stored and compared datetimes in the league are naive UTC; the score
    feed's aware timestamps are converted on parse.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
