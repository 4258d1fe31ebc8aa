"""
Process-wide prayer schedule state.

``ScheduleCache`` owns the current day's schedule, the date it was fetched
for and the ledger of prayers already announced. Everything runs on the
bot's event loop, so no locking is needed; mutation goes through
``replace_schedule``, ``mark_notified`` and ``purge_notified`` only.
"""

from datetime import date
from typing import FrozenSet, Optional, Set, Tuple

from prayer_times_bot.prayer.models import Prayer, PrayerSchedule
from prayer_times_bot.utils.logging import get_logger


LedgerKey = Tuple[str, Prayer]


def ledger_date_key(day: date) -> str:
    """Locale-independent date component of a ledger key."""
    return day.isoformat()


class ScheduleCache:
    """
    Current schedule plus the notification ledger.

    Attributes:
        schedule: Today's prayer times, or None until the first fetch succeeds
        last_fetch_date: Gregorian date string reported by the last default fetch
    """

    def __init__(self) -> None:
        self.logger = get_logger(__name__)
        self.schedule: Optional[PrayerSchedule] = None
        self.last_fetch_date: Optional[str] = None
        self._notified: Set[LedgerKey] = set()

    @property
    def has_schedule(self) -> bool:
        return self.schedule is not None

    @property
    def notified(self) -> FrozenSet[LedgerKey]:
        """Snapshot of the ledger."""
        return frozenset(self._notified)

    def replace_schedule(self, schedule: PrayerSchedule, fetch_date: Optional[str]) -> None:
        """Swap in a freshly fetched schedule for the default location."""
        self.schedule = schedule
        self.last_fetch_date = fetch_date
        self.logger.info(
            "Prayer schedule replaced",
            fetch_date=fetch_date,
            **schedule.as_strings(),
        )

    def is_notified(self, day: date, prayer: Prayer) -> bool:
        return (ledger_date_key(day), prayer) in self._notified

    def mark_notified(self, day: date, prayer: Prayer) -> None:
        self._notified.add((ledger_date_key(day), prayer))

    def purge_notified(self, day: date) -> int:
        """
        Drop every ledger entry recorded for ``day``.

        Returns:
            Number of entries removed
        """
        key = ledger_date_key(day)
        stale = {entry for entry in self._notified if entry[0] == key}
        self._notified -= stale
        return len(stale)
