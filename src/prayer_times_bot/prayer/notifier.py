"""
Prayer time notifier.

Drives the daily cycle: a per-minute matcher that announces each prayer
once when the wall clock reaches its time, a midnight purge of yesterday's
ledger entries, and a midnight refresh of the default location's schedule.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple, TYPE_CHECKING

from prayer_times_bot.prayer.cache import ScheduleCache
from prayer_times_bot.prayer.client import PrayerTimesClient
from prayer_times_bot.prayer.models import Prayer, TimeOfDay
from prayer_times_bot.scheduling import Clock, JobHandle, Scheduler
from prayer_times_bot.utils.logging import get_logger, log_prayer_event

if TYPE_CHECKING:
    from prayer_times_bot.bot.notifications import NotificationDispatcher


class PrayerNotifier:
    """
    Per-minute prayer time matcher.

    Attributes:
        cache: Shared schedule and notification ledger
        client: Prayer times client used for refreshes
        dispatcher: Sends the broadcast for a due prayer
        scheduler: Installs the recurring ticks and the startup retry
        clock: Wall-clock source
    """

    def __init__(
        self,
        cache: ScheduleCache,
        client: PrayerTimesClient,
        dispatcher: "NotificationDispatcher",
        scheduler: Scheduler,
        clock: Optional[Clock] = None,
        tick_seconds: float = 60.0,
        startup_retry_seconds: float = 60.0,
    ) -> None:
        self.cache = cache
        self.client = client
        self.dispatcher = dispatcher
        self.scheduler = scheduler
        self.clock = clock or Clock()
        self.tick_seconds = tick_seconds
        self.startup_retry_seconds = startup_retry_seconds
        self.logger = get_logger(__name__)

        self._started = False
        self._jobs: List[JobHandle] = []

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """
        Fetch today's schedule, run one immediate check and install the ticks.

        A failed initial fetch is retried exactly once after
        ``startup_retry_seconds``. Calling this again is a no-op.
        """
        if self._started:
            self.logger.debug("Notifier already started")
            return
        self._started = True

        result = await self.client.fetch_times()
        if not result.success:
            self.logger.warning(
                "Initial prayer time fetch failed, will retry",
                error=result.error,
                retry_in_seconds=self.startup_retry_seconds,
            )
            self._jobs.append(
                self.scheduler.once(
                    self.startup_retry_seconds,
                    self._retry_initial_fetch,
                    name="startup-fetch-retry",
                )
            )

        # Startup may land exactly on a prayer minute
        await self.check_prayer_times()

        self._jobs.append(
            self.scheduler.every(self.tick_seconds, self.check_daily_refresh, name="daily-refresh")
        )
        self._jobs.append(
            self.scheduler.every(self.tick_seconds, self.check_prayer_times, name="prayer-check")
        )
        self.logger.info("Prayer notifier started", tick_seconds=self.tick_seconds)

    async def _retry_initial_fetch(self) -> None:
        result = await self.client.fetch_times()
        if result.success:
            self.logger.info("Initial prayer time fetch succeeded on retry")
        else:
            self.logger.error(
                "Initial prayer time fetch retry failed, waiting for midnight refresh",
                error=result.error,
            )

    def due_prayers(self, current: TimeOfDay, today: date) -> List[Tuple[Prayer, TimeOfDay]]:
        """Prayers whose time is ``current`` and that were not yet announced ``today``."""
        if self.cache.schedule is None:
            return []
        return [
            (prayer, time)
            for prayer, time in self.cache.schedule
            if time == current and not self.cache.is_notified(today, prayer)
        ]

    async def check_prayer_times(self, now: Optional[datetime] = None) -> List[Prayer]:
        """
        Run one matcher tick.

        Due prayers are computed against the ledger as it stood when the
        tick began, recorded, and then announced. At ``00:00`` the previous
        day's ledger entries are purged.

        Args:
            now: Moment to evaluate, defaults to the clock

        Returns:
            The prayers announced by this tick
        """
        now = now or self.clock.now()
        current = TimeOfDay.from_datetime(now)
        today = now.date()

        due = self.due_prayers(current, today)
        for prayer, _ in due:
            self.cache.mark_notified(today, prayer)

        if current.is_midnight:
            yesterday = (now - timedelta(days=1)).date()
            removed = self.cache.purge_notified(yesterday)
            log_prayer_event("ledger_purged", day=yesterday.isoformat(), removed=removed)

        for prayer, time in due:
            log_prayer_event("prayer_due", prayer=prayer.value, time=str(time))
            await self.dispatcher.notify(prayer, time)

        return [prayer for prayer, _ in due]

    async def check_daily_refresh(self, now: Optional[datetime] = None) -> bool:
        """
        Refresh the default schedule when the clock reads ``00:00``.

        Returns:
            True if a refresh was attempted
        """
        now = now or self.clock.now()
        if not TimeOfDay.from_datetime(now).is_midnight:
            return False

        log_prayer_event("daily_refresh")
        result = await self.client.fetch_times()
        if not result.success:
            self.logger.error(
                "Daily prayer time refresh failed, keeping previous schedule",
                error=result.error,
            )
        return True

    def stop(self) -> None:
        """Cancel the ticks and any pending retry."""
        for job in self._jobs:
            job.cancel()
        self._jobs.clear()
