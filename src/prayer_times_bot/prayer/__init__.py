"""Prayer times fetching, caching and notification scheduling."""

from prayer_times_bot.prayer.cache import ScheduleCache
from prayer_times_bot.prayer.client import PrayerTimesClient
from prayer_times_bot.prayer.models import (
    CALCULATION_METHODS,
    FetchResult,
    Prayer,
    PrayerSchedule,
    TimeOfDay,
    method_label,
)
from prayer_times_bot.prayer.notifier import PrayerNotifier

__all__ = [
    "CALCULATION_METHODS",
    "FetchResult",
    "Prayer",
    "PrayerNotifier",
    "PrayerSchedule",
    "PrayerTimesClient",
    "ScheduleCache",
    "TimeOfDay",
    "method_label",
]
